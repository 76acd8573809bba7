# clinical_core/workflows/lifecycle.py
"""
Authoritative lifecycle service for clinical records.

All payload edits, assignments and status transitions MUST go through
this service. Never update status directly in views or serializers.

Every operation:
  1) re-reads the record from the store (no in-process caching)
  2) resolves capabilities for the actor's role on the current status
  3) validates against the status graph
  4) writes through the store, conditional on the updated_at it read
  5) sends record_changed / record_transitioned for audit receivers

Steps 4 and 5 share one store transaction: if an audit receiver fails,
the write is rolled back and the caller gets StorageError.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import replace
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, Iterator, List, Mapping, Optional, Tuple

from django.conf import settings
from django.utils import timezone

from . import events
from .entities import Actor, ClinicalRecord, RelatedIdentities
from .errors import ClinicalRecordError, ForbiddenError, IllegalTransitionError
from .identity import DjangoIdentityResolver, IdentityResolver
from .record_types import COMPLETED, PENDING, RecordType, get_record_type, normalize_kind
from .report import build_report, report_filename
from .roles import CAN_EDIT_PAYLOAD, CapabilitySet, capabilities_for, normalize_role
from .rules import check_transition, normalize_status
from .store import DjangoRecordStore, RecordStore

logger = logging.getLogger(__name__)

CAN_ORDER = "can_order"


class LifecycleService:
    def __init__(
        self,
        store: Optional[RecordStore] = None,
        identity_resolver: Optional[IdentityResolver] = None,
        clock: Callable[[], datetime] = timezone.now,
        record_types: Optional[Mapping[str, RecordType]] = None,
        optimistic_locking: Optional[bool] = None,
    ):
        self.store = store if store is not None else DjangoRecordStore()
        self.identity_resolver = identity_resolver if identity_resolver is not None else DjangoIdentityResolver()
        self.clock = clock
        self.record_types = dict(record_types or {})
        if optimistic_locking is None:
            optimistic_locking = getattr(settings, "CLINICAL_OPTIMISTIC_LOCKING", True)
        self.optimistic_locking = bool(optimistic_locking)

    # -----------------------------------------------------------
    # Helpers
    # -----------------------------------------------------------
    def record_type(self, kind: str) -> RecordType:
        k = normalize_kind(kind)
        if k in self.record_types:
            return self.record_types[k]
        return get_record_type(k)

    def _fetch(self, record_id: Any) -> ClinicalRecord:
        return ClinicalRecord.from_raw(self.store.get(record_id))

    def _stamp(self, previous: Optional[datetime]) -> datetime:
        """updated_at moves forward on every accepted write, never backwards."""
        now = self.clock()
        if previous is not None and now <= previous:
            now = previous + timedelta(microseconds=1)
        return now

    def _write(self, record: ClinicalRecord, **changes: Any) -> ClinicalRecord:
        changes["updated_at"] = self._stamp(record.updated_at)
        raw = replace(record, **changes).to_raw()
        expected = record.updated_at if self.optimistic_locking else None
        return ClinicalRecord.from_raw(self.store.put(record.id, raw, expected_updated_at=expected))

    def capabilities(self, record: ClinicalRecord, actor: Actor) -> CapabilitySet:
        return capabilities_for(actor.role, record.status, self.record_type(record.kind))

    def _view(self, record: ClinicalRecord, actor: Optional[Actor]) -> ClinicalRecord:
        if actor is None:
            return record
        return record.scoped_to(self.capabilities(record, actor))

    @contextmanager
    def _operation(self, name: str, record_id: Any, actor: Optional[Actor]) -> Iterator[None]:
        try:
            yield
        except ClinicalRecordError as exc:
            level = logging.ERROR if exc.code == "storage_error" else logging.WARNING
            logger.log(
                level,
                "%s rejected: record=%s actor=%s role=%s error=%s detail=%s",
                name,
                record_id,
                getattr(actor, "id", None),
                getattr(actor, "role", None),
                exc.code,
                exc.message,
            )
            raise

    # -----------------------------------------------------------
    # Read
    # -----------------------------------------------------------
    def load(self, record_id: Any, actor: Optional[Actor] = None) -> ClinicalRecord:
        """
        Fetch one record. With an actor, the payload is scoped to that
        actor's capabilities (restricted marker instead of omission).
        """
        with self._operation("load", record_id, actor):
            return self._view(self._fetch(record_id), actor)

    # -----------------------------------------------------------
    # Create / assign / edit
    # -----------------------------------------------------------
    def create(
        self,
        actor: Actor,
        kind: str,
        subject_id: Any,
        title: str,
        notes: str = "",
        details: Optional[Mapping[str, Any]] = None,
        assigned_actor_id: Any = None,
    ) -> ClinicalRecord:
        with self._operation("create", None, actor):
            role = normalize_role(actor.role)
            rt = self.record_type(kind)
            if role not in rt.ordering_roles:
                raise ForbiddenError(CAN_ORDER, role)

            now = self.clock()
            with self.store.atomic("create"):
                raw = self.store.add(
                    {
                        "kind": rt.kind,
                        "title": title,
                        "subject_id": subject_id,
                        "ordering_actor_id": actor.id,
                        "assigned_actor_id": assigned_actor_id,
                        "status": PENDING,
                        "payload": "",
                        "notes": notes or "",
                        "details": dict(details or {}),
                        "created_at": now,
                        "updated_at": now,
                    }
                )
                record = ClinicalRecord.from_raw(raw)
                events.record_changed.send(
                    sender=self.__class__, record=record, actor=actor, action="created"
                )

        logger.info("Created %s %s by actor=%s", record.kind, record.id, actor.id)
        return self._view(record, actor)

    def update_payload(
        self,
        record_id: Any,
        actor: Actor,
        payload: Optional[str],
        notes: Optional[str] = None,
    ) -> ClinicalRecord:
        """
        Requires can_edit_payload on the record's current status.
        notes=None leaves notes unchanged.
        """
        with self._operation("update_payload", record_id, actor):
            record = self._fetch(record_id)
            caps = self.capabilities(record, actor)
            if not caps.can_edit_payload:
                raise ForbiddenError(
                    CAN_EDIT_PAYLOAD,
                    normalize_role(actor.role),
                    status=record.status,
                    record_id=record.id,
                )

            changes: Dict[str, Any] = {"payload": payload or ""}
            if notes is not None:
                changes["notes"] = notes
            with self.store.atomic("update_payload"):
                updated = self._write(record, **changes)
                events.record_changed.send(
                    sender=self.__class__, record=updated, actor=actor, action="payload_updated"
                )

        logger.info("Payload updated on %s %s by actor=%s", updated.kind, updated.id, actor.id)
        return self._view(updated, actor)

    def assign(self, record_id: Any, actor: Actor, assignee_id: Any) -> ClinicalRecord:
        """
        Set the fulfilling actor. Frozen with the payload: same capability.
        """
        with self._operation("assign", record_id, actor):
            record = self._fetch(record_id)
            if not self.capabilities(record, actor).can_edit_payload:
                raise ForbiddenError(
                    CAN_EDIT_PAYLOAD,
                    normalize_role(actor.role),
                    status=record.status,
                    record_id=record.id,
                )
            with self.store.atomic("assign"):
                updated = self._write(record, assigned_actor_id=assignee_id)
                events.record_changed.send(
                    sender=self.__class__, record=updated, actor=actor, action="assigned"
                )

        logger.info(
            "Assigned %s %s to %s by actor=%s", updated.kind, updated.id, assignee_id, actor.id
        )
        return self._view(updated, actor)

    # -----------------------------------------------------------
    # Status
    # -----------------------------------------------------------
    def _apply_transition(
        self, operation: str, record: ClinicalRecord, actor: Actor, target: str
    ) -> Tuple[ClinicalRecord, bool]:
        changed = check_transition(
            record_type=self.record_type(record.kind),
            current=record.status,
            target=target,
            role=actor.role,
            payload=record.payload,
            record_id=record.id,
        )
        if not changed:
            return record, False

        with self.store.atomic(operation):
            updated = self._write(record, status=normalize_status(target))
            events.record_transitioned.send(
                sender=self.__class__,
                record=updated,
                actor=actor,
                from_status=record.status,
                to_status=updated.status,
            )
        return updated, True

    def _log_transition(self, before: ClinicalRecord, after: ClinicalRecord, actor: Actor) -> None:
        logger.info(
            "Transition %s %s: %s -> %s by actor=%s role=%s",
            after.kind,
            after.id,
            before.status,
            after.status,
            actor.id,
            actor.role,
        )

    def transition_status(self, record_id: Any, actor: Actor, target: str) -> ClinicalRecord:
        """
        Same-status requests succeed without writing (updated_at unchanged).
        """
        with self._operation("transition_status", record_id, actor):
            record = self._fetch(record_id)
            updated, changed = self._apply_transition("transition_status", record, actor, target)

        if changed:
            self._log_transition(record, updated, actor)
        else:
            logger.debug("No-op transition on %s %s (%s)", record.kind, record.id, record.status)
        return self._view(updated, actor)

    def complete(
        self,
        record_id: Any,
        actor: Actor,
        final_payload: Optional[str],
        notes: Optional[str] = None,
    ) -> ClinicalRecord:
        """
        update_payload then transition to completed. A payload write that
        succeeded is kept even when the status guard then fails; the
        caller gets the guard error and can retry the transition alone.
        The payload write is skipped when nothing changed.
        """
        with self._operation("complete", record_id, actor):
            record = self._fetch(record_id)
            payload_changed = (final_payload or "") != record.payload
            notes_changed = notes is not None and notes != record.notes

        if payload_changed or notes_changed:
            self.update_payload(record_id, actor, final_payload, notes=notes)

        return self.transition_status(record_id, actor, COMPLETED)

    def revert(self, record_id: Any, actor: Actor) -> ClinicalRecord:
        """
        completed -> pending, admin only. Payload, notes and assignment
        are kept; only status and updated_at change.
        """
        with self._operation("revert", record_id, actor):
            normalize_role(actor.role)
            record = self._fetch(record_id)
            if record.status != COMPLETED:
                raise IllegalTransitionError(record.status, PENDING, record_id=record.id)
            updated, _ = self._apply_transition("revert", record, actor, PENDING)

        self._log_transition(record, updated, actor)
        return self._view(updated, actor)

    def history(self, record_id: Any) -> List[Dict[str, Any]]:
        """Accepted status changes, oldest first."""
        with self._operation("history", record_id, None):
            record = self._fetch(record_id)
            return self.store.history(record.id)

    # -----------------------------------------------------------
    # Report
    # -----------------------------------------------------------
    def identities(self, record: ClinicalRecord) -> RelatedIdentities:
        return self.identity_resolver.resolve(record)

    def report(
        self,
        record_id: Any,
        actor: Actor,
        generated_at: Optional[datetime] = None,
    ) -> Tuple[str, str]:
        """
        Returns (report text, download filename). The payload is scoped
        to the generating actor before rendering.
        """
        record = self.load(record_id, actor)
        identities = self.identities(record)
        text = build_report(
            record,
            identities,
            generating_actor=actor,
            generated_at=generated_at or self.clock(),
            record_type=self.record_type(record.kind),
        )
        return text, report_filename(record, identities)


__all__ = ["LifecycleService", "CAN_ORDER"]
