# clinical_core/workflows/store.py
"""
Data store adapter for clinical records.

The lifecycle service treats storage as an opaque key-by-id store:

    get(id)                              -> raw dict
    put(id, raw, expected_updated_at)    -> raw dict
    add(raw)                             -> raw dict
    history(id)                          -> list of transition dicts
    atomic(operation)                    -> context manager

Raw dicts use the keys of ClinicalRecord.to_raw(). The ORM-backed store
below writes through queryset.update(), which is the only path allowed
to move `status` past the model write guard.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from datetime import datetime
from typing import Any, ContextManager, Dict, Iterator, List, Mapping, Optional, Protocol

from django.core.exceptions import ValidationError
from django.db import DatabaseError, transaction

from clinical_core.models import ClinicalRecord as ClinicalRecordModel
from clinical_core.models import WorkflowTransition

from .errors import ConflictError, NotFoundError, StorageError

logger = logging.getLogger(__name__)


WRITABLE_FIELDS = (
    "title",
    "status",
    "payload",
    "notes",
    "details",
    "assigned_actor_id",
    "updated_at",
)


class RecordStore(Protocol):
    def get(self, record_id: Any) -> Dict[str, Any]:
        ...

    def put(
        self,
        record_id: Any,
        raw: Mapping[str, Any],
        expected_updated_at: Optional[datetime] = None,
    ) -> Dict[str, Any]:
        ...

    def add(self, raw: Mapping[str, Any]) -> Dict[str, Any]:
        ...

    def history(self, record_id: Any) -> List[Dict[str, Any]]:
        ...

    def atomic(self, operation: str) -> ContextManager[None]:
        ...


def model_to_raw(obj: ClinicalRecordModel) -> Dict[str, Any]:
    return {
        "id": obj.pk,
        "kind": obj.kind,
        "title": obj.title,
        "subject_id": obj.subject_id,
        "ordering_actor_id": obj.ordering_actor_id,
        "assigned_actor_id": obj.assigned_actor_id,
        "status": obj.status,
        "payload": obj.payload,
        "notes": obj.notes,
        "details": dict(obj.details or {}),
        "created_at": obj.created_at,
        "updated_at": obj.updated_at,
    }


class DjangoRecordStore:
    """ORM-backed store over clinical_core.ClinicalRecord."""

    model = ClinicalRecordModel

    def get(self, record_id: Any) -> Dict[str, Any]:
        try:
            obj = self.model.objects.get(pk=record_id)
        except (self.model.DoesNotExist, ValidationError, ValueError):
            raise NotFoundError(record_id)
        except DatabaseError as exc:
            logger.error("Record read failed for %s: %s", record_id, exc)
            raise StorageError(operation="get") from exc
        return model_to_raw(obj)

    def put(
        self,
        record_id: Any,
        raw: Mapping[str, Any],
        expected_updated_at: Optional[datetime] = None,
    ) -> Dict[str, Any]:
        fields = {name: raw[name] for name in WRITABLE_FIELDS if name in raw}
        fields["payload"] = fields.get("payload") or ""
        fields["notes"] = fields.get("notes") or ""

        try:
            with transaction.atomic():
                qs = self.model.objects.filter(pk=record_id)
                if expected_updated_at is not None:
                    qs = qs.filter(updated_at=expected_updated_at)

                updated = qs.update(**fields)

                if not updated:
                    if self.model.objects.filter(pk=record_id).exists():
                        raise ConflictError(record_id)
                    raise NotFoundError(record_id)
        except DatabaseError as exc:
            logger.error("Record write failed for %s: %s", record_id, exc)
            raise StorageError(operation="put") from exc

        return self.get(record_id)

    def add(self, raw: Mapping[str, Any]) -> Dict[str, Any]:
        try:
            obj = self.model.objects.create(
                kind=raw["kind"],
                title=raw.get("title") or "",
                subject_id=raw["subject_id"],
                ordering_actor_id=raw["ordering_actor_id"],
                assigned_actor_id=raw.get("assigned_actor_id"),
                status=raw["status"],
                payload=raw.get("payload") or "",
                notes=raw.get("notes") or "",
                details=dict(raw.get("details") or {}),
                created_at=raw["created_at"],
                updated_at=raw["updated_at"],
            )
        except DatabaseError as exc:
            logger.error("Record create failed: %s", exc)
            raise StorageError(operation="add") from exc
        return model_to_raw(obj)

    def history(self, record_id: Any) -> List[Dict[str, Any]]:
        try:
            rows = list(
                WorkflowTransition.objects.filter(record_id=record_id)
                .select_related("performed_by")
                .order_by("created_at", "id")
            )
        except DatabaseError as exc:
            logger.error("Timeline read failed for %s: %s", record_id, exc)
            raise StorageError(operation="history") from exc

        return [
            {
                "from_status": t.from_status,
                "to_status": t.to_status,
                "performed_by_id": t.performed_by_id,
                "performed_by": t.performed_by.get_username() if t.performed_by else None,
                "role": t.role,
                "at": t.created_at,
            }
            for t in rows
        ]

    @contextmanager
    def atomic(self, operation: str) -> Iterator[None]:
        """
        One transaction around a record write and its audit receivers.
        Database errors raised anywhere inside roll both back and surface
        as StorageError.
        """
        try:
            with transaction.atomic():
                yield
        except DatabaseError as exc:
            logger.error("%s rolled back: %s", operation, exc)
            raise StorageError(operation=operation) from exc


__all__ = ["RecordStore", "DjangoRecordStore", "WRITABLE_FIELDS", "model_to_raw"]
