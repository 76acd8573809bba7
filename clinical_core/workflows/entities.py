# clinical_core/workflows/entities.py
from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date, datetime
from typing import Any, Dict, Mapping, Optional

from .roles import CapabilitySet


# Payload visibility as seen by one viewer.
PAYLOAD_VISIBLE = "visible"
PAYLOAD_RESTRICTED = "restricted"
PAYLOAD_ABSENT = "absent"

RESTRICTED_MARKER = "Restricted: insufficient permission to view results"


@dataclass(frozen=True)
class Actor:
    """
    The authenticated user behind a call. Passed explicitly into every
    lifecycle operation; the engine never looks up "who is calling".
    """

    id: Any
    role: str
    name: str = ""


@dataclass(frozen=True)
class ClinicalRecord:
    id: Any
    kind: str
    title: str
    subject_id: Any
    ordering_actor_id: Any
    status: str
    created_at: datetime
    updated_at: datetime
    assigned_actor_id: Any = None
    payload: str = ""
    notes: str = ""
    details: Mapping[str, Any] = field(default_factory=dict)
    payload_state: str = PAYLOAD_VISIBLE

    @classmethod
    def from_raw(cls, raw: Mapping[str, Any]) -> "ClinicalRecord":
        payload = raw.get("payload") or ""
        return cls(
            id=raw["id"],
            kind=raw["kind"],
            title=raw.get("title") or "",
            subject_id=raw.get("subject_id"),
            ordering_actor_id=raw.get("ordering_actor_id"),
            assigned_actor_id=raw.get("assigned_actor_id"),
            status=raw["status"],
            payload=payload,
            notes=raw.get("notes") or "",
            details=dict(raw.get("details") or {}),
            created_at=raw["created_at"],
            updated_at=raw["updated_at"],
            payload_state=PAYLOAD_VISIBLE if payload.strip() else PAYLOAD_ABSENT,
        )

    def to_raw(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "kind": self.kind,
            "title": self.title,
            "subject_id": self.subject_id,
            "ordering_actor_id": self.ordering_actor_id,
            "assigned_actor_id": self.assigned_actor_id,
            "status": self.status,
            "payload": self.payload,
            "notes": self.notes,
            "details": dict(self.details),
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }

    def scoped_to(self, capabilities: CapabilitySet) -> "ClinicalRecord":
        """
        Field filtering for a viewer. A viewer without can_view_payload
        still gets the record, with the payload replaced by an explicit
        marker so "no results yet" and "no permission" stay distinct.
        """
        if not capabilities.can_view_payload:
            return replace(self, payload=RESTRICTED_MARKER, payload_state=PAYLOAD_RESTRICTED)
        return self


@dataclass(frozen=True)
class PersonIdentity:
    name: str
    email: str = ""
    phone: str = ""


@dataclass(frozen=True)
class SubjectIdentity:
    first_name: str
    last_name: str
    email: str = ""
    phone: str = ""
    date_of_birth: Optional[date] = None
    gender: str = ""
    blood_type: str = ""

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


@dataclass(frozen=True)
class RelatedIdentities:
    """Display identities for report rendering. Any member may be None."""

    subject: Optional[SubjectIdentity] = None
    ordering_actor: Optional[PersonIdentity] = None
    assigned_actor: Optional[PersonIdentity] = None


__all__ = [
    "PAYLOAD_VISIBLE",
    "PAYLOAD_RESTRICTED",
    "PAYLOAD_ABSENT",
    "RESTRICTED_MARKER",
    "Actor",
    "ClinicalRecord",
    "PersonIdentity",
    "SubjectIdentity",
    "RelatedIdentities",
]
