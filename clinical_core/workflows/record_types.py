# clinical_core/workflows/record_types.py
"""
Status universe and per-kind configuration for clinical records.

Lab tests and prescriptions share one lifecycle. The only things that
differ per kind are collected in RecordType: which role fulfils the
record, which roles may order it, whether completion needs a payload,
and the labels used in reports and UIs.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Dict, FrozenSet, Mapping, Tuple

from django.conf import settings


# ===============================================================
# Statuses
# ===============================================================
PENDING = "pending"
IN_PROGRESS = "in_progress"
COMPLETED = "completed"
CANCELLED = "cancelled"

STATUSES: FrozenSet[str] = frozenset({PENDING, IN_PROGRESS, COMPLETED, CANCELLED})
TERMINAL_STATUSES: FrozenSet[str] = frozenset({COMPLETED, CANCELLED})


# ===============================================================
# Roles (closed set)
# ===============================================================
ADMIN = "admin"
DOCTOR = "doctor"
LABORATORY_TECHNICIAN = "laboratory_technician"
PHARMACIST = "pharmacist"
RECEPTIONIST = "receptionist"
NURSE = "nurse"

ROLES: FrozenSet[str] = frozenset(
    {ADMIN, DOCTOR, LABORATORY_TECHNICIAN, PHARMACIST, RECEPTIONIST, NURSE}
)


# ===============================================================
# Record kinds
# ===============================================================
LAB_TEST = "lab_test"
PRESCRIPTION = "prescription"


@dataclass(frozen=True)
class RecordType:
    kind: str
    assigned_role: str
    ordering_roles: FrozenSet[str] = frozenset({DOCTOR, ADMIN})
    requires_payload_to_complete: bool = True
    restricted_viewers: FrozenSet[str] = frozenset()

    # Report / UI labels
    report_title: str = "Report"
    id_label: str = "ID"
    ordering_label: str = "Ordered By"
    assigned_label: str = "Assigned To"
    created_label: str = "Created"
    payload_label: str = "Payload"
    status_labels: Mapping[str, str] = field(default_factory=dict)
    # (details key, label) pairs printed in the order block of reports
    detail_fields: Tuple[Tuple[str, str], ...] = ()

    def status_label(self, status: str) -> str:
        return self.status_labels.get(status, status)


LAB_TEST_TYPE = RecordType(
    kind=LAB_TEST,
    assigned_role=LABORATORY_TECHNICIAN,
    report_title="Test Report",
    id_label="Test ID",
    ordering_label="Requesting Doctor",
    assigned_label="Technician",
    created_label="Requested",
    payload_label="Results",
    status_labels={
        PENDING: "Pending",
        IN_PROGRESS: "In Progress",
        COMPLETED: "Completed",
        CANCELLED: "Cancelled",
    },
)

PRESCRIPTION_TYPE = RecordType(
    kind=PRESCRIPTION,
    assigned_role=PHARMACIST,
    report_title="Prescription Report",
    id_label="Prescription ID",
    ordering_label="Prescribing Doctor",
    assigned_label="Pharmacist",
    created_label="Prescribed",
    payload_label="Dispensing Notes",
    status_labels={
        PENDING: "Pending",
        IN_PROGRESS: "Processing",
        COMPLETED: "Dispensed",
        CANCELLED: "Cancelled",
    },
    detail_fields=(
        ("dosage", "Dosage"),
        ("frequency", "Frequency"),
        ("duration", "Duration"),
        ("instructions", "Instructions"),
    ),
)

RECORD_TYPES: Dict[str, RecordType] = {
    LAB_TEST: LAB_TEST_TYPE,
    PRESCRIPTION: PRESCRIPTION_TYPE,
}


def normalize_kind(kind: str) -> str:
    return str(kind or "").strip().lower().replace("-", "_")


def get_record_type(kind: str) -> RecordType:
    """
    Resolve a kind to its configuration, folding in roles restricted
    deployment-wide through CLINICAL_RESTRICTED_VIEWERS. Entries go
    through role normalization, so a typo raises UnknownRoleError.
    """
    from .roles import normalize_role

    k = normalize_kind(kind)
    try:
        base = RECORD_TYPES[k]
    except KeyError:
        raise ValueError(f"Unsupported record kind: {kind}") from None

    extra = {
        normalize_role(r)
        for r in getattr(settings, "CLINICAL_RESTRICTED_VIEWERS", ()) or ()
        if str(r).strip()
    }
    if not extra:
        return base
    return replace(base, restricted_viewers=base.restricted_viewers | frozenset(extra))


__all__ = [
    "PENDING",
    "IN_PROGRESS",
    "COMPLETED",
    "CANCELLED",
    "STATUSES",
    "TERMINAL_STATUSES",
    "ADMIN",
    "DOCTOR",
    "LABORATORY_TECHNICIAN",
    "PHARMACIST",
    "RECEPTIONIST",
    "NURSE",
    "ROLES",
    "LAB_TEST",
    "PRESCRIPTION",
    "RecordType",
    "LAB_TEST_TYPE",
    "PRESCRIPTION_TYPE",
    "RECORD_TYPES",
    "normalize_kind",
    "get_record_type",
]
