# clinical_core/workflows/roles.py
"""
Role registry: (role, status) -> capability set for a record kind.

Keep policy decisions here only. Everything else asks this module.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Dict, List

from .errors import UnknownRoleError
from .record_types import (
    ADMIN,
    COMPLETED,
    DOCTOR,
    LAB_TEST_TYPE,
    LABORATORY_TECHNICIAN,
    NURSE,
    PHARMACIST,
    RECEPTIONIST,
    ROLES,
    STATUSES,
    TERMINAL_STATUSES,
    RecordType,
)


# ===============================================================
# ROLE NORMALIZATION
# ===============================================================
# Canonicalize user-provided / DB roles.
#
# Examples handled:
# - "Laboratory" -> laboratory_technician
# - "Lab Technician" -> laboratory_technician
# - "LAB-TECH" -> laboratory_technician
# - "Superuser" -> admin
ROLE_ALIASES: Dict[str, str] = {
    "admin": ADMIN,
    "administrator": ADMIN,
    "superuser": ADMIN,
    "doctor": DOCTOR,
    "physician": DOCTOR,
    "laboratory": LABORATORY_TECHNICIAN,
    "laboratory_technician": LABORATORY_TECHNICIAN,
    "lab_technician": LABORATORY_TECHNICIAN,
    "lab_tech": LABORATORY_TECHNICIAN,
    "technician": LABORATORY_TECHNICIAN,
    "pharmacist": PHARMACIST,
    "pharmacy": PHARMACIST,
    "receptionist": RECEPTIONIST,
    "reception": RECEPTIONIST,
    "nurse": NURSE,
}


def normalize_role(role: str) -> str:
    """
    Canonicalize a role string or raise UnknownRoleError.

    There is no default role: an unrecognised value is a configuration
    error, never a silent read-only fallback.
    """
    r = str(role or "").strip().lower()
    r = re.sub(r"[\s\-]+", "_", r)
    r = re.sub(r"_+", "_", r)

    canonical = ROLE_ALIASES.get(r)
    if canonical is None or canonical not in ROLES:
        raise UnknownRoleError(role)
    return canonical


# ===============================================================
# CAPABILITIES
# ===============================================================
CAN_VIEW_PAYLOAD = "can_view_payload"
CAN_EDIT_PAYLOAD = "can_edit_payload"
CAN_CHANGE_STATUS = "can_change_status"
CAN_REVERT_FROM_COMPLETED = "can_revert_from_completed"


@dataclass(frozen=True)
class CapabilitySet:
    can_view_payload: bool = False
    can_edit_payload: bool = False
    can_change_status: bool = False
    can_revert_from_completed: bool = False

    def has(self, capability: str) -> bool:
        return bool(getattr(self, capability))

    def names(self) -> List[str]:
        return [
            name
            for name in (
                CAN_VIEW_PAYLOAD,
                CAN_EDIT_PAYLOAD,
                CAN_CHANGE_STATUS,
                CAN_REVERT_FROM_COMPLETED,
            )
            if self.has(name)
        ]


def capabilities_for(role: str, status: str, record_type: RecordType = LAB_TEST_TYPE) -> CapabilitySet:
    """
    Pure lookup over the closed role/status domain.

    admin:          edit + change status; revert only from completed
    assigned role:  edit + change status until terminal, then view only
    everyone else:  view only
    """
    r = normalize_role(role)
    s = str(status or "").strip().lower()
    if s not in STATUSES:
        raise ValueError(f"Unknown {record_type.kind} status: {status}")

    can_view = r == ADMIN or r not in record_type.restricted_viewers

    if r == ADMIN:
        return CapabilitySet(
            can_view_payload=True,
            can_edit_payload=True,
            can_change_status=True,
            can_revert_from_completed=s == COMPLETED,
        )

    if r == record_type.assigned_role and s not in TERMINAL_STATUSES:
        return CapabilitySet(
            can_view_payload=can_view,
            can_edit_payload=True,
            can_change_status=True,
        )

    return CapabilitySet(can_view_payload=can_view)


__all__ = [
    "ROLE_ALIASES",
    "normalize_role",
    "CAN_VIEW_PAYLOAD",
    "CAN_EDIT_PAYLOAD",
    "CAN_CHANGE_STATUS",
    "CAN_REVERT_FROM_COMPLETED",
    "CapabilitySet",
    "capabilities_for",
]
