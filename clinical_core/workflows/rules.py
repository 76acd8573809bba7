"""
Authoritative lifecycle rules for clinical records.

Defines:
- The status graph shared by lab tests and prescriptions
- Guards per edge (capability + completion precondition)
- Introspection helpers used by the UI and API
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Set

from .errors import ForbiddenError, IllegalTransitionError, IncompleteRecordError
from .record_types import (
    CANCELLED,
    COMPLETED,
    IN_PROGRESS,
    PENDING,
    RECORD_TYPES,
    ROLES,
    STATUSES,
    TERMINAL_STATUSES,
    RecordType,
    get_record_type,
)
from .roles import (
    CAN_CHANGE_STATUS,
    CAN_REVERT_FROM_COMPLETED,
    capabilities_for,
    normalize_role,
)


# ===============================================================
# STATUS GRAPH
# ===============================================================
TRANSITIONS: Dict[str, Set[str]] = {
    PENDING: {IN_PROGRESS, COMPLETED, CANCELLED},
    IN_PROGRESS: {COMPLETED, CANCELLED},
    COMPLETED: {PENDING},  # admin revert only
    CANCELLED: set(),
}

# The only backward edge. Guarded by can_revert_from_completed.
REVERSAL_EDGES: Set[tuple] = {(COMPLETED, PENDING)}


def normalize_status(value: Optional[str]) -> str:
    return str(value or "").strip().lower()


def has_payload(payload: Optional[str]) -> bool:
    return bool((payload or "").strip())


# ===============================================================
# VALIDATION
# ===============================================================
def validate_transition(current: str, target: str, record_id: Any = None) -> bool:
    """
    Structural check only. Returns False for a same-status no-op,
    True for a legal edge, raises IllegalTransitionError otherwise.
    """
    cur = normalize_status(current)
    tgt = normalize_status(target)

    if cur not in STATUSES or tgt not in STATUSES:
        raise IllegalTransitionError(cur or "?", tgt or "?", record_id=record_id)

    if cur == tgt:
        return False

    if tgt not in TRANSITIONS.get(cur, set()):
        raise IllegalTransitionError(cur, tgt, record_id=record_id)

    return True


def required_capability(current: str, target: str) -> str:
    if (normalize_status(current), normalize_status(target)) in REVERSAL_EDGES:
        return CAN_REVERT_FROM_COMPLETED
    return CAN_CHANGE_STATUS


def check_transition(
    *,
    record_type: RecordType,
    current: str,
    target: str,
    role: str,
    payload: Optional[str],
    record_id: Any = None,
) -> bool:
    """
    Full guard evaluation for one requested status change.

    Order: role -> no-op -> edge legality -> completion guard -> capability.
    The completion guard applies to every role, admin included.

    Returns False when nothing needs to change.
    """
    r = normalize_role(role)
    cur = normalize_status(current)
    tgt = normalize_status(target)

    if not validate_transition(cur, tgt, record_id=record_id):
        return False

    if tgt == COMPLETED and record_type.requires_payload_to_complete and not has_payload(payload):
        raise IncompleteRecordError(record_id=record_id)

    capability = required_capability(cur, tgt)
    if not capabilities_for(r, cur, record_type).has(capability):
        raise ForbiddenError(capability, r, status=cur, record_id=record_id)

    return True


# ===============================================================
# INTROSPECTION HELPERS
# ===============================================================
def allowed_next_states(current: str) -> List[str]:
    """
    Canonical next states only, independent of role.
    """
    return sorted(TRANSITIONS.get(normalize_status(current), set()))


def allowed_transitions(kind: str, current: str, role: str) -> List[str]:
    """
    Next states the role may request from `current`. The completion
    guard depends on the payload, so it is not applied here.
    """
    record_type = get_record_type(kind)
    r = normalize_role(role)
    caps = capabilities_for(r, current, record_type)

    return sorted(
        tgt
        for tgt in allowed_next_states(current)
        if caps.has(required_capability(current, tgt))
    )


def required_roles(kind: str, current: str, target: str) -> List[str]:
    """
    Roles that can perform current -> target for the given kind.
    """
    validate_transition(current, target)
    record_type = get_record_type(kind)
    capability = required_capability(current, target)

    return sorted(
        r for r in ROLES
        if capabilities_for(r, current, record_type).has(capability)
    )


def workflow_definition(kind: Optional[str] = None) -> Dict[str, Any]:
    """
    Stable JSON-serializable definition for UI.
    """
    def _one(k: str) -> Dict[str, Any]:
        record_type = get_record_type(k)
        return {
            "kind": record_type.kind,
            "statuses": sorted(STATUSES),
            "status_labels": dict(record_type.status_labels),
            "transitions": {s: sorted(n) for s, n in TRANSITIONS.items()},
            "terminal_states": sorted(TERMINAL_STATUSES),
            "reversal_edges": [list(e) for e in sorted(REVERSAL_EDGES)],
            "assigned_role": record_type.assigned_role,
            "ordering_roles": sorted(record_type.ordering_roles),
            "requires_payload_to_complete": record_type.requires_payload_to_complete,
        }

    if kind is None:
        return {k: _one(k) for k in sorted(RECORD_TYPES)}
    return _one(kind)


__all__ = [
    "TRANSITIONS",
    "REVERSAL_EDGES",
    "normalize_status",
    "has_payload",
    "validate_transition",
    "required_capability",
    "check_transition",
    "allowed_next_states",
    "allowed_transitions",
    "required_roles",
    "workflow_definition",
]
