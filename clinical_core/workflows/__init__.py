# clinical_core/workflows/__init__.py
"""
Public workflow API.

Only the pure modules are re-exported here. The ORM-backed pieces
(lifecycle, store, identity) import models and must be imported by
their full path so that models can use workflows.guards.
"""

from __future__ import annotations

from .errors import (
    ClinicalRecordError,
    ConflictError,
    ForbiddenError,
    IllegalTransitionError,
    IncompleteRecordError,
    NotFoundError,
    StorageError,
    UnknownRoleError,
)
from .record_types import (
    CANCELLED,
    COMPLETED,
    IN_PROGRESS,
    LAB_TEST,
    PENDING,
    PRESCRIPTION,
    RECORD_TYPES,
    ROLES,
    STATUSES,
    TERMINAL_STATUSES,
    RecordType,
    get_record_type,
    normalize_kind,
)
from .roles import CapabilitySet, capabilities_for, normalize_role
from .rules import (
    allowed_next_states,
    allowed_transitions,
    check_transition,
    normalize_status,
    required_roles,
    validate_transition,
    workflow_definition,
)
from .entities import (
    PAYLOAD_ABSENT,
    PAYLOAD_RESTRICTED,
    PAYLOAD_VISIBLE,
    RESTRICTED_MARKER,
    Actor,
    ClinicalRecord,
    PersonIdentity,
    RelatedIdentities,
    SubjectIdentity,
)
from .report import build_report, report_filename


__all__ = [
    "ClinicalRecordError",
    "ConflictError",
    "ForbiddenError",
    "IllegalTransitionError",
    "IncompleteRecordError",
    "NotFoundError",
    "StorageError",
    "UnknownRoleError",
    "PENDING",
    "IN_PROGRESS",
    "COMPLETED",
    "CANCELLED",
    "STATUSES",
    "TERMINAL_STATUSES",
    "ROLES",
    "LAB_TEST",
    "PRESCRIPTION",
    "RECORD_TYPES",
    "RecordType",
    "get_record_type",
    "normalize_kind",
    "CapabilitySet",
    "capabilities_for",
    "normalize_role",
    "allowed_next_states",
    "allowed_transitions",
    "check_transition",
    "normalize_status",
    "required_roles",
    "validate_transition",
    "workflow_definition",
    "PAYLOAD_VISIBLE",
    "PAYLOAD_RESTRICTED",
    "PAYLOAD_ABSENT",
    "RESTRICTED_MARKER",
    "Actor",
    "ClinicalRecord",
    "PersonIdentity",
    "SubjectIdentity",
    "RelatedIdentities",
    "build_report",
    "report_filename",
]
