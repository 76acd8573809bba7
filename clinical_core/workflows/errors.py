# clinical_core/workflows/errors.py
"""
Domain errors raised by the clinical record lifecycle engine.

The engine never translates these; the API layer maps them to HTTP
responses in clinical_core.exception_handlers.
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class ClinicalRecordError(Exception):
    """Base class for every lifecycle error."""

    code = "clinical_error"

    def __init__(self, message: str, **context: Any):
        super().__init__(message)
        self.message = message
        self.context: Dict[str, Any] = {k: v for k, v in context.items() if v is not None}

    def as_dict(self) -> Dict[str, Any]:
        out = {"error": self.code, "detail": self.message}
        out.update({k: str(v) for k, v in self.context.items()})
        return out


class NotFoundError(ClinicalRecordError):
    code = "not_found"

    def __init__(self, record_id: Any, what: str = "Record"):
        super().__init__(f"{what} '{record_id}' not found.", record_id=record_id)


class UnknownRoleError(ClinicalRecordError):
    """Actor role outside the closed set. Fatal for the request."""

    code = "unknown_role"

    def __init__(self, role: Any):
        super().__init__(f"Unknown role: {role!r}.", role=role)


class ForbiddenError(ClinicalRecordError):
    code = "forbidden"

    def __init__(
        self,
        capability: str,
        role: str,
        status: Optional[str] = None,
        record_id: Any = None,
    ):
        where = f" on a {status} record" if status else ""
        super().__init__(
            f"Role '{role}' lacks {capability}{where}.",
            capability=capability,
            role=role,
            status=status,
            record_id=record_id,
        )


class IllegalTransitionError(ClinicalRecordError):
    code = "illegal_transition"

    def __init__(self, source: str, target: str, record_id: Any = None):
        super().__init__(
            f"Illegal status transition: {source} -> {target}.",
            source=source,
            target=target,
            record_id=record_id,
        )


class IncompleteRecordError(ClinicalRecordError):
    code = "incomplete_record"

    def __init__(self, record_id: Any = None, field: str = "payload"):
        super().__init__(
            f"Cannot complete a record with an empty {field}.",
            field=field,
            record_id=record_id,
        )


class ConflictError(ClinicalRecordError):
    """Conditional write lost against a concurrent writer."""

    code = "conflict"

    def __init__(self, record_id: Any):
        super().__init__(
            f"Record '{record_id}' was modified by another request. Reload and retry.",
            record_id=record_id,
        )


class StorageError(ClinicalRecordError):
    """Data store I/O failure. Safe to retry for reads only."""

    code = "storage_error"

    def __init__(self, message: str = "Data store unavailable.", operation: Optional[str] = None):
        super().__init__(message, operation=operation)


__all__ = [
    "ClinicalRecordError",
    "NotFoundError",
    "UnknownRoleError",
    "ForbiddenError",
    "IllegalTransitionError",
    "IncompleteRecordError",
    "ConflictError",
    "StorageError",
]
