# clinical_core/exception_handlers.py
"""
Maps lifecycle domain errors to HTTP responses.

Registered as REST_FRAMEWORK["EXCEPTION_HANDLER"]. Anything that is not
a ClinicalRecordError goes to DRF's default handler unchanged.
"""

from __future__ import annotations

from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler

from clinical_core.workflows.errors import (
    ClinicalRecordError,
    ConflictError,
    ForbiddenError,
    IllegalTransitionError,
    IncompleteRecordError,
    NotFoundError,
    StorageError,
    UnknownRoleError,
)


STATUS_BY_ERROR = (
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (ForbiddenError, status.HTTP_403_FORBIDDEN),
    (UnknownRoleError, status.HTTP_403_FORBIDDEN),
    (IllegalTransitionError, status.HTTP_400_BAD_REQUEST),
    (IncompleteRecordError, status.HTTP_400_BAD_REQUEST),
    (ConflictError, status.HTTP_409_CONFLICT),
    (StorageError, status.HTTP_503_SERVICE_UNAVAILABLE),
)


def status_for(exc: ClinicalRecordError) -> int:
    for cls, code in STATUS_BY_ERROR:
        if isinstance(exc, cls):
            return code
    return status.HTTP_400_BAD_REQUEST


def clinical_exception_handler(exc, context):
    if isinstance(exc, ClinicalRecordError):
        return Response(exc.as_dict(), status=status_for(exc))
    return exception_handler(exc, context)
