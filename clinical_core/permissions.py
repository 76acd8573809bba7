# clinical_core/permissions.py
from __future__ import annotations

from rest_framework.exceptions import NotAuthenticated

from clinical_core.workflows.entities import Actor
from clinical_core.workflows.errors import UnknownRoleError
from clinical_core.workflows.identity import display_name
from clinical_core.workflows.record_types import ADMIN
from clinical_core.workflows.roles import normalize_role


def role_for_user(user) -> str:
    """
    Canonical role resolver.

    Priority:
      1) active StaffMember profile
      2) superuser without a profile -> admin
    Anything else is an unknown role, rejected before any record is read.
    """
    profile = getattr(user, "staff_profile", None)
    if profile is not None and profile.is_active:
        return normalize_role(profile.role)

    if getattr(user, "is_superuser", False):
        return ADMIN

    raise UnknownRoleError(None)


def actor_for_request(request) -> Actor:
    user = getattr(request, "user", None)
    if not user or not user.is_authenticated:
        raise NotAuthenticated()

    return Actor(id=user.pk, role=role_for_user(user), name=display_name(user))
