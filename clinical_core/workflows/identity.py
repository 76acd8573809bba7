# clinical_core/workflows/identity.py
"""
Identity resolver for report rendering.

Failures degrade to None (rendered as placeholders); resolving
identities never aborts a report.
"""

from __future__ import annotations

import logging
from typing import Any, Optional, Protocol

from django.contrib.auth import get_user_model
from django.db import DatabaseError

from clinical_core.models import Patient

from .entities import ClinicalRecord, PersonIdentity, RelatedIdentities, SubjectIdentity

logger = logging.getLogger(__name__)


class IdentityResolver(Protocol):
    def resolve(self, record: ClinicalRecord) -> RelatedIdentities:
        ...


def display_name(user) -> str:
    profile = getattr(user, "staff_profile", None)
    if profile is not None and profile.full_name:
        return profile.full_name
    full = user.get_full_name() if hasattr(user, "get_full_name") else ""
    return full or user.get_username()


class DjangoIdentityResolver:
    def _subject(self, subject_id: Any) -> Optional[SubjectIdentity]:
        if subject_id is None:
            return None
        try:
            p = Patient.objects.get(pk=subject_id)
        except (Patient.DoesNotExist, DatabaseError) as exc:
            logger.warning("Subject %s not resolved: %s", subject_id, exc)
            return None
        return SubjectIdentity(
            first_name=p.first_name,
            last_name=p.last_name,
            email=p.email,
            phone=p.phone,
            date_of_birth=p.date_of_birth,
            gender=p.gender,
            blood_type=p.blood_type,
        )

    def _person(self, user_id: Any) -> Optional[PersonIdentity]:
        if user_id is None:
            return None
        User = get_user_model()
        try:
            user = User.objects.select_related("staff_profile").get(pk=user_id)
        except (User.DoesNotExist, DatabaseError) as exc:
            logger.warning("Staff identity %s not resolved: %s", user_id, exc)
            return None
        profile = getattr(user, "staff_profile", None)
        return PersonIdentity(
            name=display_name(user),
            email=(profile.email if profile and profile.email else user.email) or "",
            phone=profile.phone if profile else "",
        )

    def resolve(self, record: ClinicalRecord) -> RelatedIdentities:
        return RelatedIdentities(
            subject=self._subject(record.subject_id),
            ordering_actor=self._person(record.ordering_actor_id),
            assigned_actor=self._person(record.assigned_actor_id),
        )


__all__ = ["IdentityResolver", "DjangoIdentityResolver", "display_name"]
