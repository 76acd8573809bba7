# clinical_core/tests/conftest.py

from __future__ import annotations

import uuid
from datetime import date
from typing import Any, Callable, Dict, Optional

import pytest
from django.contrib.auth import get_user_model
from rest_framework.test import APIClient

from clinical_core.models import ClinicalRecord as ClinicalRecordModel
from clinical_core.models import Patient, StaffMember
from clinical_core.workflows import LAB_TEST, PENDING, Actor
from clinical_core.workflows.lifecycle import LifecycleService


def _rand(prefix: str) -> str:
    return f"{prefix}-{uuid.uuid4().hex[:12]}"


@pytest.fixture(autouse=True)
def _disable_security_redirects(settings):
    # Prevent SecurityMiddleware from forcing https://testserver/...
    settings.SECURE_SSL_REDIRECT = False

    # Secure cookies break session auth over plain http in tests
    settings.SESSION_COOKIE_SECURE = False
    settings.CSRF_COOKIE_SECURE = False
    settings.SECURE_HSTS_SECONDS = 0


@pytest.fixture
def api_client() -> APIClient:
    return APIClient()


# =============================================================
# Staff users (one per role)
# =============================================================

def _staff_user(username: str, role: Optional[str], full_name: str):
    User = get_user_model()
    user, _ = User.objects.get_or_create(username=username)
    user.set_password("pass123")
    user.save(update_fields=["password"])
    if role is not None:
        StaffMember.objects.update_or_create(
            user=user,
            defaults={"full_name": full_name, "role": role, "email": f"{username}@clinic.test"},
        )
    return user


@pytest.fixture
def user_admin(db):
    return _staff_user("admin", "admin", "Ada Admin")


@pytest.fixture
def user_doctor(db):
    return _staff_user("doctor", "doctor", "Dr. Grey")


@pytest.fixture
def user_labtech(db):
    return _staff_user("labtech", "laboratory_technician", "Lee Tech")


@pytest.fixture
def user_pharmacist(db):
    return _staff_user("pharmacist", "pharmacist", "Pat Pharma")


@pytest.fixture
def user_receptionist(db):
    return _staff_user("receptionist", "receptionist", "Rae Desk")


def actor_for(user) -> Actor:
    profile = user.staff_profile
    return Actor(id=user.pk, role=profile.role, name=profile.full_name)


@pytest.fixture
def admin_actor(user_admin) -> Actor:
    return actor_for(user_admin)


@pytest.fixture
def doctor_actor(user_doctor) -> Actor:
    return actor_for(user_doctor)


@pytest.fixture
def labtech_actor(user_labtech) -> Actor:
    return actor_for(user_labtech)


@pytest.fixture
def pharmacist_actor(user_pharmacist) -> Actor:
    return actor_for(user_pharmacist)


@pytest.fixture
def receptionist_actor(user_receptionist) -> Actor:
    return actor_for(user_receptionist)


# =============================================================
# Domain fixtures
# =============================================================

@pytest.fixture
def patient(db) -> Patient:
    return Patient.objects.create(
        first_name="Jane",
        last_name="Doe",
        email="jane@example.com",
        phone="555-0100",
        date_of_birth=date(1990, 4, 2),
        gender="female",
        blood_type="O+",
    )


@pytest.fixture
def record_factory(db, patient, user_doctor) -> Callable[..., ClinicalRecordModel]:
    """
    Factory for records in any status. Inserts bypass the lifecycle
    service; later status changes must not.
    """

    def _factory(
        *,
        kind: str = LAB_TEST,
        status: str = PENDING,
        title: Optional[str] = None,
        payload: str = "",
        **extra: Any,
    ) -> ClinicalRecordModel:
        kwargs: Dict[str, Any] = {
            "kind": kind,
            "title": title or _rand("CBC"),
            "subject": patient,
            "ordering_actor": user_doctor,
            "status": status,
            "payload": payload,
        }
        kwargs.update(extra)
        return ClinicalRecordModel.objects.create(**kwargs)

    return _factory


@pytest.fixture
def service() -> LifecycleService:
    return LifecycleService()

