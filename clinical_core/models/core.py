# clinical_core/models/core.py

import uuid

from django.conf import settings
from django.db import models
from django.db.models import Q
from django.utils import timezone

from clinical_core.workflows.guards import WorkflowWriteGuardMixin
from clinical_core.workflows.record_types import (
    ADMIN,
    CANCELLED,
    COMPLETED,
    DOCTOR,
    IN_PROGRESS,
    LAB_TEST,
    LABORATORY_TECHNICIAN,
    NURSE,
    PENDING,
    PHARMACIST,
    PRESCRIPTION,
    RECEPTIONIST,
)


# ============================================================
# Base
# ============================================================
class TimeStampedModel(models.Model):
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True


# ============================================================
# Patient
# ============================================================
class Patient(TimeStampedModel):
    first_name = models.CharField(max_length=120)
    last_name = models.CharField(max_length=120)
    email = models.EmailField(blank=True)
    phone = models.CharField(max_length=50, blank=True)
    date_of_birth = models.DateField(null=True, blank=True)
    gender = models.CharField(max_length=20, blank=True)
    blood_type = models.CharField(max_length=5, blank=True)

    class Meta:
        ordering = ["last_name", "first_name"]

    def __str__(self):
        return f"{self.first_name} {self.last_name}"


# ============================================================
# Staff
# ============================================================
class StaffMember(TimeStampedModel):
    ROLE_CHOICES = [
        (ADMIN, "Admin"),
        (DOCTOR, "Doctor"),
        (LABORATORY_TECHNICIAN, "Laboratory Technician"),
        (PHARMACIST, "Pharmacist"),
        (RECEPTIONIST, "Receptionist"),
        (NURSE, "Nurse"),
    ]

    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="staff_profile",
    )
    full_name = models.CharField(max_length=255)
    role = models.CharField(max_length=32, choices=ROLE_CHOICES)
    email = models.EmailField(blank=True)
    phone = models.CharField(max_length=50, blank=True)
    department = models.CharField(max_length=120, blank=True)
    is_active = models.BooleanField(default=True)

    def __str__(self):
        return f"{self.full_name} ({self.role})"


# ============================================================
# Clinical record (lab test or prescription)
# ============================================================
class ClinicalRecord(WorkflowWriteGuardMixin, models.Model):
    WORKFLOW_FIELD = "status"

    KIND_CHOICES = [
        (LAB_TEST, "Lab test"),
        (PRESCRIPTION, "Prescription"),
    ]

    STATUS_CHOICES = [
        (PENDING, "Pending"),
        (IN_PROGRESS, "In progress"),
        (COMPLETED, "Completed"),
        (CANCELLED, "Cancelled"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    kind = models.CharField(max_length=32, choices=KIND_CHOICES)
    title = models.CharField(
        max_length=255,
        help_text="Test name or medicine name.",
    )

    subject = models.ForeignKey(
        Patient,
        on_delete=models.PROTECT,
        related_name="clinical_records",
    )
    ordering_actor = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="ordered_records",
    )
    assigned_actor = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="assigned_records",
    )

    status = models.CharField(
        max_length=20,
        choices=STATUS_CHOICES,
        default=PENDING,
    )
    payload = models.TextField(
        blank=True,
        help_text="Results (lab test) or dispensing notes (prescription).",
    )
    notes = models.TextField(blank=True)
    details = models.JSONField(
        default=dict,
        blank=True,
        help_text="Kind-specific fields, e.g. dosage, frequency, duration, instructions.",
    )

    # Stamped by the lifecycle service, never by auto_now: a no-op
    # transition must leave it untouched.
    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["kind", "status"], name="record_kind_status_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                name="record_title_not_blank",
                condition=~Q(title=""),
            ),
        ]

    def __str__(self):
        return f"{self.get_kind_display()} {self.title} ({self.status})"


class _KindManager(models.Manager):
    kind = None

    def get_queryset(self):
        return super().get_queryset().filter(kind=self.kind)


class LabTestManager(_KindManager):
    kind = LAB_TEST


class PrescriptionManager(_KindManager):
    kind = PRESCRIPTION


class LabTest(ClinicalRecord):
    objects = LabTestManager()

    class Meta:
        proxy = True
        verbose_name = "lab test"


class Prescription(ClinicalRecord):
    objects = PrescriptionManager()

    class Meta:
        proxy = True
        verbose_name = "prescription"


# ============================================================
# Audit Log
# ============================================================
class AuditLog(TimeStampedModel):
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
    )
    action = models.CharField(max_length=255)
    details = models.JSONField(default=dict, blank=True)

    class Meta:
        ordering = ["-created_at", "-id"]

    def __str__(self):
        return self.action


# ============================================================
# Workflow Transition
# ============================================================
class WorkflowTransition(models.Model):
    """
    Immutable timeline row for an accepted status change.
    """

    kind = models.CharField(max_length=32)
    record_id = models.UUIDField(db_index=True)
    from_status = models.CharField(max_length=20)
    to_status = models.CharField(max_length=20)

    performed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="workflow_transitions",
    )
    role = models.CharField(max_length=32, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["created_at", "id"]
        indexes = [
            models.Index(fields=["kind", "record_id"], name="transition_kind_record_idx"),
        ]

    def __str__(self):
        return (
            f"{self.kind}:{self.record_id} "
            f"{self.from_status} -> {self.to_status}"
        )
