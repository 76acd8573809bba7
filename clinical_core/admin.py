# clinical_core/admin.py

from django.contrib import admin
from django.urls import reverse
from django.utils.html import format_html

from .models import (
    AuditLog,
    LabTest,
    Patient,
    Prescription,
    StaffMember,
    WorkflowTransition,
)


# =============================================================
# Workflow transitions (READ-ONLY AUDIT LOG)
# =============================================================

@admin.register(WorkflowTransition)
class WorkflowTransitionAdmin(admin.ModelAdmin):
    list_display = (
        "kind",
        "record_id",
        "from_status",
        "to_status",
        "performed_by",
        "role",
        "created_at",
    )
    list_filter = (
        "kind",
        "from_status",
        "to_status",
        "role",
    )
    search_fields = (
        "record_id",
        "performed_by__username",
    )
    ordering = ("-created_at",)

    readonly_fields = [f.name for f in WorkflowTransition._meta.fields]

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


# =============================================================
# Patients & staff
# =============================================================

@admin.register(Patient)
class PatientAdmin(admin.ModelAdmin):
    list_display = ("last_name", "first_name", "date_of_birth", "blood_type")
    search_fields = ("first_name", "last_name", "email", "phone")


@admin.register(StaffMember)
class StaffMemberAdmin(admin.ModelAdmin):
    list_display = (
        "full_name",
        "role",
        "department",
        "is_active",
    )
    search_fields = ("full_name", "email", "phone")
    list_filter = (
        "role",
        "department",
        "is_active",
    )
    autocomplete_fields = ("user",)


# =============================================================
# Lab tests / prescriptions (STRICT READ-ONLY)
# =============================================================

class ClinicalRecordAdmin(admin.ModelAdmin):
    list_display = (
        "title",
        "status",
        "subject",
        "ordering_actor",
        "assigned_actor",
        "created_at",
        "workflow_links",
    )
    search_fields = ("title", "subject__last_name")
    list_filter = ("status",)

    def get_readonly_fields(self, request, obj=None):
        return [f.name for f in self.model._meta.fields]

    def workflow_links(self, obj):
        transitions_url = (
            reverse("admin:clinical_core_workflowtransition_changelist")
            + f"?record_id={obj.pk}"
        )
        return format_html('<a href="{}">Transitions</a>', transitions_url)

    workflow_links.short_description = "Workflow"

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(LabTest)
class LabTestAdmin(ClinicalRecordAdmin):
    pass


@admin.register(Prescription)
class PrescriptionAdmin(ClinicalRecordAdmin):
    pass


# =============================================================
# Audit Log (READ-ONLY)
# =============================================================

@admin.register(AuditLog)
class AuditLogAdmin(admin.ModelAdmin):
    list_display = ("created_at", "user", "action")
    search_fields = ("action", "user__username")
    list_filter = ("action",)
    readonly_fields = [f.name for f in AuditLog._meta.fields]

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
