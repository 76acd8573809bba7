# clinical_core/serializers.py
from __future__ import annotations

from django.contrib.auth import get_user_model
from rest_framework import serializers

from .models import Patient
from .workflows.record_types import get_record_type

User = get_user_model()


# ===============================================================
# Output (domain record, already scoped to the caller)
# ===============================================================
class ClinicalRecordSerializer(serializers.Serializer):
    """
    Renders a workflows.entities.ClinicalRecord. The payload field holds
    either the stored text, the restricted marker, or "" when absent;
    payload_state says which.
    """

    id = serializers.UUIDField(read_only=True)
    kind = serializers.CharField(read_only=True)
    title = serializers.CharField(read_only=True)
    status = serializers.CharField(read_only=True)
    status_label = serializers.SerializerMethodField()
    subject = serializers.IntegerField(source="subject_id", read_only=True)
    ordering_actor = serializers.IntegerField(source="ordering_actor_id", read_only=True)
    assigned_actor = serializers.IntegerField(source="assigned_actor_id", read_only=True, allow_null=True)
    payload = serializers.CharField(read_only=True)
    payload_state = serializers.CharField(read_only=True)
    notes = serializers.CharField(read_only=True)
    details = serializers.DictField(read_only=True)
    created_at = serializers.DateTimeField(read_only=True)
    updated_at = serializers.DateTimeField(read_only=True)

    def get_status_label(self, obj) -> str:
        return get_record_type(obj.kind).status_label(obj.status)


class TransitionHistorySerializer(serializers.Serializer):
    from_status = serializers.CharField()
    to_status = serializers.CharField()
    performed_by_id = serializers.IntegerField(allow_null=True)
    performed_by = serializers.CharField(allow_null=True)
    role = serializers.CharField(allow_blank=True)
    at = serializers.DateTimeField()


# ===============================================================
# Input
# ===============================================================
class RecordCreateSerializer(serializers.Serializer):
    subject = serializers.PrimaryKeyRelatedField(queryset=Patient.objects.all())
    title = serializers.CharField(max_length=255)
    notes = serializers.CharField(required=False, allow_blank=True, default="")
    details = serializers.DictField(required=False, default=dict)
    assigned_actor = serializers.PrimaryKeyRelatedField(
        queryset=User.objects.all(),
        required=False,
        allow_null=True,
        default=None,
    )


class PayloadUpdateSerializer(serializers.Serializer):
    payload = serializers.CharField(allow_blank=True, trim_whitespace=False)
    notes = serializers.CharField(required=False, allow_blank=True, allow_null=True, default=None)


class CompleteSerializer(PayloadUpdateSerializer):
    pass


class TransitionSerializer(serializers.Serializer):
    to_status = serializers.CharField()

    def to_internal_value(self, data):
        # Accept {"status": ...} as well as {"to_status": ...}
        if "to_status" not in data and "status" in data:
            data = {"to_status": data.get("status")}
        return super().to_internal_value(data)


class AssignSerializer(serializers.Serializer):
    assignee = serializers.PrimaryKeyRelatedField(queryset=User.objects.all())

