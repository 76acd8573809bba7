# clinical_core/filters.py
import django_filters as df

from .models import ClinicalRecord


class ClinicalRecordFilter(df.FilterSet):
    status = df.CharFilter(field_name="status", lookup_expr="iexact")
    subject = df.NumberFilter(field_name="subject_id")
    assigned_actor = df.NumberFilter(field_name="assigned_actor_id")
    ordering_actor = df.NumberFilter(field_name="ordering_actor_id")
    title = df.CharFilter(field_name="title", lookup_expr="icontains")
    created_at = df.DateFromToRangeFilter()

    class Meta:
        model = ClinicalRecord
        fields = ["status", "subject", "assigned_actor", "ordering_actor", "title", "created_at"]

