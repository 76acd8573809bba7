# clinical_core/views_workflow_api.py

from __future__ import annotations

from django.http import HttpResponse

from rest_framework import generics, status
from rest_framework.exceptions import ValidationError
from rest_framework.response import Response
from rest_framework.views import APIView

from clinical_core.filters import ClinicalRecordFilter
from clinical_core.models import ClinicalRecord as ClinicalRecordModel
from clinical_core.permissions import actor_for_request
from clinical_core.serializers import (
    AssignSerializer,
    ClinicalRecordSerializer,
    CompleteSerializer,
    PayloadUpdateSerializer,
    RecordCreateSerializer,
    TransitionHistorySerializer,
    TransitionSerializer,
)
from clinical_core.workflows import (
    RECORD_TYPES,
    NotFoundError,
    allowed_transitions,
    normalize_kind,
)
from clinical_core.workflows.entities import ClinicalRecord
from clinical_core.workflows.lifecycle import LifecycleService
from clinical_core.workflows.store import model_to_raw


# =============================================================
# Helpers
# =============================================================

def _normalize_kind(kind: str) -> str:
    kind = normalize_kind(kind)
    if kind not in RECORD_TYPES:
        raise ValidationError(
            {"kind": "Invalid record kind. Use 'lab_test' or 'prescription'."}
        )
    return kind


class LifecycleAPIView(APIView):
    """
    Base for record endpoints. Every mutation goes through the
    lifecycle service; views only parse input and render output.
    """

    service_class = LifecycleService

    def get_service(self) -> LifecycleService:
        return self.service_class()

    def load_for_kind(self, service: LifecycleService, kind: str, pk, actor=None) -> ClinicalRecord:
        record = service.load(pk, actor)
        if record.kind != kind:
            raise NotFoundError(pk)
        return record

    def respond(self, record: ClinicalRecord, code=status.HTTP_200_OK) -> Response:
        return Response(ClinicalRecordSerializer(record).data, status=code)


# =============================================================
# API: List / create
# =============================================================

class RecordListCreateView(generics.GenericAPIView, LifecycleAPIView):
    """
    GET  /clinical/records/<kind>/
    POST /clinical/records/<kind>/
    """

    filterset_class = ClinicalRecordFilter
    serializer_class = RecordCreateSerializer

    def get_queryset(self):
        kind = _normalize_kind(self.kwargs["kind"])
        return ClinicalRecordModel.objects.filter(kind=kind).order_by("-created_at")

    def get(self, request, kind: str):
        actor = actor_for_request(request)
        service = self.get_service()

        qs = self.filter_queryset(self.get_queryset())
        page = self.paginate_queryset(qs)
        rows = page if page is not None else list(qs)

        records = []
        for obj in rows:
            record = ClinicalRecord.from_raw(model_to_raw(obj))
            records.append(record.scoped_to(service.capabilities(record, actor)))

        data = ClinicalRecordSerializer(records, many=True).data

        if page is not None:
            return self.get_paginated_response(data)
        return Response(data)

    def post(self, request, kind: str):
        kind = _normalize_kind(kind)
        actor = actor_for_request(request)

        serializer = RecordCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        assignee = data.get("assigned_actor")

        record = self.get_service().create(
            actor,
            kind,
            subject_id=data["subject"].pk,
            title=data["title"],
            notes=data.get("notes") or "",
            details=data.get("details") or {},
            assigned_actor_id=assignee.pk if assignee else None,
        )
        return self.respond(record, code=status.HTTP_201_CREATED)


# =============================================================
# API: Single record
# =============================================================

class RecordDetailView(LifecycleAPIView):
    """GET /clinical/records/<kind>/<pk>/"""

    def get(self, request, kind: str, pk):
        kind = _normalize_kind(kind)
        actor = actor_for_request(request)
        return self.respond(self.load_for_kind(self.get_service(), kind, pk, actor))


class RecordPayloadView(LifecycleAPIView):
    """
    PATCH /clinical/records/<kind>/<pk>/payload/

    Body:
        { "payload": "...", "notes": "..." }
    """

    def patch(self, request, kind: str, pk):
        kind = _normalize_kind(kind)
        actor = actor_for_request(request)

        serializer = PayloadUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        service = self.get_service()
        self.load_for_kind(service, kind, pk)
        record = service.update_payload(
            pk,
            actor,
            serializer.validated_data["payload"],
            notes=serializer.validated_data.get("notes"),
        )
        return self.respond(record)


class RecordTransitionView(LifecycleAPIView):
    """
    POST /clinical/records/<kind>/<pk>/transition/

    Body:
        { "to_status": "in_progress" }
        or
        { "status": "in_progress" }

    The only endpoint that moves status along arbitrary legal edges.
    """

    def post(self, request, kind: str, pk):
        kind = _normalize_kind(kind)
        actor = actor_for_request(request)

        serializer = TransitionSerializer(data=request.data or {})
        serializer.is_valid(raise_exception=True)

        service = self.get_service()
        self.load_for_kind(service, kind, pk)
        record = service.transition_status(pk, actor, serializer.validated_data["to_status"])
        return self.respond(record)


class RecordCompleteView(LifecycleAPIView):
    """POST /clinical/records/<kind>/<pk>/complete/"""

    def post(self, request, kind: str, pk):
        kind = _normalize_kind(kind)
        actor = actor_for_request(request)

        serializer = CompleteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        service = self.get_service()
        self.load_for_kind(service, kind, pk)
        record = service.complete(
            pk,
            actor,
            serializer.validated_data["payload"],
            notes=serializer.validated_data.get("notes"),
        )
        return self.respond(record)


class RecordRevertView(LifecycleAPIView):
    """POST /clinical/records/<kind>/<pk>/revert/ (admin, completed only)"""

    def post(self, request, kind: str, pk):
        kind = _normalize_kind(kind)
        actor = actor_for_request(request)

        service = self.get_service()
        self.load_for_kind(service, kind, pk)
        return self.respond(service.revert(pk, actor))


class RecordAssignView(LifecycleAPIView):
    """
    POST /clinical/records/<kind>/<pk>/assign/

    Body:
        { "assignee": <user id> }
    """

    def post(self, request, kind: str, pk):
        kind = _normalize_kind(kind)
        actor = actor_for_request(request)

        serializer = AssignSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        service = self.get_service()
        self.load_for_kind(service, kind, pk)
        record = service.assign(pk, actor, serializer.validated_data["assignee"].pk)
        return self.respond(record)


# =============================================================
# API: Allowed transitions / history / report
# =============================================================

class RecordAllowedView(LifecycleAPIView):
    """
    GET /clinical/records/<kind>/<pk>/allowed/

    Returns:
    - current status
    - capabilities of the caller on that status
    - next states the caller may request
    """

    def get(self, request, kind: str, pk):
        kind = _normalize_kind(kind)
        actor = actor_for_request(request)

        service = self.get_service()
        record = self.load_for_kind(service, kind, pk, actor)
        caps = service.capabilities(record, actor)

        return Response(
            {
                "kind": kind,
                "record_id": str(record.id),
                "current": record.status,
                "role": actor.role,
                "capabilities": caps.names(),
                "allowed": allowed_transitions(kind, record.status, actor.role),
            }
        )


class RecordHistoryView(LifecycleAPIView):
    """GET /clinical/records/<kind>/<pk>/history/"""

    def get(self, request, kind: str, pk):
        kind = _normalize_kind(kind)
        actor_for_request(request)

        service = self.get_service()
        record = self.load_for_kind(service, kind, pk)
        timeline = service.history(record.id)

        return Response(
            {
                "kind": kind,
                "record_id": str(record.id),
                "current": record.status,
                "transitions": TransitionHistorySerializer(timeline, many=True).data,
            }
        )


class RecordReportView(LifecycleAPIView):
    """
    GET /clinical/records/<kind>/<pk>/report/[?download=1]

    Plain-text audit report. With download=1 the response carries an
    attachment filename.
    """

    def get(self, request, kind: str, pk):
        kind = _normalize_kind(kind)
        actor = actor_for_request(request)

        service = self.get_service()
        self.load_for_kind(service, kind, pk)
        text, filename = service.report(pk, actor)

        response = HttpResponse(text, content_type="text/plain; charset=utf-8")
        if str(request.query_params.get("download", "")).lower() in {"1", "true", "yes"}:
            response["Content-Disposition"] = f'attachment; filename="{filename}"'
        return response
