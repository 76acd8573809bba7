# clinical_core/urls.py

from django.urls import path

# -------------------------------------------------
# Record lifecycle API
# -------------------------------------------------
from .views_workflow_api import (
    RecordAllowedView,
    RecordAssignView,
    RecordCompleteView,
    RecordDetailView,
    RecordHistoryView,
    RecordListCreateView,
    RecordPayloadView,
    RecordReportView,
    RecordRevertView,
    RecordTransitionView,
)

# -------------------------------------------------
# Identity & workflow introspection
# -------------------------------------------------
from .views_identity import WhoAmIView
from .views_workflow_introspection import WorkflowDefinitionView


app_name = "clinical_core"

urlpatterns = [
    # -------------------------------------------------
    # Identity
    # -------------------------------------------------
    path("me/", WhoAmIView.as_view(), name="whoami"),

    # -------------------------------------------------
    # Workflow definitions
    # -------------------------------------------------
    path("workflows/", WorkflowDefinitionView.as_view(), name="workflow-definitions"),
    path("workflows/<str:kind>/", WorkflowDefinitionView.as_view(), name="workflow-definition"),

    # -------------------------------------------------
    # Records
    # -------------------------------------------------
    path("records/<str:kind>/", RecordListCreateView.as_view(), name="record-list"),
    path("records/<str:kind>/<uuid:pk>/", RecordDetailView.as_view(), name="record-detail"),
    path("records/<str:kind>/<uuid:pk>/payload/", RecordPayloadView.as_view(), name="record-payload"),
    path("records/<str:kind>/<uuid:pk>/transition/", RecordTransitionView.as_view(), name="record-transition"),
    path("records/<str:kind>/<uuid:pk>/complete/", RecordCompleteView.as_view(), name="record-complete"),
    path("records/<str:kind>/<uuid:pk>/revert/", RecordRevertView.as_view(), name="record-revert"),
    path("records/<str:kind>/<uuid:pk>/assign/", RecordAssignView.as_view(), name="record-assign"),
    path("records/<str:kind>/<uuid:pk>/allowed/", RecordAllowedView.as_view(), name="record-allowed"),
    path("records/<str:kind>/<uuid:pk>/history/", RecordHistoryView.as_view(), name="record-history"),
    path("records/<str:kind>/<uuid:pk>/report/", RecordReportView.as_view(), name="record-report"),
]
