# clinical_core/views_workflow_introspection.py

from rest_framework.views import APIView
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework import status

from clinical_core.workflows import normalize_kind, workflow_definition


class WorkflowDefinitionView(APIView):
    """
    GET /clinical/workflows/           -> every kind
    GET /clinical/workflows/<kind>/    -> one kind
    """

    permission_classes = [IsAuthenticated]

    def get(self, request, kind: str = None):
        if kind is None:
            return Response(workflow_definition())
        try:
            return Response(workflow_definition(normalize_kind(kind)))
        except ValueError as e:
            return Response(
                {"detail": str(e)},
                status=status.HTTP_400_BAD_REQUEST,
            )
