# clinical_core/views_identity.py
from __future__ import annotations

from rest_framework.views import APIView
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from .permissions import actor_for_request


class WhoAmIView(APIView):
    """
    Returns the currently authenticated user and their clinical role.

    Meant for the browser UI to:
      - confirm auth is working
      - show the display name used on reports
      - filter status actions client-side
    A user without a known role gets 403 (unknown_role).
    """
    permission_classes = [IsAuthenticated]

    def get(self, request):
        user = request.user
        actor = actor_for_request(request)
        profile = getattr(user, "staff_profile", None)

        return Response(
            {
                "id": user.id,
                "username": user.username,
                "name": actor.name,
                "role": actor.role,
                "department": profile.department if profile else "",
                "is_superuser": bool(getattr(user, "is_superuser", False)),
            }
        )
