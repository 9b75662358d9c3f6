"""Staff account API views."""

from __future__ import annotations

from rest_framework import mixins, permissions, viewsets  # type: ignore
from rest_framework.decorators import action  # type: ignore
from rest_framework.response import Response  # type: ignore

from . import services
from .api.permissions import HasActionPermission
from .domain.authorization import Action
from .models import CustomUser
from .serializers import UserSerializer


class UserViewSet(
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    mixins.UpdateModelMixin,
    viewsets.GenericViewSet,
):
    """Staff management.

    - `me` returns the current user's profile and permission flags
    - listing and editing accounts needs ``manageUsers``; edits go through
      the staff account service, which enforces it again along with the
      admin-only rules
    """

    serializer_class = UserSerializer
    queryset = CustomUser.objects.all()
    permission_classes = [permissions.IsAuthenticated, HasActionPermission]
    required_actions = {
        "list": Action.MANAGE_USERS,
        "retrieve": Action.MANAGE_USERS,
        "update": Action.MANAGE_USERS,
        "partial_update": Action.MANAGE_USERS,
    }

    def perform_update(self, serializer):
        serializer.instance = services.update_staff_account(
            self.request.user.pk, serializer.instance.pk, serializer.validated_data
        )

    @action(detail=False, methods=["get"])
    def me(self, request):
        """Current user's profile."""
        return Response(UserSerializer(request.user).data)
