"""Permission classes for the staff API."""

from __future__ import annotations

from rest_framework import permissions  # type: ignore

from apps.users.repositories import default_gate


class HasActionPermission(permissions.BasePermission):
    """
    Advisory check against the authorization gate.

    Views declare ``required_actions`` as a mapping of view action (or
    HTTP method) to gate action. Command handlers repeat the check at the
    point of mutation, so this class only saves a round trip for requests
    that are bound to fail.
    """

    def has_permission(self, request, view) -> bool:  # type: ignore
        user = request.user
        if not user or not user.is_authenticated:
            return False

        required = getattr(view, "required_actions", {})
        gate_action = required.get(getattr(view, "action", None)) or required.get(request.method)
        if gate_action is None:
            return True
        return bool(default_gate().check(user.pk, gate_action))
