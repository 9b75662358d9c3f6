"""Serializers for staff accounts."""

from __future__ import annotations

from rest_framework import serializers  # type: ignore

from .models import PERMISSION_FLAGS, CustomUser


class UserSerializer(serializers.ModelSerializer):
    class Meta:
        model = CustomUser
        fields = [
            "id",
            "email",
            "username",
            "first_name",
            "last_name",
            "phone",
            "role",
            "permissions",
            "is_active",
            "created_at",
        ]
        read_only_fields = ["id", "email", "created_at"]

    def validate_permissions(self, value):  # type: ignore
        if not isinstance(value, dict):
            raise serializers.ValidationError("Permissions must be an object of flag -> bool.")
        unknown = set(value) - set(PERMISSION_FLAGS)
        if unknown:
            raise serializers.ValidationError(f"Unknown permission flags: {', '.join(sorted(unknown))}")
        if any(not isinstance(flag_value, bool) for flag_value in value.values()):
            raise serializers.ValidationError("Permission values must be true or false.")
        return value
