"""Django-backed profile lookup and staff account storage."""

from __future__ import annotations

from uuid import UUID

from shared.domain.exceptions import NotFoundError
from shared.infrastructure.locking import lock_queryset_if_possible
from apps.users.domain.authorization import AuthorizationGate, Profile, ProfileDirectory

from .models import CustomUser


class DjangoProfileDirectory(ProfileDirectory):
    """Reads role and permission flags of active staff accounts."""

    def get_profile(self, actor_id: UUID) -> Profile | None:
        row = (
            CustomUser.objects.filter(pk=actor_id, is_active=True)
            .values("role", "permissions")
            .first()
        )
        if row is None:
            return None
        return Profile(role=row["role"], permissions=dict(row["permissions"] or {}))


def default_gate() -> AuthorizationGate:
    return AuthorizationGate(DjangoProfileDirectory())


class DjangoStaffAccountRepository:

    def get(self, user_id: UUID, lock: bool = False) -> CustomUser:
        queryset = CustomUser.objects.filter(pk=user_id)
        if lock:
            queryset = lock_queryset_if_possible(queryset)
        account = queryset.first()
        if account is None:
            raise NotFoundError(f"User {user_id} not found")
        return account

    def update(self, account: CustomUser, changes: dict) -> None:
        for name, value in changes.items():
            setattr(account, name, value)
        account.save()
