"""
Staff Account Command Handlers

Commands:
- UpdateStaffAccountCommand: Edit a staff account's profile, role,
  permission flags or active flag

The ``manageUsers`` check and the account-edit rules run here, under
the account row lock, whatever the API layer already checked.
"""

from dataclasses import dataclass, field
from typing import Callable
from uuid import UUID
import logging

from shared.application.uow import AbstractUnitOfWork, DjangoUnitOfWork
from shared.domain.exceptions import AuthorizationError
from apps.users.domain.authorization import (
    Action,
    AuthorizationGate,
    Denied,
    Profile,
    ProfileDirectory,
    check_account_change,
)

logger = logging.getLogger(__name__)


@dataclass
class UpdateStaffAccountCommand:
    actor_id: UUID | None
    user_id: UUID
    changes: dict = field(default_factory=dict)


class UpdateStaffAccountHandler:
    """
    Handler for editing a staff account

    Permission flags in ``changes`` are merged into the stored map rather
    than replacing it. Only fields whose value actually changes are
    checked against the account-edit rules.
    """

    def __init__(
        self,
        account_repo,
        profiles: ProfileDirectory,
        gate: AuthorizationGate,
        uow_factory: Callable[[], AbstractUnitOfWork] = DjangoUnitOfWork,
    ):
        self.account_repo = account_repo
        self.profiles = profiles
        self.gate = gate
        self.uow_factory = uow_factory

    def handle(self, command: UpdateStaffAccountCommand):
        with self.uow_factory():
            account = self.account_repo.get(command.user_id, lock=True)
            self.gate.require(command.actor_id, Action.MANAGE_USERS)

            changes = dict(command.changes)
            if 'permissions' in changes:
                changes['permissions'] = {**(account.permissions or {}), **changes['permissions']}
            changed = [name for name, value in changes.items() if getattr(account, name) != value]

            decision = check_account_change(
                self.profiles.get_profile(command.actor_id),
                Profile(role=account.role, permissions=dict(account.permissions or {})),
                changed,
                own_account=account.pk == command.actor_id,
            )
            if isinstance(decision, Denied):
                logger.warning(
                    f"Denied account change of {account.pk} by {command.actor_id}: {decision.reason}"
                )
                raise AuthorizationError()

            self.account_repo.update(account, changes)

        logger.info(f"Staff account {account.pk} updated by {command.actor_id}: {sorted(changed)}")
        return account
