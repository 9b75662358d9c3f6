"""Service entry points for staff account management."""

from __future__ import annotations

from uuid import UUID

from .application.command_handlers import UpdateStaffAccountCommand, UpdateStaffAccountHandler
from .models import CustomUser
from .repositories import DjangoProfileDirectory, DjangoStaffAccountRepository, default_gate


def update_staff_account(actor_id: UUID | None, user_id: UUID, changes: dict) -> CustomUser:
    handler = UpdateStaffAccountHandler(DjangoStaffAccountRepository(), DjangoProfileDirectory(), default_gate())
    return handler.handle(UpdateStaffAccountCommand(actor_id, user_id, changes))
