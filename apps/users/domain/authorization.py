"""
Authorization Gate

The single authoritative permission check for every mutating operation.

Rules:
- role ``admin`` may perform every action
- any other role needs the permission flag mapped to the action set to
  ``true`` in its permission map
- unknown actions, missing profiles and lookup failures are denied
  (fail-closed)

Permission checks done by the API layer or a UI are hints only; command
handlers always call ``require`` at the point of mutation.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Mapping
from uuid import UUID
import logging

from shared.domain.base import ValueObject
from shared.domain.exceptions import AuthorizationError

logger = logging.getLogger(__name__)


class Role(Enum):
    ADMIN = 'admin'
    WORKER = 'worker'


class Action:
    """Action names understood by the gate"""
    COMPLETE_BOOKING = 'completeBooking'
    CANCEL_BOOKING = 'cancelBooking'
    CONFIRM_BOOKING = 'confirmBooking'
    START_BOOKING = 'startBooking'
    EXTEND_BOOKING = 'extendBooking'
    VIEW_BOOKINGS = 'viewBookings'
    RECORD_PAYMENT = 'recordPayment'
    SETTLE_PAYMENT = 'settlePayment'
    VIEW_PAYMENTS = 'viewPayments'
    UPDATE_FEE_SETTINGS = 'updateFeeSettings'
    MANAGE_USERS = 'manageUsers'


ACTION_PERMISSIONS: Mapping[str, str] = {
    Action.COMPLETE_BOOKING: 'manageBookings',
    Action.CANCEL_BOOKING: 'manageBookings',
    Action.CONFIRM_BOOKING: 'manageBookings',
    Action.START_BOOKING: 'manageBookings',
    Action.EXTEND_BOOKING: 'editBookings',
    Action.VIEW_BOOKINGS: 'viewBookings',
    Action.RECORD_PAYMENT: 'managePayments',
    Action.SETTLE_PAYMENT: 'managePayments',
    Action.VIEW_PAYMENTS: 'viewInvoices',
    Action.UPDATE_FEE_SETTINGS: 'manageSettings',
    Action.MANAGE_USERS: 'manageUsers',
}


@dataclass(frozen=True)
class Profile(ValueObject):
    role: str
    permissions: Mapping[str, bool] = field(default_factory=dict)

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN.value

    def has_flag(self, flag: str) -> bool:
        return self.permissions.get(flag) is True


@dataclass(frozen=True)
class Allowed:
    def __bool__(self) -> bool:
        return True


@dataclass(frozen=True)
class Denied:
    reason: str

    def __bool__(self) -> bool:
        return False


Decision = Allowed | Denied


class ProfileDirectory(ABC):
    """Source of actor roles and permission maps"""

    @abstractmethod
    def get_profile(self, actor_id: UUID) -> Profile | None:
        pass


class AuthorizationGate:

    def __init__(self, profiles: ProfileDirectory):
        self._profiles = profiles

    def check(self, actor_id: UUID | None, action: str) -> Decision:
        if actor_id is None:
            return Denied("anonymous actor")

        try:
            profile = self._profiles.get_profile(actor_id)
        except Exception as e:
            logger.error(f"Profile lookup failed for actor {actor_id}: {e}", exc_info=True)
            return Denied("profile lookup failed")

        if profile is None:
            return Denied("profile not found")

        if profile.is_admin:
            return Allowed()

        flag = ACTION_PERMISSIONS.get(action)
        if flag is None:
            return Denied(f"unknown action {action}")

        if profile.has_flag(flag):
            return Allowed()
        return Denied(f"missing permission for {action}")

    def require(self, actor_id: UUID | None, action: str) -> None:
        """Raise AuthorizationError unless the actor may perform the action"""
        decision = self.check(actor_id, action)
        if isinstance(decision, Denied):
            logger.warning(f"Denied {action} for actor {actor_id}: {decision.reason}")
            # The reason stays in the log; callers get a generic message.
            raise AuthorizationError()


ACCESS_FIELDS = frozenset({'role', 'permissions', 'is_active'})


def check_account_change(actor: Profile, target: Profile, changed: Iterable[str], *, own_account: bool) -> Decision:
    """
    Decide whether a holder of ``manageUsers`` may apply an account edit

    ``changed`` names the fields whose value actually differs. Admins may
    change anything. For everyone else:
    - admin accounts are off limits
    - roles are off limits
    - on their own account, permission flags and the active flag are too
    """
    if actor.is_admin:
        return Allowed()

    if target.is_admin:
        return Denied("admin accounts can only be changed by admins")

    changed = set(changed)
    if 'role' in changed:
        return Denied("roles can only be changed by admins")

    if own_account and changed & ACCESS_FIELDS:
        return Denied(f"cannot change own {', '.join(sorted(changed & ACCESS_FIELDS))}")
    return Allowed()
