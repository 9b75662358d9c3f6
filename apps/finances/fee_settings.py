"""
Fee settings storage.

Late and extension fee parameters live in two ``AppSetting`` rows keyed
``late_fee`` and ``extension_fee``. The provider substitutes the built-in
defaults for every key that is missing or unreadable, so fee calculation
always has a complete ``FeeSettings`` value.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from decimal import Decimal, InvalidOperation
from typing import Any, Mapping
from uuid import UUID

from apps.bookings.domain.fees import (
    DEFAULT_FEE_SETTINGS,
    ExtensionFeePolicy,
    FeeSettings,
    LateFeePolicy,
)
from shared.domain.exceptions import ValidationError
from shared.domain.value_objects import Money

from .models import AppSetting

logger = logging.getLogger(__name__)

LATE_FEE_KEY = "late_fee"
EXTENSION_FEE_KEY = "extension_fee"


def _amount(raw: Mapping[str, Any], field: str) -> Money:
    try:
        return Money(Decimal(str(raw["amount"])))
    except (KeyError, TypeError, InvalidOperation):
        raise ValidationError("Fee amount must be a non-negative number", field=field)


def _hours(raw: Mapping[str, Any], key: str, field: str) -> int:
    value = raw.get(key)
    if isinstance(value, bool) or not isinstance(value, (int, float, str)):
        raise ValidationError(f"{key} must be a whole number of hours", field=field)
    try:
        hours = int(value)
    except ValueError:
        raise ValidationError(f"{key} must be a whole number of hours", field=field)
    return hours


def parse_late_fee(raw: Mapping[str, Any]) -> LateFeePolicy:
    return LateFeePolicy(
        amount=_amount(raw, LATE_FEE_KEY),
        grace_period_hours=_hours(raw, "grace_period_hours", LATE_FEE_KEY),
    )


def parse_extension_fee(raw: Mapping[str, Any]) -> ExtensionFeePolicy:
    return ExtensionFeePolicy(
        amount=_amount(raw, EXTENSION_FEE_KEY),
        threshold_hours=_hours(raw, "threshold_hours", EXTENSION_FEE_KEY),
    )


class FeeSettingsRepository(ABC):
    """Source of stored fee parameters; ``None`` entries mean "not configured"."""

    @abstractmethod
    def get_late_fee(self) -> LateFeePolicy | None:
        ...

    @abstractmethod
    def get_extension_fee(self) -> ExtensionFeePolicy | None:
        ...

    @abstractmethod
    def save(self, settings: FeeSettings, actor_id: UUID | None) -> None:
        ...


class DjangoFeeSettingsRepository(FeeSettingsRepository):

    def _load(self, key: str, parser):
        row = AppSetting.objects.filter(setting_key=key).values("setting_value").first()
        if row is None:
            return None
        try:
            return parser(row["setting_value"] or {})
        except ValidationError as exc:
            logger.warning("Stored %s setting is invalid: %s", key, exc.message)
            return None

    def get_late_fee(self) -> LateFeePolicy | None:
        return self._load(LATE_FEE_KEY, parse_late_fee)

    def get_extension_fee(self) -> ExtensionFeePolicy | None:
        return self._load(EXTENSION_FEE_KEY, parse_extension_fee)

    def save(self, settings: FeeSettings, actor_id: UUID | None) -> None:
        primitive = settings.to_primitive()
        for key in (LATE_FEE_KEY, EXTENSION_FEE_KEY):
            AppSetting.objects.update_or_create(
                setting_key=key,
                defaults={"setting_value": primitive[key], "updated_by_id": actor_id},
            )


class FeeSettingsProvider:
    """Returns stored fee settings, falling back to defaults per key."""

    def __init__(self, repository: FeeSettingsRepository | None = None):
        self.repository = repository or DjangoFeeSettingsRepository()

    def get(self) -> FeeSettings:
        late_fee = self._read(self.repository.get_late_fee, LATE_FEE_KEY)
        extension_fee = self._read(self.repository.get_extension_fee, EXTENSION_FEE_KEY)
        return FeeSettings(
            late_fee=late_fee or DEFAULT_FEE_SETTINGS.late_fee,
            extension_fee=extension_fee or DEFAULT_FEE_SETTINGS.extension_fee,
        )

    @staticmethod
    def _read(loader, key: str):
        try:
            value = loader()
        except Exception:  # noqa: BLE001
            logger.warning("Could not read %s setting, using defaults", key, exc_info=True)
            return None
        if value is None:
            logger.info("No %s setting stored, using defaults", key)
        return value
