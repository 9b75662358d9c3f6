"""User domain models for RentFlow.

Staff accounts come in two roles: ``admin`` (unrestricted) and
``worker`` (restricted by a map of boolean permission flags). The flag
map is the permission matrix store consulted by the authorization gate.
"""

from __future__ import annotations

import uuid
from typing import Any

from django.contrib.auth.models import AbstractUser, BaseUserManager  # type: ignore
from django.core.validators import RegexValidator  # type: ignore
from django.db import models  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore


PHONE_VALIDATOR = RegexValidator(
    regex=r"^\+?\d{7,15}$",
    message=_("Invalid phone format. Use digits only, optionally prefixed with +."),
)

PERMISSION_FLAGS = (
    # Bookings
    "createBooking",
    "viewBookings",
    "editBookings",
    "deleteBookings",
    "manageBookings",
    # Customers
    "createCustomer",
    "viewCustomers",
    "editCustomers",
    "deleteCustomers",
    # Vehicles
    "createVehicle",
    "viewVehicles",
    "editVehicles",
    "deleteVehicles",
    # Invoicing & payments
    "createInvoice",
    "viewInvoices",
    "editInvoices",
    "managePayments",
    # Reports
    "viewReports",
    "exportReports",
    # System
    "manageUsers",
    "manageSettings",
    "viewAuditLogs",
)

READ_ONLY_FLAGS = {"viewBookings", "viewCustomers", "viewVehicles", "viewInvoices"}


def default_permissions() -> dict[str, bool]:
    """New workers can look at records but not change them."""
    return {flag: flag in READ_ONLY_FLAGS for flag in PERMISSION_FLAGS}


class CustomUserManager(BaseUserManager):
    """User manager that logs users in by email."""

    use_in_migrations = True

    def _create_user(self, email: str, password: str | None, **extra_fields: Any):
        if not email:
            raise ValueError("Email is required to create a user.")
        email = self.normalize_email(email)

        phone = extra_fields.get("phone")
        if phone:
            extra_fields["phone"] = self.normalize_phone(phone)

        user = self.model(email=email, **extra_fields)
        if password:
            user.set_password(password)
        else:
            user.set_unusable_password()
        user.save(using=self._db)
        return user

    def create_user(self, email: str, password: str | None = None, **extra_fields: Any):
        extra_fields.setdefault("is_staff", False)
        extra_fields.setdefault("is_superuser", False)
        extra_fields.setdefault("role", CustomUser.RoleChoices.WORKER)
        return self._create_user(email, password, **extra_fields)

    def create_superuser(self, email: str, password: str | None = None, **extra_fields: Any):
        extra_fields.setdefault("is_staff", True)
        extra_fields.setdefault("is_superuser", True)
        extra_fields.setdefault("role", CustomUser.RoleChoices.ADMIN)

        if extra_fields.get("is_staff") is not True:
            raise ValueError("Superuser must have is_staff=True.")
        if extra_fields.get("is_superuser") is not True:
            raise ValueError("Superuser must have is_superuser=True.")

        return self._create_user(email, password, **extra_fields)

    @staticmethod
    def normalize_phone(phone: str) -> str:
        return phone.replace(" ", "").replace("-", "")


class CustomUser(AbstractUser):
    """Staff member operating the rental desk."""

    class RoleChoices(models.TextChoices):
        ADMIN = "admin", _("Admin")
        WORKER = "worker", _("Worker")

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    username = models.CharField(
        _("Display name"),
        max_length=150,
        blank=True,
        help_text=_("Optional, shown in dashboards and audit fields."),
    )
    email = models.EmailField(_("Email"), unique=True)
    phone = models.CharField(
        _("Phone"),
        max_length=20,
        unique=True,
        null=True,
        blank=True,
        validators=[PHONE_VALIDATOR],
    )
    role = models.CharField(
        _("Role"),
        max_length=20,
        choices=RoleChoices.choices,
        default=RoleChoices.WORKER,
    )
    permissions = models.JSONField(
        _("Permissions"),
        default=default_permissions,
        blank=True,
        help_text=_("Permission flag -> bool. Ignored for admins."),
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = CustomUserManager()

    USERNAME_FIELD = "email"
    REQUIRED_FIELDS = ["username"]

    class Meta:
        verbose_name = _("User")
        verbose_name_plural = _("Users")
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return f"{self.email} ({self.get_role_display()})"

    def is_admin(self) -> bool:
        return self.role == self.RoleChoices.ADMIN

    def grant(self, *flags: str) -> None:
        unknown = set(flags) - set(PERMISSION_FLAGS)
        if unknown:
            raise ValueError(f"Unknown permission flags: {', '.join(sorted(unknown))}")
        permissions = dict(self.permissions or {})
        permissions.update({flag: True for flag in flags})
        self.permissions = permissions
        self.save(update_fields=["permissions", "updated_at"])

    def revoke(self, *flags: str) -> None:
        permissions = dict(self.permissions or {})
        permissions.update({flag: False for flag in flags})
        self.permissions = permissions
        self.save(update_fields=["permissions", "updated_at"])


User = CustomUser
