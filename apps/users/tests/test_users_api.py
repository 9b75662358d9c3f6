"""Tests for staff account endpoints."""

from __future__ import annotations

from django.urls import reverse
from rest_framework import status
from rest_framework.test import APITestCase

from apps.users.models import User


class UserAPITests(APITestCase):
    def setUp(self) -> None:
        self.admin = User.objects.create_user(
            email="owner@rentflow.test", password="StrongPass123", username="owner", role="admin"
        )
        self.manager = User.objects.create_user(
            email="manager@rentflow.test", password="StrongPass123", username="manager", role="worker"
        )
        self.manager.grant("manageUsers")
        self.worker = User.objects.create_user(
            email="worker@rentflow.test", password="StrongPass123", username="worker", role="worker"
        )

    def test_login_returns_tokens(self) -> None:
        response = self.client.post(
            reverse("auth:login"),
            {"email": "worker@rentflow.test", "password": "StrongPass123"},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertIn("access", response.data)
        self.assertIn("refresh", response.data)

    def test_me(self) -> None:
        self.client.force_authenticate(self.worker)
        response = self.client.get(reverse("user-me"))
        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertEqual(response.data["role"], "worker")
        self.assertTrue(response.data["permissions"]["viewBookings"])
        self.assertFalse(response.data["permissions"]["manageBookings"])

    def test_list_requires_manage_users(self) -> None:
        self.client.force_authenticate(self.worker)
        response = self.client.get(reverse("user-list"))
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

        self.client.force_authenticate(self.manager)
        response = self.client.get(reverse("user-list"))
        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertEqual(response.data["count"], 3)

    def test_grant_permission_flag(self) -> None:
        self.client.force_authenticate(self.manager)
        response = self.client.patch(
            reverse("user-detail", args=[self.worker.pk]),
            {"permissions": {"manageBookings": True}},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.worker.refresh_from_db()
        self.assertTrue(self.worker.permissions["manageBookings"])
        self.assertTrue(self.worker.permissions["viewBookings"])

    def test_flags_must_be_known_booleans(self) -> None:
        self.client.force_authenticate(self.manager)
        url = reverse("user-detail", args=[self.worker.pk])
        response = self.client.patch(url, {"permissions": {"manageBookings": "yes"}}, format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        response = self.client.patch(url, {"permissions": {"flyPlanes": True}}, format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_only_admin_changes_roles(self) -> None:
        url = reverse("user-detail", args=[self.worker.pk])
        self.client.force_authenticate(self.manager)
        response = self.client.patch(url, {"role": "admin"}, format="json")
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.worker.refresh_from_db()
        self.assertFalse(self.worker.is_admin())

        self.client.force_authenticate(self.admin)
        response = self.client.patch(url, {"role": "admin"}, format="json")
        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.worker.refresh_from_db()
        self.assertTrue(self.worker.is_admin())

    def test_manager_cannot_grant_own_flags(self) -> None:
        self.client.force_authenticate(self.manager)
        response = self.client.patch(
            reverse("user-detail", args=[self.manager.pk]),
            {"permissions": {"manageSettings": True}},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.manager.refresh_from_db()
        self.assertFalse(self.manager.permissions.get("manageSettings", False))

    def test_manager_can_edit_own_profile_fields(self) -> None:
        self.client.force_authenticate(self.manager)
        response = self.client.patch(
            reverse("user-detail", args=[self.manager.pk]),
            {"first_name": "Asha", "permissions": {"manageUsers": True}},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertEqual(response.data["first_name"], "Asha")

    def test_manager_cannot_deactivate_admin(self) -> None:
        self.client.force_authenticate(self.manager)
        response = self.client.patch(
            reverse("user-detail", args=[self.admin.pk]), {"is_active": False}, format="json"
        )
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.admin.refresh_from_db()
        self.assertTrue(self.admin.is_active)

    def test_manager_cannot_edit_admin(self) -> None:
        self.client.force_authenticate(self.manager)
        response = self.client.patch(
            reverse("user-detail", args=[self.admin.pk]), {"first_name": "Someone"}, format="json"
        )
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.admin.refresh_from_db()
        self.assertEqual(self.admin.first_name, "")

    def test_manager_can_deactivate_worker(self) -> None:
        self.client.force_authenticate(self.manager)
        response = self.client.patch(
            reverse("user-detail", args=[self.worker.pk]), {"is_active": False}, format="json"
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.worker.refresh_from_db()
        self.assertFalse(self.worker.is_active)

    def test_worker_without_manage_users_cannot_edit(self) -> None:
        self.client.force_authenticate(self.worker)
        response = self.client.patch(
            reverse("user-detail", args=[self.worker.pk]),
            {"permissions": {"manageUsers": True}},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.worker.refresh_from_db()
        self.assertFalse(self.worker.permissions.get("manageUsers", False))
