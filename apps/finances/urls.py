"""URL routing for the finance domain."""

from __future__ import annotations

from django.urls import include, path  # type: ignore
from rest_framework.routers import DefaultRouter  # type: ignore

from .views import FeeSettingsView, PaymentEntryViewSet

router = DefaultRouter()
router.register(r"payments", PaymentEntryViewSet, basename="payment")

urlpatterns = [
    path("fee-settings/", FeeSettingsView.as_view(), name="fee-settings"),
    path("", include(router.urls)),
]
