"""DRF exception handler translating domain errors to HTTP responses."""

from __future__ import annotations

import logging

from django.db import IntegrityError  # type: ignore
from rest_framework import status  # type: ignore
from rest_framework.response import Response  # type: ignore
from rest_framework.views import exception_handler  # type: ignore

from shared.domain.exceptions import (
    AuthorizationError,
    ConflictError,
    DomainError,
    NotFoundError,
    ValidationError,
)

logger = logging.getLogger(__name__)

STATUS_CODES = (
    (ValidationError, status.HTTP_400_BAD_REQUEST),
    (AuthorizationError, status.HTTP_403_FORBIDDEN),
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (ConflictError, status.HTTP_409_CONFLICT),
)


def domain_exception_handler(exc, context):
    response = exception_handler(exc, context)
    if response is not None:
        return response

    if isinstance(exc, DomainError):
        for error_class, status_code in STATUS_CODES:
            if isinstance(exc, error_class):
                return Response(exc.to_dict(), status=status_code)
        return Response(exc.to_dict(), status=status.HTTP_400_BAD_REQUEST)

    if isinstance(exc, IntegrityError):
        logger.warning("Integrity error in %s: %s", context.get("view"), exc)
        return Response(
            {"code": "conflict", "detail": "Database integrity error"},
            status=status.HTTP_409_CONFLICT,
        )

    return None
