"""Exception handlers for the API."""

import traceback
import typing as t

import structlog
from django.conf import settings
from django.core.exceptions import PermissionDenied, ValidationError
from django.http import HttpRequest
from ninja.responses import Response

from events.exceptions import EventDomainError

logger = structlog.get_logger(__name__)


def handle_general_exception(request: HttpRequest, exc: Exception | t.Type[Exception]) -> Response:
    """Handle a general exception.

    Args:
        request: The incoming HTTP request.
        exc: The exception.

    Returns:
        The response.
    """
    logger.exception("INTERNAL_SERVER_ERROR", path=request.path, method=request.method)
    data = {"detail": "Internal Server Error."}
    is_staff = getattr(request, "user", None) and request.user.is_staff
    if settings.DEBUG or is_staff:  # pragma: no cover
        data["traceback"] = traceback.format_exc()
    return Response(status=500, data=data)


def handle_django_validation_error(request: HttpRequest, exc: ValidationError | t.Type[ValidationError]) -> Response:
    """Handle a validation error raised by model validation.

    Args:
        request: The incoming HTTP request.
        exc: The exception.
    """
    logger.info("VALIDATION_ERROR", errors=exc.message_dict if hasattr(exc, "error_dict") else exc.messages)
    if hasattr(exc, "error_dict"):
        error_dict = {k: [ee for e in v for ee in e] for k, v in exc.error_dict.items()}
    else:
        error_dict = {"__all__": exc.messages}
    return Response(status=400, data={"errors": error_dict})


def handle_event_domain_error(request: HttpRequest, exc: EventDomainError | t.Type[EventDomainError]) -> Response:
    """Answer a business rejection with its code and status.

    These are expected outcomes (full event, duplicate booking, wrong state), so they are logged at info level.
    """
    logger.info("domain_error", code=str(exc.code), status_code=exc.status_code, path=request.path)
    return Response(status=exc.status_code, data={"code": str(exc.code), "detail": exc.detail})


def handle_permission_denied(request: HttpRequest, exc: PermissionDenied | t.Type[PermissionDenied]) -> Response:
    """Handle a permission error raised below the controllers."""
    return Response(status=403, data={"detail": str(exc) or "Permission denied."})
