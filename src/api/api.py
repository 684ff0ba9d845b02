from django.conf import settings
from django.core.exceptions import PermissionDenied, ValidationError
from django.http import HttpRequest
from ninja_extra import NinjaExtraAPI

from common.schema import ResponseOk, VersionResponse
from common.throttling import AnonDefaultThrottle, UserDefaultThrottle
from events.controllers import EVENT_CONTROLLERS
from events.exceptions import EventDomainError

from .exception_handlers import (
    handle_django_validation_error,
    handle_event_domain_error,
    handle_general_exception,
    handle_permission_denied,
)

api = NinjaExtraAPI(
    title="Campus Events API",
    docs_url="/docs",
    version=settings.VERSION,
    description=f"Campus Events API {settings.VERSION}",
    app_name=f"campus-events-api-{settings.VERSION}",
    urls_namespace="api",
    servers=[
        {"url": settings.SERVICE_URL, "description": settings.SERVICE_DESCRIPTION},
    ],
    throttle=[AnonDefaultThrottle(), UserDefaultThrottle()],
)


@api.get("/version", tags=["Version"], response={200: VersionResponse}, url_name="version")
def version(request: HttpRequest) -> tuple[int, VersionResponse]:
    """Get the API version.

    Args:
        request: The incoming HTTP request.

    Returns:
        The response status code and message.
    """
    return 200, VersionResponse(version=settings.VERSION)


@api.get("/healthcheck", tags=["Healthcheck"], response={200: ResponseOk}, url_name="healthcheck")
def healthcheck(request: HttpRequest) -> tuple[int, ResponseOk]:
    """Check the health of the API.

    Args:
        request: The incoming HTTP request.

    Returns:
        The response status code and message.
    """
    return 200, ResponseOk()


api.register_controllers(*EVENT_CONTROLLERS)

EXCEPTION_HANDLERS = {
    Exception: handle_general_exception,
    ValidationError: handle_django_validation_error,
    PermissionDenied: handle_permission_denied,
    EventDomainError: handle_event_domain_error,
}

for exc, handler in EXCEPTION_HANDLERS.items():
    api.add_exception_handler(exc, handler)
