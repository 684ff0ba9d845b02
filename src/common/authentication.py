"""JWT authentication classes for the campus events API."""

import typing as t

import structlog
from django.conf import settings
from django.contrib.auth.models import AnonymousUser
from django.http import HttpRequest
from django.utils.translation import gettext_lazy as _
from ninja_extra import status
from ninja_extra.exceptions import APIException
from ninja_jwt.authentication import JWTAuth

from accounts.models import CampusUser

logger = structlog.get_logger(__name__)


class PermissionDenied(APIException):
    """Exception raised when user doesn't have required permissions."""

    status_code = status.HTTP_403_FORBIDDEN
    default_detail = _("Permission denied")


class CampusJWTAuth(JWTAuth):
    """JWT authentication that binds the acting user to the log context."""

    def authenticate(self, request: HttpRequest, token: str) -> t.Any:
        """Authenticate the request and bind the user id for structured logging."""
        user = super().authenticate(request, token)
        if user is not None:
            structlog.contextvars.bind_contextvars(user_id=str(user.id))
        return user


class OptionalAuth(CampusJWTAuth):
    """Optional JWT authentication.

    Without an Authorization header the request continues as AnonymousUser,
    so public endpoints can still tailor their answer to a signed-in user.
    """

    def __call__(self, request: HttpRequest) -> t.Any | None:
        """Overrides CampusJWTAuth __call__ to provide optional auth."""
        auth_value = request.headers.get(self.header)
        if not auth_value:
            request.user = AnonymousUser()
            return request.user
        parts = auth_value.split(" ")

        if parts[0].lower() != self.openapi_scheme:
            if settings.DEBUG:
                logger.error("unexpected_auth_scheme", scheme=parts[0])
            return None
        token = " ".join(parts[1:])
        return self.authenticate(request, token)


class RoleJWTAuth(CampusJWTAuth):
    """JWT authentication that also requires a minimum campus role.

    Roles are ordered (student < organizer < admin), so requiring
    ``organizer`` lets admins through as well.
    """

    def __init__(self, *, min_role: CampusUser.Role) -> None:
        self.min_role = min_role
        super().__init__()

    def authenticate(self, request: HttpRequest, token: str) -> t.Any:
        """Authenticate and verify the user's role.

        Raises:
            PermissionDenied: If the user's role is below ``min_role``.
        """
        user = super().authenticate(request, token)
        if not user:
            return None
        if not user.has_role_at_least(self.min_role):
            logger.info("role_check_failed", required_role=self.min_role.value, user_role=user.role)
            raise PermissionDenied(_("This action requires the %(role)s role.") % {"role": self.min_role.label})
        return user
