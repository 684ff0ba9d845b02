import typing as t

from django.contrib.auth.models import AnonymousUser
from ninja_extra import ControllerBase

from accounts.models import CampusUser


class UserAwareController(ControllerBase):
    def maybe_user(self) -> CampusUser | AnonymousUser:
        """Get the user for this request."""
        return t.cast(CampusUser | AnonymousUser, self.context.request.user)  # type: ignore[union-attr]

    def user(self) -> CampusUser:
        """Get the user for this request."""
        return t.cast(CampusUser, self.context.request.user)  # type: ignore[union-attr]
