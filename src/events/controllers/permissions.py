from django.http import HttpRequest
from ninja_extra import ControllerBase
from ninja_extra.permissions import BasePermission

from events import models
from events.service.api import can_manage_event


class RootPermission(BasePermission):
    def __init__(self, action: str) -> None:
        """Store the action."""
        self.action = action

    def has_permission(self, request: HttpRequest, controller: ControllerBase) -> bool:
        """Must implement abstract method. This is due to an error in Ninja Extra.

        This Method will be ignored, only has_object_permission will be called.
        """
        return True


class EventManagePermission(RootPermission):
    def has_object_permission(
        self,
        request: HttpRequest,
        controller: ControllerBase,
        obj: models.Event,
    ) -> bool:
        """The organizer of the event and admins can manage it."""
        if request.user.is_anonymous:
            return False
        return can_manage_event(request.user, obj)  # type: ignore[arg-type]


class FeedbackOwnerPermission(RootPermission):
    def __init__(self, action: str, *, allow_admin: bool = False) -> None:
        """Store the action and whether admins may act on feedback they did not write."""
        super().__init__(action)
        self.allow_admin = allow_admin

    def has_object_permission(
        self,
        request: HttpRequest,
        controller: ControllerBase,
        obj: models.EventFeedback,
    ) -> bool:
        """Authors can act on their own feedback."""
        if request.user.is_anonymous:
            return False
        if obj.user_id == request.user.id:
            return True
        return self.allow_admin and request.user.is_admin  # type: ignore[union-attr]
