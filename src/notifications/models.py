"""Models for the notification system."""

from django.db import models
from django.utils import timezone

from accounts.models import CampusUser
from common.models import TimeStampedModel
from notifications.enums import NotificationType


class Notification(TimeStampedModel):
    """A notification addressed to a single user.

    Contextual information (event, ticket number, changed fields) lives in the
    structured ``context`` JSON field; delivery to a transport is out of scope,
    so the persisted row is the in-app notification.
    """

    notification_type = models.CharField(
        max_length=50,
        db_index=True,
        choices=NotificationType.choices,
        help_text="Type of notification",
    )
    title = models.CharField(max_length=255, blank=True, default="", help_text="Rendered notification title")
    body = models.TextField(blank=True, default="", help_text="Rendered notification body")
    user = models.ForeignKey(CampusUser, on_delete=models.CASCADE, related_name="notifications", db_index=True)
    context = models.JSONField(default=dict, blank=True, help_text="Structured context data")
    read_at = models.DateTimeField(null=True, blank=True, db_index=True, help_text="When the user read it")

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["user", "notification_type", "created_at"], name="notif_user_type_created_idx"),
            models.Index(fields=["user", "read_at"], name="notif_user_read_idx"),
        ]
        verbose_name = "Notification"
        verbose_name_plural = "Notifications"

    def __str__(self) -> str:
        return f"{self.notification_type} for user {self.user_id} at {self.created_at}"

    @property
    def is_read(self) -> bool:
        return self.read_at is not None

    def mark_read(self) -> None:
        """Mark notification as read."""
        if not self.read_at:
            self.read_at = timezone.now()
            self.save(update_fields=["read_at", "updated_at"])
