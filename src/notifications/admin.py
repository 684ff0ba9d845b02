"""Django admin for notification models."""

from django.contrib import admin

from notifications.models import Notification


@admin.register(Notification)
class NotificationAdmin(admin.ModelAdmin):  # type: ignore[type-arg]
    """Admin for Notification model."""

    list_display = ["id", "notification_type", "user_email", "title", "is_read", "created_at"]
    list_filter = ["notification_type", "read_at", "created_at"]
    search_fields = ["user__email", "user__username", "title", "body"]
    readonly_fields = ["id", "created_at", "updated_at", "notification_type", "context"]
    date_hierarchy = "created_at"

    @admin.display(description="User")
    def user_email(self, obj: Notification) -> str:
        return obj.user.email or obj.user.username

    @admin.display(boolean=True, description="Read")
    def is_read(self, obj: Notification) -> bool:
        return obj.is_read
