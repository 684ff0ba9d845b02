"""Signal handlers for notification system."""

import typing as t

import structlog
from django.dispatch import receiver

from notifications.service.dispatcher import create_notification
from notifications.signals import notification_requested

logger = structlog.get_logger(__name__)


@receiver(notification_requested)
def handle_notification_request(sender: t.Any, **kwargs: t.Any) -> None:
    """Handle notification_requested signal by persisting the notification.

    Notifications are emitted after the originating transaction commits, so a
    failure here must not turn a completed registration or cancellation into
    an error response. Failures are logged with full context instead.

    Expected kwargs:
        - notification_type: NotificationType enum value or string
        - user: CampusUser instance
        - context: dict matching the notification type's context schema
    """
    notification_type = kwargs.get("notification_type")
    user = kwargs.get("user")
    context = kwargs.get("context", {})
    sender_name = sender.__name__ if hasattr(sender, "__name__") else str(sender)

    if not notification_type or not user:
        logger.error(
            "invalid_notification_request",
            notification_type=notification_type,
            user=user,
            sender=sender_name,
        )
        return

    try:
        notification = create_notification(notification_type=notification_type, user=user, context=context)
    except Exception:
        logger.exception(
            "notification_request_failed",
            notification_type=notification_type,
            user_id=str(user.id),
            sender=sender_name,
            context=context,
        )
        return

    logger.info(
        "notification_request_handled",
        notification_id=str(notification.id),
        notification_type=notification_type,
        user_id=str(user.id),
        sender=sender_name,
    )
