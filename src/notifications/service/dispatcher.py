"""Core notification dispatcher service."""

import typing as t
from collections.abc import Sequence

import structlog

from accounts.models import CampusUser
from notifications.context_schemas import validate_notification_context
from notifications.enums import NotificationType
from notifications.models import Notification
from notifications.service.rendering import render_notification

logger = structlog.get_logger(__name__)


class NotificationData(t.NamedTuple):
    """Data for creating a notification."""

    notification_type: NotificationType
    user: CampusUser
    context: dict[str, t.Any]


def create_notification(
    notification_type: NotificationType | str,
    user: CampusUser,
    context: dict[str, t.Any],
) -> Notification:
    """Create a notification record.

    Args:
        notification_type: Type of notification
        user: User to notify
        context: Notification context data

    Returns:
        Created Notification instance

    Raises:
        ValueError: If context validation fails
    """
    notification_type = NotificationType(notification_type)
    validate_notification_context(notification_type, context)

    title, body = render_notification(notification_type, context)
    notification = Notification.objects.create(
        notification_type=notification_type,
        user=user,
        context=context,
        title=title,
        body=body,
    )

    logger.info(
        "notification_created",
        notification_id=str(notification.id),
        notification_type=notification_type,
        user_id=str(user.id),
    )

    return notification


def bulk_create_notifications(notifications_data: Sequence[NotificationData]) -> list[Notification]:
    """Create multiple notification records in a single database operation.

    All contexts are validated before anything is written.

    Raises:
        ValueError: If any context validation fails (no notifications created)
    """
    if not notifications_data:
        return []

    to_create = []
    for data in notifications_data:
        notification_type = NotificationType(data.notification_type)
        validate_notification_context(notification_type, data.context)
        title, body = render_notification(notification_type, data.context)
        to_create.append(
            Notification(
                notification_type=notification_type,
                user=data.user,
                context=data.context,
                title=title,
                body=body,
            )
        )

    created = Notification.objects.bulk_create(to_create)

    logger.info(
        "notifications_bulk_created",
        count=len(created),
        notification_type=notifications_data[0].notification_type,
    )

    return created
