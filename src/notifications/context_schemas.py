"""Context schemas for notifications using TypedDict for type safety.

Each notification type has a corresponding context schema that defines
the structure of the context data. Required keys are checked at runtime
when the notification is created.
"""

import typing as t

from notifications.enums import NotificationType


class BaseNotificationContext(t.TypedDict, total=False):
    """Base context for all notifications."""

    event_id: t.Required[str]
    event_title: t.Required[str]


class RegistrationConfirmedContext(BaseNotificationContext):
    """Context for REGISTRATION_CONFIRMED notification."""

    registration_id: t.Required[str]
    ticket_number: t.Required[str]
    event_start: t.Required[str]  # ISO format


class EventCancelledContext(BaseNotificationContext):
    """Context for EVENT_CANCELLED notification."""

    event_start: t.Required[str]
    reason: t.NotRequired[str]


class EventUpdateContext(BaseNotificationContext):
    """Context for EVENT_UPDATE notification."""

    changed_fields: t.Required[list[str]]
    event_start: t.Required[str]
    event_location: t.NotRequired[str]


class EventReminderContext(BaseNotificationContext):
    """Context for EVENT_REMINDER notification."""

    event_start: t.Required[str]
    event_location: t.NotRequired[str]
    ticket_number: t.NotRequired[str]


NOTIFICATION_CONTEXT_SCHEMAS: dict[NotificationType, type[BaseNotificationContext]] = {
    NotificationType.REGISTRATION_CONFIRMED: RegistrationConfirmedContext,
    NotificationType.EVENT_CANCELLED: EventCancelledContext,
    NotificationType.EVENT_UPDATE: EventUpdateContext,
    NotificationType.EVENT_REMINDER: EventReminderContext,
}


def validate_notification_context(notification_type: NotificationType, context: dict[str, t.Any]) -> None:
    """Validate that context matches expected schema for notification type.

    Raises:
        ValueError: If context is invalid or notification type has no schema
    """
    schema = NOTIFICATION_CONTEXT_SCHEMAS.get(notification_type)
    if schema is None:
        raise ValueError(f"No schema defined for notification type: {notification_type}")

    required_keys: set[str] = getattr(schema, "__required_keys__", set())
    missing_keys = required_keys - context.keys()

    if missing_keys:
        raise ValueError(f"Missing required context keys for {notification_type}: {sorted(missing_keys)}")
