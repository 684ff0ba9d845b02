"""Title/body rendering for notifications."""

import typing as t

from notifications.enums import NotificationType

_TEMPLATES: dict[NotificationType, tuple[str, str]] = {
    NotificationType.REGISTRATION_CONFIRMED: (
        "You're registered for {event_title}",
        "Your registration is confirmed. Ticket number: {ticket_number}.",
    ),
    NotificationType.EVENT_CANCELLED: (
        "{event_title} has been cancelled",
        "The event scheduled for {event_start} has been cancelled.{reason_display}",
    ),
    NotificationType.EVENT_UPDATE: (
        "{event_title} has been updated",
        "The following details changed: {changed_fields_display}.",
    ),
    NotificationType.EVENT_REMINDER: (
        "Reminder: {event_title} is coming up",
        "The event starts at {event_start}.",
    ),
}


def render_notification(notification_type: NotificationType, context: dict[str, t.Any]) -> tuple[str, str]:
    """Render the (title, body) pair for a notification from its context."""
    title_template, body_template = _TEMPLATES[notification_type]
    values = {
        **context,
        "changed_fields_display": ", ".join(context.get("changed_fields", [])),
        "reason_display": f" Reason: {context['reason']}" if context.get("reason") else "",
    }
    return title_template.format(**values)[:255], body_template.format(**values)
