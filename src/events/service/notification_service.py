"""Outbound notifications for registration and event lifecycle changes.

Everything here is scheduled with ``transaction.on_commit`` so nothing is
emitted for a unit of work that ends up rolled back.
"""

import typing as t

import structlog
from django.db import transaction

from events.models import Event, Registration
from notifications.enums import NotificationType
from notifications.signals import notification_requested

logger = structlog.get_logger(__name__)

# Changing any of these on a published event notifies its registrants.
MATERIAL_FIELDS: tuple[str, ...] = ("start", "end", "location", "address", "online_link", "registration_deadline")


def notify_registration_confirmed(registration: Registration) -> None:
    """Tell the registrant their seat is confirmed, once the registration commits."""
    event = registration.event
    context = {
        "event_id": str(event.id),
        "event_title": event.title,
        "event_start": event.start.isoformat(),
        "registration_id": str(registration.id),
        "ticket_number": registration.ticket_number,
    }

    def send() -> None:
        notification_requested.send(
            sender=Registration,
            user=registration.user,
            notification_type=NotificationType.REGISTRATION_CONFIRMED,
            context=context,
        )

    transaction.on_commit(send)


def notify_event_participants(
    event: Event, notification_type: NotificationType, extra_context: dict[str, t.Any] | None = None
) -> None:
    """Fan a notification out to every confirmed or attended registrant after commit."""
    from events.tasks import notify_event_participants as notify_task

    context = {
        "event_id": str(event.id),
        "event_title": event.title,
        "event_start": event.start.isoformat(),
        **(extra_context or {}),
    }
    transaction.on_commit(lambda: notify_task.delay(str(event.id), notification_type.value, context))
    logger.debug("event_notification_scheduled", event_id=str(event.id), notification_type=notification_type)


def changed_material_fields(before: dict[str, t.Any], after: Event) -> list[str]:
    """Names of the material fields whose value differs between ``before`` and ``after``."""
    return [field for field in MATERIAL_FIELDS if field in before and before[field] != getattr(after, field)]
