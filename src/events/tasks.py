"""Celery tasks for event management.

This module contains asynchronous tasks for:
- Fanning event notifications out to registrants
- Reconciling participant counters with registration rows
- Completing events that have ended
- Sending reminders for upcoming events
"""

import typing as t
from datetime import timedelta
from uuid import UUID

import structlog
from celery import shared_task
from django.conf import settings
from django.utils import timezone

from accounts.models import CampusUser
from notifications.enums import NotificationType
from notifications.models import Notification
from notifications.service.dispatcher import NotificationData, bulk_create_notifications
from notifications.signals import notification_requested

from .exceptions import InvalidStateTransition
from .models import Event, Registration
from .service import capacity_ledger, event_approval

logger = structlog.get_logger(__name__)


def _registrants(event_id: str) -> t.Iterator[Registration]:
    return (
        Registration.objects.with_user()
        .filter(event_id=event_id, status__in=Registration.COUNTED_STATUSES)
        .iterator()
    )


@shared_task
def notify_event_participants(event_id: str, notification_type: str, context: dict[str, t.Any]) -> int:
    """Create one notification per confirmed or attended registrant of an event, in a single insert."""
    notifications_data = [
        NotificationData(
            notification_type=NotificationType(notification_type),
            user=registration.user,
            context=context,
        )
        for registration in _registrants(event_id)
    ]
    created = bulk_create_notifications(notifications_data)
    logger.info(
        "event_participants_notified", event_id=event_id, notification_type=notification_type, count=len(created)
    )
    return len(created)


@shared_task
def reconcile_participant_counts(event_id: str | None = None) -> int:
    """Recompute participant counters from the registration rows."""
    if event_id is not None:
        return capacity_ledger.reconcile(UUID(event_id))
    return capacity_ledger.reconcile_all()


@shared_task
def complete_finished_events() -> int:
    """Move approved events whose end has passed to completed."""
    completed = 0
    for event in Event.objects.finished():
        try:
            event_approval.complete_event(event)
        except InvalidStateTransition:
            # Cancelled by someone else in the meantime.
            logger.info("event_completion_skipped", event_id=str(event.id))
            continue
        completed += 1
    logger.info("finished_events_completed", count=completed)
    return completed


@shared_task
def send_event_reminders() -> int:
    """Remind registrants of approved events starting within the reminder window, once per user and event."""
    now = timezone.now()
    window_end = now + timedelta(hours=settings.EVENT_REMINDER_LEAD_HOURS)
    sent = 0
    for event in Event.objects.filter(status=Event.EventStatus.APPROVED, start__gt=now, start__lte=window_end):
        already_reminded = set(
            Notification.objects.filter(
                notification_type=NotificationType.EVENT_REMINDER, context__event_id=str(event.id)
            ).values_list("user_id", flat=True)
        )
        context = {
            "event_id": str(event.id),
            "event_title": event.title,
            "event_start": event.start.isoformat(),
            "event_location": event.location,
        }
        for registration in _registrants(str(event.id)):
            if registration.user_id in already_reminded:
                continue
            user: CampusUser = registration.user
            notification_requested.send(
                sender=Event,
                user=user,
                notification_type=NotificationType.EVENT_REMINDER,
                context={**context, "ticket_number": registration.ticket_number},
            )
            sent += 1
    logger.info("event_reminders_sent", count=sent)
    return sent
