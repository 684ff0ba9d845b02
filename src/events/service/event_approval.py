"""Event approval state machine.

draft -> pending (organizer submits)
pending -> approved | rejected (admin reviews)
any non-terminal -> cancelled
approved -> completed (after the event ends)

Every write is conditioned on the status it was read in, so of two
concurrent reviews only one can succeed.
"""

import typing as t
from datetime import datetime
from enum import StrEnum

import structlog
from django.utils import timezone

from accounts.models import CampusUser
from events.exceptions import InvalidStateTransition, MissingRejectionReason
from events.models import Event
from notifications.enums import NotificationType

from . import notification_service

logger = structlog.get_logger(__name__)

EventStatus = Event.EventStatus

ALLOWED_TRANSITIONS: dict[str, frozenset[str]] = {
    EventStatus.DRAFT: frozenset({EventStatus.PENDING, EventStatus.CANCELLED}),
    EventStatus.PENDING: frozenset({EventStatus.APPROVED, EventStatus.REJECTED, EventStatus.CANCELLED}),
    EventStatus.APPROVED: frozenset({EventStatus.CANCELLED, EventStatus.COMPLETED}),
    EventStatus.REJECTED: frozenset({EventStatus.CANCELLED}),
    EventStatus.CANCELLED: frozenset(),
    EventStatus.COMPLETED: frozenset(),
}


class ReviewDecision(StrEnum):
    APPROVE = "approve"
    REJECT = "reject"


def can_transition(current: str, target: str) -> bool:
    return target in ALLOWED_TRANSITIONS.get(current, frozenset())


def _transition(event: Event, target: str, **values: t.Any) -> Event:
    source = event.status
    if not can_transition(source, target):
        raise InvalidStateTransition(source, target)

    updated = Event.objects.filter(pk=event.pk, status=source).update(
        status=target, updated_at=timezone.now(), **values
    )
    if not updated:
        event.refresh_from_db(fields=["status"])
        logger.info("event_transition_lost_race", event_id=str(event.id), expected=source, actual=event.status)
        raise InvalidStateTransition(event.status, target)

    event.status = target
    for key, value in values.items():
        setattr(event, key, value)
    logger.info("event_status_changed", event_id=str(event.id), from_status=source, to_status=target)
    return event


def submit_event(event: Event) -> Event:
    """Send a draft to the admins for review."""
    return _transition(event, EventStatus.PENDING)


def review_event(event: Event, reviewer: CampusUser, decision: ReviewDecision, reason: str | None = None) -> Event:
    """Approve or reject a pending event.

    Approval records who approved it and when. Rejection requires a
    non-blank reason, which is stored on the event.

    Raises:
        MissingRejectionReason: Rejecting without a reason.
        InvalidStateTransition: The event is not pending (anymore).
    """
    if decision == ReviewDecision.APPROVE:
        return _transition(event, EventStatus.APPROVED, approved_at=timezone.now(), approved_by=reviewer)

    reason = (reason or "").strip()
    if not reason:
        raise MissingRejectionReason()
    return _transition(event, EventStatus.REJECTED, rejection_reason=reason)


def cancel_event(event: Event, reason: str | None = None) -> Event:
    """Cancel an event and let its registrants know.

    Registrations are left untouched; they keep their tickets for the record.
    """
    was_published = event.status == EventStatus.APPROVED
    event = _transition(event, EventStatus.CANCELLED)
    if was_published:
        extra = {"reason": reason} if reason else None
        notification_service.notify_event_participants(event, NotificationType.EVENT_CANCELLED, extra)
    return event


def complete_event(event: Event) -> Event:
    """Mark an approved event as completed."""
    return _transition(event, EventStatus.COMPLETED)


def is_open_for_registration(event: Event, now: datetime | None = None) -> bool:
    """Registration is open only for approved events before the deadline (if any) and before the end."""
    now = now or timezone.now()
    if event.status != EventStatus.APPROVED:
        return False
    if event.registration_deadline is not None and now >= event.registration_deadline:
        return False
    return now < event.end
