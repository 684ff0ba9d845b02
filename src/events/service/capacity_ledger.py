"""Capacity ledger: the denormalized participant counter on ``Event``.

Every change to the counter is a single conditional UPDATE, so the database
arbitrates concurrent reservations. The counter is a cache of the number of
confirmed and attended registrations and can always be recomputed with
``reconcile``.
"""

from datetime import datetime
from enum import StrEnum
from uuid import UUID

import structlog
from django.db import transaction
from django.db.models import F, Q
from django.utils import timezone

from events.exceptions import EventNotFound
from events.models import Event, Registration

logger = structlog.get_logger(__name__)


class ReservationOutcome(StrEnum):
    RESERVED = "reserved"
    FULL = "full"
    CLOSED = "closed"


def try_reserve(event_id: UUID, now: datetime | None = None) -> ReservationOutcome:
    """Take one seat if the event is open for registration and has capacity left.

    The open-for-registration conditions and the capacity check are one
    conditional UPDATE; a closed event reports ``CLOSED``, a full one ``FULL``.
    Events without ``max_participants`` are unbounded.

    Raises:
        EventNotFound: If no event has this id.
    """
    now = now or timezone.now()
    has_capacity = Q(max_participants__isnull=True) | Q(current_participants__lt=F("max_participants"))
    updated = (
        Event.objects.open_for_registration(now)
        .filter(has_capacity, pk=event_id)
        .update(current_participants=F("current_participants") + 1, updated_at=timezone.now())
    )
    if updated:
        logger.debug("capacity_reserved", event_id=str(event_id))
        return ReservationOutcome.RESERVED

    if not Event.objects.filter(pk=event_id).exists():
        raise EventNotFound()
    if not Event.objects.open_for_registration(now).filter(pk=event_id).exists():
        logger.info("capacity_closed", event_id=str(event_id))
        return ReservationOutcome.CLOSED
    logger.info("capacity_full", event_id=str(event_id))
    return ReservationOutcome.FULL


def release(event_id: UUID) -> None:
    """Give one seat back.

    The decrement never takes the counter below zero. A release that finds
    the counter already at zero means the counter drifted from the
    registration rows; it is logged and left for ``reconcile``.

    Raises:
        EventNotFound: If no event has this id.
    """
    updated = Event.objects.filter(pk=event_id, current_participants__gt=0).update(
        current_participants=F("current_participants") - 1,
        updated_at=timezone.now(),
    )
    if updated:
        logger.debug("capacity_released", event_id=str(event_id))
        return

    if not Event.objects.filter(pk=event_id).exists():
        raise EventNotFound()
    logger.error("capacity_release_underflow", event_id=str(event_id))


def reconcile(event_id: UUID) -> int:
    """Recompute the counter from the registration rows and return it.

    The event row is locked while counting so concurrent reservations queue
    behind the correction.

    Raises:
        EventNotFound: If no event has this id.
    """
    with transaction.atomic():
        event = Event.objects.select_for_update().only("id", "current_participants").filter(pk=event_id).first()
        if event is None:
            raise EventNotFound()

        actual = Registration.objects.filter(event_id=event_id).counted().count()
        if actual != event.current_participants:
            logger.warning(
                "capacity_drift_corrected",
                event_id=str(event_id),
                recorded=event.current_participants,
                actual=actual,
            )
            Event.objects.filter(pk=event_id).update(current_participants=actual, updated_at=timezone.now())
    return actual


def reconcile_all() -> int:
    """Reconcile every event. Returns the number of events checked."""
    event_ids = list(Event.objects.values_list("id", flat=True))
    for event_id in event_ids:
        reconcile(event_id)
    logger.info("capacity_reconciled", event_count=len(event_ids))
    return len(event_ids)
