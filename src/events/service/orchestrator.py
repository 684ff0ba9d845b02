"""Registration use cases: register, cancel and check in.

Each use case is one database transaction. Capacity, duplicates and ticket
uniqueness are arbitrated by the database (conditional updates and unique
constraints), never by in-process locks.
"""

from uuid import UUID

import structlog
from django.conf import settings
from django.db import transaction

from accounts.models import CampusUser
from events.exceptions import (
    AlreadyCancelled,
    DuplicateKey,
    DuplicateRegistration,
    EventFull,
    EventNotFound,
    EventNotOpenForRegistration,
    InvalidStateTransition,
    RegistrationNotFound,
)
from events.models import Event, Registration

from . import capacity_ledger, event_approval, notification_service, registration_state, ticket_issuer
from . import check_in as check_in_resolver

logger = structlog.get_logger(__name__)


def _issue_and_insert(event: Event, user: CampusUser, notes: str) -> Registration:
    """Issue a ticket and insert the registration, re-issuing on ticket collisions."""
    max_attempts = settings.TICKET_ISSUE_MAX_ATTEMPTS
    for attempt in range(1, max_attempts + 1):
        ticket = ticket_issuer.issue(event.id)
        try:
            return registration_state.create_confirmed(event, user, ticket, notes)
        except DuplicateKey:
            logger.warning("ticket_issue_retry", event_id=str(event.id), attempt=attempt, max_attempts=max_attempts)
            if attempt == max_attempts:
                raise
    raise DuplicateKey()  # pragma: no cover


def _has_active_registration(event: Event, user: CampusUser) -> bool:
    return Registration.objects.active().filter(event=event, user=user).exists()


def _compensate_reservation(event_id: UUID, reason: Exception) -> None:
    try:
        capacity_ledger.release(event_id)
    except Exception:
        logger.critical(
            "capacity_compensation_failed",
            event_id=str(event_id),
            original_error=type(reason).__name__,
            exc_info=True,
        )
        raise
    logger.info("capacity_reservation_compensated", event_id=str(event_id), reason=type(reason).__name__)


@transaction.atomic
def register(event_id: UUID, user: CampusUser, notes: str | None = None) -> Registration:
    """Register ``user`` for an event and return the confirmed registration.

    Raises:
        EventNotFound: No such event.
        EventNotOpenForRegistration: The event is not approved, or its deadline or end has passed.
        DuplicateRegistration: The user already holds a non-cancelled registration.
        EventFull: No capacity left.
        DuplicateKey: Ticket issuance kept colliding.
    """
    event = Event.objects.filter(pk=event_id).first()
    if event is None:
        raise EventNotFound()
    if not event_approval.is_open_for_registration(event):
        raise EventNotOpenForRegistration()
    if _has_active_registration(event, user):
        raise DuplicateRegistration()

    outcome = capacity_ledger.try_reserve(event.id)
    if outcome == capacity_ledger.ReservationOutcome.CLOSED:
        raise EventNotOpenForRegistration()
    if outcome == capacity_ledger.ReservationOutcome.FULL:
        raise EventFull()

    try:
        registration = _issue_and_insert(event, user, notes or "")
    except Exception as e:
        _compensate_reservation(event.id, e)
        raise

    logger.info(
        "registration_created",
        registration_id=str(registration.id),
        event_id=str(event.id),
        user_id=str(user.id),
        ticket_number=registration.ticket_number,
    )
    notification_service.notify_registration_confirmed(registration)
    return registration


@transaction.atomic
def cancel(event_id: UUID, user: CampusUser) -> None:
    """Cancel the user's registration and give the seat back.

    Only a confirmed registration held a seat, so only that one releases.

    Raises:
        RegistrationNotFound: The user never registered for this event.
        AlreadyCancelled: The user's registration is already cancelled.
        InvalidStateTransition: The registration is attended.
    """
    registration = Registration.objects.active().filter(event_id=event_id, user=user).first()
    if registration is None:
        if Registration.objects.filter(event_id=event_id, user=user, status=Registration.Status.CANCELLED).exists():
            raise AlreadyCancelled()
        raise RegistrationNotFound()

    previous = registration.status
    if not registration_state.can_transition(previous, Registration.Status.CANCELLED):
        raise InvalidStateTransition(previous, Registration.Status.CANCELLED)

    if not registration_state.compare_and_set(registration, Registration.Status.CANCELLED, expected=previous):
        registration.refresh_from_db(fields=["status"])
        if registration.status == Registration.Status.CANCELLED:
            raise AlreadyCancelled()
        raise InvalidStateTransition(registration.status, Registration.Status.CANCELLED)

    if previous == Registration.Status.CONFIRMED:
        capacity_ledger.release(event_id)

    logger.info(
        "registration_cancelled",
        registration_id=str(registration.id),
        event_id=str(event_id),
        user_id=str(user.id),
        previous_status=previous,
    )


def check_in(
    event_id: UUID,
    actor: CampusUser,
    *,
    ticket_number: str | None = None,
    check_in_token: str | None = None,
) -> Registration:
    """Check in a registration of ``event_id``. The capacity counter is not touched."""
    with transaction.atomic():
        return check_in_resolver.check_in(
            event_id, actor, ticket_number=ticket_number, check_in_token=check_in_token
        )
