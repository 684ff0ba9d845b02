"""Check-in resolver."""

from uuid import UUID

import structlog
from django.db.models import Q
from django.utils import timezone

from accounts.models import CampusUser
from events.exceptions import AlreadyCheckedIn, MissingIdentifier, NotConfirmed, RegistrationNotFound
from events.models import Registration

from . import registration_state

logger = structlog.get_logger(__name__)


def _find_registration(event_id: UUID, ticket_number: str | None, check_in_token: str | None) -> Registration:
    # Always scoped to the event: an identifier valid for another event never matches.
    lookup = {"ticket_number": ticket_number} if ticket_number else {"check_in_token": check_in_token}
    registration = Registration.objects.with_user().filter(event_id=event_id, **lookup).first()
    if registration is None:
        raise RegistrationNotFound()
    return registration


def _raise_for_status(registration: Registration) -> None:
    if registration.status == Registration.Status.ATTENDED or registration.checked_in_at is not None:
        raise AlreadyCheckedIn()
    if registration.status != Registration.Status.CONFIRMED:
        raise NotConfirmed()


def check_in(
    event_id: UUID,
    actor: CampusUser,
    *,
    ticket_number: str | None = None,
    check_in_token: str | None = None,
) -> Registration:
    """Mark the registration identified by a ticket number or check-in token as attended.

    Exactly one identifier must be given. The token is only used as a lookup
    key; the claims inside it are not trusted.

    Raises:
        MissingIdentifier: Neither or both identifiers were given.
        RegistrationNotFound: Nothing matches within this event.
        AlreadyCheckedIn: The registration was already checked in (including by a concurrent request).
        NotConfirmed: The registration is not confirmed (e.g. cancelled).
    """
    if bool(ticket_number) == bool(check_in_token):
        raise MissingIdentifier()

    registration = _find_registration(event_id, ticket_number, check_in_token)
    _raise_for_status(registration)

    now = timezone.now()
    won = registration_state.compare_and_set(
        registration,
        Registration.Status.ATTENDED,
        expected=Registration.Status.CONFIRMED,
        extra_condition=Q(checked_in_at__isnull=True),
        checked_in_at=now,
        checked_in_by=actor,
    )
    if not won:
        registration.refresh_from_db(fields=["status", "checked_in_at"])
        logger.info("check_in_lost_race", registration_id=str(registration.id), status=registration.status)
        _raise_for_status(registration)
        raise AlreadyCheckedIn()

    logger.info(
        "registration_checked_in",
        registration_id=str(registration.id),
        event_id=str(event_id),
        checked_in_by=str(actor.id),
    )
    return registration
