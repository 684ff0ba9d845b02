"""Registration state machine.

pending -> confirmed | cancelled
confirmed -> attended | cancelled
cancelled, attended: terminal

Registrations are created directly as ``confirmed``; ``pending`` is part of
the model but no workflow produces it. Every transition is written as a
conditional UPDATE on the expected current status.
"""

import typing as t

import structlog
from django.db import IntegrityError, transaction
from django.db.models import Q
from django.utils import timezone

from accounts.models import CampusUser
from events.exceptions import DuplicateKey, DuplicateRegistration, InvalidStateTransition
from events.models import Event, Registration

from .ticket_issuer import IssuedTicket

logger = structlog.get_logger(__name__)

Status = Registration.Status

ALLOWED_TRANSITIONS: dict[str, frozenset[str]] = {
    Status.PENDING: frozenset({Status.CONFIRMED, Status.CANCELLED}),
    Status.CONFIRMED: frozenset({Status.ATTENDED, Status.CANCELLED}),
    Status.CANCELLED: frozenset(),
    Status.ATTENDED: frozenset(),
}


def can_transition(current: str, target: str) -> bool:
    return target in ALLOWED_TRANSITIONS.get(current, frozenset())


def assert_transition(current: str, target: str) -> None:
    """Raise InvalidStateTransition unless ``current -> target`` is allowed."""
    if not can_transition(current, target):
        raise InvalidStateTransition(current, target)


def compare_and_set(
    registration: Registration,
    target: str,
    *,
    expected: str | None = None,
    extra_condition: Q | None = None,
    **values: t.Any,
) -> bool:
    """Move ``registration`` to ``target`` if it is still in ``expected`` status.

    Returns False when another writer changed the row first; the in-memory
    instance is only updated when the write won.
    """
    expected = expected or registration.status
    assert_transition(expected, target)

    qs = Registration.objects.filter(pk=registration.pk, status=expected)
    if extra_condition is not None:
        qs = qs.filter(extra_condition)
    updated = qs.update(status=target, updated_at=timezone.now(), **values)
    if not updated:
        return False

    registration.status = target
    for key, value in values.items():
        setattr(registration, key, value)
    return True


def create_confirmed(event: Event, user: CampusUser, ticket: IssuedTicket, notes: str = "") -> Registration:
    """Insert a confirmed registration carrying ``ticket``.

    The insert runs in its own savepoint so a constraint violation leaves the
    surrounding transaction usable.

    Raises:
        DuplicateRegistration: The user already holds a non-cancelled registration.
        DuplicateKey: The ticket number or check-in token collided.
    """
    try:
        with transaction.atomic():
            return Registration.objects.create(
                event=event,
                user=user,
                status=Status.CONFIRMED,
                ticket_number=ticket.ticket_number,
                check_in_token=ticket.check_in_token,
                notes=notes,
            )
    except IntegrityError as e:
        if Registration.objects.active().filter(event=event, user=user).exists():
            raise DuplicateRegistration() from e
        logger.warning("ticket_collision", event_id=str(event.id), ticket_number=ticket.ticket_number)
        raise DuplicateKey() from e
