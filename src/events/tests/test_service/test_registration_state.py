import pytest
from django.db.models import Q

from accounts.models import CampusUser
from events.exceptions import DuplicateKey, DuplicateRegistration, InvalidStateTransition
from events.models import Event, Registration
from events.service import registration_state, ticket_issuer
from events.service.ticket_issuer import IssuedTicket

pytestmark = pytest.mark.django_db

Status = Registration.Status


@pytest.mark.parametrize(
    "current,target,allowed",
    [
        (Status.PENDING, Status.CONFIRMED, True),
        (Status.PENDING, Status.CANCELLED, True),
        (Status.CONFIRMED, Status.ATTENDED, True),
        (Status.CONFIRMED, Status.CANCELLED, True),
        (Status.CONFIRMED, Status.PENDING, False),
        (Status.CANCELLED, Status.CONFIRMED, False),
        (Status.ATTENDED, Status.CANCELLED, False),
        (Status.ATTENDED, Status.CONFIRMED, False),
    ],
)
def test_allowed_transitions(current: str, target: str, allowed: bool) -> None:
    assert registration_state.can_transition(current, target) is allowed


def test_assert_transition_raises_for_terminal_states() -> None:
    with pytest.raises(InvalidStateTransition) as exc_info:
        registration_state.assert_transition(Status.CANCELLED, Status.CONFIRMED)

    assert exc_info.value.current == Status.CANCELLED
    assert exc_info.value.requested == Status.CONFIRMED


def test_create_confirmed(event: Event, student: CampusUser) -> None:
    ticket = ticket_issuer.issue(event.id)

    registration = registration_state.create_confirmed(event, student, ticket, "vegetarian")

    assert registration.status == Status.CONFIRMED
    assert registration.ticket_number == ticket.ticket_number
    assert registration.check_in_token == ticket.check_in_token
    assert registration.notes == "vegetarian"


def test_create_confirmed_rejects_second_active_registration(event: Event, student: CampusUser) -> None:
    registration_state.create_confirmed(event, student, ticket_issuer.issue(event.id))

    with pytest.raises(DuplicateRegistration):
        registration_state.create_confirmed(event, student, ticket_issuer.issue(event.id))

    assert Registration.objects.filter(event=event, user=student).count() == 1


def test_create_confirmed_allows_new_row_after_cancellation(event: Event, student: CampusUser) -> None:
    first = registration_state.create_confirmed(event, student, ticket_issuer.issue(event.id))
    Registration.objects.filter(pk=first.pk).update(status=Status.CANCELLED)

    second = registration_state.create_confirmed(event, student, ticket_issuer.issue(event.id))

    assert second.pk != first.pk
    assert second.ticket_number != first.ticket_number


def test_create_confirmed_reports_ticket_collision(event: Event, student: CampusUser, other_student: CampusUser) -> None:
    existing = registration_state.create_confirmed(event, student, ticket_issuer.issue(event.id))
    colliding = IssuedTicket(ticket_number=existing.ticket_number, check_in_token="fresh-token")

    with pytest.raises(DuplicateKey):
        registration_state.create_confirmed(event, other_student, colliding)


def test_compare_and_set_wins_on_expected_status(event: Event, student: CampusUser) -> None:
    registration = registration_state.create_confirmed(event, student, ticket_issuer.issue(event.id))

    assert registration_state.compare_and_set(registration, Status.CANCELLED) is True

    assert registration.status == Status.CANCELLED
    registration.refresh_from_db()
    assert registration.status == Status.CANCELLED


def test_compare_and_set_loses_against_a_concurrent_writer(event: Event, student: CampusUser) -> None:
    registration = registration_state.create_confirmed(event, student, ticket_issuer.issue(event.id))
    Registration.objects.filter(pk=registration.pk).update(status=Status.CANCELLED)

    won = registration_state.compare_and_set(registration, Status.ATTENDED, expected=Status.CONFIRMED)

    assert won is False
    assert registration.status == Status.CONFIRMED


def test_compare_and_set_honours_extra_condition(event: Event, student: CampusUser) -> None:
    registration = registration_state.create_confirmed(event, student, ticket_issuer.issue(event.id))

    won = registration_state.compare_and_set(
        registration, Status.ATTENDED, extra_condition=Q(checked_in_at__isnull=False)
    )

    assert won is False
    registration.refresh_from_db()
    assert registration.status == Status.CONFIRMED
