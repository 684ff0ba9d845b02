"""Registration, cancellation and check-in through the orchestrator.

The threaded tests need a database with real row locking and are skipped on SQLite;
stale reads are simulated on every backend by patching the duplicate pre-check.
"""

import threading
import typing as t
from datetime import timedelta
from unittest.mock import patch
from uuid import uuid4

import pytest
from django.db import connection, connections
from freezegun import freeze_time

from accounts.models import CampusUser
from conftest import CampusUserFactory, EventFactory
from events.exceptions import (
    AlreadyCancelled,
    AlreadyCheckedIn,
    DuplicateKey,
    DuplicateRegistration,
    EventFull,
    EventNotFound,
    EventNotOpenForRegistration,
    InvalidStateTransition,
    MissingIdentifier,
    NotConfirmed,
    RegistrationNotFound,
)
from events.models import Event, Registration
from events.service import orchestrator
from events.service.ticket_issuer import IssuedTicket
from notifications.enums import NotificationType
from notifications.models import Notification

pytestmark = pytest.mark.django_db

Status = Registration.Status


def _counted(event: Event) -> int:
    return Registration.objects.filter(event=event).counted().count()


def _assert_counter_consistent(event: Event) -> None:
    event.refresh_from_db()
    assert event.current_participants == _counted(event)
    if event.max_participants is not None:
        assert event.current_participants <= event.max_participants


class TestRegister:
    def test_register_confirms_and_takes_a_seat(self, event: Event, student: CampusUser) -> None:
        registration = orchestrator.register(event.id, student, "  ")

        assert registration.status == Status.CONFIRMED
        assert registration.ticket_number.startswith("TKT-")
        assert registration.check_in_token
        event.refresh_from_db()
        assert event.current_participants == 1
        _assert_counter_consistent(event)

    def test_register_sends_confirmation_after_commit(
        self, event: Event, student: CampusUser, django_capture_on_commit_callbacks: t.Any
    ) -> None:
        with django_capture_on_commit_callbacks(execute=True):
            registration = orchestrator.register(event.id, student)

        notification = Notification.objects.get(user=student)
        assert notification.notification_type == NotificationType.REGISTRATION_CONFIRMED
        assert notification.context["ticket_number"] == registration.ticket_number
        assert registration.ticket_number in notification.body

    def test_unknown_event(self, student: CampusUser) -> None:
        with pytest.raises(EventNotFound):
            orchestrator.register(uuid4(), student)

    def test_draft_event_is_not_open(self, draft_event: Event, student: CampusUser) -> None:
        with pytest.raises(EventNotOpenForRegistration):
            orchestrator.register(draft_event.id, student)

        assert not Registration.objects.exists()

    def test_past_deadline_is_not_open(self, event_factory: EventFactory, student: CampusUser) -> None:
        event = event_factory(max_participants=10)
        event.registration_deadline = event.start - timedelta(days=2)
        event.save()

        with freeze_time(event.start - timedelta(days=1)):
            with pytest.raises(EventNotOpenForRegistration):
                orchestrator.register(event.id, student)

        event.refresh_from_db()
        assert event.current_participants == 0

    def test_cancellation_after_the_open_check_is_not_overtaken(self, event: Event, student: CampusUser) -> None:
        # The open check ran against the approved row; the cancellation committed right after.
        Event.objects.filter(pk=event.pk).update(status=Event.EventStatus.CANCELLED)

        with patch("events.service.orchestrator.event_approval.is_open_for_registration", return_value=True):
            with pytest.raises(EventNotOpenForRegistration):
                orchestrator.register(event.id, student)

        assert not Registration.objects.filter(event=event).exists()
        event.refresh_from_db()
        assert event.current_participants == 0

    def test_deadline_passing_after_the_open_check_is_not_overtaken(
        self, event_factory: EventFactory, student: CampusUser
    ) -> None:
        event = event_factory(max_participants=10)
        event.registration_deadline = event.start - timedelta(days=2)
        event.save()

        with freeze_time(event.start - timedelta(days=1)):
            with patch("events.service.orchestrator.event_approval.is_open_for_registration", return_value=True):
                with pytest.raises(EventNotOpenForRegistration):
                    orchestrator.register(event.id, student)

        assert not Registration.objects.filter(event=event).exists()

    def test_duplicate_registration(self, event: Event, student: CampusUser) -> None:
        orchestrator.register(event.id, student)

        with pytest.raises(DuplicateRegistration):
            orchestrator.register(event.id, student)

        assert Registration.objects.filter(event=event, user=student).count() == 1
        _assert_counter_consistent(event)

    def test_duplicate_after_stale_read_is_caught_by_the_database(self, event: Event, student: CampusUser) -> None:
        orchestrator.register(event.id, student)

        with patch("events.service.orchestrator._has_active_registration", return_value=False):
            with pytest.raises(DuplicateRegistration):
                orchestrator.register(event.id, student)

        assert Registration.objects.filter(event=event, user=student).active().count() == 1
        _assert_counter_consistent(event)

    def test_capacity_is_never_exceeded(self, event_factory: EventFactory, campus_user_factory: CampusUserFactory) -> None:
        event = event_factory(max_participants=3)
        outcomes: list[str] = []
        for _ in range(5):
            try:
                orchestrator.register(event.id, campus_user_factory())
                outcomes.append("ok")
            except EventFull:
                outcomes.append("full")

        assert outcomes == ["ok", "ok", "ok", "full", "full"]
        _assert_counter_consistent(event)
        assert event.current_participants == 3

    def test_single_seat(self, event_factory: EventFactory, student: CampusUser, other_student: CampusUser) -> None:
        event = event_factory(max_participants=1)
        orchestrator.register(event.id, student)

        with pytest.raises(EventFull):
            orchestrator.register(event.id, other_student)

        _assert_counter_consistent(event)

    def test_unlimited_event(self, unlimited_event: Event, campus_user_factory: CampusUserFactory) -> None:
        for _ in range(15):
            orchestrator.register(unlimited_event.id, campus_user_factory())

        _assert_counter_consistent(unlimited_event)
        assert unlimited_event.current_participants == 15

    def test_ticket_collision_is_retried(self, event: Event, student: CampusUser, other_student: CampusUser) -> None:
        taken = orchestrator.register(event.id, student)
        fresh = IssuedTicket(ticket_number="TKT-FRESH-0001", check_in_token="fresh-token")
        collision = IssuedTicket(ticket_number=taken.ticket_number, check_in_token="other-token")

        with patch("events.service.ticket_issuer.issue", side_effect=[collision, fresh]):
            registration = orchestrator.register(event.id, other_student)

        assert registration.ticket_number == "TKT-FRESH-0001"
        _assert_counter_consistent(event)

    def test_ticket_collision_gives_up_and_releases_the_seat(
        self, event: Event, student: CampusUser, other_student: CampusUser, settings: t.Any
    ) -> None:
        settings.TICKET_ISSUE_MAX_ATTEMPTS = 2
        taken = orchestrator.register(event.id, student)
        collision = IssuedTicket(ticket_number=taken.ticket_number, check_in_token="other-token")

        with patch("events.service.ticket_issuer.issue", return_value=collision):
            with pytest.raises(DuplicateKey):
                orchestrator.register(event.id, other_student)

        assert not Registration.objects.filter(user=other_student).exists()
        _assert_counter_consistent(event)
        assert event.current_participants == 1

    def test_failed_insert_compensates_the_reservation(self, event: Event, student: CampusUser) -> None:
        with (
            patch("events.service.registration_state.create_confirmed", side_effect=RuntimeError("boom")),
            patch("events.service.capacity_ledger.release", wraps=orchestrator.capacity_ledger.release) as release,
        ):
            with pytest.raises(RuntimeError):
                orchestrator.register(event.id, student)

        release.assert_called_once_with(event.id)
        _assert_counter_consistent(event)

    def test_failed_compensation_is_reraised(self, event: Event, student: CampusUser) -> None:
        with (
            patch("events.service.registration_state.create_confirmed", side_effect=RuntimeError("boom")),
            patch("events.service.capacity_ledger.release", side_effect=ConnectionError("db gone")),
        ):
            with pytest.raises(ConnectionError):
                orchestrator.register(event.id, student)


class TestCancel:
    def test_cancel_releases_the_seat(self, event: Event, student: CampusUser) -> None:
        registration = orchestrator.register(event.id, student)

        orchestrator.cancel(event.id, student)

        registration.refresh_from_db()
        assert registration.status == Status.CANCELLED
        _assert_counter_consistent(event)
        assert event.current_participants == 0

    def test_cancel_twice(self, event: Event, student: CampusUser) -> None:
        orchestrator.register(event.id, student)
        orchestrator.cancel(event.id, student)

        with pytest.raises(AlreadyCancelled):
            orchestrator.cancel(event.id, student)

        _assert_counter_consistent(event)

    def test_already_cancelled_is_a_not_found(self) -> None:
        assert issubclass(AlreadyCancelled, RegistrationNotFound)

    def test_cancel_without_registration(self, event: Event, student: CampusUser) -> None:
        with pytest.raises(RegistrationNotFound) as exc_info:
            orchestrator.cancel(event.id, student)

        assert not isinstance(exc_info.value, AlreadyCancelled)

    def test_cannot_cancel_after_attending(self, event: Event, student: CampusUser, organizer: CampusUser) -> None:
        registration = orchestrator.register(event.id, student)
        orchestrator.check_in(event.id, organizer, ticket_number=registration.ticket_number)

        with pytest.raises(InvalidStateTransition):
            orchestrator.cancel(event.id, student)

        _assert_counter_consistent(event)
        assert event.current_participants == 1

    def test_cancel_frees_a_seat_for_someone_else(
        self, event_factory: EventFactory, student: CampusUser, other_student: CampusUser
    ) -> None:
        event = event_factory(max_participants=1)
        orchestrator.register(event.id, student)
        orchestrator.cancel(event.id, student)

        orchestrator.register(event.id, other_student)

        _assert_counter_consistent(event)
        assert event.current_participants == 1

    def test_reregister_after_cancel_issues_a_new_ticket(self, event: Event, student: CampusUser) -> None:
        first = orchestrator.register(event.id, student)
        orchestrator.cancel(event.id, student)

        second = orchestrator.register(event.id, student)

        assert second.pk != first.pk
        assert second.ticket_number != first.ticket_number
        assert second.check_in_token != first.check_in_token
        first.refresh_from_db()
        assert first.status == Status.CANCELLED
        _assert_counter_consistent(event)
        assert event.current_participants == 1

    def test_cancel_pending_does_not_release(self, event: Event, student: CampusUser) -> None:
        Registration.objects.create(
            event=event, user=student, status=Status.PENDING, ticket_number="TKT-P-0001", check_in_token="p-token"
        )

        orchestrator.cancel(event.id, student)

        _assert_counter_consistent(event)
        assert event.current_participants == 0


class TestCheckIn:
    @pytest.fixture
    def registration(self, event: Event, student: CampusUser) -> Registration:
        return orchestrator.register(event.id, student)

    def test_check_in_by_ticket_number(self, event: Event, organizer: CampusUser, registration: Registration) -> None:
        checked_in = orchestrator.check_in(event.id, organizer, ticket_number=registration.ticket_number)

        assert checked_in.status == Status.ATTENDED
        assert checked_in.checked_in_at is not None
        assert checked_in.checked_in_by == organizer
        _assert_counter_consistent(event)
        assert event.current_participants == 1

    def test_check_in_by_token(self, event: Event, organizer: CampusUser, registration: Registration) -> None:
        checked_in = orchestrator.check_in(event.id, organizer, check_in_token=registration.check_in_token)

        assert checked_in.pk == registration.pk
        assert checked_in.status == Status.ATTENDED

    def test_double_check_in(self, event: Event, organizer: CampusUser, registration: Registration) -> None:
        orchestrator.check_in(event.id, organizer, ticket_number=registration.ticket_number)

        with pytest.raises(AlreadyCheckedIn):
            orchestrator.check_in(event.id, organizer, check_in_token=registration.check_in_token)

        registration.refresh_from_db()
        assert registration.status == Status.ATTENDED

    @pytest.mark.parametrize("identifiers", [{}, {"ticket_number": "", "check_in_token": ""}, "both"])
    def test_exactly_one_identifier(
        self, event: Event, organizer: CampusUser, registration: Registration, identifiers: t.Any
    ) -> None:
        if identifiers == "both":
            identifiers = {
                "ticket_number": registration.ticket_number,
                "check_in_token": registration.check_in_token,
            }

        with pytest.raises(MissingIdentifier):
            orchestrator.check_in(event.id, organizer, **identifiers)

    def test_unknown_ticket(self, event: Event, organizer: CampusUser) -> None:
        with pytest.raises(RegistrationNotFound):
            orchestrator.check_in(event.id, organizer, ticket_number="TKT-NOPE-0000")

    def test_ticket_of_another_event(
        self, event_factory: EventFactory, organizer: CampusUser, registration: Registration
    ) -> None:
        other_event = event_factory()

        with pytest.raises(RegistrationNotFound):
            orchestrator.check_in(other_event.id, organizer, ticket_number=registration.ticket_number)

    def test_cancelled_registration_is_not_confirmed(
        self, event: Event, student: CampusUser, organizer: CampusUser, registration: Registration
    ) -> None:
        orchestrator.cancel(event.id, student)

        with pytest.raises(NotConfirmed):
            orchestrator.check_in(event.id, organizer, ticket_number=registration.ticket_number)

    def test_stale_check_in_loses(self, event: Event, organizer: CampusUser, registration: Registration) -> None:
        stale = Registration.objects.get(pk=registration.pk)
        orchestrator.check_in(event.id, organizer, ticket_number=registration.ticket_number)

        with patch("events.service.check_in._find_registration", return_value=stale):
            with pytest.raises(AlreadyCheckedIn):
                orchestrator.check_in(event.id, organizer, ticket_number=registration.ticket_number)


requires_row_locks = pytest.mark.skipif(
    connection.vendor != "postgresql", reason="concurrent writers need a database with row-level locking"
)


def _run_concurrently(workers: list[t.Callable[[], None]]) -> None:
    barrier = threading.Barrier(len(workers))

    def run(worker: t.Callable[[], None]) -> None:
        barrier.wait()
        try:
            worker()
        finally:
            connections.close_all()

    threads = [threading.Thread(target=run, args=(worker,)) for worker in workers]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()


@requires_row_locks
@pytest.mark.django_db(transaction=True)
class TestConcurrentRegistrations:
    def test_capacity_holds_under_contention(
        self, event_factory: EventFactory, campus_user_factory: CampusUserFactory
    ) -> None:
        event = event_factory(max_participants=5)
        users = [campus_user_factory() for _ in range(12)]
        results: list[str] = []

        def attempt(user: CampusUser) -> t.Callable[[], None]:
            def worker() -> None:
                try:
                    orchestrator.register(event.id, user)
                    results.append("ok")
                except EventFull:
                    results.append("full")

            return worker

        _run_concurrently([attempt(user) for user in users])

        assert results.count("ok") == 5
        assert results.count("full") == 7
        _assert_counter_consistent(event)

    def test_same_user_registers_once(self, event: Event, student: CampusUser) -> None:
        results: list[str] = []

        def worker() -> None:
            try:
                orchestrator.register(event.id, student)
                results.append("ok")
            except DuplicateRegistration:
                results.append("duplicate")

        _run_concurrently([worker for _ in range(6)])

        assert results.count("ok") == 1
        assert Registration.objects.filter(event=event, user=student).active().count() == 1
        _assert_counter_consistent(event)

    def test_single_check_in_wins(self, event: Event, student: CampusUser, organizer: CampusUser) -> None:
        registration = orchestrator.register(event.id, student)
        results: list[str] = []

        def worker() -> None:
            try:
                orchestrator.check_in(event.id, organizer, ticket_number=registration.ticket_number)
                results.append("ok")
            except AlreadyCheckedIn:
                results.append("already")

        _run_concurrently([worker for _ in range(6)])

        assert results.count("ok") == 1
        assert results.count("already") == 5
