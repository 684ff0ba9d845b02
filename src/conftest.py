"""
This conftest.py provides the fixtures shared by every app's tests.
"""

import secrets
import string
import typing as t
from datetime import datetime, time, timedelta

import faker
import pytest
from django.core.cache import cache
from django.test.client import Client
from django.utils import timezone
from ninja_jwt.tokens import RefreshToken

from accounts.models import CampusUser
from events.models import Event


@pytest.fixture(autouse=True)
def enable_celery_eager_mode(settings: t.Any) -> None:
    """Enable Celery eager mode for tests so tasks execute synchronously.

    This ensures that Celery tasks run immediately in the same process,
    allowing tests to verify their side effects without async complications.
    """
    settings.CELERY_TASK_ALWAYS_EAGER = True
    settings.CELERY_TASK_EAGER_PROPAGATES = True


@pytest.fixture(autouse=True)
def clear_cache() -> None:
    """Throttling counters live in the cache; start every test with a clean one."""
    cache.clear()


class CampusUserFactory:
    """Factory for creating CampusUser instances for testing."""

    fake = faker.Faker()

    def create_user(self, **kwargs: t.Any) -> CampusUser:
        username = kwargs.pop("username", "".join(secrets.choice(string.ascii_lowercase) for _ in range(10)))
        email = kwargs.pop("email", f"{username}@campus.test")
        password = kwargs.pop("password", "password")
        first_name = kwargs.pop("first_name", self.fake.first_name())
        last_name = kwargs.pop("last_name", self.fake.last_name())
        return CampusUser.objects.create_user(
            username=username,
            email=email,
            password=password,
            first_name=first_name,
            last_name=last_name,
            **kwargs,
        )

    def __call__(self, **kwargs: t.Any) -> CampusUser:
        return self.create_user(**kwargs)


@pytest.fixture
def campus_user_factory() -> CampusUserFactory:
    return CampusUserFactory()


@pytest.fixture
def student(campus_user_factory: CampusUserFactory) -> CampusUser:
    return campus_user_factory(role=CampusUser.Role.STUDENT)


@pytest.fixture
def other_student(campus_user_factory: CampusUserFactory) -> CampusUser:
    return campus_user_factory(role=CampusUser.Role.STUDENT)


@pytest.fixture
def organizer(campus_user_factory: CampusUserFactory) -> CampusUser:
    return campus_user_factory(role=CampusUser.Role.ORGANIZER)


@pytest.fixture
def other_organizer(campus_user_factory: CampusUserFactory) -> CampusUser:
    return campus_user_factory(role=CampusUser.Role.ORGANIZER)


@pytest.fixture
def campus_admin(campus_user_factory: CampusUserFactory) -> CampusUser:
    return campus_user_factory(role=CampusUser.Role.ADMIN)


@pytest.fixture
def next_week() -> datetime:
    today = timezone.now()
    same_time_next_week = today + timedelta(days=7)
    noon = time(hour=12, minute=0)
    return timezone.make_aware(
        datetime.combine(same_time_next_week.date(), noon),
        timezone.get_current_timezone(),
    )


class EventFactory:
    """Factory for events. Defaults to an approved event next week that accepts registrations."""

    def __init__(self, organizer: CampusUser, start: datetime) -> None:
        self.organizer = organizer
        self.start = start
        self.counter = 0

    def __call__(self, **kwargs: t.Any) -> Event:
        self.counter += 1
        start = kwargs.pop("start", self.start)
        kwargs.setdefault("organizer", self.organizer)
        kwargs.setdefault("title", f"Campus Event {self.counter}")
        kwargs.setdefault("slug", f"campus-event-{self.counter}-{secrets.token_hex(3)}")
        kwargs.setdefault("description", "An event on campus for everybody who wants to join.")
        kwargs.setdefault("location", "Main Hall")
        kwargs.setdefault("status", Event.EventStatus.APPROVED)
        kwargs.setdefault("end", start + timedelta(hours=2))
        return Event.objects.create(start=start, **kwargs)


@pytest.fixture
def event_factory(organizer: CampusUser, next_week: datetime) -> EventFactory:
    return EventFactory(organizer, next_week)


@pytest.fixture
def event(event_factory: EventFactory) -> Event:
    """An approved event with room for ten participants."""
    return event_factory(max_participants=10)


@pytest.fixture
def unlimited_event(event_factory: EventFactory) -> Event:
    return event_factory(max_participants=None)


@pytest.fixture
def draft_event(event_factory: EventFactory) -> Event:
    return event_factory(status=Event.EventStatus.DRAFT, max_participants=10)


def _client_for(user: CampusUser) -> Client:
    refresh = RefreshToken.for_user(user)
    return Client(HTTP_AUTHORIZATION=f"Bearer {str(refresh.access_token)}")  # type: ignore[attr-defined]


@pytest.fixture
def student_client(student: CampusUser) -> Client:
    """API client for a student."""
    return _client_for(student)


@pytest.fixture
def other_student_client(other_student: CampusUser) -> Client:
    return _client_for(other_student)


@pytest.fixture
def organizer_client(organizer: CampusUser) -> Client:
    """API client for the organizer of the event fixtures."""
    return _client_for(organizer)


@pytest.fixture
def other_organizer_client(other_organizer: CampusUser) -> Client:
    """API client for an organizer who does not own the event fixtures."""
    return _client_for(other_organizer)


@pytest.fixture
def campus_admin_client(campus_admin: CampusUser) -> Client:
    """API client for a campus admin."""
    return _client_for(campus_admin)
