import secrets
import string
import typing as t
from uuid import UUID

import structlog
from django.db import transaction
from django.db.models import Count, Q, QuerySet
from django.utils.text import slugify

from accounts.models import CampusUser
from events.exceptions import EventHasRegistrations, EventNotFound
from events.filters import ParticipantFilterSchema
from events.models import Event, Registration
from events.schema import EventCreateSchema, EventEditSchema, EventStatsSchema
from notifications.enums import NotificationType

from . import notification_service, update_db_instance

logger = structlog.get_logger(__name__)

SLUG_SUFFIX_ALPHABET = string.ascii_lowercase + string.digits
SLUG_SUFFIX_LENGTH = 6


def generate_unique_slug(title: str) -> str:
    """Slugify the title and append a short random suffix."""
    base = slugify(title)[: 255 - SLUG_SUFFIX_LENGTH - 1] or "event"
    while True:
        suffix = "".join(secrets.choice(SLUG_SUFFIX_ALPHABET) for _ in range(SLUG_SUFFIX_LENGTH))
        slug = f"{base}-{suffix}"
        if not Event.objects.filter(slug=slug).exists():
            return slug


def get_event(event_id: UUID) -> Event:
    """Load an event with its organizer.

    Raises:
        EventNotFound: No such event.
    """
    event = Event.objects.with_organizer().filter(pk=event_id).first()
    if event is None:
        raise EventNotFound()
    return event


def create_event(organizer: CampusUser, payload: EventCreateSchema) -> Event:
    """Create a draft event owned by ``organizer``."""
    data = payload.model_dump(exclude_none=True)
    event = Event.objects.create(organizer=organizer, slug=generate_unique_slug(payload.title), **data)
    logger.info("event_created", event_id=str(event.id), organizer_id=str(organizer.id), slug=event.slug)
    return event


@transaction.atomic
def update_event(event: Event, payload: EventEditSchema) -> Event:
    """Apply a partial update.

    A new title gets a new slug. When a published event changes its time,
    place or deadline, every registrant is notified.
    """
    data = payload.model_dump(exclude_unset=True)
    if not data:
        return event
    if "title" in data and data["title"] and data["title"] != event.title:
        data["slug"] = generate_unique_slug(data["title"])

    before = {field: getattr(event, field) for field in notification_service.MATERIAL_FIELDS if field in data}
    event = update_db_instance(event, **data)

    changed = notification_service.changed_material_fields(before, event)
    logger.info("event_updated", event_id=str(event.id), fields=sorted(data), material_changes=changed)
    if changed and event.status == Event.EventStatus.APPROVED:
        extra: dict[str, t.Any] = {"changed_fields": changed, "event_location": event.location}
        notification_service.notify_event_participants(event, NotificationType.EVENT_UPDATE, extra)
    return event


def set_featured(event: Event, is_featured: bool) -> Event:
    """Feature or unfeature an event on the listings."""
    event = update_db_instance(event, is_featured=is_featured)
    logger.info("event_featured_changed", event_id=str(event.id), is_featured=is_featured)
    return event


@transaction.atomic
def delete_event(event: Event) -> None:
    """Delete an event that nobody ever registered for.

    Raises:
        EventHasRegistrations: At least one registration (in any status) references the event.
    """
    if Registration.objects.filter(event=event).exists():
        raise EventHasRegistrations()
    event_id = str(event.id)
    event.delete()
    logger.info("event_deleted", event_id=event_id)


def get_event_stats(event: Event) -> EventStatsSchema:
    counts = Registration.objects.filter(event=event).aggregate(
        total=Count("id"),
        pending=Count("id", filter=Q(status=Registration.Status.PENDING)),
        confirmed=Count("id", filter=Q(status=Registration.Status.CONFIRMED)),
        attended=Count("id", filter=Q(status=Registration.Status.ATTENDED)),
        cancelled=Count("id", filter=Q(status=Registration.Status.CANCELLED)),
    )
    event.refresh_from_db(fields=["current_participants", "max_participants"])
    return EventStatsSchema(
        event_id=event.id,
        max_participants=event.max_participants,
        current_participants=event.current_participants,
        available_spots=event.available_spots,
        total_registrations=counts["total"],
        pending=counts["pending"],
        confirmed=counts["confirmed"],
        attended=counts["attended"],
        cancelled=counts["cancelled"],
    )


def list_participants(event: Event, filters: ParticipantFilterSchema | None = None) -> QuerySet[Registration]:
    qs = Registration.objects.with_user().filter(event=event).order_by("created_at")
    if filters is not None:
        qs = filters.filter(qs)
    return qs


def get_user_registration(event_id: UUID, user: CampusUser) -> Registration | None:
    """The user's current registration for the event: the active one, else the latest cancelled one."""
    qs = Registration.objects.filter(event_id=event_id, user=user)
    return qs.active().first() or qs.order_by("-created_at").first()


def list_user_registrations(user: CampusUser) -> QuerySet[Registration]:
    return Registration.objects.with_event().filter(user=user).order_by("-created_at")
