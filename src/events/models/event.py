import typing as t
from datetime import datetime

from django.contrib.auth.models import AnonymousUser
from django.core.exceptions import ValidationError as DjangoValidationError
from django.core.validators import MinValueValidator
from django.db import models
from django.db.models import F, Q
from django.utils import timezone

from accounts.models import CampusUser
from common.models import TimeStampedModel


class EventQuerySet(models.QuerySet["Event"]):
    def with_organizer(self) -> t.Self:
        """Select the organizer as well."""
        return self.select_related("organizer")

    def visible_to(self, user: CampusUser | AnonymousUser) -> t.Self:
        """Published events for everybody; drafts and reviews only for their organizer and admins."""
        published = Q(status__in=Event.PUBLISHED_STATUSES)
        if user.is_anonymous:
            return self.filter(published)
        if user.is_admin:  # type: ignore[union-attr]
            return self.all()
        return self.filter(published | Q(organizer=user))

    def pending_review(self) -> t.Self:
        """Events waiting for an admin decision, oldest submission first."""
        return self.filter(status=Event.EventStatus.PENDING).order_by("updated_at")

    def open_for_registration(self, now: datetime | None = None) -> t.Self:
        """Events that currently accept registrations."""
        now = now or timezone.now()
        return self.filter(
            Q(registration_deadline__isnull=True) | Q(registration_deadline__gt=now),
            status=Event.EventStatus.APPROVED,
            end__gt=now,
        )

    def finished(self, now: datetime | None = None) -> t.Self:
        """Approved events whose end has passed."""
        return self.filter(status=Event.EventStatus.APPROVED, end__lte=now or timezone.now())


class Event(TimeStampedModel):
    class EventType(models.TextChoices):
        ACADEMIC = "academic"
        SOCIAL = "social"
        CAREER = "career"
        SPORTS = "sports"
        VOLUNTEERING = "volunteering"
        CULTURAL = "cultural"
        WORKSHOP = "workshop"
        CONFERENCE = "conference"
        OTHER = "other"

    class EventStatus(models.TextChoices):
        DRAFT = "draft"
        PENDING = "pending"
        APPROVED = "approved"
        REJECTED = "rejected"
        CANCELLED = "cancelled"
        COMPLETED = "completed"

    PUBLISHED_STATUSES: t.ClassVar[frozenset[str]] = frozenset(
        {EventStatus.APPROVED, EventStatus.CANCELLED, EventStatus.COMPLETED}
    )

    organizer = models.ForeignKey(CampusUser, on_delete=models.PROTECT, related_name="organized_events")
    title = models.CharField(max_length=255, db_index=True)
    slug = models.SlugField(max_length=255, unique=True)
    description = models.TextField()
    short_description = models.CharField(max_length=500, blank=True, default="")
    event_type = models.CharField(choices=EventType.choices, max_length=20, db_index=True, default=EventType.OTHER)
    status = models.CharField(choices=EventStatus.choices, max_length=10, default=EventStatus.DRAFT, db_index=True)

    start = models.DateTimeField(db_index=True)
    end = models.DateTimeField(db_index=True)
    registration_deadline = models.DateTimeField(null=True, blank=True)

    location = models.CharField(max_length=255)
    address = models.CharField(max_length=500, blank=True, default="")
    is_online = models.BooleanField(default=False)
    online_link = models.URLField(max_length=500, blank=True, default="")

    max_participants = models.PositiveIntegerField(null=True, blank=True, validators=[MinValueValidator(1)])
    current_participants = models.PositiveIntegerField(default=0, editable=False)

    tags = models.JSONField(default=list, blank=True)
    requirements = models.TextField(blank=True, default="")
    target_audience = models.CharField(max_length=255, blank=True, default="")
    is_featured = models.BooleanField(default=False)

    approved_at = models.DateTimeField(null=True, blank=True)
    approved_by = models.ForeignKey(
        CampusUser, on_delete=models.SET_NULL, null=True, blank=True, related_name="approved_events"
    )
    rejection_reason = models.TextField(blank=True, default="")

    objects = EventQuerySet.as_manager()

    class Meta:
        constraints = [
            models.CheckConstraint(condition=Q(end__gt=F("start")), name="event_end_after_start"),
            models.CheckConstraint(
                condition=Q(registration_deadline__isnull=True) | Q(registration_deadline__lt=F("start")),
                name="event_deadline_before_start",
            ),
            models.CheckConstraint(
                condition=Q(max_participants__isnull=True) | Q(max_participants__gte=1),
                name="event_max_participants_positive",
            ),
            models.CheckConstraint(condition=Q(current_participants__gte=0), name="event_participants_non_negative"),
            models.CheckConstraint(
                condition=Q(max_participants__isnull=True) | Q(current_participants__lte=F("max_participants")),
                name="event_participants_within_capacity",
            ),
        ]
        indexes = [
            models.Index(fields=["status", "start"], name="idx_event_status_start"),
            models.Index(fields=["organizer", "status"], name="idx_event_organizer_status"),
        ]
        ordering = ["start"]

    def __str__(self) -> str:
        return f"{self.title} ({self.status})"

    def clean(self) -> None:
        """Validate the time window and the capacity counter."""
        super().clean()
        if self.start and self.end and self.end <= self.start:
            raise DjangoValidationError({"end": "End date must be after start date."})
        if self.registration_deadline and self.start and self.registration_deadline >= self.start:
            raise DjangoValidationError({"registration_deadline": "Registration deadline must be before start date."})
        if self.max_participants is not None and self.current_participants > self.max_participants:
            raise DjangoValidationError(
                {"max_participants": "Maximum participants cannot be lower than the current participant count."}
            )
        if self.is_online and not self.online_link:
            raise DjangoValidationError({"online_link": "Online events need an online link."})

    @property
    def available_spots(self) -> int | None:
        if self.max_participants is None:
            return None
        return max(self.max_participants - self.current_participants, 0)
