import typing as t

from django.db import models
from django.db.models import Q

from accounts.models import CampusUser
from common.models import TimeStampedModel

from .event import Event


class RegistrationQuerySet(models.QuerySet["Registration"]):
    def with_event(self) -> t.Self:
        return self.select_related("event")

    def with_user(self) -> t.Self:
        return self.select_related("user")

    def active(self) -> t.Self:
        """Every registration except cancelled ones."""
        return self.exclude(status=Registration.Status.CANCELLED)

    def counted(self) -> t.Self:
        """Registrations that count against the event's capacity."""
        return self.filter(status__in=Registration.COUNTED_STATUSES)


class Registration(TimeStampedModel):
    class Status(models.TextChoices):
        PENDING = "pending"
        CONFIRMED = "confirmed"
        CANCELLED = "cancelled"
        ATTENDED = "attended"

    COUNTED_STATUSES: t.ClassVar[tuple[str, ...]] = (Status.CONFIRMED, Status.ATTENDED)
    TERMINAL_STATUSES: t.ClassVar[frozenset[str]] = frozenset({Status.CANCELLED, Status.ATTENDED})

    # (event, user) and ticket uniqueness are arbitrated by the database.
    validate_unique_on_save = False

    event = models.ForeignKey(Event, on_delete=models.PROTECT, related_name="registrations")
    user = models.ForeignKey(CampusUser, on_delete=models.PROTECT, related_name="registrations")
    status = models.CharField(choices=Status.choices, max_length=10, default=Status.CONFIRMED, db_index=True)
    ticket_number = models.CharField(max_length=50, unique=True, editable=False)
    check_in_token = models.CharField(max_length=500, unique=True, editable=False)
    checked_in_at = models.DateTimeField(null=True, blank=True)
    checked_in_by = models.ForeignKey(
        CampusUser, on_delete=models.SET_NULL, null=True, blank=True, related_name="performed_check_ins"
    )
    notes = models.TextField(blank=True, default="")

    objects = RegistrationQuerySet.as_manager()

    class Meta:
        constraints = [
            models.UniqueConstraint(
                fields=["event", "user"],
                condition=~Q(status="cancelled"),
                name="unique_active_registration_per_user",
            ),
        ]
        indexes = [
            models.Index(fields=["event", "status"], name="idx_registration_event_status"),
        ]
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return f"{self.ticket_number} ({self.status}) for event {self.event_id}"
