import typing as t

from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models
from django.db.models import Q

from accounts.models import CampusUser
from common.models import TimeStampedModel

from .event import Event


class EventFeedbackQuerySet(models.QuerySet["EventFeedback"]):
    def with_user(self) -> t.Self:
        return self.select_related("user")

    def with_event(self) -> t.Self:
        return self.select_related("event")


class EventFeedback(TimeStampedModel):
    """A rating left by someone who attended the event. One per user and event."""

    MIN_RATING: t.ClassVar[int] = 1
    MAX_RATING: t.ClassVar[int] = 5

    # One feedback per (event, user) is arbitrated by the database.
    validate_unique_on_save = False

    event = models.ForeignKey(Event, on_delete=models.CASCADE, related_name="feedback")
    user = models.ForeignKey(CampusUser, on_delete=models.CASCADE, related_name="event_feedback")
    rating = models.PositiveSmallIntegerField(validators=[MinValueValidator(MIN_RATING), MaxValueValidator(MAX_RATING)])
    comment = models.TextField(blank=True, default="")
    is_anonymous = models.BooleanField(default=False, help_text="Hide the author from other users")

    objects = EventFeedbackQuerySet.as_manager()

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=["event", "user"], name="unique_feedback_per_user"),
            models.CheckConstraint(condition=Q(rating__gte=1, rating__lte=5), name="feedback_rating_range"),
        ]
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return f"{self.rating}/5 for event {self.event_id}"
