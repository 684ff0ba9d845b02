import typing as t

from django.db import models

from accounts.models import CampusUser
from common.models import TimeStampedModel

from .event import Event


class EventFavoriteQuerySet(models.QuerySet["EventFavorite"]):
    def with_event(self) -> t.Self:
        """Select the event and its organizer."""
        return self.select_related("event", "event__organizer")


class EventFavorite(TimeStampedModel):
    """An event a user bookmarked."""

    validate_unique_on_save = False

    user = models.ForeignKey(CampusUser, on_delete=models.CASCADE, related_name="event_favorites")
    event = models.ForeignKey(Event, on_delete=models.CASCADE, related_name="favorites")

    objects = EventFavoriteQuerySet.as_manager()

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=["event", "user"], name="unique_event_favorite_per_user"),
        ]
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return f"{self.user_id} favorited {self.event_id}"
