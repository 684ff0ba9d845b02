# src/events/filters.py

from django.db.models import Q
from ninja import Field, FilterSchema

from events.models import Event, Registration


class EventFilterSchema(FilterSchema):
    search: str | None = Field(  # type: ignore[call-overload]
        None, q=["title__icontains", "description__icontains", "location__icontains"]
    )
    event_type: Event.EventType | None = None
    status: Event.EventStatus | None = None
    is_featured: bool | None = None
    open_only: bool | None = None

    def filter_open_only(self, open_only: bool | None) -> Q:
        """Helper to find events that accept registrations right now."""
        if open_only:
            return Q(pk__in=Event.objects.open_for_registration().values("pk"))
        return Q()


class ParticipantFilterSchema(FilterSchema):
    status: Registration.Status | None = None
