from .event import Event, EventQuerySet
from .favorite import EventFavorite, EventFavoriteQuerySet
from .feedback import EventFeedback, EventFeedbackQuerySet
from .registration import Registration, RegistrationQuerySet

__all__ = [
    "Event",
    "EventQuerySet",
    "EventFavorite",
    "EventFavoriteQuerySet",
    "EventFeedback",
    "EventFeedbackQuerySet",
    "Registration",
    "RegistrationQuerySet",
]
