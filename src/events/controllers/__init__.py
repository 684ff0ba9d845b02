"""Event controllers.

Order matters: routes with fixed segments are registered before the ones
matching on an id.
"""

from .admin import EventReviewController
from .check_in import CheckInController
from .events import EventController
from .favorites import FavoriteController
from .feedback import EventFeedbackController, FeedbackController
from .registrations import MyRegistrationsController, RegistrationController

EVENT_CONTROLLERS: list[type] = [
    FavoriteController,
    EventController,
    RegistrationController,
    CheckInController,
    MyRegistrationsController,
    EventFeedbackController,
    FeedbackController,
    EventReviewController,
]

__all__ = [
    "EventController",
    "FavoriteController",
    "RegistrationController",
    "CheckInController",
    "MyRegistrationsController",
    "EventFeedbackController",
    "FeedbackController",
    "EventReviewController",
    "EVENT_CONTROLLERS",
]
