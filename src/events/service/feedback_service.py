"""Event feedback.

Only attendees (registrations in ``attended`` status) can rate an event, once.
Anonymous feedback is stored with its author but never shown to other users.
"""

from uuid import UUID

import structlog
from django.db import IntegrityError, transaction
from django.db.models import Avg, Count, QuerySet

from accounts.models import CampusUser
from events.exceptions import DuplicateFeedback, FeedbackNotAllowed, FeedbackNotFound
from events.models import Event, EventFeedback, Registration
from events.schema import FeedbackCreateSchema, FeedbackEditSchema, FeedbackStatsSchema

from . import update_db_instance

logger = structlog.get_logger(__name__)


def user_attended_event(user: CampusUser, event: Event) -> bool:
    return Registration.objects.filter(event=event, user=user, status=Registration.Status.ATTENDED).exists()


def create_feedback(event: Event, user: CampusUser, payload: FeedbackCreateSchema) -> EventFeedback:
    """Leave feedback for an attended event.

    Raises:
        FeedbackNotAllowed: The user was not checked in at the event.
        DuplicateFeedback: The user already left feedback for it.
    """
    if not user_attended_event(user, event):
        raise FeedbackNotAllowed()
    if EventFeedback.objects.filter(event=event, user=user).exists():
        raise DuplicateFeedback()

    try:
        with transaction.atomic():
            feedback = EventFeedback.objects.create(event=event, user=user, **payload.model_dump())
    except IntegrityError as e:
        raise DuplicateFeedback() from e

    logger.info("feedback_created", feedback_id=str(feedback.id), event_id=str(event.id), rating=feedback.rating)
    return feedback


def get_feedback(feedback_id: UUID) -> EventFeedback:
    """Raises FeedbackNotFound when there is no such feedback."""
    feedback = EventFeedback.objects.with_user().with_event().filter(pk=feedback_id).first()
    if feedback is None:
        raise FeedbackNotFound()
    return feedback


def update_feedback(feedback: EventFeedback, payload: FeedbackEditSchema) -> EventFeedback:
    data = payload.model_dump(exclude_unset=True, exclude_none=True)
    feedback = update_db_instance(feedback, **data)
    logger.info("feedback_updated", feedback_id=str(feedback.id), fields=sorted(data))
    return feedback


def delete_feedback(feedback: EventFeedback) -> None:
    feedback_id = str(feedback.id)
    feedback.delete()
    logger.info("feedback_deleted", feedback_id=feedback_id)


def list_event_feedback(event: Event) -> QuerySet[EventFeedback]:
    return EventFeedback.objects.with_user().filter(event=event).order_by("-created_at")


def list_user_feedback(user: CampusUser) -> QuerySet[EventFeedback]:
    return EventFeedback.objects.with_user().with_event().filter(user=user).order_by("-created_at")


def get_feedback_stats(event: Event) -> FeedbackStatsSchema:
    """Average rating, number of reviews and how many reviews gave each rating."""
    qs = EventFeedback.objects.filter(event=event)
    summary = qs.aggregate(average=Avg("rating"), total=Count("id"))
    distribution = {rating: 0 for rating in range(EventFeedback.MIN_RATING, EventFeedback.MAX_RATING + 1)}
    for row in qs.values("rating").annotate(count=Count("id")).order_by("rating"):
        distribution[row["rating"]] = row["count"]
    average = summary["average"]
    return FeedbackStatsSchema(
        event_id=event.id,
        average_rating=round(float(average), 2) if average is not None else None,
        total_reviews=summary["total"],
        rating_distribution=distribution,
    )
