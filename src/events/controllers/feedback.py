import typing as t
from uuid import UUID

from django.db.models import QuerySet
from ninja_extra import api_controller, route
from ninja_extra.pagination import PageNumberPaginationExtra, PaginatedResponseSchema, paginate

from common.authentication import CampusJWTAuth, OptionalAuth
from common.controllers import UserAwareController
from common.schema import ErrorResponse, ValidationErrorResponse
from common.throttling import WriteThrottle
from events import models, schema
from events.service import feedback_service

from .permissions import FeedbackOwnerPermission


@api_controller("/events/{uuid:event_id}/feedback", auth=OptionalAuth(), tags=["Feedback"])
class EventFeedbackController(UserAwareController):
    def get_event(self, event_id: UUID) -> models.Event:
        return t.cast(
            models.Event,
            self.get_object_or_exception(models.Event.objects.visible_to(self.maybe_user()), pk=event_id),
        )

    @route.get("/", url_name="list_event_feedback", response=PaginatedResponseSchema[schema.FeedbackSchema])
    @paginate(PageNumberPaginationExtra, page_size=20)
    def list_feedback(self, event_id: UUID) -> QuerySet[models.EventFeedback]:
        """Feedback left for an event, newest first. Authors of anonymous feedback are hidden."""
        return feedback_service.list_event_feedback(self.get_event(event_id))

    @route.get("/stats", url_name="event_feedback_stats", response=schema.FeedbackStatsSchema)
    def get_stats(self, event_id: UUID) -> schema.FeedbackStatsSchema:
        """Average rating and the number of reviews per rating."""
        return feedback_service.get_feedback_stats(self.get_event(event_id))

    @route.post(
        "/",
        url_name="create_feedback",
        auth=CampusJWTAuth(),
        response={201: schema.FeedbackSchema, 403: ErrorResponse, 404: ErrorResponse, 409: ErrorResponse},
        throttle=WriteThrottle(),
    )
    def create_feedback(
        self, event_id: UUID, payload: schema.FeedbackCreateSchema
    ) -> tuple[int, models.EventFeedback]:
        """Rate an event you attended. Each attendee can leave one feedback per event."""
        event = self.get_event(event_id)
        return 201, feedback_service.create_feedback(event, self.user(), payload)


@api_controller("/feedback", auth=CampusJWTAuth(), tags=["Feedback"])
class FeedbackController(UserAwareController):
    def get_owned(self, feedback_id: UUID) -> models.EventFeedback:
        """Load a feedback and check the route's object permissions on it."""
        feedback = feedback_service.get_feedback(feedback_id)
        self.check_object_permissions(feedback)
        return feedback

    @route.get("/mine", url_name="list_my_feedback", response=PaginatedResponseSchema[schema.UserFeedbackSchema])
    @paginate(PageNumberPaginationExtra, page_size=20)
    def list_my_feedback(self) -> QuerySet[models.EventFeedback]:
        """Feedback the current user left, newest first."""
        return feedback_service.list_user_feedback(self.user())

    @route.patch(
        "/{uuid:feedback_id}",
        url_name="update_feedback",
        permissions=[FeedbackOwnerPermission("edit_feedback")],
        response={200: schema.FeedbackSchema, 400: ValidationErrorResponse, 404: ErrorResponse},
        throttle=WriteThrottle(),
    )
    def update_feedback(self, feedback_id: UUID, payload: schema.FeedbackEditSchema) -> models.EventFeedback:
        """Change the rating or comment of your feedback."""
        return feedback_service.update_feedback(self.get_owned(feedback_id), payload)

    @route.delete(
        "/{uuid:feedback_id}",
        url_name="delete_feedback",
        permissions=[FeedbackOwnerPermission("delete_feedback", allow_admin=True)],
        response={204: None, 404: ErrorResponse},
        throttle=WriteThrottle(),
    )
    def delete_feedback(self, feedback_id: UUID) -> tuple[int, None]:
        """Delete your feedback. Admins can delete any feedback."""
        feedback_service.delete_feedback(self.get_owned(feedback_id))
        return 204, None
