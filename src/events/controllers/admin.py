import typing as t
from uuid import UUID

from django.db.models import QuerySet
from ninja_extra import api_controller, route
from ninja_extra.pagination import PageNumberPaginationExtra, PaginatedResponseSchema, paginate

from accounts.models import CampusUser
from common.authentication import RoleJWTAuth
from common.controllers import UserAwareController
from common.schema import ErrorResponse
from common.throttling import WriteThrottle
from events import models, schema
from events.service import capacity_ledger, event_approval, event_service


@api_controller("/admin/events", auth=RoleJWTAuth(min_role=CampusUser.Role.ADMIN), tags=["Event Review"])
class EventReviewController(UserAwareController):
    """Admin endpoints for the approval queue and counter maintenance."""

    @route.get("/pending", url_name="list_pending_events", response=PaginatedResponseSchema[schema.EventSchema])
    @paginate(PageNumberPaginationExtra, page_size=20)
    def list_pending(self) -> QuerySet[models.Event]:
        """Events waiting for review, oldest submission first."""
        return t.cast(QuerySet[models.Event], models.Event.objects.with_organizer().pending_review())

    @route.post(
        "/{uuid:event_id}/review",
        url_name="review_event",
        response={200: schema.EventSchema, 400: ErrorResponse, 404: ErrorResponse, 409: ErrorResponse},
        throttle=WriteThrottle(),
    )
    def review(self, event_id: UUID, payload: schema.EventReviewSchema) -> models.Event:
        """Approve or reject a pending event. Rejections need a reason."""
        event = event_service.get_event(event_id)
        return event_approval.review_event(event, self.user(), payload.decision, payload.reason)

    @route.post(
        "/{uuid:event_id}/reconcile",
        url_name="reconcile_event",
        response={200: schema.ReconcileResponseSchema, 404: ErrorResponse},
        throttle=WriteThrottle(),
    )
    def reconcile(self, event_id: UUID) -> schema.ReconcileResponseSchema:
        """Recompute the participant counter from the registrations."""
        count = capacity_ledger.reconcile(event_id)
        return schema.ReconcileResponseSchema(event_id=event_id, current_participants=count)

    @route.patch(
        "/{uuid:event_id}/featured",
        url_name="set_event_featured",
        response={200: schema.EventSchema, 404: ErrorResponse},
        throttle=WriteThrottle(),
    )
    def set_featured(self, event_id: UUID, payload: schema.EventFeaturedSchema) -> models.Event:
        """Feature an event on the front page, or take it off."""
        event = event_service.get_event(event_id)
        return event_service.set_featured(event, payload.is_featured)
