import typing as t
from uuid import UUID

from django.db.models import QuerySet
from ninja import Query
from ninja_extra import api_controller, route
from ninja_extra.pagination import PageNumberPaginationExtra, PaginatedResponseSchema, paginate

from accounts.models import CampusUser
from common.authentication import CampusJWTAuth, OptionalAuth, RoleJWTAuth
from common.controllers import UserAwareController
from common.schema import ErrorResponse, ValidationErrorResponse
from common.throttling import UserDefaultThrottle, WriteThrottle
from events import filters, models, schema
from events.service import event_approval, event_service

from .permissions import EventManagePermission


@api_controller("/events", auth=OptionalAuth(), tags=["Events"])
class EventController(UserAwareController):
    def get_queryset(self) -> models.EventQuerySet:
        """Events the current user is allowed to see."""
        return models.Event.objects.with_organizer().visible_to(self.maybe_user())

    def get_one(self, event_id: UUID) -> models.Event:
        """Wrapper helper."""
        return t.cast(models.Event, self.get_object_or_exception(self.get_queryset(), pk=event_id))

    def get_managed(self, event_id: UUID) -> models.Event:
        """Load an event and check the route's object permissions on it."""
        return t.cast(
            models.Event, self.get_object_or_exception(models.Event.objects.with_organizer(), pk=event_id)
        )

    @route.get("/", url_name="list_events", response=PaginatedResponseSchema[schema.EventSchema])
    @paginate(PageNumberPaginationExtra, page_size=20)
    def list_events(
        self,
        params: filters.EventFilterSchema = Query(...),  # type: ignore[type-arg]
        order_by: t.Literal["start", "-start", "created_at", "-created_at"] = "start",
    ) -> QuerySet[models.Event]:
        """Browse events.

        Anonymous users and students see published events; organizers also see their own
        drafts, and admins see everything.
        """
        return params.filter(self.get_queryset()).order_by(order_by)

    @route.get(
        "/mine",
        url_name="list_my_events",
        auth=RoleJWTAuth(min_role=CampusUser.Role.ORGANIZER),
        response=PaginatedResponseSchema[schema.EventSchema],
    )
    @paginate(PageNumberPaginationExtra, page_size=20)
    def list_my_events(
        self,
        params: filters.EventFilterSchema = Query(...),  # type: ignore[type-arg]
    ) -> QuerySet[models.Event]:
        """Events organized by the current user, in any status."""
        return params.filter(models.Event.objects.with_organizer().filter(organizer=self.user()))

    @route.get("/slug/{slug}", url_name="get_event_by_slug", response=schema.EventSchema)
    def get_event_by_slug(self, slug: str) -> models.Event:
        """Get an event by its slug."""
        return t.cast(models.Event, self.get_object_or_exception(self.get_queryset(), slug=slug))

    @route.get("/{uuid:event_id}", url_name="get_event", response=schema.EventSchema)
    def get_event(self, event_id: UUID) -> models.Event:
        """Get an event by id."""
        return self.get_one(event_id)

    @route.post(
        "/",
        url_name="create_event",
        auth=RoleJWTAuth(min_role=CampusUser.Role.ORGANIZER),
        response={201: schema.EventSchema, 400: ValidationErrorResponse},
        throttle=WriteThrottle(),
    )
    def create_event(self, payload: schema.EventCreateSchema) -> tuple[int, models.Event]:
        """Create a draft event. It stays invisible to students until it is approved."""
        return 201, event_service.create_event(self.user(), payload)

    @route.patch(
        "/{uuid:event_id}",
        url_name="update_event",
        auth=CampusJWTAuth(),
        permissions=[EventManagePermission("edit_event")],
        response={200: schema.EventSchema, 400: ValidationErrorResponse},
        throttle=WriteThrottle(),
    )
    def update_event(self, event_id: UUID, payload: schema.EventEditSchema) -> models.Event:
        """Update an event. Registrants are notified when the time or place of a published event changes."""
        event = self.get_managed(event_id)
        return event_service.update_event(event, payload)

    @route.delete(
        "/{uuid:event_id}",
        url_name="delete_event",
        auth=CampusJWTAuth(),
        permissions=[EventManagePermission("delete_event")],
        response={204: None, 409: ErrorResponse},
        throttle=WriteThrottle(),
    )
    def delete_event(self, event_id: UUID) -> tuple[int, None]:
        """Delete an event nobody registered for. Otherwise cancel it instead."""
        event_service.delete_event(self.get_managed(event_id))
        return 204, None

    @route.post(
        "/{uuid:event_id}/submit",
        url_name="submit_event",
        auth=CampusJWTAuth(),
        permissions=[EventManagePermission("submit_event")],
        response={200: schema.EventSchema, 409: ErrorResponse},
        throttle=WriteThrottle(),
    )
    def submit_event(self, event_id: UUID) -> models.Event:
        """Submit a draft for admin review."""
        return event_approval.submit_event(self.get_managed(event_id))

    @route.post(
        "/{uuid:event_id}/cancel",
        url_name="cancel_event",
        auth=CampusJWTAuth(),
        permissions=[EventManagePermission("cancel_event")],
        response={200: schema.EventSchema, 409: ErrorResponse},
        throttle=WriteThrottle(),
    )
    def cancel_event(self, event_id: UUID, payload: schema.EventCancelSchema) -> models.Event:
        """Cancel an event. Registrants of a published event are notified."""
        return event_approval.cancel_event(self.get_managed(event_id), payload.reason)

    @route.get(
        "/{uuid:event_id}/stats",
        url_name="event_stats",
        auth=CampusJWTAuth(),
        permissions=[EventManagePermission("view_stats")],
        response=schema.EventStatsSchema,
        throttle=UserDefaultThrottle(),
    )
    def get_stats(self, event_id: UUID) -> schema.EventStatsSchema:
        """Registration counts per status and remaining capacity."""
        return event_service.get_event_stats(self.get_managed(event_id))

    @route.get(
        "/{uuid:event_id}/participants",
        url_name="list_participants",
        auth=CampusJWTAuth(),
        permissions=[EventManagePermission("view_participants")],
        response=PaginatedResponseSchema[schema.ParticipantSchema],
        throttle=UserDefaultThrottle(),
    )
    @paginate(PageNumberPaginationExtra, page_size=50)
    def list_participants(
        self,
        event_id: UUID,
        params: filters.ParticipantFilterSchema = Query(...),  # type: ignore[type-arg]
    ) -> QuerySet[models.Registration]:
        """List the registrations of an event, optionally filtered by status."""
        return event_service.list_participants(self.get_managed(event_id), params)
