from uuid import UUID

from django.db.models import QuerySet
from ninja_extra import api_controller, route
from ninja_extra.pagination import PageNumberPaginationExtra, PaginatedResponseSchema, paginate

from common.authentication import CampusJWTAuth
from common.controllers import UserAwareController
from common.schema import ErrorResponse
from common.throttling import RegistrationThrottle
from events import models, schema
from events.exceptions import RegistrationNotFound
from events.service import event_service, orchestrator


@api_controller("/events", auth=CampusJWTAuth(), tags=["Registrations"])
class RegistrationController(UserAwareController):
    @route.post(
        "/{uuid:event_id}/registration",
        url_name="create_registration",
        response={201: schema.RegistrationSchema, 404: ErrorResponse, 409: ErrorResponse, 503: ErrorResponse},
        throttle=RegistrationThrottle(),
    )
    def register(self, event_id: UUID, payload: schema.RegistrationCreateSchema) -> tuple[int, models.Registration]:
        """Register the current user for an event and issue a ticket.

        Fails when the event is not open, is full, or the user already holds an active registration.
        """
        return 201, orchestrator.register(event_id, self.user(), payload.notes)

    @route.delete(
        "/{uuid:event_id}/registration",
        url_name="cancel_registration",
        response={204: None, 404: ErrorResponse, 409: ErrorResponse},
        throttle=RegistrationThrottle(),
    )
    def cancel(self, event_id: UUID) -> tuple[int, None]:
        """Cancel the current user's registration and free the spot."""
        orchestrator.cancel(event_id, self.user())
        return 204, None

    @route.get(
        "/{uuid:event_id}/registration",
        url_name="get_my_registration",
        response={200: schema.RegistrationSchema, 404: ErrorResponse},
    )
    def get_registration(self, event_id: UUID) -> models.Registration:
        """The current user's registration for the event, including the ticket."""
        registration = event_service.get_user_registration(event_id, self.user())
        if registration is None:
            raise RegistrationNotFound()
        return registration


@api_controller("/me", auth=CampusJWTAuth(), tags=["Registrations"])
class MyRegistrationsController(UserAwareController):
    @route.get(
        "/registrations",
        url_name="list_my_registrations",
        response=PaginatedResponseSchema[schema.UserRegistrationSchema],
    )
    @paginate(PageNumberPaginationExtra, page_size=20)
    def list_registrations(self) -> QuerySet[models.Registration]:
        """All registrations of the current user, newest first."""
        return event_service.list_user_registrations(self.user())
