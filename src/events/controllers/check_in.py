import typing as t
from uuid import UUID

from ninja_extra import api_controller, route

from common.authentication import CampusJWTAuth
from common.controllers import UserAwareController
from common.schema import ErrorResponse
from common.throttling import CheckInThrottle
from events import models, schema
from events.service import orchestrator

from .permissions import EventManagePermission


@api_controller(
    "/events/{uuid:event_id}",
    auth=CampusJWTAuth(),
    permissions=[EventManagePermission("check_in")],
    tags=["Check-in"],
    throttle=CheckInThrottle(),
)
class CheckInController(UserAwareController):
    @route.post(
        "/check-in",
        url_name="check_in",
        response={
            200: schema.CheckInResponseSchema,
            400: ErrorResponse,
            404: ErrorResponse,
            409: ErrorResponse,
        },
    )
    def check_in(self, event_id: UUID, payload: schema.CheckInSchema) -> models.Registration:
        """Check in an attendee by ticket number or by the token from their QR code.

        Exactly one of the two identifiers must be given.
        """
        event = t.cast(models.Event, self.get_object_or_exception(models.Event, pk=event_id))
        return orchestrator.check_in(
            event.id,
            self.user(),
            ticket_number=payload.ticket_number,
            check_in_token=payload.check_in_token,
        )
