import typing as t
from uuid import UUID

from django.db.models import QuerySet
from ninja_extra import api_controller, route
from ninja_extra.pagination import PageNumberPaginationExtra, PaginatedResponseSchema, paginate

from common.authentication import CampusJWTAuth
from common.controllers import UserAwareController
from common.schema import ErrorResponse
from common.throttling import WriteThrottle
from events import models, schema
from events.service import favorite_service


@api_controller("/events", auth=CampusJWTAuth(), tags=["Favorites"])
class FavoriteController(UserAwareController):
    def get_event(self, event_id: UUID) -> models.Event:
        """An event the current user can see."""
        return t.cast(
            models.Event,
            self.get_object_or_exception(models.Event.objects.visible_to(self.user()), pk=event_id),
        )

    @route.get("/favorites", url_name="list_favorites", response=PaginatedResponseSchema[schema.FavoriteSchema])
    @paginate(PageNumberPaginationExtra, page_size=20)
    def list_favorites(self) -> QuerySet[models.EventFavorite]:
        """The current user's bookmarked events, most recently added first."""
        return favorite_service.list_user_favorites(self.user())

    @route.post(
        "/{uuid:event_id}/favorite",
        url_name="add_favorite",
        response={200: schema.FavoriteSchema, 404: ErrorResponse},
        throttle=WriteThrottle(),
    )
    def add_favorite(self, event_id: UUID) -> models.EventFavorite:
        """Bookmark an event. Bookmarking it again is harmless."""
        event = self.get_event(event_id)
        favorite = favorite_service.add_favorite(event, self.user())
        favorite.event = event
        return favorite

    @route.delete(
        "/{uuid:event_id}/favorite",
        url_name="remove_favorite",
        response={204: None, 404: ErrorResponse},
        throttle=WriteThrottle(),
    )
    def remove_favorite(self, event_id: UUID) -> tuple[int, None]:
        """Remove an event from the bookmarks."""
        favorite_service.remove_favorite(self.get_event(event_id), self.user())
        return 204, None
