import structlog
from django.db.models import QuerySet

from accounts.models import CampusUser
from events.models import Event, EventFavorite

logger = structlog.get_logger(__name__)


def add_favorite(event: Event, user: CampusUser) -> EventFavorite:
    """Bookmark an event. Adding it twice keeps the first bookmark."""
    favorite, created = EventFavorite.objects.get_or_create(event=event, user=user)
    if created:
        logger.info("event_favorited", event_id=str(event.id), user_id=str(user.id))
    return favorite


def remove_favorite(event: Event, user: CampusUser) -> None:
    """Remove a bookmark. Removing one that does not exist is a no-op."""
    deleted, _ = EventFavorite.objects.filter(event=event, user=user).delete()
    if deleted:
        logger.info("event_unfavorited", event_id=str(event.id), user_id=str(user.id))


def list_user_favorites(user: CampusUser) -> QuerySet[EventFavorite]:
    return EventFavorite.objects.with_event().filter(user=user).order_by("-created_at")
