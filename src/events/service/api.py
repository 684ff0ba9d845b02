"""Id-based entry points into the event lifecycle.

These are the in-process calls other parts of the system (and the tests) use
when they only hold identifiers. Authorization that depends on who is acting
(organizer of the event, admin) is checked here.
"""

from uuid import UUID

from django.core.exceptions import PermissionDenied
from django.shortcuts import get_object_or_404

from accounts.models import CampusUser
from events.models import Event, Registration

from . import event_approval, event_service, orchestrator
from .event_approval import ReviewDecision


def _get_user(user_id: UUID) -> CampusUser:
    return get_object_or_404(CampusUser, pk=user_id, is_active=True)


def can_manage_event(user: CampusUser, event: Event) -> bool:
    """Organizers manage their own events; admins manage every event."""
    return event.organizer_id == user.id or user.is_admin


def create_registration(event_id: UUID, user_id: UUID, notes: str | None = None) -> Registration:
    return orchestrator.register(event_id, _get_user(user_id), notes)


def cancel_registration(event_id: UUID, user_id: UUID) -> None:
    orchestrator.cancel(event_id, _get_user(user_id))


def check_in(
    event_id: UUID,
    actor_id: UUID,
    *,
    ticket_number: str | None = None,
    check_in_token: str | None = None,
) -> Registration:
    actor = _get_user(actor_id)
    event = event_service.get_event(event_id)
    if not can_manage_event(actor, event):
        raise PermissionDenied("Only the organizer or an admin can check in participants.")
    return orchestrator.check_in(event.id, actor, ticket_number=ticket_number, check_in_token=check_in_token)


def submit_event(event_id: UUID, organizer_id: UUID) -> Event:
    organizer = _get_user(organizer_id)
    event = event_service.get_event(event_id)
    if not can_manage_event(organizer, event):
        raise PermissionDenied("Only the organizer can submit this event.")
    return event_approval.submit_event(event)


def review_event(
    event_id: UUID, admin_id: UUID, decision: ReviewDecision | str, reason: str | None = None
) -> Event:
    admin = _get_user(admin_id)
    if not admin.is_admin:
        raise PermissionDenied("Only admins can review events.")
    event = event_service.get_event(event_id)
    return event_approval.review_event(event, admin, ReviewDecision(decision), reason)
