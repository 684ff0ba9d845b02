"""Domain errors raised by the event lifecycle and registration services.

Every error carries a stable machine-readable ``code`` and the HTTP status the
API layer answers with. Business rejections (full event, duplicate booking,
wrong state) are expected outcomes and are never logged as failures.
"""

import typing as t
from enum import StrEnum

from django.utils.translation import gettext_lazy as _


class ErrorCode(StrEnum):
    INVALID_STATE_TRANSITION = "invalid_state_transition"
    EVENT_NOT_OPEN_FOR_REGISTRATION = "event_not_open_for_registration"
    EVENT_FULL = "event_full"
    DUPLICATE_REGISTRATION = "duplicate_registration"
    REGISTRATION_NOT_FOUND = "registration_not_found"
    ALREADY_CANCELLED = "already_cancelled"
    NOT_CONFIRMED = "not_confirmed"
    ALREADY_CHECKED_IN = "already_checked_in"
    MISSING_IDENTIFIER = "missing_identifier"
    DUPLICATE_KEY = "duplicate_key"
    EVENT_NOT_FOUND = "event_not_found"
    MISSING_REJECTION_REASON = "missing_rejection_reason"
    EVENT_HAS_REGISTRATIONS = "event_has_registrations"
    FEEDBACK_NOT_ALLOWED = "feedback_not_allowed"
    DUPLICATE_FEEDBACK = "duplicate_feedback"
    FEEDBACK_NOT_FOUND = "feedback_not_found"


class EventDomainError(Exception):
    """Base class for all event domain errors."""

    code: t.ClassVar[ErrorCode]
    status_code: t.ClassVar[int] = 400
    default_detail: t.ClassVar[str] = _("The request could not be completed.")

    def __init__(self, detail: str | None = None) -> None:
        self.detail = str(detail or self.default_detail)
        super().__init__(self.detail)


class InvalidStateTransition(EventDomainError):
    """Raised when a status change is not allowed from the current status."""

    code = ErrorCode.INVALID_STATE_TRANSITION
    status_code = 409

    def __init__(self, current: str, requested: str, detail: str | None = None) -> None:
        self.current = str(current)
        self.requested = str(requested)
        super().__init__(
            detail or str(_("Cannot transition from '{current}' to '{requested}'.")).format(
                current=self.current, requested=self.requested
            )
        )


class EventNotOpenForRegistration(EventDomainError):
    code = ErrorCode.EVENT_NOT_OPEN_FOR_REGISTRATION
    status_code = 409
    default_detail = _("This event is not open for registration.")


class EventFull(EventDomainError):
    code = ErrorCode.EVENT_FULL
    status_code = 409
    default_detail = _("This event is full.")


class DuplicateRegistration(EventDomainError):
    code = ErrorCode.DUPLICATE_REGISTRATION
    status_code = 409
    default_detail = _("You are already registered for this event.")


class RegistrationNotFound(EventDomainError):
    code = ErrorCode.REGISTRATION_NOT_FOUND
    status_code = 404
    default_detail = _("Registration not found.")


class AlreadyCancelled(RegistrationNotFound):
    """The registration exists but was cancelled; there is nothing left to cancel."""

    code = ErrorCode.ALREADY_CANCELLED
    default_detail = _("This registration has already been cancelled.")


class NotConfirmed(EventDomainError):
    code = ErrorCode.NOT_CONFIRMED
    status_code = 409
    default_detail = _("Only confirmed registrations can be checked in.")


class AlreadyCheckedIn(EventDomainError):
    code = ErrorCode.ALREADY_CHECKED_IN
    status_code = 409
    default_detail = _("This ticket has already been checked in.")


class MissingIdentifier(EventDomainError):
    code = ErrorCode.MISSING_IDENTIFIER
    status_code = 400
    default_detail = _("Provide exactly one of ticket_number or check_in_token.")


class DuplicateKey(EventDomainError):
    """A freshly issued ticket number or check-in token collided. Retryable."""

    code = ErrorCode.DUPLICATE_KEY
    status_code = 503
    default_detail = _("Could not issue a unique ticket, please retry.")


class EventNotFound(EventDomainError):
    code = ErrorCode.EVENT_NOT_FOUND
    status_code = 404
    default_detail = _("Event not found.")


class MissingRejectionReason(EventDomainError):
    code = ErrorCode.MISSING_REJECTION_REASON
    status_code = 400
    default_detail = _("A reason is required to reject an event.")


class EventHasRegistrations(EventDomainError):
    code = ErrorCode.EVENT_HAS_REGISTRATIONS
    status_code = 409
    default_detail = _("Events with registrations cannot be deleted; cancel the event instead.")


class FeedbackNotAllowed(EventDomainError):
    code = ErrorCode.FEEDBACK_NOT_ALLOWED
    status_code = 403
    default_detail = _("You can only leave feedback for events you attended.")


class DuplicateFeedback(EventDomainError):
    code = ErrorCode.DUPLICATE_FEEDBACK
    status_code = 409
    default_detail = _("You have already left feedback for this event.")


class FeedbackNotFound(EventDomainError):
    code = ErrorCode.FEEDBACK_NOT_FOUND
    status_code = 404
    default_detail = _("Feedback not found.")
