import typing as t
from datetime import datetime
from uuid import UUID

from ninja import ModelSchema, Schema
from pydantic import AwareDatetime, Field, StringConstraints, model_validator

from accounts.models import CampusUser
from accounts.schema import MinimalCampusUserSchema
from common.schema import StrippedString
from events.models import Event, EventFeedback, Registration
from events.service.event_approval import ReviewDecision

TitleString = t.Annotated[str, StringConstraints(min_length=5, max_length=255, strip_whitespace=True)]
DescriptionString = t.Annotated[str, StringConstraints(min_length=20, strip_whitespace=True)]
LocationString = t.Annotated[str, StringConstraints(min_length=3, max_length=255, strip_whitespace=True)]
TagString = t.Annotated[str, StringConstraints(min_length=1, max_length=50, strip_whitespace=True)]


class EventEditSchema(Schema):
    title: TitleString | None = None
    description: DescriptionString | None = None
    short_description: t.Annotated[str, StringConstraints(max_length=500, strip_whitespace=True)] | None = None
    event_type: Event.EventType | None = None
    start: AwareDatetime | None = None
    end: AwareDatetime | None = None
    registration_deadline: AwareDatetime | None = Field(None, description="Registrations close at this time")
    location: LocationString | None = None
    address: t.Annotated[str, StringConstraints(max_length=500, strip_whitespace=True)] | None = None
    is_online: bool | None = None
    online_link: t.Annotated[str, StringConstraints(max_length=500, strip_whitespace=True)] | None = None
    max_participants: int | None = Field(None, ge=1, description="Leave empty for unlimited capacity")
    tags: list[TagString] | None = None
    requirements: StrippedString | None = None
    target_audience: t.Annotated[str, StringConstraints(max_length=255, strip_whitespace=True)] | None = None

    @model_validator(mode="after")
    def validate_time_window(self) -> t.Self:
        """Validate the dates that are part of the payload against each other."""
        if self.start and self.end and self.end <= self.start:
            raise ValueError("End date must be after start date.")
        if self.registration_deadline and self.start and self.registration_deadline >= self.start:
            raise ValueError("Registration deadline must be before start date.")
        return self


class EventCreateSchema(EventEditSchema):
    title: TitleString
    description: DescriptionString
    start: AwareDatetime
    end: AwareDatetime
    location: LocationString
    event_type: Event.EventType = Event.EventType.OTHER


class MinimalEventSchema(Schema):
    id: UUID
    slug: str
    title: str
    event_type: Event.EventType
    status: Event.EventStatus
    start: datetime
    end: datetime
    location: str


class EventSchema(MinimalEventSchema):
    organizer: MinimalCampusUserSchema
    description: str
    short_description: str
    registration_deadline: datetime | None = None
    address: str
    is_online: bool
    online_link: str
    max_participants: int | None = None
    current_participants: int
    available_spots: int | None = None
    tags: list[str]
    requirements: str
    target_audience: str
    is_featured: bool
    approved_at: datetime | None = None
    rejection_reason: str
    created_at: datetime
    updated_at: datetime


class EventCancelSchema(Schema):
    reason: t.Annotated[str, StringConstraints(max_length=1000, strip_whitespace=True)] | None = None


class EventReviewSchema(Schema):
    decision: ReviewDecision
    reason: t.Annotated[str, StringConstraints(max_length=1000, strip_whitespace=True)] | None = None


class EventStatsSchema(Schema):
    event_id: UUID
    max_participants: int | None = None
    current_participants: int
    available_spots: int | None = None
    total_registrations: int
    pending: int
    confirmed: int
    attended: int
    cancelled: int


class ReconcileResponseSchema(Schema):
    event_id: UUID
    current_participants: int


class RegistrationCreateSchema(Schema):
    notes: t.Annotated[str, StringConstraints(max_length=1000, strip_whitespace=True)] | None = None


class RegistrationSchema(ModelSchema):
    event_id: UUID
    status: Registration.Status

    class Meta:
        model = Registration
        fields = ["id", "ticket_number", "check_in_token", "checked_in_at", "notes", "created_at", "updated_at"]


class UserRegistrationSchema(RegistrationSchema):
    """A user's own registration, with the event it belongs to."""

    event: MinimalEventSchema


class ParticipantSchema(ModelSchema):
    """A registration as seen by the event's organizer. Check-in tokens are not exposed."""

    user: MinimalCampusUserSchema
    status: Registration.Status

    class Meta:
        model = Registration
        fields = ["id", "ticket_number", "checked_in_at", "notes", "created_at"]


class CheckInSchema(Schema):
    ticket_number: t.Annotated[str, StringConstraints(max_length=50, strip_whitespace=True)] | None = None
    check_in_token: t.Annotated[str, StringConstraints(max_length=500)] | None = None


class CheckInResponseSchema(ModelSchema):
    user: MinimalCampusUserSchema
    status: Registration.Status
    checked_in_by_id: UUID | None = None

    class Meta:
        model = Registration
        fields = ["id", "ticket_number", "checked_in_at"]


class EventFeaturedSchema(Schema):
    is_featured: bool


class FavoriteSchema(Schema):
    id: UUID
    event: EventSchema
    created_at: datetime


RatingInt = t.Annotated[int, Field(ge=EventFeedback.MIN_RATING, le=EventFeedback.MAX_RATING)]
CommentString = t.Annotated[str, StringConstraints(max_length=1000, strip_whitespace=True)]


class FeedbackCreateSchema(Schema):
    rating: RatingInt
    comment: CommentString = ""
    is_anonymous: bool = False


class FeedbackEditSchema(Schema):
    rating: RatingInt | None = None
    comment: CommentString | None = None
    is_anonymous: bool | None = None


class FeedbackSchema(Schema):
    id: UUID
    event_id: UUID
    rating: int
    comment: str
    is_anonymous: bool
    user: MinimalCampusUserSchema | None = None
    created_at: datetime
    updated_at: datetime

    @staticmethod
    def resolve_user(obj: EventFeedback) -> CampusUser | None:
        """Anonymous feedback does not reveal its author."""
        return None if obj.is_anonymous else obj.user


class UserFeedbackSchema(FeedbackSchema):
    """Feedback the current user left, with the event it is about."""

    event: MinimalEventSchema

    @staticmethod
    def resolve_user(obj: EventFeedback) -> CampusUser:
        return obj.user


class FeedbackStatsSchema(Schema):
    event_id: UUID
    average_rating: float | None = None
    total_reviews: int
    rating_distribution: dict[int, int]
