import typing as t

import orjson
import pytest
from django.test.client import Client
from django.urls import reverse

from accounts.models import CampusUser
from events.models import Event, EventFeedback, Registration
from events.schema import FeedbackCreateSchema
from events.service import feedback_service, orchestrator

pytestmark = pytest.mark.django_db


@pytest.fixture
def attendee(event: Event, student: CampusUser) -> CampusUser:
    orchestrator.register(event.id, student)
    Registration.objects.filter(event=event, user=student).update(status=Registration.Status.ATTENDED)
    return student


@pytest.fixture
def feedback(event: Event, attendee: CampusUser) -> EventFeedback:
    return feedback_service.create_feedback(event, attendee, FeedbackCreateSchema(rating=4, comment="Nice"))


def _post_feedback(client: Client, event: Event, **payload: t.Any) -> t.Any:
    return client.post(
        reverse("api:create_feedback", kwargs={"event_id": event.id}),
        data=orjson.dumps(payload),
        content_type="application/json",
    )


def test_attendee_leaves_feedback(student_client: Client, attendee: CampusUser, event: Event) -> None:
    response = _post_feedback(student_client, event, rating=5, comment="Loved it")

    assert response.status_code == 201
    data = response.json()
    assert data["rating"] == 5
    assert data["user"]["id"] == str(attendee.id)


def test_feedback_without_attending(student_client: Client, event: Event) -> None:
    response = _post_feedback(student_client, event, rating=5)

    assert response.status_code == 403
    assert response.json()["code"] == "feedback_not_allowed"


def test_second_feedback_is_a_conflict(student_client: Client, feedback: EventFeedback, event: Event) -> None:
    response = _post_feedback(student_client, event, rating=1)

    assert response.status_code == 409
    assert response.json()["code"] == "duplicate_feedback"


@pytest.mark.parametrize("rating", [0, 6])
def test_rating_out_of_range(student_client: Client, attendee: CampusUser, event: Event, rating: int) -> None:
    response = _post_feedback(student_client, event, rating=rating)

    assert response.status_code == 422
    assert not EventFeedback.objects.exists()


def test_anonymous_feedback_hides_its_author(
    client: Client, student_client: Client, attendee: CampusUser, event: Event
) -> None:
    _post_feedback(student_client, event, rating=3, is_anonymous=True)

    response = client.get(reverse("api:list_event_feedback", kwargs={"event_id": event.id}))

    assert response.status_code == 200
    [item] = response.json()["results"]
    assert item["user"] is None
    assert item["is_anonymous"] is True


def test_feedback_of_hidden_event_is_not_found(client: Client, draft_event: Event) -> None:
    response = client.get(reverse("api:list_event_feedback", kwargs={"event_id": draft_event.id}))

    assert response.status_code == 404


def test_stats(client: Client, feedback: EventFeedback, event: Event) -> None:
    response = client.get(reverse("api:event_feedback_stats", kwargs={"event_id": event.id}))

    assert response.status_code == 200
    data = response.json()
    assert data["average_rating"] == 4.0
    assert data["total_reviews"] == 1
    assert data["rating_distribution"]["4"] == 1


def test_my_feedback_shows_author_and_event(student_client: Client, attendee: CampusUser, event: Event) -> None:
    _post_feedback(student_client, event, rating=2, is_anonymous=True)

    response = student_client.get(reverse("api:list_my_feedback"))

    [item] = response.json()["results"]
    assert item["user"]["id"] == str(attendee.id)
    assert item["event"]["id"] == str(event.id)


def test_author_updates_feedback(student_client: Client, feedback: EventFeedback) -> None:
    response = student_client.patch(
        reverse("api:update_feedback", kwargs={"feedback_id": feedback.id}),
        data=orjson.dumps({"comment": "Better on reflection", "rating": 5}),
        content_type="application/json",
    )

    assert response.status_code == 200
    feedback.refresh_from_db()
    assert feedback.rating == 5
    assert feedback.comment == "Better on reflection"


def test_others_cannot_update_feedback(other_student_client: Client, feedback: EventFeedback) -> None:
    response = other_student_client.patch(
        reverse("api:update_feedback", kwargs={"feedback_id": feedback.id}),
        data=orjson.dumps({"rating": 1}),
        content_type="application/json",
    )

    assert response.status_code == 403
    feedback.refresh_from_db()
    assert feedback.rating == 4


def test_admin_cannot_edit_but_can_delete(campus_admin_client: Client, feedback: EventFeedback) -> None:
    url = reverse("api:update_feedback", kwargs={"feedback_id": feedback.id})
    patch = campus_admin_client.patch(url, data=orjson.dumps({"rating": 1}), content_type="application/json")
    delete = campus_admin_client.delete(reverse("api:delete_feedback", kwargs={"feedback_id": feedback.id}))

    assert patch.status_code == 403
    assert delete.status_code == 204
    assert not EventFeedback.objects.exists()


def test_others_cannot_delete_feedback(other_student_client: Client, feedback: EventFeedback) -> None:
    response = other_student_client.delete(reverse("api:delete_feedback", kwargs={"feedback_id": feedback.id}))

    assert response.status_code == 403
    assert EventFeedback.objects.filter(pk=feedback.pk).exists()


def test_unknown_feedback(student_client: Client) -> None:
    response = student_client.delete(
        reverse("api:delete_feedback", kwargs={"feedback_id": "00000000-0000-0000-0000-000000000000"})
    )

    assert response.status_code == 404
    assert response.json()["code"] == "feedback_not_found"
