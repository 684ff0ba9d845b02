import typing as t
import uuid

import pytest
import structlog
from django.http import HttpRequest, HttpResponse
from django.test import RequestFactory

from common.middleware import RequestContextMiddleware


def _middleware(seen: dict[str, t.Any]) -> RequestContextMiddleware:
    def get_response(request: HttpRequest) -> HttpResponse:
        seen.update(structlog.contextvars.get_contextvars())
        return HttpResponse("ok")

    return RequestContextMiddleware(get_response)


def test_generates_request_id(rf: RequestFactory) -> None:
    seen: dict[str, t.Any] = {}

    response = _middleware(seen)(rf.get("/api/healthcheck", REMOTE_ADDR="10.0.0.1"))

    uuid.UUID(response["X-Request-ID"])
    assert seen["request_id"] == response["X-Request-ID"]
    assert seen["ip_address"] == "10.0.0.1"
    assert seen["method"] == "GET"
    assert seen["path"] == "/api/healthcheck"
    assert structlog.contextvars.get_contextvars() == {}


def test_reuses_incoming_request_id(rf: RequestFactory) -> None:
    seen: dict[str, t.Any] = {}

    response = _middleware(seen)(rf.get("/", HTTP_X_REQUEST_ID="gateway-42.a_b"))

    assert response["X-Request-ID"] == "gateway-42.a_b"
    assert seen["request_id"] == "gateway-42.a_b"


@pytest.mark.parametrize("incoming", ["has spaces", "x" * 65, "trailing-newline\n"])
def test_replaces_malformed_request_id(rf: RequestFactory, incoming: str) -> None:
    response = _middleware({})(rf.get("/", HTTP_X_REQUEST_ID=incoming))

    uuid.UUID(response["X-Request-ID"])


def test_context_is_cleared_when_the_view_raises(rf: RequestFactory) -> None:
    def get_response(request: HttpRequest) -> HttpResponse:
        raise RuntimeError("boom")

    with pytest.raises(RuntimeError):
        RequestContextMiddleware(get_response)(rf.get("/"))

    assert structlog.contextvars.get_contextvars() == {}
