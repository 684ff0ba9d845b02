"""Ticket numbers and check-in tokens.

A ticket number looks like ``TKT-<base36 ms timestamp>-<4 random chars>``.
The check-in token is a compact JSON document (event id, ticket number,
issue time, nonce) meant to be rendered as a QR code. It is self-describing
when scanned, but the check-in resolver only ever uses it as a lookup key.
Uniqueness of both is enforced by the database.
"""

import secrets
import string
import typing as t
from uuid import UUID

import orjson
from django.conf import settings
from django.utils import timezone

BASE36_ALPHABET = string.digits + string.ascii_uppercase
RANDOM_SUFFIX_LENGTH = 4


class IssuedTicket(t.NamedTuple):
    ticket_number: str
    check_in_token: str


def to_base36(value: int) -> str:
    if value < 0:
        raise ValueError("Only non-negative integers can be encoded.")
    if value == 0:
        return "0"
    digits = []
    while value:
        value, remainder = divmod(value, 36)
        digits.append(BASE36_ALPHABET[remainder])
    return "".join(reversed(digits))


def _now_ms() -> int:
    return int(timezone.now().timestamp() * 1000)


def generate_ticket_number(issued_at_ms: int | None = None) -> str:
    issued_at_ms = _now_ms() if issued_at_ms is None else issued_at_ms
    suffix = "".join(secrets.choice(BASE36_ALPHABET) for _ in range(RANDOM_SUFFIX_LENGTH))
    return f"{settings.TICKET_NUMBER_PREFIX}-{to_base36(issued_at_ms)}-{suffix}"


def generate_check_in_token(event_id: UUID, ticket_number: str, issued_at_ms: int) -> str:
    payload = {
        "event_id": str(event_id),
        "ticket_number": ticket_number,
        "issued_at": issued_at_ms,
        "nonce": secrets.token_urlsafe(12),
    }
    return orjson.dumps(payload).decode()


def issue(event_id: UUID) -> IssuedTicket:
    """Generate a fresh ticket number and check-in token for ``event_id``."""
    issued_at_ms = _now_ms()
    ticket_number = generate_ticket_number(issued_at_ms)
    return IssuedTicket(
        ticket_number=ticket_number,
        check_in_token=generate_check_in_token(event_id, ticket_number, issued_at_ms),
    )


def describe_check_in_token(token: str) -> dict[str, t.Any] | None:
    """Decode the claims embedded in a check-in token, or None if it is not one of ours.

    The claims are informational only; check-in re-validates against stored state.
    """
    try:
        claims = orjson.loads(token)
    except orjson.JSONDecodeError:
        return None
    if not isinstance(claims, dict) or not {"event_id", "ticket_number", "issued_at"} <= claims.keys():
        return None
    return t.cast(dict[str, t.Any], claims)
