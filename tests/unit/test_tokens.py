"""Tests for participant access token issuance.

Tokens must be byte-reproducible for a fixed clock and nonce, since the
media server recomputes the HMAC over the exact field string.  These tests
pin the field order and escaping, check the envelope and verify the
signature by recomputing it with the known secret.
"""

from __future__ import annotations

import base64
import hashlib
import hmac
import itertools

import pytest  # type: ignore

from tests.helpers.token_fixtures import API_KEY, API_SECRET, FIXED_NOW, SESSION_ID, FixedNonce
from tokbox import tokens as tokens_module
from tokbox.errors import SigningError
from tokbox.models import HOURS_24, Role
from tokbox.tokens import (
    MAX_CONNECTION_DATA_LENGTH,
    TokenIssuer,
    build_field_string,
    parse_token,
)


class CountingNonce:
    """Yield 0, 1, 2, ... so that every issuance gets a distinct nonce."""

    def __init__(self) -> None:
        self._counter = itertools.count()

    def randrange(self, stop: int) -> int:
        return next(self._counter) % stop


@pytest.fixture
def issuer(credentials, fixed_clock) -> TokenIssuer:
    return TokenIssuer(credentials, rng=FixedNonce(4242), clock=fixed_clock)


def test_golden_token(issuer, session) -> None:
    token = issuer.issue(session, Role.PUBLISHER, "name=Alice Smith&team=a/b", HOURS_24)
    expected_data = (
        f"session_id={SESSION_ID}"
        "&create_time=1700000000"
        "&expire_time=1700086400"
        "&role=publisher"
        "&connection_data=name%3DAlice+Smith%26team%3Da%2Fb"
        "&nonce=4242"
    )
    signature = hmac.new(API_SECRET.encode(), expected_data.encode(), hashlib.sha1).hexdigest()
    pre_coded = f"partner_id={API_KEY}&sig={signature}:{expected_data}"
    assert token == "T1==" + base64.b64encode(pre_coded.encode()).decode()


def test_token_prefix_and_shape(issuer, session) -> None:
    token = issuer.issue(session, Role.SUBSCRIBER)
    assert token.startswith("T1==")
    decoded = base64.b64decode(token[4:]).decode()
    head, _, data = decoded.partition(":")
    assert head.startswith(f"partner_id={API_KEY}&sig=")
    assert data.startswith(f"session_id={SESSION_ID}&create_time=")


def test_signature_round_trip(credentials, session) -> None:
    issuer = TokenIssuer(credentials)
    parsed = parse_token(issuer.issue(session, Role.MODERATOR, "user=42", 3600))
    recomputed = hmac.new(API_SECRET.encode(), parsed.data.encode(), hashlib.sha1).hexdigest()
    assert parsed.signature == recomputed
    assert parsed.partner_id == API_KEY
    assert parsed.fields["session_id"] == SESSION_ID
    assert parsed.fields["role"] == "moderator"
    assert parsed.fields["connection_data"] == "user=42"
    assert 0 <= int(parsed.fields["nonce"]) < 999999


def test_zero_expiry_omits_expire_time(issuer, session) -> None:
    parsed = parse_token(issuer.issue(session, Role.PUBLISHER, "", 0))
    assert "expire_time" not in parsed.fields
    assert "expire_time=" not in parsed.data


def test_positive_expiry_uses_same_now(issuer, session) -> None:
    parsed = parse_token(issuer.issue(session, Role.PUBLISHER, "", 600))
    create_time = int(parsed.fields["create_time"])
    assert create_time == FIXED_NOW
    assert int(parsed.fields["expire_time"]) == create_time + 600


def test_field_order() -> None:
    data = build_field_string(
        "sid", 10, 7, role="publisher", connection_data="x", expire_time=20
    )
    keys = [pair.split("=", 1)[0] for pair in data.split("&")]
    assert keys == ["session_id", "create_time", "expire_time", "role", "connection_data", "nonce"]


def test_optional_fields_omitted() -> None:
    assert build_field_string("sid", 10, 7) == "session_id=sid&create_time=10&nonce=7"


def test_values_are_query_escaped() -> None:
    data = build_field_string("a b/c~d", 1, 2, connection_data="k=v&x")
    assert data == "session_id=a+b%2Fc~d&create_time=1&connection_data=k%3Dv%26x&nonce=2"


def test_accepts_bare_session_id(issuer, session) -> None:
    assert issuer.issue(SESSION_ID, "publisher") == issuer.issue(session, Role.PUBLISHER)


def test_no_role_omits_role(issuer, session) -> None:
    parsed = parse_token(issuer.issue(session, None))
    assert "role" not in parsed.fields


def test_distinct_nonces_never_collide(credentials, session, fixed_clock) -> None:
    issuer = TokenIssuer(credentials, rng=CountingNonce(), clock=fixed_clock)
    issued = {issuer.issue(session, Role.PUBLISHER, "", HOURS_24) for _ in range(10000)}
    assert len(issued) == 10000


def test_distinct_timestamps_differ(credentials, session) -> None:
    ticks = iter([FIXED_NOW, FIXED_NOW + 1])
    issuer = TokenIssuer(credentials, rng=FixedNonce(1), clock=lambda: next(ticks))
    assert issuer.issue(session) != issuer.issue(session)


@pytest.mark.parametrize(
    "kwargs",
    [
        {"role": "owner"},
        {"expire_in": -1},
        {"connection_data": "x" * (MAX_CONNECTION_DATA_LENGTH + 1)},
    ],
)
def test_invalid_requests_raise_value_error(issuer, session, kwargs) -> None:
    with pytest.raises(ValueError):
        issuer.issue(session, **kwargs)


def test_hmac_failure_raises_signing_error(issuer, session, monkeypatch) -> None:
    def broken_new(*args, **kwargs):
        raise ValueError("digest unavailable")

    monkeypatch.setattr(tokens_module.hmac, "new", broken_new)
    with pytest.raises(SigningError):
        issuer.issue(session, Role.PUBLISHER)


@pytest.mark.parametrize("token", ["X1==abc", "T1==!!!", "T1==" + base64.b64encode(b"nope").decode()])
def test_parse_token_rejects_malformed(token) -> None:
    with pytest.raises(ValueError):
        parse_token(token)
