"""
Participant access tokens.

A token is a self-describing, signed string that the media server checks
without calling back to the control plane.  Its wire format is::

    T1==<base64("partner_id=<key>&sig=<hex hmac-sha1>:<field string>")>

The field string is an ordered, query-escaped list of ``key=value`` pairs.
The order is part of the format: the server recomputes the HMAC over the
exact bytes, so fields must be emitted exactly as ``build_field_string``
does.

Issuance is pure: no I/O, no logging, and no shared mutable state beyond
the nonce source.  The clock and the nonce source are injectable so tokens
can be reproduced byte for byte in tests.
"""

from __future__ import annotations

import base64
import binascii
import hashlib
import hmac
import random
import time
from dataclasses import dataclass, field
from typing import Callable, Dict, Optional, Union
from urllib.parse import parse_qsl, quote_plus

from .errors import SigningError
from .models import Credentials, Role, Session

TOKEN_PREFIX = "T1=="
#: Nonces are drawn from ``[0, NONCE_LIMIT)``.
NONCE_LIMIT = 999999
MAX_CONNECTION_DATA_LENGTH = 1000


def _escape(value: object) -> str:
    return quote_plus(str(value), safe="")


def build_field_string(
    session_id: str,
    create_time: int,
    nonce: int,
    *,
    role: Optional[str] = None,
    connection_data: str = "",
    expire_time: Optional[int] = None,
) -> str:
    """Return the canonical field string that gets signed."""
    parts = [
        f"session_id={_escape(session_id)}",
        f"create_time={_escape(create_time)}",
    ]
    if expire_time is not None:
        parts.append(f"expire_time={_escape(expire_time)}")
    if role:
        parts.append(f"role={_escape(role)}")
    if connection_data:
        parts.append(f"connection_data={_escape(connection_data)}")
    parts.append(f"nonce={_escape(nonce)}")
    return "&".join(parts)


def sign_field_string(secret: bytes, data: str) -> str:
    """Return the hex HMAC-SHA1 of ``data`` keyed by ``secret``."""
    try:
        digest = hmac.new(secret, data.encode("utf-8"), hashlib.sha1).digest()
    except (TypeError, ValueError) as exc:
        raise SigningError(f"failed to compute token signature: {exc}") from exc
    if len(digest) != hashlib.sha1().digest_size:
        raise SigningError(f"unexpected signature length {len(digest)}")
    return digest.hex()


def encode_token(api_key: str, signature: str, data: str) -> str:
    """Wrap a signed field string into the ``T1==`` envelope."""
    pre_coded = f"partner_id={api_key}&sig={signature}:{data}"
    try:
        encoded = base64.b64encode(pre_coded.encode("utf-8")).decode("ascii")
    except (UnicodeError, binascii.Error) as exc:
        raise SigningError(f"failed to encode token: {exc}") from exc
    return f"{TOKEN_PREFIX}{encoded}"


@dataclass(frozen=True)
class ParsedToken:
    """Structural view of a decoded token.  Nothing here is verified."""

    partner_id: str
    signature: str
    data: str
    fields: Dict[str, str] = field(default_factory=dict)


def parse_token(token: str) -> ParsedToken:
    """Decode a ``T1==`` token into its parts.

    Raises ``ValueError`` when the token is not in the expected shape.
    """
    if not token.startswith(TOKEN_PREFIX):
        raise ValueError("token does not start with the T1== prefix")
    try:
        decoded = base64.b64decode(token[len(TOKEN_PREFIX):], validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError) as exc:
        raise ValueError(f"token body is not valid base64: {exc}") from exc
    head, sep, data = decoded.partition(":")
    if not sep or not head.startswith("partner_id=") or "&sig=" not in head:
        raise ValueError("token body does not match partner_id=...&sig=...:...")
    partner, _, signature = head.partition("&sig=")
    return ParsedToken(
        partner_id=partner[len("partner_id="):],
        signature=signature,
        data=data,
        fields=dict(parse_qsl(data, keep_blank_values=True)),
    )


class TokenIssuer:
    """Synthesize access tokens for sessions of one project.

    The issuer is bound to one set of credentials.  It can be shared across
    threads: the default nonce source is ``random.SystemRandom``.
    """

    def __init__(
        self,
        credentials: Credentials,
        *,
        rng: Optional[random.Random] = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.credentials = credentials
        self._rng = rng if rng is not None else random.SystemRandom()
        self._clock = clock

    @staticmethod
    def validate_request(
        role: Union[Role, str, None] = None,
        connection_data: str = "",
        expire_in: int = 0,
    ) -> Optional[str]:
        """Check request parameters and return the normalized role value."""
        role_value: Optional[str] = None
        if role:
            try:
                role_value = Role(role).value
            except ValueError:
                raise ValueError(f"unknown role {role!r}") from None
        if connection_data and len(connection_data) > MAX_CONNECTION_DATA_LENGTH:
            raise ValueError(
                f"connection data exceeds {MAX_CONNECTION_DATA_LENGTH} characters"
            )
        if expire_in < 0:
            raise ValueError("expire_in must be zero or a positive number of seconds")
        return role_value

    def issue(
        self,
        session: Union[Session, str],
        role: Union[Role, str, None] = None,
        connection_data: str = "",
        expire_in: int = 0,
    ) -> str:
        """Return a signed token for ``session``.

        Args:
            session: The session descriptor, or a bare session id.
            role: Capability to grant; omitted from the token when empty.
            connection_data: Opaque data handed to other clients on connect.
            expire_in: Seconds from now until the token expires.  ``0``
                leaves expiry to the server default.
        """
        role_value = self.validate_request(role, connection_data, expire_in)
        session_id = session.session_id if isinstance(session, Session) else session
        now = int(self._clock())
        data = build_field_string(
            session_id,
            now,
            self._rng.randrange(NONCE_LIMIT),
            role=role_value,
            connection_data=connection_data,
            expire_time=now + expire_in if expire_in > 0 else None,
        )
        signature = sign_field_string(self.credentials.secret_bytes, data)
        return encode_token(self.credentials.key, signature, data)


__all__ = [
    "TOKEN_PREFIX",
    "NONCE_LIMIT",
    "MAX_CONNECTION_DATA_LENGTH",
    "build_field_string",
    "sign_field_string",
    "encode_token",
    "ParsedToken",
    "parse_token",
    "TokenIssuer",
]
