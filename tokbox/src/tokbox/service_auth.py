"""
Service authentication for control-plane requests.

Every REST call to the control plane carries a short-lived JSON Web Token
in the ``X-OPENTOK-AUTH`` header.  The token asserts that the caller owns
the project: it is issued by the API key, marked with ``ist=project`` and
signed with HS256 using the partner secret.

A fresh assertion is built for every request; nothing is cached.  The
server rejects assertions whose lifetime exceeds five minutes, hence the
default below.
"""

from __future__ import annotations

import time
import uuid
from typing import Callable, Dict

import jwt

from .errors import SigningError
from .models import Credentials

AUTH_HEADER = "X-OPENTOK-AUTH"
ASSERTION_ALGORITHM = "HS256"
#: Seconds between ``iat`` and ``exp``.
DEFAULT_ASSERTION_LIFETIME = 300


def _random_id() -> str:
    return str(uuid.uuid4())


class ServiceAuthSigner:
    """Build signed project-level assertions."""

    def __init__(
        self,
        lifetime: int = DEFAULT_ASSERTION_LIFETIME,
        *,
        clock: Callable[[], float] = time.time,
        id_factory: Callable[[], str] = _random_id,
    ) -> None:
        if lifetime <= 0:
            raise ValueError("assertion lifetime must be positive")
        self.lifetime = lifetime
        self._clock = clock
        self._id_factory = id_factory

    def claims(self, credentials: Credentials) -> Dict[str, object]:
        issued_at = int(self._clock())
        return {
            "iss": credentials.key,
            "ist": "project",
            "iat": issued_at,
            "exp": issued_at + self.lifetime,
            "jti": self._id_factory(),
        }

    def sign(self, credentials: Credentials) -> str:
        """Return a compact HS256 JWT for ``credentials``."""
        try:
            return jwt.encode(
                self.claims(credentials),
                credentials.secret.get_secret_value(),
                algorithm=ASSERTION_ALGORITHM,
            )
        except (jwt.PyJWTError, TypeError, ValueError) as exc:
            raise SigningError(f"failed to sign service assertion: {exc}") from exc

    def headers(self, credentials: Credentials) -> Dict[str, str]:
        return {AUTH_HEADER: self.sign(credentials)}


__all__ = [
    "AUTH_HEADER",
    "ASSERTION_ALGORITHM",
    "DEFAULT_ASSERTION_LIFETIME",
    "ServiceAuthSigner",
]
