"""
Exception hierarchy for the TokBox client.

Every error raised by this package derives from :class:`TokboxError` so
callers can catch the whole family at once.  Invalid arguments are the
exception: they raise the built-in ``ValueError`` before any signing or
network work starts.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, List, Optional

if TYPE_CHECKING:  # pragma: no cover
    from .bulk import IssueResult


class TokboxError(Exception):
    """Base class for all TokBox client errors."""


class ConfigurationError(TokboxError):
    """Required settings are missing or cannot be parsed."""


class SigningError(TokboxError):
    """Computing a MAC or encoding a signed envelope failed.

    This is never retryable: it points at a local bug or a corrupted secret.
    """


class TransportError(TokboxError):
    """The HTTP request did not complete (connection failure, timeout)."""


class ProtocolError(TokboxError):
    """The control plane answered, but not with what we expected.

    ``status`` carries the HTTP status code for non-200 responses and is
    ``None`` when the body itself was empty or malformed.
    """

    def __init__(self, message: str, status: Optional[int] = None) -> None:
        super().__init__(message)
        self.status = status


class PartialBulkFailure(TokboxError):
    """Some tokens in a strict bulk issuance could not be produced."""

    def __init__(self, results: List["IssueResult"]) -> None:
        self.results = results
        self.failures = [r for r in results if r.error is not None]
        super().__init__(f"{len(self.failures)} of {len(results)} token issuances failed")

    @property
    def tokens(self) -> List[str]:
        return [r.token for r in self.results if r.token is not None]


__all__ = [
    "TokboxError",
    "ConfigurationError",
    "SigningError",
    "TransportError",
    "ProtocolError",
    "PartialBulkFailure",
]
