"""
HTTP client for the TokBox control plane.

This module defines a lightweight asynchronous client for the OpenTok REST
API.  Every request is authenticated with a fresh service-auth assertion
(see ``service_auth.py``) sent in the ``X-OPENTOK-AUTH`` header.  The client
creates sessions, starts archives with a custom layout and issues access
tokens for the sessions it creates.

Requests are not retried: a transport failure surfaces as
``TransportError`` and any status other than 200 as ``ProtocolError``.
Whether to try again is up to the caller.
"""

from __future__ import annotations

import asyncio
import json
import logging
import random
import time
from typing import Any, Callable, Dict, List, Optional, Union

import aiohttp
from pydantic import ValidationError

from . import metrics
from .bulk import DEFAULT_MAX_WORKERS, BulkIssuer
from .config import API_HOST, TokboxSettings, load_settings
from .errors import ProtocolError, TransportError
from .models import (
    ArchiveLayout,
    ArchiveMode,
    Credentials,
    MediaMode,
    OutputMode,
    Role,
    Session,
)
from .service_auth import DEFAULT_ASSERTION_LIFETIME, ServiceAuthSigner
from .tokens import TokenIssuer

SESSION_PATH = "/session/create"
ARCHIVE_PATH = "/v2/project/{api_key}/archive"

logger = logging.getLogger(__name__)


class TokboxClient:
    """Asynchronous OpenTok control-plane client."""

    def __init__(
        self,
        api_key: str,
        api_secret: str,
        *,
        base_url: str = API_HOST,
        auth_ttl: int = DEFAULT_ASSERTION_LIFETIME,
        request_timeout: float = 30.0,
        bulk_workers: int = DEFAULT_MAX_WORKERS,
        rng: Optional[random.Random] = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Construct the client.

        Args:
            api_key: Project API key.
            api_secret: Project partner secret.
            base_url: Control-plane base URL; override it for beta endpoints.
            auth_ttl: Lifetime in seconds of each service-auth assertion.
            request_timeout: Total timeout in seconds for one request.
            bulk_workers: Worker pool size for concurrent bulk issuance.
            rng: Nonce source for tokens.  Defaults to ``random.SystemRandom``.
            clock: Wall clock returning Unix seconds.
        """
        self.credentials = Credentials(key=api_key, secret=api_secret)
        self.base_url = base_url.rstrip("/")
        self.timeout = aiohttp.ClientTimeout(total=request_timeout)
        self.signer = ServiceAuthSigner(auth_ttl, clock=clock)
        self.issuer = TokenIssuer(self.credentials, rng=rng, clock=clock)
        self.bulk = BulkIssuer(self.issuer, max_workers=bulk_workers)

    @classmethod
    def from_settings(cls, settings: TokboxSettings, **kwargs: Any) -> "TokboxClient":
        return cls(
            settings.api_key,
            settings.api_secret.get_secret_value(),
            base_url=settings.api_url,
            auth_ttl=settings.auth_ttl,
            request_timeout=settings.request_timeout,
            bulk_workers=settings.bulk_workers,
            **kwargs,
        )

    @classmethod
    def from_env(cls, **kwargs: Any) -> "TokboxClient":
        return cls.from_settings(load_settings(), **kwargs)

    @property
    def api_key(self) -> str:
        return self.credentials.key

    async def _request(
        self,
        endpoint: str,
        method: str,
        path: str,
        *,
        headers: Optional[Dict[str, str]] = None,
        data: Optional[Dict[str, str]] = None,
        payload: Optional[Dict[str, Any]] = None,
    ) -> str:
        """Send one authenticated request and return the response body.

        ``endpoint`` labels the request in logs and metrics.
        """
        url = f"{self.base_url}{path}"
        request_headers = dict(headers or {})
        request_headers.update(self.signer.headers(self.credentials))
        logger.debug("%s %s", method, url)
        try:
            async with aiohttp.ClientSession(timeout=self.timeout) as session:
                async with session.request(
                    method, url, headers=request_headers, data=data, json=payload
                ) as resp:
                    metrics.record_request(endpoint, resp.status)
                    body = await resp.text()
                    self._check_status(endpoint, resp.status, body)
                    return body
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            metrics.record_request(endpoint, "error")
            raise TransportError(f"{endpoint} request to {url} failed: {exc!r}") from exc

    @staticmethod
    def _check_status(endpoint: str, status: int, body: str) -> None:
        if status != 200:
            # Avoid logging full response bodies; truncate to prevent leakage
            logger.error("%s returned status %s: %s", endpoint, status, (body or "")[:200])
            raise ProtocolError(f"Tokbox returned error code: {status}", status=status)

    async def create_session(
        self,
        location: str = "",
        media_mode: Union[MediaMode, str] = MediaMode.ROUTED,
        archive_mode: Union[ArchiveMode, str, None] = ArchiveMode.ALWAYS,
    ) -> Session:
        """Create a new session and return its descriptor.

        Args:
            location: IP address hint used to pick the media server region.
            media_mode: Route media through the media router or peer to peer.
            archive_mode: ``manual``, ``always`` or ``disabled``.  An empty
                value is sent as ``always``.
        """
        params: Dict[str, str] = {}
        if location:
            params["location"] = location
        params["archiveMode"] = ArchiveMode(archive_mode or ArchiveMode.ALWAYS).value
        params["p2p.preference"] = MediaMode(media_mode).value

        body = await self._request(
            "session_create",
            "POST",
            SESSION_PATH,
            headers={"Accept": "application/json"},
            data=params,
        )
        try:
            sessions = json.loads(body)
        except ValueError as exc:
            raise ProtocolError(f"malformed session create response: {exc}") from exc
        if not isinstance(sessions, list) or not sessions:
            raise ProtocolError("Tokbox did not return a session")
        try:
            session = Session.model_validate(sessions[0])
        except ValidationError as exc:
            raise ProtocolError(f"invalid session in create response: {exc}") from exc
        logger.info("Created session %s", session.session_id)
        return session

    async def start_archive(
        self,
        session_id: str,
        name: str = "",
        output_mode: Union[OutputMode, str] = OutputMode.COMPOSED,
        layout: Optional[ArchiveLayout] = None,
    ) -> None:
        """Start recording ``session_id`` with the given layout.

        See https://tokbox.com/developer/guides/archiving/layout-control.html
        """
        payload = {
            "sessionId": session_id,
            "layout": (layout or ArchiveLayout()).to_payload(),
            "name": name,
            "outputMode": OutputMode(output_mode).value,
        }
        path = ARCHIVE_PATH.format(api_key=self.api_key)
        await self._request(
            "archive_start",
            "POST",
            path,
            headers={"Content-Type": "application/json"},
            payload=payload,
        )
        logger.info("Started archive %r for session %s", name, session_id)

    def token(
        self,
        session: Union[Session, str],
        role: Union[Role, str, None] = Role.PUBLISHER,
        connection_data: str = "",
        expire_in: int = 0,
    ) -> str:
        """Issue one access token for ``session``."""
        return self.issuer.issue(session, role, connection_data, expire_in)

    async def tokens(
        self,
        session: Union[Session, str],
        n: int,
        concurrent: bool = False,
        role: Union[Role, str, None] = Role.PUBLISHER,
        connection_data: str = "",
        expire_in: int = 0,
        *,
        strict: bool = False,
    ) -> List[str]:
        """Issue ``n`` access tokens for ``session``; see ``BulkIssuer.issue_many``."""
        return await self.bulk.issue_many(
            session, n, concurrent, role, connection_data, expire_in, strict=strict
        )


__all__ = ["SESSION_PATH", "ARCHIVE_PATH", "TokboxClient"]
