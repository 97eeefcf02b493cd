"""
Bulk token issuance.

``BulkIssuer`` produces ``n`` tokens for one session under one role,
connection data and expiry policy, either one after another or through a
bounded pool of asyncio workers.  Signing is CPU work, so it runs off the
event loop with ``asyncio.to_thread``: the whole sequential loop in one
thread, or one call per item in the pool.  Workers pull indices from a
fixed-size queue and write into their own result slot, so the output is in
request order in both modes.

Failed items are dropped from ``issue_many`` output (and logged) unless
``strict=True`` is passed.  Use ``issue_results`` to see every item with
its error.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import List, Optional, Union

from . import metrics
from .errors import PartialBulkFailure, TokboxError
from .models import Role, Session
from .tokens import TokenIssuer

logger = logging.getLogger(__name__)

DEFAULT_MAX_WORKERS = 8


@dataclass(frozen=True)
class IssueResult:
    """Outcome of one requested token."""

    index: int
    token: Optional[str] = None
    error: Optional[TokboxError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class BulkIssuer:
    """Issue many tokens for one session."""

    def __init__(
        self,
        issuer: TokenIssuer,
        *,
        max_workers: int = DEFAULT_MAX_WORKERS,
        queue_size: Optional[int] = None,
    ) -> None:
        """
        :param issuer: Token issuer used for every item.
        :param max_workers: Upper bound on concurrent signing workers.
        :param queue_size: Capacity of the index queue feeding the workers.
            Defaults to twice the number of workers.
        """
        if max_workers < 1:
            raise ValueError("max_workers must be at least 1")
        self.issuer = issuer
        self.max_workers = max_workers
        self.queue_size = queue_size

    def _attempt(
        self,
        index: int,
        session: Union[Session, str],
        role: Union[Role, str, None],
        connection_data: str,
        expire_in: int,
    ) -> IssueResult:
        try:
            token = self.issuer.issue(session, role, connection_data, expire_in)
        except TokboxError as exc:
            return IssueResult(index=index, error=exc)
        return IssueResult(index=index, token=token)

    async def _run_pool(self, n: int, *args: object) -> List[IssueResult]:
        slots: List[Optional[IssueResult]] = [None] * n
        workers = min(self.max_workers, n)
        queue: asyncio.Queue[Optional[int]] = asyncio.Queue(
            maxsize=self.queue_size or workers * 2
        )

        async def feed() -> None:
            for index in range(n):
                await queue.put(index)
            # One sentinel per worker
            for _ in range(workers):
                await queue.put(None)

        async def work() -> None:
            while True:
                index = await queue.get()
                if index is None:
                    return
                slots[index] = await asyncio.to_thread(self._attempt, index, *args)

        tasks = [asyncio.create_task(feed())]
        tasks.extend(asyncio.create_task(work()) for _ in range(workers))
        try:
            await asyncio.gather(*tasks)
        finally:
            # A failed worker or a cancelled caller must not leave the others running
            pending = [task for task in tasks if not task.done()]
            for task in pending:
                task.cancel()
            if pending:
                await asyncio.gather(*pending, return_exceptions=True)
        return [slot for slot in slots if slot is not None]

    def _run_sequential(self, n: int, *args: object) -> List[IssueResult]:
        return [self._attempt(index, *args) for index in range(n)]

    async def issue_results(
        self,
        session: Union[Session, str],
        n: int,
        concurrent: bool = False,
        role: Union[Role, str, None] = None,
        connection_data: str = "",
        expire_in: int = 0,
    ) -> List[IssueResult]:
        """Issue ``n`` tokens and return one result per requested token."""
        if n < 0:
            raise ValueError("n must not be negative")
        TokenIssuer.validate_request(role, connection_data, expire_in)
        if n == 0:
            return []
        if concurrent:
            results = await self._run_pool(n, session, role, connection_data, expire_in)
        else:
            results = await asyncio.to_thread(
                self._run_sequential, n, session, role, connection_data, expire_in
            )
        failed = sum(1 for r in results if not r.ok)
        metrics.TOKENS_ISSUED.inc(len(results) - failed)
        if failed:
            metrics.TOKEN_FAILURES.inc(failed)
        return results

    async def issue_many(
        self,
        session: Union[Session, str],
        n: int,
        concurrent: bool = False,
        role: Union[Role, str, None] = None,
        connection_data: str = "",
        expire_in: int = 0,
        *,
        strict: bool = False,
    ) -> List[str]:
        """Issue ``n`` tokens and return those that were signed.

        Failed items are left out of the returned list, so it may be shorter
        than ``n``.  With ``strict=True`` a ``PartialBulkFailure`` is raised
        instead, carrying every result.
        """
        results = await self.issue_results(
            session, n, concurrent, role, connection_data, expire_in
        )
        tokens = [r.token for r in results if r.token is not None]
        if len(tokens) < len(results):
            if strict:
                raise PartialBulkFailure(results)
            logger.warning(
                "Dropped %d of %d tokens that failed to sign", len(results) - len(tokens), n
            )
        return tokens


__all__ = ["DEFAULT_MAX_WORKERS", "IssueResult", "BulkIssuer"]
