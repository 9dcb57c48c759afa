"""Resilient request executor: bounded retries with decaying backoff.

:class:`ResilientRequestExecutor` sends one :class:`RequestDescriptor` to
completion.  Each attempt is classified as

- **success**: a 2xx response;
- **retryable**: a transport fault (no response at all) or a status in
  :data:`RETRYABLE_STATUS_CODES`;
- **fatal**: any other status; the loop stops at once;
- **unclassified**: any other exception, which propagates to the caller
  without retry.

The retry loop keeps a local ``(backoff, retries_left)`` pair.  Before each
retry it sleeps the attempt's suggested wait (the running backoff, or the
``Retry-After`` value of a 429), then decays the running backoff by
``backoff_decay_percent``.  A ``Retry-After`` override never feeds into the
decay.  When the budget is spent the last failure is returned as a
:class:`FatalFailure` with ``kind=EXHAUSTED``.

After a successful call the executor optionally sleeps
``jitter_base_seconds * U(0.5, 1.5)`` once, to pace consecutive independent
requests.  It never jitters between retries.

Sleeping goes through an injectable coroutine function so tests (and
callers with their own scheduling) never block on real time.
"""

from __future__ import annotations

import asyncio
import logging
import random
from collections.abc import Awaitable, Callable, Collection

import httpx

from wayback_archiver.archive.config import WB_REQUEST_TIMEOUT
from wayback_archiver.core.descriptor import RequestDescriptor, RetryPolicy
from wayback_archiver.core.outcomes import (
    AttemptOutcome,
    FailureKind,
    FatalFailure,
    ResponseSnapshot,
    RetryableFailure,
    Success,
)

logger = logging.getLogger(__name__)

RETRYABLE_STATUS_CODES: frozenset[int] = frozenset({404, 408, 425, 429, 500, 502, 503, 504})
"""Statuses treated as transient.  404 is included because freshly queued
captures and overloaded timemap shards both answer 404 for a while."""

RATE_LIMITED_STATUS: int = 429

SleepFunc = Callable[[float], Awaitable[None]]


def parse_retry_after(value: str | None) -> float | None:
    """Parse a ``Retry-After`` header holding a delay in whole seconds.

    HTTP-date values are not supported and yield ``None``, as do negative or
    non-numeric values.

    Args:
        value: Raw header value, or ``None`` if the header is absent.

    Returns:
        The delay in seconds, or ``None``.
    """
    if value is None:
        return None
    text = value.strip()
    if not text.isdigit():
        return None
    return float(int(text))


def create_http_client(timeout: float = WB_REQUEST_TIMEOUT) -> httpx.AsyncClient:
    """Return an :class:`httpx.AsyncClient` configured for archive requests.

    Redirects are followed because the save endpoint redirects to the
    finished capture.
    """
    return httpx.AsyncClient(timeout=timeout, follow_redirects=True)


def _failure_context(outcome: RetryableFailure | FatalFailure) -> dict[str, object]:
    """Structured fields attached to give-up log records."""
    return {
        "status_code": outcome.status_code,
        "error_type": outcome.error_type,
        "body": outcome.response.body if outcome.response is not None else None,
    }


class ResilientRequestExecutor:
    """Execute requests with bounded retries, backoff decay, and jitter.

    Args:
        client: Shared async HTTP client.  The executor does not close it.
        sleep: Coroutine function used for every wait.  Defaults to
            :func:`asyncio.sleep`.
        rng: Random source for the post-success jitter.
        retryable_status_codes: Statuses classified as transient.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        *,
        sleep: SleepFunc = asyncio.sleep,
        rng: random.Random | None = None,
        retryable_status_codes: Collection[int] = RETRYABLE_STATUS_CODES,
    ) -> None:
        self._client = client
        self._sleep = sleep
        self._rng = rng or random.Random()
        self._retryable = frozenset(retryable_status_codes)

    async def execute(
        self,
        descriptor: RequestDescriptor,
        policy: RetryPolicy,
    ) -> AttemptOutcome:
        """Send *descriptor* until it succeeds, fails fatally, or runs out of retries.

        Args:
            descriptor: The request to send.  Re-sent unchanged on retries.
            policy: Retry budget and backoff parameters.  Not mutated.

        Returns:
            :class:`Success` or :class:`FatalFailure`.

        Raises:
            Exception: Any error the executor cannot classify (for example
                :class:`httpx.UnsupportedProtocol` or
                :class:`httpx.DecodingError`) propagates unchanged.
        """
        backoff = float(policy.initial_backoff_seconds)
        retries_left = policy.max_retries
        attempts = 0

        while True:
            attempts += 1
            outcome = await self._attempt(descriptor, backoff, attempts)

            if isinstance(outcome, Success):
                await self._pause_after_success(policy)
                return outcome

            if isinstance(outcome, FatalFailure):
                logger.warning(
                    "executor: %s %s failed fatally: %s",
                    descriptor.method,
                    descriptor.url,
                    outcome.reason,
                    extra=_failure_context(outcome),
                )
                return outcome

            if retries_left <= 0:
                logger.warning(
                    "executor: giving up on %s %s after %d attempt(s): %s",
                    descriptor.method,
                    descriptor.url,
                    attempts,
                    outcome.reason,
                    extra=_failure_context(outcome),
                )
                return FatalFailure(
                    reason=f"gave up after {attempts} attempt(s): {outcome.reason}",
                    kind=FailureKind.EXHAUSTED,
                    status_code=outcome.status_code,
                    error_type=outcome.error_type,
                    response=outcome.response,
                    attempts=attempts,
                )

            wait = outcome.suggested_wait_seconds
            logger.info(
                "executor: %s; retrying %s in %.1fs (%d retr%s left)",
                outcome.reason,
                descriptor.url,
                wait,
                retries_left,
                "y" if retries_left == 1 else "ies",
            )
            await self._sleep(wait)
            backoff *= policy.decay_factor
            retries_left -= 1

    async def _attempt(
        self,
        descriptor: RequestDescriptor,
        backoff: float,
        attempts: int,
    ) -> AttemptOutcome:
        """Send one request and classify the result."""
        try:
            response = await self._client.request(
                descriptor.method,
                descriptor.url,
                headers=descriptor.request_headers(),
                params=dict(descriptor.params) if descriptor.params else None,
                data=dict(descriptor.body) if descriptor.body is not None else None,
            )
        except httpx.UnsupportedProtocol:
            raise
        except httpx.TransportError as exc:
            return RetryableFailure(
                reason=f"{type(exc).__name__}: {exc}",
                kind=FailureKind.TRANSPORT,
                suggested_wait_seconds=backoff,
                error_type=type(exc).__name__,
                attempts=attempts,
            )

        snapshot = ResponseSnapshot.from_httpx(response)
        status = response.status_code

        if response.is_success:
            return Success(response=snapshot, attempts=attempts)

        if status in self._retryable:
            wait = backoff
            if status == RATE_LIMITED_STATUS:
                hinted = parse_retry_after(response.headers.get("Retry-After"))
                if hinted is not None:
                    wait = hinted
            return RetryableFailure(
                reason=f"HTTP {status}",
                kind=FailureKind.RETRYABLE_HTTP,
                suggested_wait_seconds=wait,
                status_code=status,
                response=snapshot,
                attempts=attempts,
            )

        return FatalFailure(
            reason=f"HTTP {status}",
            kind=FailureKind.FATAL_HTTP,
            status_code=status,
            response=snapshot,
            attempts=attempts,
        )

    async def _pause_after_success(self, policy: RetryPolicy) -> None:
        if policy.jitter_base_seconds <= 0:
            return
        delay = policy.jitter_base_seconds * (0.5 + self._rng.random())
        logger.debug("executor: pausing %.2fs after success", delay)
        await self._sleep(delay)
