"""Submit orchestrator: send URLs to Save Page Now, one at a time.

:func:`submit_urls` walks the input in order, builds a save request per URL
with :func:`build_save_request`, runs it through the resilient executor, and
appends one entry per URL to the result list.  A URL whose save fails
(after retries) still gets an entry; one failure never stops the batch.

Two things do stop it early:

- An interrupt (``KeyboardInterrupt`` or task cancellation), including one
  delivered during a backoff wait.  The entries already collected are
  returned.
- An unclassified fault raised by the executor.  It is re-raised as
  :class:`~wayback_archiver.core.exceptions.SubmitAbortedError` carrying the
  entries already collected.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any, Union

from wayback_archiver.archive.config import (
    DEFAULT_USER_AGENT,
    WB_SAVE_CAPTURE_ALL,
    WB_SAVE_HEADERS,
    WB_SAVE_METHODS,
    WB_SAVE_URL,
)
from wayback_archiver.core.descriptor import RequestDescriptor, RetryPolicy
from wayback_archiver.core.exceptions import SubmitAbortedError
from wayback_archiver.core.executor import ResilientRequestExecutor
from wayback_archiver.core.log_sink import LogSink, NullLogSink
from wayback_archiver.core.outcomes import AttemptOutcome

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SaveResult:
    """A submitted URL paired with its final outcome."""

    url: str
    outcome: AttemptOutcome

    @property
    def ok(self) -> bool:
        return self.outcome.ok

    def to_dict(self) -> dict[str, Any]:
        return {"url": self.url, **self.outcome.to_dict()}


SaveEntry = Union[str, SaveResult]


class SaveBatch(list):
    """Entries of one submit run, in input order.

    ``interrupted`` is ``True`` when the run stopped early on an interrupt,
    in which case the list holds only the URLs processed before it.
    """

    interrupted: bool = False


def build_save_request(
    url: str,
    method: str = "POST",
    *,
    save_endpoint: str = WB_SAVE_URL,
    user_agent: str = DEFAULT_USER_AGENT,
    headers: Mapping[str, str] = WB_SAVE_HEADERS,
) -> RequestDescriptor:
    """Build the descriptor for saving *url*.

    POST requests carry the form body ``url=<url>&capture_all=on``; GET
    requests carry no body.

    Raises:
        ValueError: If *url* is blank or *method* is not GET/POST.
    """
    target = url.strip()
    if not target:
        raise ValueError("Cannot save an empty URL")
    method = method.upper()
    if method not in WB_SAVE_METHODS:
        raise ValueError(f"Save method must be one of {WB_SAVE_METHODS}, got {method!r}")
    body = {"url": target, "capture_all": WB_SAVE_CAPTURE_ALL} if method == "POST" else None
    return RequestDescriptor(
        url=f"{save_endpoint}{target}",
        method=method,
        headers=headers,
        body=body,
        user_agent=user_agent,
    )


def _describe(outcome: AttemptOutcome) -> str:
    if outcome.ok:
        return f"saved (HTTP {outcome.status_code}, {outcome.attempts} attempt(s))"
    return f"failed: {outcome.reason}"


async def submit_urls(
    urls: Iterable[str],
    *,
    executor: ResilientRequestExecutor,
    policy: RetryPolicy,
    method: str = "POST",
    return_responses: bool = False,
    sink: LogSink | None = None,
    save_endpoint: str = WB_SAVE_URL,
    user_agent: str = DEFAULT_USER_AGENT,
    headers: Mapping[str, str] = WB_SAVE_HEADERS,
) -> SaveBatch:
    """Save every URL in *urls*, in order.

    Args:
        urls: Target URLs.  Blank entries are skipped.
        executor: Executor used for every request.
        policy: Retry policy applied to each URL independently.
        method: ``"POST"`` (form body, default) or ``"GET"``.
        return_responses: Append :class:`SaveResult` entries instead of bare
            URL strings.
        sink: Receives one progress message per URL plus run summaries.
        save_endpoint: Save Page Now endpoint.
        user_agent: ``User-Agent`` header value.
        headers: Extra request headers.

    Returns:
        A :class:`SaveBatch` with one entry per processed URL, in input
        order.  Partial, with ``interrupted`` set, when the run was
        interrupted.

    Raises:
        SubmitAbortedError: If the executor raised an unclassified fault.
        ValueError: If *method* is unsupported.
    """
    sink = sink or NullLogSink()
    method = method.upper()
    if method not in WB_SAVE_METHODS:
        raise ValueError(f"Save method must be one of {WB_SAVE_METHODS}, got {method!r}")
    targets = [u.strip() for u in urls if u and u.strip()]
    results = SaveBatch()
    current: str | None = None

    sink.log(f"Submitting {len(targets)} URL(s) via {method}")
    try:
        for index, url in enumerate(targets, start=1):
            current = url
            descriptor = build_save_request(
                url,
                method,
                save_endpoint=save_endpoint,
                user_agent=user_agent,
                headers=headers,
            )
            outcome = await executor.execute(descriptor, policy)
            results.append(SaveResult(url, outcome) if return_responses else url)
            sink.log(f"[{index}/{len(targets)}] {url} {_describe(outcome)}")
    except (KeyboardInterrupt, asyncio.CancelledError):
        # The collected entries are the run's output; hand them back instead
        # of letting the interrupt discard them.
        logger.warning(
            "save: interrupted while processing %s; returning %d of %d result(s)",
            current,
            len(results),
            len(targets),
        )
        sink.log(f"Interrupted at {current}; {len(results)} of {len(targets)} URL(s) processed")
        results.interrupted = True
        return results
    except Exception as exc:
        logger.exception("save: unclassified error while processing %s", current)
        sink.log(f"Aborted at {current}: {type(exc).__name__}: {exc}")
        raise SubmitAbortedError(
            f"submit aborted at {current}: {exc}",
            partial_results=results,
            url=current,
        ) from exc

    failed = sum(
        1 for entry in results if isinstance(entry, SaveResult) and not entry.ok
    )
    sink.log(
        f"Finished: {len(results)} URL(s) processed"
        + (f", {failed} failed" if return_responses else "")
    )
    return results
