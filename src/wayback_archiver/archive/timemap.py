"""Query orchestrator: fetch and reshape the capture history of a URL.

:func:`query_timemap` sends one timemap request through the resilient
executor, reshapes the payload with :mod:`wayback_archiver.archive._reshaper`
and optionally parses the timestamp fields.  Terminal failures are reported
on the returned :class:`TimemapResult`, not raised.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime

from wayback_archiver.archive._reshaper import TimemapRecord, reshape_payload
from wayback_archiver.archive.config import (
    DEFAULT_USER_AGENT,
    WB_DEFAULT_COLLAPSE,
    WB_DEFAULT_FILTER,
    WB_DEFAULT_LIMIT,
    WB_DEFAULT_MATCH_TYPE,
    WB_OUTPUT_MODES,
    WB_TIMEMAP_FIELDS,
    WB_TIMEMAP_URL,
    WB_TIMESTAMP_FIELDS,
)
from wayback_archiver.archive.timestamps import enrich_timestamps, format_wb_timestamp
from wayback_archiver.core.descriptor import RequestDescriptor, RetryPolicy
from wayback_archiver.core.executor import ResilientRequestExecutor
from wayback_archiver.core.log_sink import LogSink, NullLogSink
from wayback_archiver.core.outcomes import AttemptOutcome

logger = logging.getLogger(__name__)


@dataclass
class TimemapResult:
    """Result of one timemap query.

    Attributes:
        url: The queried URL.
        outcome: Final executor outcome.
        records: Capture records, or ``None`` when the query failed or found
            nothing.
        warning: Diagnostic for an empty result set.
    """

    url: str
    outcome: AttemptOutcome
    records: list[TimemapRecord] | None = None
    warning: str | None = None

    @property
    def ok(self) -> bool:
        return self.outcome.ok

    @property
    def found(self) -> bool:
        return bool(self.records)


def build_timemap_request(
    url: str,
    *,
    match_type: str | None = WB_DEFAULT_MATCH_TYPE,
    collapse: str | None = WB_DEFAULT_COLLAPSE,
    output: str = "json",
    fields: Sequence[str] = WB_TIMEMAP_FIELDS,
    filter_expr: str | None = WB_DEFAULT_FILTER,
    limit: int | None = WB_DEFAULT_LIMIT,
    from_timestamp: datetime | str | None = None,
    to_timestamp: datetime | str | None = None,
    timemap_endpoint: str = WB_TIMEMAP_URL,
    user_agent: str = DEFAULT_USER_AGENT,
) -> RequestDescriptor:
    """Build the GET descriptor for a timemap query.

    Parameters set to ``None`` (or empty) are left out of the query string.

    Raises:
        ValueError: On a blank URL, an unknown output mode, an empty field
            list, or a non-positive limit.
    """
    target = url.strip()
    if not target:
        raise ValueError("Cannot query the timemap of an empty URL")
    mode = output.lower()
    if mode not in WB_OUTPUT_MODES:
        raise ValueError(f"output must be one of {WB_OUTPUT_MODES}, got {output!r}")
    if not fields:
        raise ValueError("fields must name at least one column")
    if limit is not None and limit <= 0:
        raise ValueError("limit must be a positive integer")

    candidates: dict[str, str | None] = {
        "url": target,
        "matchType": match_type,
        "collapse": collapse,
        "output": mode,
        "fl": ",".join(fields),
        "filter": filter_expr,
        "limit": str(limit) if limit is not None else None,
        "from": format_wb_timestamp(from_timestamp) if from_timestamp else None,
        "to": format_wb_timestamp(to_timestamp) if to_timestamp else None,
    }
    params = {key: value for key, value in candidates.items() if value}
    return RequestDescriptor(
        url=timemap_endpoint,
        method="GET",
        params=params,
        user_agent=user_agent,
    )


async def query_timemap(
    url: str,
    *,
    executor: ResilientRequestExecutor,
    policy: RetryPolicy,
    match_type: str | None = WB_DEFAULT_MATCH_TYPE,
    collapse: str | None = WB_DEFAULT_COLLAPSE,
    output: str = "json",
    fields: Sequence[str] = WB_TIMEMAP_FIELDS,
    filter_expr: str | None = WB_DEFAULT_FILTER,
    limit: int | None = WB_DEFAULT_LIMIT,
    from_timestamp: datetime | str | None = None,
    to_timestamp: datetime | str | None = None,
    enrich: bool = True,
    timestamp_fields: Sequence[str] = WB_TIMESTAMP_FIELDS,
    sink: LogSink | None = None,
    timemap_endpoint: str = WB_TIMEMAP_URL,
    user_agent: str = DEFAULT_USER_AGENT,
) -> TimemapResult:
    """Query the capture history of *url*.

    Args:
        url: Target URL or URL prefix.
        executor: Executor used for the request.
        policy: Retry policy.  Its jitter applies here too, so pass a
            jitter-free policy for one-off queries.
        match_type: ``matchType`` (``exact``, ``prefix``, ``host``, ``domain``).
        collapse: ``collapse`` expression.
        output: ``"json"`` or ``"csv"``.
        fields: ``fl`` columns, in order.
        filter_expr: ``filter`` expression.
        limit: Maximum rows.
        from_timestamp: Lower bound on capture time.
        to_timestamp: Upper bound on capture time.
        enrich: Attach parsed ``<field>_datetime`` values.
        timestamp_fields: Fields parsed when *enrich* is set.
        sink: Receives the query summary and the empty-result warning.
        timemap_endpoint: Timemap endpoint.
        user_agent: ``User-Agent`` header value.

    Returns:
        A :class:`TimemapResult`.

    Raises:
        ResponseFormatError: If the payload or a timestamp is malformed.
        ValueError: If the query parameters are invalid.
    """
    sink = sink or NullLogSink()
    descriptor = build_timemap_request(
        url,
        match_type=match_type,
        collapse=collapse,
        output=output,
        fields=fields,
        filter_expr=filter_expr,
        limit=limit,
        from_timestamp=from_timestamp,
        to_timestamp=to_timestamp,
        timemap_endpoint=timemap_endpoint,
        user_agent=user_agent,
    )
    sink.log(f"Querying timemap for {url} (matchType={match_type}, output={output})")

    outcome = await executor.execute(descriptor, policy)
    if not outcome.ok:
        sink.log(f"Timemap query for {url} failed: {outcome.reason}")
        return TimemapResult(url=url, outcome=outcome)

    records = reshape_payload(outcome.response.body, output, fields)
    if not records:
        warning = f"No captures found for {url}"
        logger.warning("timemap: %s", warning)
        sink.log(warning)
        return TimemapResult(url=url, outcome=outcome, warning=warning)

    if enrich:
        enrich_timestamps(records, timestamp_fields)

    sink.log(f"Timemap for {url}: {len(records)} record(s)")
    return TimemapResult(url=url, outcome=outcome, records=records)
