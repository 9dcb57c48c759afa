"""wayback-archiver: submit URLs to the Wayback Machine and query capture history.

Both pipelines run their requests through
:class:`~wayback_archiver.core.executor.ResilientRequestExecutor`, which
retries transient failures with a decaying backoff and honours the archive's
``Retry-After`` hints.

Typical use::

    import asyncio
    from wayback_archiver import (
        ResilientRequestExecutor, RetryPolicy, create_http_client, query_timemap,
    )

    async def main():
        async with create_http_client() as client:
            executor = ResilientRequestExecutor(client)
            result = await query_timemap(
                "example.org", executor=executor, policy=RetryPolicy(max_retries=2),
            )
            for record in result.records or []:
                print(record["original"], record["timestamp_datetime"])

    asyncio.run(main())
"""

from __future__ import annotations

__version__ = "0.3.0"

from wayback_archiver.archive.save import (
    SaveBatch,
    SaveResult,
    build_save_request,
    submit_urls,
)
from wayback_archiver.archive.timemap import (
    TimemapResult,
    build_timemap_request,
    query_timemap,
)
from wayback_archiver.archive.timestamps import (
    enrich_timestamps,
    format_wb_timestamp,
    parse_wb_timestamp,
)
from wayback_archiver.core.descriptor import RequestDescriptor, RetryPolicy
from wayback_archiver.core.exceptions import (
    ResponseFormatError,
    SubmitAbortedError,
    WaybackArchiverError,
)
from wayback_archiver.core.executor import (
    RETRYABLE_STATUS_CODES,
    ResilientRequestExecutor,
    create_http_client,
)
from wayback_archiver.core.outcomes import (
    FailureKind,
    FatalFailure,
    ResponseSnapshot,
    RetryableFailure,
    Success,
)

__all__ = [
    "__version__",
    # core
    "RequestDescriptor",
    "RetryPolicy",
    "ResilientRequestExecutor",
    "RETRYABLE_STATUS_CODES",
    "create_http_client",
    "FailureKind",
    "FatalFailure",
    "ResponseSnapshot",
    "RetryableFailure",
    "Success",
    # errors
    "WaybackArchiverError",
    "ResponseFormatError",
    "SubmitAbortedError",
    # pipelines
    "SaveBatch",
    "SaveResult",
    "build_save_request",
    "submit_urls",
    "TimemapResult",
    "build_timemap_request",
    "query_timemap",
    "enrich_timestamps",
    "format_wb_timestamp",
    "parse_wb_timestamp",
]
