"""Endpoints, headers, and default parameters for the Wayback Machine APIs.

Used by :mod:`wayback_archiver.archive.save` (Save Page Now) and
:mod:`wayback_archiver.archive.timemap` (capture history).  Every endpoint
and retry value here can be overridden through
:class:`wayback_archiver.config.settings.Settings`.

Neither API requires credentials.  The Internet Archive's infrastructure can
be fragile under load, so both pipelines run every request through
:class:`~wayback_archiver.core.executor.ResilientRequestExecutor`.
"""

from __future__ import annotations

# ---------------------------------------------------------------------------
# API endpoints
# ---------------------------------------------------------------------------

WB_SAVE_URL: str = "https://web.archive.org/save/"
"""Save Page Now endpoint.  The target URL is appended verbatim."""

WB_TIMEMAP_URL: str = "https://web.archive.org/web/timemap/"
"""Timemap endpoint.  Query parameters select the target and output format."""

DEFAULT_USER_AGENT: str = (
    "wayback-archiver/0.3 (+https://github.com/wayback-archiver; "
    "archiving client)"
)
"""User-agent string sent with every request unless overridden."""

# ---------------------------------------------------------------------------
# Save Page Now
# ---------------------------------------------------------------------------

WB_SAVE_HEADERS: dict[str, str] = {
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Encoding": "gzip, deflate",
    "Accept-Language": "en-US,en;q=0.5",
    "DNT": "1",
    "Referer": "https://web.archive.org/",
    "TE": "trailers",
}
"""Browser-like headers sent with save requests.

The save endpoint serves a JavaScript-driven page to browsers; these headers
match what a browser sends so the capture is queued the same way.
"""

WB_SAVE_CAPTURE_ALL: str = "on"
"""Value of the ``capture_all`` form field on POST saves (also capture
error pages)."""

WB_SAVE_METHODS: tuple[str, ...] = ("POST", "GET")

# ---------------------------------------------------------------------------
# Timemap
# ---------------------------------------------------------------------------

WB_OUTPUT_MODES: tuple[str, ...] = ("json", "csv")
"""Timemap ``output`` values the reshaper understands."""

WB_TIMEMAP_FIELDS: tuple[str, ...] = (
    "original",
    "mimetype",
    "timestamp",
    "endtimestamp",
    "groupcount",
    "uniqcount",
)
"""Default ``fl`` field list, in column order."""

WB_DEFAULT_MATCH_TYPE: str = "prefix"
"""Default ``matchType``: every capture whose URL starts with the target."""

WB_DEFAULT_COLLAPSE: str = "urlkey"
"""Default ``collapse``: one row per distinct URL, with group counts."""

WB_DEFAULT_FILTER: str = "!statuscode:[45].."
"""Default ``filter``: drop captures of 4xx/5xx responses."""

WB_DEFAULT_LIMIT: int = 10_000
"""Default ``limit`` on returned rows."""

WB_TIMESTAMP_FIELDS: tuple[str, ...] = ("timestamp", "endtimestamp")
"""Fields parsed by the timestamp enrichment pass."""

# ---------------------------------------------------------------------------
# Retry defaults
# ---------------------------------------------------------------------------

WB_INITIAL_BACKOFF_SECONDS: float = 60.0
"""Wait before the first retry.  Save Page Now throttles aggressively, so
short waits mostly burn retries."""

WB_MAX_RETRIES: int = 3

WB_BACKOFF_DECAY_PERCENT: int = 50
"""Each subsequent retry waits half as long as the previous one."""

WB_JITTER_BASE_SECONDS: float = 5.0
"""Courtesy pause base between consecutive successful saves."""

WB_REQUEST_TIMEOUT: float = 120.0
"""Per-request timeout.  Saves can take over a minute to return."""
