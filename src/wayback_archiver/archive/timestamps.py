"""Wayback Machine timestamp helpers.

Archive timestamps are 14-digit UTC strings, ``YYYYMMDDHHmmss``.

Provides:
- :func:`parse_wb_timestamp`: strict parse to an aware UTC ``datetime``.
- :func:`format_wb_timestamp`: datetime (or ISO 8601 string) to 14 digits.
- :func:`enrich_timestamps`: attach ``<field>_datetime`` values to records.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable, MutableMapping, Sequence
from datetime import datetime, timezone
from typing import Any

from wayback_archiver.archive.config import WB_TIMESTAMP_FIELDS
from wayback_archiver.core.exceptions import ResponseFormatError

logger = logging.getLogger(__name__)

WB_TIMESTAMP_FORMAT: str = "%Y%m%d%H%M%S"

_WB_TIMESTAMP_RE = re.compile(r"[0-9]{14}")


def parse_wb_timestamp(value: str) -> datetime:
    """Parse a 14-digit archive timestamp as a UTC datetime.

    The match is strict: exactly 14 ASCII digits forming a valid calendar
    date and time.  ``strptime`` alone would accept shorter, unpadded values.

    Args:
        value: Raw timestamp, e.g. ``"19961227161755"``.

    Returns:
        Timezone-aware :class:`datetime` in UTC.

    Raises:
        ResponseFormatError: If *value* is not a valid 14-digit timestamp.
    """
    if not isinstance(value, str) or not _WB_TIMESTAMP_RE.fullmatch(value):
        raise ResponseFormatError(
            f"Not a 14-digit archive timestamp: {value!r}", value=value
        )
    try:
        dt = datetime.strptime(value, WB_TIMESTAMP_FORMAT)
    except ValueError as exc:
        raise ResponseFormatError(
            f"Invalid archive timestamp {value!r}: {exc}", value=value
        ) from exc
    return dt.replace(tzinfo=timezone.utc)


def format_wb_timestamp(value: datetime | str) -> str:
    """Format a datetime value as a 14-digit archive timestamp.

    Aware datetimes are converted to UTC; naive ones are taken as UTC.
    Strings may already be in archive form (1 to 14 digits, which the
    timemap API accepts as a prefix) or be ISO 8601 dates / datetimes.

    Args:
        value: Datetime object or string.

    Returns:
        Archive-formatted timestamp string.

    Raises:
        ValueError: If a string value cannot be interpreted.
    """
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        return value.strftime(WB_TIMESTAMP_FORMAT)
    text = value.strip()
    if text.isdigit() and len(text) <= 14:
        return text
    try:
        dt = datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError as exc:
        raise ValueError(f"Cannot interpret {value!r} as a timestamp") from exc
    return format_wb_timestamp(dt)


def enrich_timestamps(
    records: Sequence[MutableMapping[str, Any]],
    fields: Iterable[str] = WB_TIMESTAMP_FIELDS,
) -> Sequence[MutableMapping[str, Any]]:
    """Attach ``<field>_datetime`` values to every record, in place.

    Only fields present on the records are processed.  All values are parsed
    before any record is touched, so a single malformed value fails the
    whole batch and leaves the records unchanged.

    Args:
        records: Timemap records (mutated in place).
        fields: Names of fields holding 14-digit timestamps.

    Returns:
        The same *records* sequence.

    Raises:
        ResponseFormatError: If any present value is not a valid timestamp.
    """
    if not records:
        return records

    parsed: dict[str, list[datetime]] = {}
    for name in fields:
        if not any(name in record for record in records):
            continue
        parsed[name] = [parse_wb_timestamp(record.get(name)) for record in records]

    for name, values in parsed.items():
        for record, dt in zip(records, values):
            record[f"{name}_datetime"] = dt

    logger.debug(
        "timestamps: enriched %d record(s) for field(s) %s",
        len(records),
        ", ".join(parsed) or "none",
    )
    return records
