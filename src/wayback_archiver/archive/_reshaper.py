"""Timemap payload reshaping.

Internal module used by :mod:`wayback_archiver.archive.timemap`.

The timemap endpoint answers in one of two textual shapes:

``output=json``
    A bracket-wrapped table whose rows look like JSON arrays.  The first row
    holds the field names::

        [["original","mimetype","timestamp","endtimestamp","groupcount","uniqcount"],
        ["http://example.com/","text/html","19961227161755","20240101000000",412,37]]

    The payload is treated as comma-separated text: every ``[``, ``]``,
    ``{`` and ``}`` is stripped and the remainder parsed as CSV with a
    header row.  A body that does not open with a bracket (an HTML
    maintenance page, say) is rejected, as is a header row that differs
    from the requested ``fl`` list.

``output=csv``
    Space-delimited rows with no header.  Field names come from the ``fl``
    list sent with the query and are applied by position.
"""

from __future__ import annotations

import csv
import logging
import re
from collections.abc import Sequence
from typing import Any, TypedDict

from wayback_archiver.archive.config import WB_OUTPUT_MODES
from wayback_archiver.core.exceptions import ResponseFormatError

logger = logging.getLogger(__name__)

_BRACKETS = str.maketrans("", "", "[]{}")

_ROW_BOUNDARY = re.compile(r"[\]}]\s*,\s*[\[{]")

_INTEGER_FIELDS: frozenset[str] = frozenset({"groupcount", "uniqcount"})


class TimemapRecord(TypedDict, total=False):
    """One capture row.  Extra ``fl`` fields are carried as plain keys."""

    original: str
    mimetype: str
    timestamp: str
    endtimestamp: str
    groupcount: int
    uniqcount: int
    timestamp_datetime: Any
    endtimestamp_datetime: Any


def _coerce(name: str, value: str | None) -> Any:
    if value is not None and name in _INTEGER_FIELDS and value.strip().lstrip("-").isdigit():
        return int(value)
    return value


def reshape_json_payload(
    text: str,
    field_names: Sequence[str] | None = None,
) -> list[TimemapRecord]:
    """Reshape a ``output=json`` timemap payload into records.

    Args:
        text: Raw response body.
        field_names: Columns requested via ``fl``.  When given, the header
            row must list exactly these names, in order.

    Returns:
        Records in source order; ``[]`` for an empty table or a header-only
        table.

    Raises:
        ResponseFormatError: If the body is not a bracketed table (an HTML
            error page, for example) or its header row does not match
            *field_names*.
    """
    stripped = text.lstrip()
    if stripped and stripped[0] not in "[{":
        raise ResponseFormatError(
            "timemap payload is not a JSON table",
            value=stripped[:200],
        )

    lines: list[str] = []
    # Rows may share a line; split them before the brackets disappear.
    unwrapped = _ROW_BOUNDARY.sub("\n", text).translate(_BRACKETS)
    for raw_line in unwrapped.splitlines():
        line = raw_line.strip()
        # Row separators ("],") leave a trailing comma behind.
        if line.endswith(","):
            line = line[:-1].rstrip()
        if line:
            lines.append(line)

    if not lines:
        return []

    rows = list(csv.reader(lines, skipinitialspace=True))
    header = [name.strip() for name in rows[0]]
    if field_names is not None and header != list(field_names):
        raise ResponseFormatError(
            f"timemap header {header} does not match requested fields {list(field_names)}",
            value=lines[0],
        )
    records: list[TimemapRecord] = []
    for row in rows[1:]:
        record: dict[str, Any] = {}
        for index, name in enumerate(header):
            value = row[index] if index < len(row) else None
            record[name] = _coerce(name, value)
        records.append(record)  # type: ignore[arg-type]
    return records


def reshape_csv_payload(text: str, field_names: Sequence[str]) -> list[TimemapRecord]:
    """Reshape a ``output=csv`` (space-delimited) timemap payload into records.

    Args:
        text: Raw response body.
        field_names: Column names, in the order requested via ``fl``.

    Returns:
        Records in source order.  Rows with fewer tokens than field names
        get ``None`` for the trailing fields.

    Raises:
        ResponseFormatError: If a row has more tokens than field names.
        ValueError: If *field_names* is empty.
    """
    if not field_names:
        raise ValueError("field_names must name at least one column")

    records: list[TimemapRecord] = []
    for line_no, raw_line in enumerate(text.splitlines(), start=1):
        tokens = raw_line.split()
        if not tokens:
            continue
        if len(tokens) > len(field_names):
            raise ResponseFormatError(
                f"timemap row {line_no} has {len(tokens)} values "
                f"but only {len(field_names)} field names",
                value=raw_line,
            )
        record: dict[str, Any] = {}
        for index, name in enumerate(field_names):
            value = tokens[index] if index < len(tokens) else None
            record[name] = _coerce(name, value)
        records.append(record)  # type: ignore[arg-type]
    return records


def reshape_payload(
    text: str,
    output: str,
    field_names: Sequence[str],
) -> list[TimemapRecord]:
    """Dispatch to the reshaper for the requested output mode.

    Raises:
        ResponseFormatError: If the payload does not have the requested shape.
        ValueError: If *output* is not ``"json"`` or ``"csv"``.
    """
    mode = output.lower()
    if mode == "json":
        records = reshape_json_payload(text, field_names)
    elif mode == "csv":
        records = reshape_csv_payload(text, field_names)
    else:
        raise ValueError(f"Unsupported output mode {output!r}; expected one of {WB_OUTPUT_MODES}")
    logger.debug("reshaper: %d record(s) from %s payload", len(records), mode)
    return records
