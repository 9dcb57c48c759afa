"""Unit tests for timemap payload reshaping.

Tests cover:
- JSON mode: header row, multi-line and single-line tables, empty tables
- CSV mode: positional field names, short rows, over-long rows
- Integer coercion of groupcount / uniqcount
- reshape_payload() dispatch
"""

from __future__ import annotations

import pytest

from wayback_archiver.archive._reshaper import (
    reshape_csv_payload,
    reshape_json_payload,
    reshape_payload,
)
from wayback_archiver.archive.config import WB_TIMEMAP_FIELDS
from wayback_archiver.core.exceptions import ResponseFormatError

JSON_PAYLOAD = """[["original","mimetype","timestamp","endtimestamp","groupcount","uniqcount"],
["http://example.com/","text/html","19961227161755","20240101000000",412,37],
["http://example.com/about","text/html","20010405010203","20010405010203",1,1]]
"""


# ---------------------------------------------------------------------------
# JSON mode
# ---------------------------------------------------------------------------


class TestReshapeJson:
    def test_header_row_names_fields(self) -> None:
        records = reshape_json_payload(JSON_PAYLOAD)

        assert len(records) == 2
        assert records[0] == {
            "original": "http://example.com/",
            "mimetype": "text/html",
            "timestamp": "19961227161755",
            "endtimestamp": "20240101000000",
            "groupcount": 412,
            "uniqcount": 37,
        }
        assert records[1]["original"] == "http://example.com/about"

    def test_single_record(self) -> None:
        payload = '[["original","timestamp"],\n["http://a.test/","20200101000000"]]'

        assert reshape_json_payload(payload) == [
            {"original": "http://a.test/", "timestamp": "20200101000000"}
        ]

    def test_rows_on_one_line(self) -> None:
        payload = '[["original","timestamp"],["http://a.test/","20200101000000"],["http://b.test/","20210101000000"]]'

        records = reshape_json_payload(payload)

        assert [r["original"] for r in records] == ["http://a.test/", "http://b.test/"]
        assert [r["timestamp"] for r in records] == ["20200101000000", "20210101000000"]

    def test_values_containing_commas_stay_whole(self) -> None:
        payload = '[["original","mimetype"],\n["http://a.test/?q=1,2","text/html"]]'

        assert reshape_json_payload(payload)[0]["original"] == "http://a.test/?q=1,2"

    @pytest.mark.parametrize("payload", ["", "[]", "[]\n", "  \n"])
    def test_empty_table(self, payload: str) -> None:
        assert reshape_json_payload(payload) == []

    def test_header_only_table(self) -> None:
        assert reshape_json_payload('[["original","timestamp"]]') == []

    def test_short_row_padded_with_none(self) -> None:
        payload = '[["original","timestamp","groupcount"],\n["http://a.test/","20200101000000"]]'

        assert reshape_json_payload(payload)[0]["groupcount"] is None

    @pytest.mark.parametrize(
        "payload",
        [
            "<html>\n<body>Wayback Machine is down for maintenance</body>\n</html>",
            "Internal Server Error",
            "  \n<!DOCTYPE html>",
        ],
    )
    def test_non_table_body_rejected(self, payload: str) -> None:
        with pytest.raises(ResponseFormatError, match="not a JSON table") as excinfo:
            reshape_json_payload(payload)

        assert excinfo.value.value == payload.lstrip()[:200]

    def test_matching_header_accepted(self) -> None:
        records = reshape_json_payload(JSON_PAYLOAD, WB_TIMEMAP_FIELDS)

        assert len(records) == 2

    @pytest.mark.parametrize(
        "fields",
        [
            ["original", "timestamp"],
            ["mimetype", "original", "timestamp", "endtimestamp", "groupcount", "uniqcount"],
        ],
    )
    def test_header_mismatch_rejected(self, fields: list[str]) -> None:
        with pytest.raises(ResponseFormatError, match="does not match requested fields"):
            reshape_json_payload(JSON_PAYLOAD, fields)


# ---------------------------------------------------------------------------
# CSV mode
# ---------------------------------------------------------------------------


class TestReshapeCsv:
    def test_fields_applied_by_position(self) -> None:
        text = (
            "http://example.com/ text/html 19961227161755 20240101000000 412 37\n"
            "http://example.com/about text/html 20010405010203 20010405010203 1 1\n"
        )

        records = reshape_csv_payload(text, WB_TIMEMAP_FIELDS)

        assert len(records) == 2
        assert records[0]["original"] == "http://example.com/"
        assert records[0]["groupcount"] == 412
        assert records[1]["uniqcount"] == 1

    def test_short_row_gets_none(self) -> None:
        records = reshape_csv_payload("http://a.test/ text/html\n", ["original", "mimetype", "timestamp"])

        assert records == [{"original": "http://a.test/", "mimetype": "text/html", "timestamp": None}]

    def test_blank_lines_skipped(self) -> None:
        records = reshape_csv_payload("\nhttp://a.test/ 20200101000000\n\n", ["original", "timestamp"])

        assert len(records) == 1

    def test_empty_payload(self) -> None:
        assert reshape_csv_payload("", WB_TIMEMAP_FIELDS) == []

    def test_too_many_tokens_rejected(self) -> None:
        with pytest.raises(ResponseFormatError, match="3 values") as excinfo:
            reshape_csv_payload("a b c\n", ["original", "timestamp"])

        assert excinfo.value.value == "a b c"

    def test_empty_field_names_rejected(self) -> None:
        with pytest.raises(ValueError):
            reshape_csv_payload("a b\n", [])

    def test_non_numeric_count_left_as_text(self) -> None:
        records = reshape_csv_payload("http://a.test/ -\n", ["original", "groupcount"])

        assert records[0]["groupcount"] == "-"


# ---------------------------------------------------------------------------
# Dispatch
# ---------------------------------------------------------------------------


class TestReshapePayload:
    def test_json_mode(self) -> None:
        assert len(reshape_payload(JSON_PAYLOAD, "json", WB_TIMEMAP_FIELDS)) == 2

    def test_json_mode_checks_requested_fields(self) -> None:
        with pytest.raises(ResponseFormatError):
            reshape_payload(JSON_PAYLOAD, "json", ["original"])

    def test_mode_is_case_insensitive(self) -> None:
        assert reshape_payload("a b\n", "CSV", ["original", "timestamp"]) == [
            {"original": "a", "timestamp": "b"}
        ]

    def test_unknown_mode_rejected(self) -> None:
        with pytest.raises(ValueError, match="Unsupported output mode"):
            reshape_payload("", "xml", WB_TIMEMAP_FIELDS)
