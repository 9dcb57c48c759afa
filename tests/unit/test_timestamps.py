"""Unit tests for archive timestamp helpers."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from wayback_archiver.archive.timestamps import (
    enrich_timestamps,
    format_wb_timestamp,
    parse_wb_timestamp,
)
from wayback_archiver.core.exceptions import ResponseFormatError


class TestParseWbTimestamp:
    def test_parses_to_aware_utc(self) -> None:
        dt = parse_wb_timestamp("19961227161755")

        assert dt == datetime(1996, 12, 27, 16, 17, 55, tzinfo=timezone.utc)
        assert dt.isoformat() == "1996-12-27T16:17:55+00:00"

    @pytest.mark.parametrize(
        "value",
        [
            "",
            "1996122716175",  # 13 digits
            "199612271617550",  # 15 digits
            "1996-12-27T16:17:55",
            "19961327161755",  # month 13
            "19960230000000",  # February 30th
            "abcdefghijklmn",
            " 19961227161755",
        ],
    )
    def test_malformed_values_raise(self, value: str) -> None:
        with pytest.raises(ResponseFormatError) as excinfo:
            parse_wb_timestamp(value)

        assert excinfo.value.value == value

    def test_non_string_raises(self) -> None:
        with pytest.raises(ResponseFormatError):
            parse_wb_timestamp(None)  # type: ignore[arg-type]


class TestFormatWbTimestamp:
    def test_naive_datetime(self) -> None:
        assert format_wb_timestamp(datetime(2024, 3, 1, 8, 5, 9)) == "20240301080509"

    def test_aware_datetime_converted_to_utc(self) -> None:
        cet = timezone(timedelta(hours=1))

        assert format_wb_timestamp(datetime(2024, 3, 1, 9, 0, 0, tzinfo=cet)) == "20240301080000"

    @pytest.mark.parametrize("value", ["2024", "202403", "20240301080509"])
    def test_digit_prefixes_pass_through(self, value: str) -> None:
        assert format_wb_timestamp(value) == value

    def test_iso_date(self) -> None:
        assert format_wb_timestamp("2024-03-01") == "20240301000000"

    def test_iso_datetime_with_z(self) -> None:
        assert format_wb_timestamp("2024-03-01T10:00:00Z") == "20240301100000"

    def test_garbage_raises_value_error(self) -> None:
        with pytest.raises(ValueError, match="Cannot interpret"):
            format_wb_timestamp("last tuesday")


class TestEnrichTimestamps:
    def test_adds_datetime_fields(self) -> None:
        records = [{"timestamp": "19961227161755", "endtimestamp": "20240101000000"}]

        enrich_timestamps(records)

        assert records[0]["timestamp_datetime"] == datetime(
            1996, 12, 27, 16, 17, 55, tzinfo=timezone.utc
        )
        assert records[0]["endtimestamp_datetime"].year == 2024
        assert records[0]["timestamp"] == "19961227161755"

    def test_absent_fields_skipped(self) -> None:
        records = [{"original": "http://a.test/", "timestamp": "20200101000000"}]

        enrich_timestamps(records)

        assert "endtimestamp_datetime" not in records[0]
        assert "timestamp_datetime" in records[0]

    def test_custom_field_list(self) -> None:
        records = [{"timestamp": "20200101000000", "endtimestamp": "20210101000000"}]

        enrich_timestamps(records, ["endtimestamp"])

        assert "timestamp_datetime" not in records[0]
        assert "endtimestamp_datetime" in records[0]

    def test_malformed_value_leaves_records_untouched(self) -> None:
        records = [
            {"timestamp": "20200101000000"},
            {"timestamp": "2020-01-01"},
        ]

        with pytest.raises(ResponseFormatError):
            enrich_timestamps(records)

        assert "timestamp_datetime" not in records[0]

    def test_missing_value_on_one_record_fails(self) -> None:
        records = [{"timestamp": "20200101000000"}, {"original": "http://a.test/"}]

        with pytest.raises(ResponseFormatError):
            enrich_timestamps(records)

    def test_empty_input(self) -> None:
        assert enrich_timestamps([]) == []
