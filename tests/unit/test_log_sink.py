"""Unit tests for the injected log sinks."""

from __future__ import annotations

import re
from datetime import datetime, timezone
from unittest.mock import MagicMock

from wayback_archiver.core.log_sink import (
    FileLogSink,
    LogSink,
    NullLogSink,
    StructlogSink,
    TeeLogSink,
    create_log_file,
)


class TestProtocol:
    def test_builtin_sinks_satisfy_protocol(self, tmp_path) -> None:
        for sink in (
            NullLogSink(),
            StructlogSink(),
            FileLogSink(tmp_path / "run.log"),
            TeeLogSink(),
        ):
            assert isinstance(sink, LogSink)

    def test_null_sink_accepts_messages(self) -> None:
        assert NullLogSink().log("ignored") is None


class TestStructlogSink:
    def test_forwards_at_info(self) -> None:
        logger = MagicMock()
        StructlogSink(logger).log("hello")

        logger.info.assert_called_once_with("hello")

    def test_binds_context(self) -> None:
        logger = MagicMock()
        StructlogSink(logger, command="save").log("hello")

        logger.bind.assert_called_once_with(command="save")
        logger.bind.return_value.info.assert_called_once_with("hello")


class TestFileLogSink:
    def test_appends_timestamped_lines(self, tmp_path) -> None:
        path = tmp_path / "logs" / "run.log"
        sink = FileLogSink(path)

        sink.log("first")
        sink.log("second")

        lines = path.read_text(encoding="utf-8").splitlines()
        assert len(lines) == 2
        stamp, message = lines[0].split("\t", 1)
        assert message == "first"
        assert re.fullmatch(r"\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}\+00:00", stamp)
        assert lines[1].endswith("\tsecond")


class TestTeeLogSink:
    def test_forwards_in_order(self, list_sink, tmp_path) -> None:
        path = tmp_path / "tee.log"
        TeeLogSink(list_sink, FileLogSink(path)).log("both")

        assert list_sink.messages == ["both"]
        assert path.read_text(encoding="utf-8").endswith("\tboth\n")


class TestCreateLogFile:
    def test_timestamped_name(self, tmp_path) -> None:
        now = datetime(2024, 5, 6, 7, 8, 9, tzinfo=timezone.utc)

        path = create_log_file(tmp_path / "nested", prefix="save", now=now)

        assert path.name == "save_20240506_070809.log"
        assert path.exists()
        assert path.read_text() == ""

    def test_default_prefix(self, tmp_path) -> None:
        path = create_log_file(tmp_path)

        assert re.fullmatch(r"wayback_\d{8}_\d{6}\.log", path.name)
