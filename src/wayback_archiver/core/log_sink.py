"""Injected log capability for the submit and query orchestrators.

The orchestrators report progress and per-URL outcomes through a
:class:`LogSink` passed in by the caller, never through a module-global
writer.  The request executor does not take a sink at all.

Implementations:

- :class:`NullLogSink` discards messages (the default).
- :class:`StructlogSink` forwards messages to a structlog logger.
- :class:`FileLogSink` appends ``<timestamp>\\t<message>`` lines to a file.

:func:`create_log_file` builds the timestamped log path the CLI uses for
``--log-dir`` runs.
"""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

import structlog


@runtime_checkable
class LogSink(Protocol):
    """Anything with a ``log(message)`` method."""

    def log(self, message: str) -> None:
        ...


class NullLogSink:
    """Sink that drops every message."""

    def log(self, message: str) -> None:  # noqa: ARG002
        return None


class StructlogSink:
    """Forward sink messages to a structlog logger at INFO level.

    Args:
        logger: Bound structlog logger.  Defaults to
            ``structlog.get_logger("wayback_archiver.sink")``.
        **context: Key/value pairs bound to every record (e.g. ``command="save"``).
    """

    def __init__(self, logger: Any = None, **context: Any) -> None:
        base = logger if logger is not None else structlog.get_logger("wayback_archiver.sink")
        self._logger = base.bind(**context) if context else base

    def log(self, message: str) -> None:
        self._logger.info(message)


class FileLogSink:
    """Append timestamped messages to a UTF-8 text file.

    Each call writes one line: an ISO 8601 UTC timestamp, a tab, and the
    message.  The file is opened per write so that every line reaches disk
    even if the run is interrupted.

    Args:
        path: Destination file.  Parent directories are created on first use.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def log(self, message: str) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        stamp = datetime.now(timezone.utc).isoformat(timespec="seconds")
        with self.path.open("a", encoding="utf-8") as fh:
            fh.write(f"{stamp}\t{message}\n")


class TeeLogSink:
    """Fan a message out to several sinks in order."""

    def __init__(self, *sinks: LogSink) -> None:
        self._sinks = sinks

    def log(self, message: str) -> None:
        for sink in self._sinks:
            sink.log(message)


def create_log_file(
    directory: str | Path,
    prefix: str = "wayback",
    now: datetime | None = None,
) -> Path:
    """Return a fresh timestamped log path inside *directory*.

    The directory is created if needed; the file itself is created empty so
    the path is reserved before the first message is written.

    Args:
        directory: Directory in which to place the log file.
        prefix: File name prefix (e.g. ``"save"`` or ``"timemap"``).
        now: Override for the current time (tests).

    Returns:
        Path of the form ``<directory>/<prefix>_YYYYmmdd_HHMMSS.log``.
    """
    moment = now or datetime.now(timezone.utc)
    folder = Path(directory)
    folder.mkdir(parents=True, exist_ok=True)
    path = folder / f"{prefix}_{moment.strftime('%Y%m%d_%H%M%S')}.log"
    path.touch(exist_ok=True)
    return path
