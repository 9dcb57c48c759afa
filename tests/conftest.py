"""Shared pytest fixtures for wayback-archiver tests.

Fixture summary
---------------
sleeper         : Records every wait the executor asks for; never sleeps.
list_sink       : LogSink that keeps messages in a list.
fast_policy     : RetryPolicy(initial=60, retries=3, decay=50, no jitter).
clean_settings  : Clears the cached Settings before and after a test.

No test touches the network: HTTP traffic is intercepted with ``respx``.
"""

from __future__ import annotations

from collections.abc import Iterator

import pytest

from wayback_archiver.config.settings import get_settings
from wayback_archiver.core.descriptor import RetryPolicy


class SleepRecorder:
    """Async stand-in for :func:`asyncio.sleep` that records the delays."""

    def __init__(self) -> None:
        self.waits: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.waits.append(seconds)


class ListSink:
    """LogSink that stores every message."""

    def __init__(self) -> None:
        self.messages: list[str] = []

    def log(self, message: str) -> None:
        self.messages.append(message)


@pytest.fixture
def sleeper() -> SleepRecorder:
    return SleepRecorder()


@pytest.fixture
def list_sink() -> ListSink:
    return ListSink()


@pytest.fixture
def fast_policy() -> RetryPolicy:
    return RetryPolicy(
        initial_backoff_seconds=60,
        max_retries=3,
        backoff_decay_percent=50,
        jitter_base_seconds=0,
    )


@pytest.fixture
def clean_settings(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    for var in (
        "WAYBACK_SAVE_ENDPOINT",
        "WAYBACK_TIMEMAP_ENDPOINT",
        "WAYBACK_USER_AGENT",
        "WAYBACK_REQUEST_TIMEOUT",
        "WAYBACK_MAX_RETRIES",
        "WAYBACK_INITIAL_BACKOFF_SECONDS",
        "WAYBACK_BACKOFF_DECAY_PERCENT",
        "WAYBACK_JITTER_BASE_SECONDS",
        "WAYBACK_LOG_LEVEL",
        "WAYBACK_LOG_DIR",
        "WAYBACK_QUERY_JITTER",
    ):
        monkeypatch.delenv(var, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
