"""Attempt outcomes returned by the resilient request executor.

An outcome is one of three tagged results:

- :class:`Success`: a 2xx response.
- :class:`RetryableFailure`: a transport fault or a status in the retryable
  set; carries the wait the executor should observe before re-sending.
- :class:`FatalFailure`: a non-retryable status, or the terminal give-up
  after the retry budget is spent (``kind == FailureKind.EXHAUSTED``).

The executor only ever *returns* ``Success`` or ``FatalFailure``;
``RetryableFailure`` is the per-attempt classification that drives the
retry loop.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any, Union

import httpx


class FailureKind(str, enum.Enum):
    """Failure taxonomy used in outcomes and log records."""

    TRANSPORT = "transport"
    RETRYABLE_HTTP = "retryable_http"
    FATAL_HTTP = "fatal_http"
    EXHAUSTED = "exhausted"


@dataclass(frozen=True)
class ResponseSnapshot:
    """The parts of an HTTP response the callers care about.

    Attributes:
        status_code: HTTP status code.
        headers: Response headers (lower-cased names).
        body: Decoded response text.
        url: Final URL after redirects.
    """

    status_code: int
    headers: dict[str, str] = field(default_factory=dict)
    body: str = ""
    url: str = ""

    @classmethod
    def from_httpx(cls, response: httpx.Response) -> ResponseSnapshot:
        return cls(
            status_code=response.status_code,
            headers={k.lower(): v for k, v in response.headers.items()},
            body=response.text,
            url=str(response.url),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "status_code": self.status_code,
            "headers": dict(self.headers),
            "body": self.body,
            "url": self.url,
        }


@dataclass(frozen=True)
class Success:
    response: ResponseSnapshot
    attempts: int = 1

    ok = True

    @property
    def status_code(self) -> int:
        return self.response.status_code

    def to_dict(self) -> dict[str, Any]:
        return {
            "ok": True,
            "attempts": self.attempts,
            "status_code": self.status_code,
            "response": self.response.to_dict(),
        }


@dataclass(frozen=True)
class RetryableFailure:
    """A transient failure of a single attempt.

    Attributes:
        reason: Human-readable description.
        kind: ``TRANSPORT`` or ``RETRYABLE_HTTP``.
        suggested_wait_seconds: How long to wait before re-sending.
        status_code: Status of the response, if one was received.
        error_type: Transport error class name, if no response was received.
        response: Snapshot of the response, if one was received.
        attempts: Attempts made so far, including this one.
    """

    reason: str
    kind: FailureKind
    suggested_wait_seconds: float
    status_code: int | None = None
    error_type: str | None = None
    response: ResponseSnapshot | None = None
    attempts: int = 1

    ok = False

    def __post_init__(self) -> None:
        if self.status_code is None and self.error_type is None:
            raise ValueError("RetryableFailure needs a status_code or an error_type")
        if self.suggested_wait_seconds < 0:
            raise ValueError("suggested_wait_seconds must be >= 0")


@dataclass(frozen=True)
class FatalFailure:
    """A terminal failure: either a non-retryable status or a give-up.

    Attributes:
        reason: Human-readable description.
        kind: ``FATAL_HTTP`` or ``EXHAUSTED``.
        status_code: Status of the last response received, if any.
        error_type: Transport error class of the last attempt, if any.
        response: Snapshot of the last response received, if any.
        attempts: Total attempts made.
    """

    reason: str
    kind: FailureKind
    status_code: int | None = None
    error_type: str | None = None
    response: ResponseSnapshot | None = None
    attempts: int = 1

    ok = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "ok": False,
            "attempts": self.attempts,
            "status_code": self.status_code,
            "kind": self.kind.value,
            "reason": self.reason,
            "response": self.response.to_dict() if self.response else None,
        }


AttemptOutcome = Union[Success, RetryableFailure, FatalFailure]
