"""Immutable request descriptors and retry policies.

A :class:`RequestDescriptor` names everything the executor needs to send one
logical request; the same instance is re-sent unchanged on every retry.  A
:class:`RetryPolicy` holds the retry budget and backoff parameters; the
executor copies the values it mutates into locals and never touches the
policy itself.
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

from wayback_archiver.archive.config import DEFAULT_USER_AGENT

SUPPORTED_METHODS: frozenset[str] = frozenset({"GET", "POST"})


def _freeze(mapping: Mapping[str, str] | None) -> Mapping[str, str] | None:
    if mapping is None:
        return None
    return MappingProxyType({str(k): str(v) for k, v in mapping.items()})


@dataclass(frozen=True)
class RequestDescriptor:
    """One HTTP request, described by value.

    Attributes:
        url: Absolute target URL.
        method: ``"GET"`` or ``"POST"`` (normalised to upper case).
        headers: Extra request headers.  ``User-Agent`` is taken from
            :attr:`user_agent` and overrides any header of the same name.
        body: Form fields sent URL-encoded as the request body (POST only).
        params: Query-string parameters, URL-encoded onto :attr:`url`.
        user_agent: Value of the ``User-Agent`` header.

    Raises:
        ValueError: On an empty URL, an unsupported method, or a body on a
            GET request.
    """

    url: str
    method: str = "GET"
    headers: Mapping[str, str] = field(default_factory=dict)
    body: Mapping[str, str] | None = None
    params: Mapping[str, str] | None = None
    user_agent: str = DEFAULT_USER_AGENT

    def __post_init__(self) -> None:
        if not self.url or not self.url.strip():
            raise ValueError("RequestDescriptor.url must be a non-empty string")
        method = self.method.upper()
        if method not in SUPPORTED_METHODS:
            raise ValueError(
                f"Unsupported HTTP method {self.method!r}; "
                f"expected one of {sorted(SUPPORTED_METHODS)}"
            )
        if method == "GET" and self.body is not None:
            raise ValueError("A GET request cannot carry a form body")
        object.__setattr__(self, "method", method)
        object.__setattr__(self, "headers", _freeze(self.headers))
        object.__setattr__(self, "body", _freeze(self.body))
        object.__setattr__(self, "params", _freeze(self.params))

    def request_headers(self) -> dict[str, str]:
        """Return the headers to send, with ``User-Agent`` applied last."""
        merged = {k: v for k, v in self.headers.items() if k.lower() != "user-agent"}
        merged["User-Agent"] = self.user_agent
        return merged


@dataclass(frozen=True)
class RetryPolicy:
    """Retry budget and backoff parameters for one executor call.

    Attributes:
        initial_backoff_seconds: Wait before the first retry.
        max_retries: Retries allowed after the first attempt.
        backoff_decay_percent: Each retry's default wait is the previous one
            multiplied by ``backoff_decay_percent / 100``.  100 keeps the
            wait constant.
        jitter_base_seconds: After a successful call, sleep
            ``jitter_base_seconds * U(0.5, 1.5)``.  0 disables the pause.

    Raises:
        ValueError: If any value is outside its documented range.
    """

    initial_backoff_seconds: float = 60.0
    max_retries: int = 3
    backoff_decay_percent: int = 50
    jitter_base_seconds: float = 0.0

    def __post_init__(self) -> None:
        for name in ("initial_backoff_seconds", "jitter_base_seconds"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise ValueError(f"{name} must be a number")
            if not math.isfinite(value) or value < 0:
                raise ValueError(f"{name} must be a finite number >= 0")
        for name in ("max_retries", "backoff_decay_percent"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise ValueError(f"{name} must be an integer")
        if self.max_retries < 0:
            raise ValueError("max_retries must be >= 0")
        if not 1 <= self.backoff_decay_percent <= 100:
            raise ValueError("backoff_decay_percent must be between 1 and 100")

    @property
    def decay_factor(self) -> float:
        return self.backoff_decay_percent / 100

    def backoff_schedule(self) -> list[float]:
        """Return the hint-free wait before each retry, in order.

        >>> RetryPolicy(60, 3, 50).backoff_schedule()
        [60.0, 30.0, 15.0]
        """
        waits: list[float] = []
        backoff = float(self.initial_backoff_seconds)
        for _ in range(self.max_retries):
            waits.append(backoff)
            backoff *= self.decay_factor
        return waits

    def without_jitter(self) -> RetryPolicy:
        """Return a copy of this policy with the post-success pause disabled."""
        return RetryPolicy(
            initial_backoff_seconds=self.initial_backoff_seconds,
            max_retries=self.max_retries,
            backoff_decay_percent=self.backoff_decay_percent,
            jitter_base_seconds=0.0,
        )
