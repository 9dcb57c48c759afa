"""Application-wide exception hierarchy for wayback-archiver.

All custom exceptions subclass ``WaybackArchiverError``, enabling
consistent error handling and structured logging across the package.

Hierarchy::

    WaybackArchiverError
    ├── ResponseFormatError
    └── SubmitAbortedError       (partial_results: list)

Transient and fatal HTTP failures are *not* exceptions: the request executor
returns them as outcomes (see :mod:`wayback_archiver.core.outcomes`).  Only
conditions the executor cannot classify are raised.
"""

from __future__ import annotations

from typing import Any


class WaybackArchiverError(Exception):
    """Base class for all wayback-archiver exceptions.

    Callers can catch the entire hierarchy with a single ``except`` clause
    when needed.
    """


class ResponseFormatError(WaybackArchiverError):
    """Raised when an archive payload or timestamp cannot be parsed.

    Args:
        message: Human-readable description of the failure.
        value: The offending raw value (row, token, or timestamp), if known.
    """

    def __init__(self, message: str, value: Any = None) -> None:
        super().__init__(message)
        self.value = value


class SubmitAbortedError(WaybackArchiverError):
    """Raised when an unclassified fault terminates a submit run early.

    The entries collected before the fault are preserved on the exception so
    the caller can still flush them.

    Args:
        message: Human-readable description of the abort.
        partial_results: Entries accumulated before the fault, in input order.
        url: The URL being processed when the fault occurred.
    """

    def __init__(
        self,
        message: str,
        partial_results: list[Any],
        url: str | None = None,
    ) -> None:
        super().__init__(message)
        self.partial_results = partial_results
        self.url = url
