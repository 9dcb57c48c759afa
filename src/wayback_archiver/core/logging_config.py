"""Structured logging configuration using structlog.

Call ``configure_logging()`` once at start-up (the CLI does this before
dispatching a sub-command).  All modules can then use either the stdlib
logging API or structlog directly:

Stdlib usage::

    import logging
    logger = logging.getLogger(__name__)
    logger.info("message", extra={"key": "value"})

Structlog usage (richer context binding)::

    import structlog
    logger = structlog.get_logger(__name__)
    logger.info("message", key="value", url="https://example.org/")

A ``run_id`` context variable is populated by the CLI for each invocation
and automatically merged into every log record emitted during that run.

Log records go to ``stderr`` so that result documents written to ``stdout``
stay machine-readable.
"""

from __future__ import annotations

import logging
import logging.config
import sys
from contextvars import ContextVar

import structlog
from structlog.types import EventDict, WrappedLogger

# ---------------------------------------------------------------------------
# Context variable: set by the CLI, read by the log processor
# ---------------------------------------------------------------------------

run_id_var: ContextVar[str | None] = ContextVar("run_id", default=None)
"""Per-invocation ID propagated from the CLI to log processors.

Usage::

    from wayback_archiver.core.logging_config import run_id_var
    run_id_var.set(uuid.uuid4().hex[:12])
"""


# ---------------------------------------------------------------------------
# Custom processors
# ---------------------------------------------------------------------------


_MAX_BODY_CHARS: int = 500
"""Longest ``body`` value rendered into a log record before truncation."""


def _truncate_bodies(
    logger: WrappedLogger,  # noqa: ARG001
    method_name: str,  # noqa: ARG001
    event_dict: EventDict,
) -> EventDict:
    """Shorten ``body`` values so archive error pages do not flood the log.

    Args:
        logger: The wrapped logger instance (unused).
        method_name: The log method name (unused).
        event_dict: Mutable event dictionary being assembled.

    Returns:
        The event dict with any ``body`` string cut to
        :data:`_MAX_BODY_CHARS` characters.
    """
    body = event_dict.get("body")
    if isinstance(body, str) and len(body) > _MAX_BODY_CHARS:
        event_dict["body"] = body[:_MAX_BODY_CHARS] + "…"
    return event_dict


def _inject_run_id(
    logger: WrappedLogger,  # noqa: ARG001
    method_name: str,  # noqa: ARG001
    event_dict: EventDict,
) -> EventDict:
    """Inject the current run ID into the log event dict if set.

    Runs after ``merge_contextvars`` so it acts as a fallback for code paths
    that use the ``ContextVar`` directly rather than structlog's
    ``bind_contextvars``.
    """
    rid = run_id_var.get()
    if rid is not None and "run_id" not in event_dict:
        event_dict["run_id"] = rid
    return event_dict


# ---------------------------------------------------------------------------
# Public configuration entry-point
# ---------------------------------------------------------------------------


def configure_logging(log_level: str = "INFO") -> None:
    """Configure structlog with JSON output for unattended runs.

    With ``log_level != "DEBUG"`` records are rendered as newline-delimited
    JSON.  With ``log_level == "DEBUG"`` structlog's ``ConsoleRenderer`` is
    used for human-readable coloured output.

    Standard fields added to every log record:

    - ``timestamp``: ISO 8601 string.
    - ``level``: Log level name (``"info"``, ``"warning"``, etc.).
    - ``logger``: Module name that emitted the record.
    - ``run_id``: Current CLI run ID (omitted outside a run).
    - ``event``: The log message string.

    Calling it more than once is safe: existing root handlers are replaced
    and structlog swaps its own configuration.

    Args:
        log_level: Logging verbosity string.  One of ``"DEBUG"``, ``"INFO"``,
            ``"WARNING"``, ``"ERROR"``, ``"CRITICAL"``.  Case-insensitive.
    """
    level_upper = log_level.upper()
    numeric_level = getattr(logging, level_upper, logging.INFO)
    is_development = level_upper == "DEBUG"

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        _inject_run_id,
        _truncate_bodies,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if is_development:
        final_renderer: structlog.types.Processor = structlog.dev.ConsoleRenderer(
            colors=True,
        )
    else:
        final_renderer = structlog.processors.JSONRenderer()

    # Route ``logging.getLogger(__name__)`` records through structlog's
    # ProcessorFormatter.
    formatter = structlog.stdlib.ProcessorFormatter(
        # ExtraAdder copies ``extra={...}`` fields into the event dict.
        foreign_pre_chain=[structlog.stdlib.ExtraAdder(), *shared_processors],
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            final_renderer,
        ],
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(numeric_level)

    if not is_development:
        for noisy_logger in ("httpx", "httpcore"):
            logging.getLogger(noisy_logger).setLevel(logging.WARNING)

    structlog.configure(
        processors=shared_processors
        + [
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
