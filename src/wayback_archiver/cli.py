"""Command-line interface for wayback-archiver.

Run as ``wayback-archiver`` (console script) or ``python -m wayback_archiver``::

    # Save two URLs, then a list from a file
    wayback-archiver save https://example.org/ https://example.org/about
    wayback-archiver save --file urls.txt --method GET --responses --out saved.json

    # Capture history of a site as CSV
    wayback-archiver timemap example.org --match-type prefix --format csv

Settings come from ``WAYBACK_*`` environment variables (see
:class:`~wayback_archiver.config.settings.Settings`); command-line options
override them for one run.

Exit codes:
    0: Success (individual save failures are reported in the output).
    1: Timemap query failed, or the save run was aborted by an unexpected error.
    2: Invalid arguments.
    130: Interrupted (a save run still writes the URLs processed so far).
"""

from __future__ import annotations

import argparse
import asyncio
import csv
import dataclasses
import io
import json
import logging
import sys
import uuid
from collections.abc import Sequence
from datetime import datetime
from pathlib import Path
from typing import Any

from wayback_archiver import __version__
from wayback_archiver.archive.config import (
    WB_DEFAULT_COLLAPSE,
    WB_DEFAULT_FILTER,
    WB_DEFAULT_LIMIT,
    WB_DEFAULT_MATCH_TYPE,
    WB_OUTPUT_MODES,
    WB_SAVE_METHODS,
    WB_TIMEMAP_FIELDS,
)
from wayback_archiver.archive.save import SaveResult, submit_urls
from wayback_archiver.archive.timemap import query_timemap
from wayback_archiver.config.settings import Settings, get_settings
from wayback_archiver.core.descriptor import RetryPolicy
from wayback_archiver.core.exceptions import SubmitAbortedError, WaybackArchiverError
from wayback_archiver.core.executor import ResilientRequestExecutor, create_http_client
from wayback_archiver.core.log_sink import (
    FileLogSink,
    LogSink,
    StructlogSink,
    TeeLogSink,
    create_log_file,
)
from wayback_archiver.core.logging_config import configure_logging, run_id_var

logger = logging.getLogger(__name__)

EXIT_INTERRUPTED = 130
"""Exit status of a run stopped by Ctrl-C (128 + SIGINT)."""


# ---------------------------------------------------------------------------
# Argument parsing
# ---------------------------------------------------------------------------


def _add_retry_options(parser: argparse.ArgumentParser) -> None:
    group = parser.add_argument_group("retry policy")
    group.add_argument("--retries", type=int, help="Retries after the first attempt.")
    group.add_argument("--backoff", type=float, help="Seconds to wait before the first retry.")
    group.add_argument(
        "--decay",
        type=int,
        help="Percentage applied to the wait after each retry (1-100).",
    )
    group.add_argument(
        "--jitter-base",
        type=float,
        help="Base seconds of the randomised pause after each success.",
    )
    parser.add_argument("--log-level", help="DEBUG, INFO, WARNING, ERROR or CRITICAL.")
    parser.add_argument(
        "--log-dir",
        help="Write a timestamped run log into this directory.",
    )
    parser.add_argument("--out", help="Write results to this file instead of stdout.")


def build_parser() -> argparse.ArgumentParser:
    """Return the top-level argument parser."""
    parser = argparse.ArgumentParser(
        prog="wayback-archiver",
        description="Submit URLs to the Wayback Machine and query capture history.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    sub = parser.add_subparsers(dest="command", required=True)

    save = sub.add_parser("save", help="Submit URLs to Save Page Now.")
    save.add_argument("urls", nargs="*", help="URLs to save.")
    save.add_argument("--file", help="Read URLs from a file, one per line.")
    save.add_argument(
        "--method",
        choices=WB_SAVE_METHODS,
        default="POST",
        type=str.upper,
        help="HTTP method for save requests (default: POST).",
    )
    save.add_argument(
        "--responses",
        action="store_true",
        help="Report each URL's status and response instead of the bare URL.",
    )
    _add_retry_options(save)

    timemap = sub.add_parser("timemap", help="Query the capture history of a URL.")
    timemap.add_argument("url", help="URL or URL prefix to query.")
    timemap.add_argument("--match-type", default=WB_DEFAULT_MATCH_TYPE)
    timemap.add_argument("--collapse", default=WB_DEFAULT_COLLAPSE)
    timemap.add_argument(
        "--output",
        choices=WB_OUTPUT_MODES,
        default="json",
        help="Payload format requested from the archive.",
    )
    timemap.add_argument(
        "--fields",
        default=",".join(WB_TIMEMAP_FIELDS),
        help="Comma-separated field list.",
    )
    timemap.add_argument("--filter", dest="filter_expr", default=WB_DEFAULT_FILTER)
    timemap.add_argument("--limit", type=int, default=WB_DEFAULT_LIMIT)
    timemap.add_argument("--from", dest="from_timestamp", help="Earliest capture (date or 14 digits).")
    timemap.add_argument("--to", dest="to_timestamp", help="Latest capture (date or 14 digits).")
    timemap.add_argument(
        "--no-enrich",
        dest="enrich",
        action="store_false",
        help="Skip parsing timestamp fields.",
    )
    timemap.add_argument(
        "--jitter",
        action="store_true",
        default=None,
        help="Pause after the query succeeds, as between saves.",
    )
    timemap.add_argument(
        "--format",
        dest="write_format",
        choices=("json", "csv"),
        default="json",
        help="Format of the records written to --out / stdout.",
    )
    _add_retry_options(timemap)
    return parser


def _policy_from(args: argparse.Namespace, settings: Settings, *, jitter: bool) -> RetryPolicy:
    """Return the configured policy with any command-line overrides applied."""
    policy = settings.retry_policy()
    overrides = {
        field: value
        for field, value in (
            ("initial_backoff_seconds", args.backoff),
            ("max_retries", args.retries),
            ("backoff_decay_percent", args.decay),
            ("jitter_base_seconds", args.jitter_base),
        )
        if value is not None
    }
    if overrides:
        policy = dataclasses.replace(policy, **overrides)
    return policy if jitter else policy.without_jitter()


def _read_urls(args: argparse.Namespace) -> list[str]:
    urls = list(args.urls)
    if args.file:
        text = Path(args.file).read_text(encoding="utf-8")
        urls.extend(line.strip() for line in text.splitlines())
    return [u for u in urls if u and not u.startswith("#")]


def _make_sink(command: str, log_dir: str | None) -> LogSink:
    console = StructlogSink(command=command)
    if not log_dir:
        return console
    path = create_log_file(log_dir, prefix=command)
    logger.info("cli: writing run log to %s", path)
    return TeeLogSink(console, FileLogSink(path))


# ---------------------------------------------------------------------------
# Output
# ---------------------------------------------------------------------------


def _json_default(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def _records_to_csv(records: Sequence[dict[str, Any]]) -> str:
    buffer = io.StringIO()
    columns: list[str] = []
    for record in records:
        for key in record:
            if key not in columns:
                columns.append(key)
    writer = csv.DictWriter(buffer, fieldnames=columns, lineterminator="\n")
    writer.writeheader()
    for record in records:
        writer.writerow(
            {k: (v.isoformat() if isinstance(v, datetime) else v) for k, v in record.items()}
        )
    return buffer.getvalue()


def _emit(text: str, out: str | None) -> None:
    if out:
        Path(out).write_text(text, encoding="utf-8")
    else:
        sys.stdout.write(text)
        if not text.endswith("\n"):
            sys.stdout.write("\n")


def _save_entries_to_json(entries: Sequence[Any]) -> str:
    payload = [e.to_dict() if isinstance(e, SaveResult) else e for e in entries]
    return json.dumps(payload, indent=2, default=_json_default)


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


async def _run_save(args: argparse.Namespace, settings: Settings) -> int:
    urls = _read_urls(args)
    if not urls:
        logger.error("cli: no URLs given")
        return 2
    sink = _make_sink("save", args.log_dir or settings.log_dir)
    policy = _policy_from(args, settings, jitter=True)

    async with create_http_client(settings.request_timeout) as client:
        executor = ResilientRequestExecutor(client)
        try:
            entries = await submit_urls(
                urls,
                executor=executor,
                policy=policy,
                method=args.method,
                return_responses=args.responses,
                sink=sink,
                save_endpoint=settings.save_endpoint,
                user_agent=settings.user_agent,
            )
        except SubmitAbortedError as exc:
            _emit(_save_entries_to_json(exc.partial_results), args.out)
            logger.error("cli: %s", exc)
            return 1

    _emit(_save_entries_to_json(entries), args.out)
    if entries.interrupted:
        logger.warning("cli: save run interrupted after %d URL(s)", len(entries))
        return EXIT_INTERRUPTED
    return 0


async def _run_timemap(args: argparse.Namespace, settings: Settings) -> int:
    fields = [f.strip() for f in args.fields.split(",") if f.strip()]
    sink = _make_sink("timemap", args.log_dir or settings.log_dir)
    jitter = settings.query_jitter if args.jitter is None else args.jitter
    policy = _policy_from(args, settings, jitter=jitter)

    async with create_http_client(settings.request_timeout) as client:
        executor = ResilientRequestExecutor(client)
        result = await query_timemap(
            args.url,
            executor=executor,
            policy=policy,
            match_type=args.match_type or None,
            collapse=args.collapse or None,
            output=args.output,
            fields=fields,
            filter_expr=args.filter_expr or None,
            limit=args.limit,
            from_timestamp=args.from_timestamp,
            to_timestamp=args.to_timestamp,
            enrich=args.enrich,
            sink=sink,
            timemap_endpoint=settings.timemap_endpoint,
            user_agent=settings.user_agent,
        )

    if not result.ok:
        logger.error("cli: timemap query for %s failed: %s", args.url, result.outcome.reason)
        return 1

    records = result.records or []
    if args.write_format == "csv":
        _emit(_records_to_csv(records) if records else "", args.out)
    else:
        _emit(json.dumps(records, indent=2, default=_json_default), args.out)
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    """Parse *argv*, run the chosen command, and return its exit code."""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        settings = get_settings()
    except ValueError as exc:
        parser.error(f"invalid WAYBACK_* configuration: {exc}")

    configure_logging(args.log_level or settings.log_level)
    run_id_var.set(uuid.uuid4().hex[:12])

    runner = _run_save if args.command == "save" else _run_timemap
    try:
        return asyncio.run(runner(args, settings))
    except KeyboardInterrupt:
        logger.warning("cli: interrupted")
        return EXIT_INTERRUPTED
    except ValueError as exc:
        parser.error(str(exc))
    except WaybackArchiverError as exc:
        logger.error("cli: %s", exc)
        return 1
    return 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
