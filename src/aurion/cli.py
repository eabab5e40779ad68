"""Command line client for Aurion.

Run with: aurion schedule
Table:    aurion schedule --table
Range:    aurion schedule --start 2026-09-01 --end 2026-09-30
Menu:     aurion menu submenu_291906
Groups:   aurion groups 1_42 --load submenu_291906 submenu_299102

Credentials and menu ids come from the environment (or .env):
AURION_URL, AURION_USER, AURION_PASS, SCHOOLING_ID, USER_PLANNING_ID,
GROUPS_PLANNING_ID, ...

Exit codes:
  0 = success (JSON or table on stdout)
  1 = error (message on stderr)
"""

import argparse
import json
import sys
from collections.abc import Callable
from datetime import date, datetime, time
from typing import TypeVar

import requests
from tenacity import (
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_fixed,
)

from aurion.config import AurionConfig, get_config
from aurion.errors import AurionError
from aurion.logging import get_logger, setup_logging
from aurion.models import ClassGroup, Event
from aurion.session import AurionSession

logger = get_logger(__name__)

T = TypeVar("T")

# Network failures worth starting over for; everything else is final
RETRYABLE_ERRORS = (requests.ConnectionError, requests.Timeout)


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse CLI arguments using argparse."""
    parser = argparse.ArgumentParser(
        prog="aurion",
        description="Read schedules and menus from an Aurion portal.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    commands = parser.add_subparsers(dest="command", required=True)

    schedule = commands.add_parser("schedule", help="Print the user's schedule.")
    schedule.add_argument(
        "--start",
        type=date.fromisoformat,
        default=None,
        help="First day (YYYY-MM-DD, default: start of the school year).",
    )
    schedule.add_argument(
        "--end",
        type=date.fromisoformat,
        default=None,
        help="Last day (YYYY-MM-DD, default: end of the school year).",
    )
    schedule.add_argument(
        "--table",
        action="store_true",
        help="Output a human-readable table instead of JSON.",
    )

    menu = commands.add_parser("menu", help="Expand menu nodes and print the tree.")
    menu.add_argument(
        "node_ids",
        nargs="*",
        help="Node ids to expand, in order (default: the two roots).",
    )

    groups = commands.add_parser("groups", help="Print the class groups of a leaf.")
    groups.add_argument("node_id", help="Leaf menu id.")
    groups.add_argument(
        "--load",
        nargs="*",
        default=None,
        help="Category ids to expand first so the leaf is discovered "
        "(default: the groups planning root).",
    )
    return parser.parse_args(argv)


def _day_start(day: date | None) -> datetime | None:
    return datetime.combine(day, time.min).astimezone() if day else None


def _day_end(day: date | None) -> datetime | None:
    return datetime.combine(day, time.max).astimezone() if day else None


def _format_table(events: list[Event]) -> str:
    """Format events as a human-readable table.

    Columns: Date | Time | Kind | Subject | Rooms | Participants
    """
    if not events:
        return "(no events scheduled)"

    headers = ["Date", "Time", "Kind", "Subject", "Rooms", "Participants"]

    rows = []
    for e in sorted(events, key=lambda e: e.start):
        start, end = e.start.astimezone(), e.end.astimezone()
        subject = f"{e.subject} ({e.chapter})" if e.chapter else e.subject
        rows.append(
            [
                start.strftime("%Y-%m-%d"),
                f"{start:%H:%M}-{end:%H:%M}",
                e.kind.value,
                subject,
                ", ".join(e.rooms) or "-",
                ", ".join(e.participants) or "-",
            ]
        )

    widths = [len(h) for h in headers]
    for row in rows:
        for i, cell in enumerate(row):
            widths[i] = max(widths[i], len(cell))

    header_line = " | ".join(h.ljust(widths[i]) for i, h in enumerate(headers))
    separator = "-+-".join("-" * w for w in widths)

    row_lines = []
    for row in rows:
        row_lines.append(
            " | ".join(cell.ljust(widths[i]) for i, cell in enumerate(row))
        )

    return "\n".join([header_line, separator, *row_lines])


def _format_menu(session: AurionSession, root_ids: list[str]) -> str:
    lines = []
    for root_id in root_ids:
        for depth, node in session.menu.walk(root_id):
            marker = "+" if node.is_category else "-"
            lines.append(f"{'  ' * depth}{marker} {node.name} [{node.id}]")
    return "\n".join(lines)


def _format_groups(groups: list[ClassGroup]) -> str:
    return json.dumps(
        [group.model_dump(mode="json") for group in groups],
        indent=2,
        ensure_ascii=False,
    )


def _run_session(config: AurionConfig, command: Callable[[AurionSession], T]) -> T:
    """Log in with a fresh session and run ``command`` against it."""
    with AurionSession.from_config(config) as session:
        session.login(config.aurion_user, config.aurion_pass)
        return command(session)


def _with_retry(config: AurionConfig, command: Callable[[AurionSession], T]) -> T:
    """Run a session command, starting over on network failures."""
    retrying = Retrying(
        stop=stop_after_attempt(config.retry_attempts),
        wait=wait_fixed(config.retry_wait_seconds),
        retry=retry_if_exception_type(RETRYABLE_ERRORS),
        before_sleep=lambda state: logger.warning(
            "session_retry",
            attempt=state.attempt_number,
            error=str(state.outcome.exception()),
        ),
        reraise=True,
    )
    return retrying(_run_session, config, command)


def run(args: argparse.Namespace, config: AurionConfig) -> str:
    """Execute a parsed command and return what should be printed."""
    if not config.aurion_user or not config.aurion_pass:
        raise AurionError("No credentials: set AURION_USER and AURION_PASS")

    if args.command == "schedule":
        start, end = _day_start(args.start), _day_end(args.end)
        events = _with_retry(config, lambda s: s.get_user_schedule(start, end))
        logger.info("schedule_extracted", events=len(events))
        if args.table:
            return _format_table(events)
        return json.dumps(
            [event.model_dump(mode="json") for event in events],
            indent=2,
            ensure_ascii=False,
        )

    if args.command == "menu":
        node_ids = args.node_ids or [config.schooling_id, config.groups_planning_id]

        def expand(session: AurionSession) -> str:
            session.load_nodes(node_ids)
            return _format_menu(session, node_ids)

        return _with_retry(config, expand)

    if args.command == "groups":
        load = args.load if args.load is not None else [config.groups_planning_id]

        def fetch_groups(session: AurionSession) -> list[ClassGroup]:
            session.load_nodes(load)
            return session.get_class_groups(args.node_id)

        return _format_groups(_with_retry(config, fetch_groups))

    raise AurionError(f"Unknown command {args.command!r}")


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    config = get_config()
    setup_logging(json_output=config.log_json, log_level=config.log_level)

    try:
        print(run(args, config))
    except (AurionError, requests.RequestException) as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
