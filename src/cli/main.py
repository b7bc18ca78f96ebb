"""Sweepwatch CLI entry points.
This module exposes commands for dump ingest and estimate queries.
It maps argparse commands onto SDK calls.
"""

from __future__ import annotations

import argparse
from dataclasses import replace
from pathlib import Path
import sys
from typing import Any, Sequence

from core.config import SweepConfig
from core.errors import SweepError
from core.types import IngestOptions
from store.region_sdk import SweepClient

_TIMES_COLUMNS = (
    "ID",
    "Name",
    "hasGovernor",
    "hasPassword",
    "isFrontier",
    "MajorEST",
    "MajorACT",
    "MajorVar",
    "MinorEST",
    "MinorACT",
    "MinorVar",
)


def build_parser() -> argparse.ArgumentParser:
    """Build the top-level CLI parser.

    Returns:
        Configured argument parser.
    """
    parser = argparse.ArgumentParser(
        prog="sweepwatch",
        description="Regions dump ingest and update time estimation",
    )
    parser.add_argument("--data-root", help="Override SWEEPWATCH_DATA_ROOT for this command")
    parser.add_argument("-n", "--nation", help="Nation identifying the operator to the world API")
    parser.add_argument("-p", "--program", help="Program name and version using sweepwatch")
    subparsers = parser.add_subparsers(dest="command", required=True)
    _add_ingest_command(subparsers)
    _add_times_command(subparsers)
    _add_rebuild_views_command(subparsers)
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Run the sweepwatch CLI.

    Args:
        argv: Optional argument vector.

    Returns:
        Process exit code.
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        client = _build_client(args)
        if args.command == "ingest":
            return _run_ingest_command(client, args)
        if args.command == "times":
            return _run_times_command(client, args)
        if args.command == "rebuild-views":
            return _run_rebuild_views_command(client, args)
    except SweepError as error:
        print(f"error: {error}", file=sys.stderr)
        return 1
    parser.error(f"Unsupported command: {args.command}")
    return 2


def _build_client(args: argparse.Namespace) -> SweepClient:
    """Build SDK client with CLI overrides applied.

    Args:
        args: Parsed CLI args.

    Returns:
        Configured SDK client.
    """
    config = SweepConfig.from_env()
    overrides: dict[str, Any] = {}
    if args.data_root:
        overrides["data_root"] = Path(args.data_root).expanduser().resolve()
    if args.nation:
        overrides["user_nation"] = args.nation
    if args.program:
        overrides["program"] = args.program
    if getattr(args, "no_seed_nations", False):
        overrides["seed_nations"] = False
    return SweepClient(replace(config, **overrides))


def _run_ingest_command(client: SweepClient, args: argparse.Namespace) -> int:
    """Handle ingest command.

    Args:
        client: SDK client.
        args: Parsed CLI args.

    Returns:
        Exit code.
    """
    result = client.ingest(IngestOptions(dump_name=args.dump))
    if result.report is None:
        print(f"{result.store_path}\tcached")
        return 0
    print(f"{result.store_path}\tinserted={result.report.inserted}\tfailed={result.report.failed}")
    return 0


def _run_times_command(client: SweepClient, args: argparse.Namespace) -> int:
    """Handle times command.

    Args:
        client: SDK client.
        args: Parsed CLI args.

    Returns:
        Exit code.
    """
    rows = client.update_times(args.dump)
    print("\t".join(_TIMES_COLUMNS))
    for row in rows:
        print("\t".join(_format_cell(row[column]) for column in _TIMES_COLUMNS))
    return 0


def _run_rebuild_views_command(client: SweepClient, args: argparse.Namespace) -> int:
    """Handle rebuild-views command."""
    store_path = client.rebuild_views(args.dump)
    print(store_path)
    return 0


def _format_cell(value: object) -> str:
    if value is None:
        return "-"
    return str(value)


def _add_ingest_command(subparsers: Any) -> None:
    """Register ingest subcommand."""
    parser = subparsers.add_parser("ingest", help="Ingest a regions dump into its region store")
    parser.add_argument("-d", "--dump", help="Dump file to use; today's dump when omitted")
    parser.add_argument(
        "--no-seed-nations",
        action="store_true",
        help="Do not populate Nation rows from the dump",
    )


def _add_times_command(subparsers: Any) -> None:
    """Register times subcommand."""
    parser = subparsers.add_parser("times", help="Print estimated and actual update times")
    parser.add_argument("-d", "--dump", help="Dump whose store to read; today's when omitted")


def _add_rebuild_views_command(subparsers: Any) -> None:
    """Register rebuild-views subcommand."""
    parser = subparsers.add_parser("rebuild-views", help="Recreate derived views on a store")
    parser.add_argument("-d", "--dump", help="Dump whose store to rebuild; today's when omitted")
