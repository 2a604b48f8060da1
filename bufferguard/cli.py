#!/usr/bin/env python3
"""
BufferGuard Command Line Interface

Main entry point for the `bufferguard` command. Meant to be invoked
periodically (cron, systemd timer). Do not schedule overlapping runs for
the same calendar.

Usage:
    bufferguard run                      # Place buffers for the next lookahead window
    bufferguard run --extended           # Use the extended lookahead
    bufferguard run --dry-run            # Report what would be created
    bufferguard cleanup                  # Delete orphaned buffers
    bufferguard classify --event-id ID   # Explain the decision for one event
    bufferguard check-config             # Validate config and print the policy
"""

import argparse
import asyncio
import json
import os
import sys

from bufferguard import CONFIG_PATH, __version__
from bufferguard.calendar.providers.base import AdapterError, CalendarAdapter
from bufferguard.calendar.providers.google_calendar import GoogleCalendarAdapter
from bufferguard.calendar.providers.memory import DryRunAdapter
from bufferguard.engine.runner import classify_only, run_buffer_pass, run_cleanup_pass
from bufferguard.logging_config import get_logger, run_context, setup_logging
from bufferguard.policies.config_models import BufferGuardConfig, ConfigError, load_config

logger = get_logger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_CONFIG = 2


def build_adapter(config: BufferGuardConfig, dry_run: bool = False) -> CalendarAdapter:
    """Google adapter from the token in the configured environment variable."""
    token = os.environ.get(config.google.access_token_env, "")
    if not token:
        raise ConfigError(f"Environment variable {config.google.access_token_env} is not set")

    adapter: CalendarAdapter = GoogleCalendarAdapter(
        access_token=token,
        max_results=config.google.max_results,
    )
    if dry_run:
        adapter = DryRunAdapter(adapter)
    return adapter


def _print_json(data) -> None:
    print(json.dumps(data, indent=2, default=str))


def cmd_run(args, config: BufferGuardConfig) -> int:
    adapter = build_adapter(config, dry_run=args.dry_run)
    report = asyncio.run(run_buffer_pass(adapter, config, extended=args.extended))
    result = report.to_dict()
    result["dry_run"] = args.dry_run
    _print_json(result)
    return EXIT_FAILURE if report.errors else EXIT_OK


def cmd_cleanup(args, config: BufferGuardConfig) -> int:
    adapter = build_adapter(config, dry_run=args.dry_run)
    report = asyncio.run(run_cleanup_pass(adapter, config, extended=args.extended))
    result = report.to_dict()
    result["dry_run"] = args.dry_run
    _print_json(result)
    return EXIT_FAILURE if (report.errors or report.failed) else EXIT_OK


def cmd_classify(args, config: BufferGuardConfig) -> int:
    adapter = build_adapter(config)

    async def _classify():
        event = await adapter.get_event(args.calendar_id or config.calendars.write, args.event_id)
        return event, await classify_only(adapter, config, event)

    try:
        event, decision = asyncio.run(_classify())
    except AdapterError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_FAILURE

    _print_json({
        "event_id": event.event_id,
        "title": event.title,
        "start": event.start_time.isoformat(),
        "end": event.end_time.isoformat(),
        "decision": decision.to_dict(),
    })
    return EXIT_OK


def cmd_check_config(args, config: BufferGuardConfig) -> int:
    _print_json(config.model_dump(mode="json"))
    return EXIT_OK


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="bufferguard",
        description="Place and clean up buffer time around meetings",
        epilog="Run at most one pass at a time per calendar.",
    )
    parser.add_argument("--version", action="version", version=f"bufferguard {__version__}")
    parser.add_argument("--config", default=None, help=f"Config file (default: {CONFIG_PATH})")
    parser.add_argument("--log-level", default=None, help="Log level (default: BUFFERGUARD_LOG_LEVEL or INFO)")
    parser.add_argument("--json-logs", action="store_true", default=None, help="Emit JSON log lines")

    subparsers = parser.add_subparsers(dest="command", required=True)

    run_parser = subparsers.add_parser("run", help="Create buffers around qualifying meetings")
    run_parser.add_argument("--extended", action="store_true", help="Use the extended lookahead")
    run_parser.add_argument("--dry-run", action="store_true", help="Do not write to the calendar")
    run_parser.set_defaults(func=cmd_run)

    cleanup_parser = subparsers.add_parser("cleanup", help="Delete buffers with no qualifying meeting")
    cleanup_parser.add_argument("--extended", action="store_true", help="Use the extended lookahead")
    cleanup_parser.add_argument("--dry-run", action="store_true", help="Do not write to the calendar")
    cleanup_parser.set_defaults(func=cmd_cleanup)

    classify_parser = subparsers.add_parser("classify", help="Explain the decision for one event")
    classify_parser.add_argument("--event-id", required=True, help="Provider event ID")
    classify_parser.add_argument("--calendar-id", help="Calendar holding the event (default: write calendar)")
    classify_parser.set_defaults(func=cmd_classify)

    check_parser = subparsers.add_parser("check-config", help="Validate config and print the effective policy")
    check_parser.set_defaults(func=cmd_check_config)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    setup_logging(level=args.log_level, json_output=args.json_logs)

    with run_context(command=args.command, dry_run=getattr(args, "dry_run", None)):
        try:
            config = load_config(args.config)
            return args.func(args, config)
        except ConfigError as e:
            logger.error("config_error", error=str(e))
            print(f"Configuration error: {e}", file=sys.stderr)
            return EXIT_CONFIG


if __name__ == "__main__":
    sys.exit(main())
