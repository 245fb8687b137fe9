"""WarrantyWatch command-line entry point.

Usage::

    warrantywatch -c /etc/warrantywatch/config.yaml
    warrantywatch -c config.yaml --validate-only
    warrantywatch -c config.yaml run
    warrantywatch -c config.yaml tick
    warrantywatch -c config.yaml scan --lookahead 30 --user u-123
    warrantywatch -c config.yaml check
    warrantywatch -c config.yaml db status
    python -m warrantywatch -c config.yaml
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

log = logging.getLogger(__name__)


def _get_version() -> str:
    from warrantywatch import __version__

    return __version__


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="warrantywatch",
        description="WarrantyWatch: warranty expiration notification engine",
    )
    parser.add_argument(
        "-c",
        "--config",
        required=True,
        metavar="PATH",
        help="Path to the configuration file (YAML or JSON).",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        default=False,
        help="Enable debug output (full tracebacks, verbose logging).",
    )
    parser.add_argument(
        "--validate-only",
        action="store_true",
        default=False,
        help="Validate the configuration file and exit.",
    )
    parser.add_argument(
        "-v",
        "--version",
        action="version",
        version=f"%(prog)s {_get_version()}",
    )

    subparsers = parser.add_subparsers(dest="command")

    subparsers.add_parser("run", help="Run the engine until SIGINT/SIGTERM (default)")
    subparsers.add_parser("tick", help="Run a single scan-and-notify tick now")

    scan_parser = subparsers.add_parser("scan", help="List candidates without sending")
    scan_parser.add_argument(
        "--lookahead",
        type=int,
        default=None,
        metavar="DAYS",
        help="Override every user's threshold with DAYS.",
    )
    scan_parser.add_argument("--user", default=None, metavar="ID", help="Only show this user.")

    subparsers.add_parser("check", help="Check channel configuration and connectivity")

    db_parser = subparsers.add_parser("db", help="Database management")
    db_sub = db_parser.add_subparsers(dest="db_command")
    db_sub.add_parser("status", help="Check database connectivity and tables")
    db_sub.add_parser("migrate", help="Apply the bundled schema")

    return parser


def _print_error(message: str) -> None:
    """Print a user-facing error to stderr."""
    print(f"warrantywatch: error: {message}", file=sys.stderr)  # noqa: T201


def main(argv: list[str] | None = None) -> None:
    """CLI entry point.  Parses arguments, loads config, runs a subcommand."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    # -- resolve config path ---
    config_path = Path(args.config)
    if not config_path.is_file():
        _print_error(f"configuration file not found: {config_path}")
        sys.exit(1)

    # -- bootstrap logging early (basic stderr until config is loaded) ---
    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.WARNING,
        format="%(levelname)s: %(message)s",
        stream=sys.stderr,
    )

    # -- load & validate config ---
    try:
        from warrantywatch.config import ConfigValidationError, WarrantyWatchConfig

        config = WarrantyWatchConfig(
            config_file=str(config_path),
            schema_file="bundled",
        )
    except ConfigValidationError as exc:
        _print_error(str(exc))
        sys.exit(1)
    except Exception as exc:
        if args.debug:
            raise
        _print_error(f"failed to load configuration: {exc}")
        sys.exit(1)

    # -- replace bootstrap logging with structured logging ---
    from warrantywatch.logging import configure_logging

    configure_logging(config.settings.logging)
    if args.debug:
        logging.getLogger("warrantywatch").setLevel(logging.DEBUG)

    if args.validate_only:
        _print_settings_summary(config)
        sys.exit(0)

    # -- dispatch subcommand ---
    command = args.command

    if command == "tick":
        from warrantywatch.cli.commands.tick import run_tick

        run_tick(config, args)
    elif command == "scan":
        from warrantywatch.cli.commands.scan import run_scan

        run_scan(config, args)
    elif command == "check":
        from warrantywatch.cli.commands.check import run_check

        run_check(config, args)
    elif command == "db":
        from warrantywatch.cli.commands.db import run_db

        run_db(config, args)
    else:
        # No subcommand = run
        from warrantywatch.cli.commands.run import run_engine

        _print_settings_summary(config)
        run_engine(config, args)


def _print_settings_summary(config) -> None:
    """Print a short summary of the loaded configuration."""
    s = config.settings
    lines = [
        f"WarrantyWatch {_get_version()}",
        f"  interval:   {s.engine.check_interval_seconds}s "
        f"(first tick after {s.engine.initial_delay_seconds}s)",
        f"  threshold:  {s.engine.default_threshold_days} day(s) default, "
        f"grace {s.engine.expired_grace_days} day(s)",
        f"  gate:       {s.engine.gate_backend.value}",
        f"  email:      {s.email.backend if s.email.enabled else 'disabled'}",
        f"  sms:        {s.sms.backend if s.sms.enabled else 'disabled'}",
        f"  database:   {s.database.user}@{s.database.host}:{s.database.port}/{s.database.database}",
    ]
    print("\n".join(lines))  # noqa: T201
