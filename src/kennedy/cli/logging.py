"""``kennedy logging``: inspect or persist the log level."""

import logging

from kennedy.logging import configure, get_configured_level, log_file_path
from kennedy.logging.config import save_log_level

LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def register_subcommands(subparsers):
    set_level = subparsers.add_parser("set-level", help="Persist the log level for future runs")
    set_level.add_argument("level", type=str.upper, choices=LEVELS)
    subparsers.add_parser("show-path", help="Print the log file location")
    subparsers.add_parser("show-level", help="Print the active log level")


def dispatch(args):
    if args.subcommand == "set-level":
        saved_to = save_log_level(args.level)
        configure(level=getattr(logging, args.level))
        print(f"{args.level} (saved to {saved_to})")
    elif args.subcommand == "show-path":
        print(log_file_path().resolve())
    elif args.subcommand == "show-level":
        print(get_configured_level())
    else:
        raise ValueError(f"No handler for logging subcommand: {args.subcommand}")
