"""Entry point of the ``kennedy`` console script."""

import argparse

from kennedy.cli import api, db, logging as logging_cli

COMMANDS = (
    ("db", db, "Database setup, inspection and migrations"),
    ("api", api, "Run or check the HTTP backend"),
    ("logging", logging_cli, "Log level and log file"),
)


def build_parser():
    parser = argparse.ArgumentParser(prog="kennedy", description="Punto Kennedy backend CLI")
    commands = parser.add_subparsers(dest="command", required=True)
    for name, module, help_text in COMMANDS:
        command = commands.add_parser(name, help=help_text)
        module.register_subcommands(command.add_subparsers(dest="subcommand", required=True))
        command.set_defaults(module=module)
    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)
    args.module.dispatch(args)
