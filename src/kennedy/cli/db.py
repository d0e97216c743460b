"""``kennedy db``: create, inspect and migrate the CRM database.

``--url`` / ``--database`` accept a SQLAlchemy URL or a SQLite file path;
without one the usual ``KENNEDY_DB_URL`` / ``DATABASE_URL`` resolution of
:func:`kennedy.db.connect.get_db_uri` applies.
"""

from pathlib import Path

from alembic import command
from alembic.config import Config
from rich.console import Console
from rich.table import Table

from kennedy.db import operations
from kennedy.db.connect import get_db_uri
from kennedy.logging import get_logger

logger = get_logger(__name__)

# repository root holding alembic/
PROJECT_ROOT = Path(__file__).resolve().parents[3]


def register_subcommands(subparsers):
    for name, help_text in (
        ("init", "Create the CRM tables"),
        ("status", "Print the database server version"),
        ("show", "List tables with their columns and row counts"),
    ):
        subparsers.add_parser(name, help=help_text).add_argument("--url")

    for name, default in (("upgrade", "head"), ("downgrade", "-1")):
        migrate = subparsers.add_parser(name, help=f"alembic {name} (default target: {default})")
        migrate.add_argument("revision", nargs="?", default=default)
        migrate.add_argument("--database")


def dispatch(args):
    if args.subcommand == "init":
        operations.initialize(file_path=args.url)
    elif args.subcommand == "status":
        print(operations.check_status(args.url))
    elif args.subcommand == "show":
        _render_table_overview(operations.show_tables(args.url))
    elif args.subcommand in ("upgrade", "downgrade"):
        migrate = getattr(command, args.subcommand)
        logger.info("alembic %s -> %s", args.subcommand, args.revision)
        migrate(_alembic_config(args.database), args.revision)
    else:
        raise ValueError(f"No handler for db subcommand: {args.subcommand}")


def _render_table_overview(overview, console=None):
    table = Table(title="Kennedy Database", show_lines=True)
    for header in ("Table", "Rows", "Columns"):
        table.add_column(header)

    if not overview:
        table.add_row("[dim]No tables found[/dim]", "", "")
    for name in sorted(overview):
        details = overview[name]
        columns = "\n".join(
            f"{column['name']} [green]{column['type']}[/green]" + ("" if column["nullable"] else " [yellow]NOT NULL[/yellow]")
            for column in details["columns"]
        )
        table.add_row(f"[bold cyan]{name}[/bold cyan]", str(details["rows"]), columns or "[dim]-[/dim]")

    (console or Console()).print(table)


def _alembic_config(database):
    config = Config()
    config.set_main_option("script_location", str(PROJECT_ROOT / "alembic"))
    # configparser interpolation would eat "%" in URL-encoded passwords
    config.set_main_option("sqlalchemy.url", _database_url(database).replace("%", "%%"))
    return config


def _database_url(database):
    database = (database or "").strip()
    return get_db_uri(database or None)
