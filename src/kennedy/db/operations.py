from typing import Any

from sqlalchemy import func, inspect, select, table, text
from sqlalchemy.engine import make_url

from kennedy.db.connect import get_db_uri, get_session
from kennedy.logging import get_logger


logger = get_logger(__name__)


def check_status(file_path: str | None = None) -> str | None:
    """Query the database server version and log/return it."""

    logger.info("checking db status...")
    with get_session(file_path) as session:
        dialect = session.bind.dialect.name
        if dialect == "sqlite":
            query = text("SELECT sqlite_version();")
        else:
            query = text("SELECT version();")
        result = session.execute(query).fetchone()
        if result:
            version = result[0]
            logger.info("%s version: %s", dialect, version)
            return version
        logger.warning("version query returned no result")
        return None


def show_tables(file_path: str | None = None) -> dict[str, dict[str, Any]]:
    """Return column metadata and row counts for every table.

    Returns
    -------
    dict
        Mapping of table names to ``{"rows": int, "columns": [...]}``. Each
        column definition contains ``name``, ``type``, ``nullable`` and
        ``default`` keys.
    """

    logger.info("showing tables..")
    with get_session(file_path) as session:
        inspector = inspect(session.bind)
        table_names = sorted(inspector.get_table_names())

        overview: dict[str, dict[str, Any]] = {}
        for table_name in table_names:
            columns = [
                {
                    "name": column.get("name", ""),
                    "type": str(column.get("type", "")),
                    "nullable": bool(column.get("nullable", True)),
                    "default": column.get("default"),
                }
                for column in inspector.get_columns(table_name)
            ]
            rows = session.execute(select(func.count()).select_from(table(table_name))).scalar_one()
            overview[table_name] = {"rows": int(rows), "columns": columns}
        return overview


def initialize(file_path: str | None = None) -> str:
    """Create all tables on the target database and return its URI."""

    uri = get_db_uri(file_path)
    with get_session(file_path):
        pass
    logger.info("initialized database at %s", make_url(uri).render_as_string(hide_password=True))
    return uri
