import os

from sqlalchemy import Text, create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.ext.compiler import compiles
from sqlalchemy.sql.functions import FunctionElement

from kennedy.identifiers import phone_digits
from kennedy.logging import get_logger

from .base import Base

logger = get_logger(__name__)


class digits_only(FunctionElement):
    """SQL expression keeping only the digits of a text column."""

    type = Text()
    name = "digits_only"
    inherit_cache = True


@compiles(digits_only)
def _digits_only_postgres(element, compiler, **kw):
    return "regexp_replace(%s, '[^0-9]', '', 'g')" % compiler.process(element.clauses, **kw)


@compiles(digits_only, "sqlite")
def _digits_only_sqlite(element, compiler, **kw):
    return "kennedy_digits(%s)" % compiler.process(element.clauses, **kw)


def make_engine(db_uri: str = "sqlite:///./kennedy.db") -> Engine:
    """Create an engine for ``db_uri``.

    SQLite gets foreign keys enabled, cross-thread access (the bot analysis
    reads chat history and documents from two worker threads) and the
    ``kennedy_digits`` function behind :class:`digits_only`. Other backends
    (the hosted Postgres) use SQLAlchemy defaults.
    """

    is_sqlite = db_uri.startswith("sqlite")
    connect_args = {"check_same_thread": False} if is_sqlite else {}
    engine = create_engine(db_uri, connect_args=connect_args, echo=False)

    if is_sqlite:
        trace_sql = os.getenv("KENNEDY_SQL_TRACE")

        @event.listens_for(engine, "connect")
        def set_sqlite_pragma(dbapi_connection, connection_record):
            dbapi_connection.create_function("kennedy_digits", 1, phone_digits, deterministic=True)
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            if trace_sql:
                dbapi_connection.set_trace_callback(lambda x: logger.info(x))
            cursor.close()

    return engine


def initialize_db(engine: Engine):
    Base.metadata.create_all(bind=engine)
