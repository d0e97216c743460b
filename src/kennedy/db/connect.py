# kennedy/db/connect.py

import os
from contextlib import contextmanager
from functools import lru_cache
from pathlib import Path
from typing import Callable, ContextManager, Iterator

from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from kennedy.db.models import initialize_db, make_engine
from kennedy.logging import get_logger

logger = get_logger(__name__)

SessionFactory = Callable[[], ContextManager[Session]]


def get_db_dir() -> Path:
    db_dir = Path(os.environ.get("KENNEDY_DB_DIR", Path.home() / "kennedy"))
    db_dir.mkdir(parents=True, exist_ok=True)
    return db_dir


def _normalize_uri(raw: str) -> str:
    raw = raw.strip()
    # Hosted Postgres dashboards hand out the legacy scheme
    if raw.startswith("postgres://"):
        return "postgresql://" + raw.removeprefix("postgres://")
    if "://" not in raw:
        return "sqlite:///" + str(Path(raw).expanduser())
    return raw


def get_db_uri(file: str | Path | None = None) -> str:
    """Return the database URI.

    Resolution order:
      1) explicit ``file`` argument (path or URI)
      2) env ``KENNEDY_DB_URL``
      3) env ``DATABASE_URL`` (the Supabase connection string)
      4) ``kennedy.db`` inside :func:`get_db_dir`
    """

    if file is not None:
        return _normalize_uri(str(file))
    for env_name in ("KENNEDY_DB_URL", "DATABASE_URL"):
        raw = (os.getenv(env_name) or "").strip()
        if raw:
            return _normalize_uri(raw)
    return "sqlite:///" + str(get_db_dir() / "kennedy.db")


def make_session_factory(engine: Engine) -> SessionFactory:
    """Create the tables on ``engine`` and return a commit-or-rollback session scope."""

    initialize_db(engine)
    SessionLocal = sessionmaker(bind=engine, expire_on_commit=False)

    @contextmanager
    def session_scope() -> Iterator[Session]:
        session = SessionLocal()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    return session_scope


@lru_cache(maxsize=None)
def _factory_for(db_uri: str) -> SessionFactory:
    engine = make_engine(db_uri)
    logger.info("connected to %s", engine.url.render_as_string(hide_password=True))
    return make_session_factory(engine)


def get_session(file_path: str | Path | None = None) -> ContextManager[Session]:
    """Session scope on ``file_path`` (path or URI), defaulting to :func:`get_db_uri`.

    One engine is kept per resolved URI for the life of the process.
    """

    return _factory_for(get_db_uri(file_path))()


def get_session_dep() -> Iterator[Session]:
    with get_session() as session:
        yield session


def get_session_factory_dep() -> SessionFactory:
    """FastAPI dependency returning a factory for extra, independent sessions.

    Used where a request fans out to worker threads that must not share the
    request-scoped session.
    """

    return get_session
