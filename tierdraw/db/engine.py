import os
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Mapping, Optional

from dotenv import load_dotenv
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from .utils import resolve_sqlite_url

load_dotenv()
# Project root directory (repo root)
ROOT_DIR = Path(__file__).resolve().parents[2]
FALLBACK_DB_URL = "sqlite:///./dev.db"


def configured_database_url(environ: Optional[Mapping[str, str]] = None) -> str:
    """Return ``DB_URL`` from ``environ`` with relative SQLite paths resolved."""
    env = os.environ if environ is None else environ
    return resolve_sqlite_url(env.get("DB_URL") or FALLBACK_DB_URL, ROOT_DIR)


DEFAULT_SQLITE_URL = configured_database_url()


def _enable_sqlite_foreign_keys(engine: Engine) -> None:
    # Winner rows rely on ON DELETE CASCADE / SET NULL, which SQLite ignores
    # unless the pragma is set on every connection.
    @event.listens_for(engine, "connect")
    def _set_sqlite_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def make_engine(database_url: Optional[str] = None, echo: bool = False) -> Engine:
    """Create the engine used by workflows and scripts.

    In-memory SQLite URLs share a single connection so every session sees the
    same database.
    """
    url = database_url or DEFAULT_SQLITE_URL
    options = {}
    if url.startswith("sqlite") and ":memory:" in url:
        options = {
            "poolclass": StaticPool,
            "connect_args": {"check_same_thread": False},
        }
    engine = create_engine(url, echo=echo, future=True, **options)
    if engine.dialect.name == "sqlite":
        _enable_sqlite_foreign_keys(engine)
    return engine


def get_sessionmaker(engine: Engine) -> sessionmaker:
    return sessionmaker(
        bind=engine,
        expire_on_commit=False,  # Keep rosters readable after a round is committed
        future=True,
    )


@contextmanager
def session_scope(engine: Engine) -> Iterator[Session]:
    """Open a session, commit on success and roll back on error."""
    with get_sessionmaker(engine).begin() as session:
        yield session
