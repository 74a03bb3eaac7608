from __future__ import annotations

from pathlib import Path
from typing import Optional

from alembic import command
from alembic.config import Config
from alembic.runtime.migration import MigrationContext
from sqlalchemy import inspect
from sqlalchemy.engine import Engine

from tierdraw.db.engine import make_engine

PROJECT_ROOT = Path(__file__).resolve().parents[1]


def alembic_config(
    database_url: Optional[str] = None, *, configure_logger: bool = True
) -> Config:
    """Build the Alembic config for this checkout.

    ``database_url`` overrides ``DB_URL``. Pass ``configure_logger=False`` to
    keep the caller's logging setup untouched.
    """
    cfg = Config(str(PROJECT_ROOT / "alembic.ini"))
    cfg.set_main_option("script_location", str(PROJECT_ROOT / "alembic"))
    if database_url is not None:
        cfg.attributes["database_url"] = database_url
    cfg.attributes["configure_logger"] = configure_logger
    return cfg


def upgrade_db(
    target_revision: str = "head",
    database_url: Optional[str] = None,
    *,
    configure_logger: bool = True,
) -> None:
    """Apply the lottery schema migrations up to ``target_revision``."""
    cfg = alembic_config(database_url, configure_logger=configure_logger)
    command.upgrade(cfg, target_revision)


def current_revision(engine: Engine) -> Optional[str]:
    """Return the migration revision stamped in the database, if any."""
    with engine.connect() as conn:
        return MigrationContext.configure(conn).get_current_revision()


def describe_schema(engine: Engine) -> str:
    """Summarize the schema state: revision reached and lottery tables present."""
    revision = current_revision(engine) or "none"
    table_names = sorted(
        name for name in inspect(engine).get_table_names() if name != "alembic_version"
    )
    return f"Schema revision: {revision}\nLottery tables: {', '.join(table_names)}"


def main() -> None:
    upgrade_db()
    engine = make_engine()
    print(describe_schema(engine))
    engine.dispose()


if __name__ == "__main__":
    main()
