"""Database engine setup.

The default library is a SQLite file in WAL mode with foreign keys on.
Any SQLAlchemy URL is accepted, so the same code reads a PostgreSQL
primary store when ``[database] url`` points at one.

SQLAlchemy Core (not ORM) is used: every read is a short, explicit
select and nothing benefits from an identity map.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine, make_url

from bibgraph.infrastructure.database.schema import metadata


def create_db_engine(url: str) -> Engine:
    """Create an engine; SQLite connections get WAL mode and foreign keys."""
    engine = create_engine(url, echo=False)

    if engine.dialect.name == "sqlite":

        @event.listens_for(engine, "connect")
        def _set_sqlite_pragma(dbapi_conn: Any, _: Any) -> None:
            cursor = dbapi_conn.cursor()
            cursor.execute("PRAGMA journal_mode=WAL")
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    return engine


def init_database(url: str) -> Engine:
    """Create the engine and any missing library tables.

    For file-backed SQLite the parent directory is created first.
    Idempotent; safe to call on an existing database.
    """
    parsed = make_url(url)
    if parsed.get_backend_name() == "sqlite" and parsed.database not in (None, "", ":memory:"):
        Path(parsed.database).parent.mkdir(parents=True, exist_ok=True)

    engine = create_db_engine(url)
    metadata.create_all(engine)
    return engine
