"""SQLite document store: engine, schema and sessions behind one handle.

``open_database`` is the only way the application and the tests reach the
store. It resolves the configured path, creates the parent directory and the
schema, and hands back a :class:`Database` that owns the engine.

Usage:
    database = Database.from_settings(PipelineSettings())
    with database.session() as session:
        ...
    database.dispose()
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from sqlalchemy import Engine, create_engine, event
from sqlalchemy.orm import Session, sessionmaker

from docbridge.config.settings import PipelineSettings

from .models import Base

logger = logging.getLogger(__name__)

# Seconds a writer waits on a locked database before failing; the batch
# runner and a single-document run may overlap.
BUSY_TIMEOUT_SECONDS = 30


def _enable_wal(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.close()


@dataclass
class Database:
    """An open document store."""

    path: Path
    engine: Engine
    session_factory: sessionmaker[Session]

    @classmethod
    def from_settings(cls, settings: PipelineSettings) -> Database:
        return open_database(settings.db_path)

    def session(self) -> Session:
        return self.session_factory()

    def dispose(self) -> None:
        self.engine.dispose()
        logger.debug("Closed document store %s", self.path)


def open_database(db_path: str | Path) -> Database:
    """Open (creating if needed) the SQLite store at *db_path*.

    Schema creation is idempotent, so this is safe on every startup.
    """
    path = Path(db_path).resolve()
    # SQLite creates the file but not its directories
    path.parent.mkdir(parents=True, exist_ok=True)

    engine = create_engine(
        f"sqlite:///{path}",
        connect_args={"timeout": BUSY_TIMEOUT_SECONDS},
    )
    event.listen(engine, "connect", _enable_wal)
    Base.metadata.create_all(engine)

    logger.info("Opened document store at %s", path)
    return Database(
        path=path,
        engine=engine,
        session_factory=sessionmaker(bind=engine),
    )
