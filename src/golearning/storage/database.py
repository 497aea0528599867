"""
Database Module - Engine creation and schema setup.
===================================================
"""

from typing import Optional

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from golearning.shared.config import get_settings
from golearning.shared.exceptions import PersistenceError
from golearning.shared.logging import get_logger
from golearning.shared.utils import ensure_sqlite_parent
from golearning.storage.models import Base

logger = get_logger(__name__)


def _configure_sqlite(engine: Engine) -> None:
    """
    Enable foreign keys and let SQLAlchemy own transaction boundaries.

    pysqlite issues its own BEGIN lazily, which breaks SAVEPOINT; the
    driver's handling is switched off and BEGIN is emitted explicitly.
    """

    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, connection_record):  # type: ignore[no-untyped-def]
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine, "begin")
    def _on_begin(conn):  # type: ignore[no-untyped-def]
        conn.exec_driver_sql("BEGIN")


def create_db_engine(url: Optional[str] = None, echo: Optional[bool] = None) -> Engine:
    """
    Create an engine for the content database.

    Args:
        url: SQLAlchemy URL (defaults to the configured one)
        echo: Log SQL statements

    Raises:
        PersistenceError: If the URL is invalid or the database directory
            cannot be created
    """
    settings = get_settings()
    url = url or settings.get_effective_database_url()
    echo = settings.database.echo if echo is None else echo

    try:
        ensure_sqlite_parent(url)
        engine = create_engine(url, echo=echo)
    except OSError as e:
        raise PersistenceError(f"cannot prepare database location for {url}: {e}") from e
    except SQLAlchemyError as e:
        raise PersistenceError(f"invalid database URL {url!r}: {e}") from e

    if engine.dialect.name == "sqlite":
        _configure_sqlite(engine)

    logger.debug(f"Database engine created: {engine.url.render_as_string(hide_password=True)}")
    return engine


def init_db(engine: Engine) -> None:
    """Create all tables that do not exist yet."""
    try:
        Base.metadata.create_all(engine)
    except SQLAlchemyError as e:
        raise PersistenceError(f"schema creation failed: {e}") from e
    logger.debug("Database schema ready")
