"""
Database Connection Management
Handles engine creation, session management, and transaction setup for the catalog
"""
from contextlib import contextmanager
from pathlib import Path
from typing import Generator, Optional
import logging

from sqlalchemy import create_engine, event, exc
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import sessionmaker, Session

from acs_explorer.config import settings


logger = logging.getLogger(__name__)


def create_catalog_engine(url: str, echo: bool = False) -> Engine:
    """
    Create an engine for the catalog database.

    For SQLite the parent directory is created, and the pysqlite driver's
    implicit transaction handling is replaced by an explicit BEGIN so that
    DROP/CREATE TABLE run inside the same transaction as the inserts.
    """
    sa_url = make_url(url)
    is_sqlite = sa_url.get_backend_name() == "sqlite"

    if is_sqlite and sa_url.database and sa_url.database != ":memory:":
        Path(sa_url.database).expanduser().parent.mkdir(parents=True, exist_ok=True)

    engine = create_engine(
        sa_url,
        echo=echo,
        pool_pre_ping=settings.database.pool_pre_ping if not is_sqlite else False,
    )
    _setup_event_listeners(engine, is_sqlite)
    return engine


def _setup_event_listeners(engine: Engine, is_sqlite: bool):
    """Setup SQLAlchemy event listeners for transactions and monitoring"""

    @event.listens_for(engine, "connect")
    def receive_connect(dbapi_conn, connection_record):
        """Hand transaction control to SQLAlchemy on new connections"""
        if is_sqlite:
            dbapi_conn.isolation_level = None
        logger.debug("New database connection established")

    @event.listens_for(engine, "begin")
    def receive_begin(conn):
        """Open the transaction explicitly for SQLite"""
        if is_sqlite:
            conn.exec_driver_sql("BEGIN")


class DatabaseConnection:
    """Singleton connection manager for the configured catalog database"""

    _engine: Optional[Engine] = None

    @classmethod
    def get_engine(cls) -> Engine:
        """Get or create database engine"""
        if cls._engine is None:
            logger.info("Creating database engine...")
            cls._engine = create_catalog_engine(
                settings.database.url,
                echo=settings.database.echo,
            )
            logger.info("Database engine created successfully")

        return cls._engine

    @classmethod
    def dispose(cls):
        """Dispose of engine and sessions (cleanup)"""
        if cls._engine:
            cls._engine.dispose()
            cls._engine = None

        logger.info("Database connections disposed")


def make_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(
        bind=engine,
        expire_on_commit=False,
        autoflush=False,
    )


@contextmanager
def session_scope(session_factory: sessionmaker) -> Generator[Session, None, None]:
    """
    Context manager for database sessions with automatic commit/rollback

    Usage:
        with session_scope(factory) as session:
            session.execute(...)
    """
    session = session_factory()

    try:
        yield session
        session.commit()
    except exc.SQLAlchemyError as e:
        session.rollback()
        logger.error(f"Database session error: {e}")
        raise
    except Exception as e:
        session.rollback()
        logger.error(f"Unexpected error in database session: {e}")
        raise
    finally:
        session.close()


def dispose_database_connections():
    """Cleanup all database connections (call on application shutdown)"""
    DatabaseConnection.dispose()
