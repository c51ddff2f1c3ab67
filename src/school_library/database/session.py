"""
Database session management for the School Library.

The :class:`DatabaseManager` owns the engine and session factory. It is built
explicitly and handed to whoever needs the store (server, scripts, tests);
there is no module-level store instance.

Every engine call runs as one short-lived session transaction. The
transaction is the concurrency boundary: repositories never hold application
locks across calls.
"""

import logging
from collections.abc import Callable, Generator
from contextlib import contextmanager
from pathlib import Path
from typing import NoReturn, TypeVar

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from ..config import get_config
from ..errors import LibraryError, StorageError
from .schema import Base

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _is_memory_sqlite(url: str) -> bool:
    return url in ("sqlite://", "sqlite:///:memory:") or "mode=memory" in url


class DatabaseManager:
    """
    Manages database connections and sessions.

    This class provides:
    - Lazily created engine with SQLite-specific settings
    - Session factory with explicit transactions
    - Schema initialization and connection checks
    """

    def __init__(self, database_url: str | None = None, busy_timeout: float | None = None):
        """
        Initialize the database manager.

        Args:
            database_url: SQLAlchemy database URL. If None, uses the configured
                SQLite database path.
            busy_timeout: Seconds a SQLite writer waits on a locked database.
                If None, uses the configured value.
        """
        if database_url is None or busy_timeout is None:
            config = get_config()
            if busy_timeout is None:
                busy_timeout = config.sqlite_busy_timeout
            if database_url is None:
                db_path = config.database_path
                if not db_path.is_absolute():
                    db_path = Path.cwd() / db_path
                db_path.parent.mkdir(exist_ok=True, parents=True)
                database_url = f"sqlite:///{db_path}"
                logger.info("Using SQLite database at: %s", db_path)

        self.database_url = database_url
        self.busy_timeout = busy_timeout
        self._engine: Engine | None = None
        self._session_factory: sessionmaker | None = None

    @property
    def engine(self) -> Engine:
        """
        Get or create the database engine.

        In-memory SQLite shares one connection through StaticPool. File-based
        SQLite keeps a connection per thread and waits ``busy_timeout``
        seconds for a concurrent writer to commit.
        """
        if self._engine is None:
            if _is_memory_sqlite(self.database_url):
                self._engine = create_engine(
                    self.database_url,
                    poolclass=StaticPool,
                    connect_args={"check_same_thread": False},
                    echo=False,
                )
            elif self.database_url.startswith("sqlite"):
                self._engine = create_engine(
                    self.database_url,
                    connect_args={"check_same_thread": False, "timeout": self.busy_timeout},
                    echo=False,
                )
            else:
                self._engine = create_engine(
                    self.database_url,
                    pool_size=10,
                    max_overflow=20,
                    pool_pre_ping=True,
                    echo=False,
                )

            logger.info("Database engine created: %s", self._engine.url)

        return self._engine

    @property
    def session_factory(self) -> sessionmaker:
        """Get or create the session factory."""
        if self._session_factory is None:
            self._session_factory = sessionmaker(
                bind=self.engine,
                autoflush=False,
                # Keep objects usable after commit
                expire_on_commit=False,
            )
        return self._session_factory

    def create_session(self) -> Session:
        """Create a new database session. Callers must close it."""
        return self.session_factory()

    @contextmanager
    def session_scope(self) -> Generator[Session, None, None]:
        """
        Provide a transactional scope for database operations.

        ```python
        with db.session_scope() as session:
            record = CirculationRepository(session).borrow_book(data)
        # Session is committed, or rolled back if anything raised
        ```
        """
        session = self.create_session()
        try:
            yield session
            session.commit()
            logger.debug("Database transaction committed successfully")
        except LibraryError as e:
            logger.debug("Operation rejected, rolling back: %s", e)
            session.rollback()
            raise
        except Exception:
            logger.exception("Database error, rolling back")
            session.rollback()
            raise
        finally:
            session.close()

    def init_database(self, drop_existing: bool = False) -> None:
        """
        Initialize the database schema.

        Args:
            drop_existing: If True, drop all tables before creating
        """
        if drop_existing:
            logger.warning("Dropping all existing tables...")
            Base.metadata.drop_all(bind=self.engine)

        logger.info("Creating database tables...")
        Base.metadata.create_all(bind=self.engine)
        logger.info("Database initialization complete")

    def verify_connection(self) -> bool:
        """Check that the database answers a trivial query."""
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            logger.info("Database connection verified")
            return True
        except SQLAlchemyError:
            logger.exception("Database connection failed")
            return False

    def close(self) -> None:
        """Dispose of the engine and its pooled connections."""
        if self._engine:
            self._engine.dispose()
            logger.info("Database engine disposed")
        self._engine = None
        self._session_factory = None


def safe_commit(session: Session, operation: str) -> None:
    """
    Commit a session, translating database failures into StorageError.

    Args:
        session: The database session
        operation: Description of the operation (for error messages)
    """
    try:
        session.commit()
    except SQLAlchemyError as e:
        session.rollback()
        raise StorageError(f"Database operation '{operation}' failed: {e!s}") from e


def safe_query(session: Session, query_func: Callable[[Session], T], error_msg: str) -> T:
    """
    Execute a query, translating database failures into StorageError.

    Args:
        session: The database session
        query_func: Function that performs the query
        error_msg: Error message prefix

    Returns:
        Query result
    """
    try:
        return query_func(session)
    except SQLAlchemyError as e:
        logger.exception("Query failed")
        raise StorageError(f"{error_msg}: database query failed") from e


def rollback_and_raise(session: Session, operation: str, error: Exception) -> NoReturn:
    """
    Abort the session's transaction and re-raise.

    Library errors propagate unchanged; database failures become StorageError.
    """
    session.rollback()
    if isinstance(error, SQLAlchemyError):
        raise StorageError(f"{operation} failed: {error!s}") from error
    raise error
