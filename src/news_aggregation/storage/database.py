"""
Database connection and session management.
"""

from contextlib import contextmanager
from pathlib import Path
from typing import TYPE_CHECKING, Generator, Optional

from sqlalchemy import Engine, create_engine, event
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from news_aggregation.config import get_config
from news_aggregation.logger import get_logger
from news_aggregation.models import Base

if TYPE_CHECKING:
    from news_aggregation.config import StoreConfig

logger = get_logger(__name__)


def build_url(path: str) -> str:
    """Build a SQLAlchemy URL from a store path.

    Args:
        path: SQLite file path, ":memory:", or a full SQLAlchemy URL

    Returns:
        SQLAlchemy URL string
    """
    if path == ":memory:":
        return "sqlite://"
    if "://" in path:
        return path

    Path(path).parent.mkdir(parents=True, exist_ok=True)
    return f"sqlite:///{path}"


def create_store_engine(path: str, echo: bool = False) -> Engine:
    """Create an engine for the key-value store.

    Args:
        path: SQLite file path, ":memory:", or a SQLAlchemy URL
        echo: Echo SQL statements

    Returns:
        SQLAlchemy Engine instance
    """
    url = build_url(path)

    if not url.startswith("sqlite"):
        return create_engine(url, echo=echo, pool_pre_ping=True)

    kwargs: dict = {
        "echo": echo,
        "connect_args": {
            "check_same_thread": False,  # Needed for SQLite
            "timeout": 30,  # 30 second timeout for locks
        },
    }
    if url == "sqlite://":
        # One shared connection, otherwise each session sees an empty database
        kwargs["poolclass"] = StaticPool

    engine = create_engine(url, **kwargs)

    if url != "sqlite://":
        @event.listens_for(engine, "connect")
        def set_sqlite_pragma(dbapi_conn, connection_record):
            cursor = dbapi_conn.cursor()
            # WAL lets readers proceed while an acquisition run writes
            cursor.execute("PRAGMA journal_mode=WAL")
            cursor.close()

    return engine


class DatabaseManager:
    """Database manager for context-managed database operations."""

    def __init__(self, db_path: Optional[str] = None, store_config: Optional["StoreConfig"] = None):
        """Initialize database manager.

        Args:
            db_path: Optional database path or URL (overrides the configuration)
            store_config: Optional store configuration

        Note:
            If neither db_path nor store_config is provided, uses the global config.
        """
        self._store_config = store_config or get_config().store
        self.db_path = db_path or self._store_config.path
        self._engine: Optional[Engine] = None
        self._session_factory: Optional[sessionmaker] = None

    @property
    def engine(self) -> Engine:
        """Get the database engine."""
        if self._engine is None:
            self._engine = create_store_engine(self.db_path, echo=self._store_config.echo)
        return self._engine

    def init_db(self, drop_all: bool = False) -> None:
        """Initialize database tables.

        Args:
            drop_all: If True, drop existing tables first
        """
        if drop_all:
            logger.warning("Dropping all tables - data will be lost!")
            Base.metadata.drop_all(bind=self.engine)

        Base.metadata.create_all(bind=self.engine)

    @contextmanager
    def session(self) -> Generator[Session, None, None]:
        """Get a database session.

        Yields:
            SQLAlchemy Session instance
        """
        if self._session_factory is None:
            self._session_factory = sessionmaker(
                autocommit=False,
                autoflush=False,
                bind=self.engine,
            )
        session = self._session_factory()

        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def close(self) -> None:
        """Close database connections."""
        if self._engine is not None:
            self._engine.dispose()
            self._engine = None
            self._session_factory = None

    def __enter__(self) -> "DatabaseManager":
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Context manager exit."""
        self.close()


def init_db(db_path: Optional[str] = None, drop_all: bool = False) -> None:
    """Create the store tables.

    Args:
        db_path: Optional database path or URL (default from config)
        drop_all: If True, drop existing tables first
    """
    with DatabaseManager(db_path) as db_manager:
        db_manager.init_db(drop_all=drop_all)
        logger.info(f"Store initialized at {db_manager.db_path}")
