import logging
from typing import Iterator, Optional

from fastapi import Request
from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker

logger = logging.getLogger(__name__)

# Base class for all database models
# All models inherit from this to get SQLAlchemy ORM functionality
Base = declarative_base()


class Database:
    """
    Handle to the persistence layer.

    Built once by the app factory and connected in the lifespan startup hook,
    then shared by every request through get_db(). Nothing here connects at
    import time.
    """

    def __init__(self, url: str):
        self.url = url
        self._engine: Optional[Engine] = None
        self._session_factory: Optional[sessionmaker] = None

    @property
    def engine(self) -> Engine:
        if self._engine is None:
            raise RuntimeError("Database is not connected")
        return self._engine

    @property
    def is_connected(self) -> bool:
        return self._engine is not None

    def connect(self) -> None:
        """Create the engine and session factory, then make sure tables exist"""
        if self._engine is not None:
            return

        connect_args = {}
        if self.url.startswith("sqlite"):
            # Sync route handlers run in a threadpool, so the connection
            # created on one thread may be used on another
            connect_args["check_same_thread"] = False

        # pool_pre_ping recycles connections the server dropped while idle
        self._engine = create_engine(self.url, pool_pre_ping=True, connect_args=connect_args)
        # autocommit=False: changes require explicit commit
        # autoflush=False: don't auto-flush before queries
        # expire_on_commit=False: deleted rows stay readable for the response
        self._session_factory = sessionmaker(
            autocommit=False, autoflush=False, expire_on_commit=False, bind=self._engine)

        # Models register themselves on Base.metadata when imported
        from money_tracker.models import transaction, user  # noqa: F401
        # In production, use migrations (Alembic) instead of create_all
        Base.metadata.create_all(bind=self._engine)
        logger.info("Connected to database")

    def dispose(self) -> None:
        """Close every pooled connection; the handle can be connected again later"""
        if self._engine is None:
            return
        self._engine.dispose()
        self._engine = None
        self._session_factory = None
        logger.info("Database connection closed")

    def session(self) -> Session:
        if self._session_factory is None:
            raise RuntimeError("Database is not connected")
        return self._session_factory()

    def ping(self) -> bool:
        """Cheap liveness check used by the health endpoint"""
        if self._engine is None:
            return False
        try:
            with self._engine.connect() as connection:
                connection.execute(text("SELECT 1"))
            return True
        except SQLAlchemyError as e:
            logger.warning(f"Database ping failed: {e}")
            return False


def get_db(request: Request) -> Iterator[Session]:
    """
    Dependency for getting database session.

    The session comes from the Database handle stored on app.state and is
    closed after the request completes (via finally block).
    """
    db = request.app.state.database.session()
    try:
        yield db
    finally:
        # Always close session, even if request raises an exception
        db.close()
