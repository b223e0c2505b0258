"""
Database connection and session management.
Provides SQLAlchemy engine, session factory, and base class for models.
"""
import logging
from datetime import timezone
from fastapi import Request
from sqlalchemy import DateTime, create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker, declarative_base
from sqlalchemy.types import TypeDecorator

from .config import Settings
from .exceptions import StoreUnavailableException

logger = logging.getLogger(__name__)

# Create base class for declarative models
Base = declarative_base()


class UTCDateTime(TypeDecorator):
    """
    Timezone-aware UTC timestamp on every backend.

    SQLite drops the offset on storage; values read back without tzinfo are UTC.
    """
    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is not None and value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        return value

    def process_result_value(self, value, dialect):
        if value is None:
            return value
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)


def create_db_engine(settings: Settings) -> Engine:
    """
    Create the SQLAlchemy engine for the configured store.

    The store deadline (db_timeout_seconds) becomes the SQLite busy timeout,
    or the connect/pool/statement timeouts on PostgreSQL.
    """
    url = settings.database_url
    timeout = settings.db_timeout_seconds

    if url.startswith("sqlite"):
        return create_engine(
            url,
            connect_args={"check_same_thread": False, "timeout": timeout},
        )

    connect_args = {
        "connect_timeout": max(1, int(timeout)),
        "options": f"-c statement_timeout={int(timeout * 1000)}",
    }
    if settings.is_production:
        connect_args["sslmode"] = "require"

    return create_engine(
        url,
        connect_args=connect_args,
        pool_pre_ping=True,
        pool_timeout=timeout,
    )


def create_session_factory(engine: Engine) -> sessionmaker:
    """Create session factory for database sessions."""
    return sessionmaker(bind=engine, autoflush=False, autocommit=False)


def get_db(request: Request):
    """
    Database dependency - Creates and yields a database session.

    The session is automatically closed after the request is processed,
    even if an exception occurs during request handling.

    Yields:
        SQLAlchemy Session: Database session
    """
    db = request.app.state.session_factory()
    try:
        yield db
    finally:
        db.close()


def init_db(engine: Engine, session_factory: sessionmaker) -> None:
    """
    Verify the store is reachable, create missing tables and seed sequences.

    Raises:
        StoreUnavailableException: If the store cannot be reached or prepared
    """
    # Register models with Base.metadata before create_all
    from .auth import models as auth_models  # noqa: F401
    from .patients import models as patient_models  # noqa: F401
    from .patients.service import ensure_patient_sequence

    try:
        with engine.connect() as connection:
            connection.execute(text("SELECT 1"))
        logger.info("✅ Database connection established")

        Base.metadata.create_all(bind=engine)
        logger.info("✅ Database schema is ready")

        with session_factory() as db:
            ensure_patient_sequence(db)
    except SQLAlchemyError as e:
        logger.error(f"❌ Database initialisation failed: {str(e)}")
        raise StoreUnavailableException(f"Database initialisation failed: {e}") from e


def check_db(session_factory: sessionmaker) -> bool:
    """Return True if a trivial query succeeds against the store."""
    try:
        with session_factory() as db:
            db.execute(text("SELECT 1"))
        return True
    except SQLAlchemyError as e:
        logger.warning(f"Database health check failed: {str(e)}")
        return False
