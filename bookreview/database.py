"""
Database Configuration Module

SQLAlchemy 2.0 setup for the Book Review API.

Session Management Pattern
==========================
We use the "session per request" pattern:
1. Request arrives → create a new session
2. Use session for all database operations in that request
3. Commit on success, rollback on failure
4. Close session when request ends

Routes are synchronous; FastAPI runs them in its threadpool, so each
request gets its own session and connection from the pool.
"""

from collections.abc import Generator

from sqlalchemy import create_engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from bookreview.config import get_settings

settings = get_settings()


def _engine_kwargs(database_url: str) -> dict:
    """
    Build engine options for the configured backend.

    SQLite connections are created in one thread and used from the
    request threadpool, so the same-thread check must be disabled.
    """
    kwargs: dict = {
        "pool_pre_ping": True,
        "echo": settings.debug,
    }
    if database_url.startswith("sqlite"):
        kwargs["connect_args"] = {"check_same_thread": False}
    else:
        kwargs["pool_size"] = settings.db_pool_size
        kwargs["max_overflow"] = settings.db_max_overflow
    return kwargs


# =============================================================================
# Database Engine
# =============================================================================
# pool_pre_ping tests connection health before use (prevents stale
# connections); echo logs SQL statements in debug mode.

engine = create_engine(settings.database_url, **_engine_kwargs(settings.database_url))


# =============================================================================
# Session Factory
# =============================================================================
# autoflush=False keeps writes explicit: services call flush() when they
# need database-generated values or constraint checks before commit.

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
)


class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy models.

    Alembic uses Base.metadata to discover tables for migrations.
    """
    pass


# =============================================================================
# Dependency Injection
# =============================================================================
def get_db() -> Generator[Session, None, None]:
    """
    Database session dependency for FastAPI.

    Code before yield runs when the request starts, code in the finally
    block runs when it ends, even if the handler raised. Closing the
    session rolls back anything that was not committed.

    Usage in Routes:
        @router.get("/books")
        def list_books(db: Session = Depends(get_db)):
            ...

    Yields:
        SQLAlchemy Session instance
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


# =============================================================================
# Utility Functions
# =============================================================================
def create_tables() -> None:
    """
    Create all database tables.

    Handy for development and the seed script. Production schemas are
    managed by Alembic migrations.
    """
    # Models must be imported so their tables are registered on Base.metadata
    import bookreview.models  # noqa: F401

    Base.metadata.create_all(bind=engine)


def drop_tables() -> None:
    """
    Drop all database tables.

    DANGER: This deletes all data! Development and tests only.
    """
    import bookreview.models  # noqa: F401

    Base.metadata.drop_all(bind=engine)
