"""Database engine and session factory.

Provides database connectivity and session management for the DocFlow core.
There is no implicit tenant scoping: every tenant-scoped query filters on
tenant_id explicitly.
"""

from contextlib import contextmanager
from typing import Generator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, Session

from .config import get_settings


def build_engine(database_url: str) -> Engine:
    """Create an engine with pool settings suited to the target database.

    Pool settings only apply to PostgreSQL (not SQLite).
    """
    settings = get_settings()
    engine_kwargs = {
        "pool_pre_ping": True,
        "echo": False,
    }
    if database_url.startswith("sqlite"):
        engine_kwargs["connect_args"] = {"check_same_thread": False}
    else:
        engine_kwargs["pool_size"] = settings.DB_POOL_SIZE
        engine_kwargs["max_overflow"] = settings.DB_MAX_OVERFLOW
    return create_engine(database_url, **engine_kwargs)


engine = build_engine(get_settings().DATABASE_URL)

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
)


@contextmanager
def get_db_session() -> Generator[Session, None, None]:
    """Context manager for database sessions.

    Usage:
        with get_db_session() as session:
            session.query(Tenant).all()

    Automatically commits on success, rolls back on exception.
    """
    session = SessionLocal()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def get_db() -> Generator[Session, None, None]:
    """Dependency for FastAPI endpoints.

    Usage:
        @app.get("/documents/{document_id}")
        def read_document(db: Session = Depends(get_db)):
            ...
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

