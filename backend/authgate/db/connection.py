"""
AuthGate database connection factory.

Provides engine creation, the session factory, and a FastAPI-compatible
``get_db_session()`` dependency that yields one session per request.
"""

from typing import Generator

from fastapi import Request
from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool


def build_engine(database_url: str) -> Engine:
    """
    Create a SQLAlchemy Engine for *database_url*.

    PostgreSQL (psycopg2) gets a bounded connection pool. SQLite URLs are
    supported for local runs and tests; an in-memory SQLite database is
    shared across threads through a single static connection.
    """
    if database_url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        if database_url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
        return create_engine(database_url, **kwargs)

    return create_engine(
        database_url,
        pool_size=5,
        max_overflow=10,
        pool_pre_ping=True,
        pool_timeout=10,
    )


def build_session_factory(engine: Engine) -> sessionmaker[Session]:
    """Return a ``sessionmaker`` bound to *engine*."""
    return sessionmaker(bind=engine, expire_on_commit=False)


def get_db_session(request: Request) -> Generator[Session, None, None]:
    """
    FastAPI dependency that yields a SQLAlchemy ``Session``.

    The store commits its own writes; any exception rolls back whatever
    is still pending.

    Usage in a route::

        @router.get("/foo")
        def foo(db: Session = Depends(get_db_session)):
            ...
    """
    factory: sessionmaker[Session] = request.app.state.session_factory
    session: Session = factory()
    try:
        yield session
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
