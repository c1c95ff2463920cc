"""
Database client: engine, session factory and the request-scoped session dependency.
"""
from contextlib import contextmanager
from typing import Iterator

from fastapi import Request
from sqlalchemy import create_engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from .logging_config import db_logger


class Base(DeclarativeBase):
    pass


class Database:
    """
    Owned handle on the relational store.

    Built once per application, shared by request handlers and the
    publication sweep, and disposed at shutdown.
    """

    def __init__(self, url: str, **engine_kwargs):
        if url.startswith("sqlite"):
            connect_args = engine_kwargs.setdefault("connect_args", {})
            connect_args.setdefault("check_same_thread", False)

        self.url = url
        self.engine = create_engine(url, **engine_kwargs)
        self.session_factory = sessionmaker(
            bind=self.engine,
            autoflush=False,
            expire_on_commit=False,
        )

    def create_all(self) -> None:
        """Create tables (in production, use migrations instead)."""
        # Register every model on Base.metadata
        from . import models  # noqa: F401

        Base.metadata.create_all(bind=self.engine)

    def drop_all(self) -> None:
        Base.metadata.drop_all(bind=self.engine)

    def session(self) -> Session:
        return self.session_factory()

    @contextmanager
    def session_scope(self) -> Iterator[Session]:
        """Open a session that is always closed; uncommitted work is rolled back."""
        session = self.session_factory()
        try:
            yield session
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def dispose(self) -> None:
        self.engine.dispose()
        db_logger.info("Database engine disposed", url=self.engine.url.render_as_string(hide_password=True))


def get_database(request: Request) -> Database:
    """Get the application's database client."""
    return request.app.state.database


def get_db(request: Request) -> Iterator[Session]:
    """Yield a session for the duration of one request."""
    with get_database(request).session_scope() as session:
        yield session
