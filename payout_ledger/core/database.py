"""Database connection, session management and transactional boundaries."""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from payout_ledger.core.config import settings


def build_engine(url: str, timeout_seconds: float) -> Engine:
    """Create an engine whose transactions serialize writers per store.

    SQLite has no row locks, so every transaction is opened with
    ``BEGIN IMMEDIATE``: the write lock is taken up front and a competing
    request waits (at most ``timeout_seconds``) instead of reading a stale
    snapshot.  Server databases get a statement timeout and rely on
    ``SELECT ... FOR UPDATE`` issued by the services.
    """
    if url.startswith("sqlite"):
        new_engine = create_engine(
            url,
            connect_args={"check_same_thread": False, "timeout": timeout_seconds},
        )
        enable_sqlite_immediate_transactions(new_engine)
        return new_engine

    timeout_ms = int(timeout_seconds * 1000)
    return create_engine(
        url,
        echo=False,
        pool_pre_ping=True,
        connect_args={"options": f"-c statement_timeout={timeout_ms}"},
    )


def enable_sqlite_immediate_transactions(target: Engine) -> None:
    """Make pysqlite emit ``BEGIN IMMEDIATE`` for every SQLAlchemy transaction."""

    @event.listens_for(target, "connect")
    def _disable_pysqlite_begin(dbapi_conn, connection_record):
        # Let SQLAlchemy, not the driver, decide when a transaction starts
        dbapi_conn.isolation_level = None
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON;")
        cursor.close()

    @event.listens_for(target, "begin")
    def _begin_immediate(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


engine = build_engine(settings.database_url, settings.store_timeout_seconds)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""

    pass


def get_db():
    """Dependency that provides a database session per request."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def unit_of_work(db: Session) -> Iterator[Session]:
    """Run a block as one all-or-nothing store transaction.

    Commits when the block finishes and rolls back on any exception, which
    is re-raised unchanged.  Callers never observe a half-applied command.
    """
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
