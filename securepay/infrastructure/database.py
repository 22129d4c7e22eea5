"""Database engine, session factory and declarative base."""

import uuid
from datetime import timezone

from sqlalchemy import DateTime, create_engine
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool
from sqlalchemy.types import TypeDecorator

Base = declarative_base()


def new_id() -> str:
    return uuid.uuid4().hex


class UTCDateTime(TypeDecorator):
    """Timestamps are stored as UTC and always read back timezone-aware.

    SQLite drops tzinfo on the way out, PostgreSQL keeps it.
    """

    impl = DateTime
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    def process_result_value(self, value, dialect):
        if value is not None and value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value


def create_db_engine(database_url: str, pool_timeout: int = 10) -> Engine:
    url = make_url(database_url)
    if url.get_backend_name() == "sqlite":
        kwargs = {"connect_args": {"check_same_thread": False}}
        if url.database in (None, "", ":memory:"):
            # One shared connection, otherwise each checkout gets an empty database
            kwargs["poolclass"] = StaticPool
        return create_engine(database_url, **kwargs)

    # Bare scheme pinned to the declared psycopg2 driver
    if url.drivername == "postgresql":
        url = url.set(drivername="postgresql+psycopg2")

    return create_engine(
        url,
        pool_size=10,
        max_overflow=20,
        pool_timeout=pool_timeout,
        pool_pre_ping=True,
    )


def create_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False)
