"""Engine construction and schema bootstrap.

Tables are declared with SQLAlchemy Core so the same definitions work on
Postgres (JSONB payloads) and on SQLite for local runs and tests.
"""

import logging

from sqlalchemy import (
    JSON,
    BigInteger,
    Column,
    DateTime,
    Index,
    Integer,
    MetaData,
    Table,
    Text,
    create_engine,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool
from sqlalchemy.sql import func

from spacehub.settings import normalize_database_url

logger = logging.getLogger(__name__)

_PK = BigInteger().with_variant(Integer(), "sqlite")
_JSON = JSON().with_variant(JSONB(), "postgresql")

metadata = MetaData()

space_cache = Table(
    "space_cache",
    metadata,
    Column("id", _PK, primary_key=True, autoincrement=True),
    Column("source", Text, nullable=False),
    Column("fetched_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    Column("payload", _JSON, nullable=False),
    Index("ix_space_cache_source", "source", "fetched_at"),
)

osdr_items = Table(
    "osdr_items",
    metadata,
    Column("id", _PK, primary_key=True, autoincrement=True),
    # NULLs are distinct under UNIQUE on both Postgres and SQLite
    Column("dataset_id", Text, nullable=True, unique=True),
    Column("title", Text),
    Column("status", Text),
    Column("updated_at", DateTime(timezone=True)),
    Column("inserted_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    Column("raw", _JSON, nullable=False),
)


def make_engine(database_url: str) -> Engine:
    url = normalize_database_url(database_url)
    if url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        if url in ("sqlite://", "sqlite:///:memory:"):
            # One shared connection, otherwise every checkout sees an empty database
            kwargs["poolclass"] = StaticPool
        return create_engine(url, **kwargs)
    return create_engine(url, pool_pre_ping=True, pool_size=5, max_overflow=5)


def ensure_schema(engine: Engine) -> None:
    """Create tables and indexes if they don't exist."""
    logger.info("Initializing database schema...")
    metadata.create_all(engine, checkfirst=True)
    logger.info("Database schema initialized.")
