"""Append-only cache of raw upstream documents (table `space_cache`).

Every successful fetch adds one row per source; rows are never updated or
deleted. The newest row for a source is its current value.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Callable, List, Optional

from sqlalchemy import desc, insert, select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from spacehub.contracts import SampleCache
from spacehub.db import space_cache
from spacehub.errors import StorageError
from spacehub.models import SourceSample

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; everything we write is UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _row_to_sample(row: Any) -> SourceSample:
    return SourceSample(
        id=row["id"],
        source=row["source"],
        fetched_at=as_utc(row["fetched_at"]),
        payload=row["payload"],
    )


class SqlSampleCache(SampleCache):
    def __init__(self, engine: Engine, clock: Clock = utc_now) -> None:
        self.engine = engine
        self.clock = clock

    def write(self, source: str, payload: Any) -> SourceSample:
        fetched_at = self.clock()
        try:
            with self.engine.begin() as conn:
                new_id = conn.execute(
                    insert(space_cache).values(source=source, fetched_at=fetched_at, payload=payload)
                ).inserted_primary_key[0]
        except SQLAlchemyError as exc:
            raise StorageError(f"space_cache insert failed for source={source}: {exc}") from exc

        logger.debug("space_cache: inserted id=%s source=%s", new_id, source)
        return SourceSample(id=new_id, source=source, fetched_at=as_utc(fetched_at), payload=payload)

    def latest(self, source: str) -> Optional[SourceSample]:
        rows = self.recent(source, 1)
        return rows[0] if rows else None

    def recent(self, source: str, n: int) -> List[SourceSample]:
        if n <= 0:
            return []
        stmt = (
            select(space_cache)
            .where(space_cache.c.source == source)
            .order_by(desc(space_cache.c.fetched_at), desc(space_cache.c.id))
            .limit(n)
        )
        try:
            with self.engine.connect() as conn:
                rows = conn.execute(stmt).mappings().all()
        except SQLAlchemyError as exc:
            raise StorageError(f"space_cache read failed for source={source}: {exc}") from exc
        return [_row_to_sample(row) for row in rows]
