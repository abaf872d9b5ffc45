import logging
from typing import Any, Dict, List, Mapping, Sequence

from sqlalchemy import desc, func, insert, select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import SQLAlchemyError

from spacehub.contracts import DatasetRepository
from spacehub.db import osdr_items
from spacehub.db_space_cache import Clock, as_utc, utc_now
from spacehub.errors import StorageError
from spacehub.models import DatasetRecord
from spacehub.utils.json_pick import DatasetFieldConfig, s_pick, t_pick

logger = logging.getLogger(__name__)

_ON_CONFLICT_INSERTS = {
    "postgresql": pg_insert,
    "sqlite": sqlite_insert,
}


def extract_fields(doc: Mapping[str, Any], fields: DatasetFieldConfig) -> Dict[str, Any]:
    """Map an upstream OSDR document onto osdr_items columns."""
    return {
        "dataset_id": s_pick(doc, fields.business_key),
        "title": s_pick(doc, fields.title),
        "status": s_pick(doc, fields.status),
        "updated_at": t_pick(doc, fields.updated_at),
        "raw": dict(doc),
    }


def _row_to_record(row: Any) -> DatasetRecord:
    updated_at = row["updated_at"]
    return DatasetRecord(
        id=row["id"],
        dataset_id=row["dataset_id"],
        title=row["title"],
        status=row["status"],
        updated_at=as_utc(updated_at) if updated_at is not None else None,
        inserted_at=as_utc(row["inserted_at"]),
        raw=row["raw"],
    )


class SqlDatasetRepository(DatasetRepository):
    """Idempotent store of OSDR datasets keyed by dataset_id.

    A document with a business key is inserted once and afterwards only has its
    title/status/updated_at/raw overwritten; inserted_at never changes.
    Documents without a key cannot be matched and are always inserted.
    """

    def __init__(
        self,
        engine: Engine,
        fields: DatasetFieldConfig | None = None,
        clock: Clock = utc_now,
    ) -> None:
        self.engine = engine
        self.fields = fields or DatasetFieldConfig()
        self.clock = clock

    def _insert_if_absent(self, conn: Connection, row: Dict[str, Any]) -> bool:
        dialect_insert = _ON_CONFLICT_INSERTS.get(conn.dialect.name)
        if dialect_insert is not None:
            stmt = dialect_insert(osdr_items).values(**row).on_conflict_do_nothing(
                index_elements=["dataset_id"]
            )
            return conn.execute(stmt).rowcount == 1

        existing = conn.execute(
            select(osdr_items.c.id).where(osdr_items.c.dataset_id == row["dataset_id"])
        ).first()
        if existing:
            return False
        conn.execute(insert(osdr_items).values(**row))
        return True

    def _upsert_one(self, conn: Connection, row: Dict[str, Any]) -> bool:
        if row["dataset_id"] is None:
            conn.execute(insert(osdr_items).values(**row))
            return True

        if self._insert_if_absent(conn, row):
            return True

        conn.execute(
            update(osdr_items)
            .where(osdr_items.c.dataset_id == row["dataset_id"])
            .values(
                title=row["title"],
                status=row["status"],
                updated_at=row["updated_at"],
                raw=row["raw"],
            )
        )
        return False

    def upsert_many(self, documents: Sequence[Mapping[str, Any]]) -> int:
        inserted = 0
        updated = 0
        skipped = 0

        for doc in documents:
            if not isinstance(doc, Mapping):
                skipped += 1
                continue

            row = extract_fields(doc, self.fields)
            row["inserted_at"] = self.clock()
            try:
                with self.engine.begin() as conn:
                    if self._upsert_one(conn, row):
                        inserted += 1
                    else:
                        updated += 1
            except SQLAlchemyError as exc:
                raise StorageError(
                    f"osdr_items upsert failed for dataset_id={row['dataset_id']}: {exc}"
                ) from exc

        if skipped:
            logger.warning("osdr_items upsert skipped non-object documents=%s", skipped)
        logger.info("osdr_items upsert inserted=%s updated=%s", inserted, updated)
        return inserted

    def count(self) -> int:
        try:
            with self.engine.connect() as conn:
                return int(conn.execute(select(func.count()).select_from(osdr_items)).scalar_one())
        except SQLAlchemyError as exc:
            raise StorageError(f"osdr_items count failed: {exc}") from exc

    def list(self, limit: int) -> List[DatasetRecord]:
        stmt = (
            select(osdr_items)
            .order_by(desc(osdr_items.c.inserted_at), desc(osdr_items.c.id))
            .limit(max(int(limit), 0))
        )
        try:
            with self.engine.connect() as conn:
                rows = conn.execute(stmt).mappings().all()
        except SQLAlchemyError as exc:
            raise StorageError(f"osdr_items list failed: {exc}") from exc
        return [_row_to_record(row) for row in rows]
