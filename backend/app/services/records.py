"""Service layer for the generation history (music_generations table).

Uses asyncpg directly with raw SQL. The pool is passed in by the caller; when
it is None the store is "unconfigured": writes are skipped and reads return
no rows, so the history view degrades instead of failing.
"""

import logging

import asyncpg

from app.models.generation import RECORD_COLUMNS, create_table_statements
from app.schemas.music import GenerationRecord, parse_timestamp

logger = logging.getLogger(__name__)

_SELECT_COLUMNS = ", ".join(RECORD_COLUMNS)


def _row_to_record(row) -> GenerationRecord:
    record = dict(row)
    # Sensor time is stored as timestamptz but reported back as a string
    record["timestamp"] = record["timestamp"].isoformat()
    return GenerationRecord(**record)


class GenerationRecordStore:
    """Append/query access to persisted generation records."""

    def __init__(self, pool: asyncpg.Pool | None):
        self.pool = pool

    @property
    def configured(self) -> bool:
        return self.pool is not None

    async def init_schema(self) -> None:
        """Create the table and its index if they do not exist yet."""
        if not self.configured:
            return
        async with self.pool.acquire() as conn:
            for statement in create_table_statements():
                await conn.execute(statement)
        logger.info("Generation history table is ready")

    async def save(self, record: GenerationRecord) -> int | None:
        """Insert one record and return the id the database assigned."""
        if not self.configured:
            logger.warning("Record store not configured, skipping save for zone %s", record.zone)
            return None

        values = record.model_dump()
        values["timestamp"] = parse_timestamp(record.timestamp)
        placeholders = ", ".join(f"${i}" for i in range(1, len(RECORD_COLUMNS) + 1))
        record_id = await self.pool.fetchval(
            f"INSERT INTO music_generations ({_SELECT_COLUMNS}) "
            f"VALUES ({placeholders}) RETURNING id",
            *(values[name] for name in RECORD_COLUMNS),
        )
        logger.info(
            "Saved generation record id=%s zone=%s file=%s",
            record_id, record.zone, record.audio_filename,
        )
        return record_id

    async def list_recent(self, limit: int = 100) -> list[GenerationRecord]:
        """Most recent records first, across all zones."""
        if not self.configured:
            logger.warning("Record store not configured, returning empty history")
            return []
        rows = await self.pool.fetch(
            f"""
            SELECT {_SELECT_COLUMNS}
            FROM music_generations
            ORDER BY generation_timestamp DESC
            LIMIT $1
            """,
            limit,
        )
        return [_row_to_record(r) for r in rows]

    async def list_by_zone(self, zone: str, limit: int = 50) -> list[GenerationRecord]:
        """Most recent records first for a single zone."""
        if not self.configured:
            logger.warning("Record store not configured, returning empty history")
            return []
        rows = await self.pool.fetch(
            f"""
            SELECT {_SELECT_COLUMNS}
            FROM music_generations
            WHERE zone = $1
            ORDER BY generation_timestamp DESC
            LIMIT $2
            """,
            zone,
            limit,
        )
        return [_row_to_record(r) for r in rows]
