"""SQLAlchemy model for the music_generations table.

The service layer talks to Postgres through asyncpg; this model is the single
source for the table DDL (see `create_table_statements`).
"""

from datetime import datetime, timezone
from sqlalchemy import BigInteger, DateTime, Float, Identity, Index, Integer, String, Text
from sqlalchemy.dialects import postgresql
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.schema import CreateIndex, CreateTable


class Base(DeclarativeBase):
    pass


class MusicGeneration(Base):
    __tablename__ = "music_generations"

    id: Mapped[int] = mapped_column(
        BigInteger, Identity(always=True), primary_key=True
    )
    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False
    )
    zone: Mapped[str] = mapped_column(String(255), nullable=False)
    temperature_c: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    humidity_pct: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    co2_ppm: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    voc_index: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    occupancy: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    noise_dba: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    productivity_score: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    trend_10min_co2_ppm_delta: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    trend_10min_noise_dba_delta: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    trend_10min_productivity_delta: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    music_brief: Mapped[str] = mapped_column(Text, nullable=False)
    music_prompt: Mapped[str] = mapped_column(Text, nullable=False)
    audio_path: Mapped[str] = mapped_column(String(512), nullable=False)
    audio_filename: Mapped[str] = mapped_column(String(255), nullable=False)
    music_length_ms: Mapped[int] = mapped_column(Integer, nullable=False)
    model_id: Mapped[str] = mapped_column(String(100), nullable=False)
    generation_timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    __table_args__ = (
        Index("ix_music_generations_zone_generated", "zone", "generation_timestamp"),
    )

    def __repr__(self) -> str:
        return f"<MusicGeneration {self.zone} {self.audio_filename}>"


# Columns written on insert, in table order (id is store-assigned)
RECORD_COLUMNS = [c.name for c in MusicGeneration.__table__.columns if c.name != "id"]


def create_table_statements() -> list[str]:
    """Idempotent Postgres DDL for the table and its index."""
    dialect = postgresql.dialect()
    table = MusicGeneration.__table__
    statements = [str(CreateTable(table, if_not_exists=True).compile(dialect=dialect))]
    for index in table.indexes:
        statements.append(str(CreateIndex(index, if_not_exists=True).compile(dialect=dialect)))
    return statements
