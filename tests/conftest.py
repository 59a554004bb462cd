"""Pytest configuration and fixtures."""
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from app.schemas.music import GenerationRecord, MusicBrief
from app.services.artifacts import AudioStore
from app.services.pipeline import MusicPipeline


class FakeRecordStore:
    """In-memory stand-in for GenerationRecordStore."""

    def __init__(self, configured: bool = True, fail_on_save: bool = False):
        self.configured = configured
        self.fail_on_save = fail_on_save
        self.records: list[GenerationRecord] = []

    async def save(self, record: GenerationRecord) -> int | None:
        if self.fail_on_save:
            raise RuntimeError("database is unavailable")
        self.records.append(record)
        return len(self.records)

    def _ordered(self, records):
        return sorted(records, key=lambda r: r.generation_timestamp, reverse=True)

    async def list_recent(self, limit: int = 100) -> list[GenerationRecord]:
        return self._ordered(self.records)[:limit]

    async def list_by_zone(self, zone: str, limit: int = 50) -> list[GenerationRecord]:
        return self._ordered([r for r in self.records if r.zone == zone])[:limit]


@pytest.fixture
def snapshot_payload() -> dict:
    return {
        "timestamp": "2025-01-28T12:05:00",
        "zone": "Cafeteria",
        "temperature_c": 23.4,
        "humidity_pct": 48,
        "co2_ppm": 880,
        "voc_index": 120,
        "occupancy": 32,
        "noise_dba": 58,
        "productivity_score": 71,
        "trend_10min_co2_ppm_delta": 40,
        "trend_10min_noise_dba_delta": 2,
        "trend_10min_productivity_delta": -3,
    }


@pytest.fixture
def brief() -> MusicBrief:
    return MusicBrief(
        mood="focused",
        energy=58,
        tension=30,
        bpm=(80, 90),
        duration_sec=60,
        loopable=True,
        key_suggestion="D minor",
        instrument_focus=["warm pads", "soft piano"],
        texture_notes="Low density, softened highs.",
        rationale="Busy room with acceptable air; keep gentle momentum.",
    )


PROMPT_TEXT = (
    "Ambient track for a busy cafeteria. Mood: focused, energy 58/100, tension 30/100.\n"
    "Tempo: 80-90 BPM, loopable, ~60s. Key: D minor.\n"
    "Instruments: warm pads, soft piano. Texture: low density, softened highs."
)


@pytest.fixture
def brief_generator(brief) -> MagicMock:
    generator = MagicMock()
    generator.generate_brief = AsyncMock(return_value=brief)
    generator.generate_text = AsyncMock(return_value=PROMPT_TEXT)
    return generator


@pytest.fixture
def composer() -> MagicMock:
    fake = MagicMock()
    fake.compose = AsyncMock(return_value=b"\xff\xfb" + b"\x00" * (64 * 1024 - 2))
    return fake


@pytest.fixture
def audio_dir(tmp_path):
    return tmp_path / "audio"


@pytest.fixture
def audio_store(audio_dir) -> AudioStore:
    return AudioStore(audio_dir)


@pytest.fixture
def record_store() -> FakeRecordStore:
    return FakeRecordStore()


@pytest.fixture
def pipeline(brief_generator, composer, audio_store, record_store) -> MusicPipeline:
    return MusicPipeline(
        brief_generator=brief_generator,
        composer=composer,
        audio_store=audio_store,
        record_store=record_store,
    )


@pytest_asyncio.fixture
async def client(pipeline):
    """HTTP client against the app with the fake-backed pipeline installed."""
    from app.main import app

    app.state.pipeline = pipeline
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    del app.state.pipeline
