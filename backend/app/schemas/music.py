"""Pydantic schemas for sensor snapshots, music briefs and generation records."""

from datetime import datetime, timezone
from enum import Enum
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator, model_validator


_DATETIME = TypeAdapter(datetime)


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO-8601 timestamp; naive values are taken as UTC.

    Raises ValueError (a pydantic ValidationError) for anything that is not a
    recognisable date-time.
    """
    parsed = _DATETIME.validate_python(value.strip())
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


# ── Sensor input ────────────────────────────────────


class SensorSnapshot(BaseModel):
    """One timestamped set of sensor readings for a zone.

    `timestamp` and `zone` are checked for presence by the pipeline, not here,
    so that a missing field is reported as a 400 rather than a 422.
    """

    model_config = ConfigDict(extra="ignore")

    timestamp: str = Field(default="", description="ISO-8601 reading time")
    zone: str = Field(default="", description="Physical area, e.g. 'Cafeteria'")
    temperature_c: float = 0
    humidity_pct: float = 0
    co2_ppm: float = 0
    voc_index: float = 0
    occupancy: float = 0
    noise_dba: float = 0
    productivity_score: float = 0
    # 10-minute trend deltas
    trend_10min_co2_ppm_delta: float = 0
    trend_10min_noise_dba_delta: float = 0
    trend_10min_productivity_delta: float = 0

    @field_validator("*", mode="before")
    @classmethod
    def _null_is_default(cls, value, info):
        # Explicit nulls fall back to the field default
        if value is None:
            return cls.model_fields[info.field_name].default
        return value


class GenerateMusicRequest(SensorSnapshot):
    """Body of POST /generate-music: a snapshot plus composer options."""

    music_length_ms: int = Field(default=60000, gt=0, description="Requested track length")
    model_id: str = Field(default="music_v1", min_length=1)

    def snapshot(self) -> SensorSnapshot:
        return SensorSnapshot(**self.model_dump(exclude={"music_length_ms", "model_id"}))


class ComposeRequest(BaseModel):
    """Body of POST /music/compose."""

    prompt: str = ""
    music_length_ms: int = Field(default=60000, gt=0)
    model_id: str = Field(default="music_v1", min_length=1)


# ── Music brief ─────────────────────────────────────


class Mood(str, Enum):
    calm = "calm"
    focused = "focused"
    energizing = "energizing"
    soothing = "soothing"
    alert = "alert"
    uplifting = "uplifting"
    neutral = "neutral"


# JSON numbers only; numeric strings from the model are rejected
StrictNumber = Annotated[float, Field(strict=True)]


class MusicBrief(BaseModel):
    """Structured musical intent derived from a snapshot."""

    model_config = ConfigDict(use_enum_values=True)

    mood: Mood
    energy: StrictNumber = Field(ge=0, le=100)
    tension: StrictNumber = Field(ge=0, le=100)
    bpm: tuple[StrictNumber, StrictNumber] = Field(description="[low, high]")
    duration_sec: StrictNumber = Field(gt=0)
    loopable: bool = Field(strict=True)
    key_suggestion: str | None = None
    instrument_focus: list[str]
    texture_notes: str
    rationale: str

    @model_validator(mode="after")
    def _bpm_ordered(self):
        low, high = self.bpm
        if low > high:
            raise ValueError(f"bpm range is inverted: [{low}, {high}]")
        return self


# ── Generation results ──────────────────────────────


class PromptResult(BaseModel):
    """Brief and prompt derived from a snapshot, without composing audio."""

    sensorSnapshot: SensorSnapshot
    musicBrief: MusicBrief
    prompt: str
    timestamp: datetime


class GenerationResult(BaseModel):
    """Outcome of a successful generation run."""

    sensorSnapshot: SensorSnapshot
    musicBrief: MusicBrief
    prompt: str
    audioPath: str = Field(description="Servable path, e.g. /audio/<filename>")
    filename: str
    music_length_ms: int
    model_id: str
    generation_timestamp: datetime


class GenerateMusicResponse(GenerationResult):
    """Response for POST /generate-music."""

    success: bool = True
    message: str = "Music generated successfully"


# ── Persisted record ────────────────────────────────


class GenerationRecord(BaseModel):
    """One row of the generation history (flattened snapshot + outputs)."""

    timestamp: str = Field(description="Sensor timestamp as reported")
    zone: str
    temperature_c: float = 0
    humidity_pct: float = 0
    co2_ppm: float = 0
    voc_index: float = 0
    occupancy: float = 0
    noise_dba: float = 0
    productivity_score: float = 0
    trend_10min_co2_ppm_delta: float = 0
    trend_10min_noise_dba_delta: float = 0
    trend_10min_productivity_delta: float = 0
    music_brief: str = Field(description="Brief serialized as JSON")
    music_prompt: str
    audio_path: str
    audio_filename: str
    music_length_ms: int
    model_id: str
    generation_timestamp: datetime


class HistoryResponse(BaseModel):
    """Response for GET /music/history."""

    success: bool = True
    records: list[GenerationRecord]
    count: int
