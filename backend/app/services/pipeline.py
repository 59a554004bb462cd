"""Generation pipeline: snapshot -> brief -> prompt -> audio -> file -> record.

Steps run strictly in sequence with no retries. The first failing step aborts
the run, except the final record write, which is best-effort: once the audio
file exists the run counts as a success.
"""

import logging
from datetime import datetime, timezone
from typing import Protocol

import httpx

from app.errors import (
    ArtifactWriteError,
    CompositionError,
    ConfigurationError,
    InvalidInputError,
    UpstreamGenerationError,
)
from app.schemas.music import (
    GenerationRecord,
    GenerationResult,
    MusicBrief,
    PromptResult,
    SensorSnapshot,
)
from app.services.artifacts import AudioStore, generate_audio_filename
from app.services.records import GenerationRecordStore

logger = logging.getLogger(__name__)


class BriefGenerator(Protocol):
    async def generate_brief(self, snapshot: SensorSnapshot) -> MusicBrief: ...

    async def generate_text(self, brief: MusicBrief) -> str: ...


class Composer(Protocol):
    async def compose(self, prompt: str, music_length_ms: int, model_id: str) -> bytes: ...


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class MusicPipeline:
    """Runs generation requests against injected collaborators.

    `brief_generator` or `composer` may be None when their credentials are
    not configured; requests that need them then fail with ConfigurationError
    before any external call is made.
    """

    def __init__(
        self,
        brief_generator: BriefGenerator | None,
        composer: Composer | None,
        audio_store: AudioStore,
        record_store: GenerationRecordStore,
        clock=_utcnow,
    ):
        self.brief_generator = brief_generator
        self.composer = composer
        self.audio_store = audio_store
        self.record_store = record_store
        self.clock = clock

    # ── Preconditions ──

    @staticmethod
    def _validate_snapshot(snapshot: SensorSnapshot) -> None:
        if not snapshot.timestamp.strip() or not snapshot.zone.strip():
            raise InvalidInputError("Timestamp and zone are required")

    def _require_generator(self) -> BriefGenerator:
        if self.brief_generator is None:
            raise ConfigurationError("OpenAI API key not configured")
        return self.brief_generator

    def _require_composer(self) -> Composer:
        if self.composer is None:
            raise ConfigurationError("ElevenLabs API key not configured")
        return self.composer

    # ── Steps ──

    async def _brief_and_prompt(
        self, generator: BriefGenerator, snapshot: SensorSnapshot
    ) -> tuple[MusicBrief, str]:
        try:
            brief = await generator.generate_brief(snapshot)
        except Exception as exc:
            logger.error("Brief generation failed for zone %s: %s", snapshot.zone, exc)
            raise UpstreamGenerationError(
                "Failed to generate music brief", details=str(exc)
            ) from exc

        try:
            prompt = await generator.generate_text(brief)
        except Exception as exc:
            logger.error("Prompt generation failed for zone %s: %s", snapshot.zone, exc)
            raise UpstreamGenerationError(
                "Failed to generate music prompt", details=str(exc)
            ) from exc
        return brief, prompt

    async def _compose(
        self, composer: Composer, prompt: str, music_length_ms: int, model_id: str
    ) -> bytes:
        try:
            return await composer.compose(prompt, music_length_ms, model_id)
        except CompositionError:
            raise
        except httpx.HTTPError as exc:
            raise CompositionError(f"Music API request failed: {exc}", 502) from exc
        except Exception as exc:
            logger.exception("Composer failed unexpectedly")
            raise CompositionError(f"Music composition failed: {exc}", 500) from exc

    async def _save_record(self, record: GenerationRecord) -> None:
        if not self.record_store.configured:
            logger.info("Record store not configured; generation for %s not recorded", record.zone)
            return
        try:
            await self.record_store.save(record)
        except Exception:
            # Record keeping is best-effort; the audio file is already written
            logger.exception(
                "Failed to save generation record for zone %s (file %s)",
                record.zone, record.audio_filename,
            )

    # ── Public operations ──

    async def generate_prompt(self, snapshot: SensorSnapshot) -> PromptResult:
        """Derive a brief and a prompt from a snapshot, without composing."""
        self._validate_snapshot(snapshot)
        generator = self._require_generator()
        brief, prompt = await self._brief_and_prompt(generator, snapshot)
        return PromptResult(
            sensorSnapshot=snapshot,
            musicBrief=brief,
            prompt=prompt,
            timestamp=self.clock(),
        )

    async def compose(
        self, prompt: str, music_length_ms: int = 60000, model_id: str = "music_v1"
    ) -> bytes:
        """Compose audio straight from a prompt."""
        if not prompt or not prompt.strip():
            raise InvalidInputError("Prompt is required")
        composer = self._require_composer()
        return await self._compose(composer, prompt, music_length_ms, model_id)

    async def generate_music(
        self,
        snapshot: SensorSnapshot,
        music_length_ms: int = 60000,
        model_id: str = "music_v1",
    ) -> GenerationResult:
        """Run one full generation: brief, prompt, audio, file, record."""
        self._validate_snapshot(snapshot)
        generator = self._require_generator()
        composer = self._require_composer()

        logger.info("Generating music for zone %s at %s", snapshot.zone, snapshot.timestamp)

        # 1-2. Brief and prompt
        brief, prompt = await self._brief_and_prompt(generator, snapshot)

        # 3. Audio
        audio = await self._compose(composer, prompt, music_length_ms, model_id)

        # 4. File
        filename = generate_audio_filename(snapshot.zone, snapshot.timestamp)
        try:
            audio_path = await self.audio_store.save(audio, filename)
        except OSError as exc:
            logger.error("Failed to write audio file %s: %s", filename, exc)
            raise ArtifactWriteError("Failed to save audio file", details=str(exc)) from exc

        # 5. Record
        generated_at = self.clock()
        record = GenerationRecord(
            **snapshot.model_dump(),
            music_brief=brief.model_dump_json(),
            music_prompt=prompt,
            audio_path=audio_path,
            audio_filename=filename,
            music_length_ms=music_length_ms,
            model_id=model_id,
            generation_timestamp=generated_at,
        )
        await self._save_record(record)

        return GenerationResult(
            sensorSnapshot=snapshot,
            musicBrief=brief,
            prompt=prompt,
            audioPath=audio_path,
            filename=filename,
            music_length_ms=music_length_ms,
            model_id=model_id,
            generation_timestamp=generated_at,
        )

    async def history(self, zone: str | None = None, limit: int = 100) -> list[GenerationRecord]:
        """Generation records, most recent first, optionally for one zone."""
        if zone:
            return await self.record_store.list_by_zone(zone, limit)
        return await self.record_store.list_recent(limit)
