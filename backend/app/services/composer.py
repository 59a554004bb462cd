"""Client for the ElevenLabs music API."""

import logging

import httpx

from app.errors import CompositionError

logger = logging.getLogger(__name__)


class ElevenLabsComposer:
    """Composes audio from a text prompt. Returns raw MP3 bytes."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        api_key: str,
        base_url: str = "https://api.elevenlabs.io",
    ):
        self.client = client
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")

    async def compose(
        self,
        prompt: str,
        music_length_ms: int = 60000,
        model_id: str = "music_v1",
    ) -> bytes:
        try:
            response = await self.client.post(
                f"{self.base_url}/v1/music",
                json={"prompt": prompt, "music_length_ms": music_length_ms, "model_id": model_id},
                headers={"xi-api-key": self.api_key},
            )
        except httpx.HTTPError as exc:
            raise CompositionError(f"ElevenLabs API unreachable: {exc}", 502) from exc

        if response.is_error:
            logger.warning("ElevenLabs API error %d: %s", response.status_code, response.text[:300])
            raise CompositionError(
                f"ElevenLabs API error: {response.text}", response.status_code
            )

        logger.info("Composed %d bytes (%d ms, model %s)", len(response.content), music_length_ms, model_id)
        return response.content
