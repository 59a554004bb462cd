"""Language-model calls that turn a sensor snapshot into a brief and a prompt.

Talks to the OpenAI Responses API over httpx. Response parsing is defensive:
the text is pulled from whichever known location carries it, and anything
unusable raises LLMResponseError.
"""

import json
import logging
from typing import Any

import httpx
from pydantic import ValidationError

from app.errors import LLMResponseError
from app.schemas.music import MusicBrief, SensorSnapshot

logger = logging.getLogger(__name__)

BRIEF_SYSTEM_PROMPT = """
You are an assistant that converts building sensor snapshots into a concise "music brief" for an ambient soundtrack generator.
Return ONLY compact JSON with these fields:
{
  "mood": "calm|focused|energizing|soothing|alert|uplifting|neutral",
  "energy": 0-100,
  "tension": 0-100,
  "bpm": [low, high],
  "duration_sec": number,
  "loopable": true|false,
  "key_suggestion": "A minor|D minor|C major|... (optional)",
  "instrument_focus": ["pads","soft piano","light percussion", ...],
  "texture_notes": "short sentence on space/density/brightness",
  "rationale": "1-2 sentences mapping readings to choice"
}

Decision rules:
- High CO2 (>1000 ppm) or high VOC (>200): lower energy (35-55), soothing/airiness to reduce stress; avoid bright highs.
- High occupancy (>25) with good air (CO2 < 800): moderate energy (55-70) and gentle momentum; keep distractions low (no sharp transients).
- High noise (>60 dBA): simpler textures, fewer rhythmic accents; tighten BPM range.
- productivity_score < 60: light uplift (energy +10), but stay minimal.
- Temperature 22-24 C and humidity 45-55% is ideal; if outside, reduce tension slightly and favor warm timbres.
Prefer keys: minor for calming/focus, major for uplifting.
Keep outputs steady and minimal; no reactivity to single-sample spikes, assume a 10-15 min trend.
"""

PROMPT_SYSTEM_PROMPT = """
You convert an internal JSON "music brief" into a concise prompt for a generative music API.

Rules:
- Output 3-5 short lines, max ~450 characters total.
- No meta commentary, no JSON, no emojis.
- Include: mood, energy/tension, BPM range, duration, loopable flag, (optional) key, instruments, texture, goal.
- Avoid sharp/bright transients when asked; keep language precise and production-safe.
- Never invent values not present in the brief; default only when missing.

Example:

"Ambient track for a focused open office. Mood: focused, energy 62/100, tension 35/100.
Tempo: 84-92 BPM, loopable, ~240s. Key: D minor.
Instruments: warm pads, soft piano, light shaker, subtle bass.
Texture: low-density, gentle movement, softened highs; avoid sharp transients and bright cymbals.
Goal: steady momentum that supports concentration without masking speech."
"""


def extract_first_text(payload: dict[str, Any]) -> str | None:
    """Return the first output text in a Responses API payload, if any."""
    for item in payload.get("output") or []:
        if not isinstance(item, dict):
            continue
        for content in item.get("content") or []:
            if (
                isinstance(content, dict)
                and content.get("type") == "output_text"
                and isinstance(content.get("text"), str)
            ):
                return content["text"]
    # Some SDKs and proxies aggregate the text at the top level
    if isinstance(payload.get("output_text"), str):
        return payload["output_text"]
    return None


def _strip_code_fence(text: str) -> str:
    text = text.strip()
    if text.startswith("```"):
        text = text.split("\n", 1)[1] if "\n" in text else ""
        if text.rstrip().endswith("```"):
            text = text.rstrip()[:-3]
    return text.strip()


def parse_music_brief(text: str) -> MusicBrief:
    """Parse and validate model output as a MusicBrief."""
    snippet = text[:300]
    try:
        parsed = json.loads(_strip_code_fence(text))
    except json.JSONDecodeError:
        raise LLMResponseError(
            f"Failed to parse music brief JSON. First 300 chars:\n{snippet}"
        ) from None
    try:
        return MusicBrief.model_validate(parsed)
    except ValidationError as exc:
        raise LLMResponseError(
            f"Model output didn't match MusicBrief shape ({exc.error_count()} errors). "
            f"First 300 chars:\n{snippet}"
        ) from exc


class OpenAIBriefGenerator:
    """Brief and prompt generation backed by the OpenAI Responses API."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        api_key: str,
        model: str = "gpt-5-mini",
        base_url: str = "https://api.openai.com/v1",
    ):
        self.client = client
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip("/")

    async def _respond(self, system_prompt: str, user_text: str) -> str | None:
        body = {
            "model": self.model,
            "input": [
                {"role": "developer", "content": [{"type": "input_text", "text": system_prompt}]},
                {"role": "user", "content": [{"type": "input_text", "text": user_text}]},
            ],
            "text": {"format": {"type": "text"}, "verbosity": "medium"},
            "reasoning": {"effort": "medium", "summary": "auto"},
            "store": False,
        }
        response = await self.client.post(
            f"{self.base_url}/responses",
            json=body,
            headers={"Authorization": f"Bearer {self.api_key}"},
        )
        response.raise_for_status()
        return extract_first_text(response.json())

    async def generate_brief(self, snapshot: SensorSnapshot) -> MusicBrief:
        """Map a sensor snapshot to a validated music brief."""
        text = await self._respond(BRIEF_SYSTEM_PROMPT, snapshot.model_dump_json())
        if not text:
            raise LLMResponseError("Model returned no text for music brief.")
        brief = parse_music_brief(text)
        logger.info("Brief for zone %s: mood=%s energy=%s", snapshot.zone, brief.mood, brief.energy)
        return brief

    async def generate_text(self, brief: MusicBrief) -> str:
        """Turn a music brief into a short natural-language prompt."""
        text = await self._respond(PROMPT_SYSTEM_PROMPT, brief.model_dump_json(indent=2))
        if not text or not text.strip():
            raise LLMResponseError("No output generated from model.")
        return text.strip()
