"""
API contract tests: status codes and response shape for every public route.

Uses the client fixture from conftest (fake collaborators behind a real
MusicPipeline, no network or database).
"""
import re

import pytest

from app.errors import CompositionError, LLMResponseError
from app.services.pipeline import MusicPipeline
from app.services.records import GenerationRecordStore


class TestHealthEndpoint:
    """GET /api/health"""

    async def test_status_ok(self, client):
        response = await client.get("/api/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "OK"
        assert "timestamp" in data


class TestGenerateMusicEndpoint:
    """POST /api/generate-music"""

    async def test_success_envelope(self, client, snapshot_payload):
        response = await client.post("/api/generate-music", json=snapshot_payload)

        assert response.status_code == 200
        data = response.json()
        required = {
            "success", "sensorSnapshot", "musicBrief", "prompt", "audioPath", "filename",
            "music_length_ms", "model_id", "generation_timestamp", "message",
        }
        assert required <= data.keys()
        assert data["success"] is True
        assert data["music_length_ms"] == 60000
        assert data["model_id"] == "music_v1"
        assert data["musicBrief"]["mood"] == "focused"
        assert data["sensorSnapshot"]["zone"] == "Cafeteria"
        assert re.fullmatch(r"cafeteria_2025-01-28t12-05-00.*\.mp3", data["filename"])
        assert data["audioPath"] == f"/audio/{data['filename']}"

    async def test_custom_length_and_model(self, client, composer, snapshot_payload):
        payload = {**snapshot_payload, "music_length_ms": 15000, "model_id": "music_v2"}
        response = await client.post("/api/generate-music", json=payload)

        assert response.status_code == 200
        assert response.json()["music_length_ms"] == 15000
        assert composer.compose.await_args.args[1:] == (15000, "music_v2")

    @pytest.mark.parametrize("missing", ["timestamp", "zone"])
    async def test_missing_required_field_is_400(self, client, brief_generator, snapshot_payload, missing):
        del snapshot_payload[missing]

        response = await client.post("/api/generate-music", json=snapshot_payload)

        assert response.status_code == 400
        assert response.json() == {"success": False, "error": "Timestamp and zone are required"}
        brief_generator.generate_brief.assert_not_awaited()

    async def test_non_numeric_reading_is_422(self, client, snapshot_payload):
        snapshot_payload["co2_ppm"] = "high"
        response = await client.post("/api/generate-music", json=snapshot_payload)
        assert response.status_code == 422

    async def test_unknown_fields_are_ignored(self, client, snapshot_payload):
        snapshot_payload["light_lux"] = 420
        response = await client.post("/api/generate-music", json=snapshot_payload)
        assert response.status_code == 200
        assert "light_lux" not in response.json()["sensorSnapshot"]

    async def test_composer_status_is_passed_through(self, client, composer, record_store, snapshot_payload):
        composer.compose.side_effect = CompositionError("ElevenLabs API error: rate limited", 429)

        response = await client.post("/api/generate-music", json=snapshot_payload)

        assert response.status_code == 429
        assert "rate limited" in response.json()["error"]
        assert record_store.records == []

    async def test_unexpected_composer_failure_keeps_error_envelope(self, client, composer, snapshot_payload):
        composer.compose.side_effect = RuntimeError("decoder exploded")

        response = await client.post("/api/generate-music", json=snapshot_payload)

        assert response.status_code == 500
        data = response.json()
        assert data["success"] is False
        assert "decoder exploded" in data["error"]

    async def test_upstream_llm_failure_is_502(self, client, brief_generator, snapshot_payload):
        brief_generator.generate_brief.side_effect = LLMResponseError("Model returned no text")

        response = await client.post("/api/generate-music", json=snapshot_payload)

        assert response.status_code == 502
        data = response.json()
        assert data["success"] is False
        assert data["details"] == "Model returned no text"

    async def test_missing_configuration_is_500(self, client, composer, audio_store, record_store, snapshot_payload):
        from app.main import app

        app.state.pipeline = MusicPipeline(None, composer, audio_store, record_store)

        response = await client.post("/api/generate-music", json=snapshot_payload)

        assert response.status_code == 500
        assert response.json()["error"] == "OpenAI API key not configured"


class TestGeneratePromptEndpoint:
    """POST /api/sensor/generate-prompt"""

    async def test_returns_brief_and_prompt(self, client, composer, snapshot_payload):
        response = await client.post("/api/sensor/generate-prompt", json=snapshot_payload)

        assert response.status_code == 200
        data = response.json()
        assert {"sensorSnapshot", "musicBrief", "prompt", "timestamp"} <= data.keys()
        composer.compose.assert_not_awaited()

    async def test_missing_zone_is_400(self, client):
        response = await client.post("/api/sensor/generate-prompt", json={"timestamp": "2025-01-28T12:05:00"})
        assert response.status_code == 400


class TestComposeEndpoint:
    """POST /api/music/compose"""

    async def test_returns_mpeg(self, client):
        response = await client.post("/api/music/compose", json={"prompt": "calm pads"})

        assert response.status_code == 200
        assert response.headers["content-type"] == "audio/mpeg"
        assert "generated-music.mp3" in response.headers["content-disposition"]
        assert len(response.content) == 64 * 1024

    async def test_missing_prompt_is_400(self, client):
        response = await client.post("/api/music/compose", json={})
        assert response.status_code == 400
        assert response.json()["error"] == "Prompt is required"


class TestHistoryEndpoint:
    """GET /api/music/history"""

    async def test_limit_and_order(self, client, pipeline, snapshot_payload):
        for minute in range(5):
            snapshot_payload["timestamp"] = f"2025-01-28T12:0{minute}:00"
            await client.post("/api/generate-music", json=snapshot_payload)

        response = await client.get("/api/music/history", params={"limit": 2})

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["count"] == 2
        stamps = [r["generation_timestamp"] for r in data["records"]]
        assert stamps == sorted(stamps, reverse=True)

    async def test_zone_filter(self, client, snapshot_payload):
        await client.post("/api/generate-music", json=snapshot_payload)
        await client.post("/api/generate-music", json={**snapshot_payload, "zone": "Library"})

        response = await client.get("/api/music/history", params={"zone": "Library"})

        records = response.json()["records"]
        assert [r["zone"] for r in records] == ["Library"]
        assert records[0]["audio_filename"].startswith("library_")

    async def test_unconfigured_store_returns_empty(self, client, brief_generator, composer, audio_store):
        from app.main import app

        app.state.pipeline = MusicPipeline(
            brief_generator, composer, audio_store, GenerationRecordStore(None)
        )

        response = await client.get("/api/music/history")

        assert response.status_code == 200
        assert response.json() == {"success": True, "records": [], "count": 0}

    async def test_store_failure_is_500(self, client, record_store):
        async def broken(limit=100):
            raise RuntimeError("connection lost")

        record_store.list_recent = broken

        response = await client.get("/api/music/history")

        assert response.status_code == 500
        assert response.json()["detail"] == "Failed to retrieve music history"

    async def test_limit_must_be_positive(self, client):
        response = await client.get("/api/music/history", params={"limit": 0})
        assert response.status_code == 422
