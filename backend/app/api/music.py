"""API routes for music generation and history."""

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.responses import Response

from app.errors import PipelineError
from app.schemas.music import (
    ComposeRequest,
    GenerateMusicRequest,
    GenerateMusicResponse,
    HistoryResponse,
    PromptResult,
    SensorSnapshot,
)
from app.services.pipeline import MusicPipeline

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Music"])


def get_pipeline(request: Request) -> MusicPipeline:
    """The pipeline built by the app lifespan."""
    return request.app.state.pipeline


# ── GET /health ─────────────────────────────────────


@router.get("/health")
async def health_check():
    return {"status": "OK", "timestamp": datetime.now(timezone.utc).isoformat()}


# ── POST /sensor/generate-prompt ────────────────────


@router.post(
    "/sensor/generate-prompt",
    response_model=PromptResult,
    summary="Derive a music brief and prompt from a sensor snapshot",
)
async def generate_prompt(
    snapshot: SensorSnapshot,
    pipeline: MusicPipeline = Depends(get_pipeline),
):
    return await pipeline.generate_prompt(snapshot)


# ── POST /music/compose ─────────────────────────────


@router.post(
    "/music/compose",
    response_class=Response,
    responses={200: {"content": {"audio/mpeg": {}}}},
    summary="Compose audio directly from a prompt",
)
async def compose_music(
    body: ComposeRequest,
    pipeline: MusicPipeline = Depends(get_pipeline),
):
    audio = await pipeline.compose(body.prompt, body.music_length_ms, body.model_id)
    return Response(
        content=audio,
        media_type="audio/mpeg",
        headers={"Content-Disposition": 'attachment; filename="generated-music.mp3"'},
    )


# ── POST /generate-music ────────────────────────────


@router.post(
    "/generate-music",
    response_model=GenerateMusicResponse,
    summary="Full run: snapshot to saved audio and history record",
)
async def generate_music(
    body: GenerateMusicRequest,
    pipeline: MusicPipeline = Depends(get_pipeline),
):
    result = await pipeline.generate_music(
        body.snapshot(), body.music_length_ms, body.model_id
    )
    return GenerateMusicResponse(**result.model_dump())


# ── GET /music/history ──────────────────────────────


@router.get(
    "/music/history",
    response_model=HistoryResponse,
    summary="Past generations, most recent first",
)
async def get_music_history(
    zone: str | None = Query(default=None, description="Only records for this zone"),
    limit: int = Query(default=100, ge=1, le=1000, description="Maximum records"),
    pipeline: MusicPipeline = Depends(get_pipeline),
):
    try:
        records = await pipeline.history(zone, limit)
        return HistoryResponse(records=records, count=len(records))
    except (HTTPException, PipelineError):
        raise
    except Exception:
        logger.exception("History endpoint failed (zone=%s)", zone)
        raise HTTPException(status_code=500, detail="Failed to retrieve music history")
