"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from app.config import Settings, get_settings
from app.database import close_pool, create_pool
from app.errors import PipelineError
from app.services.artifacts import AudioStore
from app.services.composer import ElevenLabsComposer
from app.services.llm import OpenAIBriefGenerator
from app.services.pipeline import MusicPipeline
from app.services.records import GenerationRecordStore

logger = logging.getLogger("app")


def build_pipeline(settings: Settings, client: httpx.AsyncClient, pool) -> MusicPipeline:
    """Wire the pipeline from settings; unconfigured providers stay None."""
    brief_generator = None
    if settings.OPENAI_API_KEY:
        brief_generator = OpenAIBriefGenerator(
            client,
            settings.OPENAI_API_KEY,
            model=settings.OPENAI_MODEL,
            base_url=settings.OPENAI_BASE_URL,
        )
    else:
        logger.warning("OPENAI_API_KEY is not configured; generation requests will fail")

    composer = None
    if settings.ELEVENLABS_API_KEY:
        composer = ElevenLabsComposer(
            client, settings.ELEVENLABS_API_KEY, base_url=settings.ELEVENLABS_BASE_URL
        )
    else:
        logger.warning("ELEVENLABS_API_KEY is not configured; composition requests will fail")

    return MusicPipeline(
        brief_generator=brief_generator,
        composer=composer,
        audio_store=AudioStore(settings.AUDIO_DIR),
        record_store=GenerationRecordStore(pool),
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup / shutdown lifecycle."""
    settings = get_settings()
    client = httpx.AsyncClient(timeout=settings.HTTP_TIMEOUT_SECONDS)
    pool = None
    try:
        pool = await create_pool(settings)
        pipeline = build_pipeline(settings, client, pool)
        pipeline.audio_store.ensure_directory()
        try:
            await pipeline.record_store.init_schema()
        except Exception:
            # History stays unavailable, generation keeps working
            logger.exception("Generation history initialization failed")
        app.state.pipeline = pipeline
        logger.info("Audio directory: %s", pipeline.audio_store.directory.resolve())
        yield
    finally:
        await client.aclose()
        await close_pool(pool)


async def pipeline_error_handler(request: Request, exc: PipelineError) -> JSONResponse:
    content = {"success": False, "error": exc.message}
    if exc.details:
        content["details"] = exc.details
    return JSONResponse(status_code=exc.status_code, content=content)


settings = get_settings()

logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(
    title=settings.APP_NAME,
    version="0.1.0",
    lifespan=lifespan,
)

app.add_exception_handler(PipelineError, pipeline_error_handler)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ── API routers ──
from app.api.music import router as music_router

app.include_router(music_router, prefix="/api")

# Generated audio, referenced by audioPath in responses
app.mount("/audio", StaticFiles(directory=settings.AUDIO_DIR, check_dir=False), name="audio")
