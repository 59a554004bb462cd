import logging

import asyncpg
from app.config import Settings

logger = logging.getLogger(__name__)


def _get_raw_pg_url(url: str) -> str:
    """Convert SQLAlchemy-style URL to plain postgres:// for asyncpg."""
    # asyncpg needs postgresql:// not postgresql+asyncpg://
    return url.replace("postgresql+asyncpg://", "postgresql://")


async def create_pool(settings: Settings) -> asyncpg.Pool | None:
    """Create the asyncpg pool, or return None when no database is configured.

    The caller owns the pool and must hand it to `close_pool` on shutdown.
    """
    if not settings.DATABASE_URL:
        logger.warning("DATABASE_URL is not configured; generation history is disabled")
        return None
    return await asyncpg.create_pool(
        _get_raw_pg_url(settings.DATABASE_URL),
        min_size=1,
        max_size=5,
        # PgBouncer in transaction mode does not support prepared statements.
        statement_cache_size=0,
    )


async def close_pool(pool: asyncpg.Pool | None) -> None:
    """Close the asyncpg pool (call on app shutdown)."""
    if pool is not None:
        await pool.close()
