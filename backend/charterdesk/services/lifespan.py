"""FastAPI lifespan: shared resources only, no background jobs.

Startup logs the configuration that matters when something goes wrong;
shutdown closes the Redis client and disposes of the engine pool.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from charterdesk.config import settings
from charterdesk.database import engine
from charterdesk.utils.redis_client import close_redis

logger = logging.getLogger("charterdesk.lifespan")


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(
        "CharterDesk starting (environment=%s, redis=%s, rate_limit=%s)",
        settings.environment,
        "on" if settings.redis_enabled else "off",
        "on" if settings.rate_limit_enabled else "off",
    )
    try:
        yield
    finally:
        if settings.redis_enabled:
            await close_redis()
        await engine.dispose()
        logger.info("CharterDesk stopped")
