"""FastAPI application entrypoint."""

import asyncio
import contextlib
from contextlib import asynccontextmanager
from typing import AsyncIterator

from dotenv import load_dotenv
from fastapi import FastAPI

from call_tracker.adapters.inbound.http.routes import router
from call_tracker.infrastructure.config.settings import settings
from call_tracker.infrastructure.db import dispose_engine
from call_tracker.infrastructure.logging.logger import logger
from call_tracker.infrastructure.wiring.dependencies import get_services

# Load environment variables from .env file
load_dotenv()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Start the outcome timeout sweeper with the app; release connections on shutdown."""
    services = get_services()
    sweeper_task = None
    if settings.sweep_enabled:
        sweeper = services.sweeper
        sweeper_task = asyncio.create_task(sweeper.run_forever(settings.sweep_interval_minutes * 60))
        logger.info(f"Outcome timeout sweeper scheduled every {settings.sweep_interval_minutes} minutes")
    try:
        yield
    finally:
        if sweeper_task is not None:
            sweeper_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await sweeper_task
        await services.idempotency_store.close()
        dispose_engine()


app = FastAPI(
    title="Call Tracker",
    description="Call attendance and call-type classification pipeline",
    version="0.1.0",
    lifespan=lifespan,
)

app.include_router(router)
