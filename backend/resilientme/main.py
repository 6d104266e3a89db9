"""
ResilientMe API
===============
FastAPI application entry point. Services are built in the lifespan and
stored on ``app.state``; the recommendation engine's periodic re-check
runs for the lifetime of the process.
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from resilientme.config import get_settings
from resilientme.dependencies import build_services
from resilientme.routers import effectiveness, entries, follow_ups, recommendations, strategies

settings = get_settings()

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    services = build_services(settings)
    app.state.services = services
    await services.engine.start()
    logger.info("ResilientMe API started (%s)", settings.environment)
    try:
        yield
    finally:
        await services.engine.stop()
        await services.channel.aclose()


app = FastAPI(
    title="ResilientMe API",
    description="Adaptive coping recommendations from mood-tracking patterns",
    version="0.1.0",
    docs_url="/api/docs" if settings.environment != "production" else None,
    redoc_url="/api/redoc" if settings.environment != "production" else None,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(entries.router)
app.include_router(recommendations.router)
app.include_router(strategies.router)
app.include_router(follow_ups.router)
app.include_router(effectiveness.router)


@app.get("/api/v1/health")
async def health_check() -> dict:
    return {"status": "ok", "service": "resilientme-api"}
