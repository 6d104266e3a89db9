"""
Recommendations Router
======================
GET  /api/v1/recommendations          — Current set plus the "new" flag.
POST /api/v1/recommendations/analyze  — Manual analysis trigger.
POST /api/v1/recommendations/seen     — Acknowledge the current set.

The set is whatever the engine last published. Reading it never starts
an analysis.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel

from resilientme.dependencies import get_engine
from resilientme.models.recommendation import RecommendationSetResponse
from resilientme.services.engine import RecommendationEngine

router = APIRouter(prefix="/api/v1/recommendations", tags=["recommendations"])


class AnalyzeResponse(BaseModel):
    started: bool
    analyzing: bool


@router.get(
    "",
    response_model=RecommendationSetResponse,
    summary="Get current recommendations",
)
async def get_recommendations(
    engine: RecommendationEngine = Depends(get_engine),
) -> RecommendationSetResponse:
    return RecommendationSetResponse(
        recommendations=engine.recommendations,
        has_new=engine.has_new,
        analyzing=engine.is_analyzing,
    )


@router.post(
    "/analyze",
    response_model=AnalyzeResponse,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Trigger an analysis run",
    description=(
        "Starts an analysis unless one is already running, in which case the "
        "request is dropped and `started` is false."
    ),
)
async def trigger_analysis(
    engine: RecommendationEngine = Depends(get_engine),
) -> AnalyzeResponse:
    started = engine.trigger("manual")
    return AnalyzeResponse(started=started, analyzing=engine.is_analyzing)


@router.post(
    "/seen",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Mark recommendations as seen",
)
async def mark_seen(
    engine: RecommendationEngine = Depends(get_engine),
) -> None:
    engine.mark_seen()
