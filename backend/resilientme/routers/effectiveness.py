"""
Effectiveness Router
====================
POST /api/v1/effectiveness/ratings — Rate a strategy after using it.
GET  /api/v1/effectiveness         — Most effective and most used strategies.
GET  /api/v1/effectiveness/{name}  — Average, count and history for one strategy.

Ratings outside 1–5 are clamped by the ledger rather than rejected, so
an older app build sending a 0–10 slider never loses the rating.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query, status

from resilientme.dependencies import get_ledger
from resilientme.models.effectiveness import (
    EffectivenessOverview,
    EffectivenessRating,
    RatingCreate,
    StrategyEffectiveness,
)
from resilientme.services.effectiveness import DEFAULT_TOP_LIMIT, EffectivenessLedger

router = APIRouter(prefix="/api/v1/effectiveness", tags=["effectiveness"])


@router.post(
    "/ratings",
    response_model=EffectivenessRating,
    status_code=status.HTTP_201_CREATED,
    summary="Rate a strategy",
)
async def record_rating(
    body: RatingCreate,
    ledger: EffectivenessLedger = Depends(get_ledger),
) -> EffectivenessRating:
    return ledger.record_rating(
        body.strategy,
        body.rating,
        mood_before=body.mood_before,
        mood_after=body.mood_after,
        note=body.note,
        completion_time=body.completion_time,
    )


@router.get(
    "",
    response_model=EffectivenessOverview,
    summary="Most effective and most used strategies",
)
async def overview(
    limit: int = Query(default=DEFAULT_TOP_LIMIT, ge=1, le=50),
    ledger: EffectivenessLedger = Depends(get_ledger),
) -> EffectivenessOverview:
    return EffectivenessOverview(
        most_effective=ledger.most_effective(limit),
        most_used=ledger.most_used(limit),
    )


@router.get(
    "/{name}",
    response_model=StrategyEffectiveness,
    summary="Effectiveness of one strategy",
    description="A strategy that was never rated returns an average of 0.0 and an empty history.",
)
async def strategy_effectiveness(
    name: str,
    ledger: EffectivenessLedger = Depends(get_ledger),
) -> StrategyEffectiveness:
    return StrategyEffectiveness(
        strategy=name,
        average_rating=ledger.average_rating(name),
        usage_count=ledger.usage_count(name),
        history=ledger.rating_history(name),
    )
