"""
Strategies Router
=================
GET  /api/v1/strategies              — Catalog listing, optional category filter.
GET  /api/v1/strategies/suggestions  — Quick suggestions for a mood / trigger.
GET  /api/v1/strategies/prompt       — Journal prompt for a mood / trigger.
POST /api/v1/strategies/applied      — The user used a strategy; schedule the
                                       "did it help?" follow-up.
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel

from resilientme.dependencies import get_catalog, get_follow_ups
from resilientme.models.follow_up import FollowUpTask, StrategyApplied
from resilientme.models.recommendation import CopingStrategy, StrategyCategory
from resilientme.services.catalog import StrategyCatalog
from resilientme.services.follow_up import FollowUpScheduler

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/strategies", tags=["strategies"])


class SuggestionsResponse(BaseModel):
    mood: str
    trigger: Optional[str] = None
    suggestions: list[str]


class PromptResponse(BaseModel):
    mood: str
    trigger: Optional[str] = None
    prompt: str


@router.get(
    "",
    response_model=list[CopingStrategy],
    summary="List coping strategies",
    responses={422: {"description": "Unknown category"}},
)
async def list_strategies(
    category: Optional[str] = Query(default=None, description="e.g. mindfulness, cognitive"),
    catalog: StrategyCatalog = Depends(get_catalog),
) -> list[CopingStrategy]:
    if category is None:
        return catalog.strategies

    try:
        wanted = StrategyCategory(category.strip().lower().replace(" ", "_").replace("-", "_"))
    except ValueError as exc:
        raise HTTPException(
            status_code=422,
            detail={
                "message": f"Unknown strategy category: {category}",
                "code": "invalid_category",
                "valid_categories": [c.value for c in StrategyCategory],
            },
        ) from exc
    return catalog.by_category(wanted)


@router.get(
    "/suggestions",
    response_model=SuggestionsResponse,
    summary="Quick suggestions for a mood",
)
async def suggestions(
    mood: str = Query(..., min_length=1, max_length=50),
    trigger: Optional[str] = Query(default=None, max_length=200),
    catalog: StrategyCatalog = Depends(get_catalog),
) -> SuggestionsResponse:
    return SuggestionsResponse(
        mood=mood,
        trigger=trigger,
        suggestions=catalog.recommend_for_mood(mood, trigger),
    )


@router.get(
    "/prompt",
    response_model=PromptResponse,
    summary="Journal prompt for a mood",
)
async def journal_prompt(
    mood: str = Query(..., min_length=1, max_length=50),
    trigger: Optional[str] = Query(default=None, max_length=200),
    catalog: StrategyCatalog = Depends(get_catalog),
) -> PromptResponse:
    return PromptResponse(mood=mood, trigger=trigger, prompt=catalog.prompt_for_mood(mood, trigger))

@router.post(
    "/applied",
    response_model=FollowUpTask,
    status_code=status.HTTP_201_CREATED,
    summary="Record that a strategy was applied",
    responses={
        201: {"description": "Follow-up prompt scheduled"},
        503: {"description": "Notification channel refused the follow-up"},
    },
)
async def strategy_applied(
    body: StrategyApplied,
    follow_ups: FollowUpScheduler = Depends(get_follow_ups),
) -> FollowUpTask:
    task = await follow_ups.schedule_follow_up(body.strategy, body.applied_at)
    if task is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail={
                "message": "Could not schedule the follow-up reminder",
                "code": "follow_up_not_scheduled",
            },
        )
    return task
