"""
Effectiveness Schemas
=====================
Pydantic models for strategy ratings and the ledger's aggregate views.

Ratings reference strategies by title, not by catalog id. Renaming a
catalog strategy therefore starts a fresh history under the new name.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class EffectivenessRating(BaseModel):
    """One immutable ledger row."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    strategy: str
    rating: int = Field(..., ge=1, le=5)
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    mood_before: Optional[str] = None
    mood_after: Optional[str] = None
    mood_impact: Optional[str] = None
    note: Optional[str] = None
    completion_time: Optional[float] = Field(
        default=None,
        description="Seconds the user spent on the strategy.",
    )


# ---------------------------------------------------------------------------
# Request
# ---------------------------------------------------------------------------

class RatingCreate(BaseModel):
    """Payload the app sends after the user rates a strategy.

    ``rating`` is deliberately unbounded here — the ledger clamps it.
    """

    strategy: str = Field(..., min_length=1, max_length=200)
    rating: int
    mood_before: Optional[str] = Field(default=None, max_length=50)
    mood_after: Optional[str] = Field(default=None, max_length=50)
    note: Optional[str] = Field(default=None, max_length=1000)
    completion_time: Optional[float] = Field(default=None, ge=0)


# ---------------------------------------------------------------------------
# Response
# ---------------------------------------------------------------------------

class RatingPoint(BaseModel):
    timestamp: datetime
    rating: int


class StrategyEffectiveness(BaseModel):
    """Per-strategy summary for the strategy detail screen."""

    strategy: str
    average_rating: float
    usage_count: int
    history: list[RatingPoint]


class StrategyAverage(BaseModel):
    strategy: str
    average_rating: float


class StrategyUsage(BaseModel):
    strategy: str
    count: int


class EffectivenessOverview(BaseModel):
    most_effective: list[StrategyAverage]
    most_used: list[StrategyUsage]
