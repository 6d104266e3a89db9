"""
Follow-Up Schemas
=================
State for the delayed "did it help?" prompt that follows an applied
strategy.

    SCHEDULED ──(prompt time passes)──▶ DELIVERED ──▶ RESPONDED
                                            │
                                            └──(window elapses)──▶ EXPIRED
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class FollowUpStatus(str, Enum):
    SCHEDULED = "scheduled"
    DELIVERED = "delivered"
    RESPONDED = "responded"
    EXPIRED = "expired"


class FollowUpTask(BaseModel):
    """One follow-up prompt. Mutated only by the follow-up scheduler."""

    identifier: str
    strategy: str
    applied_at: datetime
    prompt_at: datetime
    status: FollowUpStatus = FollowUpStatus.SCHEDULED
    was_helpful: Optional[bool] = None
    responded_at: Optional[datetime] = None

    @property
    def is_open(self) -> bool:
        return self.status in (FollowUpStatus.SCHEDULED, FollowUpStatus.DELIVERED)


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------

class StrategyApplied(BaseModel):
    """Sent by the app when the user marks a strategy as used."""

    strategy: str = Field(..., min_length=1, max_length=200)
    applied_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class FollowUpAnswer(BaseModel):
    """The user's answer to a delivered follow-up prompt."""

    was_helpful: bool
    strategy: Optional[str] = Field(
        default=None,
        description="Only needed when the prompt payload did not carry it.",
    )


# ---------------------------------------------------------------------------
# Response
# ---------------------------------------------------------------------------

class FollowUpResult(BaseModel):
    identifier: str
    strategy: str
    was_helpful: bool
    status: Optional[FollowUpStatus] = Field(
        default=None,
        description="None when the answer did not match a tracked prompt.",
    )
