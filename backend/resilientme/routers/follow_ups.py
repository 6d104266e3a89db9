"""
Follow-Ups Router
=================
POST /api/v1/follow-ups/{identifier}/response — The user answered a
"did it help?" prompt.

The answer is routed through the notification channel's response
handlers, exactly as a tap on the push notification would be.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status

from resilientme.dependencies import get_channel, get_follow_ups
from resilientme.models.follow_up import FollowUpAnswer, FollowUpResult
from resilientme.services.follow_up import FOLLOW_UP_KIND, FollowUpScheduler
from resilientme.services.notifications import BaseNotificationChannel

router = APIRouter(prefix="/api/v1/follow-ups", tags=["follow-ups"])


@router.post(
    "/{identifier}/response",
    response_model=FollowUpResult,
    summary="Answer a follow-up prompt",
    responses={404: {"description": "Unknown prompt and no strategy given"}},
)
async def answer_follow_up(
    identifier: str,
    body: FollowUpAnswer,
    channel: BaseNotificationChannel = Depends(get_channel),
    follow_ups: FollowUpScheduler = Depends(get_follow_ups),
) -> FollowUpResult:
    task = follow_ups.task(identifier)
    strategy = task.strategy if task else body.strategy
    if not strategy:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"message": f"Unknown follow-up: {identifier}", "code": "follow_up_not_found"},
        )

    payload = {"kind": FOLLOW_UP_KIND, "strategy": strategy, "was_helpful": body.was_helpful}
    await channel.dispatch_user_response(identifier, payload)

    return FollowUpResult(
        identifier=identifier,
        strategy=strategy,
        was_helpful=body.was_helpful,
        status=task.status if task else None,
    )
