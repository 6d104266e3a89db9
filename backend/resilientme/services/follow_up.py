"""
Follow-Up Scheduler
===================
After the user applies a strategy, asks "did it help?" a day later and
reacts to the answer.

    schedule_follow_up ──▶ channel.schedule_at(applied_at + delay)
    user answers        ──▶ channel response handler ──▶ process_response
                                helpful      → reinforcement notification
                                not helpful  → notification with an alternative

Delivery is best-effort and never retried. A prompt nobody answers is
expired once the response window has passed. Answers never write to the
effectiveness ledger; ratings are recorded separately by the app.
"""

from __future__ import annotations

import logging
from collections import deque
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from resilientme.config import Settings, get_settings
from resilientme.models.follow_up import FollowUpStatus, FollowUpTask
from resilientme.services.catalog import StrategyCatalog
from resilientme.services.notifications import (
    FOLLOW_UP_CATEGORY,
    NotificationChannel,
    NotificationError,
)

logger = logging.getLogger(__name__)

FOLLOW_UP_KIND = "follow_up"
CLOSED_HISTORY = 256

PROMPT_TITLE = "How did it go?"
PROMPT_BODY = "Yesterday you tried '{strategy}'. Did it help improve your mood?"
HELPFUL_TITLE = "Great progress!"
HELPFUL_BODY = (
    "You've added an effective tool to your resilience toolkit. "
    "Keep using what works for you."
)
UNHELPFUL_TITLE = "Let's try something different"
UNHELPFUL_BODY = "Here's another approach that might work better: {alternative}"


class FollowUpScheduler:
    """Owns follow-up tasks. Registers itself for user responses on the channel."""

    def __init__(
        self,
        channel: NotificationChannel,
        catalog: StrategyCatalog,
        settings: Settings | None = None,
    ) -> None:
        settings = settings or get_settings()
        self._channel = channel
        self._catalog = catalog
        self._delay = timedelta(hours=settings.follow_up_delay_hours)
        self._window = timedelta(hours=settings.follow_up_response_window_hours)
        self._tasks: dict[str, FollowUpTask] = {}
        self._closed: deque[str] = deque(maxlen=CLOSED_HISTORY)
        channel.on_user_response(self._handle_user_response)

    # ------------------------------------------------------------------
    # Scheduling
    # ------------------------------------------------------------------

    async def schedule_follow_up(
        self,
        strategy: str,
        applied_at: Optional[datetime] = None,
    ) -> Optional[FollowUpTask]:
        """Register a delayed prompt. Returns None if the channel refused it."""
        applied_at = applied_at or datetime.now(timezone.utc)
        if applied_at.tzinfo is None:
            # Clients may send ISO timestamps without an offset; read them as UTC.
            applied_at = applied_at.replace(tzinfo=timezone.utc)
        prompt_at = applied_at + self._delay

        try:
            identifier = await self._channel.schedule_at(
                prompt_at,
                PROMPT_TITLE,
                PROMPT_BODY.format(strategy=strategy),
                {"strategy": strategy, "kind": FOLLOW_UP_KIND, "category": FOLLOW_UP_CATEGORY},
            )
        except Exception:
            logger.exception("Failed to schedule follow-up for %r", strategy)
            return None

        task = FollowUpTask(
            identifier=identifier,
            strategy=strategy,
            applied_at=applied_at,
            prompt_at=prompt_at,
        )
        self._tasks[identifier] = task
        logger.info("Follow-up %s for %r scheduled at %s", identifier, strategy, prompt_at.isoformat())
        return task

    # ------------------------------------------------------------------
    # Responses
    # ------------------------------------------------------------------

    async def process_response(self, strategy: str, was_helpful: bool) -> None:
        if was_helpful:
            title, body = HELPFUL_TITLE, HELPFUL_BODY
        else:
            title = UNHELPFUL_TITLE
            body = UNHELPFUL_BODY.format(alternative=self.alternative_suggestion())

        try:
            await self._channel.send(
                title,
                body,
                payload={"strategy": strategy, "kind": "follow_up_result"},
            )
        except NotificationError:
            logger.exception("Failed to deliver follow-up result for %r", strategy)

    def alternative_suggestion(self) -> str:
        return self._catalog.recommend_for_mood("neutral")[0]

    async def _handle_user_response(self, identifier: str, payload: dict[str, Any]) -> None:
        if "was_helpful" not in payload:
            return

        was_helpful = bool(payload["was_helpful"])
        now = datetime.now(timezone.utc)
        task = self._tasks.get(identifier)

        if task is None:
            if identifier in self._closed:
                logger.info("Ignoring response for closed follow-up %s", identifier)
                return
            strategy = payload.get("strategy")
            if not strategy:
                logger.debug("Ignoring response for unknown follow-up %s", identifier)
                return
            await self.process_response(strategy, was_helpful)
            return

        self.refresh(now)
        if not task.is_open:
            logger.info("Ignoring response for follow-up %s in state %s", identifier, task.status.value)
            return

        task.status = FollowUpStatus.RESPONDED
        task.was_helpful = was_helpful
        task.responded_at = now
        await self.process_response(task.strategy, was_helpful)

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    def refresh(self, now: Optional[datetime] = None) -> None:
        """Advance open tasks: SCHEDULED → DELIVERED → EXPIRED by wall clock.

        Tasks that were closed (answered or expired) before this call are
        dropped; only their identifiers are remembered, so late answers for
        them are still ignored.
        """
        now = now or datetime.now(timezone.utc)
        for identifier, task in list(self._tasks.items()):
            if not task.is_open:
                del self._tasks[identifier]
                self._closed.append(identifier)
                continue
            if task.status is FollowUpStatus.SCHEDULED and now >= task.prompt_at:
                task.status = FollowUpStatus.DELIVERED
            if task.status is FollowUpStatus.DELIVERED and now >= task.prompt_at + self._window:
                task.status = FollowUpStatus.EXPIRED
                logger.debug("Follow-up %s for %r expired", task.identifier, task.strategy)

    def task(self, identifier: str) -> Optional[FollowUpTask]:
        return self._tasks.get(identifier)

    @property
    def tasks(self) -> list[FollowUpTask]:
        return list(self._tasks.values())
