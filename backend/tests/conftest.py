"""
Shared test doubles: an entry factory and a notification channel that
records everything and lets tests fire scheduled notifications on demand.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Optional

import pytest

from resilientme.config import Settings
from resilientme.models.mood import MoodCategory, MoodEntry
from resilientme.services.catalog import StrategyCatalog
from resilientme.services.notifications import BaseNotificationChannel, NotificationError

_BASE_TIME = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


def make_entry(
    mood: str = "anxious",
    intensity: int = 4,
    rejection: bool = True,
    trigger: Optional[str] = None,
    note: str = "",
    hours_ago: float = 0,
) -> MoodEntry:
    return MoodEntry(
        timestamp=_BASE_TIME - timedelta(hours=hours_ago),
        mood=MoodCategory(mood),
        intensity=intensity,
        note=note,
        rejection_related=rejection,
        rejection_trigger=trigger,
    )


def make_entries(count: int, **kwargs: Any) -> list[MoodEntry]:
    """``count`` identical entries, newest first, one hour apart."""
    return [make_entry(hours_ago=i, **kwargs) for i in range(count)]


class RecordingChannel(BaseNotificationChannel):
    """Records sends and schedules. ``fire`` delivers a scheduled one immediately."""

    def __init__(self, fail_schedule: bool = False, fail_send: bool = False) -> None:
        super().__init__()
        self.sent: list[dict[str, Any]] = []
        self.scheduled: dict[str, dict[str, Any]] = {}
        self.fail_schedule = fail_schedule
        self.fail_send = fail_send

    async def _deliver(
        self, identifier: str, title: str, body: str, payload: dict[str, Any]
    ) -> None:
        if self.fail_send:
            raise NotificationError(503, "gateway down")
        self.sent.append({"identifier": identifier, "title": title, "body": body, "payload": payload})

    async def _schedule(
        self,
        identifier: str,
        when: datetime,
        title: str,
        body: str,
        payload: dict[str, Any],
    ) -> None:
        if self.fail_schedule:
            raise NotificationError(400, "scheduling rejected")
        self.scheduled[identifier] = {"when": when, "title": title, "body": body, "payload": payload}

    async def fire(self, identifier: str) -> None:
        item = self.scheduled.pop(identifier)
        await self._deliver(identifier, item["title"], item["body"], item["payload"])

    @property
    def titles(self) -> list[str]:
        return [s["title"] for s in self.sent]


@pytest.fixture
def catalog() -> StrategyCatalog:
    return StrategyCatalog()


@pytest.fixture
def channel() -> RecordingChannel:
    return RecordingChannel()


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        supabase_url="",
        anthropic_api_key="test-key",
        enable_ai_analysis=True,
        analysis_timeout_seconds=0.2,
        debounce_seconds=0.05,
        recheck_interval_hours=24.0,
        follow_up_delay_hours=24.0,
        follow_up_response_window_hours=48.0,
        notification_webhook_url="",
    )
