"""
Tests for the Follow-Up Scheduler
=================================
Covers:
- Scheduling: prompt time = applied_at + delay, payload carries the strategy
- Scheduling failure: logged, no task registered
- Round trip: schedule → fire → helpful / not helpful response → result notification
- Unhelpful answer suggests the first neutral-mood alternative
- State: SCHEDULED → DELIVERED → EXPIRED; late answers ignored; closed tasks pruned
- Naive (offset-less) applied_at read as UTC
- Answers never touch the effectiveness ledger

Run: pytest tests/test_follow_up.py -v
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from conftest import RecordingChannel
from resilientme.models.follow_up import FollowUpStatus
from resilientme.services.effectiveness import EffectivenessLedger
from resilientme.services.follow_up import (
    HELPFUL_TITLE,
    PROMPT_TITLE,
    UNHELPFUL_TITLE,
    FollowUpScheduler,
)
from resilientme.services.notifications import LoggingNotificationChannel

_APPLIED_AT = datetime(2026, 3, 1, 9, 0, tzinfo=timezone.utc)


@pytest.fixture
def scheduler(channel, catalog, settings) -> FollowUpScheduler:
    return FollowUpScheduler(channel, catalog, settings)


class TestScheduling:

    @pytest.mark.asyncio
    async def test_schedules_one_day_later(self, scheduler, channel: RecordingChannel):
        task = await scheduler.schedule_follow_up("Box Breathing", _APPLIED_AT)

        assert task is not None
        assert task.prompt_at == _APPLIED_AT + timedelta(hours=24)
        assert task.status is FollowUpStatus.SCHEDULED

        scheduled = channel.scheduled[task.identifier]
        assert scheduled["when"] == task.prompt_at
        assert scheduled["title"] == PROMPT_TITLE
        assert "Box Breathing" in scheduled["body"]
        assert scheduled["payload"]["strategy"] == "Box Breathing"

    @pytest.mark.asyncio
    async def test_failure_registers_nothing(self, catalog, settings):
        channel = RecordingChannel(fail_schedule=True)
        scheduler = FollowUpScheduler(channel, catalog, settings)

        task = await scheduler.schedule_follow_up("Box Breathing", _APPLIED_AT)

        assert task is None
        assert scheduler.tasks == []
        assert channel.sent == []


class TestRoundTrip:

    @pytest.mark.asyncio
    async def test_helpful_answer(self, scheduler, channel: RecordingChannel):
        task = await scheduler.schedule_follow_up("Box Breathing")
        await channel.fire(task.identifier)

        await channel.dispatch_user_response(task.identifier, {"was_helpful": True})

        assert channel.titles == [PROMPT_TITLE, HELPFUL_TITLE]
        assert task.status is FollowUpStatus.RESPONDED
        assert task.was_helpful is True

    @pytest.mark.asyncio
    async def test_unhelpful_answer_suggests_alternative(self, scheduler, channel: RecordingChannel):
        task = await scheduler.schedule_follow_up("Box Breathing")
        await channel.fire(task.identifier)

        await channel.dispatch_user_response(task.identifier, {"was_helpful": False})

        result = channel.sent[-1]
        assert result["title"] == UNHELPFUL_TITLE
        assert result["body"].endswith("Take 5 deep breaths")
        assert task.was_helpful is False

    @pytest.mark.asyncio
    async def test_second_answer_ignored(self, scheduler, channel: RecordingChannel):
        task = await scheduler.schedule_follow_up("Box Breathing")

        await channel.dispatch_user_response(task.identifier, {"was_helpful": True})
        await channel.dispatch_user_response(task.identifier, {"was_helpful": False})

        assert channel.titles == [HELPFUL_TITLE]

    @pytest.mark.asyncio
    async def test_untracked_answer_with_strategy(self, scheduler, channel: RecordingChannel):
        await channel.dispatch_user_response("from-another-device", {"was_helpful": True, "strategy": "Journaling"})
        assert channel.titles == [HELPFUL_TITLE]

    @pytest.mark.asyncio
    async def test_untracked_answer_without_strategy(self, scheduler, channel: RecordingChannel):
        await channel.dispatch_user_response("unknown", {"was_helpful": True})
        assert channel.sent == []

    @pytest.mark.asyncio
    async def test_ledger_untouched(self, channel, catalog, settings):
        ledger = EffectivenessLedger()
        scheduler = FollowUpScheduler(channel, catalog, settings)
        task = await scheduler.schedule_follow_up("Box Breathing")

        await channel.dispatch_user_response(task.identifier, {"was_helpful": True})

        assert ledger.usage_count("Box Breathing") == 0

    @pytest.mark.asyncio
    async def test_result_delivery_failure_is_swallowed(self, catalog, settings):
        channel = RecordingChannel(fail_send=True)
        scheduler = FollowUpScheduler(channel, catalog, settings)
        task = await scheduler.schedule_follow_up("Box Breathing")

        await channel.dispatch_user_response(task.identifier, {"was_helpful": True})

        assert task.status is FollowUpStatus.RESPONDED


class TestState:

    @pytest.mark.asyncio
    async def test_delivered_then_expired(self, scheduler):
        task = await scheduler.schedule_follow_up("Box Breathing", _APPLIED_AT)

        scheduler.refresh(_APPLIED_AT + timedelta(hours=23))
        assert task.status is FollowUpStatus.SCHEDULED

        scheduler.refresh(_APPLIED_AT + timedelta(hours=25))
        assert task.status is FollowUpStatus.DELIVERED

        scheduler.refresh(_APPLIED_AT + timedelta(hours=24 + 48))
        assert task.status is FollowUpStatus.EXPIRED

    @pytest.mark.asyncio
    async def test_expired_answer_ignored(self, scheduler, channel: RecordingChannel):
        applied = datetime.now(timezone.utc) - timedelta(days=5)
        task = await scheduler.schedule_follow_up("Box Breathing", applied)

        await channel.dispatch_user_response(task.identifier, {"was_helpful": True})

        assert task.status is FollowUpStatus.EXPIRED
        assert channel.sent == []

    @pytest.mark.asyncio
    async def test_closed_tasks_pruned_on_next_refresh(self, scheduler, channel: RecordingChannel):
        answered = await scheduler.schedule_follow_up("Box Breathing")
        expiring = await scheduler.schedule_follow_up("Journaling", _APPLIED_AT)
        await channel.dispatch_user_response(answered.identifier, {"was_helpful": True})

        scheduler.refresh(_APPLIED_AT + timedelta(hours=24 + 48))
        assert expiring.status is FollowUpStatus.EXPIRED
        assert scheduler.task(answered.identifier) is None

        scheduler.refresh()
        assert scheduler.tasks == []

    @pytest.mark.asyncio
    async def test_answer_after_pruning_still_ignored(self, scheduler, channel: RecordingChannel):
        task = await scheduler.schedule_follow_up("Box Breathing")
        await channel.dispatch_user_response(task.identifier, {"was_helpful": True})
        scheduler.refresh()

        await channel.dispatch_user_response(
            task.identifier, {"was_helpful": False, "strategy": "Box Breathing"}
        )

        assert scheduler.task(task.identifier) is None
        assert channel.titles == [HELPFUL_TITLE]


class TestNaiveTimestamps:

    @pytest.mark.asyncio
    async def test_naive_applied_at_read_as_utc(self, scheduler, channel: RecordingChannel):
        task = await scheduler.schedule_follow_up("Box Breathing", datetime(2026, 3, 1, 9, 0))

        assert task.applied_at == _APPLIED_AT
        assert task.prompt_at.tzinfo is not None
        assert channel.scheduled[task.identifier]["when"] == _APPLIED_AT + timedelta(hours=24)

        await channel.dispatch_user_response(task.identifier, {"was_helpful": True})
        assert task.status is FollowUpStatus.EXPIRED

    @pytest.mark.asyncio
    async def test_naive_applied_at_with_logging_channel(self, catalog, settings):
        channel = LoggingNotificationChannel()
        scheduler = FollowUpScheduler(channel, catalog, settings)
        applied = datetime.now(timezone.utc).replace(tzinfo=None)

        task = await scheduler.schedule_follow_up("Box Breathing", applied)

        assert task is not None
        assert channel.pending == [task.identifier]
        await channel.aclose()

    @pytest.mark.asyncio
    async def test_naive_when_accepted_by_channel(self):
        channel = LoggingNotificationChannel()

        identifier = await channel.schedule_at(datetime(2026, 3, 1, 9, 0), "t", "b")

        assert identifier in channel.pending
        await channel.aclose()
