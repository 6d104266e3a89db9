"""
Tests for Notification Channels
===============================
Covers:
- WebhookNotificationChannel: POST body, deliver_at for scheduled prompts,
  NotificationError on non-2xx and transport failure
- LoggingNotificationChannel: in-process delayed delivery, cancel on close
- Response routing: sync and async handlers
- Factory: webhook when configured, logging otherwise

Run: pytest tests/test_notifications.py -v
"""

from __future__ import annotations

import asyncio
import json
from datetime import datetime, timedelta, timezone

import httpx
import pytest
import respx
from httpx import Response

from resilientme.services.notifications import (
    LoggingNotificationChannel,
    NotificationError,
    WebhookNotificationChannel,
    build_notification_channel,
)

_URL = "https://push.example.test/notify"


class TestWebhookChannel:

    @pytest.mark.asyncio
    @respx.mock
    async def test_send_posts_message(self):
        route = respx.post(_URL).mock(return_value=Response(202))
        channel = WebhookNotificationChannel(_URL)

        identifier = await channel.send("Hello", "Body", payload={"kind": "test"})

        body = json.loads(route.calls.last.request.content)
        assert body == {"identifier": identifier, "title": "Hello", "body": "Body", "payload": {"kind": "test"}}

    @pytest.mark.asyncio
    @respx.mock
    async def test_explicit_identifier_kept(self):
        respx.post(_URL).mock(return_value=Response(200))
        channel = WebhookNotificationChannel(_URL)
        assert await channel.send("t", "b", identifier="recommendations-update") == "recommendations-update"

    @pytest.mark.asyncio
    @respx.mock
    async def test_schedule_sends_deliver_at(self):
        route = respx.post(_URL).mock(return_value=Response(201))
        channel = WebhookNotificationChannel(_URL)
        when = datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)

        identifier = await channel.schedule_at(when, "How did it go?", "Body", {"strategy": "Box Breathing"})

        body = json.loads(route.calls.last.request.content)
        assert body["identifier"] == identifier
        assert body["deliver_at"] == when.isoformat()

    @pytest.mark.asyncio
    @respx.mock
    async def test_non_2xx_raises(self):
        respx.post(_URL).mock(return_value=Response(400, text="bad request"))
        channel = WebhookNotificationChannel(_URL)

        with pytest.raises(NotificationError) as exc_info:
            await channel.send("t", "b")
        assert exc_info.value.status_code == 400

    @pytest.mark.asyncio
    @respx.mock
    async def test_transport_error_raises(self):
        respx.post(_URL).mock(side_effect=httpx.ConnectError("refused"))
        channel = WebhookNotificationChannel(_URL)

        with pytest.raises(NotificationError) as exc_info:
            await channel.schedule_at(datetime.now(timezone.utc), "t", "b")
        assert exc_info.value.status_code == 0


class TestLoggingChannel:

    @pytest.mark.asyncio
    async def test_delayed_delivery_runs(self):
        channel = LoggingNotificationChannel()
        identifier = await channel.schedule_at(datetime.now(timezone.utc), "t", "b")

        await asyncio.sleep(0.05)

        assert identifier not in channel.pending

    @pytest.mark.asyncio
    async def test_close_cancels_pending(self):
        channel = LoggingNotificationChannel()
        identifier = await channel.schedule_at(datetime.now(timezone.utc) + timedelta(hours=1), "t", "b")
        assert channel.pending == [identifier]

        await channel.aclose()

        assert channel.pending == []


class TestResponseRouting:

    @pytest.mark.asyncio
    async def test_sync_and_async_handlers(self):
        channel = LoggingNotificationChannel()
        seen = []

        def sync_handler(identifier, payload):
            seen.append(("sync", identifier, payload["was_helpful"]))

        async def async_handler(identifier, payload):
            seen.append(("async", identifier, payload["was_helpful"]))

        channel.on_user_response(sync_handler)
        channel.on_user_response(async_handler)

        called = await channel.dispatch_user_response("abc", {"was_helpful": True})

        assert called == 2
        assert seen == [("sync", "abc", True), ("async", "abc", True)]


class TestFactory:

    def test_webhook_when_configured(self, settings):
        configured = settings.model_copy(update={"notification_webhook_url": _URL})
        assert isinstance(build_notification_channel(configured), WebhookNotificationChannel)

    def test_logging_otherwise(self, settings):
        assert isinstance(build_notification_channel(settings), LoggingNotificationChannel)
