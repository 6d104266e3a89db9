"""
Notification Channel
====================
Delivers recommendation alerts and follow-up prompts to the user, and
routes the user's answers back to whoever registered for them.

Two implementations:
- LoggingNotificationChannel: dev / no push gateway configured. Delayed
  notifications are held as asyncio tasks in this process.
- WebhookNotificationChannel: POSTs to the push gateway. Delayed
  notifications are handed to the gateway with a ``deliver_at`` field,
  so they survive a restart of this service.

Delivery is best-effort. A rejected request raises NotificationError;
callers decide whether to log or propagate it — nothing here retries.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
import uuid
from collections.abc import Awaitable, Callable
from datetime import datetime, timezone
from typing import Any, Optional, Protocol

import httpx

from resilientme.config import Settings

logger = logging.getLogger(__name__)

ResponseHandler = Callable[[str, dict[str, Any]], Optional[Awaitable[None]]]

RECOMMENDATION_CATEGORY = "RECOMMENDATION_CATEGORY"
FOLLOW_UP_CATEGORY = "COPING_FOLLOWUP_CATEGORY"

_WEBHOOK_TIMEOUT_SECONDS = 10.0


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


class NotificationError(Exception):
    """The channel refused or failed to accept a notification."""

    def __init__(self, status_code: int, body: str) -> None:
        self.status_code = status_code
        self.body = body
        super().__init__(f"Notification gateway error {status_code}: {body}")


# ---------------------------------------------------------------------------
# Contract
# ---------------------------------------------------------------------------


class NotificationChannel(Protocol):
    async def send(
        self,
        title: str,
        body: str,
        identifier: str | None = None,
        payload: dict[str, Any] | None = None,
    ) -> str: ...

    async def schedule_at(
        self,
        when: datetime,
        title: str,
        body: str,
        payload: dict[str, Any] | None = None,
    ) -> str: ...

    def on_user_response(self, handler: ResponseHandler) -> None: ...


# ---------------------------------------------------------------------------
# Shared behaviour
# ---------------------------------------------------------------------------


class BaseNotificationChannel:
    """Identifier minting and user-response routing shared by all channels."""

    def __init__(self) -> None:
        self._handlers: list[ResponseHandler] = []

    async def send(
        self,
        title: str,
        body: str,
        identifier: str | None = None,
        payload: dict[str, Any] | None = None,
    ) -> str:
        identifier = identifier or f"notification-{uuid.uuid4()}"
        await self._deliver(identifier, title, body, payload or {})
        return identifier

    async def schedule_at(
        self,
        when: datetime,
        title: str,
        body: str,
        payload: dict[str, Any] | None = None,
    ) -> str:
        identifier = f"scheduled-{uuid.uuid4()}"
        if when.tzinfo is None:
            when = when.replace(tzinfo=timezone.utc)
        await self._schedule(identifier, when, title, body, payload or {})
        return identifier

    def on_user_response(self, handler: ResponseHandler) -> None:
        self._handlers.append(handler)

    async def dispatch_user_response(self, identifier: str, payload: dict[str, Any]) -> int:
        """Pass the user's answer to every registered handler.

        Returns the number of handlers called.
        """
        for handler in list(self._handlers):
            result = handler(identifier, payload)
            if inspect.isawaitable(result):
                await result
        return len(self._handlers)

    async def aclose(self) -> None:
        """Release anything the channel holds. No-op by default."""

    async def _deliver(
        self, identifier: str, title: str, body: str, payload: dict[str, Any]
    ) -> None:
        raise NotImplementedError

    async def _schedule(
        self,
        identifier: str,
        when: datetime,
        title: str,
        body: str,
        payload: dict[str, Any],
    ) -> None:
        raise NotImplementedError


# ---------------------------------------------------------------------------
# LoggingNotificationChannel
# ---------------------------------------------------------------------------


class LoggingNotificationChannel(BaseNotificationChannel):
    """Logs notifications instead of pushing them. Delays run in-process."""

    def __init__(self) -> None:
        super().__init__()
        self._pending: dict[str, asyncio.Task[None]] = {}

    async def _deliver(
        self, identifier: str, title: str, body: str, payload: dict[str, Any]
    ) -> None:
        logger.info("Notification %s: %s — %s %s", identifier, title, body, payload or "")

    async def _schedule(
        self,
        identifier: str,
        when: datetime,
        title: str,
        body: str,
        payload: dict[str, Any],
    ) -> None:
        delay = max(0.0, (when - datetime.now(timezone.utc)).total_seconds())
        self._pending[identifier] = asyncio.create_task(
            self._deliver_later(delay, identifier, title, body, payload)
        )
        logger.debug("Notification %s scheduled in %.0fs", identifier, delay)

    async def _deliver_later(
        self,
        delay: float,
        identifier: str,
        title: str,
        body: str,
        payload: dict[str, Any],
    ) -> None:
        try:
            await asyncio.sleep(delay)
            await self._deliver(identifier, title, body, payload)
        finally:
            self._pending.pop(identifier, None)

    @property
    def pending(self) -> list[str]:
        return list(self._pending)

    async def aclose(self) -> None:
        for task in self._pending.values():
            task.cancel()
        self._pending.clear()


# ---------------------------------------------------------------------------
# WebhookNotificationChannel
# ---------------------------------------------------------------------------


class WebhookNotificationChannel(BaseNotificationChannel):
    """Pushes notifications through an HTTP push gateway."""

    def __init__(self, url: str) -> None:
        super().__init__()
        self._url = url

    async def _deliver(
        self, identifier: str, title: str, body: str, payload: dict[str, Any]
    ) -> None:
        await self._post({
            "identifier": identifier,
            "title": title,
            "body": body,
            "payload": payload,
        })

    async def _schedule(
        self,
        identifier: str,
        when: datetime,
        title: str,
        body: str,
        payload: dict[str, Any],
    ) -> None:
        await self._post({
            "identifier": identifier,
            "title": title,
            "body": body,
            "payload": payload,
            "deliver_at": when.isoformat(),
        })

    async def _post(self, message: dict[str, Any]) -> None:
        """Shared POST. Raises NotificationError on non-2xx or transport failure."""
        try:
            async with httpx.AsyncClient(timeout=_WEBHOOK_TIMEOUT_SECONDS) as client:
                response = await client.post(self._url, json=message)
        except httpx.HTTPError as exc:
            raise NotificationError(0, str(exc)) from exc
        if not response.is_success:
            raise NotificationError(response.status_code, response.text)


# ---------------------------------------------------------------------------
# Factory
# ---------------------------------------------------------------------------


def build_notification_channel(settings: Settings) -> BaseNotificationChannel:
    if settings.notification_webhook_url:
        return WebhookNotificationChannel(settings.notification_webhook_url)
    logger.info("No notification webhook configured — notifications will be logged only")
    return LoggingNotificationChannel()
