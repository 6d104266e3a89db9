"""
Entry Source
============
Where mood entries live. The recommendation engine reads entries newest
first and subscribes to change notifications; it never writes.

``InMemoryEntrySource`` backs dev and tests; ``SupabaseEntrySource`` reads
and writes the ``mood_entries`` table.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any, Protocol

from resilientme.models.mood import MoodEntry

logger = logging.getLogger(__name__)

ChangeCallback = Callable[[], None]

_TABLE = "mood_entries"
_MAX_ROWS = 500


class EntrySource(Protocol):
    def list_entries(self) -> list[MoodEntry]: ...

    def on_change(self, callback: ChangeCallback) -> None: ...

    def append(self, entry: MoodEntry) -> MoodEntry: ...


class _CallbackMixin:
    def __init__(self) -> None:
        self._callbacks: list[ChangeCallback] = []

    def on_change(self, callback: ChangeCallback) -> None:
        self._callbacks.append(callback)

    def _notify(self) -> None:
        for callback in list(self._callbacks):
            try:
                callback()
            except Exception:
                logger.exception("Entry change callback failed")


class InMemoryEntrySource(_CallbackMixin):
    def __init__(self, entries: list[MoodEntry] | None = None) -> None:
        super().__init__()
        self._entries = list(entries or [])

    def list_entries(self) -> list[MoodEntry]:
        return sorted(self._entries, key=lambda e: e.timestamp, reverse=True)

    def append(self, entry: MoodEntry) -> MoodEntry:
        self._entries.append(entry)
        self._notify()
        return entry


class SupabaseEntrySource(_CallbackMixin):
    """Entries persisted in ``mood_entries``. Change events fire on local writes."""

    def __init__(self, client: Any) -> None:
        super().__init__()
        self._db = client

    def list_entries(self) -> list[MoodEntry]:
        result = (
            self._db.table(_TABLE)
            .select("*")
            .order("timestamp", desc=True)
            .limit(_MAX_ROWS)
            .execute()
        )
        return [MoodEntry.model_validate(row) for row in result.data or []]

    def append(self, entry: MoodEntry) -> MoodEntry:
        self._db.table(_TABLE).insert(entry.model_dump(mode="json")).execute()
        logger.info("Stored mood entry %s (mood=%s)", entry.id, entry.mood.value)
        self._notify()
        return entry
