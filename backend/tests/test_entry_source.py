"""
Tests for Entry Sources
=======================
Covers:
- InMemoryEntrySource: newest-first ordering, change callbacks, failing callback isolated
- SupabaseEntrySource: query shape, row parsing, insert + callback on append

Run: pytest tests/test_entry_source.py -v
"""

from __future__ import annotations

from unittest.mock import MagicMock

from conftest import make_entry
from resilientme.models.mood import MoodCategory
from resilientme.services.entry_source import InMemoryEntrySource, SupabaseEntrySource


class TestInMemoryEntrySource:

    def test_newest_first(self):
        older = make_entry(hours_ago=5)
        newer = make_entry(hours_ago=1)
        source = InMemoryEntrySource([older, newer])

        assert [e.id for e in source.list_entries()] == [newer.id, older.id]

    def test_append_notifies(self):
        source = InMemoryEntrySource()
        calls = []
        source.on_change(lambda: calls.append("changed"))

        source.append(make_entry())

        assert calls == ["changed"]
        assert len(source.list_entries()) == 1

    def test_failing_callback_does_not_block_others(self):
        source = InMemoryEntrySource()
        calls = []

        def broken():
            raise RuntimeError("listener bug")

        source.on_change(broken)
        source.on_change(lambda: calls.append("ok"))

        source.append(make_entry())

        assert calls == ["ok"]


class TestSupabaseEntrySource:

    def test_list_entries(self):
        mock_db = MagicMock()
        chain = mock_db.table.return_value.select.return_value.order.return_value.limit.return_value
        chain.execute.return_value.data = [
            {
                "id": "e1",
                "timestamp": "2026-03-01T10:00:00+00:00",
                "mood": "anxious",
                "intensity": 4,
                "note": "",
                "rejection_related": True,
                "rejection_trigger": "Friend ignored me",
                "coping_strategy": None,
            }
        ]
        source = SupabaseEntrySource(mock_db)

        [entry] = source.list_entries()

        assert entry.mood is MoodCategory.ANXIOUS
        assert entry.rejection_trigger == "Friend ignored me"
        mock_db.table.assert_called_with("mood_entries")
        mock_db.table.return_value.select.return_value.order.assert_called_with("timestamp", desc=True)

    def test_append_inserts_and_notifies(self):
        mock_db = MagicMock()
        source = SupabaseEntrySource(mock_db)
        calls = []
        source.on_change(lambda: calls.append("changed"))
        entry = make_entry(trigger="job")

        source.append(entry)

        inserted = mock_db.table.return_value.insert.call_args[0][0]
        assert inserted["id"] == entry.id
        assert inserted["mood"] == "anxious"
        assert calls == ["changed"]
