"""
Entries Router
==============
POST /api/v1/entries — Log a mood entry.
GET  /api/v1/entries — Recent entries, newest first.

Appending to the entry source fires its change callbacks, which restarts
the recommendation engine's debounce window. The response does not wait
for analysis.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Query, status

from resilientme.dependencies import get_entry_source
from resilientme.models.mood import MoodEntry, MoodEntryCreate
from resilientme.services.entry_source import EntrySource

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/entries", tags=["entries"])


@router.post(
    "",
    response_model=MoodEntry,
    status_code=status.HTTP_201_CREATED,
    summary="Log a mood entry",
    responses={
        201: {"description": "Entry stored; analysis will follow after the debounce window"},
        422: {"description": "Validation error (unknown mood, intensity out of range)"},
    },
)
async def create_entry(
    body: MoodEntryCreate,
    source: EntrySource = Depends(get_entry_source),
) -> MoodEntry:
    entry = source.append(body.to_entry())
    logger.debug("Logged %s entry (intensity=%d)", entry.mood.value, entry.intensity)
    return entry


@router.get(
    "",
    response_model=list[MoodEntry],
    summary="List recent mood entries",
)
async def list_entries(
    limit: int = Query(default=50, ge=1, le=500),
    source: EntrySource = Depends(get_entry_source),
) -> list[MoodEntry]:
    return source.list_entries()[:limit]
