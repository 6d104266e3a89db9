"""
Mood Entry Schemas
==================
Pydantic models for mood-tracking entries. Entries are owned by the
entry source; the recommendation engine only ever reads them.

Key design decisions:
- MoodEntry is frozen — an entry never changes after it is logged.
- rejection_trigger is free text ("Friend ignored me on social media"),
  matched by keyword, never by exact value.
- Every mood category carries a valence so mood-before/mood-after pairs
  can be compared without a second lookup table.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


# ---------------------------------------------------------------------------
# Allowed values
# ---------------------------------------------------------------------------

class MoodCategory(str, Enum):
    """Mood categories a user can log."""

    JOYFUL = "joyful"
    CONTENT = "content"
    NEUTRAL = "neutral"
    SAD = "sad"
    FRUSTRATED = "frustrated"
    STRESSED = "stressed"
    ANXIOUS = "anxious"
    ANGRY = "angry"
    HAPPY = "happy"
    CALM = "calm"
    REJECTED = "rejected"


POSITIVE = "positive"
NEGATIVE = "negative"
NEUTRAL = "neutral"

# Labels beyond the enum come from the rating UI's mood pickers
# ("Discouraged", "Embarrassed", ...), so valence is keyed by lowercase label.
_POSITIVE_LABELS = frozenset({
    "happy", "calm", "excited", "grateful", "proud", "motivated",
    "confident", "joyful", "content",
})
_NEGATIVE_LABELS = frozenset({
    "sad", "anxious", "angry", "discouraged", "frustrated", "disappointed",
    "embarrassed", "overwhelmed", "stressed", "rejected",
})


def mood_valence(label: str | MoodCategory) -> str:
    """Return 'positive', 'negative' or 'neutral' for a mood label.

    Unknown labels are neutral.
    """
    value = label.value if isinstance(label, MoodCategory) else label
    value = value.strip().lower()
    if value in _POSITIVE_LABELS:
        return POSITIVE
    if value in _NEGATIVE_LABELS:
        return NEGATIVE
    return NEUTRAL


# ---------------------------------------------------------------------------
# Entry
# ---------------------------------------------------------------------------

class MoodEntry(BaseModel):
    """One logged mood observation."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    mood: MoodCategory
    intensity: int = Field(..., ge=1, le=5)
    note: str = ""
    rejection_related: bool = False
    rejection_trigger: Optional[str] = None
    coping_strategy: Optional[str] = Field(
        default=None,
        description="Name of the strategy the user applied, if any.",
    )


# ---------------------------------------------------------------------------
# Request
# ---------------------------------------------------------------------------

class MoodEntryCreate(BaseModel):
    """Payload the mobile app sends when the user logs a mood."""

    mood: MoodCategory
    intensity: int = Field(..., ge=1, le=5, description="1 = barely, 5 = overwhelming.")
    note: str = Field(default="", max_length=2000)
    rejection_related: bool = False
    rejection_trigger: Optional[str] = Field(default=None, max_length=200)
    coping_strategy: Optional[str] = Field(default=None, max_length=200)

    @field_validator("mood", mode="before")
    @classmethod
    def _lowercase_mood(cls, value: object) -> object:
        # The app sends display names ("Anxious").
        return value.lower() if isinstance(value, str) else value

    def to_entry(self) -> MoodEntry:
        return MoodEntry(**self.model_dump())
