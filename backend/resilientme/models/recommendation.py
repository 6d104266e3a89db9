"""
Recommendation Schemas
======================
Value types shared by the catalog, the pattern detectors, the AI
analyzer and the recommendation engine.

Recommendations get a fresh id every time they are computed, so the id
is only useful for addressing one object in the UI. Whether two
recommendation sets "say the same thing" is decided by ``content_key``
(title + trigger pattern + confidence bucket), never by id.
"""

from __future__ import annotations

import uuid
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


# ---------------------------------------------------------------------------
# Allowed values
# ---------------------------------------------------------------------------

class StrategyCategory(str, Enum):
    """The one canonical coping-strategy category."""

    MINDFULNESS = "mindfulness"
    COGNITIVE = "cognitive"
    PHYSICAL = "physical"
    SOCIAL = "social"
    CREATIVE = "creative"
    SELF_CARE = "self_care"

    @classmethod
    def from_label(cls, label: str | None) -> "StrategyCategory":
        """Total conversion from any external label ("Self-Care", "self care").

        Unrecognised labels map to SELF_CARE.
        """
        if not label:
            return cls.SELF_CARE
        key = label.strip().lower().replace("-", "_").replace(" ", "_")
        if key == "selfcare":
            return cls.SELF_CARE
        try:
            return cls(key)
        except ValueError:
            return cls.SELF_CARE

    @property
    def display_name(self) -> str:
        return "Self-Care" if self is StrategyCategory.SELF_CARE else self.value.title()


class ResourceType(str, Enum):
    ARTICLE = "article"
    VIDEO = "video"
    AUDIO = "audio"
    BOOK = "book"
    APP = "app"
    EXERCISE = "exercise"

    @classmethod
    def from_label(cls, label: str | None) -> "ResourceType":
        """Total conversion from free-form type strings ("Podcast", "blog post").

        Unrecognised labels map to EXERCISE.
        """
        lowered = (label or "").lower()
        if "article" in lowered or "blog" in lowered:
            return cls.ARTICLE
        if "video" in lowered:
            return cls.VIDEO
        if "audio" in lowered or "podcast" in lowered:
            return cls.AUDIO
        if "app" in lowered:
            return cls.APP
        if "book" in lowered:
            return cls.BOOK
        return cls.EXERCISE


# ---------------------------------------------------------------------------
# Catalog entries
# ---------------------------------------------------------------------------

class CopingStrategy(BaseModel):
    """A pre-authored (or AI-suggested) coping strategy."""

    model_config = ConfigDict(frozen=True)

    title: str
    description: str
    duration: str = Field(..., description="Human estimate, e.g. '5 minutes'.")
    category: StrategyCategory
    steps: list[str] = Field(default_factory=list)


class Resource(BaseModel):
    """Supporting reading, listening or practice material."""

    model_config = ConfigDict(frozen=True)

    title: str
    type: ResourceType
    description: str
    url: Optional[str] = None
    image_url: Optional[str] = None
    source: str = ""
    is_new: bool = False


# ---------------------------------------------------------------------------
# Recommendation
# ---------------------------------------------------------------------------

class Recommendation(BaseModel):
    """A detected pattern plus what to do about it."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    title: str
    description: str
    trigger_pattern: str
    strategies: list[CopingStrategy] = Field(default_factory=list)
    resources: list[Resource] = Field(default_factory=list)
    confidence: float = Field(..., ge=0.0, le=1.0)

    @field_validator("confidence", mode="before")
    @classmethod
    def _clamp_confidence(cls, value: object) -> object:
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return min(1.0, max(0.0, float(value)))
        return value

    @property
    def confidence_bucket(self) -> float:
        return round(self.confidence, 1)

    @property
    def content_key(self) -> tuple[str, str, float]:
        return (self.title, self.trigger_pattern, self.confidence_bucket)


class RecommendationSetResponse(BaseModel):
    """Response envelope for GET /api/v1/recommendations."""

    recommendations: list[Recommendation]
    has_new: bool = Field(
        ...,
        description="True until the app acknowledges the latest change via /seen.",
    )
    analyzing: bool
    disclaimer: str = Field(
        default="ResilientMe is a wellness tool, not a medical device.",
        description="Must always be shown alongside recommendations.",
    )
