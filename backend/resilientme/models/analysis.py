"""
AI Analysis Schemas
===================
Structured response expected back from the text-generation backend,
and its translation into engine ``Recommendation`` values.

The model is asked for camelCase keys but older prompt versions used
snake_case, so every multi-word field accepts both spellings. Unknown
categories and resource types are mapped by the total conversions on
``StrategyCategory`` / ``ResourceType`` rather than rejected.
"""

from __future__ import annotations

from typing import Optional

from pydantic import AliasChoices, BaseModel, Field

from resilientme.models.recommendation import (
    CopingStrategy,
    Recommendation,
    Resource,
    ResourceType,
    StrategyCategory,
)


class AIStrategy(BaseModel):
    title: str
    description: str = ""
    category: str = ""
    duration: str = Field(
        default="",
        validation_alias=AliasChoices("duration", "timeToComplete", "time_to_complete"),
    )
    steps: list[str] = Field(default_factory=list)

    def to_strategy(self) -> CopingStrategy:
        return CopingStrategy(
            title=self.title,
            description=self.description,
            duration=self.duration,
            category=StrategyCategory.from_label(self.category),
            steps=self.steps,
        )


class AIResource(BaseModel):
    title: str
    type: str = ""
    description: str = ""
    url: Optional[str] = None
    image_url: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("image_url", "imageUrl", "imageURL"),
    )

    def to_resource(self) -> Resource:
        # AI-suggested resources have no attribution and are never flagged new.
        return Resource(
            title=self.title,
            type=ResourceType.from_label(self.type),
            description=self.description,
            url=self.url,
            image_url=self.image_url,
        )


class AIRecommendation(BaseModel):
    title: str
    description: str
    trigger_pattern: str = Field(
        ...,
        validation_alias=AliasChoices("trigger_pattern", "triggerPattern"),
    )
    confidence: float = Field(
        ...,
        validation_alias=AliasChoices("confidence", "confidenceLevel", "confidence_level"),
    )
    strategies: list[AIStrategy] = Field(default_factory=list)
    resources: list[AIResource] = Field(default_factory=list)

    def to_recommendation(self) -> Recommendation:
        """Translate into an engine Recommendation (confidence is clamped there)."""
        return Recommendation(
            title=self.title,
            description=self.description,
            trigger_pattern=self.trigger_pattern,
            strategies=[s.to_strategy() for s in self.strategies],
            resources=[r.to_resource() for r in self.resources],
            confidence=self.confidence,
        )


class AIRecommendationsResponse(BaseModel):
    """Top-level JSON object returned by the analyzer."""

    recommendations: list[AIRecommendation] = Field(default_factory=list)

    def to_recommendations(self) -> list[Recommendation]:
        return [r.to_recommendation() for r in self.recommendations]
