"""
Effectiveness Ledger
====================
Append-only log of strategy ratings, with the aggregates the app shows on
the strategy detail and "what works for you" screens.

Recording never fails from the caller's point of view: ratings are clamped
to 1–5 and a storage error is logged while the rating stays in the
in-process log. Aggregates are computed with pandas over a snapshot of the
full log, so a rating recorded mid-computation is simply not included.
"""

from __future__ import annotations

import logging
from datetime import timezone
from typing import Any, Optional, Protocol

import pandas as pd

from resilientme.models.effectiveness import (
    EffectivenessRating,
    RatingPoint,
    StrategyAverage,
    StrategyUsage,
)
from resilientme.models.mood import NEGATIVE, NEUTRAL, POSITIVE, mood_valence

logger = logging.getLogger(__name__)

MIN_RATING = 1
MAX_RATING = 5
DEFAULT_TOP_LIMIT = 5

_TABLE = "strategy_ratings"


# ---------------------------------------------------------------------------
# Storage
# ---------------------------------------------------------------------------


class RatingStore(Protocol):
    def load(self) -> list[EffectivenessRating]: ...

    def append(self, rating: EffectivenessRating) -> None: ...


class InMemoryRatingStore:
    def __init__(self, ratings: Optional[list[EffectivenessRating]] = None) -> None:
        self._rows = list(ratings or [])

    def load(self) -> list[EffectivenessRating]:
        return list(self._rows)

    def append(self, rating: EffectivenessRating) -> None:
        self._rows.append(rating)


class SupabaseRatingStore:
    """Ratings persisted in the ``strategy_ratings`` table."""

    def __init__(self, client: Any) -> None:
        self._db = client

    def load(self) -> list[EffectivenessRating]:
        result = (
            self._db.table(_TABLE)
            .select("*")
            .order("timestamp")
            .execute()
        )
        return [EffectivenessRating.model_validate(row) for row in result.data or []]

    def append(self, rating: EffectivenessRating) -> None:
        self._db.table(_TABLE).insert(rating.model_dump(mode="json")).execute()


# ---------------------------------------------------------------------------
# Mood impact
# ---------------------------------------------------------------------------


def derive_mood_impact(mood_before: Optional[str], mood_after: Optional[str]) -> Optional[str]:
    """Describe the mood change around a strategy, or None if there is nothing to say."""
    if not mood_before or not mood_after:
        return None

    before = mood_valence(mood_before)
    after = mood_valence(mood_after)

    if before == NEGATIVE and after == POSITIVE:
        return "Major improvement"
    if before == NEGATIVE and after == NEUTRAL:
        return "Slight improvement"
    if before == after:
        return "Maintained mood"
    if before == POSITIVE and after == NEGATIVE:
        return "Mood declined"
    return None


def clamp_rating(rating: int) -> int:
    return max(MIN_RATING, min(MAX_RATING, int(rating)))


# ---------------------------------------------------------------------------
# Ledger
# ---------------------------------------------------------------------------


class EffectivenessLedger:
    """Owns the rating log. Construct one per process and inject it."""

    def __init__(self, store: Optional[RatingStore] = None) -> None:
        self._store: RatingStore = store or InMemoryRatingStore()
        try:
            self._log: list[EffectivenessRating] = self._store.load()
        except Exception:
            logger.exception("Failed to load rating history — starting with an empty ledger")
            self._log = []

    def record_rating(
        self,
        strategy: str,
        rating: int,
        mood_before: Optional[str] = None,
        mood_after: Optional[str] = None,
        note: Optional[str] = None,
        completion_time: Optional[float] = None,
    ) -> EffectivenessRating:
        clamped = clamp_rating(rating)
        if clamped != rating:
            logger.debug("Clamped rating %s for %r to %d", rating, strategy, clamped)

        entry = EffectivenessRating(
            strategy=strategy,
            rating=clamped,
            mood_before=mood_before,
            mood_after=mood_after,
            mood_impact=derive_mood_impact(mood_before, mood_after),
            note=note,
            completion_time=completion_time,
        )
        self._log.append(entry)

        try:
            self._store.append(entry)
        except Exception:
            logger.exception("Failed to persist rating for %r — kept in memory only", strategy)

        return entry

    # -- aggregates ---------------------------------------------------------

    def _frame(self) -> pd.DataFrame:
        snapshot = list(self._log)
        return pd.DataFrame(
            [
                {"strategy": r.strategy, "rating": r.rating, "timestamp": r.timestamp.astimezone(timezone.utc)}
                for r in snapshot
            ],
            columns=["strategy", "rating", "timestamp"],
        )

    def average_rating(self, strategy: str) -> float:
        """Mean rating for ``strategy``; 0.0 when it has never been rated."""
        df = self._frame()
        ratings = df.loc[df["strategy"] == strategy, "rating"]
        if ratings.empty:
            return 0.0
        return float(ratings.mean())

    def usage_count(self, strategy: str) -> int:
        df = self._frame()
        return int((df["strategy"] == strategy).sum())

    def rating_history(self, strategy: str) -> list[RatingPoint]:
        df = self._frame()
        rows = df.loc[df["strategy"] == strategy].sort_values("timestamp", kind="stable")
        return [
            RatingPoint(timestamp=ts.to_pydatetime(), rating=int(r))
            for ts, r in zip(rows["timestamp"], rows["rating"])
        ]

    def most_effective(self, limit: int = DEFAULT_TOP_LIMIT) -> list[StrategyAverage]:
        df = self._frame()
        if df.empty:
            return []
        averages = (
            df.groupby("strategy")["rating"].mean()
            .reset_index(name="average_rating")
            .sort_values(["average_rating", "strategy"], ascending=[False, True])
            .head(limit)
        )
        return [
            StrategyAverage(strategy=s, average_rating=float(a))
            for s, a in zip(averages["strategy"], averages["average_rating"])
        ]

    def most_used(self, limit: int = DEFAULT_TOP_LIMIT) -> list[StrategyUsage]:
        df = self._frame()
        if df.empty:
            return []
        counts = (
            df.groupby("strategy").size()
            .reset_index(name="count")
            .sort_values(["count", "strategy"], ascending=[False, True])
            .head(limit)
        )
        return [
            StrategyUsage(strategy=s, count=int(c))
            for s, c in zip(counts["strategy"], counts["count"])
        ]

    @property
    def ratings(self) -> list[EffectivenessRating]:
        return list(self._log)

