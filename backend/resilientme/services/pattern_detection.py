"""
Pattern Detection
=================
Rule-based detectors that look for recurring emotional patterns in a
window of mood entries. This is the local fallback for AI analysis and
must always return a result.

Each hypothesis is a ``DetectorRule`` record evaluated by one function,
``detect``:

    1. Take the newest ``window`` entries (or all of them).
    2. Keep entries matching the rule's predicates: rejection flag, mood,
       minimum intensity, trigger keyword (case-insensitive substring).
    3. No recommendation below ``min_evidence`` matches (the insight
       threshold) or below ``min_ratio`` of the window.
    4. Confidence = min(1.0, count / divisor + base), or ratio + base for
       ratio rules. Never decreases as evidence grows.
    5. Strategies and resources are pulled from the catalog by title;
       lead strategies are prepended when a matching trigger mentions
       one of their keywords.

Rules are independent — ``detect_all`` runs every rule and keeps every hit.

Free-text nudges (self-doubt, loneliness, job rejection) live here too.
They do not produce recommendations, only one-off notifications from the
engine's periodic re-check.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass

from resilientme.models.mood import MoodCategory, MoodEntry
from resilientme.models.recommendation import Recommendation
from resilientme.services.catalog import StrategyCatalog

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

INSIGHT_THRESHOLD = 3  # minimum matching entries before a pattern is asserted
NUDGE_WINDOW = 30      # newest entries scanned by free-text nudges

SOCIAL_KEYWORDS = ("social", "friend", "group", "media")
PROFESSIONAL_KEYWORDS = ("professional", "job", "work", "career")


# ---------------------------------------------------------------------------
# Rule definitions
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class LeadStrategy:
    """Strategy put at the front of the bundle when a trigger mentions a keyword."""

    keywords: tuple[str, ...]
    strategy: str


@dataclass(frozen=True)
class DetectorRule:
    name: str
    title: str
    description: str
    trigger_pattern: str
    strategies: tuple[str, ...]
    resources: tuple[str, ...]
    confidence_base: float
    confidence_divisor: float = 1.0
    moods: frozenset[MoodCategory] | None = None
    require_rejection: bool = True
    min_intensity: int = 1
    trigger_keywords: tuple[str, ...] = ()
    window: int | None = None
    min_evidence: int = INSIGHT_THRESHOLD
    min_ratio: float | None = None
    lead_strategies: tuple[LeadStrategy, ...] = ()

    def matches(self, entry: MoodEntry) -> bool:
        if self.require_rejection and not entry.rejection_related:
            return False
        if self.moods is not None and entry.mood not in self.moods:
            return False
        if entry.intensity < self.min_intensity:
            return False
        if self.trigger_keywords:
            return _mentions(entry.rejection_trigger, self.trigger_keywords)
        return True

    def confidence(self, count: int, window_size: int | None = None) -> float:
        """Clamped confidence for ``count`` matching entries.

        Ratio rules divide by ``window_size`` (the number of entries that
        were actually inspected), count rules by ``confidence_divisor``.
        """
        if self.min_ratio is not None:
            if not window_size:
                return 0.0
            raw = count / window_size + self.confidence_base
        else:
            raw = count / self.confidence_divisor + self.confidence_base
        return min(1.0, max(0.0, raw))


def _mentions(text: str | None, keywords: Sequence[str]) -> bool:
    if not text:
        return False
    lowered = text.lower()
    return any(k in lowered for k in keywords)


ANXIETY_AFTER_REJECTION = DetectorRule(
    name="anxiety_after_rejection",
    title="Managing Anxiety After Rejection",
    description=(
        "I've noticed a pattern of anxiety after rejection experiences. Here are "
        "some evidence-based strategies that may help you regulate these feelings "
        "more effectively."
    ),
    trigger_pattern="Anxiety following rejection experiences",
    moods=frozenset({MoodCategory.ANXIOUS}),
    min_intensity=3,
    confidence_divisor=10.0,
    confidence_base=0.3,
    lead_strategies=(LeadStrategy(("social", "friend"), "Social Confidence Builder"),),
    strategies=("Grounding Technique", "Thought Challenging"),
    resources=(
        "The Science Behind Anxiety After Rejection",
        "Progressive Muscle Relaxation Audio Guide",
    ),
)

PERSISTENT_SADNESS = DetectorRule(
    name="persistent_sadness",
    title="Navigating Periods of Sadness",
    description=(
        "I've noticed recurring feelings of sadness in your recent entries. Here "
        "are some strategies that research suggests can help lift your mood gradually."
    ),
    trigger_pattern="Persistent feelings of sadness or discouragement",
    moods=frozenset({MoodCategory.SAD}),
    min_intensity=3,
    window=20,
    min_ratio=0.35,
    confidence_base=0.2,
    strategies=(
        "Pleasure Activities Scheduling",
        "Negative Thought Disruption",
        "Self-Compassion Practice",
    ),
    resources=(
        "How to Apply Behavioral Activation for Low Mood",
        "The Upward Spiral",
    ),
)

SOCIAL_REJECTION_SENSITIVITY = DetectorRule(
    name="social_rejection_sensitivity",
    title="Building Social Resilience",
    description=(
        "I've noticed that social rejection experiences particularly affect you. "
        "These strategies can help build resilience against social rejection and "
        "strengthen your support network."
    ),
    trigger_pattern="High sensitivity to social rejection experiences",
    min_intensity=4,
    trigger_keywords=SOCIAL_KEYWORDS,
    confidence_divisor=8.0,
    confidence_base=0.25,
    strategies=("Rejection Reframing", "Connection Inventory", "Assertiveness Training"),
    resources=("Building Social Resilience After Rejection", "MindDoc: Mood Tracker"),
)

PROFESSIONAL_REJECTION = DetectorRule(
    name="professional_rejection",
    title="Professional Resilience Development",
    description=(
        "I've noticed that professional rejection experiences impact you "
        "significantly. These strategies can help reframe professional setbacks "
        "as growth opportunities."
    ),
    trigger_pattern="Emotional responses to professional rejection",
    trigger_keywords=PROFESSIONAL_KEYWORDS,
    confidence_divisor=8.0,
    confidence_base=0.3,
    strategies=(
        "Professional Rejection Protocol",
        "Growth Mindset Development",
        "Achievements Inventory",
    ),
    resources=("The Professional's Guide to Rejection Recovery", "Rejection Proof"),
)

DEFAULT_RULES: tuple[DetectorRule, ...] = (
    ANXIETY_AFTER_REJECTION,
    PERSISTENT_SADNESS,
    SOCIAL_REJECTION_SENSITIVITY,
    PROFESSIONAL_REJECTION,
)


# ---------------------------------------------------------------------------
# Detection
# ---------------------------------------------------------------------------

def detect(
    rule: DetectorRule,
    entries: Sequence[MoodEntry],
    catalog: StrategyCatalog,
) -> Recommendation | None:
    """Evaluate one rule against newest-first ``entries``."""
    window = list(entries[: rule.window]) if rule.window is not None else list(entries)
    matching = [e for e in window if rule.matches(e)]
    count = len(matching)

    if count < rule.min_evidence:
        return None

    if rule.min_ratio is not None and count / len(window) < rule.min_ratio:
        return None

    titles: list[str] = []
    for lead in rule.lead_strategies:
        if any(_mentions(e.rejection_trigger, lead.keywords) for e in matching):
            titles.append(lead.strategy)
    titles.extend(t for t in rule.strategies if t not in titles)

    confidence = rule.confidence(count, len(window))
    logger.debug("Rule %s matched %d entries (confidence=%.2f)", rule.name, count, confidence)

    return Recommendation(
        title=rule.title,
        description=rule.description,
        trigger_pattern=rule.trigger_pattern,
        strategies=[catalog.strategy(t) for t in titles],
        resources=[catalog.resource(t) for t in rule.resources],
        confidence=confidence,
    )


def detect_all(
    entries: Sequence[MoodEntry],
    catalog: StrategyCatalog,
    rules: Sequence[DetectorRule] = DEFAULT_RULES,
) -> list[Recommendation]:
    """Run every rule and keep every non-None result, in rule order."""
    results = []
    for rule in rules:
        recommendation = detect(rule, entries, catalog)
        if recommendation is not None:
            results.append(recommendation)
    return results


# ---------------------------------------------------------------------------
# Free-text nudges
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class NudgeRule:
    name: str
    keywords: tuple[str, ...]
    title: str
    body: str
    field: str = "note"  # "note" or "trigger"
    require_rejection: bool = False

    def matches(self, entry: MoodEntry) -> bool:
        if self.require_rejection and not entry.rejection_related:
            return False
        text = entry.note if self.field == "note" else entry.rejection_trigger
        return _mentions(text, self.keywords)


DEFAULT_NUDGES: tuple[NudgeRule, ...] = (
    NudgeRule(
        name="self-doubt",
        keywords=("doubt", "not good enough", "inadequate", "unworthy", "imposter"),
        title="Feeling unsure of yourself?",
        body="Try a quick 'Self-Compassion Break' or review your 'Achievements Quick-List'.",
    ),
    NudgeRule(
        name="loneliness",
        keywords=("lonely", "alone", "isolated", "disconnected"),
        title="Feeling disconnected?",
        body="Consider a 'Connection Quick-Chat' or try a 'Solo Enjoyment Activity' from your toolbox.",
    ),
    NudgeRule(
        name="job-rejection",
        keywords=("job", "work", "career", "interview"),
        field="trigger",
        require_rejection=True,
        title="Processing job search feedback?",
        body="Review your 'Professional Strengths' list or try the 'Growth Mindset Reflection' exercise.",
    ),
)


def scan_nudges(
    entries: Sequence[MoodEntry],
    nudges: Sequence[NudgeRule] = DEFAULT_NUDGES,
    window: int = NUDGE_WINDOW,
    threshold: int = INSIGHT_THRESHOLD,
) -> list[tuple[NudgeRule, int]]:
    """Return (nudge, match count) for every nudge at or above ``threshold``."""
    recent = list(entries[:window])
    hits = []
    for nudge in nudges:
        count = sum(1 for e in recent if nudge.matches(e))
        if count >= threshold:
            hits.append((nudge, count))
    return hits
