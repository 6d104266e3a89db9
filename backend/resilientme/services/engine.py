"""
Recommendation Engine
=====================
Turns the user's mood history into a ranked set of recommendations and
keeps it current.

Lifecycle:
    IDLE ──trigger──▶ ANALYZING ──done──▶ IDLE

Triggers:
    - entry changes, debounced (trailing window, restarted on every change)
    - manual (``trigger`` / ``analyze_now``)
    - periodic re-check, which also sends free-text nudges

A trigger that arrives while ANALYZING is dropped, not queued.

Each run:
    1. AI analysis with a timeout, when enabled and there are entries
    2. Any error, timeout, malformed or empty AI answer → local detectors
    3. Rank by confidence (descending), dedupe by content key
    4. Publish only if the set of content keys changed: swap the list,
       raise ``has_new``, call listeners, send ONE notification if non-empty

Everything runs on one event loop; the published list is replaced, never
mutated, so readers always see a complete set.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Sequence
from enum import Enum
from typing import Optional

from resilientme.config import Settings, get_settings
from resilientme.models.mood import MoodEntry
from resilientme.models.recommendation import Recommendation
from resilientme.services.catalog import StrategyCatalog
from resilientme.services.entry_source import EntrySource
from resilientme.services.mood_analyzer import MoodAnalyzer
from resilientme.services.notifications import (
    RECOMMENDATION_CATEGORY,
    NotificationChannel,
    NotificationError,
)
from resilientme.services.pattern_detection import (
    DEFAULT_NUDGES,
    DEFAULT_RULES,
    INSIGHT_THRESHOLD,
    DetectorRule,
    NudgeRule,
    detect_all,
    scan_nudges,
)

logger = logging.getLogger(__name__)

RecommendationListener = Callable[[list[Recommendation]], None]

UPDATE_IDENTIFIER = "recommendations-update"
UPDATE_TITLE = "New Personalized Insights Available"
UPDATE_BODY = (
    "I've noticed patterns in your mood tracking and have personalized "
    "strategies ready for you to try."
)


class EngineState(str, Enum):
    IDLE = "idle"
    ANALYZING = "analyzing"


def rank_and_dedupe(recommendations: Sequence[Recommendation]) -> list[Recommendation]:
    """Sort by descending confidence (stable) and keep the first of each content key."""
    ranked = sorted(recommendations, key=lambda r: r.confidence, reverse=True)
    seen: set[tuple[str, str, float]] = set()
    unique = []
    for rec in ranked:
        if rec.content_key in seen:
            continue
        seen.add(rec.content_key)
        unique.append(rec)
    return unique


class RecommendationEngine:
    """Owns the published recommendation set. One instance per user session."""

    def __init__(
        self,
        entry_source: EntrySource,
        catalog: StrategyCatalog,
        channel: NotificationChannel,
        analyzer: Optional[MoodAnalyzer] = None,
        settings: Settings | None = None,
        rules: Sequence[DetectorRule] = DEFAULT_RULES,
        nudges: Sequence[NudgeRule] = DEFAULT_NUDGES,
    ) -> None:
        self._settings = settings or get_settings()
        self._source = entry_source
        self._catalog = catalog
        self._channel = channel
        self._analyzer = analyzer
        self._rules = tuple(rules)
        self._nudges = tuple(nudges)

        self._state = EngineState.IDLE
        self._recommendations: list[Recommendation] = []
        self._keys: frozenset[tuple[str, str, float]] = frozenset()
        self._has_new = False
        self._listeners: list[RecommendationListener] = []

        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._debounce_handle: Optional[asyncio.TimerHandle] = None
        self._analysis_task: Optional[asyncio.Task[None]] = None
        self._recheck_task: Optional[asyncio.Task[None]] = None
        # Set when entries change during a run; the run re-arms the debounce on exit.
        self._dirty = False

        self.analysis_runs = 0

        entry_source.on_change(self.notify_entries_changed)

    # ------------------------------------------------------------------
    # Read side
    # ------------------------------------------------------------------

    @property
    def state(self) -> EngineState:
        return self._state

    @property
    def is_analyzing(self) -> bool:
        return self._state is EngineState.ANALYZING

    @property
    def recommendations(self) -> list[Recommendation]:
        return list(self._recommendations)

    @property
    def has_new(self) -> bool:
        return self._has_new

    def mark_seen(self) -> None:
        self._has_new = False

    def add_listener(self, listener: RecommendationListener) -> None:
        self._listeners.append(listener)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> None:
        """Start the periodic re-check and run an initial analysis."""
        self._loop = asyncio.get_running_loop()
        if self._recheck_task is None:
            self._recheck_task = self._loop.create_task(self._recheck_loop())

        try:
            if len(self._source.list_entries()) >= INSIGHT_THRESHOLD:
                await self.send_nudges()
        except Exception:
            logger.exception("Startup nudge scan failed")
        self.trigger("startup")

    async def stop(self) -> None:
        if self._recheck_task is not None:
            self._recheck_task.cancel()
            await asyncio.gather(self._recheck_task, return_exceptions=True)
            self._recheck_task = None
        if self._analysis_task is not None and not self._analysis_task.done():
            await asyncio.gather(self._analysis_task, return_exceptions=True)
        self._dirty = False
        if self._debounce_handle is not None:
            self._debounce_handle.cancel()
            self._debounce_handle = None

    # ------------------------------------------------------------------
    # Triggers
    # ------------------------------------------------------------------

    def notify_entries_changed(self) -> None:
        """Entry-source callback. Restarts the debounce window."""
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            if self._loop is None:
                logger.debug("Entry change outside an event loop before start(), ignored")
                return
            self._loop.call_soon_threadsafe(self._restart_debounce)
            return
        self._restart_debounce()

    def _restart_debounce(self) -> None:
        if self._debounce_handle is not None:
            self._debounce_handle.cancel()
        loop = asyncio.get_running_loop()
        self._debounce_handle = loop.call_later(
            self._settings.debounce_seconds, self._on_debounce_elapsed
        )

    def _on_debounce_elapsed(self) -> None:
        self._debounce_handle = None
        self.trigger("entries_changed")

    def trigger(self, reason: str = "manual") -> bool:
        """Start an analysis run unless one is in flight. Returns True if started."""
        if self._state is EngineState.ANALYZING:
            if reason == "entries_changed":
                self._dirty = True
                logger.debug("Analysis already running, entries changed; will re-run after it")
            else:
                logger.debug("Analysis already running, dropping %s trigger", reason)
            return False

        self._state = EngineState.ANALYZING
        self._analysis_task = asyncio.get_running_loop().create_task(self._run_analysis(reason))
        return True

    async def analyze_now(self, reason: str = "manual") -> bool:
        """Trigger and wait for the run to finish."""
        started = self.trigger(reason)
        if started and self._analysis_task is not None:
            await self._analysis_task
        return started

    # ------------------------------------------------------------------
    # Analysis
    # ------------------------------------------------------------------

    async def _run_analysis(self, reason: str) -> None:
        self.analysis_runs += 1
        try:
            entries = self._source.list_entries()
            logger.info("Analysis run %d (%s) over %d entries", self.analysis_runs, reason, len(entries))
            produced = await self._produce(entries)
            await self._publish(rank_and_dedupe(produced))
        except Exception:
            logger.exception("Analysis run %d failed", self.analysis_runs)
        finally:
            self._state = EngineState.IDLE
            if self._dirty:
                self._dirty = False
                self._restart_debounce()

    async def _produce(self, entries: list[MoodEntry]) -> list[Recommendation]:
        if entries and self._analyzer is not None and self._settings.enable_ai_analysis:
            try:
                response = await asyncio.wait_for(
                    self._analyzer.analyze(entries),
                    timeout=self._settings.analysis_timeout_seconds,
                )
                produced = response.to_recommendations()
            except asyncio.TimeoutError:
                logger.warning(
                    "AI analysis timed out after %.1fs, using local detectors",
                    self._settings.analysis_timeout_seconds,
                )
            except Exception:
                logger.warning("AI analysis failed, using local detectors", exc_info=True)
            else:
                if produced:
                    return produced
                logger.info("AI analysis returned no recommendations, using local detectors")

        return detect_all(entries, self._catalog, self._rules)

    async def _publish(self, recommendations: list[Recommendation]) -> None:
        keys = frozenset(r.content_key for r in recommendations)
        if keys == self._keys:
            logger.debug("Recommendation set unchanged (%d items)", len(recommendations))
            return

        self._recommendations = recommendations
        self._keys = keys
        self._has_new = True
        logger.info("Published %d recommendation(s)", len(recommendations))

        for listener in list(self._listeners):
            try:
                listener(list(recommendations))
            except Exception:
                logger.exception("Recommendation listener failed")

        if not recommendations:
            return

        try:
            await self._channel.send(
                UPDATE_TITLE,
                UPDATE_BODY,
                identifier=UPDATE_IDENTIFIER,
                payload={
                    "kind": "recommendations",
                    "category": RECOMMENDATION_CATEGORY,
                    "count": len(recommendations),
                },
            )
        except NotificationError:
            logger.exception("Failed to send recommendation notification")

    # ------------------------------------------------------------------
    # Periodic re-check
    # ------------------------------------------------------------------

    async def _recheck_loop(self) -> None:
        interval = self._settings.recheck_interval_hours * 3600
        while True:
            await asyncio.sleep(interval)
            try:
                await self.run_periodic_check()
            except Exception:
                logger.exception("Periodic re-check failed, retrying next interval")

    async def run_periodic_check(self) -> None:
        await self.send_nudges()
        self.trigger("periodic")

    async def send_nudges(self) -> int:
        """Send one notification per free-text pattern over the threshold."""
        sent = 0
        for nudge, count in scan_nudges(self._source.list_entries(), self._nudges):
            try:
                await self._channel.send(
                    nudge.title,
                    nudge.body,
                    identifier=f"nudge-{nudge.name}",
                    payload={"kind": "nudge", "pattern": nudge.name, "matches": count},
                )
            except NotificationError:
                logger.exception("Failed to send %s nudge", nudge.name)
                continue
            sent += 1
        return sent
