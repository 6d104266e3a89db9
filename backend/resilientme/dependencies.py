"""
Service Wiring
==============
Builds the long-lived services once at startup and exposes them to routes
through FastAPI dependencies. Nothing here is a module-level singleton:
``build_services`` is called from the app lifespan and the result lives
on ``app.state``, so tests can construct their own and override.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from fastapi import Request

from resilientme.config import Settings
from resilientme.db.supabase import get_supabase_client
from resilientme.services.catalog import StrategyCatalog
from resilientme.services.effectiveness import (
    EffectivenessLedger,
    InMemoryRatingStore,
    SupabaseRatingStore,
)
from resilientme.services.engine import RecommendationEngine
from resilientme.services.entry_source import (
    EntrySource,
    InMemoryEntrySource,
    SupabaseEntrySource,
)
from resilientme.services.follow_up import FollowUpScheduler
from resilientme.services.mood_analyzer import ClaudeMoodAnalyzer
from resilientme.services.notifications import (
    BaseNotificationChannel,
    build_notification_channel,
)
from resilientme.services.redaction import EntryRedactor

logger = logging.getLogger(__name__)


@dataclass
class Services:
    entry_source: EntrySource
    catalog: StrategyCatalog
    ledger: EffectivenessLedger
    channel: BaseNotificationChannel
    follow_ups: FollowUpScheduler
    engine: RecommendationEngine


def build_services(settings: Settings) -> Services:
    client = get_supabase_client(settings)
    if client is None:
        logger.info("Supabase not configured — entries and ratings are kept in memory")
        entry_source: EntrySource = InMemoryEntrySource()
        ledger = EffectivenessLedger(InMemoryRatingStore())
    else:
        entry_source = SupabaseEntrySource(client)
        ledger = EffectivenessLedger(SupabaseRatingStore(client))

    catalog = StrategyCatalog()
    channel = build_notification_channel(settings)

    analyzer = None
    if settings.enable_ai_analysis and settings.anthropic_api_key:
        analyzer = ClaudeMoodAnalyzer(EntryRedactor(), settings)
    else:
        logger.info("AI analysis disabled — using local pattern detectors only")

    return Services(
        entry_source=entry_source,
        catalog=catalog,
        ledger=ledger,
        channel=channel,
        follow_ups=FollowUpScheduler(channel, catalog, settings),
        engine=RecommendationEngine(entry_source, catalog, channel, analyzer, settings),
    )


# ---------------------------------------------------------------------------
# FastAPI dependencies
# ---------------------------------------------------------------------------

def get_services(request: Request) -> Services:
    return request.app.state.services


def get_entry_source(request: Request) -> EntrySource:
    return get_services(request).entry_source


def get_catalog(request: Request) -> StrategyCatalog:
    return get_services(request).catalog


def get_ledger(request: Request) -> EffectivenessLedger:
    return get_services(request).ledger


def get_channel(request: Request) -> BaseNotificationChannel:
    return get_services(request).channel


def get_follow_ups(request: Request) -> FollowUpScheduler:
    return get_services(request).follow_ups


def get_engine(request: Request) -> RecommendationEngine:
    return get_services(request).engine
