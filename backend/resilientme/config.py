"""
ResilientMe Configuration
=========================
All environment variables in one place. Pydantic Settings validates
types at startup so a bad timeout or interval fails on boot, not the
first time the engine tries to schedule something.
"""

from functools import lru_cache

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Loaded from environment variables or a .env file."""

    # --- Supabase ---
    # Empty URL means "no database": entries and ratings live in memory.
    supabase_url: str = ""
    supabase_service_key: str = ""

    # --- Anthropic / Claude API ---
    anthropic_api_key: str = ""
    anthropic_model: str = "claude-sonnet-4-20250514"
    # Recommendation payloads carry strategies with steps, so they are
    # much larger than a single classification.
    anthropic_max_tokens: int = 2048

    # --- App settings ---
    environment: str = "development"  # development | staging | production
    log_level: str = "INFO"
    cors_origins: list[str] = ["http://localhost:8081", "http://localhost:19006"]

    # --- Feature flags ---
    # Kill switch: if False, skip the AI analyzer and use the local
    # pattern detectors only.
    enable_ai_analysis: bool = True

    # --- Recommendation engine ---
    analysis_timeout_seconds: float = 20.0
    debounce_seconds: float = 1.0
    recheck_interval_hours: float = 24.0

    # --- Follow-ups ---
    follow_up_delay_hours: float = 24.0
    # Prompts left unanswered this long after delivery are expired.
    follow_up_response_window_hours: float = 48.0

    # --- Notifications ---
    # Push gateway endpoint. Empty means notifications are only logged.
    notification_webhook_url: str = ""

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


@lru_cache
def get_settings() -> Settings:
    return Settings()
