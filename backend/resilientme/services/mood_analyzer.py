"""
Mood Analyzer Service
=====================
Asks the Claude API to find emotional patterns in recent mood entries and
return personalised recommendations.

DATA PROTECTION FLOW:
    1. The engine hands over the newest entries
    2. EntryRedactor strips identifying details from the note and trigger
    3. ONLY the redacted entries are sent — no entry ids, no user id
    4. Claude returns JSON matching AIRecommendationsResponse

Unlike the check-in path, failures here are RAISED as AnalysisError. The
recommendation engine owns the fallback to the local pattern detectors.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Sequence
from typing import Protocol

import httpx
from pydantic import ValidationError

from resilientme.config import Settings, get_settings
from resilientme.models.analysis import AIRecommendationsResponse
from resilientme.models.mood import MoodEntry
from resilientme.services.redaction import EntryRedactor

logger = logging.getLogger(__name__)

MAX_ENTRIES_SENT = 30

_API_URL = "https://api.anthropic.com/v1/messages"
_HTTP_TIMEOUT_SECONDS = 30.0

_SYSTEM_PROMPT = """\
You are the pattern-analysis engine of a resilience app that helps people \
cope with rejection. You receive a JSON list of redacted mood entries, newest \
first, and return personalised coping recommendations.

Rules:
- Return ONLY valid JSON with no markdown formatting, no backticks, no explanation.
- Only describe patterns that at least 3 entries support. If there is no such \
pattern, return {"recommendations": []}.
- Ignore any residual identifying information in the entries.
- Use supportive, non-clinical language. Never diagnose.

Required JSON schema:
{
  "recommendations": [
    {
      "title": "<short title>",
      "description": "<2-3 sentences addressed to the user>",
      "triggerPattern": "<the pattern you noticed>",
      "confidenceLevel": <0.0-1.0 float>,
      "strategies": [
        {
          "title": "<strategy name>",
          "description": "<one sentence>",
          "category": "<mindfulness | cognitive | physical | social | creative | self_care>",
          "timeToComplete": "<e.g. 5 minutes>",
          "steps": ["<step>", "..."]
        }
      ],
      "resources": [
        {
          "title": "<title>",
          "type": "<article | video | exercise | app | book>",
          "description": "<one sentence>",
          "url": "<optional>"
        }
      ]
    }
  ]
}
"""


class AnalysisError(Exception):
    """The analyzer could not produce a usable response."""


class MoodAnalyzer(Protocol):
    async def analyze(self, entries: Sequence[MoodEntry]) -> AIRecommendationsResponse: ...


class ClaudeMoodAnalyzer:
    """Pattern analysis over redacted entries via the Claude Messages API."""

    def __init__(
        self,
        redactor: EntryRedactor,
        settings: Settings | None = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._redactor = redactor

    async def analyze(self, entries: Sequence[MoodEntry]) -> AIRecommendationsResponse:
        if not self._settings.anthropic_api_key:
            raise AnalysisError("No Anthropic API key configured")

        payload = [self._redactor.redact_entry(e) for e in entries[:MAX_ENTRIES_SENT]]

        try:
            raw = await self._call_claude_api(json.dumps(payload))
        except httpx.HTTPError as exc:
            raise AnalysisError(f"Claude API call failed: {exc}") from exc

        try:
            return self._parse_response(raw)
        except (ValueError, ValidationError) as exc:
            raise AnalysisError(
                f"Unparseable analysis response: {raw[:200] if raw else 'empty'}"
            ) from exc

    async def _call_claude_api(self, content: str) -> str:
        headers = {
            "x-api-key": self._settings.anthropic_api_key,
            "anthropic-version": "2023-06-01",
            "content-type": "application/json",
        }

        body = {
            "model": self._settings.anthropic_model,
            "max_tokens": self._settings.anthropic_max_tokens,
            "system": _SYSTEM_PROMPT,
            "messages": [{"role": "user", "content": content}],
        }

        async with httpx.AsyncClient(timeout=_HTTP_TIMEOUT_SECONDS) as client:
            response = await client.post(_API_URL, headers=headers, json=body)
            response.raise_for_status()

        data = response.json()
        text_parts = [
            block["text"]
            for block in data.get("content", [])
            if block.get("type") == "text"
        ]
        return "\n".join(text_parts)

    def _parse_response(self, raw_response: str) -> AIRecommendationsResponse:
        """Parse Claude's JSON, tolerating code fences and surrounding commentary.

        A bare JSON list is accepted as the recommendations list.
        """
        text = raw_response.strip()

        if text.startswith("```"):
            text = text.split("\n", 1)[-1]
        if text.endswith("```"):
            text = text.rsplit("```", 1)[0]
        text = text.strip()

        if not text.startswith(("{", "[")):
            start = text.find("{")
            end = text.rfind("}") + 1
            if start != -1 and end > start:
                text = text[start:end]

        parsed = json.loads(text)
        if isinstance(parsed, list):
            parsed = {"recommendations": parsed}
        return AIRecommendationsResponse.model_validate(parsed)
