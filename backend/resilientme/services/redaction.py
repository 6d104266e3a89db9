"""
Entry Redaction
===============
Strips identifying details from mood entries BEFORE they are sent to the
Claude API for pattern analysis.

Only the free-text fields carry risk: the note and the rejection trigger
("Sarah didn't invite me to her party at 12 Elm St"). Mood, intensity and
timestamps are sent as-is — the analysis needs them.

Pipeline:
    Raw text → Regex (emails, social handles, URLs, phones, numeric dates)
              → spaCy NER (names, orgs, locations)
              → Redacted text

Regex runs first so NER never mis-tags an email or phone number.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Any, ClassVar

import spacy
from spacy.language import Language

from resilientme.models.mood import MoodEntry

logger = logging.getLogger(__name__)


@dataclass
class RedactionResult:
    """Redacted text plus counts of what was replaced (never the values)."""

    text: str
    replacements: dict[str, int] = field(default_factory=dict)

    @property
    def total_replacements(self) -> int:
        return sum(self.replacements.values())


# ---------------------------------------------------------------------------
# Regex patterns
# ---------------------------------------------------------------------------

_PATTERNS: list[tuple[str, re.Pattern[str], str]] = [
    (
        "EMAIL",
        re.compile(r"\b[A-Za-z0-9._%+\-]+@[A-Za-z0-9.\-]+\.[A-Za-z]{2,}\b"),
        "[EMAIL]",
    ),
    # After EMAIL, so "@example" inside an address is already gone.
    (
        "HANDLE",
        re.compile(r"(?<![\w@])@[A-Za-z0-9_]{2,30}\b"),
        "[HANDLE]",
    ),
    (
        "URL",
        re.compile(
            r"https?://[^\s,;\"'<>)}\]]{3,}"
            r"|www\.[^\s,;\"'<>)}\]]{3,}"
        ),
        "[URL]",
    ),
    # Before PHONE: "03/15/2024" would otherwise be read as digits.
    (
        "DATE_NUMERIC",
        re.compile(r"\b\d{1,2}[/\-\.]\d{1,2}[/\-\.]\d{2,4}\b"),
        "[DATE]",
    ),
    (
        "PHONE",
        re.compile(
            r"(?<!\d)"
            r"(?:"
            r"\+?\d{1,3}[\s\-]?\(?\d{3}\)?[\s\-]?\d{3}[\s\-]?\d{4}"
            r"|\(?\d{3}\)?[\s\-]?\d{3}[\s\-]?\d{4}"
            r"|0[1-9][\d\s\-]{8,12}"
            r")"
            r"(?!\d)"
        ),
        "[PHONE]",
    ),
]


# ---------------------------------------------------------------------------
# Redactor
# ---------------------------------------------------------------------------

class EntryRedactor:
    """Instantiate once at startup — the spaCy model is loaded in __init__."""

    _NER_LABEL_MAP: ClassVar[dict[str, str]] = {
        "PERSON": "[NAME]",
        "ORG": "[ORG]",
        "GPE": "[LOCATION]",
        "LOC": "[LOCATION]",
        "FAC": "[LOCATION]",
    }

    def __init__(self, spacy_model: str = "en_core_web_sm") -> None:
        self._nlp: Language | None = None

        try:
            self._nlp = spacy.load(spacy_model, disable=["parser", "lemmatizer"])
            logger.info("Redaction: spaCy model '%s' loaded", spacy_model)
        except OSError:
            logger.warning(
                "Redaction: spaCy model '%s' not found. Running in REGEX-ONLY "
                "mode; names and places will NOT be redacted. Install it with: "
                "python -m spacy download %s",
                spacy_model,
                spacy_model,
            )

    @property
    def ner_available(self) -> bool:
        return self._nlp is not None

    def redact(self, text: str | None) -> RedactionResult:
        if not text or not text.strip():
            return RedactionResult(text="")

        replacements: dict[str, int] = {}
        working = self._strip_regex_patterns(text, replacements)
        working = self._strip_ner_entities(working, replacements)
        working = re.sub(r"  +", " ", working).strip()

        if replacements:
            logger.debug("Redacted %d element(s): %s", sum(replacements.values()), replacements)

        return RedactionResult(text=working, replacements=replacements)

    def redact_entry(self, entry: MoodEntry) -> dict[str, Any]:
        """Prompt-ready view of an entry. The entry id is not included."""
        return {
            "timestamp": entry.timestamp.isoformat(),
            "mood": entry.mood.value,
            "intensity": entry.intensity,
            "note": self.redact(entry.note).text,
            "rejection_related": entry.rejection_related,
            "rejection_trigger": (
                self.redact(entry.rejection_trigger).text if entry.rejection_trigger else None
            ),
            "coping_strategy": entry.coping_strategy,
        }

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------

    def _strip_regex_patterns(self, text: str, replacements: dict[str, int]) -> str:
        for label, pattern, token in _PATTERNS:
            matches = pattern.findall(text)
            if matches:
                text = pattern.sub(token, text)
                replacements[label] = replacements.get(label, 0) + len(matches)
        return text

    def _strip_ner_entities(self, text: str, replacements: dict[str, int]) -> str:
        if self._nlp is None:
            return text

        doc = self._nlp(text)
        spans: list[tuple[int, int, str, str]] = []
        for ent in doc.ents:
            token = self._NER_LABEL_MAP.get(ent.label_)
            if token is None:
                continue
            # Inside a placeholder such as "[EMAIL]".
            if ent.start_char > 0 and text[ent.start_char - 1] == "[":
                continue
            spans.append((ent.start_char, ent.end_char, token, ent.label_))

        # Right-to-left keeps earlier offsets valid.
        spans.sort(key=lambda s: s[0], reverse=True)
        for start, end, token, label in spans:
            text = text[:start] + token + text[end:]
            replacements[label] = replacements.get(label, 0) + 1

        return text
