"""Pattern-driven detection of queries that need wider document context.

The detector table maps each :class:`ScanCategory` to an ordered tuple of
compiled patterns. Adding a category or a pattern only touches the table.
"""

from __future__ import annotations

import logging
import re
from typing import Iterable, Mapping, Sequence

from .models import ScanCategory, ScanTrigger

LOGGER = logging.getLogger(__name__)

CONFIDENCE_PER_MATCH = 0.2
EXPANSION_CONFIDENCE_THRESHOLD = 0.6

ACTION_VERBS: tuple[str, ...] = ("said", "replied", "thought", "walked", "ran", "smiled", "decided", "remembered")

TRIGGER_PATTERNS: Mapping[ScanCategory, tuple[re.Pattern[str], ...]] = {
    ScanCategory.CHARACTER_REFERENCE: (
        re.compile(r"\b(he|she|they|him|her|them)\s+(said|replied|thought|remembered|decided)", re.IGNORECASE),
        re.compile(r"\b(character|protagonist|antagonist|narrator)", re.IGNORECASE),
        re.compile(r"\b[A-Z][a-z]+\s+(said|replied|thought|walked|ran|smiled)", re.IGNORECASE),
    ),
    ScanCategory.PLOT_CONSISTENCY: (
        re.compile(r"\b(earlier|previously|before|after|later|meanwhile|subsequently)", re.IGNORECASE),
        re.compile(r"\b(chapter|section|part)\s+\d+", re.IGNORECASE),
        re.compile(r"\b(flashback|foreshadowing|callback|reference)", re.IGNORECASE),
        re.compile(r"\b(timeline|chronology|sequence|order)", re.IGNORECASE),
    ),
    ScanCategory.TERMINOLOGY: (
        re.compile(r"\b(define|definition|term|concept|explain|meaning)", re.IGNORECASE),
        re.compile(r"\b(technical|jargon|terminology|vocabulary)", re.IGNORECASE),
        re.compile(r"\b(acronym|abbreviation|initialism)", re.IGNORECASE),
    ),
    ScanCategory.CROSS_REFERENCE: (
        re.compile(r"\b(see|refer to|as mentioned|as discussed|as shown)", re.IGNORECASE),
        re.compile(r"\b(above|below|previous|following|next)", re.IGNORECASE),
        re.compile(r"\b(figure|table|chart|diagram|appendix)", re.IGNORECASE),
        re.compile(r"\b(page|section|chapter)\s*\d+", re.IGNORECASE),
    ),
    ScanCategory.STYLE_CONSISTENCY: (
        re.compile(r"\b(tone|style|voice|perspective|tense)", re.IGNORECASE),
        re.compile(r"\b(formal|informal|academic|casual|professional)", re.IGNORECASE),
        re.compile(r"\b(first person|second person|third person)", re.IGNORECASE),
    ),
}

SUGGESTED_SECTIONS: Mapping[ScanCategory, tuple[str, ...]] = {
    ScanCategory.CHARACTER_REFERENCE: ("Character Introductions", "Previous Chapters", "Character Development"),
    ScanCategory.PLOT_CONSISTENCY: ("Timeline", "Previous Events", "Plot Outline"),
    ScanCategory.TERMINOLOGY: ("Glossary", "Definitions", "Technical Sections"),
}
DEFAULT_SUGGESTED_SECTIONS: tuple[str, ...] = ("Related Sections",)

CROSS_DOCUMENT_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"\b(consistency|inconsistent|contradicts?|conflicts?)", re.IGNORECASE),
    re.compile(r"\b(throughout|across|entire|whole|all)", re.IGNORECASE),
    re.compile(r"\b(other|previous|earlier|later|different)\s+(chapter|section|part)", re.IGNORECASE),
    re.compile(r"\b(character|plot|story|narrative)\s+(development|arc|consistency)", re.IGNORECASE),
    re.compile(r"\b(check|verify|ensure|confirm|validate)", re.IGNORECASE),
)

# Case-sensitive: names are recovered from the original-case text.
_CANDIDATE_NAME_RE = re.compile(r"\b([A-Z][a-z]+)\s+(?:" + "|".join(ACTION_VERBS) + r")\b")
_NOT_NAMES = frozenset(
    {"He", "She", "They", "It", "We", "You", "Him", "Her", "Them", "The", "Then", "And", "But", "This", "That"}
)


def suggested_sections_for(category: ScanCategory) -> tuple[str, ...]:
    return SUGGESTED_SECTIONS.get(category, DEFAULT_SUGGESTED_SECTIONS)


def extract_candidate_names(text: str) -> tuple[str, ...]:
    """Capitalised tokens that directly precede an action verb, deduplicated."""

    names: list[str] = []
    for match in _CANDIDATE_NAME_RE.finditer(text or ""):
        name = match.group(1)
        if name in _NOT_NAMES or name in names:
            continue
        names.append(name)
    return tuple(names)


def detect_scan_triggers(query: str, current_content: str = "") -> list[ScanTrigger]:
    """Return one trigger per category whose patterns match ``query`` + ``current_content``.

    Confidence grows by 0.2 per raw match and saturates at 1.0; matched
    keywords are deduplicated in first-seen order.
    """
    original = f"{query or ''} {current_content or ''}"
    combined = original.lower()
    triggers: list[ScanTrigger] = []
    for category, patterns in TRIGGER_PATTERNS.items():
        total = 0
        keywords: dict[str, None] = {}
        for pattern in patterns:
            for match in pattern.finditer(combined):
                total += 1
                keywords.setdefault(match.group(0), None)
        if not total:
            continue
        names = extract_candidate_names(original) if category is ScanCategory.CHARACTER_REFERENCE else ()
        triggers.append(
            ScanTrigger(
                category=category,
                confidence=min(total * CONFIDENCE_PER_MATCH, 1.0),
                matched_keywords=tuple(keywords),
                suggested_sections=suggested_sections_for(category),
                candidate_names=names,
            )
        )
    if triggers:
        LOGGER.debug(
            "Scan triggers: %s",
            ", ".join(f"{trigger.category.value}={trigger.confidence:.1f}" for trigger in triggers),
        )
    return triggers


def has_cross_document_intent(query: str) -> bool:
    return any(pattern.search(query or "") for pattern in CROSS_DOCUMENT_PATTERNS)


def should_expand_scan(triggers: Sequence[ScanTrigger], query: str) -> bool:
    """Expand when any trigger is confident (> 0.6) or the query asks about the whole document."""

    if any(trigger.confidence > EXPANSION_CONFIDENCE_THRESHOLD for trigger in triggers):
        return True
    return has_cross_document_intent(query)


def triggers_for(triggers: Iterable[ScanTrigger], category: ScanCategory) -> list[ScanTrigger]:
    return [trigger for trigger in triggers if trigger.category is category]


__all__ = [
    "ACTION_VERBS",
    "CROSS_DOCUMENT_PATTERNS",
    "TRIGGER_PATTERNS",
    "detect_scan_triggers",
    "extract_candidate_names",
    "has_cross_document_intent",
    "should_expand_scan",
    "suggested_sections_for",
    "triggers_for",
]
