"""Keyword heuristics over a single turn of story text.

Nothing here understands language. Each discovery family checks a few cheap
trigger words first and only then runs its regex, so a family whose trigger
words are absent never matches even if its pattern would.
"""

from __future__ import annotations

import logging
import re

from .models import Discovery
from .phases import PhaseDefinition

logger = logging.getLogger(__name__)

_PHRASE = r"(?:a|an|the)\s+([a-zA-Z\s]{5,35})"

# (type, trigger words, capture pattern)
_DISCOVERY_RULES = (
    (
        "item",
        ("found", "discovered", "took"),
        re.compile(r"(?:found|discovered|took|grabbed|obtained)\s+" + _PHRASE, re.IGNORECASE),
    ),
    (
        "creature",
        ("encountered", "fought", "faced"),
        re.compile(r"(?:encountered|fought|faced|saw)\s+" + _PHRASE, re.IGNORECASE),
    ),
    (
        "location",
        ("entered", "reached"),
        re.compile(r"(?:entered|reached|arrived at)\s+" + _PHRASE, re.IGNORECASE),
    ),
)


def extract_discoveries(text: str, phase: int) -> list[Discovery]:
    """Return at most one discovery per type found in ``text``."""
    low = text.lower()
    found: list[Discovery] = []

    for kind, triggers, pattern in _DISCOVERY_RULES:
        if not any(word in low for word in triggers):
            continue
        match = pattern.search(text)
        if match:
            content = match.group(1).strip()
            found.append(Discovery(type=kind, content=content, phase=phase))

    if found:
        logger.debug("Phase %d discoveries: %s", phase, ", ".join(f"{d.type}={d.content!r}" for d in found))
    return found


def signals_transition(text: str, phase: PhaseDefinition | None) -> bool:
    """True when the text contains one of the phase's transition phrases.

    Plain case-insensitive substring containment; a phase without phrases
    (the terminal one) never signals.
    """
    if phase is None or not phase.keywords:
        return False
    low = text.lower()
    return any(keyword.lower() in low for keyword in phase.keywords)
