"""Journal lines for completed phases."""

from __future__ import annotations

from collections.abc import Iterable

from .models import Discovery
from .phases import PhaseDefinition

# Order in which discovery types appear in a journal line.
_CLAUSES = (
    ("location", "explored"),
    ("creature", "encountered"),
    ("item", "found"),
)


def summarize_phase(phase: PhaseDefinition, discoveries: Iterable[Discovery]) -> str:
    """Condense a phase's discoveries into one line.

    ``phase`` must be the catalog's definition for the phase being exited;
    ``discoveries`` may be the whole log, it is filtered by ``phase.id``.
    Only the first discovery of each type is mentioned. A phase with no
    discoveries falls back to its description.
    """
    first_by_type: dict[str, str] = {}
    for discovery in discoveries:
        if discovery.phase != phase.id:
            continue
        first_by_type.setdefault(discovery.type, discovery.content)

    parts = [f"{verb} {first_by_type[kind]}" for kind, verb in _CLAUSES if kind in first_by_type]
    return f"{phase.name}: {', '.join(parts) or phase.description}"
