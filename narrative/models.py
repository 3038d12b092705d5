"""State shapes for phase progression.

ProgressionState is persisted by the host between turns and handed back
unchanged, so every ``from_dict`` here must accept partial or malformed
input and fill defaults field by field.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

# "revelation" is accepted on rehydration but no heuristic produces it yet.
DISCOVERY_TYPES = ("item", "creature", "location", "revelation")


def _as_int(value: Any, default: int) -> int:
    if isinstance(value, bool):
        return default
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return default
    return default


def _first(data: dict[str, Any], *keys: str) -> Any:
    for key in keys:
        if key in data and data[key] is not None:
            return data[key]
    return None


@dataclass(frozen=True)
class Discovery:
    type: str  # one of DISCOVERY_TYPES
    content: str
    phase: int

    @classmethod
    def from_dict(cls, data: Any) -> Discovery | None:
        if not isinstance(data, dict):
            return None
        kind = data.get("type")
        content = data.get("content")
        if kind not in DISCOVERY_TYPES or not isinstance(content, str):
            return None
        return cls(type=kind, content=content, phase=_as_int(data.get("phase"), 1))

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type, "content": self.content, "phase": self.phase}


@dataclass(frozen=True)
class JournalEntry:
    phase: int
    content: str

    @classmethod
    def from_dict(cls, data: Any) -> JournalEntry | None:
        if not isinstance(data, dict):
            return None
        content = data.get("content")
        if not isinstance(content, str):
            return None
        return cls(phase=_as_int(data.get("phase"), 1), content=content)

    def to_dict(self) -> dict[str, Any]:
        return {"phase": self.phase, "content": self.content}


@dataclass
class ProgressionState:
    """Per-turn story state. Only the state machine writes it."""

    current_phase: int = 1
    discoveries: list[Discovery] = field(default_factory=list)
    journal_entries: list[JournalEntry] = field(default_factory=list)
    turns_in_phase: int = 0  # protagonist turns since the phase began

    @classmethod
    def from_dict(cls, data: Any) -> ProgressionState:
        """Rehydrate a persisted state, tolerating legacy and broken shapes."""
        if not isinstance(data, dict):
            return cls()

        phase = _as_int(_first(data, "currentPhase", "current_phase"), 1)
        turns = _as_int(_first(data, "messagesInPhase", "turns_in_phase"), 0)

        raw_discoveries = _first(data, "discoveries")
        discoveries = []
        if isinstance(raw_discoveries, list):
            for raw in raw_discoveries:
                item = Discovery.from_dict(raw)
                if item is not None:
                    discoveries.append(item)

        raw_entries = _first(data, "journalEntries", "journal_entries")
        entries = []
        if isinstance(raw_entries, list):
            for raw in raw_entries:
                entry = JournalEntry.from_dict(raw)
                if entry is not None:
                    entries.append(entry)

        return cls(
            current_phase=max(1, phase),
            discoveries=discoveries,
            journal_entries=entries,
            turns_in_phase=max(0, turns),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "currentPhase": self.current_phase,
            "discoveries": [d.to_dict() for d in self.discoveries],
            "journalEntries": [e.to_dict() for e in self.journal_entries],
            "messagesInPhase": self.turns_in_phase,
        }

    def recent_discoveries(self, limit: int = 10) -> list[Discovery]:
        """Newest first."""
        if limit <= 0:
            return []
        return list(reversed(self.discoveries[-limit:]))


@dataclass(frozen=True)
class SessionState:
    """Chat-wide state; furthest_phase never goes down."""

    furthest_phase: int = 1

    @classmethod
    def from_dict(cls, data: Any) -> SessionState:
        if not isinstance(data, dict):
            return cls()
        furthest = _as_int(_first(data, "furthestPhase", "furthest_phase"), 1)
        return cls(furthest_phase=max(1, furthest))

    def to_dict(self) -> dict[str, Any]:
        return {"furthestPhase": self.furthest_phase}

    def record(self, phase: int) -> SessionState:
        if phase <= self.furthest_phase:
            return self
        return SessionState(furthest_phase=phase)
