"""Pacing gate: maps the per-phase protagonist turn counter to guidance."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

STAGE_DIRECTIVES = {
    "early": (
        "This phase has just begun. Focus on a single topic or moment and let it develop slowly. "
        "Do not hurry toward the next part of the story."
    ),
    "building": (
        "The scene is still developing. Add detail and let the characters react, "
        "but do not begin wrapping this phase up."
    ),
    "mid": (
        "The scene has room to breathe. You may start steering gently toward its natural close, "
        "but do not force it."
    ),
    "ready": (
        "This phase has run a comfortable length. Steer toward its conclusion and use its "
        "closing beats when they fit."
    ),
    "extended": (
        "This phase has gone on long enough. Wrap it up now and move the story into its next part."
    ),
}


@dataclass(frozen=True)
class PacingStage:
    name: str
    directive: str


@dataclass(frozen=True)
class PacingConfig:
    """Turn thresholds for one phase. Counts are protagonist turns only."""

    early_limit: int = 3
    building_limit: int = 6
    comfortable_limit: int = 10
    max_messages: int = 20
    min_messages: int = 6  # no transition is evaluated below this

    def __post_init__(self) -> None:
        if not 0 < self.early_limit < self.building_limit < self.comfortable_limit < self.max_messages:
            raise ValueError(
                "Pacing limits must satisfy 0 < early < building < comfortable < max; got "
                f"{self.early_limit}, {self.building_limit}, {self.comfortable_limit}, {self.max_messages}"
            )
        if self.min_messages < 0:
            raise ValueError(f"min_messages must not be negative, got {self.min_messages}")

    @classmethod
    def from_config(cls, cfg: dict[str, Any] | None) -> PacingConfig:
        """Build from the ``narrative.pacing`` settings block."""
        raw = cfg or {}
        defaults = cls()
        return cls(
            early_limit=int(raw.get("early_limit", defaults.early_limit)),
            building_limit=int(raw.get("building_limit", defaults.building_limit)),
            comfortable_limit=int(raw.get("comfortable_limit", defaults.comfortable_limit)),
            max_messages=int(raw.get("max_messages", defaults.max_messages)),
            min_messages=int(raw.get("min_messages", defaults.min_messages)),
        )

    def stage_for(self, counter: int) -> PacingStage:
        if counter < self.early_limit:
            name = "early"
        elif counter < self.building_limit:
            name = "building"
        elif counter < self.comfortable_limit:
            name = "mid"
        elif counter < self.max_messages:
            name = "ready"
        else:
            # Past the ceiling only the directive changes; matching stays the same.
            name = "extended"
        return PacingStage(name=name, directive=STAGE_DIRECTIVES[name])

    def is_eligible(self, counter: int) -> bool:
        return counter >= self.min_messages
