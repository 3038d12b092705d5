"""Phase catalog: the ordered, read-only table of story phases."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable

import yaml

logger = logging.getLogger(__name__)

CHAR_PLACEHOLDER = "{{char}}"
USER_PLACEHOLDER = "{{user}}"


class CatalogError(ValueError):
    """Raised when a phase table breaks the catalog invariants."""


@dataclass(frozen=True)
class PhaseDefinition:
    id: int
    name: str
    description: str
    objectives: tuple[str, ...] = field(default_factory=tuple)
    keywords: tuple[str, ...] = field(default_factory=tuple)  # transition phrases
    stage_directions: str = ""  # template with {{char}} / {{user}}

    @property
    def is_terminal(self) -> bool:
        return not self.keywords

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> PhaseDefinition:
        try:
            phase_id = int(data["id"])
        except (KeyError, TypeError, ValueError) as e:
            raise CatalogError(f"Phase entry has no usable id: {data!r}") from e
        return cls(
            id=phase_id,
            name=str(data.get("name", "")),
            description=str(data.get("description", "")),
            objectives=tuple(str(o) for o in data.get("objectives") or ()),
            keywords=tuple(str(k) for k in data.get("keywords") or ()),
            stage_directions=str(data.get("stage_directions", data.get("stageDirections", ""))),
        )


class PhaseCatalog:
    """Indexed by 1-based phase number.

    Phase ids must run 1..N without gaps, and only the last phase may have
    an empty transition-phrase list.
    """

    def __init__(self, phases: Iterable[PhaseDefinition]):
        self._phases = tuple(phases)
        self._validate()

    def _validate(self) -> None:
        if not self._phases:
            raise CatalogError("Catalog must contain at least one phase")
        for index, phase in enumerate(self._phases, start=1):
            if phase.id != index:
                raise CatalogError(f"Phase ids must be contiguous from 1; got {phase.id} at position {index}")
        terminal = [p.id for p in self._phases if p.is_terminal]
        if terminal != [len(self._phases)]:
            raise CatalogError(
                f"Exactly the last phase must have no transition phrases; terminal phases: {terminal}"
            )

    def __len__(self) -> int:
        return len(self._phases)

    def __iter__(self):
        return iter(self._phases)

    def definition_at(self, phase_number: int) -> PhaseDefinition | None:
        if 1 <= phase_number <= len(self._phases):
            return self._phases[phase_number - 1]
        return None

    def is_terminal(self, phase_number: int) -> bool:
        return phase_number >= len(self._phases)

    def clamp(self, phase_number: int) -> int:
        return min(max(1, phase_number), len(self._phases))


def load_catalog(path: str | Path) -> PhaseCatalog:
    """Load a catalog from a YAML list of phase mappings."""
    path = Path(path)
    with open(path, encoding="utf-8") as f:
        raw = yaml.safe_load(f)

    if isinstance(raw, dict):
        raw = raw.get("phases")
    if not isinstance(raw, list):
        raise CatalogError(f"{path} does not contain a list of phases")

    catalog = PhaseCatalog(PhaseDefinition.from_dict(entry) for entry in raw if isinstance(entry, dict))
    logger.debug("Loaded %d phases from %s", len(catalog), path)
    return catalog


DEFAULT_PHASES = (
    PhaseDefinition(
        id=1,
        name="Phase 1: Planning",
        description="Meeting at the inn to discuss the mission",
        objectives=("Meet at the inn", "Discuss the mission", "Plan the route", "Rest for the night"),
        keywords=("first light", "dawn", "morning", "good night", "rest for"),
        stage_directions=(
            "{{char}} is meeting {{user}} at an inn on the edge of {{char}}'s territory. They need to "
            "discuss a mission to retrieve a powerful magical artifact from an ancient temple in a "
            "neighboring court. {{char}} should guide the conversation toward planning their travel "
            "route (air, forest, or road) and the complications posed by rivals who may also be seeking "
            "the artifact. The phase ends with {{char}} suggesting they rest for the night and leave at "
            "first light. {{char}} does not yet know what they will find at the temple."
        ),
    ),
    PhaseDefinition(
        id=2,
        name="Phase 2: Travel to Temple",
        description="Journey from the inn to the temple",
        objectives=("Leave at dawn", "Choose travel route", "Overcome obstacles", "Arrive at temple"),
        keywords=("temple", "arrived", "reach", "entrance", "gates"),
        stage_directions=(
            "{{char}} and {{user}} are traveling to the ancient temple. They left at dawn and face "
            "challenges that depend on their route: by air they risk being spotted and attacked from "
            "below, through the forest they must watch for beasts, and by road the journey is longer "
            "and rivals may intercept them. {{char}} should introduce obstacles that must be overcome "
            "and guide the story toward their arrival at the temple. {{char}} still does not know what "
            "awaits inside."
        ),
    ),
    PhaseDefinition(
        id=3,
        name="Phase 3: Exploring the Temple",
        description="Searching the temple's main floor",
        objectives=("Enter temple", "Explore atrium", "Investigate chambers", "Find hidden staircase"),
        keywords=("hidden", "staircase", "stairs", "descend", "below", "beneath", "underground"),
        stage_directions=(
            "{{char}} and {{user}} are exploring a vast, labyrinthine temple with mysterious murals on "
            "the walls. A central atrium leads to about a dozen chambers on the main floor. None of them "
            "holds the artifact, though they may find other magical items or meet creatures living in the "
            "temple. {{char}} should describe the eerie atmosphere and lead the exploration. The phase "
            "advances when they discover a hidden staircase leading down beneath the atrium."
        ),
    ),
    PhaseDefinition(
        id=4,
        name="Phase 4: The Hidden Chamber",
        description="Descending into the depths of the temple",
        objectives=("Descend staircase", "Enter cavern", "Study prophecy", "Approach artifact"),
        keywords=("artifact", "daggers", "pedestal", "approach"),
        stage_directions=(
            "{{char}} and {{user}} descend a long, damp spiral staircase into a vast underground cavern "
            "lit by glowing stained glass, murals and ancient statues. The images tell a prophecy: two "
            "figures who resemble {{char}} and {{user}} find an artifact, fall in love and stand together "
            "against a terrible threat. {{char}} should react with shock, confusion or disbelief. The "
            "phase advances when they approach what appears to be the artifact on a pedestal at the "
            "center of the chamber."
        ),
    ),
    PhaseDefinition(
        id=5,
        name="Phase 5: The Artifact",
        description="Discovering the twin daggers",
        objectives=("Examine daggers", "Sense their power", "Take the daggers"),
        keywords=("take", "took", "grab", "claim", "both"),
        stage_directions=(
            "{{char}} and {{user}} reach the pedestal and find not one artifact but a pair of daggers. "
            "One blade seems forged from starlight and whispers to {{user}}; the other is obsidian so "
            "dark it swallows light, and it calls to {{char}}. Both feel almost alive. {{char}} should "
            "show hesitation, awe or fear at their power, and guide toward {{char}} and {{user}} each "
            "claiming a dagger."
        ),
    ),
    PhaseDefinition(
        id=6,
        name="Phase 6: The Escape",
        description="Fleeing the collapsing temple",
        objectives=("Escape collapsing temple", "Avoid hazards", "Return to Velaris"),
        keywords=("velaris", "returned", "safe", "escaped", "made it"),
        stage_directions=(
            "The moment the daggers leave the pedestal, ancient mechanisms trigger and the temple begins "
            "to collapse. {{char}} and {{user}} flee through crumbling passages while stone falls, water "
            "floods in through cracks and the ground shakes. Creatures of the temple may be fleeing too. "
            "{{char}} should keep the sense of urgency high and guide the story toward escaping the "
            "temple and returning to Velaris, {{char}}'s home territory."
        ),
    ),
    PhaseDefinition(
        id=7,
        name="Phase 7: Accepting Their Fates",
        description="Facing the prophecy's implications",
        objectives=("Discuss prophecy", "Acknowledge threats", "Decide to train together"),
        keywords=("learn", "train", "master", "together", "practice"),
        stage_directions=(
            "{{char}} and {{user}} are back in Velaris with the twin daggers and must face what the "
            "prophecy means. Other court rulers will come for the daggers, to take them or to eliminate "
            "the threat. {{char}} should discuss the weight of this responsibility, their feelings about "
            "the prophecy (especially the part about falling in love) and the threats ahead, guiding "
            "toward {{char}} and {{user}} deciding to learn to wield the daggers together."
        ),
    ),
    PhaseDefinition(
        id=8,
        name="Phase 8: Moving Forward Together",
        description="Preparing for the coming storm",
        objectives=("Research daggers", "Train together", "Prepare for Hybern"),
        keywords=(),
        stage_directions=(
            "{{char}} and {{user}} have committed to mastering the daggers together. They research the "
            "weapons' origins and legends, train side by side and prepare for the threats to come, while "
            "across the sea Hybern will eventually learn what they found. {{char}} should describe "
            "training sessions, discoveries about the daggers and the growing bond between them. This is "
            "an ongoing phase."
        ),
    ),
)

DEFAULT_CATALOG = PhaseCatalog(DEFAULT_PHASES)
