"""Phase progression: applies one turn of text to the story state."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from .heuristics import extract_discoveries, signals_transition
from .journal import summarize_phase
from .models import JournalEntry, ProgressionState
from .pacing import PacingConfig
from .phases import DEFAULT_CATALOG, PhaseCatalog

logger = logging.getLogger(__name__)

DISCOVERY_CAP = 50


@dataclass
class TurnOutcome:
    """Result of one turn.

    status is "advanced" (phase moved on), "updated" (same phase, state
    changed or not) or "unchanged" (analysis failed; ``state`` is the
    prior state object and ``error`` says why).
    """

    state: ProgressionState
    status: str
    journal_delta: list[JournalEntry] = field(default_factory=list)
    directions_requested: bool = False
    error: str = ""

    @property
    def next_phase(self) -> int:
        return self.state.current_phase

    @property
    def advanced(self) -> bool:
        return self.status == "advanced"


class PhaseStateMachine:
    """Decides per turn whether the story moves to its next phase."""

    def __init__(
        self,
        catalog: PhaseCatalog | None = None,
        pacing: PacingConfig | None = None,
        discovery_cap: int = DISCOVERY_CAP,
    ):
        self.catalog = catalog or DEFAULT_CATALOG
        self.pacing = pacing or PacingConfig()
        self.discovery_cap = discovery_cap

    def normalize(self, state: ProgressionState) -> ProgressionState:
        """Clamp a rehydrated phase number into the catalog range."""
        phase = self.catalog.clamp(state.current_phase)
        if phase == state.current_phase:
            return state
        logger.warning("Phase %d out of range, clamped to %d", state.current_phase, phase)
        return ProgressionState(
            current_phase=phase,
            discoveries=list(state.discoveries),
            journal_entries=list(state.journal_entries),
            turns_in_phase=state.turns_in_phase,
        )

    def apply_turn(self, state: ProgressionState, text: str, is_protagonist: bool) -> TurnOutcome:
        """Apply one turn. Never raises; the input state is never mutated."""
        try:
            return self._apply(state, text, is_protagonist)
        except Exception as e:
            logger.warning("Turn analysis failed, keeping previous state: %s", e, exc_info=True)
            return TurnOutcome(
                state=state,
                status="unchanged",
                directions_requested=is_protagonist,
                error=str(e) or e.__class__.__name__,
            )

    def _apply(self, state: ProgressionState, text: str, is_protagonist: bool) -> TurnOutcome:
        phase = state.current_phase

        discoveries = list(state.discoveries)
        if len(discoveries) < self.discovery_cap:
            discoveries.extend(extract_discoveries(text, phase))

        counter = state.turns_in_phase + 1 if is_protagonist else state.turns_in_phase

        journal = list(state.journal_entries)
        delta: list[JournalEntry] = []
        status = "updated"

        if (
            not self.catalog.is_terminal(phase)
            and self.pacing.is_eligible(counter)
            and signals_transition(text, self.catalog.definition_at(phase))
        ):
            entry = JournalEntry(
                phase=phase,
                content=summarize_phase(self.catalog.definition_at(phase), discoveries),
            )
            journal.append(entry)
            delta.append(entry)
            logger.info("Phase transition %d -> %d after %d turns", phase, phase + 1, counter)
            phase += 1
            counter = 0
            status = "advanced"

        new_state = ProgressionState(
            current_phase=phase,
            discoveries=discoveries,
            journal_entries=journal,
            turns_in_phase=counter,
        )
        return TurnOutcome(
            state=new_state,
            status=status,
            journal_delta=delta,
            directions_requested=is_protagonist,
        )
