"""Stage direction text injected ahead of the narrator's next reply."""

from __future__ import annotations

import logging

from .pacing import PacingConfig
from .phases import CHAR_PLACEHOLDER, USER_PLACEHOLDER, PhaseCatalog

logger = logging.getLogger(__name__)

DEFAULT_CHARACTER_NAME = "Character"
DEFAULT_USER_NAME = "User"


class DirectionSynthesizer:
    """Render phase directions for one session's pair of participants.

    Results are cached per (phase, pacing stage): the pacing directive
    changes with the counter, so a phase-only key would go stale.
    """

    def __init__(
        self,
        catalog: PhaseCatalog,
        pacing: PacingConfig,
        character_name: str = "",
        user_name: str = "",
    ):
        self._catalog = catalog
        self._pacing = pacing
        self.character_name = character_name or DEFAULT_CHARACTER_NAME
        self.user_name = user_name or DEFAULT_USER_NAME
        self._cache: dict[tuple[int, str], str] = {}

    def directions_for(self, phase_number: int, counter: int) -> str:
        phase = self._catalog.definition_at(phase_number)
        if phase is None:
            return ""

        stage = self._pacing.stage_for(counter)
        key = (phase_number, stage.name)
        cached = self._cache.get(key)
        if cached is not None:
            logger.debug("Directions cache hit for phase %d (%s)", phase_number, stage.name)
            return cached

        text = phase.stage_directions.replace(CHAR_PLACEHOLDER, self.character_name).replace(
            USER_PLACEHOLDER, self.user_name
        )
        result = f"[Stage Direction: {text}\nPACING: {stage.directive}]"
        self._cache[key] = result
        logger.debug("Directions rendered for phase %d (%s)", phase_number, stage.name)
        return result
