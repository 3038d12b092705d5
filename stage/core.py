"""Host adapter - the stage that sits between the chat and the narrator.

Each turn: ingest text -> apply progression -> hand back directions and
state for the host to persist verbatim.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from narrative import (
    DISCOVERY_CAP,
    DirectionSynthesizer,
    PacingConfig,
    PhaseCatalog,
    PhaseStateMachine,
    ProgressionState,
    SessionState,
    load_catalog,
)

logger = logging.getLogger(__name__)


@dataclass
class StageResponse:
    """What the host receives after each turn."""

    stage_directions: str | None
    message_state: dict[str, Any]
    chat_state: dict[str, Any]
    error: str | None = None
    status: str = "updated"  # "advanced" | "updated" | "unchanged"


@dataclass
class LoadResult:
    init_state: dict[str, Any] = field(default_factory=dict)
    chat_state: dict[str, Any] = field(default_factory=dict)
    message_state: dict[str, Any] = field(default_factory=dict)
    success: bool = True


def first_name(records: Mapping[str, Any] | None) -> str:
    """Name of the first participant record, or "" when there is none."""
    if not records:
        return ""
    record = next(iter(records.values()))
    if isinstance(record, Mapping):
        name = record.get("name")
    else:
        name = getattr(record, "name", None)
    return name.strip() if isinstance(name, str) else ""


def machine_from_config(cfg: dict | None) -> PhaseStateMachine:
    """Build the state machine from the ``narrative`` settings block."""
    cfg = cfg or {}
    narrative_cfg = cfg.get("narrative", {}) or {}

    catalog: PhaseCatalog | None = None
    catalog_file = narrative_cfg.get("catalog_file")
    if catalog_file:
        path = Path(catalog_file)
        if not path.is_absolute():
            path = Path(cfg.get("_config_dir", ".")) / path
        catalog = load_catalog(path)

    return PhaseStateMachine(
        catalog=catalog,
        pacing=PacingConfig.from_config(narrative_cfg.get("pacing")),
        discovery_cap=int(narrative_cfg.get("discovery_cap", DISCOVERY_CAP)),
    )


class PhaseStage:
    """One chat session's view of the story."""

    def __init__(
        self,
        characters: Mapping[str, Any] | None = None,
        users: Mapping[str, Any] | None = None,
        message_state: Any = None,
        chat_state: Any = None,
        machine: PhaseStateMachine | None = None,
    ):
        self._machine = machine or PhaseStateMachine()
        self._directions = DirectionSynthesizer(
            self._machine.catalog,
            self._machine.pacing,
            character_name=first_name(characters),
            user_name=first_name(users),
        )
        self._state = self._machine.normalize(ProgressionState.from_dict(message_state))
        self._session = SessionState.from_dict(chat_state)

    @classmethod
    def from_config(
        cls,
        cfg: dict,
        message_state: Any = None,
        chat_state: Any = None,
    ) -> PhaseStage:
        stage_cfg = cfg.get("stage", {}) or {}
        env = cfg.get("_env", {}) or {}
        character = env.get("character_name") or stage_cfg.get("character_name") or ""
        user = env.get("user_name") or stage_cfg.get("user_name") or ""
        return cls(
            characters={"char": {"name": character}},
            users={"user": {"name": user}},
            message_state=message_state,
            chat_state=chat_state,
            machine=machine_from_config(cfg),
        )

    @property
    def state(self) -> ProgressionState:
        return self._state

    @property
    def session(self) -> SessionState:
        return self._session

    @property
    def catalog(self) -> PhaseCatalog:
        return self._machine.catalog

    @property
    def character_name(self) -> str:
        return self._directions.character_name

    @property
    def user_name(self) -> str:
        return self._directions.user_name

    def load(self) -> LoadResult:
        return LoadResult(
            init_state={"startTimestamp": int(time.time() * 1000)},
            chat_state=SessionState().to_dict(),
            message_state=ProgressionState().to_dict(),
        )

    def set_state(self, message_state: Any) -> None:
        if message_state is None:
            return
        self._state = self._machine.normalize(ProgressionState.from_dict(message_state))
        logger.debug(
            "Rehydrated state: phase=%d turns=%d", self._state.current_phase, self._state.turns_in_phase
        )

    def before_prompt(self, content: str) -> StageResponse:
        """Protagonist turn; returns directions for the narrator's reply."""
        return self._process(content, is_protagonist=True)

    def after_response(self, content: str) -> StageResponse:
        """Narrator turn; never carries directions."""
        return self._process(content, is_protagonist=False)

    def _process(self, content: str, is_protagonist: bool) -> StageResponse:
        outcome = self._machine.apply_turn(self._state, content, is_protagonist)
        self._state = outcome.state
        self._session = self._session.record(outcome.next_phase)

        directions = None
        if outcome.directions_requested:
            directions = self._directions.directions_for(
                outcome.next_phase, outcome.state.turns_in_phase
            )

        return StageResponse(
            stage_directions=directions,
            message_state=self._state.to_dict(),
            chat_state=self._session.to_dict(),
            error=outcome.error or None,
            status=outcome.status,
        )
