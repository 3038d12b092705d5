"""Narrative system: phase catalog, pacing, heuristics and progression."""

from .directions import DirectionSynthesizer
from .heuristics import extract_discoveries, signals_transition
from .journal import summarize_phase
from .models import Discovery, JournalEntry, ProgressionState, SessionState
from .pacing import PacingConfig, PacingStage
from .phases import DEFAULT_CATALOG, CatalogError, PhaseCatalog, PhaseDefinition, load_catalog
from .progression import DISCOVERY_CAP, PhaseStateMachine, TurnOutcome

__all__ = [
    "DEFAULT_CATALOG",
    "DISCOVERY_CAP",
    "CatalogError",
    "DirectionSynthesizer",
    "Discovery",
    "JournalEntry",
    "PacingConfig",
    "PacingStage",
    "PhaseCatalog",
    "PhaseDefinition",
    "PhaseStateMachine",
    "ProgressionState",
    "SessionState",
    "TurnOutcome",
    "extract_discoveries",
    "load_catalog",
    "signals_transition",
    "summarize_phase",
]
