"""Tests for phase progression rules."""

from narrative import (
    Discovery,
    PacingConfig,
    PhaseCatalog,
    PhaseDefinition,
    PhaseStateMachine,
    ProgressionState,
)

REST = "We should rest for the night"


def _two_phase_machine(min_messages: int = 6) -> PhaseStateMachine:
    catalog = PhaseCatalog(
        [
            PhaseDefinition(
                id=1,
                name="Phase 1: Planning",
                description="Meeting at the inn",
                keywords=("we should rest for the night",),
                stage_directions="{{char}} meets {{user}}.",
            ),
            PhaseDefinition(id=2, name="Phase 2: Road", description="On the road"),
        ]
    )
    return PhaseStateMachine(catalog=catalog, pacing=PacingConfig(min_messages=min_messages))


def _feed(machine, state, turns):
    phases = [state.current_phase]
    for is_protagonist, text in turns:
        state = machine.apply_turn(state, text, is_protagonist).state
        phases.append(state.current_phase)
    return state, phases


def test_transition_phrase_ignored_before_minimum_dwell():
    machine = _two_phase_machine()
    state = ProgressionState()
    for turn in range(1, 6):
        outcome = machine.apply_turn(state, REST, True)
        state = outcome.state
        assert state.current_phase == 1
        assert state.turns_in_phase == turn
        assert not outcome.advanced

    outcome = machine.apply_turn(state, REST, True)
    assert outcome.status == "advanced"
    assert outcome.next_phase == 2
    assert outcome.state.turns_in_phase == 0


def test_end_to_end_planning_phase_closes_on_sixth_turn():
    machine = _two_phase_machine()
    turns = [(True, "We look over the map together.")] * 5 + [(True, REST)]
    state, _ = _feed(machine, ProgressionState(), turns)

    assert state.current_phase == 2
    assert state.turns_in_phase == 0
    assert [e.phase for e in state.journal_entries] == [1]
    assert state.journal_entries[0].content == "Phase 1: Planning: Meeting at the inn"


def test_narrator_turns_do_not_count_toward_dwell():
    machine = _two_phase_machine()
    protagonist = [(True, "We look over the map together.")] * 5 + [(True, REST)]

    interleaved = []
    for turn in protagonist:
        interleaved.append(turn)
        interleaved.extend([(False, "The fire crackles in the hearth.")] * 3)

    plain_state, _ = _feed(machine, ProgressionState(), protagonist)
    mixed_state, mixed_phases = _feed(machine, ProgressionState(), interleaved)

    assert plain_state.current_phase == mixed_state.current_phase == 2
    # Advance happens on the sixth protagonist turn in both sequences
    assert mixed_phases.index(2) == 1 + 5 * 4


def test_narrator_turn_can_close_an_eligible_phase():
    machine = _two_phase_machine()
    state = ProgressionState(turns_in_phase=6)
    outcome = machine.apply_turn(state, "The innkeeper says we should rest for the night.", False)
    assert outcome.advanced
    assert outcome.directions_requested is False


def test_phase_never_moves_more_than_one_step_and_never_back():
    machine = PhaseStateMachine()
    text = "At dawn we reach the temple gates, find the hidden stairs and approach the daggers."
    state = ProgressionState()
    phases = [1]
    for _ in range(120):
        state = machine.apply_turn(state, text, True).state
        phases.append(state.current_phase)

    steps = [b - a for a, b in zip(phases, phases[1:])]
    assert all(step in (0, 1) for step in steps)
    assert max(phases) <= len(machine.catalog)


def test_terminal_phase_is_never_exited():
    machine = PhaseStateMachine()
    last = len(machine.catalog)
    state = ProgressionState(current_phase=last, turns_in_phase=50)
    outcome = machine.apply_turn(state, "We learn and train together at dawn.", True)
    assert outcome.state.current_phase == last
    assert outcome.journal_delta == []
    assert outcome.state.turns_in_phase == 51


def test_exactly_one_journal_entry_per_exited_phase():
    machine = _two_phase_machine(min_messages=0)
    state = ProgressionState()
    for _ in range(3):
        state = machine.apply_turn(state, "I found a rusted iron key and fought the cave troll.", True).state
    outcome = machine.apply_turn(state, REST, True)

    entries = outcome.state.journal_entries
    assert len(entries) == 1
    assert outcome.journal_delta == entries
    assert entries[0].content.startswith("Phase 1: Planning: encountered cave troll")


def test_discovery_log_stops_growing_at_cap():
    machine = PhaseStateMachine()
    full = [Discovery(type="item", content=f"thing number {i}", phase=1) for i in range(50)]
    state = ProgressionState(discoveries=full)

    outcome = machine.apply_turn(state, "I found a rusted iron key near the wall", True)
    assert len(outcome.state.discoveries) == 50
    assert outcome.state.discoveries == full


def test_discoveries_are_tagged_with_phase_before_transition():
    machine = PhaseStateMachine()
    state = ProgressionState(current_phase=2, turns_in_phase=7)
    outcome = machine.apply_turn(state, "At last we reached the temple entrance.", True)

    assert outcome.advanced
    assert outcome.state.discoveries[-1].type == "location"
    assert outcome.state.discoveries[-1].phase == 2
    assert "explored temple entrance" in outcome.state.journal_entries[-1].content


def test_input_state_is_not_mutated():
    machine = _two_phase_machine(min_messages=0)
    state = ProgressionState()
    machine.apply_turn(state, "I found a rusted iron key. " + REST, True)
    assert state == ProgressionState()


def test_analysis_failure_returns_previous_state(monkeypatch):
    def boom(text, phase):
        raise RuntimeError("pattern engine exploded")

    monkeypatch.setattr("narrative.progression.extract_discoveries", boom)
    machine = _two_phase_machine()
    state = ProgressionState(turns_in_phase=3)

    outcome = machine.apply_turn(state, REST, True)
    assert outcome.status == "unchanged"
    assert outcome.state is state
    assert outcome.state.turns_in_phase == 3
    assert "exploded" in outcome.error
    assert outcome.directions_requested is True


def test_non_string_text_is_a_no_op():
    machine = PhaseStateMachine()
    state = ProgressionState()
    outcome = machine.apply_turn(state, None, True)
    assert outcome.status == "unchanged"
    assert outcome.state is state


def test_normalize_clamps_out_of_range_phase():
    machine = PhaseStateMachine()
    assert machine.normalize(ProgressionState(current_phase=99)).current_phase == len(machine.catalog)
    state = ProgressionState(current_phase=3)
    assert machine.normalize(state) is state
