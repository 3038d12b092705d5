"""Tests for discovery extraction and transition detection."""

from narrative import DEFAULT_CATALOG, PhaseDefinition, extract_discoveries, signals_transition


class TestExtractDiscoveries:
    def test_item_with_trimmed_phrase(self):
        found = extract_discoveries("I found a rusted iron key near the wall", 1)
        assert len(found) == 1
        assert found[0].type == "item"
        assert found[0].content.startswith("rusted iron key")
        assert found[0].phase == 1
        assert found[0].content == found[0].content.strip()

    def test_one_discovery_per_type(self):
        text = "We fought the cave troll and then entered the old crypt. I found a silver ring and found a golden cup."
        found = extract_discoveries(text, 3)
        assert sorted(d.type for d in found) == ["creature", "item", "location"]
        by_type = {d.type: d.content for d in found}
        assert by_type["location"] == "old crypt"
        assert by_type["creature"].startswith("cave troll")
        assert by_type["item"].startswith("silver ring")
        assert all(d.phase == 3 for d in found)

    def test_captured_phrase_is_length_bounded(self):
        text = "She grabbed the " + "a" * 60 + " and ran. Then she took it."
        found = extract_discoveries(text, 1)
        assert len(found[0].content) <= 35

    def test_trigger_word_required_even_if_pattern_matches(self):
        # "saw" and "arrived at" are capture verbs but not trigger words
        assert extract_discoveries("We saw a huge shadow wolf", 1) == []
        assert extract_discoveries("We arrived at the mountain pass", 1) == []

    def test_capture_verb_can_differ_from_trigger(self):
        found = extract_discoveries("Nobody faced it, but we saw a huge shadow wolf", 2)
        assert [d.type for d in found] == ["creature"]

    def test_case_insensitive(self):
        found = extract_discoveries("THEY DISCOVERED THE Silver Chalice", 4)
        assert found[0].type == "item"
        assert found[0].content == "Silver Chalice"

    def test_short_phrase_is_not_a_discovery(self):
        assert extract_discoveries("I found a key.", 1) == []

    def test_plain_text_yields_nothing(self):
        assert extract_discoveries("The fire crackles quietly.", 1) == []


class TestSignalsTransition:
    def test_phrase_match_is_case_insensitive(self):
        phase = DEFAULT_CATALOG.definition_at(1)
        assert signals_transition("We leave at First Light.", phase) is True

    def test_substring_not_word_bounded(self):
        phase = DEFAULT_CATALOG.definition_at(1)
        assert signals_transition("The dawning realization hit her.", phase) is True

    def test_no_phrase_no_signal(self):
        phase = DEFAULT_CATALOG.definition_at(1)
        assert signals_transition("We look over the map together.", phase) is False

    def test_terminal_phase_never_signals(self):
        terminal = DEFAULT_CATALOG.definition_at(len(DEFAULT_CATALOG))
        assert signals_transition("We learn and train together.", terminal) is False

    def test_missing_phase_never_signals(self):
        assert signals_transition("dawn", None) is False

    def test_mixed_case_keyword(self):
        phase = PhaseDefinition(id=1, name="P", description="d", keywords=("Made It",))
        assert signals_transition("we made it home", phase) is True
