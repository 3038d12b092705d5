"""Tests for the phase catalog."""

import pytest

from narrative import DEFAULT_CATALOG, CatalogError, PhaseCatalog, PhaseDefinition, load_catalog


def _phase(pid: int, keywords=("onward",)) -> PhaseDefinition:
    return PhaseDefinition(id=pid, name=f"Phase {pid}", description="d", keywords=tuple(keywords))


def test_only_last_default_phase_is_terminal():
    n = len(DEFAULT_CATALOG)
    assert n == 8
    for p in range(1, n):
        assert DEFAULT_CATALOG.definition_at(p).keywords, f"phase {p} has no transition phrases"
    assert DEFAULT_CATALOG.definition_at(n).is_terminal


def test_default_directions_use_both_placeholders():
    for phase in DEFAULT_CATALOG:
        assert "{{char}}" in phase.stage_directions
        assert "{{user}}" in phase.stage_directions


def test_out_of_range_lookup_is_absent():
    assert DEFAULT_CATALOG.definition_at(0) is None
    assert DEFAULT_CATALOG.definition_at(-3) is None
    assert DEFAULT_CATALOG.definition_at(len(DEFAULT_CATALOG) + 1) is None
    assert DEFAULT_CATALOG.definition_at(1).name == "Phase 1: Planning"


def test_gap_in_ids_rejected():
    with pytest.raises(CatalogError):
        PhaseCatalog([_phase(1), _phase(3, keywords=())])


def test_terminal_must_be_last():
    with pytest.raises(CatalogError):
        PhaseCatalog([_phase(1, keywords=()), _phase(2)])


def test_catalog_needs_a_terminal_phase():
    with pytest.raises(CatalogError):
        PhaseCatalog([_phase(1), _phase(2)])


def test_empty_catalog_rejected():
    with pytest.raises(CatalogError):
        PhaseCatalog([])


def test_load_catalog_from_yaml(tmp_path):
    path = tmp_path / "phases.yaml"
    path.write_text(
        """
phases:
  - id: 1
    name: "Act I"
    description: "The call"
    objectives: ["Hear the call"]
    keywords: ["set out"]
    stage_directions: "{{char}} calls {{user}}."
  - id: 2
    name: "Act II"
    description: "The road"
    keywords: []
""",
        encoding="utf-8",
    )
    catalog = load_catalog(path)
    assert len(catalog) == 2
    assert catalog.definition_at(1).keywords == ("set out",)
    assert catalog.definition_at(1).objectives == ("Hear the call",)
    assert catalog.definition_at(2).is_terminal


def test_load_catalog_rejects_non_list(tmp_path):
    path = tmp_path / "phases.yaml"
    path.write_text("just a string\n", encoding="utf-8")
    with pytest.raises(CatalogError):
        load_catalog(path)


def test_phase_entry_without_id_rejected():
    with pytest.raises(CatalogError):
        PhaseDefinition.from_dict({"name": "nameless"})
