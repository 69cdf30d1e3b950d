"""Tests for ClassificationEngine."""

import logging

import pytest

from orgchart_consistency.classification.engine import ClassificationEngine
from orgchart_consistency.classification.rules import ClassificationRule
from orgchart_consistency.core.enums import Classification, Level
from orgchart_consistency.core.schemas import Position


@pytest.mark.parametrize(
    "args, kwargs, expected",
    [
        (("CE", "TM"), {"subtitle": "Mixing"}, Classification.DIRECT),
        (("CE", "TM"), {"subtitle": "Other"}, Classification.OH),
        (("Plant Production", "TM"), {}, Classification.DIRECT),
        (("No-sew", "GL"), {}, Classification.INDIRECT),
        (("HF Welding", "TM"), {}, Classification.INDIRECT),
        (("Line", "PM"), {}, Classification.OH),
        (("Line", "GL"), {}, Classification.INDIRECT),
        (("Quality", "GL"), {}, Classification.OH),
    ],
)
def test_reference_classifications(classification_engine, args, kwargs, expected):
    """Test the reference classifications of the rule table."""
    assert classification_engine.classify(*args, **kwargs) == expected


def test_classify_is_deterministic(classification_engine):
    """Test that the same input always yields the same output."""
    results = {classification_engine.classify("CE", "TM", None, "Mixing") for _ in range(5)}
    assert results == {Classification.DIRECT}


@pytest.mark.parametrize(
    "department",
    ["Raw Material", "RawMaterial", "raw-material", "  raw_material  ", "RAW MATERIAL"],
)
def test_department_spellings_are_equivalent(classification_engine, department):
    """Test that case, whitespace, hyphens and underscores are ignored."""
    assert classification_engine.explain(department, "TM").name == "fixed_indirect_department"


def test_only_first_line_of_department_is_used(classification_engine):
    """Test that multi-line department labels are classified by their first line."""
    rule = classification_engine.explain("Plant Production\n(Outsole degreasing)", "TM")
    assert rule.name == "plant_production_tm"


def test_legacy_department_aliases(classification_engine):
    """Test that short department names resolve to their full names."""
    assert classification_engine.classify("FGWH", "TM", subtitle="Shipping") == Classification.OH
    assert classification_engine.explain("ACC", "TM").name == "fixed_indirect_department"
    assert classification_engine.explain("PL", "GL").name == "fixed_indirect_department"


def test_level_is_case_insensitive_and_accepts_enum(classification_engine):
    """Test that levels are matched case-insensitively and as Level members."""
    assert classification_engine.classify("Line", "pm") == Classification.OH
    assert classification_engine.classify("Line", Level.PM) == Classification.OH
    assert classification_engine.classify("Line", " gl ") == Classification.INDIRECT


def test_subtitle_keyword_is_a_substring_match(classification_engine):
    """Test that the Mixing keyword may be embedded in a longer subtitle."""
    assert classification_engine.classify("CE", "TM", subtitle="CE Mixing Room") == Classification.DIRECT


def test_separated_process_type_overrides_department(classification_engine):
    """Test that a separated process type wins over every other rule."""
    assert (
        classification_engine.classify("CE", "TM", process_type="HF Welding", subtitle="Mixing")
        == Classification.INDIRECT
    )


def test_missing_department_falls_back_to_indirect(classification_engine):
    """Test that GL, TL and TM positions without a department are indirect."""
    for level in ("GL", "TL", "TM"):
        assert classification_engine.classify("", level) == Classification.INDIRECT
    assert classification_engine.classify(None, "gl") == Classification.INDIRECT
    assert classification_engine.explain("   ", "GL").name == "missing_department"


def test_unknown_department_falls_back_to_indirect(classification_engine):
    """Test that unrecognized departments at GL, TL and TM are indirect."""
    assert classification_engine.classify("Foo", "GL") == Classification.INDIRECT
    assert classification_engine.explain("Marketing", "TM").name == "unknown_department"


def test_pm_and_lm_stay_overhead_without_department(classification_engine):
    """Test that managers keep their overhead default for missing or unknown departments."""
    assert classification_engine.explain("", "PM").name == "level_default_pm"
    assert classification_engine.classify("", "PM") == Classification.OH
    assert classification_engine.classify("Foo", "LM") == Classification.OH


def test_unknown_level_falls_back_to_indirect(classification_engine):
    """Test that rendering-only levels hit the fallback rule."""
    for level in ("VSM", "A.VSM", "MGL", "", None):
        assert classification_engine.explain("Line", level).name == "fallback"


def test_classify_position_ignores_attached_classification(classification_engine):
    """Test that the attached classification never influences the computed one."""
    position = Position(id="p", department="Line", level="PM", classification=Classification.DIRECT)
    assert classification_engine.classify_position(position) == Classification.OH
    assert classification_engine.explain_position(position).name == "level_default_pm"


def test_is_known_department():
    """Test department recognition against the rule table."""
    assert ClassificationEngine.is_known_department("raw material")
    assert ClassificationEngine.is_known_department("ACC")
    assert not ClassificationEngine.is_known_department("Marketing")
    assert not ClassificationEngine.is_known_department("")


def test_empty_rule_table_is_rejected():
    """Test that an engine needs at least one rule."""
    with pytest.raises(ValueError, match="at least one rule"):
        ClassificationEngine(rules=[])


def test_custom_table_without_match_uses_last_rule(caplog):
    """Test that a custom table without a catch-all logs and uses its last rule."""
    only_ce = ClassificationRule(
        name="only_ce",
        predicate=lambda rule_input: rule_input.department == "ce",
        classification=Classification.OH,
        reason="CE is overhead",
    )
    engine = ClassificationEngine(rules=[only_ce])
    with caplog.at_level(logging.WARNING):
        rule = engine.explain("Line", "TM")
    assert rule is only_ce
    assert "No classification rule matched" in caplog.text


def test_rules_property_exposes_table(classification_engine):
    """Test that the decision table can be inspected."""
    assert classification_engine.rules[-1].name == "fallback"
