"""Tests for the individual issue checks."""

# pylint: disable=redefined-outer-name

import pytest

from orgchart_consistency.core.enums import IssueType
from orgchart_consistency.core.schemas import Position
from orgchart_consistency.validation.checks import ValidationContext
from orgchart_consistency.validation.checks.aggregation import AggregationCheck
from orgchart_consistency.validation.checks.classification_consistency import (
    ClassificationConsistencyCheck,
)
from orgchart_consistency.validation.checks.duplicate_positions import DuplicatePositionsCheck
from orgchart_consistency.validation.checks.invalid_positions import InvalidPositionsCheck
from orgchart_consistency.validation.checks.scenario_expectations import ScenarioExpectationsCheck
from orgchart_consistency.validation.scenarios import ValidationScenario


@pytest.fixture
def build_context(validation_engine):
    """Register pages and return a context factory."""

    def _build(pages, aggregation=None, aggregation_pages=("page4Direct", "page4Indirect"), scenario=None):
        validation_engine.clear_positions()
        for source, positions in pages.items():
            validation_engine.register_positions(source, positions)
        return ValidationContext(
            engine=validation_engine,
            consistency=validation_engine.validate_consistency(),
            aggregation=aggregation,
            page_data={s: validation_engine.get_positions(s) for s in validation_engine.sources},
            aggregation_pages=aggregation_pages,
            scenario=scenario,
        )

    return _build


@pytest.fixture
def detailed(consistent_pages):
    return consistent_pages["page1"] + consistent_pages["page2"]


class TestClassificationConsistencyCheck:
    """Tests for ClassificationConsistencyCheck."""

    def test_no_issues_for_consistent_pages(self, build_context, consistent_pages):
        """Test that consistent pages produce no issues."""
        assert ClassificationConsistencyCheck().run(build_context(consistent_pages)) == []

    def test_misattached_group(self, build_context, misattached_pages):
        """Test that each inconsistent group becomes one critical issue."""
        (issue,) = ClassificationConsistencyCheck().run(build_context(misattached_pages))

        assert issue.type == IssueType.CLASSIFICATION_INCONSISTENCY
        assert issue.severity == "critical"
        assert issue.affected_positions == ("line-pm",)
        assert issue.pages == ("page1",)
        assert issue.recommendation == "Ensure Line PM is consistently classified as OH across all pages"

    def test_always_applies(self, build_context):
        """Test that the check applies to every run."""
        assert ClassificationConsistencyCheck().applies_to(build_context({}))


class TestAggregationCheck:
    """Tests for AggregationCheck."""

    def test_applies_only_with_aggregation(self, build_context, validation_engine):
        """Test that the check is skipped when no aggregation ran."""
        check = AggregationCheck()
        assert not check.applies_to(build_context({}))
        aggregation = validation_engine.validate_aggregation([], [], [])
        assert check.applies_to(build_context({}, aggregation=aggregation))

    def test_misplaced_position(self, build_context, validation_engine, consistent_pages, detailed):
        """Test that a misplaced position is critical and points at the correct page."""
        ce_mixing = consistent_pages["page1"][3]
        plant = consistent_pages["page2"][1]
        indirect = [p for p in detailed if p is not plant]
        aggregation = validation_engine.validate_aggregation([plant], indirect, detailed)

        (issue,) = AggregationCheck().run(build_context(consistent_pages, aggregation=aggregation))

        assert issue.type == IssueType.AGGREGATION_MISMATCH
        assert issue.severity == "critical"
        assert issue.affected_positions == (ce_mixing.id,)
        assert issue.pages == ("page4Indirect",)
        assert issue.recommendation == "Move CE TM to page4Direct"

    def test_minor_total_drift(self, build_context, validation_engine, consistent_pages, detailed):
        """Test that a single missing position is a medium-severity total issue."""
        direct = [detailed[3], detailed[5]]
        indirect = [p for p in detailed if p not in direct][:-1]
        aggregation = validation_engine.validate_aggregation(direct, indirect, detailed)

        total, bucket = AggregationCheck().run(build_context(consistent_pages, aggregation=aggregation))

        assert total.severity == "medium"
        assert total.pages == ("page4Direct", "page4Indirect")
        assert total.affected_positions == ()
        assert total.recommendation.endswith("(drift -1)")
        assert bucket.severity == "medium"
        assert bucket.pages == ("page4Indirect",)

    def test_large_total_drift(self, build_context, validation_engine, consistent_pages, detailed):
        """Test that a drift above the threshold is critical."""
        aggregation = validation_engine.validate_aggregation([], [], detailed)

        issues = AggregationCheck().run(build_context(consistent_pages, aggregation=aggregation))

        assert [i.severity for i in issues] == ["critical", "critical", "critical"]
        assert issues[0].recommendation.endswith("(drift -8)")


class TestDuplicatePositionsCheck:
    """Tests for DuplicatePositionsCheck."""

    def test_duplicate_id_in_one_source(self, build_context):
        """Test that an id repeated within one source is reported."""
        pages = {
            "page2": [
                Position(id="admin-tm", department="Admin", level="TM"),
                Position(id="admin-tm", department="Admin", level="TM"),
            ]
        }
        (issue,) = DuplicatePositionsCheck().run(build_context(pages))

        assert issue.type == IssueType.DUPLICATE_POSITIONS
        assert issue.severity == "medium"
        assert issue.description == "Duplicate position id 'admin-tm' appears 2 times in page2"
        assert issue.affected_positions == ("admin-tm",)
        assert issue.pages == ("page2",)

    def test_same_id_across_sources_is_allowed(self, build_context):
        """Test that the same id on different pages is not a duplicate."""
        pages = {
            "page1": [Position(id="line-pm", department="Line", level="PM")],
            "page2": [Position(id="line-pm", department="Line", level="PM")],
        }
        assert DuplicatePositionsCheck().run(build_context(pages)) == []

    def test_empty_ids_are_ignored(self, build_context):
        """Test that missing ids are left to the invalid position check."""
        pages = {"page1": [{"department": "Line", "level": "TM"}, {"department": "Line", "level": "GL"}]}
        assert DuplicatePositionsCheck().run(build_context(pages)) == []


class TestInvalidPositionsCheck:
    """Tests for InvalidPositionsCheck."""

    def test_valid_pages(self, build_context, consistent_pages):
        """Test that complete positions produce no issues."""
        assert InvalidPositionsCheck().run(build_context(consistent_pages)) == []

    def test_missing_fields(self, build_context):
        """Test that structural issues are joined into one description."""
        pages = {"page3": [{"id": "x"}, {"department": "Line", "level": "VSM"}]}
        first, second = InvalidPositionsCheck().run(build_context(pages))

        assert first.type == IssueType.INVALID_DATA
        assert first.severity == "medium"
        assert first.description == (
            "Invalid position Unknown Unknown in page3: Department is required; Level is required"
        )
        assert first.affected_positions == ("x",)
        assert first.pages == ("page3",)
        assert second.description == (
            "Invalid position Line VSM in page3: Position id is required; Unknown level: VSM"
        )
        assert second.affected_positions == ()


class TestScenarioExpectationsCheck:
    """Tests for ScenarioExpectationsCheck."""

    def test_applies_only_to_pinned_scenarios(self, build_context):
        """Test that runs without pinned counts are skipped."""
        check = ScenarioExpectationsCheck()
        assert not check.applies_to(build_context({}))
        assert not check.applies_to(build_context({}, scenario=ValidationScenario(name="free")))
        pinned = ValidationScenario(name="pinned", expected_direct_count=1)
        assert check.applies_to(build_context({}, scenario=pinned))

    def test_matching_counts(self, build_context, consistent_pages):
        """Test that matching counts produce no issues."""
        scenario = ValidationScenario(
            name="fixture", expected_direct_count=2, expected_indirect_count=2, expected_oh_count=4
        )
        assert ScenarioExpectationsCheck().run(build_context(consistent_pages, scenario=scenario)) == []

    def test_mismatching_counts(self, build_context, consistent_pages):
        """Test that each differing count is one medium issue."""
        scenario = ValidationScenario(name="fixture", expected_direct_count=3, expected_oh_count=4)
        (issue,) = ScenarioExpectationsCheck().run(build_context(consistent_pages, scenario=scenario))

        assert issue.type == IssueType.SCENARIO_EXPECTATION
        assert issue.severity == "medium"
        assert issue.description == "Scenario fixture expected 3 direct positions, found 2"
        assert issue.pages == ("page1", "page2")
