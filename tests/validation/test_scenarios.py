"""Tests for validation scenarios, mock page data and scenario batches."""

# pylint: disable=redefined-outer-name

from unittest.mock import patch

import pytest

from orgchart_consistency.core.enums import Health
from orgchart_consistency.validation.scenarios import (
    DEFAULT_SCENARIOS,
    DIRECT_AGGREGATION_PAGE,
    INDIRECT_AGGREGATION_PAGE,
    MockDataGenerator,
    ScenarioRegistry,
    ValidationScenario,
)


@pytest.fixture
def generator(classification_engine):
    return MockDataGenerator(classification_engine)


class TestMockDataGenerator:
    """Tests for MockDataGenerator."""

    def test_page1_counts(self, generator):
        """Test the line hierarchy for two lines and two models."""
        positions = generator.generate_page1_data(2, ("Model A", "Model B"))

        # PM, LM, 2 x (Line GL, Quality GL), 2 x 2 Line TM, CE TM Mixing
        assert len(positions) == 11
        assert len({p.id for p in positions}) == 11
        assert positions[-1].id == "ce-tm-mixing"
        assert "line-tm-2-model-b" in {p.id for p in positions}
        assert all(p.source == "page1" for p in positions)

    def test_page1_without_lines(self, generator):
        """Test that no lines means an empty page1."""
        assert generator.generate_page1_data(0, ("Model A",)) == []

    def test_static_pages(self, generator):
        """Test the fixed support pages."""
        assert [p.id for p in generator.generate_page2_data()] == [
            "admin-tm",
            "raw-material-tm",
            "plant-prod-tm",
            "acc-market-tm",
            "fg-wh-tm",
            "fg-wh-tm-shipping",
        ]
        assert [p.department for p in generator.generate_page3_data()] == ["TPM", "Security"]
        assert [p.process_type for p in generator.generate_separated_data()] == ["No-sew", "HF Welding"]

    def test_aggregation_split(self, generator):
        """Test that aggregation pages split positions by computed classification."""
        direct, indirect = generator.generate_aggregation_data(
            generator.generate_page1_data(1, ()) + generator.generate_page2_data()
        )
        assert [p.id for p in direct] == ["ce-tm-mixing-agg", "plant-prod-tm-agg"]
        assert len(indirect) == 9
        assert {p.source for p in indirect} == {"page4-indirect"}

    def test_generate_adds_aggregation_pages(self, generator):
        """Test that generated page data includes both aggregation pages."""
        page_data = generator.generate(ValidationScenario(name="s", line_count=1, model_selection=("A",)))
        assert list(page_data) == [
            "page1",
            "page2",
            "page3",
            "separated",
            DIRECT_AGGREGATION_PAGE,
            INDIRECT_AGGREGATION_PAGE,
        ]

    def test_generate_selected_pages(self, generator):
        """Test that only the requested detail pages are built."""
        page_data = generator.generate(ValidationScenario(name="s", pages=("separated",)))
        assert set(page_data) == {"separated", DIRECT_AGGREGATION_PAGE, INDIRECT_AGGREGATION_PAGE}
        assert page_data[DIRECT_AGGREGATION_PAGE] == []

    def test_generate_returns_literal_page_data(self, generator):
        """Test that literal page data is used as is."""
        literal = {"page1": [{"id": "a", "department": "Line", "level": "PM"}]}
        assert generator.generate(ValidationScenario(name="s", line_count=5, page_data=literal)) == literal

    def test_negative_line_count(self, generator):
        """Test that a negative line count is rejected."""
        with pytest.raises(ValueError, match="line_count must be >= 0"):
            generator.generate(ValidationScenario(name="s", line_count=-1))

    def test_unknown_page(self, generator):
        """Test that unknown page names are rejected."""
        with pytest.raises(ValueError, match="Unknown scenario pages"):
            generator.generate(ValidationScenario(name="s", pages=("page9",)))


class TestValidationScenario:
    """Tests for ValidationScenario."""

    def test_from_dict_camel_case(self):
        """Test that camelCase keys are accepted."""
        scenario = ValidationScenario.from_dict(
            {
                "name": "custom",
                "lineCount": 2,
                "modelSelection": ["Model A"],
                "expectedDirectCount": 2,
                "expectedOHCount": 6,
            }
        )
        assert scenario.line_count == 2
        assert scenario.model_selection == ("Model A",)
        assert scenario.pages is None
        assert scenario.expected_counts == {"direct": 2, "OH": 6}

    def test_from_dict_requires_name(self):
        """Test that nameless or non-mapping entries are rejected."""
        with pytest.raises(ValueError, match="missing a name"):
            ValidationScenario.from_dict({"line_count": 1})
        with pytest.raises(ValueError, match="must be a mapping"):
            ValidationScenario.from_dict(["custom"])

    def test_to_dict_omits_page_data(self):
        """Test that report metadata flags literal page data instead of embedding it."""
        data = ValidationScenario(name="s", page_data={"page1": []}).to_dict()
        assert "page_data" not in data
        assert data["has_page_data"] is True
        assert data["expected_counts"] == {}


class TestScenarioRegistry:
    """Tests for ScenarioRegistry."""

    def test_defaults(self):
        """Test that the registry starts with the default scenarios."""
        registry = ScenarioRegistry()
        assert len(registry) == len(DEFAULT_SCENARIOS)
        assert registry.names()[0] == "minimal_configuration"
        assert registry.get("separated_processes_only").pages == ("separated",)

    def test_register_replaces(self):
        """Test that registering an existing name replaces it."""
        registry = ScenarioRegistry([ValidationScenario(name="a", line_count=1)])
        registry.register(ValidationScenario(name="a", line_count=2))
        assert len(registry) == 1
        assert registry.get("a").line_count == 2

    def test_unknown_name(self):
        """Test that unknown names list the available scenarios."""
        with pytest.raises(KeyError, match="Unknown scenario: nope"):
            ScenarioRegistry().get("nope")

    def test_from_yaml_list(self, tmp_path):
        """Test loading a plain list of scenarios."""
        path = tmp_path / "scenarios.yaml"
        path.write_text("- name: one\n  line_count: 1\n- name: two\n  pages: [page2]\n", encoding="utf-8")

        registry = ScenarioRegistry.from_yaml(path)

        assert registry.names() == ["one", "two"]
        assert registry.get("two").pages == ("page2",)

    def test_from_yaml_mapping(self, tmp_path):
        """Test loading scenarios nested under a scenarios key."""
        path = tmp_path / "scenarios.yaml"
        path.write_text("scenarios:\n  - name: only\n    expectedIndirectCount: 3\n", encoding="utf-8")
        assert ScenarioRegistry.from_yaml(path).get("only").expected_indirect_count == 3

    def test_from_yaml_errors(self, tmp_path):
        """Test missing files and malformed content."""
        with pytest.raises(FileNotFoundError, match="Scenarios file not found"):
            ScenarioRegistry.from_yaml(tmp_path / "missing.yaml")

        path = tmp_path / "bad.yaml"
        path.write_text("scenarios: just-a-string\n", encoding="utf-8")
        with pytest.raises(ValueError, match="Expected a list of scenarios"):
            ScenarioRegistry.from_yaml(path)


class TestRunAutomatedValidationTests:
    """Tests for DataConsistencyValidator.run_automated_validation_tests."""

    def test_default_scenarios_pass(self, validator):
        """Test that every default scenario is healthy and matches its counts."""
        result = validator.run_automated_validation_tests()

        assert result.summary.overall_status == "pass"
        assert result.summary.total_scenarios == len(DEFAULT_SCENARIOS)
        assert result.summary.passed_scenarios == len(DEFAULT_SCENARIOS)
        for report, scenario in zip(result.results, DEFAULT_SCENARIOS):
            assert report.is_healthy, report.to_console_summary()
            assert report.scenario is scenario
            counts = report.consistency_validation.summary.classification_counts
            assert counts == scenario.expected_counts
            assert report.aggregation_validation is not None
            assert report.aggregation_validation.is_valid

    @pytest.mark.parametrize(
        "scenario, direct, indirect, oh",
        [
            (DEFAULT_SCENARIOS[0], 2, 7, 7),
            (DEFAULT_SCENARIOS[1], 2, 14, 9),
            (DEFAULT_SCENARIOS[2], 2, 25, 11),
            (DEFAULT_SCENARIOS[3], 0, 2, 0),
        ],
    )
    def test_default_scenario_counts(self, scenario, direct, indirect, oh):
        """Test the pinned counts of the default scenarios."""
        assert scenario.expected_counts == {"direct": direct, "indirect": indirect, "OH": oh}

    def test_minimal_distribution(self, validator):
        """Test the rounded distribution of the minimal scenario."""
        (report,) = validator.run_automated_validation_tests([DEFAULT_SCENARIOS[0]]).results
        assert [e.percentage for e in report.classification_distribution.values()] == [12.5, 43.8, 43.7]

    def test_failing_scenario_does_not_stop_the_batch(self, validator):
        """Test that a broken scenario becomes a critical report and the rest still runs."""
        scenarios = [ValidationScenario(name="broken", line_count=-1), DEFAULT_SCENARIOS[0]]
        result = validator.run_automated_validation_tests(scenarios)

        broken, minimal = result.results
        assert broken.overall_health == Health.CRITICAL
        assert broken.name == "broken"
        assert "line_count must be >= 0" in broken.critical_issues[0].description
        assert minimal.is_healthy
        assert result.summary.overall_status == "fail"
        assert result.summary.failed_scenarios == 1
        assert result.summary.passed_scenarios == 1

    def test_wrong_expectation_is_a_warning(self, validator):
        """Test that a scenario whose pinned counts are off only warns."""
        scenario = ValidationScenario(name="off", pages=("separated",), expected_indirect_count=3)
        result = validator.run_automated_validation_tests([scenario])

        assert result.summary.overall_status == "warning"
        assert result.summary.warning_scenarios == 1
        assert result.results[0].recommendations == (
            "Review scenario expected counts against the classification rules",
        )

    def test_mapping_entries(self, validator):
        """Test that scenario mappings are converted, and nameless ones fail alone."""
        result = validator.run_automated_validation_tests(
            [{"name": "from-mapping", "pages": ["page3"]}, {"lineCount": 1}]
        )
        named, nameless = result.results

        assert named.name == "from-mapping"
        assert named.is_healthy
        assert nameless.scenario is None
        assert nameless.overall_health == Health.CRITICAL
        assert result.summary.overall_status == "fail"

    def test_literal_page_data_scenario(self, validator, misattached_pages):
        """Test that literal page data is validated instead of synthesized."""
        scenario = ValidationScenario(name="literal", page_data=misattached_pages)
        (report,) = validator.run_automated_validation_tests([scenario]).results
        assert report.overall_health == Health.CRITICAL
        assert report.summary.total_positions == 8

    def test_progress_bar_is_optional(self, validator):
        """Test that the progress bar is only shown on request."""
        with patch("orgchart_consistency.validation.consistency.tqdm", side_effect=lambda it, **kw: it) as mock_tqdm:
            validator.run_automated_validation_tests([DEFAULT_SCENARIOS[3]], show_progress=True)
        assert mock_tqdm.call_args.kwargs["disable"] is False

    def test_empty_batch(self, validator):
        """Test that an empty batch passes trivially."""
        result = validator.run_automated_validation_tests([])
        assert result.results == ()
        assert result.summary.overall_status == "pass"
