"""Tests for DataConsistencyValidator.generate_validation_summary_report."""

# pylint: disable=redefined-outer-name

import json

import pytest

from orgchart_consistency.core.enums import Health, IssueType
from orgchart_consistency.validation.consistency import DEFAULT_RECOMMENDATION
from orgchart_consistency.validation.models import ConsistencyReport
from orgchart_consistency.validation.reports import (
    CriticalIssue,
    DataConsistencyReport,
    ReportSummary,
    empty_distribution,
)
from orgchart_consistency.validation.scenarios import ValidationScenario


def _report(issues=(), health=Health.HEALTHY, name=None, recommendations=()):
    return DataConsistencyReport(
        classification_distribution=empty_distribution(),
        department_analysis={},
        level_analysis={},
        critical_issues=tuple(issues),
        recommendations=tuple(recommendations),
        overall_health=health,
        summary=ReportSummary(critical_issue_count=sum(1 for i in issues if i.is_critical)),
        consistency_validation=ConsistencyReport.empty(),
        scenario=ValidationScenario(name=name) if name else None,
    )


def _issue(description, severity="critical"):
    return CriticalIssue(type=IssueType.CLASSIFICATION_INCONSISTENCY, severity=severity, description=description)


@pytest.fixture
def mixed_reports(validator, consistent_pages, misattached_pages):
    return [
        validator.validate_application_consistency(consistent_pages),
        validator.validate_application_consistency(misattached_pages),
    ]


def test_empty_report_list(validator):
    """Test that summarizing no reports yields zeros."""
    summary = validator.generate_validation_summary_report([])

    assert summary.execution_summary.total_reports == 0
    assert summary.execution_summary.average_positions_per_report == 0.0
    assert summary.classification_trends.consistency_score == 0.0
    assert summary.classification_trends.average_direct_percentage == 0.0
    assert summary.common_issues == ()
    assert summary.recommendations == ()
    assert summary.detailed_findings == ()


def test_execution_summary_and_trends(validator, mixed_reports):
    """Test health buckets, mean positions and mean distribution."""
    summary = validator.generate_validation_summary_report(mixed_reports)

    e = summary.execution_summary
    assert (e.total_reports, e.healthy_reports, e.warning_reports, e.critical_reports) == (2, 1, 0, 1)
    assert e.average_positions_per_report == 8.0
    t = summary.classification_trends
    assert t.average_direct_percentage == pytest.approx(25.0)
    assert t.average_oh_percentage == pytest.approx(50.0)
    assert t.consistency_score == 0.5


def test_common_issues_are_normalized(validator):
    """Test that descriptions differing in case and spacing are grouped."""
    reports = [
        _report([_issue("Line PM  is misattached", "medium")], Health.WARNING),
        _report([_issue("line pm is misattached")], Health.CRITICAL),
        _report([_issue("Only once")], Health.CRITICAL),
    ]
    summary = validator.generate_validation_summary_report(reports)

    (common,) = summary.common_issues
    assert common.issue == "Line PM  is misattached"
    assert common.frequency == 2
    assert common.affected_reports == 2
    assert common.severity == "critical"


def test_common_issues_sorted_by_frequency(validator):
    """Test that the most frequent issues come first."""
    reports = [_report([_issue("a"), _issue("b")]) for _ in range(2)] + [_report([_issue("b")])]
    summary = validator.generate_validation_summary_report(reports)
    assert [c.issue for c in summary.common_issues] == ["b", "a"]
    assert [c.frequency for c in summary.common_issues] == [3, 2]


def test_recommendations(validator):
    """Test critical common issues first, then merged report hints, then the health share."""
    reports = [
        _report([_issue("Broken")], Health.CRITICAL, recommendations=["Fix it"]),
        _report([_issue("broken")], Health.CRITICAL, recommendations=["Fix it", "Also this"]),
        _report(recommendations=[DEFAULT_RECOMMENDATION]),
    ]
    summary = validator.generate_validation_summary_report(reports)

    assert summary.recommendations == (
        'Critical: Address "Broken" which affects 2 reports',
        "Fix it",
        "Also this",
        DEFAULT_RECOMMENDATION,
        "Focus on improving overall data consistency - less than 50% of reports are healthy",
    )


def test_health_share_messages(validator):
    """Test the progress message when most but not enough reports are healthy."""
    reports = [_report() for _ in range(3)] + [_report([_issue("x", "medium")], Health.WARNING)]
    summary = validator.generate_validation_summary_report(reports)
    assert summary.recommendations[-1] == (
        "Good progress on data consistency - aim to get above 80% healthy reports"
    )

    all_healthy = validator.generate_validation_summary_report([_report() for _ in range(5)])
    assert all_healthy.recommendations == ()


def test_detailed_findings(validator):
    """Test that findings are labelled by scenario name or position in the list."""
    reports = [
        _report(name="standard_configuration"),
        _report([_issue("Broken")], Health.CRITICAL),
    ]
    findings = validator.generate_validation_summary_report(reports).detailed_findings

    assert findings[0].report == "standard_configuration"
    assert findings[0].issues == ()
    assert findings[1].report == "report-2"
    assert findings[1].health == Health.CRITICAL
    assert findings[1].issues == ("[critical] Broken",)


def test_rendering(validator, mixed_reports):
    """Test Markdown and JSON output of the summary."""
    summary = validator.generate_validation_summary_report(mixed_reports)

    markdown = summary.to_markdown()
    assert markdown.startswith("# Validation Summary Report")
    assert "- **Consistency Score:** 50%" in markdown
    assert "### ❌ report-2" in markdown

    data = json.loads(summary.to_json())
    assert data["execution_summary"]["total_reports"] == 2
    assert data["detailed_findings"][1]["health"] == "critical"
