"""Application-level report models.

This module defines the reports produced by DataConsistencyValidator:
- CriticalIssue: One finding collected by a validation check
- DataConsistencyReport: Full report for one set of page data
- ScenarioRunResult: Reports of an automated scenario batch
- ValidationSummaryReport: Trends and common issues across reports
- QuickCheckResult: Trimmed projection of a DataConsistencyReport
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field, fields, is_dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from orgchart_consistency.core.enums import CLASSIFICATION_ORDER, Health, IssueType
from .config import QUICK_CHECK_MAX_RECOMMENDATIONS, SEVERITY_LEVELS, WARNING_SEVERITIES
from .models import AggregationResult, Breakdown, ConsistencyReport
from .scenarios import ValidationScenario

_HEALTH_ICONS = {
    Health.HEALTHY: "✅",
    Health.WARNING: "⚠️",
    Health.CRITICAL: "❌",
}


def _jsonable(value: Any) -> Any:
    """Convert report values into JSON-serializable primitives."""
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, ValidationScenario):
        return value.to_dict()
    if is_dataclass(value) and not isinstance(value, type):
        return {f.name: _jsonable(getattr(value, f.name)) for f in fields(value)}
    if isinstance(value, dict):
        return {str(_jsonable(k)): _jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_jsonable(v) for v in value]
    return value


@dataclass(frozen=True)
class CriticalIssue:
    """A finding collected into a data consistency report.

    Attributes:
        type: Kind of issue.
        severity: "critical", "high", "medium" or "low".
        description: Human-readable description.
        affected_positions: Ids or labels of affected positions.
        recommendation: Suggested remediation.
        pages: Sources involved.

    Examples:
        >>> CriticalIssue(
        ...     type=IssueType.AGGREGATION_MISMATCH,
        ...     severity="critical",
        ...     description="CE TM (Mixing) found in indirect page but classifies as direct",
        ...     affected_positions=("ce-tm-mixing-agg",),
        ...     pages=("indirect",),
        ... ).is_critical
        True
    """

    type: IssueType
    severity: str
    description: str
    affected_positions: Tuple[str, ...] = ()
    recommendation: str = ""
    pages: Tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if self.severity not in SEVERITY_LEVELS:
            raise ValueError(
                f"Invalid severity: {self.severity}. Must be one of {list(SEVERITY_LEVELS)}."
            )

    @property
    def is_critical(self) -> bool:
        return self.severity == "critical"

    @property
    def is_warning(self) -> bool:
        return self.severity in WARNING_SEVERITIES


@dataclass(frozen=True)
class DistributionEntry:
    """Count, rounded percentage and labels of one classification."""

    count: int
    percentage: float
    positions: Tuple[str, ...] = ()


def empty_distribution() -> Dict[str, DistributionEntry]:
    return {c.value: DistributionEntry(count=0, percentage=0.0) for c in CLASSIFICATION_ORDER}


@dataclass(frozen=True)
class ReportSummary:
    total_positions: int = 0
    valid_positions: int = 0
    inconsistent_positions: int = 0
    aggregation_mismatches: int = 0
    critical_issue_count: int = 0
    warning_count: int = 0


@dataclass(frozen=True)
class DataConsistencyReport:
    """Full consistency report for one set of page data.

    Attributes:
        classification_distribution: Entry per classification value.
        department_analysis: Breakdown per department display name.
        level_analysis: Breakdown per level.
        critical_issues: Findings of all applicable checks.
        recommendations: Short remediation hints, most important first.
        overall_health: healthy, warning or critical.
        summary: Headline counts.
        consistency_validation: Cross-source consistency result.
        aggregation_validation: Aggregation result, when both aggregation
            pages were supplied.
        scenario: Scenario that produced the page data, if any.
        timestamp: Creation time.
    """

    classification_distribution: Dict[str, DistributionEntry]
    department_analysis: Dict[str, Breakdown]
    level_analysis: Dict[str, Breakdown]
    critical_issues: Tuple[CriticalIssue, ...]
    recommendations: Tuple[str, ...]
    overall_health: Health
    summary: ReportSummary
    consistency_validation: ConsistencyReport
    aggregation_validation: Optional[AggregationResult] = None
    scenario: Optional[ValidationScenario] = None
    timestamp: datetime = field(default_factory=datetime.now)

    @property
    def is_healthy(self) -> bool:
        return self.overall_health == Health.HEALTHY

    @property
    def name(self) -> str:
        """Scenario name, or "manual" for ad-hoc page data."""
        return self.scenario.name if self.scenario is not None else "manual"

    def has_errors(self, strict: bool = False) -> bool:
        """True if the report is critical (or not healthy in strict mode)."""
        if self.overall_health == Health.CRITICAL:
            return True
        return strict and self.overall_health == Health.WARNING

    def get_issues(self, severity: Optional[str] = None) -> List[CriticalIssue]:
        """Issues, optionally filtered by severity."""
        return [i for i in self.critical_issues if severity is None or i.severity == severity]

    def summary_text(self) -> str:
        """Concise multi-line summary.

        Examples:
            >>> print(report.summary_text())
            Data Consistency Summary:
              Scenario: manual
              Health: healthy
              Positions: 16 total (16 valid, 0 inconsistent)
              Distribution: direct 2 (12.5%), indirect 7 (43.8%), OH 7 (43.7%)
              Issues: 0 critical, 0 warnings, 0 aggregation mismatches
        """
        distribution = ", ".join(
            f"{key} {entry.count} ({entry.percentage:.1f}%)"
            for key, entry in self.classification_distribution.items()
        )
        s = self.summary
        return (
            f"Data Consistency Summary:\n"
            f"  Scenario: {self.name}\n"
            f"  Health: {self.overall_health.value}\n"
            f"  Positions: {s.total_positions} total ({s.valid_positions} valid, "
            f"{s.inconsistent_positions} inconsistent)\n"
            f"  Distribution: {distribution}\n"
            f"  Issues: {s.critical_issue_count} critical, {s.warning_count} warnings, "
            f"{s.aggregation_mismatches} aggregation mismatches"
        )

    def to_markdown(self) -> str:
        """Generate a detailed Markdown report.

        Returns:
            Markdown with summary, distribution table, department and level
            breakdowns, issues grouped by severity and recommendations.
        """
        s = self.summary
        icon = _HEALTH_ICONS[self.overall_health]
        lines = [
            f"# Data Consistency Report: {self.name}",
            "",
            f"**Health:** {self.overall_health.value} {icon}",
            f"**Pages:** {', '.join(self.consistency_validation.summary.pages_covered) or '-'}",
            f"**Generated:** {self.timestamp.strftime('%Y-%m-%d %H:%M:%S')}",
            "",
            "## Summary",
            "",
            f"- **Total Positions:** {s.total_positions}",
            f"- **Valid Positions:** {s.valid_positions}",
            f"- **Inconsistent Positions:** {s.inconsistent_positions}",
            f"- **Aggregation Mismatches:** {s.aggregation_mismatches}",
            f"- **Critical Issues:** {s.critical_issue_count} ❌"
            if s.critical_issue_count > 0
            else f"- **Critical Issues:** {s.critical_issue_count}",
            f"- **Warnings:** {s.warning_count} ⚠️"
            if s.warning_count > 0
            else f"- **Warnings:** {s.warning_count}",
            "",
            "## Classification Distribution",
            "",
            "| Classification | Count | Percentage |",
            "|---|---:|---:|",
        ]
        for key, entry in self.classification_distribution.items():
            lines.append(f"| {key} | {entry.count} | {entry.percentage:.1f}% |")
        lines.append("")

        for title, analysis in (
            ("Department Analysis", self.department_analysis),
            ("Level Analysis", self.level_analysis),
        ):
            if not analysis:
                continue
            lines.extend(
                [
                    f"## {title}",
                    "",
                    "| Name | Total | direct | indirect | OH | Inconsistencies |",
                    "|---|---:|---:|---:|---:|---:|",
                ]
            )
            for name, b in analysis.items():
                lines.append(
                    f"| {name} | {b.total_positions} | {b.direct_count} | {b.indirect_count} "
                    f"| {b.oh_count} | {b.inconsistencies} |"
                )
            lines.append("")

        if not self.critical_issues:
            lines.append("## ✅ No Issues Found")
            lines.append("")
        else:
            lines.append("## Issues")
            lines.append("")
            for severity in SEVERITY_LEVELS:
                issues = self.get_issues(severity)
                if not issues:
                    continue
                marker = "❌" if severity == "critical" else "⚠️"
                lines.append(f"### {marker} {severity.capitalize()} ({len(issues)})")
                lines.append("")
                for issue in issues:
                    lines.append(f"- **{issue.type.value}**: {issue.description}")
                    if issue.affected_positions:
                        lines.append(f"  - Positions: {', '.join(issue.affected_positions)}")
                    if issue.recommendation:
                        lines.append(f"  - Recommendation: {issue.recommendation}")
                lines.append("")

        lines.append("## Recommendations")
        lines.append("")
        for recommendation in self.recommendations:
            lines.append(f"- {recommendation}")
        lines.append("")

        return "\n".join(lines)

    def to_dict(self) -> Dict[str, Any]:
        """JSON-ready representation."""
        return _jsonable(self)

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), indent=2, ensure_ascii=False)

    def to_console_summary(self) -> str:
        """Summary followed by the first message of each issue."""
        lines = [self.summary_text(), ""]
        if not self.critical_issues:
            lines.append("✅ All positions are consistently classified!")
        else:
            lines.append("Issue Details:")
            for issue in self.critical_issues:
                marker = "❌" if issue.is_critical else "⚠️"
                lines.append(f"{marker} {issue.type.value} ({issue.severity}): {issue.description}")
        if self.recommendations:
            lines.append("")
            lines.append("Recommendations:")
            for recommendation in self.recommendations:
                lines.append(f"   - {recommendation}")
        return "\n".join(lines)


@dataclass(frozen=True)
class ScenarioRunSummary:
    total_scenarios: int
    passed_scenarios: int
    warning_scenarios: int
    failed_scenarios: int
    critical_issues: int
    overall_status: str  # "pass" | "warning" | "fail"

    def __post_init__(self) -> None:
        if self.overall_status not in ("pass", "warning", "fail"):
            raise ValueError(f"Invalid overall_status: {self.overall_status}")
        if self.passed_scenarios + self.warning_scenarios + self.failed_scenarios != self.total_scenarios:
            raise ValueError("Scenario counts must add up to total_scenarios")


@dataclass(frozen=True)
class ScenarioRunResult:
    """Reports of an automated scenario batch, in scenario order."""

    results: Tuple[DataConsistencyReport, ...]
    summary: ScenarioRunSummary

    def to_console_summary(self) -> str:
        s = self.summary
        lines = [
            "Scenario Run Summary:",
            f"  Status: {s.overall_status}",
            f"  Scenarios: {s.total_scenarios} executed ({s.passed_scenarios} passed, "
            f"{s.warning_scenarios} warnings, {s.failed_scenarios} failed)",
            f"  Critical issues: {s.critical_issues}",
            "",
        ]
        for report in self.results:
            lines.append(
                f"{_HEALTH_ICONS[report.overall_health]} {report.name}: "
                f"{report.overall_health.value} ({report.summary.total_positions} positions)"
            )
        return "\n".join(lines)

    def to_json(self) -> str:
        data = {
            "summary": _jsonable(self.summary),
            "results": [report.to_dict() for report in self.results],
        }
        return json.dumps(data, indent=2, ensure_ascii=False)


@dataclass(frozen=True)
class ExecutionSummary:
    total_reports: int
    healthy_reports: int
    warning_reports: int
    critical_reports: int
    average_positions_per_report: float


@dataclass(frozen=True)
class ClassificationTrends:
    """Mean distribution across reports.

    ``consistency_score`` is the fraction of reports without critical issues.
    """

    average_direct_percentage: float
    average_indirect_percentage: float
    average_oh_percentage: float
    consistency_score: float

    def __post_init__(self) -> None:
        if not 0.0 <= self.consistency_score <= 1.0:
            raise ValueError(f"consistency_score must be in [0, 1], got {self.consistency_score}")


@dataclass(frozen=True)
class CommonIssue:
    issue: str
    frequency: int
    affected_reports: int
    severity: str


@dataclass(frozen=True)
class ReportFinding:
    """Critical issues of one report, for the summary's detailed findings."""

    report: str
    health: Health
    issues: Tuple[str, ...] = ()


@dataclass(frozen=True)
class ValidationSummaryReport:
    execution_summary: ExecutionSummary
    classification_trends: ClassificationTrends
    common_issues: Tuple[CommonIssue, ...]
    recommendations: Tuple[str, ...]
    detailed_findings: Tuple[ReportFinding, ...]

    def to_markdown(self) -> str:
        e = self.execution_summary
        t = self.classification_trends
        lines = [
            "# Validation Summary Report",
            "",
            "## Execution Summary",
            "",
            f"- **Reports:** {e.total_reports}",
            f"- **Healthy:** {e.healthy_reports}",
            f"- **Warning:** {e.warning_reports}",
            f"- **Critical:** {e.critical_reports}",
            f"- **Average Positions per Report:** {e.average_positions_per_report:.1f}",
            "",
            "## Classification Trends",
            "",
            f"- **Average direct:** {t.average_direct_percentage:.1f}%",
            f"- **Average indirect:** {t.average_indirect_percentage:.1f}%",
            f"- **Average OH:** {t.average_oh_percentage:.1f}%",
            f"- **Consistency Score:** {t.consistency_score:.0%}",
            "",
        ]
        if self.common_issues:
            lines.extend(["## Common Issues", "", "| Issue | Frequency | Reports | Severity |", "|---|---:|---:|---|"])
            for issue in self.common_issues:
                lines.append(
                    f"| {issue.issue} | {issue.frequency} | {issue.affected_reports} | {issue.severity} |"
                )
            lines.append("")
        if self.recommendations:
            lines.extend(["## Recommendations", ""])
            lines.extend(f"- {r}" for r in self.recommendations)
            lines.append("")
        lines.extend(["## Detailed Findings", ""])
        for finding in self.detailed_findings:
            lines.append(f"### {_HEALTH_ICONS[finding.health]} {finding.report}")
            lines.append("")
            if finding.issues:
                lines.extend(f"- {issue}" for issue in finding.issues)
            else:
                lines.append("No critical issues.")
            lines.append("")
        return "\n".join(lines)

    def to_json(self) -> str:
        return json.dumps(_jsonable(self), indent=2, ensure_ascii=False)


@dataclass(frozen=True)
class QuickCheckResult:
    """Trimmed view of a data consistency report."""

    is_healthy: bool
    critical_issue_count: int
    warning_count: int
    quick_summary: str
    recommendations: Tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if len(self.recommendations) > QUICK_CHECK_MAX_RECOMMENDATIONS:
            raise ValueError(
                f"Quick check allows at most {QUICK_CHECK_MAX_RECOMMENDATIONS} recommendations"
            )


__all__ = [
    "CriticalIssue",
    "DistributionEntry",
    "ReportSummary",
    "DataConsistencyReport",
    "ScenarioRunSummary",
    "ScenarioRunResult",
    "ExecutionSummary",
    "ClassificationTrends",
    "CommonIssue",
    "ReportFinding",
    "ValidationSummaryReport",
    "QuickCheckResult",
    "empty_distribution",
]
