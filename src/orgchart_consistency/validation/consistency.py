"""Application-level data consistency validation.

DataConsistencyValidator runs the ValidationEngine over the page data of the
whole application, collects issues with the registered checks and turns the
results into reports:

- validate_application_consistency(): full report for one set of page data
- run_automated_validation_tests(): reports for a batch of scenarios
- generate_validation_summary_report(): trends and common issues across reports
- quick_validation_check(): trimmed projection of the full report

None of these raise for bad page data. A failure while building one report
degrades that report to ``critical``.
"""

from __future__ import annotations

import dataclasses
import logging
import re
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Union

import numpy as np
import pandas as pd
from tqdm import tqdm

from orgchart_consistency.classification.engine import ClassificationEngine
from orgchart_consistency.core.enums import CLASSIFICATION_ORDER, Classification, Health, IssueType
from orgchart_consistency.core.schemas import Position
from orgchart_consistency.core.utils import normalize_department, position_label
from .checks import ValidationContext
from .config import (
    MAX_COMMON_ISSUES,
    MAX_RECOMMENDATIONS,
    PERCENTAGE_DECIMALS,
    QUICK_CHECK_MAX_RECOMMENDATIONS,
    SEVERITY_LEVELS,
    aggregation_bucket,
    get_severity,
)
from .engine import ValidationEngine
from .models import AggregationResult, Breakdown, ConsistencyReport
from .registry import collect_issues
from .reports import (
    ClassificationTrends,
    CommonIssue,
    CriticalIssue,
    DataConsistencyReport,
    DistributionEntry,
    ExecutionSummary,
    QuickCheckResult,
    ReportFinding,
    ReportSummary,
    ScenarioRunResult,
    ScenarioRunSummary,
    ValidationSummaryReport,
    empty_distribution,
)
from .scenarios import DEFAULT_SCENARIOS, MockDataGenerator, ValidationScenario

logger = logging.getLogger(__name__)

DEFAULT_RECOMMENDATION = "Data consistency is good - continue monitoring for any changes"

_WHITESPACE = re.compile(r"\s+")


def distribution_percentages(counts: Sequence[int], decimals: int = PERCENTAGE_DECIMALS) -> List[float]:
    """Percentages of ``counts`` rounded so that they sum to 100.

    Uses largest-remainder rounding: every share is floored to ``decimals``
    places and the leftover units go to the largest remainders (earlier
    entries win ties). All zeros when the total is zero.

    The sum is exact in units of ``10**-decimals`` (the values a report
    prints). Adding the returned floats is exact only up to float
    representation: ``sum([33.4, 33.3, 33.3])`` is ``99.99999999999999``.

    Examples:
        >>> distribution_percentages([1, 1, 1])
        [33.4, 33.3, 33.3]
        >>> distribution_percentages([0, 0, 0])
        [0.0, 0.0, 0.0]
    """
    values = np.asarray(counts, dtype=float)
    total = values.sum()
    if total <= 0:
        return [0.0] * len(values)

    scale = 10**decimals
    raw = values / total * 100 * scale
    floored = np.floor(raw)
    leftover = int(round(100 * scale - floored.sum()))
    order = np.argsort(-(raw - floored), kind="stable")
    floored[order[:leftover]] += 1
    return [round(float(v) / scale, decimals) for v in floored]


def determine_health(issues: Iterable[CriticalIssue]) -> Health:
    """critical if any issue is critical, warning if any issue exists, else healthy."""
    issues = list(issues)
    if any(issue.is_critical for issue in issues):
        return Health.CRITICAL
    if issues:
        return Health.WARNING
    return Health.HEALTHY


def _normalize_issue(description: str) -> str:
    return _WHITESPACE.sub(" ", description).strip().casefold()


def _dedupe(items: Iterable[str]) -> List[str]:
    return list(dict.fromkeys(items))


class DataConsistencyValidator:
    """Validate the page data of the whole application.

    Args:
        validation_engine: Engine holding the per-source registry. A new one
            sharing ``classification_engine`` is created when omitted.
        classification_engine: Rule table used for distributions and mock data.
        mock_data_generator: Synthesizes page data for scenarios.

    Examples:
        >>> validator = DataConsistencyValidator()
        >>> validator.validate_application_consistency({}).overall_health
        <Health.HEALTHY: 'healthy'>
    """

    def __init__(
        self,
        validation_engine: Optional[ValidationEngine] = None,
        classification_engine: Optional[ClassificationEngine] = None,
        mock_data_generator: Optional[MockDataGenerator] = None,
    ) -> None:
        if classification_engine is None:
            classification_engine = (
                validation_engine.classification_engine
                if validation_engine is not None
                else ClassificationEngine()
            )
        self.classification_engine = classification_engine
        self.validation_engine = validation_engine or ValidationEngine(classification_engine)
        self.mock_data_generator = mock_data_generator or MockDataGenerator(classification_engine)

    # ------------------------------------------------------------------
    # Full validation
    # ------------------------------------------------------------------

    def validate_application_consistency(
        self,
        page_data: Optional[Mapping[str, Any]],
        scenario: Optional[ValidationScenario] = None,
    ) -> DataConsistencyReport:
        """Validate every page of the application.

        Every key that is not an aggregation page is registered as a detail
        page. When a direct and an indirect aggregation page are both present
        they are reconciled against the union of all detail pages.

        Args:
            page_data: Page key to list of positions (Position objects or mappings).
            scenario: Scenario that produced the page data, if any.

        Returns:
            DataConsistencyReport; a critical fallback report if building the
            report failed.
        """
        name = scenario.name if scenario is not None else "manual"
        logger.info("Starting data consistency validation (%s)", name)
        try:
            report = self._build_report(page_data, scenario)
        except Exception as e:  # pylint: disable=broad-except
            logger.exception("Data consistency validation failed (%s)", name)
            return self._fallback_report(scenario, e)

        logger.info(
            "Data consistency validation completed (%s): %s, %d positions, %d critical issues",
            name,
            report.overall_health.value,
            report.summary.total_positions,
            report.summary.critical_issue_count,
        )
        return report

    def _build_report(
        self, page_data: Optional[Mapping[str, Any]], scenario: Optional[ValidationScenario]
    ) -> DataConsistencyReport:
        if page_data is None:
            page_data = {}
        if not isinstance(page_data, Mapping):
            raise ValueError(
                f"page_data must map page keys to positions, got {type(page_data).__name__}"
            )

        engine = self.validation_engine
        engine.clear_positions()
        aggregation_keys: Dict[str, str] = {}
        for key, records in page_data.items():
            bucket = aggregation_bucket(str(key))
            if bucket is None:
                engine.register_positions(str(key), _page_records(key, records))
            elif bucket in aggregation_keys:
                logger.warning(
                    "Ignoring aggregation page %s: %s already supplies the %s page",
                    key,
                    aggregation_keys[bucket],
                    bucket,
                )
            else:
                aggregation_keys[bucket] = key

        detail_pages = {source: engine.get_positions(source) for source in engine.sources}
        detailed = engine.get_positions()
        consistency = engine.validate_consistency()

        aggregation: Optional[AggregationResult] = None
        if "direct" in aggregation_keys and "indirect" in aggregation_keys:
            aggregation = engine.validate_aggregation(
                _page_records(aggregation_keys["direct"], page_data[aggregation_keys["direct"]]),
                _page_records(aggregation_keys["indirect"], page_data[aggregation_keys["indirect"]]),
                detailed,
            )
        elif aggregation_keys:
            logger.warning(
                "Aggregation page %s supplied without its counterpart; skipping aggregation check",
                ", ".join(aggregation_keys.values()),
            )

        context = ValidationContext(
            engine=engine,
            consistency=consistency,
            aggregation=aggregation,
            page_data=detail_pages,
            aggregation_pages=(
                aggregation_keys.get("direct", "direct"),
                aggregation_keys.get("indirect", "indirect"),
            ),
            scenario=scenario,
        )
        issues = collect_issues(context)
        department_analysis, level_analysis = self._analysis(consistency)

        return DataConsistencyReport(
            classification_distribution=self._classification_distribution(detailed),
            department_analysis=department_analysis,
            level_analysis=level_analysis,
            critical_issues=tuple(issues),
            recommendations=tuple(self._recommendations(issues, consistency, aggregation)),
            overall_health=determine_health(issues),
            summary=ReportSummary(
                total_positions=consistency.summary.total_positions,
                valid_positions=consistency.summary.valid_positions,
                inconsistent_positions=consistency.summary.inconsistent_positions,
                aggregation_mismatches=len(aggregation.mismatches) if aggregation else 0,
                critical_issue_count=sum(1 for i in issues if i.is_critical),
                warning_count=sum(1 for i in issues if i.is_warning),
            ),
            consistency_validation=consistency,
            aggregation_validation=aggregation,
            scenario=scenario,
        )

    def _classification_distribution(self, positions: Sequence[Position]) -> Dict[str, DistributionEntry]:
        labels: Dict[str, List[str]] = {c.value: [] for c in CLASSIFICATION_ORDER}
        for position in positions:
            classification = self.classification_engine.classify_position(position)
            labels[classification.value].append(
                position_label(position.department, position.level, position.subtitle)
            )
        percentages = distribution_percentages([len(v) for v in labels.values()])
        return {
            key: DistributionEntry(count=len(items), percentage=percentage, positions=tuple(items))
            for (key, items), percentage in zip(labels.items(), percentages)
        }

    def _analysis(self, consistency: ConsistencyReport):
        """Breakdowns with inconsistency counts and reasons attached."""
        detailed_report = self.validation_engine.generate_detailed_report()
        departments = dict(detailed_report.department_analysis)
        levels = dict(detailed_report.level_analysis)
        department_keys = {normalize_department(name): name for name in departments}

        for inconsistency in consistency.inconsistencies:
            for analysis, key in (
                (departments, department_keys.get(normalize_department(inconsistency.department))),
                (levels, inconsistency.level),
            ):
                if key not in analysis:
                    continue
                breakdown: Breakdown = analysis[key]
                analysis[key] = dataclasses.replace(
                    breakdown,
                    inconsistencies=breakdown.inconsistencies + 1,
                    issues=breakdown.issues + (inconsistency.reason,),
                )
        return departments, levels

    @staticmethod
    def _recommendations(
        issues: Sequence[CriticalIssue],
        consistency: ConsistencyReport,
        aggregation: Optional[AggregationResult],
    ) -> List[str]:
        recommendations = []
        for inconsistency in consistency.inconsistencies:
            recommendations.append(
                f"Review {inconsistency.department or 'Unknown'} department "
                f"{inconsistency.level or 'Unknown'} classification rules"
            )

        if aggregation is not None and not aggregation.is_valid:
            recommendations.append("Update aggregation page logic to match detailed view classifications")
            if any(normalize_department(m.department) == "ce" for m in aggregation.mismatches):
                recommendations.append("Verify CE TM Mixing positions appear in direct aggregation page")

        issue_types = {issue.type for issue in issues}
        if IssueType.DUPLICATE_POSITIONS in issue_types:
            recommendations.append("Review data source to eliminate duplicate position entries")
        if IssueType.INVALID_DATA in issue_types:
            recommendations.append("Complete missing position fields on the source pages")
        if IssueType.SCENARIO_EXPECTATION in issue_types:
            recommendations.append("Review scenario expected counts against the classification rules")

        if any(issue.severity in ("critical", "high") for issue in issues):
            recommendations.append("Address critical and high-severity issues first to improve data integrity")

        recommendations = _dedupe(recommendations)
        if not recommendations:
            recommendations.append(DEFAULT_RECOMMENDATION)
        return recommendations[:MAX_RECOMMENDATIONS]

    @staticmethod
    def _fallback_report(
        scenario: Optional[ValidationScenario], error: BaseException
    ) -> DataConsistencyReport:
        issue = CriticalIssue(
            type=IssueType.INVALID_DATA,
            severity=get_severity("invalid_data", "scenario"),
            description=f"Validation failed: {error}",
            recommendation="Check system logs and data integrity",
        )
        return DataConsistencyReport(
            classification_distribution=empty_distribution(),
            department_analysis={},
            level_analysis={},
            critical_issues=(issue,),
            recommendations=("Fix system errors before running validation",),
            overall_health=Health.CRITICAL,
            summary=ReportSummary(critical_issue_count=1),
            consistency_validation=ConsistencyReport.empty(),
            scenario=scenario,
        )

    # ------------------------------------------------------------------
    # Scenario batches
    # ------------------------------------------------------------------

    def run_automated_validation_tests(
        self,
        scenarios: Optional[Iterable[Union[ValidationScenario, Mapping[str, Any]]]] = None,
        show_progress: bool = False,
    ) -> ScenarioRunResult:
        """Validate synthesized (or literal) page data for each scenario.

        A scenario that cannot be built or validated yields a critical report
        for that scenario; the batch always completes.

        Args:
            scenarios: Scenarios or scenario mappings. Defaults to DEFAULT_SCENARIOS.
            show_progress: Show a tqdm progress bar.

        Returns:
            ScenarioRunResult with one report per scenario, in order.
        """
        scenarios = list(DEFAULT_SCENARIOS if scenarios is None else scenarios)
        logger.info("Running %d validation scenarios", len(scenarios))

        results: List[DataConsistencyReport] = []
        pbar = tqdm(
            scenarios,
            desc=f"{'Validating scenarios':<31}",
            unit="scenario",
            disable=not show_progress,
        )
        for entry in pbar:
            scenario = entry if isinstance(entry, ValidationScenario) else None
            try:
                if scenario is None:
                    scenario = ValidationScenario.from_dict(entry)
                page_data = self.mock_data_generator.generate(scenario)
                report = self.validate_application_consistency(page_data, scenario)
            except Exception as e:  # pylint: disable=broad-except
                logger.exception("Validation scenario failed: %s", getattr(scenario, "name", entry))
                report = self._fallback_report(scenario, e)
            results.append(report)
            logger.info("Scenario %s: %s", report.name, report.overall_health.value)

        failed = sum(1 for r in results if r.overall_health == Health.CRITICAL)
        warning = sum(1 for r in results if r.overall_health == Health.WARNING)
        if failed:
            status = "fail"
        elif warning:
            status = "warning"
        else:
            status = "pass"

        summary = ScenarioRunSummary(
            total_scenarios=len(results),
            passed_scenarios=len(results) - failed - warning,
            warning_scenarios=warning,
            failed_scenarios=failed,
            critical_issues=sum(r.summary.critical_issue_count for r in results),
            overall_status=status,
        )
        logger.info(
            "Validation scenarios completed: %s (%d passed, %d warnings, %d failed)",
            status,
            summary.passed_scenarios,
            warning,
            failed,
        )
        return ScenarioRunResult(results=tuple(results), summary=summary)

    # ------------------------------------------------------------------
    # Summary across reports
    # ------------------------------------------------------------------

    def generate_validation_summary_report(
        self, reports: Iterable[DataConsistencyReport]
    ) -> ValidationSummaryReport:
        """Summarize a collection of reports.

        - execution summary: reports per health bucket, mean positions
        - trends: mean percentage per classification and the consistency
          score (fraction of reports without critical issues)
        - common issues: descriptions grouped by normalized text, kept when
          they occur more than once
        - recommendations: merged and de-duplicated
        - detailed findings: issues per report
        """
        reports = list(reports)
        frame = pd.DataFrame(
            [
                {
                    "health": r.overall_health.value,
                    "total_positions": r.summary.total_positions,
                    "critical_issue_count": r.summary.critical_issue_count,
                    **{
                        c.value: r.classification_distribution.get(
                            c.value, DistributionEntry(count=0, percentage=0.0)
                        ).percentage
                        for c in CLASSIFICATION_ORDER
                    },
                }
                for r in reports
            ],
            columns=["health", "total_positions", "critical_issue_count"]
            + [c.value for c in CLASSIFICATION_ORDER],
        )

        def _mean(column: str) -> float:
            return float(frame[column].mean()) if not frame.empty else 0.0

        health_counts = frame["health"].value_counts()
        execution_summary = ExecutionSummary(
            total_reports=len(reports),
            healthy_reports=int(health_counts.get(Health.HEALTHY.value, 0)),
            warning_reports=int(health_counts.get(Health.WARNING.value, 0)),
            critical_reports=int(health_counts.get(Health.CRITICAL.value, 0)),
            average_positions_per_report=_mean("total_positions"),
        )
        trends = ClassificationTrends(
            average_direct_percentage=_mean(Classification.DIRECT.value),
            average_indirect_percentage=_mean(Classification.INDIRECT.value),
            average_oh_percentage=_mean(Classification.OH.value),
            consistency_score=(
                float((frame["critical_issue_count"] == 0).mean()) if not frame.empty else 0.0
            ),
        )
        common_issues = _common_issues(reports)

        recommendations = [
            f'Critical: Address "{issue.issue}" which affects {issue.affected_reports} reports'
            for issue in common_issues[:3]
            if issue.severity == "critical"
        ]
        recommendations.extend(r for report in reports for r in report.recommendations)
        if reports:
            healthy_share = execution_summary.healthy_reports / len(reports)
            if healthy_share < 0.5:
                recommendations.append(
                    "Focus on improving overall data consistency - less than 50% of reports are healthy"
                )
            elif healthy_share < 0.8:
                recommendations.append(
                    "Good progress on data consistency - aim to get above 80% healthy reports"
                )

        findings = tuple(
            ReportFinding(
                report=report.name if report.scenario is not None else f"report-{index}",
                health=report.overall_health,
                issues=tuple(f"[{i.severity}] {i.description}" for i in report.critical_issues),
            )
            for index, report in enumerate(reports, start=1)
        )

        return ValidationSummaryReport(
            execution_summary=execution_summary,
            classification_trends=trends,
            common_issues=tuple(common_issues),
            recommendations=tuple(_dedupe(recommendations)),
            detailed_findings=findings,
        )

    # ------------------------------------------------------------------
    # Quick check
    # ------------------------------------------------------------------

    def quick_validation_check(self, page_data: Optional[Mapping[str, Any]]) -> QuickCheckResult:
        """Trimmed view over validate_application_consistency; never raises."""
        try:
            report = self.validate_application_consistency(page_data)
            return QuickCheckResult(
                is_healthy=report.is_healthy,
                critical_issue_count=report.summary.critical_issue_count,
                warning_count=report.summary.warning_count,
                quick_summary=_quick_summary(report),
                recommendations=tuple(report.recommendations[:QUICK_CHECK_MAX_RECOMMENDATIONS]),
            )
        except Exception:  # pylint: disable=broad-except
            logger.exception("Quick validation check failed")
            return QuickCheckResult(
                is_healthy=False,
                critical_issue_count=1,
                warning_count=0,
                quick_summary="Validation failed due to system error",
                recommendations=("Check system logs for detailed error information",),
            )


def _page_records(key: Any, records: Any) -> List[Any]:
    """Records of one page; anything but a list or tuple counts as empty."""
    if records is None:
        return []
    if isinstance(records, (list, tuple)):
        return list(records)
    logger.warning("Page %s is not a list of positions (%s); treating as empty", key, type(records).__name__)
    return []


def _common_issues(reports: Sequence[DataConsistencyReport]) -> List[CommonIssue]:
    grouped: Dict[str, Dict[str, Any]] = {}
    for index, report in enumerate(reports):
        for issue in report.critical_issues:
            entry = grouped.setdefault(
                _normalize_issue(issue.description),
                {"issue": issue.description, "frequency": 0, "reports": set(), "severity": issue.severity},
            )
            entry["frequency"] += 1
            entry["reports"].add(index)
            if SEVERITY_LEVELS.index(issue.severity) < SEVERITY_LEVELS.index(entry["severity"]):
                entry["severity"] = issue.severity

    common = [
        CommonIssue(
            issue=entry["issue"],
            frequency=entry["frequency"],
            affected_reports=len(entry["reports"]),
            severity=entry["severity"],
        )
        for entry in grouped.values()
        if entry["frequency"] > 1
    ]
    common.sort(key=lambda c: (-c.frequency, -c.affected_reports))
    return common[:MAX_COMMON_ISSUES]


def _quick_summary(report: DataConsistencyReport) -> str:
    s = report.summary
    if report.overall_health == Health.HEALTHY:
        return f"✅ All {s.total_positions} positions are consistently classified with no critical issues"
    if report.overall_health == Health.WARNING:
        return (
            f"⚠️ {s.inconsistent_positions} of {s.total_positions} positions have issues "
            f"({s.warning_count} warnings)"
        )
    return (
        f"❌ Critical data consistency issues found: {s.critical_issue_count} critical issues "
        f"affecting {s.inconsistent_positions} positions"
    )


__all__ = [
    "DataConsistencyValidator",
    "DEFAULT_RECOMMENDATION",
    "distribution_percentages",
    "determine_health",
]
