"""Issue check registry and runner.

This module orchestrates issue checks:
- ALL_CHECKS: List of all available issue check instances
- collect_issues(): Executes applicable checks and returns their issues
- print_report(): Displays a data consistency report to console
"""

from __future__ import annotations

from typing import List

from .checks import ValidationContext
from .checks.aggregation import AggregationCheck
from .checks.classification_consistency import ClassificationConsistencyCheck
from .checks.duplicate_positions import DuplicatePositionsCheck
from .checks.invalid_positions import InvalidPositionsCheck
from .checks.scenario_expectations import ScenarioExpectationsCheck
from .reports import CriticalIssue, DataConsistencyReport


# Registry of all available issue checks
# Order is the order issues appear in reports
ALL_CHECKS = [
    # Cross-source checks
    ClassificationConsistencyCheck(),
    AggregationCheck(),
    # Data quality checks
    DuplicatePositionsCheck(),
    InvalidPositionsCheck(),
    # Scenario checks
    ScenarioExpectationsCheck(),
]


def collect_issues(context: ValidationContext) -> List[CriticalIssue]:
    """Run all applicable checks against a validation context.

    Args:
        context: Results and inputs of one validation run.

    Returns:
        Issues of all applicable checks, in ALL_CHECKS order.
    """
    issues: List[CriticalIssue] = []
    for check in ALL_CHECKS:
        if check.applies_to(context):
            issues.extend(check.run(context))
    return issues


def print_report(report: DataConsistencyReport) -> None:
    """Print a data consistency report to console.

    Displays a summary followed by details of all issues.

    Args:
        report: DataConsistencyReport to display.

    Examples:
        >>> print_report(validator.validate_application_consistency(page_data))
        Data Consistency Summary:
          Scenario: manual
          Health: critical
          ...

        Issues:
        ❌ classification_inconsistency (critical): Line PM is attached as direct on page1 ...
    """
    print(report.summary_text())
    print()

    if not report.critical_issues:
        print("✅ All positions are consistently classified!")
        return

    print("Issues:")
    for issue in report.critical_issues:
        icon = "❌" if issue.is_critical else "⚠️"
        print(f"{icon} {issue.type.value} ({issue.severity}): {issue.description}")

        if issue.affected_positions:
            print(f"   - Positions: {', '.join(issue.affected_positions)}")
        if issue.recommendation:
            print(f"   - {issue.recommendation}")
