"""Scenario expected counts check."""

from __future__ import annotations

from typing import List

from orgchart_consistency.core.enums import IssueType
from ..config import get_severity
from ..reports import CriticalIssue
from . import ValidationContext


class ScenarioExpectationsCheck:
    """Compare a scenario's pinned counts with the computed distribution."""

    def run(self, context: ValidationContext) -> List[CriticalIssue]:
        issues = []
        scenario = context.scenario
        observed = context.consistency.summary.classification_counts
        for classification, expected in scenario.expected_counts.items():
            actual = observed.get(classification, 0)
            if actual == expected:
                continue
            issues.append(
                CriticalIssue(
                    type=IssueType.SCENARIO_EXPECTATION,
                    severity=get_severity("scenario_expectation", "scenario"),
                    description=(
                        f"Scenario {scenario.name} expected {expected} {classification} "
                        f"positions, found {actual}"
                    ),
                    recommendation=(
                        f"Update the expected {classification} count of scenario "
                        f"{scenario.name} or review the rule table"
                    ),
                    pages=context.consistency.summary.pages_covered,
                )
            )
        return issues

    def applies_to(self, context: ValidationContext) -> bool:
        """Check applies only to scenarios with pinned counts."""
        return context.scenario is not None and bool(context.scenario.expected_counts)
