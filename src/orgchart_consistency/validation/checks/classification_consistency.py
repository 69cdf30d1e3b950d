"""Cross-source classification consistency check.

A position group classified differently on two pages, or attached with a value
the rule table disagrees with, makes every downstream total unreliable.
"""

from __future__ import annotations

from typing import List

from orgchart_consistency.core.enums import IssueType
from orgchart_consistency.core.utils import position_label
from ..config import get_severity
from ..reports import CriticalIssue
from . import ValidationContext


class ClassificationConsistencyCheck:
    """Report one issue per inconsistent (department, level, subtitle) group."""

    def run(self, context: ValidationContext) -> List[CriticalIssue]:
        issues = []
        for inconsistency in context.consistency.inconsistencies:
            label = position_label(inconsistency.department, inconsistency.level, inconsistency.subtitle)
            issues.append(
                CriticalIssue(
                    type=IssueType.CLASSIFICATION_INCONSISTENCY,
                    severity=get_severity("classification_inconsistency", "group"),
                    description=inconsistency.reason,
                    affected_positions=inconsistency.position_ids,
                    recommendation=(
                        f"Ensure {label} is consistently classified as "
                        f"{inconsistency.expected_classification.value} across all pages"
                    ),
                    pages=inconsistency.sources,
                )
            )
        return issues

    def applies_to(self, context: ValidationContext) -> bool:
        """Check applies to every run."""
        return True
