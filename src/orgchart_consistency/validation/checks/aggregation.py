"""Aggregation page reconciliation check.

Misplaced positions are always critical. Page totals that drift by at most
MINOR_COUNT_DRIFT_THRESHOLD positions are reported with a lower severity so a
single missing box does not mark the whole chart as broken.
"""

from __future__ import annotations

from typing import List

from orgchart_consistency.core.enums import Classification, IssueType
from ..config import get_drift_scope, get_severity
from ..reports import CriticalIssue
from . import ValidationContext


class AggregationCheck:
    """Turn aggregation mismatches into issues."""

    def run(self, context: ValidationContext) -> List[CriticalIssue]:
        """Report misplaced positions and page totals that do not reconcile.

        Args:
            context: Validation run with an aggregation result.

        Returns:
            One CriticalIssue per aggregation mismatch.
        """
        issues = []
        direct_page, indirect_page = context.aggregation_pages

        for mismatch in context.aggregation.mismatches:
            if mismatch.position_id:
                scope = "position"
                target = (
                    direct_page
                    if mismatch.actual_classification == Classification.DIRECT
                    else indirect_page
                )
                recommendation = f"Move {mismatch.department} {mismatch.level} to {target}"
                pages = (direct_page if mismatch.page == "direct" else indirect_page,)
                affected = (mismatch.position_id,)
            else:
                scope = get_drift_scope(mismatch.drift)
                recommendation = (
                    "Reconcile aggregation page totals with the detailed view "
                    f"(drift {mismatch.drift:+d})"
                )
                if mismatch.page == "direct":
                    pages = (direct_page,)
                elif mismatch.page == "indirect":
                    pages = (indirect_page,)
                else:
                    pages = (direct_page, indirect_page)
                affected = ()

            issues.append(
                CriticalIssue(
                    type=IssueType.AGGREGATION_MISMATCH,
                    severity=get_severity("aggregation_mismatch", scope),
                    description=mismatch.reason,
                    affected_positions=affected,
                    recommendation=recommendation,
                    pages=pages,
                )
            )
        return issues

    def applies_to(self, context: ValidationContext) -> bool:
        """Check applies only when both aggregation pages were validated."""
        return context.aggregation is not None
