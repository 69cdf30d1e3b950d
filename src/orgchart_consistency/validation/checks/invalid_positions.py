"""Structural position check.

Positions without an id, department or valid level are still classified (the
fallback rule catches them) but the page rendering them is broken.
"""

from __future__ import annotations

from typing import List

from orgchart_consistency.core.enums import IssueType
from orgchart_consistency.core.utils import position_label
from ..config import get_severity
from ..reports import CriticalIssue
from . import ValidationContext


class InvalidPositionsCheck:
    """Report positions that fail ``ValidationEngine.validate_position``."""

    def run(self, context: ValidationContext) -> List[CriticalIssue]:
        issues = []
        for source, positions in context.page_data.items():
            for position in positions:
                result = context.engine.validate_position(position)
                if result.is_valid:
                    continue
                label = position_label(position.department, position.level, position.subtitle)
                issues.append(
                    CriticalIssue(
                        type=IssueType.INVALID_DATA,
                        severity=get_severity("invalid_data", "position"),
                        description=f"Invalid position {label} in {source}: {'; '.join(result.issues)}",
                        affected_positions=(position.id,) if position.id else (),
                        recommendation="Complete the missing position fields on the source page",
                        pages=(source,),
                    )
                )
        return issues

    def applies_to(self, context: ValidationContext) -> bool:
        """Check applies to every run."""
        return True
