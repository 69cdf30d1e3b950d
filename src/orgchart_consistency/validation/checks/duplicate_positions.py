"""Duplicate position id check.

Ids are unique within one source. The same (department, level) appearing on
several pages is expected and handled by the consistency check instead.
"""

from __future__ import annotations

from collections import Counter
from typing import List

from orgchart_consistency.core.enums import IssueType
from ..config import get_severity
from ..reports import CriticalIssue
from . import ValidationContext


class DuplicatePositionsCheck:
    """Validate that no source lists the same position id twice."""

    def run(self, context: ValidationContext) -> List[CriticalIssue]:
        issues = []
        for source, positions in context.page_data.items():
            counts = Counter(p.id for p in positions if p.id.strip())
            for position_id, count in counts.items():
                if count < 2:
                    continue
                issues.append(
                    CriticalIssue(
                        type=IssueType.DUPLICATE_POSITIONS,
                        severity=get_severity("duplicate_positions", "source"),
                        description=f"Duplicate position id '{position_id}' appears {count} times in {source}",
                        affected_positions=(position_id,),
                        recommendation="Review data source to eliminate duplicate position entries",
                        pages=(source,),
                    )
                )
        return issues

    def applies_to(self, context: ValidationContext) -> bool:
        """Check applies to every run."""
        return True
