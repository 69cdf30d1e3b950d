"""Validation data models.

This module defines the data structures produced by the validation engine:
- PositionValidationResult: Structural checks of a single position
- Inconsistency / ConsistencyReport: Cross-source classification agreement
- AggregationMismatch / AggregationResult: Roll-up pages vs the detailed view
- Breakdown / DetailedReport: Per-department and per-level tallies

Classification counts are keyed by the classification value ("direct",
"indirect", "OH") so reports serialize without conversion.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional, Tuple

from orgchart_consistency.core.enums import CLASSIFICATION_ORDER, Classification
from orgchart_consistency.core.schemas import Position


def empty_counts() -> Dict[str, int]:
    """Zero count per classification, in display order."""
    return {c.value: 0 for c in CLASSIFICATION_ORDER}


@dataclass(frozen=True)
class PositionValidationResult:
    """Outcome of validating a single position.

    Attributes:
        position: The validated position.
        is_valid: True if no structural issues were found.
        expected_classification: Classification computed by the rule table,
            always present even for malformed positions.
        issues: Structural problems (e.g. "Department is required").
        warnings: Non-structural findings (unknown department, attached
            classification disagreeing with the rule table).
    """

    position: Position
    is_valid: bool
    expected_classification: Classification
    issues: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        if self.is_valid == bool(self.issues):
            raise ValueError("is_valid must be True exactly when there are no issues")


@dataclass(frozen=True)
class Inconsistency:
    """Disagreeing classifications for one (department, level, subtitle) group.

    Attributes:
        department: Department display name.
        level: Level of the group.
        subtitle: Subtitle shared by the group, if any.
        expected_classification: Classification computed by the rule table.
        observed_classifications: Distinct observed values (attached value when
            present, otherwise the computed one).
        sources: Page sources contributing positions to the group.
        position_ids: Ids of the positions in the group.
        reason: Human-readable explanation.
    """

    department: str
    level: str
    expected_classification: Classification
    observed_classifications: Tuple[Classification, ...]
    sources: Tuple[str, ...]
    position_ids: Tuple[str, ...]
    reason: str
    subtitle: Optional[str] = None


@dataclass(frozen=True)
class ConsistencySummary:
    total_positions: int
    valid_positions: int
    inconsistent_positions: int
    classification_counts: Dict[str, int]
    pages_covered: Tuple[str, ...]


@dataclass(frozen=True)
class ConsistencyReport:
    """Result of a cross-source consistency validation."""

    is_valid: bool
    summary: ConsistencySummary
    inconsistencies: Tuple[Inconsistency, ...] = ()
    timestamp: datetime = field(default_factory=datetime.now)

    def __post_init__(self) -> None:
        if self.is_valid == bool(self.inconsistencies):
            raise ValueError("is_valid must be True exactly when there are no inconsistencies")

    @classmethod
    def empty(cls) -> "ConsistencyReport":
        return cls(
            is_valid=True,
            summary=ConsistencySummary(
                total_positions=0,
                valid_positions=0,
                inconsistent_positions=0,
                classification_counts=empty_counts(),
                pages_covered=(),
            ),
        )


@dataclass(frozen=True)
class AggregationMismatch:
    """A misplaced position or a total that does not reconcile.

    Page-total mismatches use "ALL" for department and level.
    """

    department: str
    level: str
    reason: str
    position_id: str = ""
    page: str = ""
    actual_classification: Optional[Classification] = None
    detailed_count: int = 0
    aggregated_count: int = 0

    @property
    def is_total(self) -> bool:
        return self.department == "ALL" and self.level == "ALL"

    @property
    def drift(self) -> int:
        return self.aggregated_count - self.detailed_count


@dataclass(frozen=True)
class AggregationResult:
    """Aggregation pages reconciled against the detailed view."""

    is_valid: bool
    direct_page_total: int
    indirect_page_total: int
    detailed_view_total: int
    mismatches: Tuple[AggregationMismatch, ...] = ()

    def __post_init__(self) -> None:
        if self.is_valid == bool(self.mismatches):
            raise ValueError("is_valid must be True exactly when there are no mismatches")

    @property
    def count_drift(self) -> int:
        """Aggregated total minus detailed total (0 when totals reconcile)."""
        return self.direct_page_total + self.indirect_page_total - self.detailed_view_total


@dataclass(frozen=True)
class Breakdown:
    """Position tally for one department or level."""

    total_positions: int
    classifications: Dict[str, int]
    inconsistencies: int = 0
    issues: Tuple[str, ...] = ()

    @property
    def direct_count(self) -> int:
        return self.classifications.get(Classification.DIRECT.value, 0)

    @property
    def indirect_count(self) -> int:
        return self.classifications.get(Classification.INDIRECT.value, 0)

    @property
    def oh_count(self) -> int:
        return self.classifications.get(Classification.OH.value, 0)


@dataclass(frozen=True)
class DetailedReport:
    department_analysis: Dict[str, Breakdown]
    level_analysis: Dict[str, Breakdown]
