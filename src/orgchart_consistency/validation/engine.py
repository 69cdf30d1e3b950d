"""Validation engine for cross-source classification consistency.

The engine keeps a registry of positions per source (page) for one validation
session, computes the expected classification of every position with a
:class:`ClassificationEngine`, and reports:

- structural problems of single positions (``validate_position``)
- disagreement between sources for the same position group
  (``validate_consistency``)
- aggregation pages that do not reconcile with the detailed view
  (``validate_aggregation``)
- per-department and per-level tallies (``generate_detailed_report``)

Malformed positions never raise; they are classified by the fallback rule,
counted, and surfaced through issue lists.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Tuple, Union

import pandas as pd

from orgchart_consistency.classification.engine import ClassificationEngine
from orgchart_consistency.classification.rules import is_known_level
from orgchart_consistency.core.enums import CLASSIFICATION_ORDER, Classification
from orgchart_consistency.core.schemas import Position, coerce_positions
from orgchart_consistency.core.utils import normalize_department, normalize_text, position_label
from .models import (
    AggregationMismatch,
    AggregationResult,
    Breakdown,
    ConsistencyReport,
    ConsistencySummary,
    DetailedReport,
    Inconsistency,
    PositionValidationResult,
    empty_counts,
)

logger = logging.getLogger(__name__)

PositionLike = Union[Position, Mapping[str, Any]]

GroupKey = Tuple[str, str, str]


class ValidationEngine:
    """Registry of positions per source plus the checks run over it.

    Args:
        classification_engine: Engine computing expected classifications.
            A default ClassificationEngine is created when omitted.

    Examples:
        >>> engine = ValidationEngine()
        >>> engine.register_positions("page1", [
        ...     {"id": "ce-mixing", "department": "CE", "level": "TM", "subtitle": "Mixing"},
        ... ])
        >>> engine.validate_consistency().is_valid
        True
    """

    def __init__(self, classification_engine: Optional[ClassificationEngine] = None) -> None:
        self.classification_engine = classification_engine or ClassificationEngine()
        self._positions: Dict[str, Tuple[Position, ...]] = {}

    # ------------------------------------------------------------------
    # Registry
    # ------------------------------------------------------------------

    def register_positions(self, source: str, positions: Optional[Iterable[PositionLike]]) -> None:
        """Register (or replace) the positions of one source."""
        self._positions[source] = tuple(coerce_positions(positions, source=source))
        logger.debug("Registered %d positions for %s", len(self._positions[source]), source)

    def clear_positions(self) -> None:
        """Forget every registered source."""
        self._positions.clear()

    @property
    def sources(self) -> Tuple[str, ...]:
        """Registered sources in registration order."""
        return tuple(self._positions)

    def iter_positions(self) -> Iterator[Tuple[str, Position]]:
        """Yield ``(source, position)`` for every registered position."""
        for source, positions in self._positions.items():
            for position in positions:
                yield source, position

    def get_positions(self, source: Optional[str] = None) -> List[Position]:
        """Registered positions of one source, or of all sources."""
        if source is not None:
            return list(self._positions.get(source, ()))
        return [position for _, position in self.iter_positions()]

    # ------------------------------------------------------------------
    # Single position
    # ------------------------------------------------------------------

    def validate_position(self, position: PositionLike) -> PositionValidationResult:
        """Run structural checks on one position.

        Issues (each makes the position invalid):
            - "Position id is required"
            - "Department is required"
            - "Level is required" / "Unknown level: <level>"

        Warnings: unknown department, and an attached classification that
        differs from the rule table.

        The expected classification is always computed, so malformed
        positions can still be bucketed.
        """
        position = Position.from_record(position)
        issues: List[str] = []
        warnings: List[str] = []

        if not position.id.strip():
            issues.append("Position id is required")
        if not position.department.strip():
            issues.append("Department is required")
        if not position.level:
            issues.append("Level is required")
        elif not is_known_level(position.level.upper()):
            issues.append(f"Unknown level: {position.level}")

        expected = self.classification_engine.classify_position(position)

        if position.department.strip() and not self.classification_engine.is_known_department(
            position.department
        ):
            warnings.append(f"Unknown department: {position.department}")
        if position.classification is not None and position.classification != expected:
            warnings.append(
                f"Classification mismatch: expected {expected.value}, "
                f"got {position.classification.value}"
            )

        if issues or warnings:
            logger.debug(
                "Position %r (%s): issues=%s warnings=%s",
                position.id,
                position.source,
                issues,
                warnings,
            )

        return PositionValidationResult(
            position=position,
            is_valid=not issues,
            expected_classification=expected,
            issues=issues,
            warnings=warnings,
        )

    # ------------------------------------------------------------------
    # Cross-source consistency
    # ------------------------------------------------------------------

    def validate_consistency(self) -> ConsistencyReport:
        """Check that every position group is classified the same everywhere.

        Positions are grouped by normalized (department, level, subtitle). The
        observed value of a position is its attached classification when
        present, otherwise the computed one. A group is inconsistent if its
        observed values disagree or if any attached value differs from the
        computed classification.

        Returns:
            ConsistencyReport; ``classification_counts`` tallies computed
            classifications of all registered positions.
        """
        counts = empty_counts()
        groups: Dict[GroupKey, List[Tuple[str, Position, Classification]]] = {}
        total = 0

        for source, position in self.iter_positions():
            expected = self.classification_engine.classify_position(position)
            counts[expected.value] += 1
            total += 1
            groups.setdefault(self._group_key(position), []).append((source, position, expected))

        inconsistencies = []
        for members in groups.values():
            inconsistency = self._check_group(members)
            if inconsistency is not None:
                inconsistencies.append(inconsistency)

        inconsistent_positions = sum(len(i.position_ids) for i in inconsistencies)
        summary = ConsistencySummary(
            total_positions=total,
            valid_positions=total - inconsistent_positions,
            inconsistent_positions=inconsistent_positions,
            classification_counts=counts,
            pages_covered=self.sources,
        )

        if inconsistencies:
            logger.warning(
                "Consistency check found %d inconsistent groups across %d positions",
                len(inconsistencies),
                total,
            )
        else:
            logger.info("Consistency check passed for %d positions", total)

        return ConsistencyReport(
            is_valid=not inconsistencies,
            summary=summary,
            inconsistencies=tuple(inconsistencies),
        )

    @staticmethod
    def _group_key(position: Position) -> GroupKey:
        return (
            normalize_department(position.department),
            position.level.upper(),
            normalize_text(position.subtitle),
        )

    def _check_group(
        self, members: List[Tuple[str, Position, Classification]]
    ) -> Optional[Inconsistency]:
        """Return an Inconsistency for the group, or None if it agrees."""
        _, first, expected = members[0]

        observed = {(p.classification or computed) for _, p, computed in members}
        misattached = [
            (source, p, computed)
            for source, p, computed in members
            if p.classification is not None and p.classification != computed
        ]
        if len(observed) <= 1 and not misattached:
            return None

        sources = tuple(dict.fromkeys(source for source, _, _ in members))
        label = position_label(first.department, first.level, first.subtitle)
        if misattached:
            source, position, computed = misattached[0]
            rule = self.classification_engine.explain_position(position)
            reason = (
                f"{label} is attached as {position.classification.value} on {source} "
                f"but classifies as {computed.value} ({rule.reason})"
            )
        else:
            reason = (
                f"{label} appears with different classifications across pages: "
                f"{', '.join(sources)}"
            )

        return Inconsistency(
            department=first.display_department,
            level=first.level,
            subtitle=first.subtitle,
            expected_classification=expected,
            observed_classifications=tuple(c for c in CLASSIFICATION_ORDER if c in observed),
            sources=sources,
            position_ids=tuple(p.id for _, p, _ in members),
            reason=reason,
        )

    # ------------------------------------------------------------------
    # Aggregation pages
    # ------------------------------------------------------------------

    def validate_aggregation(
        self,
        direct_positions: Optional[Iterable[PositionLike]],
        indirect_positions: Optional[Iterable[PositionLike]],
        detailed_positions: Optional[Iterable[PositionLike]],
    ) -> AggregationResult:
        """Reconcile the two aggregation pages with the detailed view.

        Verifies:
        1. direct page total + indirect page total == detailed view total
        2. every direct page position classifies as direct
        3. every indirect page position classifies as indirect or OH
        4. when no position is misplaced, each page total matches the
           detailed count of its bucket

        Args:
            direct_positions: Positions shown on the direct aggregation page.
            indirect_positions: Positions shown on the indirect+OH page.
            detailed_positions: Union of all detailed page positions.

        Returns:
            AggregationResult with one mismatch per violation.
        """
        direct = coerce_positions(direct_positions, source="direct")
        indirect = coerce_positions(indirect_positions, source="indirect")
        detailed = coerce_positions(detailed_positions, source="detailed")

        mismatches: List[AggregationMismatch] = []
        detailed_total = len(detailed)
        aggregated_total = len(direct) + len(indirect)

        if aggregated_total != detailed_total:
            mismatches.append(
                AggregationMismatch(
                    department="ALL",
                    level="ALL",
                    reason=(
                        f"Total aggregation mismatch: detailed view has {detailed_total} "
                        f"positions, aggregation pages have {aggregated_total}"
                    ),
                    detailed_count=detailed_total,
                    aggregated_count=aggregated_total,
                )
            )

        misplaced = self._misplaced(direct, "direct") + self._misplaced(indirect, "indirect")
        mismatches.extend(misplaced)

        if not misplaced:
            counts = self._count(detailed)
            expected_direct = counts[Classification.DIRECT.value]
            expected_indirect = counts[Classification.INDIRECT.value] + counts[Classification.OH.value]
            for page, actual, expected in (
                ("direct", len(direct), expected_direct),
                ("indirect", len(indirect), expected_indirect),
            ):
                if actual != expected:
                    mismatches.append(
                        AggregationMismatch(
                            department="ALL",
                            level="ALL",
                            page=page,
                            reason=(
                                f"{page.capitalize()} aggregation page has {actual} positions, "
                                f"detailed view has {expected}"
                            ),
                            detailed_count=expected,
                            aggregated_count=actual,
                        )
                    )

        if mismatches:
            logger.warning("Aggregation check found %d mismatches", len(mismatches))

        return AggregationResult(
            is_valid=not mismatches,
            direct_page_total=len(direct),
            indirect_page_total=len(indirect),
            detailed_view_total=detailed_total,
            mismatches=tuple(mismatches),
        )

    def _misplaced(self, positions: List[Position], page: str) -> List[AggregationMismatch]:
        mismatches = []
        for position in positions:
            rule = self.classification_engine.explain_position(position)
            actual = rule.classification
            if page == "direct":
                misplaced = actual != Classification.DIRECT
            else:
                misplaced = actual == Classification.DIRECT
            if not misplaced:
                continue
            mismatches.append(
                AggregationMismatch(
                    department=position.display_department,
                    level=position.level,
                    position_id=position.id,
                    page=page,
                    actual_classification=actual,
                    reason=(
                        f"{position_label(position.department, position.level, position.subtitle)} "
                        f"found in {page} page but classifies as {actual.value}: {rule.reason}"
                    ),
                    detailed_count=0,
                    aggregated_count=1,
                )
            )
        return mismatches

    def _count(self, positions: Iterable[Position]) -> Dict[str, int]:
        counts = empty_counts()
        for position in positions:
            counts[self.classification_engine.classify_position(position).value] += 1
        return counts

    # ------------------------------------------------------------------
    # Breakdowns
    # ------------------------------------------------------------------

    def generate_detailed_report(self) -> DetailedReport:
        """Tally registered positions per department and per level.

        Departments are grouped by their normalized name and labelled with the
        first spelling seen. Levels are upper-cased. Empty department or level
        values are labelled "Unknown".
        """
        rows = []
        for _, position in self.iter_positions():
            rows.append(
                {
                    "department_key": normalize_department(position.department),
                    "department": position.display_department or "Unknown",
                    "level": position.level.strip().upper() or "Unknown",
                    "classification": self.classification_engine.classify_position(position).value,
                }
            )
        if not rows:
            return DetailedReport(department_analysis={}, level_analysis={})

        df = pd.DataFrame(rows)
        labels = df.groupby("department_key", sort=False)["department"].first()
        df["department"] = df["department_key"].map(labels)

        return DetailedReport(
            department_analysis=_breakdowns(df, "department"),
            level_analysis=_breakdowns(df, "level"),
        )


def _breakdowns(df: pd.DataFrame, column: str) -> Dict[str, Breakdown]:
    """Cross-tabulate ``column`` against classification, first-seen order."""
    categories = [c.value for c in CLASSIFICATION_ORDER]
    table = (
        pd.crosstab(df[column], df["classification"])
        .reindex(columns=categories, fill_value=0)
        .reindex(df[column].drop_duplicates())
    )
    return {
        str(key): Breakdown(
            total_positions=int(row.sum()),
            classifications={category: int(row[category]) for category in categories},
        )
        for key, row in table.iterrows()
    }


__all__ = ["ValidationEngine"]
