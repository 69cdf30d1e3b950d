"""Classification engine.

Maps a position's descriptive fields to exactly one :class:`Classification` by
walking the ordered decision table in :mod:`.rules`. The engine holds no state
beyond its rule table and never raises for unrecognized input: the table ends
with a catch-all fallback rule.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Iterable, Mapping, Optional, Sequence, Union

from orgchart_consistency.core.enums import Classification
from orgchart_consistency.core.schemas import Position, coerce_positions
from orgchart_consistency.core.utils import normalize_department, normalize_text
from .models import BatchClassificationResult, BatchClassificationSummary, ClassificationResult
from .rules import (
    CLASSIFICATION_RULES,
    KNOWN_DEPARTMENT_KEYS,
    ClassificationRule,
    RuleInput,
    is_fallback_rule,
    is_known_level,
)

logger = logging.getLogger(__name__)


def _level_text(level: Any) -> str:
    if isinstance(level, Enum):
        level = level.value
    return str(level or "").strip().upper()


class ClassificationEngine:
    """Classify positions with an ordered rule table.

    Args:
        rules: Decision table to evaluate, first match wins. Defaults to
            ``CLASSIFICATION_RULES``. The last rule should always match.

    Examples:
        >>> engine = ClassificationEngine()
        >>> engine.classify("CE", "TM", subtitle="Mixing")
        <Classification.DIRECT: 'direct'>
        >>> engine.classify("Line", "GL")
        <Classification.INDIRECT: 'indirect'>
    """

    def __init__(self, rules: Optional[Sequence[ClassificationRule]] = None) -> None:
        self._rules = tuple(rules) if rules is not None else CLASSIFICATION_RULES
        if not self._rules:
            raise ValueError("ClassificationEngine requires at least one rule")

    @property
    def rules(self) -> Sequence[ClassificationRule]:
        """The decision table, in precedence order."""
        return self._rules

    def explain(
        self,
        department: Optional[str],
        level: Any,
        process_type: Optional[str] = None,
        subtitle: Optional[str] = None,
    ) -> ClassificationRule:
        """Return the rule that decides the classification of the given fields.

        Args:
            department: Department name (any spelling, aliases accepted).
            level: Level string or :class:`Level`.
            process_type: Optional separated process name.
            subtitle: Optional sub-role carrying an exception key.

        Returns:
            The first matching ClassificationRule. When a custom table has no
            matching rule, the last rule of the table is returned.
        """
        rule_input = RuleInput(
            department=normalize_department(department),
            level=_level_text(level),
            process_type=normalize_text(process_type),
            subtitle=normalize_text(subtitle),
        )
        for rule in self._rules:
            if rule.matches(rule_input):
                return rule
        logger.warning(
            "No classification rule matched %s %s; using '%s'",
            department,
            level,
            self._rules[-1].name,
        )
        return self._rules[-1]

    def classify(
        self,
        department: Optional[str],
        level: Any,
        process_type: Optional[str] = None,
        subtitle: Optional[str] = None,
    ) -> Classification:
        """Classify a position described by its fields."""
        return self.explain(department, level, process_type, subtitle).classification

    def classify_position(self, position: Position) -> Classification:
        """Classify a :class:`Position`; its attached classification is ignored."""
        return self.classify(
            position.department, position.level, position.process_type, position.subtitle
        )

    def explain_position(self, position: Position) -> ClassificationRule:
        return self.explain(
            position.department, position.level, position.process_type, position.subtitle
        )

    def classify_with_findings(self, position: Position) -> ClassificationResult:
        """Classify a position and flag what made the decision uncertain.

        Warnings:
            - "Missing department information" / "Missing level information"
            - "Unknown level: <level>"
            - "No specific rules found for department: <department>"
            - "Classification mismatch: expected <x>, got <y>" when the attached
              classification disagrees with the rule table
        """
        rule = self.explain_position(position)
        department = position.department.strip()
        level = _level_text(position.level)

        warnings = []
        if not department:
            warnings.append("Missing department information")
        elif not self.is_known_department(department):
            warnings.append(f"No specific rules found for department: {position.display_department}")
        if not level:
            warnings.append("Missing level information")
        elif not is_known_level(level):
            warnings.append(f"Unknown level: {position.level}")
        if position.classification is not None and position.classification != rule.classification:
            warnings.append(
                f"Classification mismatch: expected {rule.classification.value}, "
                f"got {position.classification.value}"
            )

        return ClassificationResult(
            position=position,
            classification=rule.classification,
            rule=rule,
            used_fallback=is_fallback_rule(rule),
            warnings=tuple(warnings),
        )

    def classify_batch(
        self, positions: Optional[Iterable[Union[Position, Mapping[str, Any]]]]
    ) -> BatchClassificationResult:
        """Classify many positions and count the ones that need attention.

        Args:
            positions: Positions or page records; malformed records are
                coerced and classified by the fallback rules.

        Returns:
            BatchClassificationResult with one result per position, in input
            order, and a summary (total/successful/with_warnings/with_fallback).
        """
        results = tuple(self.classify_with_findings(p) for p in coerce_positions(positions))
        with_warnings = sum(1 for r in results if r.has_warnings)
        summary = BatchClassificationSummary(
            total=len(results),
            successful=len(results) - with_warnings,
            with_warnings=with_warnings,
            with_fallback=sum(1 for r in results if r.used_fallback),
        )
        if summary.with_fallback:
            logger.info(
                "Classified %d positions, %d by fallback rules", summary.total, summary.with_fallback
            )
        return BatchClassificationResult(results=results, summary=summary)

    @staticmethod
    def is_known_department(department: Optional[str]) -> bool:
        """True if the department is named by the rule table."""
        return normalize_department(department) in KNOWN_DEPARTMENT_KEYS


__all__ = ["ClassificationEngine"]
