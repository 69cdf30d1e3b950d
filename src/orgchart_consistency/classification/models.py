"""Classification result models.

- ClassificationResult: One position with its deciding rule and findings
- BatchClassificationSummary / BatchClassificationResult: Outcome of
  ``ClassificationEngine.classify_batch``
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Tuple

from orgchart_consistency.core.enums import Classification
from orgchart_consistency.core.schemas import Position
from .rules import ClassificationRule


@dataclass(frozen=True)
class ClassificationResult:
    """Classification of a single position.

    Attributes:
        position: The classified position.
        classification: Category decided by ``rule``.
        rule: The decision table row that matched.
        used_fallback: True if the position was only classified by one of the
            fallback rules (missing/unknown department or unknown level).
        warnings: Findings worth flagging, e.g. "Missing department information".
    """

    position: Position
    classification: Classification
    rule: ClassificationRule
    used_fallback: bool = False
    warnings: Tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if self.classification != self.rule.classification:
            raise ValueError(
                f"classification {self.classification.value} does not match rule {self.rule.name}"
            )

    @property
    def has_warnings(self) -> bool:
        return bool(self.warnings)

    def to_dict(self) -> Dict[str, object]:
        return {
            "position_id": self.position.id,
            "classification": self.classification.value,
            "rule": self.rule.name,
            "used_fallback": self.used_fallback,
            "warnings": list(self.warnings),
        }


@dataclass(frozen=True)
class BatchClassificationSummary:
    """Counts over a batch; ``successful`` positions raised no warning."""

    total: int = 0
    successful: int = 0
    with_warnings: int = 0
    with_fallback: int = 0

    def __post_init__(self) -> None:
        if self.successful + self.with_warnings != self.total:
            raise ValueError("successful and with_warnings must add up to total")
        if not 0 <= self.with_fallback <= self.total:
            raise ValueError("with_fallback must be between 0 and total")


@dataclass(frozen=True)
class BatchClassificationResult:
    results: Tuple[ClassificationResult, ...]
    summary: BatchClassificationSummary

    @property
    def fallback_results(self) -> Tuple[ClassificationResult, ...]:
        return tuple(r for r in self.results if r.used_fallback)

    def to_dict(self) -> Dict[str, object]:
        return {
            "results": [r.to_dict() for r in self.results],
            "summary": {
                "total": self.summary.total,
                "successful": self.summary.successful,
                "with_warnings": self.summary.with_warnings,
                "with_fallback": self.summary.with_fallback,
            },
        }


__all__ = ["ClassificationResult", "BatchClassificationSummary", "BatchClassificationResult"]
