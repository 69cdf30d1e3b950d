"""Position classification.

- **Rules**: the ordered decision table (see classification/rules.py)
- **Engine**: ClassificationEngine, which evaluates the table
- **Models**: per-position and batch results of ``classify_batch``

Usage:
    >>> from orgchart_consistency.classification import ClassificationEngine
    >>> ClassificationEngine().classify("Plant Production", "TM")
    <Classification.DIRECT: 'direct'>
"""

from __future__ import annotations

from .engine import ClassificationEngine
from .models import BatchClassificationResult, BatchClassificationSummary, ClassificationResult
from .rules import CLASSIFICATION_RULES, ClassificationRule

__all__ = [
    "ClassificationEngine",
    "ClassificationRule",
    "CLASSIFICATION_RULES",
    "ClassificationResult",
    "BatchClassificationSummary",
    "BatchClassificationResult",
]
