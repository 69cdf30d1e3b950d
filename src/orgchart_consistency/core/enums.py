"""Core enumerations used across the package."""

from __future__ import annotations

from enum import Enum


class Classification(str, Enum):
    """Cost category assigned to every position.

    Values are strings to ease serialization and report rendering.
    """

    DIRECT = "direct"
    INDIRECT = "indirect"
    OH = "OH"


class Level(str, Enum):
    """Seniority tiers covered by the classification rules, widest scope first."""

    PM = "PM"
    LM = "LM"
    GL = "GL"
    TL = "TL"
    TM = "TM"


class Health(str, Enum):
    """Overall health of a data consistency report."""

    HEALTHY = "healthy"
    WARNING = "warning"
    CRITICAL = "critical"


class IssueType(str, Enum):
    """Kinds of issues collected into a data consistency report."""

    CLASSIFICATION_INCONSISTENCY = "classification_inconsistency"
    AGGREGATION_MISMATCH = "aggregation_mismatch"
    DUPLICATE_POSITIONS = "duplicate_positions"
    INVALID_DATA = "invalid_data"
    SCENARIO_EXPECTATION = "scenario_expectation"


CLASSIFICATION_ORDER = (Classification.DIRECT, Classification.INDIRECT, Classification.OH)
LEVEL_VALUES = tuple(level.value for level in Level)


__all__ = [
    "Classification",
    "Level",
    "Health",
    "IssueType",
    "CLASSIFICATION_ORDER",
    "LEVEL_VALUES",
]
