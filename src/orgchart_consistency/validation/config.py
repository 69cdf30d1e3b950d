"""Validation configuration constants.

This module centralizes all validation thresholds and severity rules.
Adjust these constants to tune validation behavior based on real data patterns.

Severity Levels:
    - "critical": Classification or placement errors; the report is critical
    - "high": Significant issues that warrant prompt review
    - "medium": Data quality issues that may be legitimate edge cases
    - "low": Informational

Scopes:
    - "group": A (department, level, subtitle) group of positions
    - "position": A single position
    - "total": A page total (count drift)
    - "minor_total": A page total whose drift is within MINOR_COUNT_DRIFT_THRESHOLD
    - "source": A single page/source collection
    - "scenario": An automated validation scenario
"""

from __future__ import annotations

from typing import Optional

from orgchart_consistency.core.utils import normalize_text

# ============================================================================
# THRESHOLDS
# ============================================================================

# Aggregation totals may drift by this many positions before it is critical
MINOR_COUNT_DRIFT_THRESHOLD = 1

# Recommendations kept per report and per quick check
MAX_RECOMMENDATIONS = 5
QUICK_CHECK_MAX_RECOMMENDATIONS = 3

# Decimal places of distribution percentages (largest remainder rounding)
PERCENTAGE_DECIMALS = 1

# Common issues kept in a summary report
MAX_COMMON_ISSUES = 10

# Page keys ending with these (normalized) suffixes are aggregation pages
DIRECT_AGGREGATION_SUFFIXES = ("direct",)
INDIRECT_AGGREGATION_SUFFIXES = ("indirect", "indirectoh", "indirectandoh")


# ============================================================================
# SEVERITY RULES
# ============================================================================
# Format: {check_id: {scope: severity}}

CLASSIFICATION_INCONSISTENCY_SEVERITY = {
    "group": "critical",
}

# Misplaced positions are always critical; small count drift is only a warning
AGGREGATION_MISMATCH_SEVERITY = {
    "position": "critical",
    "total": "critical",
    "minor_total": "medium",
}

DUPLICATE_POSITIONS_SEVERITY = {
    "source": "medium",
}

# Structural problems in one position are a warning; a scenario that could
# not be validated at all is critical
INVALID_DATA_SEVERITY = {
    "position": "medium",
    "scenario": "critical",
}

SCENARIO_EXPECTATION_SEVERITY = {
    "scenario": "medium",
}


# ============================================================================
# SEVERITY MAP (for get_severity helper)
# ============================================================================

_SEVERITY_MAP = {
    "classification_inconsistency": CLASSIFICATION_INCONSISTENCY_SEVERITY,
    "aggregation_mismatch": AGGREGATION_MISMATCH_SEVERITY,
    "duplicate_positions": DUPLICATE_POSITIONS_SEVERITY,
    "invalid_data": INVALID_DATA_SEVERITY,
    "scenario_expectation": SCENARIO_EXPECTATION_SEVERITY,
}

SEVERITY_LEVELS = ("critical", "high", "medium", "low")
WARNING_SEVERITIES = ("high", "medium", "low")


# ============================================================================
# HELPER FUNCTIONS
# ============================================================================


def get_severity(check_id: str, scope: str) -> str:
    """Get severity level for a specific check and scope.

    Args:
        check_id: Issue type identifier (e.g., "aggregation_mismatch").
        scope: Scope of the finding ("group", "position", "total", ...).

    Returns:
        Severity level: "critical", "high", "medium" or "low".

    Raises:
        ValueError: If check_id is unknown or scope is invalid for the check.

    Examples:
        >>> get_severity("aggregation_mismatch", "position")
        'critical'
        >>> get_severity("aggregation_mismatch", "minor_total")
        'medium'
    """
    if check_id not in _SEVERITY_MAP:
        raise ValueError(f"Unknown check_id: {check_id}")

    severity_config = _SEVERITY_MAP[check_id]

    if scope not in severity_config:
        raise ValueError(
            f"Invalid scope '{scope}' for check '{check_id}'. "
            f"Valid scopes: {sorted(severity_config.keys())}"
        )

    return severity_config[scope]


def get_drift_scope(drift: int) -> str:
    """Scope used for an aggregation count drift of the given size.

    Examples:
        >>> get_drift_scope(1)
        'minor_total'
        >>> get_drift_scope(-4)
        'total'
    """
    return "minor_total" if abs(drift) <= MINOR_COUNT_DRIFT_THRESHOLD else "total"


def aggregation_bucket(page_key: str) -> Optional[str]:
    """Return "direct" or "indirect" for aggregation page keys, else None.

    Keys are compared normalized, so "page4Direct", "page4-direct" and
    "page4_direct" are all direct aggregation pages.

    Examples:
        >>> aggregation_bucket("page4Indirect")
        'indirect'
        >>> aggregation_bucket("page4-direct")
        'direct'
        >>> aggregation_bucket("page1") is None
        True
    """
    key = normalize_text(page_key)
    if key.endswith(INDIRECT_AGGREGATION_SUFFIXES):
        return "indirect"
    if key.endswith(DIRECT_AGGREGATION_SUFFIXES):
        return "direct"
    return None
