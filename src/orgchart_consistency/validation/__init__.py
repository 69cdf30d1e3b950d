"""Validation system for org chart classification consistency.

This module provides the validation framework built on the classification rules:

- **Engine**: ValidationEngine - per-source registry, consistency, aggregation
- **Models**: ConsistencyReport, AggregationResult, DetailedReport - engine results
- **Checks**: Individual issue check implementations (see validation/checks/)
- **Config**: Thresholds and severity rules (import from .config)
- **Registry**: collect_issues(), print_report() - check orchestration
- **Consistency**: DataConsistencyValidator - application-level reports
- **Scenarios**: ValidationScenario, MockDataGenerator, ScenarioRegistry

Public API:
    ValidationEngine: Register page positions and cross-check them
    DataConsistencyValidator: Validate all pages and build reports
    DataConsistencyReport: Full report with distribution, issues and health
    ValidationScenario: Named configuration for automated validation
    print_report: Display a report to console

Usage:
    >>> from orgchart_consistency.validation import DataConsistencyValidator, print_report
    >>> validator = DataConsistencyValidator()
    >>> report = validator.validate_application_consistency({"page1": positions})
    >>> print_report(report)

For implementation details:
    - See validation/checks/__init__.py for check interface conventions
    - See validation/config.py for threshold and severity configuration
    - See validation/registry.py for check orchestration
"""

from __future__ import annotations

from orgchart_consistency.core.enums import Classification, Health

from .consistency import DataConsistencyValidator
from .engine import ValidationEngine
from .models import (
    AggregationMismatch,
    AggregationResult,
    ConsistencyReport,
    DetailedReport,
    Inconsistency,
    PositionValidationResult,
)
from .registry import collect_issues, print_report
from .reports import (
    CriticalIssue,
    DataConsistencyReport,
    QuickCheckResult,
    ScenarioRunResult,
    ValidationSummaryReport,
)
from .scenarios import DEFAULT_SCENARIOS, MockDataGenerator, ScenarioRegistry, ValidationScenario

__all__ = [
    # Engines
    "ValidationEngine",
    "DataConsistencyValidator",
    # Engine results
    "PositionValidationResult",
    "Inconsistency",
    "ConsistencyReport",
    "AggregationMismatch",
    "AggregationResult",
    "DetailedReport",
    # Reports
    "CriticalIssue",
    "DataConsistencyReport",
    "ScenarioRunResult",
    "ValidationSummaryReport",
    "QuickCheckResult",
    # Scenarios
    "ValidationScenario",
    "MockDataGenerator",
    "ScenarioRegistry",
    "DEFAULT_SCENARIOS",
    # Runner functions
    "collect_issues",
    "print_report",
    # Enums
    "Classification",
    "Health",
]
