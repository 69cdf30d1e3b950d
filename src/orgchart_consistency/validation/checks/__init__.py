"""Validation checks base interface.

This module defines the protocol (interface) that all issue checks must implement,
plus the context object they read from. Each check turns one aspect of a
validation run (cross-source inconsistencies, aggregation mismatches, duplicate
ids, ...) into CriticalIssue entries for the DataConsistencyReport.

To implement a new check:

1. Create a new file in this directory (e.g., `my_check.py`)
2. Define a class that implements the IssueCheck protocol
3. Implement the required methods: `run()` and `applies_to()`
4. Add the check to the ALL_CHECKS list in registry.py

Example:
    ```python
    # checks/my_check.py
    from typing import List
    from orgchart_consistency.core.enums import IssueType
    from ..config import get_severity
    from ..reports import CriticalIssue
    from . import ValidationContext

    class MyCheck:
        def run(self, context: ValidationContext) -> List[CriticalIssue]:
            # Detection logic here
            return [CriticalIssue(...)]

        def applies_to(self, context: ValidationContext) -> bool:
            return True  # Applies to every run
    ```
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Protocol, Tuple

from orgchart_consistency.core.schemas import Position
from ..engine import ValidationEngine
from ..models import AggregationResult, ConsistencyReport
from ..reports import CriticalIssue
from ..scenarios import ValidationScenario


@dataclass(frozen=True)
class ValidationContext:
    """Everything a check may look at for one validation run.

    Attributes:
        engine: Engine holding the registered detail pages.
        consistency: Result of ``engine.validate_consistency()``.
        aggregation: Result of ``engine.validate_aggregation()``, if run.
        page_data: Registered detail pages, coerced to positions.
        aggregation_pages: Page keys of the (direct, indirect) aggregation pages.
        scenario: Scenario being validated, if any.
    """

    engine: ValidationEngine
    consistency: ConsistencyReport
    aggregation: Optional[AggregationResult] = None
    page_data: Dict[str, List[Position]] = field(default_factory=dict)
    aggregation_pages: Tuple[str, str] = ("direct", "indirect")
    scenario: Optional[ValidationScenario] = None


class IssueCheck(Protocol):
    """Protocol defining the interface for issue checks.

    All checks must implement this interface. Use duck typing (Protocol) for
    flexibility - no need to inherit from a base class.

    Methods:
        run: Inspect the context and return the issues found.
        applies_to: Determine if the check is applicable to a run.
    """

    def run(self, context: ValidationContext) -> List[CriticalIssue]:
        """Run the check.

        Args:
            context: Results and inputs of the validation run.

        Returns:
            List of CriticalIssue objects. Return an empty list if nothing is found.

        Examples:
            >>> issues = check.run(context)
            >>> if not issues:
            ...     print("No issues!")
        """
        ...

    def applies_to(self, context: ValidationContext) -> bool:
        """Check if this check applies to a validation run.

        Some checks only apply to specific runs:
        - Aggregation: only when both aggregation pages were supplied
        - Scenario expectations: only for scenarios with pinned counts

        Args:
            context: Results and inputs of the validation run.

        Returns:
            True if the check should run, False to skip.
        """
        ...


__all__ = ["IssueCheck", "ValidationContext"]
