"""Validation scenarios and synthetic page data.

A scenario either carries literal ``page_data`` or the parameters used to
synthesize it (``line_count``, ``model_selection``, ``pages``). The
:class:`MockDataGenerator` builds detail pages that mimic the org chart pages
and derives both aggregation pages from them, so a healthy rule table yields a
healthy report for every default scenario.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Sequence, Tuple

import yaml

from orgchart_consistency.classification.engine import ClassificationEngine
from orgchart_consistency.core.enums import Classification
from orgchart_consistency.core.schemas import Position
from orgchart_consistency.core.utils import slugify

logger = logging.getLogger(__name__)

DETAIL_PAGES = ("page1", "page2", "page3", "separated")
DIRECT_AGGREGATION_PAGE = "page4Direct"
INDIRECT_AGGREGATION_PAGE = "page4Indirect"


@dataclass(frozen=True)
class ValidationScenario:
    """A named configuration to validate.

    Attributes:
        name: Unique scenario name.
        description: Free text shown in reports.
        line_count: Number of production lines to synthesize on page1.
        model_selection: Models produced by each line (one Line TM per model).
        pages: Detail pages to synthesize. None means all of them.
        page_data: Literal page data; synthesis parameters are ignored when set.
        expected_direct_count: Expected number of direct positions, if pinned.
        expected_indirect_count: Expected number of indirect positions, if pinned.
        expected_oh_count: Expected number of OH positions, if pinned.
    """

    name: str
    description: str = ""
    line_count: int = 0
    model_selection: Tuple[str, ...] = ()
    pages: Optional[Tuple[str, ...]] = None
    page_data: Optional[Mapping[str, Any]] = None
    expected_direct_count: Optional[int] = None
    expected_indirect_count: Optional[int] = None
    expected_oh_count: Optional[int] = None

    @property
    def expected_counts(self) -> Dict[str, int]:
        """Pinned expected counts keyed by classification value."""
        pinned = {
            Classification.DIRECT.value: self.expected_direct_count,
            Classification.INDIRECT.value: self.expected_indirect_count,
            Classification.OH.value: self.expected_oh_count,
        }
        return {key: count for key, count in pinned.items() if count is not None}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ValidationScenario":
        """Build a scenario from a YAML/JSON mapping.

        Accepts snake_case or camelCase keys (``lineCount``, ``modelSelection``,
        ``pageData``, ``expectedOHCount``).

        Raises:
            ValueError: If the mapping has no name.
        """
        if not isinstance(data, Mapping):
            raise ValueError(f"Scenario entry must be a mapping, got {type(data).__name__}")

        def _get(*keys: str) -> Any:
            for key in keys:
                if data.get(key) is not None:
                    return data[key]
            return None

        name = str(_get("name") or "").strip()
        if not name:
            raise ValueError("Scenario entry is missing a name")

        pages = _get("pages")
        line_count = _get("line_count", "lineCount")
        return cls(
            name=name,
            description=str(_get("description") or ""),
            line_count=int(line_count) if line_count is not None else 0,
            model_selection=tuple(str(m) for m in (_get("model_selection", "modelSelection") or ())),
            pages=tuple(str(p) for p in pages) if pages is not None else None,
            page_data=_get("page_data", "pageData"),
            expected_direct_count=_optional_int(_get("expected_direct_count", "expectedDirectCount")),
            expected_indirect_count=_optional_int(
                _get("expected_indirect_count", "expectedIndirectCount")
            ),
            expected_oh_count=_optional_int(
                _get("expected_oh_count", "expectedOHCount", "expectedOhCount")
            ),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Scenario metadata for reports (literal page data is omitted)."""
        return {
            "name": self.name,
            "description": self.description,
            "line_count": self.line_count,
            "model_selection": list(self.model_selection),
            "pages": list(self.pages) if self.pages is not None else None,
            "has_page_data": self.page_data is not None,
            "expected_counts": self.expected_counts,
        }


def _optional_int(value: Any) -> Optional[int]:
    return int(value) if value is not None else None


class MockDataGenerator:
    """Synthesize page data for validation scenarios.

    Args:
        classification_engine: Engine used to split detail positions into the
            two aggregation pages.
    """

    def __init__(self, classification_engine: Optional[ClassificationEngine] = None) -> None:
        self.classification_engine = classification_engine or ClassificationEngine()

    def generate_page1_data(
        self, line_count: int, model_selection: Sequence[str] = ()
    ) -> List[Position]:
        """Line hierarchy: management, one GL pair per line, one TM per line and model."""
        if line_count <= 0:
            return []

        positions = [
            Position(id="line-pm", department="Line", level="PM", title="Line PM", source="page1"),
            Position(id="line-lm", department="Line", level="LM", title="Line LM", source="page1"),
        ]
        for i in range(1, line_count + 1):
            positions.append(
                Position(id=f"line-gl-{i}", department="Line", level="GL", title=f"Line GL {i}", source="page1")
            )
            positions.append(
                Position(
                    id=f"quality-gl-{i}",
                    department="Quality",
                    level="GL",
                    title=f"Quality GL {i}",
                    source="page1",
                )
            )
            for model in model_selection:
                positions.append(
                    Position(
                        id=f"line-tm-{i}-{slugify(model)}",
                        department="Line",
                        level="TM",
                        title=f"Line TM {i}",
                        subtitle=model,
                        source="page1",
                    )
                )
        positions.append(
            Position(
                id="ce-tm-mixing",
                department="CE",
                level="TM",
                title="CE TM",
                subtitle="Mixing",
                source="page1",
            )
        )
        return positions

    def generate_page2_data(self) -> List[Position]:
        """Plant support departments."""
        return [
            Position(id="admin-tm", department="Admin", level="TM", title="Admin TM", source="page2"),
            Position(
                id="raw-material-tm",
                department="Raw Material",
                level="TM",
                title="Raw Material TM",
                source="page2",
            ),
            Position(
                id="plant-prod-tm",
                department="Plant Production",
                level="TM",
                title="Plant Production TM",
                source="page2",
            ),
            Position(
                id="acc-market-tm", department="ACC Market", level="TM", title="ACC Market TM", source="page2"
            ),
            Position(id="fg-wh-tm", department="FG WH", level="TM", title="FG WH TM", source="page2"),
            Position(
                id="fg-wh-tm-shipping",
                department="FG WH",
                level="TM",
                title="FG WH TM",
                subtitle="Shipping",
                source="page2",
            ),
        ]

    def generate_page3_data(self) -> List[Position]:
        return [
            Position(id="tpm-tm", department="TPM", level="TM", title="TPM TM", source="page3"),
            Position(id="security-tm", department="Security", level="TM", title="Security TM", source="page3"),
        ]

    def generate_separated_data(self) -> List[Position]:
        return [
            Position(
                id="nosew-gl",
                department="No-sew",
                level="GL",
                title="No-sew GL",
                process_type="No-sew",
                source="separated",
            ),
            Position(
                id="hf-welding-tm",
                department="HF Welding",
                level="TM",
                title="HF Welding TM",
                process_type="HF Welding",
                source="separated",
            ),
        ]

    def generate_aggregation_data(
        self, detailed_positions: Iterable[Position]
    ) -> Tuple[List[Position], List[Position]]:
        """Split detail positions into the direct and indirect+OH aggregation pages."""
        direct_page: List[Position] = []
        indirect_page: List[Position] = []
        for position in detailed_positions:
            is_direct = (
                self.classification_engine.classify_position(position) == Classification.DIRECT
            )
            aggregated = Position(
                id=f"{position.id}-agg",
                department=position.department,
                level=position.level,
                title=position.title,
                subtitle=position.subtitle,
                process_type=position.process_type,
                source="page4-direct" if is_direct else "page4-indirect",
            )
            (direct_page if is_direct else indirect_page).append(aggregated)
        return direct_page, indirect_page

    def generate(self, scenario: ValidationScenario) -> Dict[str, Any]:
        """Page data for a scenario.

        Raises:
            ValueError: If ``line_count`` is negative or a page name is unknown.
        """
        if scenario.page_data is not None:
            return dict(scenario.page_data)

        if scenario.line_count < 0:
            raise ValueError(f"line_count must be >= 0, got {scenario.line_count}")

        builders = {
            "page1": lambda: self.generate_page1_data(scenario.line_count, scenario.model_selection),
            "page2": self.generate_page2_data,
            "page3": self.generate_page3_data,
            "separated": self.generate_separated_data,
        }
        pages = scenario.pages if scenario.pages is not None else DETAIL_PAGES
        unknown = [page for page in pages if page not in builders]
        if unknown:
            raise ValueError(f"Unknown scenario pages: {unknown}. Valid pages: {list(DETAIL_PAGES)}")

        page_data: Dict[str, Any] = {page: builders[page]() for page in pages}
        detailed = [position for positions in page_data.values() for position in positions]
        direct_page, indirect_page = self.generate_aggregation_data(detailed)
        page_data[DIRECT_AGGREGATION_PAGE] = direct_page
        page_data[INDIRECT_AGGREGATION_PAGE] = indirect_page

        logger.debug(
            "Generated %d detail positions for scenario %s", len(detailed), scenario.name
        )
        return page_data


# Expected counts follow the rule table for the pages MockDataGenerator builds
DEFAULT_SCENARIOS: Tuple[ValidationScenario, ...] = (
    ValidationScenario(
        name="minimal_configuration",
        description="Minimal line count and basic model selection",
        line_count=1,
        model_selection=("Model A",),
        expected_direct_count=2,
        expected_indirect_count=7,
        expected_oh_count=7,
    ),
    ValidationScenario(
        name="standard_configuration",
        description="Standard production configuration",
        line_count=3,
        model_selection=("Model A", "Model B"),
        expected_direct_count=2,
        expected_indirect_count=14,
        expected_oh_count=9,
    ),
    ValidationScenario(
        name="maximum_configuration",
        description="Maximum line count and all models",
        line_count=5,
        model_selection=("Model A", "Model B", "Model C"),
        expected_direct_count=2,
        expected_indirect_count=25,
        expected_oh_count=11,
    ),
    ValidationScenario(
        name="separated_processes_only",
        description="Only separated processes (No-sew, HF Welding)",
        line_count=0,
        pages=("separated",),
        expected_direct_count=0,
        expected_indirect_count=2,
        expected_oh_count=0,
    ),
)


class ScenarioRegistry:
    """Ordered, name-keyed collection of validation scenarios.

    Args:
        scenarios: Initial scenarios. Defaults to ``DEFAULT_SCENARIOS``.
    """

    def __init__(self, scenarios: Optional[Iterable[ValidationScenario]] = None) -> None:
        self._scenarios: Dict[str, ValidationScenario] = {}
        for scenario in DEFAULT_SCENARIOS if scenarios is None else scenarios:
            self.register(scenario)

    def register(self, scenario: ValidationScenario) -> None:
        """Add a scenario, replacing any scenario with the same name."""
        self._scenarios[scenario.name] = scenario

    def get(self, name: str) -> ValidationScenario:
        if name not in self._scenarios:
            raise KeyError(f"Unknown scenario: {name}. Available: {self.names()}")
        return self._scenarios[name]

    def names(self) -> List[str]:
        return list(self._scenarios)

    def all(self) -> List[ValidationScenario]:
        return list(self._scenarios.values())

    def __iter__(self) -> Iterator[ValidationScenario]:
        return iter(self.all())

    def __len__(self) -> int:
        return len(self._scenarios)

    @classmethod
    def from_yaml(cls, scenarios_file: Path) -> "ScenarioRegistry":
        """Load scenarios from a YAML file.

        The file holds either a list of scenario mappings or a mapping with a
        ``scenarios`` list.

        Raises:
            FileNotFoundError: If the file does not exist.
            ValueError: If the file content is not a list of scenario mappings.
        """
        scenarios_file = Path(scenarios_file)
        if not scenarios_file.exists():
            raise FileNotFoundError(f"Scenarios file not found: {scenarios_file}")
        with scenarios_file.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or []
        entries = data.get("scenarios", []) if isinstance(data, Mapping) else data
        if not isinstance(entries, list):
            raise ValueError(f"Expected a list of scenarios in {scenarios_file}")
        scenarios = [ValidationScenario.from_dict(entry) for entry in entries]
        logger.info("Loaded %d scenarios from %s", len(scenarios), scenarios_file)
        return cls(scenarios)


__all__ = [
    "ValidationScenario",
    "MockDataGenerator",
    "DEFAULT_SCENARIOS",
    "ScenarioRegistry",
    "DETAIL_PAGES",
    "DIRECT_AGGREGATION_PAGE",
    "INDIRECT_AGGREGATION_PAGE",
]
