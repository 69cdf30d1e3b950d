"""Shared pytest fixtures for org chart consistency tests."""

from __future__ import annotations

from typing import Dict, List

import pytest

from orgchart_consistency.classification.engine import ClassificationEngine
from orgchart_consistency.core.schemas import Position
from orgchart_consistency.validation.consistency import DataConsistencyValidator
from orgchart_consistency.validation.engine import ValidationEngine


def make_position(position_id: str, department: str, level: str, **kwargs) -> Position:
    """Build a Position with a readable call site."""
    return Position(id=position_id, department=department, level=level, **kwargs)


@pytest.fixture
def classification_engine() -> ClassificationEngine:
    return ClassificationEngine()


@pytest.fixture
def validation_engine(classification_engine: ClassificationEngine) -> ValidationEngine:  # pylint: disable=redefined-outer-name
    return ValidationEngine(classification_engine)


@pytest.fixture
def validator(validation_engine: ValidationEngine) -> DataConsistencyValidator:  # pylint: disable=redefined-outer-name
    return DataConsistencyValidator(validation_engine=validation_engine)


@pytest.fixture
def consistent_pages() -> Dict[str, List[Position]]:
    """Two detail pages classified consistently: 2 direct, 2 indirect, 4 OH."""
    return {
        "page1": [
            make_position("line-pm", "Line", "PM", source="page1"),
            make_position("line-gl-1", "Line", "GL", source="page1"),
            make_position("quality-gl-1", "Quality", "GL", source="page1"),
            make_position("ce-tm-mixing", "CE", "TM", subtitle="Mixing", source="page1"),
        ],
        "page2": [
            make_position("admin-tm", "Admin", "TM", source="page2"),
            make_position("plant-prod-tm", "Plant Production", "TM", source="page2"),
            make_position("fg-wh-tm-shipping", "FG WH", "TM", subtitle="Shipping", source="page2"),
            make_position("raw-material-tm", "Raw Material", "TM", source="page2"),
        ],
    }


@pytest.fixture
def misattached_pages(consistent_pages):  # pylint: disable=redefined-outer-name
    """consistent_pages with Line PM attached as direct on page1."""
    pages = {key: list(value) for key, value in consistent_pages.items()}
    pages["page1"][0] = {
        "id": "line-pm",
        "department": "Line",
        "level": "PM",
        "classification": "direct",
    }
    return pages
