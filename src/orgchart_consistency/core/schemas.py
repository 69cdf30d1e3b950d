"""Position schema and field definitions.

Pages deliver positions either as :class:`Position` objects or as plain mappings
(JSON/YAML page exports). This module defines the value object and the tolerant
coercion used everywhere positions enter the package.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, List, Mapping, Optional, Tuple, Union

from .enums import Classification
from .utils import canonical_department

# Departments named by the classification rules. Anything else is reported as
# unknown by the validation engine but still classified.
KNOWN_DEPARTMENTS: Tuple[str, ...] = (
    "Line",
    "Quality",
    "CE",
    "Plant Production",
    "Admin",
    "Small Tooling",
    "Raw Material",
    "Sub Material",
    "ACC Market",
    "P&L Market",
    "Bottom Market",
    "FG WH",
    "TPM",
    "CQM",
    "Lean",
    "Security",
    "RMCC",
    "No-sew",
    "HF Welding",
    "Separated",
)

# Accepted spellings per field, first match wins
FIELD_ALIASES = {
    "id": ("id", "position_id", "positionId"),
    "department": ("department", "dept"),
    "level": ("level",),
    "title": ("title",),
    "subtitle": ("subtitle",),
    "process_type": ("process_type", "processType"),
    "source": ("source",),
    "classification": ("classification",),
}


@dataclass(frozen=True)
class Position:
    """One staffing slot of the org chart.

    Attributes:
        id: Identifier, unique within its source collection. Empty is invalid.
        department: Department name as supplied by the page.
        level: Seniority tier (PM, LM, GL, TL, TM). Rendering-only levels such
            as MGL or VSM pass through and hit the fallback rule.
        title: Optional display title.
        subtitle: Optional sub-role; may carry an exception key ("Mixing").
        process_type: Optional separated production process (No-sew, HF Welding).
        source: Tag of the page or collection the record came from.
        classification: Category attached by the upstream page, if any. Only
            used to detect disagreement with the computed value.

    Examples:
        >>> p = Position(id="acc-tm", department="ACC", level="TM")
        >>> p.display_department
        'ACC Market'
    """

    id: str
    department: str
    level: str
    title: str = ""
    subtitle: Optional[str] = None
    process_type: Optional[str] = None
    source: str = ""
    classification: Optional[Classification] = None

    @property
    def display_department(self) -> str:
        return canonical_department(self.department)

    @classmethod
    def from_record(cls, record: Union["Position", Mapping[str, Any]], source: str = "") -> "Position":
        """Build a position from a page record.

        Missing fields become empty strings and unrecognized attached
        classifications are dropped, so malformed page entries never raise.
        ``source`` fills in the source tag when the record carries none.

        Args:
            record: A Position or a mapping using snake_case or camelCase keys.
            source: Default source tag.

        Returns:
            A Position instance.
        """
        if isinstance(record, Position):
            if record.source or not source:
                return record
            return cls(
                id=record.id,
                department=record.department,
                level=record.level,
                title=record.title,
                subtitle=record.subtitle,
                process_type=record.process_type,
                source=source,
                classification=record.classification,
            )

        if not isinstance(record, Mapping):
            record = {}

        def _get(field_name: str) -> Any:
            for key in FIELD_ALIASES[field_name]:
                if record.get(key) is not None:
                    return record[key]
            return None

        subtitle = _get("subtitle")
        process_type = _get("process_type")
        return cls(
            id=str(_get("id") or ""),
            department=str(_get("department") or ""),
            level=str(_get("level") or "").strip(),
            title=str(_get("title") or ""),
            subtitle=str(subtitle) if subtitle else None,
            process_type=str(process_type) if process_type else None,
            source=str(_get("source") or source),
            classification=parse_classification(_get("classification")),
        )


def parse_classification(value: Any) -> Optional[Classification]:
    """Parse an attached classification, tolerating case differences.

    Examples:
        >>> parse_classification("oh")
        <Classification.OH: 'OH'>
        >>> parse_classification("unknown") is None
        True
    """
    if value is None:
        return None
    if isinstance(value, Classification):
        return value
    text = str(value).strip().casefold()
    for classification in Classification:
        if classification.value.casefold() == text:
            return classification
    return None


def coerce_positions(
    records: Optional[Iterable[Union[Position, Mapping[str, Any]]]], source: str = ""
) -> List[Position]:
    """Coerce a page's records into positions, treating ``None`` as empty."""
    if not records:
        return []
    return [Position.from_record(record, source=source) for record in records]
