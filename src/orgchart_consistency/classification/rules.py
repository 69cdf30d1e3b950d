"""Classification decision table.

The table is an ordered tuple of :class:`ClassificationRule` entries evaluated top
to bottom; the first rule whose predicate matches decides the category. Every
entry corresponds to an audited business rule and is unit tested on its own.

Predicates receive a :class:`RuleInput` whose text fields are already normalized
(case-folded, whitespace/hyphen-insensitive), so the department and keyword
constants below are written in their normalized form via ``normalize_text``.

To add a rule:

1. Define its predicate with the helpers below (or a small function)
2. Insert a ``ClassificationRule`` at the position that gives it the intended
   precedence in ``CLASSIFICATION_RULES``
3. Add a regression test in tests/classification/test_rules.py
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, FrozenSet, Iterable, Tuple

from orgchart_consistency.core.enums import Classification, Level, LEVEL_VALUES
from orgchart_consistency.core.schemas import KNOWN_DEPARTMENTS
from orgchart_consistency.core.utils import normalize_text


@dataclass(frozen=True)
class RuleInput:
    """Normalized view of the fields the rules consult."""

    department: str
    level: str
    process_type: str
    subtitle: str


Predicate = Callable[[RuleInput], bool]


@dataclass(frozen=True)
class ClassificationRule:
    """One row of the decision table.

    Attributes:
        name: Stable identifier, used in reports and tests.
        predicate: Returns True when the rule applies.
        classification: Category assigned when the rule applies.
        reason: Human-readable statement of the business rule.
    """

    name: str
    predicate: Predicate
    classification: Classification
    reason: str

    def matches(self, rule_input: RuleInput) -> bool:
        return self.predicate(rule_input)


def _names(values: Iterable[str]) -> FrozenSet[str]:
    return frozenset(normalize_text(v) for v in values)


# ============================================================================
# RULE DATA
# ============================================================================

KNOWN_DEPARTMENT_KEYS = _names(KNOWN_DEPARTMENTS)

SEPARATED_PROCESSES = _names(["No-sew", "HF Welding", "Separated"])

FIXED_OH_DEPARTMENTS = _names(
    ["Admin", "Small Tooling", "Sub Material", "TPM", "CQM", "Lean", "Security", "RMCC"]
)

FIXED_INDIRECT_DEPARTMENTS = _names(
    ["Raw Material", "ACC Market", "P&L Market", "Bottom Market", "FG WH"]
)

# Level defaults (rule 7) and the department overrides applied on top of them
LEVEL_DEFAULTS = {
    Level.PM.value: Classification.OH,
    Level.LM.value: Classification.OH,
    Level.GL.value: Classification.OH,
    Level.TL.value: Classification.INDIRECT,
    Level.TM.value: Classification.INDIRECT,
}

LEVEL_DEPARTMENT_OVERRIDES = {
    ("Line", Level.GL.value): Classification.INDIRECT,
}

CE = normalize_text("CE")
PLANT_PRODUCTION = normalize_text("Plant Production")
FG_WH = normalize_text("FG WH")
MIXING = normalize_text("Mixing")
SHIPPING = normalize_text("Shipping")

# PM and LM keep their overhead default when the department is missing or
# unrecognized; the other levels are treated as unclassified work.
UNKNOWN_DEPARTMENT_LEVELS = frozenset([Level.GL.value, Level.TL.value, Level.TM.value])

FALLBACK_CLASSIFICATION = Classification.INDIRECT


# ============================================================================
# PREDICATE HELPERS
# ============================================================================


def separated_process(rule_input: RuleInput) -> bool:
    return (
        rule_input.process_type in SEPARATED_PROCESSES
        or rule_input.department in SEPARATED_PROCESSES
    )


def department_level(department: str, level: Level) -> Predicate:
    def _predicate(rule_input: RuleInput) -> bool:
        return rule_input.department == department and rule_input.level == level.value

    return _predicate


def department_level_subtitle(department: str, level: Level, keyword: str) -> Predicate:
    base = department_level(department, level)

    def _predicate(rule_input: RuleInput) -> bool:
        return base(rule_input) and keyword in rule_input.subtitle

    return _predicate


def department_in(departments: FrozenSet[str]) -> Predicate:
    def _predicate(rule_input: RuleInput) -> bool:
        return rule_input.department in departments

    return _predicate


def missing_department(rule_input: RuleInput) -> bool:
    return not rule_input.department and rule_input.level in UNKNOWN_DEPARTMENT_LEVELS


def unknown_department(rule_input: RuleInput) -> bool:
    return (
        bool(rule_input.department)
        and rule_input.department not in KNOWN_DEPARTMENT_KEYS
        and rule_input.level in UNKNOWN_DEPARTMENT_LEVELS
    )


def level_default(level: Level) -> Predicate:
    def _predicate(rule_input: RuleInput) -> bool:
        return rule_input.level == level.value

    return _predicate


def always(rule_input: RuleInput) -> bool:  # pylint: disable=unused-argument
    return True


def _level_rules() -> Tuple[ClassificationRule, ...]:
    rules = []
    for (department, level), classification in LEVEL_DEPARTMENT_OVERRIDES.items():
        rules.append(
            ClassificationRule(
                name=f"level_override_{normalize_text(department)}_{level.lower()}",
                predicate=department_level(normalize_text(department), Level(level)),
                classification=classification,
                reason=f"{department} {level} overrides the {level} default: {classification.value}",
            )
        )
    for level, classification in LEVEL_DEFAULTS.items():
        rules.append(
            ClassificationRule(
                name=f"level_default_{level.lower()}",
                predicate=level_default(Level(level)),
                classification=classification,
                reason=f"{level} positions default to {classification.value}",
            )
        )
    return tuple(rules)


# ============================================================================
# DECISION TABLE (order is precedence)
# ============================================================================

CLASSIFICATION_RULES: Tuple[ClassificationRule, ...] = (
    ClassificationRule(
        name="separated_process",
        predicate=separated_process,
        classification=Classification.INDIRECT,
        reason="Separated production processes (No-sew, HF Welding) are indirect",
    ),
    ClassificationRule(
        name="ce_tm_mixing",
        predicate=department_level_subtitle(CE, Level.TM, MIXING),
        classification=Classification.DIRECT,
        reason="CE TM with Mixing subtitle is direct production work",
    ),
    ClassificationRule(
        name="ce_tm",
        predicate=department_level(CE, Level.TM),
        classification=Classification.OH,
        reason="CE TM without Mixing subtitle is overhead",
    ),
    ClassificationRule(
        name="plant_production_tm",
        predicate=department_level(PLANT_PRODUCTION, Level.TM),
        classification=Classification.DIRECT,
        reason="Plant Production TM is direct production work",
    ),
    ClassificationRule(
        name="fg_wh_tm_shipping",
        predicate=department_level_subtitle(FG_WH, Level.TM, SHIPPING),
        classification=Classification.OH,
        reason="FG WH TM with Shipping subtitle is overhead",
    ),
    ClassificationRule(
        name="fg_wh_tm",
        predicate=department_level(FG_WH, Level.TM),
        classification=Classification.INDIRECT,
        reason="FG WH TM without Shipping subtitle is indirect",
    ),
    ClassificationRule(
        name="fixed_oh_department",
        predicate=department_in(FIXED_OH_DEPARTMENTS),
        classification=Classification.OH,
        reason="Support departments are overhead at every level",
    ),
    ClassificationRule(
        name="fixed_indirect_department",
        predicate=department_in(FIXED_INDIRECT_DEPARTMENTS),
        classification=Classification.INDIRECT,
        reason="Material, market and warehouse departments are indirect",
    ),
    ClassificationRule(
        name="missing_department",
        predicate=missing_department,
        classification=FALLBACK_CLASSIFICATION,
        reason="GL, TL and TM positions without a department fall back to indirect",
    ),
    ClassificationRule(
        name="unknown_department",
        predicate=unknown_department,
        classification=FALLBACK_CLASSIFICATION,
        reason="GL, TL and TM positions of an unrecognized department fall back to indirect",
    ),
    *_level_rules(),
    ClassificationRule(
        name="fallback",
        predicate=always,
        classification=FALLBACK_CLASSIFICATION,
        reason="Unrecognized level falls back to indirect",
    ),
)

FALLBACK_RULE_NAMES = frozenset(["missing_department", "unknown_department", "fallback"])


def is_known_level(level: str) -> bool:
    return level in LEVEL_VALUES


def is_fallback_rule(rule: ClassificationRule) -> bool:
    """True for the rules that classify input the table does not recognize."""
    return rule.name in FALLBACK_RULE_NAMES


__all__ = [
    "RuleInput",
    "ClassificationRule",
    "CLASSIFICATION_RULES",
    "SEPARATED_PROCESSES",
    "FIXED_OH_DEPARTMENTS",
    "FIXED_INDIRECT_DEPARTMENTS",
    "LEVEL_DEFAULTS",
    "LEVEL_DEPARTMENT_OVERRIDES",
    "FALLBACK_CLASSIFICATION",
    "FALLBACK_RULE_NAMES",
    "KNOWN_DEPARTMENT_KEYS",
    "UNKNOWN_DEPARTMENT_LEVELS",
    "is_known_level",
    "is_fallback_rule",
]
