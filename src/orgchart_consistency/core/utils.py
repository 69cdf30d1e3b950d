"""Core utility functions for org chart consistency tools.

This module provides the text normalization shared by the classification rules,
the validation engine and report rendering.
"""

from __future__ import annotations

import re
from typing import Optional

_IGNORED_CHARS = re.compile(r"[\s\-_]+")

# Legacy short names used by older pages, keyed by normalized text
DEPARTMENT_ALIASES = {
    "acc": "ACC Market",
    "pl": "P&L Market",
    "fgwh": "FG WH",
}


def normalize_text(value: Optional[str]) -> str:
    """Normalize free text for comparison.

    Case-folds and drops whitespace, hyphens and underscores so that
    "Raw Material", "RawMaterial" and "raw-material" compare equal.

    Examples:
        >>> normalize_text("HF Welding")
        'hfwelding'
        >>> normalize_text(None)
        ''
    """
    if not value:
        return ""
    return _IGNORED_CHARS.sub("", str(value)).casefold()


def canonical_department(department: Optional[str]) -> str:
    """Return the display name of a department.

    Only the first line is kept ("Plant Production\\n(Outsole degreasing)" becomes
    "Plant Production") and legacy aliases resolve to their full names.

    Examples:
        >>> canonical_department("ACC")
        'ACC Market'
        >>> canonical_department("  Plant Production\\n(Outsole degreasing)")
        'Plant Production'
    """
    if not department:
        return ""
    first_line = str(department).strip().split("\n")[0].strip()
    return DEPARTMENT_ALIASES.get(normalize_text(first_line), first_line)


def normalize_department(department: Optional[str]) -> str:
    """Comparison key for a department name."""
    return normalize_text(canonical_department(department))


def position_label(department: str, level: str, subtitle: Optional[str] = None) -> str:
    """Human-readable label such as ``"CE TM (Mixing)"``."""
    label = f"{canonical_department(department) or 'Unknown'} {level or 'Unknown'}"
    if subtitle:
        label += f" ({subtitle})"
    return label


def slugify(value: str) -> str:
    """Lower-case, dash separated identifier fragment."""
    return re.sub(r"[^a-z0-9]+", "-", str(value).lower()).strip("-")
