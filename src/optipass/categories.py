"""The eight focus categories an optimization pass can be asked to look at."""

from __future__ import annotations

from enum import Enum
from typing import List


class FocusCategory(str, Enum):
    """Fixed, ordered set of optimization concerns.

    Declaration order is the tie-break order when ranking categories.
    """

    REDUNDANCY = "redundancy"
    OVERCOMPLICATION = "overcomplication"
    RESOURCE_EFFICIENCY = "resource_efficiency"
    TYPE_QUALITY = "type_quality"
    DUPLICATION = "duplication"
    LONGCUT = "longcut"
    DEAD_CODE = "dead_code"
    NAMING = "naming"

    @property
    def label(self) -> str:
        return self.value.replace("_", " ").title()

    @property
    def order(self) -> int:
        return _ORDER[self]


ALL_CATEGORIES: List[FocusCategory] = list(FocusCategory)

_ORDER = {cat: idx for idx, cat in enumerate(ALL_CATEGORIES)}


def parse_category(value: str) -> FocusCategory:
    """Return the category for *value*, accepting either the value or the member name."""
    normalised = value.strip().lower().replace("-", "_").replace(" ", "_")
    for cat in ALL_CATEGORIES:
        if normalised in (cat.value, cat.name.lower()):
            return cat
    raise ValueError(f"Unknown focus category: {value!r}")
