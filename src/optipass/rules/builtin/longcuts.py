"""Longcut signals — hand-written versions of built-in idioms."""

from optipass.categories import FocusCategory
from optipass.rules.models import Rule

RANGE_LEN_LOOP = Rule(
    id="RANGE_LEN_LOOP",
    name="Index loop over range(len())",
    description="Iterating indices where enumerate() or direct iteration would do.",
    category=FocusCategory.LONGCUT,
    pattern=r"\bfor\s+\w+\s+in\s+range\(\s*len\(",
    file_patterns=["*.py"],
)

APPEND_LOOP = Rule(
    id="APPEND_LOOP",
    name="Append-only loop",
    description="A loop whose body starts by appending, a comprehension candidate.",
    category=FocusCategory.LONGCUT,
    pattern=r"^[ \t]*for [^\n]+:[ \t]*\n[ \t]+\w+\.append\(",
    file_patterns=["*.py"],
)

MEMBERSHIP_THEN_INDEX = Rule(
    id="MEMBERSHIP_THEN_INDEX",
    name="Membership check before lookup",
    description="'if k in d: v = d[k]' instead of d.get(k).",
    category=FocusCategory.LONGCUT,
    pattern=r"\bif\s+(\w+)\s+in\s+(\w+)\s*:[ \t]*\n[ \t]+[\w.]+\s*=\s*\2\[\1\]",
    file_patterns=["*.py"],
)

ALL_LONGCUT_RULES = [RANGE_LEN_LOOP, APPEND_LOOP, MEMBERSHIP_THEN_INDEX]
