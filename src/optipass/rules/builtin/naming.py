"""Naming signals — single-letter and placeholder identifiers."""

from optipass.categories import FocusCategory
from optipass.rules.models import Rule

SHORT_NAME = Rule(
    id="SHORT_NAME",
    name="Single-letter variable",
    description="Assignments to one-letter names other than conventional counters.",
    category=FocusCategory.NAMING,
    pattern=r"^[ \t]*[abcdghlmopqrstuvwz][ \t]*=(?!=)",
)

SHORT_FUNCTION_NAME = Rule(
    id="SHORT_FUNCTION_NAME",
    name="Cryptic function name",
    description="Functions named with one or two characters.",
    category=FocusCategory.NAMING,
    pattern=r"^[ \t]*(?:def|function)[ \t]+[A-Za-z_]\w?[ \t]*\(",
    weight=2.0,
)

PLACEHOLDER_NAME = Rule(
    id="PLACEHOLDER_NAME",
    name="Placeholder name",
    description="Identifiers like tmp, foo, stuff or numbered copies such as data2.",
    category=FocusCategory.NAMING,
    pattern=r"\b(?:tmp|temp|foo|bar|baz|thing|stuff|data\d|obj\d|val\d|res\d)\b[ \t]*=(?!=)",
)

ALL_NAMING_RULES = [SHORT_NAME, SHORT_FUNCTION_NAME, PLACEHOLDER_NAME]
