"""Overcomplication and redundancy signals."""

from optipass.categories import FocusCategory
from optipass.rules.models import Rule

BOOL_COMPARISON = Rule(
    id="BOOL_COMPARISON",
    name="Comparison to boolean literal",
    description="Expressions like 'x == True' or 'flag is False'.",
    category=FocusCategory.OVERCOMPLICATION,
    pattern=r"(?:==|!=|\bis(?:\s+not)?)\s*(?:True|False)\b|===?\s*(?:true|false)\b",
)

NESTED_TERNARY = Rule(
    id="NESTED_TERNARY",
    name="Nested conditional expression",
    description="Conditional expressions chained on one line.",
    category=FocusCategory.OVERCOMPLICATION,
    pattern=r"\bif\b[^\n]*\belse\b[^\n]*\bif\b[^\n]*\belse\b|\?[^\n:]*:[^\n?]*\?[^\n:]*:",
    multiline=False,
)

LAMBDA_ASSIGNMENT = Rule(
    id="LAMBDA_ASSIGNMENT",
    name="Lambda bound to a name",
    description="A lambda assigned to a variable instead of a def.",
    category=FocusCategory.OVERCOMPLICATION,
    pattern=r"^[ \t]*\w+[ \t]*=[ \t]*lambda\b",
    weight=0.5,
    file_patterns=["*.py"],
)

RETURN_BOOL_BRANCH = Rule(
    id="RETURN_BOOL_BRANCH",
    name="Branch returning boolean literals",
    description="'if cond: return True else: return False' instead of returning the condition.",
    category=FocusCategory.REDUNDANCY,
    pattern=(
        r"^[ \t]*if [^\n]+:[ \t]*\n[ \t]*return (?:True|False)[ \t]*\n"
        r"(?:[ \t]*else:[ \t]*\n)?[ \t]*return (?:True|False)\b"
    ),
    weight=2.0,
    file_patterns=["*.py"],
)

ELSE_AFTER_RETURN = Rule(
    id="ELSE_AFTER_RETURN",
    name="Else after return",
    description="An else block following a branch that always returns.",
    category=FocusCategory.REDUNDANCY,
    pattern=r"^[ \t]*return\b[^\n]*\n[ \t]*else[ \t]*:",
    file_patterns=["*.py"],
)

LEN_COMPARISON = Rule(
    id="LEN_COMPARISON",
    name="Explicit length comparison",
    description="'len(x) == 0' style checks where truthiness reads better.",
    category=FocusCategory.REDUNDANCY,
    pattern=r"\blen\([^()\n]*\)\s*(?:==|!=|>)\s*0\b",
    file_patterns=["*.py"],
)

ALL_COMPLEXITY_RULES = [
    BOOL_COMPARISON,
    NESTED_TERNARY,
    LAMBDA_ASSIGNMENT,
    RETURN_BOOL_BRANCH,
    ELSE_AFTER_RETURN,
    LEN_COMPARISON,
]
