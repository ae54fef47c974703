"""Resource-efficiency signals — nested loops, whole-file reads, polling."""

from optipass.categories import FocusCategory
from optipass.rules.models import Rule

NESTED_LOOP = Rule(
    id="NESTED_LOOP",
    name="Directly nested loop",
    description="A for loop whose first statement is another for loop.",
    category=FocusCategory.RESOURCE_EFFICIENCY,
    pattern=r"^[ \t]*for [^\n]+:[ \t]*\n[ \t]+for [^\n]+:",
    file_patterns=["*.py"],
)

LIST_MEMBERSHIP = Rule(
    id="LIST_MEMBERSHIP",
    name="Linear membership test",
    description="Membership checks against list() copies or .keys() views.",
    category=FocusCategory.RESOURCE_EFFICIENCY,
    pattern=r"\bin\s+(?:list\(|[\w.]+\.keys\(\))",
    file_patterns=["*.py"],
)

READ_WHOLE_FILE = Rule(
    id="READ_WHOLE_FILE",
    name="Whole-file read",
    description="Reading an entire file into memory with read()/readlines().",
    category=FocusCategory.RESOURCE_EFFICIENCY,
    pattern=r"\.read(?:lines)?\(\s*\)",
    weight=0.5,
    file_patterns=["*.py"],
)

STRING_CONCAT = Rule(
    id="STRING_CONCAT",
    name="Incremental string building",
    description="Strings grown with += instead of join().",
    category=FocusCategory.RESOURCE_EFFICIENCY,
    pattern=r"\+=\s*(?:f?['\"]|str\()",
    weight=0.5,
)

SLEEP_POLL = Rule(
    id="SLEEP_POLL",
    name="Sleep-based polling",
    description="Busy waits built from sleep calls.",
    category=FocusCategory.RESOURCE_EFFICIENCY,
    pattern=r"\btime\.sleep\(|\bsetTimeout\(",
    weight=0.5,
)

ALL_EFFICIENCY_RULES = [NESTED_LOOP, LIST_MEMBERSHIP, READ_WHOLE_FILE, STRING_CONCAT, SLEEP_POLL]
