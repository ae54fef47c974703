"""Type-quality signals — broad or suppressed annotations."""

from optipass.categories import FocusCategory
from optipass.rules.models import Rule

BROAD_ANY = Rule(
    id="BROAD_ANY",
    name="Broad Any annotation",
    description="Parameters, returns or generics annotated with typing.Any.",
    category=FocusCategory.TYPE_QUALITY,
    pattern=r"(?:->\s*|:\s*|\[\s*|,\s*)(?:typing\.)?Any\b",
    file_patterns=["*.py", "*.pyi"],
)

BROAD_OBJECT = Rule(
    id="BROAD_OBJECT",
    name="Broad object annotation",
    description="Parameters or returns annotated as plain object.",
    category=FocusCategory.TYPE_QUALITY,
    pattern=r"(?:->\s*|:\s*)object\b(?!\.)",
    weight=0.5,
    file_patterns=["*.py", "*.pyi"],
)

TYPE_IGNORE = Rule(
    id="TYPE_IGNORE",
    name="Type checker suppression",
    description="A '# type: ignore' or '@ts-ignore' comment hiding a type error.",
    category=FocusCategory.TYPE_QUALITY,
    pattern=r"#\s*type:\s*ignore|@ts-ignore|@ts-expect-error",
)

TS_ANY = Rule(
    id="TS_ANY",
    name="TypeScript any",
    description="Values annotated or cast as 'any'.",
    category=FocusCategory.TYPE_QUALITY,
    pattern=r":\s*any\b|\bas\s+any\b|<any>",
    file_patterns=["*.ts", "*.tsx"],
)

ALL_TYPE_RULES = [BROAD_ANY, BROAD_OBJECT, TYPE_IGNORE, TS_ANY]
