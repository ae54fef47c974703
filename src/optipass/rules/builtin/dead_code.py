"""Dead-code signals — commented-out code, no-op branches, unreachable blocks."""

from optipass.categories import FocusCategory
from optipass.rules.models import Rule

COMMENTED_OUT_PYTHON = Rule(
    id="COMMENTED_OUT_PYTHON",
    name="Commented-out Python",
    description="Comment lines that look like disabled statements.",
    category=FocusCategory.DEAD_CODE,
    pattern=(
        r"^[ \t]*#[ \t]*(?:def |class |import |from [\w.]+ import |return\b|print\(|"
        r"(?:if|for|while|with) [^\n]*:[ \t]*$)"
    ),
    file_patterns=["*.py"],
)

COMMENTED_OUT_JS = Rule(
    id="COMMENTED_OUT_JS",
    name="Commented-out JavaScript",
    description="Comment lines that look like disabled statements.",
    category=FocusCategory.DEAD_CODE,
    pattern=r"^[ \t]*//[ \t]*(?:function |const |let |var |return\b|import |console\.log\()",
    file_patterns=["*.js", "*.jsx", "*.ts", "*.tsx"],
)

PASS_ONLY_BRANCH = Rule(
    id="PASS_ONLY_BRANCH",
    name="Branch with only pass",
    description="An else/elif branch whose body is a bare 'pass'.",
    category=FocusCategory.DEAD_CODE,
    pattern=r"^[ \t]*(?:else|elif [^\n]*)[ \t]*:[ \t]*\n[ \t]+pass[ \t]*$",
    file_patterns=["*.py"],
)

CONSTANT_CONDITION = Rule(
    id="CONSTANT_CONDITION",
    name="Constant false condition",
    description="Blocks guarded by 'if False' or 'if 0' never run.",
    category=FocusCategory.DEAD_CODE,
    pattern=r"^[ \t]*(?:if|while)[ \t(]+(?:False|0|false)[ \t)]*[:{]",
    weight=2.0,
)

CODE_AFTER_RETURN = Rule(
    id="CODE_AFTER_RETURN",
    name="Statement after return",
    description="A statement at the same indentation right after return/raise.",
    category=FocusCategory.DEAD_CODE,
    pattern=r"^([ \t]+)(?:return|raise)\b[^\n]*\n\1(?!(?:elif|else|except|finally|case)\b)[A-Za-z_]",
    weight=2.0,
    file_patterns=["*.py"],
)

UNUSED_IMPORT_NOQA = Rule(
    id="UNUSED_IMPORT_NOQA",
    name="Silenced unused import",
    description="Imports kept alive with '# noqa: F401'.",
    category=FocusCategory.DEAD_CODE,
    pattern=r"#\s*noqa:\s*F401",
    weight=0.5,
    file_patterns=["*.py"],
)

ALL_DEAD_CODE_RULES = [
    COMMENTED_OUT_PYTHON,
    COMMENTED_OUT_JS,
    PASS_ONLY_BRANCH,
    CONSTANT_CONDITION,
    CODE_AFTER_RETURN,
    UNUSED_IMPORT_NOQA,
]
