"""Built-in rules — aggregate all categories."""

from optipass.rules.builtin.complexity import ALL_COMPLEXITY_RULES
from optipass.rules.builtin.dead_code import ALL_DEAD_CODE_RULES
from optipass.rules.builtin.efficiency import ALL_EFFICIENCY_RULES
from optipass.rules.builtin.longcuts import ALL_LONGCUT_RULES
from optipass.rules.builtin.naming import ALL_NAMING_RULES
from optipass.rules.builtin.type_quality import ALL_TYPE_RULES
from optipass.rules.models import Rule

ALL_BUILTIN_RULES: list[Rule] = [
    *ALL_COMPLEXITY_RULES,
    *ALL_EFFICIENCY_RULES,
    *ALL_TYPE_RULES,
    *ALL_LONGCUT_RULES,
    *ALL_DEAD_CODE_RULES,
    *ALL_NAMING_RULES,
]

__all__ = ["ALL_BUILTIN_RULES"]
