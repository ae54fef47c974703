"""Focus signal rules — models, registry, and built-ins."""

from optipass.rules.models import Rule
from optipass.rules.registry import RuleError, RuleRegistry, build_registry

__all__ = ["Rule", "RuleError", "RuleRegistry", "build_registry"]
