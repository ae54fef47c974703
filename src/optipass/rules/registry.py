"""Rule registry — loads built-in and custom rules, applies config filters."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, List, Optional

import yaml

from optipass.categories import parse_category
from optipass.config.schema import OptipassConfig
from optipass.rules.models import Rule

logger = logging.getLogger(__name__)

CUSTOM_RULES_DIR = ".optipass-rules"


class RuleError(Exception):
    """Raised when a custom rule file is malformed."""


class RuleRegistry:
    """Central store for all focus signal rules."""

    def __init__(self) -> None:
        self._rules: Dict[str, Rule] = {}

    # ---- registration ----

    def register(self, rule: Rule) -> None:
        self._rules[rule.id] = rule

    def register_many(self, rules: list[Rule]) -> None:
        for r in rules:
            self.register(r)

    # ---- queries ----

    @property
    def all_rules(self) -> List[Rule]:
        return list(self._rules.values())

    def get(self, rule_id: str) -> Optional[Rule]:
        return self._rules.get(rule_id)

    def enabled_rules(self) -> List[Rule]:
        return [r for r in self._rules.values() if r.enabled]

    # ---- config filtering ----

    def apply_config(self, config: OptipassConfig) -> None:
        """Enable / disable rules based on config.rules."""
        enable_list = config.rules.enable
        disable_list = config.rules.disable

        for rule in self._rules.values():
            # If an explicit enable-list exists, only those are enabled
            if enable_list:
                rule.enabled = rule.id in enable_list
            # Disable list always takes precedence
            if rule.id in disable_list:
                rule.enabled = False

    # ---- custom rule loading ----

    def load_custom_rules(self, directory: Path) -> int:
        """Load YAML rule files from *directory*. Returns count loaded."""
        count = 0
        if not directory.is_dir():
            return 0
        for path in sorted(directory.iterdir()):
            if path.suffix in (".yaml", ".yml"):
                count += self._load_yaml_rules(path)
        if count:
            logger.info("Loaded %d custom rule(s) from %s", count, directory)
        return count

    def _load_yaml_rules(self, path: Path) -> int:
        try:
            with open(path, encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as exc:
            raise RuleError(f"Failed to load rules from {path}: {exc}") from exc
        if data is None:
            return 0
        if not isinstance(data, list):
            data = [data]
        count = 0
        for entry in data:
            try:
                rule = Rule(
                    id=entry["id"],
                    name=entry.get("name", entry["id"]),
                    description=entry.get("description", ""),
                    category=parse_category(entry["category"]),
                    pattern=entry["pattern"],
                    weight=float(entry.get("weight", 1.0)),
                    file_patterns=entry.get("file_patterns"),
                )
            except (KeyError, TypeError, ValueError) as exc:
                raise RuleError(f"Invalid rule in {path}: {exc}") from exc
            self.register(rule)
            count += 1
        return count


def build_registry(config: OptipassConfig, repo_root: Optional[Path] = None) -> RuleRegistry:
    """Create a fully populated, config-filtered rule registry."""
    from optipass.rules.builtin import ALL_BUILTIN_RULES

    registry = RuleRegistry()
    # Fresh copies so config filtering never mutates the module-level rules
    registry.register_many([_copy(r) for r in ALL_BUILTIN_RULES])

    if repo_root is not None:
        registry.load_custom_rules(repo_root / CUSTOM_RULES_DIR)

    registry.apply_config(config)

    # Force-compile patterns now (not inside the scoring loop)
    for rule in registry.enabled_rules():
        _ = rule.compiled_pattern

    return registry


def _copy(rule: Rule) -> Rule:
    return Rule(
        id=rule.id,
        name=rule.name,
        description=rule.description,
        category=rule.category,
        pattern=rule.pattern,
        weight=rule.weight,
        file_patterns=list(rule.file_patterns) if rule.file_patterns else None,
        multiline=rule.multiline,
        enabled=rule.enabled,
    )
