"""Configuration schema — dataclasses for every config section."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Literal, Optional

FailurePolicy = Literal["retain", "revert"]
OutputFormat = Literal["terminal", "json"]

FAILURE_POLICIES: tuple[str, ...] = ("retain", "revert")
OUTPUT_FORMATS: tuple[str, ...] = ("terminal", "json")

DEFAULT_TEST_PATTERNS: List[str] = [
    "test_*.py",
    "*_test.py",
    "tests/*",
    "*/tests/*",
    "*.test.*",
    "*.spec.*",
    "*_test.go",
]

DEFAULT_CONFIG_PATTERNS: List[str] = [
    "*.toml",
    "*.ini",
    "*.cfg",
    "*.yaml",
    "*.yml",
    "*.json",
    ".*rc",
    ".env*",
    "Dockerfile",
    "Makefile",
]


@dataclass
class ChangesConfig:
    baseline: str = "HEAD~1"
    include_untracked: bool = True
    exclude: List[str] = field(default_factory=list)  # path globs never planned


@dataclass
class PlannerConfig:
    min_files_per_pass: int = 3
    max_files_per_pass: int = 5
    max_diff_lines_per_pass: int = 400
    max_total_lines_per_pass: int = 3000
    max_passes: int = 5
    scope_warning_files: int = 15
    detect_imports: bool = True  # False → directory grouping only
    test_patterns: List[str] = field(default_factory=lambda: list(DEFAULT_TEST_PATTERNS))
    config_patterns: List[str] = field(default_factory=lambda: list(DEFAULT_CONFIG_PATTERNS))


@dataclass
class FocusConfig:
    min_categories: int = 2
    max_categories: int = 4
    long_function_lines: int = 50


@dataclass
class RulesConfig:
    enable: List[str] = field(default_factory=list)  # empty = all enabled
    disable: List[str] = field(default_factory=list)


@dataclass
class WorkerConfig:
    command: List[str] = field(default_factory=list)  # argv; empty = not configured
    timeout: Optional[int] = None  # None = wait indefinitely


@dataclass
class VerifyConfig:
    commands: List[Dict[str, str]] = field(default_factory=list)  # [{name, run}]
    incremental: bool = False  # also verify after every pass
    timeout: int = 600
    auto_detect: bool = True  # detect lint/test commands when none are listed


@dataclass
class RunConfig:
    on_failure: FailurePolicy = "retain"


@dataclass
class OutputConfig:
    format: OutputFormat = "terminal"
    show_summary: bool = True


@dataclass
class OptipassConfig:
    version: str = "1.0"
    changes: ChangesConfig = field(default_factory=ChangesConfig)
    planner: PlannerConfig = field(default_factory=PlannerConfig)
    focus: FocusConfig = field(default_factory=FocusConfig)
    rules: RulesConfig = field(default_factory=RulesConfig)
    worker: WorkerConfig = field(default_factory=WorkerConfig)
    verify: VerifyConfig = field(default_factory=VerifyConfig)
    run: RunConfig = field(default_factory=RunConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
