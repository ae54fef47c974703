"""Load and merge configuration from .optipass.toml, CLI flags, and env vars."""

from __future__ import annotations

import dataclasses
import logging
import os
import shlex
import sys
from pathlib import Path
from typing import Any, Dict, Optional

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

from optipass.config.schema import (
    FAILURE_POLICIES,
    OUTPUT_FORMATS,
    ChangesConfig,
    FocusConfig,
    OptipassConfig,
    OutputConfig,
    PlannerConfig,
    RulesConfig,
    RunConfig,
    VerifyConfig,
    WorkerConfig,
)

logger = logging.getLogger(__name__)

CONFIG_FILENAME = ".optipass.toml"

# Hard limits on what a config may ask of the planner
MAX_PASSES_LIMIT = 5
FOCUS_FLOOR = 2
FOCUS_CEILING = 4


class ConfigError(Exception):
    """Raised when config is malformed or unreadable."""


def find_config_file(repo_root: Path, override: Optional[str] = None) -> Optional[Path]:
    """Locate the config file. *override* takes precedence."""
    if override:
        p = Path(override)
        if not p.is_file():
            raise ConfigError(f"Config file not found: {override}")
        return p
    candidate = repo_root / CONFIG_FILENAME
    return candidate if candidate.is_file() else None


def _parse_toml(path: Path) -> Dict[str, Any]:
    try:
        with open(path, "rb") as f:
            return tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as exc:
        raise ConfigError(f"Failed to parse {path}: {exc}") from exc


def _build_section(data: Dict[str, Any], cls: type, section: str):
    """Build a dataclass from a TOML section dict, ignoring unknown keys."""
    raw = data.get(section, {})
    if not isinstance(raw, dict):
        raise ConfigError(f"[{section}] must be a table")
    valid_fields = {f.name for f in dataclasses.fields(cls)}
    unknown = sorted(set(raw) - valid_fields)
    if unknown:
        logger.warning("Ignoring unknown keys in [%s]: %s", section, ", ".join(unknown))
    filtered = {k: v for k, v in raw.items() if k in valid_fields}
    return cls(**filtered)


def _merge_env_overrides(cfg: OptipassConfig) -> None:
    """Apply OPTIPASS_* environment variable overrides."""
    if val := os.environ.get("OPTIPASS_FORMAT"):
        if val in OUTPUT_FORMATS:
            cfg.output.format = val  # type: ignore[assignment]
    if val := os.environ.get("OPTIPASS_ON_FAILURE"):
        if val in FAILURE_POLICIES:
            cfg.run.on_failure = val  # type: ignore[assignment]
    if val := os.environ.get("OPTIPASS_MAX_PASSES"):
        try:
            if 1 <= int(val) <= MAX_PASSES_LIMIT:
                cfg.planner.max_passes = int(val)
        except ValueError:
            pass
    if val := os.environ.get("OPTIPASS_WORKER"):
        cfg.worker.command = shlex.split(val)
    if val := os.environ.get("OPTIPASS_BASELINE"):
        cfg.changes.baseline = val


def validate(cfg: OptipassConfig) -> None:
    """Raise ConfigError if any value is out of range."""
    p = cfg.planner
    for name in (
        "min_files_per_pass",
        "max_files_per_pass",
        "max_diff_lines_per_pass",
        "max_total_lines_per_pass",
        "max_passes",
    ):
        value = getattr(p, name)
        if not isinstance(value, int) or value <= 0:
            raise ConfigError(f"[planner] {name} must be a positive integer, got {value!r}")
    if p.min_files_per_pass > p.max_files_per_pass:
        raise ConfigError("[planner] min_files_per_pass cannot exceed max_files_per_pass")
    if p.max_passes > MAX_PASSES_LIMIT:
        raise ConfigError(f"[planner] max_passes must be at most {MAX_PASSES_LIMIT}, got {p.max_passes}")

    f = cfg.focus
    if not (FOCUS_FLOOR <= f.min_categories <= f.max_categories <= FOCUS_CEILING):
        raise ConfigError(
            f"[focus] requires {FOCUS_FLOOR} <= min_categories <= max_categories <= {FOCUS_CEILING}, "
            f"got {f.min_categories}..{f.max_categories}"
        )

    if cfg.run.on_failure not in FAILURE_POLICIES:
        raise ConfigError(f"[run] on_failure must be one of {FAILURE_POLICIES}, got {cfg.run.on_failure!r}")
    if cfg.output.format not in OUTPUT_FORMATS:
        raise ConfigError(f"[output] format must be one of {OUTPUT_FORMATS}, got {cfg.output.format!r}")

    for idx, entry in enumerate(cfg.verify.commands, 1):
        if not isinstance(entry, dict) or not entry.get("run"):
            raise ConfigError(f"[verify] commands entry {idx} needs a 'run' string")

    if cfg.worker.timeout is not None and (
        not isinstance(cfg.worker.timeout, int) or cfg.worker.timeout <= 0
    ):
        raise ConfigError(f"[worker] timeout must be a positive integer, got {cfg.worker.timeout!r}")


def load_config(
    repo_root: Path,
    config_override: Optional[str] = None,
) -> OptipassConfig:
    """Load, validate, and return an OptipassConfig."""
    config_path = find_config_file(repo_root, config_override)

    if config_path is None:
        cfg = OptipassConfig()
    else:
        logger.debug("Loading config from %s", config_path)
        raw = _parse_toml(config_path)
        try:
            cfg = OptipassConfig(
                version=raw.get("version", "1.0"),
                changes=_build_section(raw, ChangesConfig, "changes"),
                planner=_build_section(raw, PlannerConfig, "planner"),
                focus=_build_section(raw, FocusConfig, "focus"),
                rules=_build_section(raw, RulesConfig, "rules"),
                worker=_build_section(raw, WorkerConfig, "worker"),
                verify=_build_section(raw, VerifyConfig, "verify"),
                run=_build_section(raw, RunConfig, "run"),
                output=_build_section(raw, OutputConfig, "output"),
            )
        except TypeError as exc:
            raise ConfigError(f"Invalid config in {config_path}: {exc}") from exc
        # Accept `command = "tool --flag"` as well as an argv list
        if isinstance(cfg.worker.command, str):
            cfg.worker.command = shlex.split(cfg.worker.command)

    _merge_env_overrides(cfg)
    validate(cfg)
    return cfg
