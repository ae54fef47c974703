"""Verification runner — ordered lint / typecheck / test commands."""

from __future__ import annotations

import logging
import shlex
import shutil
import subprocess
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Protocol, Sequence

from optipass.verify.models import (
    CheckResult,
    CommandOutput,
    VerificationOutcome,
)

logger = logging.getLogger(__name__)

# Keep the tail; error summaries are at the bottom
_MAX_OUTPUT_CHARS = 4000
# POSIX shells exit 127 when the command does not exist
_NOT_FOUND_EXIT = 127
_TIMEOUT_EXIT = 124


class CommandUnavailable(Exception):
    """The command does not apply to this project (e.g. tool not installed)."""


class ExternalCommand(Protocol):
    """Anything with a name that can be invoked to produce a CommandOutput."""

    name: str

    def invoke(self) -> CommandOutput:
        ...


def cap_output(output: str, limit: int = _MAX_OUTPUT_CHARS) -> str:
    """Truncate output keeping the tail."""
    if len(output) <= limit:
        return output
    return f"[truncated, showing last {limit} chars]\n{output[-limit:]}"


class ShellCommand:
    """A shell-level check such as ``ruff check .`` or ``pytest -q``."""

    def __init__(self, name: str, run: str, cwd: Path, timeout: int = 600) -> None:
        self.name = name
        self.run = run
        self.cwd = cwd
        self.timeout = timeout

    def __repr__(self) -> str:
        return f"ShellCommand({self.name!r}, {self.run!r})"

    def invoke(self) -> CommandOutput:
        try:
            program = shlex.split(self.run)[0]
        except (ValueError, IndexError) as exc:
            raise CommandUnavailable(f"cannot parse command {self.run!r}") from exc
        if "/" not in program and "=" not in program and shutil.which(program) is None:
            raise CommandUnavailable(f"{program} is not installed or not on PATH")

        logger.debug("Running %s: %s", self.name, self.run)
        try:
            result = subprocess.run(
                self.run,
                shell=True,
                cwd=str(self.cwd),
                capture_output=True,
                text=True,
                encoding="utf-8",
                errors="replace",
                timeout=self.timeout,
            )
        except subprocess.TimeoutExpired:
            return CommandOutput(
                exit_code=_TIMEOUT_EXIT,
                output=f"Command timed out after {self.timeout}s: {self.run}",
            )

        if result.returncode == _NOT_FOUND_EXIT:
            raise CommandUnavailable(result.stderr.strip() or f"{self.run}: command not found")
        output = result.stdout
        if result.stderr:
            output += "\n" + result.stderr
        return CommandOutput(exit_code=result.returncode, output=output)


class VerificationRunner:
    """Run commands in order, stopping at the first failure.

    A command that raises CommandUnavailable is recorded as skipped and
    never fails the run. If nothing ran, the outcome is SKIPPED.
    """

    def verify(self, commands: Sequence[ExternalCommand]) -> VerificationOutcome:
        if not commands:
            return VerificationOutcome.skipped_because("no verification commands configured")

        checks: List[CheckResult] = []
        for command in commands:
            try:
                out = command.invoke()
            except CommandUnavailable as exc:
                logger.info("Skipping %s: %s", command.name, exc)
                checks.append(CheckResult(name=command.name, exit_code=None, output=str(exc), skipped=True))
                continue

            check = CheckResult(
                name=command.name,
                exit_code=out.exit_code,
                output=cap_output(out.output),
            )
            checks.append(check)
            if not check.passed:
                logger.warning("%s failed with exit code %d", command.name, out.exit_code)
                detail = f"{command.name} failed (exit {out.exit_code})"
                if check.output.strip():
                    detail += f"\n{check.output.strip()}"
                return VerificationOutcome.failing(detail, tuple(checks))
            logger.info("%s passed", command.name)

        if all(c.skipped for c in checks):
            return VerificationOutcome.skipped_because(
                "no applicable verification commands", tuple(checks)
            )
        ran = [c.name for c in checks if not c.skipped]
        return VerificationOutcome.passing(tuple(checks), detail=", ".join(ran) + " passed")


def commands_from_config(
    entries: Iterable[Dict[str, str]],
    cwd: Path,
    timeout: int = 600,
) -> List[ShellCommand]:
    """Build ShellCommands from ``[verify] commands`` tables."""
    commands: List[ShellCommand] = []
    for entry in entries:
        run = entry["run"]
        name = entry.get("name") or run.split()[0]
        commands.append(ShellCommand(name=name, run=run, cwd=cwd, timeout=timeout))
    return commands


def detect_commands(repo_root: Path, timeout: int = 600) -> List[ShellCommand]:
    """Guess lint / typecheck / test commands from project files."""
    pyproject = repo_root / "pyproject.toml"
    pyproject_text = ""
    if pyproject.is_file():
        try:
            pyproject_text = pyproject.read_text(encoding="utf-8", errors="replace")
        except OSError:
            pyproject_text = ""

    commands: List[ShellCommand] = []
    if (repo_root / "ruff.toml").is_file() or (repo_root / ".ruff.toml").is_file() or "[tool.ruff" in pyproject_text:
        commands.append(ShellCommand("lint", "ruff check .", repo_root, timeout))
    if (repo_root / "mypy.ini").is_file() or "[tool.mypy" in pyproject_text:
        commands.append(ShellCommand("typecheck", "mypy .", repo_root, timeout))
    if (
        (repo_root / "tests").is_dir()
        or (repo_root / "pytest.ini").is_file()
        or "[tool.pytest" in pyproject_text
    ):
        commands.append(ShellCommand("test", "pytest -q", repo_root, timeout))
    logger.debug("Detected verification commands: %s", [c.name for c in commands])
    return commands


def resolve_commands(
    entries: Iterable[Dict[str, str]],
    repo_root: Path,
    *,
    timeout: int = 600,
    auto_detect: bool = True,
) -> List[ShellCommand]:
    """Configured commands, or detected ones when none are configured."""
    commands = commands_from_config(entries, repo_root, timeout)
    if not commands and auto_detect:
        commands = detect_commands(repo_root, timeout)
    return commands
