"""Git subprocess wrapper — repo root, revision lookup, baseline diff."""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)


class GitError(Exception):
    """Raised when git is unavailable or returns an unexpected error."""


def _run_git(args: list[str], cwd: Path, timeout: int = 30) -> str:
    """Run a git command and return stdout. Raises GitError on failure."""
    logger.debug("git %s (cwd=%s)", " ".join(args), cwd)
    try:
        result = subprocess.run(
            ["git", *args],
            cwd=cwd,
            capture_output=True,
            text=True,
            timeout=timeout,
            encoding="utf-8",
            errors="replace",
        )
    except FileNotFoundError:
        raise GitError("git is not installed or not on PATH")
    except subprocess.TimeoutExpired:
        raise GitError(f"git command timed out after {timeout}s: git {' '.join(args)}")

    if result.returncode != 0:
        stderr = result.stderr.strip()
        raise GitError(f"git error: {stderr or f'exit code {result.returncode}'}")
    return result.stdout


def get_repo_root(cwd: Optional[Path] = None) -> Path:
    """Return the root of the current git repository."""
    cwd = cwd or Path.cwd()
    out = _run_git(["rev-parse", "--show-toplevel"], cwd=cwd)
    return Path(out.strip())


def resolve_revision(repo_root: Path, revision: str) -> Optional[str]:
    """Return the full commit sha for *revision*, or None if it does not exist."""
    try:
        out = _run_git(
            ["rev-parse", "--verify", "--quiet", f"{revision}^{{commit}}"],
            cwd=repo_root,
        )
    except GitError:
        return None
    sha = out.strip()
    return sha or None


def get_baseline_diff(repo_root: Path, baseline: str) -> str:
    """Return the unified diff between *baseline* and the working tree."""
    return _run_git(
        ["diff", baseline, "--unified=0", "--no-color", "--no-ext-diff", "-M"],
        cwd=repo_root,
    )


def get_untracked_files(repo_root: Path) -> list[str]:
    """Return untracked, non-ignored file paths."""
    output = _run_git(
        ["ls-files", "--others", "--exclude-standard"],
        cwd=repo_root,
    )
    return [line for line in output.splitlines() if line.strip()]


def count_lines(path: Path) -> int:
    """Return the number of lines in *path*, 0 if it cannot be read."""
    try:
        with open(path, "rb") as f:
            data = f.read()
    except OSError:
        return 0
    if not data:
        return 0
    return data.count(b"\n") + (0 if data.endswith(b"\n") else 1)
