"""Change-set reader — resolve the baseline and collect changed files."""

from __future__ import annotations

import logging
from fnmatch import fnmatch
from pathlib import Path
from typing import Iterable, List

from optipass.git.adapter import (
    GitError,
    count_lines,
    get_baseline_diff,
    get_untracked_files,
    resolve_revision,
)
from optipass.git.diff_parser import DiffParser
from optipass.git.models import ChangedFile, ChangeSet, FileSkipped, FileStatus

logger = logging.getLogger(__name__)


class ScopeError(Exception):
    """The change scope cannot be determined. Fatal; aborts before planning."""


class RevisionNotFound(ScopeError):
    """The baseline revision does not exist in the repository."""

    def __init__(self, revision: str) -> None:
        super().__init__(f"Baseline revision not found: {revision}")
        self.revision = revision


def _excluded(path: str, patterns: Iterable[str]) -> bool:
    return any(fnmatch(path, p) or fnmatch(Path(path).name, p) for p in patterns)


def read_changeset(
    repo_root: Path,
    baseline: str,
    *,
    include_untracked: bool = True,
    exclude: Iterable[str] = (),
) -> ChangeSet:
    """Return every file that differs between *baseline* and the working tree.

    Deleted files are kept with status DELETED; callers plan from
    ``ChangeSet.actionable``. An identical tree yields an empty ChangeSet,
    which is not an error.

    Raises RevisionNotFound when *baseline* does not resolve, and ScopeError
    when the diff cannot be read.
    """
    sha = resolve_revision(repo_root, baseline)
    if sha is None:
        raise RevisionNotFound(baseline)

    try:
        diff_text = get_baseline_diff(repo_root, sha)
        untracked = get_untracked_files(repo_root) if include_untracked else []
    except GitError as exc:
        raise ScopeError(f"Unable to read changes against {baseline}: {exc}") from exc

    exclude = list(exclude)
    files: List[ChangedFile] = []
    skipped: List[FileSkipped] = []
    seen: set[str] = set()

    for item in DiffParser(diff_text).parse():
        if _excluded(item.path, exclude):
            skipped.append(FileSkipped(path=item.path, reason="excluded"))
            continue
        if isinstance(item, FileSkipped):
            skipped.append(item)
            continue
        seen.add(item.path)
        if item.status == FileStatus.DELETED:
            files.append(item)
            continue
        files.append(
            ChangedFile(
                path=item.path,
                status=item.status,
                diff_lines=item.diff_lines,
                total_lines=count_lines(repo_root / item.path),
            )
        )

    for path in untracked:
        if path in seen:
            continue
        if _excluded(path, exclude):
            skipped.append(FileSkipped(path=path, reason="excluded"))
            continue
        total = count_lines(repo_root / path)
        files.append(
            ChangedFile(path=path, status=FileStatus.ADDED, diff_lines=total, total_lines=total)
        )

    changeset = ChangeSet(baseline=sha, files=files, skipped=skipped, baseline_ref=baseline)
    if changeset.is_empty:
        logger.info("No changes against %s", baseline)
    else:
        logger.info(
            "Read %d changed file(s) against %s (%d actionable, %d skipped)",
            len(files), baseline, len(changeset.actionable), len(skipped),
        )
    return changeset
