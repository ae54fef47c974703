"""Data models for the change-set read from git."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional


class FileStatus(str, Enum):
    ADDED = "added"
    MODIFIED = "modified"
    DELETED = "deleted"


@dataclass(frozen=True, slots=True)
class ChangedFile:
    """A file that differs from the baseline revision."""

    path: str
    status: FileStatus
    diff_lines: int = 0  # added + removed lines
    total_lines: int = 0  # size after the change; 0 when deleted

    def __post_init__(self) -> None:
        if self.diff_lines < 0 or self.total_lines < 0:
            raise ValueError(f"line counts must be non-negative: {self.path}")

    @property
    def is_actionable(self) -> bool:
        return self.status != FileStatus.DELETED


@dataclass(frozen=True)
class FileSkipped:
    """Record of a file that appeared in the diff but carries no content change."""

    path: str
    reason: str  # 'binary', 'mode_only', 'rename_only', 'submodule', 'empty', 'excluded'


@dataclass
class ChangeSet:
    """Everything that changed between the baseline and the working tree."""

    baseline: str
    files: List[ChangedFile] = field(default_factory=list)
    skipped: List[FileSkipped] = field(default_factory=list)
    baseline_ref: Optional[str] = None  # what the user asked for, e.g. HEAD~1

    @property
    def actionable(self) -> List[ChangedFile]:
        """Non-deleted files, sorted by path. This is what the planner consumes."""
        return sorted((f for f in self.files if f.is_actionable), key=lambda f: f.path)

    @property
    def is_empty(self) -> bool:
        return not self.files

    @property
    def total_diff_lines(self) -> int:
        return sum(f.diff_lines for f in self.actionable)
