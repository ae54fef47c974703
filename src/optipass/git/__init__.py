"""Git interface layer — adapter, diff parsing, change-set reading."""

from optipass.git.adapter import (
    GitError,
    count_lines,
    get_baseline_diff,
    get_repo_root,
    get_untracked_files,
    resolve_revision,
)
from optipass.git.changeset import RevisionNotFound, ScopeError, read_changeset
from optipass.git.diff_parser import DiffParser
from optipass.git.models import ChangedFile, ChangeSet, FileSkipped, FileStatus

__all__ = [
    "ChangedFile",
    "ChangeSet",
    "DiffParser",
    "FileSkipped",
    "FileStatus",
    "GitError",
    "RevisionNotFound",
    "ScopeError",
    "count_lines",
    "get_baseline_diff",
    "get_repo_root",
    "get_untracked_files",
    "read_changeset",
    "resolve_revision",
]
