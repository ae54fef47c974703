"""Unified diff parser — per-file status and line-change counts.

Walks ``git diff --unified=0`` output and yields one ChangedFile per file
with content changes. Binary files, mode-only changes and pure renames are
reported as FileSkipped. Handles CRLF, submodule pointers, the
"No newline at end of file" marker and all hunk header variations.
"""

from __future__ import annotations

import re
from typing import Generator, Optional

from optipass.git.models import ChangedFile, FileSkipped, FileStatus

# --- Regex patterns for diff parsing ---

_DIFF_HEADER_RE = re.compile(r"^diff --git a/(.*) b/(.*)$")
_HUNK_HEADER_RE = re.compile(
    r"^@@ -(\d+)(?:,(\d+))? \+(\d+)(?:,(\d+))? @@"
)
_BINARY_RE = re.compile(r"^Binary files .* and .* differ$")
_RENAME_FROM_RE = re.compile(r"^rename from (.+)$")
_RENAME_TO_RE = re.compile(r"^rename to (.+)$")
_SUBPROJECT_RE = re.compile(r"^[+-]?Subproject commit [0-9a-f]+(?:-dirty)?$")
_NO_NEWLINE_RE = re.compile(r"^\\ No newline at end of file$")
_FILE_HEADER_OLD = re.compile(r"^--- (?:a/|/dev/null)")
_FILE_HEADER_NEW = re.compile(r"^\+\+\+ (?:b/|/dev/null)")
_SIMILARITY_RE = re.compile(r"^(?:dis)?similarity index \d+%$")
_OLD_MODE_RE = re.compile(r"^old mode \d+$")
_NEW_MODE_RE = re.compile(r"^new mode \d+$")
_DELETED_FILE_RE = re.compile(r"^deleted file mode \d+$")
_NEW_FILE_RE = re.compile(r"^new file mode \d+$")
_INDEX_RE = re.compile(r"^index [0-9a-f]+\.\.[0-9a-f]+")


class _FileState:
    """Mutable accumulator for the file currently being parsed."""

    __slots__ = ("path", "is_new", "is_deleted", "is_rename", "is_mode_only",
                 "is_binary", "is_submodule", "added", "removed", "hunks")

    def __init__(self, path: str) -> None:
        self.path = path
        self.is_new = False
        self.is_deleted = False
        self.is_rename = False
        self.is_mode_only = False
        self.is_binary = False
        self.is_submodule = False
        self.added = 0
        self.removed = 0
        self.hunks = 0

    def finish(self) -> ChangedFile | FileSkipped:
        if self.is_binary:
            return FileSkipped(path=self.path, reason="binary")
        if self.is_submodule and self.added + self.removed == 0:
            return FileSkipped(path=self.path, reason="submodule")
        if self.hunks == 0 and not self.is_new and not self.is_deleted:
            if self.is_rename:
                reason = "rename_only"
            elif self.is_mode_only:
                reason = "mode_only"
            else:
                reason = "empty"
            return FileSkipped(path=self.path, reason=reason)
        if self.is_deleted:
            status = FileStatus.DELETED
        elif self.is_new:
            status = FileStatus.ADDED
        else:
            status = FileStatus.MODIFIED
        return ChangedFile(
            path=self.path,
            status=status,
            diff_lines=self.added + self.removed,
        )


class DiffParser:
    """Parse unified diff text and yield ChangedFile / FileSkipped objects.

    ``total_lines`` is left at 0; the change-set reader fills it from the
    working tree.

    Usage::

        parser = DiffParser(diff_text)
        for item in parser.parse():
            if isinstance(item, FileSkipped):
                ...
            elif isinstance(item, ChangedFile):
                ...
    """

    def __init__(self, diff_text: str) -> None:
        self._lines = diff_text.splitlines()

    def parse(self) -> Generator[ChangedFile | FileSkipped, None, None]:
        """Yield one item per file in the diff, in diff order."""
        idx = 0
        total = len(self._lines)
        current: Optional[_FileState] = None

        while idx < total:
            raw_line = self._lines[idx].rstrip("\r")

            # --- diff --git header → new file context ---
            m = _DIFF_HEADER_RE.match(raw_line)
            if m:
                if current is not None:
                    yield current.finish()
                current = _FileState(m.group(2))
                idx += 1

                # Parse sub-headers (index, mode changes, renames, new/deleted file)
                while idx < total:
                    sub = self._lines[idx].rstrip("\r")
                    if _INDEX_RE.match(sub) or _SIMILARITY_RE.match(sub):
                        idx += 1
                        continue
                    if _OLD_MODE_RE.match(sub):
                        current.is_mode_only = True
                        idx += 1
                        continue
                    if _NEW_MODE_RE.match(sub):
                        idx += 1
                        continue
                    if _DELETED_FILE_RE.match(sub):
                        current.is_deleted = True
                        idx += 1
                        continue
                    if _NEW_FILE_RE.match(sub):
                        current.is_new = True
                        idx += 1
                        continue
                    if _RENAME_FROM_RE.match(sub):
                        current.is_rename = True
                        idx += 1
                        continue
                    if (rt := _RENAME_TO_RE.match(sub)):
                        current.path = rt.group(1)
                        idx += 1
                        continue
                    if _BINARY_RE.match(sub):
                        current.is_binary = True
                        idx += 1
                        continue
                    break  # not a sub-header → stop
                continue

            # --- File headers (--- a/ and +++ b/) precede the first hunk ---
            in_headers = current is not None and current.hunks == 0
            if in_headers and (_FILE_HEADER_OLD.match(raw_line) or _FILE_HEADER_NEW.match(raw_line)):
                idx += 1
                continue

            # --- Hunk header ---
            if _HUNK_HEADER_RE.match(raw_line):
                if current is not None:
                    current.hunks += 1
                idx += 1
                continue

            # --- Submodule pointers and newline markers carry no lines ---
            if _SUBPROJECT_RE.match(raw_line):
                if current is not None:
                    current.is_submodule = True
                idx += 1
                continue
            if _NO_NEWLINE_RE.match(raw_line):
                idx += 1
                continue

            # --- Content lines ---
            if current is not None:
                if raw_line.startswith("+"):
                    current.added += 1
                elif raw_line.startswith("-"):
                    current.removed += 1

            idx += 1

        if current is not None:
            yield current.finish()
