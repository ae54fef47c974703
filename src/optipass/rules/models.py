"""Focus signal rule model — pattern stored as string, compiled at load time."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from fnmatch import fnmatch
from pathlib import PurePosixPath
from typing import List, Optional

from optipass.categories import FocusCategory


@dataclass
class Rule:
    """A single relevance signal for one focus category.

    Every match of ``pattern`` in a file adds ``weight`` to the category's
    score. ``file_patterns`` restricts the rule to matching file names
    (empty = every file). The compiled regex is built lazily on first
    access via ``compiled_pattern``.
    """

    id: str
    name: str
    description: str
    category: FocusCategory
    pattern: str
    weight: float = 1.0
    file_patterns: Optional[List[str]] = None
    multiline: bool = True
    enabled: bool = True

    # --- cached compiled objects (not serialised) ---
    _compiled_pattern: Optional[re.Pattern[str]] = field(
        default=None, init=False, repr=False, compare=False
    )

    @property
    def compiled_pattern(self) -> re.Pattern[str]:
        if self._compiled_pattern is None:
            flags = re.MULTILINE if self.multiline else 0
            self._compiled_pattern = re.compile(self.pattern, flags)
        return self._compiled_pattern

    def applies_to(self, path: str) -> bool:
        if not self.file_patterns:
            return True
        name = PurePosixPath(path).name
        return any(fnmatch(name, p) or fnmatch(path, p) for p in self.file_patterns)

    def score(self, path: str, text: str) -> float:
        """Return the weighted match count of this rule in *text*."""
        if not self.applies_to(path):
            return 0.0
        hits = sum(1 for _ in self.compiled_pattern.finditer(text))
        return hits * self.weight
