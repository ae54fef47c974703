"""Pass-plan data models."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Tuple

from optipass.categories import FocusCategory
from optipass.git.models import ChangedFile


@dataclass(frozen=True)
class PlanningWarning:
    """Non-fatal planning condition surfaced to the user."""

    code: str  # 'scope_too_large', 'passes_capped', 'orphan_tests', 'oversized_file', 'imports_unavailable'
    message: str


@dataclass(frozen=True)
class Pass:
    """One bounded unit of work handed to a single worker invocation."""

    index: int  # 1-based, sequential
    files: Tuple[ChangedFile, ...]
    focus: Tuple[FocusCategory, ...]
    notes: str = ""

    def __post_init__(self) -> None:
        if self.index < 1:
            raise ValueError(f"pass index must be >= 1, got {self.index}")
        if not self.files:
            raise ValueError(f"pass {self.index} has no files")

    @property
    def paths(self) -> List[str]:
        return [f.path for f in self.files]

    @property
    def diff_lines(self) -> int:
        return sum(f.diff_lines for f in self.files)

    @property
    def total_lines(self) -> int:
        return sum(f.total_lines for f in self.files)


@dataclass
class PassPlan:
    """Ordered passes plus any warnings raised while planning."""

    passes: List[Pass] = field(default_factory=list)
    warnings: List[PlanningWarning] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.passes

    @property
    def file_count(self) -> int:
        return sum(len(p.files) for p in self.passes)

    @property
    def diff_lines(self) -> int:
        return sum(p.diff_lines for p in self.passes)
