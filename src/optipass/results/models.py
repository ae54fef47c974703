"""Pass result and run report models."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Mapping, Optional, Tuple

from optipass.categories import FocusCategory
from optipass.planning.models import PassPlan, PlanningWarning
from optipass.verify.models import VerificationOutcome


@dataclass(frozen=True)
class Edit:
    """A single change the worker reports having made."""

    category: FocusCategory
    file: str
    line: int
    description: str


@dataclass(frozen=True)
class WorkerVerification:
    """The worker's own lint/test report for its pass."""

    lint: str = "skipped"  # 'pass' | 'fail' | 'skipped'
    test: str = "skipped"

    @property
    def failed(self) -> bool:
        return self.lint == "fail" or self.test == "fail"


@dataclass(frozen=True)
class PassResult:
    """Outcome of one executed pass. Never mutated after creation."""

    pass_index: int
    files: Tuple[str, ...] = ()
    edits: Tuple[Edit, ...] = ()
    files_modified: Mapping[str, int] = field(default_factory=dict)
    worker_verification: WorkerVerification = field(default_factory=WorkerVerification)
    verification: Optional[VerificationOutcome] = None  # None = deferred to final verification
    error: Optional[str] = None  # worker crashed or broke its contract
    reverted: bool = False
    duration_ms: float = 0.0

    @property
    def failed(self) -> bool:
        if self.error is not None or self.worker_verification.failed:
            return True
        return self.verification is not None and self.verification.failed

    @property
    def failure_reason(self) -> Optional[str]:
        if self.error is not None:
            return self.error
        if self.worker_verification.failed:
            parts = [
                name for name, state in (
                    ("lint", self.worker_verification.lint),
                    ("test", self.worker_verification.test),
                ) if state == "fail"
            ]
            return f"worker reported {' and '.join(parts)} failure"
        if self.verification is not None and self.verification.failed:
            return self.verification.detail
        return None

    @property
    def edit_count(self) -> int:
        return len(self.edits)


class RunState(str, Enum):
    PLANNING = "planning"
    EXECUTING = "executing"
    VERIFYING = "verifying"
    DONE = "done"
    HALTED_ON_FAILURE = "halted_on_failure"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class RunReport:
    """Terminal artifact of a run."""

    baseline: str
    plan: PassPlan
    state: RunState
    pass_results: Tuple[PassResult, ...] = ()
    final_verification: Optional[VerificationOutcome] = None  # None = never ran
    halted_at: Optional[int] = None
    file_count: int = 0
    diff_lines: int = 0
    files_touched: Tuple[str, ...] = ()
    category_tallies: Mapping[FocusCategory, int] = field(default_factory=dict)
    duration_ms: float = 0.0

    @property
    def warnings(self) -> List[PlanningWarning]:
        return list(self.plan.warnings)

    @property
    def succeeded(self) -> bool:
        if self.state != RunState.DONE:
            return False
        return self.final_verification is None or not self.final_verification.failed

    @property
    def total_edits(self) -> int:
        return sum(r.edit_count for r in self.pass_results)

    @property
    def state_label(self) -> str:
        if self.state == RunState.HALTED_ON_FAILURE and self.halted_at is not None:
            return f"HaltedOnFailure({self.halted_at})"
        return self.state.value.replace("_", " ").title().replace(" ", "")

