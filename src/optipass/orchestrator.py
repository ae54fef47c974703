"""Run orchestration — plan, execute passes in order, verify, report.

State machine::

    PLANNING ─► EXECUTING(1) ─► ... ─► EXECUTING(N) ─► VERIFYING ─► DONE
        │            │
        │            ├─► HALTED_ON_FAILURE(i)   (pass i failed)
        │            └─► CANCELLED              (cancel seen at a pass boundary)
        └─► DONE                                (empty plan)

Passes run strictly sequentially in plan order; a later pass may depend on
edits made by an earlier one. Cancellation is only observed between passes
so a pass is never interrupted mid-flight.
"""

from __future__ import annotations

import logging
import threading
import time
from typing import List, Optional, Sequence

from optipass.execution.executor import PassExecutor
from optipass.git.models import ChangeSet
from optipass.planning.models import PassPlan
from optipass.planning.planner import PassPlanner
from optipass.results.aggregator import build_report
from optipass.results.models import PassResult, RunReport, RunState
from optipass.verify.models import VerificationOutcome
from optipass.verify.runner import ExternalCommand, VerificationRunner

logger = logging.getLogger(__name__)


class CancelToken:
    """Thread- and signal-safe cancellation flag."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()


class Orchestrator:
    """Sequences planner → executor (one pass at a time) → verification."""

    def __init__(
        self,
        planner: PassPlanner,
        executor: PassExecutor,
        verifier: Optional[VerificationRunner] = None,
        commands: Sequence[ExternalCommand] = (),
        cancel: Optional[CancelToken] = None,
    ) -> None:
        self.planner = planner
        self.executor = executor
        self.verifier = verifier or VerificationRunner()
        self.commands = list(commands)
        self.cancel = cancel or CancelToken()
        self.state = RunState.PLANNING

    def _transition(self, state: RunState, pass_index: Optional[int] = None) -> None:
        self.state = state
        if pass_index is None:
            logger.info("State → %s", state.value)
        else:
            logger.info("State → %s(%d)", state.value, pass_index)

    def run(self, changeset: ChangeSet, plan: Optional[PassPlan] = None) -> RunReport:
        """Execute a full run over *changeset* and return the report.

        *plan* may be supplied to reuse a plan computed earlier; otherwise
        the planner is invoked on the change-set's actionable files.
        """
        start = time.perf_counter()
        self._transition(RunState.PLANNING)
        if plan is None:
            plan = self.planner.plan(changeset.actionable)

        results: List[PassResult] = []

        def finish(
            state: RunState,
            final: Optional[VerificationOutcome] = None,
            halted_at: Optional[int] = None,
        ) -> RunReport:
            self._transition(state, halted_at)
            return build_report(
                baseline=changeset.baseline,
                plan=plan,
                state=state,
                pass_results=results,
                final_verification=final,
                halted_at=halted_at,
                file_count=len(changeset.actionable),
                diff_lines=changeset.total_diff_lines,
                duration_ms=(time.perf_counter() - start) * 1000,
            )

        if plan.is_empty:
            return finish(RunState.DONE)

        for pass_ in plan.passes:
            if self.cancel.cancelled:
                logger.warning("Cancelled before pass %d", pass_.index)
                return finish(RunState.CANCELLED)
            self._transition(RunState.EXECUTING, pass_.index)
            result = self.executor.execute(pass_)
            results.append(result)
            if result.failed:
                return finish(RunState.HALTED_ON_FAILURE, halted_at=pass_.index)

        self._transition(RunState.VERIFYING)
        final = self.verifier.verify(self.commands)
        if final.failed:
            logger.warning("Final verification failed: %s", final.detail.splitlines()[0])
        return finish(RunState.DONE, final=final)
