"""Pass executor — one synchronous worker invocation per pass."""

from __future__ import annotations

import logging
import time
from dataclasses import replace
from pathlib import Path
from typing import Dict, Optional, Sequence

from optipass.config.schema import FailurePolicy
from optipass.execution.worker import OptimizationWorker, WorkerError, WorkerRequest
from optipass.planning.models import Pass
from optipass.results.models import PassResult
from optipass.verify.models import VerificationOutcome
from optipass.verify.runner import ExternalCommand, VerificationRunner

logger = logging.getLogger(__name__)


class PassExecutor:
    """Run a pass through the worker and wrap the outcome in a PassResult.

    The executor never lets two passes with overlapping files be in flight
    at once. A failed pass is reported through ``PassResult.failed``; the
    caller decides whether to halt. With the ``revert`` policy the pass's
    files are restored to their pre-pass contents on failure.
    """

    def __init__(
        self,
        worker: OptimizationWorker,
        *,
        verifier: Optional[VerificationRunner] = None,
        commands: Sequence[ExternalCommand] = (),
        on_failure: FailurePolicy = "retain",
        repo_root: Optional[Path] = None,
    ) -> None:
        if on_failure == "revert" and repo_root is None:
            raise ValueError("the revert policy needs a repo_root to snapshot files")
        self.worker = worker
        self.verifier = verifier
        self.commands = list(commands)
        self.on_failure = on_failure
        self.repo_root = repo_root
        self._in_flight: set[str] = set()

    def execute(self, pass_: Pass) -> PassResult:
        paths = set(pass_.paths)
        overlap = self._in_flight & paths
        if overlap:
            raise RuntimeError(
                f"pass {pass_.index} overlaps files still in flight: {', '.join(sorted(overlap))}"
            )
        self._in_flight |= paths
        try:
            return self._execute(pass_)
        finally:
            self._in_flight -= paths

    def _execute(self, pass_: Pass) -> PassResult:
        snapshot = self._snapshot(pass_) if self.on_failure == "revert" else None
        request = WorkerRequest(
            pass_index=pass_.index,
            files=tuple(pass_.paths),
            focus=pass_.focus,
            notes=pass_.notes,
        )

        paths = pass_.paths
        start = time.perf_counter()
        logger.info(
            "Pass %d: %d file(s), focus %s",
            pass_.index, len(paths), ", ".join(c.value for c in pass_.focus),
        )
        try:
            response = self.worker.optimize(request)
            outside = response.outside(paths)
            if outside:
                raise WorkerError(f"worker touched files outside its pass: {', '.join(outside)}")
        except WorkerError as exc:
            logger.error("Pass %d worker error: %s", pass_.index, exc)
            result = PassResult(
                pass_index=pass_.index,
                files=tuple(paths),
                error=str(exc),
                duration_ms=_elapsed(start),
            )
            return self._finish(result, snapshot)

        verification: Optional[VerificationOutcome] = None
        if self.verifier is not None and self.commands and not response.verification.failed:
            verification = self.verifier.verify(self.commands)

        result = PassResult(
            pass_index=pass_.index,
            files=tuple(paths),
            edits=response.edits,
            files_modified=dict(response.files_modified),
            worker_verification=response.verification,
            verification=verification,
            duration_ms=_elapsed(start),
        )
        return self._finish(result, snapshot)

    def _finish(self, result: PassResult, snapshot: Optional[Dict[str, Optional[bytes]]]) -> PassResult:
        if not result.failed:
            logger.info("Pass %d done: %d edit(s)", result.pass_index, result.edit_count)
            return result
        logger.warning("Pass %d failed: %s", result.pass_index, result.failure_reason)
        if snapshot is None:
            return result
        self._restore(snapshot)
        logger.warning("Pass %d: restored %d file(s) to their pre-pass state",
                       result.pass_index, len(snapshot))
        return replace(result, reverted=True)

    # ---- revert support ----

    def _snapshot(self, pass_: Pass) -> Dict[str, Optional[bytes]]:
        assert self.repo_root is not None
        snapshot: Dict[str, Optional[bytes]] = {}
        for path in pass_.paths:
            target = self.repo_root / path
            try:
                snapshot[path] = target.read_bytes()
            except FileNotFoundError:
                snapshot[path] = None
        return snapshot

    def _restore(self, snapshot: Dict[str, Optional[bytes]]) -> None:
        assert self.repo_root is not None
        for path, content in snapshot.items():
            target = self.repo_root / path
            if content is None:
                target.unlink(missing_ok=True)
            else:
                target.parent.mkdir(parents=True, exist_ok=True)
                target.write_bytes(content)


def _elapsed(start: float) -> float:
    return round((time.perf_counter() - start) * 1000, 2)
