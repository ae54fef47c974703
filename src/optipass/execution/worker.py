"""Optimization worker contract and the subprocess implementation.

The worker is an external collaborator: it receives the files of one
pass plus the ranked focus categories and returns the edits it made.
How it decides on edits is not this package's concern.

Wire format (JSON on stdin / stdout)::

    request  = {"pass_index": 1, "files": [...], "focus_categories": [...],
                "context_notes": "..."}
    response = {"edits": [{"category", "file", "line", "description"}, ...],
                "files_modified": {"path": count, ...},
                "verification": {"lint": "pass|fail|skipped",
                                 "test": "pass|fail|skipped"}}
"""

from __future__ import annotations

import json
import logging
import subprocess
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Protocol, Sequence, Tuple

from optipass.categories import FocusCategory, parse_category
from optipass.results.models import Edit, WorkerVerification

logger = logging.getLogger(__name__)

_PASS_WORDS = {"pass", "passed", "ok", "success", "true"}
_FAIL_WORDS = {"fail", "failed", "error", "failure", "false"}


class WorkerError(Exception):
    """The worker could not run or broke its contract."""


@dataclass(frozen=True)
class WorkerRequest:
    pass_index: int
    files: Tuple[str, ...]
    focus: Tuple[FocusCategory, ...]
    notes: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "pass_index": self.pass_index,
            "files": list(self.files),
            "focus_categories": [c.value for c in self.focus],
            "context_notes": self.notes,
        }


@dataclass(frozen=True)
class WorkerResponse:
    edits: Tuple[Edit, ...] = ()
    files_modified: Mapping[str, int] = field(default_factory=dict)
    verification: WorkerVerification = field(default_factory=WorkerVerification)

    def outside(self, allowed: Sequence[str]) -> List[str]:
        """Paths this response touched that were not assigned to the pass."""
        allowed_set = set(allowed)
        paths = set(self.files_modified) | {e.file for e in self.edits}
        return sorted(paths - allowed_set)


class OptimizationWorker(Protocol):
    """Turns a pass descriptor into concrete edits. Must block until done."""

    def optimize(self, request: WorkerRequest) -> WorkerResponse:
        ...


def _check_state(value: Any) -> str:
    if isinstance(value, bool):
        return "pass" if value else "fail"
    text = str(value).strip().lower() if value is not None else ""
    if text in _PASS_WORDS:
        return "pass"
    if text in _FAIL_WORDS:
        return "fail"
    return "skipped"


def _first(data: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        if key in data:
            return data[key]
    return None


def parse_response(data: Any) -> WorkerResponse:
    """Validate a decoded JSON response. Raises WorkerError on bad shape."""
    if not isinstance(data, dict):
        raise WorkerError("worker response must be a JSON object")

    raw_edits = data.get("edits")
    if raw_edits is None:
        raw_edits = []
    if not isinstance(raw_edits, list):
        raise WorkerError("edits must be a list")

    edits: List[Edit] = []
    for idx, raw in enumerate(raw_edits, 1):
        if not isinstance(raw, dict):
            raise WorkerError(f"edit {idx} must be an object")
        try:
            edits.append(Edit(
                category=parse_category(str(raw["category"])),
                file=str(raw["file"]),
                line=int(raw.get("line") or 0),
                description=str(raw.get("description", "")),
            ))
        except (KeyError, TypeError, ValueError) as exc:
            raise WorkerError(f"edit {idx} is invalid: {exc}") from exc

    raw_modified = _first(data, "files_modified", "filesModified") or {}
    if not isinstance(raw_modified, dict):
        raise WorkerError("files_modified must be an object mapping path to edit count")
    try:
        files_modified = {str(k): int(v) for k, v in raw_modified.items()}
    except (TypeError, ValueError) as exc:
        raise WorkerError(f"files_modified counts must be integers: {exc}") from exc
    if not files_modified and edits:
        for e in edits:
            files_modified[e.file] = files_modified.get(e.file, 0) + 1

    raw_verification = data.get("verification") or {}
    if not isinstance(raw_verification, dict):
        raise WorkerError("verification must be an object")
    verification = WorkerVerification(
        lint=_check_state(_first(raw_verification, "lint", "lint_outcome", "lintOutcome")),
        test=_check_state(_first(raw_verification, "test", "test_outcome", "testOutcome")),
    )
    return WorkerResponse(edits=tuple(edits), files_modified=files_modified, verification=verification)


class SubprocessWorker:
    """Runs an external command per pass, speaking JSON over stdin/stdout.

    *timeout* of None waits indefinitely; timeout and cancellation policy
    belong to the worker.
    """

    def __init__(self, argv: Sequence[str], cwd: Path, timeout: Optional[int] = None) -> None:
        if not argv:
            raise WorkerError("no worker command configured")
        self.argv = list(argv)
        self.cwd = cwd
        self.timeout = timeout

    def optimize(self, request: WorkerRequest) -> WorkerResponse:
        payload = json.dumps(request.to_dict())
        logger.debug("Invoking worker %s for pass %d", self.argv[0], request.pass_index)
        try:
            result = subprocess.run(
                self.argv,
                input=payload,
                cwd=self.cwd,
                capture_output=True,
                text=True,
                encoding="utf-8",
                errors="replace",
                timeout=self.timeout,
            )
        except FileNotFoundError as exc:
            raise WorkerError(f"worker command not found: {self.argv[0]}") from exc
        except subprocess.TimeoutExpired as exc:
            raise WorkerError(f"worker timed out after {self.timeout}s") from exc

        if result.returncode != 0:
            stderr = result.stderr.strip()
            raise WorkerError(
                f"worker exited with code {result.returncode}" + (f": {stderr[-500:]}" if stderr else "")
            )
        try:
            data = json.loads(result.stdout)
        except json.JSONDecodeError as exc:
            raise WorkerError(f"worker returned invalid JSON: {exc}") from exc

        response = parse_response(data)
        outside = response.outside(request.files)
        if outside:
            raise WorkerError(f"worker touched files outside its pass: {', '.join(outside)}")
        return response
