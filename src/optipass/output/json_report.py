"""JSON reporter for scripts and CI pipelines."""

from __future__ import annotations

import json
from typing import Any, Dict, List, Optional

from optipass.planning.models import Pass, PassPlan
from optipass.results.models import PassResult, RunReport
from optipass.verify.models import VerificationOutcome

REPORT_VERSION = "1.0"


def _verification(outcome: Optional[VerificationOutcome]) -> Optional[Dict[str, Any]]:
    if outcome is None:
        return None
    return {
        "status": outcome.status.value,
        "detail": outcome.detail,
        "checks": [
            {
                "name": c.name,
                "exit_code": c.exit_code,
                "passed": c.passed,
                "skipped": c.skipped,
            }
            for c in outcome.checks
        ],
    }


def _pass(p: Pass) -> Dict[str, Any]:
    return {
        "index": p.index,
        "files": p.paths,
        "focus": [c.value for c in p.focus],
        "diff_lines": p.diff_lines,
        "total_lines": p.total_lines,
        "notes": p.notes,
    }


def _result(r: PassResult) -> Dict[str, Any]:
    return {
        "index": r.pass_index,
        "files": list(r.files),
        "edits": [
            {
                "category": e.category.value,
                "file": e.file,
                "line": e.line,
                "description": e.description,
            }
            for e in r.edits
        ],
        "files_modified": dict(r.files_modified),
        "worker_verification": {
            "lint": r.worker_verification.lint,
            "test": r.worker_verification.test,
        },
        "verification": _verification(r.verification),
        "failed": r.failed,
        **({"error": r.error} if r.error else {}),
        "reverted": r.reverted,
        "duration_ms": r.duration_ms,
    }


def plan_to_dict(plan: PassPlan, *, baseline: Optional[str] = None) -> Dict[str, Any]:
    """Convert a PassPlan to a JSON-serialisable dict."""
    return {
        "version": REPORT_VERSION,
        **({"baseline": baseline} if baseline else {}),
        "scope": {
            "files": plan.file_count,
            "diff_lines": plan.diff_lines,
            "passes_planned": len(plan.passes),
        },
        "warnings": [{"code": w.code, "message": w.message} for w in plan.warnings],
        "passes": [_pass(p) for p in plan.passes],
    }


def to_dict(report: RunReport) -> Dict[str, Any]:
    """Convert a RunReport to a JSON-serialisable dict."""
    results: List[Dict[str, Any]] = []
    planned = {p.index: p for p in report.plan.passes}
    for r in report.pass_results:
        entry = _result(r)
        if r.pass_index in planned:
            entry["focus"] = [c.value for c in planned[r.pass_index].focus]
        results.append(entry)

    return {
        "version": REPORT_VERSION,
        "baseline": report.baseline,
        "state": report.state.value,
        "halted_at": report.halted_at,
        "succeeded": report.succeeded,
        "scope": {
            "files": report.file_count,
            "diff_lines": report.diff_lines,
            "passes_planned": len(report.plan.passes),
            "passes_executed": len(report.pass_results),
        },
        "warnings": [{"code": w.code, "message": w.message} for w in report.warnings],
        "passes": results,
        "final_verification": _verification(report.final_verification),
        "category_tallies": {c.value: n for c, n in report.category_tallies.items()},
        "total_edits": report.total_edits,
        "files_touched": list(report.files_touched),
        "duration_ms": report.duration_ms,
    }


def render(report: RunReport) -> str:
    """Return formatted JSON string."""
    return json.dumps(to_dict(report), indent=2)


def render_plan(plan: PassPlan, *, baseline: Optional[str] = None) -> str:
    return json.dumps(plan_to_dict(plan, baseline=baseline), indent=2)
