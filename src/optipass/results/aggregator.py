"""Pass-result aggregation into a run report."""

from __future__ import annotations

from typing import Dict, Iterable, List, Optional, Tuple

from optipass.categories import ALL_CATEGORIES, FocusCategory
from optipass.planning.models import PassPlan
from optipass.results.models import PassResult, RunReport, RunState
from optipass.verify.models import VerificationOutcome


def tally_categories(results: Iterable[PassResult]) -> Dict[FocusCategory, int]:
    """Count edits per focus category, in category order, omitting zeros."""
    counts: Dict[FocusCategory, int] = {}
    for result in results:
        for edit in result.edits:
            counts[edit.category] = counts.get(edit.category, 0) + 1
    return {cat: counts[cat] for cat in ALL_CATEGORIES if cat in counts}


def touched_files(results: Iterable[PassResult]) -> Tuple[str, ...]:
    """Deduplicated, sorted files that at least one pass actually modified.

    Reverted passes left no edits behind and are excluded.
    """
    touched: set[str] = set()
    for result in results:
        if result.reverted:
            continue
        touched.update(path for path, count in result.files_modified.items() if count > 0)
    return tuple(sorted(touched))


def build_report(
    *,
    baseline: str,
    plan: PassPlan,
    state: RunState,
    pass_results: List[PassResult],
    final_verification: Optional[VerificationOutcome] = None,
    halted_at: Optional[int] = None,
    file_count: Optional[int] = None,
    diff_lines: Optional[int] = None,
    duration_ms: float = 0.0,
) -> RunReport:
    """Freeze the accumulated results into a RunReport."""
    results = tuple(pass_results)
    return RunReport(
        baseline=baseline,
        plan=plan,
        state=state,
        pass_results=results,
        final_verification=final_verification,
        halted_at=halted_at,
        file_count=plan.file_count if file_count is None else file_count,
        diff_lines=plan.diff_lines if diff_lines is None else diff_lines,
        files_touched=touched_files(results),
        category_tallies=tally_categories(results),
        duration_ms=round(duration_ms, 2),
    )
