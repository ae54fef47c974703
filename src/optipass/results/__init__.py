"""Pass results, run reports, and aggregation."""

from optipass.results.aggregator import build_report, tally_categories, touched_files
from optipass.results.models import Edit, PassResult, RunReport, RunState, WorkerVerification

__all__ = [
    "Edit",
    "PassResult",
    "RunReport",
    "RunState",
    "WorkerVerification",
    "build_report",
    "tally_categories",
    "touched_files",
]
