"""Pass planning — grouping, sizing, and focus ranking."""

from optipass.planning.focus import rank_focus, score_categories, select_focus
from optipass.planning.models import Pass, PassPlan, PlanningWarning
from optipass.planning.planner import PassPlanner

__all__ = [
    "Pass",
    "PassPlan",
    "PassPlanner",
    "PlanningWarning",
    "rank_focus",
    "score_categories",
    "select_focus",
]
