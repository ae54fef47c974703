"""Focus-category scoring and ranking for a pass."""

from __future__ import annotations

import logging
from typing import Dict, Mapping, Tuple

from optipass.categories import ALL_CATEGORIES, FocusCategory
from optipass.config.schema import FocusConfig
from optipass.planning.shape import duplicate_line_count, long_function_count, max_nesting_depth
from optipass.rules.registry import RuleRegistry

logger = logging.getLogger(__name__)

# Indentation levels tolerated before nesting counts as overcomplication
_NESTING_ALLOWANCE = 4


def score_categories(
    sources: Mapping[str, str],
    registry: RuleRegistry,
    config: FocusConfig,
) -> Dict[FocusCategory, float]:
    """Sum rule and shape signals for every category across *sources*."""
    scores: Dict[FocusCategory, float] = {cat: 0.0 for cat in ALL_CATEGORIES}
    rules = registry.enabled_rules()

    for path, text in sources.items():
        if not text:
            continue
        for rule in rules:
            hit = rule.score(path, text)
            if hit:
                scores[rule.category] += hit

        long_funcs = long_function_count(text, config.long_function_lines)
        scores[FocusCategory.LONGCUT] += 2.0 * long_funcs
        scores[FocusCategory.REDUNDANCY] += 1.0 * long_funcs

        scores[FocusCategory.DUPLICATION] += 1.0 * duplicate_line_count(text)

        excess = max_nesting_depth(text) - _NESTING_ALLOWANCE
        if excess > 0:
            scores[FocusCategory.OVERCOMPLICATION] += float(excess)

    logger.debug(
        "Focus scores: %s",
        ", ".join(f"{c.value}={s:g}" for c, s in scores.items() if s),
    )
    return scores


def rank_focus(
    scores: Mapping[FocusCategory, float],
    min_categories: int = 2,
    max_categories: int = 4,
) -> Tuple[FocusCategory, ...]:
    """Return the top categories, highest score first.

    Ties fall back to declaration order. Categories with a positive score
    are kept up to *max_categories*; the list is padded to *min_categories*
    in the same order when too few categories scored.
    """
    ranked = sorted(ALL_CATEGORIES, key=lambda c: (-scores.get(c, 0.0), c.order))
    positive = sum(1 for c in ranked if scores.get(c, 0.0) > 0)
    keep = min(max(positive, min_categories), max_categories)
    return tuple(ranked[:keep])


def select_focus(
    sources: Mapping[str, str],
    registry: RuleRegistry,
    config: FocusConfig,
) -> Tuple[FocusCategory, ...]:
    """Score *sources* and return the ranked focus list."""
    scores = score_categories(sources, registry, config)
    return rank_focus(scores, config.min_categories, config.max_categories)


def all_categories() -> Tuple[FocusCategory, ...]:
    """Every category, unranked, in declaration order."""
    return tuple(ALL_CATEGORIES)
