"""Structural code-shape measurements used for focus ranking.

These are language-agnostic approximations computed from indentation and
line text; they feed category scores alongside the regex rules.
"""

from __future__ import annotations

import re
from collections import Counter
from typing import List, Tuple

_FUNC_START_RE = re.compile(
    r"^([ \t]*)(?:async[ \t]+)?(?:def[ \t]+\w+|function[ \t]*\w*[ \t]*\(|func[ \t]+\w+|fn[ \t]+\w+)"
)
# Lines too generic to count as duplication
_TRIVIAL_LINE_RE = re.compile(
    r"^(?:[})\]]+[;,]?|else:?|try:|finally:|pass|return|break|continue|\*/|/\*+|#.*|//.*|\"\"\"|'''|@\w+)$"
)


def _indent_width(line: str) -> int:
    expanded = line.expandtabs(4)
    return len(expanded) - len(expanded.lstrip(" "))


def function_lengths(text: str) -> List[Tuple[int, int]]:
    """Return (start_line, length) for each function found in *text*.

    A function runs from its header to the last non-blank line indented
    deeper than the header, or to the matching closing brace line for
    brace languages (approximated by indentation as well).
    """
    lines = text.splitlines()
    results: List[Tuple[int, int]] = []
    for idx, line in enumerate(lines):
        m = _FUNC_START_RE.match(line)
        if m is None:
            continue
        base = _indent_width(line)
        end = idx
        for j in range(idx + 1, len(lines)):
            candidate = lines[j]
            if not candidate.strip():
                continue
            if _indent_width(candidate) <= base:
                # A closing brace at the header's indentation belongs to the function
                if candidate.strip().startswith("}"):
                    end = j
                break
            end = j
        results.append((idx + 1, end - idx + 1))
    return results


def long_function_count(text: str, threshold: int = 50) -> int:
    """Number of functions spanning at least *threshold* lines."""
    return sum(1 for _, length in function_lengths(text) if length >= threshold)


def duplicate_line_count(text: str, min_length: int = 25) -> int:
    """Count repeated non-trivial lines (each extra occurrence counts once)."""
    counts: Counter[str] = Counter()
    for line in text.splitlines():
        stripped = line.strip()
        if len(stripped) < min_length or _TRIVIAL_LINE_RE.match(stripped):
            continue
        counts[stripped] += 1
    return sum(n - 1 for n in counts.values() if n > 1)


def max_nesting_depth(text: str, indent_unit: int = 4) -> int:
    """Deepest indentation level, in units of *indent_unit* columns."""
    deepest = 0
    for line in text.splitlines():
        if not line.strip():
            continue
        deepest = max(deepest, _indent_width(line) // indent_unit)
    return deepest
