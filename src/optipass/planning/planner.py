"""Pass planner — partition a change-set into bounded, ordered passes.

Pipeline:

1. Classify actionable files into implementation, test and config files.
2. Group them (see ``optipass.planning.grouping``).
3. Split every group into chunks that respect the per-pass budget.
4. Coalesce undersized chunks with their nearest neighbour.
5. Merge the least related chunks until the pass cap is met.
6. Rank focus categories for each surviving chunk.

The result is always an exact partition of the actionable files.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

from optipass.config.schema import OptipassConfig, PlannerConfig
from optipass.git.models import ChangedFile
from optipass.planning.focus import all_categories, select_focus
from optipass.planning.grouping import (
    Group,
    Unit,
    attach_tests,
    classify,
    config_group,
    group_by_directory,
    merge_by_imports,
    shared_prefix,
)
from optipass.planning.imports import find_references
from optipass.planning.models import Pass, PassPlan, PlanningWarning
from optipass.rules.registry import RuleRegistry, build_registry

logger = logging.getLogger(__name__)

# Files larger than this are not read for focus ranking or import detection
_MAX_SOURCE_BYTES = 1024 * 1024


class PassPlanner:
    """Group changed files into at most ``max_passes`` ordered passes."""

    def __init__(
        self,
        config: Optional[OptipassConfig] = None,
        repo_root: Optional[Path] = None,
        rules: Optional[RuleRegistry] = None,
    ) -> None:
        self.config = config or OptipassConfig()
        self.repo_root = repo_root
        self.rules = rules or build_registry(self.config, repo_root)

    @property
    def _limits(self) -> PlannerConfig:
        return self.config.planner

    # ---- public API ----

    def plan(
        self,
        files: Iterable[ChangedFile],
        sources: Optional[Mapping[str, str]] = None,
    ) -> PassPlan:
        """Return the ordered pass plan for *files*.

        Deleted files are ignored. *sources* maps paths to file text; when
        omitted, text is read from ``repo_root`` (or treated as empty).
        """
        actionable = sorted(
            {f.path: f for f in files if f.is_actionable}.values(),
            key=lambda f: f.path,
        )
        if not actionable:
            logger.info("No actionable files; plan is empty")
            return PassPlan()

        limits = self._limits
        warnings: List[PlanningWarning] = []

        if len(actionable) > limits.scope_warning_files:
            warnings.append(PlanningWarning(
                code="scope_too_large",
                message=(
                    f"{len(actionable)} files changed (more than {limits.scope_warning_files}); "
                    f"work is capped at {limits.max_passes} passes and each pass will be broad."
                ),
            ))

        text = dict(sources) if sources is not None else self._read_sources(actionable)

        impl, tests, configs = classify(actionable, limits.test_patterns, limits.config_patterns)
        groups = group_by_directory(impl)

        if limits.detect_imports:
            references = find_references({f.path: text.get(f.path, "") for f in impl})
            groups = merge_by_imports(
                groups,
                references,
                max_files=limits.max_files_per_pass,
                max_diff_lines=limits.max_diff_lines_per_pass,
            )
        else:
            warnings.append(PlanningWarning(
                code="imports_unavailable",
                message="Import detection is disabled; files are grouped by directory only.",
            ))

        groups, orphans = attach_tests(groups, tests)
        if orphans:
            warnings.append(PlanningWarning(
                code="orphan_tests",
                message=(
                    f"{len(orphans)} test file(s) without a changed implementation were "
                    f"re-homed into the nearest pass: {', '.join(orphans)}"
                ),
            ))

        cfg_group = config_group(configs)
        if cfg_group is not None:
            groups.append(cfg_group)

        chunks: List[Group] = []
        for group in groups:
            chunks.extend(self._split(group, warnings))
        chunks = self._coalesce(chunks)
        chunks = self._cap(chunks, warnings)
        chunks.sort(key=lambda c: (c.kind == "config", c.first_path))

        passes = self._build_passes(chunks, text, single_file=len(actionable) == 1)
        plan = PassPlan(passes=passes, warnings=warnings)
        logger.info(
            "Planned %d pass(es) over %d file(s), %d warning(s)",
            len(passes), plan.file_count, len(warnings),
        )
        return plan

    # ---- sizing ----

    def _fits(self, files: int, diff_lines: int, total_lines: int) -> bool:
        limits = self._limits
        return (
            files <= limits.max_files_per_pass
            and diff_lines <= limits.max_diff_lines_per_pass
            and total_lines <= limits.max_total_lines_per_pass
        )

    def _split(self, group: Group, warnings: List[PlanningWarning]) -> List[Group]:
        """Cut *group* into consecutive chunks within the per-pass budget."""
        if self._fits(len(group.files), group.diff_lines, group.total_lines):
            return [group]

        chunks: List[Group] = []
        current: List[Unit] = []
        for unit in group.units:
            if not self._fits(len(unit.files), unit.diff_lines, unit.total_lines):
                warnings.append(PlanningWarning(
                    code="oversized_file",
                    message=(
                        f"{unit.anchor} exceeds the per-pass budget "
                        f"({unit.diff_lines} diff lines, {unit.total_lines} total lines); "
                        "it gets a pass of its own."
                    ),
                ))
                if current:
                    chunks.append(Group(kind=group.kind, units=current))
                    current = []
                chunks.append(Group(kind=group.kind, units=[unit]))
                continue
            candidate = current + [unit]
            if current and not self._fits(
                sum(len(u.files) for u in candidate),
                sum(u.diff_lines for u in candidate),
                sum(u.total_lines for u in candidate),
            ):
                chunks.append(Group(kind=group.kind, units=current))
                current = [unit]
            else:
                current = candidate
        if current:
            chunks.append(Group(kind=group.kind, units=current))

        for n, chunk in enumerate(chunks, 1):
            chunk.notes = list(group.notes) + [f"part {n} of {len(chunks)}"]
        logger.debug("Split group %s into %d chunk(s)", group.directory or ".", len(chunks))
        return chunks

    def _coalesce(self, chunks: List[Group]) -> List[Group]:
        """Fold chunks below ``min_files_per_pass`` into their nearest neighbour."""
        limits = self._limits
        chunks = list(chunks)
        changed = True
        while changed:
            changed = False
            small = sorted(
                (c for c in chunks if len(c.files) < limits.min_files_per_pass),
                key=lambda c: (len(c.files), chunks.index(c)),
            )
            for chunk in small:
                partner = self._best_partner(chunk, chunks)
                if partner is None:
                    continue
                self._merge(chunks, chunk, partner)
                changed = True
                break
        return chunks

    def _best_partner(self, chunk: Group, chunks: List[Group]) -> Optional[Group]:
        best: Optional[Tuple[Tuple[int, int, int], Group]] = None
        for idx, other in enumerate(chunks):
            if other is chunk:
                continue
            if not self._fits(
                len(chunk.files) + len(other.files),
                chunk.diff_lines + other.diff_lines,
                chunk.total_lines + other.total_lines,
            ):
                continue
            key = (-shared_prefix(chunk.directory, other.directory), len(other.files), idx)
            if best is None or key < best[0]:
                best = (key, other)
        return best[1] if best else None

    @staticmethod
    def _merge(chunks: List[Group], a: Group, b: Group, note: Optional[str] = None) -> None:
        """Merge *a* and *b* in place, keeping the earlier chunk's position."""
        first, second = (a, b) if chunks.index(a) < chunks.index(b) else (b, a)
        first.absorb(second, note=note)
        chunks.remove(second)

    def _cap(self, chunks: List[Group], warnings: List[PlanningWarning]) -> List[Group]:
        """Merge least related small chunks until at most ``max_passes`` remain."""
        limits = self._limits
        if len(chunks) <= limits.max_passes:
            return chunks
        original = len(chunks)
        chunks = list(chunks)
        while len(chunks) > limits.max_passes:
            best: Optional[Tuple[Tuple[int, int, int, int], Group, Group]] = None
            for i, a in enumerate(chunks):
                for j in range(i + 1, len(chunks)):
                    b = chunks[j]
                    key = (
                        len(a.files) + len(b.files),
                        -shared_prefix(a.directory, b.directory),
                        i,
                        j,
                    )
                    if best is None or key < best[0]:
                        best = (key, a, b)
            assert best is not None
            _, a, b = best
            self._merge(chunks, a, b, note=f"merged to respect the {limits.max_passes}-pass cap")
        warnings.append(PlanningWarning(
            code="passes_capped",
            message=(
                f"Grouping produced {original} passes; merged down to {limits.max_passes}. "
                "Some passes exceed the per-pass size target."
            ),
        ))
        return chunks

    # ---- focus + assembly ----

    def _build_passes(
        self,
        chunks: List[Group],
        text: Mapping[str, str],
        *,
        single_file: bool,
    ) -> List[Pass]:
        passes: List[Pass] = []
        for index, chunk in enumerate(chunks, 1):
            files = tuple(sorted(chunk.files, key=lambda f: f.path))
            if single_file:
                focus = all_categories()
                notes = ["single changed file: all categories, unranked"]
            else:
                focus = select_focus(
                    {f.path: text.get(f.path, "") for f in files},
                    self.rules,
                    self.config.focus,
                )
                notes = list(chunk.notes)
            passes.append(Pass(index=index, files=files, focus=focus, notes="; ".join(notes)))
        return passes

    def _read_sources(self, files: Iterable[ChangedFile]) -> Dict[str, str]:
        sources: Dict[str, str] = {}
        if self.repo_root is None:
            return sources
        for f in files:
            path = self.repo_root / f.path
            try:
                if path.stat().st_size > _MAX_SOURCE_BYTES:
                    logger.debug("Skipping large file for analysis: %s", f.path)
                    continue
                sources[f.path] = path.read_text(encoding="utf-8", errors="replace")
            except OSError as exc:
                logger.debug("Cannot read %s for analysis: %s", f.path, exc)
        return sources
