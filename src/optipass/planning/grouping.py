"""File grouping rules applied before sizing.

Rules, in priority order:

1. Files sharing a directory are grouped together.
2. Singleton groups with an import relationship join the group they
   reference (best-effort; no detection just means no merge).
3. Test files ride along with the implementation they test. Tests with
   no matching implementation are re-homed into the nearest
   implementation group; they form their own group only when no
   implementation file changed.
4. Configuration files are grouped together regardless of directory.

A group is a list of *units*. A unit is an implementation file plus the
tests attached to it and is never split across passes.
"""

from __future__ import annotations

import posixpath
import re
from dataclasses import dataclass, field
from fnmatch import fnmatch
from pathlib import PurePosixPath
from typing import Dict, Iterable, List, Mapping, Optional, Set, Tuple

from optipass.git.models import ChangedFile

_TEST_AFFIX_RE = re.compile(r"^(?:test_)?(.+?)(?:_test|_tests|\.test|\.spec)?$")


@dataclass(eq=False)
class Unit:
    """Files that must land in the same pass."""

    files: List[ChangedFile]

    @property
    def anchor(self) -> str:
        return self.files[0].path

    @property
    def diff_lines(self) -> int:
        return sum(f.diff_lines for f in self.files)

    @property
    def total_lines(self) -> int:
        return sum(f.total_lines for f in self.files)


@dataclass(eq=False)
class Group:
    """Candidate pass contents before and during sizing."""

    kind: str  # 'module' | 'config' | 'tests' | 'mixed'
    units: List[Unit] = field(default_factory=list)
    notes: List[str] = field(default_factory=list)

    @property
    def files(self) -> List[ChangedFile]:
        return [f for u in self.units for f in u.files]

    @property
    def paths(self) -> List[str]:
        return [f.path for f in self.files]

    @property
    def first_path(self) -> str:
        return min(self.paths)

    @property
    def diff_lines(self) -> int:
        return sum(u.diff_lines for u in self.units)

    @property
    def total_lines(self) -> int:
        return sum(u.total_lines for u in self.units)

    @property
    def directory(self) -> str:
        dirs = [posixpath.dirname(p) for p in self.paths]
        if any(not d for d in dirs):
            return ""
        return posixpath.commonpath(dirs)

    def absorb(self, other: "Group", note: Optional[str] = None) -> None:
        self.units.extend(other.units)
        for n in other.notes:
            if n not in self.notes:
                self.notes.append(n)
        if note and note not in self.notes:
            self.notes.append(note)
        if self.kind != other.kind:
            self.kind = "mixed"


def matches_any(path: str, patterns: Iterable[str]) -> bool:
    name = PurePosixPath(path).name
    return any(fnmatch(path, p) or fnmatch(name, p) for p in patterns)


def shared_prefix(a: str, b: str) -> int:
    """Number of leading path components two directories have in common."""
    count = 0
    for x, y in zip(PurePosixPath(a).parts, PurePosixPath(b).parts):
        if x != y:
            break
        count += 1
    return count


def classify(
    files: Iterable[ChangedFile],
    test_patterns: Iterable[str],
    config_patterns: Iterable[str],
) -> Tuple[List[ChangedFile], List[ChangedFile], List[ChangedFile]]:
    """Split files into (implementation, tests, config). Test patterns win."""
    test_patterns = list(test_patterns)
    config_patterns = list(config_patterns)
    impl: List[ChangedFile] = []
    tests: List[ChangedFile] = []
    configs: List[ChangedFile] = []
    for f in files:
        if matches_any(f.path, test_patterns):
            tests.append(f)
        elif matches_any(f.path, config_patterns):
            configs.append(f)
        else:
            impl.append(f)
    return impl, tests, configs


def group_by_directory(files: Iterable[ChangedFile], kind: str = "module") -> List[Group]:
    """Rule 1: one group per parent directory, in first-path order."""
    by_dir: Dict[str, Group] = {}
    for f in sorted(files, key=lambda f: f.path):
        directory = posixpath.dirname(f.path)
        group = by_dir.get(directory)
        if group is None:
            label = directory or "repository root"
            group = Group(kind=kind, notes=[f"directory {label}"])
            by_dir[directory] = group
        group.units.append(Unit(files=[f]))
    return list(by_dir.values())


def merge_by_imports(
    groups: List[Group],
    references: Mapping[str, Set[str]],
    *,
    max_files: int,
    max_diff_lines: int,
) -> List[Group]:
    """Rule 2: fold singleton groups into a group they import or are imported by."""
    owner: Dict[str, Group] = {}
    for g in groups:
        for p in g.paths:
            owner[p] = g

    # Undirected view: a file is related to what it imports and what imports it
    related: Dict[str, Set[str]] = {p: set(references.get(p, ())) for p in owner}
    for src, targets in references.items():
        for t in targets:
            if t in related and src in owner:
                related[t].add(src)

    result = list(groups)
    for group in list(result):
        if len(group.files) != 1 or group not in result:
            continue
        path = group.paths[0]
        for other_path in sorted(related.get(path, ())):
            target = owner.get(other_path)
            if target is None or target is group:
                continue
            if len(target.files) + 1 > max_files:
                continue
            if target.diff_lines + group.diff_lines > max_diff_lines:
                continue
            target.absorb(group, note=f"{path} joined via import of {other_path}"
                          if other_path in references.get(path, ())
                          else f"{path} joined as imported by {other_path}")
            result.remove(group)
            owner[path] = target
            break
    return result


def _test_subject(path: str) -> str:
    """Stem of the implementation file a test file exercises."""
    name = PurePosixPath(path).name
    stem = name.split(".", 1)[0] if name.count(".") > 1 else PurePosixPath(path).stem
    m = _TEST_AFFIX_RE.match(stem)
    return m.group(1) if m else stem


def attach_tests(
    groups: List[Group],
    tests: Iterable[ChangedFile],
) -> Tuple[List[Group], List[str]]:
    """Rule 3: attach tests to their implementation's unit.

    Returns the groups plus the paths of orphan tests that were re-homed
    into the nearest group. With no implementation groups at all, tests
    become their own directory groups and nothing is reported as orphaned.
    """
    tests = sorted(tests, key=lambda f: f.path)
    if not tests:
        return groups, []
    if not groups:
        return group_by_directory(tests, kind="tests"), []

    units_by_stem: Dict[str, List[Tuple[Group, Unit]]] = {}
    for g in groups:
        for u in g.units:
            units_by_stem.setdefault(PurePosixPath(u.anchor).stem, []).append((g, u))

    orphans: List[str] = []
    for test in tests:
        test_dir = posixpath.dirname(test.path)
        candidates = units_by_stem.get(_test_subject(test.path), [])
        if candidates:
            group, unit = max(
                candidates,
                key=lambda gu: shared_prefix(test_dir, posixpath.dirname(gu[1].anchor)),
            )
            unit.files.append(test)
            note = f"{PurePosixPath(test.path).name} paired with {PurePosixPath(unit.anchor).name}"
        else:
            group, unit = _nearest_unit(groups, test_dir)
            unit.files.append(test)
            orphans.append(test.path)
            note = f"{test.path} re-homed (no matching implementation changed)"
        group.notes.append(note)
    return groups, orphans


def _nearest_unit(groups: List[Group], directory: str) -> Tuple[Group, Unit]:
    best: Optional[Tuple[int, int, Group, Unit]] = None
    for gi, g in enumerate(groups):
        for u in g.units:
            score = shared_prefix(directory, posixpath.dirname(u.anchor))
            # Highest prefix wins; earlier group wins ties
            if best is None or score > best[0]:
                best = (score, gi, g, u)
    assert best is not None
    return best[2], best[3]


def config_group(configs: Iterable[ChangedFile]) -> Optional[Group]:
    """Rule 4: all configuration files in one group."""
    configs = sorted(configs, key=lambda f: f.path)
    if not configs:
        return None
    return Group(
        kind="config",
        units=[Unit(files=[f]) for f in configs],
        notes=["configuration files"],
    )
