"""Tests for file grouping and the pass planner."""

from collections import Counter

import pytest

from conftest import changed
from optipass.categories import ALL_CATEGORIES
from optipass.config.schema import OptipassConfig
from optipass.git.models import FileStatus
from optipass.planning.grouping import (
    attach_tests,
    classify,
    config_group,
    group_by_directory,
    matches_any,
    merge_by_imports,
    shared_prefix,
)
from optipass.planning.imports import find_references
from optipass.planning.planner import PassPlanner


def _codes(plan):
    return [w.code for w in plan.warnings]


def _assert_partition(plan, files):
    expected = sorted(f.path for f in files if f.status != FileStatus.DELETED)
    planned = [p for pass_ in plan.passes for p in pass_.paths]
    assert sorted(planned) == expected
    assert len(planned) == len(set(planned))


class TestGrouping:
    def test_shared_prefix(self):
        assert shared_prefix("src/pkg/a", "src/pkg/b") == 2
        assert shared_prefix("src", "lib") == 0
        assert shared_prefix("", "src") == 0

    def test_classify(self):
        files = [changed("pkg/core.py"), changed("tests/test_core.py"),
                 changed("pyproject.toml"), changed("web/app.spec.ts")]
        impl, tests, configs = classify(
            files,
            OptipassConfig().planner.test_patterns,
            OptipassConfig().planner.config_patterns,
        )
        assert [f.path for f in impl] == ["pkg/core.py"]
        assert [f.path for f in tests] == ["tests/test_core.py", "web/app.spec.ts"]
        assert [f.path for f in configs] == ["pyproject.toml"]

    def test_group_by_directory(self):
        groups = group_by_directory([changed("b/x.py"), changed("a/y.py"), changed("a/z.py")])
        assert [g.paths for g in groups] == [["a/y.py", "a/z.py"], ["b/x.py"]]

    def test_tests_follow_their_implementation(self):
        groups = group_by_directory([changed("pkg/parser.py"), changed("pkg/lexer.py")])
        groups, orphans = attach_tests(groups, [changed("tests/test_parser.py")])
        assert orphans == []
        units = {u.anchor: [f.path for f in u.files] for g in groups for u in g.units}
        assert units["pkg/parser.py"] == ["pkg/parser.py", "tests/test_parser.py"]

    def test_orphan_tests_rehomed(self):
        groups = group_by_directory([changed("pkg/parser.py")])
        groups, orphans = attach_tests(groups, [changed("tests/test_cache.py")])
        assert orphans == ["tests/test_cache.py"]
        assert "tests/test_cache.py" in groups[0].paths

    def test_tests_alone_when_no_implementation(self):
        groups, orphans = attach_tests([], [changed("tests/test_a.py"), changed("tests/test_b.py")])
        assert orphans == []
        assert [g.kind for g in groups] == ["tests"]

    def test_config_group_spans_directories(self):
        group = config_group([changed("setup.cfg"), changed("deploy/values.yaml")])
        assert group.kind == "config"
        assert group.paths == ["deploy/values.yaml", "setup.cfg"]
        assert config_group([]) is None

    def test_import_merges_singletons(self):
        groups = group_by_directory([
            changed("app/models/user.py"), changed("app/models/order.py"),
            changed("app/views/profile.py"),
        ])
        refs = find_references({
            "app/models/user.py": "",
            "app/models/order.py": "",
            "app/views/profile.py": "from app.models.user import User\n",
        })
        merged = merge_by_imports(groups, refs, max_files=5, max_diff_lines=400)
        assert len(merged) == 1
        assert sorted(merged[0].paths) == [
            "app/models/order.py", "app/models/user.py", "app/views/profile.py",
        ]


class TestImports:
    def test_python_absolute_and_from(self):
        refs = find_references({
            "pkg/a.py": "import pkg.b\nfrom pkg import c\n",
            "pkg/b.py": "",
            "pkg/c.py": "",
        })
        assert refs["pkg/a.py"] == {"pkg/b.py", "pkg/c.py"}

    def test_python_relative(self):
        refs = find_references({
            "pkg/sub/a.py": "from . import b\nfrom ..util import helper\n",
            "pkg/sub/b.py": "",
            "pkg/util.py": "",
        })
        assert refs["pkg/sub/a.py"] == {"pkg/sub/b.py", "pkg/util.py"}

    def test_parenthesised_import(self):
        refs = find_references({
            "pkg/a.py": "from pkg import (\n    b,\n    c as see,\n)\n",
            "pkg/b.py": "",
            "pkg/c.py": "",
        })
        assert "pkg/b.py" in refs["pkg/a.py"]

    def test_src_layout(self):
        refs = find_references({
            "src/pkg/a.py": "from pkg.b import thing\n",
            "src/pkg/b.py": "",
        })
        assert refs["src/pkg/a.py"] == {"src/pkg/b.py"}

    def test_javascript_relative(self):
        refs = find_references({
            "web/app.ts": "import { x } from './util';\nconst y = require('../lib/y');\n",
            "web/util.ts": "",
            "lib/y.js": "",
        })
        assert refs["web/app.ts"] == {"web/util.ts", "lib/y.js"}

    def test_unknown_language_no_references(self):
        assert find_references({"a.go": 'import "b"\n', "b.go": ""}) == {"a.go": set(), "b.go": set()}


class TestPlannerExamples:
    def test_two_modules_two_passes(self):
        files = [changed(f"a/m{i}.py", diff_lines=40) for i in range(3)]
        files += [changed(f"b/m{i}.py", diff_lines=88 if i < 2 else 87) for i in range(4)]
        plan = PassPlanner().plan(files)
        assert len(plan.passes) == 2
        assert plan.passes[0].paths == ["a/m0.py", "a/m1.py", "a/m2.py"]
        assert plan.passes[0].diff_lines == 120
        assert len(plan.passes[1].files) == 4
        assert plan.passes[1].diff_lines == 350
        assert plan.warnings == []
        _assert_partition(plan, files)

    def test_single_file_gets_all_categories(self):
        plan = PassPlanner().plan([changed("utils/format.py", diff_lines=15)])
        assert len(plan.passes) == 1
        assert plan.passes[0].focus == tuple(ALL_CATEGORIES)

    def test_large_scope_capped_with_warning(self):
        sizes = [4, 4, 3, 3, 3, 3]
        files = [
            changed(f"mod{m}/f{i}.py", diff_lines=10)
            for m, count in enumerate(sizes) for i in range(count)
        ]
        assert len(files) == 20
        plan = PassPlanner().plan(files)
        assert len(plan.passes) == 5
        assert "scope_too_large" in _codes(plan)
        assert "passes_capped" in _codes(plan)
        _assert_partition(plan, files)


class TestPlannerBehaviour:
    def test_no_actionable_files(self):
        plan = PassPlanner().plan([changed("gone.py", status=FileStatus.DELETED)])
        assert plan.is_empty
        assert plan.warnings == []

    def test_deleted_files_never_planned(self):
        files = [changed("a/x.py"), changed("a/y.py"), changed("a/z.py", status=FileStatus.DELETED)]
        plan = PassPlanner().plan(files)
        _assert_partition(plan, files)

    def test_indices_sequential(self):
        files = [changed(f"d{d}/f{i}.py") for d in range(4) for i in range(3)]
        plan = PassPlanner().plan(files)
        assert [p.index for p in plan.passes] == list(range(1, len(plan.passes) + 1))

    def test_focus_bounds(self):
        files = [changed(f"d{d}/f{i}.py") for d in range(3) for i in range(3)]
        sources = {f.path: "def f(x: Any):\n    tmp = x\n    return tmp\n" for f in files}
        plan = PassPlanner().plan(files, sources=sources)
        for p in plan.passes:
            assert 2 <= len(p.focus) <= 4
            assert len(set(p.focus)) == len(p.focus)

    def test_large_group_is_split(self):
        files = [changed(f"pkg/f{i}.py", diff_lines=10) for i in range(8)]
        plan = PassPlanner().plan(files)
        assert len(plan.passes) == 2
        assert all(len(p.files) <= 5 for p in plan.passes)
        assert "part 1 of 2" in plan.passes[0].notes
        _assert_partition(plan, files)

    def test_diff_budget_split(self):
        files = [changed(f"pkg/f{i}.py", diff_lines=150) for i in range(4)]
        plan = PassPlanner().plan(files)
        assert all(p.diff_lines <= 400 for p in plan.passes)
        _assert_partition(plan, files)

    def test_oversized_file_alone(self):
        files = [changed("pkg/huge.py", diff_lines=900)] + [
            changed(f"pkg/f{i}.py", diff_lines=10) for i in range(3)
        ]
        plan = PassPlanner().plan(files)
        assert "oversized_file" in _codes(plan)
        huge = next(p for p in plan.passes if "pkg/huge.py" in p.paths)
        assert huge.paths == ["pkg/huge.py"]
        _assert_partition(plan, files)

    def test_small_groups_coalesced(self):
        files = [changed("src/a/x.py"), changed("src/b/y.py"), changed("src/c/z.py")]
        plan = PassPlanner().plan(files)
        assert len(plan.passes) == 1

    def test_test_files_ride_with_implementation(self):
        files = [
            changed("pkg/parser.py"), changed("pkg/lexer.py"), changed("pkg/ast.py"),
            changed("tests/test_parser.py"),
        ]
        plan = PassPlanner().plan(files)
        parser_pass = next(p for p in plan.passes if "pkg/parser.py" in p.paths)
        assert "tests/test_parser.py" in parser_pass.paths

    def test_no_test_only_pass_when_implementation_changed(self):
        cfg = OptipassConfig()
        patterns = cfg.planner.test_patterns
        files = [changed("pkg/core.py")] + [changed(f"tests/test_thing{i}.py") for i in range(9)]
        plan = PassPlanner(cfg).plan(files)
        assert "orphan_tests" in _codes(plan)
        for p in plan.passes:
            assert not all(matches_any(path, patterns) for path in p.paths)
        _assert_partition(plan, files)

    def test_config_files_grouped_last(self):
        files = [changed(f"pkg/m{i}.py") for i in range(3)] + [
            changed("pyproject.toml"), changed("deploy/app.yaml"), changed("setup.cfg"),
        ]
        plan = PassPlanner().plan(files)
        assert sorted(plan.passes[-1].paths) == ["deploy/app.yaml", "pyproject.toml", "setup.cfg"]

    def test_import_detection_disabled_warns(self):
        cfg = OptipassConfig()
        cfg.planner.detect_imports = False
        plan = PassPlanner(cfg).plan([changed("a/x.py"), changed("b/y.py")])
        assert "imports_unavailable" in _codes(plan)

    def test_deterministic(self):
        files = [changed(f"d{d}/f{i}.py", diff_lines=5 * (i + d)) for d in range(5) for i in range(4)]
        first = PassPlanner().plan(files)
        second = PassPlanner().plan(list(reversed(files)))
        assert [p.paths for p in first.passes] == [p.paths for p in second.passes]

    def test_duplicate_inputs_deduplicated(self):
        f = changed("a/x.py")
        plan = PassPlanner().plan([f, f, changed("a/y.py")])
        _assert_partition(plan, [f, changed("a/y.py")])

    @pytest.mark.parametrize("count,max_passes", [(1, 5), (7, 5), (23, 5), (40, 3), (12, 1)])
    def test_partition_property(self, count, max_passes):
        cfg = OptipassConfig()
        cfg.planner.max_passes = max_passes
        files = [
            changed(f"dir{i % 7}/sub{i % 3}/f{i}.py", diff_lines=(i * 37) % 300 + 1)
            for i in range(count)
        ]
        plan = PassPlanner(cfg).plan(files)
        _assert_partition(plan, files)
        assert 1 <= len(plan.passes) <= max_passes
        counts = Counter(p for pass_ in plan.passes for p in pass_.paths)
        assert set(counts.values()) == {1}

    def test_reads_sources_from_repo_root(self, tmp_path):
        (tmp_path / "svc").mkdir()
        for name in ("a.py", "b.py", "c.py"):
            (tmp_path / "svc" / name).write_text(
                "def f(x: Any) -> Any:\n    return x  # type: ignore\n"
            )
        files = [changed(f"svc/{n}") for n in ("a.py", "b.py", "c.py")]
        plan = PassPlanner(repo_root=tmp_path).plan(files)
        assert plan.passes[0].focus[0].value == "type_quality"
