"""Tests for the worker contract and the pass executor."""

import sys
from pathlib import Path

import pytest

from conftest import FakeCommand, FakeWorker, changed
from optipass.categories import FocusCategory
from optipass.execution.executor import PassExecutor
from optipass.execution.worker import (
    SubprocessWorker,
    WorkerError,
    WorkerRequest,
    parse_response,
)
from optipass.planning.models import Pass
from optipass.verify.runner import VerificationRunner

FOCUS = (FocusCategory.REDUNDANCY, FocusCategory.NAMING)


def _pass(index=1, paths=("pkg/a.py", "pkg/b.py")):
    return Pass(index=index, files=tuple(changed(p) for p in paths), focus=FOCUS, notes="directory pkg")


class TestParseResponse:
    def test_full_response(self):
        resp = parse_response({
            "edits": [
                {"category": "naming", "file": "pkg/a.py", "line": 3, "description": "rename x"},
                {"category": "dead_code", "file": "pkg/a.py", "line": 9, "description": "drop"},
            ],
            "files_modified": {"pkg/a.py": 2},
            "verification": {"lint": "pass", "test": "fail"},
        })
        assert [e.category for e in resp.edits] == [FocusCategory.NAMING, FocusCategory.DEAD_CODE]
        assert resp.files_modified == {"pkg/a.py": 2}
        assert resp.verification.test == "fail"
        assert resp.verification.failed

    def test_camel_case_and_derived_counts(self):
        resp = parse_response({
            "edits": [{"category": "longcut", "file": "b.py", "line": 1}],
            "verification": {"lintOutcome": True, "testOutcome": "skipped"},
        })
        assert resp.files_modified == {"b.py": 1}
        assert resp.verification.lint == "pass"
        assert resp.verification.test == "skipped"

    def test_empty_object(self):
        resp = parse_response({})
        assert resp.edits == ()
        assert not resp.verification.failed

    @pytest.mark.parametrize("data", [
        [],
        {"edits": 5},
        {"edits": True},
        {"edits": {"file": "a.py"}},
        {"edits": ["nope"]},
        {"edits": [{"category": "speed", "file": "a.py"}]},
        {"edits": [{"file": "a.py"}]},
        {"files_modified": ["a.py"]},
        {"files_modified": {"a.py": "many"}},
        {"verification": "pass"},
    ])
    def test_bad_shapes(self, data):
        with pytest.raises(WorkerError):
            parse_response(data)

    def test_request_wire_format(self):
        req = WorkerRequest(pass_index=2, files=("a.py",), focus=FOCUS, notes="n")
        assert req.to_dict() == {
            "pass_index": 2,
            "files": ["a.py"],
            "focus_categories": ["redundancy", "naming"],
            "context_notes": "n",
        }


def _script(tmp_path: Path, body: str) -> list:
    script = tmp_path / "worker.py"
    script.write_text(body)
    return [sys.executable, str(script)]


class TestSubprocessWorker:
    def test_round_trip(self, tmp_path: Path):
        argv = _script(tmp_path, (
            "import json, sys\n"
            "req = json.load(sys.stdin)\n"
            "edits = [{'category': req['focus_categories'][0], 'file': f, 'line': 1,"
            " 'description': 'x'} for f in req['files']]\n"
            "print(json.dumps({'edits': edits, 'verification': {'lint': 'pass', 'test': 'pass'}}))\n"
        ))
        worker = SubprocessWorker(argv, cwd=tmp_path)
        resp = worker.optimize(WorkerRequest(1, ("a.py", "b.py"), FOCUS))
        assert resp.files_modified == {"a.py": 1, "b.py": 1}
        assert all(e.category == FocusCategory.REDUNDANCY for e in resp.edits)

    def test_nonzero_exit(self, tmp_path: Path):
        argv = _script(tmp_path, "import sys\nsys.stderr.write('kaput')\nsys.exit(2)\n")
        with pytest.raises(WorkerError, match="kaput"):
            SubprocessWorker(argv, cwd=tmp_path).optimize(WorkerRequest(1, ("a.py",), FOCUS))

    def test_invalid_json(self, tmp_path: Path):
        argv = _script(tmp_path, "print('not json')\n")
        with pytest.raises(WorkerError, match="invalid JSON"):
            SubprocessWorker(argv, cwd=tmp_path).optimize(WorkerRequest(1, ("a.py",), FOCUS))

    def test_outside_files_rejected(self, tmp_path: Path):
        argv = _script(tmp_path, (
            "import json\n"
            "print(json.dumps({'files_modified': {'other.py': 1}}))\n"
        ))
        with pytest.raises(WorkerError, match="outside"):
            SubprocessWorker(argv, cwd=tmp_path).optimize(WorkerRequest(1, ("a.py",), FOCUS))

    def test_missing_command(self, tmp_path: Path):
        worker = SubprocessWorker(["no-such-worker-binary-xyz"], cwd=tmp_path)
        with pytest.raises(WorkerError, match="not found"):
            worker.optimize(WorkerRequest(1, ("a.py",), FOCUS))

    def test_timeout(self, tmp_path: Path):
        argv = _script(tmp_path, "import time\ntime.sleep(3)\n")
        with pytest.raises(WorkerError, match="timed out"):
            SubprocessWorker(argv, cwd=tmp_path, timeout=1).optimize(WorkerRequest(1, ("a.py",), FOCUS))

    def test_empty_argv(self, tmp_path: Path):
        with pytest.raises(WorkerError):
            SubprocessWorker([], cwd=tmp_path)

    def test_non_list_edits_fail_the_pass(self, tmp_path: Path):
        argv = _script(tmp_path, "import json\nprint(json.dumps({'edits': 7}))\n")
        executor = PassExecutor(SubprocessWorker(argv, cwd=tmp_path))
        result = executor.execute(_pass())
        assert result.failed
        assert "edits must be a list" in result.error


class TestPassExecutor:
    def test_successful_pass(self):
        worker = FakeWorker()
        result = PassExecutor(worker).execute(_pass())
        assert not result.failed
        assert result.edit_count == 2
        assert result.files_modified == {"pkg/a.py": 1, "pkg/b.py": 1}
        assert result.verification is None
        assert worker.requests[0].focus == FOCUS
        assert worker.requests[0].notes == "directory pkg"

    def test_worker_error_becomes_failed_result(self):
        result = PassExecutor(FakeWorker(fail_on=[1])).execute(_pass())
        assert result.failed
        assert "boom" in result.failure_reason
        assert result.edits == ()

    def test_worker_reported_lint_failure(self):
        result = PassExecutor(FakeWorker(lint_fail_on=[1])).execute(_pass())
        assert result.failed
        assert result.failure_reason == "worker reported lint failure"

    def test_outside_edits_fail_pass(self):
        result = PassExecutor(FakeWorker(outside={1: "elsewhere.py"})).execute(_pass())
        assert result.failed
        assert "elsewhere.py" in result.error

    def test_incremental_verification(self):
        cmd = FakeCommand("test", exit_code=1, output="1 failed")
        executor = PassExecutor(FakeWorker(), verifier=VerificationRunner(), commands=[cmd])
        result = executor.execute(_pass())
        assert result.verification is not None
        assert result.failed
        assert result.failure_reason.startswith("test failed")

    def test_incremental_verification_skipped_after_worker_failure(self):
        cmd = FakeCommand("test")
        executor = PassExecutor(FakeWorker(lint_fail_on=[1]), verifier=VerificationRunner(), commands=[cmd])
        executor.execute(_pass())
        assert cmd.calls == 0

    def test_revert_restores_files(self, tmp_path: Path):
        (tmp_path / "pkg").mkdir()
        (tmp_path / "pkg" / "a.py").write_text("original a\n")
        (tmp_path / "pkg" / "b.py").write_text("original b\n")
        worker = FakeWorker(lint_fail_on=[1], write=True, repo_root=tmp_path)
        executor = PassExecutor(worker, on_failure="revert", repo_root=tmp_path)
        result = executor.execute(_pass())
        assert result.failed
        assert result.reverted
        assert (tmp_path / "pkg" / "a.py").read_text() == "original a\n"

    def test_retain_keeps_edits(self, tmp_path: Path):
        (tmp_path / "pkg").mkdir()
        (tmp_path / "pkg" / "a.py").write_text("original a\n")
        (tmp_path / "pkg" / "b.py").write_text("original b\n")
        worker = FakeWorker(lint_fail_on=[1], write=True, repo_root=tmp_path)
        result = PassExecutor(worker, repo_root=tmp_path).execute(_pass())
        assert result.failed
        assert not result.reverted
        assert (tmp_path / "pkg" / "a.py").read_text() == "# optimized\n"

    def test_revert_needs_repo_root(self):
        with pytest.raises(ValueError):
            PassExecutor(FakeWorker(), on_failure="revert")

    def test_overlapping_pass_rejected(self):
        executor = PassExecutor(FakeWorker())
        executor._in_flight.add("pkg/a.py")
        with pytest.raises(RuntimeError, match="overlaps"):
            executor.execute(_pass())

    def test_in_flight_cleared_after_pass(self):
        executor = PassExecutor(FakeWorker(fail_on=[1]))
        executor.execute(_pass())
        assert executor._in_flight == set()
        assert not executor.execute(_pass(index=2)).failed
