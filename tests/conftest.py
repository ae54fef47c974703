"""Shared test fixtures — sample diffs, fake workers, temp git repos."""

from __future__ import annotations

import subprocess
import textwrap
from pathlib import Path
from typing import Dict, List, Optional, Sequence

import pytest

from optipass.categories import FocusCategory
from optipass.execution.worker import WorkerError, WorkerRequest, WorkerResponse
from optipass.git.models import ChangedFile, FileStatus
from optipass.results.models import Edit, WorkerVerification
from optipass.verify.models import CommandOutput
from optipass.verify.runner import CommandUnavailable


def changed(path: str, diff_lines: int = 10, total_lines: int = 100,
            status: FileStatus = FileStatus.MODIFIED) -> ChangedFile:
    return ChangedFile(path=path, status=status, diff_lines=diff_lines, total_lines=total_lines)


class FakeWorker:
    """Records every request; one edit per file unless told to fail."""

    def __init__(
        self,
        fail_on: Sequence[int] = (),
        lint_fail_on: Sequence[int] = (),
        outside: Optional[Dict[int, str]] = None,
        write: bool = False,
        repo_root: Optional[Path] = None,
    ) -> None:
        self.fail_on = set(fail_on)
        self.lint_fail_on = set(lint_fail_on)
        self.outside = outside or {}
        self.write = write
        self.repo_root = repo_root
        self.requests: List[WorkerRequest] = []

    def optimize(self, request: WorkerRequest) -> WorkerResponse:
        self.requests.append(request)
        if request.pass_index in self.fail_on:
            raise WorkerError(f"boom in pass {request.pass_index}")
        if self.write and self.repo_root is not None:
            for path in request.files:
                (self.repo_root / path).write_text("# optimized\n")
        category = request.focus[0] if request.focus else FocusCategory.REDUNDANCY
        files = list(request.files)
        if request.pass_index in self.outside:
            files.append(self.outside[request.pass_index])
        edits = tuple(
            Edit(category=category, file=path, line=1, description="simplified")
            for path in files
        )
        lint = "fail" if request.pass_index in self.lint_fail_on else "pass"
        return WorkerResponse(
            edits=edits,
            files_modified={path: 1 for path in files},
            verification=WorkerVerification(lint=lint, test="pass"),
        )


class FakeCommand:
    """An ExternalCommand with a canned result."""

    def __init__(self, name: str, exit_code: int = 0, output: str = "",
                 unavailable: bool = False) -> None:
        self.name = name
        self.exit_code = exit_code
        self.output = output
        self.unavailable = unavailable
        self.calls = 0

    def invoke(self) -> CommandOutput:
        self.calls += 1
        if self.unavailable:
            raise CommandUnavailable(f"{self.name} not installed")
        return CommandOutput(exit_code=self.exit_code, output=self.output)


@pytest.fixture
def sample_diff_modified() -> str:
    """Two hunks in one modified file."""
    return textwrap.dedent("""\
        diff --git a/app/service.py b/app/service.py
        index 1234567..abcdef0 100644
        --- a/app/service.py
        +++ b/app/service.py
        @@ -3,2 +3,3 @@ def handle(request):
        -    result = []
        -    for item in request.items:
        +    result = [item for item in request.items]
        +    return result
        +
        @@ -20 +21 @@ class Service:
        -        return True if ok else False
        +        return ok
    """)


@pytest.fixture
def sample_diff_added() -> str:
    return textwrap.dedent("""\
        diff --git a/hello.py b/hello.py
        new file mode 100644
        index 0000000..e69de29
        --- /dev/null
        +++ b/hello.py
        @@ -0,0 +1,3 @@
        +def greet(name):
        +    return f"Hello, {name}!"
        +
    """)


@pytest.fixture
def sample_diff_deleted() -> str:
    return textwrap.dedent("""\
        diff --git a/legacy.py b/legacy.py
        deleted file mode 100644
        index abc1234..0000000
        --- a/legacy.py
        +++ /dev/null
        @@ -1,2 +0,0 @@
        -import os
        -print(os.getcwd())
    """)


@pytest.fixture
def sample_diff_binary() -> str:
    return textwrap.dedent("""\
        diff --git a/image.png b/image.png
        new file mode 100644
        Binary files /dev/null and b/image.png differ
    """)


@pytest.fixture
def sample_diff_rename() -> str:
    """A renamed file that also gained a line."""
    return textwrap.dedent("""\
        diff --git a/old_name.py b/new_name.py
        similarity index 97%
        rename from old_name.py
        rename to new_name.py
        index abc1234..def5678 100644
        --- a/old_name.py
        +++ b/new_name.py
        @@ -1,0 +2,1 @@
        +# New line added after rename
    """)


@pytest.fixture
def sample_diff_pure_rename() -> str:
    return textwrap.dedent("""\
        diff --git a/util.py b/helpers.py
        similarity index 100%
        rename from util.py
        rename to helpers.py
    """)


@pytest.fixture
def sample_diff_mode_only() -> str:
    return textwrap.dedent("""\
        diff --git a/script.sh b/script.sh
        old mode 100644
        new mode 100755
    """)


@pytest.fixture
def sample_diff_submodule() -> str:
    return textwrap.dedent("""\
        diff --git a/vendor/lib b/vendor/lib
        index abc1234..def5678 160000
        --- a/vendor/lib
        +++ b/vendor/lib
        @@ -1 +1 @@
        -Subproject commit abc1234567890abcdef1234567890abcdef123456
        +Subproject commit def4567890abcdef1234567890abcdef123456ab
    """)


@pytest.fixture
def sample_diff_no_newline() -> str:
    return textwrap.dedent("""\
        diff --git a/data.txt b/data.txt
        new file mode 100644
        index 0000000..abc1234
        --- /dev/null
        +++ b/data.txt
        @@ -0,0 +1 @@
        +final line without newline
        \\ No newline at end of file
    """)


@pytest.fixture
def fake_worker() -> FakeWorker:
    return FakeWorker()


def git(repo: Path, *args: str) -> None:
    subprocess.run(["git", *args], cwd=repo, capture_output=True, check=True)


def commit_all(repo: Path, message: str = "change") -> None:
    git(repo, "add", "-A")
    git(repo, "commit", "-m", message)


@pytest.fixture
def tmp_git_repo(tmp_path: Path) -> Path:
    """Create a temporary git repository for integration tests."""
    subprocess.run(["git", "init", str(tmp_path)], capture_output=True, check=True)
    git(tmp_path, "config", "user.email", "test@test.com")
    git(tmp_path, "config", "user.name", "Test")
    git(tmp_path, "config", "commit.gpgsign", "false")
    # Initial commit
    (tmp_path / "README.md").write_text("# Test\n")
    commit_all(tmp_path, "init")
    return tmp_path


@pytest.fixture
def repo_with_changes(tmp_git_repo: Path) -> Path:
    """A repo whose working tree differs from HEAD~1 in a few source files."""
    pkg = tmp_git_repo / "pkg"
    pkg.mkdir()
    (pkg / "core.py").write_text("def run():\n    return 1\n")
    (pkg / "util.py").write_text("def helper():\n    return 2\n")
    commit_all(tmp_git_repo, "base")

    (pkg / "core.py").write_text("def run():\n    return 1 + 1\n\n\ndef stop():\n    return 0\n")
    (pkg / "util.py").write_text("def helper():\n    return 3\n")
    (pkg / "extra.py").write_text("VALUE = 1\n")
    commit_all(tmp_git_repo, "work")
    return tmp_git_repo
