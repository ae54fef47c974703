"""Default configuration values and starter .optipass.toml templates."""

DEFAULT_TOML = """\
# optipass configuration
version = "1.0"

[changes]
baseline = "HEAD~1"        # revision the working tree is compared against
include_untracked = true

[planner]
max_passes = 5
max_files_per_pass = 5
max_diff_lines_per_pass = 400

[worker]
# command = ["my-optimizer", "--json"]   # reads a pass on stdin, writes edits on stdout

[verify]
# commands = [
#   { name = "lint", run = "ruff check ." },
#   { name = "test", run = "pytest -q" },
# ]

[run]
on_failure = "retain"      # retain | revert: what happens to a failed pass's edits

[output]
format = "terminal"        # terminal | json
"""

FULL_TOML = """\
# optipass configuration
version = "1.0"

[changes]
baseline = "HEAD~1"        # revision the working tree is compared against
include_untracked = true
# exclude = ["vendor/*", "*.min.js"]

[planner]
min_files_per_pass = 3
max_files_per_pass = 5
max_diff_lines_per_pass = 400
max_total_lines_per_pass = 3000
max_passes = 5              # 1..5
scope_warning_files = 15
detect_imports = true      # false = group by directory only
# test_patterns = ["test_*.py", "*_test.py", "tests/*"]
# config_patterns = ["*.toml", "*.yaml", "*.json"]

[focus]
min_categories = 2          # 2..4, and no more than max_categories
max_categories = 4
long_function_lines = 50

[rules]
# enable = ["BROAD_ANY", "NESTED_LOOP"]   # empty = all enabled
# disable = ["SHORT_NAME"]

[worker]
# command = ["my-optimizer", "--json"]
# timeout = 900            # seconds; unset = wait indefinitely

[verify]
incremental = false        # also verify after every pass
timeout = 600
auto_detect = true         # detect ruff / mypy / pytest when no commands are listed
# commands = [
#   { name = "lint", run = "ruff check ." },
#   { name = "typecheck", run = "mypy src" },
#   { name = "test", run = "pytest -q" },
# ]

[run]
on_failure = "retain"      # retain | revert

[output]
format = "terminal"        # terminal | json
show_summary = true
"""
