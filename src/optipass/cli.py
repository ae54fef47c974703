"""optipass CLI — Typer application with plan, run, verify, and init commands."""

from __future__ import annotations

import logging
import signal
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console

from optipass import __version__

app = typer.Typer(
    name="optipass",
    help="Plan and run bounded, sequential optimization passes over your latest changes.",
    add_completion=False,
    no_args_is_help=True,
)

console = Console(stderr=True)

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_ERROR = 2
EXIT_CANCELLED = 130


def _configure_logging(verbose: bool, debug: bool) -> None:
    # Without either flag, warnings reach stderr through logging's last-resort handler
    if not (verbose or debug):
        return
    level = logging.DEBUG if debug else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        force=True,
    )


def _resolve_repo_root() -> Path:
    """Find the git repo root, exit 2 on failure."""
    from optipass.git.adapter import GitError, get_repo_root

    try:
        return get_repo_root()
    except GitError as exc:
        console.print(f"[bold red]Error:[/bold red] {exc}")
        raise typer.Exit(code=EXIT_ERROR) from exc


def _load(repo_root: Path, config: Optional[str], format: Optional[str]):
    from optipass.config.loader import ConfigError, load_config
    from optipass.config.schema import OUTPUT_FORMATS

    try:
        cfg = load_config(repo_root, config)
    except ConfigError as exc:
        console.print(f"[bold red]Config error:[/bold red] {exc}")
        raise typer.Exit(code=EXIT_ERROR) from exc

    if format:
        if format not in OUTPUT_FORMATS:
            console.print(f"[bold red]Invalid format:[/bold red] {format}")
            raise typer.Exit(code=EXIT_ERROR)
        cfg.output.format = format  # type: ignore[assignment]
    return cfg


def _read_changes(repo_root: Path, cfg, baseline: Optional[str]):
    from optipass.git.changeset import ScopeError, read_changeset

    ref = baseline or cfg.changes.baseline
    try:
        return read_changeset(
            repo_root,
            ref,
            include_untracked=cfg.changes.include_untracked,
            exclude=cfg.changes.exclude,
        )
    except ScopeError as exc:
        console.print(f"[bold red]Scope error:[/bold red] {exc}")
        raise typer.Exit(code=EXIT_ERROR) from exc


def _build_planner(repo_root: Path, cfg):
    from optipass.planning.planner import PassPlanner
    from optipass.rules.registry import RuleError, build_registry

    try:
        rules = build_registry(cfg, repo_root)
    except RuleError as exc:
        console.print(f"[bold red]Rule error:[/bold red] {exc}")
        raise typer.Exit(code=EXIT_ERROR) from exc
    return PassPlanner(cfg, repo_root=repo_root, rules=rules)


# ── plan ──────────────────────────────────────────────────────────────────────


@app.command()
def plan(
    baseline: Optional[str] = typer.Option(None, "--baseline", "-b", help="Revision to compare against (default HEAD~1)"),
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Path to .optipass.toml"),
    format: Optional[str] = typer.Option(None, "--format", "-f", help="Output format: terminal | json"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
    debug: bool = typer.Option(False, "--debug", help="Debug logging"),
) -> None:
    """Show how the changed files would be split into passes, without running anything."""
    from optipass.output import json_report, terminal

    _configure_logging(verbose, debug)
    repo_root = _resolve_repo_root()
    cfg = _load(repo_root, config, format)
    changeset = _read_changes(repo_root, cfg, baseline)
    pass_plan = _build_planner(repo_root, cfg).plan(changeset.actionable)

    if cfg.output.format == "json":
        print(json_report.render_plan(pass_plan, baseline=changeset.baseline))
    else:
        terminal.render_plan(pass_plan, baseline=changeset.baseline)
    raise typer.Exit(code=EXIT_OK)


# ── run ───────────────────────────────────────────────────────────────────────


@app.command()
def run(
    baseline: Optional[str] = typer.Option(None, "--baseline", "-b", help="Revision to compare against (default HEAD~1)"),
    worker: Optional[str] = typer.Option(None, "--worker", "-w", help="Worker command (overrides [worker] command)"),
    on_failure: Optional[str] = typer.Option(None, "--on-failure", help="Failed pass policy: retain | revert"),
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Path to .optipass.toml"),
    format: Optional[str] = typer.Option(None, "--format", "-f", help="Output format: terminal | json"),
    output: Optional[str] = typer.Option(None, "--output", "-o", help="Write the JSON report to a file"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
    debug: bool = typer.Option(False, "--debug", help="Debug logging"),
) -> None:
    """Plan the changed files and run every pass through the worker, then verify."""
    import shlex

    from optipass.config.schema import FAILURE_POLICIES
    from optipass.execution.executor import PassExecutor
    from optipass.execution.worker import SubprocessWorker
    from optipass.orchestrator import CancelToken, Orchestrator
    from optipass.output import json_report, terminal
    from optipass.results.models import RunState
    from optipass.verify.runner import VerificationRunner, resolve_commands

    _configure_logging(verbose, debug)
    repo_root = _resolve_repo_root()
    cfg = _load(repo_root, config, format)

    # --- CLI overrides ---
    if worker:
        cfg.worker.command = shlex.split(worker)
    if on_failure:
        if on_failure not in FAILURE_POLICIES:
            console.print(f"[bold red]Invalid on-failure policy:[/bold red] {on_failure}")
            raise typer.Exit(code=EXIT_ERROR)
        cfg.run.on_failure = on_failure  # type: ignore[assignment]
    if not cfg.worker.command:
        console.print(
            "[bold red]Config error:[/bold red] no worker command. "
            "Set [worker] command in .optipass.toml or pass --worker."
        )
        raise typer.Exit(code=EXIT_ERROR)

    changeset = _read_changes(repo_root, cfg, baseline)
    planner = _build_planner(repo_root, cfg)

    verifier = VerificationRunner()
    commands = resolve_commands(
        cfg.verify.commands,
        repo_root,
        timeout=cfg.verify.timeout,
        auto_detect=cfg.verify.auto_detect,
    )
    executor = PassExecutor(
        SubprocessWorker(cfg.worker.command, cwd=repo_root, timeout=cfg.worker.timeout),
        verifier=verifier if cfg.verify.incremental else None,
        commands=commands if cfg.verify.incremental else (),
        on_failure=cfg.run.on_failure,
        repo_root=repo_root,
    )
    token = CancelToken()
    orchestrator = Orchestrator(planner, executor, verifier, commands, cancel=token)

    def _request_cancel(signum, frame) -> None:
        console.print("[yellow]Cancel requested — stopping after the current pass.[/yellow]")
        token.cancel()

    previous = signal.signal(signal.SIGINT, _request_cancel)
    try:
        report = orchestrator.run(changeset)
    finally:
        signal.signal(signal.SIGINT, previous)

    # --- Output ---
    report_text: Optional[str] = None
    if cfg.output.format == "json":
        report_text = json_report.render(report)
        print(report_text)
    else:
        terminal.render(report, show_summary=cfg.output.show_summary)

    if output:
        Path(output).write_text(report_text or json_report.render(report), encoding="utf-8")
        if verbose:
            console.print(f"[dim]Report written to {output}[/dim]")

    # --- Exit code ---
    if report.state == RunState.CANCELLED:
        raise typer.Exit(code=EXIT_CANCELLED)
    raise typer.Exit(code=EXIT_OK if report.succeeded else EXIT_FAILED)


# ── verify ────────────────────────────────────────────────────────────────────


@app.command()
def verify(
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Path to .optipass.toml"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
) -> None:
    """Run only the verification commands (lint, typecheck, test)."""
    from optipass.verify.runner import VerificationRunner, resolve_commands

    _configure_logging(verbose, False)
    repo_root = _resolve_repo_root()
    cfg = _load(repo_root, config, None)
    commands = resolve_commands(
        cfg.verify.commands,
        repo_root,
        timeout=cfg.verify.timeout,
        auto_detect=cfg.verify.auto_detect,
    )
    outcome = VerificationRunner().verify(commands)

    for check in outcome.checks:
        if check.skipped:
            console.print(f"[dim]-[/dim] {check.name} [dim](skipped: {check.output})[/dim]")
        elif check.passed:
            console.print(f"[green]✓[/green] {check.name}")
        else:
            console.print(f"[red]✗[/red] {check.name} (exit {check.exit_code})")
    if outcome.failed:
        console.print(f"[bold red]Verification failed:[/bold red] {outcome.detail}")
        raise typer.Exit(code=EXIT_FAILED)
    if outcome.skipped:
        console.print(f"[dim]Verification skipped: {outcome.detail}[/dim]")
    else:
        console.print("[bold green]Verification passed.[/bold green]")
    raise typer.Exit(code=EXIT_OK)


# ── init ──────────────────────────────────────────────────────────────────────


@app.command()
def init(
    full: bool = typer.Option(False, "--full", help="Include all config options with comments"),
) -> None:
    """Generate a starter .optipass.toml in the repo root."""
    from optipass.config.defaults import DEFAULT_TOML, FULL_TOML
    from optipass.config.loader import CONFIG_FILENAME

    repo_root = _resolve_repo_root()
    config_path = repo_root / CONFIG_FILENAME

    if config_path.exists():
        console.print(f"[yellow]⚠[/yellow]  {CONFIG_FILENAME} already exists at {config_path}")
        raise typer.Exit(code=EXIT_FAILED)

    template = FULL_TOML if full else DEFAULT_TOML
    config_path.write_text(template, encoding="utf-8")
    console.print(f"[green]✓[/green] Created {config_path}")


# ── version ───────────────────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        print(f"optipass {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        False, "--version", "-V", callback=_version_callback,
        is_eager=True, help="Show version and exit",
    ),
) -> None:
    """optipass — bounded, sequential optimization passes over a git change-set."""
