"""Rich terminal reporter — plan table, pass results, verdict."""

from __future__ import annotations

from typing import Optional

from rich.console import Console
from rich.table import Table
from rich.text import Text

from optipass.planning.models import PassPlan
from optipass.results.models import RunReport, RunState
from optipass.verify.models import VerificationOutcome, VerificationStatus

_STATUS_STYLE = {
    VerificationStatus.PASS: "bold black on green",
    VerificationStatus.FAIL: "bold white on red",
    VerificationStatus.SKIPPED: "bold black on bright_cyan",
}

_STATUS_ICON = {
    VerificationStatus.PASS: "✅",
    VerificationStatus.FAIL: "❌",
    VerificationStatus.SKIPPED: "⏭️",
}


def _status_pill(outcome: Optional[VerificationOutcome]) -> Text:
    if outcome is None:
        return Text(" DEFERRED ", style="dim")
    style = _STATUS_STYLE.get(outcome.status, "")
    icon = _STATUS_ICON.get(outcome.status, "")
    return Text(f" {icon} {outcome.status.value.upper()} ", style=style)


def _plan_table(plan: PassPlan) -> Table:
    table = Table(
        title="Pass Plan",
        show_lines=True,
        title_style="bold",
        border_style="dim",
    )
    table.add_column("Pass", justify="right", style="bold")
    table.add_column("Files", style="magenta")
    table.add_column("Diff", justify="right", style="green")
    table.add_column("Focus", style="cyan")
    table.add_column("Notes", style="dim")

    for p in plan.passes:
        table.add_row(
            str(p.index),
            "\n".join(p.paths),
            str(p.diff_lines),
            "\n".join(c.label for c in p.focus),
            p.notes,
        )
    return table


def _print_warnings(console: Console, plan: PassPlan) -> None:
    if not plan.warnings:
        return
    console.print()
    for w in plan.warnings:
        console.print(f"[yellow]⚠[/yellow]  [bold]{w.code}[/bold]: {w.message}")


def render_plan(plan: PassPlan, *, baseline: Optional[str] = None) -> None:
    """Print a pass plan without running it."""
    console = Console(stderr=True)
    console.print()
    if plan.is_empty:
        console.print("[dim]Nothing to optimize — no actionable changes.[/dim]")
        return
    if baseline:
        console.print(f"[dim]Baseline:[/dim] {baseline[:12]}")
    console.print(_plan_table(plan))
    _print_warnings(console, plan)
    console.print()
    console.print(
        f"[dim]{plan.file_count} file(s), {plan.diff_lines} diff line(s) "
        f"in {len(plan.passes)} pass(es).[/dim]"
    )


def render(report: RunReport, *, show_summary: bool = True) -> None:
    """Print a run report to the terminal using Rich."""
    console = Console(stderr=True)

    if report.plan.is_empty:
        console.print()
        console.print("[bold green]✅ Nothing to optimize — no actionable changes.[/bold green]")
        return

    console.print()
    console.print(_plan_table(report.plan))
    _print_warnings(console, report.plan)

    console.print()
    table = Table(
        title="Pass Results",
        show_lines=True,
        title_style="bold",
        border_style="dim",
    )
    table.add_column("Pass", justify="right", style="bold")
    table.add_column("Edits", justify="right", style="green")
    table.add_column("Files modified", style="magenta")
    table.add_column("Check", justify="center", width=14)
    table.add_column("Outcome", min_width=15)

    for r in report.pass_results:
        if r.failed:
            outcome = f"[red]failed[/red]: {r.failure_reason}"
            if r.reverted:
                outcome += " [yellow](reverted)[/yellow]"
        else:
            outcome = "[green]ok[/green]"
        modified = "\n".join(f"{path} ({n})" for path, n in sorted(r.files_modified.items()) if n)
        table.add_row(
            str(r.pass_index),
            str(r.edit_count),
            modified or "-",
            _status_pill(r.verification),
            outcome,
        )
    for p in report.plan.passes[len(report.pass_results):]:
        table.add_row(str(p.index), "-", "-", Text(" NOT RUN ", style="dim"), "[dim]never invoked[/dim]")
    console.print(table)

    if show_summary:
        _print_summary(console, report)

    # Final verdict
    console.print()
    if report.state == RunState.HALTED_ON_FAILURE:
        console.print(
            f"[bold red]❌ HALTED at pass {report.halted_at} — later passes were not run. "
            "Edits from completed passes are kept.[/bold red]"
        )
    elif report.state == RunState.CANCELLED:
        console.print(
            f"[bold yellow]⚠️  CANCELLED after {len(report.pass_results)} pass(es).[/bold yellow]"
        )
    elif report.final_verification is not None and report.final_verification.failed:
        console.print("[bold red]❌ Final verification FAILED.[/bold red]")
        console.print(f"[dim]{report.final_verification.detail}[/dim]")
    else:
        console.print("[bold green]✅ All passes completed.[/bold green]")


def _print_summary(console: Console, report: RunReport) -> None:
    console.print()
    console.print(f"[dim]Baseline:[/dim]       {report.baseline[:12]}")
    console.print(f"[dim]Scope:[/dim]          {report.file_count} file(s), {report.diff_lines} diff line(s)")
    console.print(f"[dim]Passes:[/dim]         {len(report.pass_results)}/{len(report.plan.passes)}")
    console.print(f"[dim]Edits:[/dim]          {report.total_edits}")
    if report.category_tallies:
        tallies = ", ".join(f"{c.label} {n}" for c, n in report.category_tallies.items())
        console.print(f"[dim]By category:[/dim]    {tallies}")
    console.print(f"[dim]Files touched:[/dim]  {len(report.files_touched)}")
    for path in report.files_touched:
        console.print(f"  [magenta]{path}[/magenta]")
    console.print("[dim]Verification:[/dim]  ", _status_pill(report.final_verification))
    console.print(f"[dim]Duration:[/dim]       {report.duration_ms:.0f}ms")
