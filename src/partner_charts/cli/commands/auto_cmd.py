"""pcharts auto - Fetch and publish new upstream chart versions."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer
from rich.console import Console

from partner_charts.cli.options import OutputOption, RepoRootOption, resolve_layout
from partner_charts.core.reconciler import Reconciler
from partner_charts.core.repo_commit import commit_changes
from partner_charts.errors import AllChartsSkippedError, PartnerChartsError
from partner_charts.output.formatters import output_report

app = typer.Typer()
console = Console(stderr=True)


@app.callback(invoke_without_command=True)
def auto(
    charts: Optional[list[str]] = typer.Argument(None, help="Charts to process as vendor/chart or chart (default: all)"),
    repo_root: Optional[Path] = RepoRootOption,
    commit: bool = typer.Option(False, "--commit", help="Commit the generated changes with git"),
    output: str = OutputOption,
) -> None:
    """Bring every configured chart up to date with its upstream."""
    layout = resolve_layout(repo_root)

    try:
        with console.status("[bold cyan]Reconciling charts…") as status:

            def on_progress(i: int, total: int, chart: str) -> None:
                status.update(f"[bold cyan]Reconciling charts… [dim]({i}/{total})[/dim] {chart}")

            report = Reconciler(layout, on_progress=on_progress).run(charts or None)
    except AllChartsSkippedError as e:
        output_report(e.report, output)
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1)
    except PartnerChartsError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1)

    output_report(report, output)

    if commit:
        try:
            sha = commit_changes(layout, report)
        except PartnerChartsError as e:
            typer.echo(f"Error: {e}", err=True)
            raise typer.Exit(code=1)
        if sha:
            console.print(f"[green]Committed {sha[:12]}[/green]")
