"""pcharts check - Dry run: show which upstream versions would be fetched."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer
from rich.console import Console

from partner_charts.cli.options import OutputOption, RepoRootOption, resolve_layout
from partner_charts.core.reconciler import Reconciler
from partner_charts.errors import AllChartsSkippedError, PartnerChartsError
from partner_charts.output.formatters import output_report

app = typer.Typer()
console = Console(stderr=True)


@app.callback(invoke_without_command=True)
def check(
    charts: Optional[list[str]] = typer.Argument(None, help="Charts to check as vendor/chart or chart (default: all)"),
    repo_root: Optional[Path] = RepoRootOption,
    output: str = OutputOption,
) -> None:
    """Query every upstream and report pending versions without writing anything."""
    layout = resolve_layout(repo_root)

    try:
        with console.status("[bold cyan]Checking upstreams…") as status:

            def on_progress(i: int, total: int, chart: str) -> None:
                status.update(f"[bold cyan]Checking upstreams… [dim]({i}/{total})[/dim] {chart}")

            report = Reconciler(layout, on_progress=on_progress).run(charts or None, dry_run=True)
    except AllChartsSkippedError as e:
        output_report(e.report, output, title="Pending Updates")
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1)
    except PartnerChartsError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1)

    output_report(report, output, title="Pending Updates")
    if report.pending:
        console.print(f"\n[yellow]{len(report.pending)} chart(s) have new versions[/yellow]")
    elif report.results:
        console.print("\n[green]All charts are up to date[/green]")
