"""pcharts hide <chart> - Hide a chart from the catalog."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer

from partner_charts.cli.options import RepoRootOption, resolve_layout
from partner_charts.core.catalog import hide as hide_chart
from partner_charts.errors import PartnerChartsError

app = typer.Typer()


@app.callback(invoke_without_command=True)
def hide(
    chart: str = typer.Argument(help="Chart name as it appears in index.yaml"),
    repo_root: Optional[Path] = RepoRootOption,
) -> None:
    """Mark every published version of a chart as hidden."""
    layout = resolve_layout(repo_root)
    try:
        changed = hide_chart(layout, chart)
    except PartnerChartsError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1)
    typer.echo(f"Hid {changed} version(s) of {chart}.")
