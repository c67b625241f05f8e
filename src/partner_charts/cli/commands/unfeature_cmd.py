"""pcharts unfeature <chart> - Stop featuring a chart."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer

from partner_charts.cli.options import RepoRootOption, resolve_layout
from partner_charts.core.catalog import unfeature as unfeature_chart
from partner_charts.errors import PartnerChartsError

app = typer.Typer()


@app.callback(invoke_without_command=True)
def unfeature(
    chart: str = typer.Argument(help="Chart name as it appears in index.yaml"),
    repo_root: Optional[Path] = RepoRootOption,
) -> None:
    """Remove the featured annotation from every version of a chart."""
    layout = resolve_layout(repo_root)
    try:
        changed = unfeature_chart(layout, chart)
    except PartnerChartsError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1)
    if changed:
        typer.echo(f"{chart} is no longer featured.")
    else:
        typer.echo(f"{chart} was not featured.")
