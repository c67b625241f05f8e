"""pcharts feature <chart> <rank> - Feature a chart in the catalog."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer

from partner_charts.cli.options import RepoRootOption, resolve_layout
from partner_charts.core.catalog import feature as feature_chart
from partner_charts.errors import PartnerChartsError

app = typer.Typer()


@app.callback(invoke_without_command=True)
def feature(
    chart: str = typer.Argument(help="Chart name as it appears in index.yaml"),
    rank: int = typer.Argument(help="Featured position, 1-5"),
    repo_root: Optional[Path] = RepoRootOption,
) -> None:
    """Feature the newest version of a chart at the given rank."""
    layout = resolve_layout(repo_root)
    try:
        feature_chart(layout, chart, rank)
    except PartnerChartsError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1)
    typer.echo(f"Featured {chart} at rank {rank}.")
