"""pcharts remove <chart> - Remove a chart from the repository."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer

from partner_charts.cli.options import RepoRootOption, resolve_layout
from partner_charts.core.catalog import remove as remove_chart
from partner_charts.errors import PartnerChartsError

app = typer.Typer()


@app.callback(invoke_without_command=True)
def remove(
    chart: str = typer.Argument(help="Chart name as it appears in index.yaml"),
    repo_root: Optional[Path] = RepoRootOption,
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation"),
) -> None:
    """Delete every published version of a chart: index entries, assets and chart directories."""
    layout = resolve_layout(repo_root)
    if not yes:
        typer.confirm(f"Remove every published version of {chart}?", abort=True)
    try:
        removed = remove_chart(layout, chart)
    except PartnerChartsError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1)
    typer.echo(f"Removed {chart} {', '.join(removed)}.")
