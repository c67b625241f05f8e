"""pcharts validate [other-root] - Compare published assets with another repository."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer
from rich.console import Console

from partner_charts.cli.options import OutputOption, RepoRootOption, resolve_layout
from partner_charts.core.validator import compare_repositories, load_validate_targets, validate_against_targets
from partner_charts.errors import PartnerChartsError
from partner_charts.output.formatters import output_comparison

app = typer.Typer()
console = Console(stderr=True)


@app.callback(invoke_without_command=True)
def validate(
    other_root: Optional[Path] = typer.Argument(
        None, help="Repository checkout to compare against (default: the validate targets in configuration.yaml)",
    ),
    repo_root: Optional[Path] = RepoRootOption,
    output: str = OutputOption,
) -> None:
    """Check that every asset published elsewhere is unchanged here."""
    layout = resolve_layout(repo_root)

    try:
        if other_root is not None:
            comparison = compare_repositories(other_root, layout.root)
        else:
            targets = load_validate_targets(layout.root)
            if not targets:
                typer.echo("Nothing to validate: give OTHER_ROOT or add targets to configuration.yaml.", err=True)
                raise typer.Exit(code=1)
            with console.status("[bold cyan]Cloning validation targets…"):
                comparison = validate_against_targets(layout.root, targets)
    except PartnerChartsError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1)

    output_comparison(comparison, output)
    if not comparison.match:
        raise typer.Exit(code=1)
