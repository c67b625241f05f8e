"""Shared CLI options."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer

from partner_charts.config.settings import settings
from partner_charts.models.repo import RepoLayout

OutputOption = typer.Option("table", "--output", "-o", help="Output format: table, json, yaml")
RepoRootOption = typer.Option(
    None,
    "--repo-root",
    "-r",
    help="Chart repository checkout (default: $PARTNER_CHARTS_ROOT or the current directory)",
)


def resolve_layout(repo_root: Optional[Path]) -> RepoLayout:
    root = repo_root or settings.default_repo_root
    if not root.is_dir():
        typer.echo(f"Repository root '{root}' does not exist.", err=True)
        raise typer.Exit(code=1)
    return RepoLayout(root.resolve())
