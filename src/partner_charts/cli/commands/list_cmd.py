"""pcharts list - List configured charts."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer

from partner_charts.cli.options import OutputOption, RepoRootOption, resolve_layout
from partner_charts.core.reconciler import discover_packages
from partner_charts.errors import ConfigurationError
from partner_charts.models.report import PackageSummary
from partner_charts.output.formatters import output_packages

app = typer.Typer()


@app.callback(invoke_without_command=True)
def list_packages(
    repo_root: Optional[Path] = RepoRootOption,
    output: str = OutputOption,
) -> None:
    """List every chart configured under packages/."""
    layout = resolve_layout(repo_root)
    summaries: list[PackageSummary] = []
    for ref in discover_packages(layout):
        try:
            upstream = ref.load()
            summaries.append(PackageSummary(
                name=ref.key,
                source=upstream.source_type.value,
                locator=upstream.locator,
                fetch=upstream.fetch.value,
                tracked=upstream.track_versions,
                package_version=upstream.package_version,
            ))
        except ConfigurationError as e:
            summaries.append(PackageSummary(name=ref.key, error=str(e)))
    output_packages(summaries, output)
