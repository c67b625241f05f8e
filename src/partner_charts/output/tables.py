"""Rich table builders for each command."""

from __future__ import annotations

from rich.panel import Panel
from rich.table import Table

from partner_charts.core.validator import DirectoryComparison
from partner_charts.models.report import PackageSummary, RunReport
from partner_charts.output.themes import styled_change, styled_status, styled_update


def report_table(report: RunReport, title: str = "Partner Charts") -> Table:
    table = Table(title=title, expand=True)
    table.add_column("Chart", style="bold white", no_wrap=True)
    table.add_column("Source", style="cyan", no_wrap=True)
    table.add_column("Status", no_wrap=True)
    table.add_column("Update", no_wrap=True)
    table.add_column("Versions", style="magenta")
    table.add_column("Notes", style="dim", max_width=50)

    for r in report.results:
        notes = r.error
        if r.advisories:
            untracked = f"untracked: {', '.join(r.advisories)}"
            notes = f"{notes}; {untracked}" if notes else untracked
        table.add_row(
            r.name,
            r.source or "-",
            styled_status(r.status),
            styled_update(r.update_type),
            ", ".join(r.versions) or "-",
            notes,
        )
    return table


def summary_panel(report: RunReport) -> Panel:
    parts = [f"{key}: {count}" for key, count in sorted(report.summary.items())]
    body = "  ".join(parts) or "no charts processed"
    if report.index_updated:
        body += "\nindex.yaml rewritten"
    border = "red" if report.skipped else "green"
    return Panel(body, title="[bold]Summary[/bold]", border_style=border)


def packages_table(packages: list[PackageSummary]) -> Table:
    table = Table(title="Configured Charts", expand=True)
    table.add_column("Chart", style="bold white", no_wrap=True)
    table.add_column("Source", style="cyan", no_wrap=True)
    table.add_column("Upstream", style="dim", max_width=50)
    table.add_column("Fetch", no_wrap=True)
    table.add_column("Tracked", style="magenta")
    table.add_column("Pkg Ver", justify="right")

    for p in packages:
        if p.error:
            table.add_row(p.name, "[red]invalid[/red]", f"[red]{p.error}[/red]", "-", "-", "-")
            continue
        table.add_row(
            p.name,
            p.source,
            p.locator,
            p.fetch,
            ", ".join(p.tracked) or "-",
            "-" if p.package_version is None else str(p.package_version),
        )
    return table


def comparison_table(comparison: DirectoryComparison) -> Table:
    table = Table(title="Asset Comparison", expand=True)
    table.add_column("Change", no_wrap=True)
    table.add_column("Asset")
    for kind in ("removed", "modified", "added"):
        for path in getattr(comparison, kind):
            table.add_row(styled_change(kind), path)
    return table
