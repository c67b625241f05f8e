"""Table / JSON / YAML output dispatch."""

from __future__ import annotations

import json
from dataclasses import asdict
from typing import Any

import yaml
from rich.console import Console

from partner_charts.core.validator import DirectoryComparison
from partner_charts.models.report import ChartResult, PackageSummary, RunReport

console = Console()


def _result_to_dict(r: ChartResult) -> dict[str, Any]:
    return {
        "chart": r.name,
        "source": r.source,
        "status": r.status.value,
        "update_type": r.update_type,
        "versions": r.versions,
        "error": r.error,
        "untracked_versions": r.advisories,
    }


def report_to_dict(report: RunReport) -> dict[str, Any]:
    return {
        "charts": [_result_to_dict(r) for r in report.results],
        "summary": report.summary,
        "index_updated": report.index_updated,
    }


def output_report(report: RunReport, fmt: str, title: str = "Partner Charts") -> None:
    if fmt == "json":
        console.print_json(json.dumps(report_to_dict(report), indent=2))
    elif fmt == "yaml":
        console.print(yaml.dump(report_to_dict(report), default_flow_style=False, sort_keys=False))
    else:
        from partner_charts.output.tables import report_table, summary_panel
        if not report.results:
            console.print("[dim]No charts configured.[/dim]")
            return
        console.print(report_table(report, title=title))
        console.print(summary_panel(report))


def output_packages(packages: list[PackageSummary], fmt: str) -> None:
    if fmt == "json":
        console.print_json(json.dumps([asdict(p) for p in packages], indent=2))
    elif fmt == "yaml":
        console.print(yaml.dump([asdict(p) for p in packages], default_flow_style=False, sort_keys=False))
    else:
        from partner_charts.output.tables import packages_table
        if not packages:
            console.print("[dim]No charts configured.[/dim]")
            return
        console.print(packages_table(packages))


def output_comparison(comparison: DirectoryComparison, fmt: str) -> None:
    if fmt == "json":
        console.print_json(json.dumps(comparison.to_dict(), indent=2))
    elif fmt == "yaml":
        console.print(yaml.dump(comparison.to_dict(), default_flow_style=False, sort_keys=False))
    else:
        from partner_charts.output.tables import comparison_table
        if comparison.match:
            console.print(f"[green]Assets match ({len(comparison.unchanged)} unchanged)[/green]")
            return
        console.print(comparison_table(comparison))
        console.print(
            f"\n[red]{len(comparison.removed)} removed, {len(comparison.modified)} modified, "
            f"{len(comparison.added)} added[/red]"
        )
