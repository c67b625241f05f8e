"""Run report models."""

from __future__ import annotations

from dataclasses import dataclass, field

from partner_charts.models import ChartStatus


@dataclass
class ChartResult:
    name: str
    status: ChartStatus
    source: str = ""
    versions: list[str] = field(default_factory=list)
    update_type: str = ""  # "major", "minor", "patch", "new", ...
    error: str = ""
    advisories: list[str] = field(default_factory=list)

    @property
    def skipped(self) -> bool:
        return self.status == ChartStatus.SKIPPED


@dataclass
class RunReport:
    results: list[ChartResult] = field(default_factory=list)
    index_updated: bool = False

    @property
    def updated(self) -> list[ChartResult]:
        return [r for r in self.results if r.status == ChartStatus.UPDATED]

    @property
    def pending(self) -> list[ChartResult]:
        return [r for r in self.results if r.status == ChartStatus.PENDING]

    @property
    def skipped(self) -> list[ChartResult]:
        return [r for r in self.results if r.skipped]

    @property
    def published(self) -> list[ChartResult]:
        """Charts with versions written to the repository, skipped ones included."""
        return [r for r in self.results if r.versions and r.status != ChartStatus.PENDING]

    @property
    def all_skipped(self) -> bool:
        return bool(self.results) and all(r.skipped for r in self.results)

    @property
    def summary(self) -> dict[str, int]:
        counts: dict[str, int] = {}
        for r in self.results:
            key = r.status.value
            counts[key] = counts.get(key, 0) + 1
        return counts


@dataclass
class PackageSummary:
    """One configured chart as shown by ``pcharts list``."""

    name: str
    source: str = ""
    locator: str = ""
    fetch: str = ""
    tracked: list[str] = field(default_factory=list)
    package_version: int | None = None
    error: str = ""
