"""Repository layout and published index models."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from semver import Version

from partner_charts.utils.version_compare import parse_version

INDEX_FILE = "index.yaml"
ASSETS_DIR = "assets"
CHARTS_DIR = "charts"
PACKAGES_DIR = "packages"
UPSTREAM_FILE = "upstream.yaml"
PACKAGE_FILE = "package.yaml"
INDEX_API_VERSION = "v1"


@dataclass(frozen=True)
class RepoLayout:
    """Paths inside one chart repository checkout."""

    root: Path

    @property
    def index_file(self) -> Path:
        return self.root / INDEX_FILE

    @property
    def assets_dir(self) -> Path:
        return self.root / ASSETS_DIR

    @property
    def charts_dir(self) -> Path:
        return self.root / CHARTS_DIR

    @property
    def packages_dir(self) -> Path:
        return self.root / PACKAGES_DIR

    def package_dir(self, vendor: str, chart: str) -> Path:
        return self.packages_dir / vendor / chart

    def upstream_file(self, vendor: str, chart: str) -> Path:
        return self.package_dir(vendor, chart) / UPSTREAM_FILE

    def asset_path(self, vendor: str, chart: str, version: str) -> Path:
        return self.assets_dir / vendor / f"{chart}-{version}.tgz"

    def chart_dir(self, vendor: str, chart: str, version: str) -> Path:
        return self.charts_dir / vendor / chart / version

    def relative(self, path: Path) -> str:
        return path.relative_to(self.root).as_posix()


@dataclass(frozen=True)
class StoredVersion:
    """A chart version already present in the published index."""

    chart_name: str
    version: str
    digest: str = ""

    @property
    def semver(self) -> Version | None:
        return parse_version(self.version)


@dataclass
class RepoIndex:
    """In-memory form of ``index.yaml``: chart name -> list of entry dicts."""

    entries: dict[str, list[dict[str, Any]]] = field(default_factory=dict)
    generated: str = ""
    api_version: str = INDEX_API_VERSION

    @classmethod
    def from_dict(cls, d: dict | None) -> RepoIndex:
        if not d:
            return cls()
        entries = d.get("entries") or {}
        return cls(
            entries={name: list(versions or []) for name, versions in entries.items()},
            generated=str(d.get("generated", "") or ""),
            api_version=str(d.get("apiVersion", INDEX_API_VERSION)),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "apiVersion": self.api_version,
            "entries": {name: self.entries[name] for name in sorted(self.entries)},
            "generated": self.generated,
        }

    def stored_versions(self, chart_name: str) -> list[StoredVersion]:
        """Return the published versions of a chart, newest first."""
        stored = [
            StoredVersion(chart_name=chart_name, version=str(e.get("version", "")), digest=str(e.get("digest", "")))
            for e in self.entries.get(chart_name, [])
        ]
        stored.sort(key=lambda s: (s.semver is not None, s.semver or Version(0)), reverse=True)
        return stored

    def find(self, chart_name: str, version: str) -> dict[str, Any] | None:
        for entry in self.entries.get(chart_name, []):
            if str(entry.get("version", "")) == version:
                return entry
        return None
