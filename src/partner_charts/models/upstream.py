"""Upstream source configuration and fetched version models."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml
from semver import Version

from partner_charts.errors import ConfigurationError
from partner_charts.models import FetchPolicy, SourceType
from partner_charts.models.chart import ChartMetadata
from partner_charts.utils.version_compare import parse_line, parse_version


def _package_version(value: Any) -> int | None:
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        raise ConfigurationError(f"PackageVersion must be an integer, got {value!r}")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ConfigurationError(f"PackageVersion must be an integer, got {value!r}") from None


def _tracked_lines(value: Any) -> list[str]:
    if not value:
        return []
    if not isinstance(value, list):
        value = [value]
    lines: list[str] = []
    for item in value:
        # An unquoted 1.10 arrives as the float 1.1
        if isinstance(item, float):
            raise ConfigurationError(
                f"TrackVersions entry {item!r} must be a quoted string such as \"{item}\""
            )
        try:
            parse_line(str(item))
        except ValueError as e:
            raise ConfigurationError(str(e)) from None
        lines.append(str(item).strip())
    return lines


@dataclass
class UpstreamYaml:
    """Per-chart configuration read from ``upstream.yaml``."""

    helm_repo_url: str = ""
    helm_chart: str = ""
    ah_repo_name: str = ""
    ah_package_name: str = ""
    git_repo_url: str = ""
    git_branch: str = ""
    git_subdirectory: str = ""
    github_release: bool = False
    vendor: str = ""
    display_name: str = ""
    release_name: str = ""
    chart_metadata: ChartMetadata = field(default_factory=ChartMetadata)
    package_version: int | None = None
    pinned_version: str = ""
    fetch: FetchPolicy = FetchPolicy.DEFAULT
    track_versions: list[str] = field(default_factory=list)
    hidden: bool = False
    experimental: bool = False
    auto_install: str = ""
    namespace: str = ""

    @classmethod
    def from_dict(cls, d: dict, vendor: str = "") -> UpstreamYaml:
        if d is None:
            d = {}
        if not isinstance(d, dict):
            raise ConfigurationError("upstream.yaml must contain a mapping")
        overlay = d.get("ChartMetadata") or d.get("Chart.yaml") or {}
        return cls(
            helm_repo_url=str(d.get("HelmRepo", "") or "").rstrip("/"),
            helm_chart=str(d.get("HelmChart", "") or ""),
            ah_repo_name=str(d.get("ArtifactHubRepo", "") or ""),
            ah_package_name=str(d.get("ArtifactHubPackage", "") or ""),
            git_repo_url=str(d.get("GitRepo", "") or ""),
            git_branch=str(d.get("GitBranch", "") or ""),
            git_subdirectory=str(d.get("GitSubdirectory", "") or ""),
            github_release=bool(d.get("GitHubRelease", False)),
            vendor=str(d.get("Vendor", "") or vendor),
            display_name=str(d.get("DisplayName", "") or ""),
            release_name=str(d.get("ReleaseName", "") or ""),
            chart_metadata=ChartMetadata.from_dict(overlay),
            package_version=_package_version(d.get("PackageVersion")),
            pinned_version=str(d.get("Version", "") or ""),
            fetch=FetchPolicy.from_str(d.get("Fetch")),
            track_versions=_tracked_lines(d.get("TrackVersions")),
            hidden=bool(d.get("Hidden", False)),
            experimental=bool(d.get("Experimental", False)),
            auto_install=str(d.get("AutoInstall", "") or ""),
            namespace=str(d.get("Namespace", "") or ""),
        )

    @classmethod
    def load(cls, path: Path, vendor: str = "") -> UpstreamYaml:
        try:
            data = yaml.safe_load(path.read_text(encoding="utf-8"))
        except OSError as e:
            raise ConfigurationError(f"Cannot read {path}: {e}") from e
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in {path}: {e}") from e
        return cls.from_dict(data, vendor=vendor)

    @property
    def source_type(self) -> SourceType:
        if self.ah_repo_name and self.ah_package_name:
            return SourceType.ARTIFACT_HUB
        if self.helm_repo_url and self.helm_chart:
            return SourceType.HELM_REPO
        if self.git_repo_url:
            return SourceType.GIT
        raise ConfigurationError("no valid repo options found")

    @property
    def locator(self) -> str:
        """Human-readable description of where the chart comes from."""
        if self.ah_repo_name and self.ah_package_name:
            return f"{self.ah_repo_name}/{self.ah_package_name}"
        if self.helm_repo_url and self.helm_chart:
            return f"{self.helm_repo_url} ({self.helm_chart})"
        if self.git_repo_url:
            suffix = f"//{self.git_subdirectory}" if self.git_subdirectory else ""
            return f"{self.git_repo_url}{suffix}"
        return ""


@dataclass(frozen=True)
class UpstreamVersion:
    """One chart version offered by an upstream source."""

    chart_name: str
    version: str
    urls: tuple[str, ...] = ()
    metadata: dict = field(default_factory=dict, compare=False, hash=False)

    @property
    def semver(self) -> Version | None:
        return parse_version(self.version)


@dataclass
class SourceMetadata:
    """Normalized adapter output for one chart."""

    source: SourceType
    versions: list[UpstreamVersion] = field(default_factory=list)
    commit: str = ""
    subdirectory: str = ""
