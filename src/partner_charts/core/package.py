"""Materialize an upstream chart inside its package directory and publish it."""

from __future__ import annotations

import difflib
import logging
import shutil
from pathlib import Path

import yaml

from partner_charts.core.chart_loader import (
    CHART_FILE,
    load_chart_dir,
    load_chart_from_url,
    render_chart_yaml,
    save_chart_archive,
    save_chart_dir,
)
from partner_charts.core.fetchers import load_chart_from_git
from partner_charts.errors import PackagingError, SourceError
from partner_charts.models import SourceType
from partner_charts.models.chart import Chart
from partner_charts.models.repo import PACKAGE_FILE, RepoLayout
from partner_charts.models.upstream import SourceMetadata, UpstreamVersion, UpstreamYaml

logger = logging.getLogger(__name__)

OVERLAY_DIR = "overlay"
GENERATED_DIR = "generated-changes"
PATCH_DIR = "patch"
WORKING_DIR = "charts"


def _overlay_files(overlay_path: Path) -> list[str]:
    if not overlay_path.is_dir():
        return []
    return sorted(p.relative_to(overlay_path).as_posix() for p in overlay_path.rglob("*") if p.is_file())


def _chart_files(chart: Chart) -> dict[str, bytes]:
    return {CHART_FILE: render_chart_yaml(chart.metadata), **chart.files}


def _text(content: bytes) -> list[str] | None:
    try:
        return content.decode("utf-8").splitlines(keepends=True)
    except UnicodeDecodeError:
        return None


class ChartPackage:
    """One ``packages/<vendor>/<chart>`` directory and the chart it produces."""

    def __init__(
        self,
        layout: RepoLayout,
        vendor: str,
        name: str,
        upstream: UpstreamYaml,
        source: SourceMetadata,
    ):
        self.layout = layout
        self.vendor = vendor
        self.name = name
        self.upstream = upstream
        self.source = source
        self.path = layout.package_dir(vendor, name)
        self._upstream_chart: Chart | None = None

    @property
    def working_path(self) -> Path:
        return self.path / WORKING_DIR

    @property
    def overlay_path(self) -> Path:
        return self.path / OVERLAY_DIR

    @property
    def patch_path(self) -> Path:
        return self.path / GENERATED_DIR / PATCH_DIR

    def prepare(self, version: UpstreamVersion) -> Chart:
        """Fetch the chart for ``version``, lay it out and apply overlay files."""
        if not version.urls:
            raise SourceError(f"{self.name} {version.version} has no download URL")

        if self.source.source == SourceType.GIT:
            chart = load_chart_from_git(version.urls[0], self.source.subdirectory, self.source.commit)
        else:
            chart = load_chart_from_url(version.urls[0])

        self._upstream_chart = chart
        save_chart_dir(chart, self.working_path)
        self.apply_overlay_files()
        return load_chart_dir(self.working_path)

    def apply_overlay_files(self) -> None:
        for rel in _overlay_files(self.overlay_path):
            target = self.working_path / rel
            try:
                if target.exists():
                    logger.warning("Replacing %s with overlay file", rel)
                target.parent.mkdir(parents=True, exist_ok=True)
                shutil.copyfile(self.overlay_path / rel, target)
            except OSError as e:
                raise PackagingError(f"Cannot apply overlay file {rel}: {e}") from e

    def generate_patch(self, version: UpstreamVersion, chart: Chart) -> list[str]:
        """Record what was prepared and save a patch per file changed from upstream.

        Files added by the overlay are not patched; they already live under
        ``overlay/``. Returns the relative paths that were patched.
        """
        if self._upstream_chart is None:
            raise PackagingError(f"{self.name}: generate_patch called before prepare")

        package_yaml: dict[str, object] = {"url": version.urls[0]}
        if self.source.commit:
            package_yaml["commit"] = self.source.commit
        if self.source.subdirectory:
            package_yaml["subdirectory"] = self.source.subdirectory
        if self.upstream.package_version is not None:
            package_yaml["packageVersion"] = self.upstream.package_version

        before = _chart_files(self._upstream_chart)
        after = _chart_files(chart)
        patched: list[str] = []
        try:
            (self.path / PACKAGE_FILE).write_text(
                yaml.safe_dump(package_yaml, sort_keys=True, default_flow_style=False),
                encoding="utf-8",
            )
            if self.patch_path.exists():
                shutil.rmtree(self.patch_path)
            for rel in sorted(before):
                if rel not in after or before[rel] == after[rel]:
                    continue
                old, new = _text(before[rel]), _text(after[rel])
                if old is None or new is None:
                    logger.debug("Not patching binary file %s", rel)
                    continue
                diff = difflib.unified_diff(old, new, fromfile=f"a/{rel}", tofile=f"b/{rel}")
                target = self.patch_path / f"{rel}.patch"
                target.parent.mkdir(parents=True, exist_ok=True)
                target.write_text("".join(diff), encoding="utf-8")
                patched.append(rel)
        except OSError as e:
            raise PackagingError(f"Cannot write generated changes for {self.name}: {e}") from e
        return patched

    def clean(self) -> None:
        """Remove the working chart directory."""
        if self.working_path.exists():
            shutil.rmtree(self.working_path, ignore_errors=True)
        self._upstream_chart = None

    def save(self, chart: Chart) -> str:
        """Write the asset archive and unpacked chart; return the asset digest."""
        asset = self.layout.asset_path(self.vendor, chart.name, chart.version)
        digest = save_chart_archive(chart, asset)
        save_chart_dir(chart, self.layout.chart_dir(self.vendor, chart.name, chart.version))
        logger.info("Saved %s", self.layout.relative(asset))
        return digest
