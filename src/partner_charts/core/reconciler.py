"""Bring the published repository up to date with every configured upstream."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable

from partner_charts.core.annotations import annotate_chart
from partner_charts.core.fetchers import fetch_upstream
from partner_charts.core.index_store import load_index, update_index
from partner_charts.core.package import ChartPackage
from partner_charts.core.package_version import decode_package_version, encode_package_version
from partner_charts.core.version_filter import eligible_versions, filter_versions, log_untracked, newer_untracked
from partner_charts.errors import (
    AllChartsSkippedError,
    ConfigurationError,
    NoEligibleVersionsError,
    PackageVersionRangeError,
    PartnerChartsError,
)
from partner_charts.models import ChartStatus
from partner_charts.models.repo import UPSTREAM_FILE, RepoIndex, RepoLayout
from partner_charts.models.report import ChartResult, RunReport
from partner_charts.models.upstream import SourceMetadata, UpstreamVersion, UpstreamYaml
from partner_charts.utils.version_compare import classify_update

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int, str], None]
Fetcher = Callable[[UpstreamYaml], SourceMetadata]
PackageFactory = Callable[[RepoLayout, str, str, UpstreamYaml, SourceMetadata], ChartPackage]


@dataclass(frozen=True)
class PackageRef:
    """A ``packages/<vendor>/<chart>`` directory holding an upstream.yaml."""

    vendor: str
    name: str
    path: Path

    @property
    def key(self) -> str:
        return f"{self.vendor}/{self.name}"

    def load(self) -> UpstreamYaml:
        return UpstreamYaml.load(self.path / UPSTREAM_FILE, vendor=self.vendor)


def discover_packages(layout: RepoLayout, chart_names: list[str] | None = None) -> list[PackageRef]:
    """Find configured charts in sorted ``vendor/chart`` order.

    ``chart_names`` may hold ``vendor/chart`` or bare chart names. Raises
    ConfigurationError when a requested name matches nothing.
    """
    refs = [
        PackageRef(vendor=f.parent.parent.name, name=f.parent.name, path=f.parent)
        for f in layout.packages_dir.glob(f"*/*/{UPSTREAM_FILE}")
        if f.is_file()
    ]
    refs.sort(key=lambda r: r.key)
    if not chart_names:
        return refs

    selected: list[PackageRef] = []
    for wanted in chart_names:
        matches = [r for r in refs if wanted in (r.key, r.name)]
        if not matches:
            raise ConfigurationError(f"No package found for '{wanted}'")
        selected.extend(m for m in matches if m not in selected)
    selected.sort(key=lambda r: r.key)
    return selected


class Reconciler:
    """Fetch, filter, package and publish each configured chart in turn.

    Charts run sequentially. Errors scoped to one chart are recorded in the
    report and the run moves on; the index is rebuilt once at the end.
    """

    def __init__(
        self,
        layout: RepoLayout,
        fetcher: Fetcher | None = None,
        package_factory: PackageFactory | None = None,
        on_progress: ProgressCallback | None = None,
    ):
        self.layout = layout
        self.fetcher = fetcher or fetch_upstream
        self.package_factory = package_factory or ChartPackage
        self.on_progress = on_progress

    def run(self, chart_names: list[str] | None = None, dry_run: bool = False) -> RunReport:
        refs = discover_packages(self.layout, chart_names)
        index = load_index(self.layout)
        report = RunReport()

        for i, ref in enumerate(refs, 1):
            if self.on_progress:
                self.on_progress(i, len(refs), ref.key)
            result = self.reconcile_chart(ref, index, dry_run=dry_run)
            report.results.append(result)

        if not dry_run:
            report.index_updated = update_index(self.layout)

        if report.all_skipped:
            raise AllChartsSkippedError(report)
        return report

    def reconcile_chart(self, ref: PackageRef, index: RepoIndex, dry_run: bool = False) -> ChartResult:
        result = ChartResult(name=ref.key, status=ChartStatus.UP_TO_DATE)
        try:
            upstream = ref.load()
            result.source = upstream.source_type.value
            source = self.fetcher(upstream)
            if not source.versions:
                raise NoEligibleVersionsError("upstream offers no versions")

            chart_name = source.versions[0].chart_name
            stored = index.stored_versions(chart_name)
            candidates = eligible_versions(source.versions)
            result.advisories = newer_untracked(upstream.track_versions, candidates)
            log_untracked(chart_name, result.advisories)

            if upstream.pinned_version and index.find(chart_name, upstream.pinned_version):
                logger.debug("%s: pinned version %s already published", ref.key, upstream.pinned_version)
                return result

            selected = filter_versions(
                source.versions,
                stored,
                upstream.fetch,
                upstream.track_versions,
                upstream.package_version,
                warn_untracked=False,
            )
            if upstream.pinned_version:
                selected = selected[:1]
        except NoEligibleVersionsError as e:
            logger.debug("%s: %s", ref.key, e)
            return result
        except PartnerChartsError as e:
            logger.error("%s: skipped: %s", ref.key, e)
            logger.debug("%s: skip details", ref.key, exc_info=True)
            result.status = ChartStatus.SKIPPED
            result.error = str(e)
            return result

        if not selected:
            logger.info("%s is up to date", ref.key)
            return result

        newest_stored = ""
        valid_stored = [s for s in stored if s.semver is not None]
        if valid_stored:
            newest_stored = str(decode_package_version(valid_stored[0].semver))
        result.update_type = classify_update(newest_stored, selected[0].version)

        if dry_run:
            result.status = ChartStatus.PENDING
            result.versions = [u.version for u in selected]
            return result

        package = self.package_factory(self.layout, ref.vendor, ref.name, upstream, source)
        errors: list[str] = []
        failed = False
        for version in selected:
            try:
                published = self._process_version(package, upstream, version)
            except PackageVersionRangeError as e:
                logger.error("%s %s: %s", ref.key, version.version, e)
                errors.append(f"{version.version}: {e}")
                continue
            except PartnerChartsError as e:
                logger.error("%s: skipped while packaging %s: %s", ref.key, version.version, e)
                logger.debug("%s: skip details", ref.key, exc_info=True)
                errors.append(f"{version.version}: {e}")
                failed = True
                break
            result.versions.append(published)

        result.error = "; ".join(errors)
        if result.versions:
            logger.info("%s: published %s", ref.key, ", ".join(result.versions))
        # A packaging failure skips the chart even when newer versions went out
        result.status = ChartStatus.UPDATED if result.versions and not failed else ChartStatus.SKIPPED
        return result

    def _process_version(self, package: ChartPackage, upstream: UpstreamYaml, version: UpstreamVersion) -> str:
        """Prepare, annotate, version, patch and save one upstream version."""
        try:
            chart = package.prepare(version)
            chart = annotate_chart(chart, upstream)
            chart.metadata.version = encode_package_version(
                version.version, upstream.package_version, upstream.pinned_version
            )
            package.generate_patch(version, chart)
        finally:
            package.clean()
        package.save(chart)
        return chart.version
