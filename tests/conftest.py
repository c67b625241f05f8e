from __future__ import annotations

from pathlib import Path
from typing import Callable

import pytest
import yaml

from partner_charts.core.chart_loader import save_chart_archive, save_chart_dir
from partner_charts.models import SourceType
from partner_charts.models.chart import Chart, ChartMetadata
from partner_charts.models.repo import RepoLayout
from partner_charts.models.upstream import SourceMetadata, UpstreamVersion

HELM_REPO = "https://charts.example.com"


def make_chart(
    name: str = "demo",
    version: str = "1.0.0",
    annotations: dict[str, str] | None = None,
    files: dict[str, bytes] | None = None,
    **metadata,
) -> Chart:
    meta = ChartMetadata(
        api_version="v2",
        name=name,
        version=version,
        description=f"The {name} chart",
        app_version=version,
        annotations=dict(annotations or {}),
        **metadata,
    )
    if files is None:
        files = {
            "values.yaml": b"replicaCount: 1\n",
            "templates/deployment.yaml": b"kind: Deployment\nmetadata:\n  name: {{ .Release.Name }}\n",
        }
    return Chart(metadata=meta, files=dict(files))


def chart_url(name: str, version: str) -> str:
    return f"{HELM_REPO}/{name}-{version}.tgz"


def source_for(name: str, *versions: str, source: SourceType = SourceType.HELM_REPO) -> SourceMetadata:
    return SourceMetadata(
        source=source,
        versions=[UpstreamVersion(chart_name=name, version=v, urls=(chart_url(name, v),)) for v in versions],
    )


@pytest.fixture
def layout(tmp_path: Path) -> RepoLayout:
    return RepoLayout(tmp_path)


@pytest.fixture
def add_package(layout: RepoLayout) -> Callable[..., Path]:
    """Write packages/<vendor>/<chart>/upstream.yaml and optional overlay files."""

    def _add(vendor: str, chart: str, upstream: dict, overlay: dict[str, str] | None = None) -> Path:
        path = layout.package_dir(vendor, chart)
        path.mkdir(parents=True, exist_ok=True)
        (path / "upstream.yaml").write_text(yaml.safe_dump(upstream), encoding="utf-8")
        for rel, content in (overlay or {}).items():
            target = path / "overlay" / rel
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(content, encoding="utf-8")
        return path

    return _add


@pytest.fixture
def publish(layout: RepoLayout) -> Callable[[str, Chart], str]:
    """Put a chart into assets/ and charts/ as a finished run would."""

    def _publish(vendor: str, chart: Chart) -> str:
        digest = save_chart_archive(chart, layout.asset_path(vendor, chart.name, chart.version))
        save_chart_dir(chart, layout.chart_dir(vendor, chart.name, chart.version))
        return digest

    return _publish


@pytest.fixture
def upstream_charts(monkeypatch) -> dict[str, Chart]:
    """Serve chart archives from memory instead of the network.

    Tests register charts by URL; unknown URLs raise SourceError like a 404.
    """
    from partner_charts.errors import SourceError

    served: dict[str, Chart] = {}

    def fake_load(url: str) -> Chart:
        if url not in served:
            raise SourceError(f"Unable to fetch chart archive {url}: 404")
        return served[url]

    monkeypatch.setattr("partner_charts.core.package.load_chart_from_url", fake_load)
    return served


@pytest.fixture
def serve(upstream_charts: dict[str, Chart]) -> Callable[..., None]:
    def _serve(name: str, *versions: str, **kwargs) -> None:
        for v in versions:
            upstream_charts[chart_url(name, v)] = make_chart(name, v, **kwargs)

    return _serve
