"""Chart metadata overlay and catalog annotations.

Annotations are merged in a fixed order:

1. upstream annotations from the chart itself,
2. operator overlay annotations from upstream.yaml (overlay wins),
3. catalog annotations, inserted only where the key is still absent.
"""

from __future__ import annotations

import copy
from dataclasses import replace

from partner_charts.config.settings import settings
from partner_charts.models.chart import Chart, ChartMetadata
from partner_charts.models.upstream import UpstreamYaml

CATALOG_PREFIX = "catalog.cattle.io/"
CERTIFIED = CATALOG_PREFIX + "certified"
DISPLAY_NAME = CATALOG_PREFIX + "display-name"
RELEASE_NAME = CATALOG_PREFIX + "release-name"
KUBE_VERSION = CATALOG_PREFIX + "kube-version"
HIDDEN = CATALOG_PREFIX + "hidden"
FEATURED = CATALOG_PREFIX + "featured"
EXPERIMENTAL = CATALOG_PREFIX + "experimental"
AUTO_INSTALL = CATALOG_PREFIX + "auto-install"
NAMESPACE = CATALOG_PREFIX + "namespace"

_SCALAR_FIELDS = (
    "name",
    "home",
    "description",
    "icon",
    "api_version",
    "condition",
    "tags",
    "app_version",
    "chart_type",
)
_LIST_FIELDS = ("sources", "keywords", "maintainers", "dependencies")


def overlay_chart_metadata(metadata: ChartMetadata, overlay: ChartMetadata) -> ChartMetadata:
    """Return a copy of ``metadata`` with every field the overlay sets applied.

    Scalars are replaced, lists are appended to, annotations are merged with
    the overlay winning. ``version`` is owned by the package-version codec and
    ``kubeVersion`` is published as an annotation, so neither is copied.
    """
    merged = copy.deepcopy(metadata)
    for name in _SCALAR_FIELDS:
        value = getattr(overlay, name)
        if value:
            setattr(merged, name, value)
    for name in _LIST_FIELDS:
        value = getattr(overlay, name)
        if value:
            getattr(merged, name).extend(copy.deepcopy(value))
    if overlay.deprecated:
        merged.deprecated = True
    merged.annotations.update(overlay.annotations)
    return merged


def catalog_annotations(upstream: UpstreamYaml, metadata: ChartMetadata) -> dict[str, str]:
    """Catalog annotations derived from the chart configuration."""
    annotations = {
        CERTIFIED: settings.certified_value,
        DISPLAY_NAME: upstream.display_name or metadata.name,
        RELEASE_NAME: upstream.release_name or metadata.name,
    }
    kube_version = upstream.chart_metadata.kube_version or metadata.kube_version
    if kube_version:
        annotations[KUBE_VERSION] = kube_version
    if upstream.hidden:
        annotations[HIDDEN] = "true"
    if upstream.experimental:
        annotations[EXPERIMENTAL] = "true"
    if upstream.auto_install:
        annotations[AUTO_INSTALL] = upstream.auto_install
    if upstream.namespace:
        annotations[NAMESPACE] = upstream.namespace
    return annotations


def insert_missing_annotations(metadata: ChartMetadata, annotations: dict[str, str]) -> None:
    for key, value in annotations.items():
        metadata.annotations.setdefault(key, value)


def annotate_chart(chart: Chart, upstream: UpstreamYaml) -> Chart:
    """Apply the overlay and catalog annotations, returning a new Chart."""
    metadata = overlay_chart_metadata(chart.metadata, upstream.chart_metadata)
    insert_missing_annotations(metadata, catalog_annotations(upstream, metadata))
    return replace(chart, metadata=metadata, files=dict(chart.files))


def strip_catalog_annotations(metadata: ChartMetadata) -> ChartMetadata:
    stripped = copy.deepcopy(metadata)
    stripped.annotations = {
        k: v for k, v in stripped.annotations.items() if not k.startswith(CATALOG_PREFIX)
    }
    return stripped
