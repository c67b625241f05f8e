"""Catalog maintenance on already published charts.

Every change is made to the asset archive and its unpacked chart directory;
the index is then rebuilt from the assets so the three stay in step.
"""

from __future__ import annotations

import logging
import shutil
from pathlib import Path, PurePosixPath
from typing import Any, Callable

from partner_charts.core.annotations import FEATURED, HIDDEN
from partner_charts.core.chart_loader import load_chart_file, save_chart_archive, save_chart_dir
from partner_charts.core.index_store import load_index, sort_entries, update_index
from partner_charts.errors import ConfigurationError, RepositoryIndexError
from partner_charts.models.repo import RepoLayout

logger = logging.getLogger(__name__)

MIN_FEATURED_RANK = 1
MAX_FEATURED_RANK = 5


def _entries(layout: RepoLayout, chart_name: str) -> list[dict[str, Any]]:
    entries = load_index(layout).entries.get(chart_name)
    if not entries:
        raise ConfigurationError(f"Chart '{chart_name}' is not in {layout.relative(layout.index_file)}")
    sort_entries({chart_name: entries})
    return entries


def _asset(layout: RepoLayout, entry: dict[str, Any]) -> tuple[str, Path]:
    """Return the vendor and asset path an index entry points at."""
    urls = entry.get("urls") or []
    if not urls:
        raise RepositoryIndexError(f"Index entry {entry.get('name')} {entry.get('version')} has no URL")
    rel = PurePosixPath(str(urls[0]))
    if len(rel.parts) != 3 or rel.parts[0] != layout.assets_dir.name:
        raise RepositoryIndexError(f"Index URL {rel} is not a local asset")
    return rel.parts[1], layout.root / rel


def _rewrite(layout: RepoLayout, entry: dict[str, Any], mutate: Callable[[dict[str, str]], None]) -> bool:
    vendor, asset = _asset(layout, entry)
    chart = load_chart_file(asset)
    before = dict(chart.metadata.annotations)
    mutate(chart.metadata.annotations)
    if chart.metadata.annotations == before:
        return False
    save_chart_archive(chart, asset)
    save_chart_dir(chart, layout.chart_dir(vendor, chart.name, chart.version))
    logger.info("Updated %s", layout.relative(asset))
    return True


def _set(key: str, value: str) -> Callable[[dict[str, str]], None]:
    def mutate(annotations: dict[str, str]) -> None:
        annotations[key] = value

    return mutate


def _drop(key: str) -> Callable[[dict[str, str]], None]:
    def mutate(annotations: dict[str, str]) -> None:
        annotations.pop(key, None)

    return mutate


def hide(layout: RepoLayout, chart_name: str) -> int:
    """Mark every version of a chart hidden. Returns the number changed."""
    changed = 0
    for entry in _entries(layout, chart_name):
        if _rewrite(layout, entry, _set(HIDDEN, "true")):
            changed += 1
    update_index(layout)
    return changed


def feature(layout: RepoLayout, chart_name: str, rank: int) -> None:
    """Feature the newest version of a chart at ``rank``.

    A rank may only be held by one chart at a time.
    """
    if not MIN_FEATURED_RANK <= rank <= MAX_FEATURED_RANK:
        raise ConfigurationError(f"Featured rank must be between {MIN_FEATURED_RANK} and {MAX_FEATURED_RANK}")

    index = load_index(layout)
    for name, entries in index.entries.items():
        if name == chart_name:
            continue
        for entry in entries:
            if str((entry.get("annotations") or {}).get(FEATURED, "")) == str(rank):
                raise ConfigurationError(f"Rank {rank} is already held by '{name}'")

    entries = _entries(layout, chart_name)
    _rewrite(layout, entries[0], _set(FEATURED, str(rank)))
    for entry in entries[1:]:
        _rewrite(layout, entry, _drop(FEATURED))
    update_index(layout)


def unfeature(layout: RepoLayout, chart_name: str) -> int:
    changed = 0
    for entry in _entries(layout, chart_name):
        if _rewrite(layout, entry, _drop(FEATURED)):
            changed += 1
    update_index(layout)
    return changed


def remove(layout: RepoLayout, chart_name: str) -> list[str]:
    """Delete every published version of a chart. Returns the removed versions."""
    removed: list[str] = []
    for entry in _entries(layout, chart_name):
        vendor, asset = _asset(layout, entry)
        version = str(entry.get("version", ""))
        try:
            asset.unlink(missing_ok=True)
            chart_dir = layout.chart_dir(vendor, chart_name, version)
            if chart_dir.exists():
                shutil.rmtree(chart_dir)
            parent = chart_dir.parent
            if parent.is_dir() and not any(parent.iterdir()):
                parent.rmdir()
        except OSError as e:
            raise RepositoryIndexError(f"Cannot remove {chart_name} {version}: {e}") from e
        logger.info("Removed %s", layout.relative(asset))
        removed.append(version)
    update_index(layout)
    return removed
