"""Read and write the repository ``index.yaml``.

The index is derived from the ``assets/`` tree. Entries whose archive did not
change are carried over untouched, and the file is only rewritten when some
entry changed, so repeated runs leave it byte-identical.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

import yaml
from semver import Version

from partner_charts.core.chart_loader import file_digest, load_chart_file
from partner_charts.errors import PackagingError, RepositoryIndexError
from partner_charts.models.repo import RepoIndex, RepoLayout
from partner_charts.utils.version_compare import parse_version

logger = logging.getLogger(__name__)


class _IndexLoader(yaml.SafeLoader):
    """SafeLoader that keeps ``created``/``generated`` timestamps as strings."""


_IndexLoader.yaml_implicit_resolvers = {
    first: [r for r in resolvers if r[0] != "tag:yaml.org,2002:timestamp"]
    for first, resolvers in yaml.SafeLoader.yaml_implicit_resolvers.items()
}


def timestamp(now: datetime | None = None) -> str:
    now = now or datetime.now(timezone.utc)
    return now.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%fZ")


def load_index(layout: RepoLayout) -> RepoIndex:
    """Load ``index.yaml``; a missing file is an empty index."""
    path = layout.index_file
    if not path.exists():
        return RepoIndex()
    try:
        data = yaml.load(path.read_text(encoding="utf-8"), Loader=_IndexLoader)
    except (OSError, yaml.YAMLError) as e:
        raise RepositoryIndexError(f"Cannot read {path}: {e}") from e
    if data is not None and not isinstance(data, dict):
        raise RepositoryIndexError(f"{path} is not a Helm repository index")
    entries = (data or {}).get("entries") or {}
    if not isinstance(entries, dict):
        raise RepositoryIndexError(f"{path} has malformed entries")
    for name, versions in entries.items():
        if versions is None:
            continue
        if not isinstance(versions, list) or not all(isinstance(e, dict) for e in versions):
            raise RepositoryIndexError(f"{path} has malformed entries for chart {name}")
    return RepoIndex.from_dict(data)


def write_index(layout: RepoLayout, index: RepoIndex) -> None:
    try:
        layout.index_file.write_text(
            yaml.safe_dump(index.to_dict(), sort_keys=True, default_flow_style=False),
            encoding="utf-8",
        )
    except OSError as e:
        raise RepositoryIndexError(f"Cannot write {layout.index_file}: {e}") from e


def _entry_key(entry: dict[str, Any]) -> tuple[bool, Version]:
    v = parse_version(str(entry.get("version", "")))
    return (v is not None, v or Version(0))


def sort_entries(entries: dict[str, list[dict[str, Any]]]) -> None:
    """Sort each chart's entries newest first, in place."""
    for versions in entries.values():
        versions.sort(key=_entry_key, reverse=True)


def _existing_by_url(existing: RepoIndex) -> dict[str, dict[str, Any]]:
    by_url: dict[str, dict[str, Any]] = {}
    for versions in existing.entries.values():
        for entry in versions:
            for url in entry.get("urls") or []:
                by_url[str(url)] = entry
    return by_url


def scan_assets(layout: RepoLayout, existing: RepoIndex | None = None) -> dict[str, list[dict[str, Any]]]:
    """Build index entries for every archive under ``assets/``.

    Archives whose digest matches an existing entry for the same URL are not
    reopened; that entry is reused as is.
    """
    known = _existing_by_url(existing) if existing else {}
    entries: dict[str, list[dict[str, Any]]] = {}
    if not layout.assets_dir.is_dir():
        return entries

    for asset in sorted(layout.assets_dir.glob("*/*.tgz")):
        url = layout.relative(asset)
        try:
            digest = file_digest(asset)
        except OSError as e:
            raise RepositoryIndexError(f"Cannot read {url}: {e}") from e

        previous = known.get(url)
        if previous is not None and previous.get("digest") == digest:
            entries.setdefault(str(previous.get("name", "")), []).append(previous)
            continue

        try:
            chart = load_chart_file(asset)
        except PackagingError as e:
            raise RepositoryIndexError(f"Cannot index {url}: {e}") from e
        entry = chart.metadata.to_dict()
        entry["urls"] = [url]
        entry["digest"] = digest
        entries.setdefault(chart.name, []).append(entry)
    return entries


def merge_index(existing: RepoIndex, scanned: dict[str, list[dict[str, Any]]], now: str) -> RepoIndex:
    """Combine scanned entries with the existing index.

    An entry with the same version and digest as before is kept verbatim. A
    changed archive replaces its entry but keeps the original ``created``.
    Charts with no archive left drop out of the index.
    """
    merged: dict[str, list[dict[str, Any]]] = {}
    for name, scanned_entries in scanned.items():
        for entry in scanned_entries:
            previous = existing.find(name, str(entry.get("version", "")))
            if previous is not None and previous.get("digest") == entry.get("digest"):
                merged.setdefault(name, []).append(previous)
                continue
            entry = dict(entry)
            entry["created"] = str(previous.get("created", now)) if previous else now
            merged.setdefault(name, []).append(entry)
    sort_entries(merged)
    return RepoIndex(entries=merged, generated=existing.generated, api_version=existing.api_version)


def update_index(layout: RepoLayout, now: datetime | None = None) -> bool:
    """Rebuild ``index.yaml`` from the assets. Returns True if it was rewritten."""
    existing = load_index(layout)
    stamp = timestamp(now)
    merged = merge_index(existing, scan_assets(layout, existing), stamp)

    if layout.index_file.exists() and merged.entries == existing.entries:
        logger.debug("%s is up to date", layout.relative(layout.index_file))
        return False

    merged.generated = stamp
    write_index(layout, merged)
    logger.info("Wrote %s (%d chart(s))", layout.relative(layout.index_file), len(merged.entries))
    return True
