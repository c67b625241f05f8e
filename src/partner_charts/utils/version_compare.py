"""Semver comparison utilities."""

from __future__ import annotations

from semver import Version


def parse_version(v: str | Version | None) -> Version | None:
    """Parse a chart version string, returning None on failure.

    Accepts the leading ``v`` and the short ``1.2`` forms Helm tolerates.
    """
    if isinstance(v, Version):
        return v
    if v is None:
        return None
    raw = str(v).strip()
    if raw.startswith("v"):
        raw = raw[1:]
    if not raw:
        return None
    try:
        return Version.parse(raw, optional_minor_and_patch=True)
    except (ValueError, TypeError):
        return None


def is_prerelease(v: Version) -> bool:
    return v.prerelease is not None


def release_line(v: Version) -> tuple[int, int]:
    """Return the ``(major, minor)`` release line a version belongs to."""
    return (v.major, v.minor)


def parse_line(line: str) -> tuple[int, int]:
    """Parse a tracked ``major.minor`` line into integers.

    Raises ValueError for anything that is not two dot-separated integers.
    """
    raw = str(line).strip()
    if raw.startswith("v"):
        raw = raw[1:]
    parts = raw.split(".")
    if len(parts) != 2 or not all(p.isdigit() for p in parts):
        raise ValueError(f"Invalid release line '{line}', expected major.minor")
    return (int(parts[0]), int(parts[1]))


def sort_descending(versions: list[str]) -> list[str]:
    """Sort version strings newest first; unparseable strings go last."""
    parsed = [(parse_version(v), v) for v in versions]
    valid = sorted((p for p in parsed if p[0] is not None), key=lambda p: p[0], reverse=True)
    invalid = [v for p, v in parsed if p is None]
    return [v for _, v in valid] + invalid


def classify_update(current: str, latest: str) -> str:
    """Classify the update type between two version strings.

    Returns: "major", "minor", "patch", "up-to-date", "new" or "unknown".
    """
    if not current:
        return "new"
    cur = parse_version(current)
    lat = parse_version(latest)

    if cur is None or lat is None:
        return "unknown"
    if lat <= cur:
        return "up-to-date"
    if lat.major > cur.major:
        return "major"
    if lat.minor > cur.minor:
        return "minor"
    return "patch"
