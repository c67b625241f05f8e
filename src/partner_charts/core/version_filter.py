"""Decide which upstream versions still need to be published."""

from __future__ import annotations

import logging

from semver import Version

from partner_charts.core.package_version import decode_package_version, encode_package_version
from partner_charts.errors import NoEligibleVersionsError, PackageVersionRangeError
from partner_charts.models import FetchPolicy
from partner_charts.models.repo import StoredVersion
from partner_charts.models.upstream import UpstreamVersion
from partner_charts.utils.version_compare import is_prerelease, parse_line, release_line

logger = logging.getLogger(__name__)


def eligible_versions(upstream: list[UpstreamVersion]) -> list[UpstreamVersion]:
    """Sort upstream versions newest first and drop pre-releases and unparseable ones."""
    parsed: list[tuple[Version, UpstreamVersion]] = []
    for u in upstream:
        v = u.semver
        if v is None:
            logger.debug("Ignoring unparseable upstream version %r of %s", u.version, u.chart_name)
            continue
        if is_prerelease(v):
            continue
        parsed.append((v, u))
    parsed.sort(key=lambda p: p[0], reverse=True)
    return [u for _, u in parsed]


def filter_versions(
    upstream: list[UpstreamVersion],
    stored: list[StoredVersion],
    policy: FetchPolicy,
    tracked: list[str] | None = None,
    package_version: int | None = None,
    warn_untracked: bool = True,
) -> list[UpstreamVersion]:
    """Return the upstream versions to fetch, newest first.

    With tracked lines each ``major.minor`` line is filtered on its own and the
    results are concatenated in the order the lines were given. An empty
    result means the chart is up to date.

    ``package_version`` lets a stored version count as covering an upstream
    version when it equals that version encoded with the package version.
    Pass ``warn_untracked=False`` when the caller reports ``newer_untracked``
    itself.

    Raises NoEligibleVersionsError when upstream offers nothing but
    pre-releases.
    """
    candidates = eligible_versions(upstream)
    if not candidates:
        raise NoEligibleVersionsError("no eligible upstream versions after removing pre-releases")

    if not tracked:
        return _select(candidates, stored, policy, package_version)

    if warn_untracked:
        log_untracked(candidates[0].chart_name, newer_untracked(tracked, candidates))

    selected: list[UpstreamVersion] = []
    for line in tracked:
        key = parse_line(line)
        line_upstream = [u for u in candidates if release_line(u.semver) == key]
        line_stored = [s for s in stored if s.semver is not None and release_line(s.semver) == key]
        if not line_upstream:
            logger.debug("No upstream versions on tracked line %s", line)
            continue
        selected.extend(_select(line_upstream, line_stored, policy, package_version))
    return selected


def newer_untracked(tracked: list[str], upstream: list[UpstreamVersion]) -> list[str]:
    """List upstream versions on release lines newer than every tracked line.

    ``upstream`` must be sorted newest first. Advisory only: adding a line is a
    configuration decision, so these versions are never fetched automatically.
    """
    if not tracked:
        return []
    greatest = max(parse_line(t) for t in tracked)
    newer: list[str] = []
    for u in upstream:
        v = u.semver
        if v is None:
            continue
        line = release_line(v)
        if line == greatest:
            break
        if line > greatest:
            newer.append(u.version)
    return newer


def log_untracked(chart_name: str, untracked: list[str]) -> None:
    if untracked:
        logger.warning("%s: newer untracked version(s) available: %s", chart_name, ", ".join(untracked))


def _select(
    upstream: list[UpstreamVersion],
    stored: list[StoredVersion],
    policy: FetchPolicy,
    package_version: int | None = None,
) -> list[UpstreamVersion]:
    stored_versions = [s.semver for s in stored if s.semver is not None]
    decoded = [decode_package_version(s) for s in stored_versions]

    def is_stored(v: Version) -> bool:
        if any(v == s or v == d for s, d in zip(stored_versions, decoded)):
            return True
        encoded = _encoded(v, package_version)
        return encoded is not None and encoded in stored_versions

    selected: list[UpstreamVersion] = []

    if policy == FetchPolicy.DEFAULT:
        if is_stored(upstream[0].semver):
            return selected
        for u in upstream:
            if not is_stored(u.semver):
                selected.append(u)
                break
        return selected

    newest_stored = max(decoded) if decoded else None
    for u in upstream:
        if is_stored(u.semver):
            continue
        if policy == FetchPolicy.NEWER and newest_stored is not None and u.semver <= newest_stored:
            continue
        selected.append(u)
    return selected


def _encoded(v: Version, package_version: int | None) -> Version | None:
    # x.y.0 with package version 7 is stored as x.y.7, which decoding cannot recover
    if package_version is None:
        return None
    try:
        return Version.parse(encode_package_version(v, package_version))
    except PackageVersionRangeError:
        return None
