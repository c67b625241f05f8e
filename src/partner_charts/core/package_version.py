"""Encode an operator revision counter into a chart's patch version.

A chart re-published from upstream ``1.4.2`` with package version 7 becomes
``1.4.207``. The multiplier is part of the published index format: changing
it would reorder every chart already released.
"""

from __future__ import annotations

from semver import Version

from partner_charts.errors import PackageVersionRangeError
from partner_charts.utils.version_compare import parse_version

PATCH_MULTIPLIER = 100
MAX_PACKAGE_VERSION = PATCH_MULTIPLIER - 1


def _require_version(v: str | Version) -> Version:
    parsed = parse_version(v)
    if parsed is None:
        raise ValueError(f"'{v}' is not a valid semantic version")
    return parsed


def encode_package_version(
    upstream_version: str | Version,
    package_version: int | None,
    pinned_version: str = "",
) -> str:
    """Return the chart version to publish for an upstream version.

    A non-empty ``pinned_version`` is returned verbatim. Without a package
    version the upstream version is returned unchanged.
    """
    if pinned_version:
        return pinned_version

    version = _require_version(upstream_version)
    if package_version is None:
        return str(version)

    if package_version < 0 or package_version > MAX_PACKAGE_VERSION:
        raise PackageVersionRangeError(
            f"package version {package_version} is outside the range 0-{MAX_PACKAGE_VERSION}"
        )

    return str(version.replace(patch=version.patch * PATCH_MULTIPLIER + package_version))


def decode_package_version(stored_version: str | Version) -> Version:
    """Strip an encoded package version, leaving the upstream patch number.

    Only meaningful for equivalence checks against upstream versions; the
    package version itself is discarded.
    """
    version = _require_version(stored_version)
    if version.patch >= PATCH_MULTIPLIER:
        return version.replace(patch=version.patch // PATCH_MULTIPLIER)
    return version
