"""Data models for partner chart synchronization."""

from __future__ import annotations

import enum

from partner_charts.errors import ConfigurationError


class SourceType(enum.Enum):
    HELM_REPO = "HelmRepo"
    ARTIFACT_HUB = "ArtifactHub"
    GIT = "Git"


class FetchPolicy(enum.Enum):
    DEFAULT = "latest"
    NEWER = "newer"
    ALL = "all"

    @classmethod
    def from_str(cls, s: str | None) -> FetchPolicy:
        if not s:
            return cls.DEFAULT
        value = str(s).strip().lower()
        if value == "default":
            return cls.DEFAULT
        for member in cls:
            if member.value == value:
                return member
        raise ConfigurationError(f"Unknown fetch policy '{s}' (expected latest, newer or all)")


class ChartStatus(enum.Enum):
    UPDATED = "updated"
    PENDING = "pending"
    UP_TO_DATE = "up-to-date"
    SKIPPED = "skipped"
