"""Application configuration and defaults."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path


def _default_repo_root() -> Path:
    """Return the repository root used when the CLI is given none.

    Only the CLI consults this; library code always receives the root
    explicitly through a RepoLayout.
    """
    root = os.environ.get("PARTNER_CHARTS_ROOT", "")
    if root:
        return Path(root)
    return Path(".")


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name, "")
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


@dataclass
class Settings:
    default_repo_root: Path = field(default_factory=_default_repo_root)
    artifacthub_api: str = field(
        default_factory=lambda: os.environ.get(
            "PARTNER_CHARTS_ARTIFACTHUB_API", "https://artifacthub.io/api/v1/packages/helm"
        )
    )
    github_api: str = field(default_factory=lambda: os.environ.get("GITHUB_API_URL", "https://api.github.com"))
    github_token: str = field(default_factory=lambda: os.environ.get("GITHUB_TOKEN", ""))
    http_timeout: float = field(default_factory=lambda: _env_float("PARTNER_CHARTS_HTTP_TIMEOUT", 30.0))
    certified_value: str = "partner"
    commit_author: str = field(
        default_factory=lambda: os.environ.get("PARTNER_CHARTS_COMMIT_AUTHOR", "partner-charts-sync")
    )
    commit_email: str = field(
        default_factory=lambda: os.environ.get("PARTNER_CHARTS_COMMIT_EMAIL", "partner-charts-sync@localhost")
    )

    @property
    def http_headers(self) -> dict[str, str]:
        return {"User-Agent": "partner-charts-sync"}

    @property
    def github_headers(self) -> dict[str, str]:
        headers = {"Accept": "application/vnd.github+json", **self.http_headers}
        if self.github_token:
            headers["Authorization"] = f"token {self.github_token}"
        return headers


# Global singleton
settings = Settings()
