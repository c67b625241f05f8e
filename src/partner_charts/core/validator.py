"""Compare published chart assets between two repository checkouts."""

from __future__ import annotations

import logging
import shutil
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import git
import yaml
from deepdiff import DeepDiff

from partner_charts.core.annotations import strip_catalog_annotations
from partner_charts.core.chart_loader import file_digest, load_chart_file
from partner_charts.errors import ConfigurationError, PackagingError, SourceError
from partner_charts.models.repo import ASSETS_DIR

logger = logging.getLogger(__name__)

CONFIGURATION_FILE = "configuration.yaml"


@dataclass
class DirectoryComparison:
    unchanged: list[str] = field(default_factory=list)
    modified: list[str] = field(default_factory=list)
    added: list[str] = field(default_factory=list)
    removed: list[str] = field(default_factory=list)

    @property
    def match(self) -> bool:
        return not (self.modified or self.added or self.removed)

    def merge(self, other: DirectoryComparison) -> None:
        self.unchanged.extend(other.unchanged)
        self.modified.extend(other.modified)
        self.added.extend(other.added)
        self.removed.extend(other.removed)

    def to_dict(self) -> dict[str, Any]:
        return {
            "match": self.match,
            "unchanged": self.unchanged,
            "modified": self.modified,
            "added": self.added,
            "removed": self.removed,
        }


@dataclass
class ValidateTarget:
    """A published repository to compare against, from configuration.yaml."""

    url: str
    branch: str = ""

    @classmethod
    def from_dict(cls, d: dict) -> ValidateTarget:
        url = str(d.get("url") or d.get("Url") or "")
        if not url:
            raise ConfigurationError("validate target has no url")
        return cls(url=url, branch=str(d.get("branch") or d.get("Branch") or ""))


def load_validate_targets(root: Path) -> list[ValidateTarget]:
    """Read the ``validate`` list from ``configuration.yaml``, if any."""
    path = root / CONFIGURATION_FILE
    if not path.exists():
        return []
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except (OSError, yaml.YAMLError) as e:
        raise ConfigurationError(f"Cannot read {path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigurationError(f"{path} must contain a mapping")
    items = data.get("validate") or data.get("Validate") or []
    return [ValidateTarget.from_dict(item) for item in items if isinstance(item, dict)]


def clone_target(target: ValidateTarget, dest: Path) -> Path:
    kwargs: dict[str, Any] = {"depth": 1, "single_branch": True}
    if target.branch:
        kwargs["branch"] = target.branch
    try:
        git.Repo.clone_from(target.url, dest, **kwargs).close()
    except git.GitCommandError as e:
        raise SourceError(f"Unable to clone {target.url}: {e}") from e
    return dest


def charts_match(left: Path, right: Path) -> bool:
    """Compare two chart archives, ignoring catalog annotations."""
    try:
        left_chart = load_chart_file(left)
        right_chart = load_chart_file(right)
    except PackagingError:
        logger.debug("Cannot compare %s and %s as charts", left, right, exc_info=True)
        return False

    diff = DeepDiff(
        {
            "metadata": strip_catalog_annotations(left_chart.metadata).to_dict(),
            "files": left_chart.files,
        },
        {
            "metadata": strip_catalog_annotations(right_chart.metadata).to_dict(),
            "files": right_chart.files,
        },
    )
    if diff:
        logger.debug("%s differs: %s", right.name, diff.pretty())
    return not diff


def _files(root: Path) -> set[str]:
    return {p.relative_to(root).as_posix() for p in root.rglob("*") if p.is_file()}


def compare_directories(left: Path, right: Path) -> DirectoryComparison:
    """Compare two directory trees file by file.

    Files present only on the left are ``removed``; only on the right,
    ``added``. Chart archives with different bytes still count as unchanged
    when their content matches.
    """
    for path in (left, right):
        if not path.is_dir():
            raise ConfigurationError(f"{path} is not a directory")

    logger.debug("Comparing %s and %s", left, right)
    comparison = DirectoryComparison()
    left_files = _files(left)
    right_files = _files(right)

    for rel in sorted(left_files):
        if rel not in right_files:
            comparison.removed.append(rel)
            continue
        if file_digest(left / rel) == file_digest(right / rel):
            comparison.unchanged.append(rel)
        elif rel.endswith(".tgz") and charts_match(left / rel, right / rel):
            comparison.unchanged.append(rel)
        else:
            comparison.modified.append(rel)

    comparison.added.extend(sorted(right_files - left_files))
    return comparison


def compare_repositories(left_root: Path, right_root: Path) -> DirectoryComparison:
    """Compare the ``assets/`` trees of two repository checkouts."""
    return compare_directories(left_root / ASSETS_DIR, right_root / ASSETS_DIR)


def validate_against_targets(root: Path, targets: list[ValidateTarget]) -> DirectoryComparison:
    """Clone every target and compare its assets with the local ones."""
    comparison = DirectoryComparison()
    for target in targets:
        temp_dir = Path(tempfile.mkdtemp(prefix="partner-charts-validate-"))
        try:
            clone_target(target, temp_dir / "repo")
            comparison.merge(compare_repositories(temp_dir / "repo", root))
        finally:
            shutil.rmtree(temp_dir, ignore_errors=True)
    return comparison
