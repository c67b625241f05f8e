"""Resolve upstream chart versions from Helm repositories, ArtifactHub and Git."""

from __future__ import annotations

import logging
import re
import shutil
import tempfile
from pathlib import Path
from typing import Any

import git
import requests
import yaml

from partner_charts.config.settings import settings
from partner_charts.core.chart_loader import load_chart_dir
from partner_charts.errors import PackagingError, SourceError
from partner_charts.models import SourceType
from partner_charts.models.chart import Chart
from partner_charts.models.upstream import SourceMetadata, UpstreamVersion, UpstreamYaml
from partner_charts.utils.version_compare import sort_descending

logger = logging.getLogger(__name__)

# Prefer the C-accelerated YAML loader when available (~10x faster).
_YamlLoader = getattr(yaml, "CSafeLoader", yaml.SafeLoader)

_HTTP_URL = re.compile(r"^https?://")

# Index entry keys that describe the archive rather than the chart itself
_ARCHIVE_KEYS = ("urls", "created", "digest", "removed")


def fetch_upstream(upstream: UpstreamYaml) -> SourceMetadata:
    """Return every version the configured upstream offers, newest first."""
    source = upstream.source_type
    if source == SourceType.ARTIFACT_HUB:
        meta = fetch_artifacthub(upstream.ah_repo_name, upstream.ah_package_name)
    elif source == SourceType.HELM_REPO:
        meta = fetch_helm_repo(upstream.helm_repo_url, upstream.helm_chart)
    else:
        meta = fetch_git(
            upstream.git_repo_url,
            branch=upstream.git_branch,
            subdirectory=upstream.git_subdirectory,
            github_release=upstream.github_release,
        )

    if upstream.chart_metadata.name:
        meta.versions = [
            UpstreamVersion(
                chart_name=upstream.chart_metadata.name,
                version=v.version,
                urls=v.urls,
                metadata=v.metadata,
            )
            for v in meta.versions
        ]
    return meta


def _http_get(url: str, headers: dict[str, str] | None = None) -> requests.Response:
    try:
        resp = requests.get(url, timeout=settings.http_timeout, headers=headers or settings.http_headers)
        resp.raise_for_status()
    except requests.RequestException as e:
        raise SourceError(f"Request to {url} failed: {e}") from e
    return resp


def fetch_helm_repo(repo_url: str, chart_name: str) -> SourceMetadata:
    """Read a Helm repository index and return the versions of one chart."""
    repo_url = repo_url.rstrip("/")
    index_url = f"{repo_url}/index.yaml"
    if not _HTTP_URL.match(index_url):
        raise SourceError(f"Invalid Helm repository URL: {index_url}")

    resp = _http_get(index_url)
    try:
        data = yaml.load(resp.text, Loader=_YamlLoader)
    except yaml.YAMLError as e:
        raise SourceError(f"Cannot parse {index_url}: {e}") from e

    entries = (data or {}).get("entries") if isinstance(data, dict) else None
    if not entries or chart_name not in entries:
        raise SourceError(f"Helm chart: {repo_url}/{chart_name} not found")

    versions = _versions_from_entries(repo_url, chart_name, entries[chart_name] or [])
    return SourceMetadata(source=SourceType.HELM_REPO, versions=versions)


def _versions_from_entries(repo_url: str, chart_name: str, entries: list[dict[str, Any]]) -> list[UpstreamVersion]:
    by_version: dict[str, UpstreamVersion] = {}
    for entry in entries:
        version = str(entry.get("version", "") or "")
        urls = [str(u) for u in entry.get("urls") or []]
        if not version or not urls:
            continue
        # Relative chart URLs are relative to the repository
        urls = [u if u.startswith("http") else f"{repo_url}/{u.lstrip('/')}" for u in urls]
        if version in by_version:
            continue
        by_version[version] = UpstreamVersion(
            chart_name=chart_name,
            version=version,
            urls=tuple(urls),
            metadata={k: v for k, v in entry.items() if k not in _ARCHIVE_KEYS},
        )
    return [by_version[v] for v in sort_descending(list(by_version))]


def fetch_artifacthub(repo_name: str, package_name: str) -> SourceMetadata:
    """Look up an ArtifactHub package and read its backing Helm repository."""
    url = f"{settings.artifacthub_api}/{repo_name}/{package_name}"
    resp = _http_get(url)
    try:
        data = resp.json()
    except ValueError as e:
        raise SourceError(f"ArtifactHub returned invalid JSON for {repo_name}/{package_name}") from e

    if not data.get("content_url"):
        raise SourceError(f"ArtifactHub package: {repo_name}/{package_name} not found")

    repository = data.get("repository") or {}
    repo_url = repository.get("url", "")
    chart_name = data.get("name", "") or package_name
    if not repo_url:
        raise SourceError(f"ArtifactHub package: {repo_name}/{package_name} has no repository URL")

    logger.debug(
        "ArtifactHub %s/%s resolved to %s (%s)",
        repo_name,
        package_name,
        repo_url,
        repository.get("organization_display_name", ""),
    )
    meta = fetch_helm_repo(repo_url, chart_name)
    meta.source = SourceType.ARTIFACT_HUB
    return meta


def github_owner_repo(repo_url: str) -> tuple[str, str]:
    if not repo_url.startswith("https://github.com/"):
        raise SourceError(f"{repo_url} is not a GitHub URL")
    path = repo_url[len("https://github.com/"):].strip("/")
    if path.endswith(".git"):
        path = path[:-4]
    parts = path.split("/")
    if len(parts) < 2 or not parts[0] or not parts[1]:
        raise SourceError(f"Cannot determine owner and repository from {repo_url}")
    return parts[0], parts[1]


def latest_github_release_tag(repo_url: str) -> str:
    owner, repo = github_owner_repo(repo_url)
    url = f"{settings.github_api}/repos/{owner}/{repo}/releases/latest"
    try:
        data = _http_get(url, headers=settings.github_headers).json()
    except ValueError as e:
        raise SourceError(f"GitHub returned invalid JSON for {owner}/{repo}") from e
    tag = data.get("tag_name", "")
    if not tag:
        raise SourceError(f"No GitHub release found for {owner}/{repo}")
    logger.debug("Latest GitHub release of %s/%s: %s (%s)", owner, repo, data.get("name", ""), tag)
    return tag


def _clone(url: str, branch: str = "", shallow: bool = True) -> tuple[Path, git.Repo]:
    temp_dir = Path(tempfile.mkdtemp(prefix="partner-charts-git-"))
    kwargs: dict[str, Any] = {}
    if shallow:
        kwargs["depth"] = 1
    if branch:
        kwargs["branch"] = branch
    try:
        repo = git.Repo.clone_from(url, temp_dir, **kwargs)
    except git.GitCommandError as e:
        shutil.rmtree(temp_dir, ignore_errors=True)
        raise SourceError(f"Unable to clone {url}: {e}") from e
    return temp_dir, repo


def _chart_path(clone_path: Path, subdirectory: str) -> Path:
    if not subdirectory:
        return clone_path
    chart_path = clone_path / subdirectory
    if not chart_path.is_dir():
        raise SourceError(f"git subdirectory '{subdirectory}' does not exist")
    return chart_path


def fetch_git(
    repo_url: str,
    branch: str = "",
    subdirectory: str = "",
    github_release: bool = False,
) -> SourceMetadata:
    """Clone a repository and describe the single chart version at its head.

    With ``github_release`` the commit of the latest GitHub release tag is used
    instead of the branch head.
    """
    clone_path, repo = _clone(repo_url, branch=branch, shallow=not github_release)
    try:
        if github_release:
            tag = latest_github_release_tag(repo_url)
            try:
                commit = repo.commit(tag).hexsha
                repo.git.checkout(commit)
            except (git.GitCommandError, ValueError) as e:
                raise SourceError(f"Commit not found for GitHub release {tag}") from e
        else:
            commit = repo.head.commit.hexsha

        chart_path = _chart_path(clone_path, subdirectory)
        logger.debug("Git checkout %s at %s", chart_path, commit)
        try:
            chart = load_chart_dir(chart_path)
        except PackagingError as e:
            raise SourceError(str(e)) from e
    finally:
        repo.close()
        shutil.rmtree(clone_path, ignore_errors=True)

    version = UpstreamVersion(
        chart_name=chart.name,
        version=chart.version,
        urls=(repo_url,),
        metadata=chart.metadata.to_dict(),
    )
    return SourceMetadata(
        source=SourceType.GIT,
        versions=[version],
        commit=commit,
        subdirectory=subdirectory,
    )


def load_chart_from_git(repo_url: str, subdirectory: str, commit: str) -> Chart:
    """Clone a repository, check out ``commit`` and load the chart it holds."""
    clone_path, repo = _clone(repo_url, shallow=False)
    try:
        if commit:
            try:
                repo.git.checkout(commit)
            except git.GitCommandError as e:
                raise SourceError(f"Unable to check out {commit} in {repo_url}: {e}") from e
        return load_chart_dir(_chart_path(clone_path, subdirectory))
    finally:
        repo.close()
        shutil.rmtree(clone_path, ignore_errors=True)
