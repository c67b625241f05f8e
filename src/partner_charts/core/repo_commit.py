"""Commit the result of a reconciliation run to the repository checkout."""

from __future__ import annotations

import logging

import git

from partner_charts.config.settings import settings
from partner_charts.errors import RepositoryCommitError
from partner_charts.models.repo import ASSETS_DIR, CHARTS_DIR, INDEX_FILE, PACKAGES_DIR, RepoLayout
from partner_charts.models.report import RunReport

logger = logging.getLogger(__name__)


def commit_message(report: RunReport) -> str:
    lines = [f"Update {len(report.published)} partner chart(s)", ""]
    for result in report.published:
        lines.append(f"- {result.name}: {', '.join(result.versions)}")
    return "\n".join(lines) + "\n"


def commit_changes(layout: RepoLayout, report: RunReport) -> str | None:
    """Stage generated files and commit them. Returns the commit sha, or None."""
    if not report.published and not report.index_updated:
        logger.info("Nothing to commit")
        return None

    try:
        repo = git.Repo(layout.root)
    except (git.InvalidGitRepositoryError, git.NoSuchPathError) as e:
        raise RepositoryCommitError(f"{layout.root} is not a git repository") from e

    try:
        paths = [p for p in (ASSETS_DIR, CHARTS_DIR, PACKAGES_DIR, INDEX_FILE) if (layout.root / p).exists()]
        repo.git.add("--all", "--", *paths)
        if not repo.is_dirty(index=True, working_tree=False, untracked_files=False):
            logger.info("Nothing to commit")
            return None
        actor = git.Actor(settings.commit_author, settings.commit_email)
        commit = repo.index.commit(commit_message(report), author=actor, committer=actor)
    except git.GitCommandError as e:
        raise RepositoryCommitError(f"Cannot commit changes: {e}") from e
    finally:
        repo.close()

    logger.info("Committed %s", commit.hexsha[:12])
    return commit.hexsha
