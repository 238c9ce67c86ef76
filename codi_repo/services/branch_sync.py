"""Branch consistency across the cloned manifest repositories.

Multi-repo commands act on one branch name. When the cloned repositories
disagree about the current branch the command stops and lists them; it
never guesses which branch was meant.
"""

import logging
from pathlib import Path
from typing import List

from codi_repo.models import RepoBranchStatus, RepoInfo
from codi_repo.services.git import (
    GitRunnerError,
    branch_exists,
    get_current_branch,
    has_commits_ahead,
    remote_branch_exists,
)
from codi_repo.utils import fan_out

LOG = logging.getLogger("codi_repo.services.branch_sync")


class BranchSyncError(Exception):
    """Raised when repositories are not in a state multi-repo commands accept."""

    pass


class BranchMismatchError(BranchSyncError):
    """Cloned repositories are on different branches."""

    def __init__(self, statuses: List[RepoBranchStatus]) -> None:
        self.statuses = statuses
        lines = [f"  {s.repo.name}: {s.current_branch}" for s in statuses]
        super().__init__("Repositories are on different branches:\n" + "\n".join(lines))


class OnDefaultBranchError(BranchSyncError):
    """The shared branch is a default branch, not a feature branch."""

    def __init__(self, branch: str) -> None:
        self.branch = branch
        super().__init__(f"You're on the default branch ({branch}). Create a feature branch first.")


def cloned_repos(repos: List[RepoInfo]) -> List[RepoInfo]:
    """Repos whose working copy exists on disk."""
    return [r for r in repos if Path(r.local_path).exists()]


def _branch_status(repo: RepoInfo, branch: str | None, remote: str) -> RepoBranchStatus:
    try:
        current = get_current_branch(repo.local_path)
        target = branch or current
        ahead = has_commits_ahead(repo.default_branch, repo.local_path)
        needs_push = ahead and not remote_branch_exists(target, repo.local_path, remote=remote)
    except GitRunnerError as e:
        return RepoBranchStatus(repo=repo, error=str(e))
    return RepoBranchStatus(
        repo=repo,
        current_branch=current,
        has_commits_ahead=ahead,
        needs_push=needs_push,
    )


def collect_branch_status(
    repos: List[RepoInfo],
    branch: str | None = None,
    remote: str = "origin",
    max_workers: int = 8,
) -> List[RepoBranchStatus]:
    """Current branch, commits ahead of default and push need, per repo.

    Queries run concurrently. A git failure in one repo is recorded in that
    repo's status and does not stop the others. needs_push is checked for
    branch, or for each repo's current branch when branch is None.
    """
    results = fan_out(lambda r: _branch_status(r, branch, remote), repos, max_workers=max_workers)
    statuses: List[RepoBranchStatus] = []
    for repo, result in zip(repos, results):
        if isinstance(result, BaseException):
            statuses.append(RepoBranchStatus(repo=repo, error=str(result)))
        else:
            statuses.append(result)
    for s in statuses:
        if s.error:
            LOG.warning("%s: %s", s.repo.name, s.error)
    return statuses


def ensure_single_branch(statuses: List[RepoBranchStatus]) -> str:
    """The one branch all repos are on.

    Considers every status given, including repos with nothing ahead of
    their default branch. Repos whose git queries failed are ignored.

    Raises:
        BranchMismatchError: If more than one branch name is reported.
        BranchSyncError: If no repo reported a branch.
    """
    usable = [s for s in statuses if s.error is None]
    branches = list(dict.fromkeys(s.current_branch for s in usable))
    if len(branches) > 1:
        raise BranchMismatchError(usable)
    if not branches:
        raise BranchSyncError("No repository reported a current branch")
    return branches[0]


def ensure_feature_branch(statuses: List[RepoBranchStatus], branch: str) -> None:
    """Raise OnDefaultBranchError if branch is any repo's default branch."""
    if any(s.repo.default_branch == branch for s in statuses if s.error is None):
        raise OnDefaultBranchError(branch)


def feature_branch_repos(statuses: List[RepoBranchStatus]) -> List[RepoBranchStatus]:
    """Repos on a non-default branch with commits ahead of their default."""
    return [s for s in statuses if s.error is None and not s.on_default_branch and s.has_commits_ahead]


def check_branch_exists(
    repos: List[RepoInfo],
    branch: str,
    max_workers: int = 8,
) -> tuple[bool, List[str]]:
    """(in_sync, missing repo names) for a local branch across repos."""
    results = fan_out(lambda r: branch_exists(branch, r.local_path), repos, max_workers=max_workers)
    missing = [r.name for r, exists in zip(repos, results) if exists is not True]
    return not missing, missing
