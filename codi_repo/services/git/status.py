"""Working copy status: cleanliness and ahead/behind upstream."""

import logging
from pathlib import Path

from codi_repo.models import RepoInfo, RepoStatus
from codi_repo.services.git._run import GitRunnerError, _run_git
from codi_repo.services.git.branches import get_current_branch


def _count_changes(porcelain: str) -> tuple[int, int, int]:
    """(staged, modified, untracked) from `git status --porcelain` output."""
    staged = modified = untracked = 0
    for line in porcelain.splitlines():
        if len(line) < 2:
            continue
        index, worktree = line[0], line[1]
        if index == "?" and worktree == "?":
            untracked += 1
            continue
        if index not in (" ", "?"):
            staged += 1
        if worktree not in (" ", "?"):
            modified += 1
    return staged, modified, untracked


def _ahead_behind(repo_dir: Path) -> tuple[int, int]:
    """Counts against the upstream; (0, 0) when there is no upstream."""
    try:
        out = _run_git(["rev-list", "--left-right", "--count", "HEAD...@{upstream}"], cwd=repo_dir)
    except GitRunnerError:
        return 0, 0
    parts = out.split()
    if len(parts) != 2:
        return 0, 0
    return int(parts[0]), int(parts[1])


def get_repo_status(repo: RepoInfo, log: logging.Logger | None = None) -> RepoStatus:
    """Status of one manifest repository; exists=False when not cloned."""
    repo_dir = Path(repo.local_path)
    if not repo_dir.exists():
        return RepoStatus(name=repo.name, exists=False)
    try:
        branch = get_current_branch(repo_dir, log=log)
        porcelain = _run_git(["status", "--porcelain"], cwd=repo_dir, log=log)
    except GitRunnerError as e:
        return RepoStatus(name=repo.name, exists=True, error=str(e))
    staged, modified, untracked = _count_changes(porcelain)
    ahead, behind = _ahead_behind(repo_dir)
    return RepoStatus(
        name=repo.name,
        exists=True,
        branch=branch,
        clean=staged == modified == untracked == 0,
        staged=staged,
        modified=modified,
        untracked=untracked,
        ahead=ahead,
        behind=behind,
    )
