"""Local and remote-tracking branch queries and branch switching."""

import logging
from pathlib import Path

from codi_repo.services.git._run import GitRunnerError, _run_git


def get_current_branch(repo_dir: Path, log: logging.Logger | None = None) -> str:
    """Name of the checked out branch; "HEAD" when detached."""
    return _run_git(["rev-parse", "--abbrev-ref", "HEAD"], cwd=Path(repo_dir), log=log)


def branch_exists(branch_name: str, repo_dir: Path) -> bool:
    """True if refs/heads/<branch_name> exists locally."""
    try:
        _run_git(["rev-parse", "--verify", "--quiet", f"refs/heads/{branch_name}"], cwd=Path(repo_dir))
    except GitRunnerError:
        return False
    return True


def remote_branch_exists(branch_name: str, repo_dir: Path, remote: str = "origin") -> bool:
    """True if the remote-tracking ref <remote>/<branch_name> exists."""
    try:
        _run_git(
            ["rev-parse", "--verify", "--quiet", f"refs/remotes/{remote}/{branch_name}"],
            cwd=Path(repo_dir),
        )
    except GitRunnerError:
        return False
    return True


def count_commits_ahead(base_branch: str, repo_dir: Path, log: logging.Logger | None = None) -> int:
    """Commits on HEAD that are not on base_branch."""
    out = _run_git(["rev-list", "--count", f"{base_branch}..HEAD"], cwd=Path(repo_dir), log=log)
    try:
        return int(out or "0")
    except ValueError as e:
        raise GitRunnerError(f"git rev-list --count: unexpected output {out!r}") from e


def has_commits_ahead(base_branch: str, repo_dir: Path, log: logging.Logger | None = None) -> bool:
    return count_commits_ahead(base_branch, repo_dir, log=log) > 0


def checkout_branch(
    branch_name: str,
    repo_dir: Path | None = None,
    log: logging.Logger | None = None,
) -> None:
    """Checkout the given branch (must exist locally or on remote)."""
    cwd = Path(repo_dir) if repo_dir is not None else Path.cwd()
    try:
        _run_git(["checkout", branch_name], cwd=cwd, log=log)
    except GitRunnerError:
        _run_git(["fetch", "origin", branch_name], cwd=cwd, log=log)
        _run_git(["checkout", branch_name], cwd=cwd, log=log)
    if log:
        log.info("Checked out branch %s", branch_name)


def create_branch(
    branch_name: str,
    repo_dir: Path | None = None,
    log: logging.Logger | None = None,
) -> None:
    """Create branch_name from HEAD and switch to it."""
    cwd = Path(repo_dir) if repo_dir is not None else Path.cwd()
    _run_git(["checkout", "-b", branch_name], cwd=cwd, log=log)
    if log:
        log.info("Created branch %s", branch_name)
