"""Clone, fetch, pull from and push to a remote."""

import logging
from pathlib import Path

from codi_repo.services.git._run import _run_git


def clone_repo(
    url: str,
    dest: Path,
    branch: str | None = None,
    log: logging.Logger | None = None,
) -> None:
    """Clone url into dest, checking out branch when given."""
    dest = Path(dest)
    args = ["clone"]
    if branch:
        args += ["--branch", branch]
    args += [url, str(dest)]
    _run_git(args, cwd=dest.parent, log=log)
    if log:
        log.info("Cloned %s to %s", url, dest)


def fetch_remote(repo_dir: Path, remote: str = "origin", log: logging.Logger | None = None) -> None:
    _run_git(["fetch", remote], cwd=Path(repo_dir), log=log)


def pull_latest(repo_dir: Path, remote: str = "origin", log: logging.Logger | None = None) -> None:
    """Fast-forward the current branch from remote; refuses to merge."""
    _run_git(["pull", "--ff-only", remote], cwd=Path(repo_dir), log=log)
    if log:
        log.info("Pulled %s in %s", remote, repo_dir)


def push_branch(
    branch_name: str,
    repo_dir: Path | None = None,
    remote: str = "origin",
    set_upstream: bool = False,
    log: logging.Logger | None = None,
) -> None:
    """Push the given branch to remote, optionally setting upstream."""
    cwd = Path(repo_dir) if repo_dir is not None else Path.cwd()
    args = ["push"]
    if set_upstream:
        args.append("--set-upstream")
    args += [remote, branch_name]
    _run_git(args, cwd=cwd, log=log)
    if log:
        log.info("Pushed branch %s to %s", branch_name, remote)
