"""Repository-wide commands: init, status, sync, checkout."""

import logging
from pathlib import Path

from pydantic import BaseModel

from codi_repo.commands.workspace import CommandError, Workspace
from codi_repo.manifest import MANIFEST_FILENAME, create_manifest, generate_sample_manifest
from codi_repo.models import RepoStatus
from codi_repo.services.branch_sync import check_branch_exists, cloned_repos
from codi_repo.services.git import (
    GitRunnerError,
    checkout_branch,
    classify_git_error,
    clone_repo,
    create_branch,
    fetch_remote,
    get_current_branch,
    get_repo_status,
    pull_latest,
)
from codi_repo.services.store import STATE_DIR
from codi_repo.utils import fan_out

LOG = logging.getLogger("codi_repo.commands.repos")

GITIGNORE_ENTRY = f"{STATE_DIR}/"


class RepoResult(BaseModel):
    """Outcome of a per-repository action."""

    name: str
    success: bool
    branch: str = ""
    error: str | None = None


def ensure_state_dir(root_dir: Path) -> None:
    """Create .codi-repo/ and keep it out of git via .gitignore."""
    root_dir = Path(root_dir)
    (root_dir / STATE_DIR).mkdir(parents=True, exist_ok=True)
    gitignore = root_dir / ".gitignore"
    if gitignore.is_file():
        content = gitignore.read_text(encoding="utf-8")
        if STATE_DIR in content:
            return
        prefix = "" if content.endswith("\n") or not content else "\n"
        gitignore.write_text(f"{content}{prefix}\n# codi-repo state\n{GITIGNORE_ENTRY}\n", encoding="utf-8")
        LOG.info("Added %s to .gitignore", GITIGNORE_ENTRY)
    else:
        gitignore.write_text(f"# codi-repo state\n{GITIGNORE_ENTRY}\n", encoding="utf-8")
        LOG.info("Created .gitignore with %s", GITIGNORE_ENTRY)


def init_workspace(root_dir: Path, ws: Workspace | None, clone: bool = False, force: bool = False) -> list[RepoResult]:
    """Write a sample manifest, or clone the repos of an existing one.

    ws is None when no manifest exists yet under root_dir.
    """
    root_dir = Path(root_dir)
    if ws is None or force:
        create_manifest(root_dir, generate_sample_manifest())
        LOG.info("Created sample manifest at %s; edit it, then run 'codi-repo init --clone'", MANIFEST_FILENAME)
        return []

    results: list[RepoResult] = []
    if clone:
        for repo in ws.repos:
            if Path(repo.local_path).exists():
                LOG.info("%s: already exists at %s", repo.name, repo.path)
                continue
            try:
                clone_repo(repo.url, repo.local_path, branch=repo.default_branch, log=LOG)
                results.append(RepoResult(name=repo.name, success=True, branch=repo.default_branch))
            except GitRunnerError as e:
                LOG.error("Failed to clone %s: %s", repo.name, e)
                results.append(RepoResult(name=repo.name, success=False, error=str(e)))
    ensure_state_dir(ws.root_dir)
    return results


def repo_status(ws: Workspace) -> list[RepoStatus]:
    """Status of every manifest repo, gathered concurrently."""
    results = fan_out(get_repo_status, ws.repos, max_workers=ws.max_workers)
    return [
        RepoStatus(name=repo.name, exists=True, error=str(r)) if isinstance(r, BaseException) else r
        for repo, r in zip(ws.repos, results)
    ]


def sync_repos(ws: Workspace, fetch: bool = False) -> list[RepoResult]:
    """Pull (or fetch) every cloned repo; local problems skip that repo only."""
    results: list[RepoResult] = []
    for repo in ws.repos:
        if not Path(repo.local_path).exists():
            LOG.warning("%s: not cloned (run 'codi-repo init --clone')", repo.name)
            results.append(RepoResult(name=repo.name, success=False, error="not cloned"))
            continue
        try:
            branch = get_current_branch(repo.local_path)
            if fetch:
                fetch_remote(repo.local_path, remote=ws.remote, log=LOG)
            else:
                pull_latest(repo.local_path, remote=ws.remote, log=LOG)
        except GitRunnerError as e:
            reason = classify_git_error(str(e))
            LOG.warning("%s: %s, skipping", repo.name, reason)
            results.append(RepoResult(name=repo.name, success=False, error=reason))
            continue
        results.append(RepoResult(name=repo.name, success=True, branch=branch))
    return results


def checkout_all(ws: Workspace, branch: str, create: bool = False) -> list[RepoResult]:
    """Switch every cloned repo to branch.

    Raises:
        CommandError: If nothing is cloned, or branch is missing somewhere
            (without create).
    """
    cloned = cloned_repos(ws.repos)
    if not cloned:
        raise CommandError("No repositories are cloned. Run `codi-repo init --clone` first.")
    if not create:
        in_sync, missing = check_branch_exists(cloned, branch, max_workers=ws.max_workers)
        if not in_sync:
            raise CommandError(
                f"Branch '{branch}' doesn't exist in {len(missing)} repos: {', '.join(missing)}"
            )

    results: list[RepoResult] = []
    for repo in cloned:
        try:
            if create:
                create_branch(branch, repo.local_path, log=LOG)
            else:
                checkout_branch(branch, repo.local_path, log=LOG)
        except GitRunnerError as e:
            results.append(RepoResult(name=repo.name, success=False, error=classify_git_error(str(e))))
            continue
        results.append(RepoResult(name=repo.name, success=True, branch=branch))
    return results
