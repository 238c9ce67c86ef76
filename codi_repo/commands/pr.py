"""Cross-repository PR commands: create, status, sync, merge."""

import logging
import re
from pathlib import Path

from pydantic import BaseModel, Field

from codi_repo.adapters import ForgeAdapter, ForgeError
from codi_repo.commands.workspace import CommandError, Workspace
from codi_repo.models import (
    NO_ANCHOR_PR,
    AnchorPR,
    LinkedPR,
    MergeMethod,
    MergeOutcome,
    PRState,
    PullRequest,
    RepoInfo,
)
from codi_repo.services import pr_links
from codi_repo.services.anchor import get_anchor_pr_info, refresh_linked_pr_status, sync_anchor_pr_body
from codi_repo.services.branch_sync import (
    cloned_repos,
    collect_branch_status,
    ensure_feature_branch,
    ensure_single_branch,
    feature_branch_repos,
)
from codi_repo.services.git import (
    GitRunnerError,
    get_current_branch,
    has_commits_ahead,
    push_branch,
    remote_branch_exists,
)
from codi_repo.services.linked_prs import PRCreateOptions, create_linked_prs
from codi_repo.services.merge import merge_all_linked_prs
from codi_repo.services.readiness import evaluate_or_blocked
from codi_repo.services.store import (
    get_anchor_pr_for_branch,
    get_linked_prs_from_state,
    link_branch_to_anchor_pr,
    load_state,
    save_linked_prs,
    save_state,
)
from codi_repo.utils import fan_out

LOG = logging.getLogger("codi_repo.commands.pr")


class CreateResult(BaseModel):
    branch: str
    linked_prs: list[LinkedPR] = Field(default_factory=list)
    anchor: PullRequest | None = None
    skipped: list[str] = Field(default_factory=list)


class StatusResult(BaseModel):
    """Anchor PR when there is one, else the branch's live linked PRs.

    from_cache is set when the anchor PR could not be read and linked_prs
    were taken from state.json and re-checked one by one.
    """

    branch: str
    anchor: AnchorPR | None = None
    anchor_number: int | None = None
    linked_prs: list[LinkedPR] = Field(default_factory=list)
    from_cache: bool = False


def default_title(branch: str) -> str:
    """Human title from a branch name: feature/add-login -> add login."""
    name = re.sub(r"^feature/", "", branch)
    return re.sub(r"[-_]", " ", name)


def _push(ws: Workspace, repo_dir: Path, name: str, branch: str) -> None:
    try:
        push_branch(branch, repo_dir, remote=ws.remote, set_upstream=True, log=LOG)
    except GitRunnerError as e:
        raise CommandError(f"Failed to push {name}: {e}. Fix the error and try again.") from e


def _open_anchor_pr(
    ws: Workspace,
    forge: ForgeAdapter,
    branch: str,
    options: PRCreateOptions,
    push: bool,
) -> PullRequest | None:
    """Find or create the manifest PR for branch.

    None when no manifest repo is configured, it is on another branch, or it
    has nothing to merge.
    """
    manifest = ws.manifest_repo
    if manifest is None:
        return None
    try:
        current = get_current_branch(manifest.local_path)
        if current != branch or not has_commits_ahead(manifest.default_branch, manifest.local_path):
            LOG.info("Manifest repo has no changes on %s; creating PRs without a manifest PR", branch)
            return None
        if not remote_branch_exists(branch, manifest.local_path, remote=ws.remote):
            if not push:
                raise CommandError("Manifest repo branch needs to be pushed first. Run with --push.")
            _push(ws, manifest.local_path, manifest.name, branch)
    except GitRunnerError as e:
        LOG.warning("Manifest repo: %s; creating PRs without a manifest PR", e)
        return None

    existing = forge.find_open_pr_by_branch(manifest.owner, manifest.repo, branch)
    if existing is not None:
        LOG.info("Reusing manifest PR #%s", existing.number)
        return existing
    created = forge.create_pr(
        manifest.owner,
        manifest.repo,
        head=branch,
        base=options.base or manifest.default_branch,
        title=options.title,
        body=pr_links.encode(options.title, [], options.body),
        draft=options.draft,
    )
    LOG.info("Created manifest PR #%s (%s)", created.number, created.url)
    return created


def create_prs(
    ws: Workspace,
    forge: ForgeAdapter,
    title: str | None = None,
    body: str = "",
    base: str | None = None,
    draft: bool = False,
    push: bool = False,
) -> CreateResult:
    """Create (or reuse) one PR per repo with commits on the shared branch.

    Raises:
        CommandError: Nothing cloned, no changes, or unpushed branches.
        BranchSyncError: Repos on different branches or on a default branch.
        ForgeError: A lookup or creation failed on the forge.
    """
    cloned = cloned_repos(ws.repos)
    if not cloned:
        raise CommandError("No repositories are cloned.")

    statuses = collect_branch_status(cloned, remote=ws.remote, max_workers=ws.max_workers)
    skipped = [s.repo.name for s in statuses if s.error]
    branch = ensure_single_branch(statuses)
    ensure_feature_branch(statuses, branch)

    with_changes = feature_branch_repos(statuses)
    if not with_changes:
        raise CommandError("No repositories have commits ahead of their default branch.")
    LOG.info("Found changes in %d repos: %s", len(with_changes), ", ".join(s.repo.name for s in with_changes))

    needs_push = [s for s in with_changes if s.needs_push]
    if needs_push and not push:
        names = ", ".join(s.repo.name for s in needs_push)
        raise CommandError(f"Some branches need to be pushed to remote first: {names}. Run with --push.")
    for s in needs_push:
        _push(ws, s.repo.local_path, s.repo.name, branch)

    options = PRCreateOptions(title=title or default_title(branch), body=body, base=base, draft=draft)
    anchor = _open_anchor_pr(ws, forge, branch, options, push)
    repos = [s.repo for s in with_changes]

    if anchor is None:
        linked = create_linked_prs(forge, repos, branch, options)
        link_branch_to_anchor_pr(ws.root_dir, branch, NO_ANCHOR_PR)
        return CreateResult(branch=branch, linked_prs=linked, skipped=skipped)

    linked = create_linked_prs(forge, repos, branch, options, anchor_number=anchor.number)
    manifest = ws.manifest_repo
    prose = pr_links.user_body(anchor.body) or options.body
    forge.update_pr_body(manifest.owner, manifest.repo, anchor.number, pr_links.encode(anchor.title, linked, prose))
    link_branch_to_anchor_pr(ws.root_dir, branch, anchor.number)
    save_linked_prs(ws.root_dir, anchor.number, linked)
    return CreateResult(branch=branch, linked_prs=linked, anchor=anchor, skipped=skipped)


def current_branch(ws: Workspace) -> str:
    """Branch of the manifest repo, else of the first cloned repo."""
    candidates = [ws.manifest_repo] if ws.manifest_repo else []
    candidates += cloned_repos(ws.repos)
    for repo in candidates:
        try:
            return get_current_branch(repo.local_path)
        except GitRunnerError as e:
            LOG.debug("%s: %s", repo.name, e)
    raise CommandError("Cannot determine the current branch: no repository is cloned.")


def resolve_anchor_number(ws: Workspace, number: int | None, branch: str) -> int | None:
    """Explicit number, else the one cached for branch; None if unknown."""
    if number is not None:
        return number
    cached = get_anchor_pr_for_branch(ws.root_dir, branch)
    if cached is None or cached == NO_ANCHOR_PR:
        return None
    return cached


def _require_manifest_repo(ws: Workspace) -> RepoInfo:
    if ws.manifest_repo is None:
        raise CommandError("No manifest repository configured (settings.manifest_repo in the manifest).")
    return ws.manifest_repo


def _live_branch_prs(ws: Workspace, forge: ForgeAdapter, branch: str) -> list[LinkedPR]:
    """Open PRs for branch across repos, without an anchor PR."""

    def lookup(repo: RepoInfo) -> LinkedPR | None:
        pr = forge.find_open_pr_by_branch(repo.owner, repo.repo, branch)
        if pr is None:
            return None
        return evaluate_or_blocked(forge, repo.owner, repo.repo, pr.number, repo.name)

    results = fan_out(lookup, ws.repos, max_workers=ws.max_workers)
    linked: list[LinkedPR] = []
    for repo, result in zip(ws.repos, results):
        if isinstance(result, BaseException):
            LOG.warning("%s: PR lookup failed: %s", repo.name, result)
        elif result is not None:
            linked.append(result)
    return linked


def pr_status(ws: Workspace, forge: ForgeAdapter, number: int | None = None) -> StatusResult:
    """Live readiness of the anchor PR, or of the branch PRs without one.

    When the anchor PR itself cannot be read, the linked PRs cached for it
    are re-evaluated instead.

    Raises:
        ForgeError: If the anchor PR cannot be read and nothing is cached.
    """
    branch = current_branch(ws) if number is None or ws.manifest_repo is None else ""
    anchor_number = resolve_anchor_number(ws, number, branch)
    if anchor_number is None or ws.manifest_repo is None:
        return StatusResult(branch=branch, linked_prs=_live_branch_prs(ws, forge, branch))
    manifest = ws.manifest_repo
    try:
        anchor = get_anchor_pr_info(forge, ws.repos, manifest.owner, manifest.repo, anchor_number, ws.max_workers)
    except ForgeError as e:
        cached = get_linked_prs_from_state(ws.root_dir, anchor_number)
        if cached is None:
            raise
        LOG.warning("Cannot read manifest PR #%s (%s); using cached linked PRs", anchor_number, e)
        linked = refresh_linked_pr_status(forge, ws.repos, cached, ws.max_workers)
        return StatusResult(branch=branch, anchor_number=anchor_number, linked_prs=linked, from_cache=True)
    save_linked_prs(ws.root_dir, anchor.number, anchor.linked_prs)
    return StatusResult(branch=branch, anchor=anchor, anchor_number=anchor.number, linked_prs=anchor.linked_prs)


def pr_sync(ws: Workspace, forge: ForgeAdapter, number: int | None = None) -> AnchorPR:
    """Refresh the anchor PR body table from live linked PR status."""
    manifest = _require_manifest_repo(ws)
    branch = current_branch(ws) if number is None else ""
    anchor_number = resolve_anchor_number(ws, number, branch)
    if anchor_number is None:
        raise CommandError(f"No manifest PR known for branch '{branch}'. Pass --number.")
    anchor = sync_anchor_pr_body(forge, ws.repos, manifest.owner, manifest.repo, anchor_number, ws.max_workers)
    save_linked_prs(ws.root_dir, anchor.number, anchor.linked_prs)
    return anchor


def pr_merge(
    ws: Workspace,
    forge: ForgeAdapter,
    number: int | None = None,
    method: MergeMethod | None = None,
    delete_branch: bool | None = None,
) -> MergeOutcome:
    """Re-read readiness from the forge and run the ordered merge."""
    manifest = _require_manifest_repo(ws)
    branch = current_branch(ws) if number is None else ""
    anchor_number = resolve_anchor_number(ws, number, branch)
    if anchor_number is None:
        raise CommandError(f"No manifest PR known for branch '{branch}'. Pass --number.")

    method = method or MergeMethod(ws.config.merge.method)
    if delete_branch is None:
        delete_branch = ws.config.merge.delete_branch
    anchor = get_anchor_pr_info(forge, ws.repos, manifest.owner, manifest.repo, anchor_number, ws.max_workers)
    outcome = merge_all_linked_prs(
        forge, anchor, manifest.owner, manifest.repo, method=method, delete_branch=delete_branch
    )

    merged = {(m.repo_name, m.number) for m in outcome.merged_prs}
    updated = [
        pr.model_copy(update={"state": PRState.MERGED}) if (pr.repo_name, pr.number) in merged else pr
        for pr in anchor.linked_prs
    ]
    state = load_state(ws.root_dir)
    state.pr_links[str(anchor.number)] = updated
    if outcome.success:
        state.branch_to_pr = {b: n for b, n in state.branch_to_pr.items() if n != anchor.number}
        if state.current_manifest_pr == anchor.number:
            state.current_manifest_pr = None
    save_state(ws.root_dir, state)
    return outcome
