"""Anchor (manifest) PR: resolve its linked PRs and keep its body current."""

import logging
from typing import List

from codi_repo.adapters import ForgeAdapter
from codi_repo.models import AnchorPR, LinkedPR, PRLink, RepoInfo
from codi_repo.services import pr_links
from codi_repo.services.readiness import blocked_placeholder, evaluate_or_blocked
from codi_repo.utils import fan_out

LOG = logging.getLogger("codi_repo.services.anchor")


def _evaluate_links(
    forge: ForgeAdapter,
    repos: List[RepoInfo],
    links: List[PRLink],
    max_workers: int,
) -> List[LinkedPR]:
    """Live LinkedPR per link, in link order, fail-closed."""
    repo_map = {r.name: r for r in repos}

    def evaluate(link: PRLink) -> LinkedPR:
        info = repo_map.get(link.repo_name)
        if info is None:
            LOG.warning("Linked repo %s is not in the manifest", link.repo_name)
            return blocked_placeholder(link.repo_name, link.number)
        return evaluate_or_blocked(forge, info.owner, info.repo, link.number, link.repo_name)

    results = fan_out(evaluate, links, max_workers=max_workers)
    linked: List[LinkedPR] = []
    for link, result in zip(links, results):
        if isinstance(result, BaseException):
            LOG.warning("Cannot evaluate %s: %s", link, result)
            linked.append(blocked_placeholder(link.repo_name, link.number))
        else:
            linked.append(result)
    return linked


def get_anchor_pr_info(
    forge: ForgeAdapter,
    repos: List[RepoInfo],
    owner: str,
    repo: str,
    number: int,
    max_workers: int = 8,
) -> AnchorPR:
    """Anchor PR with freshly evaluated linked PRs decoded from its body.

    Raises:
        ForgeError: If the anchor PR itself cannot be fetched.
    """
    pr = forge.get_pr(owner, repo, number)
    links = pr_links.decode(pr.body)
    linked = _evaluate_links(forge, repos, links, max_workers)
    return AnchorPR(
        number=pr.number,
        url=pr.url,
        title=pr.title,
        body=pr.body,
        state=pr.state,
        linked_prs=linked,
    )


def refresh_linked_pr_status(
    forge: ForgeAdapter,
    repos: List[RepoInfo],
    linked_prs: List[LinkedPR],
    max_workers: int = 8,
) -> List[LinkedPR]:
    """Re-evaluate cached linked PRs from the forge, in order.

    Cached readiness flags are never trusted: a PR that cannot be read, or
    whose repo is no longer in the manifest, comes back not ready.
    """
    repo_map = {r.name: r for r in repos}

    def refresh(pr: LinkedPR) -> LinkedPR:
        info = repo_map.get(pr.repo_name)
        if info is None:
            return blocked_placeholder(pr.repo_name, pr.number, pr.owner, pr.repo, pr.url)
        return evaluate_or_blocked(forge, info.owner, info.repo, pr.number, pr.repo_name)

    results = fan_out(refresh, linked_prs, max_workers=max_workers)
    return [
        blocked_placeholder(pr.repo_name, pr.number, pr.owner, pr.repo, pr.url)
        if isinstance(result, BaseException)
        else result
        for pr, result in zip(linked_prs, results)
    ]


def sync_anchor_pr_body(
    forge: ForgeAdapter,
    repos: List[RepoInfo],
    owner: str,
    repo: str,
    number: int,
    max_workers: int = 8,
) -> AnchorPR:
    """Rewrite the anchor body with live linked PR status.

    The human-written prose is kept; only the generated table and marker
    are replaced.
    """
    anchor = get_anchor_pr_info(forge, repos, owner, repo, number, max_workers=max_workers)
    body = pr_links.encode(anchor.title, anchor.linked_prs, pr_links.user_body(anchor.body))
    forge.update_pr_body(owner, repo, number, body)
    LOG.info("Updated manifest PR #%s body (%d linked PRs)", number, len(anchor.linked_prs))
    return anchor.model_copy(update={"body": body})
