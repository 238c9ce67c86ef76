"""Merge readiness of linked PRs, computed from live forge data.

A linked PR is ready when it is approved, its combined status is success,
the forge reports it mergeable and it is still open. The anchor PR is ready
to merge only when it is open and every linked PR is ready.
"""

import logging
from typing import List

from codi_repo.adapters import ForgeAdapter, ForgeError
from codi_repo.models import CombinedStatus, LinkedPR, PRState, PullRequest, Review

LOG = logging.getLogger("codi_repo.services.readiness")

APPROVED = "APPROVED"
CHANGES_REQUESTED = "CHANGES_REQUESTED"

NOT_APPROVED = "Not approved"
CHECKS_FAILING = "Checks not passing"
NOT_MERGEABLE = "Not mergeable"
NOT_OPEN = "PR not open"


def is_approved(reviews: List[Review]) -> bool:
    """At least one approval and no change request anywhere in the history.

    A later approval does not clear an earlier change request.
    """
    states = [r.state for r in reviews]
    return APPROVED in states and CHANGES_REQUESTED not in states


def checks_pass(status: CombinedStatus) -> bool:
    return status.state == "success"


def is_mergeable(pr: PullRequest) -> bool:
    """Unknown (None) counts as not mergeable."""
    return pr.mergeable is True


def build_linked_pr(
    repo_name: str,
    owner: str,
    repo: str,
    pr: PullRequest,
    reviews: List[Review],
    status: CombinedStatus,
) -> LinkedPR:
    return LinkedPR(
        repo_name=repo_name,
        owner=owner,
        repo=repo,
        number=pr.number,
        url=pr.url,
        state=pr.state,
        approved=is_approved(reviews),
        checks_pass=checks_pass(status),
        mergeable=is_mergeable(pr),
    )


def evaluate_linked_pr(forge: ForgeAdapter, owner: str, repo: str, number: int, repo_name: str) -> LinkedPR:
    """Fetch PR, reviews and combined status and fold them into a LinkedPR.

    Raises:
        ForgeError: If any of the lookups fails.
    """
    pr = forge.get_pr(owner, repo, number)
    reviews = forge.list_reviews(owner, repo, number)
    status = forge.get_combined_status(owner, repo, pr.head_sha or pr.head_ref)
    return build_linked_pr(repo_name, owner, repo, pr, reviews, status)


def blocked_placeholder(repo_name: str, number: int, owner: str = "", repo: str = "", url: str = "") -> LinkedPR:
    """A LinkedPR that fails every readiness condition."""
    return LinkedPR(
        repo_name=repo_name,
        owner=owner,
        repo=repo,
        number=number,
        url=url,
        state=PRState.CLOSED,
        approved=False,
        checks_pass=False,
        mergeable=False,
    )


def evaluate_or_blocked(forge: ForgeAdapter, owner: str, repo: str, number: int, repo_name: str) -> LinkedPR:
    """evaluate_linked_pr, but a forge failure yields a not-ready PR."""
    try:
        return evaluate_linked_pr(forge, owner, repo, number, repo_name)
    except ForgeError as e:
        LOG.warning("Cannot evaluate %s#%s: %s", repo_name, number, e)
        return blocked_placeholder(repo_name, number, owner, repo)


def blocking_reason(pr: LinkedPR) -> str | None:
    """First unmet condition, by priority; None when the PR is ready."""
    if not pr.approved:
        return NOT_APPROVED
    if not pr.checks_pass:
        return CHECKS_FAILING
    if not pr.mergeable:
        return NOT_MERGEABLE
    if pr.state != PRState.OPEN:
        return NOT_OPEN
    return None


def first_blocker(linked_prs: List[LinkedPR]) -> tuple[LinkedPR, str] | None:
    """First linked PR, in order, that is not ready, with its reason."""
    for pr in linked_prs:
        reason = blocking_reason(pr)
        if reason is not None:
            return pr, reason
    return None
