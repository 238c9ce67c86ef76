"""Create or discover one PR per repository for a shared branch."""

import logging
from typing import List

from pydantic import BaseModel

from codi_repo.adapters import ForgeAdapter
from codi_repo.models import LinkedPR, RepoInfo
from codi_repo.services.readiness import evaluate_or_blocked

LOG = logging.getLogger("codi_repo.services.linked_prs")


class PRCreateOptions(BaseModel):
    title: str
    body: str = ""
    base: str | None = None
    draft: bool = False


def linked_pr_title(title: str, anchor_number: int | None) -> str:
    if anchor_number:
        return f"[manifest#{anchor_number}] {title}"
    return title


def linked_pr_body(body: str, anchor_number: int | None) -> str:
    if anchor_number:
        return f"Part of manifest PR #{anchor_number}\n\n{body}"
    return body


def create_linked_prs(
    forge: ForgeAdapter,
    repos: List[RepoInfo],
    branch_name: str,
    options: PRCreateOptions,
    anchor_number: int | None = None,
) -> List[LinkedPR]:
    """Return one live LinkedPR per repo, creating PRs only where none is open.

    Repos are handled one after another. An open PR whose head is the
    branch is reused, so calling this again never duplicates PRs. Nothing
    is written to local state. A PR whose reviews or status cannot be read
    is returned not ready instead of stopping the batch.

    Raises:
        ForgeError: On the first failed lookup or creation.
    """
    linked: List[LinkedPR] = []
    for repo in repos:
        existing = forge.find_open_pr_by_branch(repo.owner, repo.repo, branch_name)
        if existing is not None:
            LOG.info("%s: reusing open PR #%s for %s", repo.name, existing.number, branch_name)
            number = existing.number
        else:
            created = forge.create_pr(
                repo.owner,
                repo.repo,
                head=branch_name,
                base=options.base or repo.default_branch,
                title=linked_pr_title(options.title, anchor_number),
                body=linked_pr_body(options.body, anchor_number),
                draft=options.draft,
            )
            LOG.info("%s: created PR #%s (%s)", repo.name, created.number, created.url)
            number = created.number
        linked.append(evaluate_or_blocked(forge, repo.owner, repo.repo, number, repo.name))
    return linked
