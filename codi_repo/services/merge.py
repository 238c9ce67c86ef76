"""Merge every linked PR in order, then the anchor PR.

Nothing is merged unless the whole set is ready. Once merging starts there
is no rollback: a failure part way leaves the earlier PRs merged and the
outcome lists exactly which ones.
"""

import logging

from codi_repo.adapters import ForgeAdapter, ForgeError
from codi_repo.models import (
    MANIFEST_REPO_NAME,
    AnchorPR,
    FailedPR,
    MergedPR,
    MergeMethod,
    MergeOutcome,
)
from codi_repo.services.readiness import first_blocker

LOG = logging.getLogger("codi_repo.services.merge")


def _merge_one(
    forge: ForgeAdapter,
    owner: str,
    repo: str,
    number: int,
    method: MergeMethod,
    delete_branch: bool,
) -> None:
    """Merge one PR; branch deletion afterwards is best effort.

    Raises:
        ForgeError: If the merge call fails.
    """
    head_ref = ""
    if delete_branch:
        try:
            head_ref = forge.get_pr(owner, repo, number).head_ref
        except ForgeError as e:
            LOG.warning("%s/%s#%s: cannot read head branch: %s", owner, repo, number, e)
    forge.merge_pr(owner, repo, number, method.value)
    LOG.info("Merged %s/%s#%s (%s)", owner, repo, number, method.value)
    if delete_branch and head_ref:
        try:
            forge.delete_branch(owner, repo, head_ref)
        except ForgeError as e:
            LOG.warning("%s/%s: branch %s not deleted: %s", owner, repo, head_ref, e)


def merge_all_linked_prs(
    forge: ForgeAdapter,
    anchor: AnchorPR,
    owner: str,
    repo: str,
    method: MergeMethod = MergeMethod.MERGE,
    delete_branch: bool = False,
) -> MergeOutcome:
    """Merge anchor.linked_prs in order, then the anchor PR (owner/repo).

    anchor must carry live readiness (see anchor.get_anchor_pr_info). The
    run stops at the first failed merge; remaining linked PRs and the anchor
    are left untouched.
    """
    if not anchor.ready_to_merge:
        blocker = first_blocker(anchor.linked_prs)
        failed = None
        if blocker is not None:
            pr, reason = blocker
            failed = FailedPR(repo_name=pr.repo_name, number=pr.number, error=reason)
        LOG.warning(
            "Manifest PR #%s not ready to merge%s",
            anchor.number,
            f": {failed.repo_name}#{failed.number} {failed.error}" if failed else "",
        )
        return MergeOutcome(success=False, merged_prs=[], failed_pr=failed)

    merged: list[MergedPR] = []
    for linked in anchor.linked_prs:
        try:
            _merge_one(forge, linked.owner, linked.repo, linked.number, method, delete_branch)
        except ForgeError as e:
            LOG.error("Merge of %s#%s failed: %s", linked.repo_name, linked.number, e)
            return MergeOutcome(
                success=False,
                merged_prs=merged,
                failed_pr=FailedPR(repo_name=linked.repo_name, number=linked.number, error=f"Merge failed: {e}"),
            )
        merged.append(MergedPR(repo_name=linked.repo_name, number=linked.number))

    try:
        _merge_one(forge, owner, repo, anchor.number, method, delete_branch)
    except ForgeError as e:
        LOG.error("Merge of manifest PR #%s failed: %s", anchor.number, e)
        return MergeOutcome(
            success=False,
            merged_prs=merged,
            failed_pr=FailedPR(
                repo_name=MANIFEST_REPO_NAME,
                number=anchor.number,
                error=f"Manifest PR merge failed: {e}",
            ),
        )
    merged.append(MergedPR(repo_name=MANIFEST_REPO_NAME, number=anchor.number))
    return MergeOutcome(success=True, merged_prs=merged)
