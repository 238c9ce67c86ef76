"""Tests for codi_repo.services.merge (ordered all-or-nothing merge)."""

from codi_repo.models import AnchorPR, LinkedPR, MergeMethod, PRState
from codi_repo.services.anchor import get_anchor_pr_info
from codi_repo.services.merge import merge_all_linked_prs
from codi_repo.services.pr_links import encode


def _anchor_body(*links: tuple[str, int]) -> str:
    prs = [LinkedPR(repo_name=name, owner="acme", repo=name, number=n) for name, n in links]
    return encode("Feature", prs)


def _setup(forge, repos, b_approved: bool = True) -> AnchorPR:
    forge.add_pr("acme", "A", 1)
    forge.add_pr("acme", "B", 2, approved=b_approved)
    forge.add_pr("acme", "manifest", 10, body=_anchor_body(("A", 1), ("B", 2)))
    return get_anchor_pr_info(forge, repos, "acme", "manifest", 10)


class TestGate:
    """Nothing is merged unless every linked PR is ready."""

    def test_unapproved_pr_blocks_everything(self, forge, repos) -> None:
        """One unapproved PR: no merge calls, B#2 reported as not approved."""
        anchor = _setup(forge, repos, b_approved=False)
        outcome = merge_all_linked_prs(forge, anchor, "acme", "manifest")
        assert outcome.success is False
        assert outcome.merged_prs == []
        assert (outcome.failed_pr.repo_name, outcome.failed_pr.number) == ("B", 2)
        assert outcome.failed_pr.error == "Not approved"
        assert forge.merge_calls() == []

    def test_closed_anchor_is_not_merged(self, forge, repos) -> None:
        """A closed anchor with ready links is still refused."""
        anchor = _setup(forge, repos).model_copy(update={"state": PRState.CLOSED})
        outcome = merge_all_linked_prs(forge, anchor, "acme", "manifest")
        assert outcome.success is False
        assert outcome.failed_pr is None
        assert forge.merge_calls() == []


class TestOrderedMerge:
    """Linked PRs merge in encoded order, the anchor last."""

    def test_all_ready(self, forge, repos) -> None:
        anchor = _setup(forge, repos)
        outcome = merge_all_linked_prs(forge, anchor, "acme", "manifest", method=MergeMethod.SQUASH)
        assert outcome.success is True
        assert [(m.repo_name, m.number) for m in outcome.merged_prs] == [("A", 1), ("B", 2), ("manifest", 10)]
        assert [c[1:] for c in forge.merge_calls()] == [
            ("acme", "A", 1, "squash"),
            ("acme", "B", 2, "squash"),
            ("acme", "manifest", 10, "squash"),
        ]
        assert outcome.failed_pr is None

    def test_stops_at_first_failure(self, forge, repos) -> None:
        """A failing merge stops the run; earlier merges stay merged."""
        anchor = _setup(forge, repos)
        forge.fail_merge.add(("acme", "B", 2))
        outcome = merge_all_linked_prs(forge, anchor, "acme", "manifest")
        assert outcome.success is False
        assert [(m.repo_name, m.number) for m in outcome.merged_prs] == [("A", 1)]
        assert outcome.failed_pr.repo_name == "B"
        assert outcome.failed_pr.error.startswith("Merge failed:")
        assert ("merge_pr", "acme", "manifest", 10, "merge") not in forge.calls
        assert forge.prs[("acme", "A", 1)].state == PRState.MERGED

    def test_anchor_failure_reported_as_manifest(self, forge, repos) -> None:
        anchor = _setup(forge, repos)
        forge.fail_merge.add(("acme", "manifest", 10))
        outcome = merge_all_linked_prs(forge, anchor, "acme", "manifest")
        assert outcome.success is False
        assert [m.repo_name for m in outcome.merged_prs] == ["A", "B"]
        assert outcome.failed_pr.repo_name == "manifest"
        assert outcome.failed_pr.number == 10
        assert outcome.failed_pr.error.startswith("Manifest PR merge failed:")


class TestBranchDelete:
    """Head branch deletion after merge is best effort."""

    def test_deletes_head_branches(self, forge, repos) -> None:
        anchor = _setup(forge, repos)
        outcome = merge_all_linked_prs(forge, anchor, "acme", "manifest", delete_branch=True)
        assert outcome.success is True
        deleted = [c[1:] for c in forge.calls if c[0] == "delete_branch"]
        assert deleted == [("acme", "A", "feature/x"), ("acme", "B", "feature/x"), ("acme", "manifest", "feature/x")]

    def test_delete_failure_does_not_fail_merge(self, forge, repos) -> None:
        anchor = _setup(forge, repos)
        forge.fail_delete = True
        outcome = merge_all_linked_prs(forge, anchor, "acme", "manifest", delete_branch=True)
        assert outcome.success is True
        assert len(outcome.merged_prs) == 3

    def test_no_delete_by_default(self, forge, repos) -> None:
        merge_all_linked_prs(forge, _setup(forge, repos), "acme", "manifest")
        assert not [c for c in forge.calls if c[0] == "delete_branch"]
