"""Tests for codi_repo.services.anchor."""

from codi_repo.models import LinkedPR, PRLink, PRState
from codi_repo.services.anchor import get_anchor_pr_info, refresh_linked_pr_status, sync_anchor_pr_body
from codi_repo.services.pr_links import decode, encode, user_body


def _body(prose: str = "", *links: tuple[str, int]) -> str:
    prs = [LinkedPR(repo_name=name, owner="acme", repo=name, number=n) for name, n in links]
    return encode("Feature", prs, prose)


class TestGetAnchorPRInfo:
    """Links come from the marker; readiness comes from the forge."""

    def test_linked_prs_in_marker_order(self, forge, repos) -> None:
        forge.add_pr("acme", "A", 1)
        forge.add_pr("acme", "B", 2, checks="failure")
        forge.add_pr("acme", "manifest", 10, title="Feature", body=_body("", ("B", 2), ("A", 1)))
        anchor = get_anchor_pr_info(forge, repos, "acme", "manifest", 10)
        assert [(pr.repo_name, pr.number) for pr in anchor.linked_prs] == [("B", 2), ("A", 1)]
        assert anchor.linked_prs[0].checks_pass is False
        assert anchor.linked_prs[1].is_ready is True
        assert anchor.ready_to_merge is False

    def test_no_marker_means_no_links(self, forge, repos) -> None:
        forge.add_pr("acme", "manifest", 10, body="hand written")
        anchor = get_anchor_pr_info(forge, repos, "acme", "manifest", 10)
        assert anchor.linked_prs == []

    def test_unknown_repo_and_missing_pr_are_not_ready(self, forge, repos) -> None:
        """Links that cannot be evaluated stay in the list, not ready."""
        forge.add_pr("acme", "A", 1)
        forge.add_pr("acme", "manifest", 10, body=_body("", ("A", 1), ("B", 5), ("Z", 3)))
        anchor = get_anchor_pr_info(forge, repos, "acme", "manifest", 10)
        assert [pr.link for pr in anchor.linked_prs] == [
            PRLink(repo_name="A", number=1),
            PRLink(repo_name="B", number=5),
            PRLink(repo_name="Z", number=3),
        ]
        assert [pr.is_ready for pr in anchor.linked_prs] == [True, False, False]
        assert anchor.ready_to_merge is False


class TestSyncAnchorBody:
    def test_rewrites_table_and_keeps_prose(self, forge, repos) -> None:
        forge.add_pr("acme", "A", 1, state=PRState.MERGED)
        forge.add_pr("acme", "B", 2)
        forge.add_pr("acme", "manifest", 10, body=_body("Deploy after 5pm", ("A", 1), ("B", 2)))
        anchor = sync_anchor_pr_body(forge, repos, "acme", "manifest", 10)
        new_body = forge.prs[("acme", "manifest", 10)].body
        assert anchor.body == new_body
        assert user_body(new_body) == "Deploy after 5pm"
        assert decode(new_body) == [PRLink(repo_name="A", number=1), PRLink(repo_name="B", number=2)]
        assert ":white_check_mark: merged" in new_body
        assert ("update_pr_body", "acme", "manifest", 10) in forge.calls


class TestRefresh:
    def test_cached_flags_are_not_trusted(self, forge, repos) -> None:
        """Unknown repos and unreadable PRs come back not ready."""
        forge.add_pr("acme", "A", 1)
        cached = [
            LinkedPR(repo_name="A", owner="acme", repo="A", number=1),
            LinkedPR(repo_name="B", owner="acme", repo="B", number=9, approved=True, checks_pass=True, mergeable=True),
            LinkedPR(repo_name="gone", owner="acme", repo="gone", number=4, approved=True, checks_pass=True, mergeable=True),
        ]
        refreshed = refresh_linked_pr_status(forge, repos, cached)
        assert [pr.is_ready for pr in refreshed] == [True, False, False]
        assert [pr.link for pr in refreshed] == [pr.link for pr in cached]
        assert refreshed[2].url == cached[2].url
