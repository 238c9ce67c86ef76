"""Tests for codi_repo.services.linked_prs."""

from codi_repo.models import PRState
from codi_repo.services.linked_prs import PRCreateOptions, create_linked_prs, linked_pr_body, linked_pr_title

from conftest import make_repo


class TestCreateLinkedPRs:
    """One PR per repo, reused when already open."""

    def test_creates_one_pr_per_repo(self, forge, repos) -> None:
        """Fresh PRs are created in repo order and start not ready."""
        linked = create_linked_prs(forge, repos, "feature/x", PRCreateOptions(title="Add login"))
        assert [(pr.repo_name, pr.number) for pr in linked] == [("A", 1), ("B", 1)]
        assert all(pr.state == PRState.OPEN for pr in linked)
        assert not any(pr.approved or pr.checks_pass for pr in linked)
        created = [c for c in forge.calls if c[0] == "create_pr"]
        assert [(c[2], c[3], c[4], c[5]) for c in created] == [
            ("A", "feature/x", "main", "Add login"),
            ("B", "feature/x", "main", "Add login"),
        ]

    def test_second_call_reuses_open_prs(self, forge, repos) -> None:
        """Running twice does not duplicate PRs."""
        options = PRCreateOptions(title="Add login")
        first = create_linked_prs(forge, repos, "feature/x", options)
        second = create_linked_prs(forge, repos, "feature/x", options)
        assert [pr.link for pr in first] == [pr.link for pr in second]
        assert len([c for c in forge.calls if c[0] == "create_pr"]) == 2

    def test_reuses_existing_and_creates_missing(self, forge, repos) -> None:
        forge.add_pr("acme", "A", 7, head="feature/x")
        linked = create_linked_prs(forge, repos, "feature/x", PRCreateOptions(title="t"))
        assert [(pr.repo_name, pr.number) for pr in linked] == [("A", 7), ("B", 1)]
        assert linked[0].is_ready is True

    def test_closed_pr_is_not_reused(self, forge) -> None:
        forge.add_pr("acme", "A", 3, head="feature/x", state=PRState.CLOSED)
        linked = create_linked_prs(forge, [make_repo("A")], "feature/x", PRCreateOptions(title="t"))
        assert linked[0].number == 4

    def test_base_override_and_default_branch(self, forge) -> None:
        repos = [make_repo("A", default_branch="develop"), make_repo("B")]
        create_linked_prs(forge, repos, "feature/x", PRCreateOptions(title="t"))
        create_linked_prs(forge, [make_repo("C")], "feature/x", PRCreateOptions(title="t", base="release"))
        bases = [c[4] for c in forge.calls if c[0] == "create_pr"]
        assert bases == ["develop", "main", "release"]

    def test_anchor_prefixes(self, forge, repos) -> None:
        options = PRCreateOptions(title="Add login", body="details", draft=True)
        create_linked_prs(forge, repos[:1], "feature/x", options, anchor_number=42)
        call = [c for c in forge.calls if c[0] == "create_pr"][0]
        assert call[5] == "[manifest#42] Add login"
        assert call[6] == "Part of manifest PR #42\n\ndetails"
        assert call[7] is True


class TestPrefixes:
    def test_without_anchor(self) -> None:
        assert linked_pr_title("t", None) == "t"
        assert linked_pr_body("b", None) == "b"


class TestUnreadablePR:
    """A created PR whose status cannot be read does not stop the batch."""

    def test_status_failure_marks_pr_not_ready(self, forge, repos) -> None:
        forge.fail_status.add(("acme", "A"))
        linked = create_linked_prs(forge, repos, "feature/x", PRCreateOptions(title="t"))
        assert [(pr.repo_name, pr.number) for pr in linked] == [("A", 1), ("B", 1)]
        assert linked[0].is_ready is False
        assert (linked[0].owner, linked[0].repo) == ("acme", "A")
        assert [c[2] for c in forge.calls if c[0] == "create_pr"] == ["A", "B"]
