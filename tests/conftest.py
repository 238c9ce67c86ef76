"""Shared fixtures: in-memory forge and repo handles."""

from pathlib import Path
from typing import List

import pytest

from codi_repo.adapters import ForgeAdapter, ForgeError
from codi_repo.models import CombinedStatus, PRState, PullRequest, RepoInfo, Review


class FakeForge(ForgeAdapter):
    """ForgeAdapter backed by dicts; records every mutating call."""

    def __init__(self) -> None:
        self.prs: dict[tuple[str, str, int], PullRequest] = {}
        self.reviews: dict[tuple[str, str, int], List[Review]] = {}
        self.statuses: dict[tuple[str, str, str], str] = {}
        self.fail_merge: set[tuple[str, str, int]] = set()
        self.fail_get: set[tuple[str, str, int]] = set()
        self.fail_status: set[tuple[str, str]] = set()
        self.fail_delete = False
        self.calls: list[tuple] = []
        self._next_number: dict[tuple[str, str], int] = {}

    def add_pr(
        self,
        owner: str,
        repo: str,
        number: int,
        head: str = "feature/x",
        state: PRState = PRState.OPEN,
        mergeable: bool | None = True,
        body: str = "",
        title: str = "",
        approved: bool = True,
        checks: str = "success",
    ) -> PullRequest:
        pr = PullRequest(
            number=number,
            url=f"https://github.com/{owner}/{repo}/pull/{number}",
            title=title,
            body=body,
            state=state,
            mergeable=mergeable,
            head_ref=head,
            head_sha=f"sha-{repo}-{number}",
            base_ref="main",
        )
        self.prs[(owner, repo, number)] = pr
        self.reviews[(owner, repo, number)] = [Review(state="APPROVED", user="alice")] if approved else []
        self.statuses[(owner, repo, pr.head_sha)] = checks
        self._next_number[(owner, repo)] = max(self._next_number.get((owner, repo), 0), number)
        return pr

    def create_pr(self, owner, repo, head, base, title, body, draft=False) -> PullRequest:
        self.calls.append(("create_pr", owner, repo, head, base, title, body, draft))
        number = self._next_number.get((owner, repo), 0) + 1
        pr = self.add_pr(owner, repo, number, head=head, body=body, title=title, approved=False, checks="pending")
        return pr

    def get_pr(self, owner, repo, number) -> PullRequest:
        key = (owner, repo, number)
        if key in self.fail_get or key not in self.prs:
            raise ForgeError(f"404: {owner}/{repo}#{number}", status_code=404)
        return self.prs[key]

    def update_pr_body(self, owner, repo, number, body) -> None:
        self.calls.append(("update_pr_body", owner, repo, number))
        pr = self.get_pr(owner, repo, number)
        self.prs[(owner, repo, number)] = pr.model_copy(update={"body": body})

    def list_reviews(self, owner, repo, number) -> List[Review]:
        return list(self.reviews.get((owner, repo, number), []))

    def get_combined_status(self, owner, repo, ref) -> CombinedStatus:
        if (owner, repo) in self.fail_status:
            raise ForgeError("502: Bad Gateway", status_code=502)
        return CombinedStatus(state=self.statuses.get((owner, repo, ref), "pending"))

    def merge_pr(self, owner, repo, number, method="merge") -> None:
        self.calls.append(("merge_pr", owner, repo, number, method))
        if (owner, repo, number) in self.fail_merge:
            raise ForgeError("405: Pull Request is not mergeable", status_code=405)
        pr = self.get_pr(owner, repo, number)
        self.prs[(owner, repo, number)] = pr.model_copy(update={"state": PRState.MERGED})

    def delete_branch(self, owner, repo, branch) -> None:
        self.calls.append(("delete_branch", owner, repo, branch))
        if self.fail_delete:
            raise ForgeError("422: Reference does not exist", status_code=422)

    def find_open_pr_by_branch(self, owner, repo, branch) -> PullRequest | None:
        for (o, r, _), pr in sorted(self.prs.items()):
            if o == owner and r == repo and pr.head_ref == branch and pr.state == PRState.OPEN:
                return pr
        return None

    def merge_calls(self) -> list[tuple]:
        return [c for c in self.calls if c[0] == "merge_pr"]


def make_repo(name: str, root: Path | None = None, owner: str = "acme", default_branch: str = "main") -> RepoInfo:
    root = root or Path("/tmp/ws")
    return RepoInfo(
        name=name,
        url=f"git@github.com:{owner}/{name}.git",
        path=f"./{name}",
        local_path=root / name,
        owner=owner,
        repo=name,
        default_branch=default_branch,
    )


@pytest.fixture
def forge() -> FakeForge:
    return FakeForge()


@pytest.fixture
def repos() -> list[RepoInfo]:
    return [make_repo("A"), make_repo("B")]
