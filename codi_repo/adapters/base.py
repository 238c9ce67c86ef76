"""Abstract base for forge (code hosting) adapters."""

from abc import ABC, abstractmethod
from typing import List

from codi_repo.models import CombinedStatus, PullRequest, Review


class ForgeError(Exception):
    """Raised when a forge API call fails."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ForgeAdapter(ABC):
    """Pull request, review, status and merge primitives of a forge.

    Repositories are addressed by owner and repo name. One instance is
    constructed per invocation and passed to every operation.
    """

    @abstractmethod
    def create_pr(
        self,
        owner: str,
        repo: str,
        head: str,
        base: str,
        title: str,
        body: str,
        draft: bool = False,
    ) -> PullRequest:
        """Create a pull request."""
        ...

    @abstractmethod
    def get_pr(self, owner: str, repo: str, number: int) -> PullRequest:
        """Fetch PR by number."""
        ...

    @abstractmethod
    def update_pr_body(self, owner: str, repo: str, number: int, body: str) -> None:
        """Replace the PR description."""
        ...

    @abstractmethod
    def list_reviews(self, owner: str, repo: str, number: int) -> List[Review]:
        """List every review submitted on the PR, oldest first."""
        ...

    @abstractmethod
    def get_combined_status(self, owner: str, repo: str, ref: str) -> CombinedStatus:
        """Combined commit status for a ref or sha."""
        ...

    @abstractmethod
    def merge_pr(self, owner: str, repo: str, number: int, method: str = "merge") -> None:
        """Merge the PR; raise ForgeError when the forge refuses."""
        ...

    @abstractmethod
    def delete_branch(self, owner: str, repo: str, branch: str) -> None:
        """Delete refs/heads/<branch> on the forge."""
        ...

    @abstractmethod
    def find_open_pr_by_branch(self, owner: str, repo: str, branch: str) -> PullRequest | None:
        """First open PR whose head is owner:branch, or None."""
        ...
