"""Pull request models: forge records, linked PRs and the anchor PR."""

from enum import Enum

from pydantic import BaseModel, Field


class PRState(str, Enum):
    """Pull request state with the forge's merged flag folded in."""

    OPEN = "open"
    CLOSED = "closed"
    MERGED = "merged"

    @classmethod
    def from_forge(cls, state: str, merged: bool) -> "PRState":
        """merged wins; otherwise the raw open/closed state."""
        if merged:
            return cls.MERGED
        return cls.OPEN if state == "open" else cls.CLOSED


class PullRequest(BaseModel):
    """Pull request as returned by the forge."""

    number: int
    url: str = ""
    title: str = ""
    body: str = ""
    state: PRState = PRState.OPEN
    # None while the forge is still computing it
    mergeable: bool | None = None
    head_ref: str = ""
    head_sha: str = ""
    base_ref: str = ""


class Review(BaseModel):
    """One submitted review."""

    state: str
    user: str = "unknown"


class StatusCheck(BaseModel):
    context: str
    state: str


class CombinedStatus(BaseModel):
    """Combined commit status for a ref (success, failure, pending, error)."""

    state: str
    statuses: list[StatusCheck] = Field(default_factory=list)


class PRLink(BaseModel):
    """(repo name, PR number) pair carried by the anchor PR body marker."""

    repo_name: str
    number: int

    model_config = {"frozen": True}

    def __str__(self) -> str:
        return f"{self.repo_name}#{self.number}"


class LinkedPR(BaseModel):
    """PR in a satellite repository with its live readiness flags."""

    repo_name: str = Field(..., alias="repoName")
    owner: str
    repo: str
    number: int
    url: str = ""
    state: PRState = PRState.OPEN
    approved: bool = False
    checks_pass: bool = Field(default=False, alias="checksPass")
    mergeable: bool = False

    model_config = {"populate_by_name": True}

    @property
    def link(self) -> PRLink:
        return PRLink(repo_name=self.repo_name, number=self.number)

    @property
    def is_ready(self) -> bool:
        """Approved, checks passing, mergeable and still open."""
        return self.approved and self.checks_pass and self.mergeable and self.state == PRState.OPEN


class AnchorPR(BaseModel):
    """The manifest PR that coordinates a set of linked PRs."""

    number: int
    url: str = ""
    title: str = ""
    body: str = ""
    state: PRState = PRState.OPEN
    linked_prs: list[LinkedPR] = Field(default_factory=list)

    @property
    def ready_to_merge(self) -> bool:
        """Anchor open and every linked PR ready; one miss blocks the set."""
        return self.state == PRState.OPEN and all(pr.is_ready for pr in self.linked_prs)
