"""Data models for repositories, pull requests, state and merges (Pydantic)."""

from codi_repo.models.merge import MANIFEST_REPO_NAME, FailedPR, MergedPR, MergeMethod, MergeOutcome
from codi_repo.models.pr import (
    AnchorPR,
    CombinedStatus,
    LinkedPR,
    PRLink,
    PRState,
    PullRequest,
    Review,
    StatusCheck,
)
from codi_repo.models.repo import RepoBranchStatus, RepoInfo, RepoStatus
from codi_repo.models.state import NO_ANCHOR_PR, StateFile

__all__ = [
    "MANIFEST_REPO_NAME",
    "NO_ANCHOR_PR",
    "AnchorPR",
    "CombinedStatus",
    "FailedPR",
    "LinkedPR",
    "MergeMethod",
    "MergeOutcome",
    "MergedPR",
    "PRLink",
    "PRState",
    "PullRequest",
    "RepoBranchStatus",
    "RepoInfo",
    "RepoStatus",
    "Review",
    "StateFile",
    "StatusCheck",
]
