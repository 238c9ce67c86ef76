"""Merge method and the audit trail of one merge attempt."""

from enum import Enum

from pydantic import BaseModel, Field

# repo_name used for the anchor PR in merge results
MANIFEST_REPO_NAME = "manifest"


class MergeMethod(str, Enum):
    MERGE = "merge"
    SQUASH = "squash"
    REBASE = "rebase"


class MergedPR(BaseModel):
    repo_name: str
    number: int


class FailedPR(BaseModel):
    """The PR that blocked or broke the run, with a short reason."""

    repo_name: str
    number: int
    error: str


class MergeOutcome(BaseModel):
    """Result of merge_all_linked_prs.

    merged_prs lists what was actually merged, in order, even when the
    run failed part way.
    """

    success: bool
    merged_prs: list[MergedPR] = Field(default_factory=list)
    failed_pr: FailedPR | None = None
