"""Persisted workspace state (.codi-repo/state.json)."""

from pydantic import BaseModel, Field

from codi_repo.models.pr import LinkedPR

# branchToPR value for a branch whose PRs were created without an anchor PR
NO_ANCHOR_PR = -1


class StateFile(BaseModel):
    """Cached branch -> anchor PR and anchor PR -> linked PRs mappings."""

    branch_to_pr: dict[str, int] = Field(default_factory=dict, alias="branchToPR")
    pr_links: dict[str, list[LinkedPR]] = Field(default_factory=dict, alias="prLinks")
    current_manifest_pr: int | None = Field(default=None, alias="currentManifestPR")

    model_config = {"populate_by_name": True}
