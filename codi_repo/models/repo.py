"""Repository handles and per-repository branch status."""

from pathlib import Path

from pydantic import BaseModel


class RepoInfo(BaseModel):
    """One manifest repository resolved to an addressable GitHub handle."""

    name: str
    url: str
    path: str
    local_path: Path
    owner: str
    repo: str
    default_branch: str = "main"

    model_config = {"frozen": True}

    @property
    def full_name(self) -> str:
        """owner/repo, as used in GitHub API paths."""
        return f"{self.owner}/{self.repo}"


class RepoBranchStatus(BaseModel):
    """Branch facts for one cloned repository.

    error is set when the git queries for this repository failed; the
    other fields then hold their defaults.
    """

    repo: RepoInfo
    current_branch: str = ""
    has_commits_ahead: bool = False
    needs_push: bool = False
    error: str | None = None

    @property
    def on_default_branch(self) -> bool:
        return self.current_branch == self.repo.default_branch


class RepoStatus(BaseModel):
    """Working copy summary shown by `codi-repo status`."""

    name: str
    exists: bool
    branch: str = ""
    clean: bool = True
    staged: int = 0
    modified: int = 0
    untracked: int = 0
    ahead: int = 0
    behind: int = 0
    error: str | None = None
