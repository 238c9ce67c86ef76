"""Git operations: branches, status, clone/fetch/pull/push."""

from codi_repo.services.git._run import GitRunnerError, classify_git_error, set_timeout
from codi_repo.services.git.branches import (
    branch_exists,
    checkout_branch,
    count_commits_ahead,
    create_branch,
    get_current_branch,
    has_commits_ahead,
    remote_branch_exists,
)
from codi_repo.services.git.push_pull import clone_repo, fetch_remote, pull_latest, push_branch
from codi_repo.services.git.status import get_repo_status

__all__ = [
    "GitRunnerError",
    "branch_exists",
    "checkout_branch",
    "classify_git_error",
    "clone_repo",
    "count_commits_ahead",
    "create_branch",
    "fetch_remote",
    "get_current_branch",
    "get_repo_status",
    "has_commits_ahead",
    "pull_latest",
    "push_branch",
    "remote_branch_exists",
    "set_timeout",
]
