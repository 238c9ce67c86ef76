"""Forge adapters."""

from codi_repo.adapters.base import ForgeAdapter, ForgeError
from codi_repo.adapters.github import GitHubAdapter

__all__ = ["ForgeAdapter", "ForgeError", "GitHubAdapter"]
