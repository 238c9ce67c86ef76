"""Persisted workspace state (.codi-repo/state.json)."""

from codi_repo.services.store.state_store import (
    STATE_DIR,
    get_anchor_pr_for_branch,
    get_linked_prs_from_state,
    link_branch_to_anchor_pr,
    load_state,
    save_linked_prs,
    save_state,
    state_path,
)

__all__ = [
    "STATE_DIR",
    "get_anchor_pr_for_branch",
    "get_linked_prs_from_state",
    "link_branch_to_anchor_pr",
    "load_state",
    "save_linked_prs",
    "save_state",
    "state_path",
]
