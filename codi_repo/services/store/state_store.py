"""Workspace state in .codi-repo/state.json.

A single JSON document holding branch -> anchor PR number and anchor PR
number -> linked PRs. It is a display cache: the forge stays authoritative
for every merge decision. Loading never fails; saving rewrites the whole
document.
"""

import json
import logging
import os
import tempfile
from pathlib import Path

from pydantic import ValidationError

from codi_repo.models import LinkedPR, StateFile

STATE_DIR = ".codi-repo"
STATE_FILENAME = "state.json"

LOG = logging.getLogger("codi_repo.services.store.state_store")


def state_path(root_dir: Path) -> Path:
    return Path(root_dir) / STATE_DIR / STATE_FILENAME


def load_state(root_dir: Path) -> StateFile:
    """Load state; empty StateFile when missing, unreadable or invalid."""
    path = state_path(root_dir)
    if not path.is_file():
        return StateFile()
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        if not isinstance(data, dict):
            raise ValueError("state document is not an object")
        return StateFile.model_validate(data)
    except (OSError, ValueError, ValidationError) as e:
        LOG.warning("Ignoring unreadable state file %s: %s", path, e)
        return StateFile()


def save_state(root_dir: Path, state: StateFile) -> Path:
    """Overwrite state.json with state. Creates .codi-repo/ if needed.

    Writes a sibling temp file and renames it over the target so readers
    never see a half-written document.
    """
    path = state_path(root_dir)
    path.parent.mkdir(parents=True, exist_ok=True)
    payload = state.model_dump(mode="json", by_alias=True, exclude_none=True)
    raw = json.dumps(payload, indent=2) + "\n"
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=".state-", suffix=".json")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            fh.write(raw)
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise
    LOG.debug("Saved state to %s", path)
    return path


def link_branch_to_anchor_pr(root_dir: Path, branch_name: str, anchor_number: int) -> None:
    """Record branch -> anchor PR number (NO_ANCHOR_PR when there is none)."""
    state = load_state(root_dir)
    state.branch_to_pr[branch_name] = anchor_number
    state.current_manifest_pr = anchor_number
    save_state(root_dir, state)
    LOG.info("Branch %s -> manifest PR #%s", branch_name, anchor_number)


def save_linked_prs(root_dir: Path, anchor_number: int, linked_prs: list[LinkedPR]) -> None:
    """Replace the cached linked PRs of an anchor PR."""
    state = load_state(root_dir)
    state.pr_links[str(anchor_number)] = list(linked_prs)
    save_state(root_dir, state)


def get_anchor_pr_for_branch(root_dir: Path, branch_name: str) -> int | None:
    return load_state(root_dir).branch_to_pr.get(branch_name)


def get_linked_prs_from_state(root_dir: Path, anchor_number: int) -> list[LinkedPR] | None:
    return load_state(root_dir).pr_links.get(str(anchor_number))
