"""Internal helpers: run git commands, GitRunnerError."""

import logging
import subprocess
from pathlib import Path

DEFAULT_TIMEOUT = 60

_timeout = DEFAULT_TIMEOUT


class GitRunnerError(Exception):
    """Raised when a git command fails."""

    pass


def set_timeout(seconds: int) -> None:
    """Set the per-command timeout used by every later git call."""
    global _timeout
    _timeout = seconds


def _run_git(args: list[str], cwd: Path, log: logging.Logger | None = None) -> str:
    """Run git command and return stdout without trailing whitespace; raise
    GitRunnerError on non-zero exit or timeout."""
    cmd = ["git"] + args
    try:
        result = subprocess.run(cmd, cwd=cwd, check=True, capture_output=True, text=True, timeout=_timeout)
    except subprocess.CalledProcessError as e:
        err = (e.stderr or e.stdout or "").strip()
        if log:
            log.warning("Git %s failed: %s", args, err)
        raise GitRunnerError(f"git {' '.join(args)}: {err}") from e
    except subprocess.TimeoutExpired as e:
        raise GitRunnerError(f"git {' '.join(args)}: timed out after {_timeout}s") from e
    except FileNotFoundError as e:
        raise GitRunnerError("git not found") from e
    return (result.stdout or "").rstrip()


def classify_git_error(message: str) -> str:
    """Short reason for well-known local failures; the message otherwise."""
    lowered = message.lower()
    if "uncommitted changes" in lowered or "would be overwritten" in lowered:
        return "uncommitted changes"
    if "diverged" in lowered or "not possible to fast-forward" in lowered:
        return "diverged"
    if "not a git repository" in lowered:
        return "not a git repository"
    return message
