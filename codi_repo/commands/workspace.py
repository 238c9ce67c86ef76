"""Workspace context shared by every command."""

import logging
from pathlib import Path

from codi_repo.config import AppConfig
from codi_repo.manifest import Manifest, get_all_repo_info, get_manifest_repo_info, load_manifest
from codi_repo.models import RepoInfo

LOG = logging.getLogger("codi_repo.commands.workspace")


class CommandError(Exception):
    """A command cannot proceed; the message says what the user should do."""

    pass


class Workspace:
    """Manifest, resolved repositories and config for one invocation."""

    def __init__(self, config: AppConfig, manifest: Manifest, root_dir: Path) -> None:
        self.config = config
        self.manifest = manifest
        self.root_dir = Path(root_dir)
        self.repos: list[RepoInfo] = get_all_repo_info(manifest, self.root_dir)
        self.manifest_repo: RepoInfo | None = get_manifest_repo_info(manifest, self.root_dir)

    @classmethod
    def load(cls, config: AppConfig, manifest_path: Path | None = None) -> "Workspace":
        manifest, root_dir = load_manifest(manifest_path)
        LOG.debug("Workspace root %s", root_dir)
        return cls(config, manifest, root_dir)

    @property
    def max_workers(self) -> int:
        return self.config.concurrency.max_workers

    @property
    def remote(self) -> str:
        return self.config.git.remote
