"""Workspace manifest (codi-repos.yaml) loading and repository resolution.

The manifest maps repository names to a clone URL, a path relative to the
manifest directory and a default branch. It is read-only for every command
except `init`.
"""

import logging
import re
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, ValidationError

from codi_repo.models import MANIFEST_REPO_NAME, RepoInfo

MANIFEST_FILENAME = "codi-repos.yaml"

LOG = logging.getLogger("codi_repo.manifest")

_SSH_URL_RE = re.compile(r"^git@github\.com:([^/]+)/(.+?)(?:\.git)?$")
_HTTPS_URL_RE = re.compile(r"^https?://github\.com/([^/]+)/(.+?)(?:\.git)?/?$")


class ManifestError(Exception):
    """Raised when the manifest is missing or invalid."""

    pass


class RepoConfig(BaseModel):
    url: str
    path: str
    default_branch: str = "main"


class ManifestRepoConfig(BaseModel):
    """The workspace-definition repository cloned at the manifest root."""

    url: str
    default_branch: str = "main"


class ManifestSettings(BaseModel):
    pr_prefix: str = "[cross-repo]"
    merge_strategy: str = "all-or-nothing"
    manifest_repo: ManifestRepoConfig | None = None


class Manifest(BaseModel):
    version: int = 1
    repos: dict[str, RepoConfig] = Field(default_factory=dict)
    settings: ManifestSettings = Field(default_factory=ManifestSettings)


def find_manifest_path(start_dir: Path | None = None) -> Path | None:
    """Walk up from start_dir (default cwd) looking for codi-repos.yaml."""
    current = Path(start_dir or Path.cwd()).resolve()
    for directory in (current, *current.parents):
        candidate = directory / MANIFEST_FILENAME
        if candidate.is_file():
            return candidate
    return None


def load_manifest(manifest_path: Path | None = None) -> tuple[Manifest, Path]:
    """Parse and validate the manifest.

    Returns:
        (manifest, root_dir) where root_dir is the manifest's directory.

    Raises:
        ManifestError: If the file is missing, unreadable or invalid.
    """
    path = manifest_path or find_manifest_path()
    if path is None or not Path(path).is_file():
        raise ManifestError(
            f"Manifest file not found. Run 'codi-repo init' first or create {MANIFEST_FILENAME}"
        )
    path = Path(path)
    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except (OSError, yaml.YAMLError) as e:
        raise ManifestError(f"Cannot read manifest {path}: {e}") from e
    if not isinstance(raw, dict):
        raise ManifestError(f"Manifest {path} must contain a mapping")

    repos = raw.get("repos") or {}
    if not repos:
        raise ManifestError("Manifest must define at least one repository")
    for name, repo in repos.items():
        if name == MANIFEST_REPO_NAME:
            raise ManifestError(
                f"Repository name '{MANIFEST_REPO_NAME}' is reserved for the manifest repository; rename it"
            )
        if not isinstance(repo, dict) or not repo.get("url"):
            raise ManifestError(f"Repository '{name}' is missing 'url'")
        if not repo.get("path"):
            raise ManifestError(f"Repository '{name}' is missing 'path'")

    try:
        manifest = Manifest.model_validate(raw)
    except ValidationError as e:
        raise ManifestError(f"Invalid manifest {path}: {e}") from e
    LOG.debug("Loaded manifest %s with %d repos", path, len(manifest.repos))
    return manifest, path.parent.resolve()


def parse_github_url(url: str) -> tuple[str, str]:
    """(owner, repo) from an SSH or HTTPS GitHub URL."""
    for pattern in (_SSH_URL_RE, _HTTPS_URL_RE):
        match = pattern.match(url.strip())
        if match:
            return match.group(1), match.group(2)
    raise ManifestError(f"Unable to parse GitHub URL: {url}")


def get_repo_info(name: str, config: RepoConfig, root_dir: Path) -> RepoInfo:
    owner, repo = parse_github_url(config.url)
    return RepoInfo(
        name=name,
        url=config.url,
        path=config.path,
        local_path=(Path(root_dir) / config.path).resolve(),
        owner=owner,
        repo=repo,
        default_branch=config.default_branch,
    )


def get_all_repo_info(manifest: Manifest, root_dir: Path) -> list[RepoInfo]:
    """RepoInfo for every manifest repository, in manifest order."""
    return [get_repo_info(name, config, root_dir) for name, config in manifest.repos.items()]


def get_manifest_repo_info(manifest: Manifest, root_dir: Path) -> RepoInfo | None:
    """RepoInfo for the manifest repository itself, if configured."""
    cfg = manifest.settings.manifest_repo
    if cfg is None:
        return None
    owner, repo = parse_github_url(cfg.url)
    return RepoInfo(
        name=MANIFEST_REPO_NAME,
        url=cfg.url,
        path=".",
        local_path=Path(root_dir).resolve(),
        owner=owner,
        repo=repo,
        default_branch=cfg.default_branch,
    )


def generate_sample_manifest() -> Manifest:
    return Manifest(
        version=1,
        repos={
            "public": RepoConfig(
                url="git@github.com:your-org/your-repo.git",
                path="./public",
                default_branch="main",
            ),
            "private": RepoConfig(
                url="git@github.com:your-org/your-private-repo.git",
                path="./private",
                default_branch="main",
            ),
        },
        settings=ManifestSettings(pr_prefix="[cross-repo]", merge_strategy="all-or-nothing"),
    )


def create_manifest(root_dir: Path, manifest: Manifest) -> Path:
    """Write manifest to root_dir/codi-repos.yaml."""
    path = Path(root_dir) / MANIFEST_FILENAME
    payload = manifest.model_dump(mode="json", exclude_none=True)
    raw = yaml.dump(
        payload,
        default_flow_style=False,
        allow_unicode=True,
        sort_keys=False,
        width=1000,
    )
    path.write_text(raw, encoding="utf-8")
    LOG.info("Wrote manifest %s", path)
    return path
