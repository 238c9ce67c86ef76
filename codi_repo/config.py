"""Configuration loading from YAML and environment.

Secrets (tokens) are taken from environment variables, from files
(Docker secrets) or from the gh CLI. Never put real tokens in config files
committed to the workspace.
"""

import os
import subprocess
from pathlib import Path
from typing import Any

import yaml
from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_CONFIG_PATH = Path(".codi-repo") / "config.yaml"


class ConfigError(Exception):
    """Raised when configuration is missing or cannot be resolved."""

    pass


def _read_secret(env_key: str, file_env_key: str) -> str | None:
    """Read secret from env var or from file path in env (e.g. Docker
    secrets)."""
    value = _current_env.get(env_key)
    if value:
        return value.strip()
    file_path = _current_env.get(file_env_key)
    if file_path:
        return Path(file_path).read_text().strip()
    return None


def _gh_cli_token() -> str | None:
    """Ask the gh CLI for its token; None when gh is missing or logged out."""
    try:
        result = subprocess.run(
            ["gh", "auth", "token"],
            check=True,
            capture_output=True,
            text=True,
            timeout=10,
        )
    except (OSError, subprocess.SubprocessError):
        return None
    token = result.stdout.strip()
    return token or None


# Injected by load_config so validators can read env/file
_current_env: dict[str, str] = {}


class GitHubConfig(BaseSettings):
    """GitHub API settings."""

    model_config = SettingsConfigDict(env_prefix="GITHUB_", extra="ignore")

    token: str | None = Field(default=None, description="PAT or app token; use env or secret file")
    api_url: str = Field(default="https://api.github.com", description="API base URL")
    timeout: float = Field(default=30.0, gt=0, description="Seconds before an API call is abandoned")


class GitConfig(BaseSettings):
    """Local git settings."""

    model_config = SettingsConfigDict(env_prefix="GIT_", extra="ignore")

    remote: str = Field(default="origin", description="Remote used for push and remote branch checks")
    timeout: int = Field(default=60, ge=1, description="Seconds before a git command is abandoned")


class MergeConfig(BaseSettings):
    """Defaults for `pr merge`."""

    model_config = SettingsConfigDict(env_prefix="MERGE_", extra="ignore")

    method: str = Field(default="merge", pattern="^(merge|squash|rebase)$", description="merge, squash or rebase")
    delete_branch: bool = Field(default=True, description="Delete the head branch after a successful merge")


class ConcurrencyConfig(BaseSettings):
    """Fan-out settings for read-only queries."""

    model_config = SettingsConfigDict(env_prefix="CONCURRENCY_", extra="ignore")

    max_workers: int = Field(default=8, ge=1, le=64, description="Parallel repo/PR lookups")


class LoggingConfig(BaseSettings):
    """Logging settings."""

    model_config = SettingsConfigDict(env_prefix="LOGGING_", extra="ignore")

    level: str = Field(default="INFO", description="Log level")
    format: str = Field(default="%(levelname)s %(name)s: %(message)s", description="Log record format")


class AppConfig(BaseSettings):
    """Root application config from YAML + env."""

    model_config = SettingsConfigDict(extra="ignore")

    github: GitHubConfig = Field(default_factory=GitHubConfig)
    git: GitConfig = Field(default_factory=GitConfig)
    merge: MergeConfig = Field(default_factory=MergeConfig)
    concurrency: ConcurrencyConfig = Field(default_factory=ConcurrencyConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @property
    def github_token_resolved(self) -> str:
        """Resolve GitHub token from config, env, secret file or gh CLI.

        Raises:
            ConfigError: If no source yields a token.
        """
        t = self.github.token
        if t and not t.startswith("${"):
            return t
        token = _read_secret("GITHUB_TOKEN", "GITHUB_TOKEN_FILE") or _gh_cli_token()
        if not token:
            raise ConfigError(
                'GitHub token not found. Set GITHUB_TOKEN environment variable or run "gh auth login"'
            )
        return token


def _substitute_env(value: Any) -> Any:
    """Replace ${VAR} and $VAR in strings with os.environ."""
    if isinstance(value, str):
        if value.startswith("${") and value.endswith("}"):
            key = value[2:-1].strip()
            return _current_env.get(key, value)
        if value.startswith("$") and not value.startswith("${"):
            key = value[1:].strip()
            return _current_env.get(key, value)
        return value
    if isinstance(value, dict):
        return {k: _substitute_env(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_substitute_env(v) for v in value]
    return value


def load_config(config_path: Path | None = None) -> AppConfig:
    """Load config from YAML file and environment.

    A missing file is not an error: defaults plus env overrides apply.
    Secrets: GITHUB_TOKEN or GITHUB_TOKEN_FILE.
    """
    global _current_env

    _current_env = dict(os.environ)

    path = config_path or DEFAULT_CONFIG_PATH
    if not path.is_file():
        return AppConfig()

    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid config file {path}: {e}") from e
    if not isinstance(raw, dict):
        raise ConfigError(f"Config file {path} must contain a mapping")
    raw = _substitute_env(raw)

    try:
        return AppConfig(
            github=GitHubConfig(**(raw.get("github") or {})),
            git=GitConfig(**(raw.get("git") or {})),
            merge=MergeConfig(**(raw.get("merge") or {})),
            concurrency=ConcurrencyConfig(**(raw.get("concurrency") or {})),
            logging=LoggingConfig(**(raw.get("logging") or {})),
        )
    except ValidationError as e:
        raise ConfigError(f"Invalid config file {path}: {e}") from e
