"""Tests for codi_repo.commands.repos (init, status, sync, checkout)."""

from pathlib import Path
from unittest.mock import patch

import pytest

from codi_repo.commands.repos import checkout_all, ensure_state_dir, init_workspace, repo_status, sync_repos
from codi_repo.commands.workspace import CommandError, Workspace
from codi_repo.config import AppConfig
from codi_repo.manifest import MANIFEST_FILENAME, load_manifest
from codi_repo.models import RepoStatus
from codi_repo.services.git import GitRunnerError

MANIFEST_YAML = """\
repos:
  A:
    url: git@github.com:acme/A.git
    path: ./A
  B:
    url: git@github.com:acme/B.git
    path: ./B
"""


@pytest.fixture
def ws(tmp_path: Path) -> Workspace:
    (tmp_path / MANIFEST_FILENAME).write_text(MANIFEST_YAML, encoding="utf-8")
    return Workspace.load(AppConfig(), tmp_path / MANIFEST_FILENAME)


class TestInit:
    def test_writes_sample_manifest(self, tmp_path: Path) -> None:
        assert init_workspace(tmp_path, None) == []
        manifest, _ = load_manifest(tmp_path / MANIFEST_FILENAME)
        assert "public" in manifest.repos

    def test_clone_missing_repos(self, ws: Workspace) -> None:
        (ws.root_dir / "A").mkdir()
        with patch("codi_repo.commands.repos.clone_repo") as clone:
            results = init_workspace(ws.root_dir, ws, clone=True)
        assert [(r.name, r.success) for r in results] == [("B", True)]
        assert clone.call_args[0][0] == "git@github.com:acme/B.git"
        assert (ws.root_dir / ".codi-repo").is_dir()

    def test_clone_failure_is_reported(self, ws: Workspace) -> None:
        with patch("codi_repo.commands.repos.clone_repo", side_effect=GitRunnerError("denied")):
            results = init_workspace(ws.root_dir, ws, clone=True)
        assert [(r.name, r.success, r.error) for r in results] == [("A", False, "denied"), ("B", False, "denied")]

    def test_gitignore_entry_added_once(self, tmp_path: Path) -> None:
        (tmp_path / ".gitignore").write_text("node_modules/", encoding="utf-8")
        ensure_state_dir(tmp_path)
        ensure_state_dir(tmp_path)
        content = (tmp_path / ".gitignore").read_text(encoding="utf-8")
        assert content.startswith("node_modules/\n")
        assert content.count(".codi-repo/") == 1


class TestStatusAndSync:
    def test_repo_status_per_repo(self, ws: Workspace) -> None:
        def fake_status(repo, log=None):
            if repo.name == "B":
                raise RuntimeError("boom")
            return RepoStatus(name=repo.name, exists=True, branch="main")

        with patch("codi_repo.commands.repos.get_repo_status", side_effect=fake_status):
            statuses = repo_status(ws)
        assert statuses[0].branch == "main"
        assert statuses[1].error == "boom"

    def test_sync_skips_problem_repos(self, ws: Workspace) -> None:
        (ws.root_dir / "A").mkdir()
        (ws.root_dir / "B").mkdir()

        def pull(repo_dir, remote="origin", log=None):
            if Path(repo_dir).name == "B":
                raise GitRunnerError("fatal: Not possible to fast-forward, aborting.")

        with patch("codi_repo.commands.repos.get_current_branch", return_value="main"), patch(
            "codi_repo.commands.repos.pull_latest", side_effect=pull
        ):
            results = sync_repos(ws)
        assert [(r.name, r.success, r.error) for r in results] == [("A", True, None), ("B", False, "diverged")]

    def test_sync_reports_uncloned(self, ws: Workspace) -> None:
        results = sync_repos(ws)
        assert all(r.error == "not cloned" for r in results)


class TestCheckout:
    def test_nothing_cloned(self, ws: Workspace) -> None:
        with pytest.raises(CommandError, match="init --clone"):
            checkout_all(ws, "feature/x")

    def test_missing_branch_refused(self, ws: Workspace) -> None:
        (ws.root_dir / "A").mkdir()
        (ws.root_dir / "B").mkdir()
        with patch(
            "codi_repo.services.branch_sync.branch_exists",
            side_effect=lambda b, repo_dir: Path(repo_dir).name == "A",
        ), patch("codi_repo.commands.repos.checkout_branch") as checkout:
            with pytest.raises(CommandError, match="doesn't exist in 1 repos: B"):
                checkout_all(ws, "feature/x")
        checkout.assert_not_called()

    def test_create_branch_everywhere(self, ws: Workspace) -> None:
        (ws.root_dir / "A").mkdir()
        (ws.root_dir / "B").mkdir()
        with patch("codi_repo.commands.repos.create_branch") as create:
            results = checkout_all(ws, "feature/x", create=True)
        assert all(r.success for r in results)
        assert create.call_count == 2
