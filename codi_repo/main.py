"""codi-repo entry point.

Usage: codi-repo [--config PATH] [--manifest PATH] <command> ...

Commands: init, status, sync, checkout, pr create | status | sync | merge.
"""

import argparse
import json
import logging
import sys
from pathlib import Path

from codi_repo.adapters import ForgeError, GitHubAdapter
from codi_repo.commands.pr import create_prs, pr_merge, pr_status, pr_sync
from codi_repo.commands.repos import checkout_all, init_workspace, repo_status, sync_repos
from codi_repo.commands.workspace import CommandError, Workspace
from codi_repo.config import DEFAULT_CONFIG_PATH, AppConfig, ConfigError, load_config
from codi_repo.logging import CodiLogging
from codi_repo.manifest import MANIFEST_FILENAME, ManifestError, find_manifest_path
from codi_repo.models import LinkedPR, MergeMethod
from codi_repo.services import git
from codi_repo.services.branch_sync import BranchSyncError

LOG = logging.getLogger("codi_repo.main")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse CLI: global options, command and pr subcommand."""
    parser = argparse.ArgumentParser(
        prog="codi-repo",
        description="Linked pull requests across the repositories of a manifest",
    )
    parser.add_argument(
        "--config",
        "-c",
        type=Path,
        default=None,
        help=f"Path to YAML config file (default {DEFAULT_CONFIG_PATH} in the workspace)",
    )
    parser.add_argument("--manifest", "-m", type=Path, default=None, help="Path to codi-repos.yaml")
    parser.add_argument(
        "--check",
        action="store_true",
        help="Only load and validate config and manifest, then exit",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    sub = parser.add_subparsers(dest="command")

    init_p = sub.add_parser("init", help="Create a sample manifest or clone missing repos")
    init_p.add_argument("--clone", action="store_true", help="Clone repositories missing on disk")
    init_p.add_argument("--force", action="store_true", help="Overwrite the manifest with the sample")

    status_p = sub.add_parser("status", help="Show branch and working copy status of every repo")
    status_p.add_argument("--json", action="store_true", help="Print status as JSON")

    sync_p = sub.add_parser("sync", help="Pull every cloned repo")
    sync_p.add_argument("--fetch", action="store_true", help="Fetch only, do not pull")

    checkout_p = sub.add_parser("checkout", help="Checkout a branch in every repo")
    checkout_p.add_argument("branch")
    checkout_p.add_argument("-b", dest="create", action="store_true", help="Create the branch")

    pr_p = sub.add_parser("pr", help="Linked pull requests")
    pr_sub = pr_p.add_subparsers(dest="pr_command")
    create_p = pr_sub.add_parser("create", help="Create linked PRs for the current branch")
    create_p.add_argument("--title", "-t", default=None)
    create_p.add_argument("--body", "-b", default="")
    create_p.add_argument("--base", default=None, help="Base branch (default: each repo's default)")
    create_p.add_argument("--draft", action="store_true")
    create_p.add_argument("--push", action="store_true", help="Push branches that are not on the remote")
    for name, help_text in (("status", "Show readiness of linked PRs"), ("sync", "Refresh manifest PR body")):
        p = pr_sub.add_parser(name, help=help_text)
        p.add_argument("--number", "-n", type=int, default=None, help="Manifest PR number")
    merge_p = pr_sub.add_parser("merge", help="Merge all linked PRs, then the manifest PR")
    merge_p.add_argument("--number", "-n", type=int, default=None, help="Manifest PR number")
    merge_p.add_argument("--method", choices=[m.value for m in MergeMethod], default=None)
    merge_p.add_argument("--no-delete-branch", dest="delete_branch", action="store_false", default=None)

    args = parser.parse_args(argv)
    if not args.command and not args.check:
        parser.error("a command is required")
    if args.command == "pr" and not args.pr_command:
        parser.error("a pr subcommand is required (create, status, sync, merge)")
    return args


def _resolve_config_path(args: argparse.Namespace) -> Path | None:
    if args.config is not None:
        return args.config
    manifest_path = args.manifest or find_manifest_path()
    if manifest_path is None:
        return None
    return Path(manifest_path).parent / DEFAULT_CONFIG_PATH


def _forge(config: AppConfig) -> GitHubAdapter:
    return GitHubAdapter(config.github_token_resolved, api_url=config.github.api_url, timeout=config.github.timeout)


def _flag(value: bool) -> str:
    return "yes" if value else "no"


def _print_linked(prs: list[LinkedPR]) -> None:
    for pr in prs:
        print(
            f"  {pr.repo_name}#{pr.number} {pr.state.value:<6} approved={_flag(pr.approved)} "
            f"checks={_flag(pr.checks_pass)} mergeable={_flag(pr.mergeable)} {pr.url}"
        )


def _run_pr(args: argparse.Namespace, ws: Workspace) -> int:
    forge = _forge(ws.config)
    if args.pr_command == "create":
        result = create_prs(
            ws, forge, title=args.title, body=args.body, base=args.base, draft=args.draft, push=args.push
        )
        print(f"PRs for branch {result.branch}:")
        _print_linked(result.linked_prs)
        if result.anchor is not None:
            print(f"Manifest PR: #{result.anchor.number} {result.anchor.url}")
        for name in result.skipped:
            print(f"  skipped {name}")
        return 0

    if args.pr_command == "status":
        status = pr_status(ws, forge, number=args.number)
        if status.anchor is not None:
            a = status.anchor
            print(f"Manifest PR #{a.number} ({a.state.value}): {a.title}")
            print(f"Ready to merge: {_flag(a.ready_to_merge)}")
        elif status.from_cache:
            print(f"Manifest PR #{status.anchor_number} could not be read; showing cached linked PRs")
        else:
            print(f"No manifest PR for branch {status.branch}")
        _print_linked(status.linked_prs)
        return 0

    if args.pr_command == "sync":
        anchor = pr_sync(ws, forge, number=args.number)
        print(f"Updated manifest PR #{anchor.number} ({len(anchor.linked_prs)} linked PRs)")
        return 0

    method = MergeMethod(args.method) if args.method else None
    outcome = pr_merge(ws, forge, number=args.number, method=method, delete_branch=args.delete_branch)
    for m in outcome.merged_prs:
        print(f"  merged {m.repo_name}#{m.number}")
    if outcome.failed_pr is not None:
        f = outcome.failed_pr
        print(f"  failed {f.repo_name}#{f.number}: {f.error}")
    return 0 if outcome.success else 1


def run(args: argparse.Namespace, config: AppConfig) -> int:
    """Dispatch a parsed command; exceptions propagate to main."""
    if args.command == "init":
        manifest_path = args.manifest or Path.cwd() / MANIFEST_FILENAME
        ws = Workspace.load(config, manifest_path) if manifest_path.is_file() else None
        for r in init_workspace(Path.cwd(), ws, clone=args.clone, force=args.force):
            print(f"  {r.name}: {'cloned' if r.success else r.error}")
        return 0

    ws = Workspace.load(config, args.manifest)

    if args.command == "status":
        statuses = repo_status(ws)
        if args.json:
            print(json.dumps([s.model_dump(mode="json") for s in statuses], indent=2))
            return 0
        for s in statuses:
            if not s.exists:
                print(f"  {s.name}: not cloned")
                continue
            state = "clean" if s.clean else f"+{s.staged} ~{s.modified} ?{s.untracked}"
            print(f"  {s.name}: {s.branch} {state} ahead={s.ahead} behind={s.behind}")
        if len({s.branch for s in statuses if s.exists and not s.error}) > 1:
            print("  Repositories are on different branches")
        return 0

    if args.command in ("sync", "checkout"):
        if args.command == "sync":
            results = sync_repos(ws, fetch=args.fetch)
        else:
            results = checkout_all(ws, args.branch, create=args.create)
        for r in results:
            print(f"  {r.name}: {'ok' if r.success else r.error}")
        return 0 if all(r.success for r in results) else 1

    return _run_pr(args, ws)


def main(argv: list[str] | None = None) -> int:
    """Entry point: load config, set up logging, run the command."""
    args = parse_args(argv)
    try:
        config = load_config(_resolve_config_path(args))
    except ConfigError as e:
        logging.basicConfig(level=logging.INFO)
        LOG.error("%s", e)
        return 1
    CodiLogging(config.logging, verbose=args.verbose).setup()
    git.set_timeout(config.git.timeout)

    if args.check:
        try:
            ws = Workspace.load(config, args.manifest)
        except ManifestError as e:
            LOG.error("%s", e)
            return 1
        print("Config OK:", ws.root_dir, ", ".join(r.name for r in ws.repos))
        return 0

    try:
        return run(args, config)
    except KeyboardInterrupt:
        return 0
    except (CommandError, BranchSyncError, ManifestError, ConfigError, git.GitRunnerError) as e:
        LOG.error("%s", e)
        return 1
    except ForgeError as e:
        LOG.error("GitHub request failed: %s", e)
        return 1


if __name__ == "__main__":
    sys.exit(main())
