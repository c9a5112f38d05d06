"""Command-line front door for ketra.

Parses subcommands, builds one ``Engine`` from the resolved configuration,
and prints results. Any ``KetraError`` exits with a one-line message.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from collections.abc import Sequence

from .background import BridgedScanScheduler
from .config import load_engine_config
from .engine import Engine
from .environment import environment_kind_for_path
from .errors import KetraError
from .log_config import setup_logging
from .render import (
    colorize_diff,
    format_commit_rows,
    format_git_status_badges,
    format_project_table,
    sanitize_terminal_text,
)
from .templates import TEMPLATE_NAMES
from .types import EnvironmentKind, Project


def _positive_int(value: str) -> int:
    """argparse type for positive integer values."""
    try:
        parsed = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid integer value: {value!r}") from exc
    if parsed <= 0:
        raise argparse.ArgumentTypeError("value must be >= 1")
    return parsed


def _environment_kind(value: str) -> EnvironmentKind:
    try:
        return EnvironmentKind.parse(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(str(exc)) from exc


def _add_env_option(parser: argparse.ArgumentParser, required: bool = False) -> None:
    parser.add_argument(
        "--env",
        type=_environment_kind,
        required=required,
        default=None,
        help="native or bridged (aliases: windows, wsl). Inferred from the path when omitted.",
    )


def _add_path_command(subparsers, name: str, help_text: str) -> argparse.ArgumentParser:
    parser = subparsers.add_parser(name, help=help_text)
    parser.add_argument("path", help="Project directory.")
    _add_env_option(parser)
    return parser


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ketra",
        description="Discover projects across native and bridged environments and run git on them.",
    )
    parser.add_argument("-v", "--verbose", action="count", default=0, help="Log to stderr (-vv for debug).")
    subparsers = parser.add_subparsers(dest="command", required=True)

    scan = subparsers.add_parser("scan", help="List projects with git status.")
    mode = scan.add_mutually_exclusive_group()
    mode.add_argument("--fast", action="store_true", help="Native projects only, without git status.")
    mode.add_argument("--bridged-only", action="store_true", help="Bridged projects only, without git status.")
    mode.add_argument(
        "--progressive",
        action="store_true",
        help="Print native projects first, then bridged ones when the bridge answers.",
    )
    scan.add_argument("--json", action="store_true", help="Emit JSON instead of a table.")
    scan.add_argument("--no-color", action="store_true", help="Disable color output even on TTY.")

    status = subparsers.add_parser("status", help="Show git status for a path.")
    status.add_argument("path")

    _add_path_command(subparsers, "pull", "Pull from the tracked remote.")
    push = _add_path_command(subparsers, "push", "Stage, commit, and push.")
    push.add_argument("-m", "--message", required=True, help="Commit message.")

    clone = subparsers.add_parser("clone", help="Clone a URL into the workspace.")
    clone.add_argument("url")
    _add_env_option(clone, required=True)

    _add_path_command(subparsers, "branches", "List local and remote branches.")
    switch = _add_path_command(subparsers, "switch", "Switch to an existing branch.")
    switch.add_argument("branch")
    create_branch = _add_path_command(subparsers, "create-branch", "Create and switch to a branch.")
    create_branch.add_argument("name")

    log = _add_path_command(subparsers, "log", "Show recent commits.")
    log.add_argument("-n", "--limit", type=_positive_int, default=20, help="Number of commits (default: 20).")

    diff = _add_path_command(subparsers, "diff", "Show unstaged changes.")
    diff.add_argument("--no-color", action="store_true", help="Disable color output even on TTY.")
    diff.add_argument("--style", default="monokai", help="Pygments style name.")

    _add_path_command(subparsers, "stash", "Stash local changes.")
    _add_path_command(subparsers, "stash-pop", "Restore the latest stash.")

    delete = subparsers.add_parser("delete", help="Delete a project folder and its hosting repository.")
    delete.add_argument("path")
    delete.add_argument("--name", default=None, help="Hosting repository name (default: folder name).")

    exists = subparsers.add_parser("exists", help="Check whether a project folder exists.")
    exists.add_argument("name")
    _add_env_option(exists, required=True)

    new = subparsers.add_parser("new", help="Create a project from a template.")
    new.add_argument("name")
    _add_env_option(new, required=True)
    new.add_argument("--template", choices=TEMPLATE_NAMES, default="empty")
    new.add_argument("--create-repo", action="store_true", help="Create a hosting repository and push.")

    subparsers.add_parser("auth", help="Show the hosting account for the current token.")
    return parser


def _resolve_env(engine: Engine, args: argparse.Namespace) -> EnvironmentKind:
    if args.env is not None:
        return args.env
    return environment_kind_for_path(args.path, engine.config)


def _print_projects(projects: Sequence[Project], as_json: bool, colorize: bool) -> None:
    if as_json:
        sys.stdout.write(json.dumps([project.to_dict() for project in projects], indent=2) + "\n")
        return
    sys.stdout.write(format_project_table(projects, colorize))


def _run_scan(engine: Engine, args: argparse.Namespace) -> None:
    colorize = sys.stdout.isatty() and not args.no_color
    if args.fast:
        _print_projects(engine.discover_fast(), args.json, colorize)
        return
    if args.bridged_only:
        _print_projects(engine.discover_bridged_only(), args.json, colorize)
        return
    if not args.progressive:
        _print_projects(engine.discover_full(), args.json, colorize)
        return

    scheduler = BridgedScanScheduler(engine.discover_bridged_only)
    request_id = scheduler.schedule()
    native = engine.discover_fast()
    _print_projects(native, args.json, colorize)
    sys.stdout.flush()
    result = scheduler.wait_for_result(request_id, engine.config.probe_timeout_seconds * 2)
    if result is None:
        logging.getLogger(__name__).warning("bridged scan did not finish in time")
        return
    if result.error is not None:
        raise result.error
    _print_projects(result.projects, args.json, colorize)


def _dispatch(engine: Engine, args: argparse.Namespace) -> None:
    command = args.command
    if command == "scan":
        _run_scan(engine, args)
    elif command == "status":
        status = engine.get_status(args.path)
        if status is None:
            sys.stdout.write("not a git repository\n")
        else:
            sys.stdout.write(format_git_status_badges(status, sys.stdout.isatty()) + "\n")
    elif command == "pull":
        _write_message(engine.pull(args.path, _resolve_env(engine, args)))
    elif command == "push":
        _write_message(engine.push(args.path, _resolve_env(engine, args), args.message))
    elif command == "clone":
        _write_message(engine.clone(args.url, args.env))
    elif command == "branches":
        for branch in engine.list_branches(args.path, _resolve_env(engine, args)):
            _write_message(branch)
    elif command == "switch":
        _write_message(engine.switch_branch(args.path, _resolve_env(engine, args), args.branch))
    elif command == "create-branch":
        _write_message(engine.create_branch(args.path, _resolve_env(engine, args), args.name))
    elif command == "log":
        commits = engine.commit_history(args.path, _resolve_env(engine, args), args.limit)
        sys.stdout.write(format_commit_rows(commits))
    elif command == "diff":
        text = engine.diff(args.path, _resolve_env(engine, args))
        if sys.stdout.isatty() and not args.no_color:
            sys.stdout.write(colorize_diff(text, args.style))
        else:
            sys.stdout.write(sanitize_terminal_text(text))
    elif command == "stash":
        _write_message(engine.stash(args.path, _resolve_env(engine, args)))
    elif command == "stash-pop":
        _write_message(engine.stash_pop(args.path, _resolve_env(engine, args)))
    elif command == "delete":
        environment = engine.environment_for_path(args.path)
        name = args.name or environment.leaf_name(args.path)
        engine.delete_project(args.path, name)
        _write_message(f"Deleted {args.path}")
    elif command == "exists":
        found = engine.project_exists(args.name, args.env)
        _write_message("yes" if found else "no")
        if not found:
            raise SystemExit(1)
    elif command == "new":
        _write_message(engine.create_project(args.name, args.env, args.template, args.create_repo))
    elif command == "auth":
        _write_message(f"Authenticated as {engine.check_hosting_auth()}")


def _write_message(message: str) -> None:
    sys.stdout.write(sanitize_terminal_text(message.rstrip("\n")) + "\n")


def main(argv: Sequence[str] | None = None) -> None:
    """Parse CLI arguments and run one ketra command.

    ``argv`` is primarily for tests; when omitted ``sys.argv`` is used.
    """
    args = build_parser().parse_args(argv)
    if args.verbose:
        setup_logging(logging.DEBUG if args.verbose > 1 else logging.INFO)
    else:
        setup_logging()

    try:
        engine = Engine(load_engine_config())
        _dispatch(engine, args)
    except KetraError as exc:
        raise SystemExit(f"ketra: {exc}") from exc


if __name__ == "__main__":
    main()
