"""Logical git operations bound to an environment.

Each ``GitOperation`` maps to one git argument vector. ``GitCommandAdapter``
runs them through an ``Environment``, parses success output, and passes
failures through the error classifier.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable, Sequence
from enum import Enum
from typing import Protocol

from .classify import ErrorKind, raise_for_outcome
from .config import EngineConfig
from .environment import Environment
from .errors import InvalidArgument
from .types import CommandOutcome, CommitRecord

logger = logging.getLogger(__name__)

LOG_FIELD_SEPARATOR = "\x1f"
LOG_FORMAT = "%H%x1f%an%x1f%ae%x1f%at%x1f%s"
LOG_FIELD_COUNT = 5
REMOTE_NAME = "origin"

_REMOTE_PREFIX_RE = re.compile(r"^remotes/[^/]+/")


class GitOperation(str, Enum):
    CURRENT_BRANCH = "current_branch"
    STATUS = "status"
    AHEAD_BEHIND = "ahead_behind"
    LOG = "log"
    DIFF = "diff"
    PULL = "pull"
    PUSH = "push"
    PUSH_SET_UPSTREAM = "push_set_upstream"
    CLONE = "clone"
    BRANCH_LIST = "branch_list"
    SWITCH_BRANCH = "switch_branch"
    CREATE_BRANCH = "create_branch"
    STASH = "stash"
    STASH_POP = "stash_pop"
    REMOTE_URL = "remote_url"
    REMOTE_ADD = "remote_add"
    RENAME_BRANCH = "rename_branch"
    ADD_ALL = "add_all"
    COMMIT = "commit"
    INIT = "init"


def _option_safe(value: str, what: str) -> str:
    """Reject values git would parse as an option."""
    if not value or not value.strip():
        raise InvalidArgument(f"{what} must not be empty")
    if value.startswith("-"):
        raise InvalidArgument(f"{what} must not start with '-': {value!r}")
    return value


def _positive_limit(value: str) -> str:
    try:
        limit = int(value)
    except (TypeError, ValueError) as exc:
        raise InvalidArgument(f"log limit must be an integer: {value!r}") from exc
    if limit < 1:
        raise InvalidArgument("log limit must be >= 1")
    return str(limit)


_OPERATION_ARGS: dict[GitOperation, Callable[..., list[str]]] = {
    GitOperation.CURRENT_BRANCH: lambda: ["branch", "--show-current"],
    GitOperation.STATUS: lambda: ["status", "--porcelain"],
    GitOperation.AHEAD_BEHIND: lambda: ["rev-list", "--left-right", "--count", "HEAD...@{u}"],
    GitOperation.LOG: lambda limit: ["log", f"--max-count={_positive_limit(limit)}", f"--pretty=format:{LOG_FORMAT}"],
    GitOperation.DIFF: lambda: ["diff", "HEAD"],
    GitOperation.PULL: lambda: ["pull"],
    GitOperation.PUSH: lambda: ["push"],
    GitOperation.PUSH_SET_UPSTREAM: lambda branch: ["push", "-u", REMOTE_NAME, _option_safe(branch, "branch name")],
    GitOperation.CLONE: lambda url: ["clone", "--", _option_safe(url, "repository URL")],
    GitOperation.BRANCH_LIST: lambda: ["branch", "--all"],
    GitOperation.SWITCH_BRANCH: lambda branch: ["checkout", _option_safe(branch, "branch name")],
    GitOperation.CREATE_BRANCH: lambda branch: ["checkout", "-b", _option_safe(branch, "branch name")],
    GitOperation.STASH: lambda: ["stash"],
    GitOperation.STASH_POP: lambda: ["stash", "pop"],
    GitOperation.REMOTE_URL: lambda: ["remote", "get-url", REMOTE_NAME],
    GitOperation.REMOTE_ADD: lambda url: ["remote", "add", REMOTE_NAME, _option_safe(url, "remote URL")],
    GitOperation.RENAME_BRANCH: lambda branch: ["branch", "-M", _option_safe(branch, "branch name")],
    GitOperation.ADD_ALL: lambda: ["add", "."],
    GitOperation.COMMIT: lambda message: ["commit", "-m", message],
    GitOperation.INIT: lambda branch: ["init", "-b", _option_safe(branch, "branch name")],
}


def git_args(operation: GitOperation, *params: str) -> list[str]:
    """Return the git argument vector (without ``git``) for ``operation``."""
    try:
        builder = _OPERATION_ARGS[operation]
    except KeyError as exc:
        raise InvalidArgument(f"unsupported git operation: {operation!r}") from exc
    try:
        return builder(*params)
    except TypeError as exc:
        raise InvalidArgument(f"wrong parameters for {operation.value}: {params!r}") from exc


def run_operation(
    environment: Environment,
    path: str,
    operation: GitOperation,
    *params: str,
    timeout_seconds: float | None = None,
) -> CommandOutcome:
    """Build and run one logical operation in ``path``; returns the raw outcome."""
    return environment.git(path, git_args(operation, *params), timeout_seconds)


def parse_commit_log(output: str) -> list[CommitRecord]:
    """Parse delimiter-separated log rows; malformed rows are dropped."""
    commits: list[CommitRecord] = []
    for line in output.splitlines():
        parts = line.split(LOG_FIELD_SEPARATOR, LOG_FIELD_COUNT - 1)
        if len(parts) != LOG_FIELD_COUNT:
            continue
        commit_hash, author, email, raw_timestamp, message = parts
        try:
            timestamp = int(raw_timestamp.strip())
        except ValueError:
            timestamp = 0
        commits.append(
            CommitRecord(
                hash=commit_hash,
                author=author,
                email=email,
                timestamp=timestamp,
                message=message,
            )
        )
    return commits


def parse_branch_list(output: str) -> list[str]:
    """Normalize ``git branch --all`` output into unique branch names."""
    branches: list[str] = []
    seen: set[str] = set()
    for raw_line in output.splitlines():
        line = raw_line.strip()
        if line.startswith("* ") or line.startswith("+ "):
            line = line[2:].strip()
        if not line or "HEAD ->" in line or line.startswith("("):
            continue
        name = _REMOTE_PREFIX_RE.sub("", line)
        if not name or name in seen:
            continue
        seen.add(name)
        branches.append(name)
    return branches


def parse_ahead_behind(output: str) -> tuple[int, int]:
    """Parse ``rev-list --left-right --count`` output; ``(0, 0)`` when unusable."""
    parts = output.split()
    if len(parts) < 2:
        return 0, 0
    try:
        return max(0, int(parts[0])), max(0, int(parts[1]))
    except ValueError:
        return 0, 0


def count_status_lines(output: str) -> int:
    return sum(1 for line in output.splitlines() if line.strip())


def repository_name_from_url(url: str) -> str:
    """Return the repository name a clone of ``url`` would create."""
    trimmed = url.strip().rstrip("/")
    if trimmed.endswith(".git"):
        trimmed = trimmed[: -len(".git")]
    name = re.split(r"[/:\\]", trimmed)[-1] if trimmed else ""
    if not name:
        raise InvalidArgument(f"Invalid repository URL: {url!r}")
    return name


class RepositoryHost(Protocol):
    """Hosting collaborator used by the first push of a project."""

    def create_repository(self, name: str) -> str: ...


def _message_from(outcome: CommandOutcome, fallback: str) -> str:
    text = outcome.stdout.strip() or outcome.stderr.strip()
    return text or fallback


class GitCommandAdapter:
    """Runs logical git operations for one environment."""

    def __init__(self, environment: Environment, config: EngineConfig, host: RepositoryHost | None = None) -> None:
        self.environment = environment
        self.config = config
        self.host = host

    def _run(
        self,
        path: str,
        operation: GitOperation,
        *params: str,
        timeout_seconds: float | None = None,
    ) -> CommandOutcome:
        return run_operation(self.environment, path, operation, *params, timeout_seconds=timeout_seconds)

    def _network_timeout(self, timeout_seconds: float | None) -> float:
        return self.config.network_timeout_seconds if timeout_seconds is None else timeout_seconds

    def pull(self, path: str, timeout_seconds: float | None = None) -> str:
        outcome = self._run(path, GitOperation.PULL, timeout_seconds=self._network_timeout(timeout_seconds))
        raise_for_outcome(outcome, "Pull")
        return _message_from(outcome, "Already up to date.")

    def has_remote(self, path: str, timeout_seconds: float | None = None) -> bool:
        return self._run(path, GitOperation.REMOTE_URL, timeout_seconds=timeout_seconds).exit_succeeded

    def push(self, path: str, message: str, timeout_seconds: float | None = None) -> str:
        """Stage, commit when dirty, and push; creates the remote on first push.

        Without an ``origin`` remote the hosting collaborator creates a
        repository named after the project folder, the clone URL becomes
        ``origin``, the current branch is renamed to the default branch, and
        the push sets upstream tracking.
        """
        first_push = not self.has_remote(path, timeout_seconds)
        if first_push:
            if self.host is None:
                raise InvalidArgument("project has no remote and no hosting service is configured")
            clone_url = self.host.create_repository(self.environment.leaf_name(path))
            logger.info("created hosting repository %s for %s", clone_url, path)
            self.attach_remote(path, clone_url, timeout_seconds)

        raise_for_outcome(self._run(path, GitOperation.ADD_ALL, timeout_seconds=timeout_seconds), "Add")

        status = self._run(path, GitOperation.STATUS, timeout_seconds=timeout_seconds)
        if status.exit_succeeded and status.stdout.strip():
            if not message.strip():
                raise InvalidArgument("commit message must not be empty")
            commit = self._run(path, GitOperation.COMMIT, message, timeout_seconds=self._network_timeout(timeout_seconds))
            raise_for_outcome(commit, "Commit")

        if first_push:
            return self.push_set_upstream(path, timeout_seconds)
        outcome = self._run(path, GitOperation.PUSH, timeout_seconds=self._network_timeout(timeout_seconds))
        raise_for_outcome(outcome, "Push")
        return _message_from(outcome, "Pushed successfully")

    def attach_remote(self, path: str, clone_url: str, timeout_seconds: float | None = None) -> None:
        """Register ``clone_url`` as ``origin`` and rename HEAD to the default branch."""
        outcome = self._run(path, GitOperation.REMOTE_ADD, clone_url, timeout_seconds=timeout_seconds)
        raise_for_outcome(outcome, "Add remote")
        branch = self.config.default_branch
        renamed = self._run(path, GitOperation.RENAME_BRANCH, branch, timeout_seconds=timeout_seconds)
        if not renamed.exit_succeeded:
            logger.debug("branch rename to %s ignored: %s", branch, renamed.combined.strip())

    def push_set_upstream(self, path: str, timeout_seconds: float | None = None) -> str:
        outcome = self._run(
            path,
            GitOperation.PUSH_SET_UPSTREAM,
            self.config.default_branch,
            timeout_seconds=self._network_timeout(timeout_seconds),
        )
        raise_for_outcome(outcome, "Push")
        return _message_from(outcome, "Pushed successfully")

    def clone(self, url: str, base_folder: str, timeout_seconds: float | None = None) -> str:
        repo_name = repository_name_from_url(url)
        outcome = self._run(base_folder, GitOperation.CLONE, url, timeout_seconds=self._network_timeout(timeout_seconds))
        raise_for_outcome(outcome, "Git clone")
        return repo_name

    def list_branches(self, path: str, timeout_seconds: float | None = None) -> list[str]:
        outcome = self._run(path, GitOperation.BRANCH_LIST, timeout_seconds=timeout_seconds)
        raise_for_outcome(outcome, "List branches")
        return parse_branch_list(outcome.stdout)

    def switch_branch(self, path: str, branch: str, timeout_seconds: float | None = None) -> str:
        outcome = self._run(path, GitOperation.SWITCH_BRANCH, branch, timeout_seconds=timeout_seconds)
        raise_for_outcome(outcome, "Switch branch")
        return f"Switched to branch '{branch}'"

    def create_branch(self, path: str, name: str, timeout_seconds: float | None = None) -> str:
        outcome = self._run(path, GitOperation.CREATE_BRANCH, name, timeout_seconds=timeout_seconds)
        raise_for_outcome(outcome, "Create branch")
        return f"Created and switched to branch '{name}'"

    def commit_history(self, path: str, limit: int, timeout_seconds: float | None = None) -> list[CommitRecord]:
        outcome = self._run(path, GitOperation.LOG, str(limit), timeout_seconds=timeout_seconds)
        raise_for_outcome(outcome, "Commit history")
        return parse_commit_log(outcome.stdout)

    def diff(self, path: str, timeout_seconds: float | None = None) -> str:
        outcome = self._run(path, GitOperation.DIFF, timeout_seconds=timeout_seconds)
        raise_for_outcome(outcome, "Diff")
        return outcome.stdout

    def stash(self, path: str, timeout_seconds: float | None = None) -> str:
        outcome = self._run(path, GitOperation.STASH, timeout_seconds=timeout_seconds)
        if raise_for_outcome(outcome, "Stash") is ErrorKind.NO_LOCAL_CHANGES:
            return "No changes to stash"
        return "Changes stashed successfully"

    def stash_pop(self, path: str, timeout_seconds: float | None = None) -> str:
        outcome = self._run(path, GitOperation.STASH_POP, timeout_seconds=timeout_seconds)
        raise_for_outcome(outcome, "Apply stash")
        return "Stash applied successfully"

    def run_sequence(self, path: str, steps: Sequence[tuple[GitOperation, tuple[str, ...]]], action: str) -> None:
        """Run ``steps`` in order, stopping at the first classified failure."""
        for operation, params in steps:
            raise_for_outcome(self._run(path, operation, *params), action)


__all__ = [
    "GitCommandAdapter",
    "GitOperation",
    "RepositoryHost",
    "count_status_lines",
    "git_args",
    "parse_ahead_behind",
    "parse_branch_list",
    "parse_commit_log",
    "repository_name_from_url",
    "run_operation",
]
