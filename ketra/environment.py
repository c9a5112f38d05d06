"""Execution environments and their root resolution.

``NativeEnvironment`` runs processes directly against the host filesystem.
``BridgedEnvironment`` proxies every filesystem and process operation through
a bridge command (``wsl --exec`` by default) that may be unreachable.
Each primitive is implemented once per variant behind ``Environment``.
"""

from __future__ import annotations

import logging
import os
import posixpath
import shutil
from abc import ABC, abstractmethod
from collections.abc import Sequence
from pathlib import Path

from .config import EngineConfig
from .errors import (
    CommandExecutionFailure,
    ConfigurationError,
    EnvironmentUnavailable,
    KetraError,
    ProjectInUse,
)
from .process import run_command
from .scanner import scan_bridged_root, scan_native_root
from .types import CommandOutcome, EnvironmentKind, ProjectEntry

logger = logging.getLogger(__name__)

# Runs "$@" inside the bridged shell after changing to "$1"; arguments travel
# as positional parameters and are never spliced into the script text.
CD_AND_EXEC_SCRIPT = 'cd "$1" && shift && exec "$@"'
WRITE_STDIN_SCRIPT = 'cat > "$1"'
BRIDGE_USER_SCRIPT = 'echo "${USER:-$(id -un)}"'
SCRIPT_NAME = "ketra"
DELETE_IN_USE_MESSAGE = "Cannot delete project - please close any programs using this folder first"


class Environment(ABC):
    """Shared interface for everything that touches one environment."""

    kind: EnvironmentKind

    def __init__(self, config: EngineConfig) -> None:
        self.config = config

    def _timeout(self, timeout_seconds: float | None) -> float:
        return self.config.probe_timeout_seconds if timeout_seconds is None else timeout_seconds

    @abstractmethod
    def resolve_root(self) -> str:
        """Return the workspace folder under which projects live."""

    @abstractmethod
    def list_projects(self, root: str) -> list[ProjectEntry]:
        """Enumerate immediate subdirectories of ``root``; never raises."""

    @abstractmethod
    def run(
        self,
        cwd: str,
        argv: Sequence[str],
        timeout_seconds: float | None = None,
    ) -> CommandOutcome:
        """Run ``argv`` with its working directory set to ``cwd``."""

    def git(self, path: str, args: Sequence[str], timeout_seconds: float | None = None) -> CommandOutcome:
        return self.run(path, ["git", *args], timeout_seconds)

    @abstractmethod
    def directory_exists(self, path: str) -> bool: ...

    @abstractmethod
    def is_git_repository(self, path: str) -> bool: ...

    @abstractmethod
    def make_directory(self, path: str) -> None: ...

    @abstractmethod
    def write_text(self, path: str, content: str) -> None: ...

    @abstractmethod
    def remove_tree(self, path: str) -> None: ...

    @abstractmethod
    def join(self, root: str, name: str) -> str: ...

    @abstractmethod
    def leaf_name(self, path: str) -> str: ...


class NativeEnvironment(Environment):
    kind = EnvironmentKind.NATIVE

    def resolve_root(self) -> str:
        if self.config.native_root:
            return self.config.native_root

        environ = self.config.environ
        profile = environ.get("USERPROFILE") or environ.get("HOME")
        if not profile:
            try:
                profile = str(Path.home())
            except RuntimeError as exc:
                raise ConfigurationError("Failed to determine the user profile folder") from exc
        if not os.path.isabs(profile):
            raise ConfigurationError(f"User profile folder is not an absolute path: {profile!r}")
        root = os.path.join(profile, self.config.workspace_dir_name)
        logger.debug("native workspace root: %s", root)
        return root

    def list_projects(self, root: str) -> list[ProjectEntry]:
        return scan_native_root(root)

    def run(
        self,
        cwd: str,
        argv: Sequence[str],
        timeout_seconds: float | None = None,
    ) -> CommandOutcome:
        return run_command(argv, self._timeout(timeout_seconds), cwd=cwd)

    def git(self, path: str, args: Sequence[str], timeout_seconds: float | None = None) -> CommandOutcome:
        return run_command(["git", "-C", path, *args], self._timeout(timeout_seconds))

    def directory_exists(self, path: str) -> bool:
        return os.path.isdir(path)

    def is_git_repository(self, path: str) -> bool:
        # Worktrees and submodules use a ``.git`` file instead of a directory.
        return os.path.exists(os.path.join(path, ".git"))

    def make_directory(self, path: str) -> None:
        Path(path).mkdir(parents=True, exist_ok=True)

    def write_text(self, path: str, content: str) -> None:
        Path(path).write_text(content, encoding="utf-8")

    def remove_tree(self, path: str) -> None:
        try:
            shutil.rmtree(path)
        except PermissionError as exc:
            raise ProjectInUse(DELETE_IN_USE_MESSAGE) from exc
        except OSError as exc:
            raise KetraError(f"Failed to delete project folder '{path}': {exc}") from exc

    def join(self, root: str, name: str) -> str:
        return os.path.join(root, name)

    def leaf_name(self, path: str) -> str:
        return Path(path).name


class BridgedEnvironment(Environment):
    kind = EnvironmentKind.BRIDGED

    def bridge_argv(self, argv: Sequence[str]) -> list[str]:
        return [*self.config.bridge_command, *argv]

    def execute(
        self,
        argv: Sequence[str],
        timeout_seconds: float | None = None,
        input_text: str | None = None,
    ) -> CommandOutcome:
        """Run ``argv`` inside the bridge without changing directory."""
        return run_command(self.bridge_argv(argv), self._timeout(timeout_seconds), input_text=input_text)

    def resolve_root(self) -> str:
        if self.config.bridged_root:
            return self.config.bridged_root

        try:
            outcome = self.execute(["sh", "-c", BRIDGE_USER_SCRIPT])
        except CommandExecutionFailure as exc:
            raise EnvironmentUnavailable(f"Failed to reach bridged environment: {exc}") from exc

        user = outcome.stdout.strip()
        if not outcome.exit_succeeded or not user:
            raise EnvironmentUnavailable("Failed to determine the bridged environment user")
        root = posixpath.join("/home", user, self.config.workspace_dir_name)
        logger.debug("bridged workspace root: %s", root)
        return root

    def list_projects(self, root: str) -> list[ProjectEntry]:
        return scan_bridged_root(self, root)

    def run(
        self,
        cwd: str,
        argv: Sequence[str],
        timeout_seconds: float | None = None,
    ) -> CommandOutcome:
        return self.execute(["sh", "-c", CD_AND_EXEC_SCRIPT, SCRIPT_NAME, cwd, *argv], timeout_seconds)

    def git(self, path: str, args: Sequence[str], timeout_seconds: float | None = None) -> CommandOutcome:
        # git reports a missing path itself, independent of the bridged shell's wording.
        return self.execute(["git", "-C", path, *args], timeout_seconds)

    def directory_exists(self, path: str) -> bool:
        return self.execute(["test", "-d", path]).exit_succeeded

    def is_git_repository(self, path: str) -> bool:
        return self.execute(["test", "-e", self.join(path, ".git")]).exit_succeeded

    def make_directory(self, path: str) -> None:
        outcome = self.execute(["mkdir", "-p", "--", path])
        if not outcome.exit_succeeded:
            raise KetraError(f"Failed to create directory '{path}': {outcome.stderr.strip()}")

    def write_text(self, path: str, content: str) -> None:
        outcome = self.execute(["sh", "-c", WRITE_STDIN_SCRIPT, SCRIPT_NAME, path], input_text=content)
        if not outcome.exit_succeeded:
            raise KetraError(f"Failed to write '{path}': {outcome.stderr.strip()}")

    def remove_tree(self, path: str) -> None:
        outcome = self.execute(["rm", "-rf", "--", path])
        if not outcome.exit_succeeded:
            raise KetraError(f"Failed to delete project: {outcome.stderr.strip()}")

    def join(self, root: str, name: str) -> str:
        return posixpath.join(root, name)

    def leaf_name(self, path: str) -> str:
        return posixpath.basename(path.rstrip("/"))


_ENVIRONMENT_TYPES: dict[EnvironmentKind, type[Environment]] = {
    EnvironmentKind.NATIVE: NativeEnvironment,
    EnvironmentKind.BRIDGED: BridgedEnvironment,
}


def create_environment(kind: EnvironmentKind | str, config: EngineConfig) -> Environment:
    return _ENVIRONMENT_TYPES[EnvironmentKind.parse(kind)](config)


def environment_kind_for_path(path: str, config: EngineConfig) -> EnvironmentKind:
    """Infer the owning environment from path shape alone.

    Paths rooted at one of the bridged prefixes (``/home/`` or ``/mnt/`` by
    default) belong to the bridged environment; everything else is native.
    """
    if path.startswith(tuple(config.bridged_path_prefixes)):
        return EnvironmentKind.BRIDGED
    return EnvironmentKind.NATIVE


__all__ = [
    "BridgedEnvironment",
    "Environment",
    "NativeEnvironment",
    "create_environment",
    "environment_kind_for_path",
]
