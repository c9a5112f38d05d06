"""Caller-facing operation surface: discovery, status, and git mutations.

Discovery absorbs per-entry, per-probe, and per-environment failures and
returns whatever could be found. Mutations raise ``KetraError`` subclasses.
"""

from __future__ import annotations

import logging
from concurrent.futures import Executor, ThreadPoolExecutor

from .aggregator import probe_all, skip_probes
from .config import EngineConfig, load_engine_config
from .environment import Environment, create_environment, environment_kind_for_path
from .errors import (
    HostingError,
    HostingUnavailable,
    InvalidArgument,
    KetraError,
    ProjectExists,
    ProjectNotFound,
)
from .git_ops import GitCommandAdapter, GitOperation
from .git_status import probe_git_status
from .hosting import GitHubClient
from .merge import merge_projects, sort_by_last_opened
from .templates import init_project_template, resolve_template
from .types import CommitRecord, EnvironmentKind, GitStatus, Project

logger = logging.getLogger(__name__)

INITIAL_COMMIT_MESSAGE = "Initial commit"


def validate_project_name(name: str) -> str:
    stripped = name.strip()
    if not stripped or stripped in {".", ".."} or any(sep in stripped for sep in ("/", "\\")):
        raise InvalidArgument(f"invalid project name: {name!r}")
    return stripped


class Engine:
    """Binds configuration, both environments, and the hosting collaborator."""

    def __init__(
        self,
        config: EngineConfig | None = None,
        *,
        host: GitHubClient | None = None,
    ) -> None:
        self.config = config if config is not None else load_engine_config()
        self.environments: dict[EnvironmentKind, Environment] = {
            kind: create_environment(kind, self.config) for kind in EnvironmentKind
        }
        self.host = host if host is not None else GitHubClient(self.config)

    def environment(self, env: EnvironmentKind | str) -> Environment:
        return self.environments[EnvironmentKind.parse(env)]

    def adapter(self, env: EnvironmentKind | str) -> GitCommandAdapter:
        return GitCommandAdapter(self.environment(env), self.config, self.host)

    def environment_for_path(self, path: str) -> Environment:
        return self.environments[environment_kind_for_path(path, self.config)]

    # Discovery

    def _enumerate(self, kind: EnvironmentKind) -> list[Project]:
        """Resolve the root once and list its projects; ``[]`` on any failure."""
        environment = self.environments[kind]
        try:
            root = environment.resolve_root()
        except KetraError as exc:
            logger.warning("%s environment unavailable: %s", kind.value, exc)
            return []
        return [Project.from_entry(entry, kind) for entry in environment.list_projects(root)]

    def _probe_project(self, project: Project) -> GitStatus | None:
        return probe_git_status(self.environments[project.environment], project.path)

    def _enumerate_and_probe(self, kind: EnvironmentKind, probe_pool: Executor) -> list[Project]:
        return probe_all(self._enumerate(kind), self._probe_project, executor=probe_pool)

    def discover_fast(self) -> list[Project]:
        """Native projects only, without git status."""
        return sort_by_last_opened(skip_probes(self._enumerate(EnvironmentKind.NATIVE)))

    def discover_bridged_only(self) -> list[Project]:
        """Bridged projects only, without git status; completes a fast scan."""
        return skip_probes(self._enumerate(EnvironmentKind.BRIDGED))

    def discover_full(self) -> list[Project]:
        """Both environments, probed concurrently, merged and sorted.

        Each environment is enumerated on its own thread and its probes start
        as soon as its listing is ready, so a slow bridge never delays native
        results. All probes share one pool of ``max_concurrent_probes``.
        """
        with ThreadPoolExecutor(
            max_workers=self.config.max_concurrent_probes,
            thread_name_prefix="ketra-probe",
        ) as probe_pool, ThreadPoolExecutor(max_workers=2, thread_name_prefix="ketra-scan") as scan_pool:
            native_future = scan_pool.submit(self._enumerate_and_probe, EnvironmentKind.NATIVE, probe_pool)
            bridged_future = scan_pool.submit(self._enumerate_and_probe, EnvironmentKind.BRIDGED, probe_pool)
            native = native_future.result()
            bridged = bridged_future.result()
        return merge_projects(native, bridged)

    def get_status(self, path: str) -> GitStatus | None:
        """Status for ``path``; the environment is inferred from path shape."""
        return probe_git_status(self.environment_for_path(path), path)

    # Git mutations and queries

    def pull(self, path: str, env: EnvironmentKind | str, timeout_seconds: float | None = None) -> str:
        return self.adapter(env).pull(path, timeout_seconds)

    def push(
        self,
        path: str,
        env: EnvironmentKind | str,
        commit_message: str,
        timeout_seconds: float | None = None,
    ) -> str:
        return self.adapter(env).push(path, commit_message, timeout_seconds)

    def clone(self, url: str, env: EnvironmentKind | str, timeout_seconds: float | None = None) -> str:
        """Clone ``url`` into the environment's workspace; returns the repository name."""
        environment = self.environment(env)
        base_folder = environment.resolve_root()
        environment.make_directory(base_folder)
        return self.adapter(env).clone(url, base_folder, timeout_seconds)

    def list_branches(self, path: str, env: EnvironmentKind | str) -> list[str]:
        return self.adapter(env).list_branches(path)

    def switch_branch(self, path: str, env: EnvironmentKind | str, branch: str) -> str:
        return self.adapter(env).switch_branch(path, branch)

    def create_branch(self, path: str, env: EnvironmentKind | str, name: str) -> str:
        return self.adapter(env).create_branch(path, name)

    def commit_history(self, path: str, env: EnvironmentKind | str, limit: int) -> list[CommitRecord]:
        return self.adapter(env).commit_history(path, limit)

    def diff(self, path: str, env: EnvironmentKind | str) -> str:
        return self.adapter(env).diff(path)

    def stash(self, path: str, env: EnvironmentKind | str) -> str:
        return self.adapter(env).stash(path)

    def stash_pop(self, path: str, env: EnvironmentKind | str) -> str:
        return self.adapter(env).stash_pop(path)

    # Project lifecycle

    def project_exists(self, name: str, env: EnvironmentKind | str) -> bool:
        environment = self.environment(env)
        root = environment.resolve_root()
        return environment.directory_exists(environment.join(root, validate_project_name(name)))

    def delete_project(self, path: str, name: str) -> None:
        """Delete the hosting repository (best effort), then the local folder.

        Hosting problems are logged and ignored; a missing folder raises
        ``ProjectNotFound`` and a locked folder raises ``ProjectInUse``.
        """
        try:
            deleted = self.host.delete_repository(name)
        except HostingUnavailable as exc:
            logger.info("skipping hosting deletion for %s: %s", name, exc)
        except HostingError as exc:
            logger.warning("could not delete hosting repository %s: %s", name, exc)
        else:
            logger.info("hosting repository %s %s", name, "deleted" if deleted else "did not exist")

        environment = self.environment_for_path(path)
        if not environment.directory_exists(path):
            raise ProjectNotFound(f"Project folder does not exist: {path}")
        environment.remove_tree(path)

    def create_project(
        self,
        name: str,
        env: EnvironmentKind | str,
        template: str = "empty",
        create_repo: bool = False,
    ) -> str:
        """Create ``<root>/<name>`` from ``template`` as a fresh repository.

        With ``create_repo`` a hosting repository is created, registered as
        ``origin``, and pushed with upstream tracking. Returns the new path.
        """
        name = validate_project_name(name)
        environment = self.environment(env)
        adapter = self.adapter(env)
        path = environment.join(environment.resolve_root(), name)
        if environment.directory_exists(path):
            raise ProjectExists(f"Project '{name}' already exists")
        chosen = resolve_template(name, template)

        environment.make_directory(path)
        init_project_template(environment, path, chosen)
        adapter.run_sequence(
            path,
            [
                (GitOperation.INIT, (self.config.default_branch,)),
                (GitOperation.ADD_ALL, ()),
                (GitOperation.COMMIT, (INITIAL_COMMIT_MESSAGE,)),
            ],
            "Initialize repository",
        )

        if create_repo:
            clone_url = self.host.create_repository(name)
            adapter.attach_remote(path, clone_url)
            adapter.push_set_upstream(path)
        return path

    def check_hosting_auth(self) -> str:
        """Return the login that owns the hosting token."""
        return self.host.current_login()


__all__ = ["Engine", "validate_project_name"]
