"""Concurrent fan-out of git status probes across discovered projects."""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from concurrent.futures import Executor, ThreadPoolExecutor, as_completed
from dataclasses import replace

from .types import EnvironmentKind, GitStatus, Project

logger = logging.getLogger(__name__)

ProbeFn = Callable[[Project], "GitStatus | None"]


def skip_probes(projects: Sequence[Project]) -> list[Project]:
    """Fast path that returns projects untouched (status requested later)."""
    return list(projects)


def _collect(projects: Sequence[Project], probe: ProbeFn, executor: Executor) -> list[Project]:
    statuses: dict[tuple[EnvironmentKind, str], GitStatus | None] = {}
    futures = {executor.submit(probe, project): project for project in projects}
    for future in as_completed(futures):
        project = futures[future]
        try:
            statuses[project.key] = future.result()
        except Exception as exc:
            logger.debug("probe for %s failed: %s", project.path, exc)
            statuses[project.key] = None
    return [replace(project, git_status=statuses.get(project.key)) for project in projects]


def probe_all(
    projects: Sequence[Project],
    probe: ProbeFn,
    max_workers: int = 8,
    *,
    executor: Executor | None = None,
) -> list[Project]:
    """Probe every project concurrently and attach the resulting status.

    At most ``max_workers`` probes (and therefore child processes) are in
    flight at once; pass a shared ``executor`` to bound several calls
    together. A probe that raises leaves that project's status unset.
    Results are joined back by ``Project.key``; input order is preserved.
    """
    if not projects:
        return []
    if executor is not None:
        return _collect(projects, probe, executor)

    workers = max(1, min(max_workers, len(projects)))
    with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="ketra-probe") as pool:
        return _collect(projects, probe, pool)


__all__ = ["probe_all", "skip_probes"]
