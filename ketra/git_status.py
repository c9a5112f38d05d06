"""Git status probe: branch, dirty-file count, and ahead/behind counts.

A probe never raises. Anything short of a readable repository resolves to
``None`` so one broken project cannot fail a whole scan.
"""

from __future__ import annotations

import logging

from .environment import Environment
from .errors import KetraError
from .git_ops import GitOperation, count_status_lines, parse_ahead_behind, run_operation
from .types import GitStatus

logger = logging.getLogger(__name__)


def probe_git_status(
    environment: Environment,
    path: str,
    timeout_seconds: float | None = None,
) -> GitStatus | None:
    """Return the status snapshot for ``path`` or ``None`` if it is not a repository.

    Branch lookup failures yield ``""`` and a missing upstream yields
    ``(0, 0)``; only a failing ``status --porcelain`` discards the snapshot.
    """
    try:
        if not environment.is_git_repository(path):
            return None

        branch_proc = run_operation(environment, path, GitOperation.CURRENT_BRANCH, timeout_seconds=timeout_seconds)
        branch = branch_proc.stdout.strip() if branch_proc.exit_succeeded else ""

        status_proc = run_operation(environment, path, GitOperation.STATUS, timeout_seconds=timeout_seconds)
        if not status_proc.exit_succeeded:
            logger.debug("status failed for %s: %s", path, status_proc.stderr.strip())
            return None
        uncommitted_files = count_status_lines(status_proc.stdout)

        rev_proc = run_operation(environment, path, GitOperation.AHEAD_BEHIND, timeout_seconds=timeout_seconds)
        ahead, behind = parse_ahead_behind(rev_proc.stdout) if rev_proc.exit_succeeded else (0, 0)
    except KetraError as exc:
        logger.debug("git status probe for %s failed: %s", path, exc)
        return None

    return GitStatus.from_counts(
        branch=branch,
        uncommitted_files=uncommitted_files,
        commits_ahead=ahead,
        commits_behind=behind,
    )


__all__ = ["probe_git_status"]
