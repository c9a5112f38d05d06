"""Directory scanner strategies, one per environment.

The native strategy stats entries locally and fills ``last_opened`` from the
modification time. The bridged strategy lists through the bridge and always
reports ``last_opened = 0``; callers must not treat it as trustworthy.
Neither strategy raises: unreadable roots and unreachable bridges yield ``[]``.
"""

from __future__ import annotations

import logging
import os
import posixpath
from typing import TYPE_CHECKING

from .errors import CommandExecutionFailure
from .types import ProjectEntry

if TYPE_CHECKING:
    from .environment import BridgedEnvironment

logger = logging.getLogger(__name__)


def safe_mtime_seconds(entry: os.DirEntry[str]) -> int:
    """Return whole-second ``st_mtime`` for ``entry`` or ``0`` on stat failure."""
    try:
        return int(entry.stat(follow_symlinks=False).st_mtime)
    except OSError:
        return 0


def scan_native_root(root: str) -> list[ProjectEntry]:
    """List immediate subdirectories of ``root`` on the host filesystem."""
    entries: list[ProjectEntry] = []
    try:
        with os.scandir(root) as children:
            for child in children:
                try:
                    is_dir = child.is_dir(follow_symlinks=False)
                except OSError:
                    continue
                if not is_dir:
                    continue
                entries.append(
                    ProjectEntry(
                        name=child.name,
                        path=child.path,
                        last_opened=safe_mtime_seconds(child),
                    )
                )
    except OSError as exc:
        logger.warning("cannot scan native root %s: %s", root, exc)
        return []

    entries.sort(key=lambda entry: entry.name)
    return entries


def parse_bridged_listing(root: str, output: str) -> list[ProjectEntry]:
    """Parse one absolute directory path per line into sorted entries."""
    normalized_root = root.rstrip("/") or "/"
    entries: list[ProjectEntry] = []
    for raw_line in output.splitlines():
        path = raw_line.strip()
        if not path or path.rstrip("/") == normalized_root:
            continue
        name = posixpath.basename(path.rstrip("/"))
        if not name:
            continue
        entries.append(ProjectEntry(name=name, path=path, last_opened=0))
    entries.sort(key=lambda entry: entry.name)
    return entries


def scan_bridged_root(environment: BridgedEnvironment, root: str) -> list[ProjectEntry]:
    """List immediate subdirectories of ``root`` through the bridge."""
    try:
        outcome = environment.execute(["find", root, "-mindepth", "1", "-maxdepth", "1", "-type", "d"])
    except CommandExecutionFailure as exc:
        logger.warning("bridged listing of %s failed: %s", root, exc)
        return []
    if not outcome.exit_succeeded:
        logger.warning("bridged listing of %s exited with %s: %s", root, outcome.returncode, outcome.stderr.strip())
        return []
    return parse_bridged_listing(root, outcome.stdout)


__all__ = [
    "parse_bridged_listing",
    "safe_mtime_seconds",
    "scan_bridged_root",
    "scan_native_root",
]
