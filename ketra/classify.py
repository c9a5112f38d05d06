"""Table-driven classification of raw git output into semantic error kinds.

Patterns are checked in priority order against stdout + stderr; the first
match wins. Successful outcomes only consult the benign (non-error) rows.
"""

from __future__ import annotations

from enum import Enum

from .errors import (
    GitCommandError,
    NoStashEntries,
    NoUpstreamBranch,
    NotARepository,
    PermissionDenied,
    UnknownGitError,
)
from .types import CommandOutcome


class ErrorKind(str, Enum):
    OK = "ok"
    NOT_A_REPOSITORY = "not_a_repository"
    NO_UPSTREAM_BRANCH = "no_upstream_branch"
    PERMISSION_DENIED = "permission_denied"
    NO_LOCAL_CHANGES = "no_local_changes"
    NO_STASH_ENTRIES = "no_stash_entries"
    UNKNOWN = "unknown"


ERROR_PATTERNS: tuple[tuple[tuple[str, ...], ErrorKind], ...] = (
    (("No such file or directory", "not a git repository"), ErrorKind.NOT_A_REPOSITORY),
    (("no tracking information", "no upstream branch"), ErrorKind.NO_UPSTREAM_BRANCH),
    (("Permission denied", "403", "denied to push"), ErrorKind.PERMISSION_DENIED),
    (("No local changes to save",), ErrorKind.NO_LOCAL_CHANGES),
    (("No stash entries found",), ErrorKind.NO_STASH_ENTRIES),
)

BENIGN_KINDS = frozenset({ErrorKind.NO_LOCAL_CHANGES})

_MESSAGES: dict[ErrorKind, str] = {
    ErrorKind.NOT_A_REPOSITORY: "Not a git repository",
    ErrorKind.NO_UPSTREAM_BRANCH: "No remote tracking branch. This project may not have been pushed yet.",
    ErrorKind.PERMISSION_DENIED: (
        "Permission denied. You don't have push access to this repository. "
        "Fork it or create your own repo to push changes."
    ),
    ErrorKind.NO_STASH_ENTRIES: "No stashed changes to restore",
}

_EXCEPTIONS: dict[ErrorKind, type[GitCommandError]] = {
    ErrorKind.NOT_A_REPOSITORY: NotARepository,
    ErrorKind.NO_UPSTREAM_BRANCH: NoUpstreamBranch,
    ErrorKind.PERMISSION_DENIED: PermissionDenied,
    ErrorKind.NO_STASH_ENTRIES: NoStashEntries,
}


def classify_text(text: str, exit_succeeded: bool) -> ErrorKind:
    for patterns, kind in ERROR_PATTERNS:
        if exit_succeeded and kind not in BENIGN_KINDS:
            continue
        if any(pattern in text for pattern in patterns):
            return kind
    return ErrorKind.OK if exit_succeeded else ErrorKind.UNKNOWN


def classify(outcome: CommandOutcome) -> ErrorKind:
    """Return the semantic kind for ``outcome``; pure and total."""
    return classify_text(outcome.combined, outcome.exit_succeeded)


def raise_for_outcome(outcome: CommandOutcome, action: str) -> ErrorKind:
    """Raise the typed error for a failed outcome, otherwise return its kind.

    ``action`` is a short verb phrase ("Pull", "Push", ...) used to prefix
    messages for unclassified failures.
    """
    kind = classify(outcome)
    if kind is ErrorKind.OK or kind in BENIGN_KINDS:
        return kind

    raw = outcome.combined.strip()
    error_cls = _EXCEPTIONS.get(kind, UnknownGitError)
    message = _MESSAGES.get(kind) or f"{action} failed: {raw or f'exit status {outcome.returncode}'}"
    raise error_cls(message, kind, raw)


__all__ = [
    "ERROR_PATTERNS",
    "ErrorKind",
    "classify",
    "classify_text",
    "raise_for_outcome",
]
