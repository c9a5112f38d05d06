"""Exception taxonomy shared by discovery, git operations, and hosting calls."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .classify import ErrorKind


class KetraError(Exception):
    """Base class for every error surfaced to callers."""


class ConfigurationError(KetraError):
    """A required location or setting could not be determined."""


class EnvironmentUnavailable(KetraError):
    """The bridged environment could not be reached or has no usable user."""


class CommandExecutionFailure(KetraError):
    """The process could not be spawned or did not finish."""


class CommandTimeout(CommandExecutionFailure):
    """The process exceeded its allotted time and was killed."""

    def __init__(self, argv: list[str], timeout_seconds: float) -> None:
        self.argv = list(argv)
        self.timeout_seconds = timeout_seconds
        super().__init__(f"{argv[0] if argv else 'command'} timed out after {timeout_seconds:g}s")


class InvalidArgument(KetraError):
    """A caller-supplied value would be read as an option or is empty."""


class GitCommandError(KetraError):
    """A git command exited unsuccessfully; ``kind`` holds the classification."""

    def __init__(self, message: str, kind: ErrorKind, raw: str = "") -> None:
        super().__init__(message)
        self.kind = kind
        self.raw = raw


class NotARepository(GitCommandError):
    pass


class NoUpstreamBranch(GitCommandError):
    pass


class PermissionDenied(GitCommandError):
    pass


class NoStashEntries(GitCommandError):
    pass


class UnknownGitError(GitCommandError):
    pass


class HostingError(KetraError):
    """The hosting-service API rejected or failed a request."""


class HostingUnavailable(HostingError):
    """No hosting token could be found."""


class ProjectNotFound(KetraError):
    pass


class ProjectExists(KetraError):
    pass


class ProjectInUse(KetraError):
    """Local deletion failed because another program holds the folder."""


__all__ = [
    "CommandExecutionFailure",
    "CommandTimeout",
    "ConfigurationError",
    "EnvironmentUnavailable",
    "GitCommandError",
    "HostingError",
    "HostingUnavailable",
    "InvalidArgument",
    "KetraError",
    "NoStashEntries",
    "NoUpstreamBranch",
    "NotARepository",
    "PermissionDenied",
    "ProjectExists",
    "ProjectInUse",
    "ProjectNotFound",
    "UnknownGitError",
]
