"""Domain datatypes for discovered projects and git observations."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from enum import Enum


class EnvironmentKind(str, Enum):
    """Closed tag naming the environment that owns a path or operation."""

    NATIVE = "native"
    BRIDGED = "bridged"

    @classmethod
    def parse(cls, value: str | EnvironmentKind) -> EnvironmentKind:
        """Accept canonical names plus the ``windows``/``wsl`` aliases."""
        if isinstance(value, EnvironmentKind):
            return value
        normalized = str(value).strip().lower()
        if normalized in {"native", "windows", "host"}:
            return cls.NATIVE
        if normalized in {"bridged", "wsl"}:
            return cls.BRIDGED
        raise ValueError(f"unknown environment: {value!r}")


@dataclass(frozen=True)
class GitStatus:
    """Snapshot of one repository's branch and working-tree state."""

    branch: str
    is_clean: bool
    commits_ahead: int
    commits_behind: int
    uncommitted_files: int

    def __post_init__(self) -> None:
        if self.uncommitted_files < 0 or self.commits_ahead < 0 or self.commits_behind < 0:
            raise ValueError("git status counts must be non-negative")
        if self.is_clean != (self.uncommitted_files == 0):
            raise ValueError("is_clean must match uncommitted_files == 0")

    @classmethod
    def from_counts(
        cls,
        branch: str,
        uncommitted_files: int,
        commits_ahead: int = 0,
        commits_behind: int = 0,
    ) -> GitStatus:
        uncommitted_files = max(0, uncommitted_files)
        return cls(
            branch=branch,
            is_clean=uncommitted_files == 0,
            commits_ahead=max(0, commits_ahead),
            commits_behind=max(0, commits_behind),
            uncommitted_files=uncommitted_files,
        )


@dataclass(frozen=True)
class ProjectEntry:
    """Bare directory listing row produced by a scanner strategy."""

    name: str
    path: str
    last_opened: int = 0


@dataclass(frozen=True)
class Project:
    """One discovered project; a fresh value is built on every scan."""

    name: str
    path: str
    environment: EnvironmentKind
    last_opened: int = 0
    git_status: GitStatus | None = None
    is_pinned: bool = False

    @property
    def key(self) -> tuple[EnvironmentKind, str]:
        """Environment-qualified identity used to join probe results."""
        return (self.environment, self.path)

    @classmethod
    def from_entry(cls, entry: ProjectEntry, environment: EnvironmentKind) -> Project:
        return cls(
            name=entry.name,
            path=entry.path,
            environment=environment,
            last_opened=entry.last_opened,
        )

    def to_dict(self) -> dict[str, object]:
        data = asdict(self)
        data["environment"] = self.environment.value
        return data


@dataclass(frozen=True)
class CommitRecord:
    """One parsed ``git log`` row."""

    hash: str
    author: str
    email: str
    timestamp: int
    message: str

    def to_dict(self) -> dict[str, object]:
        return asdict(self)


@dataclass(frozen=True)
class CommandOutcome:
    """Raw result of one out-of-process command."""

    exit_succeeded: bool
    stdout: str
    stderr: str
    returncode: int = 0

    @property
    def combined(self) -> str:
        return f"{self.stdout}{self.stderr}"


__all__ = [
    "CommandOutcome",
    "CommitRecord",
    "EnvironmentKind",
    "GitStatus",
    "Project",
    "ProjectEntry",
]
