"""Terminal rendering for project rows, commit logs, and diffs.

Git output is untrusted text: control bytes are escaped before printing.
Diffs are colorized with Pygments when color is enabled.
"""

from __future__ import annotations

import re
import time
from collections.abc import Sequence

from pygments import highlight
from pygments.formatters import TerminalFormatter
from pygments.lexers import DiffLexer
from pygments.styles import get_style_by_name
from pygments.util import ClassNotFound

from .types import CommitRecord, GitStatus, Project

_CONTROL_RE = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f-\x9f]")

_RESET = "\033[0m"
_DIRTY = "\033[38;5;214m"
_AHEAD = "\033[38;5;42m"
_BEHIND = "\033[38;5;203m"
_DIM = "\033[90m"


def sanitize_terminal_text(source: str) -> str:
    """Escape terminal control bytes to avoid side effects (bell, cursor moves, etc.)."""
    if _CONTROL_RE.search(source) is None:
        return source

    out: list[str] = []
    for ch in source:
        code = ord(ch)
        if ch in {"\n", "\r", "\t"}:
            out.append(ch)
            continue
        # C0 controls + DEL + C1 controls.
        if code < 32 or code == 127 or 0x80 <= code <= 0x9F:
            out.append(f"\\x{code:02x}")
            continue
        out.append(ch)
    return "".join(out)


def _paint(text: str, sgr: str, colorize: bool) -> str:
    return f"{sgr}{text}{_RESET}" if colorize else text


def format_git_status_badges(status: GitStatus | None, colorize: bool = True) -> str:
    """Compact ``branch *N ↑A ↓B`` summary; empty for non-repositories."""
    if status is None:
        return ""

    parts = [sanitize_terminal_text(status.branch) or "(detached)"]
    if not status.is_clean:
        parts.append(_paint(f"*{status.uncommitted_files}", _DIRTY, colorize))
    if status.commits_ahead:
        parts.append(_paint(f"↑{status.commits_ahead}", _AHEAD, colorize))
    if status.commits_behind:
        parts.append(_paint(f"↓{status.commits_behind}", _BEHIND, colorize))
    return " ".join(parts)


def format_project_row(project: Project, name_width: int, colorize: bool = True) -> str:
    name = sanitize_terminal_text(project.name).ljust(name_width)
    env = _paint(project.environment.value.ljust(7), _DIM, colorize)
    badges = format_git_status_badges(project.git_status, colorize)
    return f"{name}  {env}  {badges}".rstrip()


def format_project_table(projects: Sequence[Project], colorize: bool = True) -> str:
    if not projects:
        return ""
    name_width = max(len(project.name) for project in projects)
    return "\n".join(format_project_row(project, name_width, colorize) for project in projects) + "\n"


def format_commit_rows(commits: Sequence[CommitRecord]) -> str:
    lines: list[str] = []
    for commit in commits:
        when = time.strftime("%Y-%m-%d %H:%M", time.localtime(commit.timestamp)) if commit.timestamp else "-"
        lines.append(
            sanitize_terminal_text(f"{commit.hash[:10]}  {when}  {commit.author} <{commit.email}>  {commit.message}")
        )
    return "\n".join(lines) + ("\n" if lines else "")


def _normalize_style(style: str) -> str:
    """Return ``style`` if Pygments knows it, else ``monokai``."""
    try:
        get_style_by_name(style)
    except ClassNotFound:
        return "monokai"
    return style


def colorize_diff(diff_text: str, style: str = "monokai") -> str:
    """Highlight unified diff text with Pygments' terminal formatter."""
    if not diff_text:
        return diff_text
    formatter = TerminalFormatter(style=_normalize_style(style))
    return highlight(sanitize_terminal_text(diff_text), DiffLexer(), formatter)


__all__ = [
    "colorize_diff",
    "format_commit_rows",
    "format_git_status_badges",
    "format_project_row",
    "format_project_table",
    "sanitize_terminal_text",
]
