"""Combine per-environment project lists into the final ordering."""

from __future__ import annotations

from collections.abc import Sequence

from .types import Project


def sort_by_last_opened(projects: Sequence[Project]) -> list[Project]:
    """Most recent first; equal timestamps keep their incoming order."""
    return sorted(projects, key=lambda project: project.last_opened, reverse=True)


def merge_projects(native: Sequence[Project], bridged: Sequence[Project]) -> list[Project]:
    """Concatenate native then bridged projects and sort stably.

    No deduplication: the two environments are disjoint namespaces, so a
    folder name present in both yields two entries.
    """
    return sort_by_last_opened([*native, *bridged])


__all__ = ["merge_projects", "sort_by_last_opened"]
