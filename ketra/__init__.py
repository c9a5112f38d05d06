"""Public package surface for ketra.

Exports ``main`` for programmatic CLI invocation and ``Engine`` for library use.
Most implementation lives in submodules under ``ketra``.
"""

from __future__ import annotations


def main(*args, **kwargs):
    """Lazily import CLI entrypoint to keep package imports lightweight."""
    from .cli import main as _main

    return _main(*args, **kwargs)


def __getattr__(name: str):
    if name == "Engine":
        from .engine import Engine

        return Engine
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")

__all__ = ["Engine", "main"]
