"""Blocking out-of-process execution with mandatory timeouts."""

from __future__ import annotations

import logging
import subprocess
from collections.abc import Sequence

from .errors import CommandExecutionFailure, CommandTimeout
from .types import CommandOutcome

logger = logging.getLogger(__name__)


def run_command(
    argv: Sequence[str],
    timeout_seconds: float,
    *,
    cwd: str | None = None,
    input_text: str | None = None,
) -> CommandOutcome:
    """Run ``argv`` without a shell and capture decoded output.

    Raises ``CommandTimeout`` when the process outlives ``timeout_seconds`` and
    ``CommandExecutionFailure`` when it cannot be spawned at all. A non-zero
    exit is not an exception; it is reported through the outcome.
    """
    argv = [str(part) for part in argv]
    logger.debug("run %s (cwd=%s, timeout=%ss)", argv, cwd, timeout_seconds)
    try:
        proc = subprocess.run(
            argv,
            cwd=cwd,
            input=input_text,
            stdin=None if input_text is not None else subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
            encoding="utf-8",
            errors="replace",
            check=False,
            timeout=timeout_seconds,
        )
    except subprocess.TimeoutExpired as exc:
        raise CommandTimeout(argv, timeout_seconds) from exc
    except OSError as exc:
        raise CommandExecutionFailure(f"Failed to execute {argv[0]}: {exc}") from exc

    return CommandOutcome(
        exit_succeeded=proc.returncode == 0,
        stdout=proc.stdout or "",
        stderr=proc.stderr or "",
        returncode=proc.returncode,
    )


__all__ = ["run_command"]
