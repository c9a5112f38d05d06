"""Background worker that completes a fast scan with bridged projects."""

from __future__ import annotations

import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from queue import Empty, Queue

from .types import Project


@dataclass(frozen=True)
class BridgedScanResult:
    """Completed bridged scan delivered by the background worker."""

    request_id: int
    projects: tuple[Project, ...]
    error: Exception | None = None


class BridgedScanScheduler:
    """Single-threaded latest-request-wins scheduler for bridged scans."""

    def __init__(self, scan: Callable[[], list[Project]]) -> None:
        self._scan = scan
        self._lock = threading.Lock()
        self._pending: int | None = None
        self._running = False
        self._next_request_id = 1
        self._results: Queue[BridgedScanResult] = Queue()

    def _worker(self) -> None:
        while True:
            with self._lock:
                request_id = self._pending
                self._pending = None
                if request_id is None:
                    self._running = False
                    return

            try:
                projects = tuple(self._scan())
            except Exception as exc:
                self._results.put(BridgedScanResult(request_id=request_id, projects=(), error=exc))
                continue
            self._results.put(BridgedScanResult(request_id=request_id, projects=projects))

    def schedule(self) -> int:
        """Queue (or replace) pending scan work and return its request id."""
        with self._lock:
            request_id = self._next_request_id
            self._next_request_id += 1
            self._pending = request_id
            if self._running:
                return request_id
            self._running = True

        worker = threading.Thread(
            target=self._worker,
            name="ketra-bridged-scan",
            daemon=True,
        )
        worker.start()
        return request_id

    def drain_results(self) -> list[BridgedScanResult]:
        """Drain all completed scan results."""
        out: list[BridgedScanResult] = []
        while True:
            try:
                out.append(self._results.get_nowait())
            except Empty:
                break
        return out

    def wait_for_result(self, request_id: int, timeout_seconds: float) -> BridgedScanResult | None:
        """Block until ``request_id`` completes; ``None`` on timeout."""
        deadline = time.monotonic() + timeout_seconds
        while True:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                return None
            try:
                result = self._results.get(timeout=min(remaining, 0.05))
            except Empty:
                continue
            if result.request_id == request_id:
                return result


__all__ = ["BridgedScanResult", "BridgedScanScheduler"]
