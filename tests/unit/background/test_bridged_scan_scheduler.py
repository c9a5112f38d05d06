"""Tests for the background bridged-scan scheduler."""

from __future__ import annotations

import threading
import time
import unittest

from ketra.background import BridgedScanScheduler
from ketra.types import EnvironmentKind, Project


def _wait_for_results(scheduler: BridgedScanScheduler, *, expected_count: int, timeout_seconds: float = 1.0) -> list:
    deadline = time.monotonic() + timeout_seconds
    out: list = []
    while time.monotonic() < deadline:
        out.extend(scheduler.drain_results())
        if len(out) >= expected_count:
            break
        time.sleep(0.01)
    return out


class BridgedScanSchedulerTests(unittest.TestCase):
    def test_scan_runs_in_background(self) -> None:
        project = Project(name="app", path="/home/u/ketra/app", environment=EnvironmentKind.BRIDGED)
        scheduler = BridgedScanScheduler(lambda: [project])

        request_id = scheduler.schedule()
        results = _wait_for_results(scheduler, expected_count=1)

        self.assertEqual(len(results), 1)
        self.assertEqual(results[0].request_id, request_id)
        self.assertEqual(results[0].projects, (project,))
        self.assertIsNone(results[0].error)

    def test_pending_requests_collapse_to_latest(self) -> None:
        first_started = threading.Event()
        allow_first_finish = threading.Event()
        calls: list[int] = []

        def scan() -> list[Project]:
            calls.append(len(calls))
            if len(calls) == 1:
                first_started.set()
                allow_first_finish.wait(1.0)
            return []

        scheduler = BridgedScanScheduler(scan)
        first = scheduler.schedule()
        self.assertTrue(first_started.wait(1.0))
        scheduler.schedule()
        latest = scheduler.schedule()
        allow_first_finish.set()

        results = _wait_for_results(scheduler, expected_count=2)
        self.assertEqual([r.request_id for r in results], [first, latest])
        self.assertEqual(len(calls), 2)

    def test_scan_errors_are_reported_not_raised(self) -> None:
        def scan() -> list[Project]:
            raise RuntimeError("bridge exploded")

        scheduler = BridgedScanScheduler(scan)
        result = scheduler.wait_for_result(scheduler.schedule(), timeout_seconds=1.0)

        self.assertIsNotNone(result)
        self.assertEqual(result.projects, ())
        self.assertIsInstance(result.error, RuntimeError)

    def test_wait_for_result_times_out(self) -> None:
        release = threading.Event()
        scheduler = BridgedScanScheduler(lambda: release.wait(1.0) and [])
        request_id = scheduler.schedule()
        try:
            self.assertIsNone(scheduler.wait_for_result(request_id, timeout_seconds=0.05))
        finally:
            release.set()


if __name__ == "__main__":
    unittest.main()
