"""Integration tests for git status probing against real repositories.

Both environment variants are exercised; the bridged one uses ``env`` as its
bridge so commands run on the local machine through the same code path.
"""

from __future__ import annotations

import os
import shutil
import subprocess
import tempfile
import unittest
from pathlib import Path

from ketra.config import EngineConfig
from ketra.environment import BridgedEnvironment, NativeEnvironment
from ketra.git_status import probe_git_status


def _init_repo(root: Path) -> None:
    subprocess.run(["git", "init", "-q"], cwd=root, check=True)
    subprocess.run(["git", "symbolic-ref", "HEAD", "refs/heads/main"], cwd=root, check=True)
    subprocess.run(["git", "config", "user.email", "tests@example.com"], cwd=root, check=True)
    subprocess.run(["git", "config", "user.name", "Tests"], cwd=root, check=True)
    (root / "a.txt").write_text("a\n", encoding="utf-8")
    subprocess.run(["git", "add", "-A"], cwd=root, check=True)
    subprocess.run(["git", "commit", "-q", "-m", "initial"], cwd=root, check=True)


@unittest.skipIf(shutil.which("git") is None, "git is required for status probe tests")
class GitStatusProbeTests(unittest.TestCase):
    def _environments(self):
        return (
            NativeEnvironment(EngineConfig()),
            BridgedEnvironment(EngineConfig(bridge_command=("env",))),
        )

    def test_clean_repository(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp).resolve()
            _init_repo(root)
            for environment in self._environments():
                with self.subTest(environment=environment.kind.value):
                    status = probe_git_status(environment, str(root))
                    self.assertIsNotNone(status)
                    self.assertEqual(status.branch, "main")
                    self.assertTrue(status.is_clean)
                    self.assertEqual(status.uncommitted_files, 0)
                    self.assertEqual((status.commits_ahead, status.commits_behind), (0, 0))

    def test_dirty_repository_counts_changed_and_untracked_files(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp).resolve()
            _init_repo(root)
            (root / "a.txt").write_text("changed\n", encoding="utf-8")
            (root / "new.txt").write_text("new\n", encoding="utf-8")
            for environment in self._environments():
                with self.subTest(environment=environment.kind.value):
                    status = probe_git_status(environment, str(root))
                    self.assertFalse(status.is_clean)
                    self.assertEqual(status.uncommitted_files, 2)

    def test_ahead_of_upstream(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            base = Path(tmp).resolve()
            remote = base / "remote.git"
            work = base / "work"
            work.mkdir()
            subprocess.run(["git", "init", "-q", "--bare", str(remote)], check=True)
            _init_repo(work)
            subprocess.run(["git", "remote", "add", "origin", str(remote)], cwd=work, check=True)
            subprocess.run(["git", "push", "-q", "-u", "origin", "main"], cwd=work, check=True, capture_output=True)
            (work / "b.txt").write_text("b\n", encoding="utf-8")
            subprocess.run(["git", "add", "-A"], cwd=work, check=True)
            subprocess.run(["git", "commit", "-q", "-m", "second"], cwd=work, check=True)

            status = probe_git_status(NativeEnvironment(EngineConfig()), str(work))
        self.assertEqual((status.commits_ahead, status.commits_behind), (1, 0))

    def test_non_repository_has_no_status(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            for environment in self._environments():
                with self.subTest(environment=environment.kind.value):
                    self.assertIsNone(probe_git_status(environment, tmp))
                    self.assertIsNone(probe_git_status(environment, os.path.join(tmp, "missing")))

    def test_unreachable_bridge_has_no_status(self) -> None:
        environment = BridgedEnvironment(EngineConfig(bridge_command=("/nonexistent/ketra-bridge",)))
        with tempfile.TemporaryDirectory() as tmp:
            self.assertIsNone(probe_git_status(environment, tmp))


if __name__ == "__main__":
    unittest.main()
