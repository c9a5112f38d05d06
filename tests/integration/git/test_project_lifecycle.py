"""Integration tests for creating, checking, and deleting projects."""

from __future__ import annotations

import os
import shutil
import subprocess
import tempfile
import unittest
from pathlib import Path
from unittest import mock

from ketra.config import EngineConfig
from ketra.engine import Engine
from ketra.errors import HostingError, HostingUnavailable, InvalidArgument, ProjectExists, ProjectNotFound

GIT_IDENTITY = {
    "GIT_AUTHOR_NAME": "Tests",
    "GIT_AUTHOR_EMAIL": "tests@example.com",
    "GIT_COMMITTER_NAME": "Tests",
    "GIT_COMMITTER_EMAIL": "tests@example.com",
}


def _git(root: Path, *args: str) -> str:
    return subprocess.run(["git", *args], cwd=root, check=True, capture_output=True, text=True).stdout


class _FakeHost:
    def __init__(self, base: Path) -> None:
        self.base = base
        self.created: list[str] = []
        self.deleted: list[str] = []
        self.delete_error: Exception | None = None

    def create_repository(self, name: str) -> str:
        self.created.append(name)
        target = self.base / f"{name}.git"
        subprocess.run(["git", "init", "-q", "--bare", str(target)], check=True)
        return str(target)

    def delete_repository(self, name: str) -> bool:
        if self.delete_error is not None:
            raise self.delete_error
        self.deleted.append(name)
        return True

    def current_login(self) -> str:
        return "ada"


@unittest.skipIf(shutil.which("git") is None, "git is required for project lifecycle tests")
class ProjectLifecycleTests(unittest.TestCase):
    def setUp(self) -> None:
        tmp = tempfile.TemporaryDirectory()
        self.addCleanup(tmp.cleanup)
        base = Path(tmp.name).resolve()
        self.native_root = base / "native"
        self.bridged_root = base / "bridged"
        remotes = base / "remotes"
        remotes.mkdir()
        self.host = _FakeHost(remotes)
        config = EngineConfig(
            native_root=str(self.native_root),
            bridged_root=str(self.bridged_root),
            bridge_command=("env",),
        )
        self.engine = Engine(config, host=self.host)
        patcher = mock.patch.dict(os.environ, GIT_IDENTITY)
        patcher.start()
        self.addCleanup(patcher.stop)

    def test_create_python_project(self) -> None:
        path = Path(self.engine.create_project("demo", "native", "python"))

        self.assertEqual(path, self.native_root / "demo")
        self.assertIn("Hello, World!", (path / "main.py").read_text(encoding="utf-8"))
        self.assertEqual(_git(path, "log", "--format=%s").splitlines(), ["Initial commit"])
        self.assertEqual(_git(path, "branch", "--show-current").strip(), "main")
        self.assertTrue(self.engine.project_exists("demo", "native"))
        self.assertFalse(self.engine.project_exists("demo", "bridged"))

        with self.assertRaises(ProjectExists):
            self.engine.create_project("demo", "native")

    @unittest.skipIf(shutil.which("env") is None or shutil.which("sh") is None, "env and sh are required")
    def test_create_project_through_bridge(self) -> None:
        path = Path(self.engine.create_project("bridged-demo", "wsl"))

        self.assertEqual(path, self.bridged_root / "bridged-demo")
        self.assertEqual((path / "README.md").read_text(encoding="utf-8"), "# bridged-demo\n\nA new project.\n")
        self.assertEqual(_git(path, "log", "--format=%s").strip(), "Initial commit")
        self.assertTrue(self.engine.project_exists("bridged-demo", "bridged"))

    def test_create_project_with_hosting_repository(self) -> None:
        path = Path(self.engine.create_project("shared", "native", create_repo=True))

        self.assertEqual(self.host.created, ["shared"])
        self.assertEqual(_git(path, "rev-parse", "--abbrev-ref", "main@{u}").strip(), "origin/main")

    def test_invalid_names_and_templates_are_rejected(self) -> None:
        for name in ("", "..", "a/b"):
            with self.subTest(name=name):
                with self.assertRaises(InvalidArgument):
                    self.engine.create_project(name, "native")
        with self.assertRaises(InvalidArgument):
            self.engine.create_project("demo", "native", "cobol")

    def test_delete_project_removes_folder_and_hosting_repository(self) -> None:
        path = self.engine.create_project("doomed", "native")
        self.engine.delete_project(path, "doomed")
        self.assertFalse(os.path.exists(path))
        self.assertEqual(self.host.deleted, ["doomed"])

    def test_delete_project_ignores_hosting_failures(self) -> None:
        for error in (HostingUnavailable("no token"), HostingError("boom")):
            with self.subTest(error=type(error).__name__):
                path = self.engine.create_project("doomed", "native")
                self.host.delete_error = error
                self.engine.delete_project(path, "doomed")
                self.assertFalse(os.path.exists(path))

    def test_delete_missing_project_raises(self) -> None:
        with self.assertRaises(ProjectNotFound):
            self.engine.delete_project(str(self.native_root / "ghost"), "ghost")

    def test_check_hosting_auth(self) -> None:
        self.assertEqual(self.engine.check_hosting_auth(), "ada")


if __name__ == "__main__":
    unittest.main()
