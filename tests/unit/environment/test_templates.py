"""Tests for project template lookup and initialization."""

from __future__ import annotations

import tempfile
import unittest
from pathlib import Path
from unittest import mock

from ketra.config import EngineConfig
from ketra.environment import NativeEnvironment
from ketra.errors import InvalidArgument, KetraError
from ketra.templates import TEMPLATE_NAMES, init_project_template, resolve_template
from ketra.types import CommandOutcome


class TemplateTests(unittest.TestCase):
    def test_known_templates(self) -> None:
        self.assertEqual(TEMPLATE_NAMES, ("empty", "python", "node", "go", "rust"))
        self.assertEqual(resolve_template("demo", "").name, "empty")
        self.assertEqual(resolve_template("demo", " Go ").init_command, ("go", "mod", "init", "demo"))
        with self.assertRaises(InvalidArgument):
            resolve_template("demo", "cobol")

    def test_files_are_written_after_init_command(self) -> None:
        environment = NativeEnvironment(EngineConfig())
        ok = CommandOutcome(exit_succeeded=True, stdout="", stderr="")
        with tempfile.TemporaryDirectory() as tmp, mock.patch.object(environment, "run", return_value=ok) as run:
            init_project_template(environment, tmp, "node")
            self.assertTrue((Path(tmp) / "index.js").is_file())
        self.assertEqual(run.call_args.args[1], ("npm", "init", "-y"))

    def test_failed_init_command_raises(self) -> None:
        environment = NativeEnvironment(EngineConfig())
        failed = CommandOutcome(exit_succeeded=False, stdout="", stderr="cargo: not found", returncode=127)
        with tempfile.TemporaryDirectory() as tmp, mock.patch.object(environment, "run", return_value=failed):
            with self.assertRaises(KetraError) as ctx:
                init_project_template(environment, tmp, "rust")
        self.assertIn("cargo: not found", str(ctx.exception))


if __name__ == "__main__":
    unittest.main()
