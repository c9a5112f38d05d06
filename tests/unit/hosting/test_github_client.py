"""Tests for the GitHub hosting client against a mocked HTTP transport."""

from __future__ import annotations

import json
import unittest
from unittest import mock

import httpx

from ketra.config import EngineConfig
from ketra.errors import CommandExecutionFailure, HostingError, HostingUnavailable
from ketra.hosting import GitHubClient, resolve_github_token
from ketra.types import CommandOutcome


def _client(handler) -> GitHubClient:
    return GitHubClient(
        EngineConfig(github_api_url="https://api.example.test"),
        token_provider=lambda: "secret-token",
        transport=httpx.MockTransport(handler),
    )


class GitHubClientTests(unittest.TestCase):
    def test_create_repository_posts_private_repo_and_returns_clone_url(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(201, json={"clone_url": "https://example.test/ada/app.git"})

        url = _client(handler).create_repository("app")

        self.assertEqual(url, "https://example.test/ada/app.git")
        self.assertEqual(seen[0].method, "POST")
        self.assertEqual(seen[0].url.path, "/user/repos")
        self.assertEqual(seen[0].headers["Authorization"], "Bearer secret-token")
        self.assertEqual(json.loads(seen[0].content), {"name": "app", "private": True, "auto_init": False})

    def test_create_repository_surfaces_api_message(self) -> None:
        def handler(_request: httpx.Request) -> httpx.Response:
            return httpx.Response(422, json={"message": "name already exists on this account"})

        with self.assertRaises(HostingError) as ctx:
            _client(handler).create_repository("app")
        self.assertIn("name already exists", str(ctx.exception))

    def test_delete_repository_uses_login_and_treats_404_as_absent(self) -> None:
        paths: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            paths.append(f"{request.method} {request.url.path}")
            if request.url.path == "/user":
                return httpx.Response(200, json={"login": "ada"})
            if request.url.path == "/repos/ada/gone":
                return httpx.Response(404, json={"message": "Not Found"})
            return httpx.Response(204)

        client = _client(handler)
        self.assertTrue(client.delete_repository("app"))
        self.assertFalse(client.delete_repository("gone"))
        self.assertIn("DELETE /repos/ada/app", paths)

    def test_transport_errors_become_hosting_errors(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("offline", request=request)

        with self.assertRaises(HostingError):
            _client(handler).current_login()


class TokenResolutionTests(unittest.TestCase):
    def test_environment_token_wins(self) -> None:
        config = EngineConfig(environ={"GITHUB_TOKEN": " tok \n"})
        with mock.patch("ketra.hosting.run_command") as run:
            self.assertEqual(resolve_github_token(config), "tok")
        run.assert_not_called()

    def test_gh_cli_fallback(self) -> None:
        outcome = CommandOutcome(exit_succeeded=True, stdout="gho_abc\n", stderr="")
        with mock.patch("ketra.hosting.run_command", return_value=outcome):
            self.assertEqual(resolve_github_token(EngineConfig()), "gho_abc")

    def test_missing_token_raises_hosting_unavailable(self) -> None:
        with mock.patch("ketra.hosting.run_command", side_effect=CommandExecutionFailure("no gh")):
            with self.assertRaises(HostingUnavailable):
                resolve_github_token(EngineConfig())
        failed = CommandOutcome(exit_succeeded=False, stdout="", stderr="not logged in", returncode=1)
        with mock.patch("ketra.hosting.run_command", return_value=failed):
            with self.assertRaises(HostingUnavailable):
                resolve_github_token(EngineConfig())


if __name__ == "__main__":
    unittest.main()
