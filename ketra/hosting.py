"""GitHub hosting collaborator: token lookup and repository create/delete.

Only the pieces the git engine needs are covered: a clone URL for a newly
created private repository, deletion of a repository, and the login that
owns the token.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

import httpx

from .config import EngineConfig
from .errors import CommandExecutionFailure, HostingError, HostingUnavailable
from .process import run_command

logger = logging.getLogger(__name__)

USER_AGENT = "ketra"
GH_TOKEN_TIMEOUT_SECONDS = 10.0
MISSING_TOKEN_MESSAGE = (
    "GitHub token not found. Please run 'gh auth login' or set GITHUB_TOKEN environment variable."
)


def resolve_github_token(config: EngineConfig) -> str:
    """Return a token from ``GITHUB_TOKEN`` or the ``gh`` CLI.

    Raises ``HostingUnavailable`` when neither source yields one.
    """
    token = (config.environ.get("GITHUB_TOKEN") or "").strip()
    if token:
        return token

    try:
        outcome = run_command(["gh", "auth", "token"], GH_TOKEN_TIMEOUT_SECONDS)
    except CommandExecutionFailure as exc:
        logger.debug("gh auth token unavailable: %s", exc)
        raise HostingUnavailable(MISSING_TOKEN_MESSAGE) from exc

    token = outcome.stdout.strip()
    if not outcome.exit_succeeded or not token:
        raise HostingUnavailable(MISSING_TOKEN_MESSAGE)
    return token


def _error_detail(response: httpx.Response) -> str:
    try:
        data = response.json()
    except ValueError:
        return response.text or f"HTTP {response.status_code}"
    if isinstance(data, dict) and isinstance(data.get("message"), str):
        return data["message"]
    return response.text or f"HTTP {response.status_code}"


class GitHubClient:
    """Minimal REST client for the GitHub API."""

    def __init__(
        self,
        config: EngineConfig,
        *,
        token_provider: Callable[[], str] | None = None,
        transport: httpx.BaseTransport | None = None,
        timeout_seconds: float = 30.0,
    ) -> None:
        self.base_url = config.github_api_url.rstrip("/")
        self._token_provider = token_provider or (lambda: resolve_github_token(config))
        self._transport = transport
        self.timeout_seconds = timeout_seconds

    def _client(self) -> httpx.Client:
        token = self._token_provider()
        return httpx.Client(
            base_url=self.base_url,
            headers={
                "Authorization": f"Bearer {token}",
                "Accept": "application/vnd.github+json",
                "User-Agent": USER_AGENT,
            },
            timeout=self.timeout_seconds,
            transport=self._transport,
        )

    def _request(self, method: str, url: str, **kwargs: object) -> httpx.Response:
        with self._client() as client:
            try:
                return client.request(method, url, **kwargs)
            except httpx.HTTPError as exc:
                raise HostingError(f"GitHub request failed: {exc}") from exc

    def current_login(self) -> str:
        response = self._request("GET", "/user")
        if not response.is_success:
            raise HostingError(f"GitHub API error: {_error_detail(response)}")
        login = response.json().get("login")
        if not isinstance(login, str) or not login:
            raise HostingError("GitHub API response did not include a login")
        return login

    def create_repository(self, name: str, private: bool = True) -> str:
        """Create a repository for the token owner and return its clone URL."""
        response = self._request(
            "POST",
            "/user/repos",
            json={"name": name, "private": private, "auto_init": False},
        )
        if not response.is_success:
            raise HostingError(f"GitHub API error: {_error_detail(response)}")
        clone_url = response.json().get("clone_url")
        if not isinstance(clone_url, str) or not clone_url:
            raise HostingError("Failed to get clone URL from response")
        return clone_url

    def delete_repository(self, name: str) -> bool:
        """Delete ``<login>/<name>``; returns ``False`` when it did not exist."""
        login = self.current_login()
        response = self._request("DELETE", f"/repos/{login}/{name}")
        if response.status_code == 404:
            return False
        if not response.is_success:
            raise HostingError(f"GitHub API error: {_error_detail(response)}")
        return True


__all__ = [
    "GitHubClient",
    "MISSING_TOKEN_MESSAGE",
    "resolve_github_token",
]
