"""
github_client.py

Responsibility: Isolate all direct GitHub REST API interaction.

Only used to discover the upstream of a fork when no upstream URL is configured:
the fork's `parent.clone_url` becomes the upstream remote.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any

import requests

_GITHUB_URL_RE = re.compile(
    r"^(?:https?://(?:[^@/]+@)?github\.com/|git@github\.com:|ssh://git@github\.com/)"
    r"(?P<owner>[^/]+)/(?P<name>[^/]+?)(?:\.git)?/?$"
)


class GitHubError(RuntimeError):
    pass


@dataclass(frozen=True)
class RepoInfo:
    owner: str
    name: str
    html_url: str
    clone_url: str
    fork: bool = False
    parent_clone_url: str | None = None


def parse_github_url(url: str) -> tuple[str, str] | None:
    """
    Return (owner, name) for a github.com clone URL, or None for anything else.
    """
    m = _GITHUB_URL_RE.match(url.strip())
    if m is None:
        return None
    return m.group("owner"), m.group("name")


class GitHubClient:
    def __init__(self, token: str | None = None, api_base: str = "https://api.github.com") -> None:
        self._token = (token or "").strip() or None
        self._api_base = api_base.rstrip("/")

    def _headers(self) -> dict[str, str]:
        headers = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
            "User-Agent": "deplink",
        }
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        return headers

    def _request(self, method: str, path: str) -> Any:
        url = f"{self._api_base}{path}"
        try:
            r = requests.request(method, url, headers=self._headers(), timeout=30)
        except requests.RequestException as e:
            raise GitHubError(f"GitHub API request failed {method} {path}: {e}") from e
        if r.status_code >= 400:
            try:
                payload = r.json()
            except ValueError:
                payload = {"message": r.text}
            raise GitHubError(f"GitHub API error {r.status_code} {method} {path}: {payload.get('message', payload)}")
        try:
            return r.json()
        except ValueError as e:
            raise GitHubError(f"GitHub API returned a non-JSON response {r.status_code} {method} {path}") from e

    def get_repo(self, owner: str, name: str) -> RepoInfo | None:
        """
        Return RepoInfo if the repo exists and is accessible; otherwise None.
        """
        try:
            data = self._request("GET", f"/repos/{owner}/{name}")
        except GitHubError as e:
            msg = str(e).lower()
            if "404" in msg or "not found" in msg:
                return None
            raise
        parent = data.get("parent") or {}
        return RepoInfo(
            owner=owner,
            name=name,
            html_url=data["html_url"],
            clone_url=data["clone_url"],
            fork=bool(data.get("fork")),
            parent_clone_url=parent.get("clone_url"),
        )

    def discover_upstream(self, clone_url: str) -> str:
        """
        Return the clone URL of the repository `clone_url` was forked from.
        """
        parsed = parse_github_url(clone_url)
        if parsed is None:
            raise GitHubError(f"Cannot discover upstream: not a GitHub URL: {clone_url}")
        owner, name = parsed
        repo = self.get_repo(owner, name)
        if repo is None:
            raise GitHubError(f"Cannot discover upstream: repository not found: {owner}/{name}")
        if not repo.fork or not repo.parent_clone_url:
            raise GitHubError(f"Cannot discover upstream: {owner}/{name} is not a fork")
        return repo.parent_clone_url
