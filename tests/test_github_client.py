from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest
import requests

from deplink.github_client import GitHubClient, GitHubError, parse_github_url


def _response(status: int, payload: dict) -> MagicMock:
    r = MagicMock()
    r.status_code = status
    r.json.return_value = payload
    r.text = str(payload)
    return r


FORK_PAYLOAD = {
    "html_url": "https://github.com/yay/egui",
    "clone_url": "https://github.com/yay/egui.git",
    "fork": True,
    "parent": {"clone_url": "https://github.com/emilk/egui.git"},
}


@pytest.mark.parametrize(
    ("url", "expected"),
    [
        ("https://github.com/yay/egui.git", ("yay", "egui")),
        ("https://github.com/yay/egui", ("yay", "egui")),
        ("git@github.com:yay/egui.git", ("yay", "egui")),
        ("ssh://git@github.com/yay/egui.git", ("yay", "egui")),
        ("https://gitlab.com/yay/egui.git", None),
        ("/srv/git/egui", None),
    ],
)
def test_parse_github_url(url: str, expected: tuple[str, str] | None) -> None:
    assert parse_github_url(url) == expected


def test_get_repo_reports_fork_parent() -> None:
    with patch("deplink.github_client.requests.request", return_value=_response(200, FORK_PAYLOAD)) as req:
        repo = GitHubClient().get_repo("yay", "egui")

    assert repo is not None
    assert repo.fork is True
    assert repo.parent_clone_url == "https://github.com/emilk/egui.git"
    args, kwargs = req.call_args
    assert args == ("GET", "https://api.github.com/repos/yay/egui")
    assert "Authorization" not in kwargs["headers"]
    assert kwargs["timeout"] == 30


def test_token_is_sent_when_given() -> None:
    with patch("deplink.github_client.requests.request", return_value=_response(200, FORK_PAYLOAD)) as req:
        GitHubClient("secret", api_base="https://ghe.example.invalid/api/v3/").get_repo("yay", "egui")

    args, kwargs = req.call_args
    assert args[1] == "https://ghe.example.invalid/api/v3/repos/yay/egui"
    assert kwargs["headers"]["Authorization"] == "Bearer secret"


def test_get_repo_missing_returns_none() -> None:
    with patch("deplink.github_client.requests.request", return_value=_response(404, {"message": "Not Found"})):
        assert GitHubClient().get_repo("yay", "nope") is None


def test_get_repo_other_errors_propagate() -> None:
    with patch("deplink.github_client.requests.request", return_value=_response(403, {"message": "rate limited"})):
        with pytest.raises(GitHubError, match="rate limited"):
            GitHubClient().get_repo("yay", "egui")


def test_network_failure_is_a_github_error() -> None:
    with patch("deplink.github_client.requests.request", side_effect=requests.ConnectionError("offline")):
        with pytest.raises(GitHubError, match="offline"):
            GitHubClient().get_repo("yay", "egui")


def test_discover_upstream() -> None:
    with patch("deplink.github_client.requests.request", return_value=_response(200, FORK_PAYLOAD)):
        assert GitHubClient().discover_upstream("git@github.com:yay/egui.git") == "https://github.com/emilk/egui.git"


def test_discover_upstream_requires_fork() -> None:
    payload = {**FORK_PAYLOAD, "fork": False, "parent": None}
    with patch("deplink.github_client.requests.request", return_value=_response(200, payload)):
        with pytest.raises(GitHubError, match="not a fork"):
            GitHubClient().discover_upstream("https://github.com/yay/egui.git")


def test_discover_upstream_requires_github_url() -> None:
    with pytest.raises(GitHubError, match="not a GitHub URL"):
        GitHubClient().discover_upstream("/srv/git/egui")


def test_non_json_success_is_a_github_error() -> None:
    r = _response(200, {})
    r.json.side_effect = ValueError("Expecting value")
    with patch("deplink.github_client.requests.request", return_value=r):
        with pytest.raises(GitHubError, match="non-JSON"):
            GitHubClient().get_repo("yay", "egui")
