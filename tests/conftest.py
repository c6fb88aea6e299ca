from __future__ import annotations

import os
import shutil
import subprocess
from pathlib import Path

import pytest

UPSTREAM_URL = "https://example.invalid/upstream/egui.git"

requires_git = pytest.mark.skipif(shutil.which("git") is None, reason="git executable not available")


def _git(args: list[str], cwd: Path) -> None:
    env = dict(os.environ)
    env.update(
        {
            "GIT_AUTHOR_NAME": "deplink-tests",
            "GIT_AUTHOR_EMAIL": "deplink-tests@example.invalid",
            "GIT_COMMITTER_NAME": "deplink-tests",
            "GIT_COMMITTER_EMAIL": "deplink-tests@example.invalid",
        }
    )
    subprocess.run(["git", *args], cwd=str(cwd), env=env, check=True, stdout=subprocess.PIPE, stderr=subprocess.STDOUT)


@pytest.fixture
def source_repo(tmp_path: Path) -> Path:
    """A local repository with one commit, standing in for the fork."""
    repo = tmp_path / "remotes" / "egui"
    repo.mkdir(parents=True)
    _git(["init", "-q"], repo)
    (repo / "README.md").write_text("egui fork\n", encoding="utf-8")
    _git(["add", "README.md"], repo)
    _git(["commit", "-q", "-m", "Initial commit"], repo)
    return repo


@pytest.fixture
def project(tmp_path: Path) -> Path:
    project_dir = tmp_path / "workspace" / "project"
    project_dir.mkdir(parents=True)
    return project_dir.resolve()


def snapshot(root: Path) -> dict[str, str]:
    """Map of relative path -> symlink target / file content / '<dir>' for everything under root."""
    out: dict[str, str] = {}
    for dirpath, dirnames, filenames in os.walk(root):
        for name in sorted(dirnames + filenames):
            path = Path(dirpath) / name
            rel = str(path.relative_to(root))
            if path.is_symlink():
                out[rel] = "-> " + os.readlink(path)
            elif path.is_dir():
                out[rel] = "<dir>"
            else:
                out[rel] = path.read_bytes().hex()
    return out
