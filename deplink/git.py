"""
git.py

Responsibility: Isolate all invocations of the `git` executable.

Every command runs with an explicit `cwd`; the process working directory is never changed.
Failures carry the tool's own output so callers can surface it unmodified.
"""

from __future__ import annotations

import logging
import os
import subprocess
from pathlib import Path

log = logging.getLogger(__name__)


class GitError(RuntimeError):
    def __init__(self, cmd: list[str], output: str, returncode: int | None = None) -> None:
        self.cmd = cmd
        self.output = output
        self.returncode = returncode
        super().__init__(f"Command failed: {' '.join(cmd)}\n\n{output}".rstrip())


def _git_env() -> dict[str, str]:
    env = os.environ.copy()
    # Never block on a credential prompt; an unreachable remote should fail.
    env["GIT_TERMINAL_PROMPT"] = "0"
    return env


def run_git(args: list[str], *, cwd: str | Path) -> str:
    """
    Run `git <args>` in `cwd` and return its combined output, raising GitError on failure.
    """
    cmd = ["git", *args]
    log.debug("running %s (cwd=%s)", " ".join(cmd), cwd)
    try:
        proc = subprocess.run(
            cmd,
            cwd=str(cwd),
            env=_git_env(),
            check=True,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
        )
    except FileNotFoundError as e:
        raise GitError(cmd, f"git executable not found: {e}") from e
    except subprocess.CalledProcessError as e:
        raise GitError(cmd, e.stdout or "", e.returncode) from e
    return proc.stdout


def clone(url: str, destination: Path) -> None:
    destination = Path(destination)
    run_git(["clone", url, destination.name], cwd=destination.parent)


def add_remote(repo: Path, name: str, url: str) -> None:
    run_git(["remote", "add", name, url], cwd=repo)


def list_remotes(repo: Path) -> dict[str, str]:
    """
    Return {remote_name: fetch_url} for the clone at `repo`.
    """
    out = run_git(["remote", "-v"], cwd=repo)
    remotes: dict[str, str] = {}
    for line in out.splitlines():
        parts = line.split()
        if len(parts) >= 3 and parts[2] == "(fetch)":
            remotes[parts[0]] = parts[1]
    return remotes


def is_clone(path: Path) -> bool:
    return Path(path).is_dir() and (Path(path) / ".git").exists()
