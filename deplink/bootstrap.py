"""
bootstrap.py

Responsibility: Make sure `<project>/<container>/<name>` exists, cloning and linking if it does not.

Flow when the link is absent:
1) `git clone <clone_url>` into a sibling of the project directory
2) `git remote add <upstream_remote> <upstream_url>` in the clone
3) create the container directory inside the project
4) symlink the container entry to the absolute clone path

Anything already present at the link path (directory, symlink, even a broken
symlink) counts as satisfied unless `strict` is requested.
"""

from __future__ import annotations

import logging
import os
import shutil
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from deplink import git
from deplink.config import BootstrapConfig, ConfigError, LinkedDependency, check_dependency_name
from deplink.github_client import GitHubClient, GitHubError

log = logging.getLogger(__name__)


class BootstrapError(RuntimeError):
    pass


class CloneError(BootstrapError):
    pass


class LinkError(BootstrapError):
    pass


class Status(str, Enum):
    ALREADY_PRESENT = "already_present"
    LINKED = "linked"


@dataclass(frozen=True)
class BootstrapResult:
    status: Status
    link_path: Path
    clone_path: Path | None = None


def _entry_exists(path: Path) -> bool:
    # lexists: a dangling symlink still counts as present.
    return os.path.lexists(path)


def verify_link(dependency: LinkedDependency, project_dir: str | Path, *, check_remotes: bool = True) -> list[str]:
    """
    Return human-readable problems with an existing setup; an empty list means healthy.
    """
    link_path = dependency.link_path(Path(project_dir))
    if not _entry_exists(link_path):
        return [f"{link_path} does not exist"]

    problems: list[str] = []
    if link_path.is_symlink():
        try:
            target = link_path.resolve(strict=True)
        except (OSError, RuntimeError):
            # RuntimeError: symlink loop on Python < 3.13.
            return [f"{link_path} is a broken symlink (target {os.readlink(link_path)} does not resolve)"]
    else:
        target = link_path
        log.warning("%s is a regular directory, not a symlink", link_path)

    if not target.is_dir():
        return [f"{link_path} does not resolve to a directory"]
    if not git.is_clone(target):
        return [f"{target} is not a git clone"]

    if check_remotes:
        try:
            remotes = git.list_remotes(target)
        except git.GitError as e:
            return [f"cannot list remotes of {target}: {e.output.strip()}"]
        if "origin" not in remotes:
            problems.append(f"{target} has no `origin` remote")
        if dependency.upstream_remote not in remotes:
            problems.append(f"{target} has no `{dependency.upstream_remote}` remote")
        elif dependency.upstream_url and remotes[dependency.upstream_remote] != dependency.upstream_url:
            problems.append(
                f"`{dependency.upstream_remote}` remote of {target} points at "
                f"{remotes[dependency.upstream_remote]}, expected {dependency.upstream_url}"
            )
    return problems


def _remove_created(clone_path: Path | None, container_dir: Path | None, link_path: Path | None) -> None:
    if link_path is not None and _entry_exists(link_path):
        log.info("removing partially created link %s", link_path)
        link_path.unlink()
    if container_dir is not None and container_dir.is_dir() and not any(container_dir.iterdir()):
        log.info("removing partially created directory %s", container_dir)
        container_dir.rmdir()
    if clone_path is not None and clone_path.exists():
        log.info("removing partially created clone %s", clone_path)
        shutil.rmtree(clone_path)


def ensure_dependency_linked(
    project_dir: str | Path,
    dep_name: str,
    clone_repo_url: str,
    upstream_repo_url: str,
    *,
    container: str = "crates",
    upstream_remote: str = "upstream",
    clone_dir_name: str | None = None,
    strict: bool = False,
    cleanup_on_failure: bool = True,
) -> BootstrapResult:
    """
    Guarantee that `<project_dir>/<container>/<dep_name>` exists.

    Raises CloneError when cloning or registering the upstream remote fails and
    LinkError when the container or symlink cannot be created (or, in strict
    mode, when an existing entry is not a healthy clone). With
    `cleanup_on_failure`, everything this call created is removed before the
    error propagates.
    """
    project = Path(project_dir)
    if not project.is_dir():
        raise BootstrapError(f"Project directory does not exist: {project}")
    project = project.resolve()
    try:
        check_dependency_name(dep_name)
    except ConfigError as e:
        raise BootstrapError(str(e)) from e

    dependency = LinkedDependency(
        name=dep_name,
        clone_url=clone_repo_url,
        upstream_url=upstream_repo_url,
        upstream_remote=upstream_remote,
        container=container,
        clone_dir_name=clone_dir_name,
    )
    container_dir = dependency.container_dir(project)
    link_path = dependency.link_path(project)

    if _entry_exists(link_path):
        if strict:
            problems = verify_link(dependency, project, check_remotes=False)
            if problems:
                raise LinkError("Existing dependency entry is not usable:\n" + "\n".join(problems))
        log.info("%s already exists, nothing to do", link_path)
        return BootstrapResult(status=Status.ALREADY_PRESENT, link_path=link_path)

    clone_path = dependency.local_clone_path(project)
    created_clone: Path | None = None
    created_container: Path | None = None
    created_link: Path | None = None

    try:
        # git removes its own partial checkout, but never a directory that was already there.
        clone_preexisting = _entry_exists(clone_path)
        log.info("cloning %s into %s", clone_repo_url, clone_path)
        try:
            git.clone(clone_repo_url, clone_path)
        except git.GitError as e:
            raise CloneError(str(e)) from e
        if not clone_preexisting:
            created_clone = clone_path

        log.info("adding remote %s -> %s", upstream_remote, upstream_repo_url)
        try:
            git.add_remote(clone_path, upstream_remote, upstream_repo_url)
        except git.GitError as e:
            raise CloneError(str(e)) from e

        try:
            if not container_dir.is_dir():
                log.info("creating %s", container_dir)
                container_dir.mkdir(parents=True)
                created_container = container_dir
            log.info("linking %s -> %s", link_path, clone_path)
            link_path.symlink_to(clone_path, target_is_directory=True)
            created_link = link_path
        except OSError as e:
            raise LinkError(f"Failed to link {link_path} -> {clone_path}: {e}") from e
    except BootstrapError:
        if cleanup_on_failure:
            _remove_created(created_clone, created_container, created_link)
        raise

    return BootstrapResult(status=Status.LINKED, link_path=link_path, clone_path=clone_path)


def bootstrap(
    config: BootstrapConfig,
    project_dir: str | Path,
    *,
    github: GitHubClient | None = None,
) -> BootstrapResult:
    """
    Run `ensure_dependency_linked` for a loaded config.

    When the config names no upstream URL, the fork's parent is looked up on
    GitHub, but only if a clone is actually going to happen.
    """
    dependency = config.dependency
    upstream_url = dependency.upstream_url

    if upstream_url is None and not _entry_exists(dependency.link_path(Path(project_dir))):
        client = github or GitHubClient(os.environ.get("GITHUB_TOKEN"), api_base=config.github_api_base)
        try:
            upstream_url = client.discover_upstream(dependency.clone_url)
        except GitHubError as e:
            raise BootstrapError(str(e)) from e
        log.info("discovered upstream %s for %s", upstream_url, dependency.clone_url)

    return ensure_dependency_linked(
        project_dir,
        dependency.name,
        dependency.clone_url,
        upstream_url or "",
        container=dependency.container,
        upstream_remote=dependency.upstream_remote,
        clone_dir_name=dependency.clone_dir_name,
        strict=config.strict,
        cleanup_on_failure=config.cleanup_on_failure,
    )
