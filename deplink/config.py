"""
config.py

Responsibility: Load the dependency description into a deterministic, typed model.

- With no config file, the built-in defaults describe the egui fork.
- A config file is YAML; string values may reference `{{ name }}`,
  `{{ project_dir }}` and any entry of `variables` (Jinja2, strict undefined).

The bootstrapper and CLI should treat the parsed result as the single source of truth.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml
from jinja2 import Environment, StrictUndefined, TemplateError

DEFAULT_NAME = "egui"
DEFAULT_CLONE_URL = "https://github.com/yay/egui.git"
DEFAULT_UPSTREAM_URL = "https://github.com/emilk/egui.git"
DEFAULT_CONTAINER = "crates"
DEFAULT_UPSTREAM_REMOTE = "upstream"
DEFAULT_GITHUB_API = "https://api.github.com"


class ConfigError(ValueError):
    pass


def repo_dir_name(url: str) -> str:
    """
    The directory name `git clone <url>` would create: last path segment, minus `.git`.
    """
    tail = url.rstrip("/").rstrip("\\")
    for sep in ("/", ":", "\\"):
        tail = tail.rsplit(sep, 1)[-1]
    if tail.endswith(".git"):
        tail = tail[: -len(".git")]
    if not tail:
        raise ConfigError(f"Cannot derive a directory name from clone URL: {url!r}")
    return tail


def check_dependency_name(name: str) -> str:
    """
    The name becomes a single path component under the container directory.
    """
    if not name or name in (".", "..") or "/" in name or "\\" in name:
        raise ConfigError(f"Dependency name must be a single path component: {name!r}")
    return name


@dataclass(frozen=True)
class LinkedDependency:
    """A forked repository cloned next to the project and linked into it."""

    name: str
    clone_url: str
    upstream_url: str | None = None
    upstream_remote: str = DEFAULT_UPSTREAM_REMOTE
    container: str = DEFAULT_CONTAINER
    clone_dir_name: str | None = None

    def container_dir(self, project_dir: Path) -> Path:
        return Path(project_dir) / self.container

    def link_path(self, project_dir: Path) -> Path:
        return self.container_dir(project_dir) / self.name

    def local_clone_path(self, project_dir: Path) -> Path:
        dir_name = self.clone_dir_name or repo_dir_name(self.clone_url)
        return Path(project_dir).resolve().parent / dir_name


@dataclass(frozen=True)
class BootstrapConfig:
    """Everything a single bootstrap run needs."""

    dependency: LinkedDependency = field(
        default_factory=lambda: LinkedDependency(
            name=DEFAULT_NAME,
            clone_url=DEFAULT_CLONE_URL,
            upstream_url=DEFAULT_UPSTREAM_URL,
        )
    )
    strict: bool = False
    cleanup_on_failure: bool = True
    github_api_base: str = DEFAULT_GITHUB_API
    variables: dict[str, Any] = field(default_factory=dict)

    def as_dict(self) -> dict[str, Any]:
        dep = self.dependency
        return {
            "dependency": {
                "name": dep.name,
                "clone_url": dep.clone_url,
                "upstream_url": dep.upstream_url,
                "upstream_remote": dep.upstream_remote,
                "container": dep.container,
                "clone_dir_name": dep.clone_dir_name or repo_dir_name(dep.clone_url),
            },
            "strict": self.strict,
            "cleanup_on_failure": self.cleanup_on_failure,
            "github_api_base": self.github_api_base,
            "variables": dict(self.variables),
        }


def _read_yaml(path: Path) -> dict[str, Any]:
    if not path.exists():
        raise ConfigError(f"Config file does not exist: {path}")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Config file is not valid YAML: {path}") from e
    if not isinstance(data, dict):
        raise ConfigError("Config must be a mapping/object at the top level.")
    return data


def _optional_str(raw: dict[str, Any], key: str) -> str | None:
    value = raw.get(key)
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def _render(value: str | None, env: Environment, context: dict[str, Any], key: str) -> str | None:
    if value is None or ("{{" not in value and "{%" not in value):
        return value
    try:
        return env.from_string(value).render(**context)
    except TemplateError as e:
        raise ConfigError(f"Failed rendering config value `{key}`: {e}") from e


def load_config(config_path: str | Path | None = None, *, project_dir: str | Path | None = None) -> BootstrapConfig:
    """
    Load a `BootstrapConfig`.

    Recognized YAML keys:
    - dependency.name: str (required)
    - dependency.clone_url: str (required)
    - dependency.upstream_url: str (omit to look up the fork's parent on GitHub)
    - dependency.upstream_remote, dependency.container, dependency.clone_dir_name: str
    - strict, cleanup_on_failure: bool
    - github_api_base: str
    - variables: dict (values available to `{{ ... }}` expressions)
    """
    if config_path is None:
        return BootstrapConfig()

    data = _read_yaml(Path(config_path))

    dep_raw = data.get("dependency")
    if not isinstance(dep_raw, dict):
        raise ConfigError("`dependency` must be an object/mapping.")

    vars_raw = data.get("variables") or {}
    if not isinstance(vars_raw, dict):
        raise ConfigError("`variables` must be an object/mapping when provided.")
    variables = dict(sorted(vars_raw.items(), key=lambda kv: str(kv[0])))

    name = _optional_str(dep_raw, "name")
    if not name:
        raise ConfigError("`dependency.name` is required.")
    check_dependency_name(name)

    env = Environment(autoescape=False, undefined=StrictUndefined)
    context: dict[str, Any] = {**variables, "name": name}
    if project_dir is not None:
        context["project_dir"] = str(Path(project_dir).resolve())

    clone_url = _render(_optional_str(dep_raw, "clone_url"), env, context, "dependency.clone_url")
    if not clone_url:
        raise ConfigError("`dependency.clone_url` is required.")

    fields: dict[str, Any] = {}
    for key in ("upstream_remote", "container"):
        value = _render(_optional_str(dep_raw, key), env, context, f"dependency.{key}")
        if value is not None:
            fields[key] = value

    if "container" in fields and Path(fields["container"]).is_absolute():
        raise ConfigError("`dependency.container` must be relative to the project directory.")

    dependency = LinkedDependency(
        name=name,
        clone_url=clone_url,
        upstream_url=_render(_optional_str(dep_raw, "upstream_url"), env, context, "dependency.upstream_url"),
        clone_dir_name=_render(_optional_str(dep_raw, "clone_dir_name"), env, context, "dependency.clone_dir_name"),
        **fields,
    )

    return BootstrapConfig(
        dependency=dependency,
        strict=bool(data.get("strict", False)),
        cleanup_on_failure=bool(data.get("cleanup_on_failure", True)),
        github_api_base=str(data.get("github_api_base") or DEFAULT_GITHUB_API).strip(),
        variables=variables,
    )
