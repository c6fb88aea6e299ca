"""
cli.py

Responsibility: CLI entrypoint for deplink.

Commands:
- `ensure` (default): clone the fork next to the project and link it into the project
- `check`: report problems with an existing link
- `show-config`: print the effective configuration

This module orchestrates; it is the only place that turns errors into exit codes.
- Config loading: `config.py`
- Clone / link: `bootstrap.py`
- git: `git.py`
"""

from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import replace
from pathlib import Path

import yaml

from deplink import __version__
from deplink.bootstrap import BootstrapError, Status, bootstrap, verify_link
from deplink.config import BootstrapConfig, ConfigError, load_config

log = logging.getLogger("deplink")


def _load(args: argparse.Namespace) -> tuple[BootstrapConfig, Path]:
    project_dir = Path(args.project_dir or Path.cwd())
    return load_config(args.config, project_dir=project_dir), project_dir


def ensure_cmd(args: argparse.Namespace) -> int:
    config, project_dir = _load(args)
    if args.strict:
        config = replace(config, strict=True)
    if args.keep_partial:
        config = replace(config, cleanup_on_failure=False)

    result = bootstrap(config, project_dir)
    if result.status is Status.LINKED:
        print(f"Linked {result.link_path} -> {result.clone_path}")
    else:
        print(f"{result.link_path} already present")
    return 0


def check_cmd(args: argparse.Namespace) -> int:
    config, project_dir = _load(args)
    problems = verify_link(config.dependency, project_dir)
    if problems:
        for problem in problems:
            print(problem, file=sys.stderr)
        return 1
    print(f"{config.dependency.link_path(project_dir)} ok")
    return 0


def show_config_cmd(args: argparse.Namespace) -> int:
    config, _project_dir = _load(args)
    sys.stdout.write(yaml.safe_dump(config.as_dict(), sort_keys=False))
    return 0


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="deplink", description="Clone a forked source dependency next to the project and link it in")
    p.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    p.add_argument("--project-dir", default=None, help="Project root (default: current directory)")
    p.add_argument("--config", default=None, help="YAML config file (default: built-in egui fork)")
    p.add_argument("-v", "--verbose", action="count", default=0, help="More logging (repeatable)")
    p.add_argument("-q", "--quiet", action="store_true", help="Only log errors")
    p.set_defaults(func=ensure_cmd, strict=False, keep_partial=False)

    sub = p.add_subparsers(dest="command")

    e = sub.add_parser("ensure", help="Clone and link the dependency unless already present")
    e.add_argument("--strict", action="store_true", help="Reject an existing entry that is not a healthy clone")
    e.add_argument("--keep-partial", action="store_true", help="Leave partially created state in place on failure")
    e.set_defaults(func=ensure_cmd)

    c = sub.add_parser("check", help="Report problems with the existing link")
    c.set_defaults(func=check_cmd)

    s = sub.add_parser("show-config", help="Print the effective configuration as YAML")
    s.set_defaults(func=show_config_cmd)

    return p


def _configure_logging(verbose: int, quiet: bool) -> None:
    if quiet:
        level = logging.ERROR
    elif verbose >= 2:
        level = logging.DEBUG
    elif verbose == 1:
        level = logging.INFO
    else:
        level = logging.WARNING
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    _configure_logging(args.verbose, args.quiet)
    try:
        return int(args.func(args))
    except (BootstrapError, ConfigError) as e:
        log.debug("bootstrap failed", exc_info=True)
        print(f"deplink: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
