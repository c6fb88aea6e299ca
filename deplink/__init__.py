"""
deplink package

Clones a forked source dependency next to the project and links it into the project tree.

Key responsibilities are split across modules:
- `config.py`: built-in defaults or a YAML config -> `BootstrapConfig`
- `git.py`: all `git` subprocess calls (clone, remote add, remote listing)
- `github_client.py`: GitHub REST lookups (upstream discovery for forks)
- `bootstrap.py`: the check-then-clone-and-link routine
- `cli.py`: CLI entrypoint and orchestration
"""

from __future__ import annotations

__all__ = ["__version__"]

__version__ = "0.1.0"
