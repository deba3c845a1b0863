"""Locate the bibgraph config file for a working directory.

A workspace is configured by either ``bibgraph.toml`` at its root or
``.bibgraph/config.toml`` next to the default SQLite library. The nearest
ancestor holding either wins; ``BIBGRAPH_CONFIG`` short-circuits the search.
"""

from __future__ import annotations

import os
from collections.abc import Iterator
from pathlib import Path

CONFIG_FILENAME = "bibgraph.toml"
STATE_DIRNAME = ".bibgraph"
CONFIG_ENV_VAR = "BIBGRAPH_CONFIG"

# Checked in order inside each directory.
_CANDIDATES = (
    Path(CONFIG_FILENAME),
    Path(STATE_DIRNAME) / "config.toml",
)


def _ancestors(start: Path) -> Iterator[Path]:
    current = start.resolve()
    yield current
    yield from current.parents


def find_config(start: Path | None = None) -> Path | None:
    """Return the config file governing *start* (default: cwd), or None.

    An env override pointing at a missing file yields None rather than
    falling back to the walk-up, so a typo never silently picks up an
    unrelated workspace.
    """
    override = os.environ.get(CONFIG_ENV_VAR)
    if override:
        path = Path(override).expanduser()
        return path if path.is_file() else None

    for directory in _ancestors(start or Path.cwd()):
        for candidate in _CANDIDATES:
            path = directory / candidate
            if path.is_file():
                return path
    return None


def workspace_root(config_path: Path) -> Path:
    """Directory a config file belongs to.

    ``.bibgraph/config.toml`` configures the directory *above* the state dir.
    """
    parent = config_path.parent
    if parent.name == STATE_DIRNAME:
        return parent.parent
    return parent
