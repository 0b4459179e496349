"""
`.env` loading and project-relative paths.

`directory.snapshot_path` ships as a relative path (`data/directory.json`). Relative
paths are anchored at `IRLNEARBY_PROJECT_ROOT` when it is set, otherwise at the working
directory the server or CLI was started from.
"""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv


def _base_dir() -> Path:
    root = os.getenv("IRLNEARBY_PROJECT_ROOT")
    return Path(root).expanduser().resolve() if root else Path.cwd().resolve()


@lru_cache
def load_dotenv_if_present() -> Path | None:
    """Load `IRLNEARBY_ENV_FILE` (default `<base>/.env`) once; existing variables win."""
    env_path = Path(os.getenv("IRLNEARBY_ENV_FILE") or _base_dir() / ".env").expanduser()
    if not env_path.is_file():
        return None
    load_dotenv(dotenv_path=env_path, override=False)
    return env_path


def resolve_project_path(path: str | Path) -> Path:
    p = Path(path).expanduser()
    return p if p.is_absolute() else (_base_dir() / p).resolve()
