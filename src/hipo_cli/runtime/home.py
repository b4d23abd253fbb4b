"""Managed home directory discovery.

Provides the canonical functions for locating:
- The user-global ~/.hipo/ directory (cross-platform)
- The ``runtime/`` and ``cache/`` subtrees beneath it
"""

from __future__ import annotations

import os
from pathlib import Path


def _is_windows() -> bool:
    """Return True when running on Windows."""
    return os.name == "nt"


def get_hipo_home() -> Path:
    """Return the path to the user-global ~/.hipo/ directory.

    Resolution order:
    1. HIPO_HOME environment variable (all platforms)
    2. ~/.hipo/ on macOS/Linux (Path.home() / ".hipo")
    3. %LOCALAPPDATA%\\hipo\\ on Windows (via platformdirs)

    The directory is not created here; callers create the subtrees
    they write to.

    Returns:
        Path: Absolute path to the managed home directory.
    """
    if env_home := os.environ.get("HIPO_HOME"):
        return Path(env_home).expanduser().absolute()

    if _is_windows():
        from platformdirs import user_data_dir

        return Path(user_data_dir("hipo", appauthor=False))

    return Path.home() / ".hipo"


def runtime_root(home: Path) -> Path:
    """Return the directory holding installed runtime distributions."""
    return home / "runtime"


def cache_root(home: Path) -> Path:
    """Return the directory holding cached artifacts."""
    return home / "cache"
