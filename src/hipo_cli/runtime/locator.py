"""Discovery of an installed runtime executable.

The runtime root holds vendor-shaped distribution trees whose layout is
not known in advance. Discovery is a query recomputed on every call;
callers must not cache the result across installation changes.
"""

from __future__ import annotations

import logging
import os
import platform
from pathlib import Path

from hipo_cli.errors import LocalIOError

logger = logging.getLogger(__name__)

JAVA_EXECUTABLE = "java"
JAVA_EXECUTABLE_WINDOWS = "java.exe"


def _is_windows(os_name: str | None) -> bool:
    if os_name is None:
        return platform.system() == "Windows"
    return os_name.lower() in ("windows", "nt", "win32")


def runtime_executable_name(os_name: str | None = None) -> str:
    """Return the canonical runtime executable name for *os_name*.

    ``os_name`` defaults to the running platform.
    """
    return JAVA_EXECUTABLE_WINDOWS if _is_windows(os_name) else JAVA_EXECUTABLE


def _list_dir(path: Path) -> list[Path]:
    try:
        return sorted(path.iterdir())
    except FileNotFoundError:
        return []
    except OSError as exc:
        raise LocalIOError(f"Error reading runtime directory {path}: {exc}") from exc


def _executable_in_bin(bin_dir: Path, exe_name: str) -> Path | None:
    if not bin_dir.is_dir():
        return None
    for entry in _list_dir(bin_dir):
        if entry.name == exe_name and entry.is_file():
            return entry
    return None


def _search_nested_bin(candidate: Path, exe_name: str) -> Path | None:
    """Find ``bin/<exe_name>`` anywhere below *candidate*, e.g. ``Contents/Home/bin``."""

    def _raise(exc: OSError) -> None:
        raise LocalIOError(f"Error reading runtime directory {candidate}: {exc}") from exc

    for dirpath, dirnames, _ in os.walk(candidate, onerror=_raise):
        dirnames.sort()
        if "bin" in dirnames:
            found = _executable_in_bin(Path(dirpath) / "bin", exe_name)
            if found is not None:
                return found
    return None


def find_runtime_executable(runtime_root: Path, *, os_name: str | None = None) -> Path | None:
    """Return the first runtime executable found under *runtime_root*.

    Each immediate subdirectory is a candidate distribution. A candidate's
    own ``bin/`` is checked first, then any nested ``bin/`` directory.

    Args:
        runtime_root: Managed runtime directory.
        os_name: Platform token selecting ``java`` or ``java.exe``.

    Returns:
        The absolute executable path, or ``None`` if the root is missing
        or holds no qualifying executable.

    Raises:
        LocalIOError: If a directory exists but cannot be read.
    """
    exe_name = runtime_executable_name(os_name)
    candidates = [entry for entry in _list_dir(runtime_root) if entry.is_dir()]

    for candidate in candidates:
        found = _executable_in_bin(candidate / "bin", exe_name)
        if found is None:
            found = _search_nested_bin(candidate, exe_name)
        if found is not None:
            logger.debug("Found runtime executable %s", found)
            return found.absolute()

    logger.debug("No %s executable under %s", exe_name, runtime_root)
    return None
