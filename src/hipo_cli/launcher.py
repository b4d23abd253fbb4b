"""Hand-off of a cached artifact to the Java runtime."""

from __future__ import annotations

import logging
import os
import stat
import subprocess
from pathlib import Path
from typing import Sequence

from hipo_cli.errors import LaunchError, LocalIOError, RuntimeNotFoundError
from hipo_cli.runtime.locator import find_runtime_executable

logger = logging.getLogger(__name__)


def ensure_executable(path: Path) -> None:
    """Add execute bits to *path* wherever it already grants read (no-op on Windows)."""
    if os.name == "nt":
        return
    try:
        mode = path.stat().st_mode
        new_mode = mode | stat.S_IXUSR
        if mode & stat.S_IRGRP:
            new_mode |= stat.S_IXGRP
        if mode & stat.S_IROTH:
            new_mode |= stat.S_IXOTH
        if new_mode != mode:
            os.chmod(path, new_mode)
    except OSError as exc:
        raise LocalIOError(f"Failed to make {path} executable: {exc}") from exc


def build_command(executable: Path, artifact_path: Path, args: Sequence[str]) -> list[str]:
    return [str(executable), "-jar", str(artifact_path), *args]


def launch(
    artifact_path: Path,
    args: Sequence[str] = (),
    *,
    runtime_root: Path,
    os_name: str | None = None,
) -> int:
    """Run *artifact_path* with the managed runtime and return its exit status.

    The executable is located afresh on every call. The child inherits
    stdin, stdout and stderr. A child killed by a signal reports
    ``128 + signal``, following shell convention.

    Raises:
        RuntimeNotFoundError: If no runtime executable can be located.
        LaunchError: If the process cannot be spawned.
    """
    executable = find_runtime_executable(runtime_root, os_name=os_name)
    if executable is None:
        raise RuntimeNotFoundError(f"No Java runtime found under {runtime_root}")

    ensure_executable(executable)
    cmd = build_command(executable, artifact_path, args)
    logger.debug("Launching %s", " ".join(cmd))

    try:
        result = subprocess.run(cmd, check=False)
    except OSError as exc:
        raise LaunchError(f"Error running the Java command: {exc}") from exc

    returncode = result.returncode
    if returncode < 0:
        returncode = 128 - returncode
    return returncode
