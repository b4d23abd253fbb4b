"""Top-level control flow: provision, resolve, fetch, launch.

``run()`` drives one invocation through the pipeline and turns every
outcome into a process exit status: the child's own status when the
artifact runs, or the status mapped from the failing stage's
``FailureKind`` otherwise.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Sequence

import httpx
from rich.markup import escape

from hipo_cli.artifacts import fetch_artifact, resolve_latest_version
from hipo_cli.config import HipoConfig, load_config
from hipo_cli.coordinate import parse_coordinate
from hipo_cli.errors import HipoError, exit_code_for
from hipo_cli.http import build_client
from hipo_cli.launcher import launch
from hipo_cli.runtime.home import get_hipo_home, runtime_root
from hipo_cli.runtime.provision import PlatformInfo, detect_platform, ensure_runtime
from hipo_cli.ui import console

logger = logging.getLogger(__name__)


def _report(error: HipoError) -> int:
    code = exit_code_for(error)
    console.print(f"[red]Error ({error.kind.value}):[/red] {escape(str(error))}")
    logger.debug("Stage failed with exit status %d", code, exc_info=error)
    return code


def _pipeline(
    coordinate_text: str | None,
    args: Sequence[str],
    *,
    home: Path,
    config: HipoConfig,
    client: httpx.Client,
    platform: PlatformInfo,
    refresh: bool,
    show_progress: bool,
) -> int:
    # Parse before touching the network or the file system
    coordinate = parse_coordinate(coordinate_text) if coordinate_text is not None else None

    ensure_runtime(home, client=client, config=config, platform=platform, show_progress=show_progress)
    if coordinate is None:
        return 0

    if coordinate.version is None:
        version = resolve_latest_version(coordinate, client=client, config=config)
        console.print(f"[cyan]Resolved[/cyan] {coordinate} to version {escape(version)}")
        coordinate = coordinate.with_version(version)

    artifact_path = fetch_artifact(coordinate, client=client, config=config, home=home, refresh=refresh)

    returncode = launch(artifact_path, args, runtime_root=runtime_root(home), os_name=platform.os_name)
    if returncode != 0:
        console.print(f"[yellow]{coordinate} exited with status {returncode}[/yellow]")
    return returncode


def run(
    coordinate_text: str | None,
    args: Sequence[str] = (),
    *,
    home: Path | None = None,
    config: HipoConfig | None = None,
    client: httpx.Client | None = None,
    platform: PlatformInfo | None = None,
    refresh: bool = False,
    show_progress: bool = True,
) -> int:
    """Run one invocation and return the process exit status.

    Args:
        coordinate_text: Raw ``group:artifact[:version]`` argument, or
            ``None`` to only check that a runtime is provisioned.
        args: Arguments forwarded verbatim to the launched artifact.
        home: Managed home; defaults to ``get_hipo_home()``.
        config: Defaults to ``load_config(home)``.
        client: HTTP client; one is created and closed when omitted.
        platform: Vendor platform tokens; detected when omitted.
        refresh: Re-download the artifact even when it is cached.
        show_progress: Render a progress bar for the runtime download.
    """
    owns_client = client is None
    try:
        home = home or get_hipo_home()
        config = config or load_config(home)
        platform = platform or detect_platform(config)
        if client is None:
            client = build_client(config)
        return _pipeline(
            coordinate_text,
            args,
            home=home,
            config=config,
            client=client,
            platform=platform,
            refresh=refresh,
            show_progress=show_progress,
        )
    except HipoError as error:
        return _report(error)
    finally:
        if owns_client and client is not None:
            client.close()
