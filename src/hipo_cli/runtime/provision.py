"""Runtime provisioning: ensure_runtime() and related functions.

On every invocation, ``ensure_runtime()`` checks whether the managed
``runtime/`` directory holds a usable Java executable. When it does
not, the latest feature release is looked up in the Adoptium catalog,
the matching JRE archive is downloaded to a temporary file and
extracted into ``runtime/``.

A failed install is not rolled back; the next invocation simply
provisions again.
"""

from __future__ import annotations

import logging
import platform as _platform
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import IO

import httpx
from rich.progress import BarColumn, DownloadColumn, Progress, SpinnerColumn, TextColumn

from hipo_cli.archive import ArchiveFormat, extract_archive
from hipo_cli.config import HipoConfig
from hipo_cli.errors import InvalidResponseError, LocalIOError, NetworkError, RemoteRejectionError, RuntimeNotFoundError
from hipo_cli.runtime.home import runtime_root
from hipo_cli.runtime.locator import find_runtime_executable
from hipo_cli.ui import console

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PlatformInfo:
    """Operating system and architecture tokens in the vendor's naming."""

    os_name: str
    arch: str

    @property
    def is_windows(self) -> bool:
        return self.os_name == "windows"


def detect_platform(
    config: HipoConfig,
    *,
    system: str | None = None,
    machine: str | None = None,
) -> PlatformInfo:
    """Map the running platform onto the vendor's OS and architecture tokens.

    An unmapped architecture becomes an empty token and is forwarded
    anyway; the download service decides whether it can serve it.
    """
    system = system if system is not None else _platform.system()
    machine = machine if machine is not None else _platform.machine()

    os_name = config.operating_systems.get(system, system.lower())
    arch = config.architectures.get(machine.lower(), "")
    if not arch:
        logger.warning("No runtime architecture mapping for '%s'", machine)
    return PlatformInfo(os_name=os_name, arch=arch)


def archive_format_for(platform: PlatformInfo) -> ArchiveFormat:
    """Windows builds ship as ZIP, everything else as gzip-compressed TAR."""
    return ArchiveFormat.ZIP if platform.is_windows else ArchiveFormat.TAR_GZ


def available_releases_url(config: HipoConfig) -> str:
    return f"{config.runtime_api_url}/v3/info/available_releases"


def runtime_download_url(release: int, platform: PlatformInfo, config: HipoConfig) -> str:
    """Return the binary-distribution URL for *release* on *platform*."""
    return (
        f"{config.runtime_api_url}/v3/binary/latest/{release}/ga/"
        f"{platform.os_name}/{platform.arch}/{config.image_type}/{config.jvm_impl}/normal/"
        f"{config.runtime_vendor}?project=jdk"
    )


def latest_feature_release(client: httpx.Client, config: HipoConfig) -> int:
    """Return ``most_recent_feature_release`` from the release catalog."""
    url = available_releases_url(config)
    try:
        response = client.get(url)
    except httpx.HTTPError as exc:
        raise NetworkError(f"Failed to reach {url}: {exc}") from exc

    if not response.is_success:
        raise RemoteRejectionError(
            f"Release catalog returned {response.status_code} for {url}",
            url=url,
            status_code=response.status_code,
        )

    try:
        payload = response.json()
    except ValueError as exc:
        raise InvalidResponseError(f"Failed to parse release JSON from {url}: {exc}", url=url) from exc

    release = payload.get("most_recent_feature_release") if isinstance(payload, dict) else None
    if not isinstance(release, int) or isinstance(release, bool):
        raise InvalidResponseError(f"Release catalog at {url} has no most_recent_feature_release", url=url)

    logger.debug("Latest feature release is %d", release)
    return release


def _download_to(client: httpx.Client, url: str, out: IO[bytes], *, show_progress: bool) -> None:
    try:
        with client.stream("GET", url) as response:
            if not response.is_success:
                raise RemoteRejectionError(
                    f"Runtime download failed with status code {response.status_code}",
                    url=url,
                    status_code=response.status_code,
                )
            total_size = int(response.headers.get("content-length", 0))
            if not show_progress:
                for chunk in response.iter_bytes(chunk_size=8192):
                    out.write(chunk)
                return

            with Progress(
                SpinnerColumn(),
                TextColumn("[progress.description]{task.description}"),
                BarColumn(),
                DownloadColumn(),
                console=console,
                transient=True,
            ) as progress:
                task = progress.add_task("Downloading runtime...", total=total_size or None)
                for chunk in response.iter_bytes(chunk_size=8192):
                    out.write(chunk)
                    progress.update(task, advance=len(chunk))
    except httpx.HTTPError as exc:
        raise NetworkError(f"Failed to download runtime from {url}: {exc}") from exc


def install_runtime(
    home: Path,
    *,
    client: httpx.Client,
    config: HipoConfig,
    platform: PlatformInfo | None = None,
    show_progress: bool = True,
) -> None:
    """Download the latest runtime release and extract it into ``runtime/``.

    The archive is buffered in a temporary file that is removed on exit,
    whether or not the install succeeds.
    """
    platform = platform or detect_platform(config)
    release = latest_feature_release(client, config)
    url = runtime_download_url(release, platform, config)
    archive_format = archive_format_for(platform)
    destination = runtime_root(home)

    console.print(f"[cyan]Installing Java {release} runtime[/cyan] ({platform.os_name}/{platform.arch or '?'})")
    logger.debug("Runtime download URL: %s", url)

    try:
        destination.mkdir(parents=True, exist_ok=True)
        buffer = tempfile.TemporaryFile(prefix="hipo-runtime-")
    except OSError as exc:
        raise LocalIOError(f"Failed to prepare {destination}: {exc}") from exc

    with buffer:
        try:
            _download_to(client, url, buffer, show_progress=show_progress)
            buffer.seek(0)
        except OSError as exc:
            raise LocalIOError(f"Failed to buffer runtime download: {exc}") from exc
        extract_archive(buffer, destination, archive_format)

    console.print(f"[green]✓[/green] Runtime installed in {destination}")


def ensure_runtime(
    home: Path,
    *,
    client: httpx.Client,
    config: HipoConfig,
    platform: PlatformInfo | None = None,
    show_progress: bool = True,
) -> Path:
    """Ensure a runtime executable exists under *home* and return its path.

    **Fast path**: the locator finds an executable; nothing is downloaded.

    **Slow path**: install the latest release, then query the locator
    again. A miss after installing means the archive did not contain the
    expected layout.

    Raises:
        RuntimeNotFoundError: If no executable exists after installing.
    """
    platform = platform or detect_platform(config)
    os_name = platform.os_name
    root = runtime_root(home)

    executable = find_runtime_executable(root, os_name=os_name)
    if executable is not None:
        return executable

    install_runtime(home, client=client, config=config, platform=platform, show_progress=show_progress)

    executable = find_runtime_executable(root, os_name=os_name)
    if executable is None:
        raise RuntimeNotFoundError(f"No runtime executable found under {root} after installation")
    return executable
