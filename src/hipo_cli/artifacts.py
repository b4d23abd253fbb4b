"""Artifact version resolution and cached download.

Artifacts live in a Maven-layout repository. The local cache mirrors
that layout under ``<home>/cache`` so a coordinate maps to exactly one
file.
"""

from __future__ import annotations

import logging
import os
import tempfile
import xml.etree.ElementTree as ET
from pathlib import Path

import httpx

from hipo_cli.config import HipoConfig
from hipo_cli.coordinate import Coordinate, segment_problem
from hipo_cli.errors import (
    ArtifactNotFoundError,
    CoordinateError,
    InvalidResponseError,
    LocalIOError,
    NetworkError,
    RemoteRejectionError,
)
from hipo_cli.runtime.home import cache_root

logger = logging.getLogger(__name__)

METADATA_FILENAME = "maven-metadata.xml"


def _require_version(coordinate: Coordinate) -> str:
    if coordinate.version is None:
        raise CoordinateError(f"Coordinate {coordinate} has no version; resolve it first")
    return coordinate.version


def metadata_url(coordinate: Coordinate, config: HipoConfig) -> str:
    return f"{config.repository_url}/{coordinate.group_path}/{coordinate.artifact}/{METADATA_FILENAME}"


def artifact_url(coordinate: Coordinate, config: HipoConfig) -> str:
    """Return the repository URL of the JAR named by *coordinate*."""
    version = _require_version(coordinate)
    return (
        f"{config.repository_url}/{coordinate.group_path}/{coordinate.artifact}/"
        f"{version}/{coordinate.filename}"
    )


def cache_path(coordinate: Coordinate, home: Path) -> Path:
    """Return the deterministic cache location of *coordinate*'s JAR."""
    version = _require_version(coordinate)
    return cache_root(home).joinpath(
        *coordinate.group_path.split("/"), coordinate.artifact, version, coordinate.filename
    )


def _ns_cleanup(tag: str) -> str:
    if tag.startswith("{"):
        return tag.split("}", 1)[1]
    return tag


def parse_release_version(document: str | bytes) -> str | None:
    """Return ``versioning/release`` from a ``maven-metadata.xml`` body."""
    root = ET.fromstring(document)
    for child in root:
        if _ns_cleanup(child.tag) != "versioning":
            continue
        for field in child:
            if _ns_cleanup(field.tag) == "release" and field.text and field.text.strip():
                return field.text.strip()
    return None


def resolve_latest_version(coordinate: Coordinate, *, client: httpx.Client, config: HipoConfig) -> str:
    """Return the latest published release of *coordinate*'s artifact.

    Every call queries the repository; nothing is cached.

    Raises:
        NetworkError: If the metadata request fails in transport.
        RemoteRejectionError: If the repository answers with a non-2xx status.
        InvalidResponseError: If the metadata has no ``versioning/release``.
    """
    url = metadata_url(coordinate, config)
    logger.debug("Resolving latest version from %s", url)
    try:
        response = client.get(url)
    except httpx.HTTPError as exc:
        raise NetworkError(f"Failed to reach {url}: {exc}") from exc

    if not response.is_success:
        raise RemoteRejectionError(
            f"Version metadata request failed with status code {response.status_code}",
            url=url,
            status_code=response.status_code,
        )

    try:
        release = parse_release_version(response.content)
    except ET.ParseError as exc:
        raise InvalidResponseError(f"Failed to parse {url}: {exc}", url=url) from exc

    if release is None:
        raise InvalidResponseError(f"No versioning/release in {url}", url=url)
    problem = segment_problem(release)
    if problem is not None:
        raise InvalidResponseError(f"Release version {release!r} in {url} {problem}", url=url)
    return release


def is_cached(path: Path) -> bool:
    """A non-empty file at the cache path counts as already fetched."""
    try:
        return path.is_file() and path.stat().st_size > 0
    except OSError:
        return False


def fetch_artifact(
    coordinate: Coordinate,
    *,
    client: httpx.Client,
    config: HipoConfig,
    home: Path,
    refresh: bool = False,
) -> Path:
    """Download *coordinate*'s JAR into the cache and return its path.

    A cached copy is reused unless ``refresh`` is set. Downloads are
    written to a ``.part`` file beside the target and renamed into place,
    so an interrupted transfer never leaves a truncated JAR at the cache
    path.

    Raises:
        ArtifactNotFoundError: If the repository answers with a non-2xx status.
        NetworkError: If the download fails in transport.
        LocalIOError: If the cache cannot be written.
    """
    destination = cache_path(coordinate, home).absolute()
    if not refresh and is_cached(destination):
        logger.debug("Using cached artifact %s", destination)
        return destination

    url = artifact_url(coordinate, config)
    logger.debug("Downloading %s", url)
    try:
        with client.stream("GET", url) as response:
            if not response.is_success:
                raise ArtifactNotFoundError(
                    f"Failed to download {coordinate}: status code {response.status_code}",
                    url=url,
                    status_code=response.status_code,
                )
            _write_atomically(destination, response)
    except httpx.HTTPError as exc:
        raise NetworkError(f"Failed to download {url}: {exc}") from exc

    return destination


def _write_atomically(destination: Path, response: httpx.Response) -> None:
    try:
        destination.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(prefix=f".{destination.name}.", suffix=".part", dir=destination.parent)
    except OSError as exc:
        raise LocalIOError(f"Failed to create cache directory {destination.parent}: {exc}") from exc

    tmp_path = Path(tmp_name)
    try:
        with os.fdopen(fd, "wb") as out:
            for chunk in response.iter_bytes(chunk_size=8192):
                out.write(chunk)
        # mkstemp creates 0o600 files
        os.chmod(tmp_path, 0o644)
        os.replace(tmp_path, destination)
    except OSError as exc:
        raise LocalIOError(f"Failed to write {destination}: {exc}") from exc
    finally:
        if tmp_path.exists():
            tmp_path.unlink()
