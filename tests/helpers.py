"""Shared builders for archive, runtime and HTTP fixtures."""

from __future__ import annotations

import io
import stat
import tarfile
import zipfile
from pathlib import Path
from typing import Callable

import httpx

REPO = "https://repo.test/maven2"
RUNTIME_API = "https://api.test"

# name -> bytes for a file, None for a directory
Entries = dict[str, "bytes | None"]


def zip_bytes(entries: Entries, modes: dict[str, int] | None = None) -> bytes:
    """Build a ZIP archive in memory."""
    modes = modes or {}
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w") as archive:
        for name, data in entries.items():
            info = zipfile.ZipInfo(name)
            if data is None:
                if not info.filename.endswith("/"):
                    info = zipfile.ZipInfo(name + "/")
                info.external_attr = ((stat.S_IFDIR | modes.get(name, 0o755)) << 16) | 0x10
                archive.writestr(info, b"")
            else:
                if name in modes:
                    info.external_attr = (stat.S_IFREG | modes[name]) << 16
                archive.writestr(info, data)
    return buf.getvalue()


def tar_gz_bytes(
    entries: Entries,
    modes: dict[str, int] | None = None,
    symlinks: dict[str, str] | None = None,
    hardlinks: dict[str, str] | None = None,
) -> bytes:
    """Build a gzip-compressed TAR archive in memory."""
    modes = modes or {}
    buf = io.BytesIO()
    with tarfile.open(fileobj=buf, mode="w:gz") as archive:
        for name, data in entries.items():
            info = tarfile.TarInfo(name)
            if data is None:
                info.type = tarfile.DIRTYPE
                info.mode = modes.get(name, 0o755)
                archive.addfile(info)
            else:
                info.size = len(data)
                info.mode = modes.get(name, 0o644)
                archive.addfile(info, io.BytesIO(data))
        for name, target in (symlinks or {}).items():
            info = tarfile.TarInfo(name)
            info.type = tarfile.SYMTYPE
            info.linkname = target
            archive.addfile(info)
        for name, target in (hardlinks or {}).items():
            info = tarfile.TarInfo(name)
            info.type = tarfile.LNKTYPE
            info.linkname = target
            archive.addfile(info)
    return buf.getvalue()


def install_fake_runtime(home: Path, *, distribution: str = "jdk-21.0.4+7-jre", exe_name: str = "java") -> Path:
    """Create ``runtime/<distribution>/bin/<exe_name>`` under *home*."""
    bin_dir = home / "runtime" / distribution / "bin"
    bin_dir.mkdir(parents=True, exist_ok=True)
    exe = bin_dir / exe_name
    exe.write_text("#!/bin/sh\nexit 0\n")
    exe.chmod(0o644)
    return exe


def mock_client(handler: Callable[[httpx.Request], httpx.Response]) -> httpx.Client:
    """Return a client whose requests are answered by *handler*."""
    return httpx.Client(transport=httpx.MockTransport(handler), follow_redirects=True)


class RecordingHandler:
    """Route requests by URL and remember every request seen."""

    def __init__(self, routes: dict[str, httpx.Response | Callable[[httpx.Request], httpx.Response]]):
        self.routes = routes
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        route = self.routes.get(str(request.url))
        if route is None:
            return httpx.Response(404, text="not found")
        if callable(route):
            return route(request)
        return route

    @property
    def urls(self) -> list[str]:
        return [str(request.url) for request in self.requests]


def metadata_xml(release: str | None, latest: str = "9.9.9") -> str:
    release_tag = f"<release>{release}</release>" if release is not None else ""
    return (
        '<?xml version="1.0" encoding="UTF-8"?>\n'
        "<metadata>\n"
        "  <groupId>org.example</groupId>\n"
        "  <artifactId>demo</artifactId>\n"
        "  <versioning>\n"
        f"    <latest>{latest}</latest>\n"
        f"    {release_tag}\n"
        "    <versions><version>1.0.0</version></versions>\n"
        "  </versioning>\n"
        "</metadata>\n"
    )
