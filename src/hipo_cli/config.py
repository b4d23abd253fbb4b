"""Hipo configuration management"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import toml  # type: ignore[import-untyped]

from hipo_cli.errors import LocalIOError

DEFAULT_REPOSITORY_URL = "https://repo1.maven.org/maven2"
DEFAULT_RUNTIME_API_URL = "https://api.adoptium.net"
DEFAULT_RUNTIME_VENDOR = "eclipse"
DEFAULT_IMAGE_TYPE = "jre"
DEFAULT_JVM_IMPL = "hotspot"
DEFAULT_TIMEOUT = 60.0

# platform.machine() (lower-cased) -> Adoptium architecture token
DEFAULT_ARCHITECTURES: dict[str, str] = {
    "x86_64": "x64",
    "amd64": "x64",
    "aarch64": "aarch64",
    "arm64": "aarch64",
}

# platform.system() -> Adoptium operating-system token
DEFAULT_OPERATING_SYSTEMS: dict[str, str] = {
    "Windows": "windows",
    "Darwin": "mac",
    "Linux": "linux",
}

CONFIG_FILENAME = "config.toml"


@dataclass
class HipoConfig:
    """Remote endpoints and platform mappings used by the pipeline."""

    repository_url: str = DEFAULT_REPOSITORY_URL
    runtime_api_url: str = DEFAULT_RUNTIME_API_URL
    runtime_vendor: str = DEFAULT_RUNTIME_VENDOR
    image_type: str = DEFAULT_IMAGE_TYPE
    jvm_impl: str = DEFAULT_JVM_IMPL
    timeout: float | None = DEFAULT_TIMEOUT
    architectures: dict[str, str] = field(default_factory=lambda: dict(DEFAULT_ARCHITECTURES))
    operating_systems: dict[str, str] = field(default_factory=lambda: dict(DEFAULT_OPERATING_SYSTEMS))

    def __post_init__(self) -> None:
        self.repository_url = self.repository_url.rstrip("/")
        self.runtime_api_url = self.runtime_api_url.rstrip("/")


def _section(data: dict[str, Any], name: str) -> dict[str, Any]:
    section = data.get(name)
    return section if isinstance(section, dict) else {}


def load_config(home: Path) -> HipoConfig:
    """Load ``config.toml`` from *home*, applying environment overrides.

    A missing file yields the defaults. ``HIPO_REPOSITORY_URL`` and
    ``HIPO_RUNTIME_API_URL`` take precedence over the file.

    Raises:
        LocalIOError: If the file exists but cannot be read or parsed.
    """
    config_file = home / CONFIG_FILENAME
    data: dict[str, Any] = {}
    if config_file.exists():
        try:
            data = toml.load(config_file)
        except (toml.TomlDecodeError, OSError) as exc:
            raise LocalIOError(f"Cannot read {config_file}: {exc}") from exc

    repository = _section(data, "repository")
    runtime = _section(data, "runtime")
    http = _section(data, "http")

    settings: dict[str, Any] = {}
    if isinstance(repository.get("url"), str):
        settings["repository_url"] = repository["url"]
    for key, attr in (
        ("api_url", "runtime_api_url"),
        ("vendor", "runtime_vendor"),
        ("image_type", "image_type"),
        ("jvm_impl", "jvm_impl"),
    ):
        if isinstance(runtime.get(key), str):
            settings[attr] = runtime[key]

    architectures = dict(DEFAULT_ARCHITECTURES)
    architectures.update({str(k).lower(): str(v) for k, v in _section(runtime, "architectures").items()})
    settings["architectures"] = architectures

    timeout = http.get("timeout")
    if isinstance(timeout, (int, float)) and not isinstance(timeout, bool):
        settings["timeout"] = float(timeout) if timeout > 0 else None

    if env_repo := os.environ.get("HIPO_REPOSITORY_URL"):
        settings["repository_url"] = env_repo
    if env_api := os.environ.get("HIPO_RUNTIME_API_URL"):
        settings["runtime_api_url"] = env_api

    return HipoConfig(**settings)
