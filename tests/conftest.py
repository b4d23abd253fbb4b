from __future__ import annotations

from pathlib import Path

import pytest

from hipo_cli.config import HipoConfig
from hipo_cli.runtime.provision import PlatformInfo
from tests.helpers import REPO, RUNTIME_API


@pytest.fixture()
def hipo_home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point HIPO_HOME at a temp dir and return the path."""
    home = tmp_path / "hipo-home"
    monkeypatch.setenv("HIPO_HOME", str(home))
    monkeypatch.delenv("HIPO_REPOSITORY_URL", raising=False)
    monkeypatch.delenv("HIPO_RUNTIME_API_URL", raising=False)
    return home


@pytest.fixture()
def config() -> HipoConfig:
    return HipoConfig(repository_url=REPO, runtime_api_url=RUNTIME_API)


@pytest.fixture()
def linux_x64() -> PlatformInfo:
    return PlatformInfo(os_name="linux", arch="x64")


@pytest.fixture()
def windows_x64() -> PlatformInfo:
    return PlatformInfo(os_name="windows", arch="x64")
