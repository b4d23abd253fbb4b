"""Runtime discovery and provisioning under the managed home."""

from hipo_cli.runtime.home import cache_root, get_hipo_home, runtime_root
from hipo_cli.runtime.locator import find_runtime_executable, runtime_executable_name
from hipo_cli.runtime.provision import PlatformInfo, ensure_runtime, install_runtime

__all__ = [
    "PlatformInfo",
    "cache_root",
    "ensure_runtime",
    "find_runtime_executable",
    "get_hipo_home",
    "install_runtime",
    "runtime_executable_name",
    "runtime_root",
]
