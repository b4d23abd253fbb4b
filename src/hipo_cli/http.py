"""Shared HTTP client construction."""

from __future__ import annotations

import ssl

import httpx
import truststore

from hipo_cli.config import HipoConfig


def build_client(config: HipoConfig) -> httpx.Client:
    """Return an ``httpx.Client`` that verifies TLS against the system trust store."""
    from hipo_cli import __version__

    ssl_context = truststore.SSLContext(ssl.PROTOCOL_TLS_CLIENT)
    return httpx.Client(
        verify=ssl_context,
        timeout=config.timeout,
        follow_redirects=True,
        headers={"User-Agent": f"hipo/{__version__}"},
    )
