"""Tests for hipo_cli.artifacts: version resolution and cached fetch."""

from __future__ import annotations

from pathlib import Path

import httpx
import pytest

from hipo_cli.artifacts import (
    artifact_url,
    cache_path,
    fetch_artifact,
    metadata_url,
    parse_release_version,
    resolve_latest_version,
)
from hipo_cli.config import HipoConfig
from hipo_cli.coordinate import Coordinate, parse_coordinate
from hipo_cli.errors import (
    ArtifactNotFoundError,
    CoordinateError,
    InvalidResponseError,
    NetworkError,
    RemoteRejectionError,
)
from tests.helpers import REPO, RecordingHandler, metadata_xml, mock_client

DEMO = parse_coordinate("org.example:demo:1.0.0")
DEMO_URL = f"{REPO}/org/example/demo/1.0.0/demo-1.0.0.jar"
METADATA_URL = f"{REPO}/org/example/demo/maven-metadata.xml"


class TestDerivedLocations:
    """URL and cache-path construction is pure and deterministic."""

    def test_artifact_url(self, config: HipoConfig) -> None:
        assert artifact_url(DEMO, config) == DEMO_URL

    def test_metadata_url(self, config: HipoConfig) -> None:
        assert metadata_url(parse_coordinate("org.example:demo"), config) == METADATA_URL

    def test_cache_path_layout(self, tmp_path: Path) -> None:
        expected = tmp_path / "cache" / "org" / "example" / "demo" / "1.0.0" / "demo-1.0.0.jar"
        assert cache_path(DEMO, tmp_path) == expected

    def test_cache_path_is_deterministic(self, tmp_path: Path) -> None:
        paths = {cache_path(parse_coordinate("com.acme.tools:cli:2.1"), tmp_path) for _ in range(5)}
        assert len(paths) == 1
        relative = paths.pop().relative_to(tmp_path / "cache")
        assert "com.acme.tools" not in relative.as_posix()
        assert relative.parts[:3] == ("com", "acme", "tools")

    def test_distinct_coordinates_do_not_collide(self, tmp_path: Path) -> None:
        coordinates = [
            "org.example:demo:1.0.0",
            "org.example:demo:1.0.1",
            "org.example:demo-core:1.0.0",
            "org.examples:demo:1.0.0",
            "org:example.demo:1.0.0",
        ]
        paths = {cache_path(parse_coordinate(text), tmp_path) for text in coordinates}
        assert len(paths) == len(coordinates)

    @pytest.mark.parametrize("text", ["org/example:demo:1.0.0", "org..example:demo:1.0.0", ".org.example:demo:1.0.0"])
    def test_group_aliases_rejected(self, text: str) -> None:
        # Each would share org/example/demo/1.0.0 with org.example:demo:1.0.0
        with pytest.raises(CoordinateError):
            parse_coordinate(text)

    def test_requires_version(self, config: HipoConfig, tmp_path: Path) -> None:
        coordinate = Coordinate("org.example", "demo")
        with pytest.raises(CoordinateError):
            artifact_url(coordinate, config)
        with pytest.raises(CoordinateError):
            cache_path(coordinate, tmp_path)


class TestParseReleaseVersion:
    def test_reads_release(self) -> None:
        assert parse_release_version(metadata_xml("1.4.2")) == "1.4.2"

    def test_missing_release(self) -> None:
        assert parse_release_version(metadata_xml(None)) is None

    def test_namespaced_document(self) -> None:
        document = (
            '<metadata xmlns="http://maven.apache.org/METADATA/1.1.0">'
            "<versioning><release>3.0</release></versioning></metadata>"
        )
        assert parse_release_version(document) == "3.0"

    def test_ignores_release_outside_versioning(self) -> None:
        assert parse_release_version("<metadata><release>1.0</release></metadata>") is None


class TestResolveLatestVersion:
    """resolve_latest_version() queries maven-metadata.xml every time."""

    def test_success(self, config: HipoConfig) -> None:
        handler = RecordingHandler({METADATA_URL: httpx.Response(200, text=metadata_xml("2.3.4"))})
        coordinate = parse_coordinate("org.example:demo")
        assert resolve_latest_version(coordinate, client=mock_client(handler), config=config) == "2.3.4"

    def test_never_caches(self, config: HipoConfig) -> None:
        handler = RecordingHandler({METADATA_URL: httpx.Response(200, text=metadata_xml("2.3.4"))})
        client = mock_client(handler)
        coordinate = parse_coordinate("org.example:demo")
        resolve_latest_version(coordinate, client=client, config=config)
        resolve_latest_version(coordinate, client=client, config=config)
        assert handler.urls == [METADATA_URL, METADATA_URL]

    def test_no_fallback_to_latest(self, config: HipoConfig) -> None:
        handler = RecordingHandler({METADATA_URL: httpx.Response(200, text=metadata_xml(None, latest="9.9.9"))})
        with pytest.raises(InvalidResponseError):
            resolve_latest_version(parse_coordinate("org.example:demo"), client=mock_client(handler), config=config)

    @pytest.mark.parametrize("release", ["../../../../../escape", "..", "1.0/../../x", "1.0\\..\\x"])
    def test_release_that_is_not_a_path_segment(self, config: HipoConfig, release: str) -> None:
        handler = RecordingHandler({METADATA_URL: httpx.Response(200, text=metadata_xml(release))})
        with pytest.raises(InvalidResponseError):
            resolve_latest_version(parse_coordinate("org.example:demo"), client=mock_client(handler), config=config)

    def test_malformed_xml(self, config: HipoConfig) -> None:
        handler = RecordingHandler({METADATA_URL: httpx.Response(200, text="<metadata><versioning>")})
        with pytest.raises(InvalidResponseError):
            resolve_latest_version(parse_coordinate("org.example:demo"), client=mock_client(handler), config=config)

    def test_not_found(self, config: HipoConfig) -> None:
        with pytest.raises(RemoteRejectionError) as exc_info:
            resolve_latest_version(
                parse_coordinate("org.example:demo"), client=mock_client(RecordingHandler({})), config=config
            )
        assert exc_info.value.status_code == 404
        assert exc_info.value.url == METADATA_URL

    def test_transport_error(self, config: HipoConfig) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectTimeout("timed out", request=request)

        with pytest.raises(NetworkError):
            resolve_latest_version(parse_coordinate("org.example:demo"), client=mock_client(handler), config=config)


class TestFetchArtifact:
    """fetch_artifact() downloads into the cache with an explicit cache-hit branch."""

    def test_downloads_to_cache(self, hipo_home: Path, config: HipoConfig) -> None:
        handler = RecordingHandler({DEMO_URL: httpx.Response(200, content=b"PK jar bytes")})

        path = fetch_artifact(DEMO, client=mock_client(handler), config=config, home=hipo_home)

        assert path == hipo_home / "cache" / "org" / "example" / "demo" / "1.0.0" / "demo-1.0.0.jar"
        assert path.is_absolute()
        assert path.read_bytes() == b"PK jar bytes"
        assert handler.urls == [DEMO_URL]

    def test_cache_hit_skips_download(self, hipo_home: Path, config: HipoConfig) -> None:
        cached = cache_path(DEMO, hipo_home)
        cached.parent.mkdir(parents=True)
        cached.write_bytes(b"cached jar")
        handler = RecordingHandler({DEMO_URL: httpx.Response(200, content=b"fresh jar")})

        path = fetch_artifact(DEMO, client=mock_client(handler), config=config, home=hipo_home)

        assert path.read_bytes() == b"cached jar"
        assert handler.requests == []

    def test_refresh_overwrites(self, hipo_home: Path, config: HipoConfig) -> None:
        cached = cache_path(DEMO, hipo_home)
        cached.parent.mkdir(parents=True)
        cached.write_bytes(b"cached jar")
        handler = RecordingHandler({DEMO_URL: httpx.Response(200, content=b"fresh jar")})

        path = fetch_artifact(DEMO, client=mock_client(handler), config=config, home=hipo_home, refresh=True)

        assert path.read_bytes() == b"fresh jar"
        assert handler.urls == [DEMO_URL]

    def test_empty_cached_file_is_refetched(self, hipo_home: Path, config: HipoConfig) -> None:
        cached = cache_path(DEMO, hipo_home)
        cached.parent.mkdir(parents=True)
        cached.write_bytes(b"")
        handler = RecordingHandler({DEMO_URL: httpx.Response(200, content=b"jar")})

        fetch_artifact(DEMO, client=mock_client(handler), config=config, home=hipo_home)

        assert cached.read_bytes() == b"jar"

    def test_not_found_writes_nothing(self, hipo_home: Path, config: HipoConfig) -> None:
        handler = RecordingHandler({DEMO_URL: httpx.Response(404, text="Not Found")})

        with pytest.raises(ArtifactNotFoundError) as exc_info:
            fetch_artifact(DEMO, client=mock_client(handler), config=config, home=hipo_home)

        assert exc_info.value.status_code == 404
        assert not cache_path(DEMO, hipo_home).exists()

    def test_interrupted_download_leaves_no_file(self, hipo_home: Path, config: HipoConfig) -> None:
        class BrokenStream(httpx.SyncByteStream):
            def __iter__(self):
                yield b"partial"
                raise httpx.ReadError("connection reset")

        handler = RecordingHandler({DEMO_URL: httpx.Response(200, stream=BrokenStream())})

        with pytest.raises(NetworkError):
            fetch_artifact(DEMO, client=mock_client(handler), config=config, home=hipo_home)

        target = cache_path(DEMO, hipo_home)
        assert not target.exists()
        assert list(target.parent.iterdir()) == []

    def test_interrupted_refresh_keeps_previous_copy(self, hipo_home: Path, config: HipoConfig) -> None:
        cached = cache_path(DEMO, hipo_home)
        cached.parent.mkdir(parents=True)
        cached.write_bytes(b"good jar")

        class BrokenStream(httpx.SyncByteStream):
            def __iter__(self):
                yield b"par"
                raise httpx.ReadError("connection reset")

        handler = RecordingHandler({DEMO_URL: httpx.Response(200, stream=BrokenStream())})
        with pytest.raises(NetworkError):
            fetch_artifact(DEMO, client=mock_client(handler), config=config, home=hipo_home, refresh=True)

        assert cached.read_bytes() == b"good jar"
