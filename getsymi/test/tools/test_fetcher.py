"""Tests for verified runtime acquisition."""

from __future__ import annotations

import hashlib
import io
import tarfile
from pathlib import Path

import pytest

from getsymi.core.errors import ChecksumMismatch, ManifestEntryMissing, NetworkFailure
from getsymi.core.result import Err, Ok
from getsymi.output.events import EventKind, EventLog
from getsymi.platform.detection import Arch, Os, PlatformInfo
from getsymi.tools.fetcher import ArtifactFetcher, node_artifact, node_binary
from getsymi.tools.http import MockHttpClient

VERSION = "22.22.0"
DIST = "https://nodejs.org/dist"
LINUX = PlatformInfo(os=Os.LINUX, arch=Arch.X64)
WINDOWS = PlatformInfo(os=Os.WINDOWS, arch=Arch.ARM64)


def _node_tarball() -> bytes:
    buf = io.BytesIO()
    with tarfile.open(fileobj=buf, mode="w:xz") as tar:
        data = b"#!/bin/sh\necho v22.22.0\n"
        info = tarfile.TarInfo(f"node-v{VERSION}-linux-x64/bin/node")
        info.size = len(data)
        info.mode = 0o755
        tar.addfile(info, io.BytesIO(data))
    return buf.getvalue()


def _manifest(filename: str, data: bytes) -> str:
    return f"{hashlib.sha256(data).hexdigest()}  {filename}\n{'0' * 64}  other.tar.gz\n"


@pytest.fixture
def tarball() -> bytes:
    return _node_tarball()


@pytest.fixture
def events() -> EventLog:
    return EventLog()


def _http(archive: bytes, manifest: str) -> MockHttpClient:
    artifact = node_artifact(VERSION, LINUX, DIST)
    http = MockHttpClient()
    http.set_download(artifact.url, archive)
    http.set_text(artifact.manifest_url, manifest)
    return http


class TestNodeArtifact:
    def test_linux(self) -> None:
        artifact = node_artifact(VERSION, LINUX, DIST + "/")
        assert artifact.filename == "node-v22.22.0-linux-x64.tar.xz"
        assert artifact.url == f"{DIST}/v22.22.0/node-v22.22.0-linux-x64.tar.xz"
        assert artifact.manifest_url == f"{DIST}/v22.22.0/SHASUMS256.txt"

    def test_windows(self) -> None:
        assert node_artifact(VERSION, WINDOWS, DIST).filename == "node-v22.22.0-win-arm64.zip"

    def test_binary_location(self, tmp_path: Path) -> None:
        assert node_binary(tmp_path, LINUX) == tmp_path / "bin" / "node"
        assert node_binary(tmp_path, WINDOWS) == tmp_path / "node.exe"


class TestFetch:
    def test_verified_install(self, tmp_path: Path, tarball: bytes, events: EventLog) -> None:
        artifact = node_artifact(VERSION, LINUX, DIST)
        http = _http(tarball, _manifest(artifact.filename, tarball))
        dest = tmp_path / "tools" / f"node-v{VERSION}"

        result = ArtifactFetcher(http=http, events=events).ensure_node(
            VERSION, LINUX, dest, dist_url=DIST
        )

        assert result == Ok(dest / "bin")
        assert (dest / "bin" / "node").exists()
        assert events.kinds() == [
            EventKind.DOWNLOAD_STARTED,
            EventKind.CHECKSUM_VERIFIED,
            EventKind.RUNTIME_INSTALLED,
        ]

    def test_tampered_archive_is_not_installed(
        self, tmp_path: Path, tarball: bytes, events: EventLog
    ) -> None:
        artifact = node_artifact(VERSION, LINUX, DIST)
        tampered = bytes([tarball[0] ^ 0xFF]) + tarball[1:]
        http = _http(tampered, _manifest(artifact.filename, tarball))
        dest = tmp_path / "tools" / f"node-v{VERSION}"

        result = ArtifactFetcher(http=http, events=events).fetch(artifact, dest)

        assert isinstance(result, Err)
        assert isinstance(result.error, ChecksumMismatch)
        assert not dest.exists()
        assert not events.has(EventKind.CHECKSUM_VERIFIED)

    def test_missing_manifest_entry(
        self, tmp_path: Path, tarball: bytes, events: EventLog
    ) -> None:
        artifact = node_artifact(VERSION, LINUX, DIST)
        http = _http(tarball, _manifest("node-v22.22.0-darwin-x64.tar.xz", tarball))

        result = ArtifactFetcher(http=http, events=events).fetch(artifact, tmp_path / "node")

        assert isinstance(result, Err)
        assert isinstance(result.error, ManifestEntryMissing)
        assert not (tmp_path / "node").exists()

    def test_network_failure(self, tmp_path: Path, events: EventLog) -> None:
        artifact = node_artifact(VERSION, LINUX, DIST)
        http = MockHttpClient()
        http.set_download(artifact.url, NetworkFailure(artifact.url, 503, "Unavailable"))

        result = ArtifactFetcher(http=http, events=events).fetch(artifact, tmp_path / "node")

        assert result == Err(NetworkFailure(artifact.url, 503, "Unavailable"))
        assert ("get_text", artifact.manifest_url) not in http.calls

    def test_existing_runtime_is_reused(self, tmp_path: Path, events: EventLog) -> None:
        dest = tmp_path / "node"
        (dest / "bin").mkdir(parents=True)
        (dest / "bin" / "node").write_text("")
        http = MockHttpClient()

        result = ArtifactFetcher(http=http, events=events).ensure_node(
            VERSION, LINUX, dest, dist_url=DIST
        )

        assert result == Ok(dest / "bin")
        assert http.calls == []
        assert events.kinds() == [EventKind.RUNTIME_PRESENT]


class TestDryRun:
    def test_reports_without_touching_network_or_disk(
        self, tmp_path: Path, events: EventLog
    ) -> None:
        http = MockHttpClient()
        dest = tmp_path / "node"

        result = ArtifactFetcher(http=http, events=events, dry_run=True).ensure_node(
            VERSION, LINUX, dest, dist_url=DIST
        )

        assert isinstance(result, Ok)
        assert http.calls == []
        assert not dest.exists()
        assert events.kinds() == [
            EventKind.WOULD_FETCH,
            EventKind.WOULD_FETCH,
            EventKind.WOULD_INSTALL,
        ]
