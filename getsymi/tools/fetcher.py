"""Integrity-verified runtime acquisition.

The fetcher downloads a Node.js release archive and its ``SHASUMS256.txt``
into a throwaway scratch directory, checks the archive against the manifest
entry for its exact filename, and only then extracts it into place.

Nothing is extracted from an unverified archive, and the install directory is
left exactly as it was when any step fails.
"""

from __future__ import annotations

import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from getsymi.core.errors import (
    ChecksumMismatch,
    ExtractionFailed,
    ManifestEntryMissing,
    NetworkFailure,
)
from getsymi.core.result import Err, Ok, Result
from getsymi.output.events import EventKind

from .extract import Extractor
from .manifest import verify_artifact

if TYPE_CHECKING:
    from getsymi.output.events import EventLog
    from getsymi.platform.detection import PlatformInfo

    from .http import HttpClient

__all__ = ["ArtifactFetcher", "FetchError", "NodeArtifact", "node_artifact", "node_binary"]

type FetchError = NetworkFailure | ChecksumMismatch | ManifestEntryMissing | ExtractionFailed


@dataclass(frozen=True, slots=True)
class NodeArtifact:
    """A Node.js release archive and its manifest.

    Attributes:
        version: Node version without the leading "v"
        filename: Archive name, as listed in the manifest
        url: Archive download URL
        manifest_url: URL of SHASUMS256.txt for the release
    """

    version: str
    filename: str
    url: str
    manifest_url: str


def node_artifact(version: str, platform: PlatformInfo, dist_url: str) -> NodeArtifact:
    """Build the artifact coordinates for a Node release on a platform."""
    base = f"{dist_url.rstrip('/')}/v{version}"
    filename = f"node-v{version}-{platform.os}-{platform.arch}.{platform.os.archive_ext}"
    return NodeArtifact(
        version=version,
        filename=filename,
        url=f"{base}/{filename}",
        manifest_url=f"{base}/SHASUMS256.txt",
    )


def node_binary(install_dir: Path, platform: PlatformInfo) -> Path:
    """Path of the node executable inside an extracted release."""
    if platform.is_windows:
        return install_dir / "node.exe"
    return install_dir / "bin" / "node"


class ArtifactFetcher:
    """Downloads, verifies and installs release archives.

    Usage:
        fetcher = ArtifactFetcher(http=RealHttpClient(), events=log)
        match fetcher.fetch(artifact, config.node_dir):
            case Ok(path):
                print(f"Node at {path}")
            case Err(error):
                print(error)
    """

    def __init__(
        self,
        *,
        http: HttpClient,
        events: EventLog,
        extractor: Extractor | None = None,
        dry_run: bool = False,
    ) -> None:
        self._http = http
        self._events = events
        self._extractor = extractor or Extractor()
        self._dry_run = dry_run

    def fetch(
        self,
        artifact: NodeArtifact,
        dest: Path,
        *,
        strip_components: int = 1,
    ) -> Result[Path, FetchError]:
        """Download, verify and extract artifact into dest.

        Returns:
            Ok(dest) once the verified tree is in place.
        """
        if self._dry_run:
            self._events.emit(EventKind.WOULD_FETCH, url=artifact.url)
            self._events.emit(EventKind.WOULD_FETCH, url=artifact.manifest_url)
            self._events.emit(EventKind.WOULD_INSTALL, target=dest)
            return Ok(dest)

        with tempfile.TemporaryDirectory(prefix="getsymi-") as scratch:
            archive = Path(scratch) / artifact.filename

            self._events.emit(
                EventKind.DOWNLOAD_STARTED, artifact=artifact.filename, url=artifact.url
            )
            downloaded = self._http.download(artifact.url, archive)
            if isinstance(downloaded, Err):
                return downloaded

            manifest = self._http.get_text(artifact.manifest_url)
            if isinstance(manifest, Err):
                return manifest

            verified = verify_artifact(
                archive,
                manifest.value,
                manifest_url=artifact.manifest_url,
                filename=artifact.filename,
            )
            if isinstance(verified, Err):
                return verified
            self._events.emit(
                EventKind.CHECKSUM_VERIFIED, artifact=artifact.filename, sha256=verified.value
            )

            extracted = self._extractor.install(archive, dest, strip_components=strip_components)
            if isinstance(extracted, Err):
                return extracted

        return Ok(dest)

    def ensure_node(
        self,
        version: str,
        platform: PlatformInfo,
        dest: Path,
        *,
        dist_url: str,
    ) -> Result[Path, FetchError]:
        """Install a Node release into dest unless it is already there.

        Returns:
            Ok with the directory holding the node executable.
        """
        node = node_binary(dest, platform)
        if node.exists():
            self._events.emit(EventKind.RUNTIME_PRESENT, version=version, path=dest)
            return Ok(node.parent)

        artifact = node_artifact(version, platform, dist_url)
        result = self.fetch(artifact, dest)
        if isinstance(result, Err):
            return result

        if not self._dry_run:
            self._events.emit(EventKind.RUNTIME_INSTALLED, version=version, path=dest)
        return Ok(node.parent)
