"""Integrity manifests (SHASUMS256.txt).

A manifest lists one ``<sha256-hex>  <filename>`` pair per line; a leading
``*`` on the filename (binary mode marker) is tolerated. Lookups are by exact
filename: other entries, and names that merely contain the wanted one, are
ignored.
"""

from __future__ import annotations

import hashlib
import re
from pathlib import Path

from getsymi.core.errors import ChecksumMismatch, ManifestEntryMissing
from getsymi.core.result import Err, Ok, Result

__all__ = ["parse_manifest", "sha256_file", "verify_artifact"]

_LINE_RE = re.compile(r"^([0-9a-fA-F]{64})\s+\*?(\S.*)$")


def parse_manifest(text: str) -> dict[str, str]:
    """Parse manifest text into {filename: lowercase hex digest}.

    Malformed lines are skipped.
    """
    entries: dict[str, str] = {}
    for raw in text.splitlines():
        match = _LINE_RE.match(raw.strip())
        if match is None:
            continue
        digest, filename = match.groups()
        entries[filename.strip()] = digest.lower()
    return entries


def sha256_file(path: Path, chunk_size: int = 1024 * 1024) -> str:
    """Compute the SHA-256 hex digest of a file."""
    digest = hashlib.sha256()
    with path.open("rb") as handle:
        while chunk := handle.read(chunk_size):
            digest.update(chunk)
    return digest.hexdigest()


def verify_artifact(
    artifact: Path,
    manifest_text: str,
    *,
    manifest_url: str = "",
    filename: str | None = None,
) -> Result[str, ChecksumMismatch | ManifestEntryMissing]:
    """Check artifact against its manifest entry.

    Args:
        artifact: Downloaded file
        manifest_text: Manifest body
        manifest_url: Where the manifest came from (for error messages)
        filename: Manifest key to use (defaults to the artifact's name)

    Returns:
        Ok(digest) when the entry exists and matches.
    """
    name = filename or artifact.name
    expected = parse_manifest(manifest_text).get(name)
    if expected is None:
        return Err(ManifestEntryMissing(filename=name, manifest_url=manifest_url))

    actual = sha256_file(artifact)
    if actual != expected:
        return Err(ChecksumMismatch(filename=name, expected=expected, actual=actual))
    return Ok(actual)
