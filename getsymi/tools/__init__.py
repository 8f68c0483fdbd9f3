"""Artifact tooling: HTTP, manifests, extraction and wrapper scripts.

- HTTP client for downloads (http.py)
- SHA-256 manifest verification (manifest.py)
- Atomic archive extraction (extract.py)
- Verified runtime acquisition (fetcher.py)
- Wrapper executables (wrapper.py)
"""

from getsymi.tools.extract import ExtractResult, Extractor
from getsymi.tools.fetcher import ArtifactFetcher, NodeArtifact, node_artifact, node_binary
from getsymi.tools.http import HttpClient, MockHttpClient, RealHttpClient
from getsymi.tools.manifest import parse_manifest, sha256_file, verify_artifact
from getsymi.tools.wrapper import RenderedWrapper, WrapperGenerator, WrapperSpec

__all__ = [
    # HTTP
    "HttpClient",
    "MockHttpClient",
    "RealHttpClient",
    # Integrity
    "parse_manifest",
    "sha256_file",
    "verify_artifact",
    # Extraction
    "ExtractResult",
    "Extractor",
    # Fetching
    "ArtifactFetcher",
    "NodeArtifact",
    "node_artifact",
    "node_binary",
    # Wrappers
    "RenderedWrapper",
    "WrapperGenerator",
    "WrapperSpec",
]
