"""HTTP client abstraction for artifact downloads.

This module provides:
- HttpClient: Protocol for HTTP operations (injectable for tests)
- RealHttpClient: Real implementation using urllib
- MockHttpClient: Mock implementation for testing

Requests are never retried: a failing download surfaces immediately as a
``NetworkFailure``.
"""

from __future__ import annotations

import ssl
import urllib.error
import urllib.request
from pathlib import Path
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from getsymi import __version__
from getsymi.core.errors import NetworkFailure
from getsymi.core.result import Err, Ok, Result

if TYPE_CHECKING:
    from collections.abc import Callable

__all__ = [
    "HttpClient",
    "MockHttpClient",
    "RealHttpClient",
]


@runtime_checkable
class HttpClient(Protocol):
    """Protocol for HTTP operations."""

    def get_text(self, url: str) -> Result[str, NetworkFailure]:
        """Fetch URL and return the body decoded as UTF-8."""
        ...

    def download(
        self,
        url: str,
        dest: Path,
        progress: Callable[[int, int], None] | None = None,
    ) -> Result[Path, NetworkFailure]:
        """Stream URL into dest.

        Args:
            url: URL to download
            dest: Destination path
            progress: Optional callback(downloaded, total)

        Returns:
            Ok with dest path, or Err with NetworkFailure
        """
        ...


class RealHttpClient:
    """HTTP client using urllib with the system certificate store."""

    def __init__(
        self,
        timeout: float = 60.0,
        user_agent: str = f"getsymi/{__version__}",
    ) -> None:
        self.timeout = timeout
        self.user_agent = user_agent
        self._ssl_context = ssl.create_default_context()

    def _request(self, url: str) -> urllib.request.Request:
        return urllib.request.Request(url, headers={"User-Agent": self.user_agent})

    def get_text(self, url: str) -> Result[str, NetworkFailure]:
        try:
            with urllib.request.urlopen(
                self._request(url), timeout=self.timeout, context=self._ssl_context
            ) as response:
                body: bytes = response.read()
        except urllib.error.HTTPError as e:
            return Err(NetworkFailure(url=url, status=e.code, message=str(e.reason)))
        except urllib.error.URLError as e:
            return Err(NetworkFailure(url=url, status=0, message=str(e.reason)))
        except TimeoutError:
            return Err(NetworkFailure(url=url, status=0, message="Request timed out"))
        except (ValueError, OSError) as e:
            return Err(NetworkFailure(url=url, status=0, message=str(e)))

        try:
            return Ok(body.decode("utf-8"))
        except UnicodeDecodeError as e:
            return Err(NetworkFailure(url=url, status=0, message=f"Decode error: {e}"))

    def download(
        self,
        url: str,
        dest: Path,
        progress: Callable[[int, int], None] | None = None,
    ) -> Result[Path, NetworkFailure]:
        try:
            with urllib.request.urlopen(
                self._request(url), timeout=self.timeout, context=self._ssl_context
            ) as response:
                total = int(response.headers.get("Content-Length", 0))
                downloaded = 0
                chunk_size = 64 * 1024

                dest.parent.mkdir(parents=True, exist_ok=True)
                with open(dest, "wb") as f:
                    while True:
                        chunk = response.read(chunk_size)
                        if not chunk:
                            break
                        f.write(chunk)
                        downloaded += len(chunk)
                        if progress:
                            progress(downloaded, total)

                return Ok(dest)

        except urllib.error.HTTPError as e:
            return Err(NetworkFailure(url=url, status=e.code, message=str(e.reason)))
        except urllib.error.URLError as e:
            return Err(NetworkFailure(url=url, status=0, message=str(e.reason)))
        except TimeoutError:
            return Err(NetworkFailure(url=url, status=0, message="Download timed out"))
        except (ValueError, OSError) as e:
            return Err(NetworkFailure(url=url, status=0, message=str(e)))


class MockHttpClient:
    """Mock HTTP client for testing.

    Usage:
        client = MockHttpClient()
        client.set_download("https://nodejs.org/dist/v22.22.0/SHASUMS256.txt", b"...")
    """

    def __init__(self) -> None:
        self._responses: dict[str, bytes | NetworkFailure] = {}
        self.calls: list[tuple[str, str]] = []

    def set_download(self, url: str, response: bytes | NetworkFailure) -> None:
        self._responses[url] = response

    def set_text(self, url: str, response: str | NetworkFailure) -> None:
        self._responses[url] = response.encode("utf-8") if isinstance(response, str) else response

    def _lookup(self, url: str) -> Result[bytes, NetworkFailure]:
        if url not in self._responses:
            return Err(NetworkFailure(url=url, status=404, message="Not Found"))
        response = self._responses[url]
        if isinstance(response, NetworkFailure):
            return Err(response)
        return Ok(response)

    def get_text(self, url: str) -> Result[str, NetworkFailure]:
        self.calls.append(("get_text", url))
        result = self._lookup(url)
        if isinstance(result, Err):
            return result
        return Ok(result.value.decode("utf-8"))

    def download(
        self,
        url: str,
        dest: Path,
        progress: Callable[[int, int], None] | None = None,
    ) -> Result[Path, NetworkFailure]:
        self.calls.append(("download", url))
        result = self._lookup(url)
        if isinstance(result, Err):
            return result

        dest.parent.mkdir(parents=True, exist_ok=True)
        dest.write_bytes(result.value)
        if progress:
            progress(len(result.value), len(result.value))
        return Ok(dest)
