"""Archive extraction with atomic placement.

This module provides an Extractor that:
- Extracts tar.gz, tar.xz and zip archives
- Supports strip_components (removing leading path components)
- Refuses absolute paths, ``..`` segments and links escaping the root
- Extracts into a sibling staging directory and renames it into place, so
  the final directory is either absent, the previous install, or complete
"""

from __future__ import annotations

import contextlib
import os
import shutil
import stat
import tarfile
import uuid
import zipfile
from dataclasses import dataclass
from pathlib import Path, PurePosixPath

from getsymi.core.errors import ExtractionFailed
from getsymi.core.result import Err, Ok, Result

__all__ = ["ExtractResult", "Extractor", "staging_path"]


@dataclass(frozen=True, slots=True)
class ExtractResult:
    """Result of an extraction.

    Attributes:
        install_dir: Final directory
        files_count: Number of regular files written
    """

    install_dir: Path
    files_count: int


def staging_path(dest: Path) -> Path:
    """Unique sibling directory used while extracting into dest."""
    return dest.parent / f".{dest.name}.staging-{uuid.uuid4().hex[:8]}"


class Extractor:
    """Archive extractor for runtime installation.

    Usage:
        result = Extractor().install(archive, prefix / "tools" / "node-v22.22.0",
                                     strip_components=1)
        if is_ok(result):
            print(f"Extracted {result.value.files_count} files")
    """

    def install(
        self,
        archive: Path,
        dest: Path,
        *,
        strip_components: int = 0,
    ) -> Result[ExtractResult, ExtractionFailed]:
        """Extract archive and atomically move it to dest.

        Args:
            archive: Path to archive file
            dest: Final install directory
            strip_components: Number of leading path components to remove

        Returns:
            Ok with ExtractResult, or Err with ExtractionFailed
        """
        if not archive.exists():
            return Err(ExtractionFailed(archive=archive, message="Archive not found"))

        name = archive.name.lower()
        if name.endswith((".tar.gz", ".tgz", ".tar.xz", ".txz")):
            extract = self._extract_tar
        elif name.endswith(".zip"):
            extract = self._extract_zip
        else:
            return Err(ExtractionFailed(archive=archive, message="Unsupported archive format"))

        staging = staging_path(dest)
        try:
            dest.parent.mkdir(parents=True, exist_ok=True)
            staging.mkdir()
            files_count = extract(archive, staging, strip_components)
            self._replace(staging, dest)
        except (tarfile.TarError, zipfile.BadZipFile) as e:
            return Err(ExtractionFailed(archive=archive, message=f"Extraction failed: {e}"))
        except OSError as e:
            return Err(ExtractionFailed(archive=archive, message=f"IO error: {e}"))
        finally:
            if staging.exists():
                shutil.rmtree(staging, ignore_errors=True)

        return Ok(ExtractResult(install_dir=dest, files_count=files_count))

    def _replace(self, staging: Path, dest: Path) -> None:
        """Swap the staged tree into place."""
        if not dest.exists():
            os.replace(staging, dest)
            return

        # rename() cannot replace a non-empty directory.
        retired = dest.parent / f".{dest.name}.old-{uuid.uuid4().hex[:8]}"
        os.replace(dest, retired)
        try:
            os.replace(staging, dest)
        except OSError:
            os.replace(retired, dest)
            raise
        shutil.rmtree(retired, ignore_errors=True)

    def _safe_relative_path(self, member_name: str, strip_components: int) -> Path | None:
        """Return a sanitized relative extraction path, or None if unsafe."""
        normalized = member_name.replace("\\", "/")
        if normalized.startswith("/"):
            return None

        parts = PurePosixPath(normalized).parts
        if len(parts) <= strip_components:
            return None

        kept = parts[strip_components:]
        if any(part in {"", ".", ".."} for part in kept):
            return None
        if kept[0].endswith(":"):
            return None

        return Path(*kept)

    def _is_within_root(self, root: Path, target: Path) -> bool:
        try:
            return target.resolve().is_relative_to(root.resolve())
        except OSError:
            return False

    def _extract_tar(self, archive: Path, root: Path, strip_components: int) -> int:
        files_count = 0
        links: list[tuple[Path, str]] = []

        with tarfile.open(archive, "r:*") as tar:
            for member in tar.getmembers():
                rel_path = self._safe_relative_path(member.name, strip_components)
                if rel_path is None:
                    continue
                full_path = root / rel_path
                if not self._is_within_root(root, full_path):
                    continue

                if member.isdir():
                    full_path.mkdir(parents=True, exist_ok=True)
                    continue
                if member.issym():
                    # Node ships bin/npm -> ../lib/node_modules/npm/bin/npm-cli.js
                    links.append((full_path, member.linkname))
                    continue
                if not member.isreg():
                    continue

                src = tar.extractfile(member)
                if src is None:
                    continue
                full_path.parent.mkdir(parents=True, exist_ok=True)
                with src, open(full_path, "wb") as dst:
                    shutil.copyfileobj(src, dst)

                mode = member.mode & 0o777
                if mode:
                    with contextlib.suppress(OSError):
                        os.chmod(full_path, mode)
                files_count += 1

        for link_path, target in links:
            resolved = (link_path.parent / target).resolve()
            if target.startswith("/") or not resolved.is_relative_to(root.resolve()):
                continue
            link_path.parent.mkdir(parents=True, exist_ok=True)
            with contextlib.suppress(FileExistsError):
                link_path.symlink_to(target)

        return files_count

    def _extract_zip(self, archive: Path, root: Path, strip_components: int) -> int:
        files_count = 0

        with zipfile.ZipFile(archive, "r") as zf:
            for info in zf.infolist():
                if info.is_dir():
                    continue

                rel_path = self._safe_relative_path(info.filename, strip_components)
                if rel_path is None:
                    continue

                file_type_bits = (info.external_attr >> 16) & 0o170000
                if file_type_bits == stat.S_IFLNK:
                    continue

                full_path = root / rel_path
                if not self._is_within_root(root, full_path):
                    continue

                full_path.parent.mkdir(parents=True, exist_ok=True)
                with zf.open(info) as src, open(full_path, "wb") as dst:
                    shutil.copyfileobj(src, dst)

                unix_attrs = (info.external_attr >> 16) & 0o777
                if unix_attrs:
                    full_path.chmod(unix_attrs)

                files_count += 1

        return files_count
