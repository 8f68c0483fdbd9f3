"""User-level path helpers."""

from __future__ import annotations

import os
from collections.abc import Mapping
from pathlib import Path

__all__ = ["home"]


def home(env: Mapping[str, str] | None = None, *, windows: bool = False) -> Path:
    """Get the user's home directory.

    Uses USERPROFILE on Windows and HOME elsewhere, so CI and container
    overrides are honoured; falls back to Path.home().
    """
    source = os.environ if env is None else env
    value = source.get("USERPROFILE") if windows else source.get("HOME")
    if value:
        return Path(value)
    return Path.home()
