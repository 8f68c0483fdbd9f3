"""Wrapper executable generator.

A wrapper is a tiny script placed in a bin directory that prepares PATH for
its own invocation and forwards every argument, unmodified, to the real entry
point:

- bash scripts (LF line endings, mode 0755) on macOS/Linux
- cmd scripts (CRLF line endings) on Windows

Rendering is pure; the caller writes the result, leaving an unchanged
wrapper untouched.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from getsymi.platform.detection import Os

__all__ = ["RenderedWrapper", "WrapperGenerator", "WrapperSpec"]


@dataclass(frozen=True, slots=True)
class WrapperSpec:
    """Specification for a wrapper script.

    Attributes:
        name: Wrapper name (e.g., "symi")
        target: Path to the real entry point
        interpreter: Program that runs target (e.g. "node"), or None to exec it
        path_prepend: Directories put in front of PATH before running
    """

    name: str
    target: Path
    interpreter: str | None = None
    path_prepend: tuple[Path, ...] = ()


@dataclass(frozen=True, slots=True)
class RenderedWrapper:
    path: Path
    content: str

    @property
    def mode(self) -> int | None:
        """File mode to apply after writing (None for cmd scripts)."""
        return None if self.path.suffix == ".cmd" else 0o755


class WrapperGenerator:
    """Generates wrapper scripts into a bin directory."""

    def __init__(self, bin_dir: Path) -> None:
        self._bin_dir = bin_dir

    @property
    def bin_dir(self) -> Path:
        return self._bin_dir

    def render(self, spec: WrapperSpec, os_: Os) -> RenderedWrapper:
        """Render a wrapper for the target OS without touching the disk."""
        if os_ == Os.WINDOWS:
            return self._render_cmd(spec)
        return self._render_bash(spec)

    def _render_bash(self, spec: WrapperSpec) -> RenderedWrapper:
        lines = ["#!/usr/bin/env bash", "# Generated by getsymi - do not edit"]

        for directory in spec.path_prepend:
            lines.append(f'export PATH="{directory}:$PATH"')

        if spec.interpreter:
            lines.append(f'exec {spec.interpreter} "{spec.target}" "$@"')
        else:
            lines.append(f'exec "{spec.target}" "$@"')

        return RenderedWrapper(path=self._bin_dir / spec.name, content="\n".join(lines) + "\n")

    def _render_cmd(self, spec: WrapperSpec) -> RenderedWrapper:
        lines = ["@echo off", "REM Generated by getsymi - do not edit", "setlocal"]

        for directory in spec.path_prepend:
            lines.append(f'set "PATH={directory};%PATH%"')

        if spec.interpreter:
            lines.append(f'{spec.interpreter} "{spec.target}" %*')
        else:
            lines.append(f'"{spec.target}" %*')

        return RenderedWrapper(
            path=self._bin_dir / f"{spec.name}.cmd",
            content="\r\n".join(lines) + "\r\n",
        )
