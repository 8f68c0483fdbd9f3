"""Tests for wrapper generation."""

from __future__ import annotations

from pathlib import Path

from getsymi.platform.detection import Os
from getsymi.tools.wrapper import WrapperGenerator, WrapperSpec


class TestBashWrapper:
    def test_prefix_wrapper(self, tmp_path: Path) -> None:
        node_bin = tmp_path / "tools" / "node" / "bin"
        target = tmp_path / "lib" / "node_modules" / ".bin" / "symi"
        spec = WrapperSpec(name="symi", target=target, path_prepend=(node_bin,))

        rendered = WrapperGenerator(tmp_path / "bin").render(spec, Os.LINUX)

        assert rendered.path == tmp_path / "bin" / "symi"
        assert rendered.mode == 0o755
        assert rendered.content.splitlines() == [
            "#!/usr/bin/env bash",
            "# Generated by getsymi - do not edit",
            f'export PATH="{node_bin}:$PATH"',
            f'exec "{target}" "$@"',
        ]
        assert "\r" not in rendered.content

    def test_interpreter(self, tmp_path: Path) -> None:
        spec = WrapperSpec(name="symi", target=tmp_path / "dist" / "index.js", interpreter="node")
        rendered = WrapperGenerator(tmp_path).render(spec, Os.DARWIN)
        assert rendered.content.endswith(f'exec node "{tmp_path / "dist" / "index.js"}" "$@"\n')


class TestCmdWrapper:
    def test_crlf_and_name(self, tmp_path: Path) -> None:
        spec = WrapperSpec(
            name="symi",
            target=Path("C:/symi/lib/symi.cmd"),
            path_prepend=(Path("C:/symi/tools/node"),),
        )

        rendered = WrapperGenerator(tmp_path).render(spec, Os.WINDOWS)

        assert rendered.path == tmp_path / "symi.cmd"
        assert rendered.mode is None
        assert rendered.content.startswith("@echo off\r\n")
        assert rendered.content.endswith("\r\n")
        assert "\n" not in rendered.content.replace("\r\n", "")
        assert 'set "PATH=C:/symi/tools/node;%PATH%"' in rendered.content
        assert '"C:/symi/lib/symi.cmd" %*' in rendered.content


class TestRenderIsPure:
    def test_nothing_written(self, tmp_path: Path) -> None:
        WrapperGenerator(tmp_path / "bin").render(
            WrapperSpec(name="symi", target=tmp_path / "x"), Os.LINUX
        )
        assert not (tmp_path / "bin").exists()
