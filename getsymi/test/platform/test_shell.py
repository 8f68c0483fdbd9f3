"""Tests for PATH registration primitives."""

from __future__ import annotations

from pathlib import Path

from getsymi.core.result import Err, Ok
from getsymi.platform.process import MockCommandRunner
from getsymi.platform.shell import (
    WindowsUserPath,
    append_export,
    export_line,
    idempotency_keys,
    path_entries_contain,
    plan_path_mutations,
    profile_contains,
)

READ_USER = (
    "powershell",
    "-NoProfile",
    "-NonInteractive",
    "-Command",
    "[Environment]::GetEnvironmentVariable('Path', 'User')",
)


def _write_user(value: str) -> tuple[str, ...]:
    return (
        "powershell",
        "-NoProfile",
        "-NonInteractive",
        "-Command",
        f"[Environment]::SetEnvironmentVariable('Path', '{value}', 'User')",
    )


# =============================================================================
# POSIX profiles
# =============================================================================


class TestKeysAndLines:
    def test_home_relative(self, tmp_path: Path) -> None:
        directory = tmp_path / ".symi" / "bin"
        assert idempotency_keys(directory, tmp_path) == (str(directory), "$HOME/.symi/bin")
        assert export_line(directory, tmp_path) == 'export PATH="$HOME/.symi/bin:$PATH"'

    def test_outside_home(self, tmp_path: Path) -> None:
        directory = Path("/opt/symi/bin")
        assert idempotency_keys(directory, tmp_path) == ("/opt/symi/bin",)
        assert export_line(directory, tmp_path) == 'export PATH="/opt/symi/bin:$PATH"'


class TestProfileContains:
    def test_home_form(self, tmp_path: Path) -> None:
        profile = tmp_path / ".bashrc"
        profile.write_text('export PATH="$HOME/.symi/bin:$PATH"\n')
        assert profile_contains(profile, idempotency_keys(tmp_path / ".symi" / "bin", tmp_path))

    def test_absolute_form(self, tmp_path: Path) -> None:
        directory = tmp_path / ".symi" / "bin"
        profile = tmp_path / ".bashrc"
        profile.write_text(f"PATH={directory}/:$PATH\n")
        assert profile_contains(profile, idempotency_keys(directory, tmp_path))

    def test_unrelated_bin_does_not_match(self, tmp_path: Path) -> None:
        profile = tmp_path / ".bashrc"
        profile.write_text('export PATH="/usr/local/bin:$PATH"\n')
        assert not profile_contains(profile, idempotency_keys(tmp_path / "bin", tmp_path))

    def test_same_tail_elsewhere_does_not_match(self, tmp_path: Path) -> None:
        profile = tmp_path / ".bashrc"
        profile.write_text('export PATH="/opt/tools/.symi/bin:$PATH"\n')
        keys = idempotency_keys(tmp_path / ".symi" / "bin", tmp_path)
        assert not profile_contains(profile, keys)

    def test_longer_path_does_not_match(self, tmp_path: Path) -> None:
        profile = tmp_path / ".bashrc"
        profile.write_text('export PATH="/opt/symi/bin2:/opt/symi/bin/sub:$PATH"\n')
        assert not profile_contains(profile, ("/opt/symi/bin",))

    def test_missing_file(self, tmp_path: Path) -> None:
        assert not profile_contains(tmp_path / ".zshrc", ("/opt/symi/bin",))


class TestAppendExport:
    def test_appends_on_fresh_line(self, tmp_path: Path) -> None:
        profile = tmp_path / ".bashrc"
        profile.write_text("alias ll='ls -l'")
        append_export(profile, "export PATH=x")
        assert profile.read_text() == "alias ll='ls -l'\nexport PATH=x\n"

    def test_empty_file(self, tmp_path: Path) -> None:
        profile = tmp_path / ".profile"
        profile.write_text("")
        append_export(profile, "export PATH=x")
        assert profile.read_text() == "export PATH=x\n"


class TestPlanPathMutations:
    def test_only_existing_profiles_lacking_key(self, tmp_path: Path) -> None:
        directory = tmp_path / ".symi" / "bin"
        bashrc = tmp_path / ".bashrc"
        zshrc = tmp_path / ".zshrc"
        bashrc.write_text("# empty\n")
        zshrc.write_text('export PATH="$HOME/.symi/bin:$PATH"\n')
        missing = tmp_path / ".profile"

        mutations = plan_path_mutations(directory, [bashrc, zshrc, missing], home=tmp_path)

        assert [m.profile for m in mutations] == [bashrc]
        assert not missing.exists()

    def test_running_twice_adds_one_line(self, tmp_path: Path) -> None:
        directory = tmp_path / ".symi" / "bin"
        bashrc = tmp_path / ".bashrc"
        bashrc.write_text("")

        for _ in range(2):
            for mutation in plan_path_mutations(directory, [bashrc], home=tmp_path):
                append_export(mutation.profile, mutation.line)

        assert bashrc.read_text().count(".symi/bin") == 1

    def test_unrelated_bin_gets_registered(self, tmp_path: Path) -> None:
        bashrc = tmp_path / ".bashrc"
        bashrc.write_text('export PATH="/usr/local/bin:$PATH"\n')

        mutations = plan_path_mutations(tmp_path / "bin", [bashrc], home=tmp_path)

        assert [m.line for m in mutations] == ['export PATH="$HOME/bin:$PATH"']


# =============================================================================
# Windows user Path
# =============================================================================


class TestPathEntriesContain:
    def test_case_and_trailing_separator_insensitive(self) -> None:
        value = r"C:\Windows;C:\Users\Me\.symi\bin\;"
        assert path_entries_contain(value, r"c:\users\me\.symi\bin")

    def test_quoted_entry(self) -> None:
        assert path_entries_contain(r'"C:\Program Files\nodejs"', r"C:\Program Files\nodejs")

    def test_absent(self) -> None:
        assert not path_entries_contain(r"C:\Windows", r"C:\symi\bin")


class TestWindowsUserPath:
    def test_contains(self) -> None:
        runner = MockCommandRunner({READ_USER: (0, "C:\\Windows;C:\\symi\\bin\r\n", "")})
        assert WindowsUserPath(runner).contains(Path("C:\\symi\\bin")) == Ok(True)

    def test_append_when_absent(self) -> None:
        runner = MockCommandRunner(
            {
                READ_USER: (0, "C:\\Windows;", ""),
                _write_user("C:\\Windows;C:\\symi\\bin"): (0, "", ""),
            }
        )
        assert WindowsUserPath(runner).append(Path("C:\\symi\\bin")) == Ok(True)
        assert len(runner.calls) == 2

    def test_append_is_noop_when_present(self) -> None:
        runner = MockCommandRunner({READ_USER: (0, "C:\\symi\\bin", "")})
        assert WindowsUserPath(runner).append(Path("C:\\symi\\bin")) == Ok(False)
        assert len(runner.calls) == 1

    def test_read_failure_propagates(self) -> None:
        runner = MockCommandRunner({READ_USER: (1, "", "access denied")})
        result = WindowsUserPath(runner).contains(Path("C:\\symi\\bin"))
        assert isinstance(result, Err)
        assert result.error.stderr == "access denied"
