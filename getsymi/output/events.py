"""Installer event stream.

Every observable step of an installation is an ``InstallEvent``: a kind plus
a flat payload. Events are appended to an ``EventLog`` and forwarded, as they
happen, to a sink:

- ``ConsoleSink`` renders them as human-readable lines
- ``JsonLinesSink`` writes one JSON object per line for automation

Example NDJSON record:
    {"event": "install_started", "version": "latest", "prefix": "/home/me/.symi"}
"""

from __future__ import annotations

import json
import sys
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Protocol, TextIO

from .console import Style

if TYPE_CHECKING:
    from .console import ConsoleProtocol

__all__ = [
    "ConsoleSink",
    "EventKind",
    "EventLog",
    "EventSink",
    "InstallEvent",
    "JsonLinesSink",
]


class EventKind(Enum):
    PLATFORM_DETECTED = "platform_detected"
    DEPENDENCY_OK = "dependency_ok"
    DEPENDENCY_INSTALL = "dependency_install"
    DEPENDENCY_INSTALLED = "dependency_installed"
    PROVIDER_SKIPPED = "provider_skipped"
    PROVIDER_FAILED = "provider_failed"
    RUNTIME_PRESENT = "runtime_present"
    DOWNLOAD_STARTED = "download_started"
    CHECKSUM_VERIFIED = "checksum_verified"
    RUNTIME_INSTALLED = "runtime_installed"
    CHECKOUT_CLONE = "checkout_clone"
    CHECKOUT_UPDATE = "checkout_update"
    CHECKOUT_SKIPPED = "checkout_skipped"
    LEGACY_CHECKOUT = "legacy_checkout"
    INSTALL_STARTED = "install_started"
    INSTALL_COMPLETE = "install_complete"
    WRAPPER_WRITTEN = "wrapper_written"
    PATH_REGISTERED = "path_registered"
    PATH_PRESENT = "path_present"
    SELF_CHECK = "self_check"
    ONBOARD_START = "onboard_start"
    ONBOARD_COMPLETE = "onboard_complete"
    ONBOARD_SKIPPED = "onboard_skipped"
    COMMAND = "command"
    INFO = "info"
    WARNING = "warning"
    WOULD_RUN = "would_run"
    WOULD_FETCH = "would_fetch"
    WOULD_INSTALL = "would_install"
    WOULD_WRITE = "would_write"
    WOULD_REGISTER_PATH = "would_register_path"
    ERROR = "error"
    COMPLETE = "complete"

    def __str__(self) -> str:
        return self.value


def _jsonable(value: object) -> object:
    if isinstance(value, Path):
        return str(value)
    if isinstance(value, (list, tuple)):
        return [_jsonable(v) for v in value]
    if isinstance(value, Mapping):
        return {str(k): _jsonable(v) for k, v in value.items()}
    return value


@dataclass(frozen=True, slots=True)
class InstallEvent:
    kind: EventKind
    payload: Mapping[str, object] = field(default_factory=dict)

    def to_record(self) -> dict[str, object]:
        """Flatten into a JSON-ready record tagged with the event kind."""
        record: dict[str, object] = {"event": self.kind.value}
        for key, value in self.payload.items():
            record[key] = _jsonable(value)
        return record

    def to_json(self) -> str:
        return json.dumps(self.to_record(), separators=(",", ":"), sort_keys=False)


class EventSink(Protocol):
    def handle(self, event: InstallEvent) -> None: ...


class JsonLinesSink:
    """Writes one self-contained JSON record per line."""

    def __init__(self, stream: TextIO | None = None, *, verbose: bool = False) -> None:
        self._stream = stream if stream is not None else sys.stdout
        self._verbose = verbose

    def handle(self, event: InstallEvent) -> None:
        if event.kind == EventKind.COMMAND and not self._verbose:
            return
        self._stream.write(event.to_json() + "\n")
        self._stream.flush()


class _Payload(dict[str, object]):
    def __missing__(self, key: str) -> str:
        return "?"


# kind -> (style, template); templates are filled from the payload.
_MESSAGES: dict[EventKind, tuple[Style, str]] = {
    EventKind.PLATFORM_DETECTED: (Style.INFO, "Platform: {os}-{arch}"),
    EventKind.DEPENDENCY_OK: (Style.INFO, "{dependency} {version} found - OK"),
    EventKind.DEPENDENCY_INSTALL: (Style.INFO, "Installing {dependency} via {provider}..."),
    EventKind.DEPENDENCY_INSTALLED: (Style.SUCCESS, "{dependency} {version} installed"),
    EventKind.PROVIDER_SKIPPED: (Style.DIM, "{provider}: {reason}"),
    EventKind.PROVIDER_FAILED: (Style.WARNING, "{provider} did not provide {dependency}: {reason}"),
    EventKind.RUNTIME_PRESENT: (Style.INFO, "Node {version} already installed at {path}"),
    EventKind.DOWNLOAD_STARTED: (Style.INFO, "Downloading {artifact}..."),
    EventKind.CHECKSUM_VERIFIED: (Style.INFO, "SHA-256 verified for {artifact}"),
    EventKind.RUNTIME_INSTALLED: (Style.SUCCESS, "Node installed to {path}"),
    EventKind.CHECKOUT_CLONE: (Style.INFO, "Cloning {repo} into {path}..."),
    EventKind.CHECKOUT_UPDATE: (Style.INFO, "Updating existing checkout at {path}..."),
    EventKind.CHECKOUT_SKIPPED: (Style.INFO, "Skipping git pull for {path} ({reason})"),
    EventKind.LEGACY_CHECKOUT: (
        Style.INFO,
        "Legacy git checkout found at {path} (not removed - clean up manually if desired)",
    ),
    EventKind.INSTALL_STARTED: (Style.INFO, "Installing {package}@{version} via {method}..."),
    EventKind.INSTALL_COMPLETE: (Style.SUCCESS, "{package} installed to {bin}"),
    EventKind.WRAPPER_WRITTEN: (Style.DIM, "Wrote wrapper {path}"),
    EventKind.PATH_REGISTERED: (Style.INFO, "Added {directory} to PATH in {profile}"),
    EventKind.PATH_PRESENT: (Style.DIM, "{profile} already contains {directory}"),
    EventKind.SELF_CHECK: (Style.INFO, "Running {command}..."),
    EventKind.ONBOARD_START: (Style.INFO, "Starting onboarding..."),
    EventKind.ONBOARD_COMPLETE: (Style.INFO, "Onboarding finished"),
    EventKind.ONBOARD_SKIPPED: (Style.INFO, "Skipping onboarding ({reason})"),
    EventKind.INFO: (Style.INFO, "{message}"),
    EventKind.WARNING: (Style.WARNING, "{message}"),
    EventKind.WOULD_RUN: (Style.DIM, "[dry-run] would run: {command}"),
    EventKind.WOULD_FETCH: (Style.DIM, "[dry-run] would fetch {url}"),
    EventKind.WOULD_INSTALL: (Style.DIM, "[dry-run] would install {target}"),
    EventKind.WOULD_WRITE: (Style.DIM, "[dry-run] would write {path}"),
    EventKind.WOULD_REGISTER_PATH: (Style.DIM, "[dry-run] would add {directory} to {profile}"),
    EventKind.COMPLETE: (Style.SUCCESS, "Done! Run '{bin}' to get started."),
}


class ConsoleSink:
    """Renders events as human-readable console lines."""

    def __init__(self, console: ConsoleProtocol) -> None:
        self._console = console

    def handle(self, event: InstallEvent) -> None:
        if event.kind == EventKind.COMMAND:
            self._console.debug(f"$ {event.payload.get('command', '')}")
            return
        if event.kind == EventKind.ERROR:
            # Errors are reported once, at the CLI boundary.
            return

        entry = _MESSAGES.get(event.kind)
        if entry is None:
            return
        style, template = entry
        message = template.format_map(_Payload(event.to_record()))

        match style:
            case Style.INFO:
                self._console.info(message)
            case Style.WARNING:
                self._console.warning(message)
            case Style.SUCCESS:
                self._console.success(message)
            case _:
                self._console.print(message, style)


class EventLog:
    """Append-only record of installer events, forwarded to a sink."""

    def __init__(self, sink: EventSink | None = None) -> None:
        self._sink = sink
        self._records: list[InstallEvent] = []

    @property
    def records(self) -> tuple[InstallEvent, ...]:
        return tuple(self._records)

    def emit(self, kind: EventKind, **payload: object) -> InstallEvent:
        event = InstallEvent(kind=kind, payload=payload)
        self._records.append(event)
        if self._sink is not None:
            self._sink.handle(event)
        return event

    def info(self, message: str) -> None:
        self.emit(EventKind.INFO, message=message)

    def warning(self, message: str) -> None:
        self.emit(EventKind.WARNING, message=message)

    def kinds(self) -> list[EventKind]:
        return [e.kind for e in self._records]

    def find(self, kind: EventKind) -> list[InstallEvent]:
        return [e for e in self._records if e.kind == kind]

    def has(self, kind: EventKind) -> bool:
        return any(e.kind == kind for e in self._records)
