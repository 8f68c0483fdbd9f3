from __future__ import annotations

import os
import sys
from dataclasses import dataclass

import typer

from getsymi.core.config import ConfigOverrides, InstallConfig, RuntimeMode, load_config
from getsymi.core.errors import ErrorCode
from getsymi.core.result import Err
from getsymi.output.console import ConsoleProtocol, RichConsole
from getsymi.output.events import ConsoleSink, EventLog, EventSink, JsonLinesSink
from getsymi.platform.paths import home
from getsymi.platform.process import CommandRunner, DefaultCommandRunner
from getsymi.services.executor import Executor
from getsymi.tools.http import HttpClient, RealHttpClient


@dataclass(frozen=True, slots=True)
class CLIContext:
    config: InstallConfig
    console: ConsoleProtocol
    events: EventLog
    runner: CommandRunner
    executor: Executor
    http: HttpClient


def build_context(overrides: ConfigOverrides, *, runtime: RuntimeMode) -> CLIContext:
    config_result = load_config(
        os.environ,
        overrides,
        runtime=runtime,
        home=home(windows=sys.platform == "win32"),
        is_tty=sys.stdin.isatty(),
    )
    if isinstance(config_result, Err):
        typer.echo(f"error: {config_result.error}", err=True)
        raise typer.Exit(code=int(ErrorCode.INVALID_ARGUMENT))

    config = config_result.value
    console = RichConsole(verbose=config.verbose, quiet=config.json_output)
    sink: EventSink
    if config.json_output:
        sink = JsonLinesSink(verbose=config.verbose)
    else:
        sink = ConsoleSink(console)
    events = EventLog(sink)

    runner = DefaultCommandRunner()
    executor = Executor(
        runner,
        events,
        dry_run=config.dry_run,
        stream_output=not config.json_output,
    )

    return CLIContext(
        config=config,
        console=console,
        events=events,
        runner=runner,
        executor=executor,
        http=RealHttpClient(),
    )
