"""Shared utilities for CLI commands."""

from __future__ import annotations

from contextlib import contextmanager, nullcontext
from typing import Any, Iterator

import typer
from rich.console import Console
from rich.markup import escape

from envtrace.core.filesystem import FilesystemView, LocalFilesystemView
from envtrace.core.simulator import TraceEngine
from envtrace.models.operation import TargetKind
from envtrace.models.platform import Platform
from envtrace.renderers import JSONRenderer, OutputFormat, RenderContext, TerminalRenderer
from envtrace.utils.config import EnvtraceConfig, get_config, load_config
from envtrace.utils.errors import (
    EnvtraceError,
    ValidationError,
    validate_function_name,
    validate_identifier,
)
from envtrace.utils.logging import get_logger

logger = get_logger(__name__)

# Shared console instances
console = Console()
err_console = Console(stderr=True)


class CLIState:
    """Global options collected by the root callback."""

    def __init__(
        self,
        platform: str | None = None,
        home: str | None = None,
        config_path: str | None = None,
        verbose: bool = False,
    ):
        self.platform = platform
        self.home = home
        self.config_path = config_path
        self.verbose = verbose
        self._config: EnvtraceConfig | None = None

    @property
    def config(self) -> EnvtraceConfig:
        if self._config is None:
            self._config = load_config(self.config_path) if self.config_path else get_config()
        return self._config


def get_state(ctx: typer.Context) -> CLIState:
    if not isinstance(ctx.obj, CLIState):
        ctx.obj = CLIState()
    return ctx.obj


def make_filesystem(home: str | None) -> FilesystemView:
    """Filesystem the commands read from."""
    return LocalFilesystemView(home=home)


@contextmanager
def cli_errors() -> Iterator[None]:
    """Report envtrace errors as ``Error: ...`` and exit with status 1."""
    try:
        yield
    except EnvtraceError as e:
        logger.debug("Command failed: %s", e.to_error_detail())
        err_console.print(f"[red]Error:[/red] {escape(e.message)}")
        raise typer.Exit(1)


def resolve_platform(state: CLIState) -> Platform:
    """Platform from ``--platform``, the config file, or the running host."""
    name = state.platform or state.config.trace.platform
    if not name:
        return Platform.detect()
    try:
        return Platform(name.strip().lower())
    except ValueError:
        valid = ", ".join(p.value for p in Platform)
        raise ValidationError(f"Unknown platform: {name} (valid: {valid})", field="platform")


def resolve_format(format: str | None, state: CLIState) -> OutputFormat:
    value = format or state.config.output.default_format
    try:
        return OutputFormat(value.lower())
    except ValueError:
        valid = ", ".join(f.value for f in OutputFormat)
        raise ValidationError(f"Unknown output format: {value} (valid: {valid})", field="format")


def progress(message: str, format: OutputFormat):
    """Spinner for text output; nothing for JSON so stdout stays clean."""
    if format is OutputFormat.TEXT:
        return console.status(message)
    return nullcontext()


def target_kind(function: bool) -> TargetKind:
    return TargetKind.FUNCTION if function else TargetKind.VARIABLE


def validate_name(name: str, kind: TargetKind) -> None:
    if kind is TargetKind.FUNCTION:
        validate_function_name(name)
    else:
        validate_identifier(name)


def build_engine(state: CLIState) -> TraceEngine:
    """Engine for the selected platform over the local filesystem."""
    config = state.config.trace
    fs = make_filesystem(state.home)
    platform = resolve_platform(state)
    logger.debug("Using platform %s", platform.value)
    return TraceEngine(
        fs,
        platform,
        follow_sources=config.follow_sources,
        max_source_depth=config.max_source_depth,
    )


def output(data: Any, format: OutputFormat, state: CLIState, verbose: bool = False, home: str | None = None) -> None:
    """Write a report to stdout in the requested format."""
    context = RenderContext(
        format=format,
        verbose=verbose or state.verbose or state.config.output.verbose,
        color=state.config.output.color,
        home=home,
    )
    if format is OutputFormat.JSON:
        typer.echo(JSONRenderer().render(data, context))
        return
    target = console if context.color else Console(no_color=True)
    TerminalRenderer(target).render(data, context)
