"""CLI commands for tracing and finding a variable or function."""

from typing import Optional

import typer

from envtrace.cli.utils import (
    build_engine,
    cli_errors,
    get_state,
    output,
    progress,
    resolve_format,
    target_kind,
    validate_name,
)
from envtrace.knowledge.catalog import parse_context_name
from envtrace.utils.errors import ValidationError


def trace_cmd(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Variable (or, with -F, function) name"),
    function: bool = typer.Option(False, "--function", "-F", help="Trace a shell function"),
    context: Optional[str] = typer.Option(
        None,
        "--context",
        "-c",
        help="Context to simulate (login, interactive, noninteractive, launchd, systemd, ...)",
    ),
    find: bool = typer.Option(False, "--find", help="List every occurrence instead of simulating one context"),
    verbose: bool = typer.Option(False, "--verbose", help="Show skipped files"),
    format: Optional[str] = typer.Option(None, "--format", "-f", help="Output format (text, json)"),
) -> None:
    """
    Trace how a variable or function gets its value in one context.

    Replays the startup files of the context in execution order and shows
    every line that changes NAME, with the value before and after.

    Example:
        envtrace trace PATH
        envtrace trace JAVA_HOME --context launchd
        envtrace trace nvm -F
    """
    state = get_state(ctx)
    with cli_errors():
        kind = target_kind(function)
        validate_name(name, kind)
        fmt = resolve_format(format, state)
        if find and context:
            raise ValidationError("--find cannot be combined with --context", field="context")

        engine = build_engine(state)
        if find:
            with progress("Scanning startup files...", fmt):
                result = engine.find(name, kind)
        else:
            selected = parse_context_name(context or state.config.trace.default_context, engine.platform)
            with progress("Simulating startup files...", fmt):
                result = engine.trace(name, kind, selected)
        output(result, fmt, state, verbose=verbose, home=engine.fs.home())


def find_cmd(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Variable (or, with -F, function) name"),
    function: bool = typer.Option(False, "--function", "-F", help="Find a shell function"),
    verbose: bool = typer.Option(False, "--verbose", help="Show skipped files"),
    format: Optional[str] = typer.Option(None, "--format", "-f", help="Output format (text, json)"),
) -> None:
    """
    Find every statement touching a name in every known startup file.

    Values are listed per file and never merged.

    Example:
        envtrace find JAVA_HOME
    """
    state = get_state(ctx)
    with cli_errors():
        kind = target_kind(function)
        validate_name(name, kind)
        fmt = resolve_format(format, state)
        engine = build_engine(state)
        with progress("Scanning startup files...", fmt):
            result = engine.find(name, kind)
        output(result, fmt, state, verbose=verbose, home=engine.fs.home())
