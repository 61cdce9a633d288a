"""CLI command for sanity-checking the live PATH."""

import os
from typing import Optional

import typer

from envtrace.cli.utils import build_engine, cli_errors, get_state, output, resolve_format
from envtrace.core.check import SanityChecker


def check_cmd(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", help="List every PATH entry"),
    format: Optional[str] = typer.Option(None, "--format", "-f", help="Output format (text, json)"),
    strict: bool = typer.Option(False, "--strict", help="Exit with status 1 when issues are found"),
) -> None:
    """
    Check the current PATH for structural problems.

    Reports duplicate entries, directories that do not exist, empty entries,
    and entries your shell adds that GUI apps or services will not see.

    Example:
        envtrace check
        envtrace check --format json
    """
    state = get_state(ctx)
    with cli_errors():
        fmt = resolve_format(format, state)
        engine = build_engine(state)
        result = SanityChecker(engine).check(os.environ.get)
        output(result, fmt, state, verbose=verbose, home=engine.fs.home())

    if strict and not result.healthy:
        raise typer.Exit(1)
