"""CLI command listing contexts and their startup-file chains."""

from typing import Optional

import typer

from envtrace.cli.utils import cli_errors, get_state, output, resolve_format, resolve_platform
from envtrace.knowledge.catalog import list_contexts


def contexts_cmd(
    ctx: typer.Context,
    format: Optional[str] = typer.Option(None, "--format", "-f", help="Output format (text, json)"),
) -> None:
    """
    List the contexts of a platform and the files each one reads.

    Example:
        envtrace contexts
        envtrace --platform linux contexts
    """
    state = get_state(ctx)
    with cli_errors():
        fmt = resolve_format(format, state)
        listing = list_contexts(resolve_platform(state))
        output(listing, fmt, state)
