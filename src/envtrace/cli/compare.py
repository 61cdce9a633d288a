"""CLI command for comparing a name across contexts."""

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
from envtrace.core.compare import ContextComparator
from envtrace.knowledge.catalog import parse_context_name
from envtrace.utils.errors import ValidationError


def compare_cmd(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Variable (or, with -F, function) name"),
    contexts: str = typer.Option(
        ...,
        "--contexts",
        help="Comma-separated contexts, e.g. login,launchd",
    ),
    function: bool = typer.Option(False, "--function", "-F", help="Compare a shell function"),
    verbose: bool = typer.Option(False, "--verbose", help="Also show each context's trace"),
    format: Optional[str] = typer.Option(None, "--format", "-f", help="Output format (text, json)"),
) -> None:
    """
    Compare the final value of a name across several contexts.

    Each context is simulated independently.

    Example:
        envtrace compare PATH --contexts login,launchd
    """
    state = get_state(ctx)
    with cli_errors():
        kind = target_kind(function)
        validate_name(name, kind)
        fmt = resolve_format(format, state)

        names = [c.strip() for c in contexts.split(",") if c.strip()]
        if not names:
            raise ValidationError("--contexts needs at least one context name", field="contexts")

        engine = build_engine(state)
        selected = [parse_context_name(n, engine.platform) for n in names]
        comparator = ContextComparator(engine)

        with progress("Simulating contexts...", fmt):
            result = comparator.compare(name, kind, selected)
        output(result, fmt, state, verbose=verbose, home=engine.fs.home())
