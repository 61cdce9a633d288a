"""Main CLI entry point for envtrace."""

from typing import Optional

import typer
from rich.console import Console

from envtrace.cli import check, compare, contexts, trace
from envtrace.cli.utils import CLIState

app = typer.Typer(
    name="envtrace",
    help="Trace where environment variables and shell functions get their values.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

console = Console()

# Register subcommands
app.command(name="trace")(trace.trace_cmd)
app.command(name="find")(trace.find_cmd)
app.command(name="compare")(compare.compare_cmd)
app.command(name="check")(check.check_cmd)
app.command(name="contexts")(contexts.contexts_cmd)


@app.callback()
def main(
    ctx: typer.Context,
    platform: Optional[str] = typer.Option(
        None,
        "--platform",
        help="Simulate this platform's startup files (macos, linux) instead of the host's",
    ),
    home: Optional[str] = typer.Option(None, "--home", help="Home directory used to expand ~"),
    config: Optional[str] = typer.Option(None, "--config", help="Path to an envtrace config file"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose output"),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Suppress non-essential output"),
) -> None:
    """
    envtrace: trace environment variables through shell startup files.

    Simulates the startup files each kind of process reads, without running them:

    - [bold]trace[/bold]: Show every line that changes a variable in one context
    - [bold]find[/bold]: List every occurrence of a variable across all startup files
    - [bold]compare[/bold]: Compare a variable's value across contexts
    - [bold]check[/bold]: Check the current PATH for problems
    - [bold]contexts[/bold]: List contexts and the files they read
    """
    from envtrace.utils.logging import configure_logging

    if verbose:
        configure_logging(level="DEBUG")
    elif quiet:
        configure_logging(level="WARNING")
    else:
        configure_logging(level="INFO")

    ctx.obj = CLIState(platform=platform, home=home, config_path=config, verbose=verbose)


@app.command()
def version() -> None:
    """Show the envtrace version."""
    from envtrace import __version__

    console.print(f"envtrace version {__version__}")


if __name__ == "__main__":
    app()
