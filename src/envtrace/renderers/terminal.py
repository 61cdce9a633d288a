"""Terminal renderer for envtrace output."""

from __future__ import annotations

from typing import Any

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from envtrace.models.check import CheckResult, IssueCategory
from envtrace.models.compare import ComparisonResult
from envtrace.models.operation import OperationKind, TargetKind
from envtrace.models.platform import ContextListing, SkipNotice
from envtrace.models.trace import Change, FindResult, TraceResult
from envtrace.renderers.base import BaseRenderer, OutputFormat, RenderContext

_OPERATION_STYLES = {
    OperationKind.EXPORT: "cyan",
    OperationKind.APPEND: "green",
    OperationKind.PREPEND: "green",
    OperationKind.UNSET: "red",
    OperationKind.DEFINE: "cyan",
    OperationKind.AUTOLOAD: "blue",
    OperationKind.UNDEFINE_FUNCTION: "red",
}

_ISSUE_STYLES = {
    IssueCategory.DUPLICATE_ENTRY: "yellow",
    IssueCategory.NONEXISTENT_DIRECTORY: "red",
    IssueCategory.LAUNCHD_SHELL_MISMATCH: "magenta",
    IssueCategory.SYSTEMD_SHELL_MISMATCH: "magenta",
    IssueCategory.EMPTY_ENTRY: "yellow",
    IssueCategory.VARIABLE_UNSET: "red",
}

UNSET = "[dim](unset)[/dim]"


class TerminalRenderer(BaseRenderer):
    """Renderer for rich terminal output.

    Example:
        renderer = TerminalRenderer()
        renderer.render(trace_result, context)
    """

    def __init__(self, console: Console | None = None) -> None:
        self._console = console or Console()

    @property
    def format(self) -> OutputFormat:
        return OutputFormat.TEXT

    def render(self, data: Any, context: RenderContext) -> str:
        """Print data to the console.

        Returns:
            Empty string (output is printed to console)
        """
        if isinstance(data, TraceResult):
            self._render_trace(data, context)
        elif isinstance(data, FindResult):
            self._render_find(data, context)
        elif isinstance(data, ComparisonResult):
            self._render_comparison(data, context)
        elif isinstance(data, CheckResult):
            self._render_check(data, context)
        elif isinstance(data, ContextListing):
            self._render_contexts(data, context)
        else:
            self._console.print(data)
        return ""

    def _value(self, value: str | None) -> str:
        if value is None:
            return UNSET
        if value == "":
            return '[dim]""[/dim]'
        return escape(value)

    def _operation(self, change: Change) -> str:
        style = _OPERATION_STYLES.get(change.operation, "white")
        text = f"[{style}]{change.operation.value}[/{style}]"
        if change.conditional:
            text += " [dim](conditional)[/dim]"
        return text

    def _location(self, change: Change, context: RenderContext) -> str:
        return f"{escape(self.display_path(change.file, context))}:{change.line_number}"

    def _render_trace(self, result: TraceResult, context: RenderContext) -> None:
        noun = "Function" if result.kind is TargetKind.FUNCTION else "Variable"
        self._console.print()
        self._console.print(
            Panel(
                f"[bold]{noun}:[/bold] {escape(result.name)}\n"
                f"[bold]Context:[/bold] {escape(result.context.label)}\n"
                f"[bold]Final:[/bold] {self._value(result.final_value)}",
                title="Trace",
            )
        )

        if not result.changes:
            self._console.print()
            what = "defined" if result.kind is TargetKind.FUNCTION else "set"
            self._console.print(
                f"[yellow]{escape(result.name)} is never {what} by the startup files of this context[/yellow]"
            )
        else:
            self._console.print()
            table = Table(title="Changes")
            table.add_column("#", justify="right", style="dim")
            table.add_column("Location", style="bold")
            table.add_column("Operation")
            table.add_column("Statement")
            table.add_column("Result")
            for i, change in enumerate(result.changes, start=1):
                table.add_row(
                    str(i),
                    self._location(change, context),
                    self._operation(change),
                    escape(change.line_content.strip()),
                    self._value(change.value_after),
                )
            self._console.print(table)
            self._render_bodies(result.changes, context)

        if context.verbose:
            self._render_skipped(result.skipped, context)

    def _render_bodies(self, changes: list[Change], context: RenderContext) -> None:
        for change in changes:
            if change.operation is not OperationKind.DEFINE or not change.body_lines:
                continue
            shown = change.body_lines[: context.body_preview_lines]
            more = len(change.body_lines) - len(shown)
            lines = "\n".join(escape(line) for line in shown)
            if more > 0:
                lines += f"\n[dim]... {more} more line{'s' if more != 1 else ''}[/dim]"
            self._console.print()
            self._console.print(
                Panel(
                    lines,
                    title=f"Body at {self._location(change, context)} ({len(change.body_lines)} lines)",
                    title_align="left",
                )
            )

    def _render_find(self, result: FindResult, context: RenderContext) -> None:
        self._console.print()
        self._console.print(
            Panel(
                f"[bold]Name:[/bold] {escape(result.name)} ({result.kind.value})\n"
                f"[bold]Matches:[/bold] {result.total} in {len(result.groups)} files",
                title="Find",
            )
        )

        if not result.groups:
            self._console.print()
            self._console.print(f"[yellow]No startup file mentions {escape(result.name)}[/yellow]")

        for group in result.groups:
            self._console.print()
            table = Table(title=escape(self.display_path(group.file, context)), title_justify="left")
            table.add_column("Line", justify="right", style="dim")
            table.add_column("Operation")
            table.add_column("Statement")
            table.add_column("Value")
            for change in group.changes:
                table.add_row(
                    str(change.line_number),
                    self._operation(change),
                    escape(change.line_content.strip()),
                    self._value(change.value_after),
                )
            self._console.print(table)
            self._render_bodies(group.changes, context)

        if context.verbose:
            self._render_skipped(result.skipped, context)

    def _render_comparison(self, result: ComparisonResult, context: RenderContext) -> None:
        self._console.print()
        table = Table(title=f"{escape(result.name)} across contexts")
        table.add_column("Context", style="bold")
        table.add_column("Value")
        for key, value in result.results.items():
            table.add_row(escape(result.labels.get(key, key)), self._value(value))
        self._console.print(table)

        self._console.print()
        if len(set(result.results.values())) <= 1:
            self._console.print("[green]Identical in all compared contexts[/green]")
        else:
            self._console.print("[yellow]Values differ between contexts[/yellow]")

        if context.verbose:
            for trace in result.traces:
                self._render_trace(trace, context)

    def _render_check(self, result: CheckResult, context: RenderContext) -> None:
        status = (
            "[bold green]HEALTHY[/bold green]"
            if result.healthy
            else f"[bold yellow]{len(result.issues)} ISSUES[/bold yellow]"
        )
        self._console.print()
        self._console.print(
            Panel(
                f"[bold]Variable:[/bold] {escape(result.variable)}\n"
                f"[bold]Entries:[/bold] {len(result.entries)}\n"
                f"[bold]Status:[/bold] {status}",
                title="Check",
            )
        )

        if result.issues:
            self._console.print()
            table = Table(title="Issues")
            table.add_column("Category")
            table.add_column("Entry", style="bold")
            table.add_column("Description")
            for issue in result.issues:
                style = _ISSUE_STYLES.get(issue.category, "white")
                table.add_row(
                    f"[{style}]{issue.category.value}[/{style}]",
                    escape(self.display_path(issue.path, context)) if issue.path else "",
                    escape(issue.description),
                )
            self._console.print(table)

        if context.verbose and result.entries:
            self._console.print()
            table = Table(title="Entries")
            table.add_column("#", justify="right", style="dim")
            table.add_column("Directory")
            for i, entry in enumerate(result.entries, start=1):
                table.add_row(str(i), escape(self.display_path(entry, context)) if entry else '[dim]""[/dim]')
            self._console.print(table)

    def _render_contexts(self, listing: ContextListing, context: RenderContext) -> None:
        for chain in listing.contexts:
            self._console.print()
            table = Table(
                title=f"{escape(chain.info.label)} [dim]({chain.info.context.value})[/dim]",
                caption=escape(chain.info.description),
                title_justify="left",
            )
            table.add_column("Rank", justify="right", style="dim")
            table.add_column("File", style="bold")
            table.add_column("Kind")
            table.add_column("Note")
            for entry in chain.entries:
                note = f"first found of {entry.group}" if entry.group else ""
                if entry.kind.is_manifest:
                    note = "ends shell propagation" if not note else note
                table.add_row(str(entry.rank), escape(entry.path), entry.kind.value, note)
            self._console.print(table)

    def _render_skipped(self, skipped: list[SkipNotice], context: RenderContext) -> None:
        if not skipped:
            return
        self._console.print()
        table = Table(title="Skipped", title_style="dim")
        table.add_column("File", style="dim")
        table.add_column("Reason", style="dim")
        for notice in skipped:
            table.add_row(escape(self.display_path(notice.path, context)), escape(notice.reason))
        self._console.print(table)
