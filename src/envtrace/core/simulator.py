"""Startup-chain simulation: replay operations to trace a variable or function."""

from __future__ import annotations

import posixpath
import re
from enum import Enum
from typing import Callable

from envtrace.core.filesystem import FilesystemView
from envtrace.core.resolver import ChainResolver, expand_home
from envtrace.extractors.registry import ExtractorRegistry, get_default_registry
from envtrace.knowledge.catalog import all_known_files, chain_for, context_info
from envtrace.models.operation import Operation, OperationKind, ParsedFile, SourceDirective, TargetKind
from envtrace.models.platform import (
    Context,
    ContextInfo,
    FileKind,
    Platform,
    ResolvedChain,
    SkipNotice,
)
from envtrace.models.trace import Change, FindGroup, FindResult, TraceResult
from envtrace.utils.logging import get_logger_with_context

DEFAULT_MAX_SOURCE_DEPTH = 10

# File kinds whose values may reference the variable's current value
_EXPANDING_KINDS = frozenset({FileKind.SHELL, FileKind.ENVIRONMENT_D})
_HOME_REF_RE = re.compile(r"^(?:\$HOME|\$\{HOME\})(?=/|$)")


class TraceMode(str, Enum):
    """How operations from the chain are combined."""

    TRACE = "trace"
    FIND = "find"


def expand_self_references(value: str, name: str, current: str | None) -> str:
    """Replace ``$NAME`` and ``${NAME}`` in a value with the current value.

    Other references are left as written.
    """
    replacement = current or ""
    pattern = re.compile(rf"\$\{{{re.escape(name)}\}}|\${re.escape(name)}(?![A-Za-z0-9_])")
    return pattern.sub(lambda _: replacement, value)


def apply_variable(op: Operation, before: str | None, expand: bool = True) -> str | None:
    """Value of a variable after applying ``op`` to ``before``."""
    if op.kind is OperationKind.UNSET:
        return None
    if op.kind is OperationKind.APPEND:
        return f"{before}:{op.value}" if before else op.value
    if op.kind is OperationKind.PREPEND:
        return f"{op.value}:{before}" if before else op.value
    if op.value is None:
        # bare `export NAME` only marks it for export
        return before
    if expand:
        return expand_self_references(op.value, op.name, before)
    return op.value


def rebuild_path(entries: list[str], previous: str | None) -> str:
    """PATH as path_helper builds it.

    Its own entries come first, in order and without repeats, followed by
    the entries of the previous value that it did not already list.
    """
    ordered = list(dict.fromkeys(e for e in entries if e))
    listed = set(ordered)
    for entry in (previous or "").split(":"):
        if entry and entry not in listed:
            ordered.append(entry)
            listed.add(entry)
    return ":".join(ordered)


def function_state(op: Operation) -> str | None:
    """Definition state of a function after ``op``."""
    if op.kind is OperationKind.DEFINE:
        return f"defined at {op.file}:{op.line_number}"
    if op.kind is OperationKind.AUTOLOAD:
        return f"autoload at {op.file}:{op.line_number}"
    return None


def _change(op: Operation, before: str | None, after: str | None) -> Change:
    return Change(
        file=op.file,
        line_number=op.line_number,
        line_content=op.line_text,
        operation=op.kind,
        value_before=before,
        value_after=after,
        body_lines=op.body_lines,
        conditional=op.conditional,
    )


class _Run:
    """Mutable state of one simulation; never shared between runs."""

    def __init__(self, name: str, kind: TargetKind):
        self.name = name
        self.kind = kind
        self.value: str | None = None
        self.changes: list[Change] = []
        self.skipped: list[SkipNotice] = []
        self.processed: set[str] = set()
        self.groups: list[FindGroup] = []
        # path_helper entries read so far and the PATH they rebuild from
        self.helper_entries: list[str] | None = None
        self.helper_base: str | None = None


Collector = Callable[[_Run, Operation, FileKind], None]


class TraceEngine:
    """Simulate startup chains on one platform.

    The engine is stateless between calls: every trace or find builds a
    fresh run, so repeated calls on an unchanged filesystem give equal
    results and concurrent calls do not interfere.

    Example:
        engine = TraceEngine(LocalFilesystemView(), Platform.MACOS)
        result = engine.trace("PATH", TargetKind.VARIABLE, Context.LOGIN)
        print(result.final_value)
        for change in result.changes:
            print(change.file, change.line_number, change.operation)
    """

    def __init__(
        self,
        fs: FilesystemView,
        platform: Platform,
        registry: ExtractorRegistry | None = None,
        follow_sources: bool = True,
        max_source_depth: int = DEFAULT_MAX_SOURCE_DEPTH,
    ):
        self.fs = fs
        self.platform = platform
        self.registry = registry or get_default_registry()
        self.follow_sources = follow_sources
        self.max_source_depth = max_source_depth
        self.resolver = ChainResolver(fs)

    def run(
        self,
        name: str,
        kind: TargetKind,
        mode: TraceMode = TraceMode.TRACE,
        context: Context = Context.LOGIN,
    ) -> TraceResult | FindResult:
        """Trace ``name`` in one context, or find it across every known file."""
        if mode is TraceMode.FIND:
            return self.find(name, kind)
        return self.trace(name, kind, context)

    def trace(self, name: str, kind: TargetKind, context: Context) -> TraceResult:
        """Simulate one context's chain and record every change to ``name``.

        Raises:
            InvalidContextError: If the context does not exist on the platform
            HomeDirectoryError: If ``~`` cannot be expanded
        """
        info = context_info(self.platform, context)
        resolved = self.resolver.resolve(chain_for(self.platform, context))
        return self.simulate(name, kind, resolved, info)

    def simulate(
        self,
        name: str,
        kind: TargetKind,
        chain: ResolvedChain,
        info: ContextInfo,
    ) -> TraceResult:
        """Replay an already resolved chain."""
        log = get_logger_with_context(__name__, target=name, context=info.key)
        run = _Run(name, kind)
        run.skipped.extend(chain.skipped)
        manifest: str | None = None

        for resolved in chain.present:
            if manifest is not None and resolved.entry.shell_sourced:
                run.skipped.append(
                    SkipNotice(path=resolved.path, reason=f"not applied: shell propagation ends at {manifest}")
                )
                continue
            if resolved.kind.is_manifest and manifest is None:
                manifest = resolved.path
                log.debug("Reached manifest %s", resolved.path)
            self._process(run, resolved.path, resolved.kind, depth=0, collect=self._apply)

        log.debug("Trace finished with %d changes", len(run.changes))
        return TraceResult(
            name=name,
            kind=kind,
            final_value=run.value,
            context=info,
            changes=run.changes,
            skipped=run.skipped,
        )

    def find(self, name: str, kind: TargetKind) -> FindResult:
        """Every statement touching ``name`` in every known file, without merging.

        Groups are ordered by file rank and matches by line number.
        """
        log = get_logger_with_context(__name__, target=name, mode=TraceMode.FIND.value)
        run = _Run(name, kind)
        resolved = self.resolver.resolve(all_known_files(self.platform), honor_groups=False)
        run.skipped.extend(resolved.skipped)

        for file in resolved.present:
            self._process(
                run,
                file.path,
                file.kind,
                depth=0,
                collect=lambda r, op, _kind, rank=file.rank: self._collect(r, op, rank),
            )

        log.debug("Find matched %d statements in %d files", sum(len(g.changes) for g in run.groups), len(run.groups))
        return FindResult(name=name, kind=kind, groups=run.groups, skipped=run.skipped)

    def _process(self, run: _Run, path: str, kind: FileKind, depth: int, collect: Collector) -> None:
        """Read one file and feed its matching operations to ``collect``, following sources."""
        key = posixpath.normpath(path)
        if key in run.processed:
            run.skipped.append(SkipNotice(path=path, reason="already processed"))
            return
        run.processed.add(key)

        parsed = self._parse(run, path, kind)
        if parsed is None:
            return

        items: list[tuple[int, int, Operation | SourceDirective]] = []
        for op in parsed.operations:
            if op.name == run.name and op.target is run.kind:
                items.append((op.line_number, 0, op))
        if self.follow_sources and kind is FileKind.SHELL:
            for directive in parsed.sources:
                items.append((directive.line_number, 1, directive))
        items.sort(key=lambda item: (item[0], item[1]))

        for _, _, item in items:
            if isinstance(item, SourceDirective):
                self._follow(run, item, depth, collect)
            else:
                collect(run, item, kind)

    def _parse(self, run: _Run, path: str, kind: FileKind) -> ParsedFile | None:
        try:
            data = self.fs.read_bytes(path)
        except OSError as e:
            run.skipped.append(SkipNotice(path=path, reason=f"unreadable: {e.strerror or e}"))
            return None
        parsed = self.registry.parse(path, kind, data)
        for diagnostic in parsed.diagnostics:
            get_logger_with_context(__name__, file=path).debug(diagnostic)
        if parsed.error:
            run.skipped.append(SkipNotice(path=path, reason=parsed.error))
        return parsed

    def _follow(self, run: _Run, directive: SourceDirective, depth: int, collect: Collector) -> None:
        target = self._source_path(directive)
        if target is None:
            run.skipped.append(
                SkipNotice(path=directive.target, reason=f"dynamic source path at {directive.file}:{directive.line_number}")
            )
            return
        if depth + 1 > self.max_source_depth:
            run.skipped.append(SkipNotice(path=target, reason="source depth limit reached"))
            return
        try:
            exists = self.fs.exists(target)
        except OSError as e:
            run.skipped.append(SkipNotice(path=target, reason=f"cannot check: {e}"))
            return
        if not exists:
            run.skipped.append(SkipNotice(path=target, reason=f"sourced from {directive.file} but not found"))
            return
        self._process(run, target, FileKind.SHELL, depth + 1, collect)

    def _source_path(self, directive: SourceDirective) -> str | None:
        """Absolute path of a source target, or None if it depends on runtime state."""
        home = self.fs.home()
        target = _HOME_REF_RE.sub(lambda _: home, directive.target)
        target = expand_home(target, home)
        if any(ch in target for ch in "$`*?["):
            return None
        if not posixpath.isabs(target):
            # login shells start in the home directory
            target = posixpath.join(home, target)
        return posixpath.normpath(target)

    def _apply(self, run: _Run, op: Operation, kind: FileKind) -> None:
        before = run.value
        if run.kind is TargetKind.FUNCTION:
            after = function_state(op)
        elif kind is FileKind.PATH_HELPER and op.value is not None:
            # /etc/paths and /etc/paths.d are one rebuild, not separate appends
            if run.helper_entries is None:
                run.helper_entries, run.helper_base = [], before
            run.helper_entries.append(op.value)
            after = rebuild_path(run.helper_entries, run.helper_base)
        else:
            after = apply_variable(op, before, expand=kind in _EXPANDING_KINDS)
        if kind is not FileKind.PATH_HELPER:
            run.helper_entries = None
        run.value = after
        run.changes.append(_change(op, before, after))

    @staticmethod
    def _collect(run: _Run, op: Operation, rank: int) -> None:
        after = function_state(op) if run.kind is TargetKind.FUNCTION else op.value
        change = _change(op, None, after)
        for index, group in enumerate(run.groups):
            if group.file == op.file:
                # a sourced file can interleave with its parent's matches
                changes = sorted([*group.changes, change], key=lambda c: c.line_number)
                run.groups[index] = group.model_copy(update={"changes": changes})
                return
        run.groups.append(FindGroup(file=op.file, rank=rank, changes=[change]))
