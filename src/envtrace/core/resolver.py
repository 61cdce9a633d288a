"""Resolve catalog chains against a filesystem view."""

from __future__ import annotations

import posixpath

from envtrace.core.filesystem import FilesystemView
from envtrace.models.platform import ChainEntry, ResolvedChain, ResolvedFile, SkipNotice
from envtrace.utils.logging import get_logger

logger = get_logger(__name__)


def expand_home(path: str, home: str) -> str:
    """Expand a leading ``~`` in a path template."""
    if path == "~":
        return home
    if path.startswith("~/"):
        return posixpath.join(home, path[2:])
    return path


class ChainResolver:
    """Turn ordered chain entries into the concrete files that exist.

    Fragment directories expand to their matches in lexicographic order,
    all sharing the entry's rank. Within a first-found group only the
    first existing entry is kept.
    """

    def __init__(self, fs: FilesystemView):
        self.fs = fs

    def resolve(self, entries: list[ChainEntry], honor_groups: bool = True) -> ResolvedChain:
        home = self.fs.home()
        present: list[ResolvedFile] = []
        skipped: list[SkipNotice] = []
        found_groups: dict[str, str] = {}
        seen: set[str] = set()

        for entry in sorted(entries, key=lambda e: e.rank):
            path = expand_home(entry.path, home)

            if honor_groups and entry.group and entry.group in found_groups:
                skipped.append(
                    SkipNotice(path=path, reason=f"not read: {found_groups[entry.group]} was found first")
                )
                continue

            try:
                if entry.is_pattern:
                    matches = self.fs.glob(path)
                else:
                    matches = [path] if self.fs.exists(path) else []
            except OSError as e:
                logger.debug("Existence check failed for %s: %s", path, e)
                skipped.append(SkipNotice(path=path, reason=f"cannot check: {e}"))
                continue

            if not matches:
                reason = "no matching files" if entry.is_pattern else "not found"
                skipped.append(SkipNotice(path=path, reason=reason))
                continue

            for match in matches:
                if match in seen:
                    continue
                seen.add(match)
                present.append(ResolvedFile(path=match, entry=entry))

            if entry.group:
                found_groups.setdefault(entry.group, path)

        logger.debug("Resolved %d files, skipped %d", len(present), len(skipped))
        return ResolvedChain(present=present, skipped=skipped)
