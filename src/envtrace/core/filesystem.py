"""Read-only filesystem views used by the resolver, simulator and checker."""

from __future__ import annotations

import fnmatch
import glob
import os
import posixpath
from abc import ABC, abstractmethod
from pathlib import Path

from envtrace.utils.errors import HomeDirectoryError


class FilesystemView(ABC):
    """Abstract read-only view of the files startup chains refer to."""

    @abstractmethod
    def home(self) -> str:
        """Home directory used to expand ``~``.

        Raises:
            HomeDirectoryError: If no home directory can be determined
        """
        ...

    @abstractmethod
    def exists(self, path: str) -> bool:
        """Whether a file or directory exists at ``path``."""
        ...

    @abstractmethod
    def glob(self, pattern: str) -> list[str]:
        """Existing files matching a pattern, sorted lexicographically."""
        ...

    @abstractmethod
    def read_bytes(self, path: str) -> bytes:
        """Raw contents of a file.

        Raises:
            OSError: If the file cannot be read
        """
        ...


class LocalFilesystemView(FilesystemView):
    """View of the real filesystem of the running machine."""

    def __init__(self, home: str | None = None):
        self._home = home

    def home(self) -> str:
        if self._home:
            return self._home
        try:
            return str(Path.home())
        except (RuntimeError, KeyError) as e:
            raise HomeDirectoryError(f"Cannot determine home directory: {e}")

    def exists(self, path: str) -> bool:
        return os.path.exists(path)

    def glob(self, pattern: str) -> list[str]:
        return sorted(p for p in glob.glob(pattern) if os.path.isfile(p))

    def read_bytes(self, path: str) -> bytes:
        return Path(path).read_bytes()


class MemoryFilesystemView(FilesystemView):
    """In-memory filesystem view for testing.

    Directories are implied by file paths; extra empty directories can be
    listed explicitly (useful for PATH existence checks).
    """

    def __init__(
        self,
        files: dict[str, bytes | str] | None = None,
        home: str | None = "/home/user",
        directories: list[str] | None = None,
    ):
        self._files: dict[str, bytes] = {
            posixpath.normpath(path): data.encode("utf-8") if isinstance(data, str) else data
            for path, data in (files or {}).items()
        }
        self._home = home
        self._dirs: set[str] = {posixpath.normpath(d) for d in directories or []}
        for path in self._files:
            parent = posixpath.dirname(path)
            while parent and parent not in self._dirs:
                self._dirs.add(parent)
                if parent == "/":
                    break
                parent = posixpath.dirname(parent)

    def home(self) -> str:
        if not self._home:
            raise HomeDirectoryError("No home directory configured")
        return self._home

    def exists(self, path: str) -> bool:
        path = posixpath.normpath(path)
        return path in self._files or path in self._dirs

    def glob(self, pattern: str) -> list[str]:
        directory, name_pattern = posixpath.split(posixpath.normpath(pattern))
        return sorted(
            path
            for path in self._files
            if posixpath.dirname(path) == directory
            and fnmatch.fnmatchcase(posixpath.basename(path), name_pattern)
        )

    def read_bytes(self, path: str) -> bytes:
        try:
            return self._files[posixpath.normpath(path)]
        except KeyError:
            raise FileNotFoundError(path)
