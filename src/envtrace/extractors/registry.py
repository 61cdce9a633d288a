"""Extractor registry mapping file kinds to extractors."""

from __future__ import annotations

from typing import Iterator

from envtrace.extractors.base import Extractor
from envtrace.models.operation import ParsedFile
from envtrace.models.platform import FileKind


class ExtractorRegistry:
    """Registry for startup-file extractors.

    Each file kind is handled by exactly one extractor.

    Example:
        registry = ExtractorRegistry()
        registry.register(ShellExtractor())
        parsed = registry.parse("/etc/profile", FileKind.SHELL, data)
    """

    def __init__(self) -> None:
        self._extractors: dict[str, Extractor] = {}
        self._by_kind: dict[FileKind, Extractor] = {}

    def register(self, extractor: Extractor) -> None:
        """Register an extractor for the kinds it declares.

        Raises:
            ValueError: If the name or one of its kinds is already registered
        """
        if extractor.name in self._extractors:
            raise ValueError(f"Extractor '{extractor.name}' is already registered")
        for kind in extractor.kinds:
            if kind in self._by_kind:
                raise ValueError(
                    f"File kind '{kind.value}' is already handled by '{self._by_kind[kind].name}'"
                )
        self._extractors[extractor.name] = extractor
        for kind in extractor.kinds:
            self._by_kind[kind] = extractor

    def get(self, name: str) -> Extractor | None:
        return self._extractors.get(name)

    def for_kind(self, kind: FileKind) -> Extractor:
        """Extractor handling a file kind.

        Raises:
            KeyError: If no extractor handles the kind
        """
        if kind not in self._by_kind:
            raise KeyError(f"No extractor registered for '{kind.value}' files")
        return self._by_kind[kind]

    def parse(self, path: str, kind: FileKind, data: bytes) -> ParsedFile:
        return self.for_kind(kind).parse(path, data)

    def __contains__(self, name: str) -> bool:
        return name in self._extractors

    def __iter__(self) -> Iterator[Extractor]:
        return iter(self._extractors.values())

    def __len__(self) -> int:
        return len(self._extractors)

    @property
    def names(self) -> list[str]:
        return list(self._extractors.keys())


# Global default registry
_default_registry: ExtractorRegistry | None = None


def get_default_registry() -> ExtractorRegistry:
    """Get the default registry with the built-in extractors registered."""
    global _default_registry
    if _default_registry is None:
        from envtrace.extractors import register_default_extractors

        _default_registry = register_default_extractors(ExtractorRegistry())
    return _default_registry
