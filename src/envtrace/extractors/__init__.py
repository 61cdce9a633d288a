"""Extractors turning startup files into operations."""

from envtrace.extractors.base import Extractor, classify_assignment, decode_text
from envtrace.extractors.manifest import (
    EnvironmentDExtractor,
    EnvironmentFileExtractor,
    PathHelperExtractor,
    PlistExtractor,
    SystemdConfExtractor,
)
from envtrace.extractors.registry import ExtractorRegistry, get_default_registry
from envtrace.extractors.shell import ShellExtractor, extract, parse_shell

__all__ = [
    "Extractor",
    "ExtractorRegistry",
    "get_default_registry",
    "classify_assignment",
    "decode_text",
    "extract",
    "parse_shell",
    "ShellExtractor",
    "PathHelperExtractor",
    "EnvironmentFileExtractor",
    "EnvironmentDExtractor",
    "SystemdConfExtractor",
    "PlistExtractor",
]


def register_default_extractors(registry: ExtractorRegistry) -> ExtractorRegistry:
    """Register one extractor per file kind with a registry."""
    extractors = [
        ShellExtractor(),
        PathHelperExtractor(),
        EnvironmentFileExtractor(),
        EnvironmentDExtractor(),
        SystemdConfExtractor(),
        PlistExtractor(),
    ]
    for extractor in extractors:
        if extractor.name not in registry:
            registry.register(extractor)
    return registry
