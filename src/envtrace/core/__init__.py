"""Core domain logic for envtrace.

This module provides the main library API for simulating startup chains.
"""

from envtrace.core.filesystem import FilesystemView, LocalFilesystemView, MemoryFilesystemView
from envtrace.core.resolver import ChainResolver, expand_home
from envtrace.core.simulator import TraceEngine, TraceMode, apply_variable, function_state, rebuild_path
from envtrace.core.compare import ContextComparator
from envtrace.core.check import SanityChecker

__all__ = [
    "FilesystemView",
    "LocalFilesystemView",
    "MemoryFilesystemView",
    "ChainResolver",
    "expand_home",
    "TraceEngine",
    "TraceMode",
    "apply_variable",
    "function_state",
    "rebuild_path",
    "ContextComparator",
    "SanityChecker",
]
