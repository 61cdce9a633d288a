"""envtrace: trace environment variables through shell startup files.

Answers "where did this value come from?" by statically replaying the
startup files a given kind of process reads, on macOS and Linux:

- **Trace**: every line that changes a variable or function in one context
- **Find**: every occurrence across all known startup files, unmerged
- **Compare**: final values across several contexts, side by side
- **Check**: structural problems in the live PATH

Usage:
    # Library API
    from envtrace import TraceEngine, LocalFilesystemView, Platform, Context, TargetKind

    engine = TraceEngine(LocalFilesystemView(), Platform.detect())
    result = engine.trace("PATH", TargetKind.VARIABLE, Context.LOGIN)
    print(result.final_value)

    # Compare contexts
    comparator = ContextComparator(engine)
    result = comparator.compare("PATH", TargetKind.VARIABLE, [Context.LOGIN, Context.INTERACTIVE])

CLI:
    envtrace trace PATH
    envtrace trace JAVA_HOME --context launchd
    envtrace find JAVA_HOME
    envtrace compare PATH --contexts login,launchd
    envtrace check
    envtrace contexts
"""

__version__ = "0.1.0"

# Core classes
from envtrace.core.filesystem import FilesystemView, LocalFilesystemView, MemoryFilesystemView
from envtrace.core.simulator import TraceEngine, TraceMode
from envtrace.core.compare import ContextComparator
from envtrace.core.check import SanityChecker

# Models (commonly used)
from envtrace.models.platform import Context, FileKind, Platform
from envtrace.models.operation import Operation, OperationKind, TargetKind
from envtrace.models.trace import Change, FindResult, TraceResult
from envtrace.models.compare import ComparisonResult
from envtrace.models.check import CheckResult, Issue, IssueCategory

# Extractors
from envtrace.extractors.base import Extractor
from envtrace.extractors.registry import ExtractorRegistry, get_default_registry

# Renderers
from envtrace.renderers.base import Renderer, RenderContext, OutputFormat

__all__ = [
    # Version
    "__version__",
    # Core
    "FilesystemView",
    "LocalFilesystemView",
    "MemoryFilesystemView",
    "TraceEngine",
    "TraceMode",
    "ContextComparator",
    "SanityChecker",
    # Models - Platform
    "Context",
    "FileKind",
    "Platform",
    # Models - Operations
    "Operation",
    "OperationKind",
    "TargetKind",
    # Models - Results
    "Change",
    "FindResult",
    "TraceResult",
    "ComparisonResult",
    "CheckResult",
    "Issue",
    "IssueCategory",
    # Extractors
    "Extractor",
    "ExtractorRegistry",
    "get_default_registry",
    # Renderers
    "Renderer",
    "RenderContext",
    "OutputFormat",
]
