"""Data models for envtrace.

All models are Pydantic BaseModel with frozen=True for immutability.
"""

from envtrace.models.common import ErrorDetail
from envtrace.models.platform import (
    ChainEntry,
    Context,
    ContextChain,
    ContextInfo,
    ContextListing,
    FileKind,
    Platform,
    ResolvedChain,
    ResolvedFile,
    SkipNotice,
)
from envtrace.models.operation import (
    Operation,
    OperationKind,
    ParsedFile,
    SourceDirective,
    TargetKind,
)
from envtrace.models.trace import Change, FindGroup, FindResult, TraceResult
from envtrace.models.compare import ComparisonResult
from envtrace.models.check import CheckResult, Issue, IssueCategory

__all__ = [
    # Common
    "ErrorDetail",
    # Platform
    "ChainEntry",
    "Context",
    "ContextChain",
    "ContextInfo",
    "ContextListing",
    "FileKind",
    "Platform",
    "ResolvedChain",
    "ResolvedFile",
    "SkipNotice",
    # Operations
    "Operation",
    "OperationKind",
    "ParsedFile",
    "SourceDirective",
    "TargetKind",
    # Trace
    "Change",
    "FindGroup",
    "FindResult",
    "TraceResult",
    # Compare
    "ComparisonResult",
    # Check
    "CheckResult",
    "Issue",
    "IssueCategory",
]
