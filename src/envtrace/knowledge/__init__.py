"""Startup-file knowledge base.

Contains the declarative file chains for each supported platform and
invocation context.
"""

from envtrace.knowledge.catalog import (
    all_known_files,
    chain_for,
    context_info,
    contexts_for,
    is_available,
    list_contexts,
    parse_context_name,
)

__all__ = [
    "all_known_files",
    "chain_for",
    "context_info",
    "contexts_for",
    "is_available",
    "list_contexts",
    "parse_context_name",
]
