"""Platform, context and startup-file chain models."""

from __future__ import annotations

import sys
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class Platform(str, Enum):
    """Operating system families with a modeled startup sequence."""

    MACOS = "macos"
    LINUX = "linux"

    @classmethod
    def detect(cls) -> "Platform":
        """Detect the platform of the running interpreter."""
        if sys.platform == "darwin":
            return cls.MACOS
        return cls.LINUX

    @property
    def display_name(self) -> str:
        return "macOS" if self is Platform.MACOS else "Linux"


class Context(str, Enum):
    """Invocation scenario that decides which startup files run."""

    LOGIN = "login"
    INTERACTIVE = "interactive"
    NON_INTERACTIVE = "noninteractive"
    LAUNCHD_AGENT = "launchd-agent"
    LAUNCHD_DAEMON = "launchd-daemon"
    SYSTEMD_SERVICE = "systemd-service"
    SYSTEMD_USER = "systemd-user"


class FileKind(str, Enum):
    """How the contents of a chain entry are interpreted."""

    SHELL = "shell"
    ENVIRONMENT = "environment"
    PATH_HELPER = "path_helper"
    ENVIRONMENT_D = "environment_d"
    SYSTEMD_CONF = "systemd_conf"
    PLIST = "plist"

    @property
    def is_manifest(self) -> bool:
        """Manifests configure a launch environment without running shell files."""
        return self in (FileKind.ENVIRONMENT_D, FileKind.SYSTEMD_CONF, FileKind.PLIST)


class ContextInfo(BaseModel):
    """Identity of a (platform, context) pair as shown in reports."""

    model_config = {"frozen": True}

    platform: Platform = Field(description="Platform the context belongs to")
    context: Context = Field(description="Context enum value")
    key: str = Field(description="Stable identifier used in JSON (e.g. MacInteractiveLogin)")
    label: str = Field(description="Human-readable label (e.g. macOS Interactive Login)")
    description: str = Field(default="", description="What runs in this context")


class ChainEntry(BaseModel):
    """One candidate startup file for a (platform, context) pair.

    ``path`` is a template: it may start with ``~/`` and may contain glob
    characters for fragment directories such as ``/etc/profile.d/*.sh``.
    Entries sharing a ``group`` are alternatives; only the first existing
    one is read.
    """

    model_config = {"frozen": True}

    path: str = Field(description="Absolute path template")
    kind: FileKind = Field(description="How the file is interpreted")
    rank: int = Field(description="Position in the execution order")
    description: str = Field(default="", description="What the file is")
    group: str | None = Field(default=None, description="First-found alternative group")

    @property
    def shell_sourced(self) -> bool:
        """Whether the file takes part in shell variable propagation."""
        return not self.kind.is_manifest

    @property
    def is_pattern(self) -> bool:
        return any(ch in self.path for ch in "*?[")


class ResolvedFile(BaseModel):
    """A concrete file produced by resolving a chain entry."""

    model_config = {"frozen": True}

    path: str = Field(description="Expanded absolute path")
    entry: ChainEntry = Field(description="Chain entry this file came from")

    @property
    def rank(self) -> int:
        return self.entry.rank

    @property
    def kind(self) -> FileKind:
        return self.entry.kind


class SkipNotice(BaseModel):
    """A chain entry or file that was not applied, and why."""

    model_config = {"frozen": True}

    path: str = Field(description="File path (expanded when possible)")
    reason: str = Field(description="Why the file was skipped")


class ResolvedChain(BaseModel):
    """Result of resolving a chain against the filesystem."""

    model_config = {"frozen": True}

    present: list[ResolvedFile] = Field(default_factory=list, description="Existing files in rank order")
    skipped: list[SkipNotice] = Field(default_factory=list, description="Missing or unusable entries in rank order")


class ContextChain(BaseModel):
    """A context together with its candidate startup files."""

    model_config = {"frozen": True}

    info: ContextInfo = Field(description="Context identity")
    entries: list[ChainEntry] = Field(default_factory=list, description="Chain in rank order")

    def to_report(self) -> dict[str, Any]:
        return {
            "context": self.info.key,
            "label": self.info.label,
            "description": self.info.description,
            "files": [
                {"rank": e.rank, "path": e.path, "kind": e.kind.value, "group": e.group}
                for e in self.entries
            ],
        }


class ContextListing(BaseModel):
    """All contexts of a platform."""

    model_config = {"frozen": True}

    platform: Platform = Field(description="Platform listed")
    contexts: list[ContextChain] = Field(default_factory=list, description="Contexts in catalog order")

    def to_report(self) -> dict[str, Any]:
        return {
            "platform": self.platform.value,
            "contexts": [c.to_report() for c in self.contexts],
        }
