"""SanityChecker for structural problems in the live PATH."""

from __future__ import annotations

from collections import Counter
from typing import Callable

from envtrace.core.simulator import TraceEngine
from envtrace.models.check import CheckResult, Issue, IssueCategory
from envtrace.models.operation import TargetKind
from envtrace.models.platform import Context, Platform
from envtrace.utils.logging import get_logger

logger = get_logger(__name__)

PATH_SEPARATOR = ":"

# (context whose files the shell reads, context apps are launched in, issue category, remedy)
_MISMATCH_CHECKS: dict[Platform, tuple[Context, Context, IssueCategory, str]] = {
    Platform.MACOS: (
        Context.LOGIN,
        Context.LAUNCHD_AGENT,
        IssueCategory.LAUNCHD_SHELL_MISMATCH,
        "GUI applications launched by launchd will not see it; "
        "set it with `launchctl setenv` or a LaunchAgent's EnvironmentVariables",
    ),
    Platform.LINUX: (
        Context.LOGIN,
        Context.SYSTEMD_USER,
        IssueCategory.SYSTEMD_SHELL_MISMATCH,
        "systemd user services will not see it; "
        "add it to a file in ~/.config/environment.d/",
    ),
}


def _is_opaque(entry: str) -> bool:
    """Entries still holding unexpanded references cannot be compared."""
    return "$" in entry or "`" in entry


class SanityChecker:
    """Inspect the live PATH for duplicates, missing directories and cross-context gaps.

    Example:
        checker = SanityChecker(engine)
        result = checker.check(os.environ.get)
        for issue in result.issues:
            print(issue.category.value, issue.description)
    """

    def __init__(self, engine: TraceEngine, variable: str = "PATH"):
        self.engine = engine
        self.fs = engine.fs
        self.platform = engine.platform
        self.variable = variable

    def check(self, lookup: Callable[[str], str | None]) -> CheckResult:
        """Run all checks.

        Args:
            lookup: Accessor for the live environment (e.g. ``os.environ.get``)

        Returns:
            CheckResult; no issues means healthy
        """
        value = lookup(self.variable)
        if value is None:
            return CheckResult(
                variable=self.variable,
                issues=[
                    Issue(
                        category=IssueCategory.VARIABLE_UNSET,
                        description=f"{self.variable} is not set in the current environment",
                    )
                ],
            )

        entries = value.split(PATH_SEPARATOR)
        issues: list[Issue] = []
        issues.extend(self._check_empty(entries))
        issues.extend(self._check_duplicates(entries))
        issues.extend(self._check_existence(entries))
        issues.extend(self._check_mismatch(entries))

        logger.debug("Sanity check found %d issues in %d entries", len(issues), len(entries))
        return CheckResult(variable=self.variable, entries=entries, issues=issues)

    def _check_empty(self, entries: list[str]) -> list[Issue]:
        count = sum(1 for e in entries if not e)
        if not count:
            return []
        return [
            Issue(
                category=IssueCategory.EMPTY_ENTRY,
                description=(
                    f"{self.variable} contains {count} empty "
                    f"entr{'y' if count == 1 else 'ies'}; an empty entry means the current directory"
                ),
            )
        ]

    def _check_duplicates(self, entries: list[str]) -> list[Issue]:
        counts = Counter(e for e in entries if e)
        issues = []
        for entry, count in counts.items():
            if count < 2:
                continue
            first = entries.index(entry) + 1
            issues.append(
                Issue(
                    category=IssueCategory.DUPLICATE_ENTRY,
                    description=(
                        f"{entry} appears {count} times in {self.variable}; "
                        f"only the first occurrence (position {first}) has any effect"
                    ),
                    path=entry,
                )
            )
        return issues

    def _check_existence(self, entries: list[str]) -> list[Issue]:
        issues = []
        for entry in dict.fromkeys(e for e in entries if e):
            try:
                exists = self.fs.exists(entry)
            except OSError as e:
                logger.debug("Cannot check %s: %s", entry, e)
                continue
            if not exists:
                issues.append(
                    Issue(
                        category=IssueCategory.NONEXISTENT_DIRECTORY,
                        description=f"{entry} does not exist",
                        path=entry,
                    )
                )
        return issues

    def _check_mismatch(self, entries: list[str]) -> list[Issue]:
        """Entries the shell startup files add that the app-launch context never gets."""
        shell_context, launch_context, category, remedy = _MISMATCH_CHECKS[self.platform]
        shell = self.engine.trace(self.variable, TargetKind.VARIABLE, shell_context)
        launch = self.engine.trace(self.variable, TargetKind.VARIABLE, launch_context)
        if not shell.final_value:
            return []

        live = set(entries)
        visible = set((launch.final_value or "").split(PATH_SEPARATOR))
        issues = []
        for entry in dict.fromkeys(shell.final_value.split(PATH_SEPARATOR)):
            if not entry or _is_opaque(entry) or entry not in live or entry in visible:
                continue
            issues.append(
                Issue(
                    category=category,
                    description=(
                        f"{entry} is added by {shell.context.label} startup files "
                        f"but not by {launch.context.label}; {remedy}"
                    ),
                    path=entry,
                )
            )
        return issues
