"""Startup-file catalog for each platform and context.

The chains are declarative tables: a per-platform list of known files in
global execution order, and per-context selections of those files. Nothing
here touches the filesystem; paths are templates that the resolver expands.
"""

from __future__ import annotations

from envtrace.models.platform import (
    ChainEntry,
    Context,
    ContextChain,
    ContextInfo,
    ContextListing,
    FileKind,
    Platform,
)
from envtrace.utils.errors import InvalidContextError

# key -> (path template, kind, description, first-found group)
_FileSpec = tuple[str, FileKind, str, str | None]

_MACOS_FILES: dict[str, _FileSpec] = {
    "etc_zshenv": ("/etc/zshenv", FileKind.SHELL, "system zshenv (all zsh)", None),
    "user_zshenv": ("~/.zshenv", FileKind.SHELL, "user zshenv (all zsh)", None),
    "etc_paths": ("/etc/paths", FileKind.PATH_HELPER, "path_helper base PATH", None),
    "etc_paths_d": ("/etc/paths.d/*", FileKind.PATH_HELPER, "path_helper PATH fragments", None),
    "etc_zprofile": ("/etc/zprofile", FileKind.SHELL, "system zprofile (login)", None),
    "user_zprofile": ("~/.zprofile", FileKind.SHELL, "user zprofile (login)", None),
    "etc_zshrc": ("/etc/zshrc", FileKind.SHELL, "system zshrc (interactive)", None),
    "user_zshrc": ("~/.zshrc", FileKind.SHELL, "user zshrc (interactive)", None),
    "etc_zlogin": ("/etc/zlogin", FileKind.SHELL, "system zlogin (login)", None),
    "user_zlogin": ("~/.zlogin", FileKind.SHELL, "user zlogin (login)", None),
    "etc_profile": ("/etc/profile", FileKind.SHELL, "system profile (bash)", None),
    "etc_bashrc": ("/etc/bashrc", FileKind.SHELL, "system bashrc (bash)", None),
    "user_bash_profile": ("~/.bash_profile", FileKind.SHELL, "user bash_profile", None),
    "user_bashrc": ("~/.bashrc", FileKind.SHELL, "user bashrc", None),
    "user_profile": ("~/.profile", FileKind.SHELL, "user profile", None),
    "system_agents": ("/Library/LaunchAgents/*.plist", FileKind.PLIST, "system LaunchAgent", None),
    "user_agents": ("~/Library/LaunchAgents/*.plist", FileKind.PLIST, "user LaunchAgent", None),
    "system_daemons": ("/Library/LaunchDaemons/*.plist", FileKind.PLIST, "system LaunchDaemon", None),
}

_LINUX_FILES: dict[str, _FileSpec] = {
    "etc_environment": ("/etc/environment", FileKind.ENVIRONMENT, "PAM environment", None),
    "etc_profile": ("/etc/profile", FileKind.SHELL, "system profile", None),
    "profile_d": ("/etc/profile.d/*.sh", FileKind.SHELL, "profile.d script", None),
    "etc_bash_bashrc": ("/etc/bash.bashrc", FileKind.SHELL, "system bashrc", "system_bashrc"),
    "etc_bashrc": ("/etc/bashrc", FileKind.SHELL, "system bashrc", "system_bashrc"),
    "user_bash_profile": ("~/.bash_profile", FileKind.SHELL, "user bash_profile", "bash_login"),
    "user_bash_login": ("~/.bash_login", FileKind.SHELL, "user bash_login", "bash_login"),
    "user_profile": ("~/.profile", FileKind.SHELL, "user profile", "bash_login"),
    "user_bashrc": ("~/.bashrc", FileKind.SHELL, "user bashrc", None),
    "user_bash_aliases": ("~/.bash_aliases", FileKind.SHELL, "user bash_aliases", None),
    "system_conf": ("/etc/systemd/system.conf", FileKind.SYSTEMD_CONF, "systemd manager (system)", None),
    "system_conf_d": ("/etc/systemd/system.conf.d/*.conf", FileKind.SYSTEMD_CONF, "systemd manager drop-in (system)", None),
    "user_conf": ("/etc/systemd/user.conf", FileKind.SYSTEMD_CONF, "systemd manager (user)", None),
    "user_conf_d": ("/etc/systemd/user.conf.d/*.conf", FileKind.SYSTEMD_CONF, "systemd manager drop-in (user)", None),
    "env_d_vendor": ("/usr/lib/environment.d/*.conf", FileKind.ENVIRONMENT_D, "systemd environment.d (vendor)", None),
    "env_d_runtime": ("/run/environment.d/*.conf", FileKind.ENVIRONMENT_D, "systemd environment.d (runtime)", None),
    "env_d_system": ("/etc/environment.d/*.conf", FileKind.ENVIRONMENT_D, "systemd environment.d (system)", None),
    "env_d_user": ("~/.config/environment.d/*.conf", FileKind.ENVIRONMENT_D, "systemd environment.d (user)", None),
}

_FILES: dict[Platform, dict[str, _FileSpec]] = {
    Platform.MACOS: _MACOS_FILES,
    Platform.LINUX: _LINUX_FILES,
}

_CHAINS: dict[tuple[Platform, Context], list[str]] = {
    # zsh: zshenv always; zprofile/zlogin for login; zshrc for interactive.
    # /etc/zprofile runs path_helper, modeled by /etc/paths just before it.
    (Platform.MACOS, Context.LOGIN): [
        "etc_zshenv", "user_zshenv",
        "etc_paths", "etc_paths_d",
        "etc_zprofile", "user_zprofile",
        "etc_zshrc", "user_zshrc",
        "etc_zlogin", "user_zlogin",
    ],
    (Platform.MACOS, Context.INTERACTIVE): [
        "etc_zshenv", "user_zshenv", "etc_zshrc", "user_zshrc",
    ],
    (Platform.MACOS, Context.NON_INTERACTIVE): ["etc_zshenv", "user_zshenv"],
    (Platform.MACOS, Context.LAUNCHD_AGENT): ["system_agents", "user_agents"],
    (Platform.MACOS, Context.LAUNCHD_DAEMON): ["system_daemons"],
    # bash: login reads /etc/profile then the first of the user login files;
    # ~/.bashrc is only read when one of them sources it.
    (Platform.LINUX, Context.LOGIN): [
        "etc_environment", "etc_profile", "profile_d",
        "user_bash_profile", "user_bash_login", "user_profile",
    ],
    (Platform.LINUX, Context.INTERACTIVE): [
        "etc_environment", "etc_bash_bashrc", "etc_bashrc", "user_bashrc",
    ],
    (Platform.LINUX, Context.NON_INTERACTIVE): ["etc_environment"],
    (Platform.LINUX, Context.SYSTEMD_SERVICE): [
        "etc_environment", "system_conf", "system_conf_d",
    ],
    (Platform.LINUX, Context.SYSTEMD_USER): [
        "etc_environment", "user_conf", "user_conf_d",
        "env_d_vendor", "env_d_runtime", "env_d_system", "env_d_user",
    ],
}

_CONTEXTS: dict[tuple[Platform, Context], tuple[str, str, str]] = {
    (Platform.MACOS, Context.LOGIN): (
        "MacInteractiveLogin", "macOS Interactive Login", "zsh interactive login shell (Terminal.app, ssh)",
    ),
    (Platform.MACOS, Context.INTERACTIVE): (
        "MacInteractiveNonLogin", "macOS Interactive Non-Login", "zsh interactive non-login shell",
    ),
    (Platform.MACOS, Context.NON_INTERACTIVE): (
        "MacNonInteractive", "macOS Non-Interactive", "zsh scripts and cron jobs",
    ),
    (Platform.MACOS, Context.LAUNCHD_AGENT): (
        "LaunchdAgent", "macOS launchd Agent", "GUI apps and per-user launchd agents",
    ),
    (Platform.MACOS, Context.LAUNCHD_DAEMON): (
        "LaunchdDaemon", "macOS launchd Daemon", "system launchd daemons",
    ),
    (Platform.LINUX, Context.LOGIN): (
        "InteractiveLogin", "Linux Interactive Login", "bash login shell (console, ssh)",
    ),
    (Platform.LINUX, Context.INTERACTIVE): (
        "InteractiveNonLogin", "Linux Interactive Non-Login", "bash in a new terminal window",
    ),
    (Platform.LINUX, Context.NON_INTERACTIVE): (
        "NonInteractiveNonLogin", "Linux Non-Interactive", "cron jobs and scripts",
    ),
    (Platform.LINUX, Context.SYSTEMD_SERVICE): (
        "SystemdService", "Linux systemd Service", "systemd system service",
    ),
    (Platform.LINUX, Context.SYSTEMD_USER): (
        "SystemdUser", "Linux systemd User Service", "systemd user service and session",
    ),
}

_CONTEXT_ALIASES: dict[str, Context] = {
    "login": Context.LOGIN,
    "interactive": Context.INTERACTIVE,
    "noninteractive": Context.NON_INTERACTIVE,
    "non-interactive": Context.NON_INTERACTIVE,
    "cron": Context.NON_INTERACTIVE,
    "launchd": Context.LAUNCHD_AGENT,
    "launchd-agent": Context.LAUNCHD_AGENT,
    "launchd-daemon": Context.LAUNCHD_DAEMON,
    "systemd": Context.SYSTEMD_SERVICE,
    "systemd-service": Context.SYSTEMD_SERVICE,
    "systemd-user": Context.SYSTEMD_USER,
}


def contexts_for(platform: Platform) -> list[Context]:
    """Contexts available on a platform, in declaration order."""
    return [ctx for (plat, ctx) in _CHAINS if plat == platform]


def is_available(platform: Platform, context: Context) -> bool:
    return (platform, context) in _CHAINS


def context_info(platform: Platform, context: Context) -> ContextInfo:
    """Key, label and description for a (platform, context) pair.

    Raises:
        InvalidContextError: If the context does not exist on the platform
    """
    try:
        key, label, description = _CONTEXTS[(platform, context)]
    except KeyError:
        raise InvalidContextError(context.value, platform=platform.display_name)
    return ContextInfo(
        platform=platform,
        context=context,
        key=key,
        label=label,
        description=description,
    )


def parse_context_name(name: str, platform: Platform) -> Context:
    """Map a user-supplied context name or key to a Context.

    Accepts the CLI aliases (``login``, ``cron``, ``systemd``...) and the
    report keys (``MacInteractiveLogin``...), case-insensitively.

    Raises:
        InvalidContextError: If the name is unknown or unavailable on the platform
    """
    normalized = name.strip().lower().replace("_", "-")
    context = _CONTEXT_ALIASES.get(normalized)
    if context is None:
        for (plat, ctx), (key, _, _) in _CONTEXTS.items():
            if plat == platform and key.lower() == name.strip().lower():
                context = ctx
                break
    if context is None:
        raise InvalidContextError(name, valid=sorted(_CONTEXT_ALIASES))
    if not is_available(platform, context):
        raise InvalidContextError(name, platform=platform.display_name)
    return context


def _entry(platform: Platform, key: str, rank: int) -> ChainEntry:
    path, kind, description, group = _FILES[platform][key]
    return ChainEntry(path=path, kind=kind, rank=rank, description=description, group=group)


def chain_for(platform: Platform, context: Context) -> list[ChainEntry]:
    """Ordered candidate startup files for one context.

    Raises:
        InvalidContextError: If the context does not exist on the platform
    """
    try:
        keys = _CHAINS[(platform, context)]
    except KeyError:
        raise InvalidContextError(context.value, platform=platform.display_name)
    return [_entry(platform, key, rank) for rank, key in enumerate(keys, start=1)]


def all_known_files(platform: Platform) -> list[ChainEntry]:
    """Every file the catalog knows for a platform, de-duplicated by path.

    Ranks follow the platform's global execution order.
    """
    entries: list[ChainEntry] = []
    seen: set[str] = set()
    for rank, key in enumerate(_FILES[platform], start=1):
        entry = _entry(platform, key, rank)
        if entry.path in seen:
            continue
        seen.add(entry.path)
        entries.append(entry)
    return entries


def list_contexts(platform: Platform) -> ContextListing:
    """Every context of a platform with its chain."""
    return ContextListing(
        platform=platform,
        contexts=[
            ContextChain(info=context_info(platform, ctx), entries=chain_for(platform, ctx))
            for ctx in contexts_for(platform)
        ],
    )
