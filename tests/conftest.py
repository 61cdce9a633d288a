"""Shared test fixtures for envtrace tests."""

import pytest

from envtrace.core.filesystem import MemoryFilesystemView
from envtrace.core.simulator import TraceEngine
from envtrace.models.platform import Platform
from envtrace.utils.config import set_config

MAC_HOME = "/Users/dev"
LINUX_HOME = "/home/dev"

SAMPLE_PLIST = """<?xml version="1.0" encoding="UTF-8"?>
<!DOCTYPE plist PUBLIC "-//Apple//DTD PLIST 1.0//EN" "http://www.apple.com/DTDs/PropertyList-1.0.dtd">
<plist version="1.0">
<dict>
    <key>Label</key>
    <string>dev.environment</string>
    <key>EnvironmentVariables</key>
    <dict>
        <key>JAVA_HOME</key>
        <string>/Library/Java/Home</string>
    </dict>
</dict>
</plist>
"""


@pytest.fixture(autouse=True)
def default_config():
    """Keep tests independent of any config file on the machine."""
    from envtrace.utils.config import get_default_config

    set_config(get_default_config())
    yield
    set_config(None)


@pytest.fixture
def sample_plist() -> str:
    return SAMPLE_PLIST


@pytest.fixture
def mac_files() -> dict[str, str]:
    """A small but realistic macOS startup chain."""
    return {
        "/etc/zshenv": "",
        "/etc/paths": "/usr/local/bin\n/usr/bin\n/bin\n/usr/sbin\n/sbin\n",
        "/etc/paths.d/10-cryptex": "/System/Cryptexes/App/usr/bin\n",
        "/etc/zprofile": (
            "# System-wide profile for interactive zsh(1) login shells.\n"
            "if [ -x /usr/libexec/path_helper ]; then\n"
            "\teval `/usr/libexec/path_helper -s`\n"
            "fi\n"
        ),
        f"{MAC_HOME}/.zprofile": 'eval "$(/opt/homebrew/bin/brew shellenv)"\nexport PATH="/opt/homebrew/bin:$PATH"\n',
        f"{MAC_HOME}/.zshrc": (
            'export PATH="$HOME/.local/bin:$PATH"\n'
            "export JAVA_HOME=/opt/java\n"
            "nvm() {\n"
            '  echo "loading nvm"\n'
            "}\n"
        ),
        f"{MAC_HOME}/Library/LaunchAgents/dev.environment.plist": SAMPLE_PLIST,
    }


@pytest.fixture
def mac_fs(mac_files) -> MemoryFilesystemView:
    return MemoryFilesystemView(mac_files, home=MAC_HOME)


@pytest.fixture
def mac_engine(mac_fs) -> TraceEngine:
    return TraceEngine(mac_fs, Platform.MACOS)


@pytest.fixture
def linux_files() -> dict[str, str]:
    """A small but realistic Linux startup chain."""
    return {
        "/etc/environment": 'PATH="/usr/local/sbin:/usr/local/bin:/usr/sbin:/usr/bin:/sbin:/bin"\n',
        "/etc/profile": (
            'if [ -d /etc/profile.d ]; then\n'
            "  for i in /etc/profile.d/*.sh; do\n"
            '    if [ -r $i ]; then\n'
            "      . $i\n"
            "    fi\n"
            "  done\n"
            "fi\n"
        ),
        "/etc/profile.d/apps-bin-path.sh": 'export PATH="$PATH:/snap/bin"\n',
        f"{LINUX_HOME}/.profile": (
            'if [ -n "$BASH_VERSION" ]; then\n'
            '    if [ -f "$HOME/.bashrc" ]; then\n'
            '\t. "$HOME/.bashrc"\n'
            "    fi\n"
            "fi\n"
            'export PATH="$HOME/bin:$PATH"\n'
        ),
        f"{LINUX_HOME}/.bashrc": "export EDITOR=vim\nexport GOPATH=$HOME/go\n",
        f"{LINUX_HOME}/.config/environment.d/10-go.conf": "GOPATH=/home/dev/go\nPATH=$PATH:/home/dev/go/bin\n",
    }


@pytest.fixture
def linux_fs(linux_files) -> MemoryFilesystemView:
    return MemoryFilesystemView(linux_files, home=LINUX_HOME)


@pytest.fixture
def linux_engine(linux_fs) -> TraceEngine:
    return TraceEngine(linux_fs, Platform.LINUX)


@pytest.fixture
def make_engine():
    """Build an engine over an ad-hoc set of files."""

    def _make(files: dict[str, str | bytes], platform: Platform = Platform.LINUX, home: str = LINUX_HOME, **kwargs):
        return TraceEngine(MemoryFilesystemView(files, home=home), platform, **kwargs)

    return _make
