"""Unit tests for the trace engine."""

import pytest

from envtrace.core.filesystem import MemoryFilesystemView
from envtrace.core.simulator import TraceEngine, TraceMode, apply_variable, expand_self_references, rebuild_path
from envtrace.knowledge.catalog import context_info
from envtrace.models.operation import Operation, OperationKind, TargetKind
from envtrace.models.platform import ChainEntry, Context, FileKind, Platform, ResolvedChain, ResolvedFile
from envtrace.models.trace import FindResult, TraceResult
from envtrace.utils.errors import HomeDirectoryError, InvalidContextError

MAC_HOME = "/Users/dev"
LINUX_HOME = "/home/dev"

MAC_LOGIN_PATH = (
    "$HOME/.local/bin:/opt/homebrew/bin:/usr/local/bin:/usr/bin:/bin:/usr/sbin:/sbin:/System/Cryptexes/App/usr/bin"
)
LINUX_LOGIN_PATH = "$HOME/bin:/usr/local/sbin:/usr/local/bin:/usr/sbin:/usr/bin:/sbin:/bin:/snap/bin"


def op(kind, value=None, name="PATH"):
    return Operation(kind=kind, name=name, file="/f", line_number=1, line_text="", value=value)


class TestApplyVariable:
    """Tests for the value transfer rules."""

    @pytest.mark.parametrize(
        "operation,before,expected",
        [
            (op(OperationKind.APPEND, "/b"), "/a", "/a:/b"),
            (op(OperationKind.PREPEND, "/b"), "/a", "/b:/a"),
            (op(OperationKind.APPEND, "/b"), None, "/b"),
            (op(OperationKind.PREPEND, "/b"), "", "/b"),
            (op(OperationKind.UNSET), "/a", None),
            (op(OperationKind.EXPORT), "/a", "/a"),
            (op(OperationKind.EXPORT, "/x:$PATH"), "/a", "/x:/a"),
            (op(OperationKind.EXPORT, "/x"), None, "/x"),
        ],
    )
    def test_apply(self, operation, before, expected):
        assert apply_variable(operation, before) == expected

    def test_literal_export(self):
        """Test values are kept as written when expansion is off."""
        assert apply_variable(op(OperationKind.EXPORT, "$PATH:/x"), "/a", expand=False) == "$PATH:/x"

    def test_expand_self_references(self):
        """Test only references to the traced name are replaced."""
        assert expand_self_references("$PATH:/x:${PATH}:$PATHS", "PATH", "/a") == "/a:/x:/a:$PATHS"
        assert expand_self_references("$PATH:/x", "PATH", None) == ":/x"


class TestTrace:
    """Tests for TraceEngine.trace."""

    def test_macos_login_path(self, mac_engine):
        """Test PATH across the zsh login chain."""
        result = mac_engine.trace("PATH", TargetKind.VARIABLE, Context.LOGIN)
        assert result.final_value == MAC_LOGIN_PATH
        assert result.context.key == "MacInteractiveLogin"
        assert [c.operation for c in result.changes] == [OperationKind.APPEND] * 6 + [OperationKind.PREPEND] * 2
        assert result.changes[0].value_before is None
        assert result.changes[0].value_after == "/usr/local/bin"
        for previous, current in zip(result.changes, result.changes[1:]):
            assert current.value_before == previous.value_after

    def test_linux_login_path(self, linux_engine):
        """Test PATH across the bash login chain with sourcing."""
        result = linux_engine.trace("PATH", TargetKind.VARIABLE, Context.LOGIN)
        assert result.final_value == LINUX_LOGIN_PATH
        assert [c.file for c in result.changes] == [
            "/etc/environment",
            "/etc/profile.d/apps-bin-path.sh",
            f"{LINUX_HOME}/.profile",
        ]
        reasons = {s.path: s.reason for s in result.skipped}
        assert reasons[f"{LINUX_HOME}/.bash_profile"] == "not found"
        assert f"{LINUX_HOME}/.bashrc" not in reasons
        assert reasons["$i"].startswith("dynamic source path at /etc/profile:4")

    def test_sourced_file_applied_inline(self, linux_engine):
        """Test a sourced file's changes appear at the source line."""
        result = linux_engine.trace("EDITOR", TargetKind.VARIABLE, Context.LOGIN)
        assert result.final_value == "vim"
        assert [(c.file, c.line_number) for c in result.changes] == [(f"{LINUX_HOME}/.bashrc", 1)]

    def test_login_bashrc_only_when_sourced(self, make_engine):
        """Test a login shell ignores ~/.bashrc unless a login file sources it."""
        files = {
            f"{LINUX_HOME}/.bash_profile": "export A=profile\n",
            f"{LINUX_HOME}/.bashrc": "export A=bashrc\n",
        }
        result = make_engine(files).trace("A", TargetKind.VARIABLE, Context.LOGIN)
        assert result.final_value == "profile"
        assert [c.file for c in result.changes] == [f"{LINUX_HOME}/.bash_profile"]

        files[f"{LINUX_HOME}/.bash_profile"] = "export A=profile\n. ~/.bashrc\n"
        result = make_engine(files).trace("A", TargetKind.VARIABLE, Context.LOGIN)
        assert result.final_value == "bashrc"

    def test_empty_chain(self, make_engine):
        """Test a chain with no files leaves the variable unset."""
        result = make_engine({}).trace("PATH", TargetKind.VARIABLE, Context.LOGIN)
        assert result.final_value is None
        assert result.changes == []
        assert not result.is_set

    def test_idempotent(self, linux_engine):
        """Test repeated traces give equal results."""
        first = linux_engine.trace("PATH", TargetKind.VARIABLE, Context.LOGIN)
        second = linux_engine.trace("PATH", TargetKind.VARIABLE, Context.LOGIN)
        assert first == second

    def test_prepend_order(self, make_engine):
        """Test a later prepend lands in front of an earlier export."""
        engine = make_engine(
            {
                "/etc/profile": "PATH=/usr/bin\n",
                f"{LINUX_HOME}/.profile": 'export PATH="/opt/bin:$PATH"\n',
            }
        )
        result = engine.trace("PATH", TargetKind.VARIABLE, Context.LOGIN)
        assert result.final_value == "/opt/bin:/usr/bin"
        assert len(result.changes) == 2
        assert result.changes[1].value_before == "/usr/bin"

    def test_export_unset_append(self, make_engine):
        """Test appending after unset starts from an empty value."""
        engine = make_engine({f"{LINUX_HOME}/.bashrc": "export X=a\nunset X\nexport X=$X:/b\n"})
        result = engine.trace("X", TargetKind.VARIABLE, Context.INTERACTIVE)
        assert [(c.operation, c.value_before, c.value_after) for c in result.changes] == [
            (OperationKind.EXPORT, None, "a"),
            (OperationKind.UNSET, "a", None),
            (OperationKind.APPEND, None, "/b"),
        ]
        assert result.final_value == "/b"

    def test_environment_file_not_expanded(self, make_engine):
        """Test /etc/environment values are literal."""
        engine = make_engine({"/etc/environment": "PATH=$PATH:/x\n"})
        result = engine.trace("PATH", TargetKind.VARIABLE, Context.NON_INTERACTIVE)
        assert result.final_value == "$PATH:/x"

    def test_conditional_flag(self, make_engine):
        """Test guarded statements are applied and flagged."""
        engine = make_engine({f"{LINUX_HOME}/.bashrc": "[ -d /opt ] && export OPT=/opt\n"})
        result = engine.trace("OPT", TargetKind.VARIABLE, Context.INTERACTIVE)
        assert result.final_value == "/opt"
        assert result.changes[0].conditional

    def test_unavailable_context(self, linux_engine):
        """Test a context from another platform."""
        with pytest.raises(InvalidContextError):
            linux_engine.trace("PATH", TargetKind.VARIABLE, Context.LAUNCHD_AGENT)

    def test_no_home(self):
        """Test a missing home directory propagates."""
        engine = TraceEngine(MemoryFilesystemView({}, home=None), Platform.LINUX)
        with pytest.raises(HomeDirectoryError):
            engine.trace("PATH", TargetKind.VARIABLE, Context.LOGIN)

    def test_undecodable_file(self, make_engine):
        """Test binary files are skipped with a reason."""
        engine = make_engine({f"{LINUX_HOME}/.bashrc": b"\xff\x00\xfe"})
        result = engine.trace("PATH", TargetKind.VARIABLE, Context.INTERACTIVE)
        assert any(s.reason == "not valid UTF-8 text" for s in result.skipped)

    def test_unreadable_file(self, linux_files):
        """Test read failures become skip notices."""

        class DeniedView(MemoryFilesystemView):
            def read_bytes(self, path):
                if path.endswith(".profile"):
                    raise PermissionError(13, "Permission denied")
                return super().read_bytes(path)

        engine = TraceEngine(DeniedView(linux_files, home=LINUX_HOME), Platform.LINUX)
        result = engine.trace("PATH", TargetKind.VARIABLE, Context.LOGIN)
        reasons = {s.path: s.reason for s in result.skipped}
        assert reasons[f"{LINUX_HOME}/.profile"] == "unreadable: Permission denied"
        assert result.final_value == "/usr/local/sbin:/usr/local/bin:/usr/sbin:/usr/bin:/sbin:/bin:/snap/bin"


class TestSourcing:
    """Tests for following source directives."""

    def test_cycle(self, make_engine):
        """Test files sourcing each other are read once."""
        engine = make_engine(
            {
                f"{LINUX_HOME}/.profile": ". ~/.bashrc\nexport A=profile\n",
                f"{LINUX_HOME}/.bashrc": ". ~/.profile\nexport A=bashrc\n",
            }
        )
        result = engine.trace("A", TargetKind.VARIABLE, Context.LOGIN)
        assert result.final_value == "profile"
        assert [c.value_after for c in result.changes] == ["bashrc", "profile"]
        assert any(s.reason == "already processed" for s in result.skipped)

    def test_depth_limit(self, make_engine):
        """Test nested sources stop at the depth limit."""
        files = {
            f"{LINUX_HOME}/.profile": ". ~/.a\n",
            f"{LINUX_HOME}/.a": ". ~/.b\n",
            f"{LINUX_HOME}/.b": "export X=deep\n",
        }
        shallow = make_engine(files, max_source_depth=1).trace("X", TargetKind.VARIABLE, Context.LOGIN)
        assert shallow.final_value is None
        assert any(s.reason == "source depth limit reached" for s in shallow.skipped)
        deep = make_engine(files).trace("X", TargetKind.VARIABLE, Context.LOGIN)
        assert deep.final_value == "deep"

    def test_missing_source(self, make_engine):
        """Test sourcing a missing file is reported."""
        engine = make_engine({f"{LINUX_HOME}/.bashrc": "source ~/.missing\n"})
        result = engine.trace("X", TargetKind.VARIABLE, Context.INTERACTIVE)
        reasons = {s.path: s.reason for s in result.skipped}
        assert reasons[f"{LINUX_HOME}/.missing"] == f"sourced from {LINUX_HOME}/.bashrc but not found"

    def test_relative_source(self, make_engine):
        """Test relative targets resolve against the home directory."""
        engine = make_engine(
            {
                f"{LINUX_HOME}/.bashrc": ". .bash_env\n",
                f"{LINUX_HOME}/.bash_env": "export X=rel\n",
            }
        )
        assert engine.trace("X", TargetKind.VARIABLE, Context.INTERACTIVE).final_value == "rel"

    def test_follow_disabled(self, make_engine):
        """Test sources are ignored when following is off."""
        engine = make_engine(
            {f"{LINUX_HOME}/.bashrc": ". ~/.x\n", f"{LINUX_HOME}/.x": "export X=1\n"},
            follow_sources=False,
        )
        assert engine.trace("X", TargetKind.VARIABLE, Context.INTERACTIVE).final_value is None


class TestPathHelper:
    """Tests for the macOS path_helper rebuild."""

    @pytest.fixture
    def mac(self, make_engine):
        def _make(files):
            return make_engine(files, platform=Platform.MACOS, home=MAC_HOME)

        return _make

    def test_system_dirs_move_ahead(self, mac):
        """Test a zshenv prepend ends up after the path_helper directories."""
        engine = mac(
            {
                "/etc/paths": "/usr/bin\n/bin\n",
                f"{MAC_HOME}/.zshenv": f'export PATH="{MAC_HOME}/bin:$PATH"\n',
            }
        )
        result = engine.trace("PATH", TargetKind.VARIABLE, Context.LOGIN)
        assert result.final_value == f"/usr/bin:/bin:{MAC_HOME}/bin"
        assert [(c.operation, c.value_after) for c in result.changes] == [
            (OperationKind.PREPEND, f"{MAC_HOME}/bin"),
            (OperationKind.APPEND, f"/usr/bin:{MAC_HOME}/bin"),
            (OperationKind.APPEND, f"/usr/bin:/bin:{MAC_HOME}/bin"),
        ]

    def test_no_duplicates(self, mac):
        """Test directories already in PATH are not listed twice."""
        engine = mac({"/etc/zshenv": "export PATH=/usr/bin\n", "/etc/paths": "/usr/bin\n/bin\n/bin\n"})
        result = engine.trace("PATH", TargetKind.VARIABLE, Context.LOGIN)
        assert result.final_value == "/usr/bin:/bin"

    def test_paths_d_after_paths(self, mac):
        """Test fragments follow /etc/paths and precede inherited entries."""
        engine = mac(
            {
                f"{MAC_HOME}/.zshenv": "export PATH=/x:/usr/bin\n",
                "/etc/paths": "/usr/bin\n",
                "/etc/paths.d/10-a": "/opt/a\n",
                "/etc/paths.d/20-b": "/opt/b\n",
            }
        )
        result = engine.trace("PATH", TargetKind.VARIABLE, Context.LOGIN)
        assert result.final_value == "/usr/bin:/opt/a:/opt/b:/x"

    def test_later_prepend_unaffected(self, mac):
        """Test shell changes after path_helper apply normally."""
        engine = mac(
            {
                "/etc/paths": "/usr/bin\n",
                f"{MAC_HOME}/.zprofile": 'export PATH="/opt/homebrew/bin:$PATH"\n',
            }
        )
        result = engine.trace("PATH", TargetKind.VARIABLE, Context.LOGIN)
        assert result.final_value == "/opt/homebrew/bin:/usr/bin"

    @pytest.mark.parametrize(
        "entries,previous,expected",
        [
            (["/a", "/b"], None, "/a:/b"),
            (["/a", "/a"], "", "/a"),
            (["/a"], "/c:/a:/c", "/a:/c"),
        ],
    )
    def test_rebuild_path(self, entries, previous, expected):
        assert rebuild_path(entries, previous) == expected


class TestManifests:
    """Tests for launch contexts configured by manifests."""

    def test_launchd_agent(self, mac_engine):
        """Test launchd agents see only plist values."""
        login = mac_engine.trace("JAVA_HOME", TargetKind.VARIABLE, Context.LOGIN)
        agent = mac_engine.trace("JAVA_HOME", TargetKind.VARIABLE, Context.LAUNCHD_AGENT)
        assert login.final_value == "/opt/java"
        assert agent.final_value == "/Library/Java/Home"
        assert agent.changes[0].file == f"{MAC_HOME}/Library/LaunchAgents/dev.environment.plist"
        assert mac_engine.trace("PATH", TargetKind.VARIABLE, Context.LAUNCHD_AGENT).final_value is None

    def test_systemd_user(self, linux_engine):
        """Test environment.d expands references to the traced variable."""
        result = linux_engine.trace("PATH", TargetKind.VARIABLE, Context.SYSTEMD_USER)
        assert result.final_value == "/usr/local/sbin:/usr/local/bin:/usr/sbin:/usr/bin:/sbin:/bin:/home/dev/go/bin"
        gopath = linux_engine.trace("GOPATH", TargetKind.VARIABLE, Context.SYSTEMD_USER)
        assert gopath.final_value == "/home/dev/go"

    def test_shell_after_manifest_not_applied(self, make_engine):
        """Test shell files after a manifest do not change the result."""
        engine = make_engine(
            {"/p.plist": "", "/etc/profile": "export X=shell\n"},
            platform=Platform.MACOS,
        )
        plist = ChainEntry(path="/p.plist", kind=FileKind.PLIST, rank=1)
        shell = ChainEntry(path="/etc/profile", kind=FileKind.SHELL, rank=2)
        chain = ResolvedChain(
            present=[ResolvedFile(path="/p.plist", entry=plist), ResolvedFile(path="/etc/profile", entry=shell)]
        )
        result = engine.simulate("X", TargetKind.VARIABLE, chain, context_info(Platform.MACOS, Context.LAUNCHD_AGENT))
        assert result.final_value is None
        assert ("/etc/profile", "not applied: shell propagation ends at /p.plist") in [
            (s.path, s.reason) for s in result.skipped
        ]


class TestFunctions:
    """Tests for tracing shell functions."""

    def test_defined(self, mac_engine):
        """Test a function definition with its body."""
        result = mac_engine.trace("nvm", TargetKind.FUNCTION, Context.LOGIN)
        assert result.final_value == f"defined at {MAC_HOME}/.zshrc:3"
        assert result.changes[0].operation is OperationKind.DEFINE
        assert result.changes[0].body_lines == ['  echo "loading nvm"']

    def test_variable_with_same_name_ignored(self, make_engine):
        """Test variables do not affect a function trace."""
        engine = make_engine(
            {f"{LINUX_HOME}/.bashrc": "nvm=1\nnvm() {\n  :\n}\nautoload -U nvm\nunset -f nvm\n"}
        )
        result = engine.trace("nvm", TargetKind.FUNCTION, Context.INTERACTIVE)
        assert [(c.operation, c.value_after) for c in result.changes] == [
            (OperationKind.DEFINE, f"defined at {LINUX_HOME}/.bashrc:2"),
            (OperationKind.AUTOLOAD, f"autoload at {LINUX_HOME}/.bashrc:5"),
            (OperationKind.UNDEFINE_FUNCTION, None),
        ]
        assert result.final_value is None


class TestFind:
    """Tests for find mode."""

    def test_independent_matches(self, make_engine):
        """Test every occurrence is listed without merging."""
        engine = make_engine(
            {
                "/etc/profile": "export JAVA_HOME=/a\n",
                f"{LINUX_HOME}/.bashrc": "export JAVA_HOME=/b\n",
            }
        )
        result = engine.find("JAVA_HOME", TargetKind.VARIABLE)
        assert result.total == 2
        assert [g.file for g in result.groups] == ["/etc/profile", f"{LINUX_HOME}/.bashrc"]
        assert [(c.value_before, c.value_after) for c in result.changes] == [(None, "/a"), (None, "/b")]

    def test_all_contexts_scanned(self, mac_engine):
        """Test find reaches both shell files and plists."""
        result = mac_engine.run("JAVA_HOME", TargetKind.VARIABLE, mode=TraceMode.FIND)
        assert isinstance(result, FindResult)
        assert [g.file for g in result.groups] == [
            f"{MAC_HOME}/.zshrc",
            f"{MAC_HOME}/Library/LaunchAgents/dev.environment.plist",
        ]
        ranks = [g.rank for g in result.groups]
        assert ranks == sorted(ranks)

    def test_groups_not_honored(self, make_engine):
        """Test every first-found alternative is searched."""
        engine = make_engine(
            {
                f"{LINUX_HOME}/.bash_profile": "export X=1\n",
                f"{LINUX_HOME}/.profile": "export X=2\n",
            }
        )
        assert engine.find("X", TargetKind.VARIABLE).total == 2

    def test_sourced_file_interleaved(self, make_engine):
        """Test matches around a source line stay in one group per file."""
        engine = make_engine(
            {
                f"{LINUX_HOME}/.bashrc": "export X=1\n. ~/.x_extra\nexport X=3\n",
                f"{LINUX_HOME}/.x_extra": "export X=2\n",
            }
        )
        result = engine.find("X", TargetKind.VARIABLE)
        assert [g.file for g in result.groups] == [f"{LINUX_HOME}/.bashrc", f"{LINUX_HOME}/.x_extra"]
        assert [c.line_number for c in result.groups[0].changes] == [1, 3]

    def test_run_dispatch(self, linux_engine):
        """Test run defaults to trace mode."""
        assert isinstance(linux_engine.run("PATH", TargetKind.VARIABLE), TraceResult)

    def test_no_matches(self, linux_engine):
        """Test a name that appears nowhere."""
        result = linux_engine.find("NOPE", TargetKind.VARIABLE)
        assert result.groups == []
        assert result.total == 0
