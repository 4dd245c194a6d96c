"""Tests for the Commandline builder: rendering and environment handling."""

import logging
from pathlib import Path

import pytest  # type: ignore

from cmdline import InvalidCommand, MalformedCommandLine
from command import Arg, Commandline, LaunchSpec
from platforms import ensure_case_sensitivity, get_system_env_vars
from shells import CmdShell, PosixShell, RawShell


class TestCommandlineRender:
    """render() delegates to the shell descriptor."""

    def test_posix_render(self, posix_platform):
        cmd = Commandline(shell=PosixShell(), platform=posix_platform)
        cmd.executable = "chmod"
        cmd.add_argument("--password")
        cmd.add_argument(";password")
        assert cmd.render() == ["/bin/sh", "-c", "'chmod' '--password' ';password'"]

    def test_cmd_render(self, windows_platform):
        cmd = Commandline(shell=CmdShell(), platform=windows_platform)
        cmd.executable = "app.exe"
        cmd.add_arguments(["--password", ";password"])
        assert cmd.render() == ["cmd.exe", "/X", "/C", '"app.exe --password ;password"']

    def test_default_shell_from_platform(self, posix_platform, windows_platform):
        assert isinstance(Commandline(platform=posix_platform).shell, PosixShell)
        assert isinstance(Commandline(platform=windows_platform).shell, CmdShell)

    def test_from_command_line(self, posix_platform):
        cmd = Commandline('echo "let\'s go"', platform=posix_platform)
        assert cmd.executable == "echo"
        assert cmd.arguments == ["let's go"]
        assert cmd.render() == ["/bin/sh", "-c", "'echo' 'let'\"'\"'s go'"]

    def test_from_malformed_command_line(self, posix_platform):
        with pytest.raises(MalformedCommandLine):
            Commandline('echo "let"s go"', platform=posix_platform)

    def test_working_directory(self, posix_platform, tmp_path):
        cmd = Commandline("ls -l", platform=posix_platform)
        cmd.working_directory = tmp_path
        assert cmd.working_directory == str(tmp_path)
        assert cmd.render()[-1] == f"cd '{tmp_path}' && 'ls' '-l'"

    def test_raw_render(self, posix_platform):
        cmd = Commandline("grep 'a b' file.txt", shell=RawShell(), platform=posix_platform)
        assert cmd.render() == ["grep", "a b", "file.txt"]

    def test_literal_argument(self, posix_platform):
        cmd = Commandline("echo hi", platform=posix_platform)
        arg = cmd.create_arg("| wc -c", literal=True)
        assert arg == Arg("| wc -c", True)
        assert cmd.render()[-1] == "'echo' 'hi' | wc -c"

    def test_add_line(self, posix_platform):
        cmd = Commandline(platform=posix_platform)
        cmd.executable = "tar"
        cmd.add_line("-czf 'my archive.tgz' src")
        assert cmd.arguments == ["-czf", "my archive.tgz", "src"]
        cmd.clear_args()
        assert cmd.arguments == []

    def test_empty_string_argument(self, posix_platform):
        cmd = Commandline("test", platform=posix_platform)
        cmd.add_argument("")
        assert cmd.render()[-1] == "'test' ''"

    def test_none_argument_rejected(self, posix_platform):
        cmd = Commandline("echo", platform=posix_platform)
        with pytest.raises(ValueError):
            cmd.add_argument(None)  # type: ignore[arg-type]

    def test_render_is_repeatable(self, posix_platform):
        cmd = Commandline("cp 'a b' c", platform=posix_platform)
        assert cmd.render() == cmd.render()
        assert str(cmd) == "/bin/sh -c 'cp' 'a b' 'c'"

    def test_executable_is_stripped(self, posix_platform):
        cmd = Commandline(platform=posix_platform)
        cmd.executable = "  ls  "
        assert cmd.executable == "ls"


class TestInvalidCommand:
    """Render failures."""

    def test_no_executable(self, posix_platform):
        with pytest.raises(InvalidCommand):
            Commandline(platform=posix_platform).render()

    def test_empty_command_line(self, posix_platform):
        with pytest.raises(InvalidCommand):
            Commandline("   ", platform=posix_platform).render()

    def test_blank_executable(self, posix_platform):
        cmd = Commandline(platform=posix_platform)
        cmd.executable = "   "
        with pytest.raises(InvalidCommand):
            cmd.render()

    def test_no_shell(self, posix_platform):
        cmd = Commandline("ls", platform=posix_platform)
        cmd.shell = None
        with pytest.raises(InvalidCommand):
            cmd.render()


class TestEnvironment:
    """Environment inheritance, overrides and removal."""

    def test_inherited_by_default(self, posix_platform):
        cmd = Commandline("env", platform=posix_platform)
        assert "TEST_SHARED_ENV=TestValue" in cmd.get_environment_variables()

    def test_not_inherited(self, posix_platform):
        cmd = Commandline("env", platform=posix_platform)
        cmd.shell_environment_inherited = False
        assert cmd.get_environment_variables() == []

    def test_null_value_is_not_set(self, posix_platform):
        cmd = Commandline("env", platform=posix_platform)
        cmd.add_environment("TEST_NULL_ENV", None)
        variables = cmd.get_environment_variables()
        assert "TEST_NULL_ENV=null" not in variables
        assert "TEST_NULL_ENV=None" not in variables
        assert not any(v.startswith("TEST_NULL_ENV=") for v in variables)

    def test_null_value_removes_inherited(self, posix_platform):
        cmd = Commandline("env", platform=posix_platform)
        cmd.add_environment("TEST_SHARED_ENV", None)
        assert "TEST_SHARED_ENV" not in cmd.environment()

    def test_override_wins(self, posix_platform):
        cmd = Commandline("env", platform=posix_platform)
        cmd.add_environment("HOME", "/elsewhere")
        cmd.add_environment("NEW_VAR", "1")
        env = cmd.environment()
        assert env["HOME"] == "/elsewhere"
        assert env["NEW_VAR"] == "1"

    def test_case_preserved_on_posix(self, posix_platform):
        cmd = Commandline("env", platform=posix_platform)
        cmd.add_environment("lower", "x")
        env = cmd.environment()
        assert env["lower"] == "x"
        assert env["MixedCase"] == "kept"

    def test_keys_upper_cased_on_windows(self, windows_platform):
        cmd = Commandline("set", platform=windows_platform)
        cmd.add_environment("Path", "C:\\bin")
        cmd.add_environment("mixedcase", None)
        env = cmd.environment()
        assert env["PATH"] == "C:\\bin"
        assert "MIXEDCASE" not in env
        assert all(k == k.upper() for k in env)

    def test_launch_spec(self, posix_platform):
        cmd = Commandline("ls", shell=RawShell(), platform=posix_platform)
        cmd.working_directory = Path("/srv")
        cmd.shell_environment_inherited = False
        cmd.add_environment("A", "1")
        assert cmd.launch_spec() == LaunchSpec(argv=["ls"], cwd=str(Path("/srv")), env={"A": "1"})

    def test_removal_is_logged(self, posix_platform, caplog):
        cmd = Commandline("env", platform=posix_platform)
        cmd.add_environment("HOME", None)
        with caplog.at_level(logging.DEBUG, logger="command"):
            cmd.environment()
        assert "HOME" in caplog.text

    def test_instances_do_not_share_state(self, posix_platform):
        a = Commandline("ls", platform=posix_platform)
        b = Commandline("ls", platform=posix_platform)
        a.add_argument("-l")
        a.add_environment("ONLY_A", "1")
        assert b.arguments == []
        assert "ONLY_A" not in b.environment()


class TestSystemEnvVars:
    """platforms helpers for environment snapshots."""

    def test_ensure_case_sensitivity(self):
        data = {"abz": "cool"}
        assert "ABZ" in ensure_case_sensitivity(data, False)
        assert "abz" in ensure_case_sensitivity(data, True)

    def test_case_insensitive_snapshot(self, posix_platform):
        env = get_system_env_vars(case_sensitive=False, platform=posix_platform)
        assert all(k == k.upper() for k in env)
        assert env["MIXEDCASE"] == "kept"

    def test_windows_snapshot_upper_cased(self, windows_platform):
        env = get_system_env_vars(platform=windows_platform)
        assert all(k == k.upper() for k in env)

    def test_posix_snapshot_case_kept(self, posix_platform):
        assert "MixedCase" in get_system_env_vars(platform=posix_platform)

    def test_snapshot_is_a_copy(self, posix_platform):
        env = get_system_env_vars(platform=posix_platform)
        env["PATH"] = "changed"
        assert get_system_env_vars(platform=posix_platform)["PATH"] == "/usr/bin:/bin"

    def test_current_platform_reads_os_environ(self, monkeypatch):
        monkeypatch.setenv("PYCMDLINE_TEST_VAR", "here")
        assert get_system_env_vars(case_sensitive=True)["PYCMDLINE_TEST_VAR"] == "here"
