"""Tests for exec_as."""
import os
import pwd
from unittest.mock import patch

import pytest

from ynhusers.execas import ExecutionContext, exec_as
from ynhusers.utils import current_username


class TestExecAs:

    def test_current_user_runs_directly(self, runner):
        context = ExecutionContext(current_user="admin", env={"FOO": "bar"}, runner=runner)
        exec_as("admin", "echo", "$FOO", "|", "wc", "-c", context=context)
        assert runner.calls == [{
            "args": "echo $FOO | wc -c",
            "shell": True,
            "env": {"FOO": "bar"},
            "cwd": None,
        }]

    def test_other_user_goes_through_sudo(self, runner):
        context = ExecutionContext(current_user="admin", runner=runner)
        exec_as("myapp", "php", "artisan", "migrate", context=context)
        call = runner.calls[0]
        assert call["args"] == ["sudo", "-u", "myapp", "php", "artisan", "migrate"]
        assert call["shell"] is False

    def test_tokens_are_preserved(self, runner):
        context = ExecutionContext(current_user="admin", runner=runner)
        exec_as("myapp", "touch", "a file with spaces", "$HOME", context=context)
        assert runner.calls[0]["args"][3:] == ["touch", "a file with spaces", "$HOME"]

    def test_custom_sudo_and_cwd(self, runner):
        context = ExecutionContext(current_user="admin", sudo="/usr/bin/sudo",
                                   cwd="/var/www/myapp", runner=runner)
        exec_as("myapp", "ls", context=context)
        assert runner.calls[0]["args"][0] == "/usr/bin/sudo"
        assert runner.calls[0]["cwd"] == "/var/www/myapp"

    def test_exit_status_passes_through(self):
        from conftest import RecordingRunner

        failing = RecordingRunner(returncode=3)
        context = ExecutionContext(current_user="admin", runner=failing)
        assert exec_as("admin", "false", context=context).returncode == 3
        assert exec_as("myapp", "false", context=context).returncode == 3

    def test_arguments_required(self, runner):
        context = ExecutionContext(current_user="admin", runner=runner)
        with pytest.raises(ValueError):
            exec_as("", "ls", context=context)
        with pytest.raises(ValueError):
            exec_as("admin", context=context)
        assert runner.calls == []


class TestExecutionContext:

    def test_from_process(self, monkeypatch):
        monkeypatch.setenv("YNH_SUDO", "doas")
        with patch("ynhusers.execas.current_username", return_value="someone"):
            context = ExecutionContext.from_process()
        assert context.current_user == "someone"
        assert context.sudo == "doas"
        assert context.env is None

    def test_default_context_has_no_environment_override(self):
        context = ExecutionContext(current_user="admin", cwd="/tmp")
        assert context.env is None


class TestCurrentUser:
    """exec_as for the running user, with the real subprocess runner."""

    def test_current_username_is_effective_uid(self):
        assert current_username() == pwd.getpwuid(os.geteuid()).pw_name

    def test_caller_environment_reaches_command(self, monkeypatch, tmp_path):
        monkeypatch.setenv("YNH_EXEC_AS_VAR", "present")
        context = ExecutionContext(current_user=current_username(), cwd=str(tmp_path))
        result = exec_as(current_username(), 'test -n "$YNH_EXEC_AS_VAR"', context=context)
        assert result.returncode == 0

    def test_arguments_are_evaluated_by_the_shell(self, monkeypatch, capfd):
        monkeypatch.setenv("X", "from-caller")
        result = exec_as(current_username(), "echo", "$X")
        assert result.returncode == 0
        assert capfd.readouterr().out == "from-caller\n"

    def test_cwd_is_used(self, tmp_path, capfd):
        context = ExecutionContext(current_user=current_username(), cwd=str(tmp_path))
        exec_as(current_username(), "pwd", context=context)
        assert capfd.readouterr().out.strip() == os.path.realpath(str(tmp_path))
