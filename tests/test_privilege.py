# tests/test_privilege.py
import os
from types import SimpleNamespace

import pytest

from core.exceptions import PrivilegeError
from runtime import privilege
from runtime.privilege import build_relaunch_command, cannot_root, need_root, relaunch_elevated, resolve_user_home


@pytest.fixture
def as_user(monkeypatch):
    monkeypatch.setattr(os, 'geteuid', lambda: 1000)


@pytest.fixture
def as_root(monkeypatch):
    monkeypatch.setattr(os, 'geteuid', lambda: 0)


class RecordingExec:

    def __init__(self, error=None):
        self.calls = []
        self.error = error

    def __call__(self, file, args):
        self.calls.append((file, args))
        if self.error:
            raise self.error


class TestRelaunch:
    """sudo relaunch of the current program."""

    def test_relaunch_command(self):
        command = build_relaunch_command(['--needroot', '--', 'a b'], prefix=['/usr/bin/python3', 'tool.py'])
        assert command == [
            'sudo', '--preserve-env=GW_FRAMEWORK_ROOT,GW_APPLICATION_ROOT,PATH', '--',
            'env', 'GW_ALREADY_ROOT=1',
            '/usr/bin/python3', 'tool.py',
            '--needroot', '--', 'a b',
        ]

    def test_default_prefix_starts_with_the_interpreter(self, monkeypatch):
        monkeypatch.setattr(privilege.sys, 'executable', '/opt/python')
        assert build_relaunch_command([])[5] == '/opt/python'

    def test_need_root_relaunches_with_full_argv(self, as_user, monkeypatch):
        monkeypatch.setattr(privilege, 'interpreter_prefix', lambda: ['python3', 'tool.py'])
        execvp = RecordingExec()
        need_root(['--needroot', 'x'], environ={}, execvp=execvp)
        assert len(execvp.calls) == 1
        file, args = execvp.calls[0]
        assert file == 'sudo'
        assert args[-4:] == ['python3', 'tool.py', '--needroot', 'x']

    def test_need_root_is_a_no_op_for_root(self, as_root):
        execvp = RecordingExec()
        need_root(['--needroot'], environ={}, execvp=execvp)
        assert execvp.calls == []

    def test_no_second_relaunch(self, as_user):
        execvp = RecordingExec()
        with pytest.raises(PrivilegeError):
            need_root(['--needroot'], environ={'GW_ALREADY_ROOT': '1'}, execvp=execvp)
        assert execvp.calls == []

    def test_exec_failure(self, as_user):
        with pytest.raises(PrivilegeError):
            relaunch_elevated(['x'], execvp=RecordingExec(error=FileNotFoundError('sudo')))


class TestCannotRoot:

    def test_refuses_root(self, as_root):
        with pytest.raises(PrivilegeError):
            cannot_root()

    def test_allows_regular_user(self, as_user):
        cannot_root()


class TestUserHome:

    def test_sudo_user_home_when_root(self, as_root, monkeypatch):
        monkeypatch.setattr(privilege.pwd, 'getpwnam', lambda name: SimpleNamespace(pw_dir=f'/home/{name}'))
        assert str(resolve_user_home({'SUDO_USER': 'ada', 'HOME': '/root'})) == '/home/ada'

    def test_home_when_not_root(self, as_user):
        assert str(resolve_user_home({'SUDO_USER': 'ada', 'HOME': '/home/grace'})) == '/home/grace'

    def test_unknown_sudo_user_falls_back_to_home(self, as_root, monkeypatch):
        def missing(name):
            raise KeyError(name)

        monkeypatch.setattr(privilege.pwd, 'getpwnam', missing)
        assert str(resolve_user_home({'SUDO_USER': 'ghost', 'HOME': '/root'})) == '/root'
