"""
Pytest configuration and fixtures for ynh-user-helpers tests.
"""
import subprocess
from typing import Dict, List

import pytest

from ynhusers import utils
from ynhusers.api import AppUser, YunohostClient
from ynhusers.system import InMemoryIdentity


class FakeYunohostClient(YunohostClient):
    """Registry held in memory, in listing order"""

    def __init__(self, profiles: Dict[str, Dict[str, str]]):
        self.profiles = profiles
        self.calls: List[str] = []

    def list_users(self) -> List[AppUser]:
        self.calls.append("list_users")
        return [AppUser.from_record(dict(profile, username=name))
                for name, profile in self.profiles.items()]

    def list_usernames(self) -> List[str]:
        self.calls.append("list_usernames")
        return list(self.profiles)

    def get_user_info(self, username: str) -> Dict[str, str]:
        self.calls.append(f"get_user_info:{username}")
        return dict(self.profiles[username], username=username)


class RecordingRunner:
    """Stands in for subprocess.run in an ExecutionContext"""

    def __init__(self, returncode: int = 0):
        self.returncode = returncode
        self.calls: List[dict] = []

    def __call__(self, args, shell=False, env=None, cwd=None):
        self.calls.append({"args": args, "shell": shell, "env": env, "cwd": cwd})
        return subprocess.CompletedProcess(args, self.returncode)


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """No helper configuration leaks in from the host."""
    for var in ("YNH_CLI", "YNH_NOLOGIN_SHELL", "YNH_SUDO", "YNH_HELPERS_VERBOSE"):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setattr(utils, "_verbose", False)


@pytest.fixture
def registry():
    return FakeYunohostClient({
        "alice": {"fullname": "Alice Liddell", "mail": "alice@example.org"},
        "bob": {"fullname": "Bob Martin", "mail": "bob@example.org", "mail-forward": ""},
        "carol": {"fullname": "Carol Danvers", "mail": "carol@example.org"},
    })


@pytest.fixture
def identity():
    return InMemoryIdentity()


@pytest.fixture
def runner():
    return RecordingRunner()
