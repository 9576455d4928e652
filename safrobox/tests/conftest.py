"""Pytest configuration for safrobox tests.

Provides settings rooted in a temporary directory and a runtime whose Docker
collaborators are replaced, so no test talks to a real Docker daemon.
"""

from unittest.mock import MagicMock

import pytest

from safrobox.commands.bridge import CommandResult, NodeBridge
from safrobox.commands.settings import Runtime, Settings


class RecordingBridge(NodeBridge):
    """NodeBridge that records calls and answers through ``responder``."""

    def __init__(self, manager, settings):
        super().__init__(manager, settings)
        self.calls = []
        self.responder = lambda kind, args, stdin: CommandResult(exit_code=0)

    def _answer(self, kind, args, stdin=None, **extra):
        self.calls.append((kind, list(args), stdin, extra))
        return self.responder(kind, list(args), stdin)

    def exec(self, args, stdin=None):
        self.manager.require_running()
        return self._answer("exec", args, stdin)

    def exec_raw(self, command):
        self.manager.require_running()
        return self._answer("exec_raw", command)

    def run(self, args, stdin=None, network_mode=None):
        return self._answer("run", args, stdin, network_mode=network_mode)


@pytest.fixture
def settings(tmp_path):
    return Settings(env_file=tmp_path / ".env", data_dir=tmp_path / "data")


@pytest.fixture
def manager():
    manager = MagicMock()
    manager.wait_until_running.return_value = True
    return manager


@pytest.fixture
def bridge(manager, settings):
    return RecordingBridge(manager, settings)


@pytest.fixture
def runtime(settings, manager, bridge):
    runtime = Runtime(settings=settings)
    runtime.manager = manager
    runtime.bridge = bridge
    return runtime
