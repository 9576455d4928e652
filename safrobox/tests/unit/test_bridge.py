"""
Unit tests for NodeBridge command execution.
"""

from unittest.mock import MagicMock

import docker
import pytest
import requests

from safrobox.commands.bridge import (
    STDIN_ENV,
    STDIN_SCRIPT,
    CommandResult,
    NodeBridge,
    decode_output,
    with_stdin,
)
from safrobox.commands.errors import (
    CommandError,
    NodeNotRunningError,
    RetrievalError,
)


@pytest.fixture
def container():
    container = MagicMock()
    container.name = "safrochain-validator"
    container.exec_run.return_value = (0, (b'{"ok": true}\n', None))
    return container


@pytest.fixture
def node_bridge(container, settings):
    manager = MagicMock()
    manager.require_running.return_value = container
    return NodeBridge(manager, settings)


class TestCommandResult:
    def test_output_prefers_stdout(self):
        result = CommandResult(exit_code=0, stdout=" out \n", stderr="err")
        assert result.output == "out"
        assert result.ok

    def test_output_falls_back_to_stderr(self):
        result = CommandResult(exit_code=1, stdout="", stderr="failure\n")
        assert result.output == "failure"
        assert not result.ok

    def test_decode_output(self):
        assert decode_output(None) == ""
        assert decode_output(b"abc") == "abc"
        assert decode_output(b"\xff") == "\ufffd"


class TestExec:
    def test_exec_runs_binary_in_container(self, node_bridge, container):
        result = node_bridge.exec(["status"])
        container.exec_run.assert_called_once_with(
            ["safrochaind", "status"], demux=True, environment=None
        )
        assert result.exit_code == 0
        assert result.stdout == '{"ok": true}\n'
        assert result.stderr == ""

    def test_exec_with_stdin_uses_environment(self, node_bridge, container):
        node_bridge.exec(["keys", "add", "w", "--recover"], stdin="word " * 24)
        command = container.exec_run.call_args[0][0]
        environment = container.exec_run.call_args[1]["environment"]
        assert command[:4] == ["sh", "-c", STDIN_SCRIPT, "safrochaind"]
        assert command[4:] == ["keys", "add", "w", "--recover"]
        assert environment == {STDIN_ENV: "word " * 24}
        # the secret never becomes part of the command line
        assert all("word" not in part for part in command)

    def test_exec_requires_running_node(self, node_bridge, container):
        node_bridge.manager.require_running.side_effect = NodeNotRunningError(
            "not running"
        )
        with pytest.raises(NodeNotRunningError):
            node_bridge.exec(["status"])
        container.exec_run.assert_not_called()

    def test_exec_raw_runs_command_verbatim(self, node_bridge, container):
        container.exec_run.return_value = (0, (None, b"boom"))
        result = node_bridge.exec_raw(["curl", "-s", "http://x"])
        container.exec_run.assert_called_once_with(
            ["curl", "-s", "http://x"], demux=True
        )
        assert result.stderr == "boom"

    def test_daemon_error_becomes_retrieval_error(self, node_bridge, container):
        container.exec_run.side_effect = docker.errors.APIError(
            "409 Conflict: container is restarting"
        )
        with pytest.raises(RetrievalError, match="restarting"):
            node_bridge.exec(["status"])

    def test_daemon_connection_error_on_exec_raw(self, node_bridge, container):
        container.exec_run.side_effect = requests.ConnectionError("socket closed")
        with pytest.raises(RetrievalError):
            node_bridge.exec_raw(["curl", "-s", "http://x"])


class TestRun:
    def test_run_uses_binary_entrypoint(self, node_bridge):
        node_bridge.run(["init", "node", "--home", "/data"])
        node_bridge.manager.run_once.assert_called_once_with(
            ["init", "node", "--home", "/data"],
            entrypoint=["safrochaind"],
            network_mode=None,
        )

    def test_run_with_stdin(self, node_bridge):
        node_bridge.run(["keys", "add", "w"], stdin="secret")
        args, kwargs = node_bridge.manager.run_once.call_args
        assert args[0] == ["safrochaind", "keys", "add", "w"]
        assert kwargs["entrypoint"] == ["sh", "-c", STDIN_SCRIPT]
        assert kwargs["environment"] == {STDIN_ENV: "secret"}

    def test_with_stdin(self):
        command, environment = with_stdin(["a"], "b")
        assert command == ["sh", "-c", STDIN_SCRIPT, "safrochaind", "a"]
        assert environment == {STDIN_ENV: "b"}


class TestChecks:
    def test_check_returns_output(self):
        result = CommandResult(exit_code=0, stdout="done\n")
        assert NodeBridge.check(result, ["x"], "Thing") == "done"

    def test_check_raises_command_error(self):
        result = CommandResult(exit_code=2, stderr="bad flag")
        with pytest.raises(CommandError) as exc_info:
            NodeBridge.check(result, ["x", "--bad"], "Thing")
        error = exc_info.value
        assert error.exit_code == 2
        assert error.command_args == ["x", "--bad"]
        assert "bad flag" in error.message

    def test_parse_json(self):
        result = CommandResult(exit_code=0, stdout='{"key": "abc"}')
        assert NodeBridge.parse_json(result, "key") == {"key": "abc"}

    def test_parse_json_rejects_empty_and_garbage(self):
        with pytest.raises(RetrievalError):
            NodeBridge.parse_json(CommandResult(exit_code=0), "key")
        with pytest.raises(RetrievalError):
            NodeBridge.parse_json(CommandResult(exit_code=0, stdout="nope"), "key")
