"""
Unit tests for starting and stopping the validator node.
"""

from unittest.mock import MagicMock, call, patch

import pytest

from safrobox.commands.errors import NodeError, PortExhaustedError
from safrobox.commands.ports import PortRole
from safrobox.commands.start import (
    negotiate_ports,
    resolve_moniker,
    start_node,
    stop_node,
)


def free_except(*busy):
    return lambda port: port not in busy


class TestResolveMoniker:
    def test_uses_stored_moniker(self, runtime):
        runtime.store.save_moniker("stored-node")
        ask = MagicMock()
        assert resolve_moniker(runtime, ask) == "stored-node"
        ask.assert_not_called()

    def test_prompts_and_saves(self, runtime):
        assert resolve_moniker(runtime, lambda: " typed-node ") == "typed-node"
        assert runtime.store.load().moniker == "typed-node"

    def test_empty_answer_uses_default(self, runtime):
        assert resolve_moniker(runtime, lambda: "") == "safrochain-validator"
        assert runtime.store.load().moniker == "safrochain-validator"


class TestNegotiatePorts:
    def test_removes_old_container_before_allocating(self, runtime, manager):
        order = []
        manager.remove_existing.side_effect = lambda: order.append("remove")

        def oracle(port):
            order.append("probe")
            return True

        with patch("safrobox.commands.start.time.sleep") as mock_sleep:
            mock_sleep.side_effect = lambda _: order.append("sleep")
            negotiate_ports(runtime, is_available=oracle)

        assert order[:3] == ["remove", "sleep", "probe"]

    def test_persists_assignment(self, runtime):
        assignment = negotiate_ports(
            runtime, is_available=free_except(26656), grace=0
        )
        config = runtime.store.load()
        assert config.ports == assignment.ports
        assert config.ports[PortRole.P2P] == 26657
        assert config.ports[PortRole.RPC] == 26658

    def test_reuses_persisted_ports(self, runtime):
        runtime.store.upsert("SAFROCHAIN_API_PORT", 1400)
        assignment = negotiate_ports(runtime, is_available=free_except(1317), grace=0)
        assert assignment.api == 1400

    def test_exhaustion_saves_nothing(self, runtime, settings):
        with pytest.raises(PortExhaustedError):
            negotiate_ports(runtime, is_available=lambda port: False, grace=0)
        assert not settings.env_file.exists()


class TestStartNode:
    def test_starts_container_with_assignment(self, runtime, manager):
        runtime.store.save_moniker("node-a")
        assignment = start_node(
            runtime, follow=False, is_available=free_except(), grace=0
        )
        manager.up.assert_called_once_with(assignment, "node-a")
        assert manager.mock_calls.index(call.remove_existing()) < (
            manager.mock_calls.index(call.up(assignment, "node-a"))
        )
        manager.follow_logs.assert_not_called()

    def test_writes_moniker_into_config(self, runtime, manager, settings):
        settings.config_dir.mkdir(parents=True)
        settings.config_toml.write_text('moniker = "old"\n')
        start_node(
            runtime,
            follow=False,
            ask_moniker=lambda: "fresh",
            is_available=free_except(),
            grace=0,
        )
        assert 'moniker = "fresh"' in settings.config_toml.read_text()
        manager.fix_permissions.assert_called_once()

    def test_container_not_running_raises(self, runtime, manager):
        manager.wait_until_running.return_value = False
        with pytest.raises(NodeError):
            start_node(
                runtime,
                follow=False,
                ask_moniker=lambda: "",
                is_available=free_except(),
                grace=0,
            )

    def test_follow_logs_interrupted(self, runtime, manager):
        manager.follow_logs.side_effect = KeyboardInterrupt
        start_node(
            runtime,
            follow=True,
            ask_moniker=lambda: "",
            is_available=free_except(),
            grace=0,
        )
        manager.follow_logs.assert_called_once()


def test_stop_node(runtime, manager):
    manager.down.return_value = True
    assert stop_node(runtime) is True
    manager.down.assert_called_once()
