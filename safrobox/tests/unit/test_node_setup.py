"""
Unit tests for node initialization and configuration.
"""

from unittest.mock import patch

import pytest

from safrobox.commands.bridge import CommandResult
from safrobox.commands.errors import CommandError
from safrobox.commands.node_setup import configure_node, init_node


class TestInitNode:
    def test_runs_init_in_one_shot_container(self, runtime, bridge, settings):
        assert init_node(runtime, "my-node") is True
        kind, args, _, _ = bridge.calls[0]
        assert kind == "run"
        assert args == [
            "init",
            "my-node",
            "--chain-id",
            "safro-testnet-1",
            "--home",
            "/data",
        ]
        assert settings.data_dir.is_dir()
        assert runtime.store.load().moniker == "my-node"

    def test_default_moniker_not_stored(self, runtime, bridge):
        init_node(runtime)
        assert bridge.calls[0][1][1] == "safrochain-validator"
        assert runtime.store.load().moniker is None

    def test_existing_moniker_kept(self, runtime):
        runtime.store.save_moniker("first")
        init_node(runtime, "second")
        assert runtime.store.load().moniker == "first"

    def test_skips_initialized_node(self, runtime, bridge, settings):
        settings.config_dir.mkdir(parents=True)
        settings.genesis_file.write_text("{}")
        assert init_node(runtime, "my-node") is False
        assert bridge.calls == []

    def test_failure_raises(self, runtime, bridge):
        bridge.responder = lambda kind, args, stdin: CommandResult(
            exit_code=1, stderr="permission denied"
        )
        with pytest.raises(CommandError):
            init_node(runtime, "my-node")
        assert runtime.store.load().moniker is None


@patch("safrobox.commands.node_setup.apply_minimum_gas_prices")
@patch("safrobox.commands.node_setup.apply_seeds")
@patch("safrobox.commands.node_setup.download_file")
def test_configure_node(mock_download, mock_seeds, mock_gas, runtime, settings):
    configure_node(runtime, "https://example.com/g.json", "id@host:26656", "1usaf")

    runtime.manager.fix_permissions.assert_called_once()
    mock_download.assert_called_once_with(
        "https://example.com/g.json", settings.genesis_file, desc="genesis.json"
    )
    mock_seeds.assert_called_once_with(settings.config_toml, "id@host:26656")
    mock_gas.assert_called_once_with(settings.app_toml, "1usaf")
