"""
Unit tests for wallet commands.
"""

from unittest.mock import MagicMock, patch

import pytest
import requests

from safrobox.commands.bridge import CommandResult
from safrobox.commands.errors import CommandError, ValidationError
from safrobox.commands.wallet import (
    check_balance,
    create_wallet,
    import_mnemonic,
    import_private_key,
    request_faucet_tokens,
)

ADDRESS = "addr_safro1qqqsyqcyq5rqwzqfpg9scrgwpugpzysn"
KEYRING = ["--home", "/data", "--keyring-backend", "test"]


def address_responder(main=None):
    """Answer ``keys show`` with ADDRESS and everything else with ``main``."""
    main = main or CommandResult(exit_code=0, stdout="ok")

    def respond(kind, args, stdin):
        if args[:2] == ["keys", "show"]:
            return CommandResult(exit_code=0, stdout=ADDRESS + "\n")
        return main

    return respond


class TestCreateWallet:
    def test_creates_and_shows_address(self, runtime, bridge):
        bridge.responder = address_responder(
            CommandResult(exit_code=0, stderr="**Important** write this mnemonic")
        )
        assert create_wallet(runtime, "my-wallet") is True
        assert bridge.calls[0][1] == ["keys", "add", "my-wallet", *KEYRING]
        assert bridge.calls[1][1] == [
            "keys",
            "show",
            "my-wallet",
            "--address",
            *KEYRING,
        ]

    def test_skips_existing_wallet(self, runtime, bridge, settings):
        keyring = settings.keyring_dir()
        keyring.mkdir(parents=True)
        (keyring / "my-wallet.info").write_text("")
        assert create_wallet(runtime, "my-wallet") is False
        assert bridge.calls == []

    def test_failure_raises(self, runtime, bridge):
        bridge.responder = lambda kind, args, stdin: CommandResult(
            exit_code=1, stderr="keyring locked"
        )
        with pytest.raises(CommandError):
            create_wallet(runtime, "my-wallet")


class TestImports:
    def test_empty_mnemonic_rejected_before_running(self, runtime, bridge):
        runtime.secret_provider = lambda prompt: "   "
        with pytest.raises(ValidationError) as exc_info:
            import_mnemonic(runtime, "w")
        assert exc_info.value.message == "Mnemonic phrase cannot be empty"
        assert bridge.calls == []

    def test_empty_private_key_rejected_before_running(self, runtime, bridge):
        runtime.secret_provider = lambda prompt: ""
        with pytest.raises(ValidationError):
            import_private_key(runtime, "w")
        assert bridge.calls == []

    def test_mnemonic_passed_on_stdin(self, runtime, bridge):
        mnemonic = " ".join(["abandon"] * 23 + ["art"])
        runtime.secret_provider = lambda prompt: mnemonic + "\n"
        bridge.responder = address_responder()

        assert import_mnemonic(runtime, "w") == ADDRESS
        kind, args, stdin, _ = bridge.calls[0]
        assert kind == "run"
        assert args == ["keys", "add", "w", *KEYRING, "--recover"]
        assert stdin == mnemonic
        assert mnemonic not in " ".join(args)

    def test_private_key_passed_on_stdin(self, runtime, bridge):
        runtime.secret_provider = lambda prompt: "deadbeef"
        bridge.responder = address_responder()

        import_private_key(runtime, "w")
        _, args, stdin, _ = bridge.calls[0]
        assert args == ["keys", "unsafe-import-eth-key", "w", *KEYRING]
        assert stdin == "deadbeef"

    def test_failed_import_does_not_leak_output(self, runtime, bridge):
        runtime.secret_provider = lambda prompt: "secret words"
        bridge.responder = lambda kind, args, stdin: CommandResult(
            exit_code=1, stderr="invalid mnemonic: secret words"
        )
        with pytest.raises(CommandError) as exc_info:
            import_mnemonic(runtime, "w")
        assert "secret words" not in exc_info.value.message
        assert exc_info.value.output is None


def test_balance_uses_node_network(runtime, bridge, manager):
    bridge.responder = address_responder(
        CommandResult(exit_code=0, stdout="balances: []")
    )
    assert check_balance(runtime, "w") == "balances: []"
    manager.require_running.assert_called_once()
    kind, args, _, extra = bridge.calls[1]
    assert args[:4] == ["query", "bank", "balances", ADDRESS]
    assert extra["network_mode"] == "container:safrochain-validator"


class TestFaucet:
    def test_prints_instructions_by_default(self, runtime, bridge):
        bridge.responder = address_responder()
        with patch("safrobox.commands.wallet.requests.post") as mock_post:
            assert request_faucet_tokens(runtime, "w") == ADDRESS
        mock_post.assert_not_called()

    def test_submit_posts_address(self, runtime, bridge):
        bridge.responder = address_responder()
        with patch("safrobox.commands.wallet.requests.post") as mock_post:
            mock_post.return_value = MagicMock(text="queued")
            request_faucet_tokens(runtime, "w", submit=True)
        _, kwargs = mock_post.call_args
        assert kwargs["json"] == {"address": ADDRESS}

    def test_submit_failure_raises(self, runtime, bridge):
        bridge.responder = address_responder()
        with patch("safrobox.commands.wallet.requests.post") as mock_post:
            mock_post.side_effect = requests.ConnectionError("offline")
            with pytest.raises(CommandError, match="Faucet request failed"):
                request_faucet_tokens(runtime, "w", submit=True)
