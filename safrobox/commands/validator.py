"""
Validator commands - register, edit and query the validator of this node.
"""

import json
from pathlib import Path
from typing import Optional

import click

from safrobox.commands.constants import (
    COMMISSION_MAX_CHANGE_RATE,
    COMMISSION_MAX_RATE,
    COMMISSION_RATE,
    CREATE_VALIDATOR_GAS,
    DEFAULT_MONIKER,
    DEFAULT_WALLET_NAME,
    EDIT_VALIDATOR_GAS,
    MIN_SELF_DELEGATION,
    VALIDATOR_DETAILS,
    VALIDATOR_FILE,
    VALIDATOR_GAS_PRICES,
    VALIDATOR_SELF_STAKE,
)
from safrobox.commands.errors import RetrievalError
from safrobox.commands.settings import Runtime
from safrobox.commands.utils import console, exit_on_error, runtime_from_context
from safrobox.commands.wallet import show_address

ED25519_PUBKEY_TYPE = "/cosmos.crypto.ed25519.PubKey"


def consensus_pubkey(runtime: Runtime) -> str:
    """Return the base64 consensus public key of the node."""
    args = ["tendermint", "show-validator", *runtime.settings.home_args()]
    result = runtime.bridge.run(args)
    runtime.bridge.check(result, args, "Reading validator public key")
    payload = runtime.bridge.parse_json(result, "validator public key")
    key = payload.get("key") if isinstance(payload, dict) else None
    if not key:
        raise RetrievalError(
            "Validator public key output has no 'key' field", output=result.output
        )
    return key


def build_validator_definition(pubkey: str, moniker: str) -> dict:
    """The validator.json document consumed by ``tx staking create-validator``."""
    return {
        "pubkey": {"@type": ED25519_PUBKEY_TYPE, "key": pubkey},
        "amount": VALIDATOR_SELF_STAKE,
        "moniker": moniker,
        "identity": "",
        "website": "",
        "security": "",
        "details": VALIDATOR_DETAILS,
        "commission-rate": COMMISSION_RATE,
        "commission-max-rate": COMMISSION_MAX_RATE,
        "commission-max-change-rate": COMMISSION_MAX_CHANGE_RATE,
        "min-self-delegation": MIN_SELF_DELEGATION,
    }


def _tx_args(runtime: Runtime, wallet: str, gas: int) -> list[str]:
    return [
        f"--from={wallet}",
        f"--chain-id={runtime.settings.chain_id}",
        f"--gas={gas}",
        f"--gas-prices={VALIDATOR_GAS_PRICES}",
        *runtime.settings.keyring_args(),
        "-y",
    ]


def register_validator(
    runtime: Runtime,
    wallet: str = DEFAULT_WALLET_NAME,
    moniker: str = DEFAULT_MONIKER,
    workdir: Optional[Path] = None,
) -> str:
    """Submit a create-validator transaction for this node.

    Returns:
        The transaction output of the node binary.
    """
    console.print(
        f"[bold]Registering as validator with wallet: {wallet} "
        f"and moniker: {moniker}[/bold]"
    )
    runtime.manager.require_running()

    definition = build_validator_definition(consensus_pubkey(runtime), moniker)
    validator_file = Path(workdir or Path.cwd()) / VALIDATOR_FILE
    with open(validator_file, "w", encoding="utf-8") as f:
        json.dump(definition, f, indent=2)

    home = runtime.settings.home
    runtime.manager.copy_to_container(validator_file, home)

    args = [
        "tx",
        "staking",
        "create-validator",
        f"{home}/{VALIDATOR_FILE}",
        *_tx_args(runtime, wallet, CREATE_VALIDATOR_GAS),
    ]
    result = runtime.bridge.exec(args)
    output = runtime.bridge.check(result, args, "create-validator")
    console.print(output, highlight=False, markup=False)
    console.print("[green]✓ Validator registration transaction submitted[/green]")
    return output


def edit_validator(
    runtime: Runtime,
    wallet: str = DEFAULT_WALLET_NAME,
    moniker: str = DEFAULT_MONIKER,
) -> str:
    """Submit an edit-validator transaction setting a new moniker."""
    console.print(
        f"[bold]Editing validator with wallet: {wallet} "
        f"and new moniker: {moniker}[/bold]"
    )
    args = [
        "tx",
        "staking",
        "edit-validator",
        f"--new-moniker={moniker}",
        f"--details={VALIDATOR_DETAILS}",
        *_tx_args(runtime, wallet, EDIT_VALIDATOR_GAS),
    ]
    result = runtime.bridge.exec(args)
    output = runtime.bridge.check(result, args, "edit-validator")
    console.print(output, highlight=False, markup=False)
    console.print("[green]✓ Validator edit transaction submitted[/green]")
    return output


def validator_status(runtime: Runtime, wallet: str = DEFAULT_WALLET_NAME) -> str:
    """Query the staking module for the validator operated by ``wallet``."""
    console.print(f"[bold]Checking validator status for wallet: {wallet}[/bold]")
    runtime.manager.require_running()
    valoper = show_address(runtime, wallet, bech="val")
    args = ["query", "staking", "validator", valoper, *runtime.settings.home_args()]
    result = runtime.bridge.exec(args)
    output = runtime.bridge.check(result, args, "Validator query")
    console.print(output, highlight=False, markup=False)
    return output


@click.command(name="register-validator")
@click.argument("wallet", required=False, default=DEFAULT_WALLET_NAME)
@click.argument("moniker", required=False, default=DEFAULT_MONIKER)
@exit_on_error
def register_validator_command(wallet, moniker):
    """Register as validator with WALLET and MONIKER."""
    register_validator(runtime_from_context(), wallet, moniker)


@click.command(name="edit-validator")
@click.argument("wallet", required=False, default=DEFAULT_WALLET_NAME)
@click.argument("moniker", required=False, default=DEFAULT_MONIKER)
@exit_on_error
def edit_validator_command(wallet, moniker):
    """Edit existing validator with new MONIKER."""
    edit_validator(runtime_from_context(), wallet, moniker)


@click.command(name="validator-status")
@click.argument("wallet", required=False, default=DEFAULT_WALLET_NAME)
@exit_on_error
def validator_status_command(wallet):
    """Check validator status."""
    validator_status(runtime_from_context(), wallet)
