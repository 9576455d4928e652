"""
Wallet commands - create, import and inspect keyring entries of the node.

Secrets (mnemonics and private keys) are read through a secret provider, a
callable taking a prompt and returning the entered text. The default provider
is a hidden click prompt; tests and automation supply their own.
"""

from typing import Callable, Optional

import click
import requests

from safrobox.commands.constants import (
    DEFAULT_WALLET_NAME,
    FAUCET_API_URL,
    FAUCET_PAGE_URL,
    HTTP_TIMEOUT,
)
from safrobox.commands.errors import CommandError, ValidationError
from safrobox.commands.settings import Runtime
from safrobox.commands.utils import console, exit_on_error, runtime_from_context

SecretProvider = Callable[[str], str]


def prompt_secret(prompt: str) -> str:
    """Read a secret from the terminal without echoing it."""
    return click.prompt(prompt, hide_input=True, default="", show_default=False)


def _read_secret(runtime: Runtime, prompt: str, what: str) -> str:
    provider: SecretProvider = runtime.secret_provider or prompt_secret
    secret = (provider(prompt) or "").strip()
    if not secret:
        raise ValidationError(f"{what} cannot be empty", field=what.lower())
    return secret


def show_address(runtime: Runtime, name: str, bech: Optional[str] = None) -> str:
    """Return the address of a keyring entry, using a one-shot container."""
    args = ["keys", "show", name, "--address"]
    if bech:
        args += ["--bech", bech]
    args += runtime.settings.keyring_args()
    result = runtime.bridge.run(args)
    return runtime.bridge.check(result, args, f"Looking up wallet {name}")


def _print_output(text: str) -> None:
    if text.strip():
        console.print(text.rstrip(), highlight=False, markup=False)


def create_wallet(runtime: Runtime, name: str = DEFAULT_WALLET_NAME) -> bool:
    """Create a new key. Returns False when the wallet already exists."""
    console.print(f"[bold]Creating wallet: {name}[/bold]")
    if (runtime.settings.keyring_dir() / f"{name}.info").exists():
        console.print(
            f"[yellow]Wallet {name} already exists. Skipping creation.[/yellow]"
        )
        return False

    console.print("Creating wallet. Please save the mnemonic phrase securely:")
    args = ["keys", "add", name, *runtime.settings.keyring_args()]
    result = runtime.bridge.run(args)
    _print_output(result.stdout)
    _print_output(result.stderr)
    runtime.bridge.check(result, args, f"Creating wallet {name}")

    address = show_address(runtime, name)
    console.print(f"[green]Wallet address:[/green] {address}")
    console.print(
        "[green]✓ Wallet created successfully. Please backup your mnemonic phrase![/green]"
    )
    return True


def _import_key(
    runtime: Runtime, name: str, args: list[str], secret: str, what: str
) -> str:
    result = runtime.bridge.run(args, stdin=secret)
    if not result.ok:
        # never echo output here, it may contain the secret
        raise CommandError(
            f"Importing wallet {name} from {what} failed "
            f"(exit code {result.exit_code})",
            args=args,
            exit_code=result.exit_code,
        )
    address = show_address(runtime, name)
    console.print(f"[green]Wallet imported. Address:[/green] {address}")
    console.print("[green]✓ Wallet imported successfully[/green]")
    return address


def import_mnemonic(runtime: Runtime, name: str = DEFAULT_WALLET_NAME) -> str:
    """Recover a key from a mnemonic phrase.

    Raises:
        ValidationError: If the mnemonic is empty. Nothing is run in that case.
    """
    console.print(f"[bold]Importing wallet from mnemonic: {name}[/bold]")
    mnemonic = _read_secret(
        runtime, "Enter your mnemonic phrase (24 words)", "Mnemonic phrase"
    )
    args = ["keys", "add", name, *runtime.settings.keyring_args(), "--recover"]
    return _import_key(runtime, name, args, mnemonic, "mnemonic")


def import_private_key(runtime: Runtime, name: str = DEFAULT_WALLET_NAME) -> str:
    """Import a key from a hex encoded private key.

    Raises:
        ValidationError: If the private key is empty. Nothing is run in that case.
    """
    console.print(f"[bold]Importing wallet from private key: {name}[/bold]")
    private_key = _read_secret(
        runtime, "Enter your private key (hex format)", "Private key"
    )
    args = [
        "keys",
        "unsafe-import-eth-key",
        name,
        *runtime.settings.keyring_args(),
    ]
    return _import_key(runtime, name, args, private_key, "private key")


def check_balance(runtime: Runtime, name: str = DEFAULT_WALLET_NAME) -> str:
    """Query the bank balance of a wallet through the node's RPC."""
    console.print(f"[bold]Checking wallet balance for: {name}[/bold]")
    address = show_address(runtime, name)
    runtime.manager.require_running()
    args = ["query", "bank", "balances", address, *runtime.settings.home_args()]
    result = runtime.bridge.run(
        args, network_mode=f"container:{runtime.settings.container_name}"
    )
    output = runtime.bridge.check(result, args, "Balance query")
    _print_output(output)
    return output


def request_faucet_tokens(
    runtime: Runtime, name: str = DEFAULT_WALLET_NAME, submit: bool = False
) -> str:
    """Show how to fund a wallet from the faucet, optionally requesting it."""
    console.print(f"[bold]Requesting tokens from faucet for wallet: {name}[/bold]")
    address = show_address(runtime, name)
    console.print(f"[cyan]Wallet address:[/cyan] {address}")

    if submit:
        try:
            resp = requests.post(
                FAUCET_API_URL, json={"address": address}, timeout=HTTP_TIMEOUT
            )
            resp.raise_for_status()
        except requests.RequestException as e:
            raise CommandError(f"Faucet request failed: {e}") from e
        console.print("[green]✓ Faucet request submitted[/green]")
        _print_output(resp.text)
        return address

    console.print(
        f"Please visit {FAUCET_PAGE_URL} and enter this address to request tokens"
    )
    console.print("Alternatively, you can use the command:")
    console.print(
        f"curl -X POST {FAUCET_API_URL} -d '{{\"address\":\"{address}\"}}'",
        highlight=False,
        markup=False,
    )
    return address


@click.command(name="create-wallet")
@click.argument("name", required=False, default=DEFAULT_WALLET_NAME)
@exit_on_error
def create_wallet_command(name):
    """Create a new wallet with optional NAME."""
    create_wallet(runtime_from_context(), name)


@click.command(name="import-mnemonic")
@click.argument("name", required=False, default=DEFAULT_WALLET_NAME)
@exit_on_error
def import_mnemonic_command(name):
    """Import wallet NAME from a mnemonic phrase."""
    import_mnemonic(runtime_from_context(), name)


@click.command(name="import-private-key")
@click.argument("name", required=False, default=DEFAULT_WALLET_NAME)
@exit_on_error
def import_private_key_command(name):
    """Import wallet NAME from a private key."""
    import_private_key(runtime_from_context(), name)


@click.command(name="balance")
@click.argument("name", required=False, default=DEFAULT_WALLET_NAME)
@exit_on_error
def balance_command(name):
    """Check wallet balance."""
    check_balance(runtime_from_context(), name)


@click.command(name="faucet")
@click.argument("name", required=False, default=DEFAULT_WALLET_NAME)
@click.option("--submit", is_flag=True, help="Send the faucet request directly.")
@exit_on_error
def faucet_command(name, submit):
    """Request tokens from faucet for wallet NAME."""
    request_faucet_tokens(runtime_from_context(), name, submit)
