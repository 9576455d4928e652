"""
Node setup commands - initialize node state and apply network configuration.
"""

from typing import Optional

import click

from safrobox.commands.config_utils import (
    apply_minimum_gas_prices,
    apply_seeds,
    download_file,
)
from safrobox.commands.constants import (
    DEFAULT_MONIKER,
    DEFAULT_SEED,
    GENESIS_URL,
    MINIMUM_GAS_PRICES,
)
from safrobox.commands.settings import Runtime
from safrobox.commands.utils import console, exit_on_error, runtime_from_context


def init_node(runtime: Runtime, moniker: Optional[str] = None) -> bool:
    """Initialize the node home directory.

    An explicitly given moniker is also stored in the .env file unless one is
    stored already, so that 'start' does not ask for it again.

    Returns:
        False when the node was already initialized, True otherwise.

    Raises:
        DockerUnavailableError: If Docker is not reachable. Nothing is written.
        CommandError: If ``safrochaind init`` fails.
    """
    runtime.require_docker()
    settings = runtime.settings
    explicit = moniker is not None
    moniker = moniker or DEFAULT_MONIKER
    console.print(
        f"[bold]Initializing Safrochain node with moniker: {moniker}[/bold]"
    )
    settings.data_dir.mkdir(parents=True, exist_ok=True)

    if settings.genesis_file.exists():
        console.print(
            "[yellow]Node already initialized. Skipping initialization.[/yellow]"
        )
        return False

    args = ["init", moniker, "--chain-id", settings.chain_id, *settings.home_args()]
    result = runtime.bridge.run(args)
    runtime.bridge.check(result, args, "Node initialization")

    if explicit and runtime.store.load().moniker is None:
        runtime.store.save_moniker(moniker)
    console.print("[green]✓ Node initialized successfully[/green]")
    return True


def configure_node(
    runtime: Runtime,
    genesis_url: str = GENESIS_URL,
    seed: str = DEFAULT_SEED,
    gas_prices: str = MINIMUM_GAS_PRICES,
) -> None:
    """Download the genesis file and fill in seeds and gas prices.

    Raises:
        ConfigurationError: If the download fails or a config file is missing.
    """
    settings = runtime.settings
    console.print("[bold]Configuring node settings[/bold]")
    runtime.manager.fix_permissions()

    console.print("[cyan]Downloading genesis file[/cyan]")
    download_file(genesis_url, settings.genesis_file, desc="genesis.json")

    console.print("[cyan]Configuring seeds and persistent peers[/cyan]")
    apply_seeds(settings.config_toml, seed)
    console.print("[cyan]Configuring minimum gas prices[/cyan]")
    apply_minimum_gas_prices(settings.app_toml, gas_prices)

    console.print("[green]✓ Node configured successfully[/green]")


@click.command()
@click.argument("moniker", required=False)
@exit_on_error
def init(moniker):
    """Initialize the node with an optional MONIKER."""
    init_node(runtime_from_context(), moniker)


@click.command()
@click.option("--genesis-url", default=GENESIS_URL, show_default=True)
@click.option("--seed", default=DEFAULT_SEED, help="Seed node id@host:port.")
@click.option("--gas-prices", default=MINIMUM_GAS_PRICES, show_default=True)
@exit_on_error
def configure(genesis_url, seed, gas_prices):
    """Configure the node with genesis file and seeds."""
    configure_node(runtime_from_context(), genesis_url, seed, gas_prices)
