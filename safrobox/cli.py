#!/usr/bin/env python3
"""
Safrobox CLI
A Python CLI tool for running a Safrochain validator node in Docker.
"""

import click

from safrobox import __version__
from safrobox.commands import (
    balance_command,
    configure,
    create_wallet_command,
    edit_validator_command,
    faucet_command,
    import_mnemonic_command,
    import_private_key_command,
    init,
    monitor,
    register_validator_command,
    start,
    status,
    stop,
    validator_status_command,
)
from safrobox.commands.constants import (
    DEFAULT_CHAIN_ID,
    DEFAULT_CONTAINER_NAME,
    DEFAULT_DATA_DIR,
    DEFAULT_ENV_FILE,
    DEFAULT_IMAGE,
)
from safrobox.commands.settings import Runtime, Settings
from safrobox.commands.utils import console, setup_logging

EXAMPLES = """\b
Examples:
  safrobox init my-validator
  safrobox create-wallet my-wallet
  safrobox register-validator my-wallet my-validator
  safrobox edit-validator my-wallet new-validator-name
  safrobox faucet validator-wallet
"""


class SafroboxGroup(click.Group):
    """Group that exits with status 1 on unknown commands."""

    def resolve_command(self, ctx, args):
        cmd_name = args[0] if args else None
        if (
            cmd_name
            and not cmd_name.startswith("-")
            and self.get_command(ctx, cmd_name) is None
        ):
            console.print(f"[red]Unknown command: {cmd_name}[/red]")
            click.echo(ctx.get_help())
            ctx.exit(1)
        return super().resolve_command(ctx, args)


@click.group(
    cls=SafroboxGroup,
    invoke_without_command=True,
    epilog=EXAMPLES,
    context_settings={"help_option_names": ["-h", "--help"]},
)
@click.version_option(version=__version__)
@click.option(
    "--env-file",
    default=DEFAULT_ENV_FILE,
    envvar="SAFROBOX_ENV_FILE",
    show_default=True,
    type=click.Path(dir_okay=False),
    help="File holding persisted ports and moniker.",
)
@click.option(
    "--data-dir",
    default=DEFAULT_DATA_DIR,
    envvar="SAFROBOX_DATA_DIR",
    show_default=True,
    type=click.Path(file_okay=False),
    help="Node home directory mounted into the container.",
)
@click.option(
    "--image", default=DEFAULT_IMAGE, envvar="SAFROBOX_IMAGE", show_default=True
)
@click.option(
    "--container",
    "container_name",
    default=DEFAULT_CONTAINER_NAME,
    envvar="SAFROBOX_CONTAINER",
    show_default=True,
)
@click.option(
    "--chain-id",
    default=DEFAULT_CHAIN_ID,
    envvar="SAFROBOX_CHAIN_ID",
    show_default=True,
)
@click.option("--verbose", "-v", is_flag=True, help="Show debug logging.")
@click.pass_context
def cli(ctx, env_file, data_dir, image, container_name, chain_id, verbose):
    """Safrobox CLI - Run a Safrochain validator node in Docker."""
    setup_logging(verbose)
    settings = Settings(
        env_file=env_file,
        data_dir=data_dir,
        image=image,
        container_name=container_name,
        chain_id=chain_id,
    )
    if isinstance(ctx.obj, Runtime):
        ctx.obj.settings = settings
    else:
        ctx.obj = Runtime(settings=settings)

    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


@cli.command(name="help")
@click.pass_context
def help_command(ctx):
    """Show this help message."""
    click.echo(ctx.parent.get_help())


cli.add_command(init)
cli.add_command(configure)
cli.add_command(create_wallet_command)
cli.add_command(import_mnemonic_command)
cli.add_command(import_private_key_command)
cli.add_command(start)
cli.add_command(register_validator_command)
cli.add_command(edit_validator_command)
cli.add_command(validator_status_command)
cli.add_command(faucet_command)
cli.add_command(status)
cli.add_command(balance_command)
cli.add_command(stop)
cli.add_command(monitor)


def main():
    """Main entry point for the safrobox CLI."""
    cli()


if __name__ == "__main__":
    main()
