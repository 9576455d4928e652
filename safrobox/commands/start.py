"""
Start and stop commands for the validator node container.

Starting runs these steps strictly in order:
resolve moniker → stop and remove any previous node container → wait for the
OS to release its sockets → allocate ports → persist them → start the
container. Any failure aborts before the next step.
"""

import logging
import time
from typing import Callable, Optional

import click

from safrobox.commands.config_utils import apply_moniker
from safrobox.commands.constants import (
    DEFAULT_MONIKER,
    NODE_STARTUP_WAIT,
    PORT_RELEASE_GRACE,
)
from safrobox.commands.errors import NodeError
from safrobox.commands.ports import (
    SOURCE_DEFAULT,
    SOURCE_PERSISTED,
    PortAssignment,
    PortProbe,
    allocate_ports,
)
from safrobox.commands.settings import Runtime
from safrobox.commands.utils import console, exit_on_error, runtime_from_context

logger = logging.getLogger(__name__)


def prompt_moniker() -> str:
    return click.prompt(
        f"Enter your validator moniker (or press Enter for default '{DEFAULT_MONIKER}')",
        default="",
        show_default=False,
    )


def resolve_moniker(
    runtime: Runtime, ask: Optional[Callable[[], str]] = None
) -> str:
    """Return the stored moniker, asking for and storing one when unset."""
    stored = runtime.store.load().moniker
    if stored:
        return stored
    entered = ((ask or prompt_moniker)() or "").strip()
    moniker = entered or DEFAULT_MONIKER
    runtime.store.save_moniker(moniker)
    return moniker


def negotiate_ports(
    runtime: Runtime,
    is_available: Optional[Callable[[int], bool]] = None,
    grace: float = PORT_RELEASE_GRACE,
) -> PortAssignment:
    """Free the ports of a previous node, allocate and persist a new assignment.

    Raises:
        PortExhaustedError: If a role has no free port in its probe window.
    """
    console.print("[cyan]Checking Safrochain default ports...[/cyan]")
    persisted = runtime.store.load().ports

    runtime.manager.remove_existing()
    if grace > 0:
        # sockets of a just-stopped container take a moment to be released
        time.sleep(grace)

    assignment = allocate_ports(
        persisted=persisted, is_available=is_available or PortProbe()
    )
    for caveat in assignment.caveats:
        console.print(f"[yellow]⚠️  {caveat}[/yellow]")
    for role, port in assignment.items():
        source = assignment.sources.get(role)
        if source == SOURCE_DEFAULT:
            label = "Using Safrochain default"
        elif source == SOURCE_PERSISTED:
            label = "Using .env"
        else:
            label = "Using alternative"
        console.print(f"[green]{label} {role.value} port: {port}[/green]")

    runtime.store.save_assignment(assignment)
    console.print(f"[green]✓ Saved port values to {runtime.store.path}[/green]")
    return assignment


def start_node(
    runtime: Runtime,
    follow: bool = True,
    ask_moniker: Optional[Callable[[], str]] = None,
    is_available: Optional[Callable[[int], bool]] = None,
    grace: float = PORT_RELEASE_GRACE,
) -> PortAssignment:
    """Start the validator node container.

    Raises:
        DockerUnavailableError: If Docker is not reachable. Nothing is written.
        PortExhaustedError: If ports cannot be allocated.
        NodeError: If the container does not come up.
    """
    runtime.require_docker()
    console.print("[bold]Starting Safrochain validator node[/bold]")
    settings = runtime.settings

    moniker = resolve_moniker(runtime, ask_moniker)
    if settings.config_toml.exists():
        runtime.manager.fix_permissions()
        apply_moniker(settings.config_toml, moniker)
    else:
        logger.warning("%s not found, moniker not written", settings.config_toml)

    assignment = negotiate_ports(runtime, is_available=is_available, grace=grace)

    console.print("[cyan]Starting Safrochain...[/cyan]")
    runtime.manager.up(assignment, moniker)
    if not runtime.manager.wait_until_running(NODE_STARTUP_WAIT):
        raise NodeError(
            "Failed to start Safrochain validator node",
            node_ref=settings.container_name,
            hint=f"Inspect the container with: docker logs {settings.container_name}",
        )

    console.print("[green]✓ Safrochain validator node started successfully![/green]")
    console.print(f"  - Moniker: {moniker}")
    console.print(f"  - P2P Port: {assignment.p2p}")
    console.print(f"  - RPC Port: {assignment.rpc}")
    console.print(f"  - API Port: {assignment.api}")
    console.print(f"  - gRPC Port: {assignment.grpc}")

    if follow:
        console.print("[cyan]Showing Safrochain logs (Press Ctrl+C to exit)...[/cyan]")
        try:
            runtime.manager.follow_logs()
        except KeyboardInterrupt:
            console.print("\n[cyan]Stopped following logs; the node keeps running.[/cyan]")
    return assignment


def stop_node(runtime: Runtime) -> bool:
    console.print("[bold]Stopping Safrochain validator node[/bold]")
    return runtime.manager.down()


@click.command()
@click.option(
    "--follow/--no-follow",
    default=True,
    show_default=True,
    help="Stream node logs after starting.",
)
@exit_on_error
def start(follow):
    """Start the validator node."""
    start_node(runtime_from_context(), follow=follow)


@click.command()
@exit_on_error
def stop():
    """Stop the validator node."""
    stop_node(runtime_from_context())
