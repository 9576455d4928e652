"""
Sync status monitoring for the validator node.

``safrobox status`` and ``safrobox-monitor`` print one snapshot;
``safrobox-monitor --continuous`` polls every 10 seconds until cancelled.
In continuous mode a failed status query is reported and the next poll goes
ahead, but a stopped container ends monitoring with an error.
"""

import json
import logging
import threading
from dataclasses import dataclass
from typing import Any, Optional, Union

import click

from safrobox.commands.constants import DEFAULT_RPC_PORT, MONITOR_POLL_INTERVAL
from safrobox.commands.errors import RetrievalError
from safrobox.commands.utils import (
    console,
    exit_on_error,
    runtime_from_context,
    setup_logging,
)

logger = logging.getLogger(__name__)

RULE = "=" * 42
NET_INFO_URL = f"http://localhost:{DEFAULT_RPC_PORT}/net_info"

MSG_SYNCING = "Node is still syncing with the network"
MSG_SYNCED = "Node is fully synced with the network!"
MSG_NO_PEERS = "No peers connected - check network connectivity"


@dataclass
class SyncStatus:
    """One snapshot of the node's sync state."""

    latest_block_height: int
    catching_up: bool
    latest_block_time: str
    node_id: str
    moniker: str
    peer_count: int = 0


def _section(payload: dict, *names: str) -> dict:
    for name in names:
        value = payload.get(name)
        if isinstance(value, dict):
            return value
    return {}


def _required(section: dict, key: str, where: str):
    value = section.get(key)
    if value is None or value == "":
        raise RetrievalError(f"Status output is missing {where}.{key}")
    return value


def _as_bool(value: Any, field: str) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.lower() in ("true", "false"):
        return value.lower() == "true"
    raise RetrievalError(f"Status field {field} is not a boolean: {value!r}")


def parse_status(payload: Union[str, dict], peer_count: int = 0) -> SyncStatus:
    """Build a SyncStatus from ``safrochaind status`` JSON.

    Accepts the CLI layout (``sync_info``/``node_info``), its capitalized
    variant, and the RPC layout wrapped in ``result``.

    Raises:
        RetrievalError: If the payload is empty, not JSON, or lacks a field.
    """
    if isinstance(payload, str):
        if not payload.strip():
            raise RetrievalError("Failed to get status information: empty output")
        try:
            payload = json.loads(payload)
        except json.JSONDecodeError as e:
            raise RetrievalError(
                f"Failed to parse status information: {e.msg}", output=payload
            ) from e
    if not isinstance(payload, dict):
        raise RetrievalError("Status information is not a JSON object")
    if isinstance(payload.get("result"), dict):
        payload = payload["result"]

    sync_info = _section(payload, "sync_info", "SyncInfo")
    node_info = _section(payload, "node_info", "NodeInfo")

    raw_height = _required(sync_info, "latest_block_height", "sync_info")
    try:
        height = int(raw_height)
    except (TypeError, ValueError) as e:
        raise RetrievalError(
            f"Status field sync_info.latest_block_height is not a number: {raw_height!r}"
        ) from e

    return SyncStatus(
        latest_block_height=height,
        catching_up=_as_bool(
            _required(sync_info, "catching_up", "sync_info"), "sync_info.catching_up"
        ),
        latest_block_time=str(_required(sync_info, "latest_block_time", "sync_info")),
        node_id=str(_required(node_info, "id", "node_info")),
        moniker=str(_required(node_info, "moniker", "node_info")),
        peer_count=max(0, int(peer_count)),
    )


def render(status: SyncStatus) -> str:
    """Human readable report of a status snapshot."""
    lines = [
        RULE,
        "    SAFROCHAIN VALIDATOR MONITORING",
        RULE,
        f"Node Moniker: {status.moniker}",
        f"Node ID: {status.node_id}",
        f"Latest Block Height: {status.latest_block_height}",
        f"Catching Up: {'true' if status.catching_up else 'false'}",
        f"Connected Peers: {status.peer_count}",
        f"Latest Block Time: {status.latest_block_time}",
        RULE,
    ]
    if status.catching_up:
        lines.append(f"[WARNING] {MSG_SYNCING}")
        lines.append(f"[INFO] Progress: Block {status.latest_block_height}")
    else:
        lines.append(f"[STATUS] {MSG_SYNCED}")
    if status.peer_count == 0:
        lines.append(f"[WARNING] {MSG_NO_PEERS}")
    return "\n".join(lines)


class StatusMonitor:
    """Polls the node through the bridge and prints its sync status."""

    def __init__(self, manager, bridge, interval: float = MONITOR_POLL_INTERVAL):
        self.manager = manager
        self.bridge = bridge
        self.interval = interval

    def peer_count(self) -> int:
        """Connected peers according to the node's RPC, 0 when unknown."""
        result = self.bridge.exec_raw(["curl", "-s", NET_INFO_URL])
        try:
            data = self.bridge.parse_json(result, "network info")
            return int(data["result"]["n_peers"])
        except (RetrievalError, KeyError, TypeError, ValueError) as e:
            logger.debug("Could not read peer count: %s", e)
            return 0

    def fetch_status(self) -> SyncStatus:
        """Query the node for a fresh snapshot.

        Raises:
            RetrievalError: If the status output is empty or malformed.
            NodeNotRunningError: If the container is not running.
        """
        result = self.bridge.exec(["status"])
        if not result.output:
            raise RetrievalError("Failed to retrieve status information")
        return parse_status(result.output, peer_count=self.peer_count())

    def show(self, status: SyncStatus) -> None:
        console.print(render(status), markup=False, highlight=False)

    def show_once(self) -> SyncStatus:
        self.manager.require_running()
        status = self.fetch_status()
        self.show(status)
        return status

    def run(self, stop_event: Optional[threading.Event] = None) -> int:
        """Poll until ``stop_event`` is set. Returns the number of polls.

        Raises:
            NodeNotRunningError: As soon as the container is found stopped.
        """
        stop_event = stop_event or threading.Event()
        console.print(
            "[blue]Starting continuous monitoring (Press Ctrl+C to stop)[/blue]\n"
        )
        polls = 0
        while not stop_event.is_set():
            self.manager.require_running()
            try:
                self.show(self.fetch_status())
            except RetrievalError as e:
                console.print(f"[red]✗ {e.message}[/red]")
            polls += 1
            console.print()
            stop_event.wait(self.interval)
        return polls


def _monitor(runtime) -> StatusMonitor:
    return StatusMonitor(runtime.manager, runtime.bridge)


@click.command(name="status")
@exit_on_error
def status():
    """Check sync status."""
    console.print("[cyan]Checking sync status[/cyan]")
    _monitor(runtime_from_context()).show_once()


@click.command(
    name="monitor", context_settings={"help_option_names": ["-h", "--help"]}
)
@click.option(
    "-c",
    "--continuous",
    is_flag=True,
    help="Continuous monitoring (updates every 10 seconds)",
)
@exit_on_error
def monitor(continuous):
    """Monitor the sync progress of the Safrochain validator node."""
    status_monitor = _monitor(runtime_from_context())
    if not continuous:
        status_monitor.show_once()
        return

    stop_event = threading.Event()
    try:
        status_monitor.run(stop_event)
    except KeyboardInterrupt:
        stop_event.set()
        console.print("\n[blue]Monitoring stopped[/blue]")


def monitor_main():
    """Entry point for the safrobox-monitor script."""
    setup_logging()
    monitor(prog_name="safrobox-monitor")
