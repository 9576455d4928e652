"""
NodeManager - Safrochain validator container lifecycle.
"""

import io
import logging
import os
import tarfile
import time
from pathlib import Path
from typing import Optional, Union

import docker

from safrobox.commands.bridge import CommandResult, decode_output
from safrobox.commands.constants import (
    CONTAINER_STOP_TIMEOUT,
    ENV_MONIKER,
    ERROR_NODE_NOT_RUNNING,
    HELPER_IMAGE,
    HINT_START_NODE,
    NODE_LABEL,
)
from safrobox.commands.errors import CommandError, NodeError, NodeNotRunningError
from safrobox.commands.managers.base import BaseManager
from safrobox.commands.ports import PortAssignment
from safrobox.commands.utils import console

logger = logging.getLogger(__name__)


class NodeManager(BaseManager):
    """Starts, stops and inspects the validator node container."""

    def __init__(self, settings, client: Optional[docker.DockerClient] = None):
        super().__init__(client)
        self.settings = settings

    @property
    def container_name(self) -> str:
        return self.settings.container_name

    def _volumes(self) -> dict:
        return {
            str(self.settings.data_dir.resolve()): {
                "bind": self.settings.home,
                "mode": "rw",
            }
        }

    def get_container(self):
        """Return the node container, or None if it does not exist."""
        try:
            return self.client.containers.get(self.container_name)
        except docker.errors.NotFound:
            return None

    def is_running(self) -> bool:
        return self._is_container_running(self.container_name)

    def require_running(self):
        """Return the running node container.

        Raises:
            NodeNotRunningError: If the container is missing or stopped.
        """
        container = self.get_container()
        if container is None or container.status != "running":
            raise NodeNotRunningError(
                ERROR_NODE_NOT_RUNNING.format(node=self.container_name),
                node_ref=self.container_name,
                hint=HINT_START_NODE,
            )
        return container

    def remove_existing(self) -> bool:
        """Stop and remove any container holding the node name.

        Returns:
            True if a container was removed, False if none existed.
        """
        console.print("[cyan]Checking for existing safrochain container...[/cyan]")
        containers = self.client.containers.list(
            all=True, filters={"name": self.container_name}
        )
        removed = False
        for container in containers:
            # the name filter matches substrings
            if container.name != self.container_name:
                continue
            console.print(
                f"[cyan]Stopping existing container {container.name}...[/cyan]"
            )
            try:
                container.stop(timeout=CONTAINER_STOP_TIMEOUT)
            except docker.errors.APIError as e:
                logger.debug("Stop of %s failed: %s", container.name, e)
            console.print(
                f"[cyan]Removing existing container {container.name}...[/cyan]"
            )
            container.remove(force=True)
            removed = True
        return removed

    def up(self, assignment: PortAssignment, moniker: str):
        """Run the node container detached with the allocated ports.

        Raises:
            NodeError: If the image is unavailable or Docker refuses to start it.
        """
        image = self.settings.image
        if not self._ensure_image_available(image):
            raise NodeError(
                f"Node image {image} is not available",
                node_ref=self.container_name,
                hint=f"Build it with: docker build -t {image} .",
            )

        environment = dict(assignment.as_env())
        environment[ENV_MONIKER] = moniker
        try:
            container = self.client.containers.run(
                image,
                name=self.container_name,
                command=["start", f"--home={self.settings.home}"],
                detach=True,
                ports=assignment.port_bindings(),
                environment=environment,
                volumes=self._volumes(),
                labels={NODE_LABEL: "true", "safrochain.moniker": moniker},
                restart_policy={"Name": "unless-stopped"},
            )
        except docker.errors.APIError as e:
            raise NodeError(
                f"Failed to start Safrochain validator node: {str(e)}",
                node_ref=self.container_name,
            ) from e
        return container

    def down(self) -> bool:
        """Stop and remove the node container. Returns False if it did not exist."""
        container = self.get_container()
        if container is None:
            console.print(
                f"[yellow]Container {self.container_name} is not running[/yellow]"
            )
            return False
        container.stop(timeout=CONTAINER_STOP_TIMEOUT)
        container.remove()
        console.print(f"[green]✓ Stopped and removed {self.container_name}[/green]")
        return True

    def copy_to_container(self, local_path: Union[Path, str], dest_dir: str) -> None:
        """Copy a local file into a directory of the running node container."""
        container = self.require_running()
        local_path = Path(local_path)
        buffer = io.BytesIO()
        with tarfile.open(fileobj=buffer, mode="w") as tar:
            tar.add(str(local_path), arcname=local_path.name)
        buffer.seek(0)
        if not container.put_archive(dest_dir, buffer.getvalue()):
            raise CommandError(
                f"Failed to copy {local_path} into {self.container_name}:{dest_dir}"
            )

    def run_once(
        self,
        command: list,
        entrypoint: Optional[list] = None,
        environment: Optional[dict] = None,
        network_mode: Optional[str] = None,
        image: Optional[str] = None,
    ) -> CommandResult:
        """Run a command in a throwaway container and collect its output."""
        image = image or self.settings.image
        if not self._ensure_image_available(image):
            raise NodeError(f"Image {image} is not available")

        self.settings.data_dir.mkdir(parents=True, exist_ok=True)
        container = self.client.containers.run(
            image,
            command=command,
            entrypoint=entrypoint,
            environment=environment,
            network_mode=network_mode,
            volumes=self._volumes(),
            detach=True,
        )
        try:
            status = container.wait()
            return CommandResult(
                exit_code=int(status.get("StatusCode", 1)),
                stdout=decode_output(container.logs(stdout=True, stderr=False)),
                stderr=decode_output(container.logs(stdout=False, stderr=True)),
            )
        finally:
            try:
                container.remove(force=True)
            except docker.errors.APIError as e:
                logger.debug("Failed to remove one-shot container: %s", e)

    def follow_logs(self, tail: int = 100) -> None:
        """Stream node logs to the console until interrupted."""
        container = self.require_running()
        for chunk in container.logs(stream=True, follow=True, tail=tail):
            console.out(decode_output(chunk), end="", highlight=False)

    def wait_until_running(self, delay: float) -> bool:
        time.sleep(delay)
        return self.is_running()

    def fix_permissions(self) -> None:
        """Fix ownership and write permissions of files created by Docker."""
        if not hasattr(os, "getuid"):
            return

        try:
            uid = os.getuid()
            gid = os.getgid()
            self.client.containers.run(
                HELPER_IMAGE,
                command=f"sh -c 'chown -R {uid}:{gid} /data && chmod -R u+w /data'",
                volumes={
                    str(self.settings.data_dir.resolve()): {
                        "bind": "/data",
                        "mode": "rw",
                    }
                },
                remove=True,
            )
        except docker.errors.DockerException as e:
            console.print(
                f"[yellow]⚠️  Warning: Failed to fix permissions for "
                f"{self.settings.data_dir}: {e}[/yellow]"
            )
