"""
BaseManager - Common Docker client utilities and shared functionality.
"""

import logging
from typing import Optional

import docker

from safrobox.commands.errors import DockerUnavailableError
from safrobox.commands.utils import console

logger = logging.getLogger(__name__)


class BaseManager:
    """Base class with shared Docker client utilities."""

    def __init__(self, client: Optional[docker.DockerClient] = None):
        """Initialize with an optional Docker client.

        Args:
            client: Optional Docker client. If not provided, creates one from environment.

        Raises:
            DockerUnavailableError: If Docker is not installed or not reachable.
        """
        if client is not None:
            self.client = client
        else:
            try:
                self.client = docker.from_env()
                self.client.ping()
            except Exception as e:
                raise DockerUnavailableError(
                    f"Failed to connect to Docker: {str(e)}. "
                    "Make sure Docker is installed, running and that you have "
                    "permission to access it."
                ) from e

    def _ensure_image_available(self, image: str) -> bool:
        """Ensure the specified Docker image is available locally, pulling if needed."""
        try:
            self.client.images.get(image)
            logger.debug("Image %s already available locally", image)
            return True
        except docker.errors.ImageNotFound:
            pass
        except docker.errors.APIError as e:
            console.print(f"[red]✗ Error checking image {image}: {str(e)}[/red]")
            return False

        console.print(f"[yellow]Pulling image: {image}[/yellow]")
        try:
            self.client.images.pull(image)
            console.print(f"[green]✓ Successfully pulled image: {image}[/green]")
            return True
        except docker.errors.NotFound:
            console.print(f"[red]✗ Image {image} not found locally or in registry[/red]")
            return False
        except docker.errors.APIError as e:
            console.print(f"[red]✗ Docker API error pulling {image}: {str(e)}[/red]")
            return False

    def _is_container_running(self, container_name: str) -> bool:
        """Check if a container is running."""
        try:
            container = self.client.containers.get(container_name)
            return container.status == "running"
        except docker.errors.NotFound:
            return False
        except docker.errors.APIError as e:
            logger.debug("Failed to inspect %s: %s", container_name, e)
            return False
