"""
Per-invocation settings and the lazily created collaborators built from them.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Optional

from safrobox.commands.constants import (
    CONTAINER_HOME,
    DEFAULT_CHAIN_ID,
    DEFAULT_CONTAINER_NAME,
    DEFAULT_DATA_DIR,
    DEFAULT_ENV_FILE,
    DEFAULT_IMAGE,
    DEFAULT_KEYRING_BACKEND,
)
from safrobox.commands.env_store import EnvStore


@dataclass
class Settings:
    """Values every command needs, resolved from CLI options and env vars."""

    env_file: Path = Path(DEFAULT_ENV_FILE)
    data_dir: Path = Path(DEFAULT_DATA_DIR)
    image: str = DEFAULT_IMAGE
    container_name: str = DEFAULT_CONTAINER_NAME
    chain_id: str = DEFAULT_CHAIN_ID
    keyring_backend: str = DEFAULT_KEYRING_BACKEND
    home: str = CONTAINER_HOME

    def __post_init__(self):
        self.env_file = Path(self.env_file)
        self.data_dir = Path(self.data_dir)

    @classmethod
    def from_env(cls) -> "Settings":
        """Defaults overridden by SAFROBOX_* environment variables."""
        return cls(
            env_file=os.environ.get("SAFROBOX_ENV_FILE", DEFAULT_ENV_FILE),
            data_dir=os.environ.get("SAFROBOX_DATA_DIR", DEFAULT_DATA_DIR),
            image=os.environ.get("SAFROBOX_IMAGE", DEFAULT_IMAGE),
            container_name=os.environ.get(
                "SAFROBOX_CONTAINER", DEFAULT_CONTAINER_NAME
            ),
            chain_id=os.environ.get("SAFROBOX_CHAIN_ID", DEFAULT_CHAIN_ID),
        )

    @property
    def config_dir(self) -> Path:
        return self.data_dir / "config"

    @property
    def genesis_file(self) -> Path:
        return self.config_dir / "genesis.json"

    @property
    def config_toml(self) -> Path:
        return self.config_dir / "config.toml"

    @property
    def app_toml(self) -> Path:
        return self.config_dir / "app.toml"

    def keyring_dir(self) -> Path:
        return self.data_dir / f"keyring-{self.keyring_backend}"

    def home_args(self) -> list[str]:
        return ["--home", self.home]

    def keyring_args(self) -> list[str]:
        return ["--home", self.home, "--keyring-backend", self.keyring_backend]


@dataclass
class Runtime:
    """Holds settings plus the Docker-backed collaborators, created on demand.

    Tests replace ``manager`` and ``bridge`` directly, and ``secret_provider``
    to answer secret prompts without a terminal.
    """

    settings: Settings = field(default_factory=Settings.from_env)
    secret_provider: Optional[Callable[[str], str]] = None
    _store: Optional[EnvStore] = None
    _manager: Optional[object] = None
    _bridge: Optional[object] = None

    @property
    def store(self) -> EnvStore:
        if self._store is None or self._store.path != self.settings.env_file:
            self._store = EnvStore(self.settings.env_file)
        return self._store

    @property
    def manager(self):
        if self._manager is None:
            from safrobox.commands.managers.node import NodeManager

            self._manager = NodeManager(self.settings)
        return self._manager

    @manager.setter
    def manager(self, value) -> None:
        self._manager = value

    def require_docker(self):
        """Connect to Docker now, before a command touches any local state.

        Raises:
            DockerUnavailableError: If the Docker daemon cannot be reached.
        """
        return self.manager

    @property
    def bridge(self):
        if self._bridge is None:
            from safrobox.commands.bridge import NodeBridge

            self._bridge = NodeBridge(self.manager, self.settings)
        return self._bridge

    @bridge.setter
    def bridge(self, value) -> None:
        self._bridge = value
