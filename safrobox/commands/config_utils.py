"""
Configuration utilities for editing the node's config.toml and app.toml.
"""

import stat
from pathlib import Path
from typing import Union

import requests
import toml
from tqdm import tqdm

from safrobox.commands.constants import DOWNLOAD_CHUNK_SIZE, DOWNLOAD_TIMEOUT
from safrobox.commands.errors import ConfigurationError
from safrobox.commands.utils import console


def set_nested_config(config: dict, key: str, value, log: bool = True) -> None:
    """
    Set nested configuration value using dot notation.

    Args:
        config: The configuration dictionary to modify
        key: Dot-separated key path (e.g., "p2p.seeds")
        value: The value to set
        log: Whether to log the change (default True)

    Raises:
        TypeError: If an intermediate key exists but is not a dict
    """
    keys = key.split(".")
    current = config
    for k in keys[:-1]:
        if k not in current:
            current[k] = {}
        elif not isinstance(current[k], dict):
            raise TypeError(f"Cannot set nested key: '{k}' is not a dict")
        current = current[k]

    current[keys[-1]] = value
    if log:
        console.print(f"[cyan]  {key} = {value}[/cyan]")


def get_nested_config(config: dict, key: str, default=None):
    current = config
    for k in key.split("."):
        if not isinstance(current, dict) or k not in current:
            return default
        current = current[k]
    return current


def _load(config_path: Path) -> dict:
    if not config_path.exists():
        raise ConfigurationError(
            f"Config file not found: {config_path}. Run 'safrobox init' first.",
            config_file=str(config_path),
        )
    try:
        with open(config_path, encoding="utf-8") as f:
            return toml.load(f)
    except toml.TomlDecodeError as e:
        raise ConfigurationError(
            f"Malformed config file {config_path}: {e}",
            config_file=str(config_path),
        ) from e


def _dump(config_path: Path, config: dict) -> None:
    # Files created inside the container may be read-only for the host user
    config_path.chmod(config_path.stat().st_mode | stat.S_IWUSR)
    with open(config_path, "w", encoding="utf-8") as f:
        toml.dump(config, f)


def apply_config_values(
    config_file: Union[Path, str],
    values: dict,
    only_if_empty: bool = False,
) -> list[str]:
    """
    Apply dotted-key values to a TOML config file.

    Args:
        config_file: Path to config.toml or app.toml
        values: Mapping of dotted key to value
        only_if_empty: Skip keys that already hold a non-empty value

    Returns:
        The keys that were changed.

    Raises:
        ConfigurationError: If the file is missing or malformed.
    """
    config_path = Path(config_file)
    config = _load(config_path)

    changed = []
    for key, value in values.items():
        if only_if_empty and get_nested_config(config, key):
            console.print(f"[yellow]  {key} already set, leaving it as is[/yellow]")
            continue
        set_nested_config(config, key, value)
        changed.append(key)

    if changed:
        _dump(config_path, config)
    return changed


def apply_moniker(config_file: Union[Path, str], moniker: str) -> None:
    """Write the moniker into config.toml."""
    apply_config_values(config_file, {"moniker": moniker})


def apply_seeds(config_file: Union[Path, str], seed: str) -> list[str]:
    """Set seeds and persistent peers when they are empty."""
    return apply_config_values(
        config_file,
        {"p2p.seeds": seed, "p2p.persistent_peers": seed},
        only_if_empty=True,
    )


def apply_minimum_gas_prices(app_file: Union[Path, str], prices: str) -> list[str]:
    """Set minimum-gas-prices in app.toml when it is empty."""
    return apply_config_values(
        app_file, {"minimum-gas-prices": prices}, only_if_empty=True
    )


def download_file(url: str, dest: Union[Path, str], desc: str = "Downloading") -> Path:
    """
    Stream a file to disk with a progress bar.

    Raises:
        ConfigurationError: If the download fails. A partial file is removed.
    """
    dest_path = Path(dest)
    dest_path.parent.mkdir(parents=True, exist_ok=True)
    try:
        with requests.get(url, stream=True, timeout=DOWNLOAD_TIMEOUT) as resp:
            resp.raise_for_status()
            total = int(resp.headers.get("content-length", 0))
            with (
                open(dest_path, "wb") as f,
                tqdm(
                    desc=desc,
                    total=total,
                    unit="iB",
                    unit_scale=True,
                    unit_divisor=1024,
                ) as bar,
            ):
                for chunk in resp.iter_content(chunk_size=DOWNLOAD_CHUNK_SIZE):
                    if chunk:
                        f.write(chunk)
                        bar.update(len(chunk))
    except (requests.RequestException, OSError) as e:
        if dest_path.exists():
            try:
                dest_path.unlink()
            except OSError:
                pass
        raise ConfigurationError(
            f"Failed to download {url} ({type(e).__name__}): {e}",
            config_file=str(dest_path),
            code="DOWNLOAD_FAILED",
        ) from e
    return dest_path
