"""
Persistent node settings kept in a line-oriented ``KEY=VALUE`` file.

Upserts rewrite only the line of the key being changed; every other line,
including keys this tool does not know about, comments and blank lines, is
written back verbatim.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Union

from safrobox.commands.constants import ENV_MONIKER
from safrobox.commands.ports import ENV_KEYS, PortAssignment, PortRole

logger = logging.getLogger(__name__)


@dataclass
class NodeConfig:
    """Settings persisted between invocations. Unset fields are None."""

    ports: dict[PortRole, int] = field(default_factory=dict)
    moniker: Optional[str] = None

    @property
    def is_empty(self) -> bool:
        return not self.ports and self.moniker is None


def _parse_line(line: str) -> Optional[tuple[str, str]]:
    stripped = line.strip()
    if not stripped or stripped.startswith("#") or "=" not in stripped:
        return None
    if stripped.startswith("export "):
        stripped = stripped[len("export ") :].lstrip()
    key, value = stripped.split("=", 1)
    value = value.strip()
    if len(value) >= 2 and value[0] == value[-1] and value[0] in ("'", '"'):
        value = value[1:-1]
    return key.strip(), value


class EnvStore:
    """Read and amend the ``.env`` file holding node settings."""

    def __init__(self, path: Union[Path, str]):
        self.path = Path(path)

    def _lines(self) -> list[str]:
        if not self.path.exists():
            return []
        with open(self.path, encoding="utf-8") as f:
            return f.read().splitlines()

    def read(self) -> dict[str, str]:
        """Return every key/value pair in file order. Later duplicates win."""
        values: dict[str, str] = {}
        for line in self._lines():
            parsed = _parse_line(line)
            if parsed is not None:
                values[parsed[0]] = parsed[1]
        return values

    def load(self) -> NodeConfig:
        """Load the node settings. A missing file yields an empty config."""
        raw = self.read()
        config = NodeConfig()
        for role, key in ENV_KEYS.items():
            value = raw.get(key)
            if not value:
                continue
            try:
                config.ports[role] = int(value)
            except ValueError:
                logger.warning(
                    "Ignoring non-numeric %s=%r in %s", key, value, self.path
                )
        moniker = raw.get(ENV_MONIKER)
        if moniker:
            config.moniker = moniker
        return config

    def upsert(self, key: str, value) -> None:
        """Set a single key, keeping all other lines untouched."""
        self.upsert_many({key: value})

    def upsert_many(self, values: dict[str, object]) -> None:
        """Set several keys in one rewrite of the file."""
        updates = {k: str(v) for k, v in values.items()}
        written = set()
        out = []
        for line in self._lines():
            parsed = _parse_line(line)
            if parsed is not None and parsed[0] in updates:
                key = parsed[0]
                out.append(f"{key}={updates[key]}")
                written.add(key)
                continue
            out.append(line)
        for key, value in updates.items():
            if key not in written:
                out.append(f"{key}={value}")

        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w", encoding="utf-8") as f:
            f.write("\n".join(out) + "\n")
        logger.debug("Wrote %s to %s", ", ".join(values), self.path)

    def save_assignment(self, assignment: PortAssignment) -> None:
        """Persist the four allocated ports."""
        self.upsert_many(
            {ENV_KEYS[role]: port for role, port in assignment.items()}
        )

    def save_moniker(self, moniker: str) -> None:
        self.upsert(ENV_MONIKER, moniker)
