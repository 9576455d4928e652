"""
Port negotiation for the four network services of a validator node.

Roles are resolved in a fixed order (P2P, RPC, API, gRPC). Every selected port
goes into one claimed set, so a port chosen for an earlier role is unavailable
to later roles whatever the host reports. For each role the allocator tries,
in order:

1. the role's base port (its default, see ``ServicePort.after``),
2. the value persisted by a previous run,
3. a linear probe upward from the base, bounded to ``base + PORT_PROBE_WINDOW``.

Running out of the probe window is fatal: the operator has to free a port.
"""

import errno
import logging
import shutil
import socket
import subprocess
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Mapping, Optional

from safrobox.commands.constants import (
    DEFAULT_API_PORT,
    DEFAULT_GRPC_PORT,
    DEFAULT_P2P_PORT,
    DEFAULT_RPC_PORT,
    ENV_API_PORT,
    ENV_GRPC_PORT,
    ENV_P2P_PORT,
    ENV_RPC_PORT,
    MAX_PORT,
    MIN_PORT,
    PORT_PROBE_WINDOW,
    SOCKET_PROBE_HOST,
)
from safrobox.commands.errors import ConfigurationError, PortExhaustedError

logger = logging.getLogger(__name__)


class PortRole(str, Enum):
    P2P = "P2P"
    RPC = "RPC"
    API = "API"
    GRPC = "GRPC"


@dataclass(frozen=True)
class ServicePort:
    """A logical node service and the port it is published on.

    ``after`` names an earlier role whose chosen port pushes this role's base
    up by one when this role's default collides with it.
    """

    role: PortRole
    default: int
    container_port: int
    env_key: str
    after: Optional[PortRole] = None
    assigned: Optional[int] = None

    @property
    def binding(self) -> str:
        return f"{self.container_port}/tcp"


SERVICE_PORTS = (
    ServicePort(PortRole.P2P, DEFAULT_P2P_PORT, DEFAULT_P2P_PORT, ENV_P2P_PORT),
    ServicePort(
        PortRole.RPC,
        DEFAULT_RPC_PORT,
        DEFAULT_RPC_PORT,
        ENV_RPC_PORT,
        after=PortRole.P2P,
    ),
    ServicePort(PortRole.API, DEFAULT_API_PORT, DEFAULT_API_PORT, ENV_API_PORT),
    ServicePort(PortRole.GRPC, DEFAULT_GRPC_PORT, DEFAULT_GRPC_PORT, ENV_GRPC_PORT),
)
SERVICES = {service.role: service for service in SERVICE_PORTS}
ROLE_ORDER = tuple(service.role for service in SERVICE_PORTS)
DEFAULT_PORTS = {service.role: service.default for service in SERVICE_PORTS}
ENV_KEYS = {service.role: service.env_key for service in SERVICE_PORTS}

SOURCE_DEFAULT = "default"
SOURCE_PERSISTED = "persisted"
SOURCE_PROBED = "probed"


@dataclass
class PortAssignment:
    """The ports chosen for one node start, in role order."""

    ports: dict[PortRole, int]
    sources: dict[PortRole, str] = field(default_factory=dict)
    caveats: list[str] = field(default_factory=list)

    def __getitem__(self, role: PortRole) -> int:
        return self.ports[role]

    def items(self) -> list[tuple[PortRole, int]]:
        return [(role, self.ports[role]) for role in ROLE_ORDER if role in self.ports]

    @property
    def p2p(self) -> int:
        return self.ports[PortRole.P2P]

    @property
    def rpc(self) -> int:
        return self.ports[PortRole.RPC]

    @property
    def api(self) -> int:
        return self.ports[PortRole.API]

    @property
    def grpc(self) -> int:
        return self.ports[PortRole.GRPC]

    def as_env(self) -> dict[str, str]:
        return {ENV_KEYS[role]: str(port) for role, port in self.items()}

    def port_bindings(self) -> dict[str, int]:
        """Docker ``ports`` mapping from container port to host port."""
        return {SERVICES[role].binding: port for role, port in self.items()}

    def service_ports(self) -> list[ServicePort]:
        return [
            ServicePort(
                role=role,
                default=SERVICES[role].default,
                container_port=SERVICES[role].container_port,
                env_key=SERVICES[role].env_key,
                after=SERVICES[role].after,
                assigned=port,
            )
            for role, port in self.items()
        ]


def _local_port(line: str) -> Optional[int]:
    """Port of the first ``addr:port`` column in an ss/netstat row."""
    for token in line.split():
        if ":" not in token:
            continue
        tail = token.rsplit(":", 1)[1]
        return int(tail) if tail.isdigit() else None
    return None


class PortProbe:
    """Host port availability oracle.

    Looks at the listening-socket table through ``ss``, then ``netstat``, then
    falls back to test-binding the port. When none of these can answer, the
    port is assumed available and a single caveat is recorded in ``caveats``.
    """

    METHODS = ("ss", "netstat", "socket")

    def __init__(
        self,
        methods: tuple = METHODS,
        which: Callable[[str], Optional[str]] = shutil.which,
        runner: Callable = subprocess.run,
    ):
        self.methods = tuple(methods)
        self._which = which
        self._runner = runner
        self.caveats: list[str] = []

    def __call__(self, port: int) -> bool:
        return self.is_available(port)

    def is_available(self, port: int) -> bool:
        for method in self.methods:
            if method == "socket":
                verdict = self._check_bind(port)
            else:
                verdict = self._check_table(method, port)
            if verdict is not None:
                return verdict

        logger.debug("No probe method could check port %s", port)
        if not self.caveats:
            message = (
                "Neither ss, netstat, nor a socket probe is usable. "
                "Assuming the selected ports are available."
            )
            logger.warning(message)
            self.caveats.append(message)
        return True

    def _check_table(self, tool: str, port: int) -> Optional[bool]:
        if self._which(tool) is None:
            return None
        try:
            result = self._runner(
                [tool, "-tuln"], capture_output=True, text=True, check=False
            )
        except OSError as e:
            logger.debug("Failed to run %s: %s", tool, e)
            return None
        if result.returncode != 0:
            logger.debug("%s exited with %s", tool, result.returncode)
            return None
        for line in result.stdout.splitlines():
            if _local_port(line) == port:
                return False
        return True

    def _check_bind(self, port: int) -> Optional[bool]:
        try:
            with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
                s.bind((SOCKET_PROBE_HOST, port))
            return True
        except OSError as e:
            if e.errno == errno.EADDRINUSE:
                return False
            logger.debug("Socket probe of port %s inconclusive: %s", port, e)
            return None


def _check_range(role: PortRole, port: int, what: str) -> None:
    if not MIN_PORT <= port <= MAX_PORT:
        raise ConfigurationError(
            f"{what} {role.value} port {port} is outside {MIN_PORT}-{MAX_PORT}"
        )


def _base_port(
    service: ServicePort, defaults: Mapping[PortRole, int], chosen: dict
) -> int:
    default = defaults[service.role]
    if service.after is None or service.after not in chosen:
        return default
    leader = service.after
    if default == defaults[leader] or default == chosen[leader]:
        return chosen[leader] + 1
    return default


def allocate_ports(
    defaults: Optional[Mapping[PortRole, int]] = None,
    persisted: Optional[Mapping[PortRole, int]] = None,
    is_available: Optional[Callable[[int], bool]] = None,
    window: int = PORT_PROBE_WINDOW,
) -> PortAssignment:
    """Choose a port for every role.

    Args:
        defaults: Default port per role. Missing roles use the built-in defaults.
        persisted: Ports chosen by a previous run, used when a default is taken.
        is_available: Oracle returning True when a port is free on the host.
            Any ``caveats`` it exposes are copied onto the assignment.
        window: How far above the base port to search.

    Returns:
        PortAssignment with pairwise-distinct ports.

    Raises:
        PortExhaustedError: If a role has no usable port in its window.
        ConfigurationError: If a default port is out of range.
    """
    defaults = {**DEFAULT_PORTS, **(defaults or {})}
    persisted = dict(persisted or {})
    is_available = is_available or PortProbe()

    claimed: set[int] = set()
    chosen: dict[PortRole, int] = {}
    sources: dict[PortRole, str] = {}
    caveats: list[str] = []

    def usable(port: int) -> bool:
        return port not in claimed and is_available(port)

    for service in SERVICE_PORTS:
        role = service.role
        _check_range(role, defaults[role], "Default")
        base = _base_port(service, defaults, chosen)
        previous = persisted.get(role)

        if base <= MAX_PORT and usable(base):
            port, source = base, SOURCE_DEFAULT
        elif (
            previous is not None
            and MIN_PORT <= previous <= MAX_PORT
            and usable(previous)
        ):
            port, source = previous, SOURCE_PERSISTED
        else:
            if previous is not None:
                message = (
                    f"Port {previous} from .env is not available or already "
                    f"assigned to another service, finding alternative for {role.value}..."
                )
                logger.warning(message)
                caveats.append(message)
            port, source = _probe(role, base, usable, window), SOURCE_PROBED

        logger.debug("Selected %s port %s (%s)", role.value, port, source)
        claimed.add(port)
        chosen[role] = port
        sources[role] = source

    caveats.extend(getattr(is_available, "caveats", []))
    return PortAssignment(ports=chosen, sources=sources, caveats=caveats)


def _probe(
    role: PortRole, base: int, usable: Callable[[int], bool], window: int
) -> int:
    end = min(base + window, MAX_PORT)
    for port in range(base, end + 1):
        if usable(port):
            return port
    raise PortExhaustedError(role.value, base, end)
