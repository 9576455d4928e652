"""
Commands module - All available CLI commands.
"""

from safrobox.commands.errors import (
    CommandError,
    ConfigurationError,
    DockerUnavailableError,
    NodeError,
    NodeNotRunningError,
    PortExhaustedError,
    PreconditionError,
    RetrievalError,
    SafroboxError,
    ValidationError,
)
from safrobox.commands.node_setup import configure, init
from safrobox.commands.start import start, stop
from safrobox.commands.status import monitor, status
from safrobox.commands.validator import (
    edit_validator_command,
    register_validator_command,
    validator_status_command,
)
from safrobox.commands.wallet import (
    balance_command,
    create_wallet_command,
    faucet_command,
    import_mnemonic_command,
    import_private_key_command,
)

__all__ = [
    # Commands
    "init",
    "configure",
    "create_wallet_command",
    "import_mnemonic_command",
    "import_private_key_command",
    "start",
    "register_validator_command",
    "edit_validator_command",
    "validator_status_command",
    "faucet_command",
    "status",
    "balance_command",
    "stop",
    "monitor",
    # Error classes
    "SafroboxError",
    "PreconditionError",
    "DockerUnavailableError",
    "PortExhaustedError",
    "RetrievalError",
    "ValidationError",
    "NodeError",
    "NodeNotRunningError",
    "CommandError",
    "ConfigurationError",
]
