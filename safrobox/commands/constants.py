"""
Constants and configuration values used across the safrobox codebase.
"""

# Node binary and container
NODE_BINARY = "safrochaind"
DEFAULT_IMAGE = "safrochain/safrochaind:local"
DEFAULT_CONTAINER_NAME = "safrochain-validator"
HELPER_IMAGE = "alpine:latest"
CONTAINER_HOME = "/data"
DEFAULT_DATA_DIR = "data"
DEFAULT_ENV_FILE = ".env"
NODE_LABEL = "safrochain.node"

# Chain parameters
DEFAULT_CHAIN_ID = "safro-testnet-1"
DEFAULT_KEYRING_BACKEND = "test"
DEFAULT_MONIKER = "safrochain-validator"
DEFAULT_WALLET_NAME = "validator-wallet"

# Network ports (inside the container these never change)
DEFAULT_P2P_PORT = 26656
DEFAULT_RPC_PORT = 26657
DEFAULT_API_PORT = 1317
DEFAULT_GRPC_PORT = 9090

# Port allocation
PORT_PROBE_WINDOW = 100  # ports searched above the base port per role
MIN_PORT = 1
MAX_PORT = 65535
PORT_RELEASE_GRACE = 2  # seconds to let the OS release sockets of a stopped node
SOCKET_PROBE_HOST = "0.0.0.0"

# .env keys
ENV_P2P_PORT = "SAFROCHAIN_P2P_PORT"
ENV_RPC_PORT = "SAFROCHAIN_RPC_PORT"
ENV_API_PORT = "SAFROCHAIN_API_PORT"
ENV_GRPC_PORT = "SAFROCHAIN_GRPC_PORT"
ENV_MONIKER = "SAFROCHAIN_MONIKER"

# Remote endpoints
GENESIS_URL = "https://genesis.safrochain.com/testnet/genesis.json"
FAUCET_PAGE_URL = "https://faucet.safrochain.com"
FAUCET_API_URL = "https://faucet.testnet.safrochain.com/request"
DEFAULT_SEED = "2242a526e7841e7e8a551aabc4614e6cd612e7fb@88.99.211.113:26656"
MINIMUM_GAS_PRICES = "0.001usaf"

# Transactions
VALIDATOR_GAS_PRICES = "0.075usaf"
CREATE_VALIDATOR_GAS = 200000
EDIT_VALIDATOR_GAS = 100000
VALIDATOR_SELF_STAKE = "1000000usaf"
VALIDATOR_DETAILS = "Safrochain Validator"
COMMISSION_RATE = "0.1"
COMMISSION_MAX_RATE = "0.2"
COMMISSION_MAX_CHANGE_RATE = "0.01"
MIN_SELF_DELEGATION = "1"
VALIDATOR_FILE = "validator.json"

# Timeouts and intervals
CONTAINER_STOP_TIMEOUT = 10  # seconds
NODE_STARTUP_WAIT = 2  # seconds for the container to settle after start
MONITOR_POLL_INTERVAL = 10  # seconds between status polls
DOWNLOAD_TIMEOUT = 60  # seconds
HTTP_TIMEOUT = 30  # seconds
DOWNLOAD_CHUNK_SIZE = 8192

# Error messages
ERROR_NODE_NOT_RUNNING = "Safrochain validator container {node} is not running."
HINT_START_NODE = "Please start the validator with: safrobox start"
