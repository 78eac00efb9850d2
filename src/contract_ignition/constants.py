"""Configuration constants for contract-ignition library."""

# Shared signer secret for every network
DEFAULT_SIGNER_ENV = "DEPLOYER_PRIVATE_KEY"

# Solidity compilers available to every network unless a network overrides them
SOLIDITY_COMPILERS = [
    {"version": "0.8.19", "optimizer": {"enabled": True, "runs": 200}},
    {"version": "0.8.24", "optimizer": {"enabled": True, "runs": 200}},
]

# Seconds to wait for a transaction receipt before giving up on a run
DEFAULT_CONFIRMATION_TIMEOUT = 300

# Per-network settings. Chain ids follow ethereum-lists/chains.
# verification_env is None where no block explorer key is configured.
NETWORK_CONFIG = {
    "op": {
        "url": "https://mainnet.optimism.io",
        "rpc_env": "OP_RPC_URL",
        "chain_id": 10,
        "signer_env": DEFAULT_SIGNER_ENV,
        "verification_env": "OPSCAN_API_KEY",
        "block_explorer_url": "https://optimistic.etherscan.io",
    },
    "arb": {
        "url": "https://arb1.arbitrum.io/rpc",
        "rpc_env": "ARB_RPC_URL",
        "chain_id": 42161,
        "signer_env": DEFAULT_SIGNER_ENV,
        "verification_env": "ARBSCAN_API_KEY",
        "block_explorer_url": "https://arbiscan.io",
    },
    "base": {
        "url": "https://mainnet.base.org",
        "rpc_env": "BASE_RPC_URL",
        "chain_id": 8453,
        "signer_env": DEFAULT_SIGNER_ENV,
        "verification_env": "BASESCAN_API_KEY",
        "block_explorer_url": "https://basescan.org",
    },
    "polygon": {
        "url": "https://polygon-rpc.com",
        "rpc_env": "POLYGON_RPC_URL",
        "chain_id": 137,
        "signer_env": DEFAULT_SIGNER_ENV,
        "verification_env": None,
        "block_explorer_url": "https://polygonscan.com",
    },
    "sepolia": {
        "url": "https://rpc.sepolia.org",
        "rpc_env": "SEP_RPC_URL",
        "chain_id": 11155111,
        "signer_env": DEFAULT_SIGNER_ENV,
        "verification_env": None,
        "block_explorer_url": "https://sepolia.etherscan.io",
    },
}

# Default module definition file looked up by the CLI
DEFAULT_MODULES_FILE = "ignition_modules.py"
