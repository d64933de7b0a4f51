"""Configuration constants for crowdsale-deployments library."""

# Network profiles, mirroring the truffle network table the crowdsale was
# originally migrated with. network_id None matches any node.
NETWORK_CONFIG = {
    "development": {
        "host": "localhost",
        "port": 8555,
        "network_id": None,
        "rpc_env": "DEVELOPMENT_RPC_URL",
    },
    "coverage": {
        "host": "localhost",
        "port": 8555,
        "network_id": None,
        "gas": 0xFFFFFFFFFFF,  # solidity-coverage instrumented gas ceiling
        "gas_price": 0x01,
        "rpc_env": "COVERAGE_RPC_URL",
    },
    "live": {
        "host": "localhost",
        "port": 8545,
        "network_id": "1",
        "from": "0x475ded3e48d0182fd684e3f78a1ee17659482c3b",
        "gas": 6000000,
        "gas_price": 5000000000,
        "rpc_env": "LIVE_RPC_URL",
    },
}

# solc library placeholders are "__" + name, padded with "_" to 40 characters
LINK_PLACEHOLDER_LENGTH = 40
LINK_PLACEHOLDER_NAME_LENGTH = LINK_PLACEHOLDER_LENGTH - 4

# Receipt polling defaults for JsonRpcTransport
DEFAULT_POLL_INTERVAL = 1.0
DEFAULT_CONFIRMATION_TIMEOUT = 120.0
DEFAULT_RPC_TIMEOUT = 30
