"""Network, aggregator and token constants."""

from typing import TypedDict


class NetworkConfig(TypedDict):
    chain_id: int
    zrx_api_url: str
    default_rpc_url: str


# 0x uses this placeholder as the token address of the chain's native asset.
NATIVE_TOKEN_ADDRESS = "0xEeeeeEeeeEeEeeEeEeEeeEEEeeeeEeeeeeeeEEeE"

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"

MAX_UINT256 = 2**256 - 1

# Price returned when the aggregator has no entry for an asset.
ZERO_PRICE = "0"

# Upper bound on the number of price records requested per sell token.
PRICES_PER_PAGE = 1000

NETWORKS: dict[str, NetworkConfig] = {
    "mainnet": {
        "chain_id": 1,
        "zrx_api_url": "https://api.0x.org",
        "default_rpc_url": "https://eth.drpc.org",
    },
    "polygon": {
        "chain_id": 137,
        "zrx_api_url": "https://polygon.api.0x.org",
        "default_rpc_url": "https://polygon.drpc.org",
    },
    "bsc": {
        "chain_id": 56,
        "zrx_api_url": "https://bsc.api.0x.org",
        "default_rpc_url": "https://bsc.drpc.org",
    },
    "optimism": {
        "chain_id": 10,
        "zrx_api_url": "https://optimism.api.0x.org",
        "default_rpc_url": "https://optimism.drpc.org",
    },
    "arbitrum": {
        "chain_id": 42161,
        "zrx_api_url": "https://arbitrum.api.0x.org",
        "default_rpc_url": "https://arbitrum.drpc.org",
    },
    "base": {
        "chain_id": 8453,
        "zrx_api_url": "https://base.api.0x.org",
        "default_rpc_url": "https://mainnet.base.org",
    },
    "sepolia": {
        "chain_id": 11155111,
        "zrx_api_url": "https://sepolia.api.0x.org",
        "default_rpc_url": "https://sepolia.drpc.org",
    },
}

# HTTP status codes worth retrying against the aggregator API.
RETRYABLE_STATUS_CODES = {429, 500, 502, 503, 504}
