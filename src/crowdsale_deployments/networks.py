"""Network profile selection for crowdsale-deployments library."""

import os
from typing import Any, Dict, List, Optional

from .constants import NETWORK_CONFIG
from .exceptions import NetworkMismatchError
from .types import NetworkContext


def available_networks(config: Optional[Dict[str, Dict[str, Any]]] = None) -> List[str]:
    """Names of the configured network profiles."""
    return list((config if config is not None else NETWORK_CONFIG).keys())


def get_network_context(
    name: str,
    rpc_url: Optional[str] = None,
    config: Optional[Dict[str, Dict[str, Any]]] = None,
) -> NetworkContext:
    """
    Build the NetworkContext for a named profile.

    RPC URL precedence: explicit argument, then the profile's rpc_env
    environment variable, then http://host:port.

    Args:
        name: Profile name ("development", "coverage" or "live")
        rpc_url: Explicit RPC endpoint URL
        config: Profile table (defaults to NETWORK_CONFIG)

    Returns:
        NetworkContext for the profile

    Raises:
        NetworkMismatchError: If the profile is not configured
    """
    if config is None:
        config = NETWORK_CONFIG

    if name not in config:
        raise NetworkMismatchError(
            f"Network '{name}' not configured (available: {', '.join(config)})"
        )

    profile = config[name]

    if rpc_url is None and profile.get("rpc_env"):
        rpc_url = os.environ.get(profile["rpc_env"])

    network_id = profile.get("network_id")
    return NetworkContext(
        name=name,
        host=profile["host"],
        port=profile["port"],
        network_id=str(network_id) if network_id is not None else None,
        gas=profile.get("gas"),
        gas_price=profile.get("gas_price"),
        from_address=profile.get("from"),
        rpc_url=rpc_url,
    )
