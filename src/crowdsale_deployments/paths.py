"""Path management utilities for crowdsale-deployments library."""

from pathlib import Path
from typing import Optional, Union


def get_default_registry_dir() -> Path:
    """
    Get default registry directory (current working directory).

    Returns:
        Path to ./.crowdsale-deployments
    """
    return Path.cwd() / ".crowdsale-deployments"


def get_registry_path(registry_root: Optional[Union[Path, str]] = None) -> Path:
    """
    Get registry file path.

    Args:
        registry_root: Custom registry directory (defaults to ./.crowdsale-deployments)

    Returns:
        Path to deployments.json
    """
    if registry_root is None:
        registry_root = get_default_registry_dir()
    else:
        registry_root = Path(registry_root).absolute()

    return registry_root / "deployments.json"


def get_default_build_dir() -> Path:
    """Truffle's compiled artifact directory, relative to the working directory."""
    return Path.cwd() / "build" / "contracts"
