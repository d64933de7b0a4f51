"""Deployment registry and its persistence for crowdsale-deployments library."""

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterable, List

from .exceptions import UnknownArtifactError
from .linking import is_address
from .types import Artifact

logger = logging.getLogger(__name__)


class DeploymentRegistry:
    """Artifacts and their deployment state for one network, scoped to one run."""

    def __init__(self, network: str, artifacts: Iterable[Artifact]):
        self.network = network
        self._artifacts: Dict[str, Artifact] = {}
        for artifact in artifacts:
            self._artifacts[artifact.name] = artifact

    def __contains__(self, name: str) -> bool:
        return name in self._artifacts

    def __iter__(self):
        return iter(self._artifacts.values())

    def get(self, name: str) -> Artifact:
        """
        Get a declared artifact by name.

        Raises:
            UnknownArtifactError: If the artifact was not declared
        """
        if name not in self._artifacts:
            raise UnknownArtifactError(f"Artifact '{name}' not declared in registry")
        return self._artifacts[name]

    def artifacts(self) -> List[Artifact]:
        return list(self._artifacts.values())

    def addresses(self) -> Dict[str, str]:
        """Map of deployed artifact name -> address."""
        return {
            artifact.name: artifact.address
            for artifact in self._artifacts.values()
            if artifact.address is not None
        }

    def to_dict(self) -> Dict[str, Any]:
        """Serializable deployment state of the deployed artifacts."""
        contracts: Dict[str, Any] = {}
        for artifact in self._artifacts.values():
            if not artifact.deployed:
                continue
            contracts[artifact.name] = {
                "address": artifact.address,
                "transaction_hash": artifact.transaction_hash,
                "links": dict(artifact.links),
            }
        return {"contracts": contracts}

    def apply(self, network_data: Dict[str, Any]) -> None:
        """
        Apply recorded deployment state to the declared artifacts.

        Names not declared in this registry are ignored, as are malformed
        records (no valid address, or links to invalid addresses).
        """
        contracts = network_data.get("contracts", {})
        if not isinstance(contracts, dict):
            logger.warning("Ignoring malformed contracts entry for %s", self.network)
            return

        for name, record in contracts.items():
            if name not in self._artifacts:
                continue
            if not _valid_record(record):
                logger.warning(
                    "Ignoring malformed registry record for %s on %s", name, self.network
                )
                continue
            artifact = self._artifacts[name]
            artifact.reset()
            artifact.links = dict(record.get("links", {}))
            artifact.mark_deployed(record["address"], record.get("transaction_hash"))


def _valid_record(record: Any) -> bool:
    if not isinstance(record, dict) or not is_address(record.get("address")):
        return False
    links = record.get("links", {})
    if not isinstance(links, dict):
        return False
    return all(is_address(address) for address in links.values())


def _read_registry_file(registry_path: Path) -> Dict[str, Any]:
    try:
        with open(registry_path) as f:
            data = json.load(f)
    except (FileNotFoundError, json.JSONDecodeError):
        return {}

    if not isinstance(data, dict):
        return {}
    if not isinstance(data.get("networks"), dict):
        data["networks"] = {}
    return data


def load_registry(
    registry_path: Path, network: str, artifacts: Iterable[Artifact]
) -> DeploymentRegistry:
    """
    Build a registry for a network, restoring state recorded by earlier runs.

    Every declared artifact is reset first, so state left on the artifact
    objects by a run against another network does not carry over.

    Args:
        registry_path: Path to deployments.json file
        network: Network profile name
        artifacts: Declared artifacts

    Returns:
        DeploymentRegistry; artifacts start undeployed if the file doesn't
        exist or is corrupted
    """
    registry = DeploymentRegistry(network, artifacts)
    for artifact in registry:
        artifact.reset()

    data = _read_registry_file(Path(registry_path))
    network_data = data["networks"].get(network) if data else None
    if isinstance(network_data, dict):
        registry.apply(network_data)
    return registry


def save_registry(registry: DeploymentRegistry, registry_path: Path) -> None:
    """
    Save a registry's deployment state to disk.

    Records are merged into what the file already holds: state of other
    networks, and of artifacts this run did not declare, is kept.

    Args:
        registry: Registry to persist
        registry_path: Path to deployments.json file

    Creates parent directories if they don't exist.
    """
    registry_path = Path(registry_path)
    data = _read_registry_file(registry_path)
    networks = data.setdefault("networks", {})

    network_data = networks.get(registry.network)
    if not isinstance(network_data, dict) or not isinstance(network_data.get("contracts"), dict):
        network_data = {"contracts": {}}
    network_data["contracts"].update(registry.to_dict()["contracts"])
    networks[registry.network] = network_data

    data["metadata"] = {
        "updated_at": datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S UTC"),
        "networks": sorted(networks.keys()),
    }

    registry_path.parent.mkdir(parents=True, exist_ok=True)
    with open(registry_path, "w") as f:
        json.dump(data, f, indent=2)
