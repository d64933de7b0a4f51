"""Main API for crowdsale-deployments library."""

import logging
from pathlib import Path
from typing import Iterable, List, Optional, Union

from .executor import DeploymentExecutor
from .networks import get_network_context
from .paths import get_registry_path
from .planner import plan_from_steps
from .registry import DeploymentRegistry, load_registry, save_registry
from .transport import JsonRpcTransport, Transport
from .types import Artifact, DeploymentReport, NetworkContext, Step

logger = logging.getLogger(__name__)


class DeploymentOrchestrator:
    """Plans and runs a migration against one network profile."""

    def __init__(
        self,
        artifacts: Iterable[Artifact],
        steps: Iterable[Step],
        network: Union[str, NetworkContext] = "development",
        transport: Optional[Transport] = None,
        registry_path: Optional[Union[Path, str]] = None,
    ):
        """
        Initialize the orchestrator.

        Args:
            artifacts: Declared artifacts, in declaration order
            steps: Deploy and Link steps, in any order
            network: Profile name or a ready NetworkContext
            transport: Network transport (defaults to JsonRpcTransport)
            registry_path: Path to deployments.json
                           If None, uses ./.crowdsale-deployments/deployments.json

        Raises:
            NetworkMismatchError: If the network profile is not configured
        """
        self.artifacts: List[Artifact] = list(artifacts)
        self.steps: List[Step] = list(steps)

        if isinstance(network, NetworkContext):
            self.context = network
        else:
            self.context = get_network_context(network)

        self.transport = transport if transport is not None else JsonRpcTransport()

        if registry_path is None:
            registry_path = get_registry_path()
        self.registry_path = Path(registry_path)

        self.registry: Optional[DeploymentRegistry] = None
        self.report: Optional[DeploymentReport] = None

    def plan(self) -> List[Step]:
        """
        Resolve the execution order without touching the network.

        Raises:
            CyclicDependencyError: If the link steps contain a cycle
            UnknownArtifactError: If a step names an undeclared artifact
        """
        return plan_from_steps(self.artifacts, self.steps)

    def run(self) -> DeploymentReport:
        """
        Plan, execute and persist a deployment run.

        The registry is saved even when a step fails, so artifacts deployed
        before the failure are not deployed again on the next run.

        Returns:
            DeploymentReport for the run

        Raises:
            CyclicDependencyError: Before any network interaction
            UnknownArtifactError: Before any network interaction
            UnresolvedDependencyError: When a step uses an undeployed library
            DeploymentRejectedError: When the network rejects a deployment
            NetworkMismatchError: When the node serves another network id
        """
        plan = self.plan()
        logger.info(
            "Running %d steps on %s (%s)", len(plan), self.context.name, self.context.rpc_url
        )

        self.transport.check_network(self.context)

        self.registry = load_registry(self.registry_path, self.context.name, self.artifacts)
        executor = DeploymentExecutor(self.registry, self.transport, self.context)
        try:
            self.report = executor.execute(plan)
        finally:
            self.report = executor.report
            save_registry(self.registry, self.registry_path)

        return self.report


def deploy(
    artifacts: Iterable[Artifact],
    steps: Iterable[Step],
    network: Union[str, NetworkContext] = "development",
    transport: Optional[Transport] = None,
    registry_path: Optional[Union[Path, str]] = None,
) -> DeploymentReport:
    """Run a migration in one call. See DeploymentOrchestrator."""
    return DeploymentOrchestrator(artifacts, steps, network, transport, registry_path).run()
