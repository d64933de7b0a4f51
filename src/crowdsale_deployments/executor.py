"""Sequential plan execution for crowdsale-deployments library."""

import logging
from typing import Any, List, Sequence

from .exceptions import DeploymentError, DeploymentRejectedError, UnresolvedDependencyError
from .registry import DeploymentRegistry
from .transport import Transport
from .types import (
    ArtifactAddress,
    Deploy,
    DeploymentReport,
    Link,
    NetworkContext,
    SkippedStep,
    Step,
)

logger = logging.getLogger(__name__)


class DeploymentExecutor:
    """
    Executes a plan one step at a time against a single network.

    Every deployment blocks until the transport confirms it. The first
    failing step aborts the rest of the plan; artifacts deployed before it
    stay deployed and are listed in ``report``.
    """

    def __init__(
        self,
        registry: DeploymentRegistry,
        transport: Transport,
        context: NetworkContext,
    ):
        self.registry = registry
        self.transport = transport
        self.context = context
        self.report = DeploymentReport(network=context.name)

    def execute(self, plan: Sequence[Step]) -> DeploymentReport:
        """
        Execute plan steps in order.

        Args:
            plan: Ordered Deploy and Link steps

        Returns:
            DeploymentReport of the executed and skipped steps

        Raises:
            UnresolvedDependencyError: If a library is used before deployment
            DeploymentRejectedError: If the network rejects a deployment
            UnknownArtifactError: If a step names an undeclared artifact
        """
        self.report = DeploymentReport(network=self.context.name)

        for step in plan:
            if not self.context.matches(step.networks):
                logger.debug("Skipping %s: not enabled on %s", step, self.context.name)
                self.report.skipped.append(SkippedStep(step, "network"))
                continue

            try:
                match step:
                    case Deploy():
                        executed = self.deploy(step)
                    case Link():
                        executed = self.link(step)
                    case _:
                        raise DeploymentError(f"Unsupported plan step: {step!r}")
            except Exception as e:
                logger.error("Aborting plan on %s at %s: %s", self.context.name, step, e)
                self.report.failed_step = step
                self.report.error = e
                self.report.addresses = self.registry.addresses()
                raise

            if executed:
                self.report.executed.append(step)
            else:
                self.report.skipped.append(SkippedStep(step, "deployed"))

        self.report.addresses = self.registry.addresses()
        return self.report

    def link(self, step: Link) -> bool:
        """
        Bind a deployed library's address into a dependent's bytecode.

        Returns:
            False if the dependent is already deployed (nothing to link)
        """
        library = self.registry.get(step.library)
        dependent = self.registry.get(step.dependent)

        if not library.deployed:
            raise UnresolvedDependencyError(
                f"Cannot link {library.name} into {dependent.name}: "
                f"{library.name} is not deployed"
            )

        if dependent.deployed:
            logger.debug("Skipping %s: %s already deployed", step, dependent.name)
            return False

        dependent.bind(library.name, library.address)
        logger.info("Linked %s (%s) into %s", library.name, library.address, dependent.name)
        return True

    def _resolve_args(self, args: Sequence[Any]) -> List[Any]:
        resolved = []
        for arg in args:
            if isinstance(arg, ArtifactAddress):
                referenced = self.registry.get(arg.name)
                if not referenced.deployed:
                    raise UnresolvedDependencyError(
                        f"Constructor argument references {arg.name}, which is not deployed"
                    )
                arg = referenced.address
            resolved.append(arg)
        return resolved

    def deploy(self, step: Deploy) -> bool:
        """
        Deploy an artifact unless it is already deployed.

        Returns:
            False if the deployment was skipped (already deployed, no overwrite)
        """
        artifact = self.registry.get(step.artifact)

        if artifact.deployed:
            if not step.overwrite:
                logger.debug(
                    "Skipping %s: already deployed at %s", step, artifact.address
                )
                return False

            # Re-bind referenced libraries at their current addresses
            artifact.reset()
            for library in self.registry:
                if library.deployed and artifact.references(library.name):
                    artifact.bind(library.name, library.address)

        unresolved = artifact.unresolved_libraries()
        if unresolved:
            raise UnresolvedDependencyError(
                f"Cannot deploy {artifact.name}: unlinked libraries {', '.join(unresolved)}"
            )

        args = self._resolve_args(
            step.args if step.args is not None else artifact.constructor_args
        )

        transaction_hash = self.transport.submit_deployment(
            artifact.linked_bytecode, args, artifact.abi, self.context
        )
        receipt = self.transport.confirm_transaction(transaction_hash, self.context)

        if not receipt.success or not receipt.contract_address:
            raise DeploymentRejectedError(
                f"Deployment of {artifact.name} failed in transaction {transaction_hash}"
            )

        artifact.mark_deployed(receipt.contract_address, transaction_hash)
        logger.info(
            "Deployed %s at %s on %s", artifact.name, artifact.address, self.context.name
        )
        return True
