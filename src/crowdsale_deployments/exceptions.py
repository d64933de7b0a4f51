"""Custom exception classes for crowdsale-deployments library."""


class DeploymentError(Exception):
    """Base exception for deployment-related errors."""

    pass


class PlanError(DeploymentError, ValueError):
    """Raised when a deployment plan is malformed."""

    pass


class CyclicDependencyError(PlanError):
    """Raised when the link graph contains a cycle."""

    def __init__(self, message: str, cycle=None):
        super().__init__(message)
        self.cycle = list(cycle or [])


class UnknownArtifactError(PlanError):
    """Raised when a step or link edge references an undeclared artifact."""

    pass


class UnresolvedDependencyError(DeploymentError, RuntimeError):
    """Raised when a library is used before it has been deployed."""

    pass


class DeploymentRejectedError(DeploymentError, RuntimeError):
    """Raised when the network rejects a deployment (reverted, out of gas, RPC failure)."""

    pass


class NetworkMismatchError(DeploymentError, ValueError):
    """Raised when a network profile is unknown or the node is on another network."""

    pass


class ArtifactNotFoundError(DeploymentError, FileNotFoundError):
    """Raised when a compiled artifact file or build directory is missing."""

    pass


class DefectiveArtifactError(DeploymentError, ValueError):
    """Raised when a compiled artifact is missing its bytecode or ABI."""

    pass
