"""
crowdsale-deployments: dependency-ordered deployment of linked contract artifacts
"""

from importlib.metadata import PackageNotFoundError, version

from .artifacts import infer_link_edges, load_artifacts, parse_artifact
from .exceptions import (
    ArtifactNotFoundError,
    CyclicDependencyError,
    DefectiveArtifactError,
    DeploymentError,
    DeploymentRejectedError,
    NetworkMismatchError,
    PlanError,
    UnknownArtifactError,
    UnresolvedDependencyError,
)
from .executor import DeploymentExecutor
from .networks import get_network_context
from .orchestrator import DeploymentOrchestrator, deploy
from .planner import plan_from_steps, resolve_order, resolve_plan, validate_order
from .registry import DeploymentRegistry, load_registry, save_registry
from .transport import JsonRpcTransport, Transport
from .types import (
    Artifact,
    ArtifactAddress,
    Deploy,
    DeploymentReport,
    Link,
    LinkEdge,
    NetworkContext,
    TransactionReceipt,
)

try:
    __version__ = version("crowdsale-deployments")
except PackageNotFoundError:
    __version__ = None

__all__ = [
    "DeploymentOrchestrator",
    "DeploymentExecutor",
    "DeploymentRegistry",
    "deploy",
    "resolve_order",
    "resolve_plan",
    "plan_from_steps",
    "validate_order",
    "get_network_context",
    "load_artifacts",
    "parse_artifact",
    "infer_link_edges",
    "load_registry",
    "save_registry",
    "Transport",
    "JsonRpcTransport",
    "Artifact",
    "ArtifactAddress",
    "Deploy",
    "Link",
    "LinkEdge",
    "NetworkContext",
    "TransactionReceipt",
    "DeploymentReport",
    "DeploymentError",
    "PlanError",
    "CyclicDependencyError",
    "UnknownArtifactError",
    "UnresolvedDependencyError",
    "DeploymentRejectedError",
    "NetworkMismatchError",
    "ArtifactNotFoundError",
    "DefectiveArtifactError",
]
