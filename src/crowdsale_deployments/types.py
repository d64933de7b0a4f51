"""Data types and dataclasses for crowdsale-deployments library."""

from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Iterable, List, Optional, Union

from .linking import find_link_references, link_bytecode, references_library


@dataclass
class Artifact:
    """A named deployable unit of compiled bytecode plus its deployment state."""

    # Required fields
    name: str  # Contract name, e.g. "BasicMathLib"
    bytecode: str  # Creation bytecode template, may hold link placeholders
    abi: List[Dict[str, Any]] = field(default_factory=list)
    constructor_args: List[Any] = field(default_factory=list)

    # Deployment state
    address: Optional[str] = None
    transaction_hash: Optional[str] = None
    links: Dict[str, str] = field(default_factory=dict)  # library name -> address

    @property
    def deployed(self) -> bool:
        return self.address is not None

    @property
    def linked_bytecode(self) -> str:
        """Bytecode template with every bound library address substituted."""
        bytecode = self.bytecode
        for library, address in self.links.items():
            bytecode = link_bytecode(bytecode, library, address)
        return bytecode

    def references(self, library: str) -> bool:
        """Check whether the bytecode template references library."""
        return references_library(self.bytecode, library)

    def unresolved_libraries(self) -> List[str]:
        """Library names whose placeholders remain after applying bound links."""
        return find_link_references(self.linked_bytecode)

    def bind(self, library: str, address: str) -> None:
        """
        Bind a deployed library address into this artifact.

        Raises:
            ValueError: If the artifact is already deployed
        """
        if self.deployed:
            raise ValueError(f"Cannot link {library} into deployed artifact {self.name}")
        self.links[library] = address

    def mark_deployed(self, address: str, transaction_hash: Optional[str] = None) -> None:
        """
        Record the deployed address. An address is assigned at most once.

        Raises:
            ValueError: If the artifact already has an address
        """
        if self.deployed:
            raise ValueError(f"Artifact {self.name} is already deployed at {self.address}")
        self.address = address
        self.transaction_hash = transaction_hash

    def reset(self) -> None:
        """Return the artifact to the declared state (overwrite)."""
        self.address = None
        self.transaction_hash = None
        self.links = {}


@dataclass(frozen=True)
class LinkEdge:
    """Dependent's bytecode references library; library must deploy first."""

    library: str
    dependent: str


@dataclass(frozen=True)
class ArtifactAddress:
    """Constructor argument resolved to another artifact's deployed address."""

    name: str


def _network_set(networks: Optional[Iterable[str]]) -> Optional[FrozenSet[str]]:
    if networks is None:
        return None
    if isinstance(networks, str):
        return frozenset([networks])
    return frozenset(networks)


@dataclass(frozen=True)
class Deploy:
    """Deploy an artifact, optionally gated on network profile names."""

    artifact: str
    args: Optional[tuple] = None  # None means the artifact's constructor_args
    overwrite: bool = False
    networks: Optional[FrozenSet[str]] = None  # None means every network

    def __post_init__(self):
        object.__setattr__(self, "networks", _network_set(self.networks))
        if self.args is not None:
            object.__setattr__(self, "args", tuple(self.args))

    def __str__(self) -> str:
        return f"Deploy({self.artifact})"


@dataclass(frozen=True)
class Link:
    """Bind library's deployed address into dependent's bytecode."""

    library: str
    dependent: str
    networks: Optional[FrozenSet[str]] = None

    def __post_init__(self):
        object.__setattr__(self, "networks", _network_set(self.networks))

    def __str__(self) -> str:
        return f"Link({self.library}, {self.dependent})"


Step = Union[Deploy, Link]


@dataclass
class NetworkContext:
    """Connection parameters for one network profile."""

    name: str  # "development", "coverage" or "live"
    host: str
    port: int
    network_id: Optional[str] = None  # None matches any node
    gas: Optional[int] = None
    gas_price: Optional[int] = None
    from_address: Optional[str] = None
    rpc_url: Optional[str] = None

    def __post_init__(self):
        if self.rpc_url is None:
            self.rpc_url = f"http://{self.host}:{self.port}"

    def matches(self, networks: Optional[Iterable[str]]) -> bool:
        """Check a step's network predicate against this profile."""
        if networks is None:
            return True
        return self.name in networks


@dataclass
class TransactionReceipt:
    """Confirmed outcome of a submitted deployment transaction."""

    transaction_hash: str
    success: bool
    contract_address: Optional[str] = None
    block_number: Optional[int] = None
    gas_used: Optional[int] = None


@dataclass
class SkippedStep:
    step: Step
    reason: str  # "network" or "deployed"


@dataclass
class DeploymentReport:
    """Outcome of executing a plan, complete or partial."""

    network: str
    executed: List[Step] = field(default_factory=list)
    skipped: List[SkippedStep] = field(default_factory=list)
    addresses: Dict[str, str] = field(default_factory=dict)
    failed_step: Optional[Step] = None
    error: Optional[Exception] = None

    @property
    def succeeded(self) -> bool:
        return self.error is None
