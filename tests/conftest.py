"""Shared pytest fixtures for crowdsale-deployments tests."""

import json
from pathlib import Path
from typing import Any, Dict, List, Sequence

import pytest

from crowdsale_deployments.linking import link_placeholder
from crowdsale_deployments.types import Artifact, NetworkContext, TransactionReceipt
from crowdsale_deployments.transport import Transport


class FakeTransport(Transport):
    """In-memory transport assigning sequential addresses."""

    def __init__(self, reject: Sequence[str] = ()):
        self.reject = set(reject)
        self.submitted: List[Dict[str, Any]] = []
        self._pending: Dict[str, str] = {}

    def submit_deployment(self, bytecode, args, abi, context):
        index = len(self.submitted) + 1
        transaction_hash = "0x" + f"{index:064x}"
        self.submitted.append(
            {"bytecode": bytecode, "args": list(args), "network": context.name}
        )
        self._pending[transaction_hash] = bytecode
        return transaction_hash

    def confirm_transaction(self, transaction_hash, context):
        bytecode = self._pending.pop(transaction_hash)
        if any(marker in bytecode for marker in self.reject):
            return TransactionReceipt(transaction_hash=transaction_hash, success=False)
        index = int(transaction_hash, 16)
        return TransactionReceipt(
            transaction_hash=transaction_hash,
            success=True,
            contract_address="0x" + f"{0xA000 + index:040x}",
            block_number=index,
        )

    @property
    def deployed_bytecodes(self) -> List[str]:
        return [item["bytecode"] for item in self.submitted]


def make_artifact(name: str, code: str, libraries: Sequence[str] = ()) -> Artifact:
    """Artifact whose bytecode holds placeholders for libraries."""
    bytecode = "0x6060" + code + "".join(link_placeholder(lib) for lib in libraries)
    return Artifact(name=name, bytecode=bytecode, abi=[])


@pytest.fixture
def fake_transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def development_context() -> NetworkContext:
    return NetworkContext(name="development", host="localhost", port=8555)


@pytest.fixture
def library_and_dependent() -> List[Artifact]:
    """A (no deps) and B (links A)."""
    return [make_artifact("A", "aa"), make_artifact("B", "bb", ["A"])]


@pytest.fixture
def registry_path(tmp_path: Path) -> Path:
    return tmp_path / ".crowdsale-deployments" / "deployments.json"


@pytest.fixture
def build_dir(tmp_path: Path) -> Path:
    """Truffle build directory with the crowdsale artifacts."""
    build = tmp_path / "build" / "contracts"
    build.mkdir(parents=True)

    contracts = {
        "BasicMathLib": ("01", []),
        "TokenLib": ("02", ["BasicMathLib"]),
        "LinkedListLib": ("03", []),
        "InteractiveCrowdsaleToken": ("04", ["TokenLib"]),
        "InteractiveCrowdsaleLib": ("05", ["BasicMathLib", "LinkedListLib", "TokenLib"]),
        "InteractiveCrowdsaleTestContract": ("06", ["InteractiveCrowdsaleLib"]),
    }
    for name, (code, libraries) in contracts.items():
        artifact = make_artifact(name, code, libraries)
        with open(build / f"{name}.json", "w") as f:
            json.dump(
                {"contractName": name, "abi": [], "bytecode": artifact.bytecode}, f, indent=2
            )

    # Interfaces compile to empty bytecode
    with open(build / "ERC20Interface.json", "w") as f:
        json.dump({"contractName": "ERC20Interface", "abi": [], "bytecode": "0x"}, f)

    return build


@pytest.fixture
def artifact_factory():
    """Return make_artifact for tests building their own graphs."""
    return make_artifact


@pytest.fixture
def transport_factory():
    """Return FakeTransport for tests needing rejecting transports."""
    return FakeTransport
