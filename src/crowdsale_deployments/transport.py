"""Network transport boundary for crowdsale-deployments library."""

import logging
import time
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Sequence

import requests
from eth_abi import encode

from .constants import DEFAULT_CONFIRMATION_TIMEOUT, DEFAULT_POLL_INTERVAL, DEFAULT_RPC_TIMEOUT
from .exceptions import DeploymentRejectedError, NetworkMismatchError
from .types import NetworkContext, TransactionReceipt

logger = logging.getLogger(__name__)


class Transport(ABC):
    """
    Submits deployment transactions and waits for their confirmation.

    Signing, nonce management and gas estimation belong to the node or
    wallet behind the transport.
    """

    @abstractmethod
    def submit_deployment(
        self,
        bytecode: str,
        args: Sequence[Any],
        abi: List[Dict[str, Any]],
        context: NetworkContext,
    ) -> str:
        """
        Submit a contract creation transaction.

        Args:
            bytecode: Fully linked creation bytecode
            args: Constructor arguments
            abi: Contract ABI, used to encode the arguments
            context: Target network

        Returns:
            Transaction hash
        """
        ...

    @abstractmethod
    def confirm_transaction(
        self, transaction_hash: str, context: NetworkContext
    ) -> TransactionReceipt:
        """Block until the transaction is mined and return its receipt."""
        ...

    def check_network(self, context: NetworkContext) -> None:
        """Verify the endpoint serves the context's network. Accepts any by default."""
        return None


def encode_constructor_args(abi: List[Dict[str, Any]], args: Sequence[Any]) -> str:
    """
    ABI-encode constructor arguments as a hex string without 0x prefix.

    Args:
        abi: Contract ABI
        args: Constructor arguments

    Returns:
        Encoded arguments ("" when there are none)

    Raises:
        ValueError: If the argument count doesn't match the constructor
    """
    constructor = next((item for item in abi if item.get("type") == "constructor"), None)
    inputs = constructor.get("inputs", []) if constructor else []

    if len(inputs) != len(args):
        raise ValueError(
            f"Constructor takes {len(inputs)} arguments, {len(args)} given"
        )
    if not inputs:
        return ""

    return encode([item["type"] for item in inputs], list(args)).hex()


class JsonRpcTransport(Transport):
    """Transport speaking plain Ethereum JSON-RPC to an unlocked node."""

    def __init__(
        self,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        timeout: float = DEFAULT_CONFIRMATION_TIMEOUT,
        session: Optional[requests.Session] = None,
    ):
        self.poll_interval = poll_interval
        self.timeout = timeout
        self.session = session or requests.Session()
        self._request_id = 0

    def call(self, context: NetworkContext, method: str, params: List[Any]) -> Any:
        """
        Make a JSON-RPC call against the context's endpoint.

        Returns:
            The "result" member of the response

        Raises:
            DeploymentRejectedError: On HTTP, network or RPC errors
        """
        self._request_id += 1
        try:
            response = self.session.post(
                context.rpc_url,
                json={
                    "jsonrpc": "2.0",
                    "method": method,
                    "params": params,
                    "id": self._request_id,
                },
                timeout=DEFAULT_RPC_TIMEOUT,
            )
        except requests.RequestException as e:
            raise DeploymentRejectedError(f"Network error during {method}: {e}") from e

        if response.status_code != 200:
            raise DeploymentRejectedError(
                f"{method} failed with status {response.status_code}"
            )

        try:
            result = response.json()
        except ValueError as e:
            raise DeploymentRejectedError(f"Malformed response to {method}: {e}") from e
        if not isinstance(result, dict):
            raise DeploymentRejectedError(f"Malformed response to {method}: {result!r}")

        if "error" in result:
            raise DeploymentRejectedError(f"RPC error in {method}: {result['error']}")

        return result.get("result")

    def check_network(self, context: NetworkContext) -> None:
        """
        Verify the node serves the profile's fixed network id.

        Raises:
            NetworkMismatchError: If the node reports another network id
        """
        if context.network_id is None:
            return
        node_network_id = str(self.call(context, "net_version", []))
        if node_network_id != context.network_id:
            raise NetworkMismatchError(
                f"Network '{context.name}' expects network id {context.network_id}, "
                f"node at {context.rpc_url} reports {node_network_id}"
            )

    def default_account(self, context: NetworkContext) -> str:
        """The context's sender, or the node's first account."""
        if context.from_address:
            return context.from_address
        accounts = self.call(context, "eth_accounts", [])
        if not accounts:
            raise DeploymentRejectedError(f"Node at {context.rpc_url} has no accounts")
        return accounts[0]

    def submit_deployment(
        self,
        bytecode: str,
        args: Sequence[Any],
        abi: List[Dict[str, Any]],
        context: NetworkContext,
    ) -> str:
        try:
            encoded_args = encode_constructor_args(abi, args)
        except (TypeError, ValueError) as e:
            raise DeploymentRejectedError(f"Cannot encode constructor arguments: {e}") from e

        transaction: Dict[str, Any] = {
            "from": self.default_account(context),
            "data": bytecode + encoded_args,
        }
        if context.gas is not None:
            transaction["gas"] = hex(context.gas)
        if context.gas_price is not None:
            transaction["gasPrice"] = hex(context.gas_price)

        transaction_hash = self.call(context, "eth_sendTransaction", [transaction])
        logger.debug("Submitted deployment transaction %s", transaction_hash)
        return transaction_hash

    def confirm_transaction(
        self, transaction_hash: str, context: NetworkContext
    ) -> TransactionReceipt:
        deadline = time.monotonic() + self.timeout

        while True:
            receipt = self.call(context, "eth_getTransactionReceipt", [transaction_hash])
            if receipt is not None:
                break
            if time.monotonic() >= deadline:
                raise DeploymentRejectedError(
                    f"Transaction {transaction_hash} not mined within {self.timeout}s"
                )
            logger.debug("Waiting for receipt of %s", transaction_hash)
            time.sleep(self.poll_interval)

        # Pre-Byzantium receipts have no status field
        status = receipt.get("status")
        success = status is None or int(status, 16) == 1
        if success and not receipt.get("contractAddress"):
            success = False

        block_number = receipt.get("blockNumber")
        gas_used = receipt.get("gasUsed")
        return TransactionReceipt(
            transaction_hash=transaction_hash,
            success=success,
            contract_address=receipt.get("contractAddress"),
            block_number=int(block_number, 16) if block_number else None,
            gas_used=int(gas_used, 16) if gas_used else None,
        )
