"""Primitive deploy/call operations for contract-ignition library."""

import logging
import time
from typing import Any, Callable, Dict, List, Optional, Protocol

import requests

from .exceptions import ConfigurationError, ConfirmationTimeoutError
from .rpc import RpcClient
from .types import NetworkProfile, OperationReceipt

logger = logging.getLogger(__name__)


class Transport:
    """
    Primitive operation surface used by the execution engine.

    Each primitive is split into submit (returns an operation id, e.g. a
    transaction hash) and wait_for (blocks until confirmed), so the engine can
    journal the operation id in between. lookup() re-queries the outcome of
    an operation submitted by an earlier, interrupted run.
    """

    def check_network(self, profile: NetworkProfile) -> None:
        """Verify the endpoint serves the profile's chain. Default: no check."""

    def submit_deploy(self, artifact: str, args: List[Any], profile: NetworkProfile) -> str:
        raise NotImplementedError

    def submit_call(
        self, address: str, method: str, args: List[Any], profile: NetworkProfile
    ) -> str:
        raise NotImplementedError

    def wait_for(self, operation_id: str, profile: NetworkProfile) -> OperationReceipt:
        raise NotImplementedError

    def lookup(self, operation_id: str, profile: NetworkProfile) -> Optional[OperationReceipt]:
        raise NotImplementedError

    def deploy_contract(
        self, artifact: str, args: List[Any], profile: NetworkProfile
    ) -> OperationReceipt:
        """Deploy a contract and wait for confirmation."""
        return self.wait_for(self.submit_deploy(artifact, args, profile), profile)

    def call_contract(
        self, address: str, method: str, args: List[Any], profile: NetworkProfile
    ) -> OperationReceipt:
        """Call a contract method and wait for confirmation."""
        return self.wait_for(self.submit_call(address, method, args, profile), profile)


class TransactionSender(Protocol):
    """
    Signing/broadcast layer. Encodes, signs and broadcasts transactions and
    returns their hashes; nonce management is its concern.
    """

    def send_deploy(self, artifact: str, args: List[Any], profile: NetworkProfile) -> str: ...

    def send_call(
        self, address: str, method: str, args: List[Any], profile: NetworkProfile
    ) -> str: ...


def parse_receipt(receipt: Dict[str, Any]) -> OperationReceipt:
    """
    Convert a JSON-RPC transaction receipt into an OperationReceipt.

    Args:
        receipt: Receipt object from eth_getTransactionReceipt

    Returns:
        OperationReceipt (succeeded is False for reverted transactions)
    """
    status = receipt.get("status")
    block_number = receipt.get("blockNumber")

    return OperationReceipt(
        operation_id=receipt["transactionHash"],
        succeeded=status is not None and int(status, 16) == 1,
        contract_address=receipt.get("contractAddress"),
        block_number=int(block_number, 16) if block_number else None,
    )


class JsonRpcTransport(Transport):
    """
    Transport that broadcasts through a TransactionSender and observes
    outcomes over JSON-RPC.
    """

    def __init__(
        self,
        sender: TransactionSender,
        poll_interval: float = 2.0,
        session: Optional[requests.Session] = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.sender = sender
        self.poll_interval = poll_interval
        self._session = session
        self._sleep = sleep
        self._clock = clock
        self._clients: Dict[str, RpcClient] = {}

    def _client(self, profile: NetworkProfile) -> RpcClient:
        if profile.endpoint_url not in self._clients:
            self._clients[profile.endpoint_url] = RpcClient(
                profile.endpoint_url, session=self._session
            )
        return self._clients[profile.endpoint_url]

    def check_network(self, profile: NetworkProfile) -> None:
        """
        Raises:
            ConfigurationError: If the endpoint reports a different chain id
        """
        actual = self._client(profile).chain_id()
        if actual != profile.chain_id:
            raise ConfigurationError(
                f"Endpoint for network '{profile.name}' serves chain {actual}, "
                f"expected {profile.chain_id}"
            )

    def submit_deploy(self, artifact: str, args: List[Any], profile: NetworkProfile) -> str:
        tx_hash = self.sender.send_deploy(artifact, args, profile)
        logger.info("Sent deployment of %s on %s: %s", artifact, profile.name, tx_hash)
        return tx_hash

    def submit_call(
        self, address: str, method: str, args: List[Any], profile: NetworkProfile
    ) -> str:
        tx_hash = self.sender.send_call(address, method, args, profile)
        logger.info("Sent %s to %s on %s: %s", method, address, profile.name, tx_hash)
        return tx_hash

    def lookup(self, operation_id: str, profile: NetworkProfile) -> Optional[OperationReceipt]:
        receipt = self._client(profile).get_transaction_receipt(operation_id)
        if receipt is None:
            return None
        return parse_receipt(receipt)

    def wait_for(self, operation_id: str, profile: NetworkProfile) -> OperationReceipt:
        """
        Poll for a receipt until the profile's confirmation timeout.

        Raises:
            ConfirmationTimeoutError: If no receipt appears in time
            RpcError: If the endpoint fails
        """
        deadline = self._clock() + profile.confirmation_timeout
        while True:
            receipt = self.lookup(operation_id, profile)
            if receipt is not None:
                return receipt
            if self._clock() >= deadline:
                raise ConfirmationTimeoutError(
                    f"Transaction {operation_id} not confirmed on '{profile.name}' "
                    f"after {profile.confirmation_timeout:g}s"
                )
            self._sleep(self.poll_interval)
