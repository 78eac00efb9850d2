"""Shared pytest fixtures for contract-ignition tests."""

from pathlib import Path
from typing import Any, Dict, List, Optional

import pytest

from contract_ignition.exceptions import ConfirmationTimeoutError
from contract_ignition.modules import ModuleRegistry
from contract_ignition.networks import DeploymentConfig, resolve_network
from contract_ignition.transport import Transport
from contract_ignition.types import NetworkProfile, OperationReceipt


class RecordingTransport(Transport):
    """
    In-memory stand-in for the signing/broadcast layer.

    Deploys get sequential addresses (0x...01, 0x...02, ...). Artifacts or
    methods listed in `reject` raise on submit, those in `revert` produce a
    failed receipt, those in `stall` never confirm.
    """

    def __init__(self, reject=(), revert=(), stall=()):
        self.reject = set(reject)
        self.revert = set(revert)
        self.stall = set(stall)
        self.calls: List[tuple] = []
        self.lookups: List[str] = []
        self.network_checks: List[str] = []
        self.receipts: Dict[str, OperationReceipt] = {}
        self._counter = 0

    def _next_hash(self) -> str:
        self._counter += 1
        return f"0x{self._counter:064x}"

    def _submit(self, name: str, address: Optional[str]) -> str:
        if name in self.reject:
            raise RuntimeError(f"{name} rejected by node")
        tx_hash = self._next_hash()
        if name not in self.stall:
            self.receipts[tx_hash] = OperationReceipt(
                operation_id=tx_hash,
                succeeded=name not in self.revert,
                contract_address=address,
                block_number=self._counter,
            )
        return tx_hash

    def check_network(self, profile: NetworkProfile) -> None:
        self.network_checks.append(profile.name)

    def submit_deploy(self, artifact: str, args: List[Any], profile: NetworkProfile) -> str:
        self.calls.append(("deploy", artifact, list(args)))
        return self._submit(artifact, f"0x{self._counter + 1:040x}")

    def submit_call(self, address: str, method: str, args: List[Any], profile: NetworkProfile) -> str:
        self.calls.append(("call", address, method, list(args)))
        return self._submit(method, None)

    def wait_for(self, operation_id: str, profile: NetworkProfile) -> OperationReceipt:
        if operation_id not in self.receipts:
            raise ConfirmationTimeoutError(f"{operation_id} not confirmed")
        return self.receipts[operation_id]

    def lookup(self, operation_id: str, profile: NetworkProfile) -> Optional[OperationReceipt]:
        self.lookups.append(operation_id)
        return self.receipts.get(operation_id)

    @property
    def deployed(self) -> List[str]:
        return [c[1] for c in self.calls if c[0] == "deploy"]


@pytest.fixture
def environ() -> Dict[str, str]:
    """Secrets for every default network."""
    return {
        "DEPLOYER_PRIVATE_KEY": "0x" + "11" * 32,
        "OPSCAN_API_KEY": "op-key",
        "ARBSCAN_API_KEY": "arb-key",
        "BASESCAN_API_KEY": "base-key",
    }


@pytest.fixture
def config(environ: Dict[str, str]) -> DeploymentConfig:
    return DeploymentConfig.from_env(environ)


@pytest.fixture
def profile(config: DeploymentConfig) -> NetworkProfile:
    return resolve_network("sepolia", config)


@pytest.fixture
def transport() -> RecordingTransport:
    return RecordingTransport()


@pytest.fixture
def make_transport():
    """Factory for RecordingTransports with rejecting/reverting/stalling operations."""
    return RecordingTransport


@pytest.fixture
def journal_root(tmp_path: Path) -> Path:
    """Temporary root directory for file journals."""
    root = tmp_path / ".contract-ignition" / "deployments"
    root.mkdir(parents=True, exist_ok=True)
    return root


@pytest.fixture
def price_market_registry() -> ModuleRegistry:
    """Price deploys with no inputs; Market takes Price's address."""
    registry = ModuleRegistry()

    @registry.module("Price")
    def price(m):
        return {"price": m.contract("DefaultPriceModel")}

    @registry.module("Market")
    def market(m):
        price_ref = m.use_module("Price")["price"]
        return {"market": m.contract("MarketCore", [price_ref])}

    return registry
