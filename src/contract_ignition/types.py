"""Data types and dataclasses for contract-ignition library."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple


class FutureKind(Enum):
    """
    Kinds of deferred work.

    - DEPLOY: create a contract instance from an artifact and constructor args
    - CALL: invoke a method on an already-deployed instance
    - VALUE: a literal with no network effect
    """

    DEPLOY = "deploy"
    CALL = "call"
    VALUE = "value"


class FutureStatus(Enum):
    """Lifecycle of a future within one run."""

    PENDING = "pending"
    READY = "ready"
    EXECUTING = "executing"
    CONFIRMED = "confirmed"
    FAILED = "failed"


class EntryStatus(Enum):
    """
    Journal entry states.

    Values are the strings stored in journal files.
    """

    STARTED = "started"
    CONFIRMED = "confirmed"
    FAILED = "failed"
    CLEARED = "cleared"


@dataclass(frozen=True)
class FutureRef:
    """Typed reference to a future, possibly owned by another module."""

    module: str
    future_id: str

    def __str__(self) -> str:
        return f"{self.module}.{self.future_id}"

    @classmethod
    def parse(cls, key: str) -> "FutureRef":
        """Parse "Module.future_id" (the module name may not contain dots)."""
        module, sep, future_id = key.partition(".")
        if not sep or not module or not future_id:
            raise ValueError(f"Invalid future key '{key}', expected 'Module.future_id'")
        return cls(module, future_id)


@dataclass
class Future:
    """A deferred unit of deployment/call/value work."""

    module: str
    id: str
    kind: FutureKind
    index: int  # Declaration order within the owning module
    inputs: List[Any] = field(default_factory=list)

    # DEPLOY
    artifact: Optional[str] = None

    # CALL: target is a FutureRef to a deploy future or a literal address
    target: Any = None
    method: Optional[str] = None

    # Ordering-only dependencies
    after: List[FutureRef] = field(default_factory=list)

    status: FutureStatus = FutureStatus.PENDING
    result: Any = None

    @property
    def ref(self) -> FutureRef:
        return FutureRef(self.module, self.id)

    @property
    def key(self) -> str:
        return str(self.ref)


@dataclass(frozen=True)
class CompilerSettings:
    """Solidity compiler version and optimizer settings."""

    version: str
    optimizer_enabled: bool = True
    optimizer_runs: int = 200


@dataclass(frozen=True)
class NetworkProfile:
    """Resolved connection, signing and versioning parameters for one network."""

    name: str
    endpoint_url: str
    chain_id: int
    signer_credential_ref: str
    compilers: Tuple[CompilerSettings, ...]
    verification_credential_ref: Optional[str] = None
    block_explorer_url: Optional[str] = None
    confirmation_timeout: float = 300

    # Secrets stay out of repr/logs
    signer_credential: str = field(default="", repr=False)
    verification_credential: Optional[str] = field(default=None, repr=False)

    @property
    def compiler_versions(self) -> List[str]:
        return [c.version for c in self.compilers]


@dataclass(frozen=True)
class OperationReceipt:
    """Outcome of a deploy/call primitive as observed on the network."""

    operation_id: str  # Transaction hash
    succeeded: bool
    contract_address: Optional[str] = None
    return_value: Any = None
    block_number: Optional[int] = None


@dataclass(frozen=True)
class JournalEntry:
    """One durable record of a future's outcome."""

    module: str
    future_id: str
    status: EntryStatus
    result: Any = None
    operation_id: Optional[str] = None
    error: Optional[str] = None
    recorded_at: Optional[str] = None

    @property
    def key(self) -> str:
        return f"{self.module}.{self.future_id}"

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "module": self.module,
            "future_id": self.future_id,
            "status": self.status.value,
            "result": self.result,
        }
        if self.operation_id is not None:
            data["operation_id"] = self.operation_id
        if self.error is not None:
            data["error"] = self.error
        if self.recorded_at is not None:
            data["recorded_at"] = self.recorded_at
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "JournalEntry":
        return cls(
            module=data["module"],
            future_id=data["future_id"],
            status=EntryStatus(data["status"]),
            result=data.get("result"),
            operation_id=data.get("operation_id"),
            error=data.get("error"),
            recorded_at=data.get("recorded_at"),
        )


@dataclass
class DeploymentResult:
    """Final results of a run."""

    namespace: str
    network: str
    results: Dict[str, Any] = field(default_factory=dict)  # "Module.id" -> result
    outputs: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    executed: List[str] = field(default_factory=list)
    reused: List[str] = field(default_factory=list)

    def address_of(self, module: str, output: str) -> Any:
        """Result of a named module output (an address for deploy futures)."""
        return self.outputs[module][output]
