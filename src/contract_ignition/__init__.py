"""
contract-ignition: declarative, resumable deployment of interdependent contracts
"""

from importlib.metadata import PackageNotFoundError, version

from .deployments import deploy, deployment_status, load_modules_file, plan
from .engine import ExecutionEngine
from .exceptions import (
    ConfigurationError,
    ConfirmationTimeoutError,
    CyclicDependencyError,
    DeploymentError,
    DuplicateFutureError,
    DuplicateModuleError,
    ExecutionError,
    JournalError,
    JournalLockedError,
    ModuleDefinitionError,
    ReconciliationAmbiguous,
    RpcError,
    UnknownFutureError,
    UnknownModuleError,
)
from .graph import FutureGraph, resolve_order
from .journal import DeploymentJournal, FileJournal, MemoryJournal
from .modules import BuildContext, Module, ModuleBuilder, ModuleRegistry, build_module
from .networks import DeploymentConfig, resolve_network
from .transport import JsonRpcTransport, Transport, TransactionSender
from .types import (
    DeploymentResult,
    Future,
    FutureKind,
    FutureRef,
    FutureStatus,
    JournalEntry,
    NetworkProfile,
    OperationReceipt,
)

try:
    __version__ = version("contract-ignition")
except PackageNotFoundError:
    __version__ = None

__all__ = [
    "deploy",
    "deployment_status",
    "load_modules_file",
    "plan",
    "ExecutionEngine",
    "FutureGraph",
    "resolve_order",
    "DeploymentJournal",
    "FileJournal",
    "MemoryJournal",
    "BuildContext",
    "Module",
    "ModuleBuilder",
    "ModuleRegistry",
    "build_module",
    "DeploymentConfig",
    "resolve_network",
    "Transport",
    "TransactionSender",
    "JsonRpcTransport",
    "DeploymentResult",
    "Future",
    "FutureKind",
    "FutureRef",
    "FutureStatus",
    "JournalEntry",
    "NetworkProfile",
    "OperationReceipt",
    "DeploymentError",
    "ConfigurationError",
    "DuplicateModuleError",
    "UnknownModuleError",
    "DuplicateFutureError",
    "UnknownFutureError",
    "ModuleDefinitionError",
    "CyclicDependencyError",
    "ExecutionError",
    "ReconciliationAmbiguous",
    "ConfirmationTimeoutError",
    "JournalError",
    "JournalLockedError",
    "RpcError",
]
