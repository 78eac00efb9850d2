"""Custom exception classes for contract-ignition library."""

from typing import Iterable, Optional


class DeploymentError(Exception):
    """Base exception for deployment-related errors."""

    pass


class ConfigurationError(DeploymentError, ValueError):
    """Raised when a network is unknown or a required setting/secret is missing."""

    pass


class DuplicateModuleError(DeploymentError, ValueError):
    """Raised when a module name is registered twice."""

    pass


class UnknownModuleError(DeploymentError, ValueError):
    """Raised when a requested module is not registered."""

    pass


class DuplicateFutureError(DeploymentError, ValueError):
    """Raised when two futures share the same id within a module."""

    pass


class UnknownFutureError(DeploymentError, ValueError):
    """Raised when a future references a future that is not in the graph."""

    pass


class ModuleDefinitionError(DeploymentError, ValueError):
    """Raised when a module builder returns something other than named future refs."""

    pass


class CyclicDependencyError(DeploymentError, ValueError):
    """Raised when futures (or modules) depend on each other in a cycle."""

    def __init__(self, message: str, future_ids: Iterable[str] = ()):
        super().__init__(message)
        self.future_ids = list(future_ids)


class ExecutionError(DeploymentError, RuntimeError):
    """Raised when a deploy/call primitive fails for a future."""

    def __init__(
        self,
        message: str,
        module: Optional[str] = None,
        future_id: Optional[str] = None,
    ):
        super().__init__(message)
        self.module = module
        self.future_id = future_id

    @property
    def future_key(self) -> Optional[str]:
        if self.module is None or self.future_id is None:
            return None
        return f"{self.module}.{self.future_id}"


class ReconciliationAmbiguous(ExecutionError):
    """Raised when an interrupted operation's on-chain outcome cannot be determined."""

    pass


class JournalError(DeploymentError):
    """Raised when the deployment journal rejects a write or cannot be read."""

    pass


class JournalLockedError(JournalError):
    """Raised when another writer holds the journal lock for a namespace."""

    pass


class RpcError(DeploymentError, RuntimeError):
    """Raised when a JSON-RPC request fails or returns an error object."""

    pass


class ConfirmationTimeoutError(DeploymentError, TimeoutError):
    """Raised when a submitted operation is not confirmed within the network's timeout."""

    pass
