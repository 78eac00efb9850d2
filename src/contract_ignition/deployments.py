"""Main API for contract-ignition library."""

import logging
import runpy
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from .engine import ExecutionEngine
from .exceptions import ModuleDefinitionError
from .graph import resolve_order
from .journal import DeploymentJournal, FileJournal
from .modules import BuildContext, Module, ModuleRegistry
from .networks import DeploymentConfig, resolve_network
from .paths import default_namespace
from .transport import Transport
from .types import DeploymentResult, JournalEntry

logger = logging.getLogger(__name__)


def load_modules_file(path: Union[Path, str]) -> ModuleRegistry:
    """
    Load module definitions from a python file.

    The file must define either:
      - registry = ModuleRegistry() with modules registered on it
      - MODULES = [Module, ...] built with build_module()

    Args:
        path: Path to the module definition file

    Returns:
        ModuleRegistry

    Raises:
        FileNotFoundError: If the file does not exist
        ModuleDefinitionError: If the file defines neither registry nor MODULES
    """
    modules_path = Path(path).expanduser().resolve()
    if not modules_path.exists():
        raise FileNotFoundError(f"Module file not found: {modules_path}")
    if modules_path.suffix != ".py":
        raise ModuleDefinitionError(f"Module file must be a .py file, got: {modules_path.name}")

    globals_dict = runpy.run_path(str(modules_path), run_name=f"ignition_{modules_path.stem}")

    registry = globals_dict.get("registry")
    if isinstance(registry, ModuleRegistry):
        return registry

    modules = globals_dict.get("MODULES")
    if isinstance(modules, (list, tuple)) and all(isinstance(m, Module) for m in modules):
        registry = ModuleRegistry()
        for module in modules:
            registry.add(module)
        return registry

    raise ModuleDefinitionError(
        f"{modules_path.name} must define `registry = ModuleRegistry()` "
        "or `MODULES = [build_module(...), ...]`"
    )


def plan(
    module: str,
    registry: ModuleRegistry,
    parameters: Optional[Dict[str, Dict[str, Any]]] = None,
) -> List[str]:
    """
    Resolve the execution order of a module without touching any network.

    Returns:
        Future keys ("Module.future_id") in execution order

    Raises:
        UnknownModuleError, CyclicDependencyError, ...: On definition errors
    """
    graph = registry.build_graph(module, BuildContext(parameters=parameters or {}))
    return [f.key for f in resolve_order(graph)]


def deploy(
    module: str,
    registry: ModuleRegistry,
    network: str,
    transport: Transport,
    config: Optional[DeploymentConfig] = None,
    parameters: Optional[Dict[str, Dict[str, Any]]] = None,
    namespace: Optional[str] = None,
    journal_root: Optional[Union[Path, str]] = None,
    journal: Optional[DeploymentJournal] = None,
) -> DeploymentResult:
    """
    Deploy a module (and every module it uses) to a network.

    Configuration and graph definition errors are raised before any network
    interaction. Re-running against the same namespace resumes: confirmed
    futures are reused, the rest are executed.

    Args:
        module: Target module name
        registry: Registry holding the module definitions
        network: Network identifier (e.g. "op", "sepolia")
        transport: Primitive operation layer
        config: Network configuration (defaults to DeploymentConfig.from_env())
        parameters: Module parameters keyed by module name
        namespace: Deployment namespace (defaults to "chain-<chain_id>")
        journal_root: Root directory for file journals
        journal: Journal to use instead of a FileJournal

    Returns:
        DeploymentResult

    Raises:
        ConfigurationError: If the network cannot be resolved
        UnknownModuleError, CyclicDependencyError, ...: On definition errors
        JournalLockedError: If another run holds the namespace
        ExecutionError: If a future fails (prior confirmations are kept)
        ReconciliationAmbiguous: If an interrupted operation cannot be resolved
    """
    if config is None:
        config = DeploymentConfig.from_env()

    profile = resolve_network(network, config)

    graph = registry.build_graph(module, BuildContext(parameters=parameters or {}))
    order = resolve_order(graph)

    if journal is None:
        journal = FileJournal(namespace or default_namespace(profile.chain_id), journal_root)

    logger.info(
        "Deploying %s to %s (namespace %s, %d futures)",
        module,
        profile.name,
        journal.namespace,
        len(order),
    )

    with journal.lock():
        transport.check_network(profile)
        engine = ExecutionEngine(profile, transport, journal)
        return engine.run(graph, order)


def deployment_status(
    namespace: str, journal_root: Optional[Union[Path, str]] = None
) -> Dict[str, JournalEntry]:
    """
    Get the current journal entry of every future in a namespace.

    Reading does not take the writer lock.

    Returns:
        Dictionary mapping "Module.future_id" -> JournalEntry
    """
    return FileJournal(namespace, journal_root).entries()
