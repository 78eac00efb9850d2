"""Module definitions and registry for contract-ignition library."""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence

from .exceptions import (
    ConfigurationError,
    CyclicDependencyError,
    DuplicateFutureError,
    DuplicateModuleError,
    ModuleDefinitionError,
    UnknownModuleError,
)
from .graph import FutureGraph, collect_refs
from .types import Future, FutureKind, FutureRef

logger = logging.getLogger(__name__)

_MISSING = object()

ModuleOutputs = Dict[str, FutureRef]
Builder = Callable[["ModuleBuilder"], Mapping[str, FutureRef]]


@dataclass(frozen=True)
class Module:
    """A named deployment module and the builder that declares its futures."""

    name: str
    builder: Builder


def build_module(name: str, builder: Builder) -> Module:
    """
    Define a module outside of a registry.

    Example:
        price = build_module("Price", lambda m: {"dp": m.contract("DefaultPriceModel")})
        registry.add(price)
    """
    if not name or "." in name:
        raise ModuleDefinitionError(f"Invalid module name '{name}'")
    return Module(name=name, builder=builder)


@dataclass
class BuildContext:
    """
    Per-run build state shared by every module built in one invocation.

    Attributes:
        parameters: Module parameters keyed by module name, then parameter name
        graph: Accumulated futures of every module built so far
    """

    parameters: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    graph: FutureGraph = field(default_factory=FutureGraph)
    _built: Dict[str, ModuleOutputs] = field(default_factory=dict, repr=False)
    _building: List[str] = field(default_factory=list, repr=False)


class ModuleBuilder:
    """Accumulates the futures a module declares. Passed to module builders as `m`."""

    def __init__(self, name: str, context: BuildContext, registry: "ModuleRegistry"):
        self.name = name
        self._context = context
        self._registry = registry
        self._futures: List[Future] = []
        self._ids: set = set()

    @property
    def futures(self) -> List[Future]:
        return list(self._futures)

    def _declare(self, kind: FutureKind, id: Optional[str], **attrs: Any) -> FutureRef:
        index = len(self._futures)
        future_id = f"future{index}" if id is None else id

        if not isinstance(future_id, str) or not future_id or "." in future_id:
            raise ModuleDefinitionError(
                f"Module '{self.name}': invalid future id {future_id!r}"
            )
        if future_id in self._ids:
            raise DuplicateFutureError(
                f"Module '{self.name}' declares future '{future_id}' twice"
            )

        future = Future(module=self.name, id=future_id, kind=kind, index=index, **attrs)
        self._ids.add(future_id)
        self._futures.append(future)
        return future.ref

    @staticmethod
    def _check_after(after: Iterable[Any]) -> List[FutureRef]:
        after = list(after)
        for item in after:
            if not isinstance(item, FutureRef):
                raise ModuleDefinitionError(f"'after' entries must be future refs, got {item!r}")
        return after

    def contract(
        self,
        artifact: str,
        args: Sequence[Any] = (),
        id: Optional[str] = None,
        after: Iterable[FutureRef] = (),
    ) -> FutureRef:
        """Declare a deploy future for a compiled contract artifact."""
        if not artifact:
            raise ModuleDefinitionError(f"Module '{self.name}': contract artifact name required")
        return self._declare(
            FutureKind.DEPLOY,
            id,
            artifact=artifact,
            inputs=list(args),
            after=self._check_after(after),
        )

    def call(
        self,
        target: Any,
        method: str,
        args: Sequence[Any] = (),
        id: Optional[str] = None,
        after: Iterable[FutureRef] = (),
    ) -> FutureRef:
        """Declare a call future on a deployed contract (a future ref or a literal address)."""
        if not method:
            raise ModuleDefinitionError(f"Module '{self.name}': call method name required")
        return self._declare(
            FutureKind.CALL,
            id,
            target=target,
            method=method,
            inputs=list(args),
            after=self._check_after(after),
        )

    def value(self, literal: Any, id: Optional[str] = None) -> FutureRef:
        """Declare a constant. Its result is the literal itself."""
        if collect_refs(literal):
            raise ModuleDefinitionError(
                f"Module '{self.name}': value futures cannot contain future refs"
            )
        return self._declare(FutureKind.VALUE, id, inputs=[literal])

    def get_parameter(self, name: str, default: Any = _MISSING, id: Optional[str] = None) -> FutureRef:
        """
        Declare a value future holding a module parameter from the build context.

        Raises:
            ConfigurationError: If the parameter is not supplied and has no default
        """
        params = self._context.parameters.get(self.name, {})
        if name in params:
            literal = params[name]
        elif default is not _MISSING:
            literal = default
        else:
            raise ConfigurationError(
                f"Module '{self.name}' requires parameter '{name}'"
            )
        return self.value(literal, id=id)

    def use_module(self, name: str) -> ModuleOutputs:
        """Build another module (once per run) and return its outputs."""
        return self._registry.build(name, self._context)

    def ref(self, future_id: str, module: Optional[str] = None) -> FutureRef:
        """Explicit reference to a future by id, in this module unless another is named."""
        return FutureRef(module or self.name, future_id)


class ModuleRegistry:
    """Holds named deployment modules."""

    def __init__(self) -> None:
        self._modules: Dict[str, Module] = {}

    def register(self, name: str, builder: Builder) -> Module:
        """
        Register a module builder.

        Raises:
            DuplicateModuleError: If the name is already registered
        """
        if name in self._modules:
            raise DuplicateModuleError(f"Module '{name}' is already registered")
        module = build_module(name, builder)
        self._modules[name] = module
        return module

    def add(self, module: Module) -> Module:
        """Register a module created with build_module()."""
        return self.register(module.name, module.builder)

    def module(self, name: str) -> Callable[[Builder], Builder]:
        """Decorator form of register()."""

        def decorator(builder: Builder) -> Builder:
            self.register(name, builder)
            return builder

        return decorator

    def __contains__(self, name: object) -> bool:
        return name in self._modules

    def names(self) -> List[str]:
        return sorted(self._modules.keys())

    def build(self, name: str, context: BuildContext) -> ModuleOutputs:
        """
        Build a module and the modules it uses, depth-first.

        Builds are memoized per context: a module is built at most once.

        Args:
            name: Module name
            context: Build context for this run

        Returns:
            The module's named output refs

        Raises:
            UnknownModuleError: If the module is not registered
            CyclicDependencyError: If the module (transitively) uses itself
            ModuleDefinitionError: If the builder returns invalid outputs
        """
        if name in context._built:
            return context._built[name]

        if name not in self._modules:
            raise UnknownModuleError(
                f"Module '{name}' is not registered (known modules: {self.names()})"
            )

        if name in context._building:
            chain = context._building[context._building.index(name):] + [name]
            raise CyclicDependencyError(
                f"Modules use each other in a cycle: {' -> '.join(chain)}",
                future_ids=chain[:-1],
            )

        context._building.append(name)
        try:
            m = ModuleBuilder(name, context, self)
            outputs = self._modules[name].builder(m)
        finally:
            context._building.pop()

        outputs = self._check_outputs(name, outputs, m, context)

        for future in m.futures:
            context.graph.add(future)
        context.graph.add_module(name, outputs)
        context._built[name] = outputs

        logger.debug("Built module %s: %d futures", name, len(m.futures))
        return outputs

    @staticmethod
    def _check_outputs(
        name: str, outputs: Any, m: ModuleBuilder, context: BuildContext
    ) -> ModuleOutputs:
        if outputs is None:
            return {}
        if not isinstance(outputs, Mapping):
            raise ModuleDefinitionError(
                f"Module '{name}' must return a mapping of output names to futures, "
                f"got {type(outputs).__name__}"
            )

        own_ids = {f.id for f in m.futures}
        checked: ModuleOutputs = {}
        for key, ref in outputs.items():
            if not isinstance(ref, FutureRef):
                raise ModuleDefinitionError(
                    f"Module '{name}' output '{key}' is not a future ({ref!r})"
                )
            if ref.module == name:
                declared = ref.future_id in own_ids
            else:
                # Outputs may re-export futures of modules used while building
                declared = ref.module in context._built and ref in context.graph
            if not declared:
                raise ModuleDefinitionError(
                    f"Module '{name}' output '{key}' refers to undeclared future '{ref}'"
                )
            checked[str(key)] = ref
        return checked

    def build_graph(self, name: str, context: Optional[BuildContext] = None) -> FutureGraph:
        """
        Build a target module and return the graph of every reachable future.

        Args:
            name: Target module name
            context: Build context (a fresh one when omitted)

        Returns:
            FutureGraph with modules in build order
        """
        if context is None:
            context = BuildContext()
        self.build(name, context)
        return context.graph
