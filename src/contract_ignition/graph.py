"""Future graph and dependency resolution for contract-ignition library."""

import heapq
from typing import Any, Dict, Iterator, List, Mapping, Optional, Set

from .exceptions import CyclicDependencyError, DuplicateFutureError, UnknownFutureError
from .types import Future, FutureRef, FutureStatus


def collect_refs(value: Any) -> List[FutureRef]:
    """
    Collect future references from an argument value, in argument order.

    Lists, tuples and dict values are searched recursively.
    """
    if isinstance(value, FutureRef):
        return [value]
    if isinstance(value, (list, tuple)):
        refs: List[FutureRef] = []
        for item in value:
            refs.extend(collect_refs(item))
        return refs
    if isinstance(value, dict):
        refs = []
        for item in value.values():
            refs.extend(collect_refs(item))
        return refs
    return []


def substitute(value: Any, results: Mapping[FutureRef, Any]) -> Any:
    """
    Replace every future reference in an argument value with its result.

    Raises:
        KeyError: If a referenced future has no result
    """
    if isinstance(value, FutureRef):
        return results[value]
    if isinstance(value, list):
        return [substitute(item, results) for item in value]
    if isinstance(value, tuple):
        return tuple(substitute(item, results) for item in value)
    if isinstance(value, dict):
        return {k: substitute(v, results) for k, v in value.items()}
    return value


class FutureGraph:
    """Union of the futures of every module reachable from a deployment target."""

    def __init__(self) -> None:
        self._futures: Dict[FutureRef, Future] = {}
        self.module_order: List[str] = []
        self.outputs: Dict[str, Dict[str, FutureRef]] = {}

    def add_module(self, name: str, outputs: Dict[str, FutureRef]) -> None:
        """Record a built module and its outputs (modules are added in build order)."""
        if name not in self.module_order:
            self.module_order.append(name)
        self.outputs[name] = dict(outputs)

    def add(self, future: Future) -> None:
        """
        Add a future to the graph.

        Raises:
            DuplicateFutureError: If a future with the same (module, id) exists
        """
        if future.ref in self._futures:
            raise DuplicateFutureError(f"Future '{future.key}' declared twice")
        self._futures[future.ref] = future

    def get(self, ref: FutureRef) -> Future:
        try:
            return self._futures[ref]
        except KeyError:
            raise UnknownFutureError(f"Future '{ref}' is not in the deployment graph") from None

    def __contains__(self, ref: object) -> bool:
        return ref in self._futures

    def __iter__(self) -> Iterator[Future]:
        return iter(self._futures.values())

    def __len__(self) -> int:
        return len(self._futures)

    def dependencies(self, future: Future) -> List[FutureRef]:
        """
        Get the futures a future depends on, without duplicates.

        Order: call target, input references, then explicit `after` refs.
        """
        refs: List[FutureRef] = []
        if isinstance(future.target, FutureRef):
            refs.append(future.target)
        refs.extend(collect_refs(future.inputs))
        refs.extend(future.after)

        seen: Set[FutureRef] = set()
        unique = []
        for ref in refs:
            if ref not in seen:
                seen.add(ref)
                unique.append(ref)
        return unique

    def dependents(self, ref: FutureRef) -> List[FutureRef]:
        """Get the futures that directly depend on a future."""
        return [f.ref for f in self if ref in self.dependencies(f)]

    def sort_key(self, future: Future) -> tuple[int, int]:
        try:
            module_rank = self.module_order.index(future.module)
        except ValueError:
            module_rank = len(self.module_order)
        return (module_rank, future.index)


def resolve_order(graph: FutureGraph) -> List[Future]:
    """
    Topologically order the futures of a graph (Kahn's algorithm).

    Among futures that are ready at the same time, the one whose module was
    built first wins, then declaration order within the module. The result
    is therefore identical across runs for the same graph.

    Args:
        graph: Future graph to order

    Returns:
        Futures in execution order; every future follows all its dependencies

    Raises:
        UnknownFutureError: If a future references a future not in the graph
        CyclicDependencyError: If some futures can never become ready
    """
    indeg: Dict[FutureRef, int] = {}
    adj: Dict[FutureRef, List[FutureRef]] = {f.ref: [] for f in graph}

    for future in graph:
        deps = graph.dependencies(future)
        for dep in deps:
            if dep not in graph:
                raise UnknownFutureError(
                    f"Future '{future.key}' references unknown future '{dep}'"
                )
            adj[dep].append(future.ref)
        indeg[future.ref] = len(deps)

    heap: List[tuple[tuple[int, int], str, FutureRef]] = []

    def push(ref: FutureRef) -> None:
        future = graph.get(ref)
        heapq.heappush(heap, (graph.sort_key(future), future.key, ref))

    for ref, degree in indeg.items():
        if degree == 0:
            push(ref)

    order: List[Future] = []
    while heap:
        _, _, ref = heapq.heappop(heap)
        order.append(graph.get(ref))

        for child in adj[ref]:
            indeg[child] -= 1
            if indeg[child] == 0:
                push(child)

    if len(order) != len(indeg):
        remaining = sorted(str(ref) for ref, degree in indeg.items() if degree > 0)
        raise CyclicDependencyError(
            f"Deployment graph has a cycle. Stuck futures: {remaining}",
            future_ids=remaining,
        )

    return order


def ready_futures(graph: FutureGraph, confirmed: Optional[Set[FutureRef]] = None) -> List[Future]:
    """
    Get pending futures whose dependencies are all confirmed, in tie-break order.

    Args:
        graph: Future graph
        confirmed: Confirmed refs (defaults to futures whose status is CONFIRMED)
    """
    if confirmed is None:
        confirmed = {f.ref for f in graph if f.status is FutureStatus.CONFIRMED}

    ready = [
        f
        for f in graph
        if f.ref not in confirmed
        and f.status in (FutureStatus.PENDING, FutureStatus.READY)
        and all(dep in confirmed for dep in graph.dependencies(f))
    ]
    return sorted(ready, key=graph.sort_key)
