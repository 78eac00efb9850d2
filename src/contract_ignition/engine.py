"""Execution engine: runs a resolved future graph against a network."""

import logging
from typing import Any, Dict, List, Optional

from .exceptions import (
    ConfirmationTimeoutError,
    ExecutionError,
    ReconciliationAmbiguous,
    RpcError,
)
from .graph import FutureGraph, resolve_order, substitute
from .journal import DeploymentJournal
from .transport import Transport
from .types import (
    DeploymentResult,
    EntryStatus,
    Future,
    FutureKind,
    FutureRef,
    FutureStatus,
    JournalEntry,
    NetworkProfile,
    OperationReceipt,
)

logger = logging.getLogger(__name__)


class ExecutionEngine:
    """
    Executes futures one at a time in resolved order.

    Confirmed journal entries are adopted instead of re-executed, interrupted
    operations are reconciled against the network, and the first failure
    aborts the run with every later future left pending.
    """

    def __init__(self, profile: NetworkProfile, transport: Transport, journal: DeploymentJournal):
        self.profile = profile
        self.transport = transport
        self.journal = journal
        self._results: Dict[FutureRef, Any] = {}

    def run(self, graph: FutureGraph, order: Optional[List[Future]] = None) -> DeploymentResult:
        """
        Execute every future of a graph.

        Args:
            graph: Future graph built by the module registry
            order: Pre-computed resolution order (computed when omitted)

        Returns:
            DeploymentResult with per-future results and module outputs

        Raises:
            ExecutionError: If a primitive fails or a future failed in an earlier run
            ReconciliationAmbiguous: If an interrupted operation's outcome is unknown
        """
        if order is None:
            order = resolve_order(graph)

        self._results = {}
        deployment = DeploymentResult(namespace=self.journal.namespace, network=self.profile.name)

        # Failed futures need caller intervention before anything else runs
        for future in order:
            entry = self.journal.get(future.module, future.id)
            if entry is not None and entry.status is EntryStatus.FAILED:
                future.status = FutureStatus.FAILED
                raise ExecutionError(
                    f"Future '{future.key}' failed in a previous run ({entry.error}). "
                    f"Clear its journal entry to retry it.",
                    module=future.module,
                    future_id=future.id,
                )

        for future in order:
            entry = self.journal.get(future.module, future.id)

            if entry is not None and entry.status is EntryStatus.CONFIRMED:
                self._confirm(future, entry.result)
                deployment.reused.append(future.key)
                logger.info("Skipping %s: already confirmed (%s)", future.key, entry.result)
            elif entry is not None and entry.status is EntryStatus.STARTED:
                self._reconcile(future, entry)
                deployment.reused.append(future.key)
            else:
                self._execute(graph, future)
                deployment.executed.append(future.key)

            deployment.results[future.key] = future.result

        deployment.outputs = {
            module: {name: self._results[ref] for name, ref in outputs.items()}
            for module, outputs in graph.outputs.items()
        }

        self.journal.write_addresses(
            {f.key: f.result for f in order if f.kind is FutureKind.DEPLOY}
        )
        return deployment

    def _confirm(self, future: Future, result: Any) -> None:
        future.result = result
        future.status = FutureStatus.CONFIRMED
        self._results[future.ref] = result

    def _fail(self, future: Future, message: str, operation_id: Optional[str] = None) -> ExecutionError:
        future.status = FutureStatus.FAILED
        self.journal.record(
            JournalEntry(
                module=future.module,
                future_id=future.id,
                status=EntryStatus.FAILED,
                operation_id=operation_id,
                error=message,
            )
        )
        logger.error("Future %s failed: %s", future.key, message)
        return ExecutionError(
            f"Future '{future.key}' failed: {message}",
            module=future.module,
            future_id=future.id,
        )

    def _result_of(self, future: Future, receipt: OperationReceipt) -> Any:
        if future.kind is FutureKind.DEPLOY:
            return receipt.contract_address
        if receipt.return_value is not None:
            return receipt.return_value
        return receipt.operation_id

    def _finish(self, future: Future, receipt: OperationReceipt) -> None:
        """Journal a receipt's outcome, then confirm or fail the future."""
        if not receipt.succeeded:
            raise self._fail(
                future, f"transaction {receipt.operation_id} reverted", receipt.operation_id
            )
        if future.kind is FutureKind.DEPLOY and not receipt.contract_address:
            raise self._fail(
                future,
                f"transaction {receipt.operation_id} created no contract",
                receipt.operation_id,
            )

        result = self._result_of(future, receipt)
        self.journal.record(
            JournalEntry(
                module=future.module,
                future_id=future.id,
                status=EntryStatus.CONFIRMED,
                result=result,
                operation_id=receipt.operation_id,
            )
        )
        self._confirm(future, result)
        logger.info("Confirmed %s: %s", future.key, result)

    def _reconcile(self, future: Future, entry: JournalEntry) -> None:
        """Resolve an operation that an interrupted run submitted but never saw confirmed."""
        future.status = FutureStatus.EXECUTING

        if entry.operation_id is None:
            raise ReconciliationAmbiguous(
                f"Future '{future.key}' was started by an earlier run but no transaction "
                f"hash was recorded; check the signer's transactions, then clear the entry.",
                module=future.module,
                future_id=future.id,
            )

        logger.info("Reconciling %s with transaction %s", future.key, entry.operation_id)
        try:
            receipt = self.transport.lookup(entry.operation_id, self.profile)
        except RpcError as e:
            raise ReconciliationAmbiguous(
                f"Could not query transaction {entry.operation_id} of '{future.key}': {e}",
                module=future.module,
                future_id=future.id,
            ) from e

        if receipt is None:
            raise ReconciliationAmbiguous(
                f"Transaction {entry.operation_id} of '{future.key}' has no receipt yet; "
                f"it may still be pending or may have been dropped.",
                module=future.module,
                future_id=future.id,
            )

        self._finish(future, receipt)

    def _execute(self, graph: FutureGraph, future: Future) -> None:
        for dep in graph.dependencies(future):
            if graph.get(dep).status is not FutureStatus.CONFIRMED:
                raise ExecutionError(
                    f"Future '{future.key}' depends on unconfirmed future '{dep}'",
                    module=future.module,
                    future_id=future.id,
                )
        future.status = FutureStatus.READY

        if future.kind is FutureKind.VALUE:
            future.status = FutureStatus.EXECUTING
            literal = future.inputs[0]
            self.journal.put(future.module, future.id, literal)
            self._confirm(future, literal)
            logger.debug("Confirmed value %s", future.key)
            return

        args = substitute(future.inputs, self._results)
        future.status = FutureStatus.EXECUTING

        # Marker first: an interruption from here on is detected next run
        self.journal.record(
            JournalEntry(module=future.module, future_id=future.id, status=EntryStatus.STARTED)
        )

        try:
            if future.kind is FutureKind.DEPLOY:
                logger.info("Deploying %s (%s)", future.key, future.artifact)
                operation_id = self.transport.submit_deploy(future.artifact, args, self.profile)
            else:
                address = substitute(future.target, self._results)
                logger.info("Calling %s.%s for %s", address, future.method, future.key)
                operation_id = self.transport.submit_call(address, future.method, args, self.profile)
        except Exception as e:
            raise self._fail(future, str(e) or type(e).__name__) from e

        self.journal.record(
            JournalEntry(
                module=future.module,
                future_id=future.id,
                status=EntryStatus.STARTED,
                operation_id=operation_id,
            )
        )

        try:
            receipt = self.transport.wait_for(operation_id, self.profile)
        except (ConfirmationTimeoutError, RpcError) as e:
            raise ReconciliationAmbiguous(
                f"Outcome of '{future.key}' (transaction {operation_id}) is unknown: {e}. "
                f"The next run will query it again.",
                module=future.module,
                future_id=future.id,
            ) from e

        self._finish(future, receipt)
