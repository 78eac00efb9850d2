"""Deployment journal: durable record of future outcomes for contract-ignition library."""

import json
import logging
import os
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Union

from .exceptions import JournalError, JournalLockedError
from .paths import get_journal_paths
from .types import EntryStatus, JournalEntry

logger = logging.getLogger(__name__)


def _now() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S UTC")


def load_deployed_addresses(addresses_path: Path) -> Dict[str, str]:
    """
    Load deployed_addresses.json or return empty dict.

    Args:
        addresses_path: Path to deployed_addresses.json

    Returns:
        Dictionary mapping "Module.future_id" -> address
        Empty dict if file doesn't exist or is corrupted
    """
    try:
        with open(addresses_path) as f:
            return json.load(f)
    except (FileNotFoundError, json.JSONDecodeError):
        return {}


class DeploymentJournal:
    """
    Append-only record of future outcomes keyed by (module, future id).

    The latest entry for a key is its current state. A confirmed entry is
    final: nothing can be recorded for that key afterwards.
    """

    def __init__(self, namespace: str = "memory"):
        self.namespace = namespace
        self._history: List[JournalEntry] = []
        self._latest: Dict[tuple[str, str], JournalEntry] = {}

    def _apply(self, entry: JournalEntry) -> None:
        self._history.append(entry)
        self._latest[(entry.module, entry.future_id)] = entry

    def _append(self, entry: JournalEntry) -> None:
        """Persist one entry. In-memory journals have nothing to persist."""

    def get(self, module: str, future_id: str) -> Optional[JournalEntry]:
        """
        Get the current entry for a future.

        Returns:
            Latest JournalEntry, or None if absent or cleared
        """
        entry = self._latest.get((module, future_id))
        if entry is None or entry.status is EntryStatus.CLEARED:
            return None
        return entry

    def record(self, entry: JournalEntry) -> JournalEntry:
        """
        Append an entry.

        Raises:
            JournalError: If the future already has a confirmed entry
        """
        current = self._latest.get((entry.module, entry.future_id))
        if current is not None and current.status is EntryStatus.CONFIRMED:
            raise JournalError(
                f"Future '{entry.key}' is already confirmed in namespace "
                f"'{self.namespace}' and cannot be overwritten"
            )

        if entry.recorded_at is None:
            entry = JournalEntry(
                module=entry.module,
                future_id=entry.future_id,
                status=entry.status,
                result=entry.result,
                operation_id=entry.operation_id,
                error=entry.error,
                recorded_at=_now(),
            )

        self._append(entry)
        self._apply(entry)
        logger.debug("Journal %s: %s -> %s", self.namespace, entry.key, entry.status.value)
        return entry

    def put(self, module: str, future_id: str, result: Any) -> JournalEntry:
        """Record a confirmed result for a future."""
        return self.record(
            JournalEntry(module=module, future_id=future_id, status=EntryStatus.CONFIRMED, result=result)
        )

    def clear(self, module: str, future_id: str) -> JournalEntry:
        """
        Clear a failed or started entry so the future runs again next time.

        Raises:
            JournalError: If there is nothing to clear or the entry is confirmed
        """
        current = self.get(module, future_id)
        if current is None:
            raise JournalError(f"No journal entry for '{module}.{future_id}' to clear")
        if current.status is EntryStatus.CONFIRMED:
            raise JournalError(
                f"Future '{current.key}' is confirmed; confirmed entries cannot be cleared"
            )
        return self.record(
            JournalEntry(module=module, future_id=future_id, status=EntryStatus.CLEARED)
        )

    def entries(self) -> Dict[str, JournalEntry]:
        """Current (non-cleared) entry per future, keyed "Module.future_id"."""
        return {
            entry.key: entry
            for entry in self._latest.values()
            if entry.status is not EntryStatus.CLEARED
        }

    def history(self) -> List[JournalEntry]:
        """Every entry in the order it was recorded."""
        return list(self._history)

    def write_addresses(self, addresses: Dict[str, str]) -> None:
        """Publish the deployed addresses of a namespace. No-op in memory."""

    @contextmanager
    def lock(self) -> Iterator["DeploymentJournal"]:
        """Hold the single-writer lock for the namespace. No-op in memory."""
        yield self


class MemoryJournal(DeploymentJournal):
    """Journal that lives only as long as the process (tests, dry runs)."""

    pass


class FileJournal(DeploymentJournal):
    """
    Journal persisted as JSON Lines, one entry per line.

    Each write is a single appended line, flushed and fsynced, so an entry is
    either fully present or (torn by a crash) ignored on the next load.
    """

    def __init__(self, namespace: str, journal_root: Optional[Union[Path, str]] = None):
        super().__init__(namespace)
        self.path, self.lock_path, self.addresses_path = get_journal_paths(
            namespace, journal_root
        )
        self._load()

    def _load(self) -> None:
        try:
            with open(self.path) as f:
                lines = f.read().splitlines()
        except FileNotFoundError:
            return

        for lineno, line in enumerate(lines, start=1):
            if not line.strip():
                continue
            try:
                entry = JournalEntry.from_dict(json.loads(line))
            except (json.JSONDecodeError, KeyError, ValueError, TypeError):
                # Torn write from an interrupted run; the entry never completed
                logger.warning("Ignoring unreadable journal line %d in %s", lineno, self.path)
                continue
            self._apply(entry)

    def _append(self, entry: JournalEntry) -> None:
        try:
            line = json.dumps(entry.to_dict(), sort_keys=True)
        except (TypeError, ValueError) as e:
            raise JournalError(f"Result of '{entry.key}' is not JSON serializable: {e}") from e

        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "a+b") as f:
            # Start on a fresh line if a previous write was torn
            f.seek(0, os.SEEK_END)
            if f.tell() > 0:
                f.seek(-1, os.SEEK_END)
                if f.read(1) != b"\n":
                    f.write(b"\n")
            f.write(line.encode("utf-8") + b"\n")
            f.flush()
            os.fsync(f.fileno())

    def write_addresses(self, addresses: Dict[str, str]) -> None:
        """
        Merge addresses into deployed_addresses.json next to the journal.

        Earlier runs in the same namespace may have deployed other modules, so
        existing keys are kept. The file is replaced atomically.
        """
        merged = load_deployed_addresses(self.addresses_path)
        merged.update(addresses)

        self.addresses_path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.addresses_path.with_suffix(".json.tmp")
        with open(tmp_path, "w") as f:
            json.dump(merged, f, indent=2, sort_keys=True)
        os.replace(tmp_path, self.addresses_path)

    @contextmanager
    def lock(self) -> Iterator["FileJournal"]:
        """
        Hold the advisory single-writer lock for this namespace.

        Raises:
            JournalLockedError: If another process holds the lock
        """
        self.lock_path.parent.mkdir(parents=True, exist_ok=True)
        try:
            fd = os.open(self.lock_path, os.O_CREAT | os.O_EXCL | os.O_WRONLY)
        except FileExistsError:
            holder = self.lock_path.read_text().strip() or "unknown"
            raise JournalLockedError(
                f"Journal '{self.namespace}' is locked by process {holder}. "
                f"Remove {self.lock_path} if that process is no longer running."
            ) from None

        try:
            os.write(fd, str(os.getpid()).encode())
        finally:
            os.close(fd)

        try:
            # Another writer may have appended since this journal was loaded
            self._history = []
            self._latest = {}
            self._load()
            yield self
        finally:
            self.lock_path.unlink(missing_ok=True)
