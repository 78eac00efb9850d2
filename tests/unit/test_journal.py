"""Unit tests for the deployment journal."""

import json
from pathlib import Path

import pytest

from contract_ignition.exceptions import JournalError, JournalLockedError
from contract_ignition.journal import FileJournal, MemoryJournal, load_deployed_addresses
from contract_ignition.types import EntryStatus, JournalEntry


class TestMemoryJournal:
    """Test journal semantics independent of storage."""

    def test_get_absent_returns_none(self):
        assert MemoryJournal().get("Price", "future0") is None

    def test_put_then_get(self):
        journal = MemoryJournal()
        journal.put("Price", "future0", "0xabc")

        entry = journal.get("Price", "future0")

        assert entry.status is EntryStatus.CONFIRMED
        assert entry.result == "0xabc"
        assert entry.recorded_at is not None

    def test_confirmed_entry_never_overwritten(self):
        """Test that nothing can be recorded after a confirmation."""
        journal = MemoryJournal()
        journal.put("Price", "future0", "0xabc")

        with pytest.raises(JournalError):
            journal.put("Price", "future0", "0xdef")

        with pytest.raises(JournalError):
            journal.record(JournalEntry("Price", "future0", EntryStatus.FAILED, error="x"))

        assert journal.get("Price", "future0").result == "0xabc"

    def test_latest_entry_wins(self):
        journal = MemoryJournal()
        journal.record(JournalEntry("Price", "future0", EntryStatus.STARTED))
        journal.record(JournalEntry("Price", "future0", EntryStatus.STARTED, operation_id="0x01"))

        assert journal.get("Price", "future0").operation_id == "0x01"
        assert len(journal.history()) == 2

    def test_clear_failed_entry(self):
        journal = MemoryJournal()
        journal.record(JournalEntry("Price", "future0", EntryStatus.FAILED, error="reverted"))

        journal.clear("Price", "future0")

        assert journal.get("Price", "future0") is None
        assert journal.entries() == {}

    def test_clear_confirmed_entry_raises(self):
        journal = MemoryJournal()
        journal.put("Price", "future0", "0xabc")

        with pytest.raises(JournalError):
            journal.clear("Price", "future0")

    def test_clear_absent_entry_raises(self):
        with pytest.raises(JournalError):
            MemoryJournal().clear("Price", "future0")

    def test_entries_keyed_by_future(self):
        journal = MemoryJournal()
        journal.put("Price", "future0", "0xabc")
        journal.put("Market", "future0", "0xdef")

        assert sorted(journal.entries()) == ["Market.future0", "Price.future0"]


class TestFileJournal:
    """Test durable JSON Lines storage."""

    def test_persists_across_instances(self, journal_root: Path):
        """Test that a new journal instance sees earlier entries."""
        FileJournal("chain-1", journal_root).put("Price", "future0", "0xabc")

        reopened = FileJournal("chain-1", journal_root)

        assert reopened.get("Price", "future0").result == "0xabc"

    def test_namespaces_are_isolated(self, journal_root: Path):
        FileJournal("chain-1", journal_root).put("Price", "future0", "0xabc")

        assert FileJournal("chain-2", journal_root).get("Price", "future0") is None

    def test_one_json_line_per_entry(self, journal_root: Path):
        journal = FileJournal("chain-1", journal_root)
        journal.record(JournalEntry("Price", "future0", EntryStatus.STARTED, operation_id="0x01"))
        journal.put("Price", "future0", "0xabc")

        lines = journal.path.read_text().splitlines()

        assert len(lines) == 2
        assert json.loads(lines[0])["status"] == "started"
        assert json.loads(lines[1])["result"] == "0xabc"

    def test_ignores_torn_final_line(self, journal_root: Path):
        """Test that a partially written entry from a crash is ignored."""
        journal = FileJournal("chain-1", journal_root)
        journal.put("Price", "future0", "0xabc")
        with open(journal.path, "a") as f:
            f.write('{"module": "Market", "future_id": "fut')

        reopened = FileJournal("chain-1", journal_root)
        assert reopened.get("Market", "future0") is None
        assert reopened.get("Price", "future0").result == "0xabc"

        # Appending after a torn line starts a fresh line
        reopened.put("Market", "future0", "0xdef")
        assert FileJournal("chain-1", journal_root).get("Market", "future0").result == "0xdef"

    def test_confirmed_survives_reload(self, journal_root: Path):
        FileJournal("chain-1", journal_root).put("Price", "future0", "0xabc")

        with pytest.raises(JournalError):
            FileJournal("chain-1", journal_root).put("Price", "future0", "0xdef")

    def test_unserializable_result_raises(self, journal_root: Path):
        journal = FileJournal("chain-1", journal_root)

        with pytest.raises(JournalError):
            journal.put("Price", "future0", object())

        assert journal.get("Price", "future0") is None

    def test_lock_is_exclusive(self, journal_root: Path):
        """Test that a second writer cannot take the lock."""
        first = FileJournal("chain-1", journal_root)
        second = FileJournal("chain-1", journal_root)

        with first.lock():
            assert first.lock_path.exists()
            with pytest.raises(JournalLockedError):
                with second.lock():
                    pass

        assert not first.lock_path.exists()
        with second.lock():
            pass

    def test_lock_reloads_entries_written_by_another_writer(self, journal_root: Path):
        """Test that taking the lock picks up entries appended after loading."""
        stale = FileJournal("chain-1", journal_root)
        FileJournal("chain-1", journal_root).put("Price", "future0", "0xabc")

        assert stale.get("Price", "future0") is None
        with stale.lock():
            assert stale.get("Price", "future0").result == "0xabc"
            with pytest.raises(JournalError):
                stale.put("Price", "future0", "0xdef")

        assert len(stale.history()) == 1

    def test_readers_do_not_need_the_lock(self, journal_root: Path):
        writer = FileJournal("chain-1", journal_root)
        with writer.lock():
            writer.put("Price", "future0", "0xabc")
            assert FileJournal("chain-1", journal_root).get("Price", "future0").result == "0xabc"

    def test_write_addresses_merges(self, journal_root: Path):
        journal = FileJournal("chain-1", journal_root)
        journal.write_addresses({"Price.future0": "0xabc"})
        journal.write_addresses({"Market.future0": "0xdef"})

        assert load_deployed_addresses(journal.addresses_path) == {
            "Price.future0": "0xabc",
            "Market.future0": "0xdef",
        }

    def test_load_deployed_addresses_missing(self, tmp_path: Path):
        assert load_deployed_addresses(tmp_path / "missing.json") == {}
