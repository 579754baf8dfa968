"""
Tests for background remote writes and the outbox.

Run with: pytest tests/test_remote_persist.py -v
"""
import pytest

from adapters.memory import MemoryDocumentStore
from core.remote_persist import OutboxEntry, PersistOutcome, RemotePersister

from conftest import FlakyDocumentStore


@pytest.fixture
def flaky_store():
    return FlakyDocumentStore()


def _persister(store, **kwargs):
    kwargs.setdefault("max_attempts", 2)
    return RemotePersister(store, max_workers=1, retry_wait_max=0, **kwargs)


class TestRemotePersister:
    def test_successful_write(self, flaky_store):
        persister = _persister(flaky_store)
        try:
            outcome = persister.persist("coaching-mcqs", "c1", {"id": "c1"}).result(timeout=5)
        finally:
            persister.shutdown()

        assert outcome is PersistOutcome.SUCCEEDED
        assert flaky_store.get_document("coaching-mcqs", "c1") == {"id": "c1"}
        assert persister.pending() == []

    def test_transient_failure_is_retried(self, flaky_store):
        """One failure within the attempt budget still succeeds."""
        flaky_store.failures = 1
        persister = _persister(flaky_store, max_attempts=3)
        try:
            outcome = persister.persist("coaching-mcqs", "c1", {"id": "c1"}).result(timeout=5)
        finally:
            persister.shutdown()

        assert outcome is PersistOutcome.SUCCEEDED
        assert flaky_store.calls == 2

    def test_exhausted_retries_park_in_outbox(self, flaky_store):
        flaky_store.failures = 10
        persister = _persister(flaky_store)
        try:
            outcome = persister.persist("coaching-mcqs", "c1", {"id": "c1"}).result(timeout=5)
            pending = persister.pending()
        finally:
            persister.shutdown()

        assert outcome is PersistOutcome.PENDING
        assert flaky_store.calls == 2
        assert [(e.collection, e.doc_id) for e in pending] == [("coaching-mcqs", "c1")]
        assert "remote store unavailable" in pending[0].error

    def test_flush_drains_outbox_after_recovery(self, flaky_store):
        flaky_store.failures = 2
        persister = _persister(flaky_store)
        try:
            persister.persist("coaching-mcqs", "c1", {"id": "c1", "v": 1}).result(timeout=5)
            assert len(persister.pending()) == 1

            report = persister.flush_outbox()
        finally:
            persister.shutdown()

        assert report.as_dict() == {"flushed": 1, "superseded": 0, "still_pending": 0}
        assert flaky_store.get_document("coaching-mcqs", "c1") == {"id": "c1", "v": 1}

    def test_flush_keeps_entries_while_store_is_down(self, flaky_store):
        flaky_store.failures = 100
        persister = _persister(flaky_store)
        try:
            persister.persist("coaching-mcqs", "c1", {"id": "c1"}).result(timeout=5)
            report = persister.flush_outbox()
            pending = persister.pending()
        finally:
            persister.shutdown()

        assert report.flushed == 0
        assert report.still_pending == 1
        assert pending[0].attempts == 4

    def test_newer_success_supersedes_parked_write(self, flaky_store):
        flaky_store.failures = 2
        persister = _persister(flaky_store)
        try:
            persister.persist("coaching-mcqs", "c1", {"v": 1}).result(timeout=5)
            persister.persist("coaching-mcqs", "c1", {"v": 2}).result(timeout=5)
            pending = persister.pending()
        finally:
            persister.shutdown()

        assert pending == []
        assert flaky_store.get_document("coaching-mcqs", "c1") == {"v": 2}

    def test_disabled_drops_writes(self, flaky_store):
        persister = _persister(flaky_store, enabled=False)
        try:
            outcome = persister.persist("coaching-mcqs", "c1", {"id": "c1"}).result(timeout=5)
            status = persister.status()
        finally:
            persister.shutdown()

        assert outcome is PersistOutcome.FAILED
        assert flaky_store.calls == 0
        assert status["enabled"] is False

    def test_closed_persister_reports_failed(self, flaky_store):
        persister = _persister(flaky_store)
        persister.shutdown()

        outcome = persister.persist("coaching-mcqs", "c1", {"id": "c1"}).result(timeout=5)
        assert outcome is PersistOutcome.FAILED

    def test_document_is_copied_at_schedule_time(self, flaky_store):
        doc = {"id": "c1", "question": "before"}
        persister = _persister(flaky_store)
        try:
            future = persister.persist("coaching-mcqs", "c1", doc)
            doc["question"] = "after"
            future.result(timeout=5)
        finally:
            persister.shutdown()

        assert flaky_store.get_document("coaching-mcqs", "c1")["question"] == "before"


class ParkingDuringWriteStore(MemoryDocumentStore):
    """Parks a newer failed write for the same document while a write is in progress."""

    def __init__(self):
        super().__init__()
        self.persister = None
        self.newer = None

    def set_document(self, collection, doc_id, document):
        if self.newer is None:
            self.newer = OutboxEntry(collection, doc_id, {"v": 2}, error="remote store unavailable")
            self.persister.outbox.put(self.newer)
        super().set_document(collection, doc_id, document)


class TestOutboxOrdering:
    """Parked writes never replace newer data, and newer parked writes are never lost."""

    def test_newer_entry_parked_during_flush_survives(self):
        store = ParkingDuringWriteStore()
        persister = _persister(store)
        store.persister = persister
        try:
            persister.outbox.put(OutboxEntry("coaching-mcqs", "c1", {"v": 1}))
            report = persister.flush_outbox()
            pending = persister.pending()

            # The store parks only once, so the next flush delivers the newer document
            follow_up = persister.flush_outbox()
        finally:
            persister.shutdown()

        assert report.as_dict() == {"flushed": 1, "superseded": 0, "still_pending": 1}
        assert pending == [store.newer]
        assert follow_up.as_dict() == {"flushed": 1, "superseded": 0, "still_pending": 0}
        assert store.get_document("coaching-mcqs", "c1") == {"v": 2}

    def test_stale_entry_does_not_overwrite_newer_write(self):
        store = MemoryDocumentStore()
        persister = _persister(store)
        try:
            stale = OutboxEntry("coaching-mcqs", "c1", {"v": 1})
            outcome = persister.persist("coaching-mcqs", "c1", {"v": 2}).result(timeout=5)
            persister.outbox.put(stale)

            report = persister.flush_outbox()
            pending = persister.pending()
        finally:
            persister.shutdown()

        assert outcome is PersistOutcome.SUCCEEDED
        assert report.as_dict() == {"flushed": 0, "superseded": 1, "still_pending": 0}
        assert pending == []
        assert store.get_document("coaching-mcqs", "c1") == {"v": 2}

    def test_older_entry_does_not_replace_newer_parked_one(self):
        persister = _persister(MemoryDocumentStore())
        try:
            older = OutboxEntry("coaching-mcqs", "c1", {"v": 1})
            newer = OutboxEntry("coaching-mcqs", "c1", {"v": 2})
            persister.outbox.put(newer)
            persister.outbox.put(older)
            pending = persister.pending()
        finally:
            persister.shutdown()

        assert pending == [newer]
