# services/api/core/remote_persist.py
"""
Fire-and-forget writes to the remote document store.

Sync and import return as soon as the in-memory store is updated; the remote
write runs on a worker thread. Each write is retried with backoff, and a
write that still fails is parked in an outbox until `flush_outbox` succeeds.

Every scheduled write gets a sequence number. Writes to one document are
serialized and a write older than the last one stored is skipped, so neither
a worker nor an outbox flush can replace a newer document with a stale one.
"""
from __future__ import annotations

import itertools
import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from tenacity import Retrying, stop_after_attempt, wait_exponential

from adapters.base import DocumentStore
from core.ids import now_ms

logger = logging.getLogger(__name__)

_write_sequence = itertools.count(1)


def next_write_seq() -> int:
    return next(_write_sequence)


class PersistOutcome(str, Enum):
    SUCCEEDED = "succeeded"
    PENDING = "pending"       # parked in the outbox
    SUPERSEDED = "superseded"  # a newer write for the same document already landed
    FAILED = "failed"         # never attempted (persister disabled or closed)


@dataclass
class OutboxEntry:
    collection: str
    doc_id: str
    document: Dict[str, Any]
    error: str = ""
    attempts: int = 0
    queued_at: int = field(default_factory=now_ms)
    seq: int = field(default_factory=next_write_seq)

    @property
    def key(self) -> Tuple[str, str]:
        return (self.collection, self.doc_id)


@dataclass
class PersistReport:
    flushed: int = 0
    superseded: int = 0
    still_pending: int = 0

    def as_dict(self) -> Dict[str, int]:
        return {
            "flushed": self.flushed,
            "superseded": self.superseded,
            "still_pending": self.still_pending,
        }


class PersistOutbox:
    """Failed writes keyed by (collection, doc_id); the newest write wins."""

    def __init__(self) -> None:
        self._entries: Dict[Tuple[str, str], OutboxEntry] = {}
        self._lock = threading.Lock()

    def put(self, entry: OutboxEntry) -> None:
        with self._lock:
            current = self._entries.get(entry.key)
            if current is None or current.seq <= entry.seq:
                self._entries[entry.key] = entry

    def current(self, collection: str, doc_id: str) -> Optional[OutboxEntry]:
        with self._lock:
            return self._entries.get((collection, doc_id))

    def discard(self, collection: str, doc_id: str, through_seq: int) -> None:
        """Drop the parked write for a document unless it is newer than `through_seq`."""
        with self._lock:
            current = self._entries.get((collection, doc_id))
            if current is not None and current.seq <= through_seq:
                del self._entries[(collection, doc_id)]

    def entries(self) -> List[OutboxEntry]:
        with self._lock:
            return list(self._entries.values())

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


class RemotePersister:
    """
    Schedules document writes without making the caller wait for them.

    Args:
        store: Remote document store
        max_workers: Worker threads for background writes
        max_attempts: Attempts per write before it is parked in the outbox
        retry_wait_max: Upper bound (seconds) of the exponential backoff
        enabled: When False, writes are dropped and reported as FAILED
    """

    def __init__(
        self,
        store: DocumentStore,
        max_workers: int = 2,
        max_attempts: int = 3,
        retry_wait_max: float = 4.0,
        enabled: bool = True,
    ):
        self.store = store
        self.max_attempts = max(1, max_attempts)
        self.retry_wait_max = retry_wait_max
        self.enabled = enabled
        self.outbox = PersistOutbox()

        self._executor = ThreadPoolExecutor(
            max_workers=max(1, max_workers),
            thread_name_prefix="remote-persist",
        )
        self._futures: List[Future] = []
        self._futures_lock = threading.Lock()
        self._closed = False

        # Per-document write serialization and the last stored sequence number
        self._doc_locks: Dict[Tuple[str, str], threading.Lock] = {}
        self._doc_locks_guard = threading.Lock()
        self._stored_seq: Dict[Tuple[str, str], int] = {}

    # ---------- writes ----------

    def _doc_lock(self, key: Tuple[str, str]) -> threading.Lock:
        with self._doc_locks_guard:
            return self._doc_locks.setdefault(key, threading.Lock())

    def _write_with_retry(self, collection: str, doc_id: str, document: Dict[str, Any]) -> int:
        """Write one document, retrying on any error. Returns attempts used."""
        attempts = 0
        for attempt in Retrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_exponential(multiplier=0.1, min=0, max=self.retry_wait_max),
            reraise=True,
        ):
            with attempt:
                attempts += 1
                self.store.set_document(collection, doc_id, document)
        return attempts

    def _write_if_newest(
        self,
        collection: str,
        doc_id: str,
        document: Dict[str, Any],
        seq: int,
    ) -> Optional[int]:
        """
        Write unless a newer write for the document already landed.

        Returns attempts used, or None when the write was skipped as stale.
        """
        key = (collection, doc_id)
        with self._doc_lock(key):
            if self._stored_seq.get(key, 0) > seq:
                return None
            attempts = self._write_with_retry(collection, doc_id, document)
            self._stored_seq[key] = seq
            return attempts

    def _run(
        self,
        collection: str,
        doc_id: str,
        document: Dict[str, Any],
        seq: int,
    ) -> PersistOutcome:
        try:
            attempts = self._write_if_newest(collection, doc_id, document, seq)
        except Exception as e:
            logger.exception(f"Remote write {collection}/{doc_id} failed, parking in outbox: {e}")
            self.outbox.put(
                OutboxEntry(
                    collection=collection,
                    doc_id=doc_id,
                    document=document,
                    error=str(e),
                    attempts=self.max_attempts,
                    seq=seq,
                )
            )
            return PersistOutcome.PENDING

        # Anything parked earlier for this document is now out of date
        self.outbox.discard(collection, doc_id, through_seq=seq)
        if attempts is None:
            logger.debug(f"Remote write {collection}/{doc_id} superseded by a newer write")
            return PersistOutcome.SUPERSEDED
        return PersistOutcome.SUCCEEDED

    def persist(
        self,
        collection: str,
        doc_id: str,
        document: Dict[str, Any],
    ) -> "Future[PersistOutcome]":
        """
        Schedule a write and return immediately.

        The returned future is for observers (tests, shutdown); sync callers
        ignore it.
        """
        if not self.enabled or self._closed:
            logger.warning(f"Remote persistence unavailable; dropped write {collection}/{doc_id}")
            dropped: "Future[PersistOutcome]" = Future()
            dropped.set_result(PersistOutcome.FAILED)
            return dropped

        future = self._executor.submit(
            self._run, collection, doc_id, dict(document), next_write_seq()
        )
        with self._futures_lock:
            self._futures = [f for f in self._futures if not f.done()]
            self._futures.append(future)
        return future

    # ---------- outbox ----------

    def flush_outbox(self) -> PersistReport:
        """
        Retry every parked write synchronously.

        An entry replaced by a newer parked write while the flush runs stays
        in the outbox for the next flush; an entry older than what the store
        already holds is dropped without being written.
        """
        report = PersistReport()
        for entry in self.outbox.entries():
            if self.outbox.current(entry.collection, entry.doc_id) is not entry:
                continue
            try:
                attempts = self._write_if_newest(
                    entry.collection, entry.doc_id, entry.document, entry.seq
                )
            except Exception as e:
                entry.attempts += self.max_attempts
                entry.error = str(e)
                logger.error(f"Outbox retry for {entry.collection}/{entry.doc_id} failed: {e}")
                continue

            self.outbox.discard(entry.collection, entry.doc_id, through_seq=entry.seq)
            if attempts is None:
                report.superseded += 1
            else:
                entry.attempts += attempts
                report.flushed += 1

        report.still_pending = len(self.outbox)
        if report.flushed or report.superseded:
            logger.info(
                f"Outbox flushed {report.flushed} write(s), dropped {report.superseded} stale, "
                f"{report.still_pending} pending"
            )
        return report

    def pending(self) -> List[OutboxEntry]:
        return self.outbox.entries()

    def status(self) -> Dict[str, Any]:
        with self._futures_lock:
            in_flight = sum(1 for f in self._futures if not f.done())
        return {
            "enabled": self.enabled and not self._closed,
            "in_flight": in_flight,
            "pending": len(self.outbox),
        }

    # ---------- lifecycle ----------

    def wait(self, timeout: Optional[float] = None) -> None:
        """Block until every scheduled write has finished."""
        with self._futures_lock:
            futures = list(self._futures)
        if futures:
            wait(futures, timeout=timeout)

    def shutdown(self) -> None:
        self._closed = True
        self._executor.shutdown(wait=True)
