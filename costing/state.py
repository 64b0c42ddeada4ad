"""In-memory record storage scoped per owner, plus write coalescing."""
from __future__ import annotations

import copy
import logging
import threading
import time
from typing import Callable, Dict, List, Tuple

logger = logging.getLogger(__name__)

Record = Dict[str, object]


class RecordStoreError(Exception):
    """Base error for record store operations."""


class RecordNotFoundError(RecordStoreError):
    pass


class DuplicateRecordError(RecordStoreError):
    pass


class RecordStore:
    """
    Dict-backed store with the same CRUD shape as the remote backend.

    Records are plain dicts with an ``"id"`` key and are copied on the way in
    and out so callers never share state with the store.
    """

    def __init__(self) -> None:
        self._data: Dict[Tuple[str, str], Dict[str, Record]] = {}
        self._lock = threading.Lock()

    def _bucket(self, owner: str, collection: str) -> Dict[str, Record]:
        return self._data.setdefault((owner, collection), {})

    def get(self, owner: str, collection: str, record_id: str) -> Record | None:
        with self._lock:
            record = self._bucket(owner, collection).get(record_id)
            return copy.deepcopy(record) if record is not None else None

    def list(self, owner: str, collection: str) -> List[Record]:
        with self._lock:
            return [copy.deepcopy(record) for record in self._bucket(owner, collection).values()]

    def insert(self, owner: str, collection: str, record: Record) -> Record:
        record_id = record.get("id")
        if not isinstance(record_id, str) or not record_id:
            raise RecordStoreError("Records need a non-empty string id.")
        with self._lock:
            bucket = self._bucket(owner, collection)
            if record_id in bucket:
                raise DuplicateRecordError(f"{collection} record {record_id} already exists.")
            bucket[record_id] = copy.deepcopy(record)
        logger.debug("Inserted %s/%s for %s", collection, record_id, owner)
        return copy.deepcopy(record)

    def update(self, owner: str, collection: str, record: Record) -> Record:
        record_id = record.get("id")
        with self._lock:
            bucket = self._bucket(owner, collection)
            if record_id not in bucket:
                raise RecordNotFoundError(f"{collection} record {record_id} does not exist.")
            bucket[record_id] = copy.deepcopy(record)
        logger.debug("Updated %s/%s for %s", collection, record_id, owner)
        return copy.deepcopy(record)

    def upsert(self, owner: str, collection: str, record: Record) -> Record:
        try:
            return self.update(owner, collection, record)
        except RecordNotFoundError:
            return self.insert(owner, collection, record)

    def delete(self, owner: str, collection: str, record_id: str) -> None:
        with self._lock:
            bucket = self._bucket(owner, collection)
            if record_id not in bucket:
                raise RecordNotFoundError(f"{collection} record {record_id} does not exist.")
            del bucket[record_id]
        logger.debug("Deleted %s/%s for %s", collection, record_id, owner)

    def clear(self) -> None:
        with self._lock:
            self._data.clear()


class WriteCoalescer:
    """
    Collect rapid edits and persist only the last one per record.

    ``schedule`` replaces any pending write for the same record id; ``flush``
    writes records whose delay has elapsed (or all of them with
    ``force=True``).
    """

    def __init__(self, store: RecordStore, delay_seconds: float = 0.6, clock: Callable[[], float] = time.monotonic):
        self.store = store
        self.delay_seconds = delay_seconds
        self.clock = clock
        self._pending: Dict[Tuple[str, str, str], Tuple[float, Record]] = {}
        self._lock = threading.Lock()

    def schedule(self, owner: str, collection: str, record: Record) -> None:
        key = (owner, collection, str(record.get("id")))
        with self._lock:
            if key in self._pending:
                logger.debug("Replacing pending write for %s/%s", collection, key[2])
            self._pending[key] = (self.clock() + self.delay_seconds, copy.deepcopy(record))

    def pending_count(self) -> int:
        with self._lock:
            return len(self._pending)

    def flush(self, force: bool = False) -> int:
        now = self.clock()
        with self._lock:
            due = [key for key, (deadline, _) in self._pending.items() if force or deadline <= now]
            writes = [(key, self._pending.pop(key)[1]) for key in due]
        for (owner, collection, _), record in writes:
            self.store.upsert(owner, collection, record)
        return len(writes)


RECORD_STORE = RecordStore()


__all__ = [
    "DuplicateRecordError",
    "RECORD_STORE",
    "RecordNotFoundError",
    "RecordStore",
    "RecordStoreError",
    "WriteCoalescer",
]
