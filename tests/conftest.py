from __future__ import annotations

import copy
import threading
from datetime import datetime, timezone
from itertools import count

import pytest

from src.attendance_manager.attendance_manager.core.exceptions import BackendUnavailable, IndexMissing


class InMemoryDocumentStore:
    """Thread-safe DocumentStore fake.

    ``unindexed`` lists order-by fields that raise IndexMissing; setting
    ``unavailable`` makes every call raise BackendUnavailable.
    """

    def __init__(self, *, unindexed=()):
        self._docs: dict[tuple[str, str], dict] = {}
        self._lock = threading.RLock()
        self._ids = count(1)
        self._watchers: dict[tuple[str, str], list] = {}
        self.unindexed = set(unindexed)
        self.unavailable = False
        self.transactions = 0

    def _check(self):
        if self.unavailable:
            raise BackendUnavailable("store offline")

    def _snapshot(self, key):
        doc = self._docs.get(key)
        if doc is None:
            return None
        out = copy.deepcopy(doc)
        out["id"] = key[1]
        return out

    def _notify(self, key):
        snapshot = self._snapshot(key)
        for cb in list(self._watchers.get(key, ())):
            cb(copy.deepcopy(snapshot))

    def get(self, collection, doc_id):
        self._check()
        with self._lock:
            return self._snapshot((collection, doc_id))

    def set(self, collection, doc_id, data):
        self._check()
        with self._lock:
            self._docs[(collection, doc_id)] = {k: copy.deepcopy(v) for k, v in data.items() if k != "id"}
        self._notify((collection, doc_id))

    def add(self, collection, data):
        doc_id = f"{collection}-{next(self._ids)}"
        self.set(collection, doc_id, data)
        return doc_id

    def delete(self, collection, doc_id):
        self._check()
        with self._lock:
            existed = self._docs.pop((collection, doc_id), None) is not None
        if existed:
            self._notify((collection, doc_id))
        return existed

    def transaction(self, collection, doc_id, fn):
        self._check()
        key = (collection, doc_id)
        with self._lock:
            self.transactions += 1
            current = self._snapshot(key)
            updated = fn(copy.deepcopy(current))
            if updated is None:
                return current
            self._docs[key] = {k: copy.deepcopy(v) for k, v in updated.items() if k != "id"}
            result = self._snapshot(key)
        self._notify(key)
        return result

    def query(self, collection, *, filters=(), order_by=None, limit=None):
        self._check()
        if order_by is not None and order_by.field in self.unindexed:
            raise IndexMissing(f"no index on {collection}.{order_by.field}")
        with self._lock:
            docs = [self._snapshot(k) for k in self._docs if k[0] == collection]
        docs = [d for d in docs if all(f.matches(d) for f in filters)]
        if order_by is not None:
            docs.sort(
                key=lambda d: (d.get(order_by.field) is not None, d.get(order_by.field) or ""),
                reverse=order_by.descending,
            )
        return docs[:limit] if limit is not None else docs

    def subscribe(self, collection, doc_id, callback, on_error=None):
        key = (collection, doc_id)
        try:
            self._check()
        except BackendUnavailable as exc:
            if on_error is None:
                raise
            on_error(exc)
            return lambda: None
        with self._lock:
            self._watchers.setdefault(key, []).append(callback)
            snapshot = self._snapshot(key)
        callback(snapshot)

        def unsubscribe():
            with self._lock:
                if callback in self._watchers.get(key, []):
                    self._watchers[key].remove(callback)

        return unsubscribe


@pytest.fixture
def store():
    return InMemoryDocumentStore()


@pytest.fixture
def fixed_now():
    """Factory for UTC instants on 2025-01-15 (a Wednesday)."""

    def at(hour, minute=0, day=15, month=1):
        return datetime(2025, month, day, hour, minute, tzinfo=timezone.utc)

    return at


@pytest.fixture
def make_store():
    return InMemoryDocumentStore
