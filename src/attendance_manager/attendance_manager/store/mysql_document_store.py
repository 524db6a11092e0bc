from __future__ import annotations

import copy
import json
import logging
import re
import threading
import uuid
from typing import Any, Callable, List, Optional, Sequence, Tuple

import mysql.connector

from ..core.constants import SUBSCRIPTION_POLL_SECONDS, TRANSACTION_MAX_ATTEMPTS
from ..core.exceptions import BackendUnavailable, IndexMissing, TransactionConflict
from .connection import DatabaseConnection
from .document_store import Document, DocumentStore, Filter, OrderBy, TransactionFn, Unsubscribe
from .mysql_base import db_cursor, dump_json, fetchall, fetchone, load_json

logger = logging.getLogger(__name__)

ER_BAD_FIELD_ERROR = 1054
ER_DUP_ENTRY = 1062
ER_LOCK_WAIT_TIMEOUT = 1205
ER_LOCK_DEADLOCK = 1213
RETRYABLE_ERRNOS = {ER_DUP_ENTRY, ER_LOCK_WAIT_TIMEOUT, ER_LOCK_DEADLOCK}

# Client-side connection failures (CR_* codes).
UNAVAILABLE_ERRNOS = {2002, 2003, 2005, 2006, 2013, 2055}

# Ordered queries are only served from indexed generated columns (see database/schema.sql).
SORT_COLUMNS = {
    "date": "sort_date",
    "createdAt": "sort_created_at",
    "month": "sort_month",
}

_FIELD_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
_MISSING = object()


def _json_path(field: str) -> str:
    if not _FIELD_RE.match(field):
        raise ValueError(f"Invalid document field name: {field!r}")
    return f"$.{field}"


def _is_unavailable(exc: mysql.connector.Error) -> bool:
    return isinstance(exc, mysql.connector.errors.InterfaceError) or exc.errno in UNAVAILABLE_ERRNOS


class MySQLDocumentStore(DocumentStore):
    """Document store kept in a single InnoDB table of JSON bodies.

    Row locks (``SELECT ... FOR UPDATE``) serialise transactions on the same key;
    deadlocks and duplicate inserts from racing creators are retried.
    """

    def __init__(
        self,
        conn_factory: DatabaseConnection,
        *,
        max_attempts: int = TRANSACTION_MAX_ATTEMPTS,
        poll_seconds: float = SUBSCRIPTION_POLL_SECONDS,
        id_factory: Optional[Callable[[], str]] = None,
    ):
        self._conn_factory = conn_factory
        self._max_attempts = max(1, int(max_attempts))
        self._poll_seconds = float(poll_seconds)
        self._id_factory = id_factory or (lambda: uuid.uuid4().hex)

    def _run(self, work: Callable[[Any], Any]) -> Any:
        """Run ``work(cur)`` inside one DB transaction, mapping connection failures."""

        try:
            with db_cursor(self._conn_factory) as (_, cur):
                return work(cur)
        except mysql.connector.Error as exc:
            if _is_unavailable(exc):
                logger.error("Document store unreachable: %s", exc)
                raise BackendUnavailable("The attendance backend is unavailable, please retry") from exc
            raise

    @staticmethod
    def _hydrate(doc_id: str, body: Any) -> Document:
        doc = load_json(body)
        doc["id"] = doc_id
        return doc

    @staticmethod
    def _body(data: Document) -> str:
        return dump_json({k: v for k, v in data.items() if k != "id"})

    def _read_versioned(self, collection: str, doc_id: str) -> Tuple[Optional[int], Optional[Document]]:
        def work(cur):
            cur.execute(
                "SELECT body, version FROM documents WHERE collection=%s AND doc_id=%s",
                (collection, doc_id),
            )
            return fetchone(cur)

        row = self._run(work)
        if not row:
            return None, None
        return int(row["version"]), self._hydrate(doc_id, row["body"])

    def get(self, collection: str, doc_id: str) -> Optional[Document]:
        return self._read_versioned(collection, doc_id)[1]

    def set(self, collection: str, doc_id: str, data: Document) -> None:
        def work(cur):
            cur.execute(
                """
                INSERT INTO documents(collection, doc_id, body, version)
                VALUES(%s,%s,%s,1)
                ON DUPLICATE KEY UPDATE body=VALUES(body), version=version+1
                """,
                (collection, doc_id, self._body(data)),
            )

        self._run(work)

    def add(self, collection: str, data: Document) -> str:
        doc_id = self._id_factory()
        self.set(collection, doc_id, data)
        return doc_id

    def delete(self, collection: str, doc_id: str) -> bool:
        def work(cur):
            cur.execute("DELETE FROM documents WHERE collection=%s AND doc_id=%s", (collection, doc_id))
            return cur.rowcount > 0

        return bool(self._run(work))

    def _transact_once(self, cur, collection: str, doc_id: str, fn: TransactionFn) -> Optional[Document]:
        cur.execute(
            "SELECT body, version FROM documents WHERE collection=%s AND doc_id=%s FOR UPDATE",
            (collection, doc_id),
        )
        row = fetchone(cur)
        current = self._hydrate(doc_id, row["body"]) if row else None

        updated = fn(copy.deepcopy(current))
        if updated is None:
            return current

        body = self._body(updated)
        if row is None:
            cur.execute(
                "INSERT INTO documents(collection, doc_id, body, version) VALUES(%s,%s,%s,1)",
                (collection, doc_id, body),
            )
        else:
            cur.execute(
                "UPDATE documents SET body=%s, version=version+1 WHERE collection=%s AND doc_id=%s",
                (body, collection, doc_id),
            )
        return self._hydrate(doc_id, body)

    def transaction(self, collection: str, doc_id: str, fn: TransactionFn) -> Optional[Document]:
        for attempt in range(1, self._max_attempts + 1):
            try:
                return self._run(lambda cur: self._transact_once(cur, collection, doc_id, fn))
            except mysql.connector.Error as exc:
                if exc.errno not in RETRYABLE_ERRNOS:
                    raise
                logger.warning(
                    "Transaction conflict on %s/%s (attempt %d/%d): %s",
                    collection, doc_id, attempt, self._max_attempts, exc,
                )
        raise TransactionConflict("The record is being updated elsewhere, please retry")

    def query(
        self,
        collection: str,
        *,
        filters: Sequence[Filter] = (),
        order_by: Optional[OrderBy] = None,
        limit: Optional[int] = None,
    ) -> List[Document]:
        clauses = ["collection=%s"]
        params: list[object] = [collection]

        for f in filters:
            if f.op == "array-contains":
                clauses.append("JSON_CONTAINS(JSON_EXTRACT(body, %s), CAST(%s AS JSON))")
            elif f.op in ("==", ">=", "<="):
                sql_op = "=" if f.op == "==" else f.op
                clauses.append(f"JSON_EXTRACT(body, %s) {sql_op} CAST(%s AS JSON)")
            else:
                raise ValueError(f"Unsupported filter op: {f.op!r}")
            params.extend([_json_path(f.field), json.dumps(f.value)])

        order = ""
        if order_by is not None:
            column = SORT_COLUMNS.get(order_by.field)
            if not column:
                raise IndexMissing(f"No index to order {collection} by {order_by.field}")
            order = f" ORDER BY {column} {'DESC' if order_by.descending else 'ASC'}"

        tail = ""
        if limit is not None:
            tail = " LIMIT %s"
            params.append(int(limit))

        sql = f"SELECT doc_id, body FROM documents WHERE {' AND '.join(clauses)}{order}{tail}"

        def work(cur):
            cur.execute(sql, tuple(params))
            return fetchall(cur)

        try:
            rows = self._run(work)
        except mysql.connector.Error as exc:
            if exc.errno == ER_BAD_FIELD_ERROR and order_by is not None:
                raise IndexMissing(f"Sort column for {collection}.{order_by.field} is not provisioned") from exc
            raise
        return [self._hydrate(r["doc_id"], r["body"]) for r in rows]

    def subscribe(
        self,
        collection: str,
        doc_id: str,
        callback: Callable[[Optional[Document]], None],
        on_error: Optional[Callable[[Exception], None]] = None,
    ) -> Unsubscribe:
        watcher = _DocumentWatcher(self, collection, doc_id, callback, on_error, self._poll_seconds)
        watcher.start()
        return watcher.stop


class _DocumentWatcher(threading.Thread):
    """Polls one document and emits a snapshot whenever it changes."""

    def __init__(self, store: MySQLDocumentStore, collection: str, doc_id: str, callback, on_error, interval: float):
        super().__init__(daemon=True, name=f"watch:{collection}/{doc_id}")
        self._store = store
        self._collection = collection
        self._doc_id = doc_id
        self._callback = callback
        self._on_error = on_error
        self._interval = interval
        self._stopped = threading.Event()

    def run(self) -> None:
        last: object = _MISSING
        while not self._stopped.is_set():
            try:
                version, doc = self._store._read_versioned(self._collection, self._doc_id)
            except Exception as exc:
                if self._on_error is not None:
                    self._on_error(exc)
                else:
                    logger.exception("Watch on %s/%s failed", self._collection, self._doc_id)
            else:
                marker = (version, doc)
                if marker != last and not self._stopped.is_set():
                    last = marker
                    self._callback(doc)
            self._stopped.wait(self._interval)

    def stop(self) -> None:
        self._stopped.set()
