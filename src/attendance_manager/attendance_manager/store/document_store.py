from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Protocol, Sequence

Document = Dict[str, Any]
Unsubscribe = Callable[[], None]
TransactionFn = Callable[[Optional[Document]], Optional[Document]]

FILTER_OPS = ("==", ">=", "<=", "array-contains")


@dataclass(frozen=True)
class Filter:
    field: str
    op: str
    value: Any

    def matches(self, doc: Document) -> bool:
        current = doc.get(self.field)
        if self.op == "==":
            return current == self.value
        if self.op == "array-contains":
            return isinstance(current, list) and self.value in current
        if current is None:
            return False
        if self.op == ">=":
            return current >= self.value
        if self.op == "<=":
            return current <= self.value
        raise ValueError(f"Unsupported filter op: {self.op!r}")


@dataclass(frozen=True)
class OrderBy:
    field: str
    descending: bool = True


class DocumentStore(Protocol):
    """Transactional document store the feature repositories are written against.

    Documents are JSON-compatible dicts grouped in collections and keyed by id.
    Documents handed back by the store carry their key under ``"id"``.
    """

    def get(self, collection: str, doc_id: str) -> Optional[Document]:
        raise NotImplementedError

    def set(self, collection: str, doc_id: str, data: Document) -> None:
        raise NotImplementedError

    def add(self, collection: str, data: Document) -> str:
        raise NotImplementedError

    def delete(self, collection: str, doc_id: str) -> bool:
        raise NotImplementedError

    def transaction(self, collection: str, doc_id: str, fn: TransactionFn) -> Optional[Document]:
        """Atomically read ``doc_id``, pass it to ``fn`` and write what ``fn`` returns.

        ``fn`` may be invoked more than once when the store retries a conflict, so it
        must be free of side effects. Returning ``None`` leaves the document untouched;
        raising aborts the transaction without writing anything.
        """

        raise NotImplementedError

    def query(
        self,
        collection: str,
        *,
        filters: Sequence[Filter] = (),
        order_by: Optional[OrderBy] = None,
        limit: Optional[int] = None,
    ) -> List[Document]:
        """Raises IndexMissing when ``order_by`` has no server-side index."""

        raise NotImplementedError

    def subscribe(
        self,
        collection: str,
        doc_id: str,
        callback: Callable[[Optional[Document]], None],
        on_error: Optional[Callable[[Exception], None]] = None,
    ) -> Unsubscribe:
        raise NotImplementedError
