from __future__ import annotations

from dataclasses import replace
from typing import Callable, Optional, Sequence

from ..common.datetime_utils import from_iso, to_iso
from ..core.constants import LEAVES_COLLECTION
from ..core.enums import LeaveStatus, LeaveType
from ..core.exceptions import NotFoundError
from ..store.document_store import Document, DocumentStore, Filter, OrderBy
from .model import LeaveRequest
from .repository import LeaveRepository


def to_document(r: LeaveRequest) -> Document:
    return {
        "employeeId": r.employee_id,
        "type": r.leave_type.value,
        "from": r.from_date,
        "to": r.to_date,
        "reason": r.reason,
        "status": r.status.value,
        "decidedBy": r.decided_by,
        "createdAt": to_iso(r.created_at),
        "updatedAt": to_iso(r.updated_at),
    }


def from_document(d: Document) -> LeaveRequest:
    return LeaveRequest(
        id=str(d["id"]),
        employee_id=d["employeeId"],
        leave_type=LeaveType(d.get("type") or LeaveType.CASUAL.value),
        from_date=d["from"],
        to_date=d["to"],
        reason=d.get("reason"),
        status=LeaveStatus(d.get("status") or LeaveStatus.PENDING.value),
        decided_by=d.get("decidedBy"),
        created_at=from_iso(d.get("createdAt")),
        updated_at=from_iso(d.get("updatedAt")),
    )


class DocumentLeaveRepository(LeaveRepository):
    def __init__(self, store: DocumentStore, *, collection: str = LEAVES_COLLECTION):
        self._store = store
        self._collection = collection

    def get(self, leave_id: str) -> Optional[LeaveRequest]:
        doc = self._store.get(self._collection, leave_id)
        return from_document(doc) if doc else None

    def create(self, leave: LeaveRequest) -> LeaveRequest:
        doc_id = self._store.add(self._collection, to_document(leave))
        return replace(leave, id=doc_id)

    def update_atomically(self, leave_id: str, fn: Callable[[LeaveRequest], LeaveRequest]) -> LeaveRequest:
        def apply(current: Optional[Document]) -> Document:
            if current is None:
                raise NotFoundError("Leave request not found")
            return to_document(fn(from_document(current)))

        return from_document(self._store.transaction(self._collection, leave_id, apply))

    def list(
        self,
        *,
        employee_id: Optional[str] = None,
        status: Optional[LeaveStatus] = None,
        newest_first: bool = True,
        limit: Optional[int] = None,
    ) -> Sequence[LeaveRequest]:
        filters = []
        if employee_id:
            filters.append(Filter("employeeId", "==", employee_id))
        if status is not None:
            filters.append(Filter("status", "==", status.value))
        docs = self._store.query(
            self._collection,
            filters=filters,
            order_by=OrderBy("createdAt", descending=True) if newest_first else None,
            limit=limit,
        )
        return [from_document(d) for d in docs]
