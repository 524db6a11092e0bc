from __future__ import annotations

from dataclasses import replace
from typing import Optional, Sequence

from ..common.datetime_utils import from_iso, to_iso
from ..core.constants import DOCUMENTS_COLLECTION
from ..store.document_store import Document, DocumentStore, Filter, OrderBy
from .model import EmployeeDocument
from .repository import DocumentRepository


def to_document(d: EmployeeDocument) -> Document:
    return {
        "employeeId": d.employee_id,
        "name": d.name,
        "fileUrl": d.file_url,
        "filePath": d.file_path,
        "uploadedAt": to_iso(d.uploaded_at),
    }


def from_document(d: Document) -> EmployeeDocument:
    return EmployeeDocument(
        id=str(d["id"]),
        employee_id=d["employeeId"],
        name=d.get("name") or "",
        file_url=d.get("fileUrl") or "",
        file_path=d.get("filePath") or "",
        uploaded_at=from_iso(d.get("uploadedAt")),
    )


class StoreDocumentRepository(DocumentRepository):
    """Employee document metadata kept in the document store; file bytes live in object storage."""

    def __init__(self, store: DocumentStore, *, collection: str = DOCUMENTS_COLLECTION):
        self._store = store
        self._collection = collection

    def get(self, document_id: str) -> Optional[EmployeeDocument]:
        doc = self._store.get(self._collection, document_id)
        return from_document(doc) if doc else None

    def create(self, document: EmployeeDocument) -> EmployeeDocument:
        doc_id = self._store.add(self._collection, to_document(document))
        return replace(document, id=doc_id)

    def delete(self, document_id: str) -> bool:
        return self._store.delete(self._collection, document_id)

    def list_for_employee(
        self,
        employee_id: str,
        *,
        newest_first: bool = True,
        limit: Optional[int] = None,
    ) -> Sequence[EmployeeDocument]:
        docs = self._store.query(
            self._collection,
            filters=[Filter("employeeId", "==", employee_id)],
            order_by=OrderBy("uploadedAt", descending=True) if newest_first else None,
            limit=limit,
        )
        return [from_document(d) for d in docs]
