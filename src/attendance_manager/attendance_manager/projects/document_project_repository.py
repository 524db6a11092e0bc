from __future__ import annotations

from dataclasses import replace
from typing import Callable, Optional, Sequence

from ..common.datetime_utils import from_iso, to_iso
from ..core.constants import PROJECTS_COLLECTION
from ..core.enums import ProjectStatus
from ..core.exceptions import NotFoundError
from ..store.document_store import Document, DocumentStore, Filter, OrderBy
from .model import Project
from .repository import ProjectRepository


def to_document(p: Project) -> Document:
    return {
        "name": p.name,
        "description": p.description,
        "startDate": p.start_date,
        "endDate": p.end_date,
        "status": p.status.value,
        "employeeIds": list(p.employee_ids),
        "createdAt": to_iso(p.created_at),
        "updatedAt": to_iso(p.updated_at),
    }


def from_document(d: Document) -> Project:
    return Project(
        id=str(d["id"]),
        name=d.get("name") or "",
        description=d.get("description"),
        start_date=d.get("startDate"),
        end_date=d.get("endDate"),
        status=ProjectStatus(d.get("status") or ProjectStatus.PLANNED.value),
        employee_ids=tuple(d.get("employeeIds") or ()),
        created_at=from_iso(d.get("createdAt")),
        updated_at=from_iso(d.get("updatedAt")),
    )


class DocumentProjectRepository(ProjectRepository):
    def __init__(self, store: DocumentStore, *, collection: str = PROJECTS_COLLECTION):
        self._store = store
        self._collection = collection

    def get(self, project_id: str) -> Optional[Project]:
        doc = self._store.get(self._collection, project_id)
        return from_document(doc) if doc else None

    def create(self, project: Project) -> Project:
        doc_id = self._store.add(self._collection, to_document(project))
        return replace(project, id=doc_id)

    def update_atomically(self, project_id: str, fn: Callable[[Project], Project]) -> Project:
        def apply(current: Optional[Document]) -> Document:
            if current is None:
                raise NotFoundError("Project not found")
            return to_document(fn(from_document(current)))

        return from_document(self._store.transaction(self._collection, project_id, apply))

    def delete(self, project_id: str) -> bool:
        return self._store.delete(self._collection, project_id)

    def list(
        self,
        *,
        member_id: Optional[str] = None,
        newest_first: bool = True,
        limit: Optional[int] = None,
    ) -> Sequence[Project]:
        filters = [Filter("employeeIds", "array-contains", member_id)] if member_id else []
        docs = self._store.query(
            self._collection,
            filters=filters,
            order_by=OrderBy("createdAt", descending=True) if newest_first else None,
            limit=limit,
        )
        return [from_document(d) for d in docs]
