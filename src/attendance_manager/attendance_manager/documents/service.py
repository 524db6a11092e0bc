from __future__ import annotations

import logging
from datetime import datetime, tzinfo
from pathlib import PurePosixPath
from typing import Optional, Sequence

from ..common.datetime_utils import now_local
from ..common.validators import require_non_empty
from ..core.constants import DOCUMENT_LIST_LIMIT
from ..core.exceptions import IndexMissing, NotFoundError, ValidationError
from ..storage.object_storage import ObjectStorage
from .model import EmployeeDocument
from .repository import DocumentRepository

logger = logging.getLogger(__name__)


class EmployeeDocumentService:
    def __init__(self, documents: DocumentRepository, storage: ObjectStorage, *, zone: Optional[tzinfo] = None):
        self._documents = documents
        self._storage = storage
        self._zone = zone

    def list_for_employee(self, employee_id: str, *, limit: int = DOCUMENT_LIST_LIMIT) -> Sequence[EmployeeDocument]:
        try:
            return self._documents.list_for_employee(employee_id, newest_first=True, limit=int(limit))
        except IndexMissing as exc:
            logger.warning("Index not found, sorting documents in memory: %s", exc)
            items = sorted(
                self._documents.list_for_employee(employee_id, newest_first=False),
                key=lambda d: d.uploaded_at.timestamp() if d.uploaded_at else 0.0,
                reverse=True,
            )
            return items[: int(limit)]

    def upload(
        self,
        employee_id: str,
        name: str,
        filename: str,
        data: bytes,
        *,
        content_type: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> EmployeeDocument:
        employee_id = require_non_empty(employee_id, "Employee")
        # Keep only the final component of client-supplied names.
        filename = PurePosixPath(require_non_empty(filename, "File name").replace("\\", "/")).name
        if not filename or filename in (".", ".."):
            raise ValidationError("Invalid file name")
        if not data:
            raise ValidationError("Uploaded file is empty")

        now = now or now_local(self._zone)
        path = f"employee-documents/{employee_id}/{int(now.timestamp() * 1000)}_{filename}"
        stored = self._storage.upload(path, data, content_type=content_type)
        try:
            document = self._documents.create(
                EmployeeDocument(
                    id="",
                    employee_id=employee_id,
                    name=(name or "").strip() or filename,
                    file_url=stored.url,
                    file_path=stored.path,
                    uploaded_at=now,
                )
            )
        except Exception:
            self._remove_file(stored.path)
            raise
        logger.info("document uploaded id=%s employee=%s path=%s", document.id, employee_id, path)
        return document

    def get(self, document_id: str) -> EmployeeDocument:
        document = self._documents.get(document_id)
        if not document:
            raise NotFoundError("Document not found")
        return document

    def delete(self, document_id: str) -> None:
        document = self.get(document_id)
        self._documents.delete(document_id)
        if document.file_path:
            self._remove_file(document.file_path)
        logger.info("document deleted id=%s", document_id)

    def _remove_file(self, path: str) -> None:
        try:
            if not self._storage.delete(path):
                logger.warning("Document file %s was already gone", path)
        except OSError as exc:
            logger.warning("Failed to delete document file %s: %s", path, exc)
