from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import EmployeeDocument


class DocumentRepository(Protocol):
    def get(self, document_id: str) -> Optional[EmployeeDocument]:
        raise NotImplementedError

    def create(self, document: EmployeeDocument) -> EmployeeDocument:
        raise NotImplementedError

    def delete(self, document_id: str) -> bool:
        raise NotImplementedError

    def list_for_employee(
        self,
        employee_id: str,
        *,
        newest_first: bool = True,
        limit: Optional[int] = None,
    ) -> Sequence[EmployeeDocument]:
        raise NotImplementedError
