from __future__ import annotations

from dataclasses import replace
from typing import Callable, Optional, Sequence

from ..common.datetime_utils import from_iso, to_iso
from ..core.constants import PAYSLIPS_COLLECTION
from ..core.enums import PayslipStatus
from ..core.exceptions import NotFoundError
from ..store.document_store import Document, DocumentStore, Filter, OrderBy
from .model import Payslip, PayslipFigures
from .repository import PayslipRepository

# Document field -> PayslipFigures attribute.
_FIGURES = {
    "basic": "basic",
    "allowances": "allowances",
    "deductions": "deductions",
    "overtime": "overtime",
    "bonus": "bonus",
    "grossSalary": "gross_salary",
    "netPay": "net_pay",
    "workingDays": "working_days",
    "presentDays": "present_days",
    "absentDays": "absent_days",
    "leaveDays": "leave_days",
    "overtimeHours": "overtime_hours",
}
_COUNTS = {"working_days", "present_days", "absent_days", "leave_days"}


def to_document(p: Payslip) -> Document:
    doc: Document = {
        "employeeId": p.employee_id,
        "employeeEmail": p.employee_email,
        "month": p.month,
        "year": p.year,
        "monthName": p.month_name,
        "status": p.status.value,
        "generatedBy": p.generated_by,
        "notes": p.notes,
        "isUploaded": p.is_uploaded,
        "generatedAt": to_iso(p.generated_at),
        "createdAt": to_iso(p.created_at),
        "updatedAt": to_iso(p.updated_at),
    }
    for key, attr in _FIGURES.items():
        doc[key] = getattr(p.figures, attr)
    if p.file_path:
        doc["fileUrl"] = p.file_url
        doc["filePath"] = p.file_path
    return doc


def from_document(d: Document) -> Payslip:
    figures = {}
    for key, attr in _FIGURES.items():
        raw = d.get(key) or 0
        figures[attr] = int(raw) if attr in _COUNTS else float(raw)
    return Payslip(
        id=str(d["id"]),
        employee_id=d["employeeId"],
        employee_email=d.get("employeeEmail"),
        month=d["month"],
        year=int(d.get("year") or d["month"][:4]),
        month_name=d.get("monthName") or "",
        figures=PayslipFigures(**figures),
        status=PayslipStatus(d.get("status") or PayslipStatus.GENERATED.value),
        generated_by=d.get("generatedBy"),
        notes=d.get("notes") or "",
        file_url=d.get("fileUrl"),
        file_path=d.get("filePath"),
        is_uploaded=bool(d.get("isUploaded")),
        generated_at=from_iso(d.get("generatedAt")),
        created_at=from_iso(d.get("createdAt")),
        updated_at=from_iso(d.get("updatedAt")),
    )


class DocumentPayslipRepository(PayslipRepository):
    def __init__(self, store: DocumentStore, *, collection: str = PAYSLIPS_COLLECTION):
        self._store = store
        self._collection = collection

    def get(self, payslip_id: str) -> Optional[Payslip]:
        doc = self._store.get(self._collection, payslip_id)
        return from_document(doc) if doc else None

    def find_for_month(self, employee_id: str, month: str) -> Optional[Payslip]:
        docs = self._store.query(
            self._collection,
            filters=[Filter("employeeId", "==", employee_id), Filter("month", "==", month)],
            limit=1,
        )
        return from_document(docs[0]) if docs else None

    def create(self, payslip: Payslip) -> Payslip:
        doc_id = self._store.add(self._collection, to_document(payslip))
        return replace(payslip, id=doc_id)

    def update_atomically(self, payslip_id: str, fn: Callable[[Payslip], Payslip]) -> Payslip:
        def apply(current: Optional[Document]) -> Document:
            if current is None:
                raise NotFoundError("Payslip not found")
            return to_document(fn(from_document(current)))

        return from_document(self._store.transaction(self._collection, payslip_id, apply))

    def delete(self, payslip_id: str) -> bool:
        return self._store.delete(self._collection, payslip_id)

    def list(
        self,
        *,
        employee_id: Optional[str] = None,
        month: Optional[str] = None,
        year: Optional[int] = None,
        status: Optional[PayslipStatus] = None,
        newest_first: bool = True,
        limit: Optional[int] = None,
    ) -> Sequence[Payslip]:
        filters = []
        if employee_id:
            filters.append(Filter("employeeId", "==", employee_id))
        if month:
            filters.append(Filter("month", "==", month))
        if year:
            filters.append(Filter("year", "==", int(year)))
        if status is not None:
            filters.append(Filter("status", "==", status.value))
        docs = self._store.query(
            self._collection,
            filters=filters,
            order_by=OrderBy("month", descending=True) if newest_first else None,
            limit=limit,
        )
        return [from_document(d) for d in docs]
