from __future__ import annotations

from dataclasses import replace
from typing import Callable, Optional, Sequence

from ..common.datetime_utils import from_iso, to_iso
from ..core.constants import EMPLOYEE_EMAILS_COLLECTION, EMPLOYEES_COLLECTION
from ..core.enums import Role
from ..core.exceptions import NotFoundError, ValidationError
from ..store.document_store import Document, DocumentStore, Filter, OrderBy
from .model import Employee, LeaveBalance, Salary
from .repository import EmployeeRepository


def to_document(e: Employee) -> Document:
    doc: Document = {
        "email": e.email,
        "name": e.name,
        "role": e.role.value,
        "department": e.department,
        "designation": e.designation,
        "managerId": e.manager_id,
        "joinDate": e.join_date,
        "leaveBalance": {
            "casual": e.leave_balance.casual,
            "sick": e.leave_balance.sick,
            "privilege": e.leave_balance.privilege,
        },
        "isActive": e.is_active,
        "createdAt": to_iso(e.created_at),
        "updatedAt": to_iso(e.updated_at),
    }
    if e.salary is not None:
        doc["salary"] = {
            "basic": e.salary.basic,
            "allowances": e.salary.allowances,
            "deductions": e.salary.deductions,
        }
    return doc


def from_document(d: Document) -> Employee:
    salary = d.get("salary")
    balance = d.get("leaveBalance") or {}
    return Employee(
        id=str(d["id"]),
        email=d.get("email") or "",
        name=d.get("name") or "",
        role=Role(d.get("role") or Role.EMPLOYEE.value),
        department=d.get("department") or "",
        designation=d.get("designation"),
        manager_id=d.get("managerId"),
        join_date=d.get("joinDate"),
        salary=Salary(
            basic=float(salary.get("basic") or 0),
            allowances=float(salary.get("allowances") or 0),
            deductions=float(salary.get("deductions") or 0),
        )
        if salary
        else None,
        leave_balance=LeaveBalance(**{k: int(v) for k, v in balance.items() if k in ("casual", "sick", "privilege")}),
        is_active=bool(d.get("isActive", True)),
        created_at=from_iso(d.get("createdAt")),
        updated_at=from_iso(d.get("updatedAt")),
    )


class DocumentEmployeeRepository(EmployeeRepository):
    """Employees keyed by generated id; ``employeeEmails`` holds one claim per lower-cased email."""

    def __init__(
        self,
        store: DocumentStore,
        *,
        collection: str = EMPLOYEES_COLLECTION,
        emails_collection: str = EMPLOYEE_EMAILS_COLLECTION,
    ):
        self._store = store
        self._collection = collection
        self._emails = emails_collection

    def get_by_id(self, employee_id: str) -> Optional[Employee]:
        doc = self._store.get(self._collection, employee_id)
        return from_document(doc) if doc else None

    def get_by_email(self, email: str) -> Optional[Employee]:
        docs = self._store.query(self._collection, filters=[Filter("email", "==", email.lower())], limit=1)
        return from_document(docs[0]) if docs else None

    def _claim_email(self, email: str) -> None:
        def claim(current: Optional[Document]) -> Document:
            if current is not None:
                raise ValidationError("An employee with this email already exists")
            return {"email": email}

        self._store.transaction(self._emails, email, claim)

    def create(self, employee: Employee) -> Employee:
        email = employee.email.lower()
        self._claim_email(email)
        try:
            doc_id = self._store.add(self._collection, to_document(employee))
        except Exception:
            self._store.delete(self._emails, email)
            raise
        self._store.set(self._emails, email, {"email": email, "employeeId": doc_id})
        return replace(employee, id=doc_id)

    def save(self, employee: Employee) -> Employee:
        self._store.set(self._collection, employee.id, to_document(employee))
        return employee

    def update_atomically(self, employee_id: str, fn: Callable[[Employee], Employee]) -> Employee:
        def apply(current: Optional[Document]) -> Document:
            if current is None:
                raise NotFoundError("Employee not found")
            return to_document(fn(from_document(current)))

        return from_document(self._store.transaction(self._collection, employee_id, apply))

    def delete_by_id(self, employee_id: str) -> bool:
        doc = self._store.get(self._collection, employee_id)
        if doc is None:
            return False
        deleted = self._store.delete(self._collection, employee_id)
        if doc.get("email"):
            self._store.delete(self._emails, str(doc["email"]).lower())
        return deleted

    def list(
        self,
        *,
        department: Optional[str] = None,
        is_active: Optional[bool] = None,
        manager_id: Optional[str] = None,
        newest_first: bool = True,
    ) -> Sequence[Employee]:
        filters: list[Filter] = []
        if department:
            filters.append(Filter("department", "==", department))
        if is_active is not None:
            filters.append(Filter("isActive", "==", bool(is_active)))
        if manager_id:
            filters.append(Filter("managerId", "==", manager_id))
        docs = self._store.query(
            self._collection,
            filters=filters,
            order_by=OrderBy("createdAt", descending=True) if newest_first else None,
        )
        return [from_document(d) for d in docs]
