from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import datetime, tzinfo
from typing import Optional, Sequence

from ..common.datetime_utils import now_local
from ..common.validators import require_email, require_non_empty
from ..core.enums import Role
from ..core.exceptions import IndexMissing, NotFoundError, ValidationError
from .model import Employee, LeaveBalance, Salary
from .repository import EmployeeRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NewEmployee:
    email: str
    name: str
    department: str
    role: Role = Role.EMPLOYEE
    designation: Optional[str] = None
    manager_id: Optional[str] = None
    join_date: Optional[str] = None
    salary: Optional[Salary] = None
    leave_balance: Optional[LeaveBalance] = None


_UPDATABLE = {"name", "role", "department", "designation", "manager_id", "join_date", "salary", "leave_balance", "is_active"}


class EmployeeService:
    """Use cases for the employee directory."""

    def __init__(self, employees: EmployeeRepository, *, zone: Optional[tzinfo] = None):
        self._employees = employees
        self._zone = zone

    def create(self, data: NewEmployee, *, now: Optional[datetime] = None) -> Employee:
        email = require_email(data.email)
        now = now or now_local(self._zone)
        employee = Employee(
            id="",
            email=email,
            name=require_non_empty(data.name, "Name"),
            role=data.role,
            department=(data.department or "").strip(),
            designation=data.designation,
            manager_id=data.manager_id,
            join_date=data.join_date,
            salary=data.salary,
            leave_balance=data.leave_balance or LeaveBalance(),
            created_at=now,
            updated_at=now,
        )
        created = self._employees.create(employee)
        logger.info("employee created id=%s email=%s", created.id, created.email)
        return created

    def get(self, employee_id: str) -> Employee:
        employee = self._employees.get_by_id(employee_id)
        if not employee:
            raise NotFoundError("Employee not found")
        return employee

    def get_by_email(self, email: str) -> Optional[Employee]:
        return self._employees.get_by_email((email or "").strip().lower())

    def find_name(self, employee_id: str) -> Optional[str]:
        """Directory lookup for attendance listings (attendance is keyed by email)."""
        employee = self.get_by_email(employee_id)
        return employee.name if employee else None

    def list(
        self,
        *,
        department: Optional[str] = None,
        is_active: Optional[bool] = None,
        manager_id: Optional[str] = None,
    ) -> Sequence[Employee]:
        filters = dict(department=department, is_active=is_active, manager_id=manager_id)
        try:
            return self._employees.list(newest_first=True, **filters)
        except IndexMissing as exc:
            logger.warning("Index not found, sorting employees in memory: %s", exc)
            items = list(self._employees.list(newest_first=False, **filters))
            items.sort(key=lambda e: e.created_at.timestamp() if e.created_at else 0.0, reverse=True)
            return items

    def update(self, employee_id: str, *, now: Optional[datetime] = None, **changes) -> Employee:
        unknown = set(changes) - _UPDATABLE
        if unknown:
            raise ValidationError(f"Fields cannot be updated: {', '.join(sorted(unknown))}")
        now = now or now_local(self._zone)
        return self._employees.update_atomically(
            employee_id, lambda e: replace(e, updated_at=now, **changes)
        )

    def deactivate(self, employee_id: str, *, now: Optional[datetime] = None) -> Employee:
        return self.update(employee_id, is_active=False, now=now)

    def delete(self, employee_id: str) -> None:
        if not self._employees.delete_by_id(employee_id):
            raise NotFoundError("Employee not found")

