from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import datetime, tzinfo
from typing import List, Optional, Sequence

from ..common.datetime_utils import now_local
from ..common.validators import require_date_range, require_iso_date, require_non_empty
from ..core.constants import ADMIN_LEAVE_LIMIT, EMPLOYEE_LEAVE_LIMIT
from ..core.enums import LeaveStatus, LeaveType, Role
from ..core.exceptions import AuthorizationError, IndexMissing, NotFoundError, ValidationError
from ..employees.repository import EmployeeRepository
from .model import LeaveRequest
from .repository import LeaveRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NewLeaveRequest:
    leave_type: LeaveType
    from_date: str
    to_date: str
    reason: Optional[str] = None


class LeaveService:
    def __init__(self, leaves: LeaveRepository, employees: EmployeeRepository, *, zone: Optional[tzinfo] = None):
        self._leaves = leaves
        self._employees = employees
        self._zone = zone

    def create(self, employee_id: str, data: NewLeaveRequest, *, now: Optional[datetime] = None) -> LeaveRequest:
        employee_id = require_non_empty(employee_id, "Employee")
        start = require_iso_date(data.from_date, "From date")
        end = require_iso_date(data.to_date, "To date")
        require_date_range(start, end)
        now = now or now_local(self._zone)
        leave = LeaveRequest(
            id="",
            employee_id=employee_id,
            leave_type=LeaveType(data.leave_type),
            from_date=start.isoformat(),
            to_date=end.isoformat(),
            reason=(data.reason or "").strip() or None,
            status=LeaveStatus.PENDING,
            created_at=now,
            updated_at=now,
        )
        created = self._leaves.create(leave)
        logger.info("leave requested id=%s employee=%s days=%d", created.id, employee_id, created.days)
        return created

    def _newest_first(self, *, limit: int, **filters) -> List[LeaveRequest]:
        try:
            return list(self._leaves.list(newest_first=True, limit=limit, **filters))
        except IndexMissing as exc:
            logger.warning("Index not found, sorting leave requests in memory: %s", exc)
            items = sorted(
                self._leaves.list(newest_first=False, **filters),
                key=lambda r: r.created_at.timestamp() if r.created_at else 0.0,
                reverse=True,
            )
            return items[:limit]

    def list_for_employee(self, employee_id: str, *, limit: int = EMPLOYEE_LEAVE_LIMIT) -> Sequence[LeaveRequest]:
        return self._newest_first(employee_id=employee_id, limit=int(limit))

    def list_all(self, *, status: Optional[LeaveStatus] = None, limit: int = ADMIN_LEAVE_LIMIT) -> Sequence[LeaveRequest]:
        return self._newest_first(status=status, limit=int(limit))

    def approve(self, leave_id: str, *, current_role: Role, decided_by: str, now: Optional[datetime] = None) -> LeaveRequest:
        """Approve a pending request and take its days from the employee's balance.

        The balance is checked and debited in one transaction on the employee
        record before the request flips to Approved. If the flip fails the
        days are put back.
        """

        if current_role != Role.ADMIN:
            raise AuthorizationError("Only admins can approve leave requests")
        now = now or now_local(self._zone)

        leave = self._leaves.get(leave_id)
        if leave is None:
            raise NotFoundError("Leave request not found")
        if leave.status != LeaveStatus.PENDING:
            raise ValidationError("Leave request has already been processed")
        employee = self._employees.get_by_email(leave.employee_id)
        if employee is None:
            raise NotFoundError("Employee not found")

        self._adjust_balance(employee.id, leave.leave_type, -leave.days, now)

        def decide(current: LeaveRequest) -> LeaveRequest:
            if current.status != LeaveStatus.PENDING:
                raise ValidationError("Leave request has already been processed")
            return replace(current, status=LeaveStatus.APPROVED, decided_by=decided_by, updated_at=now)

        try:
            approved = self._leaves.update_atomically(leave_id, decide)
        except Exception:
            logger.warning("leave approval failed id=%s, returning %d days to %s", leave_id, leave.days, employee.id)
            self._adjust_balance(employee.id, leave.leave_type, leave.days, now)
            raise

        logger.info("leave approved id=%s employee=%s days=%d", leave_id, approved.employee_id, approved.days)
        return approved

    def _adjust_balance(self, employee_id: str, leave_type: LeaveType, delta: int, now: datetime) -> None:
        field_name = leave_type.value.lower()

        def apply(employee):
            remaining = employee.leave_balance.days_for(leave_type) + delta
            if remaining < 0:
                raise ValidationError(f"Insufficient {leave_type.value} leave balance")
            return replace(employee, leave_balance=replace(employee.leave_balance, **{field_name: remaining}), updated_at=now)

        self._employees.update_atomically(employee_id, apply)

    def reject(self, leave_id: str, *, current_role: Role, decided_by: str, now: Optional[datetime] = None) -> LeaveRequest:
        if current_role != Role.ADMIN:
            raise AuthorizationError("Only admins can reject leave requests")
        now = now or now_local(self._zone)

        def decide(leave: LeaveRequest) -> LeaveRequest:
            if leave.status != LeaveStatus.PENDING:
                raise ValidationError("Leave request has already been processed")
            return replace(leave, status=LeaveStatus.REJECTED, decided_by=decided_by, updated_at=now)

        rejected = self._leaves.update_atomically(leave_id, decide)
        logger.info("leave rejected id=%s employee=%s", leave_id, rejected.employee_id)
        return rejected
