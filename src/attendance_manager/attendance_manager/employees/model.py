from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from ..core.constants import DEFAULT_LEAVE_BALANCE
from ..core.enums import LeaveType, Role


@dataclass(frozen=True)
class Salary:
    basic: float = 0.0
    allowances: float = 0.0
    deductions: float = 0.0


@dataclass(frozen=True)
class LeaveBalance:
    casual: int = DEFAULT_LEAVE_BALANCE
    sick: int = DEFAULT_LEAVE_BALANCE
    privilege: int = DEFAULT_LEAVE_BALANCE

    def days_for(self, leave_type: LeaveType) -> int:
        return int(getattr(self, leave_type.value.lower()))


@dataclass(frozen=True)
class Employee:
    """Domain entity: an entry of the employee directory.

    Note: ``email`` is the identity used by the attendance ledger.
    """

    id: str
    email: str
    name: str
    role: Role = Role.EMPLOYEE
    department: str = ""
    designation: Optional[str] = None
    manager_id: Optional[str] = None
    join_date: Optional[str] = None
    salary: Optional[Salary] = None
    leave_balance: LeaveBalance = field(default_factory=LeaveBalance)
    is_active: bool = True
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
