from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..common.datetime_utils import parse_iso_date
from ..core.enums import LeaveStatus, LeaveType


@dataclass(frozen=True)
class LeaveRequest:
    id: str
    employee_id: str
    leave_type: LeaveType
    from_date: str
    to_date: str
    reason: Optional[str]
    status: LeaveStatus
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    decided_by: Optional[str] = None

    @property
    def days(self) -> int:
        """Inclusive day count of the requested range."""
        return (parse_iso_date(self.to_date) - parse_iso_date(self.from_date)).days + 1
