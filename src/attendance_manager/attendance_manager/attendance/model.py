from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import AttendanceStatus, CheckMethod, CyclePhase
from ..core.exceptions import ValidationError


@dataclass(frozen=True)
class GeoPoint:
    latitude: float
    longitude: float


@dataclass(frozen=True)
class Punch:
    """One check-in or check-out event."""

    timestamp: datetime
    method: CheckMethod
    location: Optional[GeoPoint] = None


@dataclass(frozen=True)
class LunchBreak:
    start: datetime
    end: Optional[datetime] = None
    duration: Optional[float] = None

    @property
    def active(self) -> bool:
        return self.end is None


@dataclass(frozen=True)
class AttendanceRecord:
    """Domain entity: one employee's attendance for one calendar day.

    The (employee_id, date) pair is the identity. Illegal combinations (a
    check-out or a lunch break without a check-in) are rejected on construction.
    """

    employee_id: str
    date: str
    status: AttendanceStatus
    check_in: Optional[Punch] = None
    check_out: Optional[Punch] = None
    lunch_break: Optional[LunchBreak] = None
    total_hours: Optional[float] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def __post_init__(self):
        if self.check_out is not None and self.check_in is None:
            raise ValidationError("Check-out recorded without a check-in")
        if self.lunch_break is not None and self.check_in is None:
            raise ValidationError("Lunch break recorded without a check-in")
        if self.total_hours is not None and self.total_hours < 0:
            raise ValidationError("Total hours cannot be negative")

    @property
    def key(self) -> str:
        return record_key(self.employee_id, self.date)

    @property
    def phase(self) -> CyclePhase:
        if self.check_in is None:
            return CyclePhase.NOT_STARTED
        if self.check_out is not None:
            return CyclePhase.CHECKED_OUT
        if self.lunch_break is not None and self.lunch_break.active:
            return CyclePhase.ON_LUNCH
        return CyclePhase.CHECKED_IN


@dataclass(frozen=True)
class AttendanceRow:
    """Read-model for admin listings: record joined with the employee directory."""

    record: AttendanceRecord
    employee_name: Optional[str]


def record_key(employee_id: str, work_date: str) -> str:
    return f"{employee_id}_{work_date}"
