from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import PayslipStatus


@dataclass(frozen=True)
class PayslipFigures:
    """Computed money and attendance figures of one month."""

    basic: float = 0.0
    allowances: float = 0.0
    deductions: float = 0.0
    overtime: float = 0.0
    bonus: float = 0.0
    gross_salary: float = 0.0
    net_pay: float = 0.0
    working_days: int = 0
    present_days: int = 0
    absent_days: int = 0
    leave_days: int = 0
    overtime_hours: float = 0.0


@dataclass(frozen=True)
class Payslip:
    id: str
    employee_id: str
    employee_email: Optional[str]
    month: str
    year: int
    month_name: str
    figures: PayslipFigures
    status: PayslipStatus = PayslipStatus.GENERATED
    generated_by: Optional[str] = None
    notes: str = ""
    file_url: Optional[str] = None
    file_path: Optional[str] = None
    is_uploaded: bool = False
    generated_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
