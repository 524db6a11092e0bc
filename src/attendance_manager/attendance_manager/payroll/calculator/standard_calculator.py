from __future__ import annotations

import calendar
from typing import Sequence

from ...attendance.model import AttendanceRecord
from ...core.constants import OVERTIME_MULTIPLIER, STANDARD_WORKDAY_HOURS
from ...core.enums import AttendanceStatus
from ...employees.model import Salary
from ..model import PayslipFigures
from .base import PayslipCalculator


def working_days_in(month: str) -> int:
    """Monday to Friday days of a YYYY-MM month."""
    year, month_num = (int(p) for p in month.split("-"))
    _, days = calendar.monthrange(year, month_num)
    return sum(1 for day in range(1, days + 1) if calendar.weekday(year, month_num, day) < 5)


class StandardPayslipCalculator(PayslipCalculator):
    """Standard rule: basic + allowances + 1.5x overtime, minus deductions and absent days."""

    def calculate(self, salary: Salary, month: str, records: Sequence[AttendanceRecord]) -> PayslipFigures:
        present = absent = leave = 0
        overtime_hours = 0.0
        for r in records:
            if r.status == AttendanceStatus.LEAVE:
                leave += 1
            elif r.check_in is not None and r.check_out is not None:
                present += 1
                overtime_hours += max(0.0, (r.total_hours or 0.0) - STANDARD_WORKDAY_HOURS)
            elif r.status == AttendanceStatus.ABSENT:
                absent += 1

        working_days = working_days_in(month)
        basic = float(salary.basic or 0)
        allowances = float(salary.allowances or 0)

        per_day = basic / working_days
        deductions = float(salary.deductions or 0) + absent * per_day
        hourly = basic / (working_days * STANDARD_WORKDAY_HOURS)
        overtime_pay = overtime_hours * hourly * OVERTIME_MULTIPLIER

        gross = basic + allowances + overtime_pay
        net = gross - deductions
        return PayslipFigures(
            basic=round(basic, 2),
            allowances=round(allowances, 2),
            deductions=round(deductions, 2),
            overtime=round(overtime_pay, 2),
            bonus=0.0,
            gross_salary=round(gross, 2),
            net_pay=round(net, 2),
            working_days=working_days,
            present_days=present,
            absent_days=absent,
            leave_days=leave,
            overtime_hours=round(overtime_hours, 2),
        )
