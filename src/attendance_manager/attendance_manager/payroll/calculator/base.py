from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Sequence

from ...attendance.model import AttendanceRecord
from ...employees.model import Salary
from ..model import PayslipFigures


class PayslipCalculator(ABC):
    """Calculator interface (Strategy Pattern for payslips)."""

    @abstractmethod
    def calculate(self, salary: Salary, month: str, records: Sequence[AttendanceRecord]) -> PayslipFigures:
        raise NotImplementedError
