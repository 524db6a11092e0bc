from __future__ import annotations

import calendar
import logging
from dataclasses import replace
from datetime import datetime, tzinfo
from typing import List, Optional, Sequence

from ..attendance.model import AttendanceRecord
from ..attendance.repository import AttendanceRepository
from ..common.datetime_utils import month_bounds, now_local
from ..common.validators import require_month, require_non_empty
from ..core.constants import ADMIN_PAYSLIP_LIMIT, EMPLOYEE_PAYSLIP_LIMIT
from ..core.enums import PayslipStatus
from ..core.exceptions import IndexMissing, NotFoundError, ValidationError
from ..employees.model import Employee
from ..employees.repository import EmployeeRepository
from ..storage.object_storage import ObjectStorage
from .calculator.base import PayslipCalculator
from .calculator.standard_calculator import StandardPayslipCalculator
from .model import Payslip, PayslipFigures
from .repository import PayslipRepository

logger = logging.getLogger(__name__)


def month_name(month: str) -> str:
    """``2025-01`` -> ``January 2025``."""
    year, num = month.split("-")
    return f"{calendar.month_name[int(num)]} {year}"


class PayslipService:
    def __init__(
        self,
        payslips: PayslipRepository,
        employees: EmployeeRepository,
        attendance: AttendanceRepository,
        *,
        storage: Optional[ObjectStorage] = None,
        calculator: Optional[PayslipCalculator] = None,
        zone: Optional[tzinfo] = None,
    ):
        self._payslips = payslips
        self._employees = employees
        self._attendance = attendance
        self._storage = storage
        self._calculator = calculator or StandardPayslipCalculator()
        self._zone = zone

    def _employee(self, employee_id: str) -> Employee:
        employee = self._employees.get_by_id(employee_id)
        if not employee:
            raise NotFoundError("Employee not found")
        return employee

    def _ensure_new(self, employee_id: str, month: str) -> None:
        if self._payslips.find_for_month(employee_id, month):
            raise ValidationError("Payslip for this month already exists")

    def _month_records(self, employee: Employee, month: str) -> List[AttendanceRecord]:
        start, end = month_bounds(month)
        try:
            return list(self._attendance.find(employee_id=employee.email, start_date=start, end_date=end))
        except IndexMissing as exc:
            logger.warning("Index not found, filtering attendance for %s in memory: %s", month, exc)
            records = self._attendance.find(employee_id=employee.email, newest_first=False)
            return [r for r in records if r.date.startswith(month)]

    def generate(self, employee_id: str, month: str, *, generated_by: Optional[str] = None, now: Optional[datetime] = None) -> Payslip:
        month = require_month(month)
        self._ensure_new(employee_id, month)
        employee = self._employee(employee_id)
        if employee.salary is None:
            raise ValidationError("Employee salary information not configured")

        figures = self._calculator.calculate(employee.salary, month, self._month_records(employee, month))
        now = now or now_local(self._zone)
        payslip = self._payslips.create(
            Payslip(
                id="",
                employee_id=employee.id,
                employee_email=employee.email,
                month=month,
                year=int(month[:4]),
                month_name=month_name(month),
                figures=figures,
                status=PayslipStatus.GENERATED,
                generated_by=generated_by,
                generated_at=now,
                created_at=now,
                updated_at=now,
            )
        )
        logger.info("payslip generated id=%s employee=%s month=%s net=%.2f", payslip.id, employee.id, month, figures.net_pay)
        return payslip

    def upload(
        self,
        employee_id: str,
        month: str,
        filename: str,
        data: bytes,
        *,
        uploaded_by: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> Payslip:
        """Store a ready-made PDF as the month's payslip; figures are left at zero."""

        if self._storage is None:
            raise ValidationError("File storage is not configured")
        month = require_month(month)
        filename = require_non_empty(filename, "File name")
        if not filename.lower().endswith(".pdf"):
            raise ValidationError("Payslip file must be a PDF")
        if not data:
            raise ValidationError("Uploaded file is empty")

        employee = self._employee(employee_id)
        self._ensure_new(employee_id, month)

        now = now or now_local(self._zone)
        path = f"payslips/{employee_id}/{month}_{int(now.timestamp() * 1000)}_{filename}"
        stored = self._storage.upload(path, data, content_type="application/pdf")
        try:
            payslip = self._payslips.create(
                Payslip(
                    id="",
                    employee_id=employee.id,
                    employee_email=employee.email,
                    month=month,
                    year=int(month[:4]),
                    month_name=month_name(month),
                    figures=PayslipFigures(),
                    status=PayslipStatus.GENERATED,
                    generated_by=uploaded_by,
                    file_url=stored.url,
                    file_path=stored.path,
                    is_uploaded=True,
                    generated_at=now,
                    created_at=now,
                    updated_at=now,
                )
            )
        except Exception:
            self._remove_file(stored.path)
            raise
        logger.info("payslip uploaded id=%s employee=%s month=%s", payslip.id, employee_id, month)
        return payslip

    def get(self, payslip_id: str) -> Payslip:
        payslip = self._payslips.get(payslip_id)
        if not payslip:
            raise NotFoundError("Payslip not found")
        return payslip

    def _newest_first(self, *, limit: int, **filters) -> List[Payslip]:
        try:
            return list(self._payslips.list(newest_first=True, limit=limit, **filters))
        except IndexMissing as exc:
            logger.warning("Index not found, sorting payslips in memory: %s", exc)
            items = sorted(self._payslips.list(newest_first=False, **filters), key=lambda p: p.month, reverse=True)
            return items[:limit]

    def list_for_employee(self, employee_id: str, *, limit: int = EMPLOYEE_PAYSLIP_LIMIT) -> Sequence[Payslip]:
        return self._newest_first(employee_id=employee_id, limit=int(limit))

    def list_all(
        self,
        *,
        employee_id: Optional[str] = None,
        month: Optional[str] = None,
        year: Optional[int] = None,
        status: Optional[PayslipStatus] = None,
        limit: int = ADMIN_PAYSLIP_LIMIT,
    ) -> Sequence[Payslip]:
        return self._newest_first(employee_id=employee_id, month=month, year=year, status=status, limit=int(limit))

    def update(
        self,
        payslip_id: str,
        *,
        status: Optional[PayslipStatus] = None,
        notes: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> Payslip:
        now = now or now_local(self._zone)

        def apply(p: Payslip) -> Payslip:
            return replace(
                p,
                status=PayslipStatus(status) if status is not None else p.status,
                notes=notes if notes is not None else p.notes,
                updated_at=now,
            )

        return self._payslips.update_atomically(payslip_id, apply)

    def delete(self, payslip_id: str) -> None:
        payslip = self.get(payslip_id)
        self._payslips.delete(payslip_id)
        if payslip.file_path and self._storage is not None:
            self._remove_file(payslip.file_path)
        logger.info("payslip deleted id=%s", payslip_id)

    def _remove_file(self, path: str) -> None:
        try:
            if not self._storage.delete(path):
                logger.warning("Payslip file %s was already gone", path)
        except OSError as exc:
            logger.warning("Failed to delete payslip file %s: %s", path, exc)
