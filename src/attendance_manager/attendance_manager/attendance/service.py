from __future__ import annotations

import hmac
import logging
from dataclasses import replace
from datetime import datetime, tzinfo
from typing import Optional

from ..common.datetime_utils import local_day, now_local
from ..common.validators import require_non_empty
from ..core.enums import AttendanceStatus, CheckMethod, CyclePhase
from ..core.exceptions import (
    AlreadyCheckedIn,
    LunchBreakAlreadyActive,
    LunchBreakNotActive,
    NoActiveCheckIn,
    ValidationError,
)
from .hours import elapsed_hours, net_worked_hours, round_hours
from .model import AttendanceRecord, GeoPoint, LunchBreak, Punch
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)


class AttendanceService:
    """Daily attendance ledger: check-in, check-out and lunch breaks.

    Every operation is one transaction on the (employee, today) record, so the
    phase check and the write cannot interleave with a concurrent call. A
    failed check leaves the record exactly as it was.

    Check-out during a running lunch break closes the break at the check-out
    instant, so the whole break counts as non-working time.
    """

    def __init__(self, attendance: AttendanceRepository, *, zone: Optional[tzinfo] = None, qr_token: str = ""):
        self._attendance = attendance
        self._zone = zone
        self._qr_token = qr_token

    def _now(self, now: Optional[datetime]) -> datetime:
        return now or now_local(self._zone)

    def today(self, *, now: Optional[datetime] = None) -> str:
        return local_day(self._now(now), self._zone)

    def check_in(
        self,
        employee_id: str,
        location: Optional[GeoPoint] = None,
        *,
        method: Optional[CheckMethod] = None,
        now: Optional[datetime] = None,
    ) -> AttendanceRecord:
        employee_id = require_non_empty(employee_id, "Employee")
        now = self._now(now)
        work_date = local_day(now, self._zone)
        punch = Punch(timestamp=now, method=method or _method_for(location), location=location)

        def transition(current: Optional[AttendanceRecord]) -> AttendanceRecord:
            if current is None:
                return AttendanceRecord(
                    employee_id=employee_id,
                    date=work_date,
                    status=AttendanceStatus.PRESENT,
                    check_in=punch,
                    created_at=now,
                    updated_at=now,
                )
            if current.phase in (CyclePhase.CHECKED_IN, CyclePhase.ON_LUNCH):
                raise AlreadyCheckedIn("Already checked in. Please check out first.")
            # A completed cycle is replaced by a fresh one.
            return replace(
                current,
                status=AttendanceStatus.PRESENT,
                check_in=punch,
                check_out=None,
                lunch_break=None,
                total_hours=None,
                updated_at=now,
            )

        record = self._attendance.transact(employee_id, work_date, transition)
        logger.info("check-in employee=%s date=%s method=%s", employee_id, work_date, punch.method.value)
        return record

    def check_out(
        self,
        employee_id: str,
        location: Optional[GeoPoint] = None,
        *,
        method: Optional[CheckMethod] = None,
        now: Optional[datetime] = None,
    ) -> AttendanceRecord:
        employee_id = require_non_empty(employee_id, "Employee")
        now = self._now(now)
        work_date = local_day(now, self._zone)
        punch = Punch(timestamp=now, method=method or _method_for(location), location=location)

        def transition(current: Optional[AttendanceRecord]) -> AttendanceRecord:
            if current is None or current.phase == CyclePhase.NOT_STARTED:
                raise NoActiveCheckIn("No check-in found for today")

            lunch = current.lunch_break
            if lunch is not None and lunch.active:
                lunch = replace(lunch, end=now, duration=round_hours(elapsed_hours(lunch.start, now)))

            worked = net_worked_hours(
                current.check_in.timestamp,
                now,
                lunch.start if lunch else None,
                lunch.end if lunch else None,
            )
            # Repeated check-out within a cycle overwrites the previous one.
            return replace(
                current,
                check_out=punch,
                lunch_break=lunch,
                total_hours=round_hours(worked),
                updated_at=now,
            )

        record = self._attendance.transact(employee_id, work_date, transition)
        logger.info("check-out employee=%s date=%s hours=%s", employee_id, work_date, record.total_hours)
        return record

    def start_lunch_break(self, employee_id: str, *, now: Optional[datetime] = None) -> AttendanceRecord:
        employee_id = require_non_empty(employee_id, "Employee")
        now = self._now(now)
        work_date = local_day(now, self._zone)

        def transition(current: Optional[AttendanceRecord]) -> AttendanceRecord:
            phase = current.phase if current else CyclePhase.NOT_STARTED
            if phase == CyclePhase.NOT_STARTED:
                raise NoActiveCheckIn("No check-in found for today")
            if phase == CyclePhase.CHECKED_OUT:
                raise NoActiveCheckIn("Cannot start lunch break after check-out")
            if phase == CyclePhase.ON_LUNCH:
                raise LunchBreakAlreadyActive("Lunch break already started. Please end it first.")
            return replace(current, lunch_break=LunchBreak(start=now), updated_at=now)

        record = self._attendance.transact(employee_id, work_date, transition)
        logger.info("lunch-start employee=%s date=%s", employee_id, work_date)
        return record

    def end_lunch_break(self, employee_id: str, *, now: Optional[datetime] = None) -> AttendanceRecord:
        employee_id = require_non_empty(employee_id, "Employee")
        now = self._now(now)
        work_date = local_day(now, self._zone)

        def transition(current: Optional[AttendanceRecord]) -> AttendanceRecord:
            if current is None or current.phase == CyclePhase.NOT_STARTED:
                raise NoActiveCheckIn("No check-in found for today")
            lunch = current.lunch_break
            if lunch is None:
                raise LunchBreakNotActive("No lunch break started")
            if not lunch.active:
                raise LunchBreakNotActive("Lunch break already ended")
            ended = replace(lunch, end=now, duration=round_hours(elapsed_hours(lunch.start, now)))
            return replace(current, lunch_break=ended, updated_at=now)

        record = self._attendance.transact(employee_id, work_date, transition)
        logger.info("lunch-end employee=%s date=%s duration=%s", employee_id, work_date, record.lunch_break.duration)
        return record

    def scan_qr(
        self,
        employee_id: str,
        code: str,
        *,
        now: Optional[datetime] = None,
    ) -> tuple[str, AttendanceRecord]:
        """Office QR scan: checks out an open cycle, otherwise checks in."""

        code = (code or "").strip()
        if not code:
            raise ValidationError("QR code must not be empty")
        if not self._qr_token or not hmac.compare_digest(code, self._qr_token):
            raise ValidationError("Invalid QR code")

        now = self._now(now)
        current = self._attendance.get(employee_id, local_day(now, self._zone))
        if current is not None and current.phase in (CyclePhase.CHECKED_IN, CyclePhase.ON_LUNCH):
            return "check_out", self.check_out(employee_id, method=CheckMethod.QR, now=now)
        return "check_in", self.check_in(employee_id, method=CheckMethod.QR, now=now)


def _method_for(location: Optional[GeoPoint]) -> CheckMethod:
    return CheckMethod.GPS if location is not None else CheckMethod.MANUAL
