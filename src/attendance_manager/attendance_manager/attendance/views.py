from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime, tzinfo
from typing import Callable, Dict, List, Optional, Protocol, Sequence

from ..common.datetime_utils import local_day, now_local, seconds_until_next_day
from ..core.constants import ADMIN_LIST_LIMIT, DEFAULT_HISTORY_LIMIT
from ..core.enums import AttendanceStatus, CyclePhase
from ..core.exceptions import IndexMissing
from ..store.document_store import Unsubscribe
from .hours import net_worked_hours, round_hours
from .model import AttendanceRecord, AttendanceRow
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)


class EmployeeDirectory(Protocol):
    """Lookup-by-id collaborator used to show names in admin listings."""

    def find_name(self, employee_id: str) -> Optional[str]:
        raise NotImplementedError


@dataclass(frozen=True)
class TodayStatus:
    employee_id: str
    date: str
    record: Optional[AttendanceRecord]
    phase: CyclePhase
    live_hours: Optional[float]

    @property
    def checked_in(self) -> bool:
        return self.phase in (CyclePhase.CHECKED_IN, CyclePhase.ON_LUNCH)

    @property
    def on_lunch(self) -> bool:
        return self.phase == CyclePhase.ON_LUNCH


@dataclass(frozen=True)
class RecordPage:
    """List result; ``warning`` is set when ordering fell back to memory."""

    items: List = field(default_factory=list)
    warning: Optional[str] = None


def live_hours(record: Optional[AttendanceRecord], now: datetime) -> Optional[float]:
    """Hours worked so far in the current cycle; stored total once checked out."""
    if record is None or record.check_in is None:
        return None
    if record.check_out is not None and record.total_hours is not None:
        return record.total_hours
    lunch = record.lunch_break
    end = record.check_out.timestamp if record.check_out else now
    return round_hours(
        net_worked_hours(
            record.check_in.timestamp,
            end,
            lunch.start if lunch else None,
            lunch.end if lunch else None,
            now=now,
        )
    )


class TodayWatch:
    """Live today-status subscription that follows the ledger day.

    At each local midnight the subscription moves to the new day's record and
    emits its status. Calling the instance unsubscribes.
    """

    def __init__(
        self,
        attendance: AttendanceRepository,
        status_for: Callable[[str, str, Optional[AttendanceRecord], datetime], TodayStatus],
        employee_id: str,
        callback: Callable[[TodayStatus], None],
        on_error: Optional[Callable[[Exception], None]],
        clock: Callable[[], datetime],
        zone: Optional[tzinfo],
    ):
        self._attendance = attendance
        self._status_for = status_for
        self._employee_id = employee_id
        self._callback = callback
        self._on_error = on_error
        self._clock = clock
        self._zone = zone
        self._lock = threading.RLock()
        self._unsubscribe: Optional[Unsubscribe] = None
        self._timer: Optional[threading.Timer] = None
        self._stopped = False
        self.work_date: Optional[str] = None

    def start(self) -> "TodayWatch":
        self.rollover()
        return self

    def rollover(self) -> None:
        """Re-key on the current ledger day and schedule the next switch."""
        with self._lock:
            if self._stopped:
                return
            now = self._clock()
            work_date = local_day(now, self._zone)
            if work_date != self.work_date:
                if self._unsubscribe is not None:
                    self._unsubscribe()
                logger.debug("today watch employee=%s day=%s", self._employee_id, work_date)
                self.work_date = work_date
                self._unsubscribe = self._attendance.watch(
                    self._employee_id, work_date, self._emitter(work_date), self._on_error
                )
            self._schedule(seconds_until_next_day(now, self._zone))

    def _emitter(self, work_date: str) -> Callable[[Optional[AttendanceRecord]], None]:
        def emit(record: Optional[AttendanceRecord]) -> None:
            # Late snapshots of a previous day are dropped.
            if self._stopped or work_date != self.work_date:
                return
            self._callback(self._status_for(self._employee_id, work_date, record, self._clock()))

        return emit

    def _schedule(self, delay: float) -> None:
        if self._timer is not None:
            self._timer.cancel()
        self._timer = threading.Timer(delay, self.rollover)
        self._timer.daemon = True
        self._timer.start()

    def __call__(self) -> None:
        with self._lock:
            self._stopped = True
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None
            if self._unsubscribe is not None:
                self._unsubscribe()
                self._unsubscribe = None


class AttendanceViews:
    """Read-only projections over the attendance ledger, newest first."""

    def __init__(
        self,
        attendance: AttendanceRepository,
        directory: Optional[EmployeeDirectory] = None,
        *,
        zone: Optional[tzinfo] = None,
    ):
        self._attendance = attendance
        self._directory = directory
        self._zone = zone

    def _status(self, employee_id: str, work_date: str, record: Optional[AttendanceRecord], now: datetime) -> TodayStatus:
        return TodayStatus(
            employee_id=employee_id,
            date=work_date,
            record=record,
            phase=record.phase if record else CyclePhase.NOT_STARTED,
            live_hours=live_hours(record, now),
        )

    def today_status(self, employee_id: str, *, now: Optional[datetime] = None) -> TodayStatus:
        now = now or now_local(self._zone)
        work_date = local_day(now, self._zone)
        record = self._attendance.get(employee_id, work_date)
        return self._status(employee_id, work_date, record, now)

    def watch_today(
        self,
        employee_id: str,
        callback: Callable[[TodayStatus], None],
        on_error: Optional[Callable[[Exception], None]] = None,
        *,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> TodayWatch:
        """Stream today's status on every change until the returned watch is called."""

        clock = clock or (lambda: now_local(self._zone))
        return TodayWatch(self._attendance, self._status, employee_id, callback, on_error, clock, self._zone).start()

    def _newest_first(self, *, limit: Optional[int], **filters) -> RecordPage:
        try:
            records = self._attendance.find(newest_first=True, limit=limit, **filters)
            return RecordPage(items=list(records))
        except IndexMissing as exc:
            logger.warning("Index not found, sorting attendance in memory: %s", exc)
            records = sorted(
                self._attendance.find(newest_first=False, **filters),
                key=lambda r: r.date,
                reverse=True,
            )
            if limit is not None:
                records = records[:limit]
            return RecordPage(items=records, warning=str(exc))

    def employee_history(self, employee_id: str, *, limit: int = DEFAULT_HISTORY_LIMIT) -> RecordPage:
        return self._newest_first(employee_id=employee_id, limit=int(limit))

    def records_between(self, *, start_date: str, end_date: str, employee_id: Optional[str] = None) -> RecordPage:
        return self._newest_first(employee_id=employee_id, start_date=start_date, end_date=end_date, limit=None)

    def admin_listing(
        self,
        *,
        employee_id: Optional[str] = None,
        work_date: Optional[str] = None,
        status: Optional[AttendanceStatus] = None,
        limit: int = ADMIN_LIST_LIMIT,
    ) -> RecordPage:
        page = self._newest_first(employee_id=employee_id, work_date=work_date, status=status, limit=int(limit))
        return RecordPage(items=self.with_names(page.items), warning=page.warning)

    def with_names(self, records: Sequence[AttendanceRecord]) -> List[AttendanceRow]:
        names: Dict[str, Optional[str]] = {}
        rows = []
        for r in records:
            if r.employee_id not in names:
                names[r.employee_id] = self._directory.find_name(r.employee_id) if self._directory else None
            rows.append(AttendanceRow(record=r, employee_name=names[r.employee_id]))
        return rows
