from __future__ import annotations

from typing import Callable, Optional, Protocol, Sequence

from ..core.enums import AttendanceStatus
from ..store.document_store import Unsubscribe
from .model import AttendanceRecord

RecordTransition = Callable[[Optional[AttendanceRecord]], AttendanceRecord]


class AttendanceRepository(Protocol):
    def get(self, employee_id: str, work_date: str) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def transact(self, employee_id: str, work_date: str, fn: RecordTransition) -> AttendanceRecord:
        """Apply ``fn`` to the current record as one atomic read-check-write."""

        raise NotImplementedError

    def watch(
        self,
        employee_id: str,
        work_date: str,
        callback: Callable[[Optional[AttendanceRecord]], None],
        on_error: Optional[Callable[[Exception], None]] = None,
    ) -> Unsubscribe:
        raise NotImplementedError

    def find(
        self,
        *,
        employee_id: Optional[str] = None,
        work_date: Optional[str] = None,
        status: Optional[AttendanceStatus] = None,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
        newest_first: bool = True,
        limit: Optional[int] = None,
    ) -> Sequence[AttendanceRecord]:
        """``newest_first`` needs a server-side index and may raise IndexMissing."""

        raise NotImplementedError
