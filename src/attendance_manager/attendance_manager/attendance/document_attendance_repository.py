from __future__ import annotations

from typing import Callable, Optional, Sequence

from ..common.datetime_utils import from_iso, to_iso
from ..core.constants import ATTENDANCE_COLLECTION
from ..core.enums import AttendanceStatus, CheckMethod
from ..store.document_store import Document, DocumentStore, Filter, OrderBy, Unsubscribe
from .model import AttendanceRecord, GeoPoint, LunchBreak, Punch, record_key
from .repository import AttendanceRepository, RecordTransition


def _punch_to_doc(p: Optional[Punch]) -> Optional[dict]:
    if p is None:
        return None
    out: dict = {"timestamp": to_iso(p.timestamp), "method": p.method.value}
    if p.location is not None:
        out["location"] = {"latitude": p.location.latitude, "longitude": p.location.longitude}
    return out


def _punch_from_doc(d: Optional[dict]) -> Optional[Punch]:
    if not d or not d.get("timestamp"):
        return None
    loc = d.get("location")
    return Punch(
        timestamp=from_iso(d["timestamp"]),
        method=CheckMethod(d.get("method") or CheckMethod.MANUAL.value),
        location=GeoPoint(float(loc["latitude"]), float(loc["longitude"])) if loc else None,
    )


def to_document(r: AttendanceRecord) -> Document:
    doc: Document = {
        "employeeId": r.employee_id,
        "date": r.date,
        "status": r.status.value,
        "createdAt": to_iso(r.created_at),
        "updatedAt": to_iso(r.updated_at),
    }
    if r.check_in is not None:
        doc["checkIn"] = _punch_to_doc(r.check_in)
    if r.check_out is not None:
        doc["checkOut"] = _punch_to_doc(r.check_out)
    if r.lunch_break is not None:
        lb: dict = {"start": to_iso(r.lunch_break.start)}
        if r.lunch_break.end is not None:
            lb["end"] = to_iso(r.lunch_break.end)
        if r.lunch_break.duration is not None:
            lb["duration"] = r.lunch_break.duration
        doc["lunchBreak"] = lb
    if r.total_hours is not None:
        doc["totalHours"] = r.total_hours
    return doc


def from_document(d: Document) -> AttendanceRecord:
    lb = d.get("lunchBreak")
    lunch = None
    if lb and lb.get("start"):
        lunch = LunchBreak(
            start=from_iso(lb["start"]),
            end=from_iso(lb.get("end")),
            duration=lb.get("duration"),
        )
    total = d.get("totalHours")
    return AttendanceRecord(
        employee_id=d["employeeId"],
        date=d["date"],
        status=AttendanceStatus(d.get("status") or AttendanceStatus.PRESENT.value),
        check_in=_punch_from_doc(d.get("checkIn")),
        check_out=_punch_from_doc(d.get("checkOut")),
        lunch_break=lunch,
        total_hours=float(total) if total is not None else None,
        created_at=from_iso(d.get("createdAt")),
        updated_at=from_iso(d.get("updatedAt")),
    )


class DocumentAttendanceRepository(AttendanceRepository):
    def __init__(self, store: DocumentStore, *, collection: str = ATTENDANCE_COLLECTION):
        self._store = store
        self._collection = collection

    def get(self, employee_id: str, work_date: str) -> Optional[AttendanceRecord]:
        doc = self._store.get(self._collection, record_key(employee_id, work_date))
        return from_document(doc) if doc else None

    def transact(self, employee_id: str, work_date: str, fn: RecordTransition) -> AttendanceRecord:
        def apply(current: Optional[Document]) -> Document:
            record = fn(from_document(current) if current else None)
            return to_document(record)

        doc = self._store.transaction(self._collection, record_key(employee_id, work_date), apply)
        return from_document(doc)

    def watch(
        self,
        employee_id: str,
        work_date: str,
        callback: Callable[[Optional[AttendanceRecord]], None],
        on_error: Optional[Callable[[Exception], None]] = None,
    ) -> Unsubscribe:
        def emit(doc: Optional[Document]) -> None:
            callback(from_document(doc) if doc else None)

        return self._store.subscribe(self._collection, record_key(employee_id, work_date), emit, on_error)

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
        filters: list[Filter] = []
        if employee_id:
            filters.append(Filter("employeeId", "==", employee_id))
        if work_date:
            filters.append(Filter("date", "==", work_date))
        if status is not None:
            filters.append(Filter("status", "==", status.value))
        if start_date:
            filters.append(Filter("date", ">=", start_date))
        if end_date:
            filters.append(Filter("date", "<=", end_date))

        docs = self._store.query(
            self._collection,
            filters=filters,
            order_by=OrderBy("date", descending=True) if newest_first else None,
            limit=limit,
        )
        return [from_document(d) for d in docs]
