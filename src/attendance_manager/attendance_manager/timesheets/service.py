from __future__ import annotations

from dataclasses import dataclass
from datetime import tzinfo
from typing import Optional

from ..attendance.hours import elapsed_hours, format_hours, net_worked_hours
from ..attendance.model import AttendanceRecord, Punch
from ..attendance.views import AttendanceViews
from ..common.datetime_utils import as_zone
from ..common.validators import require_date_range, require_iso_date


@dataclass(frozen=True)
class TimesheetData:
    rows: list[dict]
    summary: list[dict]
    warning: Optional[str] = None


def worked_minutes(record: AttendanceRecord) -> int:
    """Stored total, else recomputed from timestamps; open cycles count as 0."""
    hours = record.total_hours
    if hours is None and record.check_in is not None and record.check_out is not None:
        lunch = record.lunch_break
        hours = net_worked_hours(
            record.check_in.timestamp,
            record.check_out.timestamp,
            lunch.start if lunch else None,
            lunch.end if lunch else None,
        )
    return int(round((hours or 0.0) * 60))


class TimesheetService:
    def __init__(self, views: AttendanceViews, *, zone: Optional[tzinfo] = None):
        self._views = views
        self._zone = zone

    def _clock(self, punch: Optional[Punch]) -> str:
        return as_zone(punch.timestamp, self._zone).strftime("%H:%M") if punch else "-"

    def build(self, *, start_date: str, end_date: str, employee_id: Optional[str] = None) -> TimesheetData:
        require_date_range(require_iso_date(start_date, "Start date"), require_iso_date(end_date, "End date"))
        page = self._views.records_between(start_date=start_date, end_date=end_date, employee_id=employee_id)

        summary_map: dict[str, dict] = {}
        out_rows: list[dict] = []

        for row in self._views.with_names(page.items):
            r = row.record
            minutes = worked_minutes(r)
            lunch = r.lunch_break
            lunch_minutes = 0
            if lunch is not None and lunch.end is not None:
                lunch_minutes = int(round((elapsed_hours(lunch.start, lunch.end) or 0.0) * 60))

            out_rows.append(
                {
                    "employee_id": r.employee_id,
                    "employee_name": row.employee_name or r.employee_id,
                    "date": r.date,
                    "check_in": self._clock(r.check_in),
                    "check_out": self._clock(r.check_out),
                    "lunch_minutes": lunch_minutes,
                    "worked_hours": format_hours(minutes / 60),
                    "status": r.status.value,
                }
            )

            s = summary_map.get(r.employee_id)
            if not s:
                s = {
                    "employee_id": r.employee_id,
                    "employee_name": row.employee_name or r.employee_id,
                    "days": 0,
                    "total_minutes": 0,
                }
                summary_map[r.employee_id] = s
            s["days"] += 1
            s["total_minutes"] += minutes

        summary = []
        for s in summary_map.values():
            total_minutes = int(s["total_minutes"])
            summary.append(
                {
                    "employee_id": s["employee_id"],
                    "employee_name": s["employee_name"],
                    "days": s["days"],
                    "total_minutes": total_minutes,
                    "total_hours": f"{total_minutes // 60:02d}:{total_minutes % 60:02d}",
                }
            )

        summary.sort(key=lambda x: x["total_minutes"], reverse=True)
        return TimesheetData(rows=out_rows, summary=summary, warning=page.warning)
