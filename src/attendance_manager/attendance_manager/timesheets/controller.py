from __future__ import annotations

from flask import Flask, g, request

from ..common.web import admin_required, login_required, ok
from ..container import Container


def register(app: Flask, container: Container) -> None:
    service = container.timesheet_service

    def _range():
        return request.args.get("start") or "", request.args.get("end") or ""

    @app.route("/api/timesheets", methods=["GET"], endpoint="timesheets_mine")
    @login_required
    def my_timesheet():
        start, end = _range()
        data = service.build(start_date=start, end_date=end, employee_id=g.identity.employee_id)
        return ok(data.rows, summary=data.summary, warning=data.warning)

    @app.route("/api/admin/timesheets", methods=["GET"], endpoint="admin_timesheets")
    @admin_required
    def admin_timesheet():
        start, end = _range()
        employee_id = (request.args.get("employee_id") or "").strip().lower() or None
        data = service.build(start_date=start, end_date=end, employee_id=employee_id)
        return ok(data.rows, summary=data.summary, warning=data.warning)
