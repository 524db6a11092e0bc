from __future__ import annotations

import io
from typing import Optional

import qrcode
from flask import Flask, g, request, send_file

from ..common.web import admin_required, int_arg, json_body, login_required, ok
from ..container import Container
from ..core.constants import ADMIN_LIST_LIMIT, DEFAULT_HISTORY_LIMIT
from ..core.enums import AttendanceStatus
from ..core.exceptions import ValidationError
from .model import GeoPoint


def _location(body: dict) -> Optional[GeoPoint]:
    lat, lng = body.get("latitude"), body.get("longitude")
    if lat is None and lng is None:
        return None
    try:
        point = GeoPoint(latitude=float(lat), longitude=float(lng))
    except (TypeError, ValueError):
        raise ValidationError("latitude and longitude must be numbers")
    if not (-90 <= point.latitude <= 90 and -180 <= point.longitude <= 180):
        raise ValidationError("Coordinates out of range")
    return point


def register(app: Flask, container: Container) -> None:
    service = container.attendance_service
    views = container.attendance_views

    @app.route("/api/attendance/check-in", methods=["POST"], endpoint="attendance_check_in")
    @login_required
    def check_in():
        record = service.check_in(g.identity.employee_id, _location(json_body()))
        return ok(record, message="Checked in successfully")

    @app.route("/api/attendance/check-out", methods=["POST"], endpoint="attendance_check_out")
    @login_required
    def check_out():
        record = service.check_out(g.identity.employee_id, _location(json_body()))
        return ok(record, message="Checked out successfully")

    @app.route("/api/attendance/lunch/start", methods=["POST"], endpoint="attendance_lunch_start")
    @login_required
    def lunch_start():
        return ok(service.start_lunch_break(g.identity.employee_id), message="Lunch break started")

    @app.route("/api/attendance/lunch/end", methods=["POST"], endpoint="attendance_lunch_end")
    @login_required
    def lunch_end():
        return ok(service.end_lunch_break(g.identity.employee_id), message="Lunch break ended")

    @app.route("/api/attendance/today", methods=["GET"], endpoint="attendance_today")
    @login_required
    def today():
        status = views.today_status(g.identity.employee_id)
        return ok(status, checked_in=status.checked_in, on_lunch=status.on_lunch)

    @app.route("/api/attendance/history", methods=["GET"], endpoint="attendance_history")
    @login_required
    def history():
        page = views.employee_history(g.identity.employee_id, limit=int_arg("limit", DEFAULT_HISTORY_LIMIT))
        return ok(page.items, warning=page.warning)

    @app.route("/api/attendance/qr-scan", methods=["POST"], endpoint="attendance_qr_scan")
    @login_required
    def qr_scan():
        action, record = service.scan_qr(g.identity.employee_id, str(json_body().get("code") or ""))
        message = "Checked out with QR code" if action == "check_out" else "Checked in with QR code"
        return ok(record, action=action, message=message)

    @app.route("/api/admin/attendance", methods=["GET"], endpoint="admin_attendance")
    @admin_required
    def admin_listing():
        status = request.args.get("status") or None
        try:
            status_filter = AttendanceStatus(status) if status else None
        except ValueError:
            raise ValidationError(f"Unknown status: {status}")
        page = views.admin_listing(
            employee_id=(request.args.get("employee_id") or "").strip().lower() or None,
            work_date=request.args.get("date") or None,
            status=status_filter,
            limit=int_arg("limit", ADMIN_LIST_LIMIT),
        )
        return ok(page.items, warning=page.warning)

    @app.route("/api/admin/attendance/qr.png", methods=["GET"], endpoint="admin_attendance_qr")
    @admin_required
    def admin_qr_image():
        """Office QR code that employees scan to check in or out."""
        qr = qrcode.QRCode(
            version=1,
            error_correction=qrcode.constants.ERROR_CORRECT_L,
            box_size=10,
            border=2,
        )
        qr.add_data(container.qr_token)
        qr.make(fit=True)

        img = qr.make_image(fill_color="black", back_color="white")
        buf = io.BytesIO()
        img.save(buf, format="PNG")
        buf.seek(0)
        return send_file(buf, mimetype="image/png")
