from __future__ import annotations

from flask import Flask, g, request

from ..common.web import admin_required, int_arg, json_body, login_required, ok
from ..container import Container
from ..core.constants import ADMIN_LEAVE_LIMIT, EMPLOYEE_LEAVE_LIMIT
from ..core.enums import LeaveStatus, LeaveType
from ..core.exceptions import ValidationError
from .service import NewLeaveRequest


def register(app: Flask, container: Container) -> None:
    service = container.leave_service

    @app.route("/api/leaves", methods=["POST"], endpoint="leaves_create")
    @login_required
    def create_leave():
        body = json_body()
        try:
            leave_type = LeaveType(body.get("type") or "")
        except ValueError:
            raise ValidationError("type must be one of Casual, Sick, Privilege")
        leave = service.create(
            g.identity.employee_id,
            NewLeaveRequest(
                leave_type=leave_type,
                from_date=str(body.get("from") or ""),
                to_date=str(body.get("to") or ""),
                reason=body.get("reason"),
            ),
        )
        return ok(leave, status=201, message="Leave request submitted")

    @app.route("/api/leaves", methods=["GET"], endpoint="leaves_mine")
    @login_required
    def my_leaves():
        return ok(service.list_for_employee(g.identity.employee_id, limit=int_arg("limit", EMPLOYEE_LEAVE_LIMIT)))

    @app.route("/api/admin/leaves", methods=["GET"], endpoint="admin_leaves")
    @admin_required
    def all_leaves():
        raw = request.args.get("status") or None
        try:
            status = LeaveStatus(raw) if raw else None
        except ValueError:
            raise ValidationError(f"Unknown status: {raw}")
        return ok(service.list_all(status=status, limit=int_arg("limit", ADMIN_LEAVE_LIMIT)))

    @app.route("/api/admin/leaves/<leave_id>/approve", methods=["POST"], endpoint="admin_leave_approve")
    @admin_required
    def approve_leave(leave_id: str):
        leave = service.approve(leave_id, current_role=g.identity.role, decided_by=g.identity.employee_id)
        return ok(leave, message="Leave request approved")

    @app.route("/api/admin/leaves/<leave_id>/reject", methods=["POST"], endpoint="admin_leave_reject")
    @admin_required
    def reject_leave(leave_id: str):
        leave = service.reject(leave_id, current_role=g.identity.role, decided_by=g.identity.employee_id)
        return ok(leave, message="Leave request rejected")
