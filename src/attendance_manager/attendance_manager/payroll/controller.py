from __future__ import annotations

from flask import Flask, g, request

from ..common.web import admin_required, int_arg, json_body, login_required, ok
from ..container import Container
from ..core.constants import ADMIN_PAYSLIP_LIMIT, EMPLOYEE_PAYSLIP_LIMIT
from ..core.enums import PayslipStatus
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError


def _status(raw):
    if not raw:
        return None
    try:
        return PayslipStatus(raw)
    except ValueError:
        raise ValidationError(f"Unknown payslip status: {raw}")


def register(app: Flask, container: Container) -> None:
    service = container.payslip_service
    employees = container.employee_service

    def _my_employee_id() -> str:
        employee = employees.get_by_email(g.identity.employee_id)
        if not employee:
            raise NotFoundError("Employee profile not found")
        return employee.id

    @app.route("/api/payslips", methods=["GET"], endpoint="payslips_mine")
    @login_required
    def my_payslips():
        return ok(service.list_for_employee(_my_employee_id(), limit=int_arg("limit", EMPLOYEE_PAYSLIP_LIMIT)))

    @app.route("/api/payslips/<payslip_id>", methods=["GET"], endpoint="payslip_get")
    @login_required
    def get_payslip(payslip_id: str):
        payslip = service.get(payslip_id)
        if not g.identity.is_admin and payslip.employee_email != g.identity.employee_id:
            raise AuthorizationError("You can only view your own payslips")
        return ok(payslip)

    @app.route("/api/admin/payslips", methods=["GET"], endpoint="admin_payslips")
    @admin_required
    def all_payslips():
        items = service.list_all(
            employee_id=request.args.get("employee_id") or None,
            month=request.args.get("month") or None,
            year=int_arg("year"),
            status=_status(request.args.get("status")),
            limit=int_arg("limit", ADMIN_PAYSLIP_LIMIT),
        )
        return ok(items)

    @app.route("/api/admin/payslips", methods=["POST"], endpoint="admin_payslip_generate")
    @admin_required
    def generate_payslip():
        body = json_body()
        payslip = service.generate(
            str(body.get("employee_id") or ""),
            str(body.get("month") or ""),
            generated_by=g.identity.employee_id,
        )
        return ok(payslip, status=201, message="Payslip generated")

    @app.route("/api/admin/payslips/upload", methods=["POST"], endpoint="admin_payslip_upload")
    @admin_required
    def upload_payslip():
        upload = request.files.get("file")
        if upload is None:
            raise ValidationError("A PDF file is required")
        payslip = service.upload(
            request.form.get("employee_id") or "",
            request.form.get("month") or "",
            upload.filename or "",
            upload.read(),
            uploaded_by=g.identity.employee_id,
        )
        return ok(payslip, status=201, message="Payslip uploaded")

    @app.route("/api/admin/payslips/<payslip_id>", methods=["PATCH"], endpoint="admin_payslip_update")
    @admin_required
    def update_payslip(payslip_id: str):
        body = json_body()
        notes = body.get("notes")
        payslip = service.update(
            payslip_id,
            status=_status(body.get("status")),
            notes=str(notes) if notes is not None else None,
        )
        return ok(payslip, message="Payslip updated")

    @app.route("/api/admin/payslips/<payslip_id>", methods=["DELETE"], endpoint="admin_payslip_delete")
    @admin_required
    def delete_payslip(payslip_id: str):
        service.delete(payslip_id)
        return ok(message="Payslip deleted")
