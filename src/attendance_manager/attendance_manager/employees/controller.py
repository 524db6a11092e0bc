from __future__ import annotations

from flask import Flask, g, request

from ..common.web import admin_required, json_body, login_required, ok
from ..container import Container
from ..core.enums import Role
from ..core.exceptions import NotFoundError, ValidationError
from .model import LeaveBalance, Salary
from .service import NewEmployee


def _salary(raw) -> Salary | None:
    if raw is None:
        return None
    if not isinstance(raw, dict):
        raise ValidationError("salary must be an object")
    try:
        return Salary(
            basic=float(raw.get("basic") or 0),
            allowances=float(raw.get("allowances") or 0),
            deductions=float(raw.get("deductions") or 0),
        )
    except (TypeError, ValueError):
        raise ValidationError("salary figures must be numbers")


def _leave_balance(raw) -> LeaveBalance | None:
    if raw is None:
        return None
    if not isinstance(raw, dict):
        raise ValidationError("leave_balance must be an object")
    try:
        return LeaveBalance(**{k: int(v) for k, v in raw.items() if k in ("casual", "sick", "privilege")})
    except (TypeError, ValueError):
        raise ValidationError("leave balances must be integers")


def _role(raw) -> Role:
    try:
        return Role((raw or Role.EMPLOYEE.value).lower())
    except ValueError:
        raise ValidationError(f"Unknown role: {raw}")


def _changes(body: dict) -> dict:
    changes = {}
    for key in ("name", "department", "designation", "manager_id", "join_date"):
        if key in body:
            changes[key] = body[key]
    if "role" in body:
        changes["role"] = _role(body["role"])
    if "salary" in body:
        changes["salary"] = _salary(body["salary"])
    if "leave_balance" in body:
        changes["leave_balance"] = _leave_balance(body["leave_balance"]) or LeaveBalance()
    if "is_active" in body:
        changes["is_active"] = bool(body["is_active"])
    return changes


def _flag(raw):
    if raw is None or raw == "":
        return None
    return raw.lower() in ("1", "true", "yes")


def register(app: Flask, container: Container) -> None:
    service = container.employee_service

    @app.route("/api/me", methods=["GET"], endpoint="employees_me")
    @login_required
    def me():
        employee = service.get_by_email(g.identity.employee_id)
        if not employee:
            raise NotFoundError("Employee profile not found")
        return ok(employee)

    @app.route("/api/admin/employees", methods=["GET"], endpoint="admin_employees")
    @admin_required
    def list_employees():
        items = service.list(
            department=request.args.get("department") or None,
            is_active=_flag(request.args.get("is_active")),
            manager_id=request.args.get("manager_id") or None,
        )
        return ok(items)

    @app.route("/api/admin/employees", methods=["POST"], endpoint="admin_employees_create")
    @admin_required
    def create_employee():
        body = json_body()
        employee = service.create(
            NewEmployee(
                email=str(body.get("email") or ""),
                name=str(body.get("name") or ""),
                department=str(body.get("department") or ""),
                role=_role(body.get("role")),
                designation=body.get("designation"),
                manager_id=body.get("manager_id"),
                join_date=body.get("join_date"),
                salary=_salary(body.get("salary")),
                leave_balance=_leave_balance(body.get("leave_balance")),
            )
        )
        return ok(employee, status=201, message="Employee created")

    @app.route("/api/admin/employees/<employee_id>", methods=["GET"], endpoint="admin_employee_get")
    @admin_required
    def get_employee(employee_id: str):
        return ok(service.get(employee_id))

    @app.route("/api/admin/employees/<employee_id>", methods=["PATCH"], endpoint="admin_employee_update")
    @admin_required
    def update_employee(employee_id: str):
        return ok(service.update(employee_id, **_changes(json_body())), message="Employee updated")

    @app.route("/api/admin/employees/<employee_id>/deactivate", methods=["POST"], endpoint="admin_employee_deactivate")
    @admin_required
    def deactivate_employee(employee_id: str):
        return ok(service.deactivate(employee_id), message="Employee deactivated")

    @app.route("/api/admin/employees/<employee_id>", methods=["DELETE"], endpoint="admin_employee_delete")
    @admin_required
    def delete_employee(employee_id: str):
        service.delete(employee_id)
        return ok(message="Employee deleted")
