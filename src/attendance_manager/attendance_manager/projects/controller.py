from __future__ import annotations

from flask import Flask, g, request

from ..common.web import admin_required, int_arg, json_body, login_required, ok
from ..container import Container
from ..core.constants import PROJECT_LIST_LIMIT
from ..core.enums import ProjectStatus
from ..core.exceptions import ValidationError
from .service import NewProject

_FIELDS = ("name", "description", "start_date", "end_date", "status", "employee_ids")


def _project_status(raw) -> ProjectStatus:
    try:
        return ProjectStatus(raw or ProjectStatus.PLANNED.value)
    except ValueError:
        raise ValidationError(f"Unknown project status: {raw}")


def _ids(raw) -> list:
    if raw is None:
        return []
    if not isinstance(raw, list):
        raise ValidationError("employee_ids must be a list")
    return [str(i).lower() for i in raw]


def register(app: Flask, container: Container) -> None:
    service = container.project_service

    @app.route("/api/projects", methods=["GET"], endpoint="projects_mine")
    @login_required
    def my_projects():
        return ok(service.list(member_id=g.identity.employee_id, limit=int_arg("limit", PROJECT_LIST_LIMIT)))

    @app.route("/api/admin/projects", methods=["GET"], endpoint="admin_projects")
    @admin_required
    def all_projects():
        member = (request.args.get("employee_id") or "").strip().lower() or None
        return ok(service.list(member_id=member, limit=int_arg("limit", PROJECT_LIST_LIMIT)))

    @app.route("/api/admin/projects", methods=["POST"], endpoint="admin_project_create")
    @admin_required
    def create_project():
        body = json_body()
        project = service.create(
            NewProject(
                name=str(body.get("name") or ""),
                status=_project_status(body.get("status")),
                description=body.get("description"),
                start_date=body.get("start_date"),
                end_date=body.get("end_date"),
                employee_ids=_ids(body.get("employee_ids")),
            )
        )
        return ok(project, status=201, message="Project created")

    @app.route("/api/admin/projects/<project_id>", methods=["GET"], endpoint="admin_project_get")
    @admin_required
    def get_project(project_id: str):
        return ok(service.get(project_id))

    @app.route("/api/admin/projects/<project_id>", methods=["PATCH"], endpoint="admin_project_update")
    @admin_required
    def update_project(project_id: str):
        body = json_body()
        changes = {k: body[k] for k in _FIELDS if k in body}
        if "status" in changes:
            changes["status"] = _project_status(changes["status"])
        if "employee_ids" in changes:
            changes["employee_ids"] = _ids(changes["employee_ids"])
        return ok(service.update(project_id, **changes), message="Project updated")

    @app.route("/api/admin/projects/<project_id>", methods=["DELETE"], endpoint="admin_project_delete")
    @admin_required
    def delete_project(project_id: str):
        service.delete(project_id)
        return ok(message="Project deleted")

    @app.route("/api/admin/projects/<project_id>/members", methods=["POST"], endpoint="admin_project_assign")
    @admin_required
    def assign_member(project_id: str):
        employee_id = str(json_body().get("employee_id") or "").strip().lower()
        return ok(service.assign(project_id, employee_id), message="Employee assigned")

    @app.route("/api/admin/projects/<project_id>/members/<employee_id>", methods=["DELETE"], endpoint="admin_project_unassign")
    @admin_required
    def unassign_member(project_id: str, employee_id: str):
        return ok(service.unassign(project_id, employee_id.strip().lower()), message="Employee unassigned")
