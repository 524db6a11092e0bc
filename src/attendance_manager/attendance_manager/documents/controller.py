from __future__ import annotations

from pathlib import PurePosixPath
from typing import Optional

from flask import Flask, g, request, send_from_directory

from ..common.web import admin_required, int_arg, login_required, ok
from ..container import Container
from ..core.constants import DOCUMENT_LIST_LIMIT
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError


def register(app: Flask, container: Container) -> None:
    service = container.document_service

    def _upload(employee_id: str):
        upload = request.files.get("file")
        if upload is None:
            raise ValidationError("A file is required")
        return service.upload(
            employee_id,
            request.form.get("name") or "",
            upload.filename or "",
            upload.read(),
            content_type=upload.mimetype,
        )

    @app.route("/api/documents", methods=["GET"], endpoint="documents_mine")
    @login_required
    def my_documents():
        return ok(service.list_for_employee(g.identity.employee_id, limit=int_arg("limit", DOCUMENT_LIST_LIMIT)))

    @app.route("/api/documents", methods=["POST"], endpoint="documents_upload")
    @login_required
    def upload_document():
        return ok(_upload(g.identity.employee_id), status=201, message="Document uploaded")

    @app.route("/api/documents/<document_id>", methods=["DELETE"], endpoint="documents_delete")
    @login_required
    def delete_document(document_id: str):
        document = service.get(document_id)
        if not g.identity.is_admin and document.employee_id != g.identity.employee_id:
            raise AuthorizationError("You can only delete your own documents")
        service.delete(document_id)
        return ok(message="Document deleted")

    @app.route("/api/admin/employees/<employee_id>/documents", methods=["GET"], endpoint="admin_documents")
    @admin_required
    def employee_documents(employee_id: str):
        return ok(service.list_for_employee(employee_id.strip().lower(), limit=int_arg("limit", DOCUMENT_LIST_LIMIT)))

    @app.route("/api/admin/employees/<employee_id>/documents", methods=["POST"], endpoint="admin_documents_upload")
    @admin_required
    def upload_employee_document(employee_id: str):
        return ok(_upload(employee_id.strip().lower()), status=201, message="Document uploaded")

    def _file_owner(path: str) -> Optional[str]:
        """Email of the employee a stored file belongs to, from its storage path."""
        parts = PurePosixPath(path).parts
        if len(parts) < 3:
            return None
        if parts[0] == "employee-documents":
            return parts[1].lower()
        if parts[0] == "payslips":
            employee = container.employees_repo.get_by_id(parts[1])
            return employee.email if employee else None
        return None

    base_url = container.storage_base_url.rstrip("/")
    if container.storage_dir and base_url.startswith("/"):

        @app.route(f"{base_url}/<path:path>", methods=["GET"], endpoint="stored_file")
        @login_required
        def stored_file(path: str):
            if ".." in PurePosixPath(path).parts:
                raise NotFoundError("File not found")
            if not g.identity.is_admin and _file_owner(path) != g.identity.employee_id:
                raise AuthorizationError("You can only open your own files")
            return send_from_directory(container.storage_dir, path)
