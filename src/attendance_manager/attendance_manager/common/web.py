from __future__ import annotations

import logging
from dataclasses import dataclass, fields, is_dataclass
from datetime import date, datetime
from enum import Enum
from functools import wraps
from typing import Any, Optional

from flask import Flask, g, jsonify, request
from werkzeug.exceptions import HTTPException

from ..core.enums import Role
from ..core.exceptions import AuthenticationError, AuthorizationError, DomainError, ValidationError

logger = logging.getLogger(__name__)

EMPLOYEE_HEADER = "X-Employee-Id"
ROLE_HEADER = "X-Employee-Role"


@dataclass(frozen=True)
class Identity:
    """Caller as asserted by the upstream identity provider."""

    employee_id: str
    role: Role

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN


def current_identity() -> Identity:
    employee_id = (request.headers.get(EMPLOYEE_HEADER) or "").strip().lower()
    if not employee_id:
        raise AuthenticationError("Please sign in to continue")
    try:
        role = Role((request.headers.get(ROLE_HEADER) or Role.EMPLOYEE.value).strip().lower())
    except ValueError:
        raise AuthenticationError("Unknown role")
    return Identity(employee_id=employee_id, role=role)


def login_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        g.identity = current_identity()
        return view(*args, **kwargs)

    return wrapper


def admin_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        g.identity = current_identity()
        if not g.identity.is_admin:
            raise AuthorizationError("Admin access required")
        return view(*args, **kwargs)

    return wrapper


def json_body() -> dict:
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def int_arg(name: str, default: Optional[int] = None) -> Optional[int]:
    raw = request.args.get(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValidationError(f"{name} must be an integer")


def to_jsonable(value: Any) -> Any:
    """Dataclasses, enums and datetimes to plain JSON types."""
    if is_dataclass(value) and not isinstance(value, type):
        return {f.name: to_jsonable(getattr(value, f.name)) for f in fields(value)}
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, dict):
        return {k: to_jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_jsonable(v) for v in value]
    return value


def ok(data: Any = None, status: int = 200, **extra):
    payload = {"success": True, "data": to_jsonable(data)}
    payload.update({k: to_jsonable(v) for k, v in extra.items()})
    return jsonify(payload), status


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(DomainError)
    def handle_domain_error(exc: DomainError):
        return jsonify({"success": False, "error": exc.code, "message": str(exc)}), exc.status_code

    @app.errorhandler(HTTPException)
    def handle_http_error(exc: HTTPException):
        return jsonify({"success": False, "error": exc.name.lower().replace(" ", "_"), "message": exc.description}), exc.code

    @app.errorhandler(Exception)
    def handle_unexpected(exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.path)
        return jsonify({"success": False, "error": "internal_error", "message": "An unexpected error occurred"}), 500
