from __future__ import annotations

import re
from datetime import date

from ..core.exceptions import ValidationError
from .datetime_utils import parse_iso_date

_MONTH_RE = re.compile(r"^\d{4}-(0[1-9]|1[0-2])$")
_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+$")


def require_non_empty(value: str, field_name: str) -> str:
    if not value or not value.strip():
        raise ValidationError(f"{field_name} is required")
    return value.strip()


def require_month(value: str) -> str:
    value = (value or "").strip()
    if not _MONTH_RE.match(value):
        raise ValidationError("Month must use the YYYY-MM format")
    return value


def require_email(value: str) -> str:
    value = (value or "").strip().lower()
    if not _EMAIL_RE.match(value):
        raise ValidationError("Invalid email address")
    return value


def require_date_range(start: date, end: date) -> None:
    if end < start:
        raise ValidationError("End date must not be before start date")


def require_iso_date(value: str, field_name: str) -> date:
    try:
        return parse_iso_date((value or "").strip())
    except ValueError:
        raise ValidationError(f"{field_name} must use the YYYY-MM-DD format")
