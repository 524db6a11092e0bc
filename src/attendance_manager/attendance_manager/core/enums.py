from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """Role supplied by the identity provider."""

    ADMIN = "admin"
    EMPLOYEE = "employee"


class AttendanceStatus(str, Enum):
    """Day status stored on the attendance record."""

    PRESENT = "present"
    ABSENT = "absent"
    HALF_DAY = "half-day"
    HOLIDAY = "holiday"
    LEAVE = "leave"
    WEEKEND = "weekend"


class CheckMethod(str, Enum):
    MANUAL = "manual"
    GPS = "gps"
    QR = "qr"
    SYSTEM = "system"


class CyclePhase(str, Enum):
    """Where a day's record stands in its current check-in cycle."""

    NOT_STARTED = "not_started"
    CHECKED_IN = "checked_in"
    ON_LUNCH = "on_lunch"
    CHECKED_OUT = "checked_out"


class LeaveType(str, Enum):
    CASUAL = "Casual"
    SICK = "Sick"
    PRIVILEGE = "Privilege"


class LeaveStatus(str, Enum):
    PENDING = "Pending"
    APPROVED = "Approved"
    REJECTED = "Rejected"


class PayslipStatus(str, Enum):
    DRAFT = "draft"
    GENERATED = "generated"
    APPROVED = "approved"
    PAID = "paid"


class ProjectStatus(str, Enum):
    PLANNED = "planned"
    ACTIVE = "active"
    ON_HOLD = "on-hold"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
