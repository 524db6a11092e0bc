from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .attendance.document_attendance_repository import DocumentAttendanceRepository
from .attendance.service import AttendanceService
from .attendance.views import AttendanceViews
from .common.datetime_utils import resolve_zone
from .core.constants import SUBSCRIPTION_POLL_SECONDS, TRANSACTION_MAX_ATTEMPTS
from .documents.document_file_repository import StoreDocumentRepository
from .documents.service import EmployeeDocumentService
from .employees.document_employee_repository import DocumentEmployeeRepository
from .employees.service import EmployeeService
from .leaves.document_leave_repository import DocumentLeaveRepository
from .leaves.service import LeaveService
from .payroll.document_payslip_repository import DocumentPayslipRepository
from .payroll.service import PayslipService
from .projects.document_project_repository import DocumentProjectRepository
from .projects.service import ProjectService
from .storage.local_storage import LocalObjectStorage
from .storage.object_storage import ObjectStorage
from .store.connection import DBConfig, DatabaseConnection
from .store.document_store import DocumentStore
from .store.mysql_document_store import MySQLDocumentStore
from .timesheets.service import TimesheetService


@dataclass(frozen=True)
class Container:
    store: DocumentStore
    storage: ObjectStorage
    storage_dir: Optional[str]
    storage_base_url: str
    qr_token: str

    attendance_repo: DocumentAttendanceRepository
    employees_repo: DocumentEmployeeRepository
    leaves_repo: DocumentLeaveRepository
    payslips_repo: DocumentPayslipRepository
    projects_repo: DocumentProjectRepository
    documents_repo: StoreDocumentRepository

    attendance_service: AttendanceService
    attendance_views: AttendanceViews
    employee_service: EmployeeService
    leave_service: LeaveService
    payslip_service: PayslipService
    project_service: ProjectService
    document_service: EmployeeDocumentService
    timesheet_service: TimesheetService


def assemble(
    store: DocumentStore,
    storage: ObjectStorage,
    *,
    timezone: str = "",
    qr_token: str = "",
    storage_dir: Optional[str] = None,
    storage_base_url: str = "/files",
) -> Container:
    """Wire repositories and services over an already built store."""

    zone = resolve_zone(timezone)

    attendance_repo = DocumentAttendanceRepository(store)
    employees_repo = DocumentEmployeeRepository(store)
    leaves_repo = DocumentLeaveRepository(store)
    payslips_repo = DocumentPayslipRepository(store)
    projects_repo = DocumentProjectRepository(store)
    documents_repo = StoreDocumentRepository(store)

    employee_service = EmployeeService(employees_repo, zone=zone)
    attendance_views = AttendanceViews(attendance_repo, employee_service, zone=zone)

    return Container(
        store=store,
        storage=storage,
        storage_dir=storage_dir,
        storage_base_url=storage_base_url,
        qr_token=qr_token,
        attendance_repo=attendance_repo,
        employees_repo=employees_repo,
        leaves_repo=leaves_repo,
        payslips_repo=payslips_repo,
        projects_repo=projects_repo,
        documents_repo=documents_repo,
        attendance_service=AttendanceService(attendance_repo, zone=zone, qr_token=qr_token),
        attendance_views=attendance_views,
        employee_service=employee_service,
        leave_service=LeaveService(leaves_repo, employees_repo, zone=zone),
        payslip_service=PayslipService(payslips_repo, employees_repo, attendance_repo, storage=storage, zone=zone),
        project_service=ProjectService(projects_repo, zone=zone),
        document_service=EmployeeDocumentService(documents_repo, storage, zone=zone),
        timesheet_service=TimesheetService(attendance_views, zone=zone),
    )


def build_container(*, db_config: dict, settings=None) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_dict(db_config))
    store = MySQLDocumentStore(
        conn,
        max_attempts=int(getattr(settings, "TRANSACTION_MAX_ATTEMPTS", TRANSACTION_MAX_ATTEMPTS)),
        poll_seconds=float(getattr(settings, "SUBSCRIPTION_POLL_SECONDS", SUBSCRIPTION_POLL_SECONDS)),
    )
    storage_dir = str(getattr(settings, "STORAGE_DIR", "var/storage"))
    storage_base_url = str(getattr(settings, "STORAGE_BASE_URL", "/files"))
    return assemble(
        store,
        LocalObjectStorage(storage_dir, base_url=storage_base_url),
        timezone=str(getattr(settings, "LEDGER_TIMEZONE", "") or ""),
        qr_token=str(getattr(settings, "QR_TOKEN", "") or ""),
        storage_dir=storage_dir,
        storage_base_url=storage_base_url,
    )
