from __future__ import annotations

from datetime import timezone

import pytest

from src.attendance_manager.attendance_manager.attendance.document_attendance_repository import (
    DocumentAttendanceRepository,
)
from src.attendance_manager.attendance_manager.attendance.service import AttendanceService
from src.attendance_manager.attendance_manager.core.enums import PayslipStatus
from src.attendance_manager.attendance_manager.core.exceptions import BackendUnavailable, NotFoundError, ValidationError
from src.attendance_manager.attendance_manager.employees.document_employee_repository import (
    DocumentEmployeeRepository,
)
from src.attendance_manager.attendance_manager.employees.model import Salary
from src.attendance_manager.attendance_manager.employees.service import EmployeeService, NewEmployee
from src.attendance_manager.attendance_manager.payroll.document_payslip_repository import DocumentPayslipRepository
from src.attendance_manager.attendance_manager.payroll.service import PayslipService, month_name
from src.attendance_manager.attendance_manager.storage.local_storage import LocalObjectStorage


def _setup(store, tmp_path, fixed_now):
    employees = DocumentEmployeeRepository(store)
    directory = EmployeeService(employees, zone=timezone.utc)
    alice = directory.create(
        NewEmployee(email="alice@x.com", name="Alice", department="Eng", salary=Salary(basic=2300, allowances=200)),
        now=fixed_now(8),
    )
    bob = directory.create(NewEmployee(email="bob@x.com", name="Bob", department="Eng"), now=fixed_now(8))

    attendance = DocumentAttendanceRepository(store)
    ledger = AttendanceService(attendance, zone=timezone.utc)
    ledger.check_in("alice@x.com", now=fixed_now(8, day=2))
    ledger.check_out("alice@x.com", now=fixed_now(18, day=2))
    ledger.check_in("alice@x.com", now=fixed_now(9, day=3))
    ledger.check_out("alice@x.com", now=fixed_now(17, day=3))
    ledger.check_in("alice@x.com", now=fixed_now(9, day=3, month=2))
    ledger.check_out("alice@x.com", now=fixed_now(17, day=3, month=2))

    service = PayslipService(
        DocumentPayslipRepository(store),
        employees,
        attendance,
        storage=LocalObjectStorage(tmp_path, base_url="/files"),
        zone=timezone.utc,
    )
    return service, alice, bob


def test_month_name():
    assert month_name("2025-01") == "January 2025"


def test_generate_uses_month_attendance(store, tmp_path, fixed_now):
    service, alice, _ = _setup(store, tmp_path, fixed_now)

    payslip = service.generate(alice.id, "2025-01", generated_by="boss@x.com", now=fixed_now(12, day=31))

    assert payslip.employee_email == "alice@x.com"
    assert payslip.month_name == "January 2025"
    assert payslip.year == 2025
    assert payslip.status == PayslipStatus.GENERATED
    assert payslip.figures.present_days == 2
    assert payslip.figures.overtime_hours == 2.0
    assert payslip.figures.overtime == 37.5
    assert payslip.figures.net_pay == 2537.5
    assert service.get(payslip.id) == payslip


def test_generate_falls_back_when_date_index_is_missing(make_store, tmp_path, fixed_now):
    service, alice, _ = _setup(make_store(unindexed={"date"}), tmp_path, fixed_now)

    payslip = service.generate(alice.id, "2025-01")

    assert payslip.figures.present_days == 2


def test_generate_rejects_duplicates_and_missing_salary(store, tmp_path, fixed_now):
    service, alice, bob = _setup(store, tmp_path, fixed_now)
    service.generate(alice.id, "2025-01")

    with pytest.raises(ValidationError):
        service.generate(alice.id, "2025-01")
    with pytest.raises(ValidationError):
        service.generate(bob.id, "2025-01")
    with pytest.raises(ValidationError):
        service.generate(alice.id, "2025-13")
    with pytest.raises(NotFoundError):
        service.generate("ghost", "2025-01")


def test_lists_and_update(store, tmp_path, fixed_now):
    service, alice, _ = _setup(store, tmp_path, fixed_now)
    january = service.generate(alice.id, "2025-01")
    february = service.generate(alice.id, "2025-02")

    assert [p.month for p in service.list_for_employee(alice.id)] == ["2025-02", "2025-01"]
    assert [p.id for p in service.list_all(month="2025-01")] == [january.id]

    paid = service.update(february.id, status=PayslipStatus.PAID, notes="bank transfer")
    assert paid.status == PayslipStatus.PAID
    assert paid.notes == "bank transfer"
    assert [p.id for p in service.list_all(status=PayslipStatus.PAID, year=2025)] == [february.id]


def test_upload_stores_pdf_and_delete_removes_it(store, tmp_path, fixed_now):
    service, alice, _ = _setup(store, tmp_path, fixed_now)

    payslip = service.upload(alice.id, "2025-03", "march.pdf", b"%PDF-1.4", uploaded_by="boss@x.com", now=fixed_now(9))

    assert payslip.is_uploaded
    assert payslip.figures.net_pay == 0.0
    assert payslip.file_path.startswith(f"payslips/{alice.id}/2025-03_")
    assert payslip.file_url == f"/files/{payslip.file_path}"
    assert (tmp_path / payslip.file_path).read_bytes() == b"%PDF-1.4"

    service.delete(payslip.id)
    assert not (tmp_path / payslip.file_path).exists()
    with pytest.raises(NotFoundError):
        service.get(payslip.id)


def test_upload_validation(store, tmp_path, fixed_now):
    service, alice, _ = _setup(store, tmp_path, fixed_now)
    with pytest.raises(ValidationError):
        service.upload(alice.id, "2025-03", "march.docx", b"data")
    with pytest.raises(ValidationError):
        service.upload(alice.id, "2025-03", "march.pdf", b"")
    service.generate(alice.id, "2025-01")
    with pytest.raises(ValidationError):
        service.upload(alice.id, "2025-01", "jan.pdf", b"%PDF")


def test_upload_removes_file_when_metadata_write_fails(store, tmp_path, monkeypatch, fixed_now):
    service, alice, _ = _setup(store, tmp_path, fixed_now)

    def offline(self, payslip):
        raise BackendUnavailable("store offline")

    monkeypatch.setattr(DocumentPayslipRepository, "create", offline)

    with pytest.raises(BackendUnavailable):
        service.upload(alice.id, "2025-03", "march.pdf", b"%PDF-1.4", now=fixed_now(9))

    assert list(tmp_path.rglob("*.pdf")) == []
