from __future__ import annotations

from datetime import timezone

import pytest

from src.attendance_manager.attendance_manager.core.enums import LeaveStatus, LeaveType, Role
from src.attendance_manager.attendance_manager.core.exceptions import (
    AuthorizationError,
    BackendUnavailable,
    NotFoundError,
    ValidationError,
)
from src.attendance_manager.attendance_manager.employees.document_employee_repository import (
    DocumentEmployeeRepository,
)
from src.attendance_manager.attendance_manager.employees.model import LeaveBalance
from src.attendance_manager.attendance_manager.employees.service import EmployeeService, NewEmployee
from src.attendance_manager.attendance_manager.leaves.document_leave_repository import DocumentLeaveRepository
from src.attendance_manager.attendance_manager.leaves.service import LeaveService, NewLeaveRequest

ALICE = "alice@x.com"


@pytest.fixture
def employees(store):
    return DocumentEmployeeRepository(store)


@pytest.fixture
def service(store, employees, fixed_now):
    EmployeeService(employees, zone=timezone.utc).create(
        NewEmployee(email=ALICE, name="Alice", department="Eng", leave_balance=LeaveBalance(casual=3)),
        now=fixed_now(8),
    )
    return LeaveService(DocumentLeaveRepository(store), employees, zone=timezone.utc)


def _request(service, fixed_now, *, start="2025-02-03", end="2025-02-04", leave_type=LeaveType.CASUAL, hour=9):
    return service.create(ALICE, NewLeaveRequest(leave_type=leave_type, from_date=start, to_date=end), now=fixed_now(hour))


def test_create_is_pending_with_inclusive_days(service, fixed_now):
    leave = _request(service, fixed_now)
    assert leave.status == LeaveStatus.PENDING
    assert leave.days == 2


def test_create_rejects_inverted_or_malformed_range(service, fixed_now):
    with pytest.raises(ValidationError):
        _request(service, fixed_now, start="2025-02-05", end="2025-02-04")
    with pytest.raises(ValidationError):
        _request(service, fixed_now, start="05/02/2025")


def test_lists_are_newest_first(service, fixed_now):
    first = _request(service, fixed_now, hour=9)
    second = _request(service, fixed_now, hour=10)

    assert [l.id for l in service.list_for_employee(ALICE)] == [second.id, first.id]
    service.reject(first.id, current_role=Role.ADMIN, decided_by="boss@x.com")
    assert [l.id for l in service.list_all(status=LeaveStatus.PENDING)] == [second.id]


def test_approve_deducts_balance(service, employees, fixed_now):
    leave = _request(service, fixed_now)

    approved = service.approve(leave.id, current_role=Role.ADMIN, decided_by="boss@x.com", now=fixed_now(11))

    assert approved.status == LeaveStatus.APPROVED
    assert approved.decided_by == "boss@x.com"
    assert employees.get_by_email(ALICE).leave_balance.casual == 1


def test_approve_requires_admin(service, fixed_now):
    leave = _request(service, fixed_now)
    with pytest.raises(AuthorizationError):
        service.approve(leave.id, current_role=Role.EMPLOYEE, decided_by=ALICE)


def test_insufficient_balance_keeps_request_pending(service, employees, fixed_now):
    leave = _request(service, fixed_now, start="2025-02-03", end="2025-02-07")

    with pytest.raises(ValidationError):
        service.approve(leave.id, current_role=Role.ADMIN, decided_by="boss@x.com")

    assert service.list_for_employee(ALICE)[0].status == LeaveStatus.PENDING
    assert employees.get_by_email(ALICE).leave_balance.casual == 3


def test_only_pending_requests_can_be_decided(service, fixed_now):
    leave = _request(service, fixed_now)
    service.reject(leave.id, current_role=Role.ADMIN, decided_by="boss@x.com")
    with pytest.raises(ValidationError):
        service.approve(leave.id, current_role=Role.ADMIN, decided_by="boss@x.com")
    with pytest.raises(ValidationError):
        service.reject(leave.id, current_role=Role.ADMIN, decided_by="boss@x.com")


def test_unknown_request(service):
    with pytest.raises(NotFoundError):
        service.reject("missing", current_role=Role.ADMIN, decided_by="boss@x.com")


class FlakyRepository:
    """Wraps a repository; ``before_update`` runs ahead of each atomic update."""

    def __init__(self, inner):
        self._inner = inner
        self.before_update = None

    def __getattr__(self, name):
        return getattr(self._inner, name)

    def update_atomically(self, item_id, fn):
        if self.before_update is not None:
            self.before_update()
        return self._inner.update_atomically(item_id, fn)


def _offline():
    raise BackendUnavailable("store offline")


def _flaky_service(store, employees):
    leaves = FlakyRepository(DocumentLeaveRepository(store))
    return LeaveService(leaves, employees, zone=timezone.utc), leaves


def test_balance_is_checked_per_approval(service, employees, fixed_now):
    first = _request(service, fixed_now, start="2025-02-03", end="2025-02-04")
    second = _request(service, fixed_now, start="2025-02-10", end="2025-02-11", hour=10)

    service.approve(first.id, current_role=Role.ADMIN, decided_by="boss@x.com")
    with pytest.raises(ValidationError):
        service.approve(second.id, current_role=Role.ADMIN, decided_by="boss@x.com")

    assert service.list_for_employee(ALICE)[0].status == LeaveStatus.PENDING
    assert employees.get_by_email(ALICE).leave_balance.casual == 1


def test_failed_debit_leaves_request_pending(service, store, employees, fixed_now):
    leave = _request(service, fixed_now)
    flaky_employees = FlakyRepository(employees)
    flaky_employees.before_update = _offline
    approving = LeaveService(DocumentLeaveRepository(store), flaky_employees, zone=timezone.utc)

    with pytest.raises(BackendUnavailable):
        approving.approve(leave.id, current_role=Role.ADMIN, decided_by="boss@x.com")

    assert service.list_for_employee(ALICE)[0].status == LeaveStatus.PENDING
    assert employees.get_by_email(ALICE).leave_balance.casual == 3


def test_failed_status_flip_returns_the_days(service, store, employees, fixed_now):
    leave = _request(service, fixed_now)
    approving, leaves = _flaky_service(store, employees)

    leaves.before_update = _offline
    with pytest.raises(BackendUnavailable):
        approving.approve(leave.id, current_role=Role.ADMIN, decided_by="boss@x.com")

    assert service.list_for_employee(ALICE)[0].status == LeaveStatus.PENDING
    assert employees.get_by_email(ALICE).leave_balance.casual == 3


def test_request_decided_elsewhere_mid_approval_returns_the_days(service, store, employees, fixed_now):
    leave = _request(service, fixed_now)
    approving, leaves = _flaky_service(store, employees)

    def rejected_meanwhile():
        service.reject(leave.id, current_role=Role.ADMIN, decided_by="other@x.com")

    leaves.before_update = rejected_meanwhile
    with pytest.raises(ValidationError):
        approving.approve(leave.id, current_role=Role.ADMIN, decided_by="boss@x.com")

    assert service.list_for_employee(ALICE)[0].status == LeaveStatus.REJECTED
    assert employees.get_by_email(ALICE).leave_balance.casual == 3
