from __future__ import annotations

import threading
from datetime import timezone

import pytest

from src.attendance_manager.attendance_manager.core.enums import Role
from src.attendance_manager.attendance_manager.core.exceptions import (
    BackendUnavailable,
    NotFoundError,
    ValidationError,
)
from src.attendance_manager.attendance_manager.employees.document_employee_repository import (
    DocumentEmployeeRepository,
)
from src.attendance_manager.attendance_manager.employees.model import Salary
from src.attendance_manager.attendance_manager.employees.service import EmployeeService, NewEmployee


def _service(store):
    return EmployeeService(DocumentEmployeeRepository(store), zone=timezone.utc)


def test_create_normalises_email_and_defaults_balance(store, fixed_now):
    service = _service(store)
    employee = service.create(
        NewEmployee(email=" Alice@X.com ", name="Alice", department="Eng", salary=Salary(basic=4400)),
        now=fixed_now(9),
    )

    assert employee.id
    assert employee.email == "alice@x.com"
    assert employee.leave_balance.casual == 10
    assert employee.role == Role.EMPLOYEE
    assert service.get(employee.id) == employee
    assert service.get_by_email("ALICE@x.com").id == employee.id


def test_create_rejects_duplicate_email(store, fixed_now):
    service = _service(store)
    service.create(NewEmployee(email="a@x.com", name="A", department="Eng"), now=fixed_now(9))
    with pytest.raises(ValidationError):
        service.create(NewEmployee(email="A@x.com", name="A2", department="Ops"), now=fixed_now(10))


def test_create_requires_valid_email_and_name(store):
    service = _service(store)
    with pytest.raises(ValidationError):
        service.create(NewEmployee(email="nope", name="A", department="Eng"))
    with pytest.raises(ValidationError):
        service.create(NewEmployee(email="a@x.com", name=" ", department="Eng"))


def _seed(service, fixed_now):
    service.create(NewEmployee(email="a@x.com", name="A", department="Eng"), now=fixed_now(9))
    service.create(NewEmployee(email="b@x.com", name="B", department="Ops"), now=fixed_now(10))
    service.create(NewEmployee(email="c@x.com", name="C", department="Eng", manager_id="m1"), now=fixed_now(11))


def test_list_newest_first_with_filters(store, fixed_now):
    service = _service(store)
    _seed(service, fixed_now)

    assert [e.name for e in service.list()] == ["C", "B", "A"]
    assert [e.name for e in service.list(department="Eng")] == ["C", "A"]
    assert [e.name for e in service.list(manager_id="m1")] == ["C"]


def test_list_falls_back_to_memory_sort(make_store, fixed_now):
    service = _service(make_store(unindexed={"createdAt"}))
    _seed(service, fixed_now)

    assert [e.name for e in service.list()] == ["C", "B", "A"]


def test_update_and_deactivate(store, fixed_now):
    service = _service(store)
    employee = service.create(NewEmployee(email="a@x.com", name="A", department="Eng"), now=fixed_now(9))

    updated = service.update(employee.id, name="Alice", designation="Engineer", now=fixed_now(10))
    assert updated.name == "Alice"
    assert updated.updated_at == fixed_now(10)

    assert service.deactivate(employee.id, now=fixed_now(11)).is_active is False
    assert [e.email for e in service.list(is_active=True)] == []
    assert [e.email for e in service.list(is_active=False)] == ["a@x.com"]


def test_update_rejects_unknown_fields(store, fixed_now):
    service = _service(store)
    employee = service.create(NewEmployee(email="a@x.com", name="A", department="Eng"), now=fixed_now(9))
    with pytest.raises(ValidationError):
        service.update(employee.id, email="other@x.com")


def test_update_missing_employee(store):
    with pytest.raises(NotFoundError):
        _service(store).update("missing", name="X")


def test_delete(store, fixed_now):
    service = _service(store)
    employee = service.create(NewEmployee(email="a@x.com", name="A", department="Eng"), now=fixed_now(9))
    service.delete(employee.id)
    with pytest.raises(NotFoundError):
        service.get(employee.id)
    with pytest.raises(NotFoundError):
        service.delete(employee.id)


def test_find_name_looks_up_by_attendance_id(store, fixed_now):
    service = _service(store)
    service.create(NewEmployee(email="a@x.com", name="Alice", department="Eng"), now=fixed_now(9))
    assert service.find_name("a@x.com") == "Alice"
    assert service.find_name("ghost@x.com") is None


def test_concurrent_creates_with_one_email_keep_a_single_employee(store, fixed_now):
    service = _service(store)
    barrier = threading.Barrier(4)
    created, rejected = [], []

    def create(n):
        barrier.wait()
        try:
            created.append(service.create(NewEmployee(email="Dup@x.com", name=f"D{n}", department="Eng"), now=fixed_now(9)))
        except ValidationError:
            rejected.append(n)

    threads = [threading.Thread(target=create, args=(n,)) for n in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(created) == 1
    assert len(rejected) == 3
    assert [e.id for e in service.list()] == [created[0].id]
    assert service.get_by_email("dup@x.com").id == created[0].id


def test_deleting_an_employee_frees_the_email(store, fixed_now):
    service = _service(store)
    first = service.create(NewEmployee(email="a@x.com", name="A", department="Eng"), now=fixed_now(9))
    service.delete(first.id)

    again = service.create(NewEmployee(email="a@x.com", name="A", department="Eng"), now=fixed_now(10))

    assert again.id != first.id
    assert service.get_by_email("a@x.com").id == again.id


class _FailingAddStore:
    def __init__(self, inner):
        self._inner = inner

    def __getattr__(self, name):
        return getattr(self._inner, name)

    def add(self, collection, data):
        raise BackendUnavailable("store offline")


def test_failed_insert_releases_the_email(store, fixed_now):
    with pytest.raises(BackendUnavailable):
        _service(_FailingAddStore(store)).create(NewEmployee(email="a@x.com", name="A", department="Eng"))

    employee = _service(store).create(NewEmployee(email="a@x.com", name="A", department="Eng"), now=fixed_now(9))
    assert employee.email == "a@x.com"
