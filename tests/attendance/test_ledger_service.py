from __future__ import annotations

import threading
from datetime import datetime, timezone
from zoneinfo import ZoneInfo

import pytest

from src.attendance_manager.attendance_manager.attendance.document_attendance_repository import (
    DocumentAttendanceRepository,
)
from src.attendance_manager.attendance_manager.attendance.model import GeoPoint
from src.attendance_manager.attendance_manager.attendance.service import AttendanceService
from src.attendance_manager.attendance_manager.core.enums import AttendanceStatus, CheckMethod, CyclePhase
from src.attendance_manager.attendance_manager.core.exceptions import (
    AlreadyCheckedIn,
    BackendUnavailable,
    LunchBreakAlreadyActive,
    LunchBreakNotActive,
    NoActiveCheckIn,
    ValidationError,
)

ALICE = "alice@x.com"


@pytest.fixture
def repo(store):
    return DocumentAttendanceRepository(store)


@pytest.fixture
def service(repo):
    return AttendanceService(repo, zone=timezone.utc, qr_token="OFFICE")


def test_first_check_in_creates_present_record(service, fixed_now):
    record = service.check_in(ALICE, now=fixed_now(9))

    assert record.date == "2025-01-15"
    assert record.status == AttendanceStatus.PRESENT
    assert record.check_in.method == CheckMethod.MANUAL
    assert record.check_in.timestamp == fixed_now(9)
    assert record.phase == CyclePhase.CHECKED_IN


def test_check_in_with_location_uses_gps(service, fixed_now):
    record = service.check_in(ALICE, GeoPoint(10.77, 106.70), now=fixed_now(9))
    assert record.check_in.method == CheckMethod.GPS
    assert record.check_in.location == GeoPoint(10.77, 106.70)


def test_second_check_in_is_rejected_and_leaves_record_unchanged(service, repo, fixed_now):
    service.check_in(ALICE, now=fixed_now(9))
    before = repo.get(ALICE, "2025-01-15")

    with pytest.raises(AlreadyCheckedIn):
        service.check_in(ALICE, now=fixed_now(9, 5))

    assert repo.get(ALICE, "2025-01-15") == before


def test_check_in_while_on_lunch_is_rejected(service, fixed_now):
    service.check_in(ALICE, now=fixed_now(9))
    service.start_lunch_break(ALICE, now=fixed_now(12))
    with pytest.raises(AlreadyCheckedIn):
        service.check_in(ALICE, now=fixed_now(12, 10))


def test_check_in_after_check_out_starts_a_new_cycle(service, fixed_now):
    service.check_in(ALICE, now=fixed_now(9))
    service.start_lunch_break(ALICE, now=fixed_now(12))
    service.end_lunch_break(ALICE, now=fixed_now(13))
    service.check_out(ALICE, now=fixed_now(14))

    record = service.check_in(ALICE, now=fixed_now(15))

    assert record.check_in.timestamp == fixed_now(15)
    assert record.check_out is None
    assert record.total_hours is None
    assert record.lunch_break is None
    assert record.phase == CyclePhase.CHECKED_IN


def test_check_out_without_check_in_creates_nothing(service, repo, fixed_now):
    with pytest.raises(NoActiveCheckIn):
        service.check_out(ALICE, now=fixed_now(18))
    assert repo.get(ALICE, "2025-01-15") is None


def test_check_out_subtracts_completed_lunch(service, fixed_now):
    service.check_in(ALICE, now=fixed_now(9))
    service.start_lunch_break(ALICE, now=fixed_now(12))
    service.end_lunch_break(ALICE, now=fixed_now(13))
    record = service.check_out(ALICE, now=fixed_now(18))

    assert record.total_hours == 8.0
    assert record.phase == CyclePhase.CHECKED_OUT


def test_check_out_during_lunch_closes_the_break(service, fixed_now):
    service.check_in(ALICE, now=fixed_now(9))
    service.start_lunch_break(ALICE, now=fixed_now(12))
    record = service.check_out(ALICE, now=fixed_now(18))

    assert record.lunch_break.end == fixed_now(18)
    assert record.lunch_break.duration == 6.0
    assert record.total_hours == 3.0


def test_clock_skew_clamps_total_to_zero(service, fixed_now):
    service.check_in(ALICE, now=fixed_now(10))
    record = service.check_out(ALICE, now=fixed_now(9))
    assert record.total_hours == 0.0


def test_repeated_check_out_overwrites(service, fixed_now):
    service.check_in(ALICE, now=fixed_now(9))
    service.check_out(ALICE, now=fixed_now(17))
    record = service.check_out(ALICE, now=fixed_now(18))
    assert record.check_out.timestamp == fixed_now(18)
    assert record.total_hours == 9.0


def test_full_day_scenario(service, fixed_now):
    record = service.check_in(ALICE, now=fixed_now(9))
    assert record.status == AttendanceStatus.PRESENT
    assert record.check_in.method == CheckMethod.MANUAL

    service.start_lunch_break(ALICE, now=fixed_now(12, 30))
    record = service.end_lunch_break(ALICE, now=fixed_now(13, 15))
    assert record.lunch_break.duration == 0.75

    record = service.check_out(ALICE, now=fixed_now(17, 30))
    assert record.total_hours == 7.75


def test_lunch_requires_check_in(service, fixed_now):
    with pytest.raises(NoActiveCheckIn):
        service.start_lunch_break(ALICE, now=fixed_now(12))
    with pytest.raises(NoActiveCheckIn):
        service.end_lunch_break(ALICE, now=fixed_now(13))


def test_lunch_out_of_sequence(service, fixed_now):
    service.check_in(ALICE, now=fixed_now(9))
    with pytest.raises(LunchBreakNotActive):
        service.end_lunch_break(ALICE, now=fixed_now(12))

    service.start_lunch_break(ALICE, now=fixed_now(12))
    with pytest.raises(LunchBreakAlreadyActive):
        service.start_lunch_break(ALICE, now=fixed_now(12, 5))

    service.end_lunch_break(ALICE, now=fixed_now(13))
    with pytest.raises(LunchBreakNotActive):
        service.end_lunch_break(ALICE, now=fixed_now(13, 5))


def test_second_lunch_replaces_first(service, fixed_now):
    service.check_in(ALICE, now=fixed_now(9))
    service.start_lunch_break(ALICE, now=fixed_now(12))
    service.end_lunch_break(ALICE, now=fixed_now(12, 30))
    record = service.start_lunch_break(ALICE, now=fixed_now(15))
    assert record.lunch_break.start == fixed_now(15)
    assert record.lunch_break.end is None
    assert record.phase == CyclePhase.ON_LUNCH


def test_lunch_after_check_out_is_rejected(service, fixed_now):
    service.check_in(ALICE, now=fixed_now(9))
    service.check_out(ALICE, now=fixed_now(17))
    with pytest.raises(NoActiveCheckIn):
        service.start_lunch_break(ALICE, now=fixed_now(17, 30))


def test_concurrent_check_ins_leave_exactly_one_record(service, store, fixed_now):
    results, errors = [], []
    barrier = threading.Barrier(8)

    def worker():
        barrier.wait()
        try:
            results.append(service.check_in(ALICE, now=fixed_now(9)))
        except AlreadyCheckedIn as exc:
            errors.append(exc)

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(results) == 1
    assert len(errors) == 7
    assert len(store.query("attendance")) == 1


def test_backend_outage_propagates(service, store, fixed_now):
    store.unavailable = True
    with pytest.raises(BackendUnavailable):
        service.check_in(ALICE, now=fixed_now(9))


def test_day_key_follows_ledger_zone(repo):
    service = AttendanceService(repo, zone=ZoneInfo("Asia/Ho_Chi_Minh"))
    record = service.check_in(ALICE, now=datetime(2025, 1, 15, 20, 0, tzinfo=timezone.utc))
    assert record.date == "2025-01-16"


def test_qr_scan_toggles_cycle(service, fixed_now):
    action, record = service.scan_qr(ALICE, "OFFICE", now=fixed_now(9))
    assert action == "check_in"
    assert record.check_in.method == CheckMethod.QR

    action, record = service.scan_qr(ALICE, " OFFICE ", now=fixed_now(17))
    assert action == "check_out"
    assert record.check_out.method == CheckMethod.QR
    assert record.total_hours == 8.0


def test_qr_scan_rejects_wrong_code(service, fixed_now):
    with pytest.raises(ValidationError):
        service.scan_qr(ALICE, "nope", now=fixed_now(9))
    with pytest.raises(ValidationError):
        service.scan_qr(ALICE, "", now=fixed_now(9))
