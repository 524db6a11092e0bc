from __future__ import annotations

import io

import pytest

from src.attendance_manager.attendance_manager.container import assemble
from src.attendance_manager.attendance_manager.main import create_app
from src.attendance_manager.attendance_manager.storage.local_storage import LocalObjectStorage

ADMIN = {"X-Employee-Id": "boss@x.com", "X-Employee-Role": "admin"}
ALICE = {"X-Employee-Id": "Alice@X.com", "X-Employee-Role": "employee"}
BOB = {"X-Employee-Id": "bob@x.com", "X-Employee-Role": "employee"}


@pytest.fixture
def client(monkeypatch, store, tmp_path):
    monkeypatch.setenv("APP_ENV", "testing")
    container = assemble(
        store,
        LocalObjectStorage(tmp_path, base_url="/files"),
        timezone="UTC",
        qr_token="OFFICE",
        storage_dir=str(tmp_path),
    )
    return create_app(container).test_client()


def test_requests_without_identity_are_rejected(client):
    resp = client.post("/api/attendance/check-in")
    assert resp.status_code == 401
    assert resp.get_json() == {
        "success": False,
        "error": "authentication_required",
        "message": "Please sign in to continue",
    }


def test_check_in_cycle_over_http(client):
    resp = client.post("/api/attendance/check-in", headers=ALICE)
    body = resp.get_json()
    assert resp.status_code == 200
    assert body["data"]["employee_id"] == "alice@x.com"
    assert body["data"]["status"] == "present"
    assert body["data"]["check_in"]["method"] == "manual"

    resp = client.post("/api/attendance/check-in", headers=ALICE)
    assert resp.status_code == 409
    assert resp.get_json()["error"] == "already_checked_in"

    today = client.get("/api/attendance/today", headers=ALICE).get_json()
    assert today["checked_in"] is True
    assert today["data"]["phase"] == "checked_in"

    assert client.post("/api/attendance/lunch/start", headers=ALICE).status_code == 200
    assert client.get("/api/attendance/today", headers=ALICE).get_json()["on_lunch"] is True
    assert client.post("/api/attendance/lunch/end", headers=ALICE).status_code == 200

    resp = client.post("/api/attendance/check-out", json={"latitude": 10.7, "longitude": 106.6}, headers=ALICE)
    assert resp.status_code == 200
    assert resp.get_json()["data"]["check_out"]["method"] == "gps"

    history = client.get("/api/attendance/history", headers=ALICE).get_json()
    assert len(history["data"]) == 1
    assert history["warning"] is None


def test_check_out_without_check_in(client):
    resp = client.post("/api/attendance/check-out", headers=ALICE)
    assert resp.status_code == 409
    assert resp.get_json()["error"] == "no_active_check_in"


def test_invalid_coordinates(client):
    resp = client.post("/api/attendance/check-in", json={"latitude": "north", "longitude": 1}, headers=ALICE)
    assert resp.status_code == 400
    assert resp.get_json()["error"] == "validation_error"


def test_qr_scan_and_image(client):
    resp = client.post("/api/attendance/qr-scan", json={"code": "OFFICE"}, headers=ALICE)
    assert resp.get_json()["action"] == "check_in"
    assert client.post("/api/attendance/qr-scan", json={"code": "bad"}, headers=ALICE).status_code == 400

    assert client.get("/api/admin/attendance/qr.png", headers=ALICE).status_code == 403
    image = client.get("/api/admin/attendance/qr.png", headers=ADMIN)
    assert image.mimetype == "image/png"
    assert image.data.startswith(b"\x89PNG")


def test_admin_listing_joins_directory_names(client):
    created = client.post(
        "/api/admin/employees",
        json={"email": "alice@x.com", "name": "Alice", "department": "Eng", "salary": {"basic": 2300}},
        headers=ADMIN,
    )
    assert created.status_code == 201
    client.post("/api/attendance/check-in", headers=ALICE)

    rows = client.get("/api/admin/attendance", headers=ADMIN).get_json()["data"]
    assert rows[0]["employee_name"] == "Alice"
    assert rows[0]["record"]["employee_id"] == "alice@x.com"

    assert client.get("/api/admin/attendance?status=bogus", headers=ADMIN).status_code == 400
    assert client.get("/api/me", headers=ALICE).get_json()["data"]["name"] == "Alice"


def test_leave_flow(client):
    client.post("/api/admin/employees", json={"email": "alice@x.com", "name": "Alice", "department": "Eng"}, headers=ADMIN)
    resp = client.post(
        "/api/leaves",
        json={"type": "Sick", "from": "2025-02-03", "to": "2025-02-05", "reason": "flu"},
        headers=ALICE,
    )
    assert resp.status_code == 201
    leave_id = resp.get_json()["data"]["id"]

    assert client.post(f"/api/admin/leaves/{leave_id}/approve", headers=ALICE).status_code == 403
    approved = client.post(f"/api/admin/leaves/{leave_id}/approve", headers=ADMIN).get_json()
    assert approved["data"]["status"] == "Approved"

    me = client.get("/api/me", headers=ALICE).get_json()["data"]
    assert me["leave_balance"]["sick"] == 7


def test_document_upload_and_download(client):
    resp = client.post(
        "/api/documents",
        data={"name": "ID card", "file": (io.BytesIO(b"scan"), "id.png")},
        content_type="multipart/form-data",
        headers=ALICE,
    )
    assert resp.status_code == 201
    url = resp.get_json()["data"]["file_url"]

    download = client.get(url, headers=ALICE)
    assert download.data == b"scan"
    assert client.get(url, headers=BOB).status_code == 403
    assert client.get(url, headers=ADMIN).data == b"scan"
    assert len(client.get("/api/documents", headers=ALICE).get_json()["data"]) == 1


def test_unknown_route_is_json(client):
    resp = client.get("/api/nope", headers=ALICE)
    assert resp.status_code == 404
    assert resp.get_json()["success"] is False


def test_stored_payslip_is_only_served_to_its_owner(client):
    created = client.post(
        "/api/admin/employees",
        json={"email": "alice@x.com", "name": "Alice", "department": "Eng"},
        headers=ADMIN,
    ).get_json()["data"]
    resp = client.post(
        "/api/admin/payslips/upload",
        data={"employee_id": created["id"], "month": "2025-01", "file": (io.BytesIO(b"%PDF-1.4 slip"), "jan.pdf")},
        content_type="multipart/form-data",
        headers=ADMIN,
    )
    assert resp.status_code == 201
    url = resp.get_json()["data"]["file_url"]

    assert client.get(url, headers=ALICE).data == b"%PDF-1.4 slip"
    assert client.get(url, headers=BOB).status_code == 403


def test_stored_file_paths_cannot_escape_the_owner_folder(client):
    resp = client.get("/files/employee-documents/bob@x.com/../alice@x.com/1_id.png", headers=BOB)
    assert resp.status_code in (403, 404)
    assert client.get("/files/other/place.txt", headers=BOB).status_code == 403
