import secrets
from datetime import timedelta
from fastapi.testclient import TestClient
from hoarding_app.models.db.enums import UserRole
from hoarding_app.services.placement_allocator import request_placement


def _placement(db_session, setup, start, end):
    return request_placement(
        db_session,
        advertiser_id=setup["advertiser"].id,
        hoarding_id=setup["hoarding"].id,
        advertisement_id=setup["ad"].id,
        start_date=start,
        end_date=end,
    )


def _report(client, **overrides):
    payload = {
        "reporter_phone": "9988776655",
        "issue_type": "STRUCTURAL_HAZARD",
        "description": f"Frame leaning over the footpath {secrets.token_hex(3)}",
    }
    payload.update(overrides)
    return client.post("/api/v1/reports/", json=payload)


def test_public_report_with_and_without_token(client: TestClient, db_session, booking_setup, today):
    placed = _placement(db_session, booking_setup, today, today + timedelta(days=10))

    with_token = _report(client, qr_code_no=placed.token, issue_type="NO_QR")
    assert with_token.status_code == 201, with_token.text
    assert with_token.json()["qr_code_no"] == placed.token
    assert with_token.json()["status"] == "PENDING"

    anonymous = _report(client, qr_code_no="  ")
    assert anonymous.status_code == 201
    assert anonymous.json()["qr_code_no"] is None


def test_unknown_token_rejected(client: TestClient):
    r = _report(client, qr_code_no="1_1_deadbeef")
    assert r.status_code == 404
    assert r.json()["success"] is False


def test_public_placement_lookup(client: TestClient, db_session, booking_setup, today):
    placed = _placement(db_session, booking_setup, today, today + timedelta(days=10))
    r = client.get(f"/api/v1/reports/placements/{placed.token}")
    assert r.status_code == 200
    data = r.json()
    assert data["hoarding_id"] == booking_setup["hoarding"].id
    assert data["advertisement_title"] == booking_setup["ad"].title
    assert data["is_active"] is True
    assert client.get("/api/v1/reports/placements/nope").status_code == 404


def test_admin_triage_flow(client: TestClient, user_factory, auth_header):
    admin = user_factory(UserRole.ADMIN)
    headers = auth_header(admin)
    marker = secrets.token_hex(5)
    created = _report(client, description=f"Collapsed frame {marker}").json()

    listing = client.get("/api/v1/admin/reports", params={"search": marker}, headers=headers)
    assert listing.status_code == 200, listing.text
    data = listing.json()
    assert [r["id"] for r in data["reports"]] == [created["id"]]
    row = data["reports"][0]
    assert row["label"] == "Structural Damage"
    assert row["priority"] == "Critical"
    assert row["category"] == "Safety"
    assert data["pagination"]["total"] == 1
    assert data["stats"]["total"] >= 1

    updated = client.put(f"/api/v1/admin/reports/{created['id']}", json={"status": "ACTION_TAKEN"}, headers=headers)
    assert updated.status_code == 200
    assert updated.json()["status"] == "ACTION_TAKEN"

    pending_only = client.get("/api/v1/admin/reports", params={"search": marker, "status": "PENDING"}, headers=headers)
    assert pending_only.json()["reports"] == []

    assert client.get("/api/v1/admin/reports", params={"status": "bogus"}, headers=headers).status_code == 400

    assert client.delete(f"/api/v1/admin/reports/{created['id']}", headers=headers).status_code == 200
    assert client.get(f"/api/v1/admin/reports/{created['id']}", headers=headers).status_code == 404


def test_admin_pagination_bounds(client: TestClient, user_factory, auth_header):
    headers = auth_header(user_factory(UserRole.ADMIN))
    for _ in range(3):
        _report(client, issue_type="BANNED_CONTENT")
    page = client.get("/api/v1/admin/reports", params={"page": 1, "limit": 2}, headers=headers).json()
    assert len(page["reports"]) == 2
    assert page["pagination"]["limit"] == 2
    assert page["pagination"]["pages"] >= 2
    assert client.get("/api/v1/admin/reports", params={"limit": 0}, headers=headers).status_code == 400


def test_admin_stats(client: TestClient, db_session, booking_setup, user_factory, auth_header, today):
    headers = auth_header(user_factory(UserRole.ADMIN))
    placed = _placement(db_session, booking_setup, today, today + timedelta(days=10))
    before = client.get("/api/v1/admin/stats", headers=headers).json()

    _report(client, qr_code_no=placed.token, issue_type="ILLEGAL_INSTALLATION")
    after = client.get("/api/v1/admin/stats", headers=headers)
    assert after.status_code == 200
    stats = after.json()
    assert stats["total_reports"] == before["total_reports"] + 1
    assert stats["reports_with_qr"] == before["reports_with_qr"] + 1
    assert stats["recent_reports"] == before["recent_reports"] + 1
    assert stats["issue_types"]["Illegal Installation"] >= 1
    assert stats["occupied_hoardings"] >= 1
    assert stats["active_placements"] >= 1
    assert 0 <= stats["resolution_rate"] <= 100


def test_availability_sync_endpoint(client: TestClient, db_session, booking_setup, user_factory, auth_header):
    from hoarding_app.models.db import Hoarding
    # Corrupt the cache directly; the sync puts it back
    hoarding = db_session.get(Hoarding, booking_setup["hoarding"].id)
    hoarding.is_available = False
    db_session.commit()

    r = client.post("/api/v1/admin/hoardings/availability/sync", headers=auth_header(user_factory(UserRole.ADMIN)))
    assert r.status_code == 200, r.text
    assert r.json()["data"]["updated"] >= 1
    db_session.expire_all()
    assert db_session.get(Hoarding, booking_setup["hoarding"].id).is_available is True
