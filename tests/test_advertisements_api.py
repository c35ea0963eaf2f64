import threading
from datetime import date, timedelta
from fastapi.testclient import TestClient
from hoarding_app.config import ADVERTISEMENT_SETTINGS
from hoarding_app.api.v1.endpoints import advertisements as advertisements_endpoint
from hoarding_app.models.db import Advertisement, Placement
from hoarding_app.models.db.enums import UserRole
from hoarding_app.services.locks import advertisement_locks
from hoarding_app.services.placement_allocator import request_placement, new_placement_id, build_token

AD_PAYLOAD = {
    "title": "Festive Offers",
    "description": "Flat 30% off across the store",
    "category": "Retail",
    "content_url": "https://example.com/festive.png",
}


def test_create_list_and_stats(client: TestClient, user_factory, auth_header):
    advertiser = user_factory(UserRole.ADVERTISER)
    headers = auth_header(advertiser)

    created = client.post("/api/v1/advertiser/advertisements", json=AD_PAYLOAD, headers=headers)
    assert created.status_code == 201, created.text
    assert created.json()["approved"] is True

    listing = client.get("/api/v1/advertiser/advertisements", headers=headers)
    assert listing.status_code == 200
    data = listing.json()
    assert len(data["advertisements"]) == 1
    assert data["stats"] == {"total": 1, "active": 0, "approved": 1, "total_hoardings": 0}


def test_auto_approval_can_be_disabled(client: TestClient, user_factory, auth_header, monkeypatch):
    monkeypatch.setitem(ADVERTISEMENT_SETTINGS, "auto_approve_on_create", False)
    advertiser = user_factory(UserRole.ADVERTISER)
    r = client.post("/api/v1/advertiser/advertisements", json=AD_PAYLOAD, headers=auth_header(advertiser))
    assert r.status_code == 201
    assert r.json()["approved"] is False


def test_edit_sends_advertisement_back_for_approval(client: TestClient, advertisement_factory, user_factory, auth_header):
    advertiser = user_factory(UserRole.ADVERTISER)
    ad = advertisement_factory(advertiser, approved=True)
    r = client.put(
        f"/api/v1/advertiser/advertisements/{ad.id}",
        json={"title": "Festive Offers v2"},
        headers=auth_header(advertiser),
    )
    assert r.status_code == 200, r.text
    assert r.json()["title"] == "Festive Offers v2"
    assert r.json()["approved"] is False


def test_admin_approval_decision(client: TestClient, advertisement_factory, user_factory, auth_header, db_session):
    ad = advertisement_factory(approved=False)
    admin = user_factory(UserRole.ADMIN)
    r = client.put(
        f"/api/v1/admin/advertisements/{ad.id}/approval",
        json={"approved": True},
        headers=auth_header(admin),
    )
    assert r.status_code == 200, r.text
    assert r.json()["approved"] is True
    db_session.expire_all()
    assert db_session.get(Advertisement, ad.id).approved is True

    missing = client.put("/api/v1/admin/advertisements/999999/approval", json={"approved": True}, headers=auth_header(admin))
    assert missing.status_code == 404


def test_delete_blocked_while_placement_runs(client: TestClient, db_session, booking_setup, auth_header, today):
    setup = booking_setup
    request_placement(
        db_session,
        advertiser_id=setup["advertiser"].id,
        hoarding_id=setup["hoarding"].id,
        advertisement_id=setup["ad"].id,
        start_date=today,
        end_date=today + timedelta(days=7),
    )
    headers = auth_header(setup["advertiser"])
    r = client.delete(f"/api/v1/advertiser/advertisements/{setup['ad'].id}", headers=headers)
    assert r.status_code == 409

    detail = client.get(f"/api/v1/advertiser/advertisements/{setup['ad'].id}", headers=headers)
    assert detail.status_code == 200
    assert detail.json()["is_active"] is True
    assert detail.json()["placements"][0]["is_active"] is True


def test_delete_unbooked_advertisement(client: TestClient, advertisement_factory, user_factory, auth_header, db_session):
    advertiser = user_factory(UserRole.ADVERTISER)
    ad = advertisement_factory(advertiser)
    r = client.delete(f"/api/v1/advertiser/advertisements/{ad.id}", headers=auth_header(advertiser))
    assert r.status_code == 200, r.text
    db_session.expire_all()
    assert db_session.get(Advertisement, ad.id) is None


def test_cannot_touch_other_advertisers_ads(client: TestClient, advertisement_factory, user_factory, auth_header):
    ad = advertisement_factory()
    other = user_factory(UserRole.ADVERTISER)
    r = client.put(f"/api/v1/advertiser/advertisements/{ad.id}", json={"title": "Hijack"}, headers=auth_header(other))
    assert r.status_code == 404


def test_delete_waits_for_a_booking_holding_the_advertisement(client: TestClient, advertisement_factory, user_factory, auth_header):
    advertiser = user_factory(UserRole.ADVERTISER)
    ad = advertisement_factory(advertiser)
    outcome = {}

    def delete():
        outcome["status"] = client.delete(f"/api/v1/advertiser/advertisements/{ad.id}", headers=auth_header(advertiser)).status_code

    with advertisement_locks.hold(ad.id):
        worker = threading.Thread(target=delete)
        worker.start()
        worker.join(timeout=0.3)
        assert worker.is_alive()
    worker.join(timeout=10)
    assert outcome["status"] == 200


def test_booking_landing_after_delete_check_is_a_conflict(client: TestClient, booking_setup, session_factory, auth_header, monkeypatch):
    setup = booking_setup
    ad_id, hoarding_id = setup["ad"].id, setup["hoarding"].id
    real_remove = advertisements_endpoint.remove_expired_placements

    def booking_sneaks_in(db, placements):
        # Another worker commits a placement between the check and the delete
        other = session_factory()
        try:
            placement_id = new_placement_id()
            other.add(Placement(
                id=placement_id,
                hoarding_id=hoarding_id,
                advertisement_id=ad_id,
                start_date=date(2031, 1, 1),
                end_date=date(2031, 2, 1),
                token=build_token(hoarding_id, ad_id, placement_id),
            ))
            other.commit()
        finally:
            other.close()
        return real_remove(db, placements)

    monkeypatch.setattr(advertisements_endpoint, "remove_expired_placements", booking_sneaks_in)
    r = client.delete(f"/api/v1/advertiser/advertisements/{ad_id}", headers=auth_header(setup["advertiser"]))
    assert r.status_code == 409
    monkeypatch.undo()

    check = session_factory()
    try:
        assert check.get(Advertisement, ad_id) is not None
        assert check.query(Placement).filter(Placement.advertisement_id == ad_id).count() == 1
    finally:
        check.close()
