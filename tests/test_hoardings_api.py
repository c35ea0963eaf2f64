from datetime import timedelta
from fastapi.testclient import TestClient
from hoarding_app.models.db import Hoarding, Placement
from hoarding_app.models.db.enums import UserRole
from hoarding_app.services.placement_allocator import request_placement


def _hoarding_payload(**overrides):
    payload = {
        "height": 12.5,
        "width": 30,
        "address": "Jaydev Vihar Square",
        "installation_date": "2024-03-01",
        "latitude": 20.2961,
        "longitude": 85.8245,
    }
    payload.update(overrides)
    return payload


def test_owner_creates_and_lists_hoardings(client: TestClient, user_factory, auth_header):
    owner = user_factory(UserRole.OWNER)
    headers = auth_header(owner)

    created = client.post("/api/v1/owner/hoardings/", json=_hoarding_payload(), headers=headers)
    assert created.status_code == 201, created.text
    body = created.json()
    assert body["owner_id"] == owner.id
    assert body["is_available"] is True

    listing = client.get("/api/v1/owner/hoardings/", headers=headers)
    assert listing.status_code == 200
    data = listing.json()
    assert [h["id"] for h in data["hoardings"]] == [body["id"]]
    assert data["stats"] == {"total": 1, "available": 1, "occupied": 0}


def test_listings_derive_availability_without_writing_it(client: TestClient, db_session, booking_setup, auth_header):
    hoarding = db_session.get(Hoarding, booking_setup["hoarding"].id)
    hoarding.is_available = False
    db_session.commit()

    owner_view = client.get("/api/v1/owner/hoardings/", headers=auth_header(booking_setup["owner"])).json()
    assert owner_view["hoardings"][0]["is_available"] is True
    assert owner_view["stats"] == {"total": 1, "available": 1, "occupied": 0}
    single = client.get(f"/api/v1/owner/hoardings/{hoarding.id}", headers=auth_header(booking_setup["owner"])).json()
    assert single["is_available"] is True

    browse = client.get("/api/v1/advertiser/hoardings", headers=auth_header(booking_setup["advertiser"])).json()
    assert hoarding.id in {h["id"] for h in browse}

    # Only the allocator and the sync write the cached column
    db_session.expire_all()
    assert db_session.get(Hoarding, hoarding.id).is_available is False


def test_invalid_dimensions_rejected(client: TestClient, user_factory, auth_header):
    owner = user_factory(UserRole.OWNER)
    r = client.post("/api/v1/owner/hoardings/", json=_hoarding_payload(height=0), headers=auth_header(owner))
    assert r.status_code == 422


def test_listing_shows_current_placement_and_occupancy(client: TestClient, db_session, booking_setup, auth_header, today):
    setup = booking_setup
    result = request_placement(
        db_session,
        advertiser_id=setup["advertiser"].id,
        hoarding_id=setup["hoarding"].id,
        advertisement_id=setup["ad"].id,
        start_date=today - timedelta(days=2),
        end_date=today + timedelta(days=20),
    )
    r = client.get("/api/v1/owner/hoardings/", headers=auth_header(setup["owner"]))
    assert r.status_code == 200
    data = r.json()
    assert data["stats"] == {"total": 1, "available": 0, "occupied": 1}
    current = data["hoardings"][0]["current_placement"]
    assert current["placement_id"] == result.placement_id
    assert current["advertisement_title"] == setup["ad"].title


def test_availability_flag_is_not_writable(client: TestClient, hoarding_factory, user_factory, auth_header, db_session):
    owner = user_factory(UserRole.OWNER)
    hoarding = hoarding_factory(owner)
    r = client.put(
        f"/api/v1/owner/hoardings/{hoarding.id}",
        json={"address": "New Address", "is_available": False},
        headers=auth_header(owner),
    )
    assert r.status_code == 200, r.text
    assert r.json()["address"] == "New Address"
    assert r.json()["is_available"] is True


def test_other_owners_hoardings_are_invisible(client: TestClient, hoarding_factory, user_factory, auth_header):
    hoarding = hoarding_factory()
    intruder = user_factory(UserRole.OWNER)
    headers = auth_header(intruder)
    assert client.get(f"/api/v1/owner/hoardings/{hoarding.id}", headers=headers).status_code == 404
    assert client.delete(f"/api/v1/owner/hoardings/{hoarding.id}", headers=headers).status_code == 404


def test_delete_blocked_while_booked(client: TestClient, db_session, booking_setup, auth_header, today):
    setup = booking_setup
    request_placement(
        db_session,
        advertiser_id=setup["advertiser"].id,
        hoarding_id=setup["hoarding"].id,
        advertisement_id=setup["ad"].id,
        start_date=today + timedelta(days=30),
        end_date=today + timedelta(days=60),
    )
    r = client.delete(f"/api/v1/owner/hoardings/{setup['hoarding'].id}", headers=auth_header(setup["owner"]))
    assert r.status_code == 409


def test_delete_with_only_expired_placements(client: TestClient, db_session, booking_setup, auth_header, today):
    setup = booking_setup
    hoarding_id = setup["hoarding"].id
    request_placement(
        db_session,
        advertiser_id=setup["advertiser"].id,
        hoarding_id=hoarding_id,
        advertisement_id=setup["ad"].id,
        start_date=today - timedelta(days=40),
        end_date=today - timedelta(days=10),
    )
    r = client.delete(f"/api/v1/owner/hoardings/{hoarding_id}", headers=auth_header(setup["owner"]))
    assert r.status_code == 200, r.text

    db_session.expire_all()
    assert db_session.get(Hoarding, hoarding_id) is None
    assert db_session.query(Placement).filter(Placement.hoarding_id == hoarding_id).count() == 0
