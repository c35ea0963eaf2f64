from datetime import date, datetime, timedelta, timezone
import pytest
from hoarding_app.config import BOOKING_SETTINGS
from hoarding_app.services.placement_allocator import (
    InvalidRange, parse_booking_date, intervals_overlap, build_token, new_placement_id,
    validate_range, suggest_next_window, SlotConflict, AdvertisementNotEligible,
)


def test_parse_booking_date_accepts_common_forms():
    assert parse_booking_date("2025-01-15", "start_date") == date(2025, 1, 15)
    assert parse_booking_date("2025-01-15T10:30:00Z", "start_date") == date(2025, 1, 15)
    assert parse_booking_date(date(2025, 1, 15), "start_date") == date(2025, 1, 15)
    assert parse_booking_date(datetime(2025, 1, 15, 23, 0), "start_date") == date(2025, 1, 15)


def test_parse_booking_date_normalizes_offsets_to_utc():
    # 01:30 at +05:30 is still the previous UTC day
    assert parse_booking_date("2025-01-15T01:30:00+05:30", "start_date") == date(2025, 1, 14)
    aware = datetime(2025, 1, 15, 1, 30, tzinfo=timezone(timedelta(hours=5, minutes=30)))
    assert parse_booking_date(aware, "start_date") == date(2025, 1, 14)


@pytest.mark.parametrize("raw", ["", "15/01/2025", "not-a-date", None, 20250115])
def test_parse_booking_date_rejects_garbage(raw):
    with pytest.raises(InvalidRange) as exc:
        parse_booking_date(raw, "end_date")
    assert exc.value.details["field"] == "end_date"


def test_half_open_overlap():
    jan = (date(2025, 1, 1), date(2025, 2, 1))
    assert intervals_overlap(*jan, date(2025, 1, 15), date(2025, 3, 1))
    assert intervals_overlap(date(2024, 12, 1), date(2025, 3, 1), *jan)  # containment
    # Touching intervals share no day
    assert not intervals_overlap(*jan, date(2025, 2, 1), date(2025, 3, 1))
    assert not intervals_overlap(date(2024, 12, 1), date(2025, 1, 1), *jan)


def test_token_format_and_uniqueness():
    pid = new_placement_id()
    assert len(pid) == 32
    assert build_token(7, 12, pid) == f"7_12_{pid}"
    assert len({new_placement_id() for _ in range(200)}) == 200


def test_validate_range_rejects_empty_and_inverted():
    today = date(2025, 1, 1)
    with pytest.raises(InvalidRange):
        validate_range("2025-02-01", "2025-02-01", today)
    with pytest.raises(InvalidRange):
        validate_range("2025-03-01", "2025-02-01", today)
    assert validate_range("2025-02-01", "2025-02-02", today) == (date(2025, 2, 1), date(2025, 2, 2))


def test_validate_range_honours_booking_settings(monkeypatch):
    today = date(2025, 6, 1)
    # Past starts allowed by default
    validate_range("2025-01-01", "2025-02-01", today)

    monkeypatch.setitem(BOOKING_SETTINGS, "reject_past_start", True)
    with pytest.raises(InvalidRange) as exc:
        validate_range("2025-01-01", "2025-02-01", today)
    assert "past" in exc.value.message

    monkeypatch.setitem(BOOKING_SETTINGS, "reject_past_start", False)
    monkeypatch.setitem(BOOKING_SETTINGS, "max_booking_days", 30)
    validate_range("2025-07-01", "2025-07-31", today)
    with pytest.raises(InvalidRange) as exc:
        validate_range("2025-07-01", "2025-08-01", today)
    assert exc.value.details["max_booking_days"] == 30


def test_suggest_next_window_skips_blocks_too_small():
    occupied = [
        (date(2025, 1, 1), date(2025, 2, 1)),
        (date(2025, 2, 10), date(2025, 3, 1)),   # 9 day gap before this one
    ]
    # 14 days do not fit in the Feb 1-10 gap
    assert suggest_next_window(occupied, date(2025, 1, 15), timedelta(days=14)) == date(2025, 3, 1)
    # 5 days do
    assert suggest_next_window(occupied, date(2025, 1, 15), timedelta(days=5)) == date(2025, 2, 1)
    # Nothing in the way
    assert suggest_next_window(occupied, date(2025, 4, 1), timedelta(days=5)) == date(2025, 4, 1)


def test_error_payloads():
    err = SlotConflict(3, "abc", date(2025, 1, 1), date(2025, 2, 1), date(2025, 2, 1))
    body = err.to_dict()
    assert body["error"] == "SLOT_CONFLICT"
    assert err.status_code == 409
    assert body["details"]["conflicting_start_date"] == "2025-01-01"
    assert body["details"]["conflicting_end_date"] == "2025-02-01"
    assert body["details"]["next_available_start_date"] == "2025-02-01"

    not_eligible = AdvertisementNotEligible(9, "not_approved")
    assert not_eligible.status_code == 409
    assert AdvertisementNotEligible(9, "not_owned").status_code == 403
    assert AdvertisementNotEligible(9, "not_found").status_code == 404
    assert not_eligible.details == {"advertisement_id": 9, "reason": "not_approved"}
