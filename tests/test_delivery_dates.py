from datetime import date

from storefront.core.delivery_dates import extract_consumption_date, parse_date


def test_scalar_delivery_date():
    assert extract_consumption_date({"Delivery Date": "2026-02-14"}) == date(2026, 2, 14)


def test_label_match_is_case_insensitive():
    assert extract_consumption_date({"PICKUP DATE": "2026-02-14"}) == date(2026, 2, 14)


def test_scalar_without_date_in_label_is_ignored():
    assert extract_consumption_date({"Delivery Location": "2026-02-14"}) is None


def test_unrelated_labels_ignored():
    assert extract_consumption_date({"Birthday Date": "2026-02-14"}) is None


def test_wrapped_event_data():
    data = {"eventName": "Valentines", "fields": {"Pickup Date": "2026-02-13"}}
    assert extract_consumption_date(data) == date(2026, 2, 13)


def test_repeater_uses_first_row_only():
    data = {
        "Delivery Details": [
            {"location": "Hall", "date": "2026-02-14", "time": "10:00"},
            {"location": "Library", "date": "2026-02-15", "time": "11:00"},
        ]
    }
    assert extract_consumption_date(data) == date(2026, 2, 14)


def test_repeater_first_row_without_date_does_not_fall_through():
    data = {
        "Delivery Details": [
            {"location": "Hall", "date": ""},
            {"location": "Library", "date": "2026-02-15"},
        ]
    }
    assert extract_consumption_date(data) is None


def test_repeater_skips_cells_without_separator():
    data = {"Delivery Slots": [{"time": "1000", "date": "02/14/2026"}]}
    assert extract_consumption_date(data) == date(2026, 2, 14)


def test_first_matching_key_wins():
    data = {
        "Pickup Date": "2026-02-13",
        "Delivery Date": "2026-02-14",
    }
    assert extract_consumption_date(data) == date(2026, 2, 13)


def test_unparseable_first_key_falls_through_to_next():
    data = {
        "Delivery Date": "sometime next week",
        "Pickup Date": "2026-02-14",
    }
    assert extract_consumption_date(data) == date(2026, 2, 14)


def test_empty_and_missing():
    assert extract_consumption_date(None) is None
    assert extract_consumption_date({}) is None
    assert extract_consumption_date({"Delivery Date": None}) is None


def test_parse_date_formats():
    assert parse_date("2026-02-14") == date(2026, 2, 14)
    assert parse_date("2026-02-14T09:30:00") == date(2026, 2, 14)
    assert parse_date("2026/02/14") == date(2026, 2, 14)
    assert parse_date("02/14/2026") == date(2026, 2, 14)
    assert parse_date("Feb 14") is None
    assert parse_date(20260214) is None


def test_utc_timestamp_counts_as_its_day():
    assert parse_date("2026-02-13T10:00:00Z") == date(2026, 2, 13)
    assert extract_consumption_date({"Pickup Date": "2026-02-13T10:00:00Z"}) == date(2026, 2, 13)
