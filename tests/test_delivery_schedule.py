from datetime import date, datetime

from storefront.core.delivery_schedule import (
    DEFAULT_CUTOFF_MESSAGE,
    cutoff_message,
    earliest_delivery_date,
    is_past_cutoff,
)

MORNING = datetime(2026, 2, 12, 9, 30)
EVENING = datetime(2026, 2, 12, 18, 0)


def test_no_cutoff_settings_means_no_earliest_day():
    assert earliest_delivery_date(None, MORNING) is None
    assert earliest_delivery_date({"additionalFields": []}, MORNING) is None


def test_before_and_after_cutoff():
    config = {"cutoffTime": "18:00"}
    assert earliest_delivery_date(config, MORNING) == date(2026, 2, 12)
    # the cutoff minute itself is already too late
    assert earliest_delivery_date(config, EVENING) == date(2026, 2, 13)


def test_lead_days_add_to_cutoff():
    config = {"cutoffTime": "18:00", "cutoffDaysOffset": 2}
    assert earliest_delivery_date(config, MORNING) == date(2026, 2, 14)
    assert earliest_delivery_date(config, EVENING) == date(2026, 2, 15)
    assert earliest_delivery_date({"cutoffDaysOffset": 1}, EVENING) == date(2026, 2, 13)


def test_unreadable_cutoff_time_is_ignored():
    assert not is_past_cutoff(EVENING, "late")
    assert not is_past_cutoff(EVENING, None)
    assert earliest_delivery_date({"cutoffTime": "late"}, EVENING) == date(2026, 2, 12)


def test_cutoff_message_falls_back_to_default():
    assert cutoff_message({"cutoffMessage": "Order by 6pm the day before"}) == "Order by 6pm the day before"
    assert cutoff_message({}) == DEFAULT_CUTOFF_MESSAGE
