import pytest
from fastapi import HTTPException

from storefront.core.checkout_validation import (
    clean_answers,
    unwrap_event_data,
    validate_answers,
    validate_submission,
)
from storefront.models.shop_event import ShopEvent
from storefront.schemas.checkout import CheckoutConfig, load_checkout_fields


def _fields(raw):
    return load_checkout_fields({"additionalFields": raw})


def _codes(errors):
    return [(e["field"], e["code"]) for e in errors]


SIZE_NOTES = [
    {"id": "size", "label": "Size", "type": "select", "options": ["S", "M"]},
    {
        "id": "notes",
        "label": "Notes",
        "type": "text",
        "required": True,
        "showWhen": {"fieldId": "size", "value": "M"},
    },
]

DELIVERY = {
    "id": "delivery",
    "label": "Delivery Details",
    "type": "repeater",
    "required": True,
    "minRows": 1,
    "maxRows": 2,
    "columns": [
        {"id": "date", "label": "Date", "type": "date"},
        {"id": "time", "label": "Time", "type": "time"},
        {"id": "location", "label": "Location", "type": "text"},
    ],
}


def test_hidden_required_field_is_skipped():
    fields = _fields(SIZE_NOTES)
    assert validate_answers(fields, {"Size": "S"}) == []


def test_visible_required_field_is_enforced():
    fields = _fields(SIZE_NOTES)
    errors = validate_answers(fields, {"Size": "M"})
    assert _codes(errors) == [("Notes", "required")]


def test_whitespace_only_counts_as_missing():
    fields = _fields(SIZE_NOTES)
    errors = validate_answers(fields, {"Size": "M", "Notes": "   "})
    assert _codes(errors) == [("Notes", "required")]


def test_hidden_answers_dropped_from_payload():
    fields = _fields(SIZE_NOTES)
    assert clean_answers(fields, {"Size": "S", "Notes": "leftover", "Extra": 1}) == {"Size": "S"}


def test_required_checkbox_must_be_true():
    fields = _fields([{"id": "terms", "label": "I agree", "type": "checkbox", "required": True}])
    assert _codes(validate_answers(fields, {"I agree": False})) == [("I agree", "required")]
    assert _codes(validate_answers(fields, {})) == [("I agree", "required")]
    assert validate_answers(fields, {"I agree": True}) == []


def test_message_fields_never_validated_or_stored():
    fields = _fields([
        {"id": "info", "label": "Info", "type": "message", "required": True, "messageContent": "Hi"},
    ])
    assert validate_answers(fields, {}) == []
    assert clean_answers(fields, {"Info": "x"}) == {}


def test_repeater_min_rows():
    fields = _fields([DELIVERY])
    assert _codes(validate_answers(fields, {"Delivery Details": []})) == [("Delivery Details", "min_rows")]
    assert _codes(validate_answers(fields, {})) == [("Delivery Details", "min_rows")]


def test_repeater_max_rows():
    fields = _fields([DELIVERY])
    row = {"date": "2026-02-14", "time": "10:00", "location": "Hall"}
    errors = validate_answers(fields, {"Delivery Details": [row, row, row]})
    assert _codes(errors) == [("Delivery Details", "max_rows")]


def test_repeater_empty_cells_reported_per_row():
    fields = _fields([DELIVERY])
    rows = [
        {"date": "2026-02-14", "time": "10:00", "location": "Hall"},
        {"date": "2026-02-15", "time": "", "location": "Library"},
    ]
    errors = validate_answers(fields, {"Delivery Details": rows})
    assert _codes(errors) == [("Delivery Details", "required_cell")]
    assert errors[0]["message"] == "Row 2: Time is required"


def test_repeater_rejects_non_list():
    fields = _fields([DELIVERY])
    errors = validate_answers(fields, {"Delivery Details": "2026-02-14"})
    assert _codes(errors) == [("Delivery Details", "type")]


def test_optional_repeater_with_zero_min_rows():
    fields = _fields([{**DELIVERY, "required": True, "minRows": 0}])
    assert validate_answers(fields, {"Delivery Details": []}) == []


@pytest.mark.parametrize(
    "raw, value, code",
    [
        ({"type": "email"}, "not-an-email", "type"),
        ({"type": "text", "maxLength": 3}, "abcd", "max_length"),
        ({"type": "number", "min": 1, "max": 5}, "0", "min"),
        ({"type": "number", "min": 1, "max": 5}, 9, "max"),
        ({"type": "number"}, "many", "type"),
        ({"type": "number", "min": 1, "max": 5}, "nan", "type"),
        ({"type": "number"}, "inf", "type"),
        ({"type": "radio", "options": ["a", "b"]}, "c", "choice"),
        ({"type": "date"}, "14/02/2026", "type"),
        ({"type": "time"}, "noon", "type"),
        ({"type": "text"}, {"nested": "value"}, "type"),
    ],
)
def test_type_rules(raw, value, code):
    fields = _fields([{"id": "f", "label": "Field", **raw}])
    assert _codes(validate_answers(fields, {"Field": value})) == [("Field", code)]


def test_errors_follow_schema_order():
    fields = _fields([
        {"id": "a", "label": "A", "type": "text", "required": True},
        {"id": "b", "label": "B", "type": "email", "required": True},
    ])
    errors = validate_answers(fields, {"B": "nope"})
    assert _codes(errors) == [("A", "required"), ("B", "type")]
    assert validate_answers(fields, {"B": "nope"}) == errors


def test_validate_submission_raises_with_all_errors():
    event = ShopEvent(
        name="Valentines",
        slug="valentines",
        checkout_config=CheckoutConfig.model_validate({"additionalFields": SIZE_NOTES}).to_document(),
    )
    with pytest.raises(HTTPException) as exc:
        validate_submission(event=event, answers={"Size": "M"})
    assert exc.value.status_code == 400
    assert exc.value.detail["errors"][0]["field"] == "Notes"

    assert validate_submission(event=event, answers={"Size": "M", "Notes": "Blue"}) == {"Size": "M", "Notes": "Blue"}


def test_unwrap_event_data():
    assert unwrap_event_data({"eventName": "V", "fields": {"Size": "S"}}) == {"Size": "S"}
    assert unwrap_event_data({"eventName": "V", "Size": "S"}) == {"Size": "S"}
    assert unwrap_event_data(None) == {}
