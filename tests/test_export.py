import csv
import io

from storefront.core.export import (
    ANSWER_PREFIX,
    MISSING,
    build_export_rows,
    flatten_event_data,
    format_value,
    to_csv,
    to_table,
)
from storefront.models.order import Order
from storefront.schemas.checkout import load_checkout_fields

from tests.helpers import create_event, create_order, create_product, create_user

DELIVERY = {
    "id": "delivery",
    "label": "Delivery Details",
    "type": "repeater",
    "columns": [
        {"id": "date", "label": "Date", "type": "date"},
        {"id": "time", "label": "Time", "type": "time"},
        {"id": "location", "label": "Location", "type": "text"},
    ],
}

FIELDS = [
    {"id": "recipient", "label": "Recipient", "type": "text"},
    {"id": "anon", "label": "Anonymous", "type": "checkbox"},
    DELIVERY,
    {"id": "info", "label": "Info", "type": "message", "messageContent": "Thanks!"},
]


def _fields(raw=FIELDS):
    return load_checkout_fields({"additionalFields": raw})


def test_repeater_rows_expand_in_column_order():
    answers = {
        "Delivery Details": [
            {"date": "2026-02-14", "time": "10:00", "location": "Hall"},
            {"date": "2026-02-15", "time": "11:00", "location": "Library"},
        ]
    }
    out = flatten_event_data(_fields(), answers)
    assert list(out) == ["Date 1", "Time 1", "Location 1", "Date 2", "Time 2", "Location 2"]
    assert out["Location 2"] == "Library"


def test_repeater_missing_cell_renders_sentinel():
    out = flatten_event_data(_fields(), {"Delivery Details": [{"date": "2026-02-14", "time": ""}]})
    assert out == {"Date 1": "2026-02-14", "Time 1": MISSING, "Location 1": MISSING}


def test_repeater_with_zero_rows_emits_nothing():
    assert flatten_event_data(_fields(), {"Delivery Details": []}) == {}


def test_orphaned_keys_and_message_fields_dropped():
    answers = {"Old Label": "x", "Info": "shown", "Recipient": "Sam"}
    assert flatten_event_data(_fields(), answers) == {"Recipient": "Sam"}


def test_storage_order_not_schema_order():
    answers = {"Anonymous": False, "Recipient": "Sam"}
    assert list(flatten_event_data(_fields(), answers)) == ["Anonymous", "Recipient"]


def test_event_name_marker_excluded():
    data = {"eventName": "Valentines", "fields": {"Recipient": "Sam"}}
    assert flatten_event_data(_fields(), data) == {"Recipient": "Sam"}


def test_flatten_is_stable():
    answers = {"Recipient": "Sam", "Delivery Details": [{"date": "2026-02-14", "time": "10:00", "location": "Hall"}]}
    fields = _fields()
    assert flatten_event_data(fields, answers) == flatten_event_data(fields, answers)


def test_format_value():
    assert format_value(None) == MISSING
    assert format_value(True) == "Yes"
    assert format_value(False) == "No"
    assert format_value({"street": "Main", "no": 4}) == "Main, 4"
    assert format_value(["a", "b"]) == "a, b"
    assert format_value(3) == "3"


def test_to_table_unions_columns():
    rows = [{"A": 1, "B": "x"}, {"A": 2, "C": None}]
    assert to_table(rows) == [["A", "B", "C"], ["1", "x", ""], ["2", "", ""]]


def test_export_rows_per_line_item(db_session):
    shopper = create_user(db_session, "shopper@local.test", "Sam Shopper")
    event = create_event(db_session, fields=FIELDS)
    rose = create_product(db_session, name="Rose", price="5.00")
    card = create_product(db_session, name="Card", price="1.50")

    data = {
        "eventName": event.name,
        "fields": {
            "Recipient": "Alex",
            "Delivery Details": [{"date": "2026-02-14", "time": "10:00", "location": "Hall"}],
        },
    }
    create_order(db_session, user=shopper, event=event, products=[rose, card], event_data=data, quantity=2)

    rows = build_export_rows(_orders(db_session))
    assert len(rows) == 2
    by_product = {r["Product Name"]: r for r in rows}
    assert by_product["Rose"]["Item Total"] == "10.00"
    assert by_product["Card"]["Item Total"] == "3.00"

    # order-level cells only on the first line
    first, second = rows
    assert first["Order Total"] == "13.00"
    assert first["Recipient"] == "Alex"
    assert first["Date 1"] == "2026-02-14"
    assert first["Customer Name"] == "Sam Shopper"
    assert second["Order Total"] == ""
    assert "Recipient" not in second
    assert second["Customer Email"] == "shopper@local.test"


def test_csv_matches_table(db_session):
    shopper = create_user(db_session, "shopper@local.test")
    event = create_event(db_session, fields=FIELDS)
    rose = create_product(db_session)
    create_order(
        db_session,
        user=shopper,
        event=event,
        products=[rose],
        event_data={"fields": {"Delivery Details": [{"date": "2026-02-14", "time": "9:00", "location": "A"}] * 2}},
    )
    create_order(db_session, user=shopper, event=event, products=[rose], event_data={"fields": {"Recipient": "Jo"}})

    table = to_table(build_export_rows(_orders(db_session)))
    parsed = list(csv.reader(io.StringIO(to_csv(table))))
    assert parsed == table
    header = table[0]
    assert header.index("Date 2") > header.index("Location 1")
    assert "Recipient" in header


def test_answers_never_overwrite_line_columns(db_session):
    shopper = create_user(db_session, "shopper@local.test")
    event = create_event(
        db_session,
        fields=[
            {"id": "size", "label": "Size", "type": "select", "options": ["S", "M"]},
            {"id": "notes", "label": "Notes", "type": "text", "showWhen": {"fieldId": "size", "value": "M"}},
        ],
    )
    shirt = create_product(db_session, name="Shirt")
    cap = create_product(db_session, name="Cap")
    order = create_order(
        db_session,
        user=shopper,
        event=event,
        products=[shirt, cap],
        event_data={"eventName": event.name, "fields": {"Size": "M", "Notes": "gift wrap"}},
    )
    order.notes = "leave at door"
    sizes = {shirt.id: "XL", cap.id: "L"}
    for item in order.items:
        item.size = sizes[item.product_id]
    db_session.commit()

    rows = build_export_rows(_orders(db_session))
    by_product = {r["Product Name"]: r for r in rows}
    assert by_product["Shirt"]["Size"] == "XL"
    assert by_product["Cap"]["Size"] == "L"
    assert by_product["Shirt"]["Notes"] == "leave at door"

    first = rows[0]
    assert first[ANSWER_PREFIX + "Size"] == "M"
    assert first[ANSWER_PREFIX + "Notes"] == "gift wrap"

    header = to_table(rows)[0]
    assert header.count("Size") == 1
    assert header.count("Notes") == 1


def _orders(db):
    return db.query(Order).order_by(Order.created_at.asc()).all()
