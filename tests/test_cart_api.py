from fastapi.testclient import TestClient
from storefront.main import app

from tests.helpers import auth, create_product, create_user

SHOPPER = auth("shopper@local.test")


def test_add_merges_same_product_and_size(db_session):
    create_user(db_session, "shopper@local.test")
    shirt = create_product(db_session, name="Shirt", stock=10)
    client = TestClient(app)

    client.post("/cart", json={"product_id": str(shirt.id), "quantity": 1, "size": "M"}, headers=SHOPPER)
    r = client.post("/cart", json={"product_id": str(shirt.id), "quantity": 2, "size": "M"}, headers=SHOPPER)
    assert r.status_code == 201
    assert r.json()["quantity"] == 3

    client.post("/cart", json={"product_id": str(shirt.id), "quantity": 1, "size": "L"}, headers=SHOPPER)
    cart = client.get("/cart", headers=SHOPPER).json()
    assert sorted((c["size"], c["quantity"]) for c in cart) == [("L", 1), ("M", 3)]


def test_add_checks_stock(db_session):
    create_user(db_session, "shopper@local.test")
    rose = create_product(db_session, stock=2)
    client = TestClient(app)

    r = client.post("/cart", json={"product_id": str(rose.id), "quantity": 3}, headers=SHOPPER)
    assert r.status_code == 409


def test_add_unavailable_product(db_session):
    create_user(db_session, "shopper@local.test")
    rose = create_product(db_session, is_available=False)
    client = TestClient(app)

    r = client.post("/cart", json={"product_id": str(rose.id)}, headers=SHOPPER)
    assert r.status_code == 409


def test_remove_only_own_items(db_session):
    create_user(db_session, "shopper@local.test")
    create_user(db_session, "other@local.test")
    rose = create_product(db_session)
    client = TestClient(app)

    item = client.post("/cart", json={"product_id": str(rose.id)}, headers=SHOPPER).json()

    r = client.delete(f"/cart/{item['id']}", headers=auth("other@local.test"))
    assert r.status_code == 404

    r = client.delete(f"/cart/{item['id']}", headers=SHOPPER)
    assert r.status_code == 204
    assert client.get("/cart", headers=SHOPPER).json() == []


def test_list_products_hides_unavailable(db_session):
    create_product(db_session, name="Rose")
    create_product(db_session, name="Retired", is_available=False)
    client = TestClient(app)

    assert [p["name"] for p in client.get("/products").json()] == ["Rose"]
    names = [p["name"] for p in client.get("/products", params={"available_only": False}).json()]
    assert names == ["Retired", "Rose"]
