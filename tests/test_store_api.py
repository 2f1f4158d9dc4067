from datetime import datetime, timezone
from decimal import Decimal

SALE = {
    "id": "SALE1",
    "created_at": datetime(2024, 3, 10, 9, 0, tzinfo=timezone.utc).isoformat(),
    "lines": [{"item_id": "P1", "name": "Matte Pomade", "unit_price": "18", "kind": "product", "quantity": 2}],
    "staff_id": "ST2",
    "total": "36",
    "tax": "0",
    "discount": "0",
    "payment_method": "cash",
    "tax_mode": "excluded",
}


def test_seeded_catalog_is_served(client):
    response = client.get("/trimtime/products")
    assert response.status_code == 200
    rows = response.json()["rows"]
    assert [row["id"] for row in rows] == ["P1", "P2", "P3"]
    assert rows[0]["barcode"] == "8901234567890"

    staff = client.get("/trimtime/staff").json()["rows"]
    assert {row["username"] for row in staff} == {"admin", "barber"}


def test_select_one_and_missing_row(client):
    assert client.get("/trimtime/services/S1").json()["name"] == "Classic Haircut"

    response = client.get("/trimtime/services/NOPE")
    assert response.status_code == 404
    payload = response.json()
    assert payload["code"] == "NOT_FOUND"
    assert payload["trace_id"]


def test_unknown_collection(client):
    response = client.get("/trimtime/unicorns")
    assert response.status_code == 404
    assert response.json()["code"] == "UNKNOWN_COLLECTION"


def test_upsert_then_delete(client):
    response = client.put(
        "/trimtime/services",
        json=[
            {"id": "S1", "name": "Classic Haircut", "price": "28.00"},
            {"id": "S9", "name": "Kids Cut", "price": "12.50", "duration": 20},
        ],
    )
    assert response.status_code == 200
    assert Decimal(client.get("/trimtime/services/S1").json()["price"]) == Decimal("28")
    assert client.get("/trimtime/services/S9").json()["duration"] == 20

    response = client.post("/trimtime/services/delete", json={"ids": ["S9", "NEVER-EXISTED"]})
    assert response.status_code == 200
    assert response.json() == {"deleted": 1}
    assert client.get("/trimtime/services/S9").status_code == 404


def test_upsert_validation_error(client):
    response = client.put("/trimtime/products", json=[{"id": "PX", "name": "No price"}])
    assert response.status_code == 422
    assert response.json()["code"] == "VALIDATION_ERROR"


def test_insert_rejects_duplicate_id(client):
    row = {"id": "E1", "date": "2024-03-01", "category": "Rent", "amount": "500"}
    assert client.post("/trimtime/expenses", json=row).status_code == 201

    response = client.post("/trimtime/expenses", json=row)
    assert response.status_code == 409
    assert response.json()["code"] == "DUPLICATE_ID"


def test_sales_are_append_only(client):
    assert client.post("/trimtime/sales", json=SALE).status_code == 201
    stored = client.get("/trimtime/sales/SALE1").json()
    assert stored["lines"][0]["quantity"] == 2

    assert client.put("/trimtime/sales", json=[SALE]).status_code == 405
    assert client.post("/trimtime/sales/delete", json={"ids": ["SALE1"]}).status_code == 405
    response = client.patch("/trimtime/sales/SALE1", json={"total": "0"})
    assert response.status_code == 405
    assert response.json()["code"] == "APPEND_ONLY_COLLECTION"


def test_patch_updates_only_given_fields(client):
    response = client.patch("/trimtime/staff/ST2", json={"name": "Barber Prime", "email": "p@example.com"})
    assert response.status_code == 200
    body = response.json()
    assert body["name"] == "Barber Prime"
    assert body["username"] == "barber"
    assert Decimal(body["commission"]) == Decimal("40")

    assert client.patch("/trimtime/staff/NOPE", json={"name": "x"}).status_code == 404


def test_stock_adjustments_are_atomic_deltas(client):
    first = client.post("/trimtime/products/P2/stock-adjustments", json={"delta": -2})
    second = client.post("/trimtime/products/P2/stock-adjustments", json={"delta": -3})

    assert first.json() == {"id": "P2", "stock": 13}
    assert second.json() == {"id": "P2", "stock": 10}
    assert client.post("/trimtime/products/NOPE/stock-adjustments", json={"delta": 1}).status_code == 404


def test_settings_singleton(client):
    response = client.get("/trimtime/settings")
    assert response.status_code == 200
    assert response.json()["tax_type"] == "excluded"

    updated = {**response.json(), "shop_name": "Fade Lab", "tax_rate": "7.5", "tax_type": "included"}
    assert client.put("/trimtime/settings", json=updated).status_code == 200
    assert client.get("/trimtime/settings").json()["shop_name"] == "Fade Lab"

    rejected = client.put("/trimtime/settings", json={**updated, "tax_rate": "150"})
    assert rejected.status_code == 422
    assert rejected.json()["code"] == "VALIDATION_ERROR"
