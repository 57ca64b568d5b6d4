# backend/tests/routes/test_inventory_routes.py
"""HTTP behaviour of /api/v1/inventory."""

from datetime import datetime, timezone

BASE = "/api/v1/inventory"
MISSING_ID = "01HZZZZZZZZZZZZZZZZZZZZZZZ"


def test_create_item(client, facility):
    response = client.post(
        BASE,
        json={"name": "Folding chair", "quantity": 40, "facility_id": facility.id},
        headers={"X-User-Id": "admin"},
    )

    assert response.status_code == 201
    assert response.json()["quantity"] == 40


def test_create_item_rejects_negative_stock(client):
    response = client.post(BASE, json={"name": "Folding chair", "quantity": -1})

    assert response.status_code == 422


def test_item_detail_includes_committed_quantity(client, make_item, make_booking):
    item = make_item(10)
    make_booking(
        datetime(2024, 1, 1, tzinfo=timezone.utc),
        datetime(2024, 1, 2, tzinfo=timezone.utc),
        items=[(item.id, 4)],
    )

    response = client.get(f"{BASE}/{item.id}")

    assert response.status_code == 200
    assert response.json()["committed_quantity"] == 4


def test_missing_item_is_404(client):
    response = client.get(f"{BASE}/{MISSING_ID}")

    assert response.status_code == 404
    assert response.json()["detail"]["code"] == "INVENTORY_ITEM_NOT_FOUND"


def test_return_and_history(client, make_item):
    item = make_item(1)

    returned = client.post(
        f"{BASE}/{item.id}/return", json={"quantity": 2, "condition": "good"}
    )
    history = client.get(f"{BASE}/{item.id}/history")

    assert returned.status_code == 200
    assert returned.json()["quantity"] == 3
    assert history.status_code == 200
    assert [entry["change"] for entry in history.json()] == [2]


def test_return_requires_positive_quantity(client, make_item):
    item = make_item(1)

    assert client.post(f"{BASE}/{item.id}/return", json={"quantity": 0}).status_code == 422


def test_low_stock(client, make_item):
    make_item(1, name="Projector")
    make_item(50, name="Chair")

    response = client.get(f"{BASE}/low-stock", params={"threshold": 5})

    assert [item["name"] for item in response.json()] == ["Projector"]


def test_booking_lifecycle_moves_stock(client, facility, make_item):
    item = make_item(10)
    headers = {"X-User-Id": "user-1"}

    booking = client.post(
        "/api/v1/bookings",
        json={
            "facility_id": facility.id,
            "start_date": "2024-01-01T00:00:00Z",
            "end_date": "2024-01-02T00:00:00Z",
            "items": [{"inventory_item_id": item.id, "quantity": 4}],
        },
        headers=headers,
    ).json()
    assert client.get(f"{BASE}/{item.id}").json()["quantity"] == 6

    client.patch(
        f"/api/v1/bookings/{booking['id']}",
        json={"items": [{"inventory_item_id": item.id, "quantity": 2}]},
        headers=headers,
    )
    assert client.get(f"{BASE}/{item.id}").json()["quantity"] == 8

    client.delete(f"/api/v1/bookings/{booking['id']}", headers=headers)
    detail = client.get(f"{BASE}/{item.id}").json()
    assert detail["quantity"] == 10
    assert detail["committed_quantity"] == 0
