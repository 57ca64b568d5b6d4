# backend/tests/routes/test_bookings_routes.py
"""HTTP behaviour of /api/v1/bookings."""

from datetime import datetime, timezone

from facilityhub.models.booking import BookingStatus

BASE = "/api/v1/bookings"
HEADERS = {"X-User-Id": "user-1"}
MISSING_ID = "01HZZZZZZZZZZZZZZZZZZZZZZZ"


def _iso(day: int) -> str:
    return datetime(2024, 1, day, tzinfo=timezone.utc).isoformat()


def _payload(facility_id: str, start: int, end: int, **extra) -> dict:
    return {"facility_id": facility_id, "start_date": _iso(start), "end_date": _iso(end), **extra}


class TestCreate:
    def test_create_returns_201(self, client, facility, make_item):
        item = make_item(10)

        response = client.post(
            BASE,
            json=_payload(
                facility.id, 1, 3, items=[{"inventory_item_id": item.id, "quantity": 2}]
            ),
            headers=HEADERS,
        )

        assert response.status_code == 201
        body = response.json()
        assert body["status"] == BookingStatus.PENDING.value
        assert body["user_id"] == "user-1"
        assert body["items"] == [{"inventory_item_id": item.id, "quantity": 2}]
        assert body["start_date"].startswith("2024-01-01T00:00:00")

    def test_missing_user_header_is_401(self, client, facility):
        response = client.post(BASE, json=_payload(facility.id, 1, 3))

        assert response.status_code == 401
        assert response.json()["detail"]["code"] == "MISSING_USER_ID"

    def test_conflict_is_409_with_suggested_dates(self, client, facility, make_booking):
        existing = make_booking(
            datetime(2024, 1, 10, tzinfo=timezone.utc), datetime(2024, 1, 15, tzinfo=timezone.utc)
        )

        response = client.post(BASE, json=_payload(facility.id, 12, 14), headers=HEADERS)

        assert response.status_code == 409
        detail = response.json()["detail"]
        assert detail["code"] == "BOOKING_CONFLICT"
        assert detail["message"] == "overlapping time for this facility"
        assert detail["details"]["conflicting_booking_id"] == existing.id
        suggested = detail["details"]["suggested_dates"]
        assert len(suggested) == 5
        assert suggested[0]["start_date"].startswith("2024-01-15T00:00:00")
        assert suggested[0]["duration_days"] == 2

    def test_invalid_interval_is_400(self, client, facility):
        response = client.post(BASE, json=_payload(facility.id, 5, 5), headers=HEADERS)

        assert response.status_code == 400
        assert response.json()["detail"]["code"] == "INVALID_INTERVAL"

    def test_insufficient_inventory_is_422(self, client, facility, make_item):
        item = make_item(3)

        response = client.post(
            BASE,
            json=_payload(
                facility.id, 1, 2, items=[{"inventory_item_id": item.id, "quantity": 5}]
            ),
            headers=HEADERS,
        )

        assert response.status_code == 422
        assert response.json()["detail"]["code"] == "INSUFFICIENT_INVENTORY"

    def test_unknown_fields_are_rejected(self, client, facility):
        response = client.post(
            BASE, json=_payload(facility.id, 1, 2, colour="red"), headers=HEADERS
        )

        assert response.status_code == 422


class TestReadAndModify:
    def test_get_update_cancel_delete_flow(self, client, facility):
        created = client.post(BASE, json=_payload(facility.id, 1, 3), headers=HEADERS).json()
        booking_id = created["id"]

        fetched = client.get(f"{BASE}/{booking_id}")
        assert fetched.status_code == 200
        assert fetched.json()["id"] == booking_id

        patched = client.patch(
            f"{BASE}/{booking_id}",
            json={"status": "confirmed", "notes": "Bring projector"},
            headers=HEADERS,
        )
        assert patched.status_code == 200
        assert patched.json()["status"] == "confirmed"
        assert patched.json()["notes"] == "Bring projector"

        cancelled = client.post(
            f"{BASE}/{booking_id}/cancel", json={"reason": "Rain"}, headers=HEADERS
        )
        assert cancelled.status_code == 200
        assert cancelled.json()["status"] == "cancelled"
        assert cancelled.json()["cancellation_reason"] == "Rain"

        deleted = client.delete(f"{BASE}/{booking_id}", headers=HEADERS)
        assert deleted.status_code == 200
        assert deleted.json()["is_deleted"] is True

        assert client.get(f"{BASE}/{booking_id}").status_code == 404
        assert client.get(f"{BASE}/{booking_id}", params={"show_deleted": True}).status_code == 200

    def test_update_conflict_is_409_with_suggestions(self, client, facility):
        first = client.post(BASE, json=_payload(facility.id, 1, 3), headers=HEADERS).json()
        client.post(BASE, json=_payload(facility.id, 5, 8), headers=HEADERS)

        response = client.patch(
            f"{BASE}/{first['id']}", json={"end_date": _iso(6)}, headers=HEADERS
        )

        assert response.status_code == 409
        assert "suggested_dates" in response.json()["detail"]["details"]

    def test_invalid_status_transition_is_422(self, client, facility):
        created = client.post(BASE, json=_payload(facility.id, 1, 3), headers=HEADERS).json()

        response = client.patch(
            f"{BASE}/{created['id']}", json={"status": "completed"}, headers=HEADERS
        )

        assert response.status_code == 422
        assert response.json()["detail"]["code"] == "INVALID_STATUS_TRANSITION"

    def test_missing_booking_is_404(self, client):
        response = client.get(f"{BASE}/{MISSING_ID}")

        assert response.status_code == 404
        assert response.json()["detail"]["code"] == "BOOKING_NOT_FOUND"

    def test_malformed_id_is_422(self, client):
        assert client.get(f"{BASE}/not-a-ulid").status_code == 422

    def test_delete_requires_user_header(self, client):
        assert client.delete(f"{BASE}/{MISSING_ID}").status_code == 401


class TestQueries:
    def test_listings(self, client, facility):
        client.post(BASE, json=_payload(facility.id, 1, 2), headers=HEADERS)
        client.post(BASE, json=_payload(facility.id, 3, 4), headers={"X-User-Id": "user-2"})

        assert len(client.get(BASE).json()) == 2
        assert len(client.get(BASE, params={"status": "pending"}).json()) == 2
        assert len(client.get(BASE, params={"status": "confirmed"}).json()) == 0
        assert len(client.get(f"{BASE}/me", headers=HEADERS).json()) == 1
        assert len(client.get(f"{BASE}/user/user-2").json()) == 1

    def test_check_availability(self, client, facility):
        created = client.post(BASE, json=_payload(facility.id, 10, 15), headers=HEADERS).json()

        busy = client.post(f"{BASE}/check-availability", json=_payload(facility.id, 12, 13))
        free = client.post(f"{BASE}/check-availability", json=_payload(facility.id, 15, 16))

        assert busy.json()["available"] is False
        assert busy.json()["conflicts_with"][0]["booking_id"] == created["id"]
        assert free.json() == {"available": True, "conflicts_with": None}

    def test_suggested_dates(self, client, facility):
        client.post(BASE, json=_payload(facility.id, 10, 15), headers=HEADERS)

        response = client.post(f"{BASE}/suggested-dates", json=_payload(facility.id, 12, 13))

        assert response.status_code == 200
        suggestions = response.json()["suggested_dates"]
        assert len(suggestions) == 5
        assert suggestions[0]["start_date"].startswith("2024-01-15T00:00:00")
        assert suggestions[0]["duration_days"] == 1


class TestOperationalEndpoints:
    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_metrics_exposition(self, client, facility):
        client.post(BASE, json=_payload(facility.id, 1, 2), headers=HEADERS)

        response = client.get("/metrics")

        assert response.status_code == 200
        assert "facilityhub_service_operations_total" in response.text
