"""
Reservation API tests
Covers every /api/reservations endpoint
"""
from fastapi.testclient import TestClient

from factories import day, reservation_payload, guest_payload, booking_payload


def _create(client, room, start, end, status="Confirmed", headers=None, **overrides):
    return client.post(
        "/api/reservations",
        json=reservation_payload(room.id, day(start), day(end), status, **overrides),
        headers=headers or {}
    )


class TestCreateReservation:

    def test_create(self, client: TestClient, sample_room):
        response = _create(client, sample_room, 1, 3)

        assert response.status_code == 201
        data = response.json()
        assert data["reservation_number"] == "RES000001"
        assert data["number_of_nights"] == 2
        assert data["total_amount"] == 200.0
        assert data["status"] == "Confirmed"
        assert data["payment_status"] == "Pending"
        assert data["guest"]["full_name"] == "Jane Doe"
        assert data["guest"]["address"]["city"] == "Lisbon"
        assert data["room"]["room_number"] == "101"
        assert data["check_in"].startswith("2030-06-01T00:00:00")
        assert data["created_by"] is None

    def test_double_booking_scenario(self, client: TestClient, sample_room):
        """A 1-3 and C 3-5 share a boundary and both succeed; B 2-4 overlaps A"""
        a = _create(client, sample_room, 1, 3)
        assert a.status_code == 201
        assert (a.json()["number_of_nights"], a.json()["total_amount"]) == (2, 200.0)

        b = _create(client, sample_room, 2, 4)
        assert b.status_code == 409
        assert b.json()["message"] == "Room is not available for the selected dates"

        c = _create(client, sample_room, 3, 5)
        assert c.status_code == 201
        assert (c.json()["number_of_nights"], c.json()["total_amount"]) == (2, 200.0)

        listing = client.get("/api/reservations").json()
        assert listing["total"] == 2

    def test_timezone_aware_dates_stored_as_utc(self, client: TestClient, sample_room):
        payload = reservation_payload(sample_room.id, day(1), day(3))
        payload["check_in"] = "2030-06-01T02:00:00+02:00"
        payload["check_out"] = "2030-06-03T02:00:00+02:00"
        response = client.post("/api/reservations", json=payload)

        assert response.status_code == 201
        assert response.json()["check_in"].startswith("2030-06-01T00:00:00")

    def test_check_out_before_check_in(self, client: TestClient, sample_room):
        response = _create(client, sample_room, 3, 1)

        assert response.status_code == 400
        errors = response.json()["errors"]
        assert errors[0]["field"] == "check_out"
        assert "check_out must be later than check_in" in errors[0]["message"]

    def test_guest_validation(self, client: TestClient, sample_room):
        guest = guest_payload("not-an-email")
        guest["first_name"] = "   "
        response = _create(client, sample_room, 1, 2, guest=guest, number_of_guests=11)

        assert response.status_code == 400
        fields = {e["field"] for e in response.json()["errors"]}
        assert {"guest.email", "guest.first_name", "number_of_guests"} <= fields

    def test_guest_email_is_trimmed_and_lowercased(self, client: TestClient, sample_room):
        response = _create(client, sample_room, 1, 2, guest=guest_payload("  Jane.Doe@Example.COM "))

        assert response.status_code == 201
        assert response.json()["guest"]["email"] == "jane.doe@example.com"

    def test_unknown_room(self, client: TestClient):
        response = client.post("/api/reservations", json=reservation_payload(999, day(1), day(2)))

        assert response.status_code == 404
        assert response.json()["message"] == "Room not found"

    def test_room_in_maintenance(self, client: TestClient, room_factory):
        from erp_reservations.models.entities import RoomStatus
        room = room_factory("301", status=RoomStatus.MAINTENANCE)

        response = _create(client, room, 1, 2)

        assert response.status_code == 400
        assert response.json()["message"] == "Room is not available"

    def test_creator_recorded_with_token(self, client: TestClient, sample_room, receptionist_auth_headers):
        response = _create(client, sample_room, 1, 2, headers=receptionist_auth_headers)

        assert response.status_code == 201
        data = response.json()
        assert data["created_by"]["first_name"] == "Tom"
        assert data["last_modified_by"]["last_name"] == "Baker"

    def test_invalid_token_rejected(self, client: TestClient, sample_room):
        response = _create(client, sample_room, 1, 2, headers={"Authorization": "Bearer not-a-token"})
        assert response.status_code == 401


class TestReadReservations:

    def test_get(self, client: TestClient, sample_room):
        created = _create(client, sample_room, 1, 3).json()

        response = client.get(f"/api/reservations/{created['id']}")

        assert response.status_code == 200
        assert response.json()["reservation_number"] == created["reservation_number"]

    def test_get_not_found(self, client: TestClient):
        response = client.get("/api/reservations/999")
        assert response.status_code == 404
        assert response.json() == {"message": "Reservation not found"}

    def test_list_filters(self, client: TestClient, sample_room, sample_room_201):
        _create(client, sample_room, 1, 3)
        _create(client, sample_room_201, 4, 6, status="Pending", guest=guest_payload("vip@example.com"))

        data = client.get("/api/reservations", params={"status": "Pending"}).json()
        assert [r["room_id"] for r in data["reservations"]] == [sample_room_201.id]

        data = client.get("/api/reservations", params={"room_type": "Standard"}).json()
        assert [r["room_id"] for r in data["reservations"]] == [sample_room.id]

        data = client.get("/api/reservations", params={"guest_email": "VIP@"}).json()
        assert data["total"] == 1

        data = client.get("/api/reservations", params={"check_in": day(2).isoformat()}).json()
        assert [r["room_id"] for r in data["reservations"]] == [sample_room_201.id]

    def test_list_sort_and_pagination(self, client: TestClient, sample_room):
        for start in (1, 5, 3):
            _create(client, sample_room, start, start + 1)

        data = client.get("/api/reservations", params={
            "sort_by": "check_in", "sort_order": "asc", "limit": 2
        }).json()

        assert data["total"] == 3
        assert data["total_pages"] == 2
        assert data["current_page"] == 1
        assert [r["check_in"][:10] for r in data["reservations"]] == ["2030-06-01", "2030-06-03"]

    def test_availability_check(self, client: TestClient, sample_room):
        _create(client, sample_room, 1, 3)

        response = client.get("/api/reservations/availability/check", params={
            "room_id": sample_room.id, "check_in": day(2).isoformat(), "check_out": day(4).isoformat()
        })
        assert response.status_code == 200
        assert response.json() == {"available": False, "conflicting_reservation": "RES000001"}

        response = client.get("/api/reservations/availability/check", params={
            "room_id": sample_room.id, "check_in": day(3).isoformat(), "check_out": day(5).isoformat()
        })
        assert response.json() == {"available": True, "conflicting_reservation": None}

    def test_availability_check_requires_params(self, client: TestClient):
        response = client.get("/api/reservations/availability/check")
        assert response.status_code == 400


class TestUpdateReservation:

    def test_update_recomputes_totals(self, client: TestClient, sample_room, manager_auth_headers):
        created = _create(client, sample_room, 1, 3).json()

        response = client.put(
            f"/api/reservations/{created['id']}",
            json=reservation_payload(sample_room.id, day(1), day(4)),
            headers=manager_auth_headers
        )

        assert response.status_code == 200
        data = response.json()
        assert data["number_of_nights"] == 3
        assert data["total_amount"] == 300.0
        assert data["last_modified_by"]["first_name"] == "Maria"

    def test_update_into_conflict(self, client: TestClient, sample_room):
        _create(client, sample_room, 1, 3)
        second = _create(client, sample_room, 5, 7).json()

        response = client.put(
            f"/api/reservations/{second['id']}",
            json=reservation_payload(sample_room.id, day(2), day(6))
        )
        assert response.status_code == 409

    def test_status_patch(self, client: TestClient, sample_room):
        created = _create(client, sample_room, 1, 3).json()

        response = client.patch(f"/api/reservations/{created['id']}/status", json={"status": "Checked In"})

        assert response.status_code == 200
        assert response.json()["status"] == "Checked In"

    def test_status_patch_rechecks_overlap(self, client: TestClient, sample_room):
        pending = _create(client, sample_room, 2, 4, status="Pending").json()
        assert _create(client, sample_room, 1, 3).status_code == 201

        response = client.patch(f"/api/reservations/{pending['id']}/status", json={"status": "Confirmed"})
        assert response.status_code == 409
        assert client.get(f"/api/reservations/{pending['id']}").json()["status"] == "Pending"

    def test_status_patch_invalid_value(self, client: TestClient, sample_room):
        created = _create(client, sample_room, 1, 3).json()
        response = client.patch(f"/api/reservations/{created['id']}/status", json={"status": "Gone"})
        assert response.status_code == 400


class TestDeleteReservation:

    def test_delete_cascades_bookings(self, client: TestClient, sample_room):
        created = _create(client, sample_room, 1, 3).json()
        booking = client.post("/api/bookings", json=booking_payload(created["id"])).json()

        response = client.delete(f"/api/reservations/{created['id']}")

        assert response.status_code == 200
        assert client.get(f"/api/reservations/{created['id']}").status_code == 404
        assert client.get(f"/api/bookings/{booking['id']}").status_code == 404

    def test_delete_not_found(self, client: TestClient):
        assert client.delete("/api/reservations/999").status_code == 404
