"""
Auth and staff API tests
"""
from fastapi.testclient import TestClient


class TestLogin:

    def test_login(self, client: TestClient, receptionist):
        response = client.post("/api/auth/login", json={"username": "front1", "password": "secret123"})

        assert response.status_code == 200
        data = response.json()
        assert data["token_type"] == "bearer"
        assert data["staff"]["username"] == "front1"
        assert "password_hash" not in data["staff"]

        me = client.get("/api/auth/me", headers={"Authorization": f"Bearer {data['access_token']}"})
        assert me.status_code == 200
        assert me.json()["role"] == "receptionist"

    def test_login_wrong_password(self, client: TestClient, receptionist):
        response = client.post("/api/auth/login", json={"username": "front1", "password": "nope"})

        assert response.status_code == 401
        assert response.json() == {"message": "Invalid username or password"}

    def test_me_requires_token(self, client: TestClient):
        assert client.get("/api/auth/me").status_code in (401, 403)


class TestStaffManagement:

    def test_list_requires_login(self, client: TestClient):
        assert client.get("/api/staff").status_code in (401, 403)

    def test_list(self, client: TestClient, manager_auth_headers, receptionist):
        response = client.get("/api/staff", headers=manager_auth_headers)

        assert response.status_code == 200
        assert {s["username"] for s in response.json()} == {"manager", "front1"}

    def test_create_as_manager(self, client: TestClient, manager_auth_headers):
        response = client.post("/api/staff", headers=manager_auth_headers, json={
            "username": "spa2", "password": "massage1", "first_name": "Rui", "last_name": "Costa",
            "role": "service"
        })

        assert response.status_code == 201
        assert response.json()["role"] == "service"

    def test_create_as_receptionist_forbidden(self, client: TestClient, receptionist_auth_headers):
        response = client.post("/api/staff", headers=receptionist_auth_headers, json={
            "username": "spa2", "password": "massage1", "first_name": "Rui", "last_name": "Costa"
        })
        assert response.status_code == 403

    def test_create_duplicate(self, client: TestClient, manager_auth_headers):
        response = client.post("/api/staff", headers=manager_auth_headers, json={
            "username": "manager", "password": "another1", "first_name": "X", "last_name": "Y"
        })
        assert response.status_code == 409

    def test_update_and_deactivate(self, client: TestClient, manager_auth_headers, receptionist):
        response = client.put(f"/api/staff/{receptionist.id}", headers=manager_auth_headers,
                              json={"phone": "+351 900 000 000"})
        assert response.json()["phone"] == "+351 900 000 000"

        response = client.delete(f"/api/staff/{receptionist.id}", headers=manager_auth_headers)
        assert response.status_code == 200
        assert response.json()["is_active"] is False

        login = client.post("/api/auth/login", json={"username": "front1", "password": "secret123"})
        assert login.status_code == 401

    def test_update_with_null_name_is_rejected(self, client: TestClient, manager_auth_headers, receptionist):
        response = client.put(f"/api/staff/{receptionist.id}", headers=manager_auth_headers,
                              json={"first_name": None, "role": None})

        assert response.status_code == 400
        fields = {e["field"] for e in response.json()["errors"]}
        assert fields == {"first_name", "role"}

    def test_get_not_found(self, client: TestClient, manager_auth_headers):
        response = client.get("/api/staff/999", headers=manager_auth_headers)
        assert response.status_code == 404
