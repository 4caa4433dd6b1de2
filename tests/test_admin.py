"""
Tests for administration endpoints
"""
from tests.helpers import PASSWORD, register


class TestUserManagement:
    """Test user listing and status changes"""

    def test_list_users(self, client, admin_headers, test_user_data, test_provider_data):
        register(client, test_user_data)
        register(client, test_provider_data)

        response = client.get("/api/v1/admin/users", params={"role": "provider"}, headers=admin_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 1
        assert data["users"][0]["email"] == test_provider_data["email"]

    def test_search_users(self, client, admin_headers, test_user_data):
        register(client, test_user_data)

        response = client.get("/api/v1/admin/users", params={"search": "maria"}, headers=admin_headers)

        assert response.json()["total"] == 1

    def test_client_cannot_list_users(self, client, test_user_data):
        _, headers = register(client, test_user_data)

        response = client.get("/api/v1/admin/users", headers=headers)

        assert response.status_code == 403

    def test_deactivate_user(self, client, admin_headers, test_user_data):
        user, _ = register(client, test_user_data)

        response = client.put(
            f"/api/v1/admin/users/{user['id']}/status",
            json={"is_active": False},
            headers=admin_headers,
        )
        assert response.status_code == 200
        assert response.json()["is_active"] is False

        response = client.post(
            "/api/v1/auth/login",
            json={"email": test_user_data["email"], "password": PASSWORD},
        )
        assert response.status_code == 403

    def test_admin_cannot_deactivate_self(self, client, admin_headers):
        me = client.get("/api/v1/auth/me", headers=admin_headers).json()

        response = client.put(
            f"/api/v1/admin/users/{me['id']}/status",
            json={"is_active": False},
            headers=admin_headers,
        )

        assert response.status_code == 400

    def test_verify_requires_provider(self, client, admin_headers, test_user_data):
        user, _ = register(client, test_user_data)

        response = client.put(
            f"/api/v1/admin/providers/{user['id']}/verify",
            json={"is_verified": True},
            headers=admin_headers,
        )

        assert response.status_code == 400


class TestStats:
    """Test dashboard counters"""

    def test_stats(self, marketplace):
        marketplace.complete("10:00")
        marketplace.book("14:00")

        response = marketplace.client.get("/api/v1/admin/stats", headers=marketplace.admin)

        assert response.status_code == 200
        data = response.json()
        assert data["users_by_role"]["client"] == 1
        assert data["users_by_role"]["provider"] == 1
        assert data["users_by_role"]["admin"] == 1
        assert data["appointments_by_status"] == {"completed": 1, "pending": 1}
        assert data["total_appointments"] == 2
        assert data["pending_withdrawals"] == 0
