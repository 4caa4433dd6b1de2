"""
Tests for authentication endpoints
"""
from fastapi import status

from tests.helpers import PASSWORD, register


class TestRegistration:
    """Test user registration"""

    def test_register_client_success(self, client, test_user_data):
        response = client.post("/api/v1/auth/register", json=test_user_data)

        assert response.status_code == status.HTTP_201_CREATED
        data = response.json()
        assert data["message"] == "Registration successful"
        assert data["user"]["email"] == test_user_data["email"]
        assert data["user"]["role"] == "client"
        assert data["user"]["phone"] == "11912345678"
        assert "access_token" in data["tokens"]
        assert "refresh_token" in data["tokens"]
        assert data["tokens"]["token_type"] == "bearer"

    def test_register_normalizes_email(self, client, test_user_data):
        test_user_data["email"] = "Maria@AgendoAI.com.br"
        response = client.post("/api/v1/auth/register", json=test_user_data)

        assert response.status_code == status.HTTP_201_CREATED
        assert response.json()["user"]["email"] == "maria@agendoai.com.br"

    def test_register_provider_creates_profile(self, client, test_provider_data):
        _, headers = register(client, test_provider_data)

        response = client.get("/api/v1/provider/profile", headers=headers)
        assert response.status_code == status.HTTP_200_OK
        profile = response.json()
        assert profile["business_name"] == "Barbearia do João"
        assert profile["whatsapp"] == "11987654321"
        assert profile["rating"] == 0

        response = client.get("/api/v1/provider/balance", headers=headers)
        assert response.status_code == status.HTTP_200_OK
        assert response.json()["available_balance"] == 0

    def test_register_duplicate_email(self, client, test_user_data):
        client.post("/api/v1/auth/register", json=test_user_data)
        response = client.post("/api/v1/auth/register", json=test_user_data)

        assert response.status_code == status.HTTP_409_CONFLICT
        assert "already registered" in response.json()["detail"]

    def test_register_weak_password(self, client, test_user_data):
        test_user_data["password"] = "weakpassword"
        response = client.post("/api/v1/auth/register", json=test_user_data)

        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY

    def test_register_short_password(self, client, test_user_data):
        test_user_data["password"] = "Ab@1"
        response = client.post("/api/v1/auth/register", json=test_user_data)

        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY

    def test_register_invalid_email(self, client, test_user_data):
        test_user_data["email"] = "not-an-email"
        response = client.post("/api/v1/auth/register", json=test_user_data)

        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY

    def test_register_invalid_phone(self, client, test_user_data):
        test_user_data["phone"] = "123"
        response = client.post("/api/v1/auth/register", json=test_user_data)

        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY

    def test_register_cannot_self_assign_admin(self, client, test_user_data):
        test_user_data["role"] = "admin"
        response = client.post("/api/v1/auth/register", json=test_user_data)

        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY

    def test_register_invalid_cpf(self, client, test_user_data):
        test_user_data["cpf"] = "111.111.111-11"
        response = client.post("/api/v1/auth/register", json=test_user_data)

        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


class TestLogin:
    """Test login"""

    def test_login_success(self, client, test_user_data):
        register(client, test_user_data)

        response = client.post(
            "/api/v1/auth/login",
            json={"email": test_user_data["email"], "password": PASSWORD},
        )

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["message"] == "Login successful"
        assert data["user"]["last_login"] is not None
        assert "access_token" in data["tokens"]

    def test_login_wrong_password(self, client, test_user_data):
        register(client, test_user_data)

        response = client.post(
            "/api/v1/auth/login",
            json={"email": test_user_data["email"], "password": "Wrong@1234"},
        )

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.json()["detail"] == "Invalid credentials"

    def test_login_unknown_email(self, client):
        response = client.post(
            "/api/v1/auth/login",
            json={"email": "nobody@agendoai.com.br", "password": PASSWORD},
        )

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.json()["detail"] == "Invalid credentials"

    def test_login_deactivated_account(self, client, test_user_data):
        _, headers = register(client, test_user_data)

        response = client.post("/api/v1/auth/deactivate", headers=headers)
        assert response.status_code == status.HTTP_200_OK

        response = client.post(
            "/api/v1/auth/login",
            json={"email": test_user_data["email"], "password": PASSWORD},
        )
        assert response.status_code == status.HTTP_403_FORBIDDEN

        # Tokens of a deactivated account stop working
        response = client.get("/api/v1/auth/me", headers=headers)
        assert response.status_code == status.HTTP_401_UNAUTHORIZED


class TestTokens:
    """Test token handling"""

    def test_me(self, client, test_user_data):
        user, headers = register(client, test_user_data)

        response = client.get("/api/v1/auth/me", headers=headers)

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["id"] == user["id"]

    def test_me_without_token(self, client):
        response = client.get("/api/v1/auth/me")

        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_me_with_garbage_token(self, client):
        response = client.get("/api/v1/auth/me", headers={"Authorization": "Bearer not-a-token"})

        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_refresh(self, client, test_user_data):
        response = client.post("/api/v1/auth/register", json=test_user_data)
        refresh_token = response.json()["tokens"]["refresh_token"]

        response = client.post("/api/v1/auth/refresh", json={"refresh_token": refresh_token})

        assert response.status_code == status.HTTP_200_OK
        assert "access_token" in response.json()

    def test_refresh_rejects_access_token(self, client, test_user_data):
        response = client.post("/api/v1/auth/register", json=test_user_data)
        access_token = response.json()["tokens"]["access_token"]

        response = client.post("/api/v1/auth/refresh", json={"refresh_token": access_token})

        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_logout(self, client, test_user_data):
        _, headers = register(client, test_user_data)

        response = client.post("/api/v1/auth/logout", headers=headers)

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["status"] == "success"


class TestChangePassword:
    """Test password change"""

    def test_change_password(self, client, test_user_data):
        _, headers = register(client, test_user_data)

        response = client.post(
            "/api/v1/auth/change-password",
            json={"old_password": PASSWORD, "new_password": "Nova@5678"},
            headers=headers,
        )
        assert response.status_code == status.HTTP_200_OK

        response = client.post(
            "/api/v1/auth/login",
            json={"email": test_user_data["email"], "password": "Nova@5678"},
        )
        assert response.status_code == status.HTTP_200_OK

    def test_change_password_wrong_current(self, client, test_user_data):
        _, headers = register(client, test_user_data)

        response = client.post(
            "/api/v1/auth/change-password",
            json={"old_password": "Wrong@1234", "new_password": "Nova@5678"},
            headers=headers,
        )

        assert response.status_code == status.HTTP_401_UNAUTHORIZED


class TestHealth:
    """Test service endpoints"""

    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["status"] == "healthy"
        assert data["cache"] == "disabled"

    def test_root(self, client):
        response = client.get("/")

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["docs"] == "/docs"
