"""
Shared test helpers
"""
from datetime import date, timedelta

PASSWORD = "Test@1234"
PROVIDER_PHONE = "(11) 98765-4321"
CLIENT_PHONE = "(11) 91234-5678"


def future_date(days: int = 7) -> str:
    return (date.today() + timedelta(days=days)).isoformat()


def past_date(days: int = 7) -> str:
    return (date.today() - timedelta(days=days)).isoformat()


def auth_headers(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


def register(client, data: dict):
    """Register through the API and return (user, headers)"""
    response = client.post("/api/v1/auth/register", json=data)
    assert response.status_code == 201, response.text
    body = response.json()
    return body["user"], auth_headers(body["tokens"]["access_token"])


class Marketplace:
    """Handles to a provider offering one service and a client ready to book"""

    def __init__(self, client, admin, provider, provider_headers, customer, customer_headers, template, service):
        self.client = client
        self.admin = admin
        self.provider = provider
        self.provider_headers = provider_headers
        self.customer = customer
        self.customer_headers = customer_headers
        self.template = template
        self.service = service

    def book(self, start_time: str = "10:00", day: str = None, headers: dict = None):
        return self.client.post(
            "/api/v1/appointments",
            json={
                "provider_id": self.provider["id"],
                "provider_service_id": self.service["id"],
                "date": day or future_date(),
                "start_time": start_time,
            },
            headers=headers or self.customer_headers,
        )

    def set_status(self, appointment_id: int, status: str, headers: dict = None):
        return self.client.put(
            f"/api/v1/appointments/{appointment_id}/status",
            json={"status": status},
            headers=headers or self.provider_headers,
        )

    def complete(self, start_time: str = "10:00", day: str = None) -> dict:
        """Book, confirm and validate an appointment"""
        response = self.book(start_time, day)
        assert response.status_code == 201, response.text
        appointment = response.json()

        assert self.set_status(appointment["id"], "confirmed").status_code == 200
        response = self.client.post(
            f"/api/v1/appointments/{appointment['id']}/validate",
            json={"validation_code": appointment["validation_code"]},
            headers=self.provider_headers,
        )
        assert response.status_code == 200, response.text
        return response.json()["appointment"]
