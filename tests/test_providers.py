"""
Tests for provider profiles, services, schedules and public listing
"""
from tests.helpers import future_date, register


def slot_starts(client, provider_id, day, **params):
    response = client.get(
        "/api/v1/time-slots/available",
        params={"provider_id": provider_id, "date": day, **params},
    )
    assert response.status_code == 200, response.text
    return [slot["start_time"] for slot in response.json()["slots"]]


class TestProviderListing:
    """Test the public provider directory"""

    def test_verified_provider_with_service_is_listed(self, marketplace):
        response = marketplace.client.get("/api/v1/providers")

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 1
        assert data["providers"][0]["id"] == marketplace.provider["id"]
        assert data["providers"][0]["business_name"] == "Barbearia do João"

    def test_unverified_provider_is_hidden(self, marketplace):
        client = marketplace.client
        client.put(
            f"/api/v1/admin/providers/{marketplace.provider['id']}/verify",
            json={"is_verified": False},
            headers=marketplace.admin,
        )

        assert client.get("/api/v1/providers").json()["total"] == 0

    def test_provider_without_active_service_is_hidden(self, marketplace):
        client = marketplace.client
        client.delete(f"/api/v1/provider/services/{marketplace.service['id']}", headers=marketplace.provider_headers)

        assert client.get("/api/v1/providers").json()["total"] == 0

    def test_filter_by_template_and_search(self, marketplace):
        client = marketplace.client

        assert client.get("/api/v1/providers", params={"template_id": marketplace.template["id"]}).json()["total"] == 1
        assert client.get("/api/v1/providers", params={"template_id": 999}).json()["total"] == 0
        assert client.get("/api/v1/providers", params={"search": "Barbearia"}).json()["total"] == 1
        assert client.get("/api/v1/providers", params={"search": "Padaria"}).json()["total"] == 0

    def test_provider_details(self, marketplace):
        response = marketplace.client.get(f"/api/v1/providers/{marketplace.provider['id']}")

        assert response.status_code == 200
        data = response.json()
        assert data["is_verified"] is True
        assert data["services"][0]["name"] == "Corte de cabelo"
        assert data["services"][0]["price"] == 10000

    def test_client_is_not_a_provider(self, marketplace):
        response = marketplace.client.get(f"/api/v1/providers/{marketplace.customer['id']}")

        assert response.status_code == 404

    def test_whatsapp_contact(self, marketplace):
        response = marketplace.client.get(
            f"/api/v1/providers/{marketplace.provider['id']}/whatsapp",
            params={"template_id": marketplace.template["id"]},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["phone"] == "5511987654321"
        assert data["url"].startswith("https://wa.me/5511987654321?text=")
        assert "Corte de cabelo" in data["message"]


class TestProviderServices:
    """Test services offered by a provider"""

    def test_service_defaults_to_template_duration(self, marketplace):
        assert marketplace.service["execution_time"] == 60
        assert marketplace.service["name"] == "Corte de cabelo"

    def test_duplicate_service(self, marketplace):
        response = marketplace.client.post(
            "/api/v1/provider/services",
            json={"template_id": marketplace.template["id"], "price": 5000},
            headers=marketplace.provider_headers,
        )

        assert response.status_code == 409

    def test_unknown_template(self, marketplace):
        response = marketplace.client.post(
            "/api/v1/provider/services",
            json={"template_id": 999, "price": 5000},
            headers=marketplace.provider_headers,
        )

        assert response.status_code == 404

    def test_client_cannot_add_services(self, marketplace):
        response = marketplace.client.post(
            "/api/v1/provider/services",
            json={"template_id": marketplace.template["id"], "price": 5000},
            headers=marketplace.customer_headers,
        )

        assert response.status_code == 403

    def test_other_provider_cannot_edit_service(self, marketplace):
        _, other_headers = register(
            marketplace.client,
            {
                "name": "Outra Prestadora",
                "email": "outra@agendoai.com.br",
                "password": "Test@1234",
                "phone": "(21) 99876-5432",
                "role": "provider",
            },
        )

        response = marketplace.client.put(
            f"/api/v1/provider/services/{marketplace.service['id']}",
            json={"price": 1},
            headers=other_headers,
        )

        assert response.status_code == 403

    def test_update_service_price(self, marketplace):
        response = marketplace.client.put(
            f"/api/v1/provider/services/{marketplace.service['id']}",
            json={"price": 12000, "execution_time": 90},
            headers=marketplace.provider_headers,
        )

        assert response.status_code == 200
        assert response.json()["price"] == 12000
        assert response.json()["execution_time"] == 90


class TestSchedule:
    """Test working hours, breaks and blocked slots"""

    def test_weekly_schedule_slots(self, marketplace):
        starts = slot_starts(
            marketplace.client,
            marketplace.provider["id"],
            future_date(),
            provider_service_id=marketplace.service["id"],
        )

        assert starts[0] == "08:00"
        assert starts[-1] == "17:00"
        assert len(starts) == 19

    def test_duplicate_weekday_rejected(self, marketplace):
        response = marketplace.client.put(
            "/api/v1/provider/availability",
            json={"days": [
                {"day_of_week": 1, "start_time": "08:00", "end_time": "12:00"},
                {"day_of_week": 1, "start_time": "13:00", "end_time": "18:00"},
            ]},
            headers=marketplace.provider_headers,
        )

        assert response.status_code == 422

    def test_start_must_precede_end(self, marketplace):
        response = marketplace.client.put(
            "/api/v1/provider/availability",
            json={"days": [{"day_of_week": 1, "start_time": "18:00", "end_time": "08:00"}]},
            headers=marketplace.provider_headers,
        )

        assert response.status_code == 422

    def test_date_override_closes_day(self, marketplace):
        day = future_date()
        response = marketplace.client.post(
            "/api/v1/provider/availability",
            json={"date": day, "is_available": False},
            headers=marketplace.provider_headers,
        )
        assert response.status_code == 201

        assert slot_starts(marketplace.client, marketplace.provider["id"], day, duration=60) == []
        # Other days keep the weekly hours
        assert slot_starts(marketplace.client, marketplace.provider["id"], future_date(8), duration=60)

    def test_date_override_changes_hours(self, marketplace):
        day = future_date()
        marketplace.client.post(
            "/api/v1/provider/availability",
            json={"date": day, "start_time": "14:00", "end_time": "16:00"},
            headers=marketplace.provider_headers,
        )

        assert slot_starts(marketplace.client, marketplace.provider["id"], day, duration=60) == ["14:00", "14:30", "15:00"]

    def test_break_removes_slots(self, marketplace):
        day = future_date()
        response = marketplace.client.post(
            "/api/v1/provider/breaks",
            json={"name": "Almoço", "start_time": "12:00", "end_time": "13:00", "is_recurring": False, "date": day},
            headers=marketplace.provider_headers,
        )
        assert response.status_code == 201

        starts = slot_starts(marketplace.client, marketplace.provider["id"], day, duration=60)
        assert "11:00" in starts
        assert "11:30" not in starts
        assert "12:00" not in starts
        assert "12:30" not in starts
        assert "13:00" in starts

    def test_recurring_break_needs_weekday(self, marketplace):
        response = marketplace.client.post(
            "/api/v1/provider/breaks",
            json={"start_time": "12:00", "end_time": "13:00", "is_recurring": True},
            headers=marketplace.provider_headers,
        )

        assert response.status_code == 422

    def test_blocked_slot_and_removal(self, marketplace):
        client = marketplace.client
        day = future_date()
        response = client.post(
            "/api/v1/provider/blocked-slots",
            json={"date": day, "start_time": "08:00", "end_time": "10:00", "reason": "Consulta médica"},
            headers=marketplace.provider_headers,
        )
        assert response.status_code == 201
        blocked = response.json()

        assert slot_starts(client, marketplace.provider["id"], day, duration=60)[0] == "10:00"

        response = client.delete(f"/api/v1/provider/blocked-slots/{blocked['id']}", headers=marketplace.provider_headers)
        assert response.status_code == 200

        assert slot_starts(client, marketplace.provider["id"], day, duration=60)[0] == "08:00"

    def test_delete_unknown_break(self, marketplace):
        response = marketplace.client.delete("/api/v1/provider/breaks/999", headers=marketplace.provider_headers)

        assert response.status_code == 404


class TestTimeSlotEndpoints:
    """Test availability queries"""

    def test_duration_or_service_required(self, marketplace):
        response = marketplace.client.get(
            "/api/v1/time-slots/available",
            params={"provider_id": marketplace.provider["id"], "date": future_date()},
        )

        assert response.status_code == 422

    def test_invalid_date(self, marketplace):
        response = marketplace.client.get(
            "/api/v1/time-slots/available",
            params={"provider_id": marketplace.provider["id"], "date": "2025-02-30", "duration": 30},
        )

        assert response.status_code == 422

    def test_service_of_other_provider(self, marketplace):
        response = marketplace.client.get(
            "/api/v1/time-slots/available",
            params={
                "provider_id": marketplace.customer["id"],
                "date": future_date(),
                "provider_service_id": marketplace.service["id"],
            },
        )

        assert response.status_code == 404

    def test_past_date_has_no_slots(self, marketplace):
        starts = slot_starts(marketplace.client, marketplace.provider["id"], "2020-01-06", duration=30)

        assert starts == []

    def test_prioritized_order(self, marketplace):
        starts = slot_starts(
            marketplace.client,
            marketplace.provider["id"],
            future_date(),
            duration=60,
            prioritize=True,
        )

        assert starts[:2] == ["08:00", "09:00"]
        assert starts[10] == "08:30"

    def test_check_slot(self, marketplace):
        client = marketplace.client
        params = {"provider_id": marketplace.provider["id"], "date": future_date(), "duration": 60}

        response = client.get("/api/v1/time-slots/check", params={**params, "start_time": "10:00"})
        assert response.status_code == 200
        assert response.json()["available"] is True
        assert response.json()["end_time"] == "11:00"

        response = client.get("/api/v1/time-slots/check", params={**params, "start_time": "17:30"})
        assert response.json()["available"] is False

        response = client.get("/api/v1/time-slots/check", params={**params, "start_time": "07:00"})
        assert response.json()["available"] is False
