"""
Tests for the service catalog
"""
from tests.helpers import register


class TestNiches:
    """Test niche management"""

    def test_admin_creates_niche(self, client, admin_headers):
        response = client.post(
            "/api/v1/niches",
            json={"name": "Beleza", "description": "Cuidados pessoais"},
            headers=admin_headers,
        )

        assert response.status_code == 201
        assert response.json()["name"] == "Beleza"

    def test_client_cannot_create_niche(self, client, test_user_data):
        _, headers = register(client, test_user_data)

        response = client.post("/api/v1/niches", json={"name": "Beleza"}, headers=headers)

        assert response.status_code == 403

    def test_anonymous_cannot_create_niche(self, client):
        response = client.post("/api/v1/niches", json={"name": "Beleza"})

        assert response.status_code == 401

    def test_list_niches_with_categories(self, client, admin_headers):
        niche = client.post("/api/v1/niches", json={"name": "Beleza"}, headers=admin_headers).json()
        client.post("/api/v1/categories", json={"name": "Unhas", "niche_id": niche["id"]}, headers=admin_headers)
        client.post("/api/v1/categories", json={"name": "Cabelo", "niche_id": niche["id"]}, headers=admin_headers)

        response = client.get("/api/v1/niches")

        assert response.status_code == 200
        niches = response.json()
        assert len(niches) == 1
        assert [c["name"] for c in niches[0]["categories"]] == ["Cabelo", "Unhas"]

    def test_update_unknown_niche(self, client, admin_headers):
        response = client.put("/api/v1/niches/999", json={"name": "Outro"}, headers=admin_headers)

        assert response.status_code == 404


class TestCategories:
    """Test category management"""

    def test_category_requires_existing_niche(self, client, admin_headers):
        response = client.post("/api/v1/categories", json={"name": "Cabelo", "niche_id": 999}, headers=admin_headers)

        assert response.status_code == 404

    def test_category_color_format(self, client, admin_headers):
        niche = client.post("/api/v1/niches", json={"name": "Beleza"}, headers=admin_headers).json()

        response = client.post(
            "/api/v1/categories",
            json={"name": "Cabelo", "niche_id": niche["id"], "color": "red"},
            headers=admin_headers,
        )

        assert response.status_code == 422

    def test_parent_must_share_niche(self, client, admin_headers):
        beauty = client.post("/api/v1/niches", json={"name": "Beleza"}, headers=admin_headers).json()
        health = client.post("/api/v1/niches", json={"name": "Saúde"}, headers=admin_headers).json()
        parent = client.post(
            "/api/v1/categories", json={"name": "Cabelo", "niche_id": beauty["id"]}, headers=admin_headers
        ).json()

        response = client.post(
            "/api/v1/categories",
            json={"name": "Fisioterapia", "niche_id": health["id"], "parent_id": parent["id"]},
            headers=admin_headers,
        )

        assert response.status_code == 422

    def test_filter_by_niche(self, client, admin_headers):
        beauty = client.post("/api/v1/niches", json={"name": "Beleza"}, headers=admin_headers).json()
        health = client.post("/api/v1/niches", json={"name": "Saúde"}, headers=admin_headers).json()
        client.post("/api/v1/categories", json={"name": "Cabelo", "niche_id": beauty["id"]}, headers=admin_headers)
        client.post("/api/v1/categories", json={"name": "Fisioterapia", "niche_id": health["id"]}, headers=admin_headers)

        response = client.get("/api/v1/categories", params={"niche_id": health["id"]})

        assert response.status_code == 200
        assert [c["name"] for c in response.json()] == ["Fisioterapia"]


class TestServiceTemplates:
    """Test service template management"""

    def _category(self, client, admin_headers):
        niche = client.post("/api/v1/niches", json={"name": "Beleza"}, headers=admin_headers).json()
        return client.post(
            "/api/v1/categories", json={"name": "Cabelo", "niche_id": niche["id"]}, headers=admin_headers
        ).json()

    def test_template_inherits_niche(self, client, admin_headers):
        category = self._category(client, admin_headers)

        response = client.post(
            "/api/v1/service-templates",
            json={"name": "Corte", "category_id": category["id"], "duration": 45},
            headers=admin_headers,
        )

        assert response.status_code == 201
        template = response.json()
        assert template["niche_id"] == category["niche_id"]
        assert template["duration"] == 45
        assert template["is_active"] is True

    def test_template_duration_bounds(self, client, admin_headers):
        category = self._category(client, admin_headers)

        response = client.post(
            "/api/v1/service-templates",
            json={"name": "Corte", "category_id": category["id"], "duration": 3},
            headers=admin_headers,
        )

        assert response.status_code == 422

    def test_deactivated_template_hidden_by_default(self, client, admin_headers):
        category = self._category(client, admin_headers)
        template = client.post(
            "/api/v1/service-templates",
            json={"name": "Corte", "category_id": category["id"]},
            headers=admin_headers,
        ).json()

        response = client.delete(f"/api/v1/service-templates/{template['id']}", headers=admin_headers)
        assert response.status_code == 200
        assert response.json()["is_active"] is False

        assert client.get("/api/v1/service-templates").json() == []
        listed = client.get("/api/v1/service-templates", params={"include_inactive": True}).json()
        assert [t["id"] for t in listed] == [template["id"]]

    def test_get_unknown_template(self, client):
        response = client.get("/api/v1/service-templates/999")

        assert response.status_code == 404
