"""
Tests for reviews and provider ratings
"""
from tests.helpers import register


def provider_rating(marketplace):
    profile = marketplace.client.get(f"/api/v1/providers/{marketplace.provider['id']}").json()["profile"]
    return profile["rating"], profile["rating_count"]


def post_review(marketplace, appointment_id, rating, **extra):
    return marketplace.client.post(
        "/api/v1/reviews",
        json={"appointment_id": appointment_id, "rating": rating, **extra},
        headers=marketplace.customer_headers,
    )


class TestCreateReview:
    """Test reviewing completed appointments"""

    def test_review_updates_rating(self, marketplace):
        first = marketplace.complete("10:00")
        second = marketplace.complete("14:00")

        response = post_review(marketplace, first["id"], 5, comment="<b>Excelente</b> corte")
        assert response.status_code == 201
        assert response.json()["comment"] == "Excelente corte"
        assert response.json()["status"] == "published"

        assert post_review(marketplace, second["id"], 4).status_code == 201
        assert provider_rating(marketplace) == (4.5, 2)

    def test_one_review_per_appointment(self, marketplace):
        appointment = marketplace.complete("10:00")
        post_review(marketplace, appointment["id"], 5)

        response = post_review(marketplace, appointment["id"], 1)

        assert response.status_code == 409

    def test_only_completed_appointments(self, marketplace):
        appointment = marketplace.book("10:00").json()

        response = post_review(marketplace, appointment["id"], 5)

        assert response.status_code == 400

    def test_only_the_client_reviews(self, marketplace):
        appointment = marketplace.complete("10:00")
        _, stranger = register(
            marketplace.client,
            {"name": "Outro Cliente", "email": "outro@agendoai.com.br", "password": "Test@1234", "role": "client"},
        )

        response = marketplace.client.post(
            "/api/v1/reviews",
            json={"appointment_id": appointment["id"], "rating": 1},
            headers=stranger,
        )

        assert response.status_code == 403

    def test_rating_bounds(self, marketplace):
        appointment = marketplace.complete("10:00")

        assert post_review(marketplace, appointment["id"], 0).status_code == 422
        assert post_review(marketplace, appointment["id"], 6).status_code == 422

    def test_unknown_appointment(self, marketplace):
        assert post_review(marketplace, 999, 5).status_code == 404


class TestManageReview:
    """Test editing, responses and moderation"""

    def test_author_edits_review(self, marketplace):
        appointment = marketplace.complete("10:00")
        review = post_review(marketplace, appointment["id"], 2).json()

        response = marketplace.client.put(
            f"/api/v1/reviews/{review['id']}",
            json={"rating": 4},
            headers=marketplace.customer_headers,
        )

        assert response.status_code == 200
        assert provider_rating(marketplace) == (4.0, 1)

    def test_provider_responds(self, marketplace):
        appointment = marketplace.complete("10:00")
        review = post_review(marketplace, appointment["id"], 5).json()

        response = marketplace.client.post(
            f"/api/v1/reviews/{review['id']}/response",
            json={"response": "Obrigado pela preferência!"},
            headers=marketplace.provider_headers,
        )

        assert response.status_code == 200
        assert response.json()["provider_response"] == "Obrigado pela preferência!"

    def test_client_cannot_respond(self, marketplace):
        appointment = marketplace.complete("10:00")
        review = post_review(marketplace, appointment["id"], 5).json()

        response = marketplace.client.post(
            f"/api/v1/reviews/{review['id']}/response",
            json={"response": "Eu mesmo"},
            headers=marketplace.customer_headers,
        )

        assert response.status_code == 403

    def test_hidden_review_leaves_rating(self, marketplace):
        appointment = marketplace.complete("10:00")
        review = post_review(marketplace, appointment["id"], 1).json()

        response = marketplace.client.put(
            f"/api/v1/reviews/{review['id']}/status",
            json={"status": "hidden"},
            headers=marketplace.admin,
        )

        assert response.status_code == 200
        assert provider_rating(marketplace) == (0.0, 0)

        public = marketplace.client.get(f"/api/v1/providers/{marketplace.provider['id']}/reviews").json()
        assert public["total"] == 0

    def test_private_review_counts_but_is_not_listed(self, marketplace):
        appointment = marketplace.complete("10:00")
        post_review(marketplace, appointment["id"], 3, is_public=False)

        public = marketplace.client.get(f"/api/v1/providers/{marketplace.provider['id']}/reviews").json()

        assert public["total"] == 0
        assert public["average_rating"] == 3.0

    def test_my_reviews(self, marketplace):
        appointment = marketplace.complete("10:00")
        post_review(marketplace, appointment["id"], 5)

        for headers in (marketplace.customer_headers, marketplace.provider_headers):
            response = marketplace.client.get("/api/v1/reviews/me", headers=headers)
            assert response.status_code == 200
            assert len(response.json()) == 1
