"""Tests for the Flask app."""

import pytest

from main import app, cache

SALES_PAYLOAD = {
    "distributor_id": "FR00456",
    "period": "2025-08",
    "sales": [
        {"product": "Freebox Essentiel", "occurred_at": "2025-08-01T09:30:00", "sale_id": "a"},
        {"product": "Freebox Pop", "occurred_at": "2025-08-02T14:00:00", "sale_id": "b"},
        {"product": "5G", "occurred_at": "2025-08-02T16:00:00", "sale_id": "c"},
    ],
}


class TestFlaskApp:
    """Test the HTTP routes."""

    @pytest.fixture
    def client(self):
        app.config["TESTING"] = True
        cache.clear()
        with app.test_client() as client:
            yield client

    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.get_json()["status"] == "healthy"

    def test_api_info(self, client):
        body = client.get("/api").get_json()

        assert body["status"] == "ok"
        assert body["crossing_sale_tier"] == "new"

    def test_calculate(self, client):
        response = client.post("/calculate", json=SALES_PAYLOAD)

        assert response.status_code == 200
        body = response.get_json()
        # 5 + 4 + 1 = 10 points, all tier 1: 50 + 50 + 10
        assert body["tranche"]["total_points"] == 10
        assert body["tranche"]["total_commission"] == "110.00"
        assert body["progressive"]["total_commission"] == "110.00"
        assert body["progressive"]["paliers_reached"] == [5, 10]

    def test_calculate_is_cached_until_sale_recorded(self, client):
        client.post("/calculate", json=SALES_PAYLOAD)
        assert len(cache) == 1

        response = client.post("/sales/recorded", json={"distributor_id": "FR00456", "period": "2025-08"})

        assert response.get_json()["invalidated"] == 1
        assert len(cache) == 0

    def test_calculate_mode(self, client):
        response = client.post("/calculate/progressive", json=SALES_PAYLOAD)

        assert response.status_code == 200
        assert response.get_json()["mode"] == "progressive"

    def test_project(self, client):
        payload = dict(SALES_PAYLOAD, elapsed_days=2, remaining_days=29)
        response = client.post("/project", json=payload)

        assert response.status_code == 200
        projection = response.get_json()["projection"]
        assert projection["daily_points_average"] == "5.00"
        assert projection["projected_total_points"] == "155.00"
        assert projection["projected_tier"] == 4

    def test_tier(self, client):
        response = client.get("/tiers/1")

        assert response.status_code == 200
        assert response.get_json()["name"] == "Débutant"

    def test_no_input(self, client):
        response = client.post("/calculate", data="", content_type="application/json")

        assert response.status_code == 400

    def test_validation_error(self, client):
        response = client.post("/calculate", json={"sales": "Freebox Pop"})

        assert response.status_code == 400
        assert response.get_json()["status"] == "validation_failed"

    def test_unknown_product_is_flagged_not_rejected(self, client):
        payload = {"sales": [{"product": "Freebox Delta", "occurred_at": "2025-08-01"}]}
        response = client.post("/calculate", json=payload)

        assert response.status_code == 200
        assert response.get_json()["tranche"]["unknown_products"] == ["Freebox Delta"]

    def test_array_body_rejected(self, client):
        response = client.post("/calculate", json=[{"product": "Freebox Pop", "occurred_at": "2025-08-01"}])

        assert response.status_code == 400
        assert response.get_json()["status"] == "validation_failed"

    def test_sale_recorded_array_body_rejected(self, client):
        response = client.post("/sales/recorded", json=["FR00456"])

        assert response.status_code == 400
        assert response.get_json()["status"] == "validation_failed"
