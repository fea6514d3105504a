"""API tests for GET /api/rent-insights."""

import pytest
from unittest.mock import Mock, patch
from fastapi.testclient import TestClient

from rent_insights.core.database import get_db
from rent_insights.core.exceptions import NotFound, ServiceUnavailable
from rent_insights.main import app
from rent_insights.services.rent_insights import RentBand
from rent_insights.values import ConstructionPeriod, GeometryPoint

URL = "/api/rent-insights"
FILTERS = {"construction_period": "Avant 1946", "number_of_rooms": 2, "furnished": "true"}


@pytest.fixture
def client():
    app.dependency_overrides[get_db] = lambda: Mock()
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def service():
    with patch("rent_insights.api.rent_insights.get_rent_insights") as get_rent_insights:
        get_rent_insights.return_value = RentBand.from_aggregates(354000, 206500, 295000)
        yield get_rent_insights


class TestRentInsightsEndpoint:
    """Test request validation and response shape."""

    def test_postal_code(self, client, service):
        response = client.get(URL, params={"postal_code": "75001", **FILTERS})

        assert response.status_code == 200
        assert response.json() == {
            "data": {"max_rent": 35.4, "min_rent": 20.65, "average_rent": 29.5}
        }
        location, filters = service.call_args[0][1:3]
        assert location.postal_code == "75001"
        assert filters.construction_period is ConstructionPeriod.BEFORE_1946
        assert filters.number_of_rooms == 2
        assert filters.furnished is True

    def test_coordinate(self, client, service):
        params = {"coordinate[longitude]": 2.3448, "coordinate[latitude]": 48.8606, **FILTERS}
        response = client.get(URL, params=params)

        assert response.status_code == 200
        location = service.call_args[0][1]
        assert location.point == GeometryPoint(2.3448, 48.8606)

    def test_year(self, client, service):
        response = client.get(URL, params={"postal_code": "75001", "year": 2023, **FILTERS})
        assert response.status_code == 200
        assert service.call_args[0][2].year == 2023

    def test_no_data_returns_zeros(self, client, service):
        service.return_value = RentBand.empty()
        response = client.get(URL, params={"postal_code": "75001", **FILTERS})
        assert response.json()["data"] == {"max_rent": 0.0, "min_rent": 0.0, "average_rent": 0.0}

    def test_both_locations(self, client, service):
        params = {
            "postal_code": "75001",
            "coordinate[longitude]": 2.3448,
            "coordinate[latitude]": 48.8606,
            **FILTERS,
        }
        assert client.get(URL, params=params).status_code == 422
        service.assert_not_called()

    def test_no_location(self, client, service):
        assert client.get(URL, params=FILTERS).status_code == 422

    def test_incomplete_coordinate(self, client, service):
        params = {"coordinate[longitude]": 2.3448, **FILTERS}
        assert client.get(URL, params=params).status_code == 422

    @pytest.mark.parametrize("override", [
        {"construction_period": "Avant 1900"},
        {"number_of_rooms": 0},
        {"number_of_rooms": 6},
        {"postal_code": "750"},
        {"furnished": "maybe"},
    ])
    def test_invalid_filters(self, client, service, override):
        params = {"postal_code": "75001", **FILTERS, **override}
        assert client.get(URL, params=params).status_code == 422
        service.assert_not_called()

    def test_out_of_range_coordinate(self, client, service):
        params = {"coordinate[longitude]": 181, "coordinate[latitude]": 48.8606, **FILTERS}
        assert client.get(URL, params=params).status_code == 422

    @pytest.mark.parametrize("value", ["nan", "inf", "-inf"])
    def test_non_finite_coordinate(self, client, service, value):
        params = {"coordinate[longitude]": value, "coordinate[latitude]": 48.8606, **FILTERS}
        response = client.get(URL, params=params)

        assert response.status_code == 422
        service.assert_not_called()

    def test_unknown_postal_code(self, client, service):
        service.side_effect = NotFound("No district found for postal code 99999")
        response = client.get(URL, params={"postal_code": "99999", **FILTERS})

        assert response.status_code == 404
        assert response.json()["detail"]["error_code"] == "NOT_FOUND"

    def test_database_unavailable(self, client, service):
        service.side_effect = ServiceUnavailable("Database unavailable")
        response = client.get(URL, params={"postal_code": "75001", **FILTERS})

        assert response.status_code == 503
        assert response.json()["detail"]["error_code"] == "SERVICE_UNAVAILABLE"


class TestHealth:

    def test_health(self, client):
        assert client.get("/health").json() == {"status": "healthy"}
