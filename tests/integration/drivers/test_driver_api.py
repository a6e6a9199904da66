"""Integration tests for Driver API endpoints."""

from __future__ import annotations

import pytest

from modules.drivers.models import Driver
from modules.orders.models import Order

pytestmark = pytest.mark.integration


class TestDriverAPI:
    def test_unauthenticated_returns_401(self, api_client):
        assert api_client.get("/api/v1/drivers/").status_code == 401

    def test_create_and_list(self, auth_client):
        created = auth_client.post(
            "/api/v1/drivers/", {"name": "Alex Moreno", "phone": "0711000002"}, format="json"
        )
        assert created.status_code == 201
        assert created.data["is_active"] is True

        listing = auth_client.get("/api/v1/drivers/")
        assert listing.status_code == 200
        assert [d["name"] for d in listing.data["results"]] == ["Alex Moreno"]

    def test_filter_active(self, auth_client, driver):
        Driver.objects.create(name="Off Duty", phone="0711000009", is_active=False)
        response = auth_client.get("/api/v1/drivers/", {"active": "false"})
        assert [d["name"] for d in response.data["results"]] == ["Off Duty"]

    def test_deactivate(self, auth_client, driver):
        response = auth_client.patch(
            f"/api/v1/drivers/{driver.id}/", {"is_active": False}, format="json"
        )
        assert response.status_code == 200
        assert response.data["is_active"] is False

    def test_retrieve_not_found(self, auth_client):
        response = auth_client.get("/api/v1/drivers/00000000-0000-0000-0000-000000000000/")
        assert response.status_code == 404

    def test_delete(self, auth_client, driver):
        assert auth_client.delete(f"/api/v1/drivers/{driver.id}/").status_code == 204
        assert not Driver.objects.filter(id=driver.id).exists()

    def test_delete_with_orders_returns_409(self, auth_client, driver):
        Order.objects.create(
            id="SPTEST000004", customer_name="A", customer_phone="1", driver=driver
        )
        response = auth_client.delete(f"/api/v1/drivers/{driver.id}/")
        assert response.status_code == 409
        assert Driver.objects.filter(id=driver.id).exists()
