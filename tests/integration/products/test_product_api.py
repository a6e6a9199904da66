"""Integration tests for Product API endpoints.

Covers:
- CRUD operations via /api/v1/products/.
- Domain exception mapping (404, 409).
- Soft delete keeps the row for order history.
- Authentication enforcement (401 without token).
"""

from __future__ import annotations

import pytest

from modules.products.models import Product

pytestmark = pytest.mark.integration


# ===========================================================================
# Authentication
# ===========================================================================


class TestProductAPIAuth:
    def test_unauthenticated_returns_401(self, api_client):
        response = api_client.get("/api/v1/products/")
        assert response.status_code == 401


# ===========================================================================
# LIST / RETRIEVE
# ===========================================================================


class TestProductList:
    def test_list_returns_products(self, auth_client, flat_product):
        response = auth_client.get("/api/v1/products/")
        assert response.status_code == 200
        assert len(response.data["results"]) == 1
        assert response.data["results"][0]["sku"] == "MUG-001"

    def test_filter_by_has_options(self, auth_client, flat_product, size_color):
        response = auth_client.get("/api/v1/products/", {"has_options": "true"})
        assert response.status_code == 200
        assert [p["sku"] for p in response.data["results"]] == ["TSHIRT-001"]

    def test_filter_in_stock_uses_flat_quantity(self, auth_client, flat_product, tshirt):
        Product.objects.filter(id=flat_product.id).update(quantity=0)
        in_stock = auth_client.get("/api/v1/products/", {"in_stock": "true"})
        sold_out = auth_client.get("/api/v1/products/", {"in_stock": "false"})
        assert [p["sku"] for p in in_stock.data["results"]] == ["TSHIRT-001"]
        assert [p["sku"] for p in sold_out.data["results"]] == ["MUG-001"]

    def test_listing_exposes_sellable_flag(self, auth_client, flat_product):
        response = auth_client.get("/api/v1/products/")
        assert response.data["results"][0]["is_sellable"] is True

    def test_retrieve_not_found(self, auth_client):
        response = auth_client.get("/api/v1/products/00000000-0000-0000-0000-000000000000/")
        assert response.status_code == 404


# ===========================================================================
# CREATE / UPDATE
# ===========================================================================


class TestProductCreate:
    def test_create_success(self, auth_client):
        payload = {"sku": "cap-001", "name": "Cap", "price": "12.50", "quantity": 30}
        response = auth_client.post("/api/v1/products/", payload, format="json")
        assert response.status_code == 201
        assert response.data["sku"] == "CAP-001"
        assert response.data["quantity"] == 30
        assert response.data["has_options"] is False

    def test_duplicate_sku_returns_409(self, auth_client, flat_product):
        payload = {"sku": "MUG-001", "name": "Other Mug", "price": "5.00"}
        response = auth_client.post("/api/v1/products/", payload, format="json")
        assert response.status_code == 409

    def test_negative_price_returns_400(self, auth_client):
        payload = {"sku": "BAD-001", "name": "Bad", "price": "-1"}
        response = auth_client.post("/api/v1/products/", payload, format="json")
        assert response.status_code == 400


class TestProductUpdate:
    def test_partial_update(self, auth_client, flat_product):
        response = auth_client.patch(
            f"/api/v1/products/{flat_product.id}/", {"quantity": 7}, format="json"
        )
        assert response.status_code == 200
        assert response.data["quantity"] == 7
        assert response.data["name"] == "Ceramic Mug"

    def test_unknown_status_returns_400(self, auth_client, flat_product):
        response = auth_client.patch(
            f"/api/v1/products/{flat_product.id}/", {"status": "archived"}, format="json"
        )
        assert response.status_code == 400


# ===========================================================================
# DELETE
# ===========================================================================


class TestProductDelete:
    def test_soft_delete(self, auth_client, flat_product):
        response = auth_client.delete(f"/api/v1/products/{flat_product.id}/")
        assert response.status_code == 204
        assert Product.objects.get(id=flat_product.id).is_deleted
        assert auth_client.get(f"/api/v1/products/{flat_product.id}/").status_code == 404
