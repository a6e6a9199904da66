"""Guarded stock counter updates and soft delete."""

from __future__ import annotations

import pytest

from modules.core.repositories import counters
from modules.products.models import Product

pytestmark = pytest.mark.integration


class TestCounters:
    def test_decrement_within_stock(self, flat_product):
        assert counters.decrement(Product, flat_product.id, "quantity", 20) is True
        flat_product.refresh_from_db()
        assert flat_product.quantity == 0

    def test_decrement_past_zero_is_refused(self, flat_product):
        assert counters.decrement(Product, flat_product.id, "quantity", 21) is False
        flat_product.refresh_from_db()
        assert flat_product.quantity == 20

    def test_increment(self, flat_product):
        assert counters.increment(Product, flat_product.id, "quantity", 5) is True
        flat_product.refresh_from_db()
        assert flat_product.quantity == 25

    def test_unknown_row_reports_false(self):
        missing = "00000000-0000-0000-0000-000000000000"
        assert counters.increment(Product, missing, "quantity", 1) is False
        assert counters.decrement(Product, missing, "quantity", 1) is False


class TestSoftDelete:
    def test_delete_keeps_row_and_hides_it_from_alive(self, flat_product):
        assert flat_product.delete() == (1, {"products.Product": 1})
        assert Product.objects.filter(id=flat_product.id).exists()
        assert not Product.objects.alive().filter(id=flat_product.id).exists()

    def test_second_delete_is_noop(self, flat_product):
        flat_product.delete()
        assert flat_product.delete() == (0, {})
