"""Unit tests for StockTransitionEngine with mocked repositories."""

from __future__ import annotations

from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest

from modules.catalog.resolver import VariantCandidate
from modules.catalog.tree import option_hash
from modules.core.exceptions import InsufficientStock
from modules.orders.constants import OrderState, StockEffect
from modules.orders.events import StockDeducted, StockRestored
from modules.orders.exceptions import OrderNotFound
from modules.orders.stock import StockTransitionEngine

pytestmark = pytest.mark.unit


def _item(id, product_id="p1", quantity=1, variant_id=None, option_details=None):
    return SimpleNamespace(
        id=id,
        product_id=product_id,
        quantity=quantity,
        variant_id=variant_id,
        option_details=option_details,
    )


def _order(*items):
    order = MagicMock()
    order.id = "SP1910261200ABCDE"
    order.items.all.return_value = list(items)
    return order


def _lookup(rows):
    return lambda ids: {i: rows[i] for i in ids if i in rows}


@pytest.fixture()
def repos():
    products = {"p1": SimpleNamespace(id="p1", name="T-Shirt", quantity=5)}
    variants = {"v1": SimpleNamespace(id="v1", name="S Red", stock=3)}

    product_repo = MagicMock()
    product_repo.get_many.side_effect = _lookup(products)
    product_repo.decrement_quantity.return_value = True
    product_repo.increment_quantity.return_value = True

    variant_repo = MagicMock()
    variant_repo.get_many.side_effect = _lookup(variants)
    variant_repo.get_by_id.side_effect = variants.get
    variant_repo.decrement_stock.return_value = True
    variant_repo.increment_stock.return_value = True
    variant_repo.candidates_for_product.return_value = [
        VariantCandidate(id="v1", option_hash=option_hash(["s", "red"]), option_ids=frozenset({"s", "red"}))
    ]

    return SimpleNamespace(order=MagicMock(), product=product_repo, variant=variant_repo)


@pytest.fixture()
def engine(repos):
    return StockTransitionEngine(
        order_repository=repos.order,
        product_repository=repos.product,
        variant_repository=repos.variant,
    )


class TestLineResolution:
    def test_line_without_variant_uses_product_bucket(self, engine):
        (line,) = engine.lines_for(_order(_item("i1")))
        assert line.variant_id is None
        assert line.bucket == "product:p1"

    def test_foreign_key_variant_is_used(self, engine):
        (line,) = engine.lines_for(_order(_item("i1", variant_id="v1")))
        assert line.variant_id == "v1"
        assert line.name == "T-Shirt (S Red)"

    def test_variant_id_stored_in_option_details(self, engine):
        (line,) = engine.lines_for(_order(_item("i1", option_details={"variant_id": "v1"})))
        assert line.variant_id == "v1"

    def test_stale_stored_id_falls_back_to_resolver(self, engine, repos):
        details = {
            "variant_id": "deleted",
            "selections": [
                {"group_id": "g1", "selected_options": [{"id": "s"}]},
                {"group_id": "g2", "selected_options": [{"id": "red"}]},
            ],
        }
        (line,) = engine.lines_for(_order(_item("i1", option_details=details)))
        assert line.variant_id == "v1"
        repos.variant.candidates_for_product.assert_called_once_with("p1")


class TestValidation:
    def test_valid_order(self, engine):
        report = engine.validate_order(_order(_item("i1", quantity=5)))
        assert report["is_valid"] is True
        assert report["results"][0]["available_stock"] == 5

    def test_lines_sharing_a_bucket_are_checked_cumulatively(self, engine):
        report = engine.validate_order(
            _order(_item("i1", variant_id="v1", quantity=2), _item("i2", variant_id="v1", quantity=2))
        )
        assert report["is_valid"] is False
        first, second = report["results"]
        assert first["is_valid"] is True
        assert second["is_valid"] is False
        assert second["available_stock"] == 1

    def test_combined_error_lists_every_short_line(self, engine):
        report = engine.validate_order(
            _order(_item("i1", quantity=9), _item("i2", variant_id="v1", quantity=4))
        )
        error = engine.insufficient_stock_error(report)
        assert "T-Shirt: requested 9, available 5" in str(error)
        assert "T-Shirt (S Red): requested 4, available 3" in str(error)
        assert len(error.results) == 2

    def test_validate_stock_for_missing_order(self, engine, repos):
        repos.order.get_by_id.return_value = None
        with pytest.raises(OrderNotFound):
            engine.validate_stock_for_order("SP-missing")


class TestApplyEffect:
    def test_deduct_hits_each_bucket_once(self, engine, repos):
        order = _order(_item("i1", quantity=2), _item("i2", variant_id="v1", quantity=1))

        engine.apply_effect(order, StockEffect.DEDUCT)

        repos.product.decrement_quantity.assert_called_once_with("p1", 2)
        repos.variant.decrement_stock.assert_called_once_with("v1", 1)
        event = order.add_domain_event.call_args.args[0]
        assert isinstance(event, StockDeducted)
        assert event.units == 3

    def test_restore(self, engine, repos):
        order = _order(_item("i1", variant_id="v1", quantity=3))

        engine.apply_effect(order, StockEffect.RESTORE)

        repos.variant.increment_stock.assert_called_once_with("v1", 3)
        assert isinstance(order.add_domain_event.call_args.args[0], StockRestored)

    def test_failed_conditional_update_raises(self, engine, repos):
        repos.variant.decrement_stock.return_value = False
        with pytest.raises(InsufficientStock) as exc_info:
            engine.apply_effect(_order(_item("i1", variant_id="v1", quantity=4)), StockEffect.DEDUCT)
        assert exc_info.value.results[0]["available_stock"] == 3

    def test_no_effect_is_a_no_op(self, engine, repos):
        order = _order(_item("i1"))
        assert engine.apply_effect(order, None) == []
        order.add_domain_event.assert_not_called()
        repos.product.decrement_quantity.assert_not_called()

    def test_apply_stock_transition_ignores_neutral_edges(self, engine, repos):
        engine.apply_stock_transition("SP1", OrderState.DELIVERING, OrderState.COMPLETED)
        repos.order.get_for_update.assert_not_called()
