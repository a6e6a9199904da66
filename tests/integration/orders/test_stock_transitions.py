"""Integration tests for stock moving with order state edges."""

from __future__ import annotations

from decimal import Decimal

import pytest

from modules.catalog.dtos import CreateVariantDTO
from modules.catalog.models import Variant
from modules.catalog.repositories.django_repository import VariantDjangoRepository
from modules.core.exceptions import InsufficientStock
from modules.orders.constants import OrderState
from modules.orders.dtos import AssignDriverDTO, CreateOrderDTO
from modules.orders.exceptions import OrderNotFound
from modules.orders.models import Order, OrderItem, OrderStateHistory
from modules.orders.repositories.django_repository import OrderDjangoRepository
from modules.orders.stock import StockTransitionEngine
from modules.products.models import Product
from modules.products.repositories.django_repository import ProductDjangoRepository

pytestmark = pytest.mark.integration


def _order_dto(*lines):
    return CreateOrderDTO(
        customer_name="Jane Doe",
        customer_phone="0711222333",
        customer_location="12 Market St",
        delivery_price=Decimal("3.00"),
        items=[
            {"product_id": product.id, "quantity": quantity, "option_details": details}
            for product, quantity, details in lines
        ],
    )


def _stock(variant):
    return Variant.objects.get(id=variant.id).stock


def _quantity(product):
    return Product.objects.get(id=product.id).quantity


class TestVariantStock:
    def test_deliver_then_return_round_trip(self, tshirt_variants, order_service, make_selection):
        options = tshirt_variants["options"]
        s_red = tshirt_variants["variants"]["S Red"]
        order = order_service.create_order(
            _order_dto((tshirt_variants["product"], 3, make_selection(options["S"], options["Red"])))
        )
        assert order.state == OrderState.PLACED
        assert _stock(s_red) == 10

        order_service.update_state(order.id, OrderState.DELIVERING)
        assert _stock(s_red) == 7

        order_service.update_state(order.id, OrderState.RETURNED)
        assert _stock(s_red) == 10

    def test_line_records_variant_and_price(self, tshirt_variants, order_service, make_selection):
        options = tshirt_variants["options"]
        l_blue = tshirt_variants["variants"]["L Blue"]

        order = order_service.create_order(
            _order_dto((tshirt_variants["product"], 2, make_selection(options["L"], options["Blue"])))
        )

        (item,) = order.items.all()
        assert item.variant_id == l_blue.id
        assert item.price == Decimal("21.90")
        assert item.option_details["variant_id"] == str(l_blue.id)
        assert order.subtotal_price == Decimal("43.80")
        assert order.total_price == Decimal("46.80")

    def test_repeated_delivering_deducts_once(self, tshirt_variants, order_service, make_selection):
        options = tshirt_variants["options"]
        order = order_service.create_order(
            _order_dto((tshirt_variants["product"], 4, make_selection(options["M"], options["Red"])))
        )

        order_service.update_state(order.id, OrderState.DELIVERING)
        order_service.update_state(order.id, OrderState.DELIVERING)

        assert _stock(tshirt_variants["variants"]["M Red"]) == 6

    def test_completed_leaves_stock_alone(self, tshirt_variants, order_service, make_selection):
        options = tshirt_variants["options"]
        order = order_service.create_order(
            _order_dto((tshirt_variants["product"], 4, make_selection(options["M"], options["Red"])))
        )
        order_service.update_state(order.id, OrderState.DELIVERING)

        completed = order_service.update_state(order.id, OrderState.COMPLETED)

        assert completed.completed_at is not None
        assert _stock(tshirt_variants["variants"]["M Red"]) == 6

    def test_subset_variant_is_used(self, size_color, variant_service, order_service, make_selection):
        options = size_color["options"]
        size_small = variant_service.create_variant(
            str(size_color["product"].id),
            CreateVariantDTO(option_ids=[options["S"].id], stock=5),
        )
        order = order_service.create_order(
            _order_dto((size_color["product"], 2, make_selection(options["S"], options["Red"])))
        )

        order_service.update_state(order.id, OrderState.DELIVERING)

        assert _stock(size_small) == 3
        assert _quantity(size_color["product"]) == 50

    def test_unmatched_selection_uses_flat_quantity(self, size_color, order_service, make_selection):
        options = size_color["options"]
        order = order_service.create_order(
            _order_dto((size_color["product"], 5, make_selection(options["M"], options["Blue"])))
        )
        assert order.items.get().variant_id is None

        order_service.update_state(order.id, OrderState.DELIVERING)

        assert _quantity(size_color["product"]) == 45


class TestInactiveVariants:
    def test_inactive_variant_keeps_its_bucket_across_delivery_and_return(
        self, tshirt_variants, order_service, make_selection
    ):
        options = tshirt_variants["options"]
        product = tshirt_variants["product"]
        s_red = tshirt_variants["variants"]["S Red"]
        Variant.objects.filter(id=s_red.id).update(is_active=False)

        order = order_service.create_order(
            _order_dto((product, 3, make_selection(options["S"], options["Red"])))
        )
        assert order.items.get().variant_id == s_red.id

        order_service.update_state(order.id, OrderState.DELIVERING)
        assert _stock(s_red) == 7
        assert _quantity(product) == 50

        Variant.objects.filter(id=s_red.id).update(is_active=True)
        order_service.update_state(order.id, OrderState.RETURNED)
        assert _stock(s_red) == 10
        assert _quantity(product) == 50

    def test_unlinked_line_resolves_the_same_variant_whatever_its_flag(
        self, tshirt_variants, order_service, make_selection
    ):
        options = tshirt_variants["options"]
        product = tshirt_variants["product"]
        s_red = tshirt_variants["variants"]["S Red"]
        order = order_service.create_order(
            _order_dto((product, 3, make_selection(options["S"], options["Red"])))
        )
        OrderItem.objects.filter(order_id=order.id).update(
            variant=None, option_details=make_selection(options["S"], options["Red"])
        )

        Variant.objects.filter(id=s_red.id).update(is_active=False)
        order_service.update_state(order.id, OrderState.DELIVERING)
        assert _stock(s_red) == 7
        assert _quantity(product) == 50

        Variant.objects.filter(id=s_red.id).update(is_active=True)
        order_service.update_state(order.id, OrderState.RETURNED)
        assert _stock(s_red) == 10
        assert _quantity(product) == 50


class TestFlatStock:
    def test_product_without_options(self, flat_product, order_service):
        order = order_service.create_order(_order_dto((flat_product, 4, [])))

        order_service.update_state(order.id, OrderState.DELIVERING)
        assert _quantity(flat_product) == 16

        order_service.update_state(order.id, OrderState.RETURNED)
        assert _quantity(flat_product) == 20

    def test_order_creation_does_not_touch_stock(self, flat_product, order_service):
        order_service.create_order(_order_dto((flat_product, 4, [])))
        assert _quantity(flat_product) == 20


class TestInsufficientStock:
    def test_every_short_line_is_reported_and_nothing_moves(
        self, tshirt_variants, flat_product, order_service, make_selection
    ):
        options = tshirt_variants["options"]
        product = tshirt_variants["product"]
        order = order_service.create_order(
            _order_dto(
                (product, 11, make_selection(options["S"], options["Red"])),
                (flat_product, 2, []),
                (product, 12, make_selection(options["M"], options["Blue"])),
            )
        )

        with pytest.raises(InsufficientStock) as exc_info:
            order_service.update_state(order.id, OrderState.DELIVERING)

        assert len(exc_info.value.results) == 2
        assert "S Red" in str(exc_info.value)
        assert "M Blue" in str(exc_info.value)
        assert Order.objects.get(id=order.id).state == OrderState.PLACED
        assert _stock(tshirt_variants["variants"]["S Red"]) == 10
        assert _quantity(flat_product) == 20

    def test_lines_sharing_a_bucket_are_checked_together(
        self, tshirt_variants, order_service, make_selection
    ):
        options = tshirt_variants["options"]
        product = tshirt_variants["product"]
        order = order_service.create_order(
            _order_dto(
                (product, 6, make_selection(options["S"], options["Red"])),
                (product, 6, make_selection(options["S"], options["Red"])),
            )
        )

        report = order_service.validate_stock(order.id)

        assert report["is_valid"] is False
        assert [r["is_valid"] for r in report["results"]] == [True, False]
        assert report["results"][1]["available_stock"] == 4


class TestDriverAndDeletion:
    def test_assigning_a_driver_deducts(self, tshirt_variants, driver, order_service, make_selection):
        options = tshirt_variants["options"]
        order = order_service.create_order(
            _order_dto((tshirt_variants["product"], 1, make_selection(options["L"], options["Red"])))
        )

        updated = order_service.assign_driver(order.id, AssignDriverDTO(driver_id=driver.id))

        assert updated.state == OrderState.DELIVERING
        assert updated.driver_id == driver.id
        assert updated.assigned_at is not None
        assert _stock(tshirt_variants["variants"]["L Red"]) == 9

    def test_deleting_a_delivering_order_restores(self, flat_product, order_service):
        order = order_service.create_order(_order_dto((flat_product, 7, [])))
        order_service.update_state(order.id, OrderState.DELIVERING)
        assert _quantity(flat_product) == 13

        order_service.delete_order(order.id)

        assert _quantity(flat_product) == 20
        assert not Order.objects.filter(id=order.id).exists()

    def test_deleting_a_placed_order_leaves_stock(self, flat_product, order_service):
        order = order_service.create_order(_order_dto((flat_product, 7, [])))
        order_service.delete_order(order.id)
        assert _quantity(flat_product) == 20


class TestHistory:
    def test_every_state_change_is_recorded(self, flat_product, order_service, user):
        order = order_service.create_order(_order_dto((flat_product, 1, [])), created_by=user)
        order_service.update_state(order.id, OrderState.DELIVERING, notes="Out", user=user)
        order_service.update_state(order.id, OrderState.DELIVERING)
        order_service.update_state(order.id, OrderState.COMPLETED)

        rows = list(
            OrderStateHistory.objects.filter(order_id=order.id)
            .order_by("created_at", "id")
            .values_list("old_state", "new_state")
        )
        assert rows == [
            (None, OrderState.PLACED),
            (OrderState.PLACED, OrderState.DELIVERING),
            (OrderState.DELIVERING, OrderState.COMPLETED),
        ]
        assert Order.objects.get(id=order.id).created_by == user


class TestEngineEntryPoint:
    @pytest.fixture()
    def engine(self):
        return StockTransitionEngine(
            order_repository=OrderDjangoRepository(),
            product_repository=ProductDjangoRepository(),
            variant_repository=VariantDjangoRepository(),
        )

    def test_edge_drives_the_effect(self, engine, flat_product, order_service):
        order = order_service.create_order(_order_dto((flat_product, 3, [])))

        engine.apply_stock_transition(order.id, OrderState.PLACED, OrderState.DELIVERING)
        assert _quantity(flat_product) == 17

        engine.apply_stock_transition(order.id, OrderState.DELIVERING, OrderState.DELIVERING)
        engine.apply_stock_transition(order.id, OrderState.DELIVERING, OrderState.COMPLETED)
        assert _quantity(flat_product) == 17

        engine.apply_stock_transition(order.id, OrderState.COMPLETED, OrderState.RETURNED)
        assert _quantity(flat_product) == 20

    def test_deduction_below_zero_rolls_back(self, engine, flat_product, order_service):
        order = order_service.create_order(
            _order_dto((flat_product, 15, []), (flat_product, 10, []))
        )

        with pytest.raises(InsufficientStock):
            engine.apply_stock_transition(order.id, OrderState.PLACED, OrderState.DELIVERING)

        assert _quantity(flat_product) == 20

    def test_unknown_order(self, engine):
        with pytest.raises(OrderNotFound):
            engine.apply_stock_transition("SP000000000000000", OrderState.PLACED, OrderState.DELIVERING)
