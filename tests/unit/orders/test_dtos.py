"""Unit tests for order DTO validation."""

from decimal import Decimal
from uuid import uuid4

import pytest
from pydantic import ValidationError

from modules.orders.constants import OrderState
from modules.orders.dtos import (
    AssignDriverDTO,
    CreateOrderDTO,
    CreateOrderItemDTO,
    OptionSelectionDTO,
    UpdateOrderStateDTO,
)

pytestmark = pytest.mark.unit


def _order_payload(**overrides):
    payload = {
        "customer_name": "Alex",
        "customer_phone": "0722000001",
        "items": [{"product_id": uuid4(), "quantity": 1}],
    }
    payload.update(overrides)
    return payload


class TestCreateOrderDTO:
    def test_valid_payload(self):
        dto = CreateOrderDTO(**_order_payload())
        assert dto.delivery_price == Decimal("0.00")
        assert dto.items[0].option_details == []

    def test_empty_items_rejected(self):
        with pytest.raises(ValidationError):
            CreateOrderDTO(**_order_payload(items=[]))

    def test_blank_customer_rejected(self):
        with pytest.raises(ValidationError):
            CreateOrderDTO(**_order_payload(customer_name="   "))

    def test_negative_delivery_price_rejected(self):
        with pytest.raises(ValidationError):
            CreateOrderDTO(**_order_payload(delivery_price=Decimal("-1")))

    def test_quantity_must_be_positive(self):
        with pytest.raises(ValidationError):
            CreateOrderItemDTO(product_id=uuid4(), quantity=0)

    def test_dto_is_frozen(self):
        dto = CreateOrderDTO(**_order_payload())
        with pytest.raises(ValidationError):
            dto.customer_name = "Other"


class TestOptionSelection:
    def test_selected_option_ids_flatten_groups(self):
        s, red = uuid4(), uuid4()
        item = CreateOrderItemDTO(
            product_id=uuid4(),
            quantity=1,
            option_details=[
                {"group_name": "Size", "selected_options": [{"id": s, "name": "S"}]},
                {"group_name": "Color", "selected_options": [{"id": red, "name": "Red"}]},
            ],
        )
        assert item.selected_option_ids == [str(s), str(red)]

    def test_as_document_uses_snake_case_keys(self):
        group_id, option_id = uuid4(), uuid4()
        doc = OptionSelectionDTO(
            group_id=group_id,
            group_name="Size",
            selected_options=[{"id": option_id, "name": "S"}],
        ).as_document()
        assert doc == {
            "group_id": str(group_id),
            "group_name": "Size",
            "selected_options": [{"id": str(option_id), "name": "S"}],
        }


class TestStateDTOs:
    def test_unknown_state_rejected(self):
        with pytest.raises(ValidationError):
            UpdateOrderStateDTO(state="SHIPPED")

    def test_known_state(self):
        assert UpdateOrderStateDTO(state="RETURNED").state == OrderState.RETURNED

    def test_unassign_driver(self):
        assert AssignDriverDTO().driver_id is None
