"""Order DTOs for the Service Layer.

Framework-agnostic data transfer objects using Pydantic v2.
These are the contracts between the API layer (DRF Serializers)
and the Service layer.  DTOs are immutable (``frozen=True``).

- ``SelectedOptionDTO`` / ``OptionSelectionDTO``: one selected group of a line.
- ``CreateOrderItemDTO``: input for a single order line.
- ``CreateOrderDTO``: input for order creation (nested items).
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, field_validator

from modules.orders.constants import OrderState

# ---------------------------------------------------------------------------
# Input DTOs
# ---------------------------------------------------------------------------


class SelectedOptionDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: UUID
    name: str = ""


class OptionSelectionDTO(BaseModel):
    """Options picked inside one option group."""

    model_config = ConfigDict(frozen=True)

    group_id: Optional[UUID] = None
    group_name: str = ""
    selected_options: List[SelectedOptionDTO] = []

    def as_document(self) -> dict:
        return {
            "group_id": str(self.group_id) if self.group_id else None,
            "group_name": self.group_name,
            "selected_options": [
                {"id": str(option.id), "name": option.name} for option in self.selected_options
            ],
        }


class CreateOrderItemDTO(BaseModel):
    """Immutable DTO for a single order line.

    The line price is never taken from the client; the service computes
    it from the product and the resolved variant.
    """

    model_config = ConfigDict(frozen=True)

    product_id: UUID
    quantity: int
    option_details: List[OptionSelectionDTO] = []

    @field_validator("quantity")
    @classmethod
    def quantity_must_be_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("Quantity must be at least 1.")
        return v

    @property
    def selected_option_ids(self) -> List[str]:
        return [
            str(option.id)
            for group in self.option_details
            for option in group.selected_options
        ]


class CreateOrderDTO(BaseModel):
    """Immutable DTO for order creation requests.

    Validates:
    - ``items`` must contain at least one item.
    - Delivery prices cannot be negative.
    """

    model_config = ConfigDict(frozen=True)

    customer_name: str
    customer_phone: str
    customer_location: str = ""
    province: str = ""
    remark: str = ""
    company_delivery_price: Decimal = Decimal("0.00")
    delivery_price: Decimal = Decimal("0.00")
    is_paid: bool = False
    items: List[CreateOrderItemDTO]

    @field_validator("customer_name", "customer_phone")
    @classmethod
    def must_not_be_empty(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("Customer name and phone are required.")
        return v.strip()

    @field_validator("company_delivery_price", "delivery_price")
    @classmethod
    def price_must_be_non_negative(cls, v: Decimal) -> Decimal:
        if v < 0:
            raise ValueError("Delivery prices cannot be negative.")
        return v

    @field_validator("items")
    @classmethod
    def items_must_not_be_empty(
        cls, v: List[CreateOrderItemDTO]
    ) -> List[CreateOrderItemDTO]:
        if not v:
            raise ValueError("Order must have at least one item.")
        return v


class UpdateOrderStateDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    state: OrderState
    notes: str = ""


class AssignDriverDTO(BaseModel):
    """``driver_id=None`` un-assigns the current driver."""

    model_config = ConfigDict(frozen=True)

    driver_id: Optional[UUID] = None
    assigned_at: Optional[datetime] = None
