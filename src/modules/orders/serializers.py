"""Order DRF serializers for API input/output.

The serializer operates at the Interface layer (API Views).
Business logic lives in the Service Layer, which receives
Pydantic DTOs from ``dtos.py``.
"""

from __future__ import annotations

from decimal import Decimal

from rest_framework import serializers

from modules.orders.constants import OrderState
from modules.orders.models import Order, OrderItem, OrderStateHistory

# ---------------------------------------------------------------------------
# Input Serializers
# ---------------------------------------------------------------------------


class SelectedOptionSerializer(serializers.Serializer):
    id = serializers.UUIDField()
    name = serializers.CharField(required=False, default="", allow_blank=True)


class OptionSelectionSerializer(serializers.Serializer):
    """Options chosen inside one option group of a line."""

    group_id = serializers.UUIDField(required=False, allow_null=True, default=None)
    group_name = serializers.CharField(required=False, default="", allow_blank=True)
    selected_options = SelectedOptionSerializer(many=True, required=False, default=list)


class CreateOrderItemSerializer(serializers.Serializer):
    """Validates a single item in an order creation request."""

    product_id = serializers.UUIDField()
    quantity = serializers.IntegerField(min_value=1)
    option_details = OptionSelectionSerializer(many=True, required=False, default=list)


class CreateOrderSerializer(serializers.Serializer):
    """Validates the order creation request payload."""

    customer_name = serializers.CharField(max_length=255)
    customer_phone = serializers.CharField(max_length=32)
    customer_location = serializers.CharField(
        max_length=512, required=False, default="", allow_blank=True
    )
    province = serializers.CharField(max_length=128, required=False, default="", allow_blank=True)
    remark = serializers.CharField(required=False, default="", allow_blank=True)
    company_delivery_price = serializers.DecimalField(
        max_digits=10, decimal_places=2, min_value=Decimal("0.00"), required=False, default=Decimal("0.00")
    )
    delivery_price = serializers.DecimalField(
        max_digits=10, decimal_places=2, min_value=Decimal("0.00"), required=False, default=Decimal("0.00")
    )
    is_paid = serializers.BooleanField(required=False, default=False)
    items = CreateOrderItemSerializer(many=True, allow_empty=False)


class UpdateOrderStateSerializer(serializers.Serializer):
    state = serializers.ChoiceField(choices=OrderState.choices)
    notes = serializers.CharField(required=False, default="", allow_blank=True)


class AssignDriverSerializer(serializers.Serializer):
    """``driver_id: null`` un-assigns the driver and moves the order back to PLACED."""

    driver_id = serializers.UUIDField(allow_null=True)
    assigned_at = serializers.DateTimeField(required=False, allow_null=True, default=None)


# ---------------------------------------------------------------------------
# Output Serializers (Read)
# ---------------------------------------------------------------------------


class OrderItemSerializer(serializers.ModelSerializer):
    """Read serializer for order items with product and variant snapshot."""

    product_id = serializers.UUIDField(read_only=True)
    product_name = serializers.CharField(source="product.name", read_only=True)
    product_sku = serializers.CharField(source="product.sku", read_only=True, allow_null=True)
    variant_id = serializers.UUIDField(read_only=True, allow_null=True)
    variant_name = serializers.CharField(source="variant.name", read_only=True, default=None)
    subtotal = serializers.DecimalField(max_digits=12, decimal_places=2, read_only=True)

    class Meta:
        model = OrderItem
        fields = [
            "id",
            "product_id",
            "product_name",
            "product_sku",
            "variant_id",
            "variant_name",
            "quantity",
            "price",
            "subtotal",
            "option_details",
        ]
        read_only_fields = fields


class StateHistorySerializer(serializers.ModelSerializer):
    """Read serializer for order state history records."""

    user_id = serializers.IntegerField(read_only=True, allow_null=True)

    class Meta:
        model = OrderStateHistory
        fields = [
            "id",
            "old_state",
            "new_state",
            "user_id",
            "notes",
            "created_at",
        ]
        read_only_fields = fields


class OrderSerializer(serializers.ModelSerializer):
    """Read serializer for orders with nested items and history."""

    items = OrderItemSerializer(many=True, read_only=True)
    state_history = StateHistorySerializer(many=True, read_only=True)
    driver_id = serializers.UUIDField(read_only=True, allow_null=True)
    driver_name = serializers.CharField(source="driver.name", read_only=True, default=None)

    class Meta:
        model = Order
        fields = [
            "id",
            "customer_name",
            "customer_phone",
            "customer_location",
            "province",
            "remark",
            "state",
            "order_source",
            "subtotal_price",
            "company_delivery_price",
            "delivery_price",
            "total_price",
            "is_paid",
            "driver_id",
            "driver_name",
            "order_at",
            "assigned_at",
            "completed_at",
            "created_at",
            "updated_at",
            "items",
            "state_history",
        ]
        read_only_fields = fields


class OrderListSerializer(serializers.ModelSerializer):
    """Lightweight serializer for order list (no nested relations)."""

    driver_id = serializers.UUIDField(read_only=True, allow_null=True)

    class Meta:
        model = Order
        fields = [
            "id",
            "customer_name",
            "customer_phone",
            "state",
            "order_source",
            "total_price",
            "is_paid",
            "driver_id",
            "created_at",
        ]
        read_only_fields = fields
