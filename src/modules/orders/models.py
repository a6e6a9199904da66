"""Order, OrderItem, and OrderStateHistory models.

Business rules implemented:
- The order primary key is a human-readable code
  (``SP`` + ``DDMMYY`` + ``HHMM`` + 5 random uppercase alphanumerics);
  collisions are retried by the service layer.
- Orders start in PLACED; state changes are audited in
  ``OrderStateHistory``.
- OrderItem snapshots the line price at creation
  (``product.price + variant.price_adjustment``) and keeps the resolved
  variant both as a foreign key and inside ``option_details``.
- Product, variant and driver FKs use PROTECT to preserve order history.
"""

from __future__ import annotations

import secrets
from datetime import datetime
from decimal import Decimal
from typing import Any, Optional

import structlog
from django.conf import settings
from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models
from django.utils import timezone

from modules.core.models import BaseModel
from modules.orders.constants import (
    ORDER_ID_ALPHABET,
    ORDER_ID_PREFIX,
    ORDER_ID_SUFFIX_LENGTH,
    OrderSource,
    OrderState,
)
from shared.domain.events import DomainEventMixin

logger = structlog.get_logger(__name__)


class Order(DomainEventMixin, BaseModel):
    """Order aggregate root."""

    id: models.CharField = models.CharField(primary_key=True, max_length=20, editable=False)
    customer_name: models.CharField = models.CharField(max_length=255)
    customer_phone: models.CharField = models.CharField(max_length=32)
    customer_location: models.CharField = models.CharField(max_length=512, blank=True, default="")
    province: models.CharField = models.CharField(max_length=128, blank=True, default="")
    remark: models.TextField = models.TextField(blank=True, default="")
    state: models.CharField = models.CharField(
        max_length=20,
        choices=OrderState.choices,
        default=OrderState.PLACED,
    )
    order_source: models.CharField = models.CharField(
        max_length=10,
        choices=OrderSource.choices,
        default=OrderSource.ADMIN,
    )
    subtotal_price: models.DecimalField = models.DecimalField(
        max_digits=12, decimal_places=2, default=Decimal("0.00")
    )
    company_delivery_price: models.DecimalField = models.DecimalField(
        max_digits=10, decimal_places=2, default=Decimal("0.00")
    )
    delivery_price: models.DecimalField = models.DecimalField(
        max_digits=10, decimal_places=2, default=Decimal("0.00")
    )
    total_price: models.DecimalField = models.DecimalField(
        max_digits=12, decimal_places=2, default=Decimal("0.00")
    )
    is_paid: models.BooleanField = models.BooleanField(default=False)
    driver: models.ForeignKey = models.ForeignKey(
        "drivers.Driver",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="orders",
    )
    created_by: models.ForeignKey = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="created_orders",
    )
    order_at: models.DateTimeField = models.DateTimeField(default=timezone.now)
    assigned_at: models.DateTimeField = models.DateTimeField(null=True, blank=True)
    completed_at: models.DateTimeField = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = "orders"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["state"], name="orders_state_idx"),
            models.Index(fields=["order_source"], name="orders_source_idx"),
            models.Index(fields=["-created_at"], name="orders_created_idx"),
        ]

    # ------------------------------------------------------------------
    # Order id generation
    # ------------------------------------------------------------------

    @staticmethod
    def generate_order_id(now: Optional[datetime] = None) -> str:
        """Human-readable id: ``SP`` + ``DDMMYY`` + ``HHMM`` + 5 random chars."""
        now = timezone.localtime(now or timezone.now())
        suffix = "".join(secrets.choice(ORDER_ID_ALPHABET) for _ in range(ORDER_ID_SUFFIX_LENGTH))
        return f"{ORDER_ID_PREFIX}{now:%d%m%y%H%M}{suffix}"

    # ------------------------------------------------------------------
    # Display
    # ------------------------------------------------------------------

    def __str__(self) -> str:
        return f"{self.id} ({self.state})"


class OrderItem(BaseModel):
    """Line item linking an Order to a Product (and optionally a Variant).

    ``price`` is a snapshot taken when the order is created; ``variant``
    is the stock bucket this line deducts from and restores to.  A line
    without a variant uses the product's flat ``quantity``.
    """

    order: models.ForeignKey = models.ForeignKey(
        "orders.Order",
        on_delete=models.CASCADE,
        related_name="items",
    )
    product: models.ForeignKey = models.ForeignKey(
        "products.Product",
        on_delete=models.PROTECT,
        related_name="order_items",
    )
    variant: models.ForeignKey = models.ForeignKey(
        "catalog.Variant",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="order_items",
    )
    quantity: models.PositiveIntegerField = models.PositiveIntegerField(
        default=1,
        validators=[MinValueValidator(1)],
    )
    price: models.DecimalField = models.DecimalField(max_digits=10, decimal_places=2)
    option_details: models.JSONField = models.JSONField(null=True, blank=True)

    class Meta:
        db_table = "order_items"
        ordering = ["created_at"]
        constraints = [
            models.CheckConstraint(
                check=models.Q(quantity__gte=1),
                name="order_items_quantity_positive",
            ),
        ]

    @property
    def subtotal(self) -> Decimal:
        return self.quantity * self.price

    def clean(self) -> None:
        super().clean()
        if self.quantity is not None and self.quantity < 1:
            raise ValidationError({"quantity": "Quantity must be at least 1."})

    def save(self, *args: Any, **kwargs: Any) -> None:
        if self.price is None:
            price = getattr(self.product, "price", None)
            if price is None:
                raise ValidationError({"price": "Product price is required."})
            self.price = price
        super().save(*args, **kwargs)

    def __str__(self) -> str:
        return f"{self.product} x{self.quantity} (${self.subtotal})"


class OrderStateHistory(BaseModel):
    """Append-only audit trail for order state changes.

    ``user`` is ``None`` for customer-submitted orders and system writes.
    """

    order: models.ForeignKey = models.ForeignKey(
        "orders.Order",
        on_delete=models.CASCADE,
        related_name="state_history",
    )
    old_state: models.CharField = models.CharField(  # noqa: DJ01
        max_length=20,
        choices=OrderState.choices,
        null=True,
        blank=True,
    )
    new_state: models.CharField = models.CharField(
        max_length=20,
        choices=OrderState.choices,
    )
    user: models.ForeignKey = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
    )
    notes: models.TextField = models.TextField(blank=True, default="")

    class Meta:
        db_table = "order_state_history"
        ordering = ["-created_at"]
        indexes = [
            models.Index(
                fields=["order", "-created_at"],
                name="osh_order_created_idx",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.order_id} : {self.old_state} -> {self.new_state}"
