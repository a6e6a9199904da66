"""Product model: catalog entry and flat stock bucket.

Business rules implemented:
- SKU, when given, is unique and normalised to uppercase.
- Price cannot be negative.
- ``quantity`` is the flat stock counter, authoritative only for order lines
  that do not resolve to a variant (products without options, or selections
  with no matching variant).
- ``has_options`` is maintained by the option catalog: set when the first
  option group is created, cleared when the last one is deleted.
- Soft delete via ``deleted_at`` (inherited from SoftDeleteModel).
"""

from __future__ import annotations

from decimal import Decimal

import structlog
from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models

from modules.core.models import SoftDeleteModel

logger = structlog.get_logger(__name__)


class ProductStatus(models.TextChoices):
    ACTIVE = "active", "Active"
    INACTIVE = "inactive", "Inactive"


class Product(SoftDeleteModel):
    """Product aggregate root.

    Owns option groups and variants (see ``modules.catalog``).
    """

    sku = models.CharField(max_length=64, unique=True, null=True, blank=True)
    name = models.CharField(max_length=255)
    description = models.TextField(blank=True, default="")
    price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0.00"))],
    )
    quantity = models.PositiveIntegerField(default=0)
    weight = models.DecimalField(
        max_digits=8,
        decimal_places=3,
        default=Decimal("0.000"),
    )
    has_options = models.BooleanField(default=False)
    status = models.CharField(
        max_length=20,
        choices=ProductStatus.choices,
        default=ProductStatus.ACTIVE,
    )

    class Meta:
        db_table = "products"
        ordering = ["name"]
        indexes = [
            models.Index(fields=["status"], name="products_status_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                check=models.Q(price__gte=0),
                name="products_price_non_negative",
            ),
        ]

    @property
    def is_sellable(self) -> bool:
        return self.status == ProductStatus.ACTIVE and not self.is_deleted

    def clean(self) -> None:
        super().clean()
        if self.sku:
            self.sku = self.sku.strip().upper()
        if self.price is not None and self.price < 0:
            raise ValidationError({"price": "Price cannot be negative."})

    def save(self, *args, **kwargs) -> None:
        is_new = self._state.adding
        if self.sku:
            self.sku = self.sku.strip().upper()
        else:
            self.sku = None
        super().save(*args, **kwargs)
        if is_new:
            logger.info("product.created", product_id=str(self.id), name=self.name)

    def __str__(self) -> str:
        return self.name
