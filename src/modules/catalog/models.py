"""Option catalog models: option groups, options and variants.

Business rules implemented:
- Option groups form a per-product tree through ``parent``; a root group has
  ``level`` 1 and every child has ``parent.level + 1`` (enforced by the
  service layer, which also rejects cycles).
- Options priced BASE / FIXED / PERCENTAGE carry a non-negative
  ``price_value``; FREE options ignore it.
- A variant is one stock-bearing leaf combination of options.  Its
  ``option_hash`` (md5 of the sorted option ids) is unique per product.
- Variant stock never goes negative (DB check constraint plus conditional
  updates in the repository).
"""

from __future__ import annotations

from decimal import Decimal

from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models

from modules.catalog.constants import (
    MAX_GROUP_LEVEL,
    MIN_GROUP_LEVEL,
    PriceType,
    SelectionType,
)
from modules.core.models import BaseModel


class OptionGroup(BaseModel):
    """A named set of options attached to a product, possibly nested."""

    product = models.ForeignKey(
        "products.Product",
        on_delete=models.CASCADE,
        related_name="option_groups",
    )
    name = models.CharField(max_length=255)
    description = models.TextField(blank=True, default="")
    selection_type = models.CharField(
        max_length=10,
        choices=SelectionType.choices,
        default=SelectionType.SINGLE,
    )
    is_required = models.BooleanField(default=False)
    sort_order = models.IntegerField(default=0)
    # PROTECT: descendants are removed explicitly, deepest level first.
    parent = models.ForeignKey(
        "self",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="children",
    )
    is_parent = models.BooleanField(default=False)
    level = models.PositiveSmallIntegerField(
        default=MIN_GROUP_LEVEL,
        validators=[
            MinValueValidator(MIN_GROUP_LEVEL),
            MaxValueValidator(MAX_GROUP_LEVEL),
        ],
    )
    path = models.CharField(max_length=1024, blank=True, default="")
    is_active = models.BooleanField(default=True)

    class Meta:
        db_table = "option_groups"
        ordering = ["level", "sort_order", "created_at"]
        indexes = [
            models.Index(fields=["product", "level"], name="option_groups_prod_lvl_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.name} (L{self.level})"


class Option(BaseModel):
    """A selectable value inside an option group."""

    group = models.ForeignKey(
        "catalog.OptionGroup",
        on_delete=models.CASCADE,
        related_name="options",
    )
    name = models.CharField(max_length=255)
    description = models.TextField(blank=True, default="")
    price_type = models.CharField(
        max_length=12,
        choices=PriceType.choices,
        default=PriceType.FREE,
    )
    price_value = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        null=True,
        blank=True,
        validators=[MinValueValidator(Decimal("0.00"))],
    )
    is_default = models.BooleanField(default=False)
    is_available = models.BooleanField(default=True)
    # Only meaningful for flat catalogs that never generated variants.
    stock = models.PositiveIntegerField(default=0)
    sort_order = models.IntegerField(default=0)

    class Meta:
        db_table = "options"
        ordering = ["sort_order", "created_at"]

    @property
    def effective_price(self) -> Decimal:
        """Price contribution of this option; FREE options contribute nothing."""
        if self.price_type == PriceType.FREE or self.price_value is None:
            return Decimal("0.00")
        return self.price_value

    def __str__(self) -> str:
        return self.name


class Variant(BaseModel):
    """Stock-bearing option combination of a product."""

    product = models.ForeignKey(
        "products.Product",
        on_delete=models.CASCADE,
        related_name="variants",
    )
    name = models.CharField(max_length=512)
    sku = models.CharField(max_length=64, null=True, blank=True)
    stock = models.PositiveIntegerField(default=0)
    price_adjustment = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        default=Decimal("0.00"),
    )
    option_hash = models.CharField(max_length=32)
    option_path = models.CharField(max_length=1024, blank=True, default="")
    sort_order = models.BigIntegerField(default=0)
    is_active = models.BooleanField(default=True)
    options = models.ManyToManyField(
        "catalog.Option",
        through="catalog.VariantOption",
        related_name="variants",
    )

    class Meta:
        db_table = "variants"
        ordering = ["sort_order", "name"]
        constraints = [
            models.UniqueConstraint(
                fields=["product", "option_hash"],
                name="variants_product_option_hash_uniq",
            ),
            models.CheckConstraint(
                check=models.Q(stock__gte=0),
                name="variants_stock_non_negative",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.name} ({self.stock})"


class VariantOption(models.Model):
    """Join row between a variant and one of its defining options."""

    variant = models.ForeignKey(
        "catalog.Variant",
        on_delete=models.CASCADE,
        related_name="variant_options",
    )
    option = models.ForeignKey(
        "catalog.Option",
        on_delete=models.CASCADE,
        related_name="variant_options",
    )

    class Meta:
        db_table = "variant_options"
        constraints = [
            models.UniqueConstraint(
                fields=["variant", "option"],
                name="variant_options_uniq",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.variant_id} -> {self.option_id}"
