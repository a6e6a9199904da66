"""Option catalog constants."""

from decimal import Decimal

from django.db import models


class SelectionType(models.TextChoices):
    SINGLE = "SINGLE", "Single"
    MULTIPLE = "MULTIPLE", "Multiple"


class PriceType(models.TextChoices):
    FREE = "FREE", "Free"
    BASE = "BASE", "Base"
    FIXED = "FIXED", "Fixed"
    PERCENTAGE = "PERCENTAGE", "Percentage"


PRICED_TYPES: set[str] = {PriceType.BASE, PriceType.FIXED, PriceType.PERCENTAGE}

MIN_GROUP_LEVEL = 1
MAX_GROUP_LEVEL = 5

# Generated variants keep price adjustments that drift less than this.
PRICE_DRIFT_TOLERANCE = Decimal("0.01")
