"""Order domain constants.

Order states carry no transition table: any state may be written
directly.  Stock side effects are keyed off the edge (see
``modules.orders.stock.stock_effect_for``).
"""

import string

from django.db import models


class OrderState(models.TextChoices):
    PLACED = "PLACED", "Placed"
    DELIVERING = "DELIVERING", "Delivering"
    RETURNED = "RETURNED", "Returned"
    COMPLETED = "COMPLETED", "Completed"


class OrderSource(models.TextChoices):
    ADMIN = "ADMIN", "Admin"
    CUSTOMER = "CUSTOMER", "Customer"


class StockEffect(models.TextChoices):
    DEDUCT = "DEDUCT", "Deduct"
    RESTORE = "RESTORE", "Restore"


ORDER_ID_PREFIX = "SP"
ORDER_ID_SUFFIX_LENGTH = 5
ORDER_ID_ALPHABET = string.ascii_uppercase + string.digits
ORDER_ID_MAX_RETRIES = 3
