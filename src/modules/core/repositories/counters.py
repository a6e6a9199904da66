"""Conditional atomic updates for stock counters.

Both stock buckets (``Variant.stock`` and ``Product.quantity``) are only
ever changed through these helpers: a single ``UPDATE`` whose ``WHERE``
clause carries the non-negativity guard, checked by affected-row count.
"""

from __future__ import annotations

from typing import Type

from django.db import models
from django.db.models import F


def decrement(model: Type[models.Model], pk: str, field: str, amount: int) -> bool:
    """``field -= amount`` when at least ``amount`` is left; ``False`` otherwise."""
    updated = model.objects.filter(**{"pk": pk, f"{field}__gte": amount}).update(
        **{field: F(field) - amount}
    )
    return updated == 1


def increment(model: Type[models.Model], pk: str, field: str, amount: int) -> bool:
    """``field += amount``; ``False`` when the row does not exist."""
    updated = model.objects.filter(pk=pk).update(**{field: F(field) + amount})
    return updated == 1
