"""Errors raised by the product service and by order intake on products."""

from __future__ import annotations

from modules.core.exceptions import Conflict, NotFound, ValidationFailed


class ProductNotFound(NotFound):
    """No live product has this id (soft-deleted rows count as absent)."""


class ProductAlreadyExists(Conflict):
    """The SKU, compared upper-cased, belongs to another product."""


class InactiveProduct(ValidationFailed):
    """An order line points at a product that is not sellable."""
