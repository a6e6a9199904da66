"""Option catalog domain exceptions.

Raised by the catalog services; views translate them into HTTP
responses through the base families in ``modules.core.exceptions``.
"""

from __future__ import annotations

from modules.core.exceptions import Conflict, NotFound, ValidationFailed


class OptionGroupNotFound(NotFound):
    """The option group does not exist."""


class OptionNotFound(NotFound):
    """The option does not exist."""


class VariantNotFound(NotFound):
    """The variant does not exist."""


class InvalidParentGroup(ValidationFailed):
    """The proposed parent is missing, foreign, not ``is_parent`` or would form a cycle."""


class InvalidOptionPrice(ValidationFailed):
    """The option price type requires a non-negative ``price_value``."""


class InvalidVariantOptions(ValidationFailed):
    """A variant references options that do not belong to its product."""


class DuplicateVariant(Conflict):
    """A variant for the same option combination already exists."""


class ReferencedInOrders(Conflict):
    """The group, option or variant is referenced by existing order items."""
