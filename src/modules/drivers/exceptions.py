"""Driver domain exceptions."""

from __future__ import annotations

from modules.core.exceptions import Conflict, NotFound, ValidationFailed


class DriverNotFound(NotFound):
    """The requested driver does not exist."""


class InactiveDriver(ValidationFailed):
    """The driver is inactive and cannot receive orders."""


class DriverHasOrders(Conflict):
    """The driver still has assigned orders and cannot be deleted."""
