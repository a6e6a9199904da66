"""Errors raised by order intake and the state endpoint.

Stock shortfalls use ``core.exceptions.InsufficientStock`` directly; the
per-line report travels on its ``results``.
"""

from __future__ import annotations

from modules.core.exceptions import Conflict, NotFound, ValidationFailed


class OrderNotFound(NotFound):
    pass


class InvalidOrderState(ValidationFailed):
    """The target state is not one of PLACED, DELIVERING, COMPLETED, RETURNED."""


class OrderIdExhausted(Conflict):
    """Every generated ``SP`` id collided with an existing order."""
