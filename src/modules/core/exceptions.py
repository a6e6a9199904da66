"""Base domain error taxonomy.

Every module raises subclasses of these four families.  Views translate
them into HTTP responses; nothing in the service layer catches them.

- ``ValidationFailed``: malformed or out-of-range input (400).
- ``NotFound``: a referenced entity does not exist (404).
- ``Conflict``: the operation collides with existing data (409).
- ``InsufficientStock``: a stock bucket cannot cover a deduction (409).
"""

from __future__ import annotations


class DomainError(Exception):
    """Base class for all business rule violations."""


class ValidationFailed(DomainError):
    """Input is malformed or violates a catalog/order invariant."""


class NotFound(DomainError):
    """A referenced product, group, option, variant, driver or order is absent."""


class Conflict(DomainError):
    """The operation is blocked by existing references or duplicates."""


class InsufficientStock(DomainError):
    """A deduction would drive a stock counter below zero.

    ``results`` carries the per-line availability report when the error
    comes from a pre-transition validation, so callers can present one
    combined message.
    """

    def __init__(self, message: str, results: list | None = None) -> None:
        super().__init__(message)
        self.results = results or []
