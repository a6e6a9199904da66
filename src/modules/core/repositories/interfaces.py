"""Repository base contract.

Services talk to repositories only; the Django ORM never leaks above
them.  Look-ups return ``None`` (or an empty mapping) for unknown or
malformed ids instead of raising, so services decide which domain
exception a missing row becomes.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Generic, Optional, TypeVar

T = TypeVar("T")


class IRepository(ABC, Generic[T]):
    """Persistence port for one aggregate type ``T``."""

    @abstractmethod
    def get_by_id(self, id: str) -> Optional[T]:
        """The entity with primary key ``id``, or ``None``."""

    @abstractmethod
    def save(self, entity: T) -> T:
        """Insert or update ``entity`` and return it."""
