"""Driver repository interface."""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Any, Dict, Iterable, Optional

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.drivers.models import Driver


class IDriverRepository(IRepository["Driver"]):
    @abstractmethod
    def list(self, filters: Optional[Dict[str, Any]] = None) -> Iterable["Driver"]:
        """List drivers with optional filters."""

    @abstractmethod
    def has_orders(self, id: str) -> bool:
        """True when any order references the driver."""

    @abstractmethod
    def delete(self, id: str) -> bool:
        """Remove a driver row."""
