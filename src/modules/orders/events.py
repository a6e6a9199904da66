"""Domain events for the Orders bounded context."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from shared.domain.events import DomainEvent


@dataclass(frozen=True)
class OrderCreated(DomainEvent):
    """Raised when an order is created."""

    order_source: str = ""
    item_count: int = 0


@dataclass(frozen=True)
class OrderStateChanged(DomainEvent):
    """Raised when an order state changes."""

    old_state: Optional[str] = None
    new_state: str = ""


@dataclass(frozen=True)
class StockDeducted(DomainEvent):
    """Raised when an order's lines were deducted from their stock buckets."""

    line_count: int = 0
    units: int = 0


@dataclass(frozen=True)
class StockRestored(DomainEvent):
    """Raised when an order's lines were returned to their stock buckets."""

    line_count: int = 0
    units: int = 0
