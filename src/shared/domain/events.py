"""Domain event primitives shared by every bounded context."""

from __future__ import annotations

import re
from dataclasses import dataclass, field, fields
from datetime import datetime, timezone
from typing import Any, Dict
from uuid import UUID, uuid4

_CAMEL_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")


@dataclass(frozen=True)
class DomainEvent:
    """Immutable record of something that happened to an aggregate.

    ``aggregate_id`` is always a string: orders are keyed by a readable
    code, the other aggregates by UUID.
    """

    aggregate_id: str
    event_id: UUID = field(default_factory=uuid4)
    occurred_on: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def __post_init__(self) -> None:
        object.__setattr__(self, "aggregate_id", str(self.aggregate_id))

    @property
    def event_name(self) -> str:
        """``StockDeducted`` -> ``stock_deducted``."""
        return _CAMEL_BOUNDARY.sub("_", type(self).__name__).lower()

    def payload(self) -> Dict[str, Any]:
        """Fields declared by the concrete event, without the envelope."""
        envelope = {f.name for f in fields(DomainEvent)}
        return {f.name: getattr(self, f.name) for f in fields(self) if f.name not in envelope}


class DomainEventMixin:
    """Lets an aggregate root queue events until its repository saves it."""

    _domain_events: list[DomainEvent]

    def _queue(self) -> list[DomainEvent]:
        if not hasattr(self, "_domain_events"):
            self._domain_events = []
        return self._domain_events

    def add_domain_event(self, event: DomainEvent) -> None:
        self._queue().append(event)

    @property
    def domain_events(self) -> list[DomainEvent]:
        return list(self._queue())

    def pull_domain_events(self) -> list[DomainEvent]:
        """Return the queued events and empty the queue."""
        queue = self._queue()
        pending = list(queue)
        queue.clear()
        return pending
