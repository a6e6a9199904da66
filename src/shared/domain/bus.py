"""Event bus contracts.

Handlers are plain objects with a ``handle`` method; the bus owns the
routing from event class to handlers and decides when they run.
"""

from __future__ import annotations

from typing import Generic, Iterable, Protocol, Type, TypeVar

from shared.domain.events import DomainEvent

E = TypeVar("E", bound=DomainEvent, contravariant=True)


class IEventHandler(Protocol, Generic[E]):
    def handle(self, event: E) -> None: ...


class IEventBus(Protocol):
    def subscribe(self, event_class: Type[E], handler: IEventHandler[E]) -> None: ...

    def unsubscribe(self, event_class: Type[E], handler: IEventHandler[E]) -> None: ...

    def publish(self, event: DomainEvent) -> None:
        """Run every handler of ``event`` synchronously."""

    def publish_on_commit(self, events: Iterable[DomainEvent]) -> None:
        """Run the handlers once the current database transaction commits."""
